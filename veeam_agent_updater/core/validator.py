from typing import List, Dict, Any

from veeam_agent_updater.config.parser import AGENT_TAGS, GROUP_ORDER
from veeam_agent_updater.utils.path_validator import SafePathValidator


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Validate merged configuration, returns list of errors (empty when valid)"""
    errors = []

    agents = config.get("agents")
    if not isinstance(agents, dict):
        errors.append("'agents' must be a dict of platform tag -> relative path")
    else:
        for tag in AGENT_TAGS:
            if not agents.get(tag):
                errors.append(f"Agent '{tag}': missing local path")
            elif not isinstance(agents[tag], str):
                errors.append(f"Agent '{tag}': local path must be a string")
        for tag in agents:
            if tag not in AGENT_TAGS:
                errors.append(f"Agent '{tag}': unknown platform tag, expected one of {', '.join(AGENT_TAGS)}")

    path_groups = config.get("path_groups")
    if not isinstance(path_groups, dict):
        errors.append("'path_groups' must be a dict of group name -> list of templates")
    else:
        for name, templates in path_groups.items():
            if name not in GROUP_ORDER:
                errors.append(f"Path group '{name}': unknown group, expected one of {', '.join(GROUP_ORDER)}")
                continue
            if not isinstance(templates, list):
                errors.append(f"Path group '{name}': must be a list")
                continue
            for template in templates:
                is_safe, reason = SafePathValidator.is_safe_template(template)
                if not is_safe:
                    errors.append(f"Path group '{name}': template {template!r}: {reason}")

    if not isinstance(config.get("admin_share"), str) or not config["admin_share"].strip("\\ "):
        errors.append("'admin_share' must be a non-empty string")

    for key in ("service_name", "agents_dir", "log_file"):
        if not isinstance(config.get(key), str) or not config[key].strip():
            errors.append(f"'{key}' must be a non-empty string")

    timeout = config.get("timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("'timeout' must be a positive number of seconds")

    server = config.get("management_server")
    if server is not None:
        if not isinstance(server, dict):
            errors.append("'management_server' must be a dict with 'ip', 'user_name' and 'password'")
        else:
            for key in ("ip", "user_name", "password"):
                if not server.get(key):
                    errors.append(f"management_server: Missing '{key}'")

    return errors
