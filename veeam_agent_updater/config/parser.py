import json
import copy
import os
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

from veeam_agent_updater.core.models import PathGroup
from veeam_agent_updater.utils.path_utils import normalize_template

WINDOWS_64 = "windows-64"
WINDOWS_32 = "windows-32"
LINUX_64 = "linux-64"
LINUX = "linux"
AGENT_TAGS = (WINDOWS_64, WINDOWS_32, LINUX_64, LINUX)

WINDOWS_TRANSPORT = "windows_transport"
LINUX_MOUNT = "linux_mount"
LINUX_BACKUP = "linux_backup"
WINDOWS_ADDITIONAL = "windows_additional"
GROUP_ORDER = (WINDOWS_TRANSPORT, LINUX_MOUNT, LINUX_BACKUP, WINDOWS_ADDITIONAL)
# Ordinary hosts only carry the transport and mount services
ORDINARY_GROUPS = (WINDOWS_TRANSPORT, LINUX_MOUNT)

DEFAULT_CONFIG_NAME = "config.json"


def load_default_config():
    """Load default config values"""
    return {
        'agents_dir': '.',
        'agents': {
            WINDOWS_64: 'win64\\VeeamAgent.exe',
            WINDOWS_32: 'win32\\VeeamAgent.exe',
            LINUX_64: 'lin\\VeeamAgent64',
            LINUX: 'lin\\VeeamAgent',
        },
        'admin_share': 'C$',
        'path_groups': {
            WINDOWS_TRANSPORT: [
                'Program Files (x86)\\Veeam\\Backup Transport\\x86\\VeeamAgent.exe',
                'Program Files (x86)\\Veeam\\Backup Transport\\x64\\VeeamAgent.exe',
            ],
            LINUX_MOUNT: [
                'Program Files\\Common Files\\Veeam\\Backup and Replication\\Mount Service\\VeeamAgent64',
                'Program Files\\Common Files\\Veeam\\Backup and Replication\\Mount Service\\VeeamAgent',
            ],
            LINUX_BACKUP: [
                'Program Files\\Veeam\\Backup and Replication\\Backup\\VeeamAgent64',
                'Program Files\\Veeam\\Backup and Replication\\Backup\\VeeamAgent',
            ],
            WINDOWS_ADDITIONAL: [
                'Program Files\\Veeam\\Backup and Replication\\Backup\\WinAgent\\VeeamAgent.exe',
                'Program Files\\Veeam\\Backup and Replication\\Backup\\Packages\\sql\\VeeamAgent.exe',
            ],
        },
        'service_name': 'VeeamBackupSvc',
        'log_file': 'veeam_agent_update.log',
        'timeout': 30,
        'verify_copies': True,
        'management_server': None,
    }


@dataclass(frozen=True)
class UpdaterConfig:
    agents_dir: str
    agents: Dict[str, str]
    admin_share: str
    path_groups: Tuple[PathGroup, ...]
    service_name: str
    log_file: str
    timeout: float
    verify_copies: bool
    management_server: Optional[Dict[str, str]] = None

    def group(self, name: str) -> PathGroup:
        for path_group in self.path_groups:
            if path_group.name == name:
                return path_group
        raise KeyError(name)

    def groups(self, names) -> List[PathGroup]:
        return [self.group(name) for name in names]

    def agent_path(self, tag: str) -> str:
        return os.path.join(self.agents_dir, *self.agents[tag].replace('/', '\\').split('\\'))


class ConfigParser:
    """Parse config structure and merge it over the defaults"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.raw_config = {}
        self.defaults = load_default_config()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration file (if any) and return the merged dict"""
        if self.config_path:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self.raw_config = json.load(f)
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file {self.config_path} not found")
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in configuration file: {e}")
            if not isinstance(self.raw_config, dict):
                raise ValueError("Configuration root must be a JSON object")

        return self._merge(self.defaults, self.raw_config)

    @staticmethod
    def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        # agents and path_groups are merged key by key so a file may override a single entry
        merged = copy.deepcopy(defaults)
        for key, value in overrides.items():
            if key in ('agents', 'path_groups') and isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value
        return merged


def build_config(config: Dict[str, Any]) -> UpdaterConfig:
    """Freeze a validated config dict"""
    path_groups = tuple(
        PathGroup(name, tuple(normalize_template(t) for t in config['path_groups'].get(name, [])))
        for name in GROUP_ORDER
    )
    return UpdaterConfig(
        agents_dir=config['agents_dir'],
        agents=dict(config['agents']),
        admin_share=config['admin_share'],
        path_groups=path_groups,
        service_name=config['service_name'],
        log_file=config['log_file'],
        timeout=float(config['timeout']),
        verify_copies=bool(config['verify_copies']),
        management_server=config.get('management_server') or None,
    )


def resolve_config_path(config_path: Optional[str] = None) -> Optional[str]:
    """Explicit path wins; otherwise config.json in the working directory if present"""
    if config_path:
        return config_path
    if os.path.exists(DEFAULT_CONFIG_NAME):
        return DEFAULT_CONFIG_NAME
    return None
