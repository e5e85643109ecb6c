import os
import logging
import time

from typing import Callable, Dict, List, Optional, Sequence

from veeam_agent_updater.config.parser import AGENT_TAGS, GROUP_ORDER, ORDINARY_GROUPS, UpdaterConfig
from veeam_agent_updater.core.errors import OperationCancelled, PrerequisiteError
from veeam_agent_updater.core.models import Action, AgentBinary, HostRole, PathGroup, RunReport, TargetHost
from veeam_agent_updater.core.walker import DeploymentWalker, summarize
from veeam_agent_updater.run_on_platform.base import FileSystemAccess, HostDirectory, ServiceController
from veeam_agent_updater.run_on_platform.veeam import PowerShellServiceController, VeeamHostDirectory
from veeam_agent_updater.run_on_platform.windows import LocalPowerShellRunner, ShareFileSystem
from veeam_agent_updater.utils import integrity
from veeam_agent_updater.utils.path_utils import make_run_timestamp

SEPARATOR = '-' * 96


def ask_yes_no(question: str) -> bool:
    """Console confirmation, anything but y/yes declines"""
    try:
        answer = input(f"{question} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def build_collaborators(config: UpdaterConfig):
    """Host directory, service controller and file system access for a real run"""
    server = config.management_server
    if server:
        from veeam_agent_updater.run_on_platform.windows_remote import RemoteWindowsOperator
        runner = RemoteWindowsOperator(server['ip'], server['user_name'], server['password'],
                                       transport=server.get('transport', 'ntlm'))
    else:
        runner = LocalPowerShellRunner()
    return VeeamHostDirectory(runner), PowerShellServiceController(runner), ShareFileSystem(timeout=config.timeout)


def load_agents(config: UpdaterConfig, logger) -> Dict[str, AgentBinary]:
    """Check that every local agent binary exists and log its hashes"""
    paths = {tag: config.agent_path(tag) for tag in AGENT_TAGS}
    missing = [f"{tag}: {path}" for tag, path in paths.items() if not os.path.isfile(path)]
    if missing:
        missing_str = "\n\t".join(missing)
        raise PrerequisiteError(f"Local agent files not found:\n\t{missing_str}")

    agents = {}
    for tag, path in paths.items():
        agents[tag] = AgentBinary(tag=tag, path=path, md5=integrity.md5_checksum(path),
                                  sha256=integrity.sha256_checksum(path))
        logger.info(f"Agent {tag:<10} | {path} | SHA256 {agents[tag].sha256} | MD5 {agents[tag].md5}")
    return agents


def resolve_hosts(host_directory: HostDirectory, logger):
    """Management host and the ordinary Windows hosts registered next to it"""
    management_name = host_directory.get_management_host()
    registered = host_directory.get_registered_windows_hosts()

    ordinary, seen = [], {management_name.lower()}
    for name in registered:
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        ordinary.append(TargetHost(name, HostRole.ORDINARY))

    logger.info(f"Management host: {management_name}")
    logger.info(f"Registered Windows hosts: {len(ordinary)}" +
                ("".join(f"\n\t{h.name}" for h in ordinary) if ordinary else ""))
    return [TargetHost(management_name, HostRole.MANAGEMENT)], ordinary


def run_phases(walker: DeploymentWalker, hosts: Sequence[TargetHost], groups: Sequence[PathGroup],
               report: RunReport, logger):
    """Back up every group on every host, then deploy every group on every host"""
    if not hosts:
        logger.info("No hosts to update in this step")
        return
    host_names = ", ".join(h.name for h in hosts)
    for action in (Action.BACKUP, Action.DEPLOY):
        logger.info(f"Starting {action.value} on [{host_names}]")
        outcomes = []
        for group in groups:
            outcomes.extend(walker.apply_action(hosts, group, action))
        report.outcomes.extend(outcomes)
        logger.info(f"{action.value.capitalize()} on [{host_names}] completed: {summarize(outcomes)}")
        logger.info(SEPARATOR)


def run_update(config: UpdaterConfig, host_directory: HostDirectory, file_system: FileSystemAccess,
               service_controller: ServiceController, confirm: Callable[[str], bool] = ask_yes_no,
               target: Optional[TargetHost] = None, stop_service: bool = True, simulation_mode: bool = False,
               find_processes: Optional[Callable[[str], List[str]]] = None, run_timestamp: Optional[str] = None,
               logger=None) -> RunReport:
    """
    One deployment run. Fatal preconditions raise an UpdaterError subclass, per-path failures
    end up in the returned report.
    """
    logger = logger or logging.getLogger(__name__)
    start_time = time.time()
    run_timestamp = run_timestamp or make_run_timestamp(start_time)

    logger.info(f"Veeam agent update started, run timestamp {run_timestamp}")
    logger.info(f"Simulation mode: {'ON' if simulation_mode else 'OFF'}")

    # The Veeam extension is needed to list hosts and to stop the service
    if target is None or stop_service:
        host_directory.check_available()

    agents = load_agents(config, logger)

    if target is None:
        management_hosts, ordinary_hosts = resolve_hosts(host_directory, logger)
    elif target.is_management:
        management_hosts, ordinary_hosts = [target], []
    else:
        management_hosts, ordinary_hosts = [], [target]
    if target is not None:
        logger.info(f"Single host mode: {target.name} ({target.role.value})")

    if stop_service:
        if not confirm(f"Service {config.service_name} will be stopped and Veeam agents replaced. Continue?"):
            raise OperationCancelled("Update cancelled by operator")
        if simulation_mode:
            logger.info(f"[SIMULATION] Would stop service {config.service_name}")
        else:
            service_controller.stop_service(config.service_name)

    if find_processes is not None:
        running = find_processes("VeeamAgent")
        if running:
            running_str = "\n\t".join(running)
            logger.warning(f"VeeamAgent processes still running, their files may be locked:\n\t{running_str}")

    walker = DeploymentWalker(file_system, agents, admin_share=config.admin_share, run_timestamp=run_timestamp,
                              verify_copies=config.verify_copies, simulation_mode=simulation_mode,
                              logger=logger.getChild('walker'))
    report = RunReport(run_timestamp=run_timestamp)

    logger.info(SEPARATOR)
    run_phases(walker, management_hosts, config.groups(GROUP_ORDER), report, logger)
    run_phases(walker, ordinary_hosts, config.groups(ORDINARY_GROUPS), report, logger)

    duration = time.time() - start_time
    logger.info(f"Veeam agent update completed in {duration:.2f}s: {summarize(report.outcomes)}")
    if report.failure_count:
        logger.warning(f"{report.failure_count} path(s) failed, see messages above")
    if stop_service:
        logger.info(f"Please start service {config.service_name} manually")
    return report
