"""
Deployment walker: visits every (host, remote path) pair of a path group and either backs
the remote file up or overwrites it with the matching local agent binary.

Hosts and templates are visited strictly in order, one check-then-copy step at a time.
Per-path problems never stop the walk, they are returned as PathOutcome records.
"""

import logging

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from more_itertools import first_true

from veeam_agent_updater.config.parser import LINUX, LINUX_64, WINDOWS_32, WINDOWS_64
from veeam_agent_updater.core.errors import UnknownActionError
from veeam_agent_updater.core.models import Action, AgentBinary, OutcomeStatus, PathGroup, PathOutcome, TargetHost
from veeam_agent_updater.run_on_platform.base import FileSystemAccess
from veeam_agent_updater.utils.path_utils import backup_path, make_run_timestamp, unc_path

# First match wins: the plain VeeamAgent suffix has to stay last
AGENT_SUFFIX_RULES: Tuple[Tuple[str, str], ...] = (
    ("x64\\VeeamAgent.exe", WINDOWS_64),
    ("x86\\VeeamAgent.exe", WINDOWS_32),
    ("sql\\VeeamAgent.exe", WINDOWS_32),
    ("WinAgent\\VeeamAgent.exe", WINDOWS_32),
    ("VeeamAgent64", LINUX_64),
    ("VeeamAgent", LINUX),
)

STATUS_MESSAGES = {
    OutcomeStatus.BACKED_UP: "was backed up",
    OutcomeStatus.BACKUP_FAILED: "not backed up",
    OutcomeStatus.NOT_FOUND_FOR_BACKUP: "not found for backup",
    OutcomeStatus.UPDATED: "was updated successfully",
    OutcomeStatus.UPDATE_FAILED: "not updated",
    OutcomeStatus.NOT_FOUND: "not found",
    OutcomeStatus.NO_MATCHING_AGENT: "has no matching agent binary",
    OutcomeStatus.SIMULATED: "would be copied",
}


def match_agent_tag(path: str, rules: Sequence[Tuple[str, str]] = AGENT_SUFFIX_RULES) -> Optional[str]:
    """Platform tag of the first rule whose suffix ends path (case-insensitive), None otherwise"""
    lowered = path.replace("/", "\\").lower()
    rule = first_true(rules, pred=lambda r: lowered.endswith(r[0].lower()))
    return rule[1] if rule else None


class DeploymentWalker:
    def __init__(self, file_system: FileSystemAccess, agents: Dict[str, AgentBinary], admin_share: str = "C$",
                 run_timestamp: Optional[str] = None, rules: Sequence[Tuple[str, str]] = AGENT_SUFFIX_RULES,
                 verify_copies: bool = False, simulation_mode: bool = False, logger=None):
        self.file_system = file_system
        self.agents = agents
        self.admin_share = admin_share
        self.run_timestamp = run_timestamp or make_run_timestamp()
        self.rules = tuple(rules)
        self.verify_copies = verify_copies
        self.simulation_mode = simulation_mode
        self.logger = logger or logging.getLogger(__name__)
        # Remote paths whose backup copy timed out and may still be reading them
        self.unsettled_paths = set()

    def apply_action(self, hosts: Iterable[TargetHost], path_group: PathGroup, action: Action) -> List[PathOutcome]:
        if action is Action.BACKUP:
            step = self._backup
        elif action is Action.DEPLOY:
            step = self._deploy
        else:
            self.logger.critical(f"Unknown action requested: {action!r}, aborting run")
            raise UnknownActionError(f"Unknown action: {action!r}")

        outcomes = []
        for host in hosts:
            for template in path_group.templates:
                remote_path = unc_path(host.name, self.admin_share, template)
                outcome = step(host, remote_path)
                self._log_outcome(outcome)
                outcomes.append(outcome)
        return outcomes

    def _backup(self, host: TargetHost, remote_path: str) -> PathOutcome:
        if not self.file_system.exists(remote_path):
            return PathOutcome(host.name, remote_path, Action.BACKUP, OutcomeStatus.NOT_FOUND_FOR_BACKUP)

        destination = backup_path(remote_path, self.run_timestamp)
        if self.simulation_mode:
            return PathOutcome(host.name, remote_path, Action.BACKUP, OutcomeStatus.SIMULATED,
                               source=remote_path, destination=destination)

        result = self.file_system.copy(remote_path, destination)
        if result.timed_out:
            self.unsettled_paths.add(remote_path)
        status = OutcomeStatus.BACKED_UP if result.success else OutcomeStatus.BACKUP_FAILED
        return PathOutcome(host.name, remote_path, Action.BACKUP, status, detail=result.error,
                           source=remote_path, destination=destination)

    def _deploy(self, host: TargetHost, remote_path: str) -> PathOutcome:
        if remote_path in self.unsettled_paths:
            return PathOutcome(host.name, remote_path, Action.DEPLOY, OutcomeStatus.UPDATE_FAILED,
                               detail="skipped, its backup copy did not finish in time")

        if not self.file_system.exists(remote_path):
            return PathOutcome(host.name, remote_path, Action.DEPLOY, OutcomeStatus.NOT_FOUND)

        tag = match_agent_tag(remote_path, self.rules)
        agent = self.agents.get(tag) if tag else None
        if agent is None:
            return PathOutcome(host.name, remote_path, Action.DEPLOY, OutcomeStatus.NO_MATCHING_AGENT,
                               detail=f"platform tag: {tag}")

        if self.simulation_mode:
            return PathOutcome(host.name, remote_path, Action.DEPLOY, OutcomeStatus.SIMULATED,
                               source=agent.path, destination=remote_path)

        result = self.file_system.copy(agent.path, remote_path)
        success, detail = result.success, result.error
        if success and self.verify_copies and not self.file_system.same_content(agent.path, remote_path):
            success, detail = False, "content differs from local agent after copy"
        status = OutcomeStatus.UPDATED if success else OutcomeStatus.UPDATE_FAILED
        return PathOutcome(host.name, remote_path, Action.DEPLOY, status, detail=detail,
                           source=agent.path, destination=remote_path)

    def _log_outcome(self, outcome: PathOutcome):
        message = f"[{outcome.host}] {outcome.remote_path} {STATUS_MESSAGES[outcome.status]}"
        if outcome.status is OutcomeStatus.SIMULATED:
            message = f"[{outcome.host}] [SIMULATION] Would copy {outcome.source} to {outcome.destination}"
        elif outcome.status is OutcomeStatus.BACKED_UP:
            message += f" to {outcome.destination}"
        if outcome.detail:
            message += f": {outcome.detail}"

        if outcome.status.is_failure:
            self.logger.error(message)
        elif outcome.status in (OutcomeStatus.NOT_FOUND, OutcomeStatus.NOT_FOUND_FOR_BACKUP):
            self.logger.warning(message)
        else:
            self.logger.info(message)


def summarize(outcomes: Sequence[PathOutcome]) -> str:
    counts = Counter(outcome.status for outcome in outcomes)
    if not counts:
        return "nothing to do"
    return ", ".join(f"{count} {STATUS_MESSAGES[status]}" for status, count in counts.items())
