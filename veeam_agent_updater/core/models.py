from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Action(Enum):
    BACKUP = "backup"
    DEPLOY = "deploy"


class HostRole(Enum):
    MANAGEMENT = "management"
    ORDINARY = "ordinary"


class OutcomeStatus(Enum):
    """Result tag of a single check-then-copy step"""
    BACKED_UP = "backed_up"
    BACKUP_FAILED = "backup_failed"
    NOT_FOUND_FOR_BACKUP = "not_found_for_backup"
    UPDATED = "updated"
    UPDATE_FAILED = "update_failed"
    NOT_FOUND = "not_found"
    NO_MATCHING_AGENT = "no_matching_agent"
    SIMULATED = "simulated"

    @property
    def is_failure(self) -> bool:
        return self in (OutcomeStatus.BACKUP_FAILED, OutcomeStatus.UPDATE_FAILED,
                        OutcomeStatus.NO_MATCHING_AGENT)


@dataclass(frozen=True)
class TargetHost:
    name: str
    role: HostRole = HostRole.ORDINARY

    @property
    def is_management(self) -> bool:
        return self.role is HostRole.MANAGEMENT


@dataclass(frozen=True)
class AgentBinary:
    tag: str
    path: str
    md5: str = ""
    sha256: str = ""


@dataclass(frozen=True)
class PathGroup:
    name: str
    templates: Tuple[str, ...]


@dataclass
class PathOutcome:
    host: str
    remote_path: str
    action: Action
    status: OutcomeStatus
    detail: str = ""
    source: Optional[str] = None
    destination: Optional[str] = None


@dataclass
class RunReport:
    """All outcomes collected during one deployment run"""
    run_timestamp: str
    outcomes: List[PathOutcome] = field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def failure_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status.is_failure)
