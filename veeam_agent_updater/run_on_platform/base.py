from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass
class CopyResult:
    success: bool
    error: str = ""
    timed_out: bool = False

    def __bool__(self) -> bool:
        return self.success


@dataclass
class CommandResult:
    status_code: int
    std_out: str
    std_err: str

    @property
    def ok(self) -> bool:
        return self.status_code == 0


class FileSystemAccess(ABC):
    """Existence checks and copies over (remote) share paths. Failures are returned, never raised"""

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def copy(self, src: str, dst: str) -> CopyResult:
        pass

    @abstractmethod
    def same_content(self, local_path: str, remote_path: str) -> bool:
        pass


class HostDirectory(ABC):
    """Enumerates hosts registered in the backup product"""

    def check_available(self) -> None:
        pass

    @abstractmethod
    def get_management_host(self) -> str:
        pass

    @abstractmethod
    def get_registered_windows_hosts(self) -> List[str]:
        pass


class ServiceController(ABC):
    @abstractmethod
    def stop_service(self, service_name: str) -> None:
        pass


class PowerShellRunner(ABC):
    @abstractmethod
    def run_ps(self, script: str) -> CommandResult:
        pass
