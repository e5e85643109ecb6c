"""
Windows-specific implementation of the local collaborators: share file access,
local PowerShell execution and process inspection.
"""

import subprocess
import logging
import psutil

from typing import List

from veeam_agent_updater.run_on_platform.base import CommandResult, CopyResult, FileSystemAccess, PowerShellRunner
from veeam_agent_updater.utils import file_ops, integrity

logger = logging.getLogger(__name__)


class ShareFileSystem(FileSystemAccess):
    """UNC share access through the OS SMB client, every call bounded by timeout seconds"""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def exists(self, path: str) -> bool:
        return file_ops.path_exists(path, self.timeout)

    def copy(self, src: str, dst: str) -> CopyResult:
        try:
            success, error = file_ops.copy_file(src, dst, self.timeout)
        except file_ops.OperationTimeout as e:
            logger.error(f"Copy from {src} to {dst} timed out, it may still be running: {e}")
            return CopyResult(success=False, error=str(e), timed_out=True)
        return CopyResult(success=success, error=error)

    def same_content(self, local_path: str, remote_path: str) -> bool:
        try:
            return file_ops.call_with_timeout(integrity.files_match, self.timeout, local_path, remote_path)
        except (file_ops.OperationTimeout, OSError) as e:
            logger.error(f"Could not verify {remote_path} against {local_path}: {e}")
            return False


class LocalPowerShellRunner(PowerShellRunner):
    def __init__(self, executable: str = "powershell.exe", timeout: float = 120.0):
        self.executable = executable
        self.timeout = timeout

    def run_ps(self, script: str) -> CommandResult:
        command = [self.executable, "-NoProfile", "-NonInteractive", "-Command", script]
        try:
            result = subprocess.run(command, capture_output=True, text=True, timeout=self.timeout)
            return CommandResult(result.returncode, result.stdout, result.stderr)
        except subprocess.TimeoutExpired:
            return CommandResult(-1, "", f"PowerShell did not finish within {self.timeout}s")
        except OSError as e:
            return CommandResult(-1, "", str(e))


def get_running_processes_by_name(substring: str) -> List[str]:
    """Names and PIDs of local processes whose name contains substring, case-insensitive"""
    sub = substring.lower()
    found = []
    for proc in psutil.process_iter(['pid', 'name']):
        try:
            proc_name = proc.info['name']
            if proc_name and sub in proc_name.lower():
                found.append(f"{proc_name} (PID: {proc.pid})")
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return found
