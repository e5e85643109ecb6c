"""
Veeam Backup & Replication collaborators driven through PowerShell.

The runner decides where the commands execute: on this machine when the tool runs on
the backup server itself, or over WinRM when `management_server` is configured.
"""

import logging

from typing import List

from veeam_agent_updater.core.errors import HostDirectoryError, PrerequisiteError, ServiceControlError
from veeam_agent_updater.run_on_platform.base import CommandResult, HostDirectory, PowerShellRunner, ServiceController

logger = logging.getLogger(__name__)

# Older releases ship a snap-in, newer ones a module; whichever loads is enough
VEEAM_PS_PREAMBLE = (
    "Add-PSSnapin VeeamPSSnapin -ErrorAction SilentlyContinue; "
    "if (-not (Get-Command Get-VBRServer -ErrorAction SilentlyContinue)) "
    "{ Import-Module Veeam.Backup.PowerShell -ErrorAction Stop -WarningAction SilentlyContinue }; "
)


def _output_lines(result: CommandResult) -> List[str]:
    return [line.strip() for line in result.std_out.splitlines() if line.strip()]


class VeeamHostDirectory(HostDirectory):
    def __init__(self, runner: PowerShellRunner):
        self.runner = runner

    def _run(self, command: str) -> CommandResult:
        logger.debug(f"Running Veeam PowerShell command: {command}")
        return self.runner.run_ps(VEEAM_PS_PREAMBLE + command)

    def check_available(self) -> None:
        result = self._run("Write-Output 'VBR-OK'")
        if not result.ok or "VBR-OK" not in result.std_out:
            raise PrerequisiteError(f"Veeam PowerShell extension is not available: {result.std_err.strip()}")

    def get_management_host(self) -> str:
        result = self._run("(Get-VBRLocalhost).Name")
        lines = _output_lines(result)
        if not result.ok or not lines:
            raise HostDirectoryError(f"Could not get Veeam management host: {result.std_err.strip()}")
        return lines[0]

    def get_registered_windows_hosts(self) -> List[str]:
        result = self._run("Get-VBRServer -Type Windows | ForEach-Object { $_.Name }")
        if not result.ok:
            raise HostDirectoryError(f"Could not enumerate Veeam Windows servers: {result.std_err.strip()}")
        return _output_lines(result)


class PowerShellServiceController(ServiceController):
    def __init__(self, runner: PowerShellRunner):
        self.runner = runner

    def stop_service(self, service_name: str) -> None:
        result = self.runner.run_ps(f"Stop-Service -Name '{service_name}' -Force -ErrorAction Stop")
        if not result.ok:
            raise ServiceControlError(f"Could not stop service {service_name}: {result.std_err.strip()}")
        logger.info(f"Service {service_name} stopped")
