import winrm

from veeam_agent_updater.run_on_platform.base import CommandResult, PowerShellRunner


class RemoteWindowsOperator(PowerShellRunner):
    """Runs commands on the backup server over WinRM"""

    def __init__(self, ip: str, username: str, password: str, transport: str = "ntlm"):
        self.ip = ip
        self.session = winrm.Session(ip, auth=(username, password), transport=transport)

    def run_ps(self, script: str) -> CommandResult:
        try:
            result = self.session.run_ps(script)
            return CommandResult(result.status_code, result.std_out.decode(errors="replace"),
                                 result.std_err.decode(errors="replace"))
        except Exception as e:
            return CommandResult(-1, "", str(e))
