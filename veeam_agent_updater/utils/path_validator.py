import ntpath

from typing import Tuple


class SafePathValidator:
    """Validates remote path templates before they are appended to an admin share"""

    @staticmethod
    def is_safe_template(template: str) -> Tuple[bool, str]:
        """
        Returns (bool, str): (True, "Safe") or (False, "Reason")
        """
        if not isinstance(template, str):
            return False, "Not a string"
        if not template.strip():
            return False, "Template is empty"
        normalized = template.replace("/", "\\")
        if normalized.startswith("\\\\") or ntpath.splitdrive(normalized)[0]:
            return False, "Template is not relative"
        if ".." in normalized.split("\\"):
            return False, "Template contains '..'"
        return True, "Safe"
