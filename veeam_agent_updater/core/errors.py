class UpdaterError(Exception):
    """Base for every error that aborts an update run"""


class PrerequisiteError(UpdaterError):
    """A local prerequisite (PowerShell module, agent file) is missing"""


class HostDirectoryError(UpdaterError):
    """Registered hosts could not be enumerated"""


class ServiceControlError(UpdaterError):
    """The dependent backup service could not be stopped"""


class UnknownActionError(UpdaterError):
    """The walker was asked for an action it does not know"""


class OperationCancelled(UpdaterError):
    """The operator declined to continue"""
