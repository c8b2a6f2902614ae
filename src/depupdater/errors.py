"""Domain errors for depupdater."""

from typing import Optional

TEMPORARY_ERROR = "temporary-error"


class UpdaterError(RuntimeError):
    """Raised when the update run cannot continue safely."""


class TemporaryError(UpdaterError):
    """Pre-flight failure that must terminate the whole run unchanged."""

    def __init__(self, message: str = TEMPORARY_ERROR):
        super().__init__(message)


class ExternalHostError(UpdaterError):
    """An external tool timed out, was unreachable or was interrupted."""

    def __init__(self, tool: str, reason: str, returncode: Optional[int] = None):
        self.tool = tool
        self.reason = reason
        self.returncode = returncode
        super().__init__(f"{tool}: {reason}")


TransientToolError = ExternalHostError


class ExtractionFailure(UpdaterError):
    """The external tool ran but exited non-zero for project-internal reasons."""

    def __init__(self, tool: str, returncode: int, stderr: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        message = f"{tool} failed ({returncode})"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)


class PlanningError(UpdaterError):
    """An upgrade does not match the extracted package files."""

    def __init__(self, message: str, package_file: Optional[str] = None, dep_name: Optional[str] = None):
        self.package_file = package_file
        self.dep_name = dep_name
        super().__init__(message)


class ConfigValidationError(UpdaterError):
    """Configuration could not be loaded or failed validation."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class RunCancelledError(UpdaterError):
    """The run was cancelled while work was in progress."""
