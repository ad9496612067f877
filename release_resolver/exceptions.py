"""Exceptions related to release-resolver."""

__all__ = [
    "ReleaseException",
    "InputException",
    "SourceException",
    "ContentNotFoundError",
    "UnauthorizedError",
    "SourceTimeoutError",
    "ManifestException",
    "VersionManifestError",
    "ContractViolation",
    "StagingGroupError",
]


class ReleaseException(Exception):
    """Generic base exception used for this library."""


class InputException(ReleaseException):
    """Raised when the input files or values are not formatted as expected."""


class SourceException(ReleaseException):
    """Raised when there is a failure talking to a remote source."""


class ContentNotFoundError(SourceException):
    """Raised when a file, ref or variable does not exist."""


class UnauthorizedError(SourceException):
    """Raised when the credentials are rejected by the remote source."""


class SourceTimeoutError(SourceException):
    """Raised when a remote fetch does not complete in time."""


class ManifestException(InputException):
    """Raised when the chart descriptor is missing or cannot be parsed."""


class VersionManifestError(InputException):
    """Raised when the version manifest is missing or cannot be parsed."""


class ContractViolation(ReleaseException):
    """Raised when a release descriptor has an invalid shape."""


class StagingGroupError(ReleaseException):
    """Raised when a member of a staging group failed to resolve."""

    def __init__(self, repository: str, error: Exception) -> None:
        super().__init__(f"Staging group member {repository} failed: {error}")
        self.repository = repository
        self.error = error
