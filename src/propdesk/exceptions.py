"""Error taxonomy shared by the service modules and the HTTP layer."""

from __future__ import annotations


class PropDeskError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(PropDeskError):
    """A required credential or setting is missing."""


class NotFoundError(PropDeskError):
    pass


class ValidationError(PropDeskError):
    pass


class VersionConflictError(PropDeskError):
    """The row changed since the caller last read it."""


class RemoteServiceError(PropDeskError):
    """The Smoobu API answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)
