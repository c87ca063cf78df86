"""
Error taxonomy shared by the flyer job, session and store layers.

Validation and auth errors are raised before any network or store call.
Service and store errors are converted into visible error state by the
job machine and the aggregators; nothing here is fatal to the process.
"""


class CreatorHubError(Exception):
    """Base exception for creator hub client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class ValidationError(CreatorHubError):
    """Job input rejected locally, before any network activity."""


class AuthError(CreatorHubError):
    """No session, or the session expired and could not be refreshed."""


class ProtocolError(CreatorHubError):
    """Service answered with an empty or malformed body."""


class ServiceError(CreatorHubError):
    """Service explicitly reported a failure, or could not be reached."""


class StoreError(CreatorHubError):
    """Progress or metrics fetch/upsert failed."""

    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message, status_code=status_code, response_data=response_data)
        self.operation = operation
