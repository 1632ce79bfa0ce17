"""Domain exceptions raised by services and mapped to HTTP responses in main.py"""

from fastapi import status


class ScriptHubError(Exception):
    """Base class for errors that end a workflow with no writes."""

    code = "ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ForbiddenError(ScriptHubError):
    """Posting permission, email check, ownership or moderator check failed."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to do that"


class NotFoundError(ScriptHubError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"

    def __init__(self, resource: str = "Resource", message: str | None = None):
        super().__init__(message or f"{resource} not found")


class ConflictError(ScriptHubError):
    """The request would break an invariant, e.g. leave a script with no versions."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request conflicts with the current state"


class ValidationFailedError(ScriptHubError):
    """Field checks failed. details["errors"] maps field names to messages."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Validation failed"

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        super().__init__(message, details={"errors": errors})
        self.errors = errors
