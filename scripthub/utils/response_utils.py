"""JSON envelopes shared by every router.

Successful form actions answer {"success": true, "message": ..., "data": ...};
the message is the notice shown to the user. Failures answer
{"error": {"code", "message", "details"}}.
"""

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse


def success(data: Any = None, message: str = "Success") -> dict:
    """Envelope for a completed action; data is omitted when None."""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_response(
    code: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: dict | None = None,
) -> JSONResponse:
    """Error envelope. code is machine-readable, e.g. FORBIDDEN or CONFLICT."""
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def validation_error(message: str, details: dict | None = None) -> JSONResponse:
    """422 for a submission that wasn't saved.

    details holds the field errors and whatever the client needs to show
    the form again.
    """
    return error_response("VALIDATION_ERROR", message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)
