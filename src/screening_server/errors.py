"""Global exception handlers mapping SDK errors to HTTP responses.

The SDK raises ``ValueError`` for misuse (unknown patient, wrong step,
duplicate user).  The handler picks a status from the message and returns
a generic description; the full message only goes to the server log since
it can carry e-mails, draft ids and step names.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# First match wins
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("already exists", 409),
    ("not found", 404),
    ("only valid during", 400),
    ("cannot step back", 400),
]

_SAFE_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    409: "Resource already exists",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """``ValueError`` → 404 / 409 / 400 (default) with a client-safe body."""
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url.path, msg)
    return JSONResponse(
        status_code=status,
        content={"detail": _SAFE_MESSAGES.get(status, "Invalid request")},
    )


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Unknown catalog step or question id."""
    logger.warning("KeyError at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception at %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
