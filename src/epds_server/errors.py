"""Global exception handlers — map submission failures to the JSON envelope.

Every error response has the shape ``{"status": "error", "message": ...}``.
``SubmissionError`` subclasses carry their own status code and a
client-safe message; the chained cause (upstream status, body, ids) is
logged here and never sent to the client.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from epds_screening.errors import SubmissionError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    """Use the status and public message the workflow attached to the error."""
    cause = exc.__cause__
    if exc.status_code >= 500:
        logger.error(
            "Submission failed [%d] at %s: %s (cause: %r)",
            exc.status_code, request.url.path, exc.public_message, cause,
        )
    else:
        logger.warning(
            "Submission rejected [%d] at %s: %s",
            exc.status_code, request.url.path, exc.public_message,
        )
    return error_response(exc.status_code, exc.public_message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework errors (404, 405) in the same envelope."""
    logger.warning("HTTP %d at %s: %s", exc.status_code, request.url.path, exc.detail)
    return error_response(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Request validation failed at %s: %s", request.url.path, exc.errors())
    return error_response(400, "Failed to parse request body")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url.path)
    return error_response(500, "Internal server error")
