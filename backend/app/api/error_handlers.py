"""Error Handlers — transport-level failures rendered as result envelopes.

Invariants:
    - RallyError -> its own code and http_status; a 5001 error becomes HTTP 500 with the
      generic message only
    - RequestValidationError (body is not a valid action envelope) -> HTTP 400, code 4001,
      one {field, message, type} entry per problem under data.details
    - Any other exception -> HTTP 500, code 5001, generic message only

Design Decisions:
    - Action outcomes never get here: ActionDispatch already turned them into HTTP 200
      envelopes. These handlers guard only the HTTP shell around it
    - Kept out of main.py to hold its import fan-out down
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.domain_types import ResultCode
from app.core.errors import INTERNAL_MESSAGE, RallyError, envelope

logger = logging.getLogger(__name__)


async def _on_rally_error(request: Request, exc: RallyError) -> JSONResponse:
    logger.error(
        f"{type(exc).__name__} outside dispatch: {exc.message}",
        extra={"error_code": int(exc.code), "path": request.url.path},
    )
    if exc.code == ResultCode.INTERNAL:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=envelope(ResultCode.INTERNAL, INTERNAL_MESSAGE),
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _on_bad_envelope(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(f"Rejected envelope on {request.url.path}: {len(problems)} problem(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=envelope(ResultCode.VALIDATION, "Invalid request data", {"details": problems}),
    )


async def _on_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(ResultCode.INTERNAL, INTERNAL_MESSAGE),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the three handlers, most specific first."""
    app.add_exception_handler(RallyError, _on_rally_error)
    app.add_exception_handler(RequestValidationError, _on_bad_envelope)
    app.add_exception_handler(Exception, _on_unexpected)
