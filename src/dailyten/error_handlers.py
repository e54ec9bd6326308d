"""Map core errors to consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dailyten.errors import (
    AlreadyCompleted,
    DailyTenError,
    LimitExceeded,
    NotFound,
    QuestionChanged,
    StoreUnavailable,
)

logger = structlog.get_logger()

STATUS_CODES: dict[type[DailyTenError], int] = {
    NotFound: 404,
    AlreadyCompleted: 409,
    QuestionChanged: 409,
    LimitExceeded: 429,
    StoreUnavailable: 503,
}


def status_for(exc: DailyTenError) -> int:
    """Most specific mapped status for `exc`, 400 for any other core error."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


def setup_error_handlers(app: FastAPI) -> None:
    """Register exception handlers for the core error taxonomy."""

    @app.exception_handler(DailyTenError)
    async def dailyten_error_handler(request: Request, exc: DailyTenError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("store_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
