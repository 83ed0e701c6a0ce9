from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import BookdropError
from ..logging_config import get_logger

logger = get_logger(__name__)


async def bookdrop_error_handler(request: Request, exc: BookdropError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.debug(
        "HTTP error", path=request.url.path, status=exc.status_code, detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``."""
    app.add_exception_handler(
        BookdropError,
        bookdrop_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        StarletteHTTPException,
        http_error_handler,  # type: ignore[arg-type]
    )
