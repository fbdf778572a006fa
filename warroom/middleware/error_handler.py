"""Standard error handler — consistent error responses across all routes."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import WarRoomError
from ..utils.logging import get_logger

logger = get_logger("middleware.error_handler")

HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _error_response(request: Request, status_code: int, code: str, message: str, **extra) -> JSONResponse:
    content = {
        "success": False,
        "error": {"code": code, "message": message, "status": status_code, **extra},
        "request_id": getattr(request.state, "request_id", None),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def register_error_handlers(app: FastAPI) -> None:
    """Register standard error handlers on the app."""

    @app.exception_handler(WarRoomError)
    async def warroom_error_handler(request: Request, exc: WarRoomError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            code=exc.code,
            error=exc.message,
            method=request.method,
            path=str(request.url.path),
        )
        return _error_response(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return _error_response(request, exc.status_code, code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            request, 400, "VALIDATION_ERROR", "Request validation failed", errors=exc.errors()
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            request_id=getattr(request.state, "request_id", None),
            path=str(request.url.path),
            exc_info=True,
        )
        return _error_response(request, 500, "INTERNAL_ERROR", "Internal server error")
