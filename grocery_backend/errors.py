"""
Errores de la aplicación.

Cada error lleva un mensaje estable para el cliente y, opcionalmente, un
detalle de diagnóstico de una sola línea. Los handlers registrados en main.py
convierten todo error en ``{"success": false, "message": ..., "error": ...}``.
"""
import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    """Otro escritor cambió la libreta entre la lectura y el commit."""

    status_code = status.HTTP_409_CONFLICT


class StoreError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


def error_body(message: str, detail: Optional[str] = None) -> dict:
    body = {"success": False, "message": message}
    if detail:
        body["error"] = detail
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = None
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg')}" if location else first.get("msg")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", detail),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Errores de ruteo de Starlette (404 de ruta, 405 de método) con el mismo formato."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ Error no controlado en {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", str(exc)),
    )
