"""Jerarquía de errores de la API y del procesamiento en segundo plano.

Los errores de petición (`ApiError` y subclases) se devuelven al cliente en
el momento y nunca tocan el registro de jobs. Los errores del proveedor se
capturan dentro del job y sólo se ven al consultar su estado.
"""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Error que se traduce directamente a una respuesta HTTP."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_error"
    message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "unauthorized"
    message = "Invalid X-APP-KEY"


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "bad_request"
    message = "Bad request"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"
    message = "Job not found or expired"


class LengthRequiredError(ApiError):
    status_code = status.HTTP_411_LENGTH_REQUIRED
    error = "length_required"
    message = "Content-Length header is required for uploads"


class PayloadTooLargeError(ApiError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error = "payload_too_large"
    message = "Uploaded file is too large"


class RateLimitedError(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "rate_limited"
    message = "Too many requests, please try again later."


class DuplicateJobIdError(RuntimeError):
    """Se intentó registrar un id que ya existe (fallo del generador)."""


class TranscriptionProviderError(Exception):
    """El proveedor respondió con un código no exitoso.

    `body` es el cuerpo de la respuesta tal cual; se guarda como error del job.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Transcription provider returned {status_code}")


def error_payload(exc: ApiError) -> dict:
    return {"error": exc.error, "message": exc.message}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))
