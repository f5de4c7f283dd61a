# goldmines/core/exceptions.py
from typing import Optional


class AppException(Exception):
    """Base exception para todo el proyecto."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(AppException):
    """Input con forma o longitud inválida (corregible por el usuario)."""

    status_code = 400


class NotFoundError(AppException):
    """La entidad referenciada no existe."""

    status_code = 404


class ConflictError(AppException):
    """Clave única duplicada."""

    status_code = 409


class AnalysisServiceError(AppException):
    """Fallo del servicio LLM: timeout, cuota o respuesta no parseable."""


class PersistenceError(AppException):
    """Error en una operación de almacenamiento."""


class RateLimitError(AppException):
    """Throttling del feed upstream (HTTP 429)."""

    status_code = 429
