import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class EscuelaError(Exception):
    """Error de dominio con código HTTP y código de máquina."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "Error interno del servidor"

    def __init__(self, message: str | None = None, field_errors: dict[str, str] | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.field_errors = field_errors or {}


class Unauthenticated(EscuelaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "No autorizado"


class Forbidden(EscuelaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Sin permisos para esta acción"


class NotFound(EscuelaError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Recurso no encontrado"


class NotEligible(EscuelaError):
    """El sistema ya tiene usuarios: no se puede reclamar el primer administrador."""

    status_code = status.HTTP_409_CONFLICT
    code = "NOT_ELIGIBLE"
    message = "El sistema ya está configurado"


class DuplicateEntity(EscuelaError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE"
    message = "El registro ya existe"


class HasDependents(EscuelaError):
    status_code = status.HTTP_409_CONFLICT
    code = "HAS_DEPENDENTS"
    message = "El registro tiene datos asociados"


class ValidationFailure(EscuelaError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Datos de validación inválidos"


class StorageError(EscuelaError):
    code = "DATABASE_ERROR"
    message = "Error al acceder a la base de datos"


def error_body(exc: EscuelaError) -> dict:
    body = {"success": False, "code": exc.code, "message": exc.message}
    if exc.field_errors:
        body["fieldErrors"] = exc.field_errors
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EscuelaError)
    async def escuela_error_handler(request: Request, exc: EscuelaError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        field_errors = {}
        for err in exc.errors():
            # loc = ("body", "name") / ("query", "limit")
            field = str(err["loc"][-1]) if err.get("loc") else "__root__"
            field_errors.setdefault(field, err.get("msg", "Valor inválido"))
        failure = ValidationFailure("Por favor, corrija los errores en el formulario", field_errors)
        return JSONResponse(status_code=failure.status_code, content=error_body(failure))
