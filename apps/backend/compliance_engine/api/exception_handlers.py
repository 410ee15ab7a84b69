"""
===============================================================================
TARJETA CRC - api/exception_handlers.py
===============================================================================

Responsabilidades:
  - Mapear la jerarquía ComplianceEngineError a (status, ErrorCode).
  - Loguear cada error con su error_id antes de responder.
  - Ocultar el mensaje de excepciones no tipadas en producción.

Colaboradores:
  - crosscutting.error_responses: problem_json, AppHTTPException
  - crosscutting.exceptions
===============================================================================
"""

from __future__ import annotations

from typing import Dict, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    problem_json,
)
from ..crosscutting.exceptions import (
    ComplianceEngineError,
    DatabaseError,
    DispatchQueueError,
    EventFetchError,
)
from ..crosscutting.logger import logger

# R: Orden de lookup por MRO; ComplianceEngineError es el fallback.
_ENGINE_ERRORS: Dict[Type[ComplianceEngineError], Tuple[int, ErrorCode]] = {
    EventFetchError: (503, ErrorCode.EVENT_FETCH_ERROR),
    DatabaseError: (503, ErrorCode.DATABASE_ERROR),
    DispatchQueueError: (503, ErrorCode.SERVICE_UNAVAILABLE),
    ComplianceEngineError: (500, ErrorCode.INTERNAL_ERROR),
}


def _mapping_for(exc: ComplianceEngineError) -> Tuple[int, ErrorCode]:
    for klass in type(exc).__mro__:
        if klass in _ENGINE_ERRORS:
            return _ENGINE_ERRORS[klass]
    return _ENGINE_ERRORS[ComplianceEngineError]


async def engine_error_handler(
    request: Request, exc: ComplianceEngineError
) -> JSONResponse:
    status_code, code = _mapping_for(exc)
    logger.error(
        "Error del motor",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error": exc.message,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return problem_json(
        request,
        status_code=status_code,
        code=code,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return problem_json(
        request, status_code=500, code=ErrorCode.INTERNAL_ERROR, detail=detail
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ComplianceEngineError, engine_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
