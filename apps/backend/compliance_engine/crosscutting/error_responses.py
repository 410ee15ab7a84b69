"""
===============================================================================
TARJETA CRC - crosscutting/error_responses.py (Problem Details)
===============================================================================

Responsabilidades:
  - Catálogo de códigos de error estables del motor (ErrorCode).
  - Serializar errores HTTP como application/problem+json (RFC 7807).
  - Declarar las respuestas de error para OpenAPI.

Colaboradores:
  - api/exception_handlers.py: traduce excepciones del motor a ProblemDetail
  - interfaces/api/http/routers/compliance.py: validation_error / service_unavailable
  - crosscutting/middleware.py: request_id en request.state

Notas:
  - La consola operativa ramifica por "code", nunca por "detail".
  - request_id / error_id viajan dentro de "errors" para correlacionar logs.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DATABASE_ERROR = "DATABASE_ERROR"
    EVENT_FETCH_ERROR = "EVENT_FETCH_ERROR"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


class ProblemDetail(BaseModel):
    """Payload RFC 7807 con `code` estable y `errors` opcionales."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None


def _problem_response(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "model": ProblemDetail,
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {
                "schema": {"$ref": "#/components/schemas/ProblemDetail"}
            }
        },
    }


OPENAPI_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    422: _problem_response("Parámetros inválidos"),
    503: _problem_response("Event store o cola no disponibles"),
    "default": _problem_response("Error inesperado"),
}


class AppHTTPException(HTTPException):
    """HTTPException que además transporta un ErrorCode y errores estructurados."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors


def validation_error(
    detail: str, errors: Optional[List[Dict[str, Any]]] = None
) -> AppHTTPException:
    return AppHTTPException(422, ErrorCode.VALIDATION_ERROR, detail, errors)


def service_unavailable(service: str) -> AppHTTPException:
    return AppHTTPException(
        503, ErrorCode.SERVICE_UNAVAILABLE, f"Servicio no disponible: {service}"
    )


def problem_json(
    request: Request,
    *,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Arma la respuesta problem+json; agrega request_id si el middleware lo dejó."""
    entries = list(errors or [])
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        entries.append({"request_id": request_id})

    problem = ProblemDetail(
        type=f"urn:compliance-engine:error:{code.value.lower()}",
        title=code.title,
        status=status_code,
        detail=detail,
        code=code,
        instance=request.url.path,
        errors=entries or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    return problem_json(
        request,
        status_code=exc.status_code,
        code=exc.code,
        detail=str(exc.detail),
        errors=exc.errors,
        headers=exc.headers,
    )
