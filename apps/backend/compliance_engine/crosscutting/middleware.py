"""
===============================================================================
TARJETA CRC - crosscutting/middleware.py (Contexto por request HTTP)
===============================================================================

Class: RequestContextMiddleware

Responsabilidades:
  - Aceptar X-Request-Id del caller (cron, consola) o generar uno.
  - Abrir el contexto de logging de la request y cerrarlo siempre.
  - Registrar latencia y status en Prometheus.

Colaboradores:
  - compliance_engine/context.py
  - crosscutting/metrics.record_request_metrics
===============================================================================
"""

from __future__ import annotations

import re
import time
from typing import Awaitable, Callable
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"

# Ids de caller: imprimibles, sin espacios, acotados.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# Probes y scraping: sin log por request.
_QUIET_PATHS = frozenset({"/healthz", "/readyz", "/metrics"})


def resolve_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    return candidate if _REQUEST_ID_RE.match(candidate) else str(uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            elapsed = time.perf_counter() - started
            record_request_metrics(
                endpoint=request.url.path,
                method=request.method,
                status_code=status_code,
                latency_seconds=elapsed,
            )
            if request.url.path not in _QUIET_PATHS:
                logger.info(
                    "HTTP %s %s -> %s",
                    request.method,
                    request.url.path,
                    status_code,
                    extra={"latency_ms": round(elapsed * 1000, 2)},
                )
            clear_context()
