"""
===============================================================================
TARJETA CRC - crosscutting/exceptions.py (Errores tipados del motor)
===============================================================================

Responsabilidades:
  - Jerarquía única de errores internos con error_code estable y un
    error_id para cruzar la respuesta HTTP con los logs.
  - Separar el fallo que aborta la corrida (EventFetchError) del fallo
    que solo afecta a un evento (PersistenceError).

Colaboradores:
  - api/exception_handlers.py (status + ErrorCode por clase)
  - application/usecases/dispatch_pending_events.py
  - infrastructure/repositories/postgres/base.py (envuelve psycopg.Error)
  - scripts/run_dispatch.py (error_code en la salida)
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class ComplianceEngineError(Exception):
    error_code: str = "COMPLIANCE_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_id = error_id or uuid4().hex
        self.original_error = original_error


class DatabaseError(ComplianceEngineError):
    """Conexión, query, timeout o pool no inicializado."""

    error_code = "DATABASE_ERROR"


class EventFetchError(ComplianceEngineError):
    """El batch de eventos pendientes no se pudo leer; la corrida aborta."""

    error_code = "EVENT_FETCH_ERROR"


class PersistenceError(ComplianceEngineError):
    error_code = "PERSISTENCE_ERROR"


class DispatchQueueError(ComplianceEngineError):
    error_code = "DISPATCH_QUEUE_ERROR"
