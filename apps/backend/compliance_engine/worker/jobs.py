"""
===============================================================================
TARJETA CRC - worker/jobs.py (Job RQ: corrida del dispatcher)
===============================================================================

Responsabilidades:
  - Definir el entrypoint ejecutado por RQ para drenar eventos pendientes.
  - Construir el caso de uso desde el contenedor.
  - Emitir logs con contexto consistente y limpiar contexto al finalizar.

Colaboradores:
  - application.usecases.DispatchPendingEventsUseCase
  - container.get_dispatch_use_case
  - context (set_request_context, clear_context)
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from rq import get_current_job

from ..application.usecases import DispatchPendingEventsInput
from ..container import get_dispatch_use_case
from ..context import clear_context, set_request_context
from ..crosscutting.logger import logger


def dispatch_pending_events_job(limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Job RQ: una corrida del dispatcher.

    Contrato:
      - Retorna el resumen serializado (queda como resultado del job en Redis).
      - Si la corrida falla (ej: EventFetchError), se relanza para que RQ
        aplique reintentos.
    """
    job = get_current_job()
    job_id = getattr(job, "id", None)

    set_request_context(
        request_id=job_id or "local",
        method="WORKER",
        path="rq.dispatch_pending_events_job",
    )

    start = time.perf_counter()
    status = "UNKNOWN"

    try:
        logger.info("Worker job iniciado", extra={"job_id": job_id, "limit": limit})
        summary = get_dispatch_use_case().execute(
            DispatchPendingEventsInput(limit=limit)
        )
        status = "COMPLETED"
        return summary.to_dict()

    except Exception as exc:
        status = "FAILED"
        logger.exception(
            "Worker job falló con excepción",
            extra={"job_id": job_id, "limit": limit, "error": str(exc)},
        )
        raise

    finally:
        logger.info(
            "Worker job finalizado",
            extra={
                "job_id": job_id,
                "status": status,
                "duration_seconds": round(time.perf_counter() - start, 3),
            },
        )
        clear_context()


__all__ = ["dispatch_pending_events_job"]
