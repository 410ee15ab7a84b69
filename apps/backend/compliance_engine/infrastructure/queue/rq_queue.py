"""
===============================================================================
TARJETA CRC - infrastructure/queue/rq_queue.py
===============================================================================
Class: RQDispatchQueue (implementa domain.services.DispatchQueue)

Responsabilidades:
  - Encolar corridas del dispatcher (POST /v1/compliance/dispatch/async,
    scripts/run_dispatch.py --enqueue) para el worker RQ.
  - Validar la configuración y el job path al construirse (fail-fast).
  - Construir la conexión Redis compartida por API y worker.

Colaboradores:
  - job_paths.DISPATCH_JOB_PATH / DISPATCH_QUEUE_NAME
  - import_utils.is_importable_dotted_path
  - crosscutting.exceptions.DispatchQueueError

Notas:
  - Reintentar un job es seguro: cada evento se reclama con un UPDATE
    condicional, dos corridas nunca procesan el mismo evento.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from redis import Redis
from rq import Queue, Retry

from ...crosscutting.exceptions import DispatchQueueError
from ...crosscutting.logger import logger
from .import_utils import is_importable_dotted_path
from .job_paths import DISPATCH_JOB_PATH, DISPATCH_QUEUE_NAME


class QueueConfigurationError(DispatchQueueError):
    error_code = "QUEUE_CONFIGURATION_ERROR"


def redis_from_url(url: str) -> Redis:
    """Conexión Redis con timeouts cortos: la API no debe colgarse encolando."""
    return Redis.from_url(
        url,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


@dataclass(frozen=True)
class RQQueueConfig:
    queue_name: str = DISPATCH_QUEUE_NAME
    retry_max_attempts: int = 1
    job_timeout_seconds: int = 600
    result_ttl_seconds: int = 3600

    def validated(self) -> "RQQueueConfig":
        if self.retry_max_attempts < 0:
            raise QueueConfigurationError("retry_max_attempts no puede ser negativo")
        if self.job_timeout_seconds <= 0:
            raise QueueConfigurationError("job_timeout_seconds debe ser > 0")
        if self.result_ttl_seconds < 0:
            raise QueueConfigurationError("result_ttl_seconds no puede ser negativo")
        return replace(
            self, queue_name=(self.queue_name or "").strip() or DISPATCH_QUEUE_NAME
        )


class RQDispatchQueue:
    def __init__(self, *, redis: Any, config: RQQueueConfig) -> None:
        self._config = config.validated()
        if not is_importable_dotted_path(DISPATCH_JOB_PATH):
            raise QueueConfigurationError(
                f"Job path no importable para RQ: {DISPATCH_JOB_PATH}"
            )

        self._queue = Queue(name=self._config.queue_name, connection=redis)
        self._retry: Optional[Retry] = (
            Retry(max=self._config.retry_max_attempts)
            if self._config.retry_max_attempts
            else None
        )

    @property
    def queue_name(self) -> str:
        return self._config.queue_name

    def enqueue_dispatch(self, *, limit: Optional[int] = None) -> str:
        try:
            job = self._queue.enqueue(
                DISPATCH_JOB_PATH,
                kwargs={"limit": limit},
                retry=self._retry,
                job_timeout=self._config.job_timeout_seconds,
                result_ttl=self._config.result_ttl_seconds,
                description=f"dispatch_pending_events(limit={limit})",
            )
        except Exception as exc:
            raise DispatchQueueError(
                f"No se pudo encolar en '{self.queue_name}'", original_error=exc
            ) from exc

        logger.info(
            "Corrida del dispatcher encolada",
            extra={"job_id": job.id, "queue": self.queue_name, "limit": limit},
        )
        return str(job.id)
