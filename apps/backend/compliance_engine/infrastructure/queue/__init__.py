"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

Exporta el adaptador RQ del dispatcher y su configuración.
===============================================================================
"""

from .job_paths import DISPATCH_JOB_PATH, DISPATCH_QUEUE_NAME
from .rq_queue import (
    QueueConfigurationError,
    RQDispatchQueue,
    RQQueueConfig,
    redis_from_url,
)

__all__ = [
    "DISPATCH_JOB_PATH",
    "DISPATCH_QUEUE_NAME",
    "QueueConfigurationError",
    "RQDispatchQueue",
    "RQQueueConfig",
    "redis_from_url",
]
