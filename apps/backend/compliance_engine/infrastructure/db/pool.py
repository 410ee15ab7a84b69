"""
===============================================================================
TARJETA CRC - infrastructure/db/pool.py
===============================================================================

Responsabilidades:
  - Un ConnectionPool (psycopg_pool) por proceso: API, worker RQ o cron.
  - Fijar statement_timeout y application_name en cada conexión.

Colaboradores:
  - api/main.py (lifespan), worker/worker.py, scripts/run_dispatch.py
  - repositories/postgres/base.py (get_pool)

Notas:
  - init doble o uso sin init fallan con errores tipados (errors.py).
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from psycopg_pool import ConnectionPool

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError

APPLICATION_NAME = "compliance-engine"

_pool: Optional[ConnectionPool] = None
_lock = threading.Lock()


def _connection_kwargs(statement_timeout_ms: int) -> Dict[str, Any]:
    options = []
    if statement_timeout_ms > 0:
        options.append(f"-c statement_timeout={int(statement_timeout_ms)}")
    kwargs: Dict[str, Any] = {"application_name": APPLICATION_NAME}
    if options:
        kwargs["options"] = " ".join(options)
    return kwargs


def init_pool(
    database_url: str,
    min_size: int,
    max_size: int,
    *,
    statement_timeout_ms: int = 30000,
) -> ConnectionPool:
    global _pool

    with _lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("init_pool() ya fue llamado")
        _pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            kwargs=_connection_kwargs(statement_timeout_ms),
            name=APPLICATION_NAME,
            open=True,
        )
    logger.info(
        "Pool DB abierto",
        extra={
            "min_size": min_size,
            "max_size": max_size,
            "statement_timeout_ms": statement_timeout_ms,
        },
    )
    return _pool


def get_pool() -> ConnectionPool:
    if _pool is None:
        raise PoolNotInitializedError("Pool no inicializado: llamar init_pool()")
    return _pool


def close_pool() -> None:
    """Idempotente."""
    global _pool

    with _lock:
        pool, _pool = _pool, None
    if pool is not None:
        pool.close()
        logger.info("Pool DB cerrado")
