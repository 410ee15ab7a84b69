"""
============================================================
TARJETA CRC - infrastructure/repositories/postgres/base.py
============================================================
Class: PostgresRepositoryBase

Responsibilities:
  - Tomar conexiones del pool (inyectado o global del proceso).
  - Traducir psycopg.Error / errores de pool a DatabaseError con log.

Collaborators:
  - infrastructure.db.pool
  - crosscutting.exceptions.DatabaseError

Constraints / Notes:
  - SQL siempre parametrizado.
  - Un helper = una conexión = una transacción (commit al salir).
============================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import psycopg
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ...db.errors import DatabasePoolError


class PostgresRepositoryBase:
    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            from ...db.pool import get_pool

            return get_pool()
        return self._pool

    @contextmanager
    def _connection(
        self, error_message: str, extra: Mapping[str, Any] | None
    ) -> Iterator[psycopg.Connection]:
        try:
            with self._get_pool().connection() as conn:
                yield conn
        except (psycopg.Error, DatabasePoolError) as exc:
            logger.error(
                error_message,
                exc_info=True,
                extra={**(extra or {}), "error": str(exc)},
            )
            raise DatabaseError(f"{error_message}: {exc}", original_error=exc) from exc

    def _fetchall(
        self,
        *,
        query: str,
        params: Sequence[Any],
        error_message: str,
        extra: Mapping[str, Any] | None = None,
    ) -> list[tuple]:
        with self._connection(error_message, extra) as conn:
            return conn.execute(query, tuple(params)).fetchall()

    def _execute(
        self,
        *,
        query: str,
        params: Sequence[Any],
        error_message: str,
        extra: Mapping[str, Any] | None = None,
    ) -> int:
        """Retorna rowcount (compare-and-set en los UPDATE de estado)."""
        with self._connection(error_message, extra) as conn:
            return conn.execute(query, tuple(params)).rowcount

    def _executemany(
        self,
        *,
        query: str,
        rows: Sequence[Sequence[Any]],
        error_message: str,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        if not rows:
            return
        with self._connection(error_message, extra) as conn:
            with conn.cursor() as cur:
                cur.executemany(query, rows)
