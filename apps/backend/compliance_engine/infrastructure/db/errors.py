"""Errores del ciclo de vida del pool (no de las queries: esas son DatabaseError)."""


class DatabasePoolError(Exception):
    pass


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """Un repositorio Postgres pidió conexión antes de init_pool()."""
