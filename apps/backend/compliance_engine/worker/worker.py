"""
===============================================================================
TARJETA CRC - worker/worker.py (proceso RQ del dispatcher)
===============================================================================

Responsabilidades:
  - Consumir la cola del dispatcher con un rq.Worker.
  - Abrir el pool de BD del proceso y cerrarlo al salir.
  - Modo --burst: drenar la cola y terminar (útil detrás de un cron).

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.db.pool
  - infrastructure.queue.redis_from_url
===============================================================================

Uso:
    python -m compliance_engine.worker.worker [--burst]
"""

from __future__ import annotations

import argparse

from redis.exceptions import RedisError
from rq import Queue, Worker

from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..infrastructure.db.pool import close_pool, init_pool
from ..infrastructure.queue import redis_from_url


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Worker RQ del dispatcher")
    parser.add_argument(
        "--burst", action="store_true", help="Procesa lo encolado y termina"
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    if not settings.redis_url.strip():
        raise SystemExit("REDIS_URL es requerido para ejecutar el worker.")

    redis_conn = redis_from_url(settings.redis_url)
    try:
        redis_conn.ping()
    except RedisError as exc:
        logger.error("Redis no responde", extra={"error": str(exc)})
        raise SystemExit("Redis no disponible.") from exc

    init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )
    queue = Queue(name=settings.dispatch_queue_name, connection=redis_conn)
    logger.info(
        "Worker escuchando",
        extra={"queue": queue.name, "burst": args.burst},
    )
    try:
        Worker([queue], connection=redis_conn).work(burst=args.burst)
    except KeyboardInterrupt:
        logger.info("Worker interrumpido")
    finally:
        close_pool()


if __name__ == "__main__":
    main()
