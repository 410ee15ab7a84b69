"""
Name: Dispatcher Cron Entrypoint

Responsibilities:
  - Run one dispatcher invocation from a scheduler (cron / k8s CronJob)
  - Optionally enqueue the run on RQ instead of running inline
  - Print the run summary as JSON and exit non-zero when the fetch fails
"""

from __future__ import annotations

import argparse
import json
import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from compliance_engine.application.usecases import (  # noqa: E402
    DispatchPendingEventsInput,
)
from compliance_engine.container import (  # noqa: E402
    get_dispatch_queue,
    get_dispatch_use_case,
)
from compliance_engine.crosscutting.config import get_settings  # noqa: E402
from compliance_engine.crosscutting.exceptions import EventFetchError  # noqa: E402
from compliance_engine.infrastructure.db.pool import (  # noqa: E402
    close_pool,
    init_pool,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Process one batch of pending compliance events."
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Batch size (default: DISPATCH_BATCH_SIZE)",
    )
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Enqueue the run on RQ (requires REDIS_URL) instead of running inline",
    )
    args = parser.parse_args(argv)
    if args.limit is not None and args.limit <= 0:
        parser.error("--limit must be greater than 0")
    return args


def _enqueue(limit: int | None) -> int:
    queue = get_dispatch_queue()
    if queue is None:
        print("REDIS_URL is required for --enqueue.", file=sys.stderr)
        return 2
    job_id = queue.enqueue_dispatch(limit=limit)
    print(json.dumps({"job_id": job_id, "limit": limit}))
    return 0


def _run_inline(limit: int | None) -> int:
    settings = get_settings()
    init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )
    try:
        summary = get_dispatch_use_case().execute(
            DispatchPendingEventsInput(limit=limit)
        )
    except EventFetchError as exc:
        print(json.dumps({"error": exc.error_code, "detail": exc.message}))
        return 1
    finally:
        close_pool()

    print(json.dumps(summary.to_dict()))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.enqueue:
        return _enqueue(args.limit)
    return _run_inline(args.limit)


if __name__ == "__main__":
    raise SystemExit(main())
