"""
===============================================================================
TARJETA CRC - crosscutting/logger.py (Logging JSON del motor)
===============================================================================

Responsabilidades:
  - Emitir una línea JSON por log, con el contexto de la corrida
    (request_id, event_id, method, path) que dejó context.py.
  - Copiar los `extra=` del call site como campos de primer nivel.
  - Redactar secretos y contenido de mensajes entre usuarios (PII).

Colaboradores:
  - compliance_engine/context.py
  - LOG_LEVEL / LOG_JSON (env; se leen sin instanciar Settings)

Notas:
  - Se configura en import: DATABASE_URL puede no existir todavía
    (scripts, alembic), por eso no depende de get_settings().
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

REDACTED = "***REDACTADO***"
_MAX_STR = 4_000
_MAX_DEPTH = 4

# Atributos estándar de LogRecord: todo lo demás vino por extra=.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "authorization",
        "api_key",
        "database_url",
        "redis_url",
        # cuerpo de mensajes entre usuarios
        "content",
        "message_content",
    }
)


def redact(value: Any, *, key: str | None = None, depth: int = 0) -> Any:
    """Copia JSON-safe de `value` con claves sensibles ocultas."""
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if depth > _MAX_DEPTH:
        return "…"
    if isinstance(value, str):
        return value if len(value) <= _MAX_STR else value[:_MAX_STR] + "…"
    if isinstance(value, dict):
        return {
            str(k): redact(v, key=str(k), depth=depth + 1) for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [redact(item, depth=depth + 1) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(get_context_dict())

        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                entry[name] = redact(value, key=name)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "stacktrace": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def setup_logger(name: str = "compliance-engine") -> logging.Logger:
    log = logging.getLogger(name)
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").strip().upper())
    log.setLevel(level if isinstance(level, int) else logging.INFO)

    # R: Idempotente ante reimports (uvicorn --reload, RQ fork).
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if _env_flag("LOG_JSON", True):
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(message)s")
            )
        log.addHandler(handler)
    return log


logger = setup_logger()
