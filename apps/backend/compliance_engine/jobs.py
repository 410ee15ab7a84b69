"""
===============================================================================
TARJETA CRC - compliance_engine/jobs.py (Entrypoints estables de jobs)
===============================================================================

Responsabilidades:
  - Exponer el job del dispatcher con un path de import estable para RQ.

Colaboradores:
  - compliance_engine.worker.jobs.dispatch_pending_events_job

Notas:
  - RQ encola jobs por import path string; "compliance_engine.jobs.*" es el
    contrato entre producer (queue) y worker.
===============================================================================
"""

from .worker.jobs import dispatch_pending_events_job

__all__ = ["dispatch_pending_events_job"]
