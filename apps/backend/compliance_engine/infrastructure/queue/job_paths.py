"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Rutas y Constantes de Jobs

Responsabilidades:
    - Centralizar nombre de cola y ruta "importable" del job del dispatcher.

Colaboradores:
    - rq_queue.RQDispatchQueue
    - compliance_engine.jobs.dispatch_pending_events_job

Notas:
    - La ruta debe ser importable por el worker de RQ y se valida en runtime.
===============================================================================
"""

from __future__ import annotations

DISPATCH_QUEUE_NAME: str = "compliance"

DISPATCH_JOB_PATH: str = "compliance_engine.jobs.dispatch_pending_events_job"
