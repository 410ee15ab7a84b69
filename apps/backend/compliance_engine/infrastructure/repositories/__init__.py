"""
============================================================
TARJETA CRC
============================================================
Class: compliance_engine.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de los puertos (Postgres e InMemory)
  en un único punto de importación.
- Mantener una API estable para el composition root (container).

Collaborators:
- Repositorios Postgres (SQL crudo sobre psycopg)
- Repositorios InMemory (testing / desarrollo local)
============================================================
"""

# ---------------------------
# In-memory implementations
# Usados para tests unitarios rápidos o entornos volátiles.
# ---------------------------
from .in_memory import (
    InMemoryActionLogRepository,
    InMemoryComplianceRepository,
    InMemoryEventStore,
    InMemoryHistoricalQueryService,
)

# ---------------------------
# Postgres implementations
# ---------------------------
from .postgres import (
    PostgresActionLogRepository,
    PostgresComplianceRepository,
    PostgresEventStore,
    PostgresHistoricalQueryService,
)

__all__ = [
    # Postgres
    "PostgresEventStore",
    "PostgresHistoricalQueryService",
    "PostgresComplianceRepository",
    "PostgresActionLogRepository",
    # In-memory
    "InMemoryEventStore",
    "InMemoryHistoricalQueryService",
    "InMemoryComplianceRepository",
    "InMemoryActionLogRepository",
]
