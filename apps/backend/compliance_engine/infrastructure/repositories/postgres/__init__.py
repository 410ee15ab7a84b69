"""
PostgreSQL Repository Implementations.

Production implementations on psycopg 3 (raw SQL, shared connection pool).
"""

from .action_log import PostgresActionLogRepository
from .compliance import PostgresComplianceRepository
from .event_store import PostgresEventStore
from .historical_query import PostgresHistoricalQueryService

__all__ = [
    "PostgresEventStore",
    "PostgresHistoricalQueryService",
    "PostgresComplianceRepository",
    "PostgresActionLogRepository",
]
