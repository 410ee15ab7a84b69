"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .action_log import InMemoryActionLogRepository
from .compliance import InMemoryComplianceRepository
from .event_store import InMemoryEventStore
from .historical_query import InMemoryHistoricalQueryService

__all__ = [
    "InMemoryEventStore",
    "InMemoryHistoricalQueryService",
    "InMemoryComplianceRepository",
    "InMemoryActionLogRepository",
]
