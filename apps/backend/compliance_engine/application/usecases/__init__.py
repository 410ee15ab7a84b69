"""
Use Cases Layer (Business Operations)

    dispatch_pending_events   batch dispatcher (write side)
    compliance_queries        stats and listings for the console (read side)

Usage
-----
    from compliance_engine.application.usecases import DispatchPendingEventsUseCase
"""

from .compliance_queries import (
    ComplianceStats,
    GetComplianceStatsUseCase,
    ListFindingsInput,
    ListFindingsOutput,
    ListFindingsUseCase,
    ListTasksInput,
    ListTasksOutput,
    ListTasksUseCase,
)
from .dispatch_pending_events import (
    DispatchPendingEventsInput,
    DispatchPendingEventsUseCase,
    DispatchSummary,
)

__all__ = [
    # Write side
    "DispatchPendingEventsInput",
    "DispatchPendingEventsUseCase",
    "DispatchSummary",
    # Read side
    "ComplianceStats",
    "GetComplianceStatsUseCase",
    "ListFindingsInput",
    "ListFindingsOutput",
    "ListFindingsUseCase",
    "ListTasksInput",
    "ListTasksOutput",
    "ListTasksUseCase",
]
