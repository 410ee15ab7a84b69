"""HTTP schemas (DTOs) for the compliance API."""

from .compliance import (
    ComplianceStatsRes,
    DispatchEnqueuedRes,
    DispatchRes,
    FindingRes,
    FindingsRes,
    TaskRes,
    TasksRes,
)

__all__ = [
    "DispatchRes",
    "DispatchEnqueuedRes",
    "ComplianceStatsRes",
    "FindingRes",
    "FindingsRes",
    "TaskRes",
    "TasksRes",
]
