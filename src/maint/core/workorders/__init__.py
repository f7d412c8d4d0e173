"""
Work order models.

This module provides the normalized WorkItem, its status state machine,
and the contractor and property records used during assignment.
"""

from .models import (
    ACTIVE_STATUSES,
    ASSIGNED_STATUSES,
    OPEN_DUPLICATE_STATUSES,
    TERMINAL_STATUSES,
    Contractor,
    ContractorStatus,
    LogEntry,
    LogEntryType,
    LogSender,
    Property,
    WorkItem,
    WorkItemStatus,
    WorkSource,
    can_transition,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ASSIGNED_STATUSES",
    "OPEN_DUPLICATE_STATUSES",
    "TERMINAL_STATUSES",
    "Contractor",
    "ContractorStatus",
    "LogEntry",
    "LogEntryType",
    "LogSender",
    "Property",
    "WorkItem",
    "WorkItemStatus",
    "WorkSource",
    "can_transition",
]
