"""
Core run package.

Provides the automation run, separated from CLI concerns, so any trigger
(CLI, scheduler, API) can drive it.

Modules:
    models: Event, outcome and report models.
    loop: Run state machine (fetch -> per-item pipeline -> report).
    lock: Single-flight run lock.
    interrupt: Cancellation token and signal handling.
    report: Text summary and queue status.
"""

from maint.core.run.interrupt import Cancellation, CancellationToken, InterruptHandler
from maint.core.run.lock import RunLock
from maint.core.run.loop import AutomationRun, approve_pending
from maint.core.run.models import (
    ItemOutcome,
    OutcomeAction,
    RunEvent,
    RunEventType,
    RunReport,
    RunState,
)
from maint.core.run.report import QueueStatus, format_report, queue_status

__all__ = [
    # Run loop
    "AutomationRun",
    "approve_pending",
    # Models
    "ItemOutcome",
    "OutcomeAction",
    "RunEvent",
    "RunEventType",
    "RunReport",
    "RunState",
    # Concurrency and cancellation
    "Cancellation",
    "CancellationToken",
    "InterruptHandler",
    "RunLock",
    # Reporting
    "QueueStatus",
    "format_report",
    "queue_status",
]
