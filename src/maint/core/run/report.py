"""
Human-readable run summaries and queue status.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from maint.core.sources import SourceAdapter
from maint.core.sources.native import PENDING_STATUSES
from maint.core.workorders import WorkItem, WorkSource

from .models import ItemOutcome, OutcomeAction, RunReport

logger = logging.getLogger(__name__)


def _money(value: int | None) -> str:
    return "$?" if value is None else f"${value}"


def _auto_line(o: ItemOutcome) -> str:
    return f"- {o.work_item_id} -> {o.contractor_name} ({_money(o.final_quote)}, {o.confidence}% confidence)"


def _review_line(o: ItemOutcome) -> str:
    return f"- {o.work_item_id}: {o.reason}"


def _approval_line(o: ItemOutcome) -> str:
    return f"- {o.work_item_id} -> {o.contractor_name} ({_money(o.final_quote)}): {o.reason}"


def _merged_line(o: ItemOutcome) -> str:
    return f"- {o.work_item_id} merged into {o.merged_into}"


def _error_line(o: ItemOutcome) -> str:
    return f"- {o.work_item_id}: {o.error}"


_SECTIONS = (
    (OutcomeAction.AUTO_ASSIGNED, "Auto-assigned", _auto_line),
    (OutcomeAction.NEEDS_REVIEW, "Needs review", _review_line),
    (OutcomeAction.OWNER_APPROVAL_NEEDED, "Owner approval needed", _approval_line),
    (OutcomeAction.MERGED, "Merged duplicates", _merged_line),
    (OutcomeAction.ERROR, "Errors", _error_line),
)


def format_report(report: RunReport) -> str:
    """
    Render a report as plain text: header, counts, then one bullet per
    outcome grouped by action. Outcomes from the external source are
    tagged ``[external]``.
    """
    duration = (report.ended_at - report.started_at).total_seconds()
    lines = [
        "Maintenance Automation Report",
        "",
        f"Run ID: {report.run_id}",
        f"Duration: {duration:.1f}s",
        f"Mode: {report.mode.value}",
    ]
    if report.cancelled:
        lines.append("Status: cancelled (partial results)")
    lines += [
        "",
        "Summary:",
        f"- Processed: {report.processed} requests",
        f"- Auto-assigned: {report.auto_assigned}",
        f"- Needs review: {report.manual_review_needed}",
        f"- Errors: {report.errors}",
        f"- Merged duplicates: {report.merged}",
    ]

    for action, title, render in _SECTIONS:
        group = [o for o in report.outcomes if o.action is action]
        if not group:
            continue
        lines += ["", f"{title}:"]
        for outcome in group:
            line = render(outcome)
            if outcome.source is WorkSource.EXTERNAL:
                line += " [external]"
            lines.append(line)

    if report.notes:
        lines += ["", "Notes:"]
        lines += [f"- {note}" for note in report.notes]

    return "\n".join(lines)


@dataclass(frozen=True)
class QueueStatus:
    native_pending: int
    external_pending: int
    external_error: str | None = None

    @property
    def total(self) -> int:
        return self.native_pending + self.external_pending


def queue_status(
    work_items: Iterable[WorkItem],
    external: SourceAdapter | None = None,
) -> QueueStatus:
    """
    Count work items waiting for the engine, per source.

    An unreachable external source counts as zero pending and the error is
    recorded on the result.
    """
    native_pending = sum(
        1
        for item in work_items
        if item.source is WorkSource.NATIVE
        and item.status in PENDING_STATUSES
        and item.contractor_id is None
    )
    if external is None:
        return QueueStatus(native_pending=native_pending, external_pending=0)

    try:
        external_pending = len(external.fetch_pending())
    except Exception as e:
        logger.warning(f"Failed to fetch external queue status: {e}")
        return QueueStatus(
            native_pending=native_pending, external_pending=0, external_error=str(e)
        )
    return QueueStatus(native_pending=native_pending, external_pending=external_pending)
