"""
Tests for run reports, the text summary and queue status.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from maint.core.config import AutomationMode
from maint.core.errors import AdapterUnavailableError
from maint.core.run import ItemOutcome, OutcomeAction, RunReport, format_report, queue_status
from maint.core.workorders import WorkItem, WorkItemStatus, WorkSource

STARTED = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


def _outcome(item_id: str, action: OutcomeAction, **kwargs) -> ItemOutcome:
    return ItemOutcome(
        work_item_id=item_id,
        source=kwargs.pop("source", WorkSource.NATIVE),
        action=action,
        **kwargs,
    )


def _report(outcomes, **kwargs) -> RunReport:
    return RunReport.from_outcomes(
        run_id="maint-20250115-090000",
        mode=AutomationMode.HYBRID,
        started_at=STARTED,
        ended_at=STARTED + timedelta(seconds=2.5),
        outcomes=outcomes,
        **kwargs,
    )


OUTCOMES = [
    _outcome(
        "wo-1",
        OutcomeAction.AUTO_ASSIGNED,
        contractor_name="ABC Plumbing",
        final_quote=546,
        confidence=80,
        reason="80% confidence",
    ),
    _outcome("wo-2", OutcomeAction.NEEDS_REVIEW, reason="no suitable contractor available"),
    _outcome(
        "pm-001",
        OutcomeAction.OWNER_APPROVAL_NEEDED,
        source=WorkSource.EXTERNAL,
        contractor_name="CoolAir HVAC",
        final_quote=2156,
        reason="quote $2156 exceeds owner approval threshold $1000",
    ),
    _outcome("wo-3", OutcomeAction.MERGED, merged_into="wo-1"),
    _outcome("wo-4", OutcomeAction.ERROR, error="database locked"),
]


class TestRunReport:
    """Tests for RunReport.from_outcomes."""

    def test_counts(self):
        report = _report(OUTCOMES)

        assert report.auto_assigned == 1
        assert report.manual_review_needed == 2
        assert report.errors == 1
        assert report.merged == 1
        assert report.processed == 4
        assert report.processed == report.auto_assigned + report.manual_review_needed + report.errors

    def test_outcomes_for_source(self):
        report = _report(OUTCOMES)

        assert [o.work_item_id for o in report.outcomes_for(WorkSource.EXTERNAL)] == ["pm-001"]

    def test_has_errors(self):
        assert _report(OUTCOMES).has_errors
        assert not _report(OUTCOMES[:2]).has_errors
        assert _report([], notes=["external source unavailable: 503"]).has_errors

    def test_json_round_trip_fields(self):
        payload = _report(OUTCOMES[:1]).model_dump(mode="json")

        assert payload["mode"] == "hybrid"
        assert payload["outcomes"][0]["action"] == "auto_assigned"


class TestFormatReport:
    def test_full_report(self):
        text = format_report(_report(OUTCOMES, notes=["external source is not configured"]))

        assert text.splitlines()[0] == "Maintenance Automation Report"
        assert "Run ID: maint-20250115-090000" in text
        assert "Duration: 2.5s" in text
        assert "- Processed: 4 requests" in text
        assert "- Auto-assigned: 1" in text
        assert "- Needs review: 2" in text
        assert "- wo-1 -> ABC Plumbing ($546, 80% confidence)" in text
        assert "- wo-2: no suitable contractor available" in text
        assert (
            "- pm-001 -> CoolAir HVAC ($2156): quote $2156 exceeds owner approval "
            "threshold $1000 [external]"
        ) in text
        assert "- wo-3 merged into wo-1" in text
        assert "- wo-4: database locked" in text
        assert "Notes:\n- external source is not configured" in text

    def test_empty_sections_omitted(self):
        text = format_report(_report(OUTCOMES[:1]))

        assert "Auto-assigned:" in text
        assert "Errors:" not in text
        assert "Notes:" not in text

    def test_cancelled_status(self):
        text = format_report(_report([], cancelled=True))

        assert "Status: cancelled (partial results)" in text


class TestQueueStatus:
    """Tests for queue_status."""

    def _items(self):
        return [
            WorkItem(id="wo-1", property_id="P1"),
            WorkItem(id="wo-2", property_id="P1", status=WorkItemStatus.CLASSIFIED),
            WorkItem(id="wo-3", property_id="P1", status=WorkItemStatus.COMPLETED),
            WorkItem(id="pm-1", property_id="P9", source=WorkSource.EXTERNAL),
        ]

    def test_native_only(self):
        status = queue_status(self._items())

        assert status.native_pending == 2
        assert status.external_pending == 0
        assert status.total == 2

    def test_with_external(self, fake_external):
        status = queue_status(self._items(), fake_external)

        assert status.external_pending == 2
        assert status.total == 4
        assert status.external_error is None

    def test_external_unavailable(self):
        external = MagicMock()
        external.fetch_pending.side_effect = AdapterUnavailableError("external", "Connection refused")

        status = queue_status(self._items(), external)

        assert status.external_pending == 0
        assert status.external_error == "Connection refused"
        assert status.total == 2
