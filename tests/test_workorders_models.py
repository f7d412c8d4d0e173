"""
Tests for maint.core.workorders.models.

Covers the status state machine, the append-only communication log and
contractor assignment rules on WorkItem.
"""

import pytest
from pydantic import ValidationError

from maint.core.errors import AssignmentConflictError, InvalidTransitionError
from maint.core.workorders import (
    Contractor,
    ContractorStatus,
    LogEntryType,
    LogSender,
    WorkItem,
    WorkItemStatus,
    WorkSource,
    can_transition,
)
from maint.core.workorders.models import ALLOWED_TRANSITIONS


class TestCanTransition:
    """Tests for the status transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (WorkItemStatus.REPORTED, WorkItemStatus.CLASSIFIED),
            (WorkItemStatus.CLASSIFIED, WorkItemStatus.CONTRACTOR_ASSIGNED),
            (WorkItemStatus.CLASSIFIED, WorkItemStatus.PENDING_APPROVAL),
            (WorkItemStatus.PENDING_APPROVAL, WorkItemStatus.CONTRACTOR_ASSIGNED),
            (WorkItemStatus.CONTRACTOR_ASSIGNED, WorkItemStatus.IN_PROGRESS),
            (WorkItemStatus.IN_PROGRESS, WorkItemStatus.COMPLETED),
        ],
    )
    def test_forward_transitions_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "status",
        [s for s in WorkItemStatus if not s.is_terminal],
    )
    def test_any_open_status_can_be_cancelled(self, status):
        assert can_transition(status, WorkItemStatus.CANCELLED)

    @pytest.mark.parametrize(
        "current,target",
        [
            (WorkItemStatus.REPORTED, WorkItemStatus.CONTRACTOR_ASSIGNED),
            (WorkItemStatus.REPORTED, WorkItemStatus.COMPLETED),
            (WorkItemStatus.COMPLETED, WorkItemStatus.IN_PROGRESS),
            (WorkItemStatus.CANCELLED, WorkItemStatus.REPORTED),
            (WorkItemStatus.IN_PROGRESS, WorkItemStatus.CLASSIFIED),
        ],
    )
    def test_disallowed_transitions(self, current, target):
        assert not can_transition(current, target)

    def test_same_state_is_allowed(self):
        assert can_transition(WorkItemStatus.COMPLETED, WorkItemStatus.COMPLETED)

    def test_terminal_statuses_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[WorkItemStatus.COMPLETED] == frozenset()
        assert ALLOWED_TRANSITIONS[WorkItemStatus.CANCELLED] == frozenset()


class TestWorkItemTransitions:
    """Tests for WorkItem.transition_to."""

    def test_transition_updates_status_and_logs(self, make_item):
        item = make_item("wo-1", "Sink leaking")

        item.transition_to(WorkItemStatus.CLASSIFIED)

        assert item.status == WorkItemStatus.CLASSIFIED
        assert len(item.log) == 1
        assert item.log[0].entry_type == LogEntryType.STATUS_CHANGE
        assert "reported -> classified" in item.log[0].message

    def test_same_status_is_noop(self, make_item):
        item = make_item("wo-1", "Sink leaking")

        item.transition_to(WorkItemStatus.REPORTED)

        assert item.log == []

    def test_invalid_transition_raises(self, make_item):
        item = make_item("wo-1", "Sink leaking")

        with pytest.raises(InvalidTransitionError) as exc_info:
            item.transition_to(WorkItemStatus.COMPLETED)

        assert exc_info.value.work_item_id == "wo-1"
        assert exc_info.value.current == "reported"
        assert exc_info.value.target == "completed"
        assert item.status == WorkItemStatus.REPORTED

    def test_terminal_item_cannot_reopen(self, make_item):
        item = make_item("wo-1", "Sink leaking", status=WorkItemStatus.CANCELLED)

        assert item.is_terminal
        with pytest.raises(InvalidTransitionError):
            item.transition_to(WorkItemStatus.REPORTED)


class TestWorkItemAssign:
    """Tests for WorkItem.assign."""

    def test_assign_sets_contractor_and_status(self, make_item):
        item = make_item("wo-1", "Sink leaking", status=WorkItemStatus.CLASSIFIED)

        changed = item.assign("c-1", estimated_cost=475, final_quote=546, reasoning="Best match")

        assert changed is True
        assert item.status == WorkItemStatus.CONTRACTOR_ASSIGNED
        assert item.contractor_id == "c-1"
        assert item.estimated_cost == 475
        assert item.final_quote == 546
        assert item.has_active_assignment
        assert item.log[-1].sender == LogSender.AI_AGENT
        assert item.log[-1].message == "Best match"

    def test_reassigning_same_contractor_is_noop(self, make_item):
        item = make_item("wo-1", "Sink leaking", status=WorkItemStatus.CLASSIFIED)
        item.assign("c-1")
        log_size = len(item.log)

        assert item.assign("c-1", reasoning="again") is False
        assert len(item.log) == log_size

    def test_assigning_other_contractor_conflicts(self, make_item):
        item = make_item("wo-1", "Sink leaking", status=WorkItemStatus.CLASSIFIED)
        item.assign("c-1")

        with pytest.raises(AssignmentConflictError):
            item.assign("c-2")

        assert item.contractor_id == "c-1"

    def test_assign_from_reported_is_invalid(self, make_item):
        item = make_item("wo-1", "Sink leaking")

        with pytest.raises(InvalidTransitionError):
            item.assign("c-1")

        assert item.contractor_id is None

    def test_assign_from_pending_approval(self, make_item):
        item = make_item("wo-1", "Sink leaking", status=WorkItemStatus.PENDING_APPROVAL)

        assert item.assign("c-1") is True
        assert item.status == WorkItemStatus.CONTRACTOR_ASSIGNED


class TestWorkItemLog:
    def test_add_log_appends_and_touches_updated_at(self, make_item):
        item = make_item("wo-1", "Sink leaking")
        before = item.updated_at

        entry = item.add_log("Tenant called again", sender=LogSender.TENANT, entry_type=LogEntryType.CHAT)

        assert item.log == [entry]
        assert item.updated_at >= before

    def test_log_entries_are_frozen(self, make_item):
        item = make_item("wo-1", "Sink leaking")
        entry = item.add_log("note")

        with pytest.raises(ValidationError):
            entry.message = "changed"

    def test_defaults(self):
        item = WorkItem(id="wo-1", property_id="P1")

        assert item.source == WorkSource.NATIVE
        assert item.status == WorkItemStatus.REPORTED
        assert item.category is None
        assert item.contractor_id is None

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError):
            WorkItem(id="wo-1", property_id="P1", estimated_cost=-5)


class TestContractor:
    def test_status_is_case_insensitive(self):
        contractor = Contractor(id="c-1", name="ABC", status="BUSY")

        assert contractor.status == ContractorStatus.BUSY

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            Contractor(id="c-1", name="ABC", rating=5.5)
