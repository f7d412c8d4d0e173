"""
Deterministic in-memory stand-in for the external work-order platform.

Holds meld records in the platform's own shape and vocabulary and goes
through the same translation as ExternalWorkOrderSource, so orchestration
can be exercised end to end without a network. Failures can be scripted
per operation:

    >>> fake = FakeExternalSource([{"id": "m-1", "propertyId": "P1", "description": "AC out"}])
    >>> fake.fail_next("assign", AdapterUnavailableError("external", "503"))
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict, deque
from collections.abc import Iterable
from typing import Any

from maint.core.errors import (
    AssignmentConflictError,
    InvalidTransitionError,
    SourceError,
)
from maint.core.workorders import WorkItem, WorkItemStatus, WorkSource, can_transition

from .backend import RejectedRecord, register_source
from .external import (
    LOCAL_ONLY_STATUSES,
    PENDING_STATUSES,
    SOURCE_NAME,
    STATUS_TO_REMOTE,
    meld_record_id,
    meld_to_work_item,
    parse_meld,
)

logger = logging.getLogger(__name__)


@register_source("fake-external")
class FakeExternalSource:
    """In-memory external source with scripted failures and a call log."""

    def __init__(self, melds: Iterable[dict[str, Any]] = ()) -> None:
        self._melds: dict[str, dict[str, Any]] = {}
        for record in melds:
            self._melds[meld_record_id(record)] = copy.deepcopy(record)
        self._items: dict[str, WorkItem] = {}
        self._failures: dict[str, deque[Exception]] = defaultdict(deque)
        self.calls: list[tuple[str, str | None]] = []
        self.work_logs: dict[str, list[str]] = defaultdict(list)
        self._rejected: list[RejectedRecord] = []

    @property
    def source(self) -> WorkSource:
        return WorkSource.EXTERNAL

    @property
    def rejected(self) -> list[RejectedRecord]:
        return list(self._rejected)

    def fail_next(self, operation: str, error: Exception, times: int = 1) -> None:
        """Make the next ``times`` calls to ``operation`` raise ``error``."""
        self._failures[operation].extend([error] * times)

    def meld(self, meld_id: str) -> dict[str, Any]:
        """Current remote record for ``meld_id``."""
        return self._melds[meld_id]

    def _call(self, operation: str, work_item_id: str | None = None) -> None:
        self.calls.append((operation, work_item_id))
        pending = self._failures.get(operation)
        if pending:
            raise pending.popleft()

    def _item(self, work_item_id: str) -> WorkItem:
        item = self._items.get(work_item_id)
        if item is None:
            raise SourceError(
                SOURCE_NAME, f"Meld not found: {work_item_id}", work_item_id=work_item_id
            )
        return item

    def fetch_pending(self) -> list[WorkItem]:
        self._call("fetch_pending")
        pending: list[WorkItem] = []
        rejected: list[RejectedRecord] = []
        for meld_id, record in self._melds.items():
            if record.get("status", "Unassigned") != "Unassigned":
                continue
            item = self._items.get(meld_id)
            if item is None:
                try:
                    item = meld_to_work_item(parse_meld(record))
                except SourceError as e:
                    rejected.append(RejectedRecord(record_id=meld_id, error=str(e)))
                    continue
                self._items[meld_id] = item
            if item.status in PENDING_STATUSES and item.contractor_id is None:
                pending.append(item)
        self._rejected = rejected
        return pending

    def assign(self, work_item_id: str, contractor_id: str, reasoning: str) -> WorkItem:
        self._call("assign", work_item_id)
        item = self._item(work_item_id)
        if item.contractor_id == contractor_id and item.has_active_assignment:
            return item
        if item.has_active_assignment:
            raise AssignmentConflictError(work_item_id, str(item.contractor_id), contractor_id)

        item.assign(contractor_id, reasoning=reasoning)
        record = self._melds[work_item_id]
        record["status"] = STATUS_TO_REMOTE[WorkItemStatus.CONTRACTOR_ASSIGNED]
        record["assignedVendor"] = {"id": contractor_id}
        self.work_logs[work_item_id].append(reasoning)
        return item

    def update_status(self, work_item_id: str, status: WorkItemStatus) -> WorkItem:
        self._call("update_status", work_item_id)
        item = self._item(work_item_id)
        if not can_transition(item.status, status):
            raise InvalidTransitionError(work_item_id, item.status.value, status.value)
        item.transition_to(status)
        if status not in LOCAL_ONLY_STATUSES:
            self._melds[work_item_id]["status"] = STATUS_TO_REMOTE[status]
        return item

    def add_note(self, work_item_id: str, note: str) -> WorkItem:
        self._call("add_note", work_item_id)
        item = self._item(work_item_id)
        item.add_log(note)
        self.work_logs[work_item_id].append(note)
        return item
