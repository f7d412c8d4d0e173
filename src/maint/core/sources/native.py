"""
Native work-order queue.

Wraps the caller-supplied list of native work items. Items are updated in
place, so the caller's list reflects every assignment and status change
once the run finishes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from maint.core.errors import SourceError
from maint.core.workorders import WorkItem, WorkItemStatus, WorkSource

from .backend import RejectedRecord, register_source

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({WorkItemStatus.REPORTED, WorkItemStatus.CLASSIFIED})


@register_source("native")
class NativeQueueSource:
    """In-memory queue over native work items."""

    def __init__(self, items: Iterable[WorkItem] = ()) -> None:
        self._items: dict[str, WorkItem] = {}
        for item in items:
            if item.source is WorkSource.NATIVE:
                self._items[item.id] = item

    @property
    def source(self) -> WorkSource:
        return WorkSource.NATIVE

    @property
    def rejected(self) -> list[RejectedRecord]:
        return []

    def _get(self, work_item_id: str) -> WorkItem:
        item = self._items.get(work_item_id)
        if item is None:
            raise SourceError("native", f"Work item not found: {work_item_id}", work_item_id=work_item_id)
        return item

    def fetch_pending(self) -> list[WorkItem]:
        return [
            item
            for item in self._items.values()
            if item.status in PENDING_STATUSES and item.contractor_id is None
        ]

    def assign(self, work_item_id: str, contractor_id: str, reasoning: str) -> WorkItem:
        item = self._get(work_item_id)
        if item.assign(contractor_id, reasoning=reasoning):
            logger.debug(f"Assigned {contractor_id} to native item {work_item_id}")
        return item

    def update_status(self, work_item_id: str, status: WorkItemStatus) -> WorkItem:
        item = self._get(work_item_id)
        item.transition_to(status)
        return item

    def add_note(self, work_item_id: str, note: str) -> WorkItem:
        item = self._get(work_item_id)
        item.add_log(note)
        return item
