"""
Duplicate request detection.

A request is a duplicate when another work item for the same property and
category is still open (reported or in progress). Duplicates never become
new work: their description is appended to the existing item's log so
the issue is billed and dispatched once.

The run controller uses a DuplicateDetector built from the pool at run
start. Statuses are read from that snapshot, so an earlier report that
gets assigned during the run still absorbs later reports of the same issue
in the same run. Open items that are not being processed in the run (work
already under way) absorb a new request wherever they sit in the pool.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from maint.core.workorders import (
    OPEN_DUPLICATE_STATUSES,
    LogEntryType,
    LogSender,
    WorkItem,
    WorkItemStatus,
)

from .models import DuplicateCheck

logger = logging.getLogger(__name__)


def _same_category(a: str | None, b: str | None) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


def find_open_duplicate(
    property_id: str,
    category: str,
    pool: Iterable[WorkItem],
    exclude_id: str | None = None,
) -> DuplicateCheck:
    """
    Look for an open work item covering the same property and category.

    Args:
        property_id: Property of the new request
        category: Category of the new request
        pool: Active work items to search
        exclude_id: Id of the request itself, if it is already in the pool

    Returns:
        DuplicateCheck with the first matching item, if any
    """
    for item in pool:
        if item.id == exclude_id:
            continue
        if (
            item.property_id == property_id
            and _same_category(item.category, category)
            and item.status in OPEN_DUPLICATE_STATUSES
        ):
            return DuplicateCheck(is_duplicate=True, existing=item)
    return DuplicateCheck(is_duplicate=False)


@dataclass
class _Entry:
    item: WorkItem
    status: WorkItemStatus
    category: str | None


class DuplicateDetector:
    """
    Duplicate detection against a run-start snapshot of the pool.

    Entries outside ``pending`` (items the run will not process) absorb a
    candidate regardless of position. Between two pending items, only the
    one ahead of the candidate (in pool order, then in the order items were
    tracked) can absorb it, so the earliest report survives.

    Args:
        pool: Every known work item at run start
        pending: Ids of the items the run is about to process. None treats
            every entry as pending.
    """

    def __init__(
        self,
        pool: Iterable[WorkItem],
        pending: Iterable[str] | None = None,
    ) -> None:
        self._entries: list[_Entry] = []
        self._index: dict[str, int] = {}
        self._pending: set[str] | None = set(pending) if pending is not None else None
        for item in pool:
            self._add(item)

    def _is_pending(self, item_id: str) -> bool:
        return self._pending is None or item_id in self._pending

    def _add(self, item: WorkItem) -> None:
        if item.id in self._index:
            return
        self._index[item.id] = len(self._entries)
        self._entries.append(_Entry(item=item, status=item.status, category=item.category))

    def track(self, item: WorkItem) -> None:
        """Add an item that was not part of the pool at run start."""
        self._add(item)

    def record_category(self, item_id: str, category: str) -> None:
        """Fill in a category resolved during the run."""
        position = self._index.get(item_id)
        if position is not None:
            self._entries[position].category = category

    def check(self, item: WorkItem, category: str) -> DuplicateCheck:
        """Check ``item`` (already classified as ``category``) against the snapshot."""
        limit = self._index.get(item.id, len(self._entries))
        for position, entry in enumerate(self._entries):
            if entry.item.id == item.id:
                continue
            if position > limit and self._is_pending(entry.item.id):
                continue
            if (
                entry.item.property_id == item.property_id
                and _same_category(entry.category, category)
                and entry.status in OPEN_DUPLICATE_STATUSES
            ):
                return DuplicateCheck(is_duplicate=True, existing=entry.item)
        return DuplicateCheck(is_duplicate=False)


def merge_note(duplicate: WorkItem) -> str:
    """Log text recording a merged duplicate request."""
    return f"[duplicate {duplicate.id}] {duplicate.description}"


def already_merged(existing: WorkItem, duplicate: WorkItem) -> bool:
    marker = f"[duplicate {duplicate.id}]"
    return any(entry.message.startswith(marker) for entry in existing.log)


def merge_duplicate(
    existing: WorkItem,
    duplicate: WorkItem,
    append: Callable[[str], object] | None = None,
) -> bool:
    """
    Append a duplicate request's description to the existing item's log.

    Idempotent: a duplicate already merged into ``existing`` is not appended
    twice.

    Args:
        existing: The open item that absorbs the duplicate
        duplicate: The later request for the same issue
        append: Writes the note through the owning source (which appends it
            to ``existing``). Defaults to appending to ``existing`` directly.

    Returns:
        True if a log entry was added
    """
    if already_merged(existing, duplicate):
        return False
    note = merge_note(duplicate)
    if append is None:
        existing.add_log(note, sender=LogSender.TENANT, entry_type=LogEntryType.CHAT)
    else:
        append(note)
    logger.info(f"Merged duplicate request {duplicate.id} into {existing.id}")
    return True
