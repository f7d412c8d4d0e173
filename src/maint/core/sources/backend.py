"""
Work-order source protocol and registry.

A source is the gateway to one backing work-order system. The run
controller only ever talks to sources through this interface and only
ever sees the shared WorkItemStatus vocabulary; each implementation
translates its own states at the boundary.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from maint.core.workorders import WorkItem, WorkItemStatus, WorkSource


@dataclass(frozen=True)
class RejectedRecord:
    """A source record that could not be translated into a WorkItem."""

    record_id: str
    error: str


@runtime_checkable
class SourceAdapter(Protocol):
    """
    Protocol for work-order source implementations.

    Implementations must make ``assign`` safe to retry: assignment is keyed
    by work item id, and re-assigning the same contractor to the same item
    is a no-op rather than a second dispatch.
    """

    @property
    def source(self) -> WorkSource:
        """Which source tag items from this adapter carry."""
        ...

    @property
    def rejected(self) -> list[RejectedRecord]:
        """
        Records the last ``fetch_pending`` skipped because they were invalid.

        A bad record never hides the valid ones fetched alongside it.
        """
        ...

    def fetch_pending(self) -> list[WorkItem]:
        """
        Fetch work items awaiting triage and assignment.

        Idempotent read; calling it twice returns the same items.

        Raises:
            AdapterUnavailableError: If the backing system cannot be reached
        """
        ...

    def assign(self, work_item_id: str, contractor_id: str, reasoning: str) -> WorkItem:
        """
        Assign a contractor to a work item.

        Returns:
            The updated work item

        Raises:
            SourceError: If the item is unknown or the assignment is rejected
            AdapterUnavailableError: If the backing system cannot be reached
        """
        ...

    def update_status(self, work_item_id: str, status: WorkItemStatus) -> WorkItem:
        """
        Move a work item to ``status``.

        Raises:
            SourceError: If the item is unknown or the change is rejected
            AdapterUnavailableError: If the backing system cannot be reached
        """
        ...

    def add_note(self, work_item_id: str, note: str) -> WorkItem:
        """
        Append a note to a work item's log.

        Raises:
            SourceError: If the item is unknown
            AdapterUnavailableError: If the backing system cannot be reached
        """
        ...


_sources: dict[str, type[Any]] = {}


def register_source(name: str) -> Callable[[type[Any]], type[Any]]:
    """
    Decorator to register a source implementation.

    Usage:
        @register_source("native")
        class NativeQueueSource:
            ...
    """

    def decorator(source_class: type[Any]) -> type[Any]:
        _sources[name] = source_class
        return source_class

    return decorator


def get_source(name: str, **kwargs: Any) -> SourceAdapter:
    """
    Instantiate a registered source.

    Args:
        name: Registered source name
        **kwargs: Constructor arguments for the source

    Raises:
        ValueError: If no source is registered under ``name``
    """
    source_class = _sources.get(name)
    if source_class is None:
        raise ValueError(
            f"Source '{name}' not registered. Available sources: {', '.join(_sources.keys())}"
        )
    adapter: SourceAdapter = source_class(**kwargs)
    return adapter


def list_sources() -> list[str]:
    """List all registered source names."""
    return list(_sources.keys())
