"""
Automation run event and report models.

- RunEvent: events yielded by AutomationRun.execute(), for live rendering
- ItemOutcome: what happened to one work item
- RunReport: immutable summary of a finished (or cancelled) run

Any interface (CLI, scheduler, API) can iterate RunEvents and render them
for its own context, then read the RunReport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from maint.core.config import AutomationMode
from maint.core.workorders import WorkSource


class RunState(str, Enum):
    STARTED = "started"
    PROCESSING = "processing"
    FINISHED = "finished"


class RunEventType(str, Enum):
    """Discriminator for run events."""

    # Lifecycle events
    RUN_STARTED = "run_started"
    RUN_COMPLETED = "run_completed"
    RUN_CANCELLED = "run_cancelled"

    # Source events
    SOURCE_FETCHED = "source_fetched"
    SOURCE_UNAVAILABLE = "source_unavailable"

    # Item events
    ITEM_STARTED = "item_started"
    ITEM_COMPLETED = "item_completed"
    ITEM_FAILED = "item_failed"


@dataclass
class RunEvent:
    """
    Event yielded by the run generator.

    Attributes:
        event_type: Discriminator for switching on event kind.
        message: Human-readable description of the event.
        work_item_id: Associated work item (if applicable).
        source: Source the item or fetch belongs to (if applicable).
        outcome: Outcome of a finished item (item_completed / item_failed).
        error: Error message (if applicable).
        data: Extra data for the event.
        timestamp: When the event occurred.
    """

    event_type: RunEventType
    message: str = ""
    work_item_id: str | None = None
    source: WorkSource | None = None
    outcome: ItemOutcome | None = None
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class OutcomeAction(str, Enum):
    AUTO_ASSIGNED = "auto_assigned"
    NEEDS_REVIEW = "needs_review"
    OWNER_APPROVAL_NEEDED = "owner_approval_needed"
    MERGED = "merged"
    ERROR = "error"


# Actions that count toward manual_review_needed
REVIEW_ACTIONS = frozenset({OutcomeAction.NEEDS_REVIEW, OutcomeAction.OWNER_APPROVAL_NEEDED})


class ItemOutcome(BaseModel):
    """What the run did with one work item."""

    model_config = ConfigDict(frozen=True)

    work_item_id: str
    source: WorkSource
    action: OutcomeAction
    category: Optional[str] = None
    urgency: Optional[str] = None
    contractor_id: Optional[str] = None
    contractor_name: Optional[str] = None
    estimated_cost: Optional[int] = None
    final_quote: Optional[int] = None
    confidence: Optional[int] = None
    reason: str = ""
    error: Optional[str] = None
    merged_into: Optional[str] = None


class RunReport(BaseModel):
    """
    Summary of one automation run.

    ``processed`` counts non-duplicate items that were handled, and always
    equals ``auto_assigned + manual_review_needed + errors``. Merged
    duplicates are counted separately in ``merged``.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    mode: AutomationMode
    started_at: datetime
    ended_at: datetime
    processed: int = 0
    auto_assigned: int = 0
    manual_review_needed: int = 0
    errors: int = 0
    merged: int = 0
    cancelled: bool = False
    notes: list[str] = Field(default_factory=list)
    outcomes: list[ItemOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        *,
        run_id: str,
        mode: AutomationMode,
        started_at: datetime,
        ended_at: datetime,
        outcomes: list[ItemOutcome],
        notes: list[str] | None = None,
        cancelled: bool = False,
    ) -> RunReport:
        """Build a report, deriving every count from ``outcomes``."""
        auto = sum(1 for o in outcomes if o.action is OutcomeAction.AUTO_ASSIGNED)
        review = sum(1 for o in outcomes if o.action in REVIEW_ACTIONS)
        errors = sum(1 for o in outcomes if o.action is OutcomeAction.ERROR)
        merged = sum(1 for o in outcomes if o.action is OutcomeAction.MERGED)
        return cls(
            run_id=run_id,
            mode=mode,
            started_at=started_at,
            ended_at=ended_at,
            processed=auto + review + errors,
            auto_assigned=auto,
            manual_review_needed=review,
            errors=errors,
            merged=merged,
            cancelled=cancelled,
            notes=list(notes or []),
            outcomes=list(outcomes),
        )

    def outcomes_for(self, source: WorkSource) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.source is source]

    @property
    def has_errors(self) -> bool:
        return self.errors > 0 or bool(self.notes)
