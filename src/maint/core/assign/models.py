"""
Value types produced while assigning a work item.

These are plain frozen dataclasses: they are created, read and discarded
within a single item's processing and never persisted on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from maint.core.workorders import Contractor, WorkItem


@dataclass(frozen=True)
class ScoredContractor:
    """An eligible contractor with its ranking score."""

    contractor: Contractor
    score: float
    active_jobs: int


@dataclass(frozen=True)
class Selection:
    """Top-ranked contractor plus how many candidates were eligible."""

    best: ScoredContractor
    eligible_count: int

    @property
    def contractor(self) -> Contractor:
        return self.best.contractor


@dataclass(frozen=True)
class CostEstimate:
    """
    Cost breakdown for one category at one urgency.

    Attributes:
        base: Pre-markup cost before rounding (urgency premium applied)
        estimated_cost: Rounded base, shown to the owner
        markup_percent: Category markup
        final_quote: Rounded post-markup price tracked against the contractor
    """

    base: float
    estimated_cost: int
    markup_percent: float
    final_quote: int


@dataclass(frozen=True)
class AssignmentResult:
    """Proposed assignment of a contractor to a work item."""

    contractor_id: str
    contractor_name: str
    estimated_cost: int
    markup_percent: float
    final_quote: int
    confidence: int
    reasoning: str


class DecisionKind(str, Enum):
    """What the policy decided to do with an assignment."""

    AUTO_ASSIGN = "auto_assign"
    NEEDS_REVIEW = "needs_review"
    OWNER_APPROVAL_NEEDED = "owner_approval_needed"


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    reason: str


@dataclass(frozen=True)
class DuplicateCheck:
    """Result of looking for an open work item covering the same issue."""

    is_duplicate: bool
    existing: WorkItem | None = None
