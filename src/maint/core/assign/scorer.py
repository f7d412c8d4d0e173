"""
Contractor scoring and selection.

Filters the contractor pool down to available specialists for a category
and ranks them by rating and current workload:

    score = rating * 20 - active_jobs * 5

Workload comes from a WorkloadSnapshot taken once at the start of a run.
The snapshot is bumped in memory as the run assigns work, so several items
processed in the same run cannot pile onto one contractor just because the
store has not caught up yet.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from maint.core.workorders import ACTIVE_STATUSES, Contractor, ContractorStatus, WorkItem

from .models import ScoredContractor, Selection

logger = logging.getLogger(__name__)

RATING_WEIGHT = 20
ACTIVE_JOB_PENALTY = 5


class WorkloadSnapshot:
    """Active-job counts per contractor, frozen at run start."""

    def __init__(self, counts: dict[str, int] | None = None) -> None:
        self._counts: Counter[str] = Counter(counts or {})

    @classmethod
    def from_items(cls, items: Iterable[WorkItem]) -> WorkloadSnapshot:
        """Count items in an active status per assigned contractor."""
        counts: Counter[str] = Counter(
            item.contractor_id
            for item in items
            if item.contractor_id and item.status in ACTIVE_STATUSES
        )
        return cls(dict(counts))

    def active_jobs(self, contractor_id: str) -> int:
        return self._counts.get(contractor_id, 0)

    def record_assignment(self, contractor_id: str) -> None:
        """Count a job assigned during the current run."""
        self._counts[contractor_id] += 1

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)


def is_eligible(contractor: Contractor, category: str) -> bool:
    """
    Check whether a contractor can take work in ``category``.

    The contractor must be available and have at least one specialty tag
    containing the category name (case-insensitive).
    """
    if contractor.status is not ContractorStatus.AVAILABLE:
        return False
    needle = category.lower()
    return any(needle in specialty.lower() for specialty in contractor.specialties)


def score_contractor(contractor: Contractor, active_jobs: int) -> float:
    return contractor.rating * RATING_WEIGHT - active_jobs * ACTIVE_JOB_PENALTY


def rank_contractors(
    category: str,
    contractors: Sequence[Contractor],
    workload: WorkloadSnapshot,
) -> list[ScoredContractor]:
    """
    Rank eligible contractors, best first.

    Equal scores keep their input order (Python's sort is stable). This is
    a simplicity choice; it does not spread work evenly across equally
    qualified contractors.
    """
    scored = [
        ScoredContractor(
            contractor=contractor,
            score=score_contractor(contractor, workload.active_jobs(contractor.id)),
            active_jobs=workload.active_jobs(contractor.id),
        )
        for contractor in contractors
        if is_eligible(contractor, category)
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def select_contractor(
    category: str,
    contractors: Sequence[Contractor],
    workload: WorkloadSnapshot,
) -> Selection | None:
    """
    Pick the top-ranked contractor for a category.

    Returns:
        Selection, or None when nobody is eligible. None is a valid outcome
        (the item goes to manual review), not an error.
    """
    ranked = rank_contractors(category, contractors, workload)
    if not ranked:
        logger.info(f"No available contractors for category: {category}")
        return None
    return Selection(best=ranked[0], eligible_count=len(ranked))
