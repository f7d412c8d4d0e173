"""
Contractor assignment: scoring, cost estimation, decision policy and
duplicate detection.
"""

from .duplicates import (
    DuplicateDetector,
    already_merged,
    find_open_duplicate,
    merge_duplicate,
    merge_note,
)
from .estimator import estimate_cost, round_half_up
from .models import (
    AssignmentResult,
    CostEstimate,
    Decision,
    DecisionKind,
    DuplicateCheck,
    ScoredContractor,
    Selection,
)
from .policy import NO_CONTRACTOR_REASON, build_assignment, compute_confidence, decide
from .scorer import WorkloadSnapshot, is_eligible, rank_contractors, select_contractor

__all__ = [
    "AssignmentResult",
    "CostEstimate",
    "Decision",
    "DecisionKind",
    "DuplicateCheck",
    "DuplicateDetector",
    "NO_CONTRACTOR_REASON",
    "ScoredContractor",
    "Selection",
    "WorkloadSnapshot",
    "already_merged",
    "build_assignment",
    "compute_confidence",
    "decide",
    "estimate_cost",
    "find_open_duplicate",
    "is_eligible",
    "merge_duplicate",
    "merge_note",
    "rank_contractors",
    "round_half_up",
    "select_contractor",
]
