"""
Assignment decision policy.

Combines triage, contractor selection and cost into one of three
decisions. Rules are evaluated in order, first match wins:

1. No contractor found -> needs review
2. Final quote above the owner approval threshold -> owner approval needed
   (applies to emergencies too: large unapproved spend is never committed
   automatically)
3. Confidence below the auto-assign threshold and not an emergency
   -> needs review
4. Otherwise -> auto assign
"""

from __future__ import annotations

from maint.core.config import AutomationSettings
from maint.core.triage import TriageResult

from .estimator import round_half_up
from .models import AssignmentResult, CostEstimate, Decision, DecisionKind, Selection

NO_CONTRACTOR_REASON = "no suitable contractor available"


def compute_confidence(rating: float, eligible_count: int, active_jobs: int) -> int:
    """
    Confidence (0-100) in an automatic pick.

    Blends contractor quality (rating, up to 50), market depth (more than
    two eligible contractors: 30, otherwise 15) and headroom (fewer than
    three active jobs: 20, otherwise 10).
    """
    quality = rating / 5 * 50
    depth = 30 if eligible_count > 2 else 15
    headroom = 20 if active_jobs < 3 else 10
    return max(0, min(100, round_half_up(quality + depth + headroom)))


def build_assignment(
    triage: TriageResult,
    selection: Selection,
    estimate: CostEstimate,
) -> AssignmentResult:
    """Combine the selected contractor and cost estimate into an assignment proposal."""
    contractor = selection.contractor
    active_jobs = selection.best.active_jobs
    confidence = compute_confidence(contractor.rating, selection.eligible_count, active_jobs)
    markup = f"{estimate.markup_percent:g}"
    reasoning = (
        f"Selected {contractor.name} (rating: {contractor.rating:.1f}, "
        f"active jobs: {active_jobs}) for {triage.category} work. "
        f"Estimated cost: ${estimate.estimated_cost}, markup: {markup}%, "
        f"final quote: ${estimate.final_quote}."
    )
    return AssignmentResult(
        contractor_id=contractor.id,
        contractor_name=contractor.name,
        estimated_cost=estimate.estimated_cost,
        markup_percent=estimate.markup_percent,
        final_quote=estimate.final_quote,
        confidence=confidence,
        reasoning=reasoning,
    )


def decide(
    triage: TriageResult,
    assignment: AssignmentResult | None,
    settings: AutomationSettings,
) -> Decision:
    """
    Decide what to do with a proposed assignment.

    Args:
        triage: Triage result for the item
        assignment: Proposed assignment, or None if no contractor was found
        settings: Thresholds and the emergency auto-assign switch

    Returns:
        Decision with kind and a human-readable reason
    """
    if assignment is None:
        return Decision(DecisionKind.NEEDS_REVIEW, NO_CONTRACTOR_REASON)

    if assignment.final_quote > settings.owner_approval_threshold:
        return Decision(
            DecisionKind.OWNER_APPROVAL_NEEDED,
            f"quote ${assignment.final_quote} exceeds owner approval threshold "
            f"${settings.owner_approval_threshold:g}",
        )

    emergency_bypass = triage.emergency and settings.emergency_auto_assign
    if assignment.confidence < settings.auto_assign_threshold and not emergency_bypass:
        return Decision(
            DecisionKind.NEEDS_REVIEW,
            f"low confidence ({assignment.confidence}% < {settings.auto_assign_threshold}%)",
        )

    if triage.emergency and assignment.confidence < settings.auto_assign_threshold:
        return Decision(
            DecisionKind.AUTO_ASSIGN,
            f"emergency dispatch ({assignment.confidence}% confidence)",
        )
    return Decision(DecisionKind.AUTO_ASSIGN, f"{assignment.confidence}% confidence")
