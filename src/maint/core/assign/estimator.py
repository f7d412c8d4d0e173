"""
Cost estimation for a category at a given urgency.

    base = midpoint(cost_min, cost_max)       # low / medium
    base = cost_max * 1.10                    # high
    base = cost_max * 1.25                    # emergency
    final_quote = round(base * (1 + markup / 100))

All rounding is half-up, so 0.5 always rounds away from zero.
"""

from __future__ import annotations

import math

from maint.core.rules import VendorRule
from maint.core.triage import Urgency

from .models import CostEstimate

URGENCY_PREMIUMS: dict[Urgency, float] = {
    Urgency.EMERGENCY: 1.25,
    Urgency.HIGH: 1.10,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return int(math.floor(value + 0.5))


def base_cost(rule: VendorRule, urgency: Urgency) -> float:
    premium = URGENCY_PREMIUMS.get(urgency)
    if premium is None:
        return rule.midpoint
    return rule.cost_max * premium


def estimate_cost(rule: VendorRule, urgency: Urgency) -> CostEstimate:
    """
    Estimate the cost and final quote for a job.

    Example:
        >>> plumbing = default_rule_book().resolve("Plumbing")
        >>> estimate_cost(plumbing, Urgency.MEDIUM).final_quote
        546
    """
    base = base_cost(rule, urgency)
    final_quote = round_half_up(base * (1 + rule.markup_percent / 100))
    return CostEstimate(
        base=base,
        estimated_cost=round_half_up(base),
        markup_percent=rule.markup_percent,
        final_quote=final_quote,
    )
