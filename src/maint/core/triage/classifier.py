"""
Rule-based triage of maintenance descriptions.

Turns a free-text description (and optionally a category supplied by an
upstream classifier) into a category, an urgency level and an emergency
flag. Pure function of its inputs and the RuleBook in effect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from maint.core.rules import GENERAL_MAINTENANCE, RuleBook

EMERGENCY_KEYWORDS: tuple[str, ...] = (
    "emergency",
    "flooding",
    "gas leak",
    "no heat",
    "no hot water",
    "major leak",
    "electrical fire",
    "sparking",
    "smoke",
    "sewage backup",
)

URGENT_PHRASES: tuple[str, ...] = ("urgent", "asap")
DEESCALATION_PHRASES: tuple[str, ...] = ("when you can", "not urgent")


class Urgency(str, Enum):
    """Urgency level of a maintenance request."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"

    @classmethod
    def parse(cls, value: str) -> Urgency:
        """Parse a case-insensitive urgency name (e.g. "EMERGENCY", "High")."""
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            valid = ", ".join(u.value for u in cls)
            raise ValueError(f"Unknown urgency '{value}' (expected one of: {valid})") from e


@dataclass(frozen=True)
class TriageResult:
    """Outcome of triaging one description."""

    category: str
    urgency: Urgency
    matched_keywords: tuple[str, ...] = field(default_factory=tuple)
    emergency: bool = False


def detect_emergency(description: str) -> bool:
    lowered = description.lower()
    return any(keyword in lowered for keyword in EMERGENCY_KEYWORDS)


def determine_urgency(description: str) -> Urgency:
    """
    Determine urgency from the wording of a description.

    Emergency keywords override everything; otherwise urgency phrases
    escalate to HIGH and de-escalation phrases lower it to LOW. The word
    "urgent" inside "not urgent" does not count as an urgency phrase.
    """
    if detect_emergency(description):
        return Urgency.EMERGENCY

    lowered = description.lower()
    remainder = lowered
    for phrase in DEESCALATION_PHRASES:
        remainder = remainder.replace(phrase, " ")

    if any(phrase in remainder for phrase in URGENT_PHRASES):
        return Urgency.HIGH
    if remainder != lowered:
        return Urgency.LOW
    return Urgency.MEDIUM


def triage_request(
    description: str,
    rules: RuleBook,
    category: str | None = None,
) -> TriageResult:
    """
    Triage a maintenance request.

    Args:
        description: Free-text description from the tenant or source system
        rules: Vendor rules in effect for this run
        category: Category supplied by an upstream classifier, if any. It is
            trusted as-is, but must be a category the rule book knows.

    Returns:
        TriageResult with category, urgency, matched keywords and emergency flag

    Raises:
        UnknownCategoryError: If ``category`` is not in the rule book

    Example:
        >>> result = triage_request("Gas leak smell near the furnace", default_rule_book())
        >>> result.urgency, result.emergency
        (<Urgency.EMERGENCY: 'emergency'>, True)
    """
    urgency = determine_urgency(description)
    emergency = urgency is Urgency.EMERGENCY

    if category:
        rule = rules.resolve(category)
        return TriageResult(category=rule.category, urgency=urgency, emergency=emergency)

    match = rules.match(description)
    if match is None:
        fallback = rules.resolve(GENERAL_MAINTENANCE)
        return TriageResult(category=fallback.category, urgency=urgency, emergency=emergency)

    return TriageResult(
        category=match.rule.category,
        urgency=urgency,
        matched_keywords=match.keywords,
        emergency=emergency,
    )
