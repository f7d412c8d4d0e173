"""
Vendor rule models.

A VendorRule describes one maintenance category: the keywords used for
fallback classification, the expected cost range, and the markup applied
to quotes. A RuleBook is the ordered, immutable set of rules in effect for
a run; updating a rule produces a new RuleBook instead of changing the
shared one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, model_validator

from maint.core.errors import UnknownCategoryError

GENERAL_MAINTENANCE = "General Maintenance"


class VendorRule(BaseModel):
    """
    Pricing and keyword configuration for one category.

    Example:
        >>> rule = VendorRule(
        ...     category="Plumbing",
        ...     keywords=["leak", "pipe"],
        ...     cost_min=150,
        ...     cost_max=800,
        ...     markup_percent=15,
        ... )
        >>> rule.midpoint
        475.0
    """

    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1, description="Category name (lookup key)")
    keywords: tuple[str, ...] = Field(
        default_factory=tuple, description="Keywords for fallback classification"
    )
    cost_min: float = Field(..., ge=0.0, description="Low end of the cost range")
    cost_max: float = Field(..., ge=0.0, description="High end of the cost range")
    markup_percent: float = Field(default=15.0, ge=0.0, description="Markup percentage")
    default_contractor_id: str | None = Field(default=None)
    emergency_contractor_id: str | None = Field(default=None)

    @model_validator(mode="after")
    def check_range(self) -> VendorRule:
        if self.cost_min > self.cost_max:
            raise ValueError(
                f"cost_min ({self.cost_min}) must not exceed cost_max ({self.cost_max})"
            )
        return self

    @property
    def midpoint(self) -> float:
        return (self.cost_min + self.cost_max) / 2

    def matched_keywords(self, text: str) -> list[str]:
        """Return every keyword found in ``text`` (case-insensitive substring match)."""
        lowered = text.lower()
        return [kw for kw in self.keywords if kw.lower() in lowered]


@dataclass(frozen=True)
class RuleMatch:
    """First rule whose keywords matched a description."""

    rule: VendorRule
    keywords: tuple[str, ...] = field(default_factory=tuple)


class RuleBook:
    """
    Immutable, ordered collection of vendor rules.

    Rule order is the priority order used for keyword classification.
    Categories are validated lookup keys: ``resolve`` fails fast on anything
    the book does not know.
    """

    def __init__(self, rules: Iterable[VendorRule]) -> None:
        ordered = tuple(rules)
        seen: set[str] = set()
        for rule in ordered:
            key = rule.category.lower()
            if key in seen:
                raise ValueError(f"Duplicate vendor rule for category '{rule.category}'")
            seen.add(key)
        self._rules = ordered
        self._by_key = {rule.category.lower(): rule for rule in ordered}

    def __iter__(self) -> Iterator[VendorRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, category: object) -> bool:
        return isinstance(category, str) and category.lower() in self._by_key

    def __repr__(self) -> str:
        return f"RuleBook({list(self.categories)!r})"

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(rule.category for rule in self._rules)

    def get(self, category: str) -> VendorRule | None:
        return self._by_key.get(category.lower())

    def resolve(self, category: str) -> VendorRule:
        """
        Look up the rule for a category.

        Raises:
            UnknownCategoryError: If the category has no rule
        """
        rule = self.get(category.strip())
        if rule is None:
            raise UnknownCategoryError(category, list(self.categories))
        return rule

    def match(self, text: str) -> RuleMatch | None:
        """Return the first rule (in priority order) with any keyword in ``text``."""
        for rule in self._rules:
            keywords = rule.matched_keywords(text)
            if keywords:
                return RuleMatch(rule=rule, keywords=tuple(keywords))
        return None

    def with_rule(self, rule: VendorRule) -> RuleBook:
        """Return a new RuleBook with ``rule`` replacing the same category, or appended."""
        key = rule.category.lower()
        if key in self._by_key:
            return RuleBook(rule if r.category.lower() == key else r for r in self._rules)
        return RuleBook((*self._rules, rule))
