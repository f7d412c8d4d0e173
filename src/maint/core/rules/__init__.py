"""
Vendor rule configuration.

Rules are immutable per run and passed explicitly to the triage classifier
and the cost estimator.
"""

from .defaults import DEFAULT_VENDOR_RULES, default_rule_book
from .models import GENERAL_MAINTENANCE, RuleBook, RuleMatch, VendorRule

__all__ = [
    "DEFAULT_VENDOR_RULES",
    "GENERAL_MAINTENANCE",
    "RuleBook",
    "RuleMatch",
    "VendorRule",
    "default_rule_book",
]
