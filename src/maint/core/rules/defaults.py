"""
Built-in vendor rule table.

Order matters: keyword classification takes the first category whose
keywords match.
"""

from .models import GENERAL_MAINTENANCE, RuleBook, VendorRule

DEFAULT_VENDOR_RULES: tuple[VendorRule, ...] = (
    VendorRule(
        category="Plumbing",
        keywords=("leak", "water", "pipe", "drain", "clog", "toilet", "sink", "faucet", "shower"),
        cost_min=150,
        cost_max=800,
        markup_percent=15,
    ),
    VendorRule(
        category="HVAC",
        keywords=(
            "heat",
            "ac",
            "air conditioning",
            "furnace",
            "thermostat",
            "hvac",
            "cooling",
            "cold",
        ),
        cost_min=200,
        cost_max=1500,
        markup_percent=15,
    ),
    VendorRule(
        category="Electrical",
        keywords=("electric", "outlet", "light", "power", "breaker", "wiring", "switch"),
        cost_min=100,
        cost_max=600,
        markup_percent=15,
    ),
    VendorRule(
        category="Appliance",
        keywords=("refrigerator", "stove", "oven", "dishwasher", "washer", "dryer", "microwave"),
        cost_min=100,
        cost_max=500,
        markup_percent=12,
    ),
    VendorRule(
        category=GENERAL_MAINTENANCE,
        keywords=("door", "window", "lock", "paint", "wall", "floor", "ceiling", "drywall"),
        cost_min=75,
        cost_max=400,
        markup_percent=18,
    ),
    VendorRule(
        category="Pest Control",
        keywords=("pest", "bug", "rodent", "mouse", "rat", "roach", "ant", "insect"),
        cost_min=100,
        cost_max=300,
        markup_percent=10,
    ),
    VendorRule(
        category="Locksmith",
        keywords=("locked out", "key", "lock broken", "locksmith", "can't get in"),
        cost_min=75,
        cost_max=200,
        markup_percent=20,
    ),
)


def default_rule_book() -> RuleBook:
    """Return a RuleBook holding the built-in rules."""
    return RuleBook(DEFAULT_VENDOR_RULES)
