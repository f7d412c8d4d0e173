"""
Triage: classify a maintenance description into category and urgency.
"""

from .ai import Classification, Classifier, HttpClassifier, classify_category, parse_classification
from .classifier import (
    EMERGENCY_KEYWORDS,
    TriageResult,
    Urgency,
    detect_emergency,
    determine_urgency,
    triage_request,
)

__all__ = [
    "EMERGENCY_KEYWORDS",
    "Classification",
    "Classifier",
    "HttpClassifier",
    "TriageResult",
    "Urgency",
    "classify_category",
    "detect_emergency",
    "determine_urgency",
    "parse_classification",
    "triage_request",
]
