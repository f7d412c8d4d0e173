"""
maint - Maintenance request triage and automated contractor assignment.

Classifies incoming maintenance requests, picks a contractor, prices the
job and either commits the assignment or routes it to a human.
"""

__version__ = "0.3.0"

# Re-export core models for convenience
from maint.core.config.models import MaintConfig
from maint.core.workorders.models import Contractor, WorkItem, WorkItemStatus

__all__ = ["MaintConfig", "Contractor", "WorkItem", "WorkItemStatus", "__version__"]
