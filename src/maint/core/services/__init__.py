"""
Service layer.

Services are the interface-agnostic entry points; the CLI and schedulers
call these rather than wiring core modules themselves.
"""

from maint.core.services.automation import (
    AutomationService,
    AutomationServiceError,
    NoRunError,
    run_automation,
)

__all__ = [
    "AutomationService",
    "AutomationServiceError",
    "NoRunError",
    "run_automation",
]
