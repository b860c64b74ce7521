"""Automation definition store: models, JSON persistence and service."""

from automation_studio.backend.core.automations.models import (
    AutomationCreate,
    AutomationDefinition,
    AutomationStep,
    AutomationSummary,
    AutomationUpdate,
    ConditionPredicate,
    SendWindow,
    StopConditions,
)
from automation_studio.backend.core.automations.persistence import AutomationPersistence
from automation_studio.backend.core.automations.service import (
    AutomationConflictError,
    AutomationNotFoundError,
    AutomationService,
    DuplicateSlugError,
    InvalidAutomationError,
)

__all__ = [
    "AutomationCreate",
    "AutomationDefinition",
    "AutomationStep",
    "AutomationSummary",
    "AutomationUpdate",
    "ConditionPredicate",
    "SendWindow",
    "StopConditions",
    "AutomationPersistence",
    "AutomationConflictError",
    "AutomationNotFoundError",
    "AutomationService",
    "DuplicateSlugError",
    "InvalidAutomationError",
]
