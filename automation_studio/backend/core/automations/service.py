"""Service managing stored automation definitions."""

from __future__ import annotations

import logging
import re
import uuid
from typing import List, Optional

from automation_studio.backend.core.automations.models import (
    SLUG_PATTERN,
    AutomationCreate,
    AutomationDefinition,
    AutomationStep,
    AutomationSummary,
    AutomationUpdate,
)
from automation_studio.backend.core.automations.persistence import AutomationPersistence
from automation_studio.backend.core.enrollments.aggregation import DEFAULT_SAMPLE_SIZE, aggregate_enrollment_counts
from automation_studio.backend.core.enrollments.models import EnrollmentCounts
from automation_studio.backend.core.enrollments.persistence import EnrollmentPersistence
from automation_studio.backend.core.utils.datetime import utc_now
from automation_studio.backend.core.workflow.validator import validate

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(SLUG_PATTERN)


class AutomationNotFoundError(KeyError):
    """Raised when an automation id is unknown."""


class DuplicateSlugError(ValueError):
    """Raised when a slug is already used by another automation."""


class AutomationConflictError(RuntimeError):
    """Raised when an operation conflicts with live enrollment state."""


class InvalidAutomationError(ValueError):
    """Raised when a definition fails the store's rules; carries every message."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class AutomationService:
    """Create, update and read automation definitions together with their layout."""

    def __init__(
        self,
        persistence: AutomationPersistence,
        enrollments: EnrollmentPersistence,
        trigger_types: Optional[List[str]] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ) -> None:
        self.persistence = persistence
        self.enrollments = enrollments
        self.trigger_types = set(trigger_types) if trigger_types else None
        self.sample_size = sample_size

    def create(self, request: AutomationCreate) -> AutomationDefinition:
        """Validate and persist a new automation."""

        definition = AutomationDefinition(**request.model_dump())
        self._check(definition)
        if self.persistence.find_by_slug(definition.slug) is not None:
            raise DuplicateSlugError("Slug already exists")

        now = utc_now()
        definition.id = str(uuid.uuid4())
        definition.created_at = now
        definition.updated_at = now
        definition.steps = definition.ordered_steps()
        self.persistence.save(definition)
        logger.info("Automation created | id=%s slug=%s steps=%d", definition.id, definition.slug, len(definition.steps))
        return definition

    def update(self, automation_id: str, request: AutomationUpdate) -> AutomationDefinition:
        """Apply a partial update; provided steps replace the stored ones."""

        current = self.get(automation_id)
        changes = request.changes()
        definition = AutomationDefinition(**{**current.model_dump(), **changes})
        self._check(definition)

        if "slug" in changes:
            existing = self.persistence.find_by_slug(definition.slug)
            if existing is not None and existing.id != automation_id:
                raise DuplicateSlugError("Slug already exists")

        definition.id = automation_id
        definition.created_at = current.created_at
        definition.updated_at = utc_now()
        definition.steps = definition.ordered_steps()
        self.persistence.save(definition)
        logger.info("Automation updated | id=%s fields=%s", automation_id, sorted(changes))
        return definition

    def get(self, automation_id: str) -> AutomationDefinition:
        definition = self.persistence.load(automation_id)
        if definition is None:
            raise AutomationNotFoundError(automation_id)
        return definition

    def list_summaries(self) -> List[AutomationSummary]:
        """List automations with their step and enrollment counts."""

        return [
            AutomationSummary(
                id=definition.id or "",
                name=definition.name,
                slug=definition.slug,
                description=definition.description,
                trigger_type=definition.trigger_type,
                is_active=definition.is_active,
                steps_count=len(definition.steps),
                enrollments_count=self.enrollments.count_all(definition.id or ""),
                created_at=definition.created_at,
            )
            for definition in self.persistence.list_all()
        ]

    def delete(self, automation_id: str) -> None:
        """Delete an automation; refused while contacts are still active in it."""

        self.get(automation_id)
        active = self.enrollments.count_active(automation_id)
        if active > 0:
            raise AutomationConflictError(f"Cannot delete automation with {active} active enrollments")
        self.persistence.delete(automation_id)
        self.enrollments.delete_enrollments(automation_id)
        logger.info("Automation deleted | id=%s", automation_id)

    def enrollment_counts(self, automation_id: str) -> EnrollmentCounts:
        """Return per-step waiting counts for the enrollment badges."""

        definition = self.get(automation_id)
        enrollments = self.enrollments.load_enrollments(automation_id)
        return aggregate_enrollment_counts(enrollments, definition.ordered_steps(), sample_size=self.sample_size)

    def _check(self, definition: AutomationDefinition) -> None:
        errors: List[str] = []
        if not definition.name.strip():
            errors.append("Name is required")
        if not definition.slug:
            errors.append("Slug is required")
        elif not _SLUG_RE.match(definition.slug):
            errors.append("Slug may only contain lowercase letters, digits and dashes")
        if not definition.trigger_type:
            errors.append("Trigger type is required")
        elif self.trigger_types is not None and definition.trigger_type not in self.trigger_types:
            errors.append(f"Unknown trigger type '{definition.trigger_type}'")
        errors.extend(self._step_errors(definition.steps))
        if definition.is_active and definition.flow_definition is not None and not definition.flow_definition.is_empty:
            errors.extend(validate(definition.flow_definition.nodes, definition.flow_definition.edges, strict=True))
        if errors:
            raise InvalidAutomationError(errors)

    def _step_errors(self, steps: List[AutomationStep]) -> List[str]:
        errors: List[str] = []
        if any(step.step_type == "email" and not step.template_slug for step in steps):
            errors.append("All email steps must have a template selected")
        orders = [step.step_order for step in steps]
        if len(orders) != len(set(orders)):
            errors.append("Step orders must be unique")
        known = set(orders)
        for step in steps:
            missing = [order for order in step.next_step_orders if order not in known]
            if missing:
                errors.append(f"Step {step.step_order} references unknown next steps {missing}")
        return errors


__all__ = [
    "AutomationService",
    "AutomationNotFoundError",
    "DuplicateSlugError",
    "AutomationConflictError",
    "InvalidAutomationError",
]
