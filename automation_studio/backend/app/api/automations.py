"""Automation definition endpoints: CRUD, validation, compilation and enrollment counts."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from automation_studio.backend import settings as settings_module
from automation_studio.backend.core.automations import (
    AutomationConflictError,
    AutomationCreate,
    AutomationDefinition,
    AutomationNotFoundError,
    AutomationPersistence,
    AutomationService,
    AutomationStep,
    AutomationSummary,
    AutomationUpdate,
    DuplicateSlugError,
    InvalidAutomationError,
)
from automation_studio.backend.core.config_loader import StudioConfigLoader
from automation_studio.backend.core.enrollments import EnrollmentCounts, EnrollmentPersistence
from automation_studio.backend.core.workflow import FlowDefinition, FlowEdge, FlowNode, ValidationIssue, WorkflowValidator
from automation_studio.backend.core.workflow.compiler import AutomationMetadata, CompilationError, flow_to_automation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/automations", tags=["automations"])


def _trigger_vocabulary(loader: StudioConfigLoader) -> Optional[List[str]]:
    try:
        return [item["value"] for item in loader.trigger_types()]
    except (FileNotFoundError, ValueError) as exc:
        logger.warning("Trigger vocabulary unavailable, accepting any trigger type: %s", exc)
        return None


def build_service(settings: settings_module.StudioSettings) -> AutomationService:
    """Wire the automation service against the configured artifact folders."""

    return AutomationService(
        persistence=AutomationPersistence(settings.automations_dir),
        enrollments=EnrollmentPersistence(settings.enrollments_dir),
        trigger_types=_trigger_vocabulary(StudioConfigLoader(settings.config_root)),
        sample_size=settings.enrollment_sample_size,
    )


_settings = settings_module.get_settings()
_service = build_service(_settings)
_validator = WorkflowValidator()


class FlowValidationRequest(BaseModel):
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)
    strict: bool = True


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[str]
    issues: List[ValidationIssue]


class CompileRequest(BaseModel):
    flow: FlowDefinition
    metadata: AutomationMetadata = Field(default_factory=AutomationMetadata)


class CompileResponse(BaseModel):
    automation: AutomationDefinition
    steps: List[AutomationStep]


class DeleteResponse(BaseModel):
    id: str
    deleted: bool = True


@router.get("", response_model=List[AutomationSummary])
def list_automations() -> List[AutomationSummary]:
    return _service.list_summaries()


@router.post("", response_model=AutomationDefinition, status_code=201)
def create_automation(request: AutomationCreate) -> AutomationDefinition:
    """Store a new automation with its steps and layout."""

    try:
        return _service.create(request)
    except (DuplicateSlugError, InvalidAutomationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/validate", response_model=ValidationResponse)
def validate_flow(payload: FlowValidationRequest) -> ValidationResponse:
    """Validate a workflow graph; ``strict`` applies the pre-activation checks."""

    issues = _validator.validate_graph(payload.nodes, payload.edges, strict=payload.strict)
    return ValidationResponse(valid=not issues, errors=[issue.message for issue in issues], issues=issues)


@router.post("/compile", response_model=CompileResponse)
def compile_flow(payload: CompileRequest) -> CompileResponse:
    """Compile a workflow graph into a definition without storing it."""

    try:
        compiled = flow_to_automation(payload.flow.nodes, payload.flow.edges, payload.metadata)
    except CompilationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CompileResponse(automation=compiled.automation, steps=compiled.steps)


@router.get("/{automation_id}", response_model=AutomationDefinition)
def get_automation(automation_id: str) -> AutomationDefinition:
    try:
        definition = _service.get(automation_id)
    except AutomationNotFoundError:
        raise HTTPException(status_code=404, detail="Automation not found")
    definition.steps = definition.ordered_steps()
    return definition


@router.patch("/{automation_id}", response_model=AutomationDefinition)
def update_automation(automation_id: str, request: AutomationUpdate) -> AutomationDefinition:
    """Apply a partial update; provided steps replace the stored steps."""

    try:
        return _service.update(automation_id, request)
    except AutomationNotFoundError:
        raise HTTPException(status_code=404, detail="Automation not found")
    except (DuplicateSlugError, InvalidAutomationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{automation_id}", response_model=DeleteResponse)
def delete_automation(automation_id: str) -> DeleteResponse:
    try:
        _service.delete(automation_id)
    except AutomationNotFoundError:
        raise HTTPException(status_code=404, detail="Automation not found")
    except AutomationConflictError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return DeleteResponse(id=automation_id)


@router.get("/{automation_id}/enrollment-counts", response_model=EnrollmentCounts)
def get_enrollment_counts(automation_id: str) -> EnrollmentCounts:
    """Return how many active contacts wait at each step."""

    try:
        return _service.enrollment_counts(automation_id)
    except AutomationNotFoundError:
        raise HTTPException(status_code=404, detail="Automation not found")


__all__ = ["router", "build_service"]
