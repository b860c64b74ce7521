"""Editing session: one open automation, its graph, settings and save flow."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from automation_studio.backend.core.automations.models import (
    AutomationCreate,
    AutomationDefinition,
    AutomationUpdate,
    SendWindow,
    StopConditions,
)
from automation_studio.backend.core.editor.gateway import AutomationGatewayBase, GatewayError, TemplateRef
from automation_studio.backend.core.enrollments.models import EnrollmentCounts, NodeEnrollment
from automation_studio.backend.core.enrollments.sources import EnrollmentCountsSource
from automation_studio.backend.core.enrollments.tracker import EnrollmentPoller, apply_enrollment_badges, map_counts_to_nodes
from automation_studio.backend.core.workflow.compiler import (
    AutomationMetadata,
    CompilationError,
    automation_to_flow,
    flow_to_automation,
)
from automation_studio.backend.core.workflow.graph import WorkflowGraph
from automation_studio.backend.core.workflow.models import FlowDefinition, FlowEdge, FlowNode, Position
from automation_studio.backend.core.workflow.node_catalog import NodeCatalog
from automation_studio.backend.core.workflow.validator import validate
from automation_studio.backend.settings import get_settings

logger = logging.getLogger(__name__)

_SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9-]")


def slugify(value: str) -> str:
    """Lowercase ``value`` and replace anything outside ``[a-z0-9-]`` by a dash."""

    return _SLUG_INVALID_CHARS.sub("-", value.lower())


def _default_metadata() -> AutomationMetadata:
    settings = get_settings()
    return AutomationMetadata(
        send_window=SendWindow(
            start=settings.default_send_window_start,
            end=settings.default_send_window_end,
            timezone=settings.default_timezone,
        )
    )


class SaveStatus(str, Enum):
    SAVED = "saved"
    IGNORED = "ignored"
    MISSING_METADATA = "missing_metadata"
    INVALID = "invalid"
    FAILED = "failed"


class SaveOutcome(BaseModel):
    """Result of one save attempt."""

    status: SaveStatus
    errors: List[str] = Field(default_factory=list)
    automation: Optional[AutomationDefinition] = None

    @property
    def ok(self) -> bool:
        return self.status == SaveStatus.SAVED


class EditorSession:
    """State behind one open editor.

    Canvas edits go through the wrapped :class:`WorkflowGraph`; settings live
    in an :class:`AutomationMetadata`. ``save`` validates, compiles and writes
    through the gateway. A failed save keeps the graph untouched and reports
    the problem in ``error`` so the user can retry.
    """

    def __init__(
        self,
        gateway: AutomationGatewayBase,
        automation_id: Optional[str] = None,
        catalog: Optional[NodeCatalog] = None,
    ) -> None:
        self.gateway = gateway
        self.catalog = catalog or NodeCatalog()
        self.automation_id = automation_id
        self.graph = WorkflowGraph(catalog=self.catalog)
        self.settings = _default_metadata()
        self.templates: List[TemplateRef] = []
        self.saving = False
        self.show_settings = False
        self.is_dirty = False
        self.error: Optional[str] = None
        self.validation_errors: List[str] = []
        self.enrollment_badges: Dict[str, NodeEnrollment] = {}
        self._poller: Optional[EnrollmentPoller] = None

    @property
    def is_new(self) -> bool:
        return self.automation_id is None

    @property
    def nodes(self) -> List[FlowNode]:
        return self.graph.nodes

    @property
    def edges(self) -> List[FlowEdge]:
        return self.graph.edges

    # -- loading ---------------------------------------------------------

    async def load(self, automation_id: str) -> AutomationDefinition:
        """Open a stored automation, preferring its persisted layout."""

        definition = await self.gateway.get_automation(automation_id)
        if definition.flow_definition is not None and not definition.flow_definition.is_empty:
            flow = definition.flow_definition
        else:
            logger.info("No stored layout, rebuilding from steps | automation_id=%s", automation_id)
            flow = automation_to_flow(definition)

        self.automation_id = definition.id or automation_id
        self.graph = WorkflowGraph(flow, catalog=self.catalog)
        self.settings = AutomationMetadata(
            name=definition.name,
            slug=definition.slug,
            description=definition.description,
            send_window=definition.send_window.model_copy(),
            send_on_weekends=definition.send_on_weekends,
            stop_conditions=definition.global_stop_conditions.model_copy(),
            is_active=definition.is_active,
        )
        self.is_dirty = False
        self.error = None
        self.validation_errors = []
        return definition

    async def load_templates(self) -> List[TemplateRef]:
        """Fetch the template picker options; an unreachable store yields none."""

        try:
            self.templates = await self.gateway.list_templates()
        except GatewayError as exc:
            logger.warning("Failed to load email templates: %s", exc)
            self.templates = []
        return self.templates

    # -- canvas commands -------------------------------------------------

    def add_node(self, type: str, position: Optional[Position] = None, data: Optional[Dict[str, Any]] = None) -> Optional[FlowNode]:
        node = self.graph.add_node(type, position=position, data=data)
        if node is not None:
            self.is_dirty = True
        return node

    def connect(self, source: str, target: str, source_handle: Optional[str] = None, target_handle: Optional[str] = None) -> Optional[FlowEdge]:
        edge = self.graph.connect(source, target, source_handle=source_handle, target_handle=target_handle)
        if edge is not None:
            self.is_dirty = True
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        removed = self.graph.delete_edge(edge_id)
        self.is_dirty = self.is_dirty or removed
        return removed

    def delete_node(self, node_id: str) -> bool:
        removed = self.graph.delete_node(node_id)
        self.is_dirty = self.is_dirty or removed
        return removed

    def update_node_data(self, node_id: str, data: Dict[str, Any]) -> FlowNode:
        node = self.graph.update_node_data(node_id, data)
        self.is_dirty = True
        return node

    def move_node(self, node_id: str, position: Position) -> FlowNode:
        node = self.graph.move_node(node_id, position)
        self.is_dirty = True
        return node

    def select_node(self, node_id: Optional[str]) -> Optional[FlowNode]:
        return self.graph.select_node(node_id)

    def update_settings(self, **changes: Any) -> AutomationMetadata:
        """Merge settings changes; a new slug is normalized with :func:`slugify`."""

        if "slug" in changes and changes["slug"] is not None:
            changes["slug"] = slugify(changes["slug"])
        if isinstance(changes.get("send_window"), dict):
            changes["send_window"] = SendWindow(**{**self.settings.send_window.model_dump(), **changes["send_window"]})
        if isinstance(changes.get("stop_conditions"), dict):
            changes["stop_conditions"] = StopConditions(**{**self.settings.stop_conditions.model_dump(), **changes["stop_conditions"]})
        self.settings = self.settings.model_copy(update=changes)
        self.is_dirty = True
        return self.settings

    # -- validation and save ----------------------------------------------

    def validate(self) -> List[str]:
        """Validate the current graph with the strictness the save would use."""

        self.validation_errors = validate(self.graph.nodes, self.graph.edges, strict=self.settings.is_active)
        return self.validation_errors

    async def save(self) -> SaveOutcome:
        if self.saving:
            logger.debug("Save already in flight, ignoring")
            return SaveOutcome(status=SaveStatus.IGNORED)

        if not self.settings.name.strip() or not self.settings.slug:
            self.show_settings = True
            message = "Please fill in the automation name and slug"
            self.error = message
            return SaveOutcome(status=SaveStatus.MISSING_METADATA, errors=[message])

        errors = self.validate()
        if errors:
            return SaveOutcome(status=SaveStatus.INVALID, errors=errors)

        self.saving = True
        self.error = None
        try:
            compiled = flow_to_automation(self.graph.nodes, self.graph.edges, self.settings)
            flow = FlowDefinition.model_validate(self.graph.snapshot().to_persisted())
            fields = compiled.automation.model_dump(exclude={"id", "created_at", "updated_at", "flow_definition", "steps"})
            steps = [step.model_copy() for step in compiled.steps]
            if self.is_new:
                saved = await self.gateway.create_automation(AutomationCreate(**fields, steps=steps, flow_definition=flow))
                self.automation_id = saved.id
            else:
                saved = await self.gateway.update_automation(
                    self.automation_id, AutomationUpdate(**fields, steps=steps, flow_definition=flow)
                )
        except (CompilationError, GatewayError) as exc:
            logger.warning("Failed to save automation | slug=%s: %s", self.settings.slug, exc)
            self.error = str(exc)
            return SaveOutcome(status=SaveStatus.FAILED, errors=[str(exc)])
        finally:
            self.saving = False

        self.is_dirty = False
        self.validation_errors = []
        logger.info("Automation saved | id=%s steps=%d", self.automation_id, len(compiled.steps))
        return SaveOutcome(status=SaveStatus.SAVED, automation=saved)

    # -- enrollment badges -------------------------------------------------

    def apply_enrollment_counts(self, counts: EnrollmentCounts) -> Dict[str, NodeEnrollment]:
        """Recompute node badges from fresh counts against the current graph."""

        self.enrollment_badges = map_counts_to_nodes(self.graph.nodes, self.graph.edges, counts)
        apply_enrollment_badges(self.graph.nodes, self.enrollment_badges)
        return self.enrollment_badges

    def start_enrollment_polling(self, source: EnrollmentCountsSource, interval: Optional[float] = None) -> Optional[EnrollmentPoller]:
        """Start refreshing badges; new automations have nothing to poll."""

        if self.is_new:
            return None
        if interval is None:
            interval = get_settings().enrollment_poll_interval_sec
        if self._poller is None or self._poller.automation_id != self.automation_id:
            self._poller = EnrollmentPoller(source, self.automation_id, self.apply_enrollment_counts, interval=interval)
        self._poller.start()
        return self._poller

    async def close(self) -> None:
        if self._poller is not None:
            await self._poller.stop()
            self._poller = None


__all__ = ["EditorSession", "SaveOutcome", "SaveStatus", "slugify"]
