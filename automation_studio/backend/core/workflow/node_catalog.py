"""Catalog of available workflow canvas nodes."""

from __future__ import annotations

import copy
import time
import uuid
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from automation_studio.backend.core.workflow.models import NodeType

NodeCategory = Literal["entry", "action", "timing", "logic", "terminal"]


class NodeSpec(BaseModel):
    """Node specification describing an available node type."""

    type: NodeType
    category: NodeCategory
    description: str
    default_data: dict[str, Any] = Field(default_factory=dict)
    required_fields: List[str] = Field(default_factory=list)
    accepts_incoming: bool = True
    max_instances: Optional[int] = None
    payload_error_code: str = "incomplete_node"
    payload_error: str = 'Node "{id}" ({type}) is missing {fields}'

    def missing_fields(self, data: dict[str, Any]) -> List[str]:
        """Return the required payload keys that are absent or blank in ``data``."""

        return [name for name in self.required_fields if data.get(name) is None or not str(data[name]).strip()]


class NodeCatalog:
    """Holds the node specifications offered by the automation toolbox."""

    def __init__(self) -> None:
        self._nodes = self._load_nodes()

    def list_nodes(self) -> List[NodeSpec]:
        """Return all available node specifications."""

        return list(self._nodes.values())

    def get_node(self, type: str) -> Optional[NodeSpec]:
        """Return a node specification by type."""

        try:
            return self._nodes.get(NodeType(type))
        except ValueError:
            return None

    def default_data(self, type: str) -> dict[str, Any]:
        """Return a fresh copy of the default payload for a node type."""

        spec = self.get_node(type)
        if spec is None:
            return {}
        return copy.deepcopy(spec.default_data)

    def _load_nodes(self) -> dict[NodeType, NodeSpec]:
        nodes: dict[NodeType, NodeSpec] = {}

        def add(spec: NodeSpec) -> None:
            nodes[spec.type] = spec

        add(
            NodeSpec(
                type=NodeType.TRIGGER,
                category="entry",
                description="Entry point; defines when contacts are enrolled.",
                default_data={"label": "Trigger", "triggerType": ""},
                required_fields=["triggerType"],
                accepts_incoming=False,
                max_instances=1,
                payload_error_code="missing_trigger_type",
                payload_error="Trigger must have a trigger type selected",
            )
        )
        add(
            NodeSpec(
                type=NodeType.EMAIL,
                category="action",
                description="Sends an email rendered from a template.",
                default_data={"templateSlug": "", "subjectOverride": ""},
                required_fields=["templateSlug"],
                payload_error_code="missing_template",
                payload_error='Email node "{id}" must have a template selected',
            )
        )
        add(
            NodeSpec(
                type=NodeType.DELAY,
                category="timing",
                description="Waits before the next email is sent.",
                default_data={"delayDays": 1, "delayHours": 0, "delayFrom": "previous_step"},
            )
        )
        add(
            NodeSpec(
                type=NodeType.CONDITION,
                category="logic",
                description="Branches on a per-contact predicate.",
                default_data={"field": "", "operator": "", "value": "", "conditionLabel": ""},
                required_fields=["field", "operator"],
                payload_error_code="incomplete_condition",
                payload_error='Condition node "{id}" must have a field and operator',
            )
        )
        add(
            NodeSpec(
                type=NodeType.END,
                category="terminal",
                description="Marks the end of a sequence.",
                default_data={"reason": ""},
            )
        )

        return nodes


def generate_node_id(type: str) -> str:
    """Return a unique node id prefixed with its type."""

    return f"{type}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


__all__ = ["NodeCatalog", "NodeSpec", "NodeCategory", "generate_node_id"]
