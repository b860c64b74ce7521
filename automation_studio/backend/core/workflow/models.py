"""Workflow graph domain models."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Node kinds available on the workflow canvas."""

    TRIGGER = "trigger"
    EMAIL = "email"
    DELAY = "delay"
    CONDITION = "condition"
    END = "end"


class DelayFrom(str, Enum):
    """Reference point a delay is measured from."""

    PREVIOUS_STEP = "previous_step"
    TRIGGER = "trigger"


# Fields the editor keeps on nodes and edges that never reach the store.
INTERNAL_NODE_FIELDS = {"selected", "dragging"}
INTERNAL_EDGE_FIELDS = {"selected", "style"}
INTERNAL_DATA_KEYS = {"enrollmentCount", "enrollmentLabel", "enrollmentContacts"}


class Position(BaseModel):
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


class FlowNode(BaseModel):
    """A node instance within a workflow graph."""

    id: str
    type: str
    position: Position = Field(default_factory=Position)
    data: dict[str, Any] = Field(default_factory=dict)
    selected: bool = False
    dragging: bool = False

    def to_persisted(self) -> dict[str, Any]:
        """Return the node as stored in ``flow_definition`` (internal fields stripped)."""

        payload = self.model_dump(exclude=INTERNAL_NODE_FIELDS)
        payload["data"] = {key: value for key, value in self.data.items() if key not in INTERNAL_DATA_KEYS}
        return payload


class FlowEdge(BaseModel):
    """Directional edge connecting two workflow nodes."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    type: str = "smoothstep"
    animated: bool = True
    selected: bool = False
    style: Optional[dict[str, Any]] = None

    def to_persisted(self) -> dict[str, Any]:
        """Return the edge as stored in ``flow_definition`` (internal fields stripped)."""

        return self.model_dump(by_alias=True, exclude=INTERNAL_EDGE_FIELDS)


class FlowDefinition(BaseModel):
    """Verbatim canvas layout: nodes and edges as drawn."""

    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    def to_persisted(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_persisted() for node in self.nodes],
            "edges": [edge.to_persisted() for edge in self.edges],
        }

    @property
    def is_empty(self) -> bool:
        return not self.nodes


class ValidationIssue(BaseModel):
    """Represents a validation issue detected in a workflow graph."""

    code: str
    message: str
    node_id: Optional[str] = None


__all__ = [
    "NodeType",
    "DelayFrom",
    "Position",
    "FlowNode",
    "FlowEdge",
    "FlowDefinition",
    "ValidationIssue",
    "INTERNAL_NODE_FIELDS",
    "INTERNAL_EDGE_FIELDS",
    "INTERNAL_DATA_KEYS",
]
