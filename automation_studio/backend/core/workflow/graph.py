"""In-memory workflow graph mutated by named editor commands."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from automation_studio.backend.core.workflow.models import FlowDefinition, FlowEdge, FlowNode, NodeType, Position
from automation_studio.backend.core.workflow.node_catalog import NodeCatalog, generate_node_id

logger = logging.getLogger(__name__)


def initial_flow() -> FlowDefinition:
    """Return the trigger-only layout a new automation starts from."""

    return FlowDefinition(
        nodes=[
            FlowNode(
                id="trigger-1",
                type=NodeType.TRIGGER.value,
                position=Position(x=250, y=50),
                data={"label": "Trigger", "triggerType": ""},
            )
        ],
        edges=[],
    )


class WorkflowGraph:
    """Graph snapshot owned by one editing session.

    Every change goes through a command method (``add_node``, ``connect``,
    ``delete_node``, ...) so edits are plain synchronous state transitions
    that can be replayed in tests.
    """

    def __init__(self, flow: Optional[FlowDefinition] = None, catalog: Optional[NodeCatalog] = None) -> None:
        flow = flow if flow is not None else initial_flow()
        self.catalog = catalog or NodeCatalog()
        self.nodes: List[FlowNode] = [node.model_copy(deep=True) for node in flow.nodes]
        self.edges: List[FlowEdge] = [edge.model_copy(deep=True) for edge in flow.edges]
        self.selected_node_id: Optional[str] = None

    # -- queries ---------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def get_edge(self, edge_id: str) -> Optional[FlowEdge]:
        return next((edge for edge in self.edges if edge.id == edge_id), None)

    @property
    def trigger(self) -> Optional[FlowNode]:
        return next((node for node in self.nodes if node.type == NodeType.TRIGGER.value), None)

    @property
    def selected_node(self) -> Optional[FlowNode]:
        return self.get_node(self.selected_node_id) if self.selected_node_id else None

    def incoming(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def outgoing(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def snapshot(self) -> FlowDefinition:
        """Return a deep copy of the current nodes and edges."""

        return FlowDefinition(
            nodes=[node.model_copy(deep=True) for node in self.nodes],
            edges=[edge.model_copy(deep=True) for edge in self.edges],
        )

    # -- commands --------------------------------------------------------

    def add_node(self, type: str, position: Optional[Position] = None, data: Optional[Dict[str, Any]] = None) -> Optional[FlowNode]:
        """Drop a new node on the canvas; nodes beyond the catalog's instance limit are refused."""

        spec = self.catalog.get_node(type)
        if spec is None:
            raise ValueError(f"Unknown node type '{type}'")
        if spec.max_instances is not None and sum(1 for node in self.nodes if node.type == type) >= spec.max_instances:
            logger.warning("Only %d %s node(s) allowed", spec.max_instances, type)
            return None
        payload = self.catalog.default_data(type)
        payload.update(data or {})
        node = FlowNode(id=generate_node_id(type), type=type, position=position or Position(), data=payload)
        self.nodes.append(node)
        return node

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> Optional[FlowEdge]:
        """Add an edge between two existing nodes; duplicates are not added twice."""

        if self.get_node(source) is None or self.get_node(target) is None:
            raise KeyError(f"Cannot connect '{source}' -> '{target}': unknown node")
        if source == target:
            logger.warning("Refusing self-connection on node %s", source)
            return None
        for edge in self.edges:
            if (edge.source, edge.target, edge.source_handle, edge.target_handle) == (source, target, source_handle, target_handle):
                return edge
        edge = FlowEdge(
            id=self._edge_id(source, target),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self.edges.append(edge)
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        before = len(self.edges)
        self.edges = [edge for edge in self.edges if edge.id != edge_id]
        return len(self.edges) != before

    def delete_node(self, node_id: str) -> bool:
        """Remove a node, reconnecting every predecessor to every successor.

        A node with ``n`` incoming and ``m`` outgoing edges is replaced by
        ``n * m`` edges, so no path through it is lost. The trigger node cannot
        be deleted; the call is then a no-op returning False.
        """

        node = self.get_node(node_id)
        if node is None:
            return False
        if node.type == NodeType.TRIGGER.value:
            logger.warning("Cannot delete the trigger node")
            return False

        incoming = self.incoming(node_id)
        outgoing = self.outgoing(node_id)
        remaining = [edge for edge in self.edges if edge.source != node_id and edge.target != node_id]

        taken = {edge.id for edge in remaining}
        reconnections: List[FlowEdge] = []
        for inbound in incoming:
            for outbound in outgoing:
                edge_id = self._edge_id(inbound.source, outbound.target, taken)
                taken.add(edge_id)
                reconnections.append(
                    FlowEdge(
                        id=edge_id,
                        source=inbound.source,
                        target=outbound.target,
                        source_handle=inbound.source_handle,
                        target_handle=outbound.target_handle,
                    )
                )

        self.nodes = [existing for existing in self.nodes if existing.id != node_id]
        self.edges = remaining + reconnections
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        logger.debug("Deleted node %s | reconnected=%d", node_id, len(reconnections))
        return True

    def update_node_data(self, node_id: str, data: Dict[str, Any]) -> FlowNode:
        """Merge ``data`` into a node's payload."""

        node = self.get_node(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        node.data = {**node.data, **data}
        return node

    def move_node(self, node_id: str, position: Position) -> FlowNode:
        node = self.get_node(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        node.position = position
        return node

    def select_node(self, node_id: Optional[str]) -> Optional[FlowNode]:
        """Select a node (or clear the selection with ``None``)."""

        if node_id is not None and self.get_node(node_id) is None:
            raise KeyError(f"Node '{node_id}' not found")
        self.selected_node_id = node_id
        for node in self.nodes:
            node.selected = node.id == node_id
        return self.selected_node

    def _edge_id(self, source: str, target: str, taken: Optional[set] = None) -> str:
        taken = taken if taken is not None else {edge.id for edge in self.edges}
        base = f"edge-{source}-{target}"
        candidate = base
        suffix = 1
        while candidate in taken:
            suffix += 1
            candidate = f"{base}-{suffix}"
        return candidate


__all__ = ["WorkflowGraph", "initial_flow"]
