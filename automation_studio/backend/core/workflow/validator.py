"""Structural validation of workflow graphs."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Set

from automation_studio.backend.core.workflow.models import FlowEdge, FlowNode, NodeType, ValidationIssue
from automation_studio.backend.core.workflow.node_catalog import NodeCatalog
from automation_studio.backend.core.workflow.ordering import plan_step_order


class WorkflowValidator:
    """Checks workflow graphs before they are saved.

    Structural rules (one trigger, no edges into it, no cycles, edges between
    existing nodes) always apply. ``strict`` adds the rules needed before an
    automation may be activated: every node reachable from the trigger and
    every node carrying the payload it needs to run. Instance limits, incoming
    edge rules and required payload keys are read from the :class:`NodeCatalog`.
    """

    def __init__(self, catalog: Optional[NodeCatalog] = None) -> None:
        self.catalog = catalog or NodeCatalog()

    def validate_graph(self, nodes: List[FlowNode], edges: List[FlowEdge], strict: bool = False) -> List[ValidationIssue]:
        """Return every issue found; an empty list means the graph is valid."""

        issues: List[ValidationIssue] = []
        node_ids: Set[str] = set()
        for node in nodes:
            if node.id in node_ids:
                issues.append(ValidationIssue(code="duplicate_node", message=f"Duplicate node id '{node.id}'", node_id=node.id))
            node_ids.add(node.id)
            if self.catalog.get_node(node.type) is None:
                issues.append(ValidationIssue(code="unknown_node_type", message=f"Unknown node type '{node.type}'", node_id=node.id))

        for edge in edges:
            if edge.source not in node_ids:
                issues.append(ValidationIssue(code="edge_source_missing", message=f"Edge '{edge.id}' references missing source '{edge.source}'"))
            if edge.target not in node_ids:
                issues.append(ValidationIssue(code="edge_target_missing", message=f"Edge '{edge.id}' references missing target '{edge.target}'"))

        triggers = [node for node in nodes if node.type == NodeType.TRIGGER.value]
        if not triggers:
            issues.append(ValidationIssue(code="missing_trigger", message="Automation must have a trigger node"))
        issues.extend(self._catalog_issues(nodes, edges))

        if self._has_cycle(nodes, edges):
            issues.append(ValidationIssue(code="cycle_detected", message="Workflow contains a cycle; contacts would loop forever"))

        if strict:
            issues.extend(self._strict_issues(nodes, edges, triggers))

        return issues

    def _strict_issues(self, nodes: List[FlowNode], edges: List[FlowEdge], triggers: List[FlowNode]) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []

        if len(triggers) == 1:
            plan = plan_step_order(nodes, edges)
            for node in nodes:
                if node.type != NodeType.TRIGGER.value and not plan.is_reachable(node.id):
                    issues.append(
                        ValidationIssue(
                            code="unreachable_node",
                            message=f'Node "{node.id}" ({node.type}) is not reachable from the trigger',
                            node_id=node.id,
                        )
                    )

        for node in nodes:
            spec = self.catalog.get_node(node.type)
            if spec is None:
                continue
            missing = spec.missing_fields(node.data)
            if missing:
                message = spec.payload_error.format(id=node.id, type=node.type, fields=", ".join(missing))
                issues.append(ValidationIssue(code=spec.payload_error_code, message=message, node_id=node.id))

        return issues

    def _catalog_issues(self, nodes: List[FlowNode], edges: List[FlowEdge]) -> List[ValidationIssue]:
        """Instance limits and incoming-edge rules declared by the node catalog."""

        issues: List[ValidationIssue] = []
        targets = {edge.target for edge in edges}
        for spec in self.catalog.list_nodes():
            typed = [node for node in nodes if node.type == spec.type.value]
            if spec.max_instances is not None and len(typed) > spec.max_instances:
                limit = "one" if spec.max_instances == 1 else str(spec.max_instances)
                plural = "" if spec.max_instances == 1 else "s"
                issues.append(
                    ValidationIssue(
                        code=f"multiple_{spec.type.value}s",
                        message=f"Automation can only have {limit} {spec.type.value} node{plural}",
                    )
                )
            if not spec.accepts_incoming:
                for node in typed:
                    if node.id in targets:
                        issues.append(
                            ValidationIssue(
                                code=f"{spec.type.value}_has_incoming",
                                message=f"{spec.type.value.capitalize()} node cannot have incoming connections",
                                node_id=node.id,
                            )
                        )
        return issues

    def _has_cycle(self, nodes: List[FlowNode], edges: List[FlowEdge]) -> bool:
        """Detect cycle using DFS."""

        adjacency: Dict[str, List[str]] = defaultdict(list)
        for edge in edges:
            adjacency[edge.source].append(edge.target)

        visited: Set[str] = set()
        stack: Set[str] = set()

        def dfs(node_id: str) -> bool:
            if node_id in stack:
                return True
            if node_id in visited:
                return False
            visited.add(node_id)
            stack.add(node_id)
            for neighbor in adjacency.get(node_id, []):
                if dfs(neighbor):
                    return True
            stack.remove(node_id)
            return False

        for node_id in list(adjacency):
            if dfs(node_id):
                return True
        return False


_default_validator = WorkflowValidator()


def validate(nodes: List[FlowNode], edges: List[FlowEdge], strict: bool = False) -> List[str]:
    """Validate a workflow and return human-readable error messages.

    With ``strict`` the trigger's ``triggerType`` counts as required payload, so
    the untouched starting layout from ``initial_flow`` fails until a trigger
    type is picked, even when every node is reachable.
    """

    return [issue.message for issue in _default_validator.validate_graph(nodes, edges, strict=strict)]


__all__ = ["WorkflowValidator", "validate"]
