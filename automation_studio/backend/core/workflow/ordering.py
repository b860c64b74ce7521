"""Step ordering shared by the compiler and the enrollment tracker.

The order index a node receives here is the ``step_order`` the runtime stores
on enrollments. Both the compiler (when producing steps) and the tracker (when
attaching enrollment counts to nodes) read it from :func:`plan_step_order`, so
the two can never disagree about which node a step order refers to.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from automation_studio.backend.core.workflow.models import FlowEdge, FlowNode, NodeType


def is_step_node(node: FlowNode) -> bool:
    """Return True for nodes that compile into an ordered step."""

    if node.type == NodeType.EMAIL.value:
        return bool(str(node.data.get("templateSlug") or "").strip())
    return node.type == NodeType.CONDITION.value


def _layout_key(node: FlowNode) -> tuple:
    return (node.position.y, node.position.x, node.id)


@dataclass
class StepPlan:
    """Traversal of a workflow graph outward from its trigger."""

    trigger_id: Optional[str]
    nodes: Dict[str, FlowNode]
    children: Dict[str, List[str]]
    visit_order: List[str] = field(default_factory=list)
    parents: Dict[str, Optional[str]] = field(default_factory=dict)
    step_orders: Dict[str, int] = field(default_factory=dict)
    delay_targets: Dict[str, str] = field(default_factory=dict)

    def order_of(self, node_id: str) -> Optional[int]:
        return self.step_orders.get(node_id)

    def step_node_ids(self) -> List[str]:
        """Return step-bearing node ids sorted by their order."""

        return sorted(self.step_orders, key=self.step_orders.__getitem__)

    def is_reachable(self, node_id: str) -> bool:
        return node_id in self.parents

    def preceding_delays(self, node_id: str) -> List[str]:
        """Return the chain of delay nodes directly before a node, closest first."""

        chain: List[str] = []
        parent = self.parents.get(node_id)
        while parent is not None and self.nodes[parent].type == NodeType.DELAY.value:
            chain.append(parent)
            parent = self.parents.get(parent)
        return chain

    def next_step_ids(self, node_id: str) -> List[str]:
        """Return the first step-bearing nodes reached along each outgoing edge."""

        found: List[str] = []
        seen = {node_id}
        for child in self.children.get(node_id, []):
            for step_id in self._first_steps_from(child, seen):
                if step_id not in found:
                    found.append(step_id)
        return found

    def _first_steps_from(self, node_id: str, seen: set) -> Iterable[str]:
        if node_id in seen:
            return []
        seen.add(node_id)
        if node_id in self.step_orders:
            return [node_id]
        steps: List[str] = []
        for child in self.children.get(node_id, []):
            steps.extend(self._first_steps_from(child, seen))
        return steps


def plan_step_order(nodes: List[FlowNode], edges: List[FlowEdge]) -> StepPlan:
    """Walk the graph breadth-first from the trigger and assign step orders.

    Children are visited in layout order (top to bottom, then left to right).
    Each step-bearing node gets the next order index starting at 1; delay, end
    and unfinished email nodes take no index. Unreachable nodes are skipped.
    """

    node_map = {node.id: node for node in nodes}
    children: Dict[str, List[str]] = defaultdict(list)
    for edge in edges:
        if edge.target in node_map and edge.target not in children[edge.source]:
            children[edge.source].append(edge.target)
    for source in children:
        children[source].sort(key=lambda node_id: _layout_key(node_map[node_id]))

    trigger = next((node for node in nodes if node.type == NodeType.TRIGGER.value), None)
    plan = StepPlan(trigger_id=trigger.id if trigger else None, nodes=node_map, children=dict(children))
    if trigger is None:
        return plan

    plan.parents[trigger.id] = None
    queue = deque([trigger.id])
    next_order = 1
    while queue:
        current = queue.popleft()
        plan.visit_order.append(current)
        if is_step_node(node_map[current]):
            plan.step_orders[current] = next_order
            next_order += 1
        for child in plan.children.get(current, []):
            if child not in plan.parents:
                plan.parents[child] = current
                queue.append(child)

    for node_id in plan.visit_order:
        if node_map[node_id].type == NodeType.DELAY.value:
            target = _delay_target(plan, node_id)
            if target is not None:
                plan.delay_targets[node_id] = target

    return plan


def _delay_target(plan: StepPlan, delay_id: str) -> Optional[str]:
    """Return the step a delay leads into, following chained delays."""

    tree_children = [node_id for node_id in plan.visit_order if plan.parents.get(node_id) == delay_id]
    for child in tree_children:
        if child in plan.step_orders:
            return child
        if plan.nodes[child].type == NodeType.DELAY.value:
            target = _delay_target(plan, child)
            if target is not None:
                return target
    return None


__all__ = ["StepPlan", "plan_step_order", "is_step_node"]
