"""Two-way transform between workflow graphs and automation definitions."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field

from automation_studio.backend.core.automations.models import (
    AutomationDefinition,
    AutomationStep,
    ConditionPredicate,
    SendWindow,
    StopConditions,
)
from automation_studio.backend.core.workflow.models import DelayFrom, FlowDefinition, FlowEdge, FlowNode, NodeType, Position
from automation_studio.backend.core.workflow.ordering import StepPlan, plan_step_order

logger = logging.getLogger(__name__)

LAYOUT_X = 250
LAYOUT_TRIGGER_Y = 50
LAYOUT_FIRST_STEP_Y = 150
LAYOUT_SPACING = 100
TRIGGER_NODE_ID = "trigger-1"
END_NODE_ID = "end-1"


class CompilationError(ValueError):
    """Raised when a workflow graph cannot be turned into a definition."""


class AutomationMetadata(BaseModel):
    """Settings edited outside the canvas and merged into the compiled definition."""

    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    send_window: SendWindow = Field(default_factory=SendWindow)
    send_on_weekends: bool = False
    stop_conditions: StopConditions = Field(default_factory=StopConditions)
    is_active: bool = True


class CompiledAutomation(BaseModel):
    """Result of compiling a workflow graph."""

    automation: AutomationDefinition
    steps: List[AutomationStep]


def _as_int(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def _wait_before(plan: StepPlan, node_id: str) -> Tuple[int, int, DelayFrom]:
    """Sum the delay chain directly preceding a step node."""

    chain = plan.preceding_delays(node_id)
    if not chain:
        return 0, 0, DelayFrom.PREVIOUS_STEP
    days = sum(_as_int(plan.nodes[delay_id].data.get("delayDays")) for delay_id in chain)
    hours = sum(_as_int(plan.nodes[delay_id].data.get("delayHours")) for delay_id in chain)
    try:
        delay_from = DelayFrom(plan.nodes[chain[0]].data.get("delayFrom") or DelayFrom.PREVIOUS_STEP.value)
    except ValueError:
        delay_from = DelayFrom.PREVIOUS_STEP
    return days, hours, delay_from


def flow_to_automation(nodes: List[FlowNode], edges: List[FlowEdge], metadata: AutomationMetadata) -> CompiledAutomation:
    """Compile a workflow graph into an automation definition and its steps."""

    plan = plan_step_order(nodes, edges)
    if plan.trigger_id is None:
        raise CompilationError("Automation must have a trigger node")
    trigger = plan.nodes[plan.trigger_id]

    steps: List[AutomationStep] = []
    for node_id in plan.step_node_ids():
        node = plan.nodes[node_id]
        delay_days, delay_hours, delay_from = _wait_before(plan, node_id)
        next_orders = [plan.step_orders[step_id] for step_id in plan.next_step_ids(node_id)]
        step = AutomationStep(
            step_order=plan.step_orders[node_id],
            node_id=node_id,
            delay_days=delay_days,
            delay_hours=delay_hours,
            delay_from=delay_from,
            next_step_orders=next_orders,
        )
        if node.type == NodeType.EMAIL.value:
            step.step_type = "email"
            step.template_slug = str(node.data["templateSlug"]).strip()
            step.subject_override = node.data.get("subjectOverride") or None
            step.send_conditions = dict(node.data.get("sendConditions") or {})
            step.skip_conditions = dict(node.data.get("skipConditions") or {})
        else:
            step.step_type = "condition"
            step.predicate = ConditionPredicate(
                field=node.data.get("field") or "",
                operator=node.data.get("operator") or "",
                value=node.data.get("value"),
            )
        steps.append(step)

    automation = AutomationDefinition(
        name=metadata.name,
        slug=metadata.slug,
        description=metadata.description,
        trigger_type=trigger.data.get("triggerType") or "manual",
        trigger_conditions=dict(trigger.data.get("conditions") or {}),
        global_stop_conditions=metadata.stop_conditions.model_copy(),
        send_window=metadata.send_window.model_copy(),
        send_on_weekends=metadata.send_on_weekends,
        is_active=metadata.is_active,
        steps=steps,
    )
    logger.debug("Compiled workflow | slug=%s steps=%d nodes=%d", metadata.slug, len(steps), len(nodes))
    return CompiledAutomation(automation=automation, steps=steps)


def _edge(source: str, target: str) -> FlowEdge:
    return FlowEdge(id=f"edge-{source}-{target}", source=source, target=target, type="smoothstep", animated=True)


def automation_to_flow(definition: AutomationDefinition) -> FlowDefinition:
    """Lay out a definition as a straight chain of nodes.

    Used only when no layout was persisted with the definition. The steps are
    read as a linear sequence, so branch structure (condition steps with
    several next steps) is not recovered; conditions are placed inline.
    """

    nodes: List[FlowNode] = [
        FlowNode(
            id=TRIGGER_NODE_ID,
            type=NodeType.TRIGGER.value,
            position=Position(x=LAYOUT_X, y=LAYOUT_TRIGGER_Y),
            data={"label": "Trigger", "triggerType": definition.trigger_type, "conditions": dict(definition.trigger_conditions)},
        )
    ]
    edges: List[FlowEdge] = []
    last_node_id = TRIGGER_NODE_ID
    y_position = LAYOUT_FIRST_STEP_Y

    for step in definition.ordered_steps():
        if step.has_delay:
            delay_id = f"delay-{step.step_order}"
            nodes.append(
                FlowNode(
                    id=delay_id,
                    type=NodeType.DELAY.value,
                    position=Position(x=LAYOUT_X, y=y_position),
                    data={"delayDays": step.delay_days, "delayHours": step.delay_hours, "delayFrom": step.delay_from.value},
                )
            )
            edges.append(_edge(last_node_id, delay_id))
            last_node_id = delay_id
            y_position += LAYOUT_SPACING

        if step.step_type == "condition":
            predicate = step.predicate or ConditionPredicate()
            node_id = f"condition-{step.step_order}"
            node_type = NodeType.CONDITION.value
            data = {"field": predicate.field, "operator": predicate.operator, "value": predicate.value, "conditionLabel": ""}
        else:
            node_id = f"email-{step.step_order}"
            node_type = NodeType.EMAIL.value
            data = {
                "templateSlug": step.template_slug or "",
                "subjectOverride": step.subject_override,
                "sendConditions": dict(step.send_conditions),
                "skipConditions": dict(step.skip_conditions),
            }
        nodes.append(FlowNode(id=node_id, type=node_type, position=Position(x=LAYOUT_X, y=y_position), data=data))
        edges.append(_edge(last_node_id, node_id))
        last_node_id = node_id
        y_position += LAYOUT_SPACING

    nodes.append(
        FlowNode(id=END_NODE_ID, type=NodeType.END.value, position=Position(x=LAYOUT_X, y=y_position), data={"reason": "Sequence Complete"})
    )
    edges.append(_edge(last_node_id, END_NODE_ID))
    return FlowDefinition(nodes=nodes, edges=edges)


__all__ = [
    "AutomationMetadata",
    "CompiledAutomation",
    "CompilationError",
    "flow_to_automation",
    "automation_to_flow",
    "TRIGGER_NODE_ID",
    "END_NODE_ID",
]
