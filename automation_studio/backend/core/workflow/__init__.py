"""Workflow graph core: model, validation and ordering.

The compiler lives in ``workflow.compiler`` and is imported from there; it
depends on the automation store models.
"""

from automation_studio.backend.core.workflow.models import (
    DelayFrom,
    FlowDefinition,
    FlowEdge,
    FlowNode,
    NodeType,
    Position,
    ValidationIssue,
)
from automation_studio.backend.core.workflow.node_catalog import NodeCatalog, NodeSpec, generate_node_id
from automation_studio.backend.core.workflow.ordering import StepPlan, plan_step_order
from automation_studio.backend.core.workflow.validator import WorkflowValidator, validate
from automation_studio.backend.core.workflow.graph import WorkflowGraph, initial_flow

__all__ = [
    "DelayFrom",
    "FlowDefinition",
    "FlowEdge",
    "FlowNode",
    "NodeType",
    "Position",
    "ValidationIssue",
    "NodeCatalog",
    "NodeSpec",
    "generate_node_id",
    "StepPlan",
    "plan_step_order",
    "WorkflowValidator",
    "validate",
    "WorkflowGraph",
    "initial_flow",
]
