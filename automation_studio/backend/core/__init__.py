"""Core services for the automation studio backend."""

from automation_studio.backend.core.config_loader import StudioConfigLoader
from automation_studio.backend.core.workflow import (
    DelayFrom,
    FlowDefinition,
    FlowEdge,
    FlowNode,
    NodeCatalog,
    NodeSpec,
    NodeType,
    Position,
    StepPlan,
    ValidationIssue,
    WorkflowGraph,
    WorkflowValidator,
    plan_step_order,
    validate,
)
from automation_studio.backend.core.automations import (
    AutomationDefinition,
    AutomationPersistence,
    AutomationService,
    AutomationStep,
)
from automation_studio.backend.core.workflow.compiler import (
    AutomationMetadata,
    CompilationError,
    CompiledAutomation,
    automation_to_flow,
    flow_to_automation,
)
from automation_studio.backend.core.enrollments import EnrollmentCounts, EnrollmentPersistence, EnrollmentPoller
from automation_studio.backend.core.editor import EditorSession, SaveStatus

__all__ = [
    "StudioConfigLoader",
    "DelayFrom",
    "FlowDefinition",
    "FlowEdge",
    "FlowNode",
    "NodeCatalog",
    "NodeSpec",
    "NodeType",
    "Position",
    "StepPlan",
    "ValidationIssue",
    "WorkflowGraph",
    "WorkflowValidator",
    "plan_step_order",
    "validate",
    "AutomationDefinition",
    "AutomationPersistence",
    "AutomationService",
    "AutomationStep",
    "AutomationMetadata",
    "CompilationError",
    "CompiledAutomation",
    "automation_to_flow",
    "flow_to_automation",
    "EnrollmentCounts",
    "EnrollmentPersistence",
    "EnrollmentPoller",
    "EditorSession",
    "SaveStatus",
]
