from automation_studio.backend.core.editor.gateway import (
    AutomationGatewayBase,
    GatewayError,
    HttpAutomationGateway,
    ServiceAutomationGateway,
    TemplateRef,
)
from automation_studio.backend.core.editor.session import EditorSession, SaveOutcome, SaveStatus, slugify

__all__ = [
    "AutomationGatewayBase",
    "GatewayError",
    "HttpAutomationGateway",
    "ServiceAutomationGateway",
    "TemplateRef",
    "EditorSession",
    "SaveOutcome",
    "SaveStatus",
    "slugify",
]
