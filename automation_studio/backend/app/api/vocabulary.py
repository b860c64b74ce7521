"""Editor vocabulary endpoints: trigger types, stop flags, node catalog and templates."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from automation_studio.backend.core.config_loader import StudioConfigLoader
from automation_studio.backend.core.editor import TemplateRef
from automation_studio.backend.core.workflow import NodeCatalog, NodeSpec

logger = logging.getLogger(__name__)

router = APIRouter(tags=["vocabulary"])

config_loader = StudioConfigLoader()
catalog = NodeCatalog()


class TriggerTypeOption(BaseModel):
    value: str
    label: str


class VocabularyResponse(BaseModel):
    trigger_types: List[TriggerTypeOption]
    stop_conditions: Dict[str, str]
    nodes: List[NodeSpec]


class TemplatesResponse(BaseModel):
    templates: List[TemplateRef]


@router.get("/vocabulary", response_model=VocabularyResponse)
def get_vocabulary() -> VocabularyResponse:
    """Return the option lists the editor offers."""

    try:
        trigger_types = [TriggerTypeOption(**item) for item in config_loader.trigger_types()]
        stop_conditions = config_loader.stop_condition_labels()
    except (FileNotFoundError, ValueError) as exc:
        logger.warning("Vocabulary config unavailable: %s", exc)
        trigger_types, stop_conditions = [], {}
    return VocabularyResponse(trigger_types=trigger_types, stop_conditions=stop_conditions, nodes=catalog.list_nodes())


@router.get("/email-templates", response_model=TemplatesResponse)
def list_email_templates() -> TemplatesResponse:
    """Return the template slugs email nodes may reference; empty when the catalog is missing."""

    try:
        templates = [TemplateRef(**item) for item in config_loader.email_templates()]
    except (FileNotFoundError, ValueError) as exc:
        logger.warning("Email template catalog unavailable: %s", exc)
        templates = []
    return TemplatesResponse(templates=templates)


__all__ = ["router"]
