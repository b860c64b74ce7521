"""Persistence layer for automation definitions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from automation_studio.backend.core.automations.models import AutomationDefinition

logger = logging.getLogger(__name__)


class AutomationPersistence:
    """Persist automation definitions (steps and layout) as JSON artifacts."""

    def __init__(self, automations_dir: Path) -> None:
        self.automations_dir = automations_dir
        self.automations_dir.mkdir(parents=True, exist_ok=True)

    def save(self, definition: AutomationDefinition) -> None:
        """Persist a definition; the whole record is replaced."""

        if not definition.id:
            raise ValueError("Cannot persist an automation without an id")
        payload = definition.model_dump(mode="json", by_alias=True)
        if definition.flow_definition is not None:
            payload["flow_definition"] = definition.flow_definition.to_persisted()
        target = self.automations_dir / f"{definition.id}.json"
        with target.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)

    def load(self, automation_id: str) -> Optional[AutomationDefinition]:
        """Load a definition by its identifier."""

        path = self.automations_dir / f"{automation_id}.json"
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return AutomationDefinition(**data)

    def list_all(self) -> List[AutomationDefinition]:
        """Return every stored definition, newest first."""

        definitions: List[AutomationDefinition] = []
        for file in sorted(self.automations_dir.glob("*.json")):
            with file.open("r", encoding="utf-8") as handle:
                try:
                    data = json.load(handle)
                except json.JSONDecodeError:
                    logger.warning("Skipping unreadable automation artifact %s", file)
                    continue
            definitions.append(AutomationDefinition(**data))
        definitions.sort(key=lambda item: (item.created_at is not None, item.created_at), reverse=True)
        return definitions

    def find_by_slug(self, slug: str) -> Optional[AutomationDefinition]:
        return next((item for item in self.list_all() if item.slug == slug), None)

    def delete(self, automation_id: str) -> bool:
        path = self.automations_dir / f"{automation_id}.json"
        if not path.exists():
            return False
        path.unlink()
        return True


__all__ = ["AutomationPersistence"]
