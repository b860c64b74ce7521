"""Loader for the automation studio YAML configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from automation_studio.backend.settings import get_settings

logger = logging.getLogger(__name__)

VOCABULARY_CONFIG = "vocabulary"
TEMPLATES_CONFIG = "email_templates"


class StudioConfigLoader:
    """Loads YAML configurations from the automation config directory."""

    def __init__(self, base_path: str | Path | None = None) -> None:
        settings = get_settings()
        self.base_path: Path = Path(base_path) if base_path else settings.config_root

    def load_config(self, name: str) -> dict[str, Any]:
        """Load a YAML config by name without extension."""

        path = self.base_path / f"{name}.yaml"
        if not path.exists():
            raise FileNotFoundError(f"Automation config '{name}' not found at {path}")

        try:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            message = f"Invalid YAML in automation config '{name}': {exc}"
            logger.error(message)
            raise ValueError(message) from exc

        logger.debug("Automation config loaded | name=%s path=%s", name, path)
        return data

    def list_configs(self) -> list[str]:
        """Return all available config names (without extension)."""

        if not self.base_path.exists():
            return []

        return sorted([config.stem for config in self.base_path.glob("*.yaml")])

    def trigger_types(self) -> list[dict[str, str]]:
        """Return the trigger vocabulary as ``[{value, label}]``."""

        data = self.load_config(VOCABULARY_CONFIG)
        return [{"value": str(item["value"]), "label": str(item.get("label") or item["value"])} for item in data.get("trigger_types", [])]

    def stop_condition_labels(self) -> dict[str, str]:
        data = self.load_config(VOCABULARY_CONFIG)
        return {str(key): str(value) for key, value in (data.get("stop_conditions") or {}).items()}

    def email_templates(self) -> list[dict[str, str]]:
        """Return the template catalog as ``[{slug, name}]``."""

        data = self.load_config(TEMPLATES_CONFIG)
        return [{"slug": str(item["slug"]), "name": str(item.get("name") or item["slug"])} for item in data.get("templates", [])]


__all__ = ["StudioConfigLoader", "VOCABULARY_CONFIG", "TEMPLATES_CONFIG"]
