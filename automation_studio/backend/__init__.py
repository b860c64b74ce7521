"""Backend package for the automation studio service."""

from automation_studio.backend.settings import get_settings, StudioSettings

__all__ = ["get_settings", "StudioSettings"]
