"""Central settings for the automation studio backend."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class StudioSettings:
    """Holds filesystem locations and editor defaults for the backend."""

    project_root: Path = Path(__file__).resolve().parents[2]
    config_root: Path = project_root / "configs" / "automations"
    artifacts_root: Path = project_root / "artifacts" / "automations"
    default_timezone: str = "America/Chicago"
    default_send_window_start: str = "09:00"
    default_send_window_end: str = "17:00"
    enrollment_poll_interval_sec: float = 30.0
    enrollment_sample_size: int = 10
    api_base_url: str = "http://localhost:8000/api"

    @property
    def automations_dir(self) -> Path:
        return self.artifacts_root / "definitions"

    @property
    def enrollments_dir(self) -> Path:
        return self.artifacts_root / "enrollments"


def get_settings() -> StudioSettings:
    """Return backend settings."""

    return StudioSettings()


__all__ = ["StudioSettings", "get_settings"]
