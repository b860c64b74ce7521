"""Read access to enrollment records written by the automation runtime."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from automation_studio.backend.core.enrollments.models import Enrollment, EnrollmentStatus


class EnrollmentPersistence:
    """Enrollment records stored as one JSON artifact per automation.

    The runtime owns these files; the studio only reads them. ``save_enrollments``
    is the runtime-side writer and is used by fixtures and seed scripts.
    """

    def __init__(self, enrollments_dir: Path) -> None:
        self.enrollments_dir = enrollments_dir
        self.enrollments_dir.mkdir(parents=True, exist_ok=True)

    def load_enrollments(self, automation_id: str) -> List[Enrollment]:
        path = self.enrollments_dir / f"{automation_id}.json"
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return [Enrollment(**item) for item in data.get("enrollments", [])]

    def count_active(self, automation_id: str) -> int:
        return len([item for item in self.load_enrollments(automation_id) if item.status == EnrollmentStatus.ACTIVE])

    def count_all(self, automation_id: str) -> int:
        return len(self.load_enrollments(automation_id))

    def save_enrollments(self, automation_id: str, enrollments: List[Enrollment]) -> None:
        payload = {"enrollments": [item.model_dump(mode="json") for item in enrollments]}
        target = self.enrollments_dir / f"{automation_id}.json"
        with target.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)

    def delete_enrollments(self, automation_id: str) -> None:
        path = self.enrollments_dir / f"{automation_id}.json"
        if path.exists():
            path.unlink()


__all__ = ["EnrollmentPersistence"]
