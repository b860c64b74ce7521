"""Pydantic models for enrollment state read back from the runtime."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from automation_studio.backend.core.utils.datetime import ensure_utc_datetime


class EnrollmentStatus(str, Enum):
    """Lifecycle status of one contact's progress through an automation."""

    ACTIVE = "active"
    COMPLETED = "completed"
    STOPPED = "stopped"
    PAUSED = "paused"


class Enrollment(BaseModel):
    """A contact enrolled in an automation (owned by the runtime)."""

    id: str
    automation_id: str
    recipient_email: str
    recipient_name: Optional[str] = None
    trigger_record_type: Optional[str] = None
    # 0 = no step completed yet (waiting for step 1); k = step k completed.
    current_step_order: int = 0
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _ensure_created_at_timezone(cls, value: datetime | str) -> datetime:
        return ensure_utc_datetime(value)


class EnrollmentContact(BaseModel):
    """Sampled contact shown in a node's enrollment popover."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: Optional[str] = None
    type: Optional[str] = None
    enrolled_at: str = Field(default="", alias="enrolledAt")


class StepCount(BaseModel):
    """Contacts currently waiting at one step order."""

    count: int = 0
    contacts: List[EnrollmentContact] = Field(default_factory=list)


class StepReference(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step_order: int = Field(alias="stepOrder")
    template_slug: Optional[str] = Field(default=None, alias="templateSlug")


class EnrollmentCounts(BaseModel):
    """Aggregate enrollment state of one automation."""

    model_config = ConfigDict(populate_by_name=True)

    total_active: int = Field(default=0, alias="totalActive")
    step_counts: Dict[int, StepCount] = Field(default_factory=dict, alias="stepCounts")
    steps: List[StepReference] = Field(default_factory=list)

    def count_at(self, step_order: int) -> StepCount:
        return self.step_counts.get(step_order) or StepCount()


class NodeEnrollment(BaseModel):
    """Enrollment badge attached to one graph node."""

    node_id: str
    count: int
    label: str
    contacts: List[EnrollmentContact] = Field(default_factory=list)


__all__ = [
    "EnrollmentStatus",
    "Enrollment",
    "EnrollmentContact",
    "StepCount",
    "StepReference",
    "EnrollmentCounts",
    "NodeEnrollment",
]
