"""Pydantic models for stored automation definitions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from automation_studio.backend.core.utils.datetime import ensure_utc_datetime, normalize_clock_time
from automation_studio.backend.core.workflow.models import DelayFrom, FlowDefinition

DEFAULT_SEND_WINDOW_START = "09:00:00"
DEFAULT_SEND_WINDOW_END = "17:00:00"
DEFAULT_TIMEZONE = "America/Chicago"
SLUG_PATTERN = r"^[a-z0-9-]+$"


class SendWindow(BaseModel):
    """Daily time range (in a timezone) during which sends are permitted."""

    start: str = DEFAULT_SEND_WINDOW_START
    end: str = DEFAULT_SEND_WINDOW_END
    timezone: str = DEFAULT_TIMEZONE

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> str:
        return normalize_clock_time(value)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value


class StopConditions(BaseModel):
    """Global exit flags evaluated by the runtime against every enrollment.

    These never appear in the step list: the first satisfied flag removes a
    contact regardless of the step it is waiting at.
    """

    exit_on_purchase: bool = False
    exit_on_email_engagement: bool = False
    exit_on_unsubscribe: bool = False

    def active_flags(self) -> List[str]:
        return [name for name, enabled in self.model_dump().items() if enabled]


class ConditionPredicate(BaseModel):
    """Per-contact predicate carried by a branch step."""

    field: str = ""
    operator: str = ""
    value: Any = None


class AutomationStep(BaseModel):
    """A compiled, ordered unit of work derived from the workflow graph."""

    step_order: int
    step_type: Literal["email", "condition"] = "email"
    node_id: Optional[str] = None
    delay_days: int = 0
    delay_hours: int = 0
    delay_from: DelayFrom = DelayFrom.PREVIOUS_STEP
    template_slug: Optional[str] = None
    subject_override: Optional[str] = None
    send_conditions: Dict[str, Any] = Field(default_factory=dict)
    skip_conditions: Dict[str, Any] = Field(default_factory=dict)
    predicate: Optional[ConditionPredicate] = None
    next_step_orders: List[int] = Field(default_factory=list)

    @property
    def has_delay(self) -> bool:
        return self.delay_days > 0 or self.delay_hours > 0


class AutomationDefinition(BaseModel):
    """A persisted automation: settings, compiled steps and raw layout."""

    id: Optional[str] = None
    name: str
    slug: str
    description: Optional[str] = None
    trigger_type: str = "manual"
    trigger_conditions: Dict[str, Any] = Field(default_factory=dict)
    global_stop_conditions: StopConditions = Field(default_factory=StopConditions)
    send_window: SendWindow = Field(default_factory=SendWindow)
    send_on_weekends: bool = False
    is_active: bool = True
    flow_definition: Optional[FlowDefinition] = None
    steps: List[AutomationStep] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _ensure_timestamps_timezone(cls, value: datetime | str | None) -> datetime | None:
        if value is None:
            return None
        return ensure_utc_datetime(value)

    def ordered_steps(self) -> List[AutomationStep]:
        return sorted(self.steps, key=lambda step: step.step_order)


class AutomationSummary(BaseModel):
    """Summary view for listing automations."""

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    trigger_type: str
    is_active: bool
    steps_count: int
    enrollments_count: int
    created_at: Optional[datetime] = None


class AutomationCreate(BaseModel):
    """Payload accepted when creating an automation."""

    name: str
    slug: str
    description: Optional[str] = None
    trigger_type: str
    trigger_conditions: Dict[str, Any] = Field(default_factory=dict)
    global_stop_conditions: StopConditions = Field(default_factory=StopConditions)
    send_window: SendWindow = Field(default_factory=SendWindow)
    send_on_weekends: bool = False
    is_active: bool = True
    flow_definition: Optional[FlowDefinition] = None
    steps: List[AutomationStep] = Field(default_factory=list)


class AutomationUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value, ``steps`` replaces all steps."""

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    trigger_type: Optional[str] = None
    trigger_conditions: Optional[Dict[str, Any]] = None
    global_stop_conditions: Optional[StopConditions] = None
    send_window: Optional[SendWindow] = None
    send_on_weekends: Optional[bool] = None
    is_active: Optional[bool] = None
    flow_definition: Optional[FlowDefinition] = None
    steps: Optional[List[AutomationStep]] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided; an explicit None only clears nullable fields."""

        provided = self.model_dump(exclude_unset=True)
        return {key: value for key, value in provided.items() if value is not None or key in _CLEARABLE_FIELDS}


_CLEARABLE_FIELDS = frozenset({"description", "flow_definition"})


__all__ = [
    "SendWindow",
    "StopConditions",
    "ConditionPredicate",
    "AutomationStep",
    "AutomationDefinition",
    "AutomationSummary",
    "AutomationCreate",
    "AutomationUpdate",
    "DEFAULT_SEND_WINDOW_START",
    "DEFAULT_SEND_WINDOW_END",
    "DEFAULT_TIMEZONE",
    "SLUG_PATTERN",
]
