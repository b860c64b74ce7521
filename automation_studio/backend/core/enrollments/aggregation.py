"""Aggregate enrollment records into per-step waiting counts."""

from __future__ import annotations

from typing import Dict, List

from automation_studio.backend.core.automations.models import AutomationStep
from automation_studio.backend.core.enrollments.models import (
    Enrollment,
    EnrollmentContact,
    EnrollmentCounts,
    EnrollmentStatus,
    StepCount,
    StepReference,
)

DEFAULT_SAMPLE_SIZE = 10


def aggregate_enrollment_counts(
    enrollments: List[Enrollment],
    steps: List[AutomationStep],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> EnrollmentCounts:
    """Group active enrollments by ``current_step_order``.

    Each bucket carries the full count and up to ``sample_size`` contacts,
    newest enrollment first.
    """

    active = [item for item in enrollments if item.status == EnrollmentStatus.ACTIVE]
    active.sort(key=lambda item: item.created_at, reverse=True)

    buckets: Dict[int, StepCount] = {}
    for enrollment in active:
        bucket = buckets.setdefault(enrollment.current_step_order, StepCount())
        bucket.count += 1
        if len(bucket.contacts) < sample_size:
            bucket.contacts.append(
                EnrollmentContact(
                    email=enrollment.recipient_email,
                    name=enrollment.recipient_name,
                    type=enrollment.trigger_record_type,
                    enrolled_at=enrollment.created_at.isoformat(),
                )
            )

    return EnrollmentCounts(
        total_active=len(active),
        step_counts=dict(sorted(buckets.items())),
        steps=[
            StepReference(step_order=step.step_order, template_slug=step.template_slug)
            for step in sorted(steps, key=lambda step: step.step_order)
        ],
    )


__all__ = ["aggregate_enrollment_counts", "DEFAULT_SAMPLE_SIZE"]
