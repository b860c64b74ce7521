"""Enrollment state: aggregation of runtime records and mapping onto graph nodes."""

from automation_studio.backend.core.enrollments.models import (
    Enrollment,
    EnrollmentContact,
    EnrollmentCounts,
    EnrollmentStatus,
    NodeEnrollment,
    StepCount,
    StepReference,
)
from automation_studio.backend.core.enrollments.persistence import EnrollmentPersistence
from automation_studio.backend.core.enrollments.sources import (
    EnrollmentCountsSource,
    HttpEnrollmentCountsSource,
    ServiceEnrollmentCountsSource,
)
from automation_studio.backend.core.enrollments.tracker import EnrollmentPoller, apply_enrollment_badges, map_counts_to_nodes

__all__ = [
    "Enrollment",
    "EnrollmentContact",
    "EnrollmentCounts",
    "EnrollmentStatus",
    "NodeEnrollment",
    "StepCount",
    "StepReference",
    "EnrollmentPersistence",
    "EnrollmentCountsSource",
    "HttpEnrollmentCountsSource",
    "ServiceEnrollmentCountsSource",
    "EnrollmentPoller",
    "apply_enrollment_badges",
    "map_counts_to_nodes",
]
