"""Sources of aggregate enrollment counts for the tracker."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import httpx

from automation_studio.backend.core.enrollments.models import EnrollmentCounts
from automation_studio.backend.settings import get_settings

if TYPE_CHECKING:
    from automation_studio.backend.core.automations.service import AutomationService

logger = logging.getLogger(__name__)


class EnrollmentCountsSource(ABC):
    """Interface for reading enrollment counts of one automation."""

    @abstractmethod
    async def fetch(self, automation_id: str) -> EnrollmentCounts:
        """Return the current aggregate for an automation."""


class HttpEnrollmentCountsSource(EnrollmentCountsSource):
    """Reads counts from ``GET /automations/{id}/enrollment-counts``."""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0) -> None:
        self.base_url = (base_url or get_settings().api_base_url).rstrip("/")
        self._client = client
        self.timeout = timeout

    async def fetch(self, automation_id: str) -> EnrollmentCounts:
        url = f"{self.base_url}/automations/{automation_id}/enrollment-counts"
        if self._client is not None:
            resp = await self._client.get(url)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url)
        resp.raise_for_status()
        return EnrollmentCounts.model_validate(resp.json())


class ServiceEnrollmentCountsSource(EnrollmentCountsSource):
    """Reads counts straight from an in-process automation service."""

    def __init__(self, service: "AutomationService") -> None:
        self.service = service

    async def fetch(self, automation_id: str) -> EnrollmentCounts:
        return self.service.enrollment_counts(automation_id)


__all__ = ["EnrollmentCountsSource", "HttpEnrollmentCountsSource", "ServiceEnrollmentCountsSource"]
