"""Gateways the editor uses to read and write automation definitions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from automation_studio.backend.core.automations.models import AutomationCreate, AutomationDefinition, AutomationUpdate
from automation_studio.backend.core.automations.service import (
    AutomationConflictError,
    AutomationNotFoundError,
    AutomationService,
    DuplicateSlugError,
    InvalidAutomationError,
)
from automation_studio.backend.core.config_loader import StudioConfigLoader
from automation_studio.backend.settings import get_settings

logger = logging.getLogger(__name__)


class TemplateRef(BaseModel):
    """Template reference offered in the email node picker."""

    slug: str
    name: str


class GatewayError(RuntimeError):
    """Raised when the store rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AutomationGatewayBase(ABC):
    """Interface for the collaborator store holding automation definitions."""

    @abstractmethod
    async def get_automation(self, automation_id: str) -> AutomationDefinition:
        """Return a stored definition including steps and layout."""

    @abstractmethod
    async def create_automation(self, payload: AutomationCreate) -> AutomationDefinition:
        """Store a new definition and return it with its id."""

    @abstractmethod
    async def update_automation(self, automation_id: str, payload: AutomationUpdate) -> AutomationDefinition:
        """Replace the stored definition's fields and steps."""

    @abstractmethod
    async def list_templates(self) -> List[TemplateRef]:
        """Return the template slugs email nodes may reference."""


def _request_body(payload: BaseModel) -> dict[str, Any]:
    if isinstance(payload, AutomationUpdate):
        body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    else:
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    flow = getattr(payload, "flow_definition", None)
    if flow is not None:
        body["flow_definition"] = flow.to_persisted()
    return body


class HttpAutomationGateway(AutomationGatewayBase):
    """Talks to the automation API over HTTP."""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0) -> None:
        self.base_url = (base_url or get_settings().api_base_url).rstrip("/")
        self._client = client
        self.timeout = timeout

    async def get_automation(self, automation_id: str) -> AutomationDefinition:
        data = await self._request("GET", f"/automations/{automation_id}")
        return self._parse_definition(data)

    async def create_automation(self, payload: AutomationCreate) -> AutomationDefinition:
        data = await self._request("POST", "/automations", json=_request_body(payload))
        return self._parse_definition(data)

    async def update_automation(self, automation_id: str, payload: AutomationUpdate) -> AutomationDefinition:
        data = await self._request("PATCH", f"/automations/{automation_id}", json=_request_body(payload))
        return self._parse_definition(data)

    async def list_templates(self) -> List[TemplateRef]:
        data = await self._request("GET", "/email-templates")
        try:
            return [TemplateRef.model_validate(item) for item in data.get("templates", [])]
        except (AttributeError, ValidationError) as exc:
            raise GatewayError(f"Malformed template catalog: {exc}") from exc

    @staticmethod
    def _parse_definition(data: Any) -> AutomationDefinition:
        try:
            return AutomationDefinition.model_validate(data)
        except ValidationError as exc:
            logger.warning("Automation API returned a malformed definition: %s", exc)
            raise GatewayError(f"Malformed automation in response: {exc}") from exc

    async def _request(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                resp = await self._client.request(method, url, json=json)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning("Automation API unreachable | %s %s: %s", method, url, exc)
            raise GatewayError(f"Automation API unreachable: {exc}") from exc

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            detail = body.get("detail") if isinstance(body, dict) else None
            raise GatewayError(str(detail or resp.text), status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Automation API returned a non-JSON body | %s %s status=%d", method, url, resp.status_code)
            raise GatewayError("Automation API returned an unreadable response", status_code=resp.status_code) from exc


class ServiceAutomationGateway(AutomationGatewayBase):
    """Calls an in-process :class:`AutomationService` directly."""

    def __init__(self, service: AutomationService, config_loader: Optional[StudioConfigLoader] = None) -> None:
        self.service = service
        self.config_loader = config_loader or StudioConfigLoader()

    async def get_automation(self, automation_id: str) -> AutomationDefinition:
        try:
            return self.service.get(automation_id)
        except AutomationNotFoundError as exc:
            raise GatewayError("Automation not found", status_code=404) from exc

    async def create_automation(self, payload: AutomationCreate) -> AutomationDefinition:
        try:
            return self.service.create(payload)
        except (DuplicateSlugError, InvalidAutomationError) as exc:
            raise GatewayError(str(exc), status_code=400) from exc

    async def update_automation(self, automation_id: str, payload: AutomationUpdate) -> AutomationDefinition:
        try:
            return self.service.update(automation_id, payload)
        except AutomationNotFoundError as exc:
            raise GatewayError("Automation not found", status_code=404) from exc
        except (DuplicateSlugError, InvalidAutomationError, AutomationConflictError) as exc:
            raise GatewayError(str(exc), status_code=400) from exc

    async def list_templates(self) -> List[TemplateRef]:
        return [TemplateRef.model_validate(item) for item in self.config_loader.email_templates()]


__all__ = [
    "TemplateRef",
    "GatewayError",
    "AutomationGatewayBase",
    "HttpAutomationGateway",
    "ServiceAutomationGateway",
]
