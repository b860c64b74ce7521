import asyncio
import json

import httpx
import pytest

from automation_studio.backend.core.automations.models import AutomationCreate, AutomationUpdate
from automation_studio.backend.core.editor.gateway import GatewayError, HttpAutomationGateway
from automation_studio.backend.core.editor.session import EditorSession, SaveStatus
from automation_studio.backend.core.workflow.models import Position


def build_create_payload() -> AutomationCreate:
    return AutomationCreate(
        name="Welcome",
        slug="welcome",
        trigger_type="client_created",
        flow_definition={
            "nodes": [
                {
                    "id": "trigger-1",
                    "type": "trigger",
                    "data": {"triggerType": "client_created", "enrollmentLabel": "3 active"},
                    "selected": True,
                }
            ],
            "edges": [],
        },
    )


def _run(handler, call):
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = HttpAutomationGateway("http://studio.test/api", client=client)
            return await call(gateway)

    return asyncio.run(scenario())


def test_create_posts_clean_payload() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append((request.method, request.url.path, body))
        return httpx.Response(201, json={**body, "id": "auto-7"})

    created = _run(handler, lambda gateway: gateway.create_automation(build_create_payload()))

    method, path, body = requests[0]
    assert (method, path) == ("POST", "/api/automations")
    assert body["flow_definition"]["nodes"][0]["data"] == {"triggerType": "client_created"}
    assert "selected" not in body["flow_definition"]["nodes"][0]
    assert "description" not in body
    assert created.id == "auto-7"


def test_error_responses_raise_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"detail": "Slug already exists", "error_code": "bad_request"})

    with pytest.raises(GatewayError) as excinfo:
        _run(handler, lambda gateway: gateway.create_automation(build_create_payload()))

    assert str(excinfo.value) == "Slug already exists"
    assert excinfo.value.status_code == 400


def test_unreachable_store_raises_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError, match="unreachable"):
        _run(handler, lambda gateway: gateway.get_automation("auto-1"))


def test_list_templates_reads_catalog() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/email-templates"
        return httpx.Response(200, json={"templates": [{"slug": "welcome", "name": "Welcome"}]})

    templates = _run(handler, lambda gateway: gateway.list_templates())

    assert [(item.slug, item.name) for item in templates] == [("welcome", "Welcome")]


def test_update_sends_explicit_nulls_to_clear_fields() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json={"id": "auto-1", "name": "Welcome", "slug": "welcome", **body})

    _run(handler, lambda gateway: gateway.update_automation("auto-1", AutomationUpdate(description=None, is_active=False)))

    assert bodies[0] == {"description": None, "is_active": False}


def test_non_json_success_body_raises_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy</html>")

    with pytest.raises(GatewayError, match="unreadable") as excinfo:
        _run(handler, lambda gateway: gateway.create_automation(build_create_payload()))

    assert excinfo.value.status_code == 200


def test_error_body_that_is_not_an_object_falls_back_to_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json=["bad gateway"])

    with pytest.raises(GatewayError) as excinfo:
        _run(handler, lambda gateway: gateway.create_automation(build_create_payload()))

    assert excinfo.value.status_code == 502
    assert "bad gateway" in str(excinfo.value)


def test_malformed_payloads_raise_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/email-templates"):
            return httpx.Response(200, json=[{"slug": "welcome"}])
        return httpx.Response(200, json={"id": "auto-1"})

    with pytest.raises(GatewayError, match="Malformed automation"):
        _run(handler, lambda gateway: gateway.get_automation("auto-1"))
    with pytest.raises(GatewayError, match="Malformed template catalog"):
        _run(handler, lambda gateway: gateway.list_templates())


@pytest.mark.parametrize(
    "status, body",
    [(200, {"text": "<html>proxy</html>"}), (502, {"json": ["bad gateway"]})],
)
def test_save_reports_unreadable_store_responses(status: int, body: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, **body)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            session = EditorSession(HttpAutomationGateway("http://studio.test/api", client=client))
            session.update_node_data(session.graph.trigger.id, {"triggerType": "client_created"})
            email = session.add_node("email", position=Position(x=250, y=150), data={"templateSlug": "welcome"})
            session.connect(session.graph.trigger.id, email.id)
            session.update_settings(name="Welcome", slug="welcome")
            return session, await session.save()

    session, outcome = asyncio.run(scenario())

    assert outcome.status == SaveStatus.FAILED
    assert session.error
    assert session.saving is False
    assert session.is_dirty is True
