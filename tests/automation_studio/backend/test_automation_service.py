import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from automation_studio.backend.core.automations.models import AutomationCreate, AutomationStep, AutomationUpdate, SendWindow
from automation_studio.backend.core.automations.persistence import AutomationPersistence
from automation_studio.backend.core.automations.service import (
    AutomationConflictError,
    AutomationNotFoundError,
    AutomationService,
    DuplicateSlugError,
    InvalidAutomationError,
)
from automation_studio.backend.core.enrollments.models import Enrollment, EnrollmentStatus
from automation_studio.backend.core.enrollments.persistence import EnrollmentPersistence
from automation_studio.backend.core.enrollments.sources import ServiceEnrollmentCountsSource


def build_service(tmp_path: Path) -> AutomationService:
    return AutomationService(
        persistence=AutomationPersistence(tmp_path / "definitions"),
        enrollments=EnrollmentPersistence(tmp_path / "enrollments"),
        trigger_types=["proposal_sent", "manual"],
    )


def build_flow(template_slug: str = "welcome", orphan: bool = False) -> dict:
    nodes = [
        {"id": "trigger-1", "type": "trigger", "position": {"x": 250, "y": 50}, "data": {"triggerType": "proposal_sent"}},
        {
            "id": "email-1",
            "type": "email",
            "position": {"x": 250, "y": 150},
            "data": {"templateSlug": template_slug, "enrollmentCount": 4, "enrollmentLabel": "4 waiting"},
            "selected": True,
        },
    ]
    if orphan:
        nodes.append({"id": "email-9", "type": "email", "position": {"x": 600, "y": 400}, "data": {"templateSlug": "welcome"}})
    edges = [{"id": "edge-trigger-1-email-1", "source": "trigger-1", "target": "email-1", "selected": True, "style": {"stroke": "red"}}]
    return {"nodes": nodes, "edges": edges}


def build_request(**overrides) -> AutomationCreate:
    payload = {
        "name": "Proposal follow-up",
        "slug": "proposal-follow-up",
        "trigger_type": "proposal_sent",
        "send_window": {"start": "9:00", "end": "17:30", "timezone": "America/Chicago"},
        "flow_definition": build_flow(),
        "steps": [{"step_order": 1, "template_slug": "welcome", "node_id": "email-1"}],
    }
    payload.update(overrides)
    return AutomationCreate(**payload)


def _enrollment(index: int, status: EnrollmentStatus) -> Enrollment:
    return Enrollment(
        id=f"enr-{index}",
        automation_id="ignored",
        recipient_email=f"c{index}@example.com",
        current_step_order=1,
        status=status,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def test_create_persists_definition_with_stripped_layout(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    created = service.create(build_request())

    assert created.id
    assert created.created_at is not None
    assert created.send_window.start == "09:00:00"
    assert created.send_window.end == "17:30:00"

    stored = json.loads((tmp_path / "definitions" / f"{created.id}.json").read_text(encoding="utf-8"))
    email_node = stored["flow_definition"]["nodes"][1]
    assert email_node["data"] == {"templateSlug": "welcome"}
    assert "selected" not in email_node
    assert "style" not in stored["flow_definition"]["edges"][0]

    loaded = service.get(created.id)
    assert loaded.slug == "proposal-follow-up"
    assert loaded.steps[0].template_slug == "welcome"


def test_duplicate_slug_is_rejected(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    service.create(build_request())

    with pytest.raises(DuplicateSlugError, match="Slug already exists"):
        service.create(build_request(name="Another"))


def test_store_rules_are_enforced(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    with pytest.raises(InvalidAutomationError) as excinfo:
        service.create(build_request(steps=[{"step_order": 1, "template_slug": None}]))
    assert "All email steps must have a template selected" in excinfo.value.errors

    with pytest.raises(InvalidAutomationError):
        service.create(build_request(slug="Not A Slug"))

    with pytest.raises(InvalidAutomationError):
        service.create(build_request(trigger_type="carrier_pigeon"))

    with pytest.raises(InvalidAutomationError):
        service.create(build_request(steps=[{"step_order": 1, "template_slug": "a", "next_step_orders": [4]}]))

    with pytest.raises(ValueError):
        SendWindow(timezone="Mars/Olympus_Mons")


def test_active_definition_requires_reachable_layout(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    with pytest.raises(InvalidAutomationError) as excinfo:
        service.create(build_request(flow_definition=build_flow(orphan=True)))
    assert any("email-9" in error for error in excinfo.value.errors)

    draft = service.create(build_request(flow_definition=build_flow(orphan=True), is_active=False))
    assert draft.is_active is False

    with pytest.raises(InvalidAutomationError):
        service.update(draft.id, AutomationUpdate(is_active=True))


def test_update_merges_fields_and_replaces_steps(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    created = service.create(build_request())

    renamed = service.update(created.id, AutomationUpdate(name="Renamed"))
    assert renamed.name == "Renamed"
    assert renamed.slug == created.slug
    assert len(renamed.steps) == 1
    assert renamed.created_at == created.created_at

    replaced = service.update(
        created.id,
        AutomationUpdate(
            steps=[
                AutomationStep(step_order=2, template_slug="proposal-reminder", delay_days=2),
                AutomationStep(step_order=1, template_slug="welcome"),
            ]
        ),
    )
    assert [step.step_order for step in replaced.steps] == [1, 2]
    assert service.get(created.id).steps[1].delay_days == 2

    with pytest.raises(AutomationNotFoundError):
        service.update("missing", AutomationUpdate(name="x"))


def test_update_rejects_slug_taken_by_another_automation(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    first = service.create(build_request())
    second = service.create(build_request(name="Second", slug="second"))

    service.update(first.id, AutomationUpdate(slug="proposal-follow-up"))
    with pytest.raises(DuplicateSlugError):
        service.update(second.id, AutomationUpdate(slug="proposal-follow-up"))


def test_delete_is_refused_while_contacts_are_active(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    created = service.create(build_request())
    service.enrollments.save_enrollments(
        created.id, [_enrollment(1, EnrollmentStatus.ACTIVE), _enrollment(2, EnrollmentStatus.COMPLETED)]
    )

    with pytest.raises(AutomationConflictError):
        service.delete(created.id)

    service.enrollments.save_enrollments(created.id, [_enrollment(2, EnrollmentStatus.COMPLETED)])
    service.delete(created.id)

    with pytest.raises(AutomationNotFoundError):
        service.get(created.id)
    assert service.enrollments.load_enrollments(created.id) == []


def test_summaries_and_enrollment_counts(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    created = service.create(build_request())
    service.enrollments.save_enrollments(
        created.id, [_enrollment(1, EnrollmentStatus.ACTIVE), _enrollment(2, EnrollmentStatus.STOPPED)]
    )

    (summary,) = service.list_summaries()
    assert summary.id == created.id
    assert summary.steps_count == 1
    assert summary.enrollments_count == 2

    counts = service.enrollment_counts(created.id)
    assert counts.total_active == 1
    assert counts.count_at(1).count == 1
    assert counts.steps[0].template_slug == "welcome"

    fetched = asyncio.run(ServiceEnrollmentCountsSource(service).fetch(created.id))
    assert fetched == counts


def test_update_clears_description_but_keeps_required_fields(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    created = service.create(build_request(description="Follow up on proposals"))

    updated = service.update(created.id, AutomationUpdate(description=None, name=None))

    assert updated.description is None
    assert updated.name == created.name
    assert service.get(created.id).description is None
    assert service.update(created.id, AutomationUpdate(slug="renamed")).description is None
