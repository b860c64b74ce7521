from automation_studio.backend.core.workflow.models import FlowDefinition, FlowEdge, FlowNode, Position


def test_flow_edge_accepts_canvas_aliases() -> None:
    edge = FlowEdge.model_validate(
        {"id": "e1", "source": "condition-1", "target": "email-1", "sourceHandle": "yes", "targetHandle": None}
    )

    assert edge.source_handle == "yes"
    assert edge.type == "smoothstep"
    assert edge.animated is True


def test_to_persisted_strips_editor_state() -> None:
    node = FlowNode(
        id="email-1",
        type="email",
        position=Position(x=250, y=150),
        data={"templateSlug": "welcome", "enrollmentCount": 3, "enrollmentLabel": "3 waiting", "enrollmentContacts": []},
        selected=True,
        dragging=True,
    )
    edge = FlowEdge(id="e1", source="trigger-1", target="email-1", selected=True, style={"stroke": "red"})
    flow = FlowDefinition(nodes=[node], edges=[edge])

    persisted = flow.to_persisted()

    stored_node = persisted["nodes"][0]
    assert "selected" not in stored_node and "dragging" not in stored_node
    assert stored_node["data"] == {"templateSlug": "welcome"}
    assert stored_node["position"] == {"x": 250, "y": 150}

    stored_edge = persisted["edges"][0]
    assert "selected" not in stored_edge and "style" not in stored_edge
    assert stored_edge["sourceHandle"] is None
    assert stored_edge["targetHandle"] is None

    # the live graph keeps its editor state
    assert node.data["enrollmentCount"] == 3
    assert node.selected is True


def test_persisted_flow_reloads_unchanged() -> None:
    flow = FlowDefinition(
        nodes=[FlowNode(id="trigger-1", type="trigger", data={"triggerType": "manual"})],
        edges=[],
    )

    reloaded = FlowDefinition.model_validate(flow.to_persisted())

    assert reloaded.to_persisted() == flow.to_persisted()
    assert not reloaded.is_empty
    assert FlowDefinition().is_empty
