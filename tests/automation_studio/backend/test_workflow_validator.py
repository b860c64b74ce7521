from automation_studio.backend.core.workflow.graph import initial_flow
from automation_studio.backend.core.workflow.models import FlowEdge, FlowNode, Position
from automation_studio.backend.core.workflow.node_catalog import NodeCatalog
from automation_studio.backend.core.workflow.validator import WorkflowValidator, validate


def _node(node_id: str, type: str, y: float = 0, x: float = 250, **data) -> FlowNode:
    return FlowNode(id=node_id, type=type, position=Position(x=x, y=y), data=data)


def _edge(source: str, target: str) -> FlowEdge:
    return FlowEdge(id=f"edge-{source}-{target}", source=source, target=target)


def build_linear_graph():
    nodes = [
        _node("trigger-1", "trigger", y=50, triggerType="proposal_sent"),
        _node("email-1", "email", y=150, templateSlug="welcome"),
        _node("delay-1", "delay", y=250, delayDays=3, delayHours=0),
        _node("email-2", "email", y=350, templateSlug="proposal-follow-up"),
        _node("end-1", "end", y=450),
    ]
    edges = [
        _edge("trigger-1", "email-1"),
        _edge("email-1", "delay-1"),
        _edge("delay-1", "email-2"),
        _edge("email-2", "end-1"),
    ]
    return nodes, edges


def _codes(nodes, edges, strict=False):
    return [issue.code for issue in WorkflowValidator().validate_graph(nodes, edges, strict=strict)]


def test_linear_graph_is_valid_in_both_modes() -> None:
    nodes, edges = build_linear_graph()

    assert validate(nodes, edges, strict=False) == []
    assert validate(nodes, edges, strict=True) == []


def test_unreachable_nodes_only_fail_strict_validation() -> None:
    nodes, edges = build_linear_graph()
    nodes.append(_node("email-orphan", "email", y=600, templateSlug="welcome"))
    nodes.append(_node("delay-orphan", "delay", y=700, delayDays=1))
    edges.append(_edge("email-orphan", "delay-orphan"))

    assert validate(nodes, edges, strict=False) == []

    errors = validate(nodes, edges, strict=True)
    assert len(errors) == 2
    assert any("email-orphan" in error for error in errors)
    assert any("delay-orphan" in error for error in errors)
    assert all("not reachable" in error for error in errors)


def test_strict_validation_passes_once_every_node_is_reachable() -> None:
    nodes, edges = build_linear_graph()
    nodes.append(_node("email-3", "email", y=550, templateSlug="invoice-reminder"))
    assert _codes(nodes, edges, strict=True) == ["unreachable_node"]

    edges.append(_edge("email-2", "email-3"))
    assert _codes(nodes, edges, strict=True) == []


def test_missing_and_duplicate_triggers() -> None:
    nodes, edges = build_linear_graph()
    without_trigger = [node for node in nodes if node.type != "trigger"]
    remaining_edges = [edge for edge in edges if edge.source != "trigger-1"]
    assert "missing_trigger" in _codes(without_trigger, remaining_edges)

    nodes.append(_node("trigger-2", "trigger", y=0, x=600, triggerType="manual"))
    assert "multiple_triggers" in _codes(nodes, edges)


def test_trigger_with_incoming_edge_is_rejected() -> None:
    nodes, edges = build_linear_graph()
    edges.append(_edge("end-1", "trigger-1"))

    codes = _codes(nodes, edges)

    assert "trigger_has_incoming" in codes
    assert "cycle_detected" in codes


def test_cycle_is_detected_without_strict_mode() -> None:
    nodes, edges = build_linear_graph()
    edges.append(_edge("email-2", "email-1"))

    assert _codes(nodes, edges) == ["cycle_detected"]


def test_dangling_edges_and_unknown_types() -> None:
    nodes, edges = build_linear_graph()
    edges.append(_edge("email-2", "ghost"))
    edges.append(_edge("phantom", "email-1"))
    nodes.append(_node("sms-1", "sms", y=900))

    codes = _codes(nodes, edges)

    assert "edge_target_missing" in codes
    assert "edge_source_missing" in codes
    assert "unknown_node_type" in codes


def test_duplicate_node_ids_are_reported() -> None:
    nodes, edges = build_linear_graph()
    nodes.append(_node("email-1", "email", y=900, templateSlug="welcome"))

    assert "duplicate_node" in _codes(nodes, edges)


def test_strict_mode_requires_node_payloads() -> None:
    nodes = [
        _node("trigger-1", "trigger", y=50, triggerType=""),
        _node("email-1", "email", y=150, templateSlug="   "),
        _node("condition-1", "condition", y=250, field="lifecycle_stage", operator=""),
    ]
    edges = [_edge("trigger-1", "email-1"), _edge("email-1", "condition-1")]

    assert _codes(nodes, edges) == []
    assert sorted(_codes(nodes, edges, strict=True)) == ["incomplete_condition", "missing_template", "missing_trigger_type"]


def test_payload_rules_follow_the_node_catalog() -> None:
    nodes, edges = build_linear_graph()
    catalog = NodeCatalog()
    validator = WorkflowValidator(catalog=catalog)
    assert validator.validate_graph(nodes, edges, strict=True) == []

    catalog.get_node("delay").required_fields.append("delayDays")
    nodes[2].data.pop("delayDays")
    issues = validator.validate_graph(nodes, edges, strict=True)
    assert [(issue.code, issue.node_id) for issue in issues] == [("incomplete_node", "delay-1")]
    assert "delayDays" in issues[0].message

    nodes[2].data["delayDays"] = 0
    assert validator.validate_graph(nodes, edges, strict=True) == []

    catalog.get_node("email").required_fields.clear()
    nodes[1].data["templateSlug"] = ""
    assert validator.validate_graph(nodes, edges, strict=True) == []


def test_instance_limits_and_incoming_rules_follow_the_node_catalog() -> None:
    nodes, edges = build_linear_graph()
    catalog = NodeCatalog()
    catalog.get_node("end").max_instances = 1
    catalog.get_node("end").accepts_incoming = False
    validator = WorkflowValidator(catalog=catalog)

    nodes.append(_node("end-2", "end", y=550))
    codes = [issue.code for issue in validator.validate_graph(nodes, edges)]

    assert "multiple_ends" in codes
    assert "end_has_incoming" in codes
    assert "multiple_triggers" not in codes


def test_initial_layout_needs_a_trigger_type_under_strict_validation() -> None:
    flow = initial_flow()
    nodes = flow.nodes + [_node("email-1", "email", y=150, templateSlug="welcome")]
    edges = [_edge("trigger-1", "email-1")]

    assert validate(nodes, edges, strict=False) == []
    assert validate(nodes, edges, strict=True) == ["Trigger must have a trigger type selected"]

    nodes[0].data["triggerType"] = "client_created"
    assert validate(nodes, edges, strict=True) == []
