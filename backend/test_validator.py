from cloudmap.ir.architecture import Architecture, Edge, Node
from cloudmap.validation import ValidationSeverity, validate_architecture


def _node(node_id, label="Service", service="Lambda"):
    return Node.model_validate({
        "id": node_id,
        "position": {"x": 0, "y": 0},
        "data": {"label": label, "service": service},
    })


def test_connected_architecture_is_valid(architecture):
    result = validate_architecture(architecture)
    assert result.is_valid
    assert result.is_complete
    assert result.issues == []
    assert result.stats == {"nodes": 3, "edges": 2, "services": 3, "orphanedNodes": 0}


def test_empty_architecture():
    result = validate_architecture(Architecture())
    assert not result.is_valid
    assert "EMPTY_ARCHITECTURE" in result.codes()


def test_single_node_without_edges_is_info_only():
    result = validate_architecture(Architecture(nodes=[_node("1")]))
    assert result.is_valid
    assert result.codes() == {"NO_EDGES"}
    assert result.issues[0].severity == ValidationSeverity.INFO


def test_dangling_edge(architecture):
    architecture.edges.append(Edge(id="e-x", source="3", target="ghost"))
    result = validate_architecture(architecture)
    assert not result.is_valid
    issue = next(i for i in result.issues if i.code == "DANGLING_EDGE")
    assert issue.edge_id == "e-x"
    assert "ghost" in issue.message


def test_orphan_and_self_loop(architecture):
    architecture.nodes.append(_node("4", label="Lonely"))
    architecture.edges.append(Edge(id="loop", source="2", target="2"))
    result = validate_architecture(architecture)

    assert result.is_valid
    assert not result.is_complete
    assert result.codes() == {"ORPHAN_NODE", "SELF_LOOP"}
    assert result.warning_count == 2


def test_duplicate_ids(architecture):
    architecture.nodes.append(_node("1"))
    architecture.edges.append(Edge(id="e1-2", source="1", target="3"))
    codes = validate_architecture(architecture).codes()
    assert {"DUPLICATE_NODE_ID", "DUPLICATE_EDGE_ID"} <= codes


def test_blank_label(architecture):
    architecture.nodes[0].data.label = "   "
    assert "EMPTY_LABEL" in validate_architecture(architecture).codes()


def test_to_dict(architecture):
    architecture.edges.append(Edge(id="e-x", source="3", target="ghost"))
    data = validate_architecture(architecture).to_dict()
    assert data["isValid"] is False
    assert data["errorCount"] == 1
    assert data["issues"][0]["edgeId"] == "e-x"
    assert data["issues"][0]["severity"] == "error"
