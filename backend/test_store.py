import pytest

from cloudmap.ir.architecture import Node
from cloudmap.store.architecture_store import ArchitectureStore


def test_save_stamps_editor(architecture):
    store = ArchitectureStore()
    saved = store.save("a1", architecture, edited_by="Generator")

    assert saved.metadata["lastEditedBy"] == "Generator"
    assert "lastEditedAt" in saved.metadata
    assert saved.metadata["prompt"] == architecture.metadata["prompt"]


def test_get_returns_copies(architecture):
    store = ArchitectureStore()
    store.save("a1", architecture)

    copy = store.get("a1")
    copy.nodes.pop()
    copy.metadata["prompt"] = "changed"

    again = store.get("a1")
    assert len(again.nodes) == 3
    assert again.metadata["prompt"] == architecture.metadata["prompt"]


def test_missing_ids():
    store = ArchitectureStore()
    assert store.get("nope") is None
    assert store.get("") is None
    assert store.delete("nope") is False
    assert store.update_fields("nope", metadata={"a": 1}) is None
    with pytest.raises(ValueError):
        store.save("", None)


def test_update_fields_merges_metadata(architecture):
    store = ArchitectureStore()
    store.save("a1", architecture)

    node = Node.model_validate({
        "id": "9",
        "position": {"x": 0, "y": 0},
        "data": {"label": "Queue", "service": "SQS"},
    })
    updated = store.update_fields("a1", nodes=[node], metadata={"userEdited": True}, edited_by="User")

    assert [n.id for n in updated.nodes] == ["9"]
    assert len(updated.edges) == 2
    assert updated.metadata["userEdited"] is True
    assert updated.metadata["prompt"] == architecture.metadata["prompt"]
    assert updated.metadata["lastEditedBy"] == "User"


def test_list_and_delete(architecture):
    store = ArchitectureStore()
    store.save("a1", architecture)
    store.save("a2", architecture)

    assert sorted(aid for aid, _ in store.list()) == ["a1", "a2"]
    assert store.delete("a1") is True
    assert [aid for aid, _ in store.list()] == ["a2"]

    store.clear()
    assert store.list() == []
