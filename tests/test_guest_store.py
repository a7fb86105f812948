# tests/test_guest_store.py

from __future__ import annotations

import pytest

from client.api_client import ApiError
from client.guest_store import GuestStore, LocalTaskBackend


@pytest.fixture()
def store(tmp_path) -> GuestStore:
    return GuestStore(tmp_path / "nested" / "guest.json")


@pytest.fixture()
def backend(store) -> LocalTaskBackend:
    return LocalTaskBackend(store)


def test_missing_file_is_empty(store):
    assert store.load_tasks() == []
    assert store.load_state() == {"tasks": [], "last_deleted": None}


def test_corrupt_file_is_empty(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load_tasks() == []


def test_tasks_and_state_share_the_file(store):
    store.save_tasks([{"id": "1", "title": "a"}, {"title": "no id"}])
    store.save_state([{"id": "2"}], {"id": "3", "deleted_at": 1})
    assert store.load_tasks() == [{"id": "1", "title": "a"}]
    assert store.load_state() == {"tasks": [{"id": "2"}],
                                  "last_deleted": {"id": "3", "deleted_at": 1}}

    store.clear_tasks()
    assert store.load_tasks() == []
    assert store.load_state()["tasks"] == [{"id": "2"}]
    assert not store.path.with_suffix(".json.tmp").exists()


def test_create_assigns_unique_ids_and_positions(backend):
    first = backend.create_task({"title": "a"})
    second = backend.create_task({"title": "b"})
    done = backend.create_task({"title": "c", "status": "done"})
    assert first["id"] != second["id"]
    assert (first["position"], second["position"], done["position"]) == (1, 2, 1)
    assert first["status"] == "todo"
    assert first["priority"] == "medium"
    assert [t["title"] for t in backend.list_tasks(status="done")] == ["c"]


def test_update_and_delete(backend):
    task = backend.create_task({"title": "a"})
    updated = backend.update_task(task["id"], {"pinned": True})
    assert updated["pinned"] is True
    assert backend.list_tasks()[0]["pinned"] is True

    backend.delete_task(task["id"])
    assert backend.list_tasks() == []
    with pytest.raises(ApiError) as exc:
        backend.delete_task(task["id"])
    assert exc.value.status == 404


def test_duplicate(backend):
    task = backend.create_task({"title": "Plan", "pinned": True})
    copy = backend.duplicate_task(task["id"])
    assert copy["title"] == "Plan (Copy)"
    assert copy["pinned"] is False
    assert copy["position"] == 2
    assert backend.duplicate_task(copy["id"])["title"] == "Plan (Copy)"


def test_reorder(backend):
    a = backend.create_task({"title": "a"})
    b = backend.create_task({"title": "b"})
    result = backend.reorder_tasks([{"id": b["id"], "status": "progress"},
                                    {"id": a["id"]}, {"id": "missing"}])
    assert result == {"success": True, "updated": 2}
    tasks = {t["title"]: t for t in backend.list_tasks()}
    assert (tasks["b"]["status"], tasks["b"]["position"]) == ("progress", 0)
    assert (tasks["a"]["status"], tasks["a"]["position"]) == ("todo", 1)
