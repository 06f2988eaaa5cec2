from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from notes.api.app import create_app
from notes.core.settings import Settings as NotesSettings


@pytest.fixture()
def client(tmp_path: Path):
    settings = NotesSettings(
        database_url=f"sqlite:///{(tmp_path / 'notes.db').as_posix()}",
        auto_create_db=True,
        max_page_size=2,
    )
    with TestClient(create_app(settings)) as c:
        yield c


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "db": {"ok": True}}


def test_note_crud(client: TestClient):
    r = client.post("/api/notes", json={"title": " Release ", "body": "ship it", "tags": ["Ops", "ops", "build"]})
    assert r.status_code == 201, r.text
    note = r.json()
    assert note["title"] == "Release"
    assert note["tags"] == ["build", "ops"]
    note_id = note["id"]

    r = client.get(f"/api/notes/{note_id}")
    assert r.status_code == 200
    assert r.json()["body"] == "ship it"

    # Replace-on-write tags must not trip the (note_id, tag) unique constraint
    r = client.patch(f"/api/notes/{note_id}", json={"pinned": True, "tags": ["ops", "release"]})
    assert r.status_code == 200, r.text
    assert r.json()["pinned"] is True
    assert r.json()["tags"] == ["ops", "release"]
    assert r.json()["title"] == "Release"

    r = client.delete(f"/api/notes/{note_id}")
    assert r.status_code == 204

    r = client.get(f"/api/notes/{note_id}")
    assert r.status_code == 404
    assert r.json()["error"]["type"] == "not_found"


def test_list_filters_by_tag_and_caps_page_size(client: TestClient):
    for i, tags in enumerate([["a"], ["b"], ["a", "b"]]):
        assert client.post("/api/notes", json={"title": f"n{i}", "tags": tags}).status_code == 201

    r = client.get("/api/notes", params={"limit": 50})
    body = r.json()
    assert body["total"] == 3
    assert len(body["items"]) == 2

    r = client.get("/api/notes", params={"tag": "A"})
    assert sorted(n["title"] for n in r.json()["items"]) == ["n0", "n2"]


def test_pinned_notes_first(client: TestClient):
    client.post("/api/notes", json={"title": "old", "pinned": True})
    client.post("/api/notes", json={"title": "new"})

    items = client.get("/api/notes").json()["items"]
    assert [n["title"] for n in items] == ["old", "new"]


def test_validation_error_shape(client: TestClient):
    r = client.post("/api/notes", json={"title": ""})
    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation"


def test_startup_requires_schema(tmp_path: Path):
    settings = NotesSettings(database_url=f"sqlite:///{(tmp_path / 'empty.db').as_posix()}", auto_create_db=False)

    with pytest.raises(RuntimeError, match="not initialized"):
        with TestClient(create_app(settings)):
            pass
