import logging

import pytest
from fastapi.testclient import TestClient

from checklist.core.config import Settings
from checklist.core.errors import BackendError
from checklist.db.base import Base
from checklist.main import create_app
from checklist.store import MemoryClientStore


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_create_then_list(client):
    response = client.post("/api/clients", json={"name": "Acme Corp"})
    assert response.status_code == 200
    assert response.json() == {"id": "acme-corp", "name": "Acme Corp"}

    response = client.get("/api/clients")
    assert response.status_code == 200
    assert {"id": "acme-corp", "name": "Acme Corp"} in response.json()


def test_list_is_sorted_by_name(client):
    for name in ["Zulu", "Alpha", "Mike"]:
        client.post("/api/clients", json={"name": name})
    names = [c["name"] for c in client.get("/api/clients").json()]
    assert names == ["Alpha", "Mike", "Zulu"]


def test_create_requires_name(client):
    for body in ({}, {"name": ""}, {"name": "   "}, {"name": None}, {"name": 5}):
        response = client.post("/api/clients", json=body)
        assert response.status_code == 400, body
        assert "error" in response.json()
    assert client.post("/api/clients", json={"name": " "}).json() == {"error": "Name is required"}


def test_create_with_malformed_json(client):
    response = client.post(
        "/api/clients", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_create_same_id_renames(client):
    client.post("/api/clients", json={"name": "Acme Corp"})
    response = client.post("/api/clients", json={"name": "ACME  corp"})
    assert response.json() == {"id": "acme-corp", "name": "ACME  corp"}
    assert client.get("/api/clients").json() == [{"id": "acme-corp", "name": "ACME  corp"}]


def test_rename_keeps_id_and_state(client):
    client.post("/api/clients", json={"name": "Acme Corp"})
    client.put("/api/clients/acme-corp/state", json={"task1": True})

    response = client.put("/api/clients/acme-corp", json={"name": "New Name"})
    assert response.status_code == 200
    assert response.json() == {"id": "acme-corp", "name": "New Name"}
    assert client.get("/api/clients/acme-corp/state").json() == {"task1": True}


def test_rename_unknown_and_blank(client):
    response = client.put("/api/clients/missing", json={"name": "X"})
    assert response.status_code == 404
    assert response.json() == {"error": "Client not found"}

    client.post("/api/clients", json={"name": "Acme"})
    assert client.put("/api/clients/acme", json={"name": ""}).status_code == 400


def test_delete(client):
    client.post("/api/clients", json={"name": "Acme Corp"})
    client.put("/api/clients/acme-corp/state", json={"task1": True})

    response = client.delete("/api/clients/acme-corp")
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get("/api/clients").json() == []

    response = client.get("/api/clients/acme-corp/state")
    assert response.status_code == 200
    assert response.json() == {}

    assert client.delete("/api/clients/acme-corp").status_code == 404


def test_unknown_state_is_empty(client):
    response = client.get("/api/clients/unknown-id/state")
    assert response.status_code == 200
    assert response.json() == {}


def test_put_state_creates_client(client):
    response = client.put("/api/clients/new-id/state", json={"task1": True})
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get("/api/clients").json() == [{"id": "new-id", "name": "new-id"}]
    assert client.get("/api/clients/new-id/state").json() == {"task1": True}


def test_put_state_rejects_non_objects(client):
    client.put("/api/clients/acme/state", json={"task1": True})
    for body in ([1, 2], "done", 7, None):
        response = client.put("/api/clients/acme/state", json=body)
        assert response.status_code == 400, body
    assert client.put("/api/clients/acme/state", json=[]).json() == {"error": "State must be an object"}
    assert client.get("/api/clients/acme/state").json() == {"task1": True}


def test_put_state_overwrites(client):
    client.put("/api/clients/acme/state", json={"a": True, "b": True})
    client.put("/api/clients/acme/state", json={"b": False})
    assert client.get("/api/clients/acme/state").json() == {"b": False}


def test_reset_all_disabled_by_default(client):
    client.post("/api/clients", json={"name": "Acme"})
    response = client.get("/api/admin/reset-all")
    assert response.status_code == 404
    assert len(client.get("/api/clients").json()) == 1


def test_reset_all_when_enabled(static_dir, store):
    settings = Settings(store_backend="memory", static_dir=static_dir, admin_reset_enabled=True)
    with TestClient(create_app(settings, store)) as c:
        c.post("/api/clients", json={"name": "Acme"})
        c.put("/api/clients/other/state", json={"x": True})

        response = c.get("/api/admin/reset-all")
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["message"]
        assert c.get("/api/clients").json() == []
        assert c.get("/api/clients/other/state").json() == {}


def test_backend_failure_is_500_and_logged(settings, sql_store, caplog):
    with TestClient(create_app(settings, sql_store)) as c:
        Base.metadata.drop_all(sql_store.engine)
        with caplog.at_level(logging.ERROR, logger="checklist"):
            response = c.get("/api/clients")
            state_response = c.put("/api/clients/acme/state", json={"x": True})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch clients"}
    assert state_response.status_code == 500
    assert state_response.json() == {"error": "Failed to update client state"}
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert any("list_clients failed" in m for m in messages)
    assert any("ensure_client failed (client=acme)" in m for m in messages)


def test_app_builds_memory_store_from_settings(settings):
    app = create_app(settings)
    assert isinstance(app.state.store, MemoryClientStore)


def test_rename_to_same_name_is_not_404(client):
    client.post("/api/clients", json={"name": "Acme"})
    response = client.put("/api/clients/acme", json={"name": "Acme"})
    assert response.status_code == 200
    assert response.json() == {"id": "acme", "name": "Acme"}


def test_put_state_requires_json_content_type(client):
    response = client.put(
        "/api/clients/acme/state",
        content=b'{"task1": true}',
        headers={"Content-Type": "text/plain"},
    )
    assert response.status_code == 400
    assert client.get("/api/clients/acme/state").json() == {}


def test_schema_init_failure_is_fatal(settings, caplog):
    class BrokenStore(MemoryClientStore):
        def init_schema(self):
            raise BackendError("Failed to initialize database", operation="init_schema")

    app = create_app(settings, BrokenStore())
    with caplog.at_level(logging.ERROR, logger="checklist"):
        with pytest.raises(BackendError):
            with TestClient(app):
                pass

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any(r.getMessage() == "Failed to initialize database" for r in errors)
