from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from jotter_api.dependencies import get_settings


@pytest.fixture(autouse=True)
def notes_env(tmp_path, monkeypatch):
    monkeypatch.setenv("JOTTER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JOTTER_AUTOSAVE_INTERVAL_S", "3600")
    monkeypatch.delenv("JOTTER_ROAMING_DIR", raising=False)
    monkeypatch.delenv("JOTTER_SIGNED_IN", raising=False)
    monkeypatch.delenv("TODO_API_TOKEN", raising=False)
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _assert_consistent(body: dict) -> None:
    index = body["selected_index"]
    assert index != -1
    assert body["notes_list"]["items"][index]["page_id"] == body["active_page"]["id"]


def test_startup_creates_a_first_page() -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        r = client.get("/session")
        assert r.status_code == 200
        body = r.json()
        assert body["selected_index"] == 0
        assert body["active_page"]["title"] == "New note"
        assert body["active_page"]["items"] == [{"kind": "text", "text": "", "external_task_id": None}]
        assert body["signed_in"] is False
        _assert_consistent(body)


def test_typing_todo_creates_a_task_and_save_writes_files(tmp_path) -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        client.put("/pages/current/title", json={"title": "Weekend"})
        r = client.put("/pages/current/items/0", json={"text": "call mom todo: buy milk later"})
        assert r.status_code == 200
        items = r.json()["active_page"]["items"]
        assert [(i["kind"], i["text"]) for i in items] == [
            ("text", "call mom "),
            ("task", ""),
            ("text", "buy milk later"),
        ]

        saved = client.post("/save").json()
        assert saved["saved"] is True
        assert saved["last_sync"].endswith("Z")
        page_id = client.get("/session").json()["active_page"]["id"]

    listing = json.loads((tmp_path / "notes_list.json").read_text(encoding="utf-8"))
    assert listing["items"] == [{"page_id": page_id, "page_title": "Weekend"}]
    assert (tmp_path / "pages" / f"{page_id}.md").exists()


def test_selection_and_delete_keep_list_and_page_in_step() -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        first = client.get("/session").json()["active_page"]["id"]
        client.put("/pages/current/title", json={"title": "First"})
        client.post("/save")

        second = client.post("/pages").json()
        assert second["selected_index"] == 0
        assert second["notes_list"]["items"][1]["page_id"] == first
        client.post("/save")

        picked = client.put("/selection", json={"index": 1}).json()
        assert picked["active_page"]["id"] == first
        _assert_consistent(picked)

        after = client.delete("/pages/current").json()
        assert len(after["notes_list"]["items"]) == 1
        assert after["selected_index"] == 0
        assert after["active_page"]["id"] != first
        _assert_consistent(after)

        r = client.put("/selection", json={"index": 5})
        assert r.status_code == 400
        assert r.json()["detail"] == "selection_out_of_range"


def test_deleting_a_task_merges_neighbours() -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        client.put("/pages/current/items/0", json={"text": "A todo: B"})

        r = client.delete("/pages/current/items/0")
        assert r.status_code == 400
        assert r.json()["detail"] == "item_not_a_task"

        r = client.delete("/pages/current/items/9")
        assert r.status_code == 400
        assert r.json()["detail"] == "item_index_out_of_range"

        r = client.delete("/pages/current/items/1")
        assert r.status_code == 200
        items = r.json()["active_page"]["items"]
        assert [(i["kind"], i["text"]) for i in items] == [("text", "A B")]


def test_session_is_restored_after_restart() -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        client.put("/pages/current/title", json={"title": "Keep me"})
        client.post("/save")
        client.post("/pages")
        client.put("/pages/current/title", json={"title": "Current"})
        client.post("/save")
        current_id = client.get("/session").json()["active_page"]["id"]

    get_settings.cache_clear()
    with TestClient(create_app()) as client:
        body = client.get("/session").json()
        assert body["active_page"]["id"] == current_id
        assert [e["page_title"] for e in body["notes_list"]["items"]] == ["Current", "Keep me"]
        _assert_consistent(body)


def test_signing_in_carries_the_open_page_to_roaming_storage(tmp_path) -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        client.put("/pages/current/title", json={"title": "Draft"})
        page_id = client.get("/session").json()["active_page"]["id"]

        r = client.put("/auth", json={"state": "loading"})
        assert r.json()["signed_in"] is False

        body = client.put("/auth", json={"state": "signed_in"}).json()
        assert body["signed_in"] is True
        assert body["active_page"]["id"] == page_id
        _assert_consistent(body)

    roaming = json.loads((tmp_path / "roaming" / "notes_list.json").read_text(encoding="utf-8"))
    assert [e["page_id"] for e in roaming["items"]] == [page_id]
    assert (tmp_path / "roaming" / "pages" / f"{page_id}.md").exists()
    assert not (tmp_path / "notes_list.json").exists()


def test_request_id_header_present() -> None:
    from main import create_app

    with TestClient(create_app()) as client:
        r = client.get("/health")
        assert r.status_code == 200
        assert r.headers.get("x-request-id")


def test_bearer_auth_blocks_when_enabled(monkeypatch) -> None:
    monkeypatch.setenv("API_AUTH_MODE", "bearer")
    monkeypatch.setenv("API_AUTH_TOKEN", "secret")

    from main import create_app

    with TestClient(create_app()) as client:
        assert client.get("/health").status_code == 200
        assert client.get("/session").status_code == 401
        assert client.get("/session", headers={"Authorization": "Bearer secret"}).status_code == 200
