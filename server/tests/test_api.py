import anyio
import pytest
from fastapi.testclient import TestClient

from scriptlens.main import app
from scriptlens.routers import analysis as analysis_router
from scriptlens.services import worker as worker_module
from scriptlens.services.script_host import ScriptHost
from scriptlens.services.worker import ScriptWorker


@pytest.fixture
def client(monkeypatch) -> TestClient:
    """TestClient backed by a fresh worker that only sees synced documents."""
    monkeypatch.setattr(worker_module, "_worker", ScriptWorker(ScriptHost(allow_filesystem=False)))
    return TestClient(app)


def _sync(client: TestClient, file_id: str, text: str, version=None):
    body = {"file_id": file_id, "text": text}
    if version is not None:
        body["version"] = version
    return client.put("/api/documents", json=body)


def test_status(client: TestClient) -> None:
    resp = client.get("/api-status")
    assert resp.status_code == 200
    assert "running" in resp.json()["message"]


def test_sync_and_list_documents(client: TestClient) -> None:
    resp = _sync(client, "rules.ts", "class Rule {}\n")
    assert resp.status_code == 200
    assert resp.json() == {
        "file_id": "rules.ts",
        "version": 1,
        "line_count": 1,
        "has_syntax_errors": False,
    }

    _sync(client, "broken.ts", "const = ;")
    listed = client.get("/api/documents").json()

    assert [d["file_id"] for d in listed] == ["broken.ts", "rules.ts"]
    assert listed[0]["has_syntax_errors"] is True


def test_stale_update_conflicts(client: TestClient) -> None:
    _sync(client, "rules.ts", "let a = 1;", version=3)
    resp = _sync(client, "rules.ts", "let a = 0;", version=2)

    assert resp.status_code == 409
    assert "Stale update" in resp.json()["detail"]


def test_document_content_and_close(client: TestClient) -> None:
    _sync(client, "rules.ts", "let a = 1;\n")

    resp = client.get("/api/documents/content", params={"file_id": "rules.ts"})
    assert resp.status_code == 200
    assert resp.text == "let a = 1;\n"
    assert resp.headers["content-type"].startswith("text/plain")

    resp = client.delete("/api/documents", params={"file_id": "rules.ts"})
    assert resp.status_code == 200
    assert resp.json() == {"closed": "rules.ts"}

    resp = client.get("/api/documents/content", params={"file_id": "rules.ts"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Document not found"

    resp = client.delete("/api/documents", params={"file_id": "rules.ts"})
    assert resp.status_code == 404


def test_outline_endpoint(client: TestClient) -> None:
    _sync(client, "rules.ts", "class Foo { constructor() {} bar() {} get x() {} }")

    resp = client.get("/api/analysis/outline", params={"file_id": "rules.ts"})
    assert resp.status_code == 200
    data = resp.json()

    assert data["file_id"] == "rules.ts"
    assert data["tokens"] == [
        {"name": "Foo", "kind": "Class", "ordinal": 1, "line": 0, "indentAmount": 0},
        {"name": "constructor ()", "kind": "Constructor", "ordinal": 2, "line": 0, "indentAmount": 1},
        {"name": "bar", "kind": "Method", "ordinal": 3, "line": 0, "indentAmount": 1},
        {"name": "x", "kind": "Get", "ordinal": 4, "line": 0, "indentAmount": 1},
    ]


def test_references_endpoint(client: TestClient) -> None:
    code = """
Things.sensor.value;
Things["lamp"].state;
Users[principal];
"""
    _sync(client, "rules.ts", code)

    resp = client.post(
        "/api/analysis/references",
        json={"file_id": "rules.ts", "root_names": ["Things", "Users", "Groups"]},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "file_id": "rules.ts",
        "references": {
            "Things": ["lamp", "sensor"],
            "Users": ["System"],
            "Groups": [],
        },
    }


def test_unknown_file_is_empty_not_an_error(client: TestClient) -> None:
    resp = client.get("/api/analysis/outline", params={"file_id": "missing.ts"})
    assert resp.status_code == 200
    assert resp.json()["tokens"] == []

    resp = client.post(
        "/api/analysis/references",
        json={"file_id": "missing.ts", "root_names": ["Things"]},
    )
    assert resp.status_code == 200
    assert resp.json()["references"] == {"Things": []}


def test_outline_route_can_be_awaited_directly(client: TestClient) -> None:
    """The route coroutine works without the HTTP layer as well."""
    _sync(client, "direct.ts", "const o = { run: function () {} };")

    result = anyio.run(analysis_router.get_outline, "direct.ts")

    assert [(t.kind.value, t.name, t.indent_amount) for t in result.tokens] == [
        ("ObjectLiteral", "o", 0),
        ("Method", "run", 1),
    ]
