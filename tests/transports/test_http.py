# tests/transports/test_http.py
"""
HTTP transport tests (FastAPI TestClient)
"""

import pytest
from fastapi.testclient import TestClient

from callcore.config import SessionConfig
from callcore.transports.http import CORRELATION_HEADER, create_app


@pytest.fixture
def client(registry, router):
    return TestClient(create_app(registry, router, SessionConfig(transport_mode="http")))


class TestHttpTransport:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "tools": 3}

    def test_tools_list(self, client):
        body = client.get("/tools/list").json()
        assert body["object"] == "list"
        names = [entry["function"]["name"] for entry in body["data"]]
        assert names == ["file.read", "fail", "hang"]
        assert all(entry["type"] == "function" for entry in body["data"])

    def test_call_with_model_output(self, client):
        out = '```json\n{"name": "file.read", "arguments": {"path": "r.md"}}\n```'
        response = client.post("/tools/call", json={"model_output": out}, headers={CORRELATION_HEADER: "req_http"})

        assert response.status_code == 200
        body = response.json()
        assert body["object"] == "tool_call_result"
        assert body["type"] == "tool_results"
        assert body["correlationId"] == "req_http"
        assert body["results"][0]["result"]["data"] == "contents of r.md"

    def test_body_correlation_id_is_used(self, client):
        body = client.post("/tools/call", json={
            "tool": "file.read", "arguments": {"path": "a"}, "correlationId": "req_mine",
        }).json()
        assert body["correlationId"] == "req_mine"

    def test_body_correlation_id_wins_over_header(self, client):
        response = client.post(
            "/tools/call",
            json={"tool": "file.read", "arguments": {"path": "a"}, "correlationId": "req_body"},
            headers={CORRELATION_HEADER: "req_header"},
        )
        assert response.json()["correlationId"] == "req_body"

    def test_correlation_id_generated_when_absent(self, client):
        body = client.post("/tools/call", json={"tool": "file.read", "arguments": {"path": "a"}}).json()
        assert body["correlationId"].startswith("req_")

    def test_call_direct(self, client):
        body = client.post("/tools/call", json={"tool": "fail"}).json()
        assert body["results"][0]["result"]["error"]["code"] == "EBROKEN"

    def test_no_tool_call(self, client):
        body = client.post("/tools/call", json={"model_output": "nothing to do"}).json()
        assert body["type"] == "no_tool_call"
        assert body["message"] == "nothing to do"

    def test_invalid_json_body(self, client):
        response = client.post("/tools/call", content=b"{nope", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_non_object_body(self, client):
        response = client.post("/tools/call", json=[1, 2])
        assert response.status_code == 400

    def test_missing_fields(self, client):
        response = client.post("/tools/call", json={"arguments": {}})
        assert response.status_code == 400
        assert response.json()["type"] == "error"
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_malformed_tag(self, client):
        response = client.post("/tools/call", json={"model_output": "<tool_call>{bad</tool_call>"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MALFORMED_TOOL_CALL"
