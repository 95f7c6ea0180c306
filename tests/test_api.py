"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from cos_kernel.api.app import build_engine, create_app
from cos_kernel.models.intent import Intent
from cos_kernel.settings import CosSettings
from cos_kernel.understanding.engine import UnderstandingEngine


@pytest.fixture
def files_root(tmp_path):
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    (downloads / "report.pdf").write_text("x")
    return tmp_path


@pytest.fixture
def client(files_root):
    """Create a test client with a pattern-only engine and a sandboxed file root."""
    settings = CosSettings(files_root=files_root, max_history=5)
    app = create_app(settings=settings, engine=UnderstandingEngine())
    return TestClient(app)


class TestSessionEndpoints:
    def test_tip_turn(self, client):
        response = client.post("/sessions/s1/turns", json={"text": "What's 15% tip on $50"})
        assert response.status_code == 200
        data = response.json()
        assert "7.5" in data["reply"]
        assert data["source"] == "handler"
        assert data["handler"] == "calculator"
        assert data["intent"] == "CALCULATE"
        assert data["sequence"] == 1
        assert data["committed"] is True

    def test_file_turn(self, client):
        response = client.post("/sessions/s1/turns", json={"text": "list files in downloads"})
        data = response.json()
        assert data["handler"] == "files"
        assert "report.pdf" in data["reply"]

    def test_empty_text_rejected(self, client):
        response = client.post("/sessions/s1/turns", json={"text": ""})
        assert response.status_code == 422

    def test_sessions_are_isolated(self, client):
        client.post("/sessions/a/turns", json={"text": "calculate 5 + 7"})
        client.post("/sessions/b/turns", json={"text": "list files"})

        assert client.get("/sessions").json() == ["a", "b"]
        a = client.get("/sessions/a/context").json()
        b = client.get("/sessions/b/context").json()
        assert a["previous_intent"] == "CALCULATE"
        assert b["previous_intent"] == "LIST_FILES"
        assert len(a["history"]) == 1

    def test_history_bounded_by_settings(self, client):
        for i in range(8):
            client.post("/sessions/s1/turns", json={"text": f"calculate {i} + 1"})
        context = client.get("/sessions/s1/context").json()
        assert len(context["history"]) == 5
        assert context["history"][-1]["input"] == "calculate 7 + 1"

    def test_unknown_session_context(self, client):
        response = client.get("/sessions/nope/context")
        assert response.status_code == 404

    def test_end_session(self, client):
        client.post("/sessions/s1/turns", json={"text": "calculate 1 + 1"})
        response = client.delete("/sessions/s1")
        assert response.json()["status"] == "ended"
        assert client.get("/sessions/s1/context").status_code == 404


class TestEngineEndpoints:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["engine_state"] == "ready"
        assert data["mode"] == "pattern_only"
        assert data["handlers"] == 2

    def test_teardown_then_initialize(self, client):
        assert client.post("/engine/teardown").json()["engine_state"] == "uninitialized"

        reply = client.post("/sessions/s1/turns", json={"text": "calculate 1 + 1"}).json()
        assert reply["reply"] == "Sorry, I couldn't process that: AI engine not initialized."
        assert reply["source"] == "apology"

        data = client.post("/engine/initialize").json()
        assert data["ready"] is True
        assert data["engine_state"] == "ready"

    def test_build_engine_from_settings(self, files_root):
        assert build_engine(CosSettings(files_root=files_root)).mode == "pattern_only"
        engine = build_engine(CosSettings(files_root=files_root, llm_model="ollama/llama3"))
        assert engine.mode == "generative"
        assert engine.backend.model == "ollama/llama3"


class TestInspectionEndpoints:
    def test_classify(self, client):
        data = client.post("/classify", json={"text": "calculate 5 + 7"}).json()
        assert data["intent"] == "CALCULATE"
        assert data["category"] == "unknown"
        assert data["rule"] == "arithmetic"
        assert data["action_data"] == {"expression": "5 + 7"}

    def test_classify_no_match(self, client):
        data = client.post("/classify", json={"text": "good morning"}).json()
        assert data["intent"] == "UNKNOWN"
        assert data["rule"] is None

    def test_intents(self, client):
        data = client.get("/intents").json()
        assert len(data) == len(Intent)
        assert {"intent": "MAKE_CALL", "category": "communication"} in data

    def test_handlers(self, client):
        data = client.get("/handlers").json()
        assert [h["name"] for h in data] == ["files", "calculator"]
        assert data[0]["routes"] == ["file_management"]
        assert data[1]["routes"] == ["unknown"]
