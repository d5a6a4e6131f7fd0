import json

import httpx
import pytest
from fastapi.testclient import TestClient

from llmfailover.provider.discovery import ModelDiscovery
from llmfailover.provider.usage_tracking import USAGE_FILE, UsageTracker
from llmfailover.routes import create_app


def _offline_discovery() -> ModelDiscovery:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/api/tags"):
            return httpx.Response(200, json={"models": [{"name": "qwen2.5:7b"}]})
        return httpx.Response(200, json={"data": []})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ModelDiscovery(client, ttl=60)


@pytest.fixture()
def tracker() -> UsageTracker:
    return UsageTracker()


@pytest.fixture()
def client(config_dir, tracker):
    app = create_app(config_dir, usage_tracker=tracker, model_discovery=_offline_discovery())
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["llmProviders"] == 1
    assert body["usage"] == "No usage today"


def test_list_providers_reflects_environment(client, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")

    body = client.get("/llm/providers").json()

    assert body["total"] == 2
    assert body["builtIn"] == 20
    names = {p["name"]: p for p in body["providers"]}
    assert names["openai"]["authSource"] == "env:OPENAI_API_KEY"
    assert names["openai"]["api"] == "openai-completions"


def test_provider_detail(client):
    body = client.get("/llm/providers/anthropic").json()

    assert body["apiFamily"] == "anthropic-messages"
    assert body["envKey"] == "ANTHROPIC_API_KEY"
    refs = [m["ref"] for m in body["models"]]
    assert "anthropic/claude-opus-4-5-20251101" in refs


def test_unknown_provider_is_404(client):
    resp = client.get("/llm/providers/nope")
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["error"] == "provider_not_found"
    assert detail["message"] == "Provider not found: nope"


def test_list_models_includes_discovered(client, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk")

    body = client.get("/llm/models").json()

    by_ref = {m["ref"]: m for m in body["models"]}
    assert by_ref["ollama/qwen2.5:7b"]["local"] is True
    assert by_ref["groq/llama-3.1-8b-instant"]["available"] is True
    assert by_ref["openai/gpt-4o"]["available"] is False
    assert body["total"] == len(body["models"])
    assert body["available"] == 5  # 4 groq + 1 ollama


def test_usage_report(client, tracker):
    tracker.track_usage("openai", "gpt-4o", 1000, 500)

    body = client.get("/llm/usage").json()

    assert body["summary"][0]["provider"] == "openai"
    assert body["summary"][0]["inputTokens"] == 1000
    assert body["formatted"].startswith("Today: openai: 1 req")
    assert body["detailed"].startswith("Usage Summary:")
    assert body["stats"]["totalRequests"] == 1


def test_profile_lifecycle(client, config_dir):
    resp = client.post("/auth/profiles", json={"profileId": "anthropic:work", "key": "sk-ant"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "profileId": "anthropic:work"}
    assert (config_dir / "auth-profiles.json").exists()

    listed = client.get("/auth/profiles").json()
    assert listed["total"] == 1
    assert listed["profiles"][0]["profileId"] == "anthropic:work"
    assert listed["profiles"][0]["type"] == "api_key"
    assert listed["profiles"][0]["inCooldown"] is False

    reset = client.post("/auth/profiles/anthropic:work/reset")
    assert reset.status_code == 200
    assert reset.json()["errorCount"] == 0

    deleted = client.delete("/auth/profiles/anthropic:work")
    assert deleted.status_code == 200
    assert client.get("/auth/profiles").json()["total"] == 0


def test_create_profile_with_token_type(client):
    resp = client.post(
        "/auth/profiles",
        json={"profileId": "github-copilot:me", "type": "token", "token": "ghu-1"},
    )
    assert resp.status_code == 200
    assert client.get("/auth/profiles").json()["profiles"][0]["type"] == "token"


def test_invalid_profile_id_is_400(client):
    resp = client.post("/auth/profiles", json={"profileId": "no-colon", "key": "x"})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["error"] == "invalid_profile_id"
    assert detail["details"] == {"profileId": "no-colon"}


def test_reset_unknown_profile_is_404(client):
    resp = client.post("/auth/profiles/openai:ghost/reset")
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "profile_not_found"


def test_delete_unknown_profile_is_404(client, config_dir):
    resp = client.delete("/auth/profiles/openai:ghost")
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "profile_not_found"
    assert not (config_dir / "auth-profiles.json").exists()


def test_delete_unreadable_profile(client, config_dir):
    (config_dir / "auth-profiles.json").write_text(
        json.dumps(
            {
                "version": 1,
                "profiles": {"openai:typo": {"type": "apikey", "key": "sk-x"}},
                "order": {"openai": ["openai:typo"]},
                "usageStats": {},
            }
        ),
        encoding="utf-8",
    )

    assert client.get("/auth/profiles").json()["total"] == 0
    assert client.delete("/auth/profiles/openai:typo").status_code == 200

    raw = json.loads((config_dir / "auth-profiles.json").read_text(encoding="utf-8"))
    assert raw["profiles"] == {}
    assert raw["order"] == {"openai": []}


def test_empty_tracker_passed_in_is_used(config_dir):
    tracker = UsageTracker()
    discovery = _offline_discovery()
    app = create_app(config_dir, usage_tracker=tracker, model_discovery=discovery)

    assert len(tracker) == 0
    assert app.state.usage_tracker is tracker
    assert app.state.model_discovery is discovery


def test_usage_history_saved_on_shutdown(config_dir):
    tracker = UsageTracker()
    app = create_app(config_dir, usage_tracker=tracker, model_discovery=_offline_discovery())

    with TestClient(app):
        tracker.track_usage("groq", "llama-3.1-8b-instant", 10, 5)

    assert (config_dir / USAGE_FILE).exists()

    restored = UsageTracker()
    restarted = create_app(config_dir, usage_tracker=restored, model_discovery=_offline_discovery())
    with TestClient(restarted):
        assert len(restored) == 1
