from typing import List

import httpx
import pytest

from llmfailover.provider.discovery import (
    ModelDiscovery,
    discover_ollama_models,
    discover_venice_models,
    list_available_models,
)

OLLAMA_URL = "http://ollama.local:11434"
VENICE_URL = "https://venice.local/api/v1"


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _handler(calls: List[str]):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/api/tags"):
            return httpx.Response(
                200,
                json={"models": [{"name": "llama3.1:8b"}, {"name": "deepseek-r1:14b"}, {}]},
            )
        if request.url.path.endswith("/models"):
            assert request.headers["Authorization"] == "Bearer vn-key"
            return httpx.Response(200, json={"data": [{"id": "venice-uncensored"}]})
        return httpx.Response(404)

    return handler


def _discovery(client: httpx.AsyncClient, clock: Clock, ttl: float = 60) -> ModelDiscovery:
    return ModelDiscovery(
        client,
        ttl=ttl,
        ollama_base_url=OLLAMA_URL,
        venice_base_url=VENICE_URL,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_discover_ollama_models_normalises_payload():
    calls: List[str] = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler(calls))) as client:
        models = await discover_ollama_models(client, OLLAMA_URL + "/")

    assert [m.id for m in models] == ["llama3.1:8b", "deepseek-r1:14b"]
    assert models[0].local is True
    assert models[0].reasoning is False
    assert models[1].reasoning is True
    assert calls == ["/api/tags"]


@pytest.mark.asyncio
async def test_discover_ollama_server_down_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await discover_ollama_models(client, OLLAMA_URL) == []


@pytest.mark.asyncio
async def test_discover_ollama_bad_payload_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "a", "dict"])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await discover_ollama_models(client, OLLAMA_URL) == []


@pytest.mark.asyncio
async def test_discover_venice_requires_key():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - should not run
        raise AssertionError("no HTTP call without an api key")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await discover_venice_models(client, VENICE_URL, None) == []


@pytest.mark.asyncio
async def test_discover_venice_models():
    calls: List[str] = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler(calls))) as client:
        models = await discover_venice_models(client, VENICE_URL, "vn-key")

    assert [m.id for m in models] == ["venice-uncensored"]
    assert models[0].local is False


@pytest.mark.asyncio
async def test_venice_http_error_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "down"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await discover_venice_models(client, VENICE_URL, "vn-key") == []


@pytest.mark.asyncio
async def test_model_discovery_caches_until_ttl(monkeypatch):
    monkeypatch.setenv("VENICE_API_KEY", "vn-key")
    calls: List[str] = []
    clock = Clock()

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler(calls))) as client:
        discovery = _discovery(client, clock, ttl=60)

        await discovery.refresh()
        assert len(calls) == 2
        assert [m.id for m in discovery.cached_models("venice")] == ["venice-uncensored"]

        clock.now = 30
        await discovery.refresh()
        assert len(calls) == 2

        clock.now = 61
        await discovery.refresh()
        assert len(calls) == 4

        await discovery.refresh(force=True)
        assert len(calls) == 6

        discovery.invalidate()
        assert discovery.cached_models("ollama") == []


@pytest.mark.asyncio
async def test_list_available_models_merges_discovery(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    calls: List[str] = []

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler(calls))) as client:
        models = await list_available_models(_discovery(client, Clock()))

    by_ref = {m.ref: m for m in models}
    assert by_ref["openai/gpt-4o"].available is True
    assert by_ref["anthropic/claude-sonnet-4-20250514"].available is False
    assert by_ref["ollama/llama3.1:8b"].available is True
    assert by_ref["ollama/llama3.1:8b"].local is True
    # no VENICE_API_KEY: venice is neither discovered nor listed
    assert not any(m.provider == "venice" for m in models)
    assert by_ref["openrouter/anthropic/claude-sonnet-4"].provider == "openrouter"
