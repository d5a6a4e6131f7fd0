"""
Dynamic model discovery.

Ollama (local model server) and Venice (hosted) publish their model lists
at runtime instead of in the built-in catalog. ModelDiscovery queries them
over HTTP and keeps each result for `models_cache_ttl` seconds so listing
models does not hit the network on every call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from llmfailover.logging_config import logger
from llmfailover.models import AvailableModel, ModelCost, ModelDef
from llmfailover.provider.catalog import BUILT_IN_PROVIDERS, resolve_default_credential
from llmfailover.settings import settings

DISCOVERABLE_PROVIDERS = ("ollama", "venice")

_DEFAULT_CONTEXT_WINDOW = 128000
_DEFAULT_MAX_TOKENS = 8192
_REASONING_MARKERS = ("r1", "reasoning")


def _discovered_model(model_id: str, *, reasoning: bool = False, local: bool = False) -> ModelDef:
    return ModelDef(
        id=model_id,
        display_name=model_id,
        reasoning=reasoning,
        input_modalities=("text",),
        cost=ModelCost(),
        context_window=_DEFAULT_CONTEXT_WINDOW,
        max_output_tokens=_DEFAULT_MAX_TOKENS,
        local=local,
    )


def _normalise_ollama_model(raw: Dict[str, Any]) -> Optional[ModelDef]:
    name = raw.get("name") or raw.get("model")
    if not isinstance(name, str) or not name:
        return None
    reasoning = any(marker in name for marker in _REASONING_MARKERS)
    return _discovered_model(name, reasoning=reasoning, local=True)


def _normalise_venice_model(raw: Dict[str, Any]) -> Optional[ModelDef]:
    model_id = raw.get("id")
    if not isinstance(model_id, str) or not model_id:
        return None
    return _discovered_model(model_id)


async def discover_ollama_models(client: httpx.AsyncClient, base_url: str) -> List[ModelDef]:
    """
    List the models pulled into a local Ollama server (GET /api/tags).
    Returns an empty list when the server is not running.
    """
    url = f"{base_url.rstrip('/')}/api/tags"
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("Ollama discovery at %s failed: %s", url, exc)
        return []
    if not isinstance(payload, dict):
        return []

    models: List[ModelDef] = []
    for raw in payload.get("models") or []:
        if isinstance(raw, dict):
            model = _normalise_ollama_model(raw)
            if model is not None:
                models.append(model)
    return models


async def discover_venice_models(
    client: httpx.AsyncClient, base_url: str, api_key: Optional[str]
) -> List[ModelDef]:
    """
    List Venice models (GET /models). Requires an API key.
    """
    if not api_key:
        return []

    url = f"{base_url.rstrip('/')}/models"
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }
    try:
        resp = await client.get(url, headers=headers)
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Venice discovery failed: %s", exc)
        return []
    if not isinstance(payload, dict):
        return []

    models: List[ModelDef] = []
    for raw in payload.get("data") or []:
        if isinstance(raw, dict):
            model = _normalise_venice_model(raw)
            if model is not None:
                models.append(model)
    return models


@dataclass
class _CachedModels:
    models: List[ModelDef] = field(default_factory=list)
    fetched_at: Optional[float] = None


class ModelDiscovery:
    """
    TTL-cached discovery for the providers in DISCOVERABLE_PROVIDERS.

    Pass a shared httpx.AsyncClient to reuse connections; without one a
    short-lived client is opened per refresh.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        ttl: Optional[float] = None,
        ollama_base_url: Optional[str] = None,
        venice_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.ttl = settings.models_cache_ttl if ttl is None else ttl
        self.ollama_base_url = ollama_base_url or settings.ollama_base_url
        self.venice_base_url = venice_base_url or settings.venice_base_url
        self.timeout = settings.discovery_timeout if timeout is None else timeout
        self._clock = clock
        self._cache: Dict[str, _CachedModels] = {
            name: _CachedModels() for name in DISCOVERABLE_PROVIDERS
        }

    def _is_stale(self, provider: str) -> bool:
        fetched_at = self._cache[provider].fetched_at
        return fetched_at is None or self._clock() - fetched_at > self.ttl

    async def _fetch(self, client: httpx.AsyncClient, provider: str) -> List[ModelDef]:
        if provider == "ollama":
            return await discover_ollama_models(client, self.ollama_base_url)
        auth = resolve_default_credential("venice")
        return await discover_venice_models(
            client, self.venice_base_url, auth.api_key if auth else None
        )

    async def refresh(self, force: bool = False) -> None:
        stale = [p for p in DISCOVERABLE_PROVIDERS if force or self._is_stale(p)]
        if not stale:
            return

        if self._client is not None:
            await self._refresh_with(self._client, stale)
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            await self._refresh_with(client, stale)

    async def _refresh_with(self, client: httpx.AsyncClient, providers: List[str]) -> None:
        for provider in providers:
            models = await self._fetch(client, provider)
            self._cache[provider] = _CachedModels(models=models, fetched_at=self._clock())
            logger.debug("Discovered %d models for %s", len(models), provider)

    def cached_models(self, provider: str) -> List[ModelDef]:
        entry = self._cache.get(provider)
        return list(entry.models) if entry else []

    def invalidate(self) -> None:
        for provider in DISCOVERABLE_PROVIDERS:
            self._cache[provider] = _CachedModels()


async def list_available_models(discovery: Optional[ModelDiscovery] = None) -> List[AvailableModel]:
    """
    Flatten the catalog (plus discovered models) into "provider/model" rows.

    `available` is true when the provider has a default credential or
    needs none.
    """
    if discovery is None:
        discovery = ModelDiscovery()
    await discovery.refresh()

    rows: List[AvailableModel] = []
    for name, config in BUILT_IN_PROVIDERS.items():
        auth = resolve_default_credential(name)
        available = auth is not None or not config.requires_auth

        models = list(config.models)
        discovered = discovery.cached_models(name)
        if discovered:
            models = discovered

        for model in models:
            rows.append(
                AvailableModel(
                    ref=f"{name}/{model.id}",
                    provider=name,
                    id=model.id,
                    display_name=model.display_name,
                    reasoning=model.reasoning,
                    input_modalities=model.input_modalities,
                    cost=model.cost,
                    context_window=model.context_window,
                    max_output_tokens=model.max_output_tokens,
                    local=model.local,
                    available=available,
                )
            )
    return rows


__all__ = [
    "DISCOVERABLE_PROVIDERS",
    "ModelDiscovery",
    "discover_ollama_models",
    "discover_venice_models",
    "list_available_models",
]
