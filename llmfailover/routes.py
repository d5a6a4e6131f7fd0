from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

import httpx
from fastapi import APIRouter, Depends, FastAPI
from pydantic import Field

from .deps import get_config_dir, get_model_discovery, get_usage_tracker
from .errors import invalid_profile_id, profile_not_found, provider_not_found
from .logging_config import logger
from .models import (
    ApiFamily,
    AuthMode,
    AvailableModel,
    CamelModel,
    CredentialType,
    ModelDef,
    ProfileStats,
    ProviderSummary,
    UsageStats,
    UsageSummaryRow,
)
from .provider.auth_profiles import (
    InvalidProfileId,
    add_profile,
    get_profile_stats,
    load_auth_profiles,
    remove_profile,
    reset_profile_cooldown,
    save_auth_profiles,
)
from .provider.catalog import BUILT_IN_PROVIDERS, get_available_providers, get_provider_config
from .provider.discovery import ModelDiscovery, list_available_models
from .provider.usage_tracking import UsageTracker, format_usage_detailed, format_usage_line
from .settings import settings


class HealthResponse(CamelModel):
    status: str = "ok"
    timestamp: str
    llm_providers: int
    usage: str


class ProvidersResponse(CamelModel):
    providers: List[ProviderSummary] = Field(default_factory=list)
    total: int
    built_in: int


class ProviderModel(ModelDef):
    ref: str


class ProviderDetailResponse(CamelModel):
    name: str
    base_url: str
    api_family: ApiFamily
    auth_mode: AuthMode
    env_key: Optional[str] = None
    requires_auth: bool
    description: Optional[str] = None
    models: List[ProviderModel] = Field(default_factory=list)


class ModelsResponse(CamelModel):
    models: List[AvailableModel] = Field(default_factory=list)
    total: int
    available: int


class UsageResponse(CamelModel):
    summary: List[UsageSummaryRow] = Field(default_factory=list)
    formatted: str
    detailed: str
    stats: UsageStats


class ProfilesResponse(CamelModel):
    profiles: List[ProfileStats] = Field(default_factory=list)
    total: int


class ProfileCreateRequest(CamelModel):
    profile_id: str = Field(..., description="provider:name")
    type: CredentialType = CredentialType.API_KEY
    key: Optional[str] = None
    token: Optional[str] = None
    access: Optional[str] = None


class ProfileActionResponse(CamelModel):
    success: bool = True
    profile_id: str


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(tracker: UsageTracker = Depends(get_usage_tracker)) -> HealthResponse:
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        llm_providers=len(get_available_providers()),
        usage=format_usage_line(tracker.get_usage_summary()),
    )


@router.get("/llm/providers", response_model=ProvidersResponse)
async def list_llm_providers() -> ProvidersResponse:
    """
    Providers that currently have a usable credential.
    """
    providers = get_available_providers()
    return ProvidersResponse(
        providers=providers, total=len(providers), built_in=len(BUILT_IN_PROVIDERS)
    )


@router.get("/llm/providers/{name}", response_model=ProviderDetailResponse)
async def get_llm_provider(name: str) -> ProviderDetailResponse:
    config = get_provider_config(name)
    if config is None:
        raise provider_not_found(name)
    return ProviderDetailResponse(
        name=config.name,
        base_url=config.base_url,
        api_family=config.api_family,
        auth_mode=config.auth_mode,
        env_key=config.env_key,
        requires_auth=config.requires_auth,
        description=config.description,
        models=[
            ProviderModel(ref=f"{name}/{m.id}", **m.model_dump()) for m in config.models
        ],
    )


@router.get("/llm/models", response_model=ModelsResponse)
async def list_llm_models(
    discovery: ModelDiscovery = Depends(get_model_discovery),
) -> ModelsResponse:
    models = await list_available_models(discovery)
    return ModelsResponse(
        models=models,
        total=len(models),
        available=sum(1 for m in models if m.available),
    )


@router.get("/llm/usage", response_model=UsageResponse)
async def get_llm_usage(tracker: UsageTracker = Depends(get_usage_tracker)) -> UsageResponse:
    summary = tracker.get_usage_summary()
    return UsageResponse(
        summary=summary,
        formatted=format_usage_line(summary),
        detailed=format_usage_detailed(summary),
        stats=tracker.get_usage_stats(),
    )


@router.get("/auth/profiles", response_model=ProfilesResponse)
async def list_auth_profiles(config_dir: Path = Depends(get_config_dir)) -> ProfilesResponse:
    store = load_auth_profiles(config_dir)
    profiles = [get_profile_stats(store, pid) for pid in store.profiles]
    return ProfilesResponse(profiles=profiles, total=len(profiles))


@router.post("/auth/profiles", response_model=ProfileActionResponse)
async def create_auth_profile(
    body: ProfileCreateRequest,
    config_dir: Path = Depends(get_config_dir),
) -> ProfileActionResponse:
    credential = body.model_dump(exclude={"profile_id"}, exclude_none=True)
    credential["type"] = body.type.value

    store = load_auth_profiles(config_dir)
    try:
        add_profile(store, body.profile_id, credential)
    except InvalidProfileId as exc:
        raise invalid_profile_id(body.profile_id, str(exc))
    save_auth_profiles(config_dir, store)
    logger.info("auth profile %s saved", body.profile_id)
    return ProfileActionResponse(profile_id=body.profile_id)


@router.delete("/auth/profiles/{profile_id}", response_model=ProfileActionResponse)
async def delete_auth_profile(
    profile_id: str,
    config_dir: Path = Depends(get_config_dir),
) -> ProfileActionResponse:
    store = load_auth_profiles(config_dir)
    if profile_id not in store.profiles and profile_id not in store.unparsed_profile_ids:
        raise profile_not_found(profile_id)
    remove_profile(store, profile_id)
    save_auth_profiles(config_dir, store)
    logger.info("auth profile %s removed", profile_id)
    return ProfileActionResponse(profile_id=profile_id)


@router.post("/auth/profiles/{profile_id}/reset", response_model=ProfileStats)
async def reset_auth_profile(
    profile_id: str,
    config_dir: Path = Depends(get_config_dir),
) -> ProfileStats:
    store = load_auth_profiles(config_dir)
    if profile_id not in store.profiles:
        raise profile_not_found(profile_id)
    reset_profile_cooldown(store, profile_id)
    save_auth_profiles(config_dir, store)
    logger.info("auth profile %s cooldown reset", profile_id)
    return get_profile_stats(store, profile_id)


def create_app(
    config_dir: Optional[Union[str, Path]] = None,
    *,
    usage_tracker: Optional[UsageTracker] = None,
    model_discovery: Optional[ModelDiscovery] = None,
) -> FastAPI:
    """
    Build the operator API. Usage history is loaded on startup and written
    back on shutdown.
    """
    resolved_dir = Path(config_dir or settings.config_dir)
    tracker = (
        usage_tracker
        if usage_tracker is not None
        else UsageTracker(cost_mode=settings.usage_cost_mode)
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        tracker.load_usage_history(resolved_dir)
        if model_discovery is not None:
            app.state.model_discovery = model_discovery
            yield
        else:
            async with httpx.AsyncClient(timeout=settings.discovery_timeout) as client:
                app.state.model_discovery = ModelDiscovery(client)
                yield
        tracker.save_usage_history(resolved_dir)

    app = FastAPI(title="llmfailover", lifespan=lifespan)
    app.state.config_dir = resolved_dir
    app.state.usage_tracker = tracker
    app.state.model_discovery = (
        model_discovery if model_discovery is not None else ModelDiscovery()
    )
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
