"""
Provider failover.

run_with_fallback() tries the requested (provider, model) and then each
fallback provider with its equivalent model, strictly one after another.
For every candidate a credential is resolved (environment default first,
then the least recently used profile not on cooldown), the caller's `run`
coroutine is awaited, and the outcome is recorded on the profile. The
first success is returned; when all candidates are exhausted a single
AllProvidersFailed carrying the attempt log is raised.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Sequence
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from llmfailover.logging_config import logger
from llmfailover.models import (
    AuthProfileStore,
    ErrorEvent,
    FailureType,
    FallbackAttempt,
    FallbackEvent,
    FallbackResult,
    ModelRef,
    ResolvedCredential,
    SkipReason,
)
from llmfailover.provider.auth_profiles import (
    get_next_available_profile,
    is_profile_in_cooldown,
    list_profiles_for_provider,
    load_auth_profiles,
    mark_profile_failure,
    mark_profile_used,
    resolve_api_key_for_profile,
    save_auth_profiles,
)
from llmfailover.provider.catalog import get_provider_config, resolve_default_credential
from llmfailover.routing.equivalence import find_equivalent_model
from llmfailover.routing.error_classifier import categorize_error, extract_error_message
from llmfailover.routing.exceptions import AllProvidersFailed
from llmfailover.settings import settings

RunFn = Callable[[str, Optional[str], Optional[str]], Union[Awaitable[Any], Any]]
Observer = Callable[[Any], Union[Awaitable[None], None]]

DEFAULT_FALLBACKS: Dict[str, List[str]] = {
    "anthropic": ["openai", "google", "groq", "deepseek"],
    "openai": ["anthropic", "google", "groq", "deepseek"],
    "google": ["anthropic", "openai", "groq", "deepseek"],
    "groq": ["anthropic", "openai", "google", "deepseek"],
    "deepseek": ["anthropic", "openai", "groq", "google"],
    "mistral": ["anthropic", "openai", "groq"],
    "xai": ["anthropic", "openai", "groq"],
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _requires_auth(provider: str) -> bool:
    config = get_provider_config(provider)
    return config is None or config.requires_auth


def default_fallbacks_for(provider: str) -> List[str]:
    """
    Fallback providers for `provider`: LLM_FALLBACKS overrides first,
    then the built-in table.
    """
    overrides = settings.get_fallback_overrides()
    if provider in overrides:
        return list(overrides[provider])
    return list(DEFAULT_FALLBACKS.get(provider, []))


def get_fallback_chain(provider: str, custom_fallbacks: Optional[Sequence[str]] = None) -> List[str]:
    chain = list(custom_fallbacks) if custom_fallbacks is not None else default_fallbacks_for(provider)
    return [provider, *chain]


def is_provider_available(provider: str, store: Optional[AuthProfileStore] = None) -> bool:
    """
    True when the provider has an environment credential, a profile that is
    not cooling down, or needs no credential at all.
    """
    if resolve_default_credential(provider) is not None:
        return True

    if store is not None:
        profiles = list_profiles_for_provider(store, provider)
        if any(not is_profile_in_cooldown(store, pid) for pid in profiles):
            return True

    return not _requires_auth(provider)


def get_api_key_for_provider(
    provider: str, store: Optional[AuthProfileStore] = None
) -> Optional[ResolvedCredential]:
    env_auth = resolve_default_credential(provider)
    if env_auth is not None and env_auth.api_key:
        return ResolvedCredential(api_key=env_auth.api_key, source=env_auth.source)

    if store is not None:
        profile_id = get_next_available_profile(store, provider)
        if profile_id:
            key = resolve_api_key_for_profile(store, profile_id)
            if key:
                return ResolvedCredential(
                    api_key=key, source=f"profile:{profile_id}", profile_id=profile_id
                )
    return None


async def _notify(callback: Optional[Observer], event: Any) -> None:
    if callback is None:
        return
    outcome = callback(event)
    if inspect.isawaitable(outcome):
        await outcome


def _persist(store: Optional[AuthProfileStore], config_dir: Optional[Union[str, Path]]) -> None:
    if store is not None and config_dir:
        save_auth_profiles(config_dir, store)


async def run_with_fallback(
    *,
    provider: str,
    model: Optional[str],
    run: RunFn,
    fallbacks: Optional[Sequence[str]] = None,
    config_dir: Optional[Union[str, Path]] = None,
    store: Optional[AuthProfileStore] = None,
    on_fallback: Optional[Observer] = None,
    on_error: Optional[Observer] = None,
) -> FallbackResult:
    """
    Execute `run(provider, model, api_key)` against the first candidate
    that succeeds.

    Args:
        provider: Requested provider name.
        model: Requested model id on that provider.
        run: Caller-supplied coroutine function performing the LLM call.
        fallbacks: Ordered fallback providers; defaults to default_fallbacks_for().
        config_dir: Directory of auth-profiles.json. When given the store is
            loaded from it (unless `store` is passed) and written back after
            every attempt that used a named profile.
        store: Already loaded AuthProfileStore owned by the caller.
        on_fallback: Observer called with a FallbackEvent before a
            substitute candidate is tried.
        on_error: Observer called with an ErrorEvent after each failure.

    Observers may be plain callables or coroutine functions. They run
    outside the per-candidate error handling: an exception raised by
    `on_fallback` or `on_error` is not recorded as a candidate failure and
    propagates to the caller, ending the chain.

    Raises:
        AllProvidersFailed: when no candidate succeeded.
    """
    if store is None and config_dir:
        store = load_auth_profiles(config_dir)

    chain = list(fallbacks) if fallbacks is not None else default_fallbacks_for(provider)
    candidates: List[ModelRef] = [ModelRef(provider=provider, model=model)]
    for fallback_provider in chain:
        equivalent = find_equivalent_model(provider, model, fallback_provider) if model else None
        candidates.append(
            ModelRef(provider=fallback_provider, model=equivalent.id if equivalent else None)
        )

    attempts: List[FallbackAttempt] = []
    origin = candidates[0]

    for index, candidate in enumerate(candidates):
        if not is_provider_available(candidate.provider, store):
            logger.info("fallback: skipping %s (no usable credential)", candidate.provider)
            attempts.append(
                FallbackAttempt(
                    provider=candidate.provider,
                    model=candidate.model,
                    skipped=True,
                    reason=SkipReason.NO_AUTH,
                    timestamp=_now_ms(),
                )
            )
            continue

        auth = get_api_key_for_provider(candidate.provider, store)
        if auth is None and _requires_auth(candidate.provider):
            logger.info("fallback: skipping %s (no api key resolved)", candidate.provider)
            attempts.append(
                FallbackAttempt(
                    provider=candidate.provider,
                    model=candidate.model,
                    skipped=True,
                    reason=SkipReason.NO_API_KEY,
                    timestamp=_now_ms(),
                )
            )
            continue

        if candidate.provider != provider:
            logger.info(
                "fallback: %s/%s -> %s/%s",
                origin.provider,
                origin.model,
                candidate.provider,
                candidate.model,
            )
            await _notify(on_fallback, FallbackEvent(from_=origin, to=candidate))

        profile_id = auth.profile_id if auth else None
        try:
            outcome = run(candidate.provider, candidate.model, auth.api_key if auth else None)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            failure_type = categorize_error(exc)
            message = extract_error_message(exc) or type(exc).__name__
            attempts.append(
                FallbackAttempt(
                    provider=candidate.provider,
                    model=candidate.model,
                    error=message,
                    failure_type=failure_type,
                    timestamp=_now_ms(),
                )
            )
            logger.warning(
                "fallback: %s/%s failed (%s): %s",
                candidate.provider,
                candidate.model,
                failure_type.value,
                message,
            )

            if store is not None and profile_id:
                mark_profile_failure(store, profile_id, failure_type)
                _persist(store, config_dir)
            elif failure_type == FailureType.AUTH:
                logger.error(
                    "fallback: %s rejected its default credential (%s)",
                    candidate.provider,
                    auth.source if auth else "none",
                )

            await _notify(
                on_error,
                ErrorEvent(
                    provider=candidate.provider,
                    model=candidate.model,
                    error=exc,
                    failure_type=failure_type,
                    will_retry=index < len(candidates) - 1,
                ),
            )
            continue

        if store is not None and profile_id:
            mark_profile_used(store, profile_id)
            _persist(store, config_dir)

        return FallbackResult(
            result=outcome,
            provider=candidate.provider,
            model=candidate.model,
            attempts=attempts,
            fallback_used=candidate.provider != provider,
        )

    error = AllProvidersFailed(attempts)
    logger.error("fallback: %s", error)
    raise error


__all__ = [
    "DEFAULT_FALLBACKS",
    "default_fallbacks_for",
    "get_api_key_for_provider",
    "get_fallback_chain",
    "is_provider_available",
    "run_with_fallback",
]
