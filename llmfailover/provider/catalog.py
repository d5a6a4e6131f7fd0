"""
Built-in provider catalog.

Static, read-only description of every supported backend together with
the lookups the routing layer needs. Default credentials are resolved
from the process environment on every call so that changes made by the
settings surface are picked up immediately.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional, Sequence, Tuple

from llmfailover.models import (
    ApiFamily,
    AuthMode,
    DefaultCredential,
    ModelCost,
    ModelDef,
    ProviderConfig,
    ProviderSummary,
)

DEFAULT_MODEL_REF = ("anthropic", "claude-opus-4-5-20251101")

AWS_ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
AWS_SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"
AWS_SDK_SENTINEL = "aws-sdk"

_TEXT = ("text",)
_TEXT_IMAGE = ("text", "image")


def _model(
    model_id: str,
    name: str,
    *,
    reasoning: bool = False,
    inputs: Sequence[str] = _TEXT,
    cost: Tuple[float, float] = (0.0, 0.0),
    context: int,
    max_tokens: int,
    subscription: bool = False,
) -> ModelDef:
    return ModelDef(
        id=model_id,
        display_name=name,
        reasoning=reasoning,
        input_modalities=tuple(inputs),
        cost=ModelCost(input_per_million=cost[0], output_per_million=cost[1]),
        context_window=context,
        max_output_tokens=max_tokens,
        subscription=subscription,
    )


_PROVIDERS: List[ProviderConfig] = [
    ProviderConfig(
        name="anthropic",
        base_url="https://api.anthropic.com/v1",
        api_family=ApiFamily.ANTHROPIC,
        env_key="ANTHROPIC_API_KEY",
        models=(
            _model("claude-opus-4-5-20251101", "Claude Opus 4.5", reasoning=True, inputs=_TEXT_IMAGE, cost=(15, 75), context=200000, max_tokens=32000),
            _model("claude-sonnet-4-20250514", "Claude Sonnet 4", reasoning=True, inputs=_TEXT_IMAGE, cost=(3, 15), context=200000, max_tokens=64000),
            _model("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", inputs=_TEXT_IMAGE, cost=(3, 15), context=200000, max_tokens=8192),
            _model("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", inputs=_TEXT_IMAGE, cost=(0.8, 4), context=200000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="claude-pro",
        base_url="https://claude.ai/api",
        api_family=ApiFamily.ANTHROPIC,
        auth_mode=AuthMode.SESSION,
        env_key="CLAUDE_SESSION_KEY",
        description="Claude Pro/Max subscription via claude.ai",
        subscription=True,
        models=(
            _model("claude-opus-4-5", "Claude Opus 4.5 (Pro/Max)", reasoning=True, inputs=_TEXT_IMAGE, context=200000, max_tokens=32000, subscription=True),
            _model("claude-sonnet-4", "Claude Sonnet 4 (Pro/Max)", reasoning=True, inputs=_TEXT_IMAGE, context=200000, max_tokens=64000, subscription=True),
            _model("claude-3-5-sonnet", "Claude 3.5 Sonnet (Pro/Max)", inputs=_TEXT_IMAGE, context=200000, max_tokens=8192, subscription=True),
            _model("claude-3-5-haiku", "Claude 3.5 Haiku (Pro/Max)", inputs=_TEXT_IMAGE, context=200000, max_tokens=8192, subscription=True),
        ),
    ),
    ProviderConfig(
        name="openai",
        base_url="https://api.openai.com/v1",
        api_family=ApiFamily.OPENAI,
        env_key="OPENAI_API_KEY",
        models=(
            _model("gpt-4o", "GPT-4o", inputs=_TEXT_IMAGE, cost=(2.5, 10), context=128000, max_tokens=16384),
            _model("gpt-4o-mini", "GPT-4o Mini", inputs=_TEXT_IMAGE, cost=(0.15, 0.6), context=128000, max_tokens=16384),
            _model("gpt-4-turbo", "GPT-4 Turbo", inputs=_TEXT_IMAGE, cost=(10, 30), context=128000, max_tokens=4096),
            _model("o1", "o1", reasoning=True, inputs=_TEXT_IMAGE, cost=(15, 60), context=200000, max_tokens=100000),
            _model("o1-mini", "o1 Mini", reasoning=True, cost=(3, 12), context=128000, max_tokens=65536),
        ),
    ),
    ProviderConfig(
        name="google",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        api_family=ApiFamily.GOOGLE,
        env_key="GEMINI_API_KEY",
        models=(
            _model("gemini-2.0-flash-exp", "Gemini 2.0 Flash", inputs=_TEXT_IMAGE, context=1000000, max_tokens=8192),
            _model("gemini-1.5-pro", "Gemini 1.5 Pro", inputs=_TEXT_IMAGE, cost=(1.25, 5), context=2000000, max_tokens=8192),
            _model("gemini-1.5-flash", "Gemini 1.5 Flash", inputs=_TEXT_IMAGE, cost=(0.075, 0.3), context=1000000, max_tokens=8192),
        ),
    ),
    # Venice and Ollama publish their model lists at runtime (see discovery).
    ProviderConfig(
        name="venice",
        base_url="https://api.venice.ai/api/v1",
        api_family=ApiFamily.OPENAI,
        env_key="VENICE_API_KEY",
    ),
    ProviderConfig(
        name="ollama",
        base_url="http://127.0.0.1:11434/v1",
        api_family=ApiFamily.OPENAI,
        env_key="OLLAMA_API_KEY",
        requires_auth=False,
    ),
    ProviderConfig(
        name="openrouter",
        base_url="https://openrouter.ai/api/v1",
        api_family=ApiFamily.OPENAI,
        env_key="OPENROUTER_API_KEY",
        models=(
            _model("anthropic/claude-opus-4-5", "Claude Opus 4.5 (OpenRouter)", reasoning=True, inputs=_TEXT_IMAGE, cost=(15, 75), context=200000, max_tokens=32000),
            _model("anthropic/claude-sonnet-4", "Claude Sonnet 4 (OpenRouter)", reasoning=True, inputs=_TEXT_IMAGE, cost=(3, 15), context=200000, max_tokens=64000),
            _model("openai/gpt-4o", "GPT-4o (OpenRouter)", inputs=_TEXT_IMAGE, cost=(2.5, 10), context=128000, max_tokens=16384),
            _model("google/gemini-pro-1.5", "Gemini 1.5 Pro (OpenRouter)", inputs=_TEXT_IMAGE, cost=(1.25, 5), context=2000000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="groq",
        base_url="https://api.groq.com/openai/v1",
        api_family=ApiFamily.OPENAI,
        env_key="GROQ_API_KEY",
        models=(
            _model("llama-3.3-70b-versatile", "Llama 3.3 70B", cost=(0.59, 0.79), context=128000, max_tokens=32768),
            _model("llama-3.1-8b-instant", "Llama 3.1 8B Instant", cost=(0.05, 0.08), context=128000, max_tokens=8192),
            _model("mixtral-8x7b-32768", "Mixtral 8x7B", cost=(0.24, 0.24), context=32768, max_tokens=32768),
            _model("gemma2-9b-it", "Gemma 2 9B", cost=(0.2, 0.2), context=8192, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="amazon-bedrock",
        base_url="https://bedrock-runtime.us-east-1.amazonaws.com",
        api_family=ApiFamily.BEDROCK,
        auth_mode=AuthMode.AWS_SDK,
        models=(
            _model("anthropic.claude-3-5-sonnet-20241022-v2:0", "Claude 3.5 Sonnet (Bedrock)", inputs=_TEXT_IMAGE, cost=(3, 15), context=200000, max_tokens=8192),
            _model("anthropic.claude-3-5-haiku-20241022-v1:0", "Claude 3.5 Haiku (Bedrock)", inputs=_TEXT_IMAGE, cost=(0.8, 4), context=200000, max_tokens=8192),
            _model("amazon.titan-text-premier-v1:0", "Titan Text Premier", cost=(0.5, 1.5), context=32000, max_tokens=8192),
            _model("meta.llama3-1-70b-instruct-v1:0", "Llama 3.1 70B (Bedrock)", cost=(0.99, 0.99), context=128000, max_tokens=2048),
        ),
    ),
    ProviderConfig(
        name="moonshot",
        base_url="https://api.moonshot.cn/v1",
        api_family=ApiFamily.OPENAI,
        env_key="MOONSHOT_API_KEY",
        models=(
            _model("moonshot-v1-128k", "Moonshot v1 128K", cost=(0.6, 0.6), context=128000, max_tokens=8192),
            _model("moonshot-v1-32k", "Moonshot v1 32K", cost=(0.24, 0.24), context=32000, max_tokens=8192),
            _model("moonshot-v1-8k", "Moonshot v1 8K", cost=(0.12, 0.12), context=8000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="minimax",
        base_url="https://api.minimax.chat/v1",
        api_family=ApiFamily.OPENAI,
        env_key="MINIMAX_API_KEY",
        models=(
            _model("abab6.5s-chat", "MiniMax abab6.5s", cost=(0.5, 0.5), context=245760, max_tokens=8192),
            _model("abab6-chat", "MiniMax abab6", cost=(1, 1), context=32768, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="xai",
        base_url="https://api.x.ai/v1",
        api_family=ApiFamily.OPENAI,
        env_key="XAI_API_KEY",
        models=(
            _model("grok-2", "Grok 2", cost=(2, 10), context=131072, max_tokens=4096),
            _model("grok-2-mini", "Grok 2 Mini", cost=(0.2, 0.6), context=131072, max_tokens=4096),
            _model("grok-beta", "Grok Beta", cost=(5, 15), context=131072, max_tokens=4096),
        ),
    ),
    ProviderConfig(
        name="mistral",
        base_url="https://api.mistral.ai/v1",
        api_family=ApiFamily.OPENAI,
        env_key="MISTRAL_API_KEY",
        models=(
            _model("mistral-large-latest", "Mistral Large", cost=(3, 9), context=128000, max_tokens=8192),
            _model("mistral-medium-latest", "Mistral Medium", cost=(2.7, 8.1), context=32000, max_tokens=8192),
            _model("mistral-small-latest", "Mistral Small", cost=(1, 3), context=32000, max_tokens=8192),
            _model("codestral-latest", "Codestral", cost=(1, 3), context=32000, max_tokens=8192),
            _model("open-mixtral-8x22b", "Mixtral 8x22B", cost=(2, 6), context=64000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="cerebras",
        base_url="https://api.cerebras.ai/v1",
        api_family=ApiFamily.OPENAI,
        env_key="CEREBRAS_API_KEY",
        models=(
            _model("llama3.1-70b", "Llama 3.1 70B (Cerebras)", cost=(0.6, 0.6), context=128000, max_tokens=8192),
            _model("llama3.1-8b", "Llama 3.1 8B (Cerebras)", cost=(0.1, 0.1), context=128000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="deepseek",
        base_url="https://api.deepseek.com/v1",
        api_family=ApiFamily.OPENAI,
        env_key="DEEPSEEK_API_KEY",
        models=(
            _model("deepseek-chat", "DeepSeek Chat", cost=(0.14, 0.28), context=64000, max_tokens=8192),
            _model("deepseek-coder", "DeepSeek Coder", cost=(0.14, 0.28), context=64000, max_tokens=8192),
            _model("deepseek-reasoner", "DeepSeek R1", reasoning=True, cost=(0.55, 2.19), context=64000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="together",
        base_url="https://api.together.xyz/v1",
        api_family=ApiFamily.OPENAI,
        env_key="TOGETHER_API_KEY",
        models=(
            _model("meta-llama/Meta-Llama-3.1-405B-Instruct-Turbo", "Llama 3.1 405B (Together)", cost=(3.5, 3.5), context=130000, max_tokens=4096),
            _model("meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo", "Llama 3.1 70B (Together)", cost=(0.88, 0.88), context=130000, max_tokens=4096),
            _model("mistralai/Mixtral-8x22B-Instruct-v0.1", "Mixtral 8x22B (Together)", cost=(1.2, 1.2), context=65536, max_tokens=4096),
        ),
    ),
    ProviderConfig(
        name="fireworks",
        base_url="https://api.fireworks.ai/inference/v1",
        api_family=ApiFamily.OPENAI,
        env_key="FIREWORKS_API_KEY",
        models=(
            _model("accounts/fireworks/models/llama-v3p1-405b-instruct", "Llama 3.1 405B (Fireworks)", cost=(3, 3), context=131072, max_tokens=16384),
            _model("accounts/fireworks/models/llama-v3p1-70b-instruct", "Llama 3.1 70B (Fireworks)", cost=(0.9, 0.9), context=131072, max_tokens=16384),
            _model("accounts/fireworks/models/mixtral-8x22b-instruct", "Mixtral 8x22B (Fireworks)", cost=(0.9, 0.9), context=65536, max_tokens=16384),
        ),
    ),
    ProviderConfig(
        name="perplexity",
        base_url="https://api.perplexity.ai",
        api_family=ApiFamily.OPENAI,
        env_key="PERPLEXITY_API_KEY",
        models=(
            _model("llama-3.1-sonar-huge-128k-online", "Sonar Huge 128K Online", cost=(5, 5), context=128000, max_tokens=8192),
            _model("llama-3.1-sonar-large-128k-online", "Sonar Large 128K Online", cost=(1, 1), context=128000, max_tokens=8192),
            _model("llama-3.1-sonar-small-128k-online", "Sonar Small 128K Online", cost=(0.2, 0.2), context=128000, max_tokens=8192),
        ),
    ),
    ProviderConfig(
        name="github-copilot",
        base_url="https://api.githubcopilot.com",
        api_family=ApiFamily.COPILOT,
        auth_mode=AuthMode.TOKEN,
        env_key="GITHUB_TOKEN",
        models=(
            _model("gpt-4o", "GPT-4o (Copilot)", inputs=_TEXT_IMAGE, context=128000, max_tokens=16384),
        ),
    ),
    ProviderConfig(
        name="cloudflare",
        base_url="https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run",
        api_family=ApiFamily.OPENAI,
        env_key="CLOUDFLARE_API_KEY",
        models=(
            _model("@cf/meta/llama-3.1-70b-instruct", "Llama 3.1 70B (Cloudflare)", context=128000, max_tokens=8192),
            _model("@cf/meta/llama-3.1-8b-instruct", "Llama 3.1 8B (Cloudflare)", context=128000, max_tokens=8192),
            _model("@cf/mistral/mistral-7b-instruct-v0.2", "Mistral 7B (Cloudflare)", context=32000, max_tokens=8192),
        ),
    ),
]

BUILT_IN_PROVIDERS: Dict[str, ProviderConfig] = {p.name: p for p in _PROVIDERS}


def get_provider_config(name: str) -> Optional[ProviderConfig]:
    return BUILT_IN_PROVIDERS.get(name)


def list_provider_names() -> List[str]:
    return list(BUILT_IN_PROVIDERS.keys())


def credential_env_keys() -> List[str]:
    """
    Every environment variable the catalog may read a credential from.
    """
    keys = [p.env_key for p in BUILT_IN_PROVIDERS.values() if p.env_key]
    keys.extend([AWS_ACCESS_KEY_ENV, AWS_SECRET_KEY_ENV])
    return keys


def _read_env(name: str) -> Optional[str]:
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_default_credential(name: str) -> Optional[DefaultCredential]:
    """
    Resolve the provider's default (environment) credential.

    - providers with requires_auth=False always resolve, with api_key None
    - aws-sdk providers resolve to a sentinel when both AWS variables are set
    - session providers resolve like api-key ones but are flagged as subscription
    """
    config = get_provider_config(name)
    if config is None:
        return None

    if not config.requires_auth:
        return DefaultCredential(api_key=None, source="none")

    if config.auth_mode == AuthMode.AWS_SDK:
        if _read_env(AWS_ACCESS_KEY_ENV) and _read_env(AWS_SECRET_KEY_ENV):
            return DefaultCredential(api_key=AWS_SDK_SENTINEL, source=AWS_SDK_SENTINEL)
        return None

    if not config.env_key:
        return None

    value = _read_env(config.env_key)
    if value is None:
        return None

    if config.auth_mode == AuthMode.SESSION:
        return DefaultCredential(
            api_key=value,
            source=f"session:{config.env_key}",
            is_subscription=True,
            auth_type="session",
        )
    return DefaultCredential(api_key=value, source=f"env:{config.env_key}")


def get_model_definition(provider: str, model_id: str) -> Optional[ModelDef]:
    config = get_provider_config(provider)
    if config is None:
        return None
    return config.find_model(model_id)


def resolve_model_for_provider(
    provider: str, preferred_model: Optional[str] = None
) -> Optional[ModelDef]:
    """
    Return the preferred model when the provider offers it, else its first model.
    """
    config = get_provider_config(provider)
    if config is None or not config.models:
        return None
    if preferred_model:
        model = config.find_model(preferred_model)
        if model is not None:
            return model
    return config.models[0]


def parse_model_ref(ref: Optional[str]) -> Tuple[str, str]:
    """
    Split "provider/model" into its parts.

    Only the first "/" separates the provider, so OpenRouter-style ids such
    as "openrouter/anthropic/claude-sonnet-4" keep their inner slash. A bare
    model id is looked up across the catalog; unknown ids are assumed to be
    Anthropic models.
    """
    if not ref:
        return DEFAULT_MODEL_REF

    provider, sep, model_id = ref.partition("/")
    if sep and model_id:
        return provider, model_id

    for name, config in BUILT_IN_PROVIDERS.items():
        if config.find_model(ref) is not None:
            return name, ref

    return DEFAULT_MODEL_REF[0], ref


def get_available_providers() -> List[ProviderSummary]:
    """
    Providers that currently have a usable default credential (or need none).
    """
    available: List[ProviderSummary] = []
    for name, config in BUILT_IN_PROVIDERS.items():
        auth = resolve_default_credential(name)
        if auth is None and config.requires_auth:
            continue
        available.append(
            ProviderSummary(
                name=name,
                base_url=config.base_url,
                api=config.api_family,
                model_count=len(config.models),
                has_auth=True,
                auth_source=auth.source if auth else "none",
            )
        )
    return available


__all__ = [
    "AWS_SDK_SENTINEL",
    "BUILT_IN_PROVIDERS",
    "DEFAULT_MODEL_REF",
    "credential_env_keys",
    "get_available_providers",
    "get_model_definition",
    "get_provider_config",
    "list_provider_names",
    "parse_model_ref",
    "resolve_default_credential",
    "resolve_model_for_provider",
]
