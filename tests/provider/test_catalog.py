import pytest

from llmfailover.models import ApiFamily, AuthMode
from llmfailover.provider.catalog import (
    AWS_SDK_SENTINEL,
    BUILT_IN_PROVIDERS,
    DEFAULT_MODEL_REF,
    credential_env_keys,
    get_available_providers,
    get_model_definition,
    get_provider_config,
    list_provider_names,
    parse_model_ref,
    resolve_default_credential,
    resolve_model_for_provider,
)


def test_catalog_contains_expected_providers():
    names = list_provider_names()
    assert len(names) == 20
    for name in ("anthropic", "openai", "google", "groq", "deepseek", "ollama", "venice"):
        assert name in names


def test_provider_config_lookup():
    anthropic = get_provider_config("anthropic")
    assert anthropic is not None
    assert anthropic.api_family == ApiFamily.ANTHROPIC
    assert anthropic.env_key == "ANTHROPIC_API_KEY"
    assert anthropic.find_model("claude-opus-4-5-20251101").reasoning is True

    assert get_provider_config("nope") is None


def test_model_ids_are_unique_per_provider():
    for config in BUILT_IN_PROVIDERS.values():
        ids = [m.id for m in config.models]
        assert len(ids) == len(set(ids)), config.name


def test_env_credential_is_trimmed(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-openai  ")

    auth = resolve_default_credential("openai")

    assert auth is not None
    assert auth.api_key == "sk-openai"
    assert auth.source == "env:OPENAI_API_KEY"
    assert auth.is_subscription is False


def test_blank_env_credential_is_absent(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    assert resolve_default_credential("openai") is None


def test_provider_without_auth_always_resolves():
    auth = resolve_default_credential("ollama")
    assert auth is not None
    assert auth.api_key is None
    assert auth.source == "none"


def test_unknown_provider_has_no_credential():
    assert resolve_default_credential("nope") is None


def test_aws_sdk_needs_both_variables(monkeypatch):
    assert get_provider_config("amazon-bedrock").auth_mode == AuthMode.AWS_SDK

    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")
    assert resolve_default_credential("amazon-bedrock") is None

    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    auth = resolve_default_credential("amazon-bedrock")
    assert auth is not None
    assert auth.api_key == AWS_SDK_SENTINEL


def test_session_credential_is_flagged_as_subscription(monkeypatch):
    monkeypatch.setenv("CLAUDE_SESSION_KEY", "sess-123")

    auth = resolve_default_credential("claude-pro")

    assert auth.api_key == "sess-123"
    assert auth.source == "session:CLAUDE_SESSION_KEY"
    assert auth.is_subscription is True
    assert auth.auth_type == "session"


def test_credential_env_keys_cover_aws():
    keys = credential_env_keys()
    assert "ANTHROPIC_API_KEY" in keys
    assert "AWS_ACCESS_KEY_ID" in keys
    assert "AWS_SECRET_ACCESS_KEY" in keys


def test_model_definition_and_preferred_model():
    assert get_model_definition("openai", "gpt-4o").display_name == "GPT-4o"
    assert get_model_definition("openai", "missing") is None
    assert get_model_definition("nope", "gpt-4o") is None

    assert resolve_model_for_provider("openai", "o1").id == "o1"
    assert resolve_model_for_provider("openai", "missing").id == "gpt-4o"
    assert resolve_model_for_provider("openai").id == "gpt-4o"
    assert resolve_model_for_provider("ollama") is None


@pytest.mark.parametrize(
    "ref, expected",
    [
        ("openai/gpt-4o", ("openai", "gpt-4o")),
        ("openrouter/anthropic/claude-sonnet-4", ("openrouter", "anthropic/claude-sonnet-4")),
        ("gpt-4o-mini", ("openai", "gpt-4o-mini")),
        ("unheard-of", ("anthropic", "unheard-of")),
        (None, DEFAULT_MODEL_REF),
        ("", DEFAULT_MODEL_REF),
    ],
)
def test_parse_model_ref(ref, expected):
    assert parse_model_ref(ref) == expected


def test_available_providers_follow_environment(monkeypatch):
    names = {p.name for p in get_available_providers()}
    assert names == {"ollama"}

    monkeypatch.setenv("GROQ_API_KEY", "gsk")
    providers = {p.name: p for p in get_available_providers()}
    assert set(providers) == {"ollama", "groq"}
    assert providers["groq"].auth_source == "env:GROQ_API_KEY"
    assert providers["groq"].model_count == 4
    assert providers["ollama"].auth_source == "none"
