"""
Model equivalence across providers.

Given a model on one provider, propose the closest model on another:
an explicit table of known-good pairings first, then a capability match
(same reasoning flag, accepts text), then the target's first model.
"""

from __future__ import annotations

from typing import Dict, Optional

from llmfailover.models import ModelDef
from llmfailover.provider.catalog import get_model_definition, get_provider_config

# source model id -> {target provider -> target model id}
EQUIVALENT_MODELS: Dict[str, Dict[str, str]] = {
    "claude-opus-4-5-20251101": {
        "openai": "gpt-4o",
        "google": "gemini-1.5-pro",
        "groq": "llama-3.3-70b-versatile",
    },
    "claude-sonnet-4-20250514": {
        "openai": "gpt-4o",
        "google": "gemini-1.5-flash",
        "groq": "llama-3.3-70b-versatile",
    },
    "claude-3-5-sonnet-20241022": {
        "openai": "gpt-4o-mini",
        "google": "gemini-1.5-flash",
        "groq": "llama-3.3-70b-versatile",
    },
    "gpt-4o": {
        "anthropic": "claude-sonnet-4-20250514",
        "google": "gemini-1.5-pro",
        "groq": "llama-3.3-70b-versatile",
    },
    "gpt-4o-mini": {
        "anthropic": "claude-3-5-haiku-20241022",
        "google": "gemini-1.5-flash",
        "groq": "llama-3.1-8b-instant",
    },
}


def find_equivalent_model(
    source_provider: str, source_model_id: str, target_provider: str
) -> Optional[ModelDef]:
    """
    Return the substitute model on `target_provider`, or None when the
    source model or the target provider is unknown (or the target has no
    catalog models).
    """
    source = get_model_definition(source_provider, source_model_id)
    if source is None:
        return None

    target = get_provider_config(target_provider)
    if target is None or not target.models:
        return None

    mapped_id = EQUIVALENT_MODELS.get(source_model_id, {}).get(target_provider)
    if mapped_id:
        return target.find_model(mapped_id) or target.models[0]

    for candidate in target.models:
        if candidate.reasoning == source.reasoning and candidate.accepts("text"):
            return candidate

    return target.models[0]


__all__ = ["EQUIVALENT_MODELS", "find_equivalent_model"]
