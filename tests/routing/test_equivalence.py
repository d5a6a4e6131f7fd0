from llmfailover.routing.equivalence import EQUIVALENT_MODELS, find_equivalent_model


def test_explicit_mapping_wins():
    model = find_equivalent_model("anthropic", "claude-opus-4-5-20251101", "openai")
    assert model is not None
    assert model.id == "gpt-4o"

    model = find_equivalent_model("openai", "gpt-4o-mini", "groq")
    assert model.id == "llama-3.1-8b-instant"


def test_capability_match_for_unmapped_pair():
    # deepseek-reasoner is the only reasoning model on deepseek
    model = find_equivalent_model("anthropic", "claude-opus-4-5-20251101", "deepseek")
    assert model.id == "deepseek-reasoner"

    model = find_equivalent_model("openai", "gpt-4o", "deepseek")
    assert model.id == "deepseek-chat"


def test_falls_back_to_first_model_without_capability_match():
    # groq has no reasoning models
    model = find_equivalent_model("openai", "o1", "groq")
    assert model.id == "llama-3.3-70b-versatile"


def test_unknown_inputs_yield_none():
    assert find_equivalent_model("anthropic", "missing-model", "openai") is None
    assert find_equivalent_model("nope", "gpt-4o", "openai") is None
    assert find_equivalent_model("openai", "gpt-4o", "nope") is None
    # providers discovered at runtime have no catalog models
    assert find_equivalent_model("openai", "gpt-4o", "ollama") is None


def test_mapped_targets_exist_in_catalog():
    for source, targets in EQUIVALENT_MODELS.items():
        source_provider = "anthropic" if source.startswith("claude") else "openai"
        for provider, model_id in targets.items():
            model = find_equivalent_model(source_provider, source, provider)
            assert model is not None
            assert model.id == model_id
