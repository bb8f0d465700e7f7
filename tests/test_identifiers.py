"""Tests for provider id allocation."""

from keysmith.core.identifiers import allocate_provider_id


def test_unused_base_id_is_returned_unchanged():
    assert allocate_provider_id("anthropic", []) == "anthropic"
    assert allocate_provider_id("anthropic", {"openai"}) == "anthropic"


def test_taken_base_id_gets_first_free_suffix():
    assert allocate_provider_id("openai", ["openai"]) == "openai-1"
    assert allocate_provider_id("openai", ["openai", "openai-1"]) == "openai-2"


def test_gaps_in_suffixes_are_reused():
    assert allocate_provider_id("openai", ["openai", "openai-2"]) == "openai-1"


def test_allocated_id_never_collides():
    existing = {"kilocode"} | {f"kilocode-{i}" for i in range(1, 25)}
    allocated = allocate_provider_id("kilocode", existing)
    assert allocated not in existing
    assert allocated == "kilocode-25"


def test_accepts_generators():
    assert allocate_provider_id("gemini", (p for p in ["gemini"])) == "gemini-1"
