"""Tests for the JSON-backed provider registry."""

import json

import pytest
from pydantic import ValidationError

from echoclip.schemas.provider import ProviderSpec
from echoclip.services.registry import ProviderNotFoundError, ProviderRegistry, new_provider_id


def _write(registry: ProviderRegistry, document: dict) -> None:
    registry.path.write_text(json.dumps(document), encoding="utf-8")


def test_missing_file_yields_seed_providers(registry):
    listing = registry.list()

    assert [p.id for p in listing.providers] == ["prov-openai", "prov-compat", "prov-ollama"]
    assert listing.default_provider_id == "prov-openai"
    assert not registry.path.exists()


def test_file_values_override_defaults(registry):
    _write(registry, {
        "targetLang": "Mongolian",
        "defaultProviderId": "local",
        "providers": [{"id": "local", "label": "Local", "type": "ollama", "host": "http://10.0.0.2:11434", "model": "qwen2.5:3b"}],
    })

    config = registry.load()

    assert config.hotkey == "Alt+Space"
    assert config.target_lang == "Mongolian"
    assert [p.id for p in config.providers] == ["local"]


def test_invalid_records_are_skipped(registry):
    _write(registry, {
        "providers": [
            {"id": "bad", "type": "openai", "model": "gpt-4o-mini"},
            {"id": "good", "type": "gemini", "model": "gemini-2.5-flash"},
        ],
    })

    assert [p.id for p in registry.load().providers] == ["good"]


def test_corrupt_json_falls_back_to_defaults(registry):
    registry.path.write_text("{not json", encoding="utf-8")

    assert len(registry.load().providers) == 3


def test_resolve_explicit_default_and_first(registry):
    _write(registry, {
        "defaultProviderId": "gone",
        "providers": [
            {"id": "a", "type": "ollama", "host": "http://localhost:11434", "model": "m1"},
            {"id": "b", "type": "gemini", "model": "m2"},
        ],
    })

    assert registry.resolve("b").id == "b"
    assert registry.resolve("missing") is None
    # default id no longer exists -> first provider
    assert registry.resolve().id == "a"


def test_resolve_with_no_providers(registry):
    _write(registry, {"providers": []})

    assert registry.resolve() is None


def test_save_generates_id_and_label(registry):
    spec = registry.save({"type": "gemini", "model": "gemini-2.5-flash", "apiKeyEnv": "GOOGLE_KEY"})

    assert spec.id.startswith("prov-")
    assert spec.label == "Provider"
    stored = json.loads(registry.path.read_text())
    assert stored["providers"][-1] == {
        "id": spec.id,
        "label": "Provider",
        "type": "gemini",
        "model": "gemini-2.5-flash",
        "apiKeyEnv": "GOOGLE_KEY",
    }


def test_save_merges_existing_record(registry):
    registry.save({"id": "prov-ollama", "model": "llama3.2:3b"})

    reloaded = ProviderRegistry(registry.path).resolve("prov-ollama")
    assert reloaded.model == "llama3.2:3b"
    assert reloaded.host == "http://localhost:11434"
    assert reloaded.label == "Ollama (localhost)"


def test_save_rejects_invalid_record(registry):
    with pytest.raises(ValidationError):
        registry.save({"type": "ollama", "model": "llama3.1:8b"})
    with pytest.raises(ValidationError):
        registry.save(ProviderSpec.model_construct(id="x", label="x", type="gemini", model=" "))


def test_delete_reassigns_default(registry):
    registry.delete("prov-openai")

    listing = registry.list()
    assert [p.id for p in listing.providers] == ["prov-compat", "prov-ollama"]
    assert listing.default_provider_id == "prov-compat"


def test_delete_last_provider_clears_default(registry):
    _write(registry, {"defaultProviderId": "a", "providers": [{"id": "a", "type": "gemini", "model": "m"}]})

    registry.delete("a")

    assert registry.list().default_provider_id is None
    assert json.loads(registry.path.read_text())["defaultProviderId"] is None


def test_delete_and_set_default_unknown_id(registry):
    with pytest.raises(ProviderNotFoundError, match="Provider not found: nope"):
        registry.delete("nope")
    with pytest.raises(ProviderNotFoundError):
        registry.set_default("nope")


def test_set_default_persists(registry):
    registry.set_default("prov-ollama")

    assert ProviderRegistry(registry.path).resolve().id == "prov-ollama"


def test_update_preferences(registry):
    registry.update_preferences(target_lang="German")

    config = ProviderRegistry(registry.path).load()
    assert config.target_lang == "German"
    assert config.hotkey == "Alt+Space"


def test_new_provider_id_is_base36():
    provider_id = new_provider_id()
    assert provider_id.startswith("prov-")
    int(provider_id.removeprefix("prov-"), 36)
