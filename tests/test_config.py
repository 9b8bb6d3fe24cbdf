"""
Test configuration loading and management.

These tests verify that:
- Configuration can be loaded from YAML and JSON
- Environment variables override defaults
- Invalid values are rejected at load time
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from hybrid_rag.config import HybridRAGConfig, expand_path, load_config

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"


def test_config_loads_from_yaml():
    """Test that the shipped configuration file loads with the documented defaults."""
    config = load_config(CONFIG_PATH)

    assert config.embedding.model_name == "all-MiniLM-L6-v2"
    assert config.retrieval.top_k == 5
    assert config.retrieval.lexical_weight == 0.4
    assert config.retrieval.semantic_weight == 0.6
    assert config.retrieval.rrf_k == 60
    assert config.chunking.target_size == 800
    assert config.chunking.overlap == 150
    assert config.cache.max_age_days == 30
    assert config.cache.hash_prefix_chars == 10000


def test_defaults_match_file():
    assert load_config(CONFIG_PATH).retrieval == HybridRAGConfig().retrieval


def test_save_and_reload_json(temp_dir):
    config = HybridRAGConfig(retrieval={"fusion_method": "rrf", "top_k": 7})
    path = temp_dir / "config.json"
    config.save(path)

    reloaded = load_config(path)
    assert reloaded.retrieval.fusion_method == "rrf"
    assert reloaded.retrieval.top_k == 7


def test_save_and_reload_yaml(temp_dir):
    config = HybridRAGConfig(chunking={"strategy": "sliding"})
    path = temp_dir / "nested" / "config.yaml"
    config.save(path)

    assert HybridRAGConfig.from_yaml(path).chunking.strategy == "sliding"


def test_save_rejects_unknown_extension(temp_dir):
    with pytest.raises(ValueError):
        HybridRAGConfig().save(temp_dir / "config.txt")


def test_missing_explicit_path():
    with pytest.raises(FileNotFoundError):
        load_config(Path("does/not/exist.yaml"))


def test_from_env(monkeypatch):
    monkeypatch.setenv("HYBRID_RAG_TOP_K", "9")
    monkeypatch.setenv("HYBRID_RAG_FUSION_METHOD", "rrf")
    monkeypatch.setenv("HYBRID_RAG_CHUNK_STRATEGY", "hierarchical")
    monkeypatch.setenv("HYBRID_RAG_LOG_LEVEL", "debug")
    monkeypatch.setenv("HYBRID_RAG_EMBEDDING_ENABLED", "false")

    config = HybridRAGConfig.from_env()

    assert config.retrieval.top_k == 9
    assert config.retrieval.fusion_method == "rrf"
    assert config.chunking.strategy == "hierarchical"
    assert config.logging.level == "DEBUG"
    assert config.embedding.enabled is False


@pytest.mark.parametrize("section,values", [
    ("retrieval", {"fusion_method": "borda"}),
    ("retrieval", {"lexical_weight": 1.5}),
    ("retrieval", {"top_k": 0}),
    ("chunking", {"strategy": "fixed"}),
    ("logging", {"level": "LOUD"}),
    ("engine", {"max_indexes": 0}),
])
def test_invalid_values_rejected(section, values):
    with pytest.raises(ValidationError):
        HybridRAGConfig(**{section: values})


def test_expand_path(monkeypatch):
    monkeypatch.setenv("HOME", "/home/tester")
    assert expand_path("~/.cache/hybrid_rag") == Path("/home/tester/.cache/hybrid_rag")
