"""
Configuration management using Pydantic for type-safe, validated configs.

This module provides configuration classes for every component of the
hybrid retrieval engine, supporting loading from files (YAML/JSON),
environment variables, or defaults.
"""

from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

CHUNK_STRATEGIES = ("semantic", "sliding", "hierarchical")
FUSION_METHODS = ("weighted", "rrf")


class ChunkingConfig(BaseModel):
    """Configuration for document chunking."""

    strategy: str = Field("semantic", description="Chunking strategy (semantic, sliding, hierarchical)")
    target_size: int = Field(800, ge=1, description="Target chunk size in characters")
    overlap: int = Field(150, ge=0, description="Sliding window overlap in characters")
    min_final_size: int = Field(100, ge=0, description="Trailing sliding-window chunks must exceed this size")

    @field_validator("strategy")
    @classmethod
    def check_strategy(cls, v):
        """Validate that strategy is one of the supported chunkers."""
        if v not in CHUNK_STRATEGIES:
            raise ValueError(f"strategy must be one of {list(CHUNK_STRATEGIES)}, got {v}")
        return v


class RetrievalConfig(BaseModel):
    """Configuration for query-time retrieval and fusion."""

    top_k: int = Field(5, ge=1, description="Number of fused results returned")
    lexical_weight: float = Field(0.4, ge=0.0, le=1.0, description="Weight of TF-IDF scores in weighted fusion")
    semantic_weight: float = Field(0.6, ge=0.0, le=1.0, description="Weight of vector scores in weighted fusion")
    fusion_method: str = Field("weighted", description="Fusion method (weighted, rrf)")
    rrf_k: int = Field(60, ge=1, description="RRF rank constant")
    lexical_candidates: int = Field(15, ge=1, description="TF-IDF candidate pool size")
    semantic_candidates: int = Field(15, ge=1, description="Vector search candidate pool size")

    @field_validator("fusion_method")
    @classmethod
    def check_fusion_method(cls, v):
        """Validate fusion method name."""
        if v not in FUSION_METHODS:
            raise ValueError(f"fusion_method must be one of {list(FUSION_METHODS)}, got {v}")
        return v


class EmbeddingConfig(BaseModel):
    """Configuration for the sentence-transformers embedding provider."""

    enabled: bool = Field(True, description="Build and query the semantic index")
    model_name: str = Field("all-MiniLM-L6-v2", description="sentence-transformers model")
    device: str = Field("cpu", description="Device to run on ('cpu' or 'cuda')")
    batch_size: int = Field(8, ge=1, description="Texts per encode call")
    embedding_cache_size: int = Field(2048, ge=0, description="In-memory embedding cache entries (0 disables)")


class VectorStoreConfig(BaseModel):
    """Configuration for the ChromaDB vector store."""

    enabled: bool = Field(True, description="Persist vectors in ChromaDB")
    persist_directory: str = Field("~/.cache/hybrid_rag/vectors", description="ChromaDB directory")
    collection_name: str = Field("document_chunks", description="Collection holding all documents' chunks")


class CacheConfig(BaseModel):
    """Configuration for the per-document build metadata cache."""

    cache_dir: str = Field("~/.cache/hybrid_rag", description="Directory holding metadata/documents.json")
    max_age_days: float = Field(30, gt=0, description="Records not accessed for this long are evicted")
    hash_prefix_chars: Optional[int] = Field(
        10000, ge=1, description="Characters of text fed to the content hash (None = whole text)"
    )


class EngineConfig(BaseModel):
    """Configuration for the hybrid orchestrator itself."""

    max_indexes: int = Field(32, ge=1, description="In-memory index registry capacity (LRU)")
    semantic_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for each embedding / vector-store call"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field("INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Rotating log file path")

    @field_validator("level")
    @classmethod
    def check_log_level(cls, v):
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class HybridRAGConfig(BaseModel):
    """
    Complete engine configuration combining all component configs.

    This is the top-level configuration object passed to ``HybridRAG`` and
    the backend factories.
    """

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "HybridRAGConfig":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML file

        Returns:
            HybridRAGConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
            yaml.YAMLError: If YAML is invalid
            pydantic.ValidationError: If config values are invalid
        """
        with open(path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
        return cls(**config_dict)

    @classmethod
    def from_json(cls, path: str | Path) -> "HybridRAGConfig":
        """
        Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If JSON is invalid
            pydantic.ValidationError: If config values are invalid
        """
        with open(path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)
        return cls(**config_dict)

    @classmethod
    def from_env(cls) -> "HybridRAGConfig":
        """
        Load configuration from HYBRID_RAG_* environment variables.

        Unset variables fall back to the model defaults.

        Returns:
            HybridRAGConfig instance with values from environment
        """
        defaults = cls()
        env = os.getenv
        return cls(
            chunking=ChunkingConfig(
                strategy=env("HYBRID_RAG_CHUNK_STRATEGY", defaults.chunking.strategy),
                target_size=int(env("HYBRID_RAG_CHUNK_SIZE", str(defaults.chunking.target_size))),
                overlap=int(env("HYBRID_RAG_CHUNK_OVERLAP", str(defaults.chunking.overlap))),
            ),
            retrieval=RetrievalConfig(
                top_k=int(env("HYBRID_RAG_TOP_K", str(defaults.retrieval.top_k))),
                lexical_weight=float(env("HYBRID_RAG_LEXICAL_WEIGHT", str(defaults.retrieval.lexical_weight))),
                semantic_weight=float(env("HYBRID_RAG_SEMANTIC_WEIGHT", str(defaults.retrieval.semantic_weight))),
                fusion_method=env("HYBRID_RAG_FUSION_METHOD", defaults.retrieval.fusion_method),
            ),
            embedding=EmbeddingConfig(
                enabled=env("HYBRID_RAG_EMBEDDING_ENABLED", "true").lower() == "true",
                model_name=env("HYBRID_RAG_EMBEDDING_MODEL", defaults.embedding.model_name),
                device=env("HYBRID_RAG_EMBEDDING_DEVICE", defaults.embedding.device),
            ),
            vector_store=VectorStoreConfig(
                enabled=env("HYBRID_RAG_VECTOR_STORE_ENABLED", "true").lower() == "true",
                persist_directory=env("HYBRID_RAG_VECTOR_DIR", defaults.vector_store.persist_directory),
            ),
            cache=CacheConfig(
                cache_dir=env("HYBRID_RAG_CACHE_DIR", defaults.cache.cache_dir),
                max_age_days=float(env("HYBRID_RAG_CACHE_MAX_AGE_DAYS", str(defaults.cache.max_age_days))),
            ),
            engine=EngineConfig(
                max_indexes=int(env("HYBRID_RAG_MAX_INDEXES", str(defaults.engine.max_indexes))),
                semantic_timeout_seconds=float(
                    env("HYBRID_RAG_SEMANTIC_TIMEOUT", str(defaults.engine.semantic_timeout_seconds))
                ),
            ),
            logging=LoggingConfig(
                level=env("HYBRID_RAG_LOG_LEVEL", defaults.logging.level),
                log_file=env("HYBRID_RAG_LOG_FILE"),
            ),
        )

    def save(self, path: str | Path) -> None:
        """
        Save configuration to file.

        File format is determined by extension (.yaml, .yml, or .json).

        Raises:
            ValueError: If extension is not .yaml, .yml, or .json
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix in (".yaml", ".yml"):
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)
        elif path.suffix == ".json":
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.model_dump(), f, indent=2)
        else:
            raise ValueError("Config file must have extension .yaml, .yml, or .json")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()


def load_config(config_path: str | Path | None = None) -> HybridRAGConfig:
    """
    Load configuration from a YAML or JSON file, or defaults.

    Args:
        config_path: Path to a config file. If None, ``config/config.yaml``
            in the working directory is used when present, otherwise defaults.

    Returns:
        HybridRAGConfig object

    Raises:
        FileNotFoundError: If an explicit config_path doesn't exist
    """
    if config_path is None:
        default_path = Path.cwd() / "config" / "config.yaml"
        if not default_path.exists():
            return HybridRAGConfig()
        config_path = default_path

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path.suffix == ".json":
        return HybridRAGConfig.from_json(config_path)
    return HybridRAGConfig.from_yaml(config_path)


def expand_path(path_str: str) -> Path:
    """Expand ``~`` and environment variables in a configured path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))
