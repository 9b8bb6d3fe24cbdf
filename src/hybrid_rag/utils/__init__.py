"""Logging, hashing, outcome types, the index registry and the build cache."""

from .logger import document_id_context, get_logger, setup_logger
from .hashing import content_hash
from .outcome import Outcome, attempt, with_fallback
from .registry import IndexRegistry
from .cache_manager import CacheManager

__all__ = [
    "document_id_context",
    "get_logger",
    "setup_logger",
    "content_hash",
    "Outcome",
    "attempt",
    "with_fallback",
    "IndexRegistry",
    "CacheManager",
]
