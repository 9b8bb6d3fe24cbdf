"""Per-document build metadata cache.

All records live in one JSON file (``<cache_dir>/metadata/documents.json``)
that is read fully on ``initialize`` and rewritten fully on every mutation.
Disk failures never reach callers: the manager keeps working from memory and
reports ``durable = False``.
"""

from __future__ import annotations
import asyncio
import fcntl
import json
import time
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..types import DocumentCacheRecord
from .logger import get_logger
from .outcome import attempt, with_fallback

METADATA_DIR = "metadata"
METADATA_FILE = "documents.json"
DEFAULT_MAX_AGE = timedelta(days=30)


class CacheManager:
    """
    Tracks one ``DocumentCacheRecord`` per document.

    ``text_hash`` is the only validity key: a record is valid for a text iff
    its stored hash equals the hash of that text. Eviction removes records
    only; vectors persisted elsewhere are left for the caller to clean up.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        max_age: timedelta = DEFAULT_MAX_AGE,
        logger_name: str = "cache_manager",
    ):
        """
        Args:
            cache_dir: Root cache directory
            max_age: Default age threshold for ``evict_stale``
            logger_name: Logger name
        """
        self.cache_dir = Path(cache_dir)
        self.metadata_path = self.cache_dir / METADATA_DIR / METADATA_FILE
        self.max_age = max_age
        self.logger = get_logger(logger_name)

        self.durable = False
        self._records: Dict[str, DocumentCacheRecord] = {}
        self._lock = asyncio.Lock()
        self._initialized = False

    # ------------------------------------------------------------------
    # File access (blocking; always run in a worker thread)
    # ------------------------------------------------------------------

    def _read_file(self) -> Dict[str, DocumentCacheRecord]:
        self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.metadata_path.exists():
            return {}

        with open(self.metadata_path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                content = f.read()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        data = json.loads(content) if content.strip() else []
        return {record["document_id"]: record for record in data}

    def _write_file(self, records: List[DocumentCacheRecord]) -> None:
        self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.metadata_path, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                json.dump(records, f, indent=2)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    async def _persist(self) -> None:
        """Rewrite the metadata file from memory. Caller holds the lock."""
        snapshot = [dict(record) for record in self._records.values()]
        outcome = await attempt(
            lambda: asyncio.to_thread(self._write_file, snapshot),
            "Cache metadata write",
            self.logger,
        )
        self.durable = outcome.is_ok
        if outcome.is_ok:
            self.logger.debug(f"Saved metadata for {len(snapshot)} documents")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load all records from disk. Safe to call more than once."""
        if self._initialized:
            return

        async with self._lock:
            outcome = await attempt(
                lambda: asyncio.to_thread(self._read_file),
                "Cache metadata load",
                self.logger,
            )
            self._records = with_fallback(outcome, {})
            self.durable = outcome.is_ok
            self._initialized = True

        if self.durable:
            self.logger.info(f"Cache initialized at {self.cache_dir} ({len(self._records)} documents)")
        else:
            self.logger.warning(f"Cache at {self.cache_dir} unavailable, continuing without durable caching")

    async def shutdown(self) -> None:
        self._initialized = False

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get_record(self, document_id: str) -> Optional[DocumentCacheRecord]:
        return self._records.get(document_id)

    def is_valid(self, document_id: str, text_hash: str) -> bool:
        """True iff a record exists for the document and its hash matches exactly."""
        record = self._records.get(document_id)
        if record is None:
            return False
        return record["text_hash"] == text_hash

    async def save_record(self, record: DocumentCacheRecord) -> None:
        """Insert or replace a document's record and persist."""
        async with self._lock:
            self._records[record["document_id"]] = record
            await self._persist()

    async def touch_access(self, document_id: str, now: Optional[float] = None) -> bool:
        """
        Update ``last_accessed`` for a document. Validity is unaffected.

        Returns:
            False if the document has no record
        """
        async with self._lock:
            record = self._records.get(document_id)
            if record is None:
                return False
            record["last_accessed"] = time.time() if now is None else now
            await self._persist()
            return True

    async def remove_record(self, document_id: str) -> bool:
        async with self._lock:
            if self._records.pop(document_id, None) is None:
                return False
            await self._persist()
            return True

    async def evict_stale(
        self,
        max_age: Optional[timedelta] = None,
        now: Optional[float] = None,
    ) -> List[str]:
        """
        Remove records not accessed within ``max_age``.

        Args:
            max_age: Age threshold (defaults to the manager's ``max_age``)
            now: Reference POSIX time (defaults to the current time)

        Returns:
            Ids of the evicted documents
        """
        threshold = (max_age or self.max_age).total_seconds()
        now = time.time() if now is None else now

        async with self._lock:
            stale = [
                document_id
                for document_id, record in self._records.items()
                if now - record["last_accessed"] > threshold
            ]
            for document_id in stale:
                del self._records[document_id]
            if stale:
                await self._persist()

        if stale:
            self.logger.info(f"Evicted {len(stale)} stale cache records")
        return stale

    async def clear_all(self) -> None:
        async with self._lock:
            self._records.clear()
            await self._persist()
        self.logger.info("Cleared all cache records")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "document_count": len(self._records),
            "cache_path": str(self.metadata_path),
            "durable": self.durable,
        }

    def __len__(self) -> int:
        return len(self._records)
