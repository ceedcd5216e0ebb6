"""Embedding and search-result memoization keyed by derived strings."""

from __future__ import annotations

import copy
import hashlib
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config import Settings
from .expiring_lru import CacheStats, ExpiringLRUCache

logger = logging.getLogger(__name__)

EMBEDDING_KEY_PREFIX = "embed"
SEARCH_KEY_PREFIX = "search"
EMPTY_HISTORY_HASH = "empty"


def _normalize_text(text: str) -> str:
    return text.strip().lower()


def _embedding_size(vector: List[float]) -> int:
    # ~4 bytes per component plus bookkeeping overhead.
    return len(vector) * 4 + 100


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return str(value)


def _search_results_size(results: List[Any]) -> int:
    return len(json.dumps(results, default=_to_jsonable))


def _copy_value(value: Any) -> Any:
    if hasattr(value, "model_copy"):
        return value.model_copy(deep=True)
    return copy.deepcopy(value)


class RoadmapCache:
    """Two independent stores: normalized text to vector, search parameters to result lists."""

    def __init__(
        self,
        *,
        embeddings: ExpiringLRUCache[List[float]],
        search: ExpiringLRUCache[List[Any]],
    ) -> None:
        self._embeddings = embeddings
        self._search = search

    @classmethod
    def from_settings(cls, settings: Settings) -> "RoadmapCache":
        return cls(
            embeddings=ExpiringLRUCache(
                max_items=settings.embedding_cache_max_items,
                ttl_seconds=settings.embedding_cache_ttl_seconds,
                max_bytes=settings.embedding_cache_max_bytes,
                size_of=_embedding_size,
            ),
            search=ExpiringLRUCache(
                max_items=settings.search_cache_max_items,
                ttl_seconds=settings.search_cache_ttl_seconds,
                max_bytes=settings.search_cache_max_bytes,
                size_of=_search_results_size,
            ),
        )

    # ------------------------------------------------------------------
    # Key derivation
    # ------------------------------------------------------------------

    @staticmethod
    def embedding_key(text: str) -> str:
        return f"{EMBEDDING_KEY_PREFIX}:{_normalize_text(text)}"

    @staticmethod
    def hash_embedding(embedding: Sequence[float]) -> str:
        if len(embedding) < 10:
            return ",".join(repr(value) for value in embedding)
        head = ",".join(repr(value) for value in embedding[:3])
        tail = ",".join(repr(value) for value in embedding[-3:])
        return f"{head}:{len(embedding)}:{tail}"

    @staticmethod
    def hash_learning_history(ids: Iterable[str]) -> str:
        ordered = sorted(ids)
        if not ordered:
            return EMPTY_HISTORY_HASH
        digest = hashlib.sha256("\n".join(ordered).encode("utf-8")).hexdigest()[:16]
        return f"{len(ordered)}:{digest}"

    @classmethod
    def search_key(
        cls,
        embedding: Sequence[float],
        threshold: float,
        count: int,
        learning_history_hash: Optional[str] = None,
    ) -> str:
        history_part = f":{learning_history_hash}" if learning_history_hash else ""
        return f"{SEARCH_KEY_PREFIX}:{cls.hash_embedding(embedding)}:{threshold}:{count}{history_part}"

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def get_embedding(self, text: str) -> Optional[List[float]]:
        cached = self._embeddings.get(self.embedding_key(text))
        if cached is None:
            return None
        return list(cached)

    def set_embedding(self, text: str, embedding: Sequence[float]) -> None:
        self._embeddings.set(self.embedding_key(text), list(embedding))

    # ------------------------------------------------------------------
    # Search results
    # ------------------------------------------------------------------

    def get_search_results(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int,
        learning_history_hash: Optional[str] = None,
    ) -> Optional[List[Any]]:
        key = self.search_key(embedding, threshold, count, learning_history_hash)
        cached = self._search.get(key)
        if cached is None:
            logger.debug("Search cache miss: %s", key)
            return None
        logger.debug("Search cache hit: %s", key)
        return [_copy_value(item) for item in cached]

    def set_search_results(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int,
        results: Sequence[Any],
        learning_history_hash: Optional[str] = None,
    ) -> None:
        key = self.search_key(embedding, threshold, count, learning_history_hash)
        self._search.set(key, [_copy_value(item) for item in results])

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def prune(self) -> int:
        removed = self._embeddings.prune() + self._search.prune()
        if removed:
            logger.debug("Pruned %s expired roadmap cache entries", removed)
        return removed

    def clear(self) -> None:
        self._embeddings.clear()
        self._search.clear()

    def stats(self) -> Dict[str, CacheStats]:
        return {
            "embeddings": self._embeddings.stats(),
            "search": self._search.stats(),
        }


__all__ = ["EMPTY_HISTORY_HASH", "RoadmapCache"]
