"""In-memory caches shared across roadmap generation requests."""

from .expiring_lru import CacheStats, ExpiringLRUCache
from .roadmap_cache import RoadmapCache

__all__ = ["CacheStats", "ExpiringLRUCache", "RoadmapCache"]
