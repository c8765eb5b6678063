"""Cache module for recommendation results."""
from core.cache.recommendation_cache import (
    CacheEntry,
    EvictionPolicy,
    LeastRecentlyUsedEviction,
    OldestInsertionEviction,
    RecommendationCache,
    EVICTION_POLICIES,
)

__all__ = [
    'CacheEntry',
    'EvictionPolicy',
    'LeastRecentlyUsedEviction',
    'OldestInsertionEviction',
    'RecommendationCache',
    'EVICTION_POLICIES',
]
