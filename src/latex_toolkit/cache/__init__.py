"""
Module: cache

Purpose:
    Two-tier artifact cache (SVG artifacts and bitmaps) and its keys.

Key Classes:
    - ArtifactCache: Tier 1 + Tier 2 stores
    - ConversionSignature / PresentationKey: Cache keys
    - LRUStore: Bounded thread-safe LRU mapping
"""

from .artifact_cache import ArtifactCache, get_shared_cache, reset_shared_cache
from .keys import ConversionSignature, PresentationKey
from .lru import LRUStore

__all__ = [
    "ArtifactCache",
    "ConversionSignature",
    "LRUStore",
    "PresentationKey",
    "get_shared_cache",
    "reset_shared_cache",
]
