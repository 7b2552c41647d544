"""
Module: cache.artifact_cache

Purpose:
    Two-tier process-lifetime cache for rendered equations. Tier 1 maps a
    conversion signature to the encoded SVG artifact so the conversion
    engine runs at most once per signature. Tier 2 maps an artifact
    identity plus presentation parameters to the finished bitmap.

Key Classes:
    - ArtifactCache: Injectable two-tier cache

Key Functions:
    - get_shared_cache(): Lazily created process-wide cache
    - reset_shared_cache(): Drop the process-wide cache (tests)

Dependencies:
    - latex_toolkit.cache.lru: LRUStore
    - latex_toolkit.core.models: Artifact, Bitmap

Used By:
    - latex_toolkit.rendering.pipeline: Lookups and writes
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from latex_toolkit.config import CacheLimits
from latex_toolkit.core.models import Artifact, ArtifactDecodeError, Bitmap

from .keys import ConversionSignature, PresentationKey
from .lru import LRUStore

logger = logging.getLogger(__name__)


class ArtifactCache:
    """
    Two-tier artifact cache.

    Both tiers are safe for concurrent use from any number of pipelines
    and sessions; callers need no locking of their own.

    Attributes:
        limits: Capacity policy for both tiers

    Example:
        >>> cache = ArtifactCache(CacheLimits(vector_max_items=64))
        >>> sig = ConversionSignature("x", False, True, ErrorDisplayMode.SHOW_RENDERED)
        >>> cache.get_artifact(sig) is None  # cold cache
        True
    """

    def __init__(self, limits: Optional[CacheLimits] = None):
        self.limits = limits or CacheLimits()
        self.vector_store: LRUStore[str, bytes] = LRUStore(
            "vector-cache",
            max_items=self.limits.vector_max_items,
            max_bytes=self.limits.vector_max_bytes,
        )
        self.bitmap_store: LRUStore[str, Bitmap] = LRUStore(
            "bitmap-cache",
            max_items=self.limits.bitmap_max_items,
            max_bytes=self.limits.bitmap_max_bytes,
            sizeof=lambda bitmap: bitmap.nbytes,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Tier 1: signature -> artifact
    # ─────────────────────────────────────────────────────────────────────────

    def get_artifact(self, signature: ConversionSignature) -> Optional[Artifact]:
        """
        Look up and decode the artifact for ``signature``.

        A stored entry that fails to decode is dropped and reported as a
        miss so the caller converts the equation again.
        """
        return self._decode(signature, self.vector_store.get(signature.key))

    def peek_artifact(self, signature: ConversionSignature) -> Optional[Artifact]:
        """Like :meth:`get_artifact` but leaves recency and stats untouched."""
        return self._decode(signature, self.vector_store.peek(signature.key))

    def put_artifact(self, signature: ConversionSignature, artifact: Artifact) -> None:
        """Store ``artifact`` (error artifacts included)."""
        self.vector_store.put(signature.key, artifact.encode())

    def has_artifact(self, signature: ConversionSignature) -> bool:
        return self.vector_store.contains(signature.key)

    def get_cached_vector(self, signature: ConversionSignature) -> Optional[bytes]:
        """Raw encoded Tier 1 bytes, for inspection."""
        return self.vector_store.peek(signature.key)

    def _decode(
        self,
        signature: ConversionSignature,
        data: Optional[bytes],
    ) -> Optional[Artifact]:
        if data is None:
            return None
        try:
            return Artifact.decode(data)
        except ArtifactDecodeError as e:
            logger.warning(f"Discarding corrupt cached artifact {signature.key[:12]}: {e}")
            self.vector_store.remove_if(signature.key, data)
            return None

    # ─────────────────────────────────────────────────────────────────────────
    # Tier 2: presentation key -> bitmap
    # ─────────────────────────────────────────────────────────────────────────

    def get_bitmap(self, key: PresentationKey) -> Optional[Bitmap]:
        return self.bitmap_store.get(key.key)

    def put_bitmap(self, key: PresentationKey, bitmap: Bitmap) -> None:
        self.bitmap_store.put(key.key, bitmap)

    def has_bitmap(self, key: PresentationKey) -> bool:
        return self.bitmap_store.contains(key.key)

    def get_cached_bitmap(self, key: PresentationKey) -> Optional[Bitmap]:
        """Tier 2 bitmap, for inspection."""
        return self.bitmap_store.peek(key.key)

    # ─────────────────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Clear both tiers."""
        self.vector_store.clear()
        self.bitmap_store.clear()

    @property
    def stats(self) -> str:
        return f"{self.vector_store.stats}; {self.bitmap_store.stats}"


_shared_cache: Optional[ArtifactCache] = None
_shared_lock = threading.Lock()


def get_shared_cache() -> ArtifactCache:
    """Return the process-wide cache, creating it on first use."""
    global _shared_cache
    with _shared_lock:
        if _shared_cache is None:
            _shared_cache = ArtifactCache()
            logger.debug("Created shared artifact cache")
        return _shared_cache


def reset_shared_cache() -> None:
    """Forget the process-wide cache."""
    global _shared_cache
    with _shared_lock:
        _shared_cache = None
