"""
Module: rendering.pipeline

Purpose:
    Render pipeline orchestrator. For every equation span it consults the
    two-tier cache, falls back to the conversion engine and the bitmap
    materializer on misses, and returns new blocks carrying the artifacts.

Key Classes:
    - RenderPipeline: Blocking and asyncio render entry points, cache probe,
      background preload

Dependencies:
    - asyncio, concurrent.futures, threading (std)
    - latex_toolkit.cache: ArtifactCache and keys
    - latex_toolkit.rendering.engine: ConversionEngine
    - latex_toolkit.rendering.materializer: BitmapMaterializer

Used By:
    - latex_toolkit.session.RenderSession
    - Host applications rendering LaTeX text

Failure handling:
    - ConversionError: stored as the artifact's error text, rendering continues
    - Any other failure in a block: logged, original block returned unchanged
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Dict, Generator, Iterable, List, Optional

from latex_toolkit.cache import ArtifactCache, ConversionSignature, PresentationKey
from latex_toolkit.cache.artifact_cache import get_shared_cache
from latex_toolkit.config import RenderOptions
from latex_toolkit.core.models import Artifact, ArtifactError, Bitmap, Block, Span
from latex_toolkit.parsing import segment

from .engine import ConversionEngine, ConversionError
from .materializer import BitmapMaterializer, MaterializationError
from .presentation import pixel_size, recolor_svg
from .preload import PreloadQueue
from .timing import TimingLog, timed_phase

logger = logging.getLogger(__name__)


def _check_options(options: RenderOptions) -> None:
    if not isinstance(options, RenderOptions):
        raise TypeError(f"Expected RenderOptions, got {type(options).__name__}")


class _KeyedLocks:
    """One lock per cache key, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class RenderPipeline:
    """
    Renders equation spans through the cache, engine and materializer.

    The pipeline is stateless apart from the injected cache and its
    timing counters, so one instance can serve many sessions at once.
    A given signature (or presentation key) is converted (or rasterised)
    by one thread at a time; others wait and then read the cached result.

    Attributes:
        engine: TeX-to-SVG converter
        materializer: SVG rasteriser
        cache: Two-tier artifact cache (shared process cache by default)
        max_workers: Threads used to render blocks of one call in parallel
        timing: Phase durations and counters (engine_calls, vector_hits, ...)

    Example:
        >>> pipeline = RenderPipeline(MathJaxNodeEngine(), QtSvgMaterializer())
        >>> options = RenderOptions(font_metric=9.0, display_scale=2.0)
        >>> blocks = pipeline.segment("Energy: \\\\(E=mc^2\\\\)", options)
        >>> rendered = pipeline.render_blocks(blocks, options)
    """

    def __init__(
        self,
        engine: ConversionEngine,
        materializer: BitmapMaterializer,
        cache: Optional[ArtifactCache] = None,
        *,
        max_workers: int = 1,
        preload_workers: int = 2,
    ):
        """
        Initialize pipeline.

        Args:
            engine: Conversion engine.
            materializer: Bitmap materializer.
            cache: Cache to use. Defaults to the shared process cache.
            max_workers: Parallel block renders per call (1 = sequential).
            preload_workers: Threads for background preloads.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1: {max_workers}")
        self.engine = engine
        self.materializer = materializer
        self.cache = cache if cache is not None else get_shared_cache()
        self.max_workers = max_workers
        self.timing = TimingLog()
        self.preload_queue = PreloadQueue(max_workers=preload_workers)
        self._conversion_locks = _KeyedLocks()
        self._bitmap_locks = _KeyedLocks()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────────

    def segment(self, text: str, options: RenderOptions) -> List[Block]:
        """Segment ``text`` using the parsing options in ``options``."""
        _check_options(options)
        return segment(text, options.parsing_mode, unencode_html=options.unencode_html)

    def render_blocks(self, blocks: Iterable[Block], options: RenderOptions) -> List[Block]:
        """
        Render blocks, blocking the caller.

        Args:
            blocks: Blocks from :meth:`segment`
            options: Render options

        Returns:
            New blocks in input order. Equation spans carry their artifact
            and bitmap; blocks that failed to render are returned unchanged.

        Raises:
            TypeError: If ``options`` is not a RenderOptions
        """
        _check_options(options)
        blocks = list(blocks)
        with timed_phase(self.timing, "render_blocks"):
            if self.max_workers > 1 and len(blocks) > 1:
                # map() yields results in input order
                rendered = list(self._get_executor().map(
                    lambda block: self._render_block(block, options), blocks
                ))
            else:
                rendered = [self._render_block(block, options) for block in blocks]
        self._log_summary()
        return rendered

    async def render_blocks_async(
        self,
        blocks: Iterable[Block],
        options: RenderOptions,
    ) -> List[Block]:
        """
        Render blocks without blocking the event loop.

        Engine calls and rasterisation run in worker threads; results are
        identical to :meth:`render_blocks`.
        """
        _check_options(options)
        blocks = list(blocks)
        start = time.perf_counter()
        rendered = await asyncio.gather(
            *(self._render_block_async(block, options) for block in blocks)
        )
        self.timing.log_phase("render_blocks", time.perf_counter() - start)
        self._log_summary()
        return list(rendered)

    def is_cached(self, blocks: Iterable[Block], options: RenderOptions) -> bool:
        """
        Check whether rendering ``blocks`` would be served from cache.

        True only if every equation span's artifact is in Tier 1 and, when
        it can be rasterised, its bitmap is in Tier 2. When True,
        :meth:`render_blocks` makes no engine calls.
        """
        _check_options(options)
        for block in blocks:
            for span in block.spans:
                if not span.kind.is_equation:
                    continue
                artifact = self.cache.peek_artifact(ConversionSignature.for_span(span, options))
                if artifact is None:
                    return False
                if artifact.is_drawable and not self.cache.has_bitmap(
                    PresentationKey.for_artifact(artifact, options)
                ):
                    return False
        return True

    def preload(self, text: str, options: RenderOptions) -> Future:
        """
        Warm the cache for ``text`` in the background.

        Returns immediately. The Future resolves to the rendered blocks;
        failures are logged.
        """
        _check_options(options)
        return self.preload_queue.submit(self._preload, text, options)

    def get_cached_vector(self, signature: ConversionSignature) -> Optional[bytes]:
        return self.cache.get_cached_vector(signature)

    def get_cached_bitmap(self, key: PresentationKey) -> Optional[Bitmap]:
        return self.cache.get_cached_bitmap(key)

    def close(self) -> None:
        """Stop background work and release worker threads."""
        self.preload_queue.shutdown(cancel_pending=True)
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> "RenderPipeline":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────────────────
    # Block / span rendering
    # ─────────────────────────────────────────────────────────────────────────

    def _render_block(self, block: Block, options: RenderOptions) -> Block:
        if not block.equation_spans:
            return block
        try:
            return Block(tuple(self._render_span(span, options) for span in block.spans))
        except Exception as e:
            return self._block_failed(block, e)

    async def _render_block_async(self, block: Block, options: RenderOptions) -> Block:
        if not block.equation_spans:
            return block
        try:
            spans = [await self._render_span_async(span, options) for span in block.spans]
            return Block(tuple(spans))
        except Exception as e:
            return self._block_failed(block, e)

    def _block_failed(self, block: Block, error: Exception) -> Block:
        source = block.original_text
        logger.warning(
            f"Failed to render block {source[:60]!r}: {error}",
            extra={"latex": source, "error": str(error)},
        )
        self.timing.increment("failed_blocks")
        return block

    def _render_span(self, span: Span, options: RenderOptions) -> Span:
        if not span.kind.is_equation:
            return span
        signature = ConversionSignature.for_span(span, options)
        artifact = self._cached_artifact(signature)
        if artifact is None:
            artifact = self._convert(span, signature, options)
        _require_size(artifact)

        bitmap = None
        if artifact.is_drawable:
            key = PresentationKey.for_artifact(artifact, options)
            bitmap = self._cached_bitmap(key)
            if bitmap is None:
                bitmap = self._materialize(artifact, key, options)
        return span.with_render(artifact, bitmap)

    async def _render_span_async(self, span: Span, options: RenderOptions) -> Span:
        if not span.kind.is_equation:
            return span
        signature = ConversionSignature.for_span(span, options)
        artifact = self._cached_artifact(signature)
        if artifact is None:
            artifact = await asyncio.to_thread(self._convert, span, signature, options)
        _require_size(artifact)

        bitmap = None
        if artifact.is_drawable:
            key = PresentationKey.for_artifact(artifact, options)
            bitmap = self._cached_bitmap(key)
            if bitmap is None:
                bitmap = await asyncio.to_thread(self._materialize, artifact, key, options)
        return span.with_render(artifact, bitmap)

    # ─────────────────────────────────────────────────────────────────────────
    # Cache-backed stages
    # ─────────────────────────────────────────────────────────────────────────

    def _cached_artifact(self, signature: ConversionSignature) -> Optional[Artifact]:
        artifact = self.cache.get_artifact(signature)
        if artifact is not None:
            self.timing.increment("vector_hits")
        return artifact

    def _cached_bitmap(self, key: PresentationKey) -> Optional[Bitmap]:
        bitmap = self.cache.get_bitmap(key)
        if bitmap is not None:
            self.timing.increment("bitmap_hits")
        return bitmap

    def _convert(
        self,
        span: Span,
        signature: ConversionSignature,
        options: RenderOptions,
    ) -> Artifact:
        """Convert with the engine and store the artifact (errors included)."""
        with self._conversion_locks.hold(signature.key):
            # Another thread may have converted it while we waited
            artifact = self.cache.peek_artifact(signature)
            if artifact is not None:
                return artifact

            self.timing.increment("engine_calls")
            with timed_phase(self.timing, "conversion"):
                try:
                    svg = self.engine.tex2svg(
                        span.text,
                        span.conversion_options,
                        options.input_options(),
                    )
                    artifact = Artifact.from_svg(svg)
                except ConversionError as e:
                    logger.debug(f"Conversion error for {span.text!r}: {e.diagnostic}")
                    artifact = _error_artifact(e)

            self.cache.put_artifact(signature, artifact)
            return artifact

    def _materialize(
        self,
        artifact: Artifact,
        key: PresentationKey,
        options: RenderOptions,
    ) -> Optional[Bitmap]:
        """Rasterise and store the bitmap. None for unrenderable error artifacts."""
        with self._bitmap_locks.hold(key.key):
            bitmap = self.cache.get_cached_bitmap(key)
            if bitmap is not None:
                return bitmap

            width, height = pixel_size(artifact.geometry, options)
            svg = recolor_svg(artifact.svg, options.color_scheme)
            self.timing.increment("materializations")
            try:
                with timed_phase(self.timing, "materialization"):
                    bitmap = self.materializer.materialize(svg, width, height, options.display_scale)
            except MaterializationError as e:
                if artifact.has_error:
                    logger.debug(f"No bitmap for failed conversion: {e}")
                    return None
                raise

            self.cache.put_bitmap(key, bitmap)
            return bitmap

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _preload(self, text: str, options: RenderOptions) -> List[Block]:
        blocks = self.segment(text, options)
        if self.is_cached(blocks, options):
            logger.debug("Preload skipped: already cached")
            return blocks
        return self.render_blocks(blocks, options)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="latex-render",
                )
            return self._executor

    def _log_summary(self) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(self.timing.summary())
            logger.debug(self.cache.stats)


def _error_artifact(error: ConversionError) -> Artifact:
    """Artifact for a failed conversion, keeping any partial SVG."""
    return Artifact.from_svg(error.svg, error_text=error.diagnostic)


def _require_size(artifact: Artifact) -> None:
    """
    Fail the span when a successful conversion produced an unsized SVG.

    The artifact stays in the vector cache, so the engine is not asked
    again. Only the enclosing block falls back to its source text.
    """
    if not artifact.has_error and not artifact.is_drawable:
        raise ArtifactError("Converted SVG has no usable width/height")
