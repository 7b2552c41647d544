"""
Module: session.session

Purpose:
    RenderSession ties one LaTeX input and its options to a render
    pipeline. It memoises segmentation, serves fully cached inputs without
    a pipeline run, and renders at most once per input.

Key Classes:
    - RenderSession: Render state machine for one consumer

Dependencies:
    - asyncio, threading (std)
    - latex_toolkit.rendering.RenderPipeline

Used By:
    - Host applications (one session per displayed LaTeX view)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import List, Optional, Tuple

from latex_toolkit.config import ParsingMode, RenderOptions
from latex_toolkit.core.models import Block
from latex_toolkit.rendering import RenderPipeline

from .state import SessionState

logger = logging.getLogger(__name__)


class RenderSession:
    """
    Render state machine for one LaTeX input.

    A new ``(latex, options)`` pair resets the session to IDLE and any
    render still running for the previous input has its result dropped.
    Cancelling or failing a render also returns to IDLE, so the request
    can simply be repeated.

    Example:
        >>> session = RenderSession(pipeline, r"Energy: \\(E=mc^2\\)")
        >>> blocks = session.request()
        >>> session.state
        <SessionState.COMPLETE: 3>
    """

    def __init__(
        self,
        pipeline: RenderPipeline,
        latex: str = "",
        options: Optional[RenderOptions] = None,
    ):
        options = options if options is not None else RenderOptions()
        if not isinstance(options, RenderOptions):
            raise TypeError(f"Expected RenderOptions, got {type(options).__name__}")
        self.pipeline = pipeline
        self._latex = latex
        self._options = options
        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._blocks: List[Block] = []
        self._generation = 0
        self._parse_key: Optional[Tuple[str, bool, ParsingMode]] = None
        self._parsed: List[Block] = []
        self._task: Optional[asyncio.Task] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def latex(self) -> str:
        return self._latex

    @property
    def options(self) -> RenderOptions:
        return self._options

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def blocks(self) -> List[Block]:
        """Rendered blocks, empty until a render completes."""
        with self._lock:
            return list(self._blocks)

    @property
    def is_rendering(self) -> bool:
        return self._state is SessionState.RENDERING

    @property
    def is_complete(self) -> bool:
        return self._state.has_result

    # ─────────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────────

    def update(self, latex: str, options: Optional[RenderOptions] = None) -> bool:
        """
        Set new input.

        Args:
            latex: New LaTeX text
            options: New options (None keeps the current ones)

        Returns:
            True if the input changed and the session was reset.
        """
        options = options if options is not None else self._options
        if not isinstance(options, RenderOptions):
            raise TypeError(f"Expected RenderOptions, got {type(options).__name__}")
        with self._lock:
            if latex == self._latex and options == self._options:
                return False
            self._latex = latex
            self._options = options
            self._invalidate()
            return True

    def parsed_blocks(self) -> List[Block]:
        """Segmented input, recomputed only when text or parsing options change."""
        with self._lock:
            key = (self._latex, self._options.unencode_html, self._options.parsing_mode)
            if key != self._parse_key:
                self._parsed = self.pipeline.segment(self._latex, self._options)
                self._parse_key = key
            return list(self._parsed)

    def is_cached(self) -> bool:
        """True if rendering this input needs no engine calls."""
        return self.pipeline.is_cached(self.parsed_blocks(), self._options)

    def render_sync(self) -> List[Block]:
        """
        Render immediately on the calling thread without touching the state.

        Intended for inputs where :meth:`is_cached` is True, so display code
        can show cached equations without a loading step.
        """
        return self.pipeline.render_blocks(self.parsed_blocks(), self._options)

    # ─────────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────────

    def request(self) -> List[Block]:
        """
        Render the input, blocking the caller.

        No-op returning the current blocks unless the session is IDLE.

        Returns:
            Rendered blocks (empty if a render is already running).
        """
        with self._lock:
            if self._state is not SessionState.IDLE or self._serve_from_cache():
                return list(self._blocks)
            generation, blocks, options = self._begin()

        try:
            rendered = self.pipeline.render_blocks(blocks, options)
        except BaseException:
            self._abort(generation)
            raise
        return self._complete(generation, rendered)

    async def request_async(self) -> List[Block]:
        """Async form of :meth:`request`; conversions run off the event loop."""
        with self._lock:
            if self._state is not SessionState.IDLE or self._serve_from_cache():
                return list(self._blocks)
            generation, blocks, options = self._begin()

        try:
            rendered = await self.pipeline.render_blocks_async(blocks, options)
        except BaseException:
            # Includes CancelledError
            self._abort(generation)
            raise
        return self._complete(generation, rendered)

    def start(self) -> asyncio.Task:
        """
        Schedule :meth:`request_async` on the running event loop.

        Raises:
            RuntimeError: If called without a running event loop
        """
        self._task = asyncio.get_running_loop().create_task(self.request_async())
        return self._task

    def cancel(self) -> bool:
        """
        Cancel a running render and return to IDLE.

        Returns:
            True if a render was running.
        """
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        with self._lock:
            if self._state is not SessionState.RENDERING:
                return False
            self._generation += 1
            self._set_state(SessionState.IDLE)
        logger.debug("Render cancelled")
        return True

    def preload(self) -> Future:
        """Run :meth:`request` on the pipeline's background preload queue."""
        return self.pipeline.preload_queue.submit(self.request)

    def reset(self) -> None:
        """Discard rendered blocks and return to IDLE."""
        with self._lock:
            self._invalidate()

    def close(self) -> None:
        self.cancel()
        self.reset()

    # ─────────────────────────────────────────────────────────────────────────
    # Internals (call with self._lock held unless noted)
    # ─────────────────────────────────────────────────────────────────────────

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        if not self._state.can_transition_to(state):
            raise RuntimeError(f"Invalid session transition {self._state.name} -> {state.name}")
        logger.debug(f"Session state {self._state.name} -> {state.name}")
        self._state = state

    def _invalidate(self) -> None:
        self._generation += 1
        self._blocks = []
        self._set_state(SessionState.IDLE)

    def _serve_from_cache(self) -> bool:
        blocks = self.parsed_blocks()
        if not self.pipeline.is_cached(blocks, self._options):
            return False
        self._blocks = self.pipeline.render_blocks(blocks, self._options)
        self._set_state(SessionState.CACHED)
        return True

    def _begin(self) -> Tuple[int, List[Block], RenderOptions]:
        self._set_state(SessionState.RENDERING)
        return self._generation, self.parsed_blocks(), self._options

    def _complete(self, generation: int, rendered: List[Block]) -> List[Block]:
        # Takes the lock itself
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding render result for outdated input")
                return list(self._blocks)
            self._blocks = rendered
            self._set_state(SessionState.COMPLETE)
            return list(rendered)

    def _abort(self, generation: int) -> None:
        # Takes the lock itself
        with self._lock:
            if generation == self._generation and self._state is SessionState.RENDERING:
                self._set_state(SessionState.IDLE)
