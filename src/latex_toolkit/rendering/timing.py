"""
Module: rendering.timing

Purpose:
    Timing and counter instrumentation for the render pipeline, used to
    see where render time goes and how often the caches are hit.

Key Classes:
    - TimingLog: Thread-safe phase durations and event counters

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time, threading, contextlib (std)

Used By:
    - latex_toolkit.rendering.pipeline: RenderPipeline.timing
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List

logger = logging.getLogger(__name__)


@dataclass
class TimingLog:
    """
    Timing metrics for the render pipeline.

    Attributes:
        phase_timings: Dict of phase_name -> list of durations in seconds
        counters: Dict of event_name -> count (engine calls, cache hits, ...)

    Example:
        >>> log = TimingLog()
        >>> log.log_phase("conversion", 0.234)
        >>> log.increment("engine_calls")
        >>> print(log.summary())
    """
    phase_timings: Dict[str, List[float]] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def log_phase(self, phase: str, duration: float) -> None:
        """Record one duration for a phase."""
        with self._lock:
            self.phase_timings.setdefault(phase, []).append(duration)

    def increment(self, counter: str, amount: int = 1) -> None:
        with self._lock:
            self.counters[counter] = self.counters.get(counter, 0) + amount

    def count(self, counter: str) -> int:
        with self._lock:
            return self.counters.get(counter, 0)

    def get_phase_averages(self) -> Dict[str, float]:
        """Calculate average time per phase."""
        with self._lock:
            return {
                phase: sum(durations) / len(durations)
                for phase, durations in self.phase_timings.items()
                if durations
            }

    def reset(self) -> None:
        with self._lock:
            self.phase_timings.clear()
            self.counters.clear()

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Render Timing Summary ==="]

        averages = self.get_phase_averages()
        if averages:
            lines.append("Phase averages:")
            for phase, avg in sorted(averages.items(), key=lambda x: -x[1]):
                lines.append(f"  {phase:25s} {avg:.4f}s")

        with self._lock:
            counters = dict(self.counters)
        if counters:
            lines.append("")
            lines.append("Counters:")
            for name, value in sorted(counters.items()):
                lines.append(f"  {name:25s} {value}")

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary."""
        with self._lock:
            counters = dict(self.counters)
            phase_counts = {phase: len(d) for phase, d in self.phase_timings.items()}
        return {
            "phase_averages": self.get_phase_averages(),
            "phase_counts": phase_counts,
            "counters": counters,
        }


@contextmanager
def timed_phase(log: TimingLog, phase: str) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    Args:
        log: TimingLog instance to record metrics
        phase: Name of the phase being timed

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "conversion"):
        ...     svg = engine.tex2svg(text, conversion_options, input_options)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        log.log_phase(phase, time.perf_counter() - start)
