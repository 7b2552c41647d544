"""
Module: session.state

Purpose:
    Lifecycle states of a RenderSession and the transitions between them.

Key Classes:
    - SessionState: IDLE, RENDERING, COMPLETE, CACHED

Used By:
    - latex_toolkit.session.session
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, FrozenSet


class SessionState(Enum):
    """
    Render session lifecycle.

    IDLE -> RENDERING -> COMPLETE for a pipeline run, IDLE -> CACHED when
    every artifact was already cached. Any state returns to IDLE when the
    input changes, the session is reset, or a render is cancelled/fails.
    """
    IDLE = auto()
    RENDERING = auto()
    COMPLETE = auto()
    CACHED = auto()

    @property
    def has_result(self) -> bool:
        """True if rendered blocks are available."""
        return self in (SessionState.COMPLETE, SessionState.CACHED)

    def can_transition_to(self, target: "SessionState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.RENDERING, SessionState.CACHED}),
    SessionState.RENDERING: frozenset({SessionState.COMPLETE, SessionState.IDLE}),
    SessionState.COMPLETE: frozenset({SessionState.IDLE}),
    SessionState.CACHED: frozenset({SessionState.IDLE}),
}
