"""
Module: session

Purpose:
    Per-consumer render session: owns one LaTeX input and its options,
    drives the pipeline at most once per input and exposes the result.
"""

from .session import RenderSession
from .state import SessionState

__all__ = ["RenderSession", "SessionState"]
