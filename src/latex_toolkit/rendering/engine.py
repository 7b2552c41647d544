"""
Module: rendering.engine

Purpose:
    Interface to the external TeX-to-SVG conversion engine, plus a default
    implementation that runs MathJax under Node.

Key Classes:
    - ConversionOptions: Per-equation options (display style)
    - InputOptions: TeX input options (escape processing, error mode)
    - ConversionEngine: Abstract engine interface
    - MathJaxNodeEngine: MathJax via ``node tex2svg.js``
    - ConversionError: Engine rejected the TeX input
    - EngineUnavailableError: Engine could not be run at all

Dependencies:
    - subprocess, json, shutil (std)
    - Node.js with the ``mathjax-full`` package (runtime, optional)

Used By:
    - latex_toolkit.rendering.pipeline: Conversion on cache miss
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from latex_toolkit.config import ErrorDisplayMode

logger = logging.getLogger(__name__)

TEX2SVG_SCRIPT = Path(__file__).with_name("tex2svg.js")


class ConversionError(Exception):
    """
    The engine rejected the TeX input.

    This is an expected, per-equation outcome: the pipeline stores it as
    the artifact's error text and carries on.

    Attributes:
        diagnostic: Human readable engine message
        svg: Partial SVG the engine produced, possibly empty
    """

    def __init__(self, diagnostic: str, svg: str = ""):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.svg = svg


class EngineUnavailableError(RuntimeError):
    """The engine process could not be started or crashed."""
    pass


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """
    Options for converting one equation.

    Attributes:
        display: Typeset in display (block) style
    """

    display: bool = False


@dataclass(frozen=True, slots=True)
class InputOptions:
    """
    TeX input processor options.

    Attributes:
        process_escapes: Turn ``\\$`` into a literal dollar sign
        error_mode: How errors are reported by the engine
    """

    process_escapes: bool = True
    error_mode: ErrorDisplayMode = ErrorDisplayMode.SHOW_RENDERED


class ConversionEngine(ABC):
    """
    Abstract TeX-to-SVG converter.

    Implementations must be safe to call from several threads at once.
    """

    @abstractmethod
    def tex2svg(
        self,
        text: str,
        conversion_options: ConversionOptions,
        input_options: InputOptions,
    ) -> str:
        """
        Convert TeX to an SVG document.

        Args:
            text: Equation body (no delimiters)
            conversion_options: Display/inline style
            input_options: TeX input processing options

        Returns:
            SVG document text

        Raises:
            ConversionError: If the TeX is invalid
            EngineUnavailableError: If the engine cannot run
        """


class MathJaxNodeEngine(ConversionEngine):
    """
    Converts TeX with MathJax running under Node.js.

    Each call runs ``node tex2svg.js`` with a JSON request on stdin and
    reads ``{"svg": ..., "error": ...}`` from stdout.

    Example:
        >>> engine = MathJaxNodeEngine()
        >>> svg = engine.tex2svg("x^2", ConversionOptions(), InputOptions())
    """

    def __init__(
        self,
        node: str = "node",
        script: Optional[Path] = None,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize engine.

        Args:
            node: Node executable name or path.
            script: Converter script. Defaults to the bundled tex2svg.js.
            timeout: Seconds before a conversion is abandoned (None = wait).
        """
        self.node = node
        self.script = script or TEX2SVG_SCRIPT
        self.timeout = timeout

    @classmethod
    def is_available(cls, node: str = "node") -> bool:
        """Check that the Node executable can be found."""
        path = shutil.which(node)
        if path is None:
            logger.info(f"Node executable {node!r} not found; MathJax engine unavailable")
            return False
        logger.info(f"MathJax engine available via {path}")
        return True

    def tex2svg(
        self,
        text: str,
        conversion_options: ConversionOptions,
        input_options: InputOptions,
    ) -> str:
        request = json.dumps({
            "tex": text,
            "display": conversion_options.display,
            "processEscapes": input_options.process_escapes,
            "errorMode": input_options.error_mode.name,
        })
        try:
            result = subprocess.run(
                [self.node, str(self.script)],
                input=request,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise EngineUnavailableError(f"Node executable not found: {self.node}") from e
        except subprocess.TimeoutExpired as e:
            raise EngineUnavailableError(f"tex2svg timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or f"tex2svg exited with status {e.returncode}"
            raise EngineUnavailableError(message) from e

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise EngineUnavailableError(result.stderr or "Failed to parse tex2svg output") from e

        svg = (payload.get("svg") or "").strip()
        error = payload.get("error")
        if error:
            logger.debug(f"MathJax rejected {text!r}: {error}")
            raise ConversionError(str(error), svg=svg)
        return svg
