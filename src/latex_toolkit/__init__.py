"""Top-level package for the LaTeX toolkit.

Provides subpackages:
- latex_toolkit.parsing – splits mixed text/LaTeX input into blocks of spans
- latex_toolkit.cache – two-tier SVG/bitmap artifact cache
- latex_toolkit.rendering – render pipeline, conversion engine, materializer
- latex_toolkit.session – per-consumer render session state machine
- latex_toolkit.utils – log forwarding for host applications
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.1.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    try:
        from importlib.metadata import version as pkg_version
        return pkg_version("latex-toolkit")
    except Exception:
        return "0.0.0"


__version__ = _get_version()
__copyright__ = "Copyright 2026 latex-toolkit contributors"

from .config import (  # noqa: E402
    CacheLimits,
    ColorScheme,
    ErrorDisplayMode,
    ParsingMode,
    RenderOptions,
)
from .core.models import Artifact, Bitmap, Block, Span, SpanKind  # noqa: E402
from .parsing import segment, segment_to_text  # noqa: E402
from .cache import ArtifactCache, ConversionSignature, PresentationKey  # noqa: E402
from .rendering import (  # noqa: E402
    ConversionEngine,
    ConversionError,
    MathJaxNodeEngine,
    QtSvgMaterializer,
    RenderPipeline,
)
from .session import RenderSession, SessionState  # noqa: E402

__all__: list[str] = [
    "__version__",
    "Artifact",
    "ArtifactCache",
    "Bitmap",
    "Block",
    "CacheLimits",
    "ColorScheme",
    "ConversionEngine",
    "ConversionError",
    "ConversionSignature",
    "ErrorDisplayMode",
    "MathJaxNodeEngine",
    "ParsingMode",
    "PresentationKey",
    "QtSvgMaterializer",
    "RenderOptions",
    "RenderPipeline",
    "RenderSession",
    "SessionState",
    "Span",
    "SpanKind",
    "segment",
    "segment_to_text",
]
