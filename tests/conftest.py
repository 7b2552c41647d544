import os
import sys
import threading
from pathlib import Path

import pytest
from PIL import Image

# Qt must not try to open a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add src to sys.path so we can import latex_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from latex_toolkit.cache import ArtifactCache, reset_shared_cache  # noqa: E402
from latex_toolkit.config import RenderOptions  # noqa: E402
from latex_toolkit.core.models import Bitmap  # noqa: E402
from latex_toolkit.rendering import (  # noqa: E402
    BitmapMaterializer,
    ConversionEngine,
    ConversionError,
    EngineUnavailableError,
    MaterializationError,
    RenderPipeline,
)

SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="2ex" height="1ex" '
    'style="vertical-align: -0.5ex" viewBox="0 0 200 100">'
    '<rect width="200" height="100" fill="currentColor"/><!-- {text} --></svg>'
)
PARTIAL_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="3ex" height="1ex" viewBox="0 0 300 100">'
    '<text fill="red">error</text></svg>'
)
UNSIZED_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100"><rect/></svg>'


class FakeEngine(ConversionEngine):
    """
    Deterministic engine that counts calls.

    - "\\bad" anywhere in the input: ConversionError without SVG
    - "\\partial": ConversionError with a drawable partial SVG
    - "\\crash": EngineUnavailableError
    - "\\unsized": an SVG with a viewBox but no width/height
    - anything else: a 2ex x 1ex SVG embedding the input text
    """

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def tex2svg(self, text, conversion_options, input_options):
        with self._lock:
            self.calls.append((text, conversion_options, input_options))
        if "\\crash" in text:
            raise EngineUnavailableError("engine went away")
        if "\\bad" in text:
            raise ConversionError("Undefined control sequence \\bad")
        if "\\partial" in text:
            raise ConversionError("Missing argument", svg=PARTIAL_SVG)
        if "\\unsized" in text:
            return UNSIZED_SVG
        return SVG_TEMPLATE.format(text=text)


class FakeMaterializer(BitmapMaterializer):
    """Pillow-backed materializer; fails for SVG containing 'broken'."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def materialize(self, svg, width_px, height_px, scale):
        with self._lock:
            self.calls.append((svg, width_px, height_px, scale))
        if b"broken" in svg:
            raise MaterializationError("cannot draw")
        image = Image.new("RGBA", (width_px, height_px), (0, 0, 0, 255))
        return Bitmap.from_image(image, scale=scale)


# Common test fixtures
@pytest.fixture(autouse=True)
def _fresh_shared_cache():
    """Isolate tests from the process-wide cache."""
    reset_shared_cache()
    yield
    reset_shared_cache()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def materializer():
    return FakeMaterializer()


@pytest.fixture
def cache():
    return ArtifactCache()


@pytest.fixture
def options():
    """Options giving 40x20 px bitmaps for the fake engine's 2ex x 1ex SVG."""
    return RenderOptions(font_metric=10.0, display_scale=2.0)


@pytest.fixture
def pipeline(engine, materializer, cache):
    pipeline = RenderPipeline(engine, materializer, cache)
    yield pipeline
    pipeline.close()


@pytest.fixture
def svg_text():
    return SVG_TEMPLATE.format(text="x")
