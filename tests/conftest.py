import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to the Python path so that timeshaper packages can be imported in tests
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from timeshaper.core.config import CoordinatorConfig, EngineConfig, reset_config  # noqa: E402
from timeshaper.core.media import PixelFrame  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_global_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def engine_config():
    return EngineConfig(coordinator=CoordinatorConfig(max_workers=4, frame_count=5))


def solid(rgb, width=32, height=32, timestamp=0.0) -> PixelFrame:
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[...] = rgb
    return PixelFrame(pixels, timestamp)


def noise_pixels(width=64, height=64, seed=0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


@pytest.fixture
def solid_frame():
    return solid


@pytest.fixture
def textured_pixels():
    return noise_pixels
