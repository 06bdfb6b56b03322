import numpy as np
import pytest

from timeshaper.analysis.analyzers.quality_analyzer import QualityAnalyzer
from timeshaper.core.media import PixelFrame


def checkerboard(size=16):
    pattern = (np.indices((size, size)).sum(axis=0) % 2) * 255
    return PixelFrame(np.repeat(pattern[:, :, None], 3, axis=2).astype(np.uint8))


class TestQualityAnalyzer:
    def test_uniform_single_frame(self, solid_frame):
        result = QualityAnalyzer().analyze([solid_frame((90, 90, 90))])
        assert result.sharpness == 0.0
        assert result.noise == 0.0
        assert result.stability == 1.0
        assert result.overall == pytest.approx(2 / 3)

    def test_checkerboard_is_sharp_and_noisy(self):
        score = QualityAnalyzer.score_frame(checkerboard())
        assert score.sharpness == pytest.approx(1.0)
        assert score.noise == pytest.approx(1.0)

    def test_identical_frames_are_stable(self, solid_frame):
        frame = solid_frame((10, 200, 30))
        assert QualityAnalyzer().stability(frame, frame) == 1.0

    def test_flash_is_unstable(self, solid_frame):
        result = QualityAnalyzer().analyze([solid_frame((0, 0, 0)), solid_frame((255, 255, 255))])
        assert result.stability == 0.0

    def test_small_change_reduces_stability(self, solid_frame):
        a = solid_frame((0, 0, 0))
        b = solid_frame((51, 51, 51))  # difference 0.2
        assert QualityAnalyzer().stability(a, b) == pytest.approx(0.6)

    def test_overall_is_mean_of_components(self, textured_pixels):
        frames = [PixelFrame(textured_pixels(32, 32, seed=s)) for s in range(3)]
        result = QualityAnalyzer().analyze(frames)
        expected = (result.sharpness + result.stability + 1 - result.noise) / 3
        assert result.overall == pytest.approx(expected)
        for value in (result.sharpness, result.noise, result.stability, result.overall):
            assert 0.0 <= value <= 1.0

    def test_no_frames(self):
        result = QualityAnalyzer().analyze([])
        assert (result.sharpness, result.noise, result.stability) == (0.0, 0.0, 1.0)
