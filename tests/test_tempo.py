import numpy as np
import pytest

from timeshaper.audio.bpm_analyzer import BPMAnalyzer
from timeshaper.audio.onset_detector import OnsetDetector

SR = 10240  # 0.5s = 5120 samples = 10 hops of 512


def click_track(clicks: int, spacing: int = 5120, offset: int = 256) -> np.ndarray:
    y = np.zeros((clicks + 1) * spacing, dtype=np.float32)
    for k in range(1, clicks + 1):
        y[k * spacing + offset] = 1.0
    return y


class TestOnsetDetector:
    def test_one_onset_per_click(self):
        onsets = OnsetDetector().detect_onsets(click_track(10), SR)
        assert len(onsets) == 10
        np.testing.assert_allclose(np.diff(onsets), 0.5)

    def test_onsets_are_window_start_times(self):
        onsets = OnsetDetector().detect_onsets(click_track(2), SR)
        # the first window containing a click starts one hop before the click's hop
        assert onsets[0] == pytest.approx((5120 - 512) / SR)

    def test_silence_has_no_onsets(self):
        assert len(OnsetDetector().detect_onsets(np.zeros(SR * 2), SR)) == 0

    def test_short_signal(self):
        assert len(OnsetDetector().detect_onsets(np.zeros(1000), SR)) == 0

    def test_first_window_never_flags(self):
        strength = OnsetDetector().onset_strength(np.ones(4096))
        assert strength[0] == 0.0


class TestBPMAnalyzer:
    def test_click_track_every_half_second(self):
        result = BPMAnalyzer().detect_tempo(click_track(12), SR)
        assert abs(result.bpm - 120) <= 1
        assert result.confidence > 0.8
        assert result.onset_count == 12

    def test_fewer_than_four_onsets(self):
        result = BPMAnalyzer().estimate_tempo([0.5, 1.0, 1.5])
        assert result.bpm == 120
        assert result.confidence == 0.0

    def test_silent_audio_defaults(self):
        result = BPMAnalyzer().detect_tempo(np.zeros(SR * 3, dtype=np.float32), SR)
        assert (result.bpm, result.confidence) == (120, 0.0)

    def test_histogram_peak_and_confidence(self):
        # intervals: 0.5, 0.5, 0.5, 0.75 -> peak 0.5 with 3 of 4
        onsets = [0.0, 0.5, 1.0, 1.5, 2.25]
        result = BPMAnalyzer().estimate_tempo(onsets)
        assert result.bpm == 120
        assert result.confidence == pytest.approx(0.75)

    def test_quantizes_to_ten_milliseconds(self):
        onsets = np.cumsum([0.0, 0.401, 0.399, 0.402, 0.398])
        assert BPMAnalyzer().estimate_tempo(onsets).bpm == 150

    def test_intervals_outside_range_are_ignored(self):
        onsets = np.arange(0, 1.0, 0.1)  # 600 BPM, out of range
        result = BPMAnalyzer().estimate_tempo(onsets)
        assert result.bpm == 120
        assert result.confidence == 0.0

    def test_fastest_tempo_stays_in_range(self):
        onsets = np.arange(10) * 0.2
        result = BPMAnalyzer().estimate_tempo(onsets)
        assert 30 <= result.bpm <= 300
        assert result.bpm == 300

    def test_confidence_counts_all_intervals(self):
        # one out-of-range interval still counts toward the total
        onsets = [0.0, 0.05, 0.55, 1.05, 1.55]
        result = BPMAnalyzer().estimate_tempo(onsets)
        assert result.bpm == 120
        assert result.confidence == pytest.approx(0.75)
