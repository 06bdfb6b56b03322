import numpy as np
import pytest

from timeshaper.audio.audio_loader import load_audio
from timeshaper.audio.energy_analyzer import (
    EnergyMoodSegmenter,
    MoodCategory,
    TimeRange,
    classify_mood,
)
from timeshaper.core.exceptions import DecodeError

SR = 8000


def tone(seconds, amplitude=0.5, freq=440.0, sr=SR):
    t = np.arange(int(seconds * sr)) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


class TestEnergyCurve:
    def test_segment_windows_overlap_by_half(self):
        segments = EnergyMoodSegmenter().analyze_energy(tone(1.0), SR)

        # window 800, hop 400, starts in range(0, 7200, 400)
        assert len(segments) == 18
        assert segments[0].start == 0.0
        assert segments[0].end == pytest.approx(0.1)
        assert segments[1].start == pytest.approx(0.05)

    def test_segment_energy_is_rms(self):
        segments = EnergyMoodSegmenter().analyze_energy(tone(1.0, amplitude=0.5), SR)
        for segment in segments:
            assert segment.energy == pytest.approx(0.5 / np.sqrt(2), rel=0.02)
            assert segment.features.rms == segment.energy

    def test_segment_features(self):
        segment = EnergyMoodSegmenter().analyze_energy(tone(1.0), SR)[3]
        features = segment.features
        assert len(features.mfcc) == 13
        assert 0.0 <= features.spectral_rolloff <= 1.0
        # 800-sample window at 8 kHz: 10 Hz per bin
        assert features.spectral_centroid == pytest.approx(44.0, abs=0.5)

    def test_signal_shorter_than_window(self):
        assert EnergyMoodSegmenter().analyze_energy(np.zeros(100, dtype=np.float32), SR) == []

    def test_to_dict(self):
        segment = EnergyMoodSegmenter().analyze_energy(tone(0.5), SR)[0]
        data = segment.to_dict()
        assert set(data) == {"start", "end", "energy", "features"}
        assert len(data["features"]["mfcc"]) == 13


class TestMood:
    @pytest.mark.parametrize(
        "valence, arousal, expected",
        [
            (0.7, 0.7, MoodCategory.HAPPY),
            (0.3, 0.3, MoodCategory.SAD),
            (0.5, 0.8, MoodCategory.ENERGETIC),
            (0.5, 0.2, MoodCategory.CALM),
            (0.3, 0.5, MoodCategory.DRAMATIC),
            (0.5, 0.5, MoodCategory.PEACEFUL),
        ],
    )
    def test_rule_priority(self, valence, arousal, expected):
        assert classify_mood(valence, arousal) is expected

    def test_silent_audio_is_calm(self):
        mood = EnergyMoodSegmenter().analyze_mood(np.zeros(SR * 2, dtype=np.float32), SR)
        assert mood.valence == 0.5
        assert mood.arousal == 0.0
        assert mood.category == "calm"

    def test_loud_noise_is_happy(self):
        y = np.random.default_rng(3).uniform(-1, 1, SR * 3).astype(np.float32)
        mood = EnergyMoodSegmenter().analyze_mood(y, SR)
        assert mood.arousal == 1.0
        assert mood.valence == 1.0
        assert mood.category == "happy"

    def test_tone_valence_uses_bin_centroid(self):
        mood = EnergyMoodSegmenter().analyze_mood(tone(3.0, amplitude=0.5), SR)
        assert mood.valence == 1.0
        assert mood.category == "happy"

    def test_values_are_clamped(self):
        mood = EnergyMoodSegmenter().analyze_mood(tone(2.0, amplitude=1.0, freq=3000), SR)
        assert 0.0 <= mood.valence <= 1.0
        assert 0.0 <= mood.arousal <= 1.0


class TestStructure:
    def test_short_track_has_no_sections(self):
        structure = EnergyMoodSegmenter.analyze_structure(20.0)
        assert structure.intro is None
        assert structure.verses == ()
        assert structure.chorus is None
        assert structure.outro is None
        assert structure.bridge is None

    def test_intro_only(self):
        structure = EnergyMoodSegmenter.analyze_structure(40.0)
        assert structure.intro == TimeRange(0.0, 4.0)
        assert structure.outro is None

    def test_intro_and_outro(self):
        structure = EnergyMoodSegmenter.analyze_structure(50.0)
        assert structure.intro == TimeRange(0.0, 5.0)
        assert structure.verses == ()
        assert structure.outro == TimeRange(45.0, 50.0)

    def test_full_structure(self):
        structure = EnergyMoodSegmenter.analyze_structure(100.0)
        assert structure.intro == TimeRange(0.0, 10.0)
        assert structure.verses == (TimeRange(10.0, 40.0), TimeRange(60.0, 80.0))
        assert structure.chorus == TimeRange(40.0, 60.0)
        assert structure.outro == TimeRange(90.0, 100.0)

    def test_intro_is_capped(self):
        structure = EnergyMoodSegmenter.analyze_structure(200.0)
        assert structure.intro.end == 15.0
        assert structure.verses[0].start == 15.0


class TestLoadAudio:
    def test_missing_file(self, tmp_path):
        with pytest.raises(DecodeError) as exc:
            load_audio(tmp_path / "missing.wav")
        assert exc.value.details["path"].endswith("missing.wav")
