"""Energie, Stimmung und Struktur.

- Energy Curve: 100ms-Fenster mit 50% Überlappung, pro Fenster ein
  AudioSegment (RMS, Centroid, Rolloff, MFCC)
- Mood: Valence/Arousal aus 500ms-Fenstern, Kategorie per Regel-Priorität
- Struktur: dauerproportionale Heuristik (unabhängig vom Inhalt)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

import librosa
import numpy as np
from numpy.typing import NDArray

from ..core.config import EnergyConfig
from .spectral_analyzer import SpectralAnalyzer, rms

logger = logging.getLogger(__name__)

# Type aliases
AudioSamples: TypeAlias = NDArray[np.floating]


class MoodCategory(Enum):
    HAPPY = "happy"
    SAD = "sad"
    ENERGETIC = "energetic"
    CALM = "calm"
    DRAMATIC = "dramatic"
    PEACEFUL = "peaceful"


@dataclass(frozen=True)
class SegmentFeatures:
    rms: float
    spectral_centroid: float  # in Bins
    spectral_rolloff: float  # Bin-Anteil (0-1)
    mfcc: tuple[float, ...] = ()

    def to_dict(self) -> dict:
        return {
            "rms": self.rms,
            "spectral_centroid": self.spectral_centroid,
            "spectral_rolloff": self.spectral_rolloff,
            "mfcc": list(self.mfcc),
        }


@dataclass(frozen=True)
class AudioSegment:
    """Ein Fenster der Energy Curve, deckt [start, end) ab."""

    start: float
    end: float
    energy: float
    features: SegmentFeatures

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "energy": self.energy,
            "features": self.features.to_dict(),
        }


@dataclass(frozen=True)
class MoodResult:
    category: str  # happy, sad, energetic, calm, dramatic, peaceful
    valence: float  # 0.0 - 1.0
    arousal: float  # 0.0 - 1.0

    def to_dict(self) -> dict:
        return {"category": self.category, "valence": self.valence, "arousal": self.arousal}


@dataclass(frozen=True)
class TimeRange:
    start: float
    end: float

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class SongStructure:
    intro: TimeRange | None = None
    verses: tuple[TimeRange, ...] = field(default_factory=tuple)
    chorus: TimeRange | None = None
    bridge: TimeRange | None = None
    outro: TimeRange | None = None

    def to_dict(self) -> dict:
        return {
            "intro": self.intro.to_dict() if self.intro else None,
            "verses": [v.to_dict() for v in self.verses],
            "chorus": self.chorus.to_dict() if self.chorus else None,
            "bridge": self.bridge.to_dict() if self.bridge else None,
            "outro": self.outro.to_dict() if self.outro else None,
        }


def classify_mood(valence: float, arousal: float) -> MoodCategory:
    """Erste passende Regel gewinnt."""
    if valence > 0.6 and arousal > 0.6:
        return MoodCategory.HAPPY
    if valence < 0.4 and arousal < 0.4:
        return MoodCategory.SAD
    if arousal > 0.7:
        return MoodCategory.ENERGETIC
    if arousal < 0.3:
        return MoodCategory.CALM
    if valence < 0.4:
        return MoodCategory.DRAMATIC
    return MoodCategory.PEACEFUL


class EnergyMoodSegmenter:
    """Energy Curve, Mood-Klassifikation und Struktur-Heuristik."""

    def __init__(self, config: EnergyConfig | None = None, spectral: SpectralAnalyzer = None):
        self.config = config or EnergyConfig()
        self.spectral = spectral or SpectralAnalyzer()

    def _windowing(self, sr: int) -> tuple[int, int]:
        window = max(int(sr * self.config.window_seconds), 2)
        hop = max(int(window * (1.0 - self.config.overlap)), 1)
        return window, hop

    def _mfcc(self, y: AudioSamples, sr: int, window: int, hop: int) -> NDArray[np.float64]:
        """MFCC-Matrix (n_mfcc, n_frames) mit gleicher Fensterung wie die Segmente."""
        return librosa.feature.mfcc(
            y=np.asarray(y, dtype=np.float32),
            sr=sr,
            n_mfcc=self.config.n_mfcc,
            n_fft=window,
            hop_length=hop,
            center=False,
            n_mels=self.config.n_mels,
        )

    def analyze_energy(self, y: AudioSamples, sr: int) -> list[AudioSegment]:
        """
        Berechnet die Energy Curve.

        Args:
            y: Audio samples
            sr: Sample rate

        Returns:
            Liste von AudioSegments (leer, wenn das Signal kürzer als ein Fenster ist)
        """
        window, hop = self._windowing(sr)
        starts = range(0, max(len(y) - window, 0), hop)
        if len(starts) == 0:
            return []

        mfcc = self._mfcc(y, sr, window, hop)
        segments = []
        for idx, start in enumerate(starts):
            chunk = y[start : start + window]
            spectrum = self.spectral.magnitude_spectrum(chunk)
            energy = rms(chunk)
            coefficients = (
                tuple(float(c) for c in mfcc[:, idx])
                if idx < mfcc.shape[1]
                else (0.0,) * self.config.n_mfcc
            )
            segments.append(
                AudioSegment(
                    start=start / sr,
                    end=(start + window) / sr,
                    energy=energy,
                    features=SegmentFeatures(
                        rms=energy,
                        spectral_centroid=self.spectral.spectral_centroid(spectrum),
                        spectral_rolloff=self.spectral.spectral_rolloff(spectrum),
                        mfcc=coefficients,
                    ),
                )
            )

        logger.debug(f"Energy curve: {len(segments)} segments (window={window}, hop={hop})")
        return segments

    def analyze_mood(self, y: AudioSamples, sr: int) -> MoodResult:
        """
        Valence = RMS-gewichteter Spectral Centroid (Bins), auf [0, 1] begrenzt;
        Arousal = mittlere RMS * arousal_scale, ebenfalls begrenzt.

        Jedes tonale Signal oberhalb von Bin 1 ergibt damit Valence 1.0;
        nur Stille (0.5) und sehr tieffrequente Fenster liegen darunter.
        """
        window = max(int(sr * self.config.mood_window_seconds), 1)
        weighted_brightness = 0.0
        total_energy = 0.0

        for start in range(0, max(len(y) - window, 0), window):
            chunk = y[start : start + window]
            energy = rms(chunk)
            brightness = self.spectral.spectral_centroid(self.spectral.magnitude_spectrum(chunk))
            weighted_brightness += brightness * energy
            total_energy += energy

        avg_brightness = weighted_brightness / total_energy if total_energy > 0 else 0.5
        avg_energy = total_energy / (len(y) / window) if len(y) > 0 else 0.0

        valence = float(np.clip(avg_brightness, 0.0, 1.0))
        arousal = float(np.clip(avg_energy * self.config.arousal_scale, 0.0, 1.0))
        category = classify_mood(valence, arousal)
        return MoodResult(category=category.value, valence=valence, arousal=arousal)

    @staticmethod
    def analyze_structure(duration: float) -> SongStructure:
        """
        Dauerproportionale Struktur (Intro/Verse/Chorus/Outro).

        Bewusst inhaltsblind: die Grenzen hängen nur von der Dauer ab.
        """
        intro = None
        verses: tuple[TimeRange, ...] = ()
        chorus = None
        outro = None

        if duration > 30:
            intro = TimeRange(0.0, min(15.0, duration * 0.1))
        if duration > 60:
            verse_start = intro.end if intro else 0.0
            verses = (
                TimeRange(verse_start, duration * 0.4),
                TimeRange(duration * 0.6, duration * 0.8),
            )
            chorus = TimeRange(duration * 0.4, duration * 0.6)
        if duration > 45:
            outro = TimeRange(duration * 0.9, duration)

        return SongStructure(intro=intro, verses=verses, chorus=chorus, outro=outro)
