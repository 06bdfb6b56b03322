"""Onset Detection.

Spezialisiertes Modul für Onset-Erkennung über Spectral Flux zwischen
aufeinanderfolgenden, überlappenden Fenstern.
"""

import logging
from typing import TypeAlias

import librosa
import numpy as np
from numpy.typing import NDArray

from ..core.config import TempoConfig
from .spectral_analyzer import FluxTracker, hann_window

logger = logging.getLogger(__name__)

# Type aliases
AudioSamples: TypeAlias = NDArray[np.floating]


class OnsetDetector:
    """Onset Detection per Flux-Schwellwert."""

    def __init__(self, config: TempoConfig | None = None) -> None:
        """
        Initialize Onset Detector.

        Args:
            config: Fenstergröße, Hop und Flux-Schwellwert
        """
        self.config = config or TempoConfig()

    def window_starts(self, length: int) -> range:
        """Startpositionen der Analysefenster: range(0, length - window, hop)."""
        return range(0, max(length - self.config.onset_window, 0), self.config.onset_hop)

    def frame_spectra(self, y: AudioSamples) -> NDArray[np.float64]:
        """
        Magnitudenspektren aller Analysefenster.

        Returns:
            Array (n_windows, window // 2)
        """
        window = self.config.onset_window
        starts = self.window_starts(len(y))
        if len(starts) == 0:
            return np.zeros((0, window // 2))

        frames = librosa.util.frame(
            np.asarray(y, dtype=np.float64), frame_length=window, hop_length=self.config.onset_hop
        )[:, : len(starts)]
        windowed = frames.T * hann_window(window)
        return np.abs(np.fft.rfft(windowed, axis=1))[:, : window // 2]

    def onset_strength(self, y: AudioSamples) -> NDArray[np.float64]:
        """Flux pro Fenster (erstes Fenster: 0)."""
        tracker = FluxTracker()
        return np.array([tracker.update(spectrum) for spectrum in self.frame_spectra(y)])

    def detect_onsets(self, y: AudioSamples, sr: int) -> np.ndarray:
        """
        Detect onsets in audio.

        Ein Onset wird am Startzeitpunkt eines Fensters gesetzt, dessen Flux
        gegenüber dem vorherigen Fenster den Schwellwert überschreitet.

        Args:
            y: Audio samples
            sr: Sample rate

        Returns:
            Array of onset times in seconds
        """
        strength = self.onset_strength(y)
        if len(strength) == 0:
            logger.debug(f"Signal too short for onset detection ({len(y)} samples)")
            return np.array([])

        hits = np.nonzero(strength > self.config.onset_threshold)[0]
        onset_times = hits * self.config.onset_hop / sr
        logger.debug(f"Detected {len(onset_times)} onsets in {len(strength)} windows")
        return onset_times
