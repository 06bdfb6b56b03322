"""Spectral Features Analyse.

Spezialisiertes Modul für spektrale Merkmalsextraktion auf einzelnen
Sample-Fenstern: Magnitudenspektrum (Hann-Fenster), Centroid, Rolloff,
Flux sowie RMS und Zero-Crossing-Rate.
"""

import logging
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

from ..core.config import get_config
from ..core.exceptions import InternalAlgorithmError

logger = logging.getLogger(__name__)

# Type aliases
AudioSamples: TypeAlias = NDArray[np.floating]
Spectrum: TypeAlias = NDArray[np.float64]


def hann_window(length: int) -> NDArray[np.float64]:
    """Symmetrisches Hann-Fenster: 0.5 * (1 - cos(2*pi*n / (N-1)))."""
    return np.hanning(length)


def rms(samples: AudioSamples) -> float:
    """Root-Mean-Square eines Fensters (0 für leere Eingabe)."""
    if len(samples) == 0:
        return 0.0
    x = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(x * x)))


def zero_crossing_rate(samples: AudioSamples) -> float:
    """
    Anteil der Vorzeichenwechsel am Fenster.

    Ein Wechsel liegt vor, wenn ``(x[i] >= 0) != (x[i-1] >= 0)``;
    die Anzahl wird durch die Fensterlänge geteilt.
    """
    if len(samples) == 0:
        return 0.0
    non_negative = np.asarray(samples) >= 0
    crossings = np.count_nonzero(non_negative[1:] != non_negative[:-1])
    return crossings / len(samples)


class SpectralAnalyzer:
    """Spectral Features Analysis."""

    def __init__(self, rolloff_percent: float | None = None) -> None:
        """
        Initialize Spectral Analyzer.

        Args:
            rolloff_percent: Energieanteil für den Rolloff-Punkt
                (default: [spectral] rolloff_percent der globalen Konfiguration)
        """
        if rolloff_percent is None:
            rolloff_percent = get_config().engine.spectral.rolloff_percent
        self.rolloff_percent = rolloff_percent
        self._windows: dict[int, NDArray[np.float64]] = {}

    def _window(self, length: int) -> NDArray[np.float64]:
        window = self._windows.get(length)
        if window is None:
            window = hann_window(length)
            self._windows[length] = window
        return window

    def magnitude_spectrum(self, samples: AudioSamples, apply_window: bool = True) -> Spectrum:
        """
        Magnitudenspektrum der ersten N/2 Bins.

        Entspricht der direkten Summation ``sqrt(re^2 + im^2)`` pro Bin,
        berechnet über die FFT.

        Args:
            samples: Sample-Fenster der Länge N
            apply_window: Hann-Fenster vor der Transformation anwenden

        Returns:
            Array der Länge N // 2
        """
        x = np.asarray(samples, dtype=np.float64)
        n = len(x)
        if n < 2:
            return np.zeros(n // 2)
        if apply_window:
            x = x * self._window(n)
        return np.abs(np.fft.rfft(x))[: n // 2]

    @staticmethod
    def spectral_centroid(spectrum: Spectrum) -> float:
        """Centroid in Bin-Einheiten: sum(k * mag[k]) / sum(mag[k]), 0 bei Stille."""
        total = float(np.sum(spectrum))
        if total <= 0.0:
            return 0.0
        return float(np.dot(np.arange(len(spectrum)), spectrum) / total)

    def spectral_rolloff(self, spectrum: Spectrum, percent: float | None = None) -> float:
        """
        Kleinster Bin-Anteil, bei dem die kumulierte Magnitude ``percent``
        der Gesamtsumme erreicht.

        Returns:
            k / len(spectrum); 1.0 wenn der Schwellwert nie erreicht wird
        """
        if len(spectrum) == 0:
            return 1.0
        percent = self.rolloff_percent if percent is None else percent
        cumulative = np.cumsum(spectrum)
        threshold = percent * cumulative[-1]
        reached = np.nonzero(cumulative >= threshold)[0]
        if len(reached) == 0:
            return 1.0
        return float(reached[0] / len(spectrum))

    @staticmethod
    def spectral_flux(current: Spectrum, previous: Spectrum) -> float:
        """Mittelwert der positiven Bin-Differenzen (nur Anstiege zählen)."""
        if len(current) != len(previous):
            raise InternalAlgorithmError(
                "Spectral flux requires spectra of equal length",
                details={"current": len(current), "previous": len(previous)},
            )
        if len(current) == 0:
            return 0.0
        diff = np.asarray(current) - np.asarray(previous)
        return float(np.mean(np.maximum(diff, 0.0)))


class FluxTracker:
    """
    Hält das vorherige Spektrum einer Analyse-Session.

    Jede Session (Stream, Onset-Durchlauf) besitzt ihren eigenen Tracker,
    damit Sessions sich nicht gegenseitig beeinflussen.
    """

    def __init__(self) -> None:
        self._previous: Spectrum | None = None

    @property
    def has_reference(self) -> bool:
        return self._previous is not None

    def update(self, spectrum: Spectrum) -> float:
        """
        Flux gegen das vorherige Spektrum; das neue Spektrum wird Referenz.

        Returns:
            0.0 beim ersten Aufruf (keine Referenz), sonst den Flux
        """
        if self._previous is None:
            flux = 0.0
        else:
            flux = SpectralAnalyzer.spectral_flux(spectrum, self._previous)
        self._previous = np.array(spectrum, dtype=np.float64, copy=True)
        return flux

    def reset(self) -> None:
        self._previous = None
