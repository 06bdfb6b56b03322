"""BPM Analyse.

Spezialisiertes Modul für Tempo-Schätzung aus Inter-Onset-Intervallen
(Histogramm über 10ms-Buckets).
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

from ..core.config import TempoConfig
from .onset_detector import OnsetDetector

logger = logging.getLogger(__name__)

# Type aliases
AudioSamples: TypeAlias = NDArray[np.floating]


@dataclass(frozen=True)
class TempoResult:
    """Ergebnis der Tempo-Schätzung."""

    bpm: int
    confidence: float  # 0.0 - 1.0
    beat_interval: float  # Sekunden
    onset_count: int

    def to_dict(self) -> dict:
        return {
            "bpm": self.bpm,
            "confidence": self.confidence,
            "beat_interval": self.beat_interval,
            "onset_count": self.onset_count,
        }


class BPMAnalyzer:
    """BPM-Detection über ein Intervall-Histogramm."""

    def __init__(self, config: TempoConfig | None = None, onset_detector: OnsetDetector = None):
        """
        Initialize BPM Analyzer.

        Args:
            config: Tempo-Konfiguration (Bucket-Breite, Intervallgrenzen, ...)
            onset_detector: Optionaler Detector (default: mit gleicher Config)
        """
        self.config = config or TempoConfig()
        self.onset_detector = onset_detector or OnsetDetector(self.config)

    def _default(self, onset_count: int) -> TempoResult:
        return TempoResult(
            bpm=self.config.default_bpm,
            confidence=0.0,
            beat_interval=60.0 / self.config.default_bpm,
            onset_count=onset_count,
        )

    def estimate_tempo(self, onset_times) -> TempoResult:
        """
        Schätzt das Tempo aus Onset-Zeitpunkten.

        Args:
            onset_times: Onset-Zeitpunkte in Sekunden (aufsteigend)

        Returns:
            TempoResult; bei zu wenigen Onsets das Default-Tempo mit Confidence 0
        """
        onsets = np.asarray(onset_times, dtype=np.float64)
        if len(onsets) < self.config.min_onsets:
            logger.debug(f"Only {len(onsets)} onsets, using default tempo")
            return self._default(len(onsets))

        cfg = self.config
        intervals = np.diff(onsets)
        buckets = np.round(intervals / cfg.bucket_width).astype(int)

        histogram = Counter(
            int(b) for b in buckets if cfg.min_interval <= b * cfg.bucket_width <= cfg.max_interval
        )
        if not histogram:
            logger.debug("No inter-onset interval within the tempo range")
            return self._default(len(onsets))

        # most_common: bei Gleichstand gewinnt der zuerst gesehene Bucket
        bucket, peak_count = histogram.most_common(1)[0]
        interval = bucket * cfg.bucket_width
        bpm = int(round(60.0 / interval))
        bpm = min(max(bpm, cfg.min_bpm), cfg.max_bpm)
        confidence = min(peak_count / len(intervals), 1.0)

        return TempoResult(
            bpm=bpm, confidence=confidence, beat_interval=interval, onset_count=len(onsets)
        )

    def detect_tempo(self, y: AudioSamples, sr: int) -> TempoResult:
        """
        Onset-Erkennung plus Tempo-Schätzung.

        Args:
            y: Audio samples
            sr: Sample rate

        Returns:
            TempoResult
        """
        onsets = self.onset_detector.detect_onsets(y, sr)
        result = self.estimate_tempo(onsets)
        logger.info(f"Tempo: {result.bpm} BPM (confidence {result.confidence:.2f})")
        return result
