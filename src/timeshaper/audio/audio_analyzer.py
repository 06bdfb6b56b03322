"""
Audio Analyzer - Koordinator für die vollständige Audio-Analyse.

Fächert eine Anfrage in Tempo, Energy Curve, Mood und Struktur auf und
fasst die Ergebnisse zu einem unveränderlichen AudioFeatureSet zusammen.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..analysis.coordinator import AnalysisCoordinator, AnalysisRequest
from ..core.config import EngineConfig, get_config
from ..core.media import AudioInput
from ..utils.logger import get_logger
from .audio_loader import load_audio
from .bpm_analyzer import BPMAnalyzer, TempoResult
from .energy_analyzer import AudioSegment, EnergyMoodSegmenter, MoodResult, SongStructure
from .spectral_analyzer import SpectralAnalyzer

logger = get_logger()


@dataclass(frozen=True)
class AudioFeatureSet:
    """Ergebnis einer vollständigen Audio-Analyse."""

    bpm: int  # 30 - 300
    confidence: float  # 0.0 - 1.0
    energy_curve: tuple[float, ...]
    segments: tuple[AudioSegment, ...]
    mood: MoodResult
    structure: SongStructure
    duration: float

    def to_dict(self) -> dict:
        return {
            "bpm": self.bpm,
            "confidence": self.confidence,
            "energy_curve": list(self.energy_curve),
            "segments": [s.to_dict() for s in self.segments],
            "mood": self.mood.to_dict(),
            "structure": self.structure.to_dict(),
            "duration": self.duration,
        }


class AudioAnalyzer(AnalysisCoordinator):
    """Audio-Koordinator (eine Anfrage gleichzeitig, FIFO)."""

    name = "audio"

    def __init__(self, config: EngineConfig | None = None):
        """
        Args:
            config: Engine-Konfiguration (default: globale Konfiguration)
        """
        self.engine_config = config or get_config().engine
        super().__init__(self.engine_config.coordinator)
        self.tempo = BPMAnalyzer(self.engine_config.tempo)
        self.spectral = SpectralAnalyzer(self.engine_config.spectral.rolloff_percent)
        self.energy = EnergyMoodSegmenter(self.engine_config.energy, self.spectral)

    def _prepare(self, request: AnalysisRequest) -> AudioInput:
        media = request.media
        if isinstance(media, (str, Path)):
            media = load_audio(media)
        if not isinstance(media, AudioInput):
            raise TypeError(f"AudioAnalyzer expects AudioInput or a file path, got {type(media)}")
        logger.debug(
            f"Audio input: {len(media.samples)} samples @ {media.sample_rate}Hz "
            f"({media.duration:.2f}s)"
        )
        return media

    def _build_tasks(self, audio: AudioInput) -> dict[str, Callable[[], Any]]:
        y, sr = audio.samples, audio.sample_rate
        return {
            "tempo": lambda: self.tempo.detect_tempo(y, sr),
            "energy": lambda: self.energy.analyze_energy(y, sr),
            "mood": lambda: self.energy.analyze_mood(y, sr),
            "structure": lambda: self.energy.analyze_structure(audio.duration),
        }

    def _aggregate(self, audio: AudioInput, results: dict[str, Any]) -> AudioFeatureSet:
        tempo: TempoResult = results["tempo"]
        segments = tuple(results["energy"])
        return AudioFeatureSet(
            bpm=tempo.bpm,
            confidence=tempo.confidence,
            energy_curve=tuple(s.energy for s in segments),
            segments=segments,
            mood=results["mood"],
            structure=results["structure"],
            duration=audio.duration,
        )
