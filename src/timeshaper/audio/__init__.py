"""
Audio-Modul fuer TimeShaper

Komponenten:
- StreamingFeatureAccumulator: Echtzeit-Features pro Puffer-Fuellung
- BPMAnalyzer / OnsetDetector: Tempo aus Onset-Intervallen
- EnergyMoodSegmenter: Energy Curve, Mood, Struktur
- AudioAnalyzer: Koordinator fuer die vollstaendige Analyse
"""

from .audio_analyzer import AudioAnalyzer, AudioFeatureSet
from .bpm_analyzer import BPMAnalyzer, TempoResult
from .energy_analyzer import EnergyMoodSegmenter
from .onset_detector import OnsetDetector
from .spectral_analyzer import FluxTracker, SpectralAnalyzer
from .stream_accumulator import FeatureFrame, StreamingFeatureAccumulator

__all__ = [
    "AudioAnalyzer",
    "AudioFeatureSet",
    "BPMAnalyzer",
    "TempoResult",
    "EnergyMoodSegmenter",
    "OnsetDetector",
    "SpectralAnalyzer",
    "FluxTracker",
    "StreamingFeatureAccumulator",
    "FeatureFrame",
]
