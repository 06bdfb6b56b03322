"""
Video-Analyse Package fuer TimeShaper

- Bewegungs-Analyse (Intensitaet, Block Matching)
- Farb- und Helligkeits-Analyse
- Szenen-Segmentierung
- Bildqualitaet
- Koordinatoren mit Single-Flight Queue und Lifecycle Events
"""

from .coordinator import AnalysisCoordinator, AnalysisEvent
from .video_analyzer import VideoAnalyzer, VideoFeatureSet

__all__ = [
    "AnalysisCoordinator",
    "AnalysisEvent",
    "VideoAnalyzer",
    "VideoFeatureSet",
]
