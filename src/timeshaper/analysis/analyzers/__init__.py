"""
Video-Analyse Module fuer TimeShaper

Einzelne Analyzer fuer verschiedene Video-Eigenschaften:
- MotionAnalyzer: Intensitaet, Richtung, Konsistenz
- ColorAnalyzer: Palette, Temperatur, Saettigung, Helligkeit
- SceneAnalyzer: Szenengrenzen und Szenentyp
- QualityAnalyzer: Schaerfe, Rauschen, Stabilitaet
"""

from .color_analyzer import BrightnessAnalysis, ColorAnalysis, ColorAnalyzer
from .motion_analyzer import MotionAnalysis, MotionAnalyzer
from .quality_analyzer import QualityAnalysis, QualityAnalyzer
from .scene_analyzer import SceneAnalysis, SceneAnalyzer, SceneBoundary

__all__ = [
    "ColorAnalyzer",
    "ColorAnalysis",
    "BrightnessAnalysis",
    "MotionAnalyzer",
    "MotionAnalysis",
    "SceneAnalyzer",
    "SceneAnalysis",
    "SceneBoundary",
    "QualityAnalyzer",
    "QualityAnalysis",
]
