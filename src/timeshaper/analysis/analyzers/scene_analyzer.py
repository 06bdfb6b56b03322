"""
Scene Analyzer - Szenen-Segmentierung fuer Frame-Sequenzen.

Ein Schnitt wird erkannt, wenn die Frame-Differenz zweier aufeinander-
folgender Frames den Schwellwert ueberschreitet. Jede Szene wird anhand
des letzten Frames vor dem Schnitt klassifiziert (outdoor, indoor,
close-up, wide, medium). Die Szenen decken [0, duration] lueckenlos ab.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ...core.config import ColorConfig, SceneConfig
from ...core.media import PixelFrame
from ...utils.logger import get_logger
from ..frame_metrics import edge_density, frame_difference, luminance
from .color_analyzer import ColorAnalyzer

logger = get_logger()


class SceneType(Enum):
    OUTDOOR = "outdoor"
    INDOOR = "indoor"
    CLOSE_UP = "close-up"
    WIDE = "wide"
    MEDIUM = "medium"


@dataclass(frozen=True)
class SceneBoundary:
    timestamp: float
    frame_index: int
    difference: float

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "frame_index": self.frame_index,
            "difference": self.difference,
        }


@dataclass(frozen=True)
class SceneAnalysis:
    """Eine Szene [start, end] mit Typ und Konfidenz."""

    start: float
    end: float
    scene_type: str
    confidence: float
    brightness: float = 0.0
    edge_density: float = 0.0

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "type": self.scene_type,
            "confidence": self.confidence,
            "brightness": self.brightness,
            "edge_density": self.edge_density,
        }


@dataclass(frozen=True)
class SceneSegmentation:
    scenes: tuple[SceneAnalysis, ...] = field(default_factory=tuple)
    boundaries: tuple[SceneBoundary, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "scenes": [s.to_dict() for s in self.scenes],
            "boundaries": [b.to_dict() for b in self.boundaries],
        }


class SceneAnalyzer:
    """Erkennt Szenengrenzen und klassifiziert Szenen."""

    def __init__(self, config: SceneConfig | None = None, color: ColorAnalyzer | None = None):
        self.config = config or SceneConfig()
        self.color = color or ColorAnalyzer(ColorConfig())

    def classify_frame(self, frame: PixelFrame) -> tuple[SceneType, float, float, float]:
        """
        Klassifiziert einen Frame.

        Returns:
            (SceneType, Konfidenz, Helligkeit, Kantendichte)
        """
        cfg = self.config
        brightness = luminance(frame)
        edges = edge_density(frame, cfg.edge_threshold)
        top_colors = [s.color for s in self.color.frame_histogram(frame, top=3)]
        green_dominant = any(g > r and g > b for r, g, b in top_colors)

        if brightness > cfg.outdoor_brightness and green_dominant:
            return SceneType.OUTDOOR, 0.7, brightness, edges
        if brightness < cfg.indoor_brightness or edges > cfg.indoor_edge_density:
            return SceneType.INDOOR, 0.6, brightness, edges
        if edges < cfg.closeup_edge_density:
            return SceneType.CLOSE_UP, 0.8, brightness, edges
        if edges > cfg.wide_edge_density:
            return SceneType.WIDE, 0.7, brightness, edges
        return SceneType.MEDIUM, 0.5, brightness, edges

    def _scene(self, start: float, end: float, frame: PixelFrame) -> SceneAnalysis:
        scene_type, confidence, brightness, edges = self.classify_frame(frame)
        return SceneAnalysis(
            start=start,
            end=end,
            scene_type=scene_type.value,
            confidence=confidence,
            brightness=brightness,
            edge_density=edges,
        )

    def analyze(self, frames: Sequence[PixelFrame], duration: float) -> SceneSegmentation:
        """
        Segmentiert die Frame-Sequenz in Szenen.

        Args:
            frames: Frames in zeitlicher Reihenfolge (mit Timestamps)
            duration: Gesamtdauer des Videos in Sekunden

        Returns:
            SceneSegmentation; ohne Frames leer
        """
        if not frames:
            return SceneSegmentation()

        scenes = []
        boundaries = []
        start = 0.0
        for i in range(1, len(frames)):
            difference = frame_difference(frames[i - 1], frames[i])
            if difference <= self.config.cut_threshold:
                continue
            cut = min(frames[i].timestamp, duration)
            boundaries.append(SceneBoundary(timestamp=cut, frame_index=i, difference=difference))
            if cut > start:
                scenes.append(self._scene(start, cut, frames[i - 1]))
                start = cut

        if start < duration or not scenes:
            scenes.append(self._scene(start, max(duration, start), frames[-1]))

        logger.debug(f"Scenes: {len(scenes)} scene(s), {len(boundaries)} boundary(ies)")
        return SceneSegmentation(scenes=tuple(scenes), boundaries=tuple(boundaries))
