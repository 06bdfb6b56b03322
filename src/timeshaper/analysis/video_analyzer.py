"""
Video Analyzer - Koordinator fuer die vollstaendige Video-Analyse.

Extrahiert (falls noetig) die Frames seriell aus einer FrameSource und
faechert danach Motion, Color, Brightness, Scenes und Quality parallel auf.
Alle Sub-Analysen lesen dieselbe, unveraenderliche Frame-Sequenz.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.config import EngineConfig, get_config
from ..core.exceptions import ContextUnavailableError
from ..core.media import VideoInput
from ..utils.logger import get_logger
from ..video.frame_extractor import FrameExtractor
from ..video.frame_source import FrameSource, OpenCVFrameSource
from .analyzers.color_analyzer import BrightnessAnalysis, ColorAnalysis, ColorAnalyzer
from .analyzers.motion_analyzer import MotionAnalysis, MotionAnalyzer
from .analyzers.quality_analyzer import QualityAnalysis, QualityAnalyzer
from .analyzers.scene_analyzer import SceneAnalysis, SceneAnalyzer, SceneBoundary
from .coordinator import AnalysisCoordinator, AnalysisEvent, AnalysisRequest

logger = get_logger()


@dataclass(frozen=True)
class VideoFeatureSet:
    """Ergebnis einer vollstaendigen Video-Analyse."""

    motion: MotionAnalysis
    color: ColorAnalysis
    brightness: BrightnessAnalysis
    scenes: tuple[SceneAnalysis, ...]
    quality: QualityAnalysis
    duration: float
    frame_count: int
    scene_boundaries: tuple[SceneBoundary, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "motion": self.motion.to_dict(),
            "color": self.color.to_dict(),
            "brightness": self.brightness.to_dict(),
            "scenes": [s.to_dict() for s in self.scenes],
            "scene_boundaries": [b.to_dict() for b in self.scene_boundaries],
            "quality": self.quality.to_dict(),
            "duration": self.duration,
            "frame_count": self.frame_count,
        }


class VideoAnalyzer(AnalysisCoordinator):
    """Video-Koordinator (eine Anfrage gleichzeitig, FIFO)."""

    name = "video"

    def __init__(self, config: EngineConfig | None = None):
        """
        Args:
            config: Engine-Konfiguration (default: globale Konfiguration)
        """
        self.engine_config = config or get_config().engine
        super().__init__(self.engine_config.coordinator)
        self.extractor = FrameExtractor(self.engine_config.coordinator)
        self.motion = MotionAnalyzer(self.engine_config.motion)
        self.color = ColorAnalyzer(self.engine_config.color)
        self.scene = SceneAnalyzer(self.engine_config.scene, self.color)
        self.quality = QualityAnalyzer(self.engine_config.quality)

    def _extract(self, source: FrameSource, request: AnalysisRequest) -> VideoInput:
        def on_frame(frame: int, total: int) -> None:
            self.emit(AnalysisEvent.FRAME_EXTRACTED, {"frame": frame, "total": total})

        return self.extractor.extract(
            source,
            on_frame=on_frame,
            should_stop=lambda: self.check_cancelled(request, "extract"),
        )

    def _prepare(self, request: AnalysisRequest) -> VideoInput:
        media = request.media
        if isinstance(media, VideoInput):
            return media
        if isinstance(media, (str, Path)):
            with OpenCVFrameSource(media) as source:
                return self._extract(source, request)
        if isinstance(media, FrameSource):
            return self._extract(media, request)
        raise ContextUnavailableError(
            f"No frame source available for input of type {type(media).__name__}"
        )

    def _build_tasks(self, video: VideoInput) -> dict[str, Callable[[], Any]]:
        frames = video.frames
        return {
            "motion": lambda: self.motion.analyze(frames),
            "color": lambda: self.color.analyze(frames),
            "brightness": lambda: self.color.analyze_brightness(frames),
            "scenes": lambda: self.scene.analyze(frames, video.duration),
            "quality": lambda: self.quality.analyze(frames),
        }

    def _aggregate(self, video: VideoInput, results: dict[str, Any]) -> VideoFeatureSet:
        segmentation = results["scenes"]
        return VideoFeatureSet(
            motion=results["motion"],
            color=results["color"],
            brightness=results["brightness"],
            scenes=segmentation.scenes,
            quality=results["quality"],
            duration=video.duration,
            frame_count=video.frame_count,
            scene_boundaries=segmentation.boundaries,
        )

    def shutdown(self, wait: bool = True) -> None:
        super().shutdown(wait)
        self.extractor.close()
