"""
Quality Analyzer - Bildqualitaet einer Frame-Sequenz.

Schaerfe (Laplace), Rauschen (Hochpass gegen 4er-Nachbarschaft) und
Stabilitaet (invertierte Frame-Differenz).
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ...core.config import QualityConfig
from ...core.media import PixelFrame
from ...utils.logger import get_logger
from ..frame_metrics import frame_difference, high_pass_noise, laplacian_response

logger = get_logger()


@dataclass(frozen=True)
class QualityScore:
    """Metriken eines einzelnen Frames."""

    sharpness: float
    noise: float

    def to_dict(self) -> dict:
        return {"sharpness": self.sharpness, "noise": self.noise}


@dataclass(frozen=True)
class QualityAnalysis:
    sharpness: float  # 0.0 - 1.0
    noise: float  # 0.0 - 1.0
    stability: float  # 0.0 - 1.0
    overall: float  # mean(sharpness, stability, 1 - noise)

    def to_dict(self) -> dict:
        return {
            "sharpness": self.sharpness,
            "noise": self.noise,
            "stability": self.stability,
            "overall": self.overall,
        }


class QualityAnalyzer:
    def __init__(self, config: QualityConfig | None = None):
        self.config = config or QualityConfig()

    @staticmethod
    def score_frame(frame: PixelFrame) -> QualityScore:
        return QualityScore(sharpness=laplacian_response(frame), noise=high_pass_noise(frame))

    def stability(self, a: PixelFrame, b: PixelFrame) -> float:
        return max(0.0, 1.0 - self.config.stability_scale * frame_difference(a, b))

    def analyze(self, frames: Sequence[PixelFrame]) -> QualityAnalysis:
        """
        Aggregiert Schaerfe, Rauschen und Stabilitaet.

        Stabilitaet ist 1.0 bei nur einem Frame; ohne Frames sind
        Schaerfe und Rauschen 0.
        """
        scores = [self.score_frame(f) for f in frames]
        stabilities = [self.stability(a, b) for a, b in zip(frames, frames[1:])]

        sharpness = float(np.mean([s.sharpness for s in scores])) if scores else 0.0
        noise = float(np.mean([s.noise for s in scores])) if scores else 0.0
        stability = float(np.mean(stabilities)) if stabilities else 1.0
        overall = (sharpness + stability + (1.0 - noise)) / 3.0

        logger.debug(
            f"Quality: sharpness={sharpness:.3f} noise={noise:.3f} "
            f"stability={stability:.3f} overall={overall:.3f}"
        )
        return QualityAnalysis(
            sharpness=sharpness, noise=noise, stability=stability, overall=overall
        )
