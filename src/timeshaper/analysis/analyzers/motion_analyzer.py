"""
Motion Analyzer - Bewegungs-Analyse fuer Frame-Sequenzen.

Analysiert:
- Bewegungsintensitaet (Frame-Differenz)
- Verschiebung per Block Matching (16x16 Bloecke, Suchradius 8)
- Richtung (horizontal/vertikal/gemischt) und Konsistenz
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from ...core.config import MotionConfig
from ...core.media import PixelFrame
from ...utils.logger import get_logger
from ..frame_metrics import frame_difference, variance

logger = get_logger()

_MAX_ABS_RGB = 255.0 * 3


class MotionDirection(Enum):
    STATIC = "static"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    MIXED = "mixed"


class MotionClass(Enum):
    STATIC = "static"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class MotionSample:
    """Metriken eines Frame-Paares."""

    intensity: float  # 0.0 - 1.0
    dx: float  # mittlere Verschiebung in Pixeln
    dy: float

    def to_dict(self) -> dict:
        return {"intensity": self.intensity, "dx": self.dx, "dy": self.dy}


@dataclass(frozen=True)
class MotionAnalysis:
    """Ergebnis der Bewegungs-Analyse."""

    intensity: float  # 0.0 - 1.0
    direction: str  # static, horizontal, vertical, mixed
    consistency: float  # 0.0 - 1.0
    classification: str  # static, low, medium, high
    horizontal: float = 0.0  # mittlere |dx| in Pixeln
    vertical: float = 0.0  # mittlere |dy| in Pixeln
    samples: tuple[MotionSample, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "intensity": self.intensity,
            "direction": self.direction,
            "consistency": self.consistency,
            "classification": self.classification,
            "horizontal": self.horizontal,
            "vertical": self.vertical,
        }


STATIC_MOTION = MotionAnalysis(
    intensity=0.0,
    direction=MotionDirection.STATIC.value,
    consistency=1.0,
    classification=MotionClass.STATIC.value,
)


class MotionAnalyzer:
    """Analysiert Bewegungscharakteristiken einer Frame-Sequenz."""

    def __init__(self, config: MotionConfig | None = None):
        """
        Args:
            config: Blockgroesse, Suchradius und Klassifikations-Schwellwerte
        """
        self.config = config or MotionConfig()

    def block_motion(self, a, b) -> tuple[float, float]:
        """
        Mittlere Blockverschiebung (dx, dy) von Frame a nach Frame b.

        Bloecke liegen auf range(0, H - bs, bs) x range(0, W - bs, bs). Fuer
        jeden Block wird die Verschiebung im Suchradius mit minimalem mittleren
        Absolutfehler gewaehlt; bei Gleichstand gewinnt (0, 0). Pixel ausserhalb
        von Frame b zaehlen nicht, ohne Ueberlappung ist der Fehler 1.

        Returns:
            (dx, dy) gemittelt ueber alle Bloecke; (0, 0) ohne Bloecke
        """
        pa = a.pixels if isinstance(a, PixelFrame) else np.asarray(a)
        pb = b.pixels if isinstance(b, PixelFrame) else np.asarray(b)
        h = min(pa.shape[0], pb.shape[0])
        w = min(pa.shape[1], pb.shape[1])
        bs = self.config.block_size
        r = self.config.search_radius

        ny = len(range(0, h - bs, bs))
        nx = len(range(0, w - bs, bs))
        if ny == 0 or nx == 0:
            return 0.0, 0.0

        region_h, region_w = ny * bs, nx * bs
        ref = pa[:region_h, :region_w].astype(np.float32)

        # NaN-Rand markiert Pixel ausserhalb von Frame b
        padded = np.full((h + 2 * r, w + 2 * r, 3), np.nan, dtype=np.float32)
        padded[r : r + h, r : r + w] = pb[:h, :w]

        def block_error(dx: int, dy: int) -> np.ndarray:
            shifted = padded[r + dy : r + dy + region_h, r + dx : r + dx + region_w]
            diff = np.abs(ref - shifted).sum(axis=2)
            valid = ~np.isnan(diff)
            sums = np.where(valid, diff, 0.0).reshape(ny, bs, nx, bs).sum(axis=(1, 3))
            counts = valid.reshape(ny, bs, nx, bs).sum(axis=(1, 3))
            with np.errstate(invalid="ignore", divide="ignore"):
                errors = sums / (counts * _MAX_ABS_RGB)
            return np.where(counts > 0, errors, 1.0)

        best_error = block_error(0, 0)
        best_dx = np.zeros_like(best_error)
        best_dy = np.zeros_like(best_error)

        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if dx == 0 and dy == 0:
                    continue
                error = block_error(dx, dy)
                improved = error < best_error
                best_error = np.where(improved, error, best_error)
                best_dx = np.where(improved, dx, best_dx)
                best_dy = np.where(improved, dy, best_dy)

        return float(best_dx.mean()), float(best_dy.mean())

    def classify(self, intensity: float) -> MotionClass:
        if intensity < self.config.static_threshold:
            return MotionClass.STATIC
        if intensity < self.config.low_threshold:
            return MotionClass.LOW
        if intensity < self.config.medium_threshold:
            return MotionClass.MEDIUM
        return MotionClass.HIGH

    def direction(self, intensity: float, horizontal: float, vertical: float) -> MotionDirection:
        ratio = self.config.direction_ratio
        if intensity < self.config.static_threshold:
            return MotionDirection.STATIC
        if horizontal > ratio * vertical:
            return MotionDirection.HORIZONTAL
        if vertical > ratio * horizontal:
            return MotionDirection.VERTICAL
        return MotionDirection.MIXED

    def analyze(self, frames: Sequence[PixelFrame]) -> MotionAnalysis:
        """
        Fuehrt vollstaendige Bewegungs-Analyse durch.

        Args:
            frames: Frames in zeitlicher Reihenfolge

        Returns:
            MotionAnalysis; bei weniger als 2 Frames ein statisches Ergebnis
        """
        if len(frames) < 2:
            return STATIC_MOTION

        samples = []
        for prev, cur in zip(frames, frames[1:]):
            dx, dy = self.block_motion(prev, cur)
            samples.append(MotionSample(intensity=frame_difference(prev, cur), dx=dx, dy=dy))

        intensities = [s.intensity for s in samples]
        intensity = float(np.mean(intensities))
        horizontal = float(np.mean([abs(s.dx) for s in samples]))
        vertical = float(np.mean([abs(s.dy) for s in samples]))

        result = MotionAnalysis(
            intensity=intensity,
            direction=self.direction(intensity, horizontal, vertical).value,
            consistency=max(0.0, 1.0 - variance(intensities)),
            classification=self.classify(intensity).value,
            horizontal=horizontal,
            vertical=vertical,
            samples=tuple(samples),
        )
        logger.debug(
            f"Motion: intensity={result.intensity:.3f} ({result.classification}), "
            f"direction={result.direction}"
        )
        return result
