"""
Color Analyzer - Farb-Analyse fuer Frame-Sequenzen.

Analysiert:
- Dominante Farben (quantisiertes Histogramm + K-Means, k=3)
- Farbtemperatur und Saettigung
- Farb-Stimmung (warm/cool/vibrant/muted)
- Helligkeit (Luminanz, Konsistenz, dark/normal/bright)
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np

from ...core.config import ColorConfig
from ...core.media import PixelFrame
from ...utils.logger import get_logger
from ..frame_metrics import luminance, variance

logger = get_logger()


class ColorMood(Enum):
    WARM = "warm"
    COOL = "cool"
    VIBRANT = "vibrant"
    MUTED = "muted"


class BrightnessClass(Enum):
    DARK = "dark"
    NORMAL = "normal"
    BRIGHT = "bright"


@dataclass(frozen=True)
class ColorSample:
    """Ein Histogramm-Eintrag: Quantisierungs-Bucket plus Summen der Mitglieder."""

    bucket: int
    count: int
    sums: tuple[float, float, float]

    @property
    def color(self) -> tuple[float, float, float]:
        """Mittelwert der Mitglieds-Pixel."""
        return tuple(s / self.count for s in self.sums)

    def merge(self, other: "ColorSample") -> "ColorSample":
        return ColorSample(
            bucket=self.bucket,
            count=self.count + other.count,
            sums=tuple(a + b for a, b in zip(self.sums, other.sums)),
        )


@dataclass(frozen=True)
class ColorAnalysis:
    """Ergebnis der Farb-Analyse."""

    dominant_colors: tuple[str, ...]  # ["rgb(r,g,b)", ...]
    palette: tuple[tuple[int, int, int], ...]
    temperature: float  # 0.0 (kalt) - 1.0 (warm)
    saturation: float  # 0.0 - 1.0
    mood: str  # warm, cool, vibrant, muted

    def to_dict(self) -> dict:
        return {
            "dominant_colors": list(self.dominant_colors),
            "palette": [list(c) for c in self.palette],
            "temperature": self.temperature,
            "saturation": self.saturation,
            "mood": self.mood,
        }


@dataclass(frozen=True)
class BrightnessAnalysis:
    """Ergebnis der Helligkeits-Analyse."""

    average: float  # 0.0 - 1.0
    consistency: float  # 0.0 - 1.0
    classification: str  # dark, normal, bright

    def to_dict(self) -> dict:
        return {
            "average": self.average,
            "consistency": self.consistency,
            "classification": self.classification,
        }


def color_temperature(rgb) -> float:
    """(R - B + 255) / 510"""
    return (rgb[0] - rgb[2] + 255.0) / 510.0


def color_saturation(rgb) -> float:
    """(max - min) / max, 0 fuer Schwarz."""
    high = max(rgb)
    if high <= 0:
        return 0.0
    return (high - min(rgb)) / high


def rgb_string(rgb) -> str:
    return f"rgb({int(rgb[0])},{int(rgb[1])},{int(rgb[2])})"


class ColorAnalyzer:
    """Analysiert Farbcharakteristiken einer Frame-Sequenz."""

    def __init__(self, config: ColorConfig | None = None):
        self.config = config or ColorConfig()
        self._levels = 255 // self.config.quantization_step + 1

    def frame_histogram(self, frame: PixelFrame, top: int | None = None) -> list[ColorSample]:
        """
        Quantisiertes Farbhistogramm eines Frames (jedes n-te Pixel).

        Args:
            frame: Eingabe-Frame
            top: Nur die haeufigsten Eintraege behalten (default: config)

        Returns:
            ColorSamples absteigend nach Anzahl
        """
        top = self.config.top_colors_per_frame if top is None else top
        pixels = frame.pixels.reshape(-1, 3)[:: self.config.sample_step].astype(np.int64)
        if len(pixels) == 0:
            return []

        q = pixels // self.config.quantization_step
        keys = (q[:, 0] * self._levels + q[:, 1]) * self._levels + q[:, 2]
        buckets, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
        sums = np.stack(
            [np.bincount(inverse, weights=pixels[:, c], minlength=len(buckets)) for c in range(3)],
            axis=1,
        )

        order = np.argsort(-counts, kind="stable")[:top]
        return [
            ColorSample(
                bucket=int(buckets[i]), count=int(counts[i]), sums=tuple(float(s) for s in sums[i])
            )
            for i in order
        ]

    @staticmethod
    def _weighted(samples: list[ColorSample], fn) -> float | None:
        total = sum(s.count for s in samples)
        if total == 0:
            return None
        return sum(fn(s.color) * s.count for s in samples) / total

    def kmeans(self, samples: Sequence[ColorSample]) -> list[tuple[int, int, int]]:
        """
        Gewichtetes K-Means ueber Histogramm-Eintraege.

        Zentroide starten bei den ersten k Eintraegen (zyklisch, falls weniger
        als k vorhanden sind); Update als gerundeter, nach Anzahl gewichteter
        Mittelwert. Leere Cluster behalten ihr Zentroid.
        """
        if not samples:
            return []
        k = self.config.clusters
        points = np.array([s.color for s in samples], dtype=np.float64)
        weights = np.array([s.count for s in samples], dtype=np.float64)
        centroids = np.array([points[i % len(points)] for i in range(k)])

        for _ in range(self.config.iterations):
            distances = np.linalg.norm(points[:, None, :] - centroids[None, :, :], axis=2)
            assignment = np.argmin(distances, axis=1)
            for c in range(k):
                members = assignment == c
                if not np.any(members):
                    continue
                w = weights[members]
                centroids[c] = np.round((points[members] * w[:, None]).sum(axis=0) / w.sum())

        return [tuple(int(v) for v in c) for c in centroids]

    def classify_mood(self, temperature: float, saturation: float) -> ColorMood:
        cfg = self.config
        if temperature > cfg.warm_threshold and saturation > cfg.saturation_threshold:
            return ColorMood.WARM
        if temperature < cfg.cool_threshold and saturation > cfg.saturation_threshold:
            return ColorMood.COOL
        if saturation > cfg.vibrant_threshold:
            return ColorMood.VIBRANT
        return ColorMood.MUTED

    def analyze(self, frames: Sequence[PixelFrame]) -> ColorAnalysis:
        """
        Fuehrt vollstaendige Farb-Analyse durch.

        Args:
            frames: Frames in zeitlicher Reihenfolge

        Returns:
            ColorAnalysis mit Palette, Temperatur, Saettigung und Stimmung
        """
        merged: dict[int, ColorSample] = {}
        temperatures = []
        saturations = []

        for frame in frames:
            samples = self.frame_histogram(frame)
            if not samples:
                continue
            temperatures.append(self._weighted(samples, color_temperature))
            saturations.append(self._weighted(samples, color_saturation))
            for sample in samples:
                existing = merged.get(sample.bucket)
                merged[sample.bucket] = existing.merge(sample) if existing else sample

        temperature = float(np.mean(temperatures)) if temperatures else 0.5
        saturation = float(np.mean(saturations)) if saturations else 0.0
        palette = self.kmeans(list(merged.values()))

        result = ColorAnalysis(
            dominant_colors=tuple(rgb_string(c) for c in palette),
            palette=tuple(palette),
            temperature=temperature,
            saturation=saturation,
            mood=self.classify_mood(temperature, saturation).value,
        )
        logger.debug(f"Color: {result.dominant_colors} mood={result.mood}")
        return result

    def analyze_brightness(self, frames: Sequence[PixelFrame]) -> BrightnessAnalysis:
        """
        Helligkeit ueber alle Frames.

        Returns:
            Mittlere Luminanz, Konsistenz max(0, 1 - Varianz) und Klasse
        """
        values = [luminance(f) for f in frames]
        average = float(np.mean(values)) if values else 0.0
        if average < self.config.dark_threshold:
            classification = BrightnessClass.DARK
        elif average > self.config.bright_threshold:
            classification = BrightnessClass.BRIGHT
        else:
            classification = BrightnessClass.NORMAL
        return BrightnessAnalysis(
            average=average,
            consistency=max(0.0, 1.0 - variance(values)),
            classification=classification.value,
        )
