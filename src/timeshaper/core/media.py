"""
Medien-Container für dekodierte Eingaben.

Audio- und Video-Daten werden einmal dekodiert und danach nur gelesen:
Arrays werden beim Erzeugen kopiert und schreibgeschützt. Der Aufrufer
behält seinen schreibbaren Puffer, kein Analyzer kann die Eingabe verändern.
"""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


def _frozen_copy(data, dtype) -> np.ndarray:
    array = np.array(data, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class PixelFrame:
    """
    Ein dekodierter RGB-Frame.

    Attributes:
        pixels: uint8 Array (H, W, 3) in RGB-Reihenfolge
        timestamp: Aufnahmezeitpunkt in Sekunden
    """

    pixels: NDArray[np.uint8]
    timestamp: float = 0.0

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"PixelFrame expects (H, W, 3) RGB data, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            pixels = np.clip(pixels, 0, 255)
        object.__setattr__(self, "pixels", _frozen_copy(pixels, np.uint8))
        object.__setattr__(self, "timestamp", float(self.timestamp))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class AudioInput:
    """
    Dekodierte Mono-Kanaldaten plus Sample-Rate.

    Attributes:
        samples: float32 Samples im Bereich [-1, 1]
        sample_rate: Sample-Rate in Hz
        duration: Dauer in Sekunden (default: len(samples) / sample_rate)
    """

    samples: NDArray[np.float32]
    sample_rate: int
    duration: float | None = None

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"AudioInput expects mono samples, got shape {samples.shape}")
        object.__setattr__(self, "samples", _frozen_copy(samples, np.float32))
        if self.duration is None:
            object.__setattr__(self, "duration", len(samples) / self.sample_rate)


@dataclass(frozen=True)
class VideoInput:
    """
    Bereits extrahierte Frame-Sequenz plus Quell-Dauer.

    Attributes:
        frames: Frames in zeitlicher Reihenfolge
        duration: Dauer des Quellvideos in Sekunden
    """

    frames: tuple[PixelFrame, ...] = field(default_factory=tuple)
    duration: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "frames", tuple(self.frames))
        if self.duration < 0:
            raise ValueError(f"duration must not be negative, got {self.duration}")

    @property
    def frame_count(self) -> int:
        return len(self.frames)
