"""
Frame-Metriken, die von mehreren Analyzern geteilt werden.

Alle Funktionen arbeiten auf RGB uint8 Arrays (H, W, 3) und liefern auf
[0, 1] normierte Werte.
"""

import numpy as np

from ..core.media import PixelFrame

_MAX_RGB_DISTANCE = 255.0 * np.sqrt(3.0)


def _pixels(frame) -> np.ndarray:
    return frame.pixels if isinstance(frame, PixelFrame) else np.asarray(frame)


def frame_difference(a, b) -> float:
    """
    Mittlere euklidische RGB-Distanz pro Pixel, normiert auf [0, 1].

    Frames unterschiedlicher Größe werden auf die gemeinsame Fläche beschnitten.
    """
    pa, pb = _pixels(a), _pixels(b)
    h = min(pa.shape[0], pb.shape[0])
    w = min(pa.shape[1], pb.shape[1])
    if h == 0 or w == 0:
        return 0.0
    diff = pa[:h, :w].astype(np.float32) - pb[:h, :w].astype(np.float32)
    distance = np.sqrt(np.sum(diff * diff, axis=2))
    return float(np.mean(distance) / _MAX_RGB_DISTANCE)


def grayscale(frame) -> np.ndarray:
    """Kanal-Mittelwert als float32 (H, W)."""
    return _pixels(frame).astype(np.float32).mean(axis=2)


def luminance(frame) -> float:
    """Mittlere Luminanz (0.299 R + 0.587 G + 0.114 B) / 255."""
    p = _pixels(frame).astype(np.float32)
    if p.size == 0:
        return 0.0
    lum = 0.299 * p[..., 0] + 0.587 * p[..., 1] + 0.114 * p[..., 2]
    return float(np.mean(lum) / 255.0)


def edge_density(frame, threshold: float = 0.1) -> float:
    """
    Anteil der inneren Pixel, deren Gradientenbetrag (zentrale Differenzen,
    / 255) den Schwellwert überschreitet.
    """
    gray = grayscale(frame)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return 0.0
    gx = (gray[1:-1, 2:] - gray[1:-1, :-2]) / 2.0
    gy = (gray[2:, 1:-1] - gray[:-2, 1:-1]) / 2.0
    magnitude = np.sqrt(gx * gx + gy * gy) / 255.0
    return float(np.mean(magnitude > threshold))


def laplacian_response(frame) -> float:
    """Mittlerer Betrag des diskreten Laplace-Operators |4c - t - b - l - r| / 255."""
    gray = grayscale(frame)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return 0.0
    c = gray[1:-1, 1:-1]
    lap = 4.0 * c - gray[:-2, 1:-1] - gray[2:, 1:-1] - gray[1:-1, :-2] - gray[1:-1, 2:]
    return float(np.clip(np.mean(np.abs(lap)) / 255.0, 0.0, 1.0))


def high_pass_noise(frame) -> float:
    """Mittlere Abweichung jedes inneren Pixels vom Mittel seiner 4 Nachbarn, / 255."""
    gray = grayscale(frame)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return 0.0
    c = gray[1:-1, 1:-1]
    neighbours = (gray[:-2, 1:-1] + gray[2:, 1:-1] + gray[1:-1, :-2] + gray[1:-1, 2:]) / 4.0
    return float(np.clip(np.mean(np.abs(c - neighbours)) / 255.0, 0.0, 1.0))


def variance(values) -> float:
    """Populationsvarianz (0 für leere Eingabe)."""
    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64)))
