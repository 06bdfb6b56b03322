"""Audio laden und dekodieren (librosa)."""

import logging
from pathlib import Path

import librosa
import numpy as np

from ..core.exceptions import DecodeError, wrap_exception
from ..core.media import AudioInput

logger = logging.getLogger(__name__)


def load_audio(path: str | Path, sr: int | None = None, duration: float | None = None) -> AudioInput:
    """
    Lädt eine Audio-Datei als Mono-Signal.

    Args:
        path: Pfad zur Audio-Datei
        sr: Ziel-Sample-Rate (None = native Rate)
        duration: Optional nur die ersten ``duration`` Sekunden laden

    Returns:
        AudioInput mit float32 Samples

    Raises:
        DecodeError: Datei fehlt, ist beschädigt oder nicht dekodierbar
    """
    path = Path(path)
    if not path.exists():
        raise DecodeError(f"Audio file not found: {path}", details={"path": str(path)})

    try:
        y, sample_rate = librosa.load(str(path), sr=sr, mono=True, duration=duration)
    except Exception as e:
        raise wrap_exception(e, DecodeError) from e

    if y.size == 0:
        raise DecodeError(f"Audio file contains no samples: {path}", details={"path": str(path)})

    logger.info(f"Loaded {path.name}: {len(y) / sample_rate:.2f}s @ {sample_rate}Hz")
    return AudioInput(samples=y.astype(np.float32, copy=False), sample_rate=int(sample_rate))
