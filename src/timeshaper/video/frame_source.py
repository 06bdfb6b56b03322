"""
Frame-Quellen fuer die Video-Analyse.

FrameSource ist das Protokoll, das der Extraktor erwartet. OpenCVFrameSource
dekodiert Frames per cv2.VideoCapture und gibt die Capture immer frei
(Context Manager).
"""

import logging
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

import cv2
import numpy as np

from ..core.exceptions import ContextUnavailableError, DecodeError
from ..core.media import PixelFrame

logger = logging.getLogger(__name__)

# Erlaubte Video-Dateierweiterungen
ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".webm", ".m4v", ".wmv", ".flv"}


@runtime_checkable
class FrameSource(Protocol):
    """Liefert dekodierte RGB-Frames zu beliebigen Zeitpunkten."""

    @property
    def duration(self) -> float: ...

    def read_frame(self, timestamp: float) -> PixelFrame: ...


class OpenCVFrameSource:
    """
    FrameSource auf Basis von cv2.VideoCapture.

    Usage:
        with OpenCVFrameSource("clip.mp4") as source:
            frame = source.read_frame(1.5)
    """

    def __init__(self, video_path: str | Path):
        """
        Args:
            video_path: Pfad zum Video

        Raises:
            DecodeError: Ungueltige Extension oder Datei fehlt
        """
        path = Path(video_path)
        if path.suffix.lower() not in ALLOWED_VIDEO_EXTENSIONS:
            raise DecodeError(
                f"Invalid video extension: {path.suffix}",
                details={"allowed": sorted(ALLOWED_VIDEO_EXTENSIONS)},
            )
        if not path.is_file():
            raise DecodeError(f"Video file not found: {path}", details={"path": str(path)})

        self.video_path = path
        self._cap: cv2.VideoCapture | None = None
        self._lock = threading.Lock()
        self._reading = False
        self._release_pending = False
        self.width = 0
        self.height = 0
        self.frame_rate = 0.0
        self.frame_count = 0

    def open(self) -> "OpenCVFrameSource":
        if self._cap is not None:
            return self
        cap = cv2.VideoCapture(str(self.video_path))
        if not cap.isOpened():
            cap.release()
            raise DecodeError(f"Could not open video: {self.video_path.name}")

        self._cap = cap
        self.width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.frame_rate = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self.frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        logger.debug(
            f"Opened {self.video_path.name}: {self.width}x{self.height} "
            f"@ {self.frame_rate:.2f}fps, {self.frame_count} frames"
        )
        return self

    def close(self) -> None:
        """
        Gibt die Capture frei.

        Läuft gerade ein ``read_frame`` (z.B. ein nach Timeout verworfener
        Decode-Thread), wird die Capture nur abgekoppelt; der lesende Thread
        gibt sie nach ``cap.read()`` selbst frei.
        """
        with self._lock:
            cap, self._cap = self._cap, None
            if cap is None:
                return
            if self._reading:
                self._release_pending = True
                logger.debug(f"Deferring release of {self.video_path.name} until read completes")
                return
        cap.release()

    def __enter__(self) -> "OpenCVFrameSource":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    @property
    def duration(self) -> float:
        if self.frame_rate <= 0:
            return 0.0
        return self.frame_count / self.frame_rate

    def metadata(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "duration": self.duration,
            "frame_rate": self.frame_rate,
        }

    def _capture(self) -> cv2.VideoCapture:
        if self._cap is None:
            raise ContextUnavailableError(f"Video source {self.video_path.name} is not open")
        return self._cap

    def read_frame(self, timestamp: float) -> PixelFrame:
        """
        Springt zum Zeitpunkt und dekodiert einen Frame.

        Raises:
            DecodeError: Frame nicht dekodierbar
        """
        with self._lock:
            cap = self._capture()
            self._reading = True
        try:
            cap.set(cv2.CAP_PROP_POS_MSEC, max(timestamp, 0.0) * 1000.0)
            ret, frame = cap.read()
        finally:
            with self._lock:
                self._reading = False
                release, self._release_pending = self._release_pending, False
            if release:
                cap.release()
        if not ret or frame is None:
            raise DecodeError(
                f"Could not decode frame at {timestamp:.3f}s",
                details={"path": str(self.video_path), "timestamp": timestamp},
            )
        return PixelFrame(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB), timestamp)

    def extract_thumbnails(self, count: int = 5, size: tuple[int, int] = (160, 90)) -> list[bytes]:
        """
        Gleichmaessig verteilte JPEG-Vorschaubilder.

        Args:
            count: Anzahl Thumbnails
            size: Zielgroesse (Breite, Hoehe)

        Returns:
            JPEG-kodierte Bilder
        """
        thumbnails = []
        for i in range(count):
            frame = self.read_frame(i * self.duration / count)
            small = cv2.resize(frame.pixels, size, interpolation=cv2.INTER_AREA)
            ok, encoded = cv2.imencode(".jpg", cv2.cvtColor(small, cv2.COLOR_RGB2BGR))
            if not ok:
                raise DecodeError(f"Could not encode thumbnail {i}")
            thumbnails.append(np.asarray(encoded).tobytes())
        return thumbnails
