"""
Frame Extractor - gleichmaessig verteilte Frames aus einer FrameSource.

Seek und Decode teilen sich eine Dekodier-Oberflaeche und laufen daher
strikt nacheinander auf einem einzelnen Decode-Thread. Jeder Schritt wird
mit Timeout abgewartet; ein haengender Decode wird als
ExtractionTimeoutError gemeldet.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import cv2

from ..core.config import CoordinatorConfig
from ..core.exceptions import ExtractionTimeoutError
from ..core.media import PixelFrame, VideoInput
from .frame_source import FrameSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def fit_frame(frame: PixelFrame, max_width: int, max_height: int) -> PixelFrame:
    """Verkleinert einen Frame seitenverhaeltnis-treu auf max_width x max_height."""
    scale = min(1.0, max_width / frame.width, max_height / frame.height)
    if scale >= 1.0:
        return frame
    size = (max(1, round(frame.width * scale)), max(1, round(frame.height * scale)))
    resized = cv2.resize(frame.pixels, size, interpolation=cv2.INTER_AREA)
    return PixelFrame(resized, frame.timestamp)


class FrameExtractor:
    """Serialisierte Frame-Extraktion mit Timeout pro Frame."""

    def __init__(self, config: CoordinatorConfig | None = None):
        self.config = config or CoordinatorConfig()
        self._decoder: ThreadPoolExecutor | None = None

    def _decode_thread(self) -> ThreadPoolExecutor:
        if self._decoder is None:
            self._decoder = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-decode")
        return self._decoder

    def sample_times(self, duration: float) -> list[float]:
        """Zeitpunkte i * duration / n fuer i in [0, n)."""
        if duration <= 0:
            return [0.0]
        n = self.config.frame_count
        return [i * duration / n for i in range(n)]

    def read(self, source: FrameSource, timestamp: float, index: int) -> PixelFrame:
        """
        Dekodiert einen Frame und wartet hoechstens ``extraction_timeout`` Sekunden.

        Raises:
            ExtractionTimeoutError: Decode haengt
        """
        timeout = self.config.extraction_timeout
        future = self._decode_thread().submit(source.read_frame, timestamp)
        try:
            frame = future.result(timeout=timeout)
        except FutureTimeoutError as e:
            # Haengender Decode-Thread wird verworfen, der naechste Aufruf startet neu
            self._decoder.shutdown(wait=False, cancel_futures=True)
            self._decoder = None
            raise ExtractionTimeoutError(timeout_seconds=timeout, frame_index=index) from e

        if not isinstance(frame, PixelFrame):
            frame = PixelFrame(frame, timestamp)
        elif frame.timestamp != timestamp:
            frame = PixelFrame(frame.pixels, timestamp)
        return fit_frame(frame, self.config.max_width, self.config.max_height)

    def extract(
        self,
        source: FrameSource,
        on_frame: ProgressCallback | None = None,
        should_stop: Callable[[], None] | None = None,
    ) -> VideoInput:
        """
        Extrahiert gleichmaessig verteilte Frames.

        Args:
            source: Frame-Quelle
            on_frame: Callback(frame_number, total) nach jedem Frame (1-basiert)
            should_stop: Wird vor jedem Frame aufgerufen und darf eine
                Exception werfen, um die Extraktion abzubrechen

        Returns:
            VideoInput mit den extrahierten Frames
        """
        duration = float(source.duration)
        times = self.sample_times(duration)
        frames = []
        for index, timestamp in enumerate(times):
            if should_stop is not None:
                should_stop()
            frames.append(self.read(source, timestamp, index))
            if on_frame is not None:
                on_frame(index + 1, len(times))

        logger.debug(f"Extracted {len(frames)} frames over {duration:.2f}s")
        return VideoInput(frames=tuple(frames), duration=max(duration, 0.0))

    def close(self) -> None:
        if self._decoder is not None:
            self._decoder.shutdown(wait=False, cancel_futures=True)
            self._decoder = None
