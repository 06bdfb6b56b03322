"""
Streaming Feature Accumulator - Echtzeit-Merkmale aus Audio-Chunks.

Eingehende Chunks werden in einen Sample-Puffer fester Größe geschrieben.
Bei jeder Füllung wird synchron ein FeatureFrame berechnet (RMS, ZCR,
Spectral Centroid, Spectral Flux) und in einen begrenzten Ring-Kanal
gelegt. Ist der Kanal voll, wird der älteste Frame verworfen.

Control-Nachrichten:
    {"type": "start-analysis"}
    {"type": "stop-analysis"}
    {"type": "set-parameters", "data": {"buffer_size": 1024, ...}}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from pydantic import ValidationError

from ..core.config import StreamParameters, get_config
from ..core.exceptions import InvalidParameterError
from ..utils.logger import get_logger
from ..utils.memory_pool import FeatureRingBuffer
from .spectral_analyzer import FluxTracker, SpectralAnalyzer, rms, zero_crossing_rate

logger = get_logger()

_FRAME_FIELDS = ("rms", "zero_crossing_rate", "spectral_centroid", "spectral_flux", "timestamp")


class ControlMessage(str, Enum):
    START = "start-analysis"
    STOP = "stop-analysis"
    SET_PARAMETERS = "set-parameters"


@dataclass(frozen=True)
class FeatureFrame:
    """Ein periodischer Schnappschuss der Audio-Deskriptoren."""

    rms: float
    zero_crossing_rate: float
    spectral_centroid: float  # in Bins
    spectral_flux: float
    timestamp: float  # Sekunden, Ende des Fensters

    def to_dict(self) -> dict:
        return {
            "rms": self.rms,
            "zero_crossing_rate": self.zero_crossing_rate,
            "spectral_centroid": self.spectral_centroid,
            "spectral_flux": self.spectral_flux,
            "timestamp": self.timestamp,
        }

    def to_message(self) -> dict:
        """Nachricht an den Control-Kontext."""
        return {
            "type": "features",
            "data": {
                "features": {
                    "rms": self.rms,
                    "zcr": self.zero_crossing_rate,
                    "spectralCentroid": self.spectral_centroid,
                    "spectralFlux": self.spectral_flux,
                },
                "timestamp": self.timestamp,
            },
        }


class StreamingFeatureAccumulator:
    """Sammelt Audio-Chunks und emittiert pro Puffer-Füllung einen FeatureFrame."""

    def __init__(self, params: StreamParameters | None = None, spectral: SpectralAnalyzer = None):
        """
        Args:
            params: Validierte Stream-Parameter (default: [stream] der globalen Konfiguration)
            spectral: SpectralAnalyzer für Spektrum und Centroid
        """
        self.params = params or get_config().engine.stream
        self.spectral = spectral or SpectralAnalyzer()
        self.flux_tracker = FluxTracker()
        self.active = True
        self.processed_samples = 0
        # Sekunden vor dem letzten Sample-Rate-Wechsel
        self._elapsed = 0.0
        self._allocate_buffer()
        self.channel = FeatureRingBuffer(self.params.channel_capacity, len(_FRAME_FIELDS))

    def _allocate_buffer(self) -> None:
        self._buffer = np.zeros(self.params.buffer_size, dtype=np.float32)
        self._write_index = 0

    @property
    def buffer_size(self) -> int:
        return self.params.buffer_size

    @property
    def sample_rate(self) -> int:
        return self.params.sample_rate

    @property
    def write_index(self) -> int:
        return self._write_index

    def process(self, chunk) -> list[FeatureFrame]:
        """
        Schreibt einen Chunk in den Puffer.

        Args:
            chunk: Samples (beliebige Länge)

        Returns:
            Die durch diesen Chunk emittierten Frames (auch im Kanal abgelegt)
        """
        if not self.active:
            return []

        samples = np.asarray(chunk, dtype=np.float32).ravel()
        emitted = []
        offset = 0
        while offset < len(samples):
            take = min(self.buffer_size - self._write_index, len(samples) - offset)
            self._buffer[self._write_index : self._write_index + take] = samples[
                offset : offset + take
            ]
            self._write_index += take
            offset += take
            if self._write_index == self.buffer_size:
                emitted.append(self._emit())
        return emitted

    @staticmethod
    def passthrough(chunk):
        """Render-Pfad: Eingabe unverändert an die Ausgabe durchreichen."""
        return chunk

    def _emit(self) -> FeatureFrame:
        window = self._buffer
        spectrum = self.spectral.magnitude_spectrum(window)
        self.processed_samples += self.buffer_size
        frame = FeatureFrame(
            rms=rms(window),
            zero_crossing_rate=zero_crossing_rate(window),
            spectral_centroid=self.spectral.spectral_centroid(spectrum),
            spectral_flux=self.flux_tracker.update(spectrum),
            timestamp=self._elapsed + self.processed_samples / self.sample_rate,
        )
        self._write_index = 0
        if not self.channel.push(
            (
                frame.rms,
                frame.zero_crossing_rate,
                frame.spectral_centroid,
                frame.spectral_flux,
                frame.timestamp,
            )
        ):
            logger.debug(f"Feature channel full, dropped oldest frame (t={frame.timestamp:.3f}s)")
        return frame

    def drain(self) -> list[FeatureFrame]:
        """Entnimmt alle wartenden Frames aus dem Kanal (älteste zuerst)."""
        return [FeatureFrame(*(float(v) for v in row)) for row in self.channel.drain()]

    def drain_messages(self) -> list[dict]:
        return [frame.to_message() for frame in self.drain()]

    def handle_message(self, message: dict) -> dict:
        """
        Verarbeitet eine Control-Nachricht.

        Args:
            message: {"type": ..., "data": {...}}

        Returns:
            Bestätigung, z.B. {"type": "analysis-started"}

        Raises:
            InvalidParameterError: Unbekannter Typ oder ungültige Parameter
        """
        try:
            kind = ControlMessage(message.get("type"))
        except ValueError as e:
            raise InvalidParameterError(
                f"Unknown control message type: {message.get('type')!r}"
            ) from e

        if kind is ControlMessage.START:
            self.active = True
            return {"type": "analysis-started"}
        if kind is ControlMessage.STOP:
            self.active = False
            return {"type": "analysis-stopped"}

        params = self.set_parameters(message.get("data") or {})
        return {"type": "parameters-updated", "data": params.model_dump()}

    def set_parameters(self, updates: dict[str, Any]) -> StreamParameters:
        """
        Übernimmt benannte, bereichsgeprüfte Parameter.

        Eine neue Puffergröße legt nur den Sample-Puffer neu an (angefangene
        Füllung verfällt, Flux-Referenz wird zurückgesetzt). Eine neue
        Kanal-Kapazität behält wartende Frames; bei Verkleinerung werden die
        ältesten verworfen und gezählt. Ein Sample-Rate-Wechsel gilt nur für
        nachfolgende Samples, die Zeitbasis läuft weiter.
        """
        try:
            params = StreamParameters.model_validate({**self.params.model_dump(), **updates})
        except ValidationError as e:
            raise InvalidParameterError(
                "Invalid stream parameters", errors=e.errors(include_url=False)
            ) from e

        previous = self.params
        if params.sample_rate != previous.sample_rate:
            self._elapsed += self.processed_samples / previous.sample_rate
            self.processed_samples = 0
        self.params = params
        if params.buffer_size != previous.buffer_size:
            self._allocate_buffer()
            self.flux_tracker.reset()
        if params.channel_capacity != previous.channel_capacity:
            dropped = self.channel.resize(params.channel_capacity)
            if dropped:
                logger.debug(f"Feature channel shrunk, dropped {dropped} oldest frame(s)")
        logger.info(f"Stream parameters updated: {params.model_dump()}")
        return params

    def reset(self) -> None:
        """Startet eine neue Session (Puffer, Kanal, Flux-Referenz, Zeitbasis)."""
        self._write_index = 0
        self.processed_samples = 0
        self._elapsed = 0.0
        self.flux_tracker.reset()
        self.channel.clear()
