"""
Zentrales Konfigurations-Management für TimeShaper

Alle Schwellwerte und Fenstergrößen der Analyzer sind benannte,
bereichsgeprüfte Felder (pydantic). Optionale Overrides werden aus einer
.ini-Datei (configparser) gelesen; jede Section entspricht einem Modell.

Usage:
    from timeshaper.core.config import get_config

    engine = get_config().engine
    engine.tempo.onset_threshold  # 0.1
"""

import configparser
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing_extensions import Self

from ..utils.logger import configure_logging, get_logger
from .exceptions import ConfigurationError

logger = get_logger()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class _Section(BaseModel):
    """Gemeinsame Einstellungen für alle Config-Sections."""

    model_config = ConfigDict(extra="forbid", frozen=True, validate_default=True)


class SpectralConfig(_Section):
    rolloff_percent: float = Field(default=0.85, gt=0.0, le=1.0)


class StreamParameters(_Section):
    """
    Parameter des Echtzeit-Akkumulators.

    Ersetzt das ungeprüfte Feld-Merge von ``set-parameters``: nur diese
    Felder sind änderbar, jeweils mit Wertebereich.
    """

    buffer_size: int = Field(default=2048, ge=64, le=65536)
    sample_rate: int = Field(default=44100, ge=8000, le=192000)
    channel_capacity: int = Field(default=256, ge=1, le=65536)


class TempoConfig(_Section):
    onset_window: int = Field(default=1024, ge=64, le=16384)
    onset_hop: int = Field(default=512, ge=16, le=16384)
    onset_threshold: float = Field(default=0.1, ge=0.0)
    min_onsets: int = Field(default=4, ge=2)
    bucket_width: float = Field(default=0.01, gt=0.0, le=0.1)
    min_interval: float = Field(default=0.2, gt=0.0)
    max_interval: float = Field(default=2.0, gt=0.0)
    default_bpm: int = Field(default=120, ge=30, le=300)
    min_bpm: int = Field(default=30, ge=1)
    max_bpm: int = Field(default=300, le=1000)

    @model_validator(mode="after")
    def check_ranges(self) -> Self:
        if self.onset_hop > self.onset_window:
            raise ValueError("onset_hop must not exceed onset_window")
        if self.min_interval >= self.max_interval:
            raise ValueError("min_interval must be smaller than max_interval")
        if self.min_bpm >= self.max_bpm:
            raise ValueError("min_bpm must be smaller than max_bpm")
        return self


class EnergyConfig(_Section):
    window_seconds: float = Field(default=0.1, gt=0.0, le=5.0)
    overlap: float = Field(default=0.5, ge=0.0, lt=1.0)
    mood_window_seconds: float = Field(default=0.5, gt=0.0, le=10.0)
    arousal_scale: float = Field(default=10.0, gt=0.0)
    n_mfcc: int = Field(default=13, ge=1, le=40)
    n_mels: int = Field(default=40, ge=8, le=256)


class MotionConfig(_Section):
    block_size: int = Field(default=16, ge=4, le=64)
    search_radius: int = Field(default=8, ge=1, le=32)
    static_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    low_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    medium_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    direction_ratio: float = Field(default=1.5, ge=1.0)

    @model_validator(mode="after")
    def check_bands(self) -> Self:
        if not self.static_threshold <= self.low_threshold <= self.medium_threshold:
            raise ValueError("motion thresholds must be ascending (static <= low <= medium)")
        return self


class ColorConfig(_Section):
    sample_step: int = Field(default=4, ge=1, le=64)
    quantization_step: int = Field(default=32, ge=1, le=128)
    top_colors_per_frame: int = Field(default=5, ge=1, le=64)
    clusters: int = Field(default=3, ge=1, le=16)
    iterations: int = Field(default=10, ge=1, le=100)
    warm_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    cool_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    saturation_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    vibrant_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    dark_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    bright_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class SceneConfig(_Section):
    cut_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    edge_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    # Szenentyp-Regeln
    outdoor_brightness: float = Field(default=0.6, ge=0.0, le=1.0)
    indoor_brightness: float = Field(default=0.4, ge=0.0, le=1.0)
    indoor_edge_density: float = Field(default=0.3, ge=0.0, le=1.0)
    closeup_edge_density: float = Field(default=0.1, ge=0.0, le=1.0)
    wide_edge_density: float = Field(default=0.4, ge=0.0, le=1.0)


class QualityConfig(_Section):
    stability_scale: float = Field(default=2.0, gt=0.0)


class CoordinatorConfig(_Section):
    max_workers: int | None = Field(default=None, ge=1, le=64)
    frame_count: int = Field(default=30, ge=1, le=1000)
    max_width: int = Field(default=640, ge=16)
    max_height: int = Field(default=480, ge=16)
    extraction_timeout: float = Field(default=10.0, gt=0.0)


class LoggingConfig(_Section):
    """Level und Ziel der Log-Ausgabe."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_dir: str | None = None
    log_file: str = "timeshaper.log"

    @field_validator("console_level", "file_level")
    @classmethod
    def check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}, expected one of {LOG_LEVELS}")
        return level


class EngineConfig(BaseModel):
    """Gesamtkonfiguration aller Analyzer."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    spectral: SpectralConfig = Field(default_factory=SpectralConfig)
    stream: StreamParameters = Field(default_factory=StreamParameters)
    tempo: TempoConfig = Field(default_factory=TempoConfig)
    energy: EnergyConfig = Field(default_factory=EnergyConfig)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    color: ColorConfig = Field(default_factory=ColorConfig)
    scene: SceneConfig = Field(default_factory=SceneConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    coordinator: CoordinatorConfig = Field(default_factory=CoordinatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


SECTIONS = tuple(EngineConfig.model_fields)


class Config:
    """Zentrale Konfigurationsklasse für TimeShaper."""

    def __init__(self, config_file: str | None = None):
        """
        Initialisiert die Konfiguration.

        Args:
            config_file: Pfad zur .ini-Datei (None = nur Defaults)
        """
        self.config_file = Path(config_file) if config_file else None
        self.config = configparser.ConfigParser()
        self.engine = EngineConfig()
        self.load()

    def load(self) -> None:
        """Lädt Overrides aus der Datei, falls vorhanden, und validiert sie."""
        if self.config_file is None:
            return
        if not self.config_file.exists():
            logger.info(f"Konfigurationsdatei {self.config_file} nicht gefunden. Verwende Defaults.")
            return

        self.config.read(self.config_file, encoding="utf-8")
        unknown = [s for s in self.config.sections() if s not in SECTIONS]
        if unknown:
            raise ConfigurationError(
                f"Unknown config section(s): {', '.join(unknown)}",
                details={"file": str(self.config_file), "known": list(SECTIONS)},
            )
        self.engine = self._build_engine()
        if self.config.has_section("logging"):
            configure_logging(self.engine.logging)
        logger.info(f"Konfiguration aus {self.config_file} geladen")

    def _build_engine(self) -> EngineConfig:
        raw = {section: dict(self.config.items(section)) for section in self.config.sections()}
        try:
            return EngineConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration values",
                details={"file": str(self.config_file), "errors": e.errors(include_url=False)},
            ) from e

    def get(self, section: str, option: str, default: Any | None = None) -> Any:
        """
        Holt einen validierten Konfigurationswert.

        Args:
            section: Section-Name (z.B. "tempo")
            option: Option-Name (z.B. "onset_threshold")
            default: Default-Wert falls nicht gefunden

        Returns:
            Konfigurationswert oder default
        """
        model = getattr(self.engine, section, None)
        if model is None or option not in type(model).model_fields:
            logger.warning(
                f"Konfigurationswert [{section}] {option} nicht gefunden. "
                f"Verwende Default: {default}"
            )
            return default
        return getattr(model, option)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Setzt einen Konfigurationswert und validiert die Gesamtkonfiguration neu.

        Raises:
            ConfigurationError: Bei unbekannter Section/Option oder ungültigem Wert
        """
        if section not in SECTIONS:
            raise ConfigurationError(f"Unknown config section: {section}")
        if not self.config.has_section(section):
            self.config.add_section(section)
        previous = self.config.get(section, option, fallback=None)
        self.config.set(section, option, str(value))
        try:
            self.engine = self._build_engine()
        except ConfigurationError:
            if previous is None:
                self.config.remove_option(section, option)
            else:
                self.config.set(section, option, previous)
            raise
        if section == "logging":
            configure_logging(self.engine.logging)
        logger.debug(f"Konfiguration gesetzt: [{section}] {option} = {value}")

    def save(self, path: str | None = None) -> None:
        """Speichert die vollständige Konfiguration (inkl. Defaults) in eine .ini-Datei."""
        target = Path(path) if path else self.config_file
        if target is None:
            raise ConfigurationError("No config file path given")

        out = configparser.ConfigParser()
        for section in SECTIONS:
            values = getattr(self.engine, section).model_dump()
            out[section] = {k: str(v) for k, v in values.items() if v is not None}

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            out.write(f)
        logger.info(f"Konfiguration in {target} gespeichert")

    def __repr__(self) -> str:
        return f"Config(file='{self.config_file}', sections=[{', '.join(self.config.sections())}])"


# Globale Konfigurationsinstanz
_config = None


def get_config(config_file: str | None = None) -> Config:
    """
    Gibt die globale Konfigurationsinstanz zurück (Singleton).

    Args:
        config_file: Pfad zur Konfigurationsdatei (nur beim ersten Aufruf relevant)

    Returns:
        Config-Instanz
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Verwirft die globale Instanz (z.B. zwischen Tests)."""
    global _config
    _config = None
