"""
Logging-System für TimeShaper

Alle Module loggen unter dem Namensraum ``timeshaper``. Die Console ist
immer aktiv; eine rotierende Log-Datei nur, wenn ein Verzeichnis gesetzt ist.
Level, Verzeichnis und Dateiname kommen aus der [logging]-Section der
Konfiguration (siehe ``configure_logging``).
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "timeshaper"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation: 10MB pro Datei, 5 Backups
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _file_handler(log_dir: str, log_file: str, level: int | str) -> RotatingFileHandler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path / log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_file: str = "timeshaper.log",
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
    log_dir: str | None = None,
) -> logging.Logger:
    """
    Richtet den ``timeshaper``-Logger ein (ersetzt vorhandene Handler).

    Args:
        log_file: Name der Log-Datei
        console_level: Level für die Console (int oder Name, z.B. "WARNING")
        file_level: Level für die Datei
        log_dir: Verzeichnis für Log-Dateien (None = nur Console)

    Returns:
        Konfigurierter Logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_dir is not None:
        logger.addHandler(_file_handler(log_dir, log_file, file_level))
        logger.debug(f"Logging initialisiert. Log-Datei: {Path(log_dir) / log_file}")

    return logger


_logger = None


def configure_logging(settings) -> logging.Logger:
    """
    Richtet das Logging aus einer [logging]-Section ein.

    Args:
        settings: Objekt mit ``console_level``, ``file_level``, ``log_dir``
            und ``log_file`` (z.B. ``LoggingConfig``)
    """
    global _logger
    _logger = setup_logging(
        log_file=settings.log_file,
        console_level=settings.console_level,
        file_level=settings.file_level,
        log_dir=settings.log_dir,
    )
    return _logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Logger im ``timeshaper``-Namensraum.

    Beim ersten Aufruf wird ``setup_logging()`` mit Defaults ausgeführt.

    Args:
        name: Optionaler Modulname; ohne Präfix wird ``timeshaper.`` vorangestellt

    Returns:
        Kind-Logger oder der ``timeshaper``-Logger selbst
    """
    global _logger
    if _logger is None:
        _logger = setup_logging()

    if not name:
        return _logger
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
