"""
Custom Exceptions für TimeShaper.

Hierarchie:
    TimeShaperError (Base)
    ├── ConfigurationError
    │   └── InvalidParameterError
    ├── ContextUnavailableError
    ├── MediaError
    │   ├── DecodeError
    │   └── ExtractionTimeoutError
    └── AnalysisError
        ├── InternalAlgorithmError
        └── AnalysisCancelledError
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar


class TimeShaperError(Exception):
    """
    Base exception für alle TimeShaper Fehler.

    Alle custom exceptions erben von dieser Klasse.
    """

    def __init__(self, message: str = "", details: dict = None):
        """
        Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TimeShaperError):
    """
    Konfigurations-Fehler.

    Raised when:
    - Config file is invalid
    - Configuration values are out of range
    """

    pass


class InvalidParameterError(ConfigurationError):
    """
    Ungültiger Parameter.

    Raised when a runtime parameter update (e.g. ``set-parameters``)
    names an unknown field or carries an out-of-range value.
    """

    def __init__(self, message: str = "", errors: list = None, **kwargs):
        super().__init__(message, details={"errors": errors or [], **kwargs})


# =============================================================================
# Engine / Media Errors
# =============================================================================


class ContextUnavailableError(TimeShaperError):
    """
    Engine nicht bereit.

    Raised when:
    - A coordinator was shut down and receives a new request
    - No decode surface / frame source is available
    """

    pass


class MediaError(TimeShaperError):
    """
    Medien-bezogene Fehler.

    Base class for decode and extraction errors.
    """

    pass


class DecodeError(MediaError):
    """
    Medium konnte nicht dekodiert werden.

    Raised when:
    - Audio/video file is corrupt or unreadable
    - A frame at the requested time cannot be decoded
    """

    pass


class ExtractionTimeoutError(MediaError):
    """
    Frame-Extraktion hat das Timeout überschritten.
    """

    def __init__(self, timeout_seconds: float = None, frame_index: int = None, **kwargs):
        message = "Frame extraction timed out"
        if frame_index is not None:
            message = f"Extraction of frame {frame_index} timed out"
        if timeout_seconds:
            message += f" after {timeout_seconds}s"
        super().__init__(
            message, details={"timeout": timeout_seconds, "frame_index": frame_index, **kwargs}
        )


# =============================================================================
# Analysis Errors
# =============================================================================


class AnalysisError(TimeShaperError):
    """
    Analyse-bezogene Fehler.

    Base class for failures inside a sub-analysis.
    """

    pass


class InternalAlgorithmError(AnalysisError):
    """
    Numerischer Fehler innerhalb eines Algorithmus.

    Raised when:
    - Inputs have inconsistent shapes (e.g. spectra of different length)
    - A numeric routine fails unexpectedly
    """

    pass


class AnalysisCancelledError(AnalysisError):
    """Laufende Analyse wurde kooperativ abgebrochen."""

    pass


# =============================================================================
# Utility Functions
# =============================================================================


def wrap_exception(original: Exception, wrapper_class: type) -> TimeShaperError:
    """
    Wrap a standard exception in a TimeShaper exception.

    Args:
        original: The original exception
        wrapper_class: The TimeShaper exception class to use

    Returns:
        Wrapped TimeShaperError instance

    Example:
        try:
            librosa.load(path)
        except Exception as e:
            raise wrap_exception(e, DecodeError) from e
    """
    return wrapper_class(
        message=str(original),
        details={
            "original_type": type(original).__name__,
            "original_args": original.args,
        },
    )


T = TypeVar("T")


def handle_errors(
    default_return: Any = None,
    log_level: int = logging.ERROR,
    reraise: bool = False,
    wrap_as: type = None,
) -> Callable:
    """
    Decorator für einheitliches Error Handling.

    Args:
        default_return: Rückgabewert bei Fehler (default: None)
        log_level: Log-Level für Fehler (default: ERROR)
        reraise: Ob Exception nach Logging erneut geworfen werden soll
        wrap_as: Optional: Wrapper-Klasse für Exception

    Example:
        @handle_errors(wrap_as=InternalAlgorithmError, reraise=True)
        def analyze(self, frames):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except TimeShaperError:
                logger.log(log_level, f"{func.__name__} failed", exc_info=True)
                if reraise:
                    raise
                return default_return
            except Exception as e:
                logger.log(
                    log_level, f"{func.__name__} failed: {type(e).__name__}: {e}", exc_info=True
                )
                if wrap_as:
                    wrapped = wrap_exception(e, wrap_as)
                    if reraise:
                        raise wrapped from e
                elif reraise:
                    raise
                return default_return

        return wrapper

    return decorator
