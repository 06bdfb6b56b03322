"""
Core module for TimeShaper.

Contains fundamental components like configuration, exceptions and media containers.
"""

from .config import EngineConfig, StreamParameters, get_config, reset_config
from .exceptions import (
    AnalysisCancelledError,
    AnalysisError,
    ConfigurationError,
    ContextUnavailableError,
    DecodeError,
    ExtractionTimeoutError,
    InternalAlgorithmError,
    InvalidParameterError,
    MediaError,
    TimeShaperError,
    handle_errors,
    wrap_exception,
)
from .media import AudioInput, PixelFrame, VideoInput

__all__ = [
    # Base
    "TimeShaperError",
    # Configuration
    "ConfigurationError",
    "InvalidParameterError",
    "EngineConfig",
    "StreamParameters",
    "get_config",
    "reset_config",
    # Media
    "ContextUnavailableError",
    "MediaError",
    "DecodeError",
    "ExtractionTimeoutError",
    "AudioInput",
    "PixelFrame",
    "VideoInput",
    # Analysis
    "AnalysisError",
    "InternalAlgorithmError",
    "AnalysisCancelledError",
    # Utility
    "wrap_exception",
    "handle_errors",
]
