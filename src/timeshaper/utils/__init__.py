"""Utility-Module für TimeShaper."""

from .logger import configure_logging, get_logger, setup_logging
from .memory_pool import FeatureRingBuffer
from .parallel import get_optimal_worker_count, run_concurrently

__all__ = [
    "configure_logging",
    "get_logger",
    "setup_logging",
    "FeatureRingBuffer",
    "get_optimal_worker_count",
    "run_concurrently",
]
