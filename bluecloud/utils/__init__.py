"""Utility functions for bluecloud."""

from bluecloud.utils.logging import (
    setup_logging,
    get_logger,
    log_performance,
    log_resample_result,
    StructuredLogger,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_performance",
    "log_resample_result",
    "StructuredLogger",
]
