"""Custom exceptions for bluecloud."""

from pathlib import Path
from typing import Any, Optional


class BlueCloudError(Exception):
    """Base exception for bluecloud."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(BlueCloudError):
    """Raised when configuration is invalid."""

    pass


class PointCloudError(BlueCloudError):
    """Raised when point cloud processing fails."""

    pass


class InvalidInputError(PointCloudError, ValueError):
    """Raised when input sequences are empty or have mismatched lengths."""

    def __init__(self, reason: str, **details: Any):
        super().__init__(f"Invalid input: {reason}", details)
        self.reason = reason


class DimensionMismatchError(PointCloudError, ValueError):
    """Raised when a vector does not match the dimensionality of a locator."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Expected vector of dimension {expected}, got {actual}",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class PointCloudLoadError(PointCloudError):
    """Raised when a point cloud file cannot be loaded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to load point cloud '{path}': {reason}")
        self.path = path
        self.reason = reason


class PointCloudSaveError(PointCloudError):
    """Raised when a point cloud file cannot be written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to save point cloud '{path}': {reason}")
        self.path = path
        self.reason = reason
