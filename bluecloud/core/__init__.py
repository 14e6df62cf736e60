"""Core functionality for bluecloud."""

from bluecloud.core.config import (
    Config,
    DartThrowingConfig,
    EnergyConfig,
    IOConfig,
    LocatorConfig,
    LoggingConfig,
    NormalizationConfig,
    StackingConfig,
    get_default_config,
    load_config,
)
from bluecloud.core.exceptions import (
    BlueCloudError,
    ConfigurationError,
    DimensionMismatchError,
    InvalidInputError,
    PointCloudError,
    PointCloudLoadError,
    PointCloudSaveError,
)

__all__ = [
    # Config classes
    "Config",
    "LocatorConfig",
    "StackingConfig",
    "DartThrowingConfig",
    "EnergyConfig",
    "NormalizationConfig",
    "IOConfig",
    "LoggingConfig",
    # Config functions
    "get_default_config",
    "load_config",
    # Exceptions
    "BlueCloudError",
    "ConfigurationError",
    "PointCloudError",
    "InvalidInputError",
    "DimensionMismatchError",
    "PointCloudLoadError",
    "PointCloudSaveError",
]
