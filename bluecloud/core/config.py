"""Configuration management for bluecloud using Pydantic."""

from pathlib import Path
from typing import Literal, Optional

import tomli
from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocatorConfig(BaseModel):
    """Configuration for the spatial locator used by every stage."""

    model_config = ConfigDict(frozen=True)

    strategy: Literal["bruteforce", "hashgrid"] = Field(
        "hashgrid", description="Neighbour search strategy"
    )
    cell_size: Optional[float] = Field(
        None,
        gt=0,
        description="Hash grid cell size (None = use the query radius of each stage)",
    )


class StackingConfig(BaseModel):
    """Weights applied when stacking positions and features."""

    model_config = ConfigDict(frozen=True)

    position_weight: float = Field(1.0, ge=0, description="Weight of positional components")
    feature_weight: float = Field(0.05, ge=0, description="Weight of feature components")


class DartThrowingConfig(BaseModel):
    """Configuration for dart throwing."""

    model_config = ConfigDict(frozen=True)

    conflict_radius: float = Field(
        0.01, gt=0, description="Minimum distance between accepted samples"
    )
    max_attempts: int = Field(
        100000, ge=1, description="Consecutive failures before giving up"
    )
    seed: Optional[int] = Field(None, description="Random seed for reproducibility")
    progress_interval: int = Field(
        5000, ge=1, description="Candidates between progress log events"
    )


class EnergyConfig(BaseModel):
    """Configuration for energy minimization."""

    model_config = ConfigDict(frozen=True)

    sigma: float = Field(0.03, gt=0, description="Gaussian kernel bandwidth")
    step_size: Optional[float] = Field(
        None, gt=0, description="Gradient descent step (None = 0.03 * sigma^2)"
    )
    max_search_radius: Optional[float] = Field(
        None, gt=0, description="Neighbour cutoff radius (None = 2.576 * sigma)"
    )
    iterations: int = Field(10, ge=0, description="Number of relaxation iterations")
    constraint: Literal["none", "snap", "clamp", "normalize"] = Field(
        "snap", description="Constraint applied after every gradient step"
    )


class NormalizationConfig(BaseModel):
    """Configuration for rigid/scale normalization of input clouds."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(True, description="Normalize orientation and size before sampling")
    restore: bool = Field(True, description="Map results back to the input frame")


class IOConfig(BaseModel):
    """Configuration for point cloud input and output."""

    model_config = ConfigDict(frozen=True)

    surface_samples: int = Field(
        100000, ge=1, description="Candidates drawn from mesh inputs"
    )
    output_suffix: str = Field(
        "_resampled", description="Suffix appended to auto-generated output names"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "console", "plain"] = Field(
        "console", description="Log format"
    )
    log_dir: Optional[Path] = Field(None, description="Directory for log files")
    log_to_file: bool = Field(False, description="Enable file logging")
    add_caller_info: bool = Field(False, description="Add file/line/function to events")


class Config(BaseModel):
    """Main configuration for bluecloud."""

    model_config = ConfigDict(frozen=True)

    locator: LocatorConfig = Field(
        default_factory=LocatorConfig, description="Locator configuration"
    )
    stacking: StackingConfig = Field(
        default_factory=StackingConfig, description="Stacking configuration"
    )
    dart_throwing: DartThrowingConfig = Field(
        default_factory=DartThrowingConfig, description="Dart throwing configuration"
    )
    energy: EnergyConfig = Field(
        default_factory=EnergyConfig, description="Energy minimization configuration"
    )
    normalization: NormalizationConfig = Field(
        default_factory=NormalizationConfig, description="Normalization configuration"
    )
    io: IOConfig = Field(default_factory=IOConfig, description="I/O configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @model_validator(mode="after")
    def validate_search_radius(self) -> "Config":
        """Ensure the energy cutoff covers the conflict radius."""
        radius = self.energy.max_search_radius
        if radius is not None and radius < self.dart_throwing.conflict_radius:
            raise ValueError(
                "energy.max_search_radius must be >= dart_throwing.conflict_radius"
            )
        return self

    @classmethod
    def from_toml(cls, path: Path | str) -> "Config":
        """Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            tomli.TOMLDecodeError: If TOML is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "rb") as f:
            data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance
        """
        return cls(**data)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Configuration as dictionary
        """
        return self.model_dump()

    def to_toml(self) -> str:
        """Render configuration as a TOML document.

        Unset optional values are omitted since TOML has no null.
        """
        import tomli_w

        return tomli_w.dumps(self.model_dump(mode="json", exclude_none=True))

    def save_toml(self, path: Path | str) -> None:
        """Save configuration to TOML file.

        Args:
            path: Path to save TOML file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_toml())


def get_default_config() -> Config:
    """Get default configuration.

    Returns:
        Default Config instance
    """
    return Config()


def load_config(path: Optional[Path | str] = None) -> Config:
    """Load configuration from file or return defaults.

    Args:
        path: Optional path to configuration file

    Returns:
        Config instance
    """
    if path:
        return Config.from_toml(path)
    return get_default_config()
