"""Blue-noise resampling stages for bluecloud."""

from bluecloud.sampling.constraints import (
    ClampToBox,
    NormalizeFeature,
    SnapToReference,
    compose,
)
from bluecloud.sampling.dart_throwing import DartThrowing, DartThrowingResult
from bluecloud.sampling.energy import EnergyMinimization, EnergyResult

__all__ = [
    "DartThrowing",
    "DartThrowingResult",
    "EnergyMinimization",
    "EnergyResult",
    "ClampToBox",
    "NormalizeFeature",
    "SnapToReference",
    "compose",
]
