"""Spatial locators for radius queries over n-dimensional vectors."""

from bluecloud.locator.base import Locator, squared_distances
from bluecloud.locator.bruteforce import BruteForceLocator
from bluecloud.locator.hashgrid import (
    HashGridLocator,
    ball_overlaps_bucket,
    bucket_range,
    iter_bucket_range,
    to_bucket,
)
from bluecloud.locator.factory import LocatorFactory

__all__ = [
    "Locator",
    "LocatorFactory",
    "BruteForceLocator",
    "HashGridLocator",
    "ball_overlaps_bucket",
    "bucket_range",
    "iter_bucket_range",
    "to_bucket",
    "squared_distances",
]
