"""bluecloud - Blue-noise resampling of point clouds."""

__version__ = "0.1.0"
