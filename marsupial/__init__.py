"""Cost terms for optimizing the trajectory of a tethered ground and aerial vehicle."""

__version__ = "0.1.0"

__all__ = [
    "analytic",
    "geometry",
    "motion",
    "obstacles",
    "shape",
    "terrain",
    "tether",
]