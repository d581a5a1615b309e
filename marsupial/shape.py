"""Cost terms on the shape of a path: spacing, smoothness and heading.

Position states are sequences ``(index, x, y, z)``; rotation states are
``(index, qx, qy, qz, qw)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from marsupial.geometry import quaternion_to_yaw, record_residual, safe_distance

State = Sequence[float]

_NORM_THRESHOLD = 0.0001


def _xyz(state: State) -> tuple[float, float, float]:
    return (state[1], state[2], state[3])


def _log(log_dir: str | Path | None, filename: str, value: float) -> None:
    if log_dir is not None:
        record_residual(log_dir, filename, value)


def _equidistance_slope(init_distance: float) -> float:
    max_residual, min_residual = 10.0, 0.0
    return (max_residual - min_residual) / (1.5 * init_distance - init_distance)


@dataclass
class EquidistanceCostUAV:
    """Keeps consecutive aerial poses near the initial spacing, in both directions."""

    weight: float
    init_distance: float
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State) -> float:
        d = safe_distance(_xyz(pos1), _xyz(pos2), _NORM_THRESHOLD)
        slope = _equidistance_slope(self.init_distance)
        residual = self.weight * (slope * (d - self.init_distance) + 0.0)
        _log(self.log_dir, "equidistance_uav.txt", residual)
        return residual


@dataclass
class EquidistanceCostUGV:
    """Penalises ground poses spaced further apart than the initial spacing."""

    weight: float
    init_distance: float
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State) -> float:
        d = safe_distance(_xyz(pos1), _xyz(pos2), _NORM_THRESHOLD)
        slope = _equidistance_slope(self.init_distance)
        active = 1.0 if d > self.init_distance else 0.0
        residual = self.weight * (slope * (d - self.init_distance) + 0.0) * active
        _log(self.log_dir, "equidistance_ugv.txt", residual)
        return residual


def _cos_angle(v1: Sequence[float], v2: Sequence[float]) -> float:
    dot = sum(a * b for a, b in zip(v1, v2))
    norms = []
    for v in (v1, v2):
        squared = sum(c * c for c in v)
        norms.append(0.0 if -_NORM_THRESHOLD < squared < _NORM_THRESHOLD else math.sqrt(squared))
    if norms[0] < _NORM_THRESHOLD or norms[1] < _NORM_THRESHOLD:
        return 0.0
    return dot / (norms[0] * norms[1])


def _smoothness_residual(weight: float, cos_angle: float) -> float:
    max_residual, min_residual = 20.0, 0.0
    straight, reversed_ = 1.0, -1.0
    slope = (max_residual - min_residual) / (reversed_ - straight)
    return weight * (slope * (cos_angle - straight) + min_residual)


@dataclass
class SmoothnessCostUAV:
    """Penalises the turning angle between consecutive aerial segments in 3D."""

    weight: float
    angle_bound: float
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State, pos3: State) -> float:
        p1, p2, p3 = _xyz(pos1), _xyz(pos2), _xyz(pos3)
        v1 = [b - a for a, b in zip(p1, p2)]
        v2 = [b - a for a, b in zip(p2, p3)]
        residual = _smoothness_residual(self.weight, _cos_angle(v1, v2))
        _log(self.log_dir, "smoothness_uav.txt", residual)
        return residual


@dataclass
class SmoothnessCostUGV:
    """Penalises the turning angle between consecutive ground segments in the horizontal plane."""

    weight: float
    angle_bound: float
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State, pos3: State) -> float:
        v1 = [pos2[1] - pos1[1], pos2[2] - pos1[2]]
        v2 = [pos3[1] - pos2[1], pos3[2] - pos2[2]]
        residual = _smoothness_residual(self.weight, _cos_angle(v1, v2))
        _log(self.log_dir, "smoothness_ugv.txt", residual)
        return residual


@dataclass
class RotationCostUGV:
    """Keeps the ground vehicle's heading aligned with its direction of travel."""

    weight: float
    yaw: float

    def __call__(self, pos1: State, pos2: State, rot1: State) -> float:
        d = safe_distance(_xyz(pos2), _xyz(pos1), _NORM_THRESHOLD)
        current = quaternion_to_yaw(rot1[1], rot1[2], rot1[3], rot1[4])
        if d < 0.001:
            heading = self.yaw
        else:
            heading = math.atan2(pos2[2] - pos1[2], pos2[1] - pos1[1])
        return self.weight * math.exp((current - heading) ** 2)