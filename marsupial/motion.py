"""Cost terms on timing: velocity, acceleration, time steps and tether length change.

Position states are sequences ``(index, x, y, z)``; time states are ``(index, dt)``;
tether length states are ``(index, length)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from marsupial.geometry import record_residual, safe_distance

State = Sequence[float]

_LOW_VALUE = 0.001


def _xyz(state: State) -> tuple[float, float, float]:
    return (state[1], state[2], state[3])


def _log(log_dir: str | Path | None, filename: str, value: float) -> None:
    if log_dir is not None:
        record_residual(log_dir, filename, value)


def _acceleration_residual(
    weight: float, target: float, d1: float, d2: float, t1: float, t2: float
) -> float:
    v1 = 0.0 if t1 < _LOW_VALUE else d1 / t1
    v2 = 0.0 if t2 < _LOW_VALUE else d2 / t2
    if t1 < _LOW_VALUE and t2 < _LOW_VALUE:
        return 0.0
    acceleration = (v2 - v1) / (t1 + t2)
    return weight * (acceleration - target)


@dataclass
class AccelerationCostUAV:
    """Keeps the aerial vehicle's acceleration between three poses near a target value.

    The step length used is the square root of the Euclidean distance between poses.
    """

    weight: float
    init_acceleration: float
    log_dir: str | Path | None = None

    @staticmethod
    def _step(p: State, q: State) -> float:
        dist = math.dist(_xyz(p), _xyz(q))
        if -_LOW_VALUE < dist < _LOW_VALUE:
            return 0.0
        return math.sqrt(dist)

    def __call__(self, pos1: State, pos2: State, pos3: State, time1: State, time2: State) -> float:
        residual = _acceleration_residual(
            self.weight,
            self.init_acceleration,
            self._step(pos1, pos2),
            self._step(pos2, pos3),
            time1[1],
            time2[1],
        )
        _log(self.log_dir, "acceleration_uav.txt", residual)
        return residual


@dataclass
class AccelerationCostUGV:
    """Keeps the ground vehicle's acceleration between three poses near a target value."""

    weight: float
    init_acceleration: float
    fixed_points: float = 0.0
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State, pos3: State, time1: State, time2: State) -> float:
        residual = _acceleration_residual(
            self.weight,
            self.init_acceleration,
            safe_distance(_xyz(pos1), _xyz(pos2), _LOW_VALUE),
            safe_distance(_xyz(pos2), _xyz(pos3), _LOW_VALUE),
            time1[1],
            time2[1],
        )
        _log(self.log_dir, "acceleration_ugv.txt", residual)
        return residual


@dataclass
class VelocityCostUAV:
    """Keeps the aerial vehicle's speed between two poses near a target value."""

    weight: float
    init_velocity: float
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State, time: State) -> float:
        d = safe_distance(_xyz(pos2), _xyz(pos1), 0.0001)
        if time[1] < _LOW_VALUE:
            residual = 0.0
        else:
            residual = self.weight * (d / time[1] - self.init_velocity)
        _log(self.log_dir, "velocity_uav.txt", residual)
        return residual


@dataclass
class VelocityCostUGV:
    """Keeps the ground vehicle's speed near a target value, ignoring fixed leading poses."""

    weight: float
    init_velocity: float
    fixed_points: float = 0.0
    log_dir: str | Path | None = None

    def __call__(self, pos1: State, pos2: State, time: State) -> float:
        if pos2[0] < self.fixed_points:
            return 0.0
        d = safe_distance(_xyz(pos2), _xyz(pos1), _LOW_VALUE)
        if time[1] < _LOW_VALUE:
            residual = 0.0
        else:
            residual = self.weight * (d / time[1] - self.init_velocity)
        _log(self.log_dir, "velocity_ugv.txt", residual)
        return residual


@dataclass
class TimeCost:
    """Keeps a time step near its initial value."""

    weight: float
    init_time: float
    log_dir: str | Path | None = None

    def __call__(self, time: State) -> float:
        residual = self.weight * (time[1] - self.init_time)
        _log(self.log_dir, "time.txt", residual)
        return residual


@dataclass
class DynamicCatenaryCost:
    """Penalises a change of tether length between consecutive states, relative to the first."""

    weight: float
    dynamic_catenary: float = 0.0

    def __call__(self, cat1: State, cat2: State) -> float:
        spread = cat1[1] * 0.2
        if spread == 0.0:
            raise ValueError("reference tether length must be non-zero")
        diff = cat2[1] - cat1[1]
        return self.weight * 1.0 / math.exp(-1.0 * diff * diff / (2.0 * spread * spread))