"""Cost terms for the tether between the ground vehicle's reel and the aerial vehicle.

States are sequences ``(index, x, y, z)``; catenary parameters are
``(index, x0, y0, a)``, the catenary lying in the vertical plane through the reel
and the aerial vehicle, with horizontal coordinate measured from the reel.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from marsupial.geometry import DistanceGrid, record_residual

State = Sequence[float]

POINTS_PER_UNIT_LENGTH = 10


def num_points(length: float) -> int:
    """Number of samples along a tether of the given length, rounded half away from zero."""
    scaled = POINTS_PER_UNIT_LENGTH * length
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))


def grid_distance(grid: DistanceGrid, point: Sequence[float]) -> float:
    """Interpolated obstacle distance at a point, or -1.0 outside the grid."""
    x, y, z = point
    if not grid.is_into_map(x, y, z):
        return -1.0
    return grid.point_dist_interpolation(x, y, z).value(x, y, z)


def _reel(ugv: State, reel_height: float) -> tuple[float, float, float]:
    return (ugv[1], ugv[2], ugv[3] + reel_height)


@dataclass
class TetherLengthCost:
    """Penalises a catenary shorter than the straight line or longer than the maximum length."""

    weight: float
    reel_height: float
    max_length: float

    def __call__(self, ugv: State, uav: State, params: State) -> float:
        rx, ry, rz = _reel(ugv, self.reel_height)
        _, x0, _, a = params[0], params[1], params[2], params[3]
        xa = 0.0
        xb = math.hypot(uav[1] - rx, uav[2] - ry)
        length = a * math.sinh((xb - x0) / a) - a * math.sinh((xa - x0) / a)
        dist = 1.01 * math.sqrt((uav[1] - rx) ** 2 + (uav[2] - ry) ** 2 + (uav[3] - rz) ** 2)
        if length < dist:
            diff = dist - self.max_length
        elif length > self.max_length:
            diff = length - self.max_length
        else:
            diff = 0.0
        return self.weight * (math.exp(diff) - 1.0)


@dataclass
class TetherParametersCost:
    """Residuals of the catenary passing through the reel and the aerial vehicle."""

    weight: float
    reel_height: float

    def __call__(self, ugv: State, uav: State, params: State) -> tuple[float, float]:
        rx, ry, rz = _reel(ugv, self.reel_height)
        x0, y0, a = params[1], params[2], params[3]
        xa = 0.0
        ya = rz
        xb = math.hypot(uav[1] - rx, uav[2] - ry)
        yb = uav[3]
        r1 = a * math.cosh((xa - x0) / a) + (y0 - a) - ya
        r2 = a * math.cosh((xb - x0) / a) + (y0 - a) - yb
        return (self.weight * r1, self.weight * r2)


@dataclass
class TetherObstacleCost:
    """Mean inverse obstacle distance along the catenary, weighted inside the colliding stretch."""

    weight: float
    grid: DistanceGrid
    reel_height: float
    safety_bound: float

    def __call__(self, ugv: State, uav: State, params: State) -> float:
        rx, ry, rz = _reel(ugv, self.reel_height)
        x0, y0, a = params[1], params[2], params[3]
        dx, dy, dz = uav[1] - rx, uav[2] - ry, uav[3] - rz
        horizontal = math.sqrt(dx * dx + dy * dy)
        span = max(math.sqrt(dx * dx + dy * dy + dz * dz), 1.0)
        if horizontal < 0.001:
            ux = uy = 0.0
        else:
            ux, uy = dx / horizontal, dy / horizontal

        count = num_points(span)
        step = horizontal / count if count else 0.0
        distances: list[float] = []
        first_coll = last_coll = -1
        for i in range(count):
            s = i * step
            point = (rx + ux * s, ry + uy * s, a * math.cosh((s - x0) / a) + (y0 - a))
            d = grid_distance(self.grid, point)
            if d < 0.0 or d < self.safety_bound:
                if first_coll == -1:
                    first_coll = i
                last_coll = i
            distances.append(d)

        total = 0.0
        for i, d in enumerate(distances):
            distance = 0.001 if 0.0 <= d < 0.001 else d
            if first_coll <= i <= last_coll:
                factor = -10000.0 if d < 0.0 else 100.0
            else:
                factor = 1.0
            total += factor / distance

        cost = total / count if count > 0 else 10000.0
        return self.weight * cost


@dataclass
class CatenaryLengthCost:
    """Penalises a tether length below the length needed to join two fixed points."""

    weight: float
    min_length: float
    start: Sequence[float]
    end: Sequence[float]
    log_dir: str | Path | None = None

    MAX_RESIDUAL = 100.0
    MIN_RESIDUAL = 10.0

    def required_length(self, length: float) -> float:
        """The length the cost compares against for a candidate ``length``."""
        dist = math.dist(self.start, self.end)
        if dist < self.min_length:
            return self.min_length if length < self.min_length else length
        if length < dist and dist < 4.0:
            return 1.010 * dist
        if length < dist and dist > 4.0:
            return 1.005 * dist
        return length

    def __call__(self, length: float) -> float:
        required = self.required_length(length)
        if length < required:
            slope = (self.MAX_RESIDUAL - self.MIN_RESIDUAL) / (required * 0.9 - required)
            active = 1.0
        else:
            slope = 0.0
            active = 0.0
        residual = self.weight * (slope * (length - required) + self.MIN_RESIDUAL) * active
        if self.log_dir is not None:
            record_residual(self.log_dir, "catenary_length.txt", residual)
        return residual