"""Cost terms keeping the vehicles away from obstacles.

Position states are sequences ``(index, x, y, z)``. Obstacle distances come either
from a :class:`~marsupial.geometry.DistanceGrid` or from the nearest point of an
obstacle point cloud, given as a sequence of ``(x, y, z)`` points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from marsupial.analytic import Evaluation
from marsupial.geometry import DistanceGrid, record_residual, safe_distance

State = Sequence[float]
Point3 = Sequence[float]

_NORM_THRESHOLD = 0.0001
_MAX_RESIDUAL = 100.0
_MIN_RESIDUAL = 0.0
_MAX_DEPENDENT = 0.0
_SAFETY_MARGIN = 1.05
_WHEEL_CLEARANCE = 0.6


def _xyz(state: State) -> tuple[float, float, float]:
    return (state[1], state[2], state[3])


def _nearest(obstacles: Sequence[Point3], point: Point3) -> tuple[float, float, float]:
    """The obstacle point closest to ``point``."""
    if not obstacles:
        raise ValueError("the obstacle cloud is empty")
    best = min(obstacles, key=lambda o: math.dist(o, point))
    return (float(best[0]), float(best[1]), float(best[2]))


def _barrier(weight: float, safety_bound: float, distance: float) -> float:
    """Linear penalty that grows as ``distance`` falls below the padded safety bound."""
    d_sb = safety_bound * _SAFETY_MARGIN
    if distance > d_sb:
        slope = 0.0
    else:
        slope = (_MAX_RESIDUAL - _MIN_RESIDUAL) / (_MAX_DEPENDENT - d_sb)
    return weight * slope * (distance - d_sb)


@dataclass
class ObstacleDistanceUAV:
    """Interpolated obstacle distance at a point, with its gradient.

    Outside the grid the distance is -1.0 and the Jacobian is left unset.
    """

    grid: DistanceGrid

    def evaluate(self, point: Point3) -> Evaluation:
        x, y, z = point[0], point[1], point[2]
        if not self.grid.is_into_map(x, y, z):
            return Evaluation(-1.0, (None,))
        params = self.grid.point_dist_interpolation(x, y, z)
        return Evaluation(params.value(x, y, z), (params.gradient(x, y, z),))


@dataclass
class ObstacleCostUAV:
    """Penalises an aerial pose closer to obstacles than the safety bound, using the grid."""

    weight: float
    safety_bound: float
    grid: DistanceGrid

    def __call__(self, pos: State) -> float:
        distance = ObstacleDistanceUAV(self.grid).evaluate(_xyz(pos)).residual
        return _barrier(self.weight, self.safety_bound, distance)


@dataclass
class ObstacleCostUAVNearest:
    """Penalises an aerial pose near obstacles, using the grid or the nearest cloud point."""

    weight: float
    safety_bound: float
    obstacles: Sequence[Point3]
    grid: Optional[DistanceGrid] = None
    use_distance_function: bool = False
    log_dir: str | Path | None = None

    def distance(self, pos: State) -> float:
        """Distance from the pose to the closest obstacle, or -1.0 outside the grid."""
        point = _xyz(pos)
        if self.use_distance_function:
            if self.grid is None:
                raise ValueError("a distance grid is required when use_distance_function is set")
            x, y, z = point
            if not self.grid.is_into_map(x, y, z):
                return -1.0
            return self.grid.point_dist_interpolation(x, y, z).value(x, y, z)
        near = _nearest(self.obstacles, point)
        return safe_distance(near, point, _NORM_THRESHOLD)

    def __call__(self, pos: State) -> float:
        residual = _barrier(self.weight, self.safety_bound, self.distance(pos))
        if self.log_dir is not None:
            record_residual(self.log_dir, "obstacles_ugv.txt", residual)
        return residual


@dataclass
class ObstacleAnalyticUAV:
    """Grid-based obstacle penalty for an aerial pose, with its Jacobian."""

    weight: float
    safety_bound: float
    grid: DistanceGrid

    def evaluate(self, pos: State) -> Evaluation:
        x, y, z = _xyz(pos)
        params = self.grid.point_dist_interpolation(x, y, z)
        d = params.value(x, y, z)
        d_sb = self.safety_bound * _SAFETY_MARGIN
        if d > d_sb:
            slope = 0.0
        else:
            slope = (_MAX_RESIDUAL - _MIN_RESIDUAL) / (0.0 - d_sb)
        residual = self.weight * slope * (d - d_sb)
        gx, gy, gz = params.gradient(x, y, z)
        k = slope * self.weight
        return Evaluation(residual, ((0.0, k * gx, k * gy, k * gz),))


@dataclass
class ObstacleCostUGV:
    """Penalises a ground pose near an obstacle point that rises above the wheel clearance."""

    weight: float
    safety_bound: float
    obstacles: Sequence[Point3]
    log_dir: str | Path | None = None

    def __call__(self, pos: State) -> float:
        point = _xyz(pos)
        near = _nearest(self.obstacles, point)
        d = safe_distance(point, near, _NORM_THRESHOLD)
        d_sb = self.safety_bound * _SAFETY_MARGIN
        if d > d_sb or pos[1] > near[2] - _WHEEL_CLEARANCE:
            slope = 0.0
        else:
            slope = (_MAX_RESIDUAL - _MIN_RESIDUAL) / (_MAX_DEPENDENT - d_sb)
        residual = self.weight * slope * (d - d_sb)
        if self.log_dir is not None:
            record_residual(self.log_dir, "obstacles_ugv.txt", residual)
        return residual


@dataclass
class ObstacleAnalyticUGV:
    """Soft-plus obstacle penalty for a ground pose, with its Jacobian for free poses."""

    weight: float
    safety_bound: float
    fixed_points: float
    obstacles: Sequence[Point3]

    FACTOR = 1000.0
    FACTOR_EXP = 4.0

    def evaluate(self, pos: State) -> Evaluation:
        p = pos[0]
        x, y, z = _xyz(pos)
        nx, ny, nz = _nearest(self.obstacles, (x, y, z))
        d = math.sqrt((nx - x) ** 2 + (ny - y) ** 2 + (nz - z) ** 2)
        residual = self.weight * self.FACTOR * math.log(
            1.0 + math.exp(self.FACTOR_EXP * (self.safety_bound - d))
        )
        if p < self.fixed_points:
            return Evaluation(residual, (None,))

        root = math.sqrt(d)
        e = math.exp(self.FACTOR_EXP * (self.safety_bound - root))
        numerator = self.FACTOR * self.FACTOR_EXP * self.weight * e
        denominator = 2.0 * (e + 1.0) * root

        def component(n: float, c: float) -> float:
            value = numerator * (2.0 * n - 2.0 * c)
            if denominator == 0.0:
                if value == 0.0:
                    return math.nan
                return math.copysign(math.inf, value)
            return value / denominator

        row = (0.0, component(nx, x), component(ny, y), component(nz, z))
        return Evaluation(residual, (row,))