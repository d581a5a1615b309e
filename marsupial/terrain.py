"""Cost terms tying the ground vehicle to traversable terrain, and ray checks between poses.

Position states are sequences ``(index, x, y, z)``. The traversable terrain is given
as a cloud of ``(x, y, z)`` points. Ray casting is done by a caller-supplied
function ``cast_ray(start, direction) -> (hit, end)``. It returns whether the ray
met an occupied cell and the point where it stopped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from marsupial.analytic import Evaluation
from marsupial.geometry import record_residual, safe_distance

State = Sequence[float]
Point3 = Sequence[float]
CastRay = Callable[[tuple[float, float, float], tuple[float, float, float]], tuple[bool, Point3]]

_NORM_THRESHOLD = 0.0001
_MIN_STEP = 0.001
_UGV_RAY_HEIGHT = 0.4


def _xyz(state: State) -> tuple[float, float, float]:
    return (state[1], state[2], state[3])


def _nearest(points: Sequence[Point3], point: Point3) -> tuple[float, float, float]:
    """The cloud point closest to ``point``."""
    if not points:
        raise ValueError("the traversability cloud is empty")
    best = min(points, key=lambda p: math.dist(p, point))
    return (float(best[0]), float(best[1]), float(best[2]))


@dataclass
class TraversabilityCostUGV:
    """Keeps a ground pose on the terrain: penalises its height above or below the nearest point."""

    weight: float
    terrain: Sequence[Point3]
    log_dir: str | Path | None = None

    MAX_RESIDUAL = 20.0
    MIN_RESIDUAL = 0.0
    DEPENDENT_HIGH = 0.05
    DEPENDENT_LOW = 0.0

    def __call__(self, pos: State) -> float:
        _, _, nz = _nearest(self.terrain, _xyz(pos))
        d = (pos[3] - nz) ** 2
        slope = (self.MAX_RESIDUAL - self.MIN_RESIDUAL) / (self.DEPENDENT_HIGH - self.DEPENDENT_LOW)
        residual = self.weight * (slope * (d - self.DEPENDENT_LOW) + self.MIN_RESIDUAL)
        if self.log_dir is not None:
            record_residual(self.log_dir, "traversability_ugv.txt", residual)
        return residual


@dataclass
class TraversabilityAnalyticUGV:
    """Exponential penalty on a ground pose's height off the terrain, with its Jacobian."""

    weight: float
    fixed_points: float
    terrain: Sequence[Point3]

    FACTOR = 1000.0
    BOUND_DISTANCE = 0.01

    def evaluate(self, pos: State) -> Evaluation:
        p = pos[0]
        z = pos[3]
        _, _, nz = _nearest(self.terrain, _xyz(pos))
        d = (z - nz) ** 2
        bound = math.exp(self.BOUND_DISTANCE)
        growth = math.exp(4.0 * d)
        residual = self.weight * self.FACTOR * (growth - bound)
        if p < self.fixed_points:
            return Evaluation(residual, (None,))
        row = (0.0, 0.0, 0.0, -self.weight * self.FACTOR * growth * (8.0 * nz - 8.0 * z))
        return Evaluation(residual, (row,))


@dataclass(frozen=True)
class RayHit:
    """Where a ray between two poses stopped, and whether it met an obstacle."""

    end: tuple[float, float, float]
    hit: bool


def _cast(cast_ray: CastRay, start: tuple[float, float, float], direction: tuple[float, float, float]) -> RayHit:
    hit, end = cast_ray(start, direction)
    return RayHit((float(end[0]), float(end[1]), float(end[2])), bool(hit))


def ray_cast_through_uav(cast_ray: CastRay, pos1: State, pos2: State) -> RayHit:
    """Cast a ray from the first aerial pose towards the second."""
    x1, y1, z1 = _xyz(pos1)
    x2, y2, z2 = _xyz(pos2)
    return _cast(cast_ray, (x1, y1, z1), (x2 - x1, y2 - y1, z2 - z1))


def ray_cast_through_ugv(cast_ray: CastRay, pos1: State, pos2: State) -> RayHit:
    """Cast a ray between ground poses, raised above the ground by a fixed height."""
    x1, y1, z1 = _xyz(pos1)
    x2, y2, z2 = _xyz(pos2)
    return _cast(
        cast_ray,
        (x1, y1, _UGV_RAY_HEIGHT + z1),
        (x2 - x1, y2 - y1, _UGV_RAY_HEIGHT + (z2 - z1)),
    )


def _through_residual(weight: float, pos1: State, ray: Callable[[], RayHit], span: float) -> float:
    end = ray().end
    reach = safe_distance(_xyz(pos1), end, _NORM_THRESHOLD)
    if span <= reach:
        return 0.0
    return weight * 100.0 * (math.exp(2.0 * (span - reach)) - 1.0)


@dataclass
class ObstaclesThroughCostUAV:
    """Penalises the part of the segment between two aerial poses that lies past an obstacle."""

    weight: float
    cast_ray: CastRay

    def __call__(self, pos1: State, pos2: State) -> float:
        span = safe_distance(_xyz(pos1), _xyz(pos2), _NORM_THRESHOLD)
        if span < _MIN_STEP:
            return 0.0
        return _through_residual(
            self.weight, pos1, lambda: ray_cast_through_uav(self.cast_ray, pos1, pos2), span
        )


@dataclass
class ObstaclesThroughCostUGV:
    """Penalises the part of the segment between two ground poses that lies past an obstacle."""

    weight: float
    cast_ray: CastRay

    def __call__(self, pos1: State, pos2: State) -> float:
        span = safe_distance(_xyz(pos1), _xyz(pos2), _NORM_THRESHOLD)
        if span < _MIN_STEP:
            return 0.0
        return _through_residual(
            self.weight, pos1, lambda: ray_cast_through_ugv(self.cast_ray, pos1, pos2), span
        )