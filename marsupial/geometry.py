"""Geometric helpers shared by the cost terms: distance grids, yaw conversion, logging."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

Point3 = Sequence[float]


@dataclass(frozen=True)
class TrilinearParams:
    """Coefficients of f(x, y, z) = a0 + a1 x + a2 y + a3 z + a4 xy + a5 xz + a6 yz + a7 xyz."""

    a0: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    a3: float = 0.0
    a4: float = 0.0
    a5: float = 0.0
    a6: float = 0.0
    a7: float = 0.0

    def value(self, x: float, y: float, z: float) -> float:
        """Evaluate the interpolated distance at a point."""
        return (
            self.a0
            + self.a1 * x
            + self.a2 * y
            + self.a3 * z
            + self.a4 * x * y
            + self.a5 * x * z
            + self.a6 * y * z
            + self.a7 * x * y * z
        )

    def gradient(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        """Partial derivatives of the interpolated distance with respect to x, y and z."""
        return (
            self.a1 + self.a4 * y + self.a5 * z + self.a7 * y * z,
            self.a2 + self.a4 * x + self.a6 * z + self.a7 * x * z,
            self.a3 + self.a5 * x + self.a6 * y + self.a7 * x * y,
        )


_MONOMIAL_ORDER = (
    (0, 0, 0),
    (1, 0, 0),
    (0, 1, 0),
    (0, 0, 1),
    (1, 1, 0),
    (1, 0, 1),
    (0, 1, 1),
    (1, 1, 1),
)

_Poly = dict[tuple[int, int, int], float]


def _poly_mul(p: _Poly, q: _Poly) -> _Poly:
    result: _Poly = {}
    for ep, cp in p.items():
        for eq, cq in q.items():
            key = (ep[0] + eq[0], ep[1] + eq[1], ep[2] + eq[2])
            result[key] = result.get(key, 0.0) + cp * cq
    return result


class DistanceGrid:
    """A regular 3D grid of distances to the nearest obstacle, read by trilinear interpolation.

    ``values[ix][iy][iz]`` is the distance at ``origin + (ix, iy, iz) * resolution``.
    """

    def __init__(
        self,
        values: Sequence[Sequence[Sequence[float]]],
        resolution: float,
        origin: Point3 = (0.0, 0.0, 0.0),
    ) -> None:
        if resolution <= 0:
            raise ValueError("resolution must be positive")
        grid = [[[float(v) for v in column] for column in plane] for plane in values]
        nx = len(grid)
        ny = len(grid[0]) if nx else 0
        nz = len(grid[0][0]) if ny else 0
        if nx < 2 or ny < 2 or nz < 2:
            raise ValueError("a distance grid needs at least two nodes along each axis")
        if any(len(plane) != ny or any(len(col) != nz for col in plane) for plane in grid):
            raise ValueError("distance grid values must be rectangular")
        self._values = grid
        self._shape = (nx, ny, nz)
        self._resolution = float(resolution)
        self._origin = tuple(float(c) for c in origin)

    @classmethod
    def from_function(
        cls,
        func: Callable[[float, float, float], float],
        shape: tuple[int, int, int],
        resolution: float,
        origin: Point3 = (0.0, 0.0, 0.0),
    ) -> "DistanceGrid":
        """Build a grid by sampling ``func`` at every node."""
        ox, oy, oz = origin
        nx, ny, nz = shape
        values = [
            [
                [func(ox + i * resolution, oy + j * resolution, oz + k * resolution) for k in range(nz)]
                for j in range(ny)
            ]
            for i in range(nx)
        ]
        return cls(values, resolution, origin)

    @property
    def shape(self) -> tuple[int, int, int]:
        return self._shape

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def origin(self) -> tuple[float, ...]:
        return self._origin

    def is_into_map(self, x: float, y: float, z: float) -> bool:
        """Whether the point lies inside the grid's extent."""
        return all(
            o <= c <= o + (n - 1) * self._resolution
            for c, o, n in zip((x, y, z), self._origin, self._shape)
        )

    def _cell(self, coord: float, origin: float, n: int) -> int:
        index = int(math.floor((coord - origin) / self._resolution))
        return min(max(index, 0), n - 2)

    def point_dist_interpolation(self, x: float, y: float, z: float) -> TrilinearParams:
        """Trilinear coefficients, in world coordinates, of the cell that holds the point."""
        if not self.is_into_map(x, y, z):
            raise ValueError(f"point ({x}, {y}, {z}) is outside the distance grid")
        r = self._resolution
        i, j, k = (self._cell(c, o, n) for c, o, n in zip((x, y, z), self._origin, self._shape))
        v = self._values
        c000, c100 = v[i][j][k], v[i + 1][j][k]
        c010, c001 = v[i][j + 1][k], v[i][j][k + 1]
        c110, c101 = v[i + 1][j + 1][k], v[i + 1][j][k + 1]
        c011, c111 = v[i][j + 1][k + 1], v[i + 1][j + 1][k + 1]

        b = {
            (0, 0, 0): c000,
            (1, 0, 0): c100 - c000,
            (0, 1, 0): c010 - c000,
            (0, 0, 1): c001 - c000,
            (1, 1, 0): c110 - c010 - c100 + c000,
            (1, 0, 1): c101 - c001 - c100 + c000,
            (0, 1, 1): c011 - c001 - c010 + c000,
            (1, 1, 1): c111 - c011 - c101 - c110 + c100 + c001 + c010 - c000,
        }
        x0 = self._origin[0] + i * r
        y0 = self._origin[1] + j * r
        z0 = self._origin[2] + k * r
        u: _Poly = {(1, 0, 0): 1.0 / r, (0, 0, 0): -x0 / r}
        w_y: _Poly = {(0, 1, 0): 1.0 / r, (0, 0, 0): -y0 / r}
        w_z: _Poly = {(0, 0, 1): 1.0 / r, (0, 0, 0): -z0 / r}
        one: _Poly = {(0, 0, 0): 1.0}

        total: _Poly = {}
        for exps, coef in b.items():
            term = one
            for use, factor in zip(exps, (u, w_y, w_z)):
                if use:
                    term = _poly_mul(term, factor)
            for key, c in term.items():
                total[key] = total.get(key, 0.0) + coef * c
        return TrilinearParams(*(total.get(m, 0.0) for m in _MONOMIAL_ORDER))


def quaternion_to_yaw(x: float, y: float, z: float, w: float) -> float:
    """Yaw of the rotation described by a (not necessarily unit) quaternion."""
    d = x * x + y * y + z * z + w * w
    if d == 0.0:
        raise ValueError("zero-length quaternion has no rotation")
    s = 2.0 / d
    m00 = 1.0 - s * (y * y + z * z)
    m10 = s * (x * y + w * z)
    m20 = s * (x * z - w * y)
    if abs(m20) >= 1.0:
        return 0.0
    return math.atan2(m10, m00)


def yaw_to_quaternion(yaw: float) -> tuple[float, float, float, float]:
    """Quaternion (x, y, z, w) of a pure rotation about the vertical axis."""
    half = yaw / 2.0
    return (0.0, 0.0, math.sin(half), math.cos(half))


def safe_distance(p: Point3, q: Point3, threshold: float) -> float:
    """Euclidean distance, taken as zero when its square is within ``threshold`` of zero."""
    squared = sum((a - b) ** 2 for a, b in zip(p, q))
    if -threshold < squared < threshold:
        return 0.0
    return math.sqrt(squared)


def record_residual(log_dir: str | Path, filename: str, value: float) -> Path:
    """Append a residual value to a log file in ``log_dir`` and return the file's path."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    with path.open("a", encoding="utf-8") as stream:
        stream.write(f"{value:g}/\n")
    return path