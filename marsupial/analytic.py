"""Cost terms with hand-written Jacobians for path spacing and smoothness.

Position states are sequences ``(index, x, y, z)``. Every evaluation returns the
residual with one Jacobian row per state block; a block is ``None`` where the
term leaves that state's derivative unset, as it does for fixed states.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

State = Sequence[float]
Jacobian = Optional[tuple[float, float, float, float]]

_NORM_THRESHOLD = 0.0001
_ZERO_ROW = (0.0, 0.0, 0.0, 0.0)


def _div(a: float, b: float) -> float:
    """Floating-point division that yields infinity or NaN instead of raising."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _negate(row: tuple[float, float, float, float]) -> tuple[float, float, float, float]:
    return tuple(-v for v in row)  # type: ignore[return-value]


@dataclass(frozen=True)
class Evaluation:
    """A residual and its Jacobian rows, one per state block."""

    residual: float
    jacobians: tuple[Jacobian, ...]


@dataclass
class EquidistanceAnalyticUAV:
    """Penalises aerial poses spaced further apart than 1.2 times the initial spacing."""

    weight: float
    init_distance: float
    size: float

    MAX_RESIDUAL = 100.0
    MIN_RESIDUAL = 0.0

    def evaluate(self, pos1: State, pos2: State) -> Evaluation:
        p1, x1, y1, z1 = pos1[0], pos1[1], pos1[2], pos1[3]
        p2, x2, y2, z2 = pos2[0], pos2[1], pos2[2], pos2[3]
        d_pos = math.sqrt((x1 - x2) ** 2 + (y1 - y2) ** 2 + (z1 - z2) ** 2)
        init_d = self.init_distance * 1.2
        if init_d > d_pos:
            slope = 0.0
        else:
            slope = _div(self.MAX_RESIDUAL - self.MIN_RESIDUAL, 2.0 * init_d - init_d)
        residual = self.weight * slope * (d_pos - init_d)

        if slope == 0.0:
            row = _ZERO_ROW
        else:
            k = slope * self.weight
            row = (0.0, _div(k * (x1 - x2), d_pos), _div(k * (y1 - y2), d_pos), _div(k * (z1 - z2), d_pos))
        jac1 = row if p1 > 0 else None
        jac2 = _negate(row) if p2 < self.size - 1.0 else None
        return Evaluation(residual, (jac1, jac2))


@dataclass
class EquidistanceAnalyticUGV:
    """Exponential penalty on the spacing of ground poses beyond the initial spacing."""

    weight: float
    init_distance: float

    FACTOR = 10.0

    def evaluate(self, pos1: State, pos2: State) -> Evaluation:
        x1, y1, z1 = pos1[1], pos1[2], pos1[3]
        x2, y2, z2 = pos2[1], pos2[2], pos2[3]
        squared = (x1 - x2) ** 2 + (y1 - y2) ** 2 + (z1 - z2) ** 2
        d = 0.0 if -_NORM_THRESHOLD < squared < _NORM_THRESHOLD else math.sqrt(squared)

        if d < 0.001:
            return Evaluation(0.0, (_ZERO_ROW, _ZERO_ROW))

        scale = self.FACTOR * self.weight * math.exp(2.0 * d - 2.0 * self.init_distance)
        residual = self.weight * self.FACTOR * math.exp(2.0 * (d - self.init_distance))
        row = (
            0.0,
            scale * (2.0 * x1 - 2.0 * x2) / d,
            scale * (2.0 * y1 - 2.0 * y2) / d,
            scale * (2.0 * z1 - 2.0 * z2) / d,
        )
        return Evaluation(residual, (row, _negate(row)))


@dataclass
class SmoothnessAnalyticUAV:
    """Penalises aerial turning angles sharper than the bound, in 3D."""

    weight: float
    angle_bound: float
    fix_pos_init: int
    fix_pos_final: int

    MAX_RESIDUAL = 100.0
    MIN_RESIDUAL = 0.0

    def evaluate(self, pos1: State, pos2: State, pos3: State) -> Evaluation:
        p1, x1, y1, z1 = pos1[0], pos1[1], pos1[2], pos1[3]
        x2, y2, z2 = pos2[1], pos2[2], pos2[3]
        p3, x3, y3, z3 = pos3[0], pos3[1], pos3[2], pos3[3]

        dot = (x3 - x2) * (x2 - x1) + (y3 - y2) * (y2 - y1) + (z3 - z2) * (z2 - z1)
        arg1 = (x1 - x2) ** 2 + (y1 - y2) ** 2 + (z1 - z2) ** 2
        arg2 = (x2 - x3) ** 2 + (y2 - y3) ** 2 + (z2 - z3) ** 2
        n1, n2 = math.sqrt(arg1), math.sqrt(arg2)
        if n1 < _NORM_THRESHOLD or n2 < _NORM_THRESHOLD:
            cos_angle = 0.0
        else:
            cos_angle = dot / (n1 * n2)

        bound = math.cos(self.angle_bound)
        angle = bound if cos_angle > bound else cos_angle
        slope = (self.MAX_RESIDUAL - self.MIN_RESIDUAL) / (-1.0 - bound)
        residual = self.weight * slope * (angle - bound)

        k = slope * self.weight
        nn = n1 * n2

        # The curvature terms divide by arg1 and arg2 to the first power.
        def first(a1: float, a2: float, a3: float) -> float:
            return k * (_div(a2 - a3, nn) - _div((2.0 * a1 - 2.0 * a2) * dot, 2.0 * arg1 * n2))

        def middle(a1: float, a2: float, a3: float) -> float:
            return k * (
                _div(a1 - 2.0 * a2 + a3, nn)
                + _div((2.0 * a1 - 2.0 * a2) * dot, 2.0 * arg1 * n2)
                - _div((2.0 * a2 - 2.0 * a3) * dot, 2.0 * n1 * arg2)
            )

        def last(a1: float, a2: float, a3: float) -> float:
            return -k * (_div(a1 - a2, nn) - _div((2.0 * a2 - 2.0 * a3) * dot, 2.0 * n1 * arg2))

        coords = ((x1, x2, x3), (y1, y2, y3), (z1, z2, z3))
        jac1 = (0.0, *(first(*c) for c in coords)) if p1 > float(self.fix_pos_init) else None
        jac2 = (0.0, *(middle(*c) for c in coords))
        jac3 = (0.0, *(last(*c) for c in coords)) if p3 < float(self.fix_pos_final) else None
        return Evaluation(residual, (jac1, jac2, jac3))  # type: ignore[arg-type]


@dataclass
class SmoothnessAnalyticUGV:
    """Penalises ground turning angles sharper than the bound, in the horizontal plane."""

    weight: float
    angle_bound: float
    fixed_points: float = 0.0

    FACTOR = 100.0

    def evaluate(self, pos1: State, pos2: State, pos3: State) -> Evaluation:
        x1, y1 = pos1[1], pos1[2]
        x2, y2 = pos2[1], pos2[2]
        x3, y3 = pos3[1], pos3[2]

        dot = (x3 - x2) * (x2 - x1) + (y3 - y2) * (y2 - y1)
        arg1 = (x1 - x2) ** 2 + (y1 - y2) ** 2
        arg2 = (x2 - x3) ** 2 + (y2 - y3) ** 2
        n1, n2 = math.sqrt(arg1), math.sqrt(arg2)
        bound = math.cos(self.angle_bound)

        degenerate = n1 < _NORM_THRESHOLD or n2 < _NORM_THRESHOLD
        cos_angle = math.nan if degenerate else dot / (n1 * n2)
        if degenerate or cos_angle > bound:
            return Evaluation(0.0, (_ZERO_ROW, _ZERO_ROW, _ZERO_ROW))

        residual = self.weight * self.FACTOR * (cos_angle - 1.0)
        k = self.FACTOR * self.weight
        nn = n1 * n2

        def first(a1: float, a2: float, a3: float) -> float:
            return k * ((a2 - a3) / nn - (2.0 * a1 - 2.0 * a2) * dot / (2.0 * arg1 * n2))

        def middle(a1: float, a2: float, a3: float) -> float:
            return k * (
                (a1 - 2.0 * a2 + a3) / nn
                + (2.0 * a1 - 2.0 * a2) * dot / (2.0 * arg1 * n2)
                - (2.0 * a2 - 2.0 * a3) * dot / (2.0 * n1 * arg2)
            )

        def last(a1: float, a2: float, a3: float) -> float:
            return -k * ((a1 - a2) / nn - (2.0 * a2 - 2.0 * a3) * dot / (2.0 * n1 * arg2))

        xs, ys = (x1, x2, x3), (y1, y2, y3)
        jac1 = (0.0, first(*xs), first(*ys), 0.0)
        jac2 = (0.0, middle(*xs), middle(*ys), 0.0)
        jac3 = (0.0, last(*xs), last(*ys), 0.0)
        return Evaluation(residual, (jac1, jac2, jac3))