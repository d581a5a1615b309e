import math

import pytest

from marsupial.analytic import (
    EquidistanceAnalyticUAV,
    EquidistanceAnalyticUGV,
    Evaluation,
    SmoothnessAnalyticUAV,
    SmoothnessAnalyticUGV,
)

H = 1e-6


def numeric_derivative(cost, states, block, coord):
    """Central difference of the residual with respect to one coordinate."""
    plus = [list(s) for s in states]
    minus = [list(s) for s in states]
    plus[block][coord] += H
    minus[block][coord] -= H
    return (cost.evaluate(*plus).residual - cost.evaluate(*minus).residual) / (2 * H)


def assert_jacobians_match(cost, states, blocks, coords=(1, 2, 3)):
    result = cost.evaluate(*states)
    for block in blocks:
        for coord in coords:
            expected = numeric_derivative(cost, states, block, coord)
            assert result.jacobians[block][coord] == pytest.approx(expected, rel=1e-4, abs=1e-4)


# Equidistance, aerial vehicle


def test_equidistance_uav_within_spacing_is_free():
    cost = EquidistanceAnalyticUAV(weight=1.0, init_distance=1.0, size=10)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0))
    assert result.residual == 0.0
    assert result.jacobians == ((0.0, 0.0, 0.0, 0.0), (0.0, 0.0, 0.0, 0.0))


def test_equidistance_uav_beyond_spacing_is_positive_and_grows():
    cost = EquidistanceAnalyticUAV(weight=2.0, init_distance=1.0, size=10)
    near = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.5, 0.0, 0.0)).residual
    far = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 3.0, 0.0, 0.0)).residual
    assert 0.0 < near < far


def test_equidistance_uav_jacobians_match_finite_differences():
    cost = EquidistanceAnalyticUAV(weight=1.5, init_distance=1.0, size=10)
    states = [(1, 0.2, -0.3, 0.5), (2, 1.9, 0.8, 1.1)]
    assert_jacobians_match(cost, states, blocks=(0, 1))


def test_equidistance_uav_jacobians_are_opposite():
    cost = EquidistanceAnalyticUAV(weight=1.0, init_distance=1.0, size=10)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 2.0, 1.0, 0.5))
    first, second = result.jacobians
    assert all(a == pytest.approx(-b) for a, b in zip(first, second))


def test_equidistance_uav_fixed_ends_have_no_jacobian():
    cost = EquidistanceAnalyticUAV(weight=1.0, init_distance=1.0, size=3)
    result = cost.evaluate((0, 0.0, 0.0, 0.0), (2, 2.0, 0.0, 0.0))
    assert result.jacobians == (None, None)


# Equidistance, ground vehicle


def test_equidistance_ugv_coincident_points_are_free():
    cost = EquidistanceAnalyticUGV(weight=1.0, init_distance=1.0)
    result = cost.evaluate((1, 1.0, 1.0, 0.0), (2, 1.0, 1.0, 0.0))
    assert result == Evaluation(0.0, ((0.0,) * 4, (0.0,) * 4))


def test_equidistance_ugv_at_initial_spacing_gives_factor_times_weight():
    cost = EquidistanceAnalyticUGV(weight=1.0, init_distance=1.0)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0))
    assert result.residual == pytest.approx(EquidistanceAnalyticUGV.FACTOR)


def test_equidistance_ugv_jacobians_match_finite_differences():
    cost = EquidistanceAnalyticUGV(weight=0.7, init_distance=1.2)
    states = [(1, 0.1, 0.4, 0.0), (2, 1.0, 1.3, 0.2)]
    assert_jacobians_match(cost, states, blocks=(0, 1))


# Smoothness, aerial vehicle


def test_smoothness_uav_straight_line_is_free():
    cost = SmoothnessAnalyticUAV(weight=1.0, angle_bound=0.5, fix_pos_init=0, fix_pos_final=10)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 1.0, 1.0), (3, 2.0, 2.0, 2.0))
    assert result.residual == pytest.approx(0.0)


def test_smoothness_uav_sharper_turn_costs_more():
    cost = SmoothnessAnalyticUAV(weight=1.0, angle_bound=0.1, fix_pos_init=0, fix_pos_final=10)
    right_angle = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 1.0, 1.0, 0.0)).residual
    reversal = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 0.0, 0.0, 0.0)).residual
    assert 0.0 < right_angle < reversal


def test_smoothness_uav_reversal_reaches_maximum():
    cost = SmoothnessAnalyticUAV(weight=1.0, angle_bound=0.3, fix_pos_init=0, fix_pos_final=10)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 0.0, 0.0, 0.0))
    assert result.residual == pytest.approx(SmoothnessAnalyticUAV.MAX_RESIDUAL)


def test_smoothness_uav_jacobians_match_with_unit_segments():
    cost = SmoothnessAnalyticUAV(weight=1.0, angle_bound=0.1, fix_pos_init=0, fix_pos_final=10)
    states = [(1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 1.0, 0.6, 0.8)]
    assert_jacobians_match(cost, states, blocks=(0, 1, 2))


def test_smoothness_uav_fixed_ends_have_no_jacobian():
    cost = SmoothnessAnalyticUAV(weight=1.0, angle_bound=0.1, fix_pos_init=1, fix_pos_final=3)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 1.0, 1.0, 0.0))
    assert result.jacobians[0] is None
    assert result.jacobians[2] is None
    assert result.jacobians[1][0] == 0.0


# Smoothness, ground vehicle


def test_smoothness_ugv_straight_line_is_free():
    cost = SmoothnessAnalyticUGV(weight=1.0, angle_bound=0.5)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 2.0, 0.0), (3, 2.0, 4.0, 0.0))
    assert result == Evaluation(0.0, ((0.0,) * 4,) * 3)


def test_smoothness_ugv_degenerate_segment_is_free():
    cost = SmoothnessAnalyticUGV(weight=1.0, angle_bound=0.1)
    result = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 0.0, 0.0, 0.0), (3, 1.0, 1.0, 0.0))
    assert result.residual == 0.0
    assert all(row == (0.0,) * 4 for row in result.jacobians)


def test_smoothness_ugv_ignores_height():
    cost = SmoothnessAnalyticUGV(weight=1.0, angle_bound=0.1)
    flat = cost.evaluate((1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 1.0, 1.0, 0.0))
    hilly = cost.evaluate((1, 0.0, 0.0, 5.0), (2, 1.0, 0.0, -2.0), (3, 1.0, 1.0, 3.0))
    assert flat.residual == pytest.approx(hilly.residual)
    assert flat.residual < 0.0


def test_smoothness_ugv_jacobians_match_with_unit_segments():
    cost = SmoothnessAnalyticUGV(weight=0.5, angle_bound=0.1)
    states = [(1, 0.0, 0.0, 0.0), (2, 1.0, 0.0, 0.0), (3, 1.0 + math.cos(2.0), math.sin(2.0), 0.0)]
    assert_jacobians_match(cost, states, blocks=(0, 1, 2), coords=(1, 2))
    result = cost.evaluate(*states)
    assert all(row[3] == 0.0 and row[0] == 0.0 for row in result.jacobians)