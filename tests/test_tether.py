import math

import pytest

from marsupial.geometry import DistanceGrid
from marsupial.tether import (
    CatenaryLengthCost,
    TetherLengthCost,
    TetherObstacleCost,
    TetherParametersCost,
    grid_distance,
    num_points,
)


def _constant_grid(value):
    return DistanceGrid.from_function(lambda x, y, z: value, (21, 21, 21), 1.0, origin=(-5.0, -5.0, -5.0))


def test_num_points_per_unit_length():
    assert num_points(1.0) == 10


def test_num_points_rounds_half_away_from_zero():
    assert num_points(0.25) == 3


def test_grid_distance_outside_is_minus_one():
    grid = _constant_grid(2.0)
    assert grid_distance(grid, (100.0, 0.0, 0.0)) == -1.0


def test_grid_distance_inside_reads_grid():
    grid = _constant_grid(2.0)
    assert grid_distance(grid, (0.5, 1.5, -2.25)) == pytest.approx(2.0)


def test_tether_length_within_bounds_is_zero():
    cost = TetherLengthCost(weight=1.0, reel_height=0.0, max_length=10.0)
    residual = cost((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 0.0), (1, 1.5, 0.0, 1.0))
    assert residual == 0.0


def test_tether_length_too_long_is_penalised_more_for_smaller_max():
    params = (1, 1.5, 0.0, 1.0)
    loose = TetherLengthCost(1.0, 0.0, 4.0)((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 0.0), params)
    tight = TetherLengthCost(1.0, 0.0, 3.5)((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 0.0), params)
    assert 0.0 < loose < tight


def test_tether_length_shorter_than_line_below_max_is_negative():
    cost = TetherLengthCost(weight=1.0, reel_height=0.0, max_length=10.0)
    residual = cost((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 0.0), (1, 1.5, 0.0, 1000.0))
    assert residual < 0.0


def test_tether_parameters_zero_at_reel_when_vertex_at_reel():
    cost = TetherParametersCost(weight=2.0, reel_height=0.5)
    r1, _ = cost((0, 1.0, 1.0, 0.0), (1, 3.0, 1.0, 4.0), (1, 0.0, 0.5, 1.0))
    assert r1 == pytest.approx(0.0)


def test_tether_parameters_symmetric_catenary_gives_equal_residuals():
    cost = TetherParametersCost(weight=1.0, reel_height=0.0)
    r1, r2 = cost((0, 0.0, 0.0, 1.0), (1, 0.0, 4.0, 1.0), (1, 2.0, 0.3, 1.5))
    assert r1 == pytest.approx(r2)


def test_tether_parameters_scale_with_weight():
    ugv, uav, params = (0, 0.0, 0.0, 1.0), (1, 2.0, 1.0, 3.0), (1, 0.7, 0.4, 2.0)
    single = TetherParametersCost(1.0, 0.2)(ugv, uav, params)
    triple = TetherParametersCost(3.0, 0.2)(ugv, uav, params)
    assert triple == pytest.approx(tuple(3.0 * r for r in single))


def test_tether_obstacle_free_space_is_mean_inverse_distance():
    cost = TetherObstacleCost(weight=1.0, grid=_constant_grid(2.0), reel_height=0.0, safety_bound=0.5)
    residual = cost((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 1.0), (1, 1.5, 0.0, 10.0))
    assert residual == pytest.approx(0.5)


def test_tether_obstacle_outside_map():
    tiny = DistanceGrid.from_function(lambda x, y, z: 1.0, (2, 2, 2), 1.0, origin=(50.0, 50.0, 50.0))
    cost = TetherObstacleCost(weight=1.0, grid=tiny, reel_height=0.0, safety_bound=0.5)
    residual = cost((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 1.0), (1, 1.5, 0.0, 10.0))
    assert residual == pytest.approx(10000.0)


def test_tether_obstacle_close_is_costlier_than_free():
    params = (1, 1.5, 0.0, 10.0)
    near = TetherObstacleCost(1.0, _constant_grid(0.2), 0.0, 0.5)((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 1.0), params)
    far = TetherObstacleCost(1.0, _constant_grid(2.0), 0.0, 0.5)((0, 0.0, 0.0, 0.0), (1, 3.0, 0.0, 1.0), params)
    assert near > far
    assert near == pytest.approx(100.0 / 0.2)


def test_catenary_length_zero_when_long_enough():
    cost = CatenaryLengthCost(1.0, 1.0, (0.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    assert cost(5.0) == 0.0


def test_catenary_length_hits_max_residual_at_ninety_percent():
    cost = CatenaryLengthCost(2.0, 1.0, (0.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    required = cost.required_length(1.0)
    assert required == pytest.approx(1.01 * 2.0)
    assert cost(0.9 * required) == pytest.approx(2.0 * 100.0)


def test_catenary_length_approaches_min_residual_near_required():
    cost = CatenaryLengthCost(1.0, 1.0, (0.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    assert cost(1.999999) == pytest.approx(10.0, rel=1e-3)


def test_catenary_length_uses_safety_length_when_points_close():
    cost = CatenaryLengthCost(1.0, 3.0, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    assert cost.required_length(2.0) == 3.0
    assert cost(2.7) == pytest.approx(100.0)


def test_catenary_length_far_points_use_smaller_margin():
    cost = CatenaryLengthCost(1.0, 1.0, (0.0, 0.0, 0.0), (10.0, 0.0, 0.0))
    assert cost.required_length(5.0) == pytest.approx(1.005 * 10.0)


def test_catenary_length_logs_residual(tmp_path):
    cost = CatenaryLengthCost(1.0, 3.0, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), log_dir=tmp_path)
    cost(4.0)
    assert (tmp_path / "catenary_length.txt").read_text(encoding="utf-8") == "0/\n"
    assert math.isclose(cost(2.7), 100.0)