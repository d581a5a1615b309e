# marsupial

Cost terms for planning the joint trajectory of a marsupial robot team: a
ground vehicle (UGV) carrying a reel, and an aerial vehicle (UAV) tied to it by
a tether. Each term scores one part of a candidate trajectory (spacing,
smoothness, speed, obstacle clearance, terrain contact, tether shape) and
returns plain floats, so it can be handed to any least-squares or
general-purpose optimizer.

The package has no dependencies beyond the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## State layout

- Positions are sequences `(index, x, y, z)`.
- Time states are `(index, dt)`; tether length states are `(index, length)`.
- Rotation states are `(index, qx, qy, qz, qw)`.
- Tether (catenary) parameters are `(index, x0, y0, a)`, the catenary lying in
  the vertical plane through the reel and the aerial vehicle.

Index 0 holds the node number; several terms use it to tell fixed nodes from
free ones.

## Modules

- `marsupial.geometry`: `TrilinearParams` (`value`, `gradient`),
  `DistanceGrid` (a regular grid of obstacle distances with `is_into_map`,
  `point_dist_interpolation` and `from_function`), `quaternion_to_yaw`,
  `yaw_to_quaternion`, `safe_distance` and `record_residual`, which appends a
  residual to a log file in a given directory.
- `marsupial.tether`: `TetherLengthCost`, `TetherParametersCost`,
  `TetherObstacleCost`, `CatenaryLengthCost`, and the helpers `num_points` and
  `grid_distance`.
- `marsupial.motion`: `VelocityCostUAV`, `VelocityCostUGV`,
  `AccelerationCostUAV`, `AccelerationCostUGV`, `TimeCost`,
  `DynamicCatenaryCost`.
- `marsupial.shape`: `EquidistanceCostUAV`, `EquidistanceCostUGV`,
  `SmoothnessCostUAV`, `SmoothnessCostUGV`, `RotationCostUGV`.
- `marsupial.analytic`: spacing and smoothness terms with hand-derived
  Jacobians, each `evaluate` returning an `Evaluation` (a residual and one
  Jacobian row per state, `None` where a fixed state is left unset):
  `EquidistanceAnalyticUAV`, `EquidistanceAnalyticUGV`,
  `SmoothnessAnalyticUAV`, `SmoothnessAnalyticUGV`.
- `marsupial.obstacles`: clearance terms working from a `DistanceGrid` or from
  an obstacle point cloud given as `(x, y, z)` points: `ObstacleDistanceUAV`,
  `ObstacleCostUAV`, `ObstacleCostUAVNearest`, `ObstacleAnalyticUAV`,
  `ObstacleCostUGV`, `ObstacleAnalyticUGV`.
- `marsupial.terrain`: `TraversabilityCostUGV` and `TraversabilityAnalyticUGV`
  against a cloud of traversable points, and the ray checks `RayHit`,
  `ray_cast_through_uav`, `ray_cast_through_ugv`, `ObstaclesThroughCostUAV` and
  `ObstaclesThroughCostUGV`. Ray casting is done by a function you supply,
  `cast_ray(start, direction) -> (hit, end)`.

Many terms take an optional `log_dir`; when it is set, each residual is
appended to a named text file in that directory.

## Example

```python
from marsupial.geometry import DistanceGrid
from marsupial.motion import VelocityCostUAV
from marsupial.obstacles import ObstacleCostUAV

speed = VelocityCostUAV(weight=1.0, init_velocity=1.0)
print(speed((0, 0.0, 0.0, 0.0), (1, 3.0, 4.0, 0.0), (1, 2.0)))  # 1.5

grid = DistanceGrid.from_function(lambda x, y, z: z, shape=(5, 5, 5), resolution=0.5)
clearance = ObstacleCostUAV(weight=1.0, safety_bound=1.0, grid=grid)
print(clearance((0, 1.0, 1.0, 0.5)))
```

## What this package does not do

It provides cost terms only. It does not include an optimizer, does not build
or solve the full trajectory problem, does not compute catenary shapes by
bisection or manage an occupancy map (ray casting is left to the caller), and
does not read, edit or write mission files.