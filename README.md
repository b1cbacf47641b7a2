# frenetpath

A library for planning a path in the Frenet frame of a reference line. A pair of
cubic splines `x(s)` and `y(s)` describes the reference line. Boundary points
along the line give the free space around it. The path is found with an iterative
LQR (iLQR) solver. The state at each step is the lateral offset `l`, the heading
difference to the line and the curvature `kappa`. The control is the curvature
rate. The costs penalise lateral offset, curvature and curvature rate, and pull the
last step towards the end state. Exponential barrier terms keep the curvature
within limits and keep the rear axle and the front of the vehicle inside the free
space.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `frenetpath.spline`
  - `Spline` is a cubic or linear interpolator. Call `set_points(x, y, cubic_spline)`
    with at least three points and strictly increasing `x`. `set_boundary(...)` sets
    the boundary conditions and must be called before the points are set. The
    conditions are given as `BoundaryType.FIRST_DERIV` or
    `BoundaryType.SECOND_DERIV`, and `set_boundary` can also force linear
    extrapolation.
  - Evaluate the spline with `spline(x)` and get a derivative with
    `spline.deriv(order, x)`. Outside the knots the spline extrapolates
    quadratically, or linearly when forced.
  - `BandMatrix` is the banded LU solver behind the spline. It has
    `lu_decompose`, `l_solve`, `r_solve` and `lu_solve`, and its entries are read
    and written as `m[i, j]`.
- `frenetpath.geometry`
  - Data classes `XYPosition`, `SLPosition` and `PathPoint`. A `PathPoint` has
    x, y, s, l, theta, kappa, dkappa and more.
  - `distance(p1, p2)`.
  - `constrain_angle(angle)`, which wraps an angle into [-pi, pi].
  - `local_to_global(ref, target)`.
- `frenetpath.reference_line`
  - `ReferenceLine`. Set it up with `initialize(x_s, y_s, length)`.
  - `get_reference_point(s)` returns the position, heading and curvature at `s`.
    `s` is clamped to the line.
  - `get_xy_by_sl(sl)` converts an (s, l) position to (x, y).
  - `get_projection(xy)` projects a point onto the line. It searches a 1 m grid
    first and then refines with Newton's method.
  - `get_projection_by_newton(xy, hint_s)` runs Newton's method from a given
    starting `s`.
- `frenetpath.free_space`
  - `BoundaryPoint` holds the lateral limits at one `s`.
  - `FreeSpace(reference_line, boundary_points)` keeps the boundary points sorted
    by `s`.
  - `get_l_bound_for_circle(s, r)` returns `(lower, upper)`, or `None` when `s` is
    off the line.
  - `update_circle_bounds(r)` precomputes these bounds at every boundary point.
  - `get_circle_bound(s)` interpolates linearly between the precomputed bounds.
  - The `is_initialized` flag must be set to `True` before a path problem is
    formulated.
- `frenetpath.variable`
  - `Node` holds a state vector, a control vector, a step and a sample position.
  - `DerivativesInfo.zeros(n_state, n_control)`.
- `frenetpath.problem_manager`
  - The abstract `Cost` and `Dynamics` classes.
  - `ExpBarrierFunction(q1, q2)`, which computes `q1 * exp(q2 * x)` and its
    derivatives.
  - `ProblemManager`, which holds the knots, the costs for each step, the dynamics
    and the initial trajectory. It computes the total cost and the derivatives for
    each step.
- `frenetpath.path_costs`
  - The costs `RefLCost`, `KappaCost`, `KappaRateCost` and `TargetStateCost`.
  - The barrier constraints `RearBoundaryConstraint`, `FrontBoundaryConstraint`
    and `KappaConstraint`.
- `frenetpath.path_problem_manager`
  - `FrenetPathDynamics`.
  - `PathConfig`, whose `delta_s` defaults to 0.3.
  - `PathProblemManager`. Its `formulate_path_problem(free_space, reference_line,
    init_state, end_state)` builds the knots, an initial guess with pure-pursuit
    curvature, and all the costs.
  - `PathProblemManager.transform_to_path_points(reference_line, trajectory)`
    turns a solved trajectory into `PathPoint`s.
- `frenetpath.ilqr`
  - `ILQRSolver(problem_manager, config)` is the solver. `solve()` returns an
    `ILQRSolveStatus`, and `final_trajectory()` returns a copy of the best
    trajectory.
  - `ILQRConfig` holds the step, regularisation and convergence settings.
  - `ILQRSolveStatus` and `LQRSolveStatus` are the status enums.
- `frenetpath.config`
  - `VehicleParams` holds the vehicle width, length, rear-axle-to-centre distance
    and curvature limits. The path costs and the problem manager use it.
  - `PlanningFlags` holds a wider set of planning settings with their defaults.
    Its `validate()` raises `ValueError` for an unknown `smoothing_method`
    (`TENSION`, `TENSION2`) or `optimization_method` (`K`, `KP`, `KCP`).
- `frenetpath.vehicle_state`
  - The data classes `State`, `SlState` and `Circle`.
  - `SingleBound` and `VehicleStateBound`, for the front, rear and centre bounds.
  - `VehicleState`, which holds the start state, the target state and the initial
    (offset, heading error).

## Example

```python
from frenetpath.spline import Spline
from frenetpath.reference_line import ReferenceLine
from frenetpath.free_space import BoundaryPoint, FreeSpace
from frenetpath.geometry import PathPoint, XYPosition
from frenetpath.path_problem_manager import PathProblemManager
from frenetpath.ilqr import ILQRSolver, ILQRSolveStatus

s = [float(i) for i in range(0, 61, 5)]
x_s, y_s = Spline(), Spline()
x_s.set_points(s, s)
y_s.set_points(s, [0.0] * len(s))

line = ReferenceLine()
line.initialize(x_s, y_s, s[-1])

points = [
    BoundaryPoint(s=v, lb_l=-3.0, ub_l=3.0,
                  lb_xy=XYPosition(v, -3.0), ub_xy=XYPosition(v, 3.0))
    for v in s
]
free_space = FreeSpace(line, points)
free_space.update_circle_bounds(1.0)
free_space.is_initialized = True

manager = PathProblemManager()
manager.formulate_path_problem(
    free_space, line,
    PathPoint(x=0.0, y=0.5), PathPoint(x=50.0, y=0.0),
)
solver = ILQRSolver(manager)
if solver.solve() is ILQRSolveStatus.SOLVED:
    path = PathProblemManager.transform_to_path_points(line, solver.final_trajectory())
```

## What it does not do

- It does not build or smooth a reference line from raw points. You supply the
  splines yourself.
- It does not read occupancy grids or check for collisions. You supply the free
  space as `BoundaryPoint`s.
- It has no command-line tool.
- Most fields of `PlanningFlags` are kept only as documented defaults. The
  smoothing, searching and weight settings are not used by any module here.

## Logging

`frenetpath.ilqr` and `frenetpath.path_problem_manager` log through the standard
`logging` module under their module names. Solver progress is logged at DEBUG
level.