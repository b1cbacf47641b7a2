import numpy as np
import pytest

from frenetpath.free_space import BoundaryPoint, FreeSpace
from frenetpath.geometry import XYPosition
from frenetpath.path_costs import (
    N_PATH_CONTROL,
    N_PATH_STATE,
    FrontBoundaryConstraint,
    KappaConstraint,
    KappaCost,
    KappaRateCost,
    RearBoundaryConstraint,
    RefLCost,
    TargetStateCost,
)
from frenetpath.reference_line import ReferenceLine
from frenetpath.spline import Spline
from frenetpath.variable import DerivativesInfo, Node

EPS = 1e-5


def make_trajectory(states, controls=None, start=0.0):
    traj = []
    for i, state in enumerate(states):
        node = Node(N_PATH_STATE, N_PATH_CONTROL)
        node.state = np.array(state, dtype=float)
        if controls is not None:
            node.control = np.array(controls[i], dtype=float)
        node.step = i
        node.sample = start + float(i)
        traj.append(node)
    return traj


def perturb(traj, step, idx, delta, control=False):
    out = [n.copy() for n in traj]
    if control:
        out[step].control[idx] += delta
    else:
        out[step].state[idx] += delta
    return out


def numeric_grad(cost, traj, step, control=False):
    size = N_PATH_CONTROL if control else N_PATH_STATE
    grad = np.zeros(size)
    for i in range(size):
        plus = cost.cost_value(perturb(traj, step, i, EPS, control), step)
        minus = cost.cost_value(perturb(traj, step, i, -EPS, control), step)
        grad[i] = (plus - minus) / (2 * EPS)
    return grad


def numeric_hessian(cost, traj, step):
    h = 1e-4
    hess = np.zeros((N_PATH_STATE, N_PATH_STATE))
    for i in range(N_PATH_STATE):
        for j in range(N_PATH_STATE):
            def value(di, dj):
                t = perturb(traj, step, i, di)
                t = perturb(t, step, j, dj)
                return cost.cost_value(t, step)

            hess[i, j] = (value(h, h) - value(h, -h) - value(-h, h) + value(-h, -h)) / (4 * h * h)
    return hess


def analytic(cost, traj, step):
    der = DerivativesInfo.zeros(N_PATH_STATE, N_PATH_CONTROL)
    cost.calculate_derivatives(traj, step, der)
    return der


@pytest.fixture
def free_space():
    s_points = [float(i) for i in range(21)]
    x_s = Spline()
    x_s.set_points(s_points, s_points)
    y_s = Spline()
    y_s.set_points(s_points, [0.0] * len(s_points))
    line = ReferenceLine()
    line.initialize(x_s, y_s, 20.0)
    points = [
        BoundaryPoint(s=0.5 * i, lb_xy=XYPosition(0.5 * i, -3.0), ub_xy=XYPosition(0.5 * i, 3.0))
        for i in range(41)
    ]
    space = FreeSpace(line, points)
    space.update_circle_bounds(0.95)
    space.is_initialized = True
    return space


def test_cost_names():
    assert RefLCost(1.0).name == "ref_l_cost_"
    assert KappaCost(1.0, "a").name == "kappa_cost_a"
    assert KappaRateCost(1.0).name == "kappa_rate_cost_"
    assert TargetStateCost(0, 0, 1, 1, "end_state").name == "target_state_cost_end_state"
    assert KappaConstraint(0.5, 2.5).name == "kappa_constraint_"


def test_ref_l_cost_zero_on_line_and_symmetric():
    cost = RefLCost(2.0)
    traj = make_trajectory([[0.0, 0.3, 0.1], [1.5, 0.0, 0.0], [-1.5, 0.0, 0.0]])
    assert cost.cost_value(traj, 0) == 0.0
    assert cost.cost_value(traj, 1) == pytest.approx(cost.cost_value(traj, 2))
    assert cost.cost_value(traj, 1) > 0.0


@pytest.mark.parametrize("cost", [RefLCost(3.0), KappaCost(7.0), TargetStateCost(0.4, -0.2, 0.5, 20.0)])
def test_quadratic_costs_match_finite_differences(cost):
    traj = make_trajectory([[0.7, 0.1, -0.05], [0.2, -0.3, 0.15]])
    for step in range(2):
        der = analytic(cost, traj, step)
        np.testing.assert_allclose(der.lx, numeric_grad(cost, traj, step), atol=1e-6)
        np.testing.assert_allclose(der.lxx, numeric_hessian(cost, traj, step), atol=1e-4)


def test_target_state_cost_minimum_at_target():
    cost = TargetStateCost(0.4, -0.2, 0.5, 20.0)
    traj = make_trajectory([[0.4, -0.2, 0.9]])
    assert cost.cost_value(traj, 0) == 0.0
    np.testing.assert_allclose(analytic(cost, traj, 0).lx, np.zeros(3))


def test_kappa_rate_cost_gradient_and_last_step():
    cost = KappaRateCost(50.0)
    traj = make_trajectory([[0, 0, 0]] * 3, controls=[[0.1], [-0.2], [0.3]])
    der = analytic(cost, traj, 1)
    np.testing.assert_allclose(der.lu, numeric_grad(cost, traj, 1, control=True), atol=1e-5)
    assert der.luu[0, 0] == pytest.approx(50.0)
    with pytest.raises(IndexError):
        cost.cost_value(traj, 2)
    with pytest.raises(IndexError):
        analytic(cost, traj, 2)


def test_step_out_of_range_raises():
    traj = make_trajectory([[0, 0, 0]])
    with pytest.raises(IndexError):
        RefLCost(1.0).cost_value(traj, 1)
    with pytest.raises(IndexError):
        KappaCost(1.0).cost_value(traj, 5)


def test_derivatives_accumulate():
    traj = make_trajectory([[1.0, 0.0, 0.5]])
    der = DerivativesInfo.zeros(N_PATH_STATE, N_PATH_CONTROL)
    RefLCost(2.0).calculate_derivatives(traj, 0, der)
    KappaCost(4.0).calculate_derivatives(traj, 0, der)
    single = analytic(RefLCost(2.0), traj, 0)
    assert der.lx[0] == pytest.approx(single.lx[0])
    assert der.lxx[0, 0] == pytest.approx(single.lxx[0, 0])
    assert der.lx[2] == pytest.approx(analytic(KappaCost(4.0), traj, 0).lx[2])


def test_kappa_constraint_symmetric_and_increasing():
    cost = KappaConstraint(0.5, 2.5)
    traj = make_trajectory([[0, 0, 0.1], [0, 0, -0.1], [0, 0, 0.3]])
    assert cost.cost_value(traj, 0) == pytest.approx(cost.cost_value(traj, 1))
    assert cost.cost_value(traj, 2) > cost.cost_value(traj, 0)


def test_kappa_constraint_derivatives():
    cost = KappaConstraint(0.5, 2.5, max_kappa=0.2)
    traj = make_trajectory([[0.0, 0.0, 0.15]])
    der = analytic(cost, traj, 0)
    np.testing.assert_allclose(der.lx, numeric_grad(cost, traj, 0), atol=1e-6)
    np.testing.assert_allclose(der.lxx, numeric_hessian(cost, traj, 0), atol=1e-4)


def test_rear_boundary_requires_update(free_space):
    cost = RearBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.0, 0.0, 0.0]] * 3, start=2.0)
    with pytest.raises(IndexError):
        cost.cost_value(traj, 0)


def test_rear_boundary_grows_towards_bounds(free_space):
    cost = RearBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.0, 0, 0], [1.5, 0, 0], [-1.5, 0, 0]], start=2.0)
    cost.update(traj)
    assert len(cost.bounds) == 3
    assert cost.bounds[0].lb_l < 0.0 < cost.bounds[0].ub_l
    assert cost.cost_value(traj, 1) > cost.cost_value(traj, 0)
    assert cost.cost_value(traj, 2) > cost.cost_value(traj, 0)
    assert cost.cost_value(traj, 1) == pytest.approx(cost.cost_value(traj, 2))


def test_rear_boundary_bounds_kept_after_first_update(free_space):
    cost = RearBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.5, 0, 0]] * 3, start=2.0)
    cost.update(traj)
    before = cost.cost_value(traj, 1)
    cost.update(make_trajectory([[0.5, 0, 0]] * 3, start=30.0))
    assert cost.cost_value(traj, 1) == pytest.approx(before)


def test_rear_boundary_derivatives(free_space):
    cost = RearBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.8, 0.1, 0.0], [-0.6, 0.0, 0.1]], start=3.0)
    cost.update(traj)
    for step in range(2):
        der = analytic(cost, traj, step)
        np.testing.assert_allclose(der.lx, numeric_grad(cost, traj, step), rtol=1e-4, atol=1e-7)
        np.testing.assert_allclose(der.lxx, numeric_hessian(cost, traj, step), rtol=1e-3, atol=1e-4)


def test_front_boundary_update_projects_front(free_space):
    cost = FrontBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.5, 0.0, 0.0], [0.2, 0.1, 0.0]], start=2.0)
    cost.update(traj)
    assert len(cost.infos) == 2
    info = cost.infos[0]
    assert info.front_sl.s == pytest.approx(2.0 + cost._vehicle.rear_axle_to_front, abs=1e-6)
    assert info.front_sl.l == pytest.approx(0.5, abs=1e-6)
    assert info.lb < info.front_sl.l < info.ub


def test_front_boundary_derivatives(free_space):
    cost = FrontBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.6, 0.1, 0.0], [-0.4, -0.05, 0.0]], start=2.0)
    cost.update(traj)
    for step in range(2):
        der = analytic(cost, traj, step)
        np.testing.assert_allclose(der.lx, numeric_grad(cost, traj, step), rtol=1e-4, atol=1e-6)
        np.testing.assert_allclose(der.lxx, numeric_hessian(cost, traj, step), rtol=1e-3, atol=1e-4)


def test_front_boundary_larger_heading_raises_cost(free_space):
    cost = FrontBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.0, 0.0, 0.0], [0.0, 0.3, 0.0]], start=2.0)
    cost.update(traj)
    assert cost.cost_value(traj, 1) > cost.cost_value(traj, 0)


def test_front_boundary_step_out_of_range(free_space):
    cost = FrontBoundaryConstraint(free_space, 0.5, 2.5)
    traj = make_trajectory([[0.0, 0.0, 0.0]] * 2, start=2.0)
    cost.update(traj)
    with pytest.raises(IndexError):
        cost.cost_value(traj, 2)