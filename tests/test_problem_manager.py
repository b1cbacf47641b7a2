import math

import numpy as np
import pytest

from frenetpath.problem_manager import Cost, Dynamics, ExpBarrierFunction, ProblemManager
from frenetpath.variable import Node


class QuadCost(Cost):
    def __init__(self, weight, name="quad"):
        super().__init__(name)
        self.weight = weight
        self.updates = 0

    def cost_value(self, trajectory, step):
        x = trajectory[step].state[0]
        return 0.5 * self.weight * x * x

    def calculate_derivatives(self, trajectory, step, derivatives):
        x = trajectory[step].state[0]
        derivatives.lx[0] += self.weight * x
        derivatives.lxx[0, 0] += self.weight

    def update(self, trajectory):
        self.updates += 1


class SilentCost(Cost):
    def calculate_derivatives(self, trajectory, step, derivatives):
        derivatives.lu[0] += 1.0


def _trajectory(values):
    nodes = []
    for i, v in enumerate(values):
        node = Node(2, 1)
        node.state[0] = v
        node.step = i
        nodes.append(node)
    return nodes


def _manager(steps):
    pm = ProblemManager(2, 1)
    pm.knots = [float(i) for i in range(steps)]
    pm.costs = [{} for _ in range(steps)]
    return pm


def test_cost_is_abstract():
    with pytest.raises(TypeError):
        Cost("x")


def test_default_cost_value_is_zero():
    cost = SilentCost("silent")
    assert cost.name == "silent"
    assert cost.cost_value(_trajectory([1.0]), 0) == 0.0


def test_dynamics_is_abstract():
    with pytest.raises(TypeError):
        Dynamics()


def test_barrier_value_at_zero_is_q1():
    assert ExpBarrierFunction(0.5, 2.5).value(0.0) == 0.5


def test_barrier_gradient_matches_finite_difference():
    barrier = ExpBarrierFunction(0.5, 2.5)
    grad = np.array([1.0, -2.0, 0.0])
    x, eps = 0.3, 1e-6
    expected = (barrier.value(x + eps) - barrier.value(x - eps)) / (2 * eps)
    np.testing.assert_allclose(barrier.dx(x, grad), expected * grad, rtol=1e-6)


def test_barrier_hessian_structure():
    barrier = ExpBarrierFunction(0.5, 2.5)
    grad = np.array([1.0, 2.0])
    result = barrier.ddx(0.0, grad, np.zeros((2, 2)))
    np.testing.assert_allclose(result, result.T)
    assert np.linalg.matrix_rank(result) == 1
    hess = np.eye(2)
    with_hess = barrier.ddx(0.0, grad, hess)
    np.testing.assert_allclose(with_hess - result, barrier.dx(0.0, [1.0, 0.0])[0] * hess)


def test_add_cost_item_out_of_range():
    pm = _manager(2)
    with pytest.raises(IndexError):
        pm.add_cost_item(QuadCost(1.0), 2)


def test_add_cost_item_replaces_same_name():
    pm = _manager(2)
    first, second = QuadCost(1.0), QuadCost(2.0)
    pm.add_cost_item(first, 0)
    pm.add_cost_item(second, 0)
    assert pm.costs[0] == {"quad": second}
    assert pm.num_steps == 2


def test_total_cost_sums_over_steps():
    pm = _manager(3)
    cost = QuadCost(2.0)
    for step in range(3):
        pm.add_cost_item(cost, step)
    trajectory = _trajectory([1.0, 2.0, 3.0])
    expected = sum(cost.cost_value(trajectory, i) for i in range(3))
    assert pm.calculate_total_cost(trajectory) == pytest.approx(expected)


def test_total_cost_uses_shorter_of_costs_and_trajectory():
    pm = _manager(3)
    cost = QuadCost(2.0)
    for step in range(3):
        pm.add_cost_item(cost, step)
    trajectory = _trajectory([1.0, 2.0])
    assert pm.calculate_total_cost(trajectory) == pytest.approx(
        cost.cost_value(trajectory, 0) + cost.cost_value(trajectory, 1)
    )


def test_calculate_derivatives_accumulates():
    pm = _manager(2)
    pm.add_cost_item(QuadCost(2.0, "a"), 1)
    pm.add_cost_item(QuadCost(3.0, "b"), 1)
    pm.add_cost_item(SilentCost("c"), 1)
    d = pm.calculate_derivatives(_trajectory([0.0, 1.5]), 1)
    assert d.lx[0] == pytest.approx(5.0 * 1.5)
    assert d.lxx[0, 0] == pytest.approx(5.0)
    assert d.lu[0] == 1.0
    assert not d.fx.any()


def test_calculate_derivatives_out_of_range():
    with pytest.raises(IndexError):
        _manager(1).calculate_derivatives(_trajectory([0.0]), 1)


def test_update_dynamic_costs_calls_update():
    pm = _manager(1)
    cost = QuadCost(1.0)
    pm.dynamic_costs.append(cost)
    pm.update_dynamic_costs(_trajectory([0.0]))
    pm.update_dynamic_costs(_trajectory([0.0]))
    assert cost.updates == 2


def test_new_manager_is_empty():
    pm = ProblemManager(3, 1)
    assert pm.num_steps == 0
    assert pm.problem_formulated is False
    assert pm.dynamics is None
    assert pm.calculate_total_cost([]) == 0.0
    assert math.isclose(pm.calculate_total_cost(_trajectory([4.0])), 0.0)