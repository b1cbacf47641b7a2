"""Generic optimal-control problem: costs, barrier functions and dynamics."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from frenetpath.variable import DerivativesInfo, Node, Trajectory


class Cost(ABC):
    """A named cost term evaluated at individual trajectory steps."""

    def __init__(self, name: str) -> None:
        self._name = name
        self.updated_steps = 0

    @property
    def name(self) -> str:
        return self._name

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        """Cost contributed at the given step; zero unless a subclass says otherwise."""
        if step < 0 or step >= len(trajectory):
            raise IndexError(f"step {step} out of range for {len(trajectory)} steps")
        return 0.0

    @abstractmethod
    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        """Add this cost's derivatives at the given step to derivatives."""

    def update(self, trajectory: Trajectory) -> None:
        """Refresh state that depends on the current trajectory.

        The base cost only records how many steps it was last refreshed with.
        """
        self.updated_steps = len(trajectory)


class ExpBarrierFunction:
    """Exponential barrier q1 * exp(q2 * x) and its chain-rule derivatives."""

    def __init__(self, q1: float, q2: float) -> None:
        self.q1 = q1
        self.q2 = q2

    def value(self, x: float) -> float:
        return self.q1 * math.exp(self.q2 * x)

    def dx(self, x: float, dx) -> np.ndarray:
        """Gradient given the gradient dx of the barrier argument."""
        return self.q1 * self.q2 * math.exp(self.q2 * x) * np.asarray(dx, dtype=float)

    def ddx(self, x: float, dx, ddx) -> np.ndarray:
        """Hessian given the gradient dx and Hessian ddx of the barrier argument."""
        dx = np.asarray(dx, dtype=float)
        ddx = np.asarray(ddx, dtype=float)
        e = math.exp(self.q2 * x)
        return self.q1 * self.q2 * e * ddx + self.q1 * self.q2 * self.q2 * e * np.outer(dx, dx)


class Dynamics(ABC):
    """Discrete system dynamics and their linearisation."""

    @abstractmethod
    def move_forward(self, node: Node, move_dist: float) -> np.ndarray:
        """Next state after moving move_dist from node."""

    @abstractmethod
    def dx(self, node: Node, move_dist: float) -> np.ndarray:
        """Jacobian of the next state with respect to the state."""

    @abstractmethod
    def du(self, node: Node, move_dist: float) -> np.ndarray:
        """Jacobian of the next state with respect to the control."""


CostMap = dict[str, Cost]


class ProblemManager:
    """Holds the knots, per-step costs, dynamics and initial trajectory of a problem."""

    def __init__(self, n_state: int, n_control: int) -> None:
        self.n_state = n_state
        self.n_control = n_control
        self.knots: list[float] = []
        self.costs: list[CostMap] = []
        self.dynamics: Dynamics | None = None
        self.init_trajectory: Trajectory = []
        # Costs whose internal state must be refreshed as the trajectory changes.
        self.dynamic_costs: list[Cost] = []
        self.problem_formulated = False

    @property
    def num_steps(self) -> int:
        return len(self.knots)

    def add_cost_item(self, cost_item: Cost, step: int) -> None:
        """Register a cost at a step; replaces any cost of the same name there."""
        if step < 0 or step >= len(self.costs):
            raise IndexError(
                f"cannot add cost at step {step}: total steps {self.num_steps}"
            )
        self.costs[step][cost_item.name] = cost_item

    def calculate_total_cost(self, trajectory: Trajectory) -> float:
        """Sum of all costs over the steps shared by the problem and the trajectory."""
        size = min(len(self.costs), len(trajectory))
        return sum(
            cost.cost_value(trajectory, i)
            for i in range(size)
            for cost in self.costs[i].values()
        )

    def update_dynamic_costs(self, trajectory: Trajectory) -> None:
        for cost in self.dynamic_costs:
            cost.update(trajectory)

    def calculate_derivatives(self, trajectory: Trajectory, step: int) -> DerivativesInfo:
        """Accumulated cost derivatives at a step; dynamics terms are left at zero."""
        if step < 0 or step >= len(self.costs):
            raise IndexError(f"step {step} out of range for {len(self.costs)} steps")
        derivatives = DerivativesInfo.zeros(self.n_state, self.n_control)
        for cost in self.costs[step].values():
            cost.calculate_derivatives(trajectory, step, derivatives)
        return derivatives