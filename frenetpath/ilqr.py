"""Iterative LQR solver for problems described by a ProblemManager."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

from frenetpath.problem_manager import ProblemManager
from frenetpath.variable import DerivativesInfo, Trajectory

logger = logging.getLogger(__name__)

EPS = 1e-5


class ILQRSolveStatus(Enum):
    """Overall outcome of an iLQR solve."""

    SOLVED = auto()
    REACHED_MAX_ITERATION = auto()
    REACHED_MAX_MU = auto()
    PROBLEM_NOT_FORMULATED = auto()


class LQRSolveStatus(Enum):
    """State of a single iLQR iteration."""

    RUNNING = auto()
    CONVERGED = auto()
    BACKWARD_PASS_FAIL = auto()
    FORWARD_PASS_FAIL = auto()
    FORWARD_PASS_SMALL_STEP = auto()


@dataclass
class ILQRConfig:
    """Tuning parameters of the iLQR solver."""

    min_alpha: float = 0.01
    accept_step_threshold: float = 0.5
    max_iter: int = 150
    delta_0: float = 2.0
    min_mu: float = 1e-6
    max_mu: float = 1000.0
    convergence_threshold: float = 1e-2


def _copy_trajectory(trajectory: Trajectory) -> Trajectory:
    return [node.copy() for node in trajectory]


class ILQRSolver:
    """Optimises the problem's initial trajectory with regularised iLQR."""

    def __init__(self, problem_manager: ProblemManager, config: ILQRConfig | None = None) -> None:
        self._pm = problem_manager
        self._config = config or ILQRConfig()
        self._trajectory = _copy_trajectory(problem_manager.init_trajectory)
        self._num_steps = problem_manager.num_steps
        if len(self._trajectory) != self._num_steps:
            raise ValueError(
                f"initial trajectory has {len(self._trajectory)} nodes, "
                f"problem has {self._num_steps} steps"
            )
        n_state, n_control = problem_manager.n_state, problem_manager.n_control
        self._k = [np.zeros(n_control) for _ in range(self._num_steps)]
        self._K = [np.zeros((n_control, n_state)) for _ in range(self._num_steps)]
        self._derivatives = [
            DerivativesInfo.zeros(n_state, n_control) for _ in range(self._num_steps)
        ]
        self._approx_decay = (0.0, 0.0)
        self._mu = 0.0
        self._delta = 0.0
        self._iter = 0
        self._status = LQRSolveStatus.RUNNING
        self._pm.update_dynamic_costs(self._trajectory)
        self._current_cost = self._pm.calculate_total_cost(self._pm.init_trajectory)

    @property
    def current_cost(self) -> float:
        return self._current_cost

    @property
    def iterations(self) -> int:
        return self._iter

    def final_trajectory(self) -> Trajectory:
        """Copy of the best trajectory found so far."""
        return _copy_trajectory(self._trajectory)

    def solve(self) -> ILQRSolveStatus:
        """Run iterations until convergence, the iteration limit or the mu limit."""
        if not self._pm.problem_formulated or not self._trajectory:
            return ILQRSolveStatus.PROBLEM_NOT_FORMULATED
        self._iter = 0
        self._status = LQRSolveStatus.RUNNING
        while self._iter < self._config.max_iter:
            self._calculate_derivatives()
            self._backward_pass()
            self._forward_pass()
            if self._status in (
                LQRSolveStatus.BACKWARD_PASS_FAIL,
                LQRSolveStatus.FORWARD_PASS_FAIL,
            ):
                self._increase_mu()
            elif self._status is LQRSolveStatus.RUNNING:
                self._decrease_mu()
            if self._mu > self._config.max_mu:
                return ILQRSolveStatus.REACHED_MAX_MU
            if self._status is LQRSolveStatus.CONVERGED:
                return ILQRSolveStatus.SOLVED
            self._iter += 1
        return ILQRSolveStatus.REACHED_MAX_ITERATION

    def _increase_mu(self) -> None:
        cfg = self._config
        self._delta = max(cfg.delta_0, self._delta * cfg.delta_0)
        self._mu = max(cfg.min_mu, self._mu * self._delta)
        logger.debug("Iter %d, increase mu to %g", self._iter, self._mu)

    def _decrease_mu(self) -> None:
        cfg = self._config
        self._delta = min(1.0 / cfg.delta_0, self._delta / cfg.delta_0)
        self._mu *= self._delta
        if self._mu < cfg.min_mu:
            self._mu = 0.0
        logger.debug("Iter %d, decrease mu to %g", self._iter, self._mu)

    def _calculate_derivatives(self) -> None:
        # Derivatives only need refreshing when the trajectory has changed.
        if self._status not in (LQRSolveStatus.RUNNING, LQRSolveStatus.FORWARD_PASS_SMALL_STEP):
            self._status = LQRSolveStatus.RUNNING
            return
        self._status = LQRSolveStatus.RUNNING
        self._pm.update_dynamic_costs(self._trajectory)
        knots = self._pm.knots
        dynamics = self._pm.dynamics
        for i, node in enumerate(self._trajectory):
            derivative = self._pm.calculate_derivatives(self._trajectory, i)
            if i < self._num_steps - 1:
                move_dist = knots[i + 1] - knots[i]
                derivative.fx = np.asarray(dynamics.dx(node, move_dist), dtype=float)
                derivative.fu = np.asarray(dynamics.du(node, move_dist), dtype=float)
            self._derivatives[i] = derivative

    def _backward_pass(self) -> None:
        vx = self._derivatives[-1].lx.copy()
        vxx = self._derivatives[-1].lxx.copy()
        decay_first = 0.0
        decay_second = 0.0
        identity = np.eye(self._pm.n_control)
        for i in reversed(range(self._num_steps - 1)):
            d = self._derivatives[i]
            qx = d.lx + d.fx.T @ vx
            qu = d.lu + d.fu.T @ vx
            qxx = d.lxx + d.fx.T @ vxx @ d.fx
            quu = d.luu + d.fu.T @ vxx @ d.fu + self._mu * identity
            qux = d.lux + d.fu.T @ vxx @ d.fx

            try:
                np.linalg.cholesky(quu)
            except np.linalg.LinAlgError:
                logger.debug("[Backward pass] Non-PD quu at index %d, mu %g", i, self._mu)
                self._status = LQRSolveStatus.BACKWARD_PASS_FAIL
                return

            quu_inv = np.linalg.inv(quu)
            k = -quu_inv @ qu
            big_k = -quu_inv @ qux
            self._k[i] = k
            self._K[i] = big_k

            vx = qx + big_k.T @ quu @ k + big_k.T @ qu + qux.T @ k
            vxx = qxx + big_k.T @ quu @ big_k + big_k.T @ qux + qux.T @ big_k

            decay_first += float(k @ qu)
            decay_second += float(0.5 * k @ quu @ k)
        self._approx_decay = (decay_first, decay_second)
        logger.debug("[Backward pass] Iter %d OK", self._iter)

    def _forward_pass(self) -> None:
        if self._status is not LQRSolveStatus.RUNNING:
            return
        cfg = self._config
        knots = self._pm.knots
        dynamics = self._pm.dynamics
        alpha = 1.0
        logger.debug("[Forward pass] Iter %d, current cost %g", self._iter, self._current_cost)
        while alpha > cfg.min_alpha:
            new_trajectory = _copy_trajectory(self._trajectory)
            for i in range(self._num_steps - 1):
                cur = self._trajectory[i]
                new = new_trajectory[i]
                new.control = cur.control + alpha * self._k[i] + self._K[i] @ (
                    new.state - cur.state
                )
                new_trajectory[i + 1].state = np.asarray(
                    dynamics.move_forward(new, knots[i + 1] - knots[i]), dtype=float
                )
            new_cost = self._pm.calculate_total_cost(new_trajectory)
            actual_decay = self._current_cost - new_cost
            if abs(alpha - 1.0) < EPS and abs(actual_decay) < cfg.convergence_threshold:
                logger.debug("[Forward pass] Iter %d, optimization has converged.", self._iter)
                self._status = LQRSolveStatus.CONVERGED
                return
            approx_decay = -(alpha * self._approx_decay[0] + alpha * alpha * self._approx_decay[1])
            if actual_decay > 0.0 and (
                approx_decay < 0.0 or actual_decay / approx_decay > cfg.accept_step_threshold
            ):
                logger.debug(
                    "[Forward pass] Iter %d, accept alpha %g, cost %g",
                    self._iter,
                    alpha,
                    new_cost,
                )
                self._current_cost = new_cost
                self._trajectory = new_trajectory
                if abs(alpha - 1.0) > EPS:
                    self._status = LQRSolveStatus.FORWARD_PASS_SMALL_STEP
                return
            alpha *= 0.5
        logger.debug("[Forward pass] Forward pass fail.")
        self._status = LQRSolveStatus.FORWARD_PASS_FAIL