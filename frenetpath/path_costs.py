"""Cost terms and barrier constraints for Frenet path optimisation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from frenetpath.config import VehicleParams
from frenetpath.free_space import (
    DEFAULT_LOWER_BOUND,
    DEFAULT_UPPER_BOUND,
    BoundaryPoint,
    FreeSpace,
)
from frenetpath.geometry import PathPoint, SLPosition, XYPosition
from frenetpath.problem_manager import Cost, ExpBarrierFunction
from frenetpath.variable import DerivativesInfo, Node, Trajectory

N_PATH_STATE = 3
N_PATH_CONTROL = 1
L_INDEX = 0
HD_INDEX = 1  # Heading difference to the reference line.
K_INDEX = 2
KR_INDEX = 0  # Control: curvature rate.

_ZERO_HESSIAN = np.zeros((N_PATH_STATE, N_PATH_STATE))


def _check_step(step: int, size: int) -> None:
    if step < 0 or step >= size:
        raise IndexError(f"step {step} out of range for size {size}")


class RefLCost(Cost):
    """Quadratic penalty on lateral offset from the reference line."""

    def __init__(self, weight: float, name: str = "") -> None:
        super().__init__("ref_l_cost_" + name)
        self._weight = weight

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(trajectory))
        lat = trajectory[step].state[L_INDEX]
        return 0.5 * self._weight * lat * lat

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(trajectory))
        lat = trajectory[step].state[L_INDEX]
        derivatives.lx[L_INDEX] += self._weight * lat
        derivatives.lxx[L_INDEX, L_INDEX] += self._weight


class KappaCost(Cost):
    """Quadratic penalty on curvature."""

    def __init__(self, weight: float, name: str = "") -> None:
        super().__init__("kappa_cost_" + name)
        self._weight = weight

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(trajectory))
        kappa = trajectory[step].state[K_INDEX]
        return 0.5 * self._weight * kappa * kappa

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(trajectory))
        kappa = trajectory[step].state[K_INDEX]
        derivatives.lx[K_INDEX] += self._weight * kappa
        derivatives.lxx[K_INDEX, K_INDEX] += self._weight


class KappaRateCost(Cost):
    """Quadratic penalty on curvature rate; not defined at the last step."""

    def __init__(self, weight: float, name: str = "") -> None:
        super().__init__("kappa_rate_cost_" + name)
        self._weight = weight

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(trajectory) - 1)
        rate = trajectory[step].control[KR_INDEX]
        return 0.5 * self._weight * rate * rate

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(trajectory) - 1)
        rate = trajectory[step].control[KR_INDEX]
        derivatives.lu[KR_INDEX] += self._weight * rate
        derivatives.luu[KR_INDEX, KR_INDEX] += self._weight


class TargetStateCost(Cost):
    """Quadratic pull towards a target lateral offset and heading difference."""

    def __init__(
        self,
        target_l: float,
        target_heading_diff: float,
        l_weight: float,
        heading_diff_weight: float,
        name: str = "",
    ) -> None:
        super().__init__("target_state_cost_" + name)
        self._target_l = target_l
        self._target_heading_diff = target_heading_diff
        self._l_weight = l_weight
        self._heading_diff_weight = heading_diff_weight

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(trajectory))
        state = trajectory[step].state
        dl = state[L_INDEX] - self._target_l
        dhd = self._target_heading_diff - state[HD_INDEX]
        return 0.5 * self._l_weight * dl * dl + 0.5 * self._heading_diff_weight * dhd * dhd

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(trajectory))
        state = trajectory[step].state
        derivatives.lx[L_INDEX] += self._l_weight * (state[L_INDEX] - self._target_l)
        derivatives.lx[HD_INDEX] += self._heading_diff_weight * (
            state[HD_INDEX] - self._target_heading_diff
        )
        derivatives.lxx[L_INDEX, L_INDEX] += self._l_weight
        derivatives.lxx[HD_INDEX, HD_INDEX] += self._heading_diff_weight


class RearBoundaryConstraint(Cost):
    """Barrier keeping the rear-axle circle inside the free space."""

    def __init__(
        self,
        free_space: FreeSpace,
        q1: float,
        q2: float,
        buffer: float = 0.0,
        name: str = "",
    ) -> None:
        super().__init__("rear_boundary_constraint" + name)
        self._free_space = free_space
        self._barrier = ExpBarrierFunction(q1, q2)
        self._buffer = buffer
        self._bounds: list[BoundaryPoint] = []

    @property
    def bounds(self) -> list[BoundaryPoint]:
        return self._bounds

    def update(self, trajectory: Trajectory) -> None:
        """Look up the bounds once, on the first trajectory seen."""
        if self._bounds:
            return
        self._bounds = [self._free_space.get_circle_bound(pt.sample) for pt in trajectory]

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(self._bounds))
        bound = self._bounds[step]
        lat = trajectory[step].state[L_INDEX]
        return self._barrier.value(bound.lb_l + self._buffer - lat) + self._barrier.value(
            lat - bound.ub_l + self._buffer
        )

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(self._bounds))
        bound = self._bounds[step]
        lat = trajectory[step].state[L_INDEX]
        neg = np.array([-1.0, 0.0, 0.0])
        pos = np.array([1.0, 0.0, 0.0])
        lower_arg = bound.lb_l + self._buffer - lat
        upper_arg = lat - bound.ub_l + self._buffer
        derivatives.lx += self._barrier.dx(lower_arg, neg) + self._barrier.dx(upper_arg, pos)
        derivatives.lxx += self._barrier.ddx(lower_arg, neg, _ZERO_HESSIAN) + self._barrier.ddx(
            upper_arg, pos, _ZERO_HESSIAN
        )


@dataclass
class FrontBoundaryInfo:
    """Projection of the vehicle front onto the reference line and its bounds."""

    front_ref_point: PathPoint = field(default_factory=PathPoint)
    front_xy: XYPosition = field(default_factory=XYPosition)
    front_sl: SLPosition = field(default_factory=SLPosition)
    norm_vec: XYPosition = field(default_factory=XYPosition)
    lb: float = 0.0
    ub: float = 0.0


class FrontBoundaryConstraint(Cost):
    """Barrier keeping the front-edge circle inside the free space."""

    def __init__(
        self,
        free_space: FreeSpace,
        q1: float,
        q2: float,
        buffer: float = 0.0,
        name: str = "",
        vehicle: VehicleParams | None = None,
    ) -> None:
        super().__init__("front_boundary_constraint" + name)
        self._free_space = free_space
        self._barrier = ExpBarrierFunction(q1, q2)
        self._buffer = buffer
        self._vehicle = vehicle or VehicleParams()
        self._rear_ref_points: list[PathPoint] = []
        self._info_vec: list[FrontBoundaryInfo] = []

    @property
    def infos(self) -> list[FrontBoundaryInfo]:
        return self._info_vec

    def _front_xy(self, node: Node, rear_ref: PathPoint) -> tuple[XYPosition, float]:
        to_front = self._vehicle.rear_axle_to_front
        lat = node.state[L_INDEX]
        normal = rear_ref.theta + math.pi / 2
        rear_x = rear_ref.x + lat * math.cos(normal)
        rear_y = rear_ref.y + lat * math.sin(normal)
        ego_heading = node.state[HD_INDEX] + rear_ref.theta
        front = XYPosition(
            rear_x + to_front * math.cos(ego_heading),
            rear_y + to_front * math.sin(ego_heading),
        )
        return front, ego_heading

    def update(self, trajectory: Trajectory) -> None:
        reference_line = self._free_space.reference_line
        if reference_line is None:
            raise RuntimeError("free space has no reference line")
        if not self._rear_ref_points:
            self._rear_ref_points = [
                reference_line.get_reference_point(pt.sample) for pt in trajectory
            ]
        if len(trajectory) > len(self._rear_ref_points):
            raise IndexError("trajectory is longer than the stored reference points")

        to_front = self._vehicle.rear_axle_to_front
        radius = self._vehicle.vehicle_width / 2.0
        self._info_vec = []
        for pt, rear_ref in zip(trajectory, self._rear_ref_points):
            front_xy, _ = self._front_xy(pt, rear_ref)
            hint_s = pt.sample + to_front * math.cos(pt.state[HD_INDEX])
            front_sl = reference_line.get_projection_by_newton(front_xy, hint_s)
            front_ref = reference_line.get_reference_point(front_sl.s)
            limits = self._free_space.get_l_bound_for_circle(front_sl.s, radius)
            lb, ub = limits if limits is not None else (DEFAULT_LOWER_BOUND, DEFAULT_UPPER_BOUND)
            self._info_vec.append(
                FrontBoundaryInfo(
                    front_ref_point=front_ref,
                    front_xy=front_xy,
                    front_sl=front_sl,
                    norm_vec=XYPosition(
                        math.cos(front_ref.theta + math.pi / 2),
                        math.sin(front_ref.theta + math.pi / 2),
                    ),
                    lb=lb,
                    ub=ub,
                )
            )

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(self._rear_ref_points))
        _check_step(step, len(self._info_vec))
        info = self._info_vec[step]
        front_xy, _ = self._front_xy(trajectory[step], self._rear_ref_points[step])
        front_l = (front_xy.x - info.front_ref_point.x) * info.norm_vec.x + (
            front_xy.y - info.front_ref_point.y
        ) * info.norm_vec.y
        return self._barrier.value(info.lb + self._buffer - front_l) + self._barrier.value(
            front_l - info.ub + self._buffer
        )

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(self._rear_ref_points))
        _check_step(step, len(self._info_vec))
        info = self._info_vec[step]
        norm = info.norm_vec
        front_l = info.front_sl.l
        rear_ref = self._rear_ref_points[step]
        to_front = self._vehicle.rear_axle_to_front
        ego_heading = trajectory[step].state[HD_INDEX] + rear_ref.theta
        normal = rear_ref.theta + math.pi / 2
        dldx = np.array(
            [
                norm.x * math.cos(normal) + norm.y * math.sin(normal),
                -norm.x * to_front * math.sin(ego_heading)
                + norm.y * to_front * math.cos(ego_heading),
                0.0,
            ]
        )
        dlddx = np.zeros((N_PATH_STATE, N_PATH_STATE))
        dlddx[1, 1] = -norm.x * to_front * math.cos(ego_heading) - norm.y * to_front * math.sin(
            ego_heading
        )
        lower_arg = info.lb + self._buffer - front_l
        upper_arg = front_l - info.ub + self._buffer
        derivatives.lx += self._barrier.dx(lower_arg, -dldx) + self._barrier.dx(upper_arg, dldx)
        derivatives.lxx += self._barrier.ddx(lower_arg, -dldx, -dlddx) + self._barrier.ddx(
            upper_arg, dldx, dlddx
        )


class KappaConstraint(Cost):
    """Barrier keeping curvature within [-max_kappa, max_kappa]."""

    def __init__(
        self, q1: float, q2: float, name: str = "", max_kappa: float | None = None
    ) -> None:
        super().__init__("kappa_constraint_" + name)
        self._barrier = ExpBarrierFunction(q1, q2)
        self._max_kappa = VehicleParams().max_kappa if max_kappa is None else max_kappa

    def cost_value(self, trajectory: Trajectory, step: int) -> float:
        _check_step(step, len(trajectory))
        kappa = trajectory[step].state[K_INDEX]
        return self._barrier.value(-self._max_kappa - kappa) + self._barrier.value(
            kappa - self._max_kappa
        )

    def calculate_derivatives(
        self, trajectory: Trajectory, step: int, derivatives: DerivativesInfo
    ) -> None:
        _check_step(step, len(trajectory))
        kappa = trajectory[step].state[K_INDEX]
        neg = np.array([0.0, 0.0, -1.0])
        pos = np.array([0.0, 0.0, 1.0])
        lower_arg = -self._max_kappa - kappa
        upper_arg = kappa - self._max_kappa
        derivatives.lx += self._barrier.dx(lower_arg, neg) + self._barrier.dx(upper_arg, pos)
        derivatives.lxx += self._barrier.ddx(lower_arg, neg, _ZERO_HESSIAN) + self._barrier.ddx(
            upper_arg, pos, _ZERO_HESSIAN
        )