"""Frenet path optimisation problem: dynamics, initial guess and cost set-up."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from frenetpath.config import VehicleParams
from frenetpath.free_space import FreeSpace
from frenetpath.geometry import PathPoint, SLPosition, constrain_angle, distance
from frenetpath.path_costs import (
    HD_INDEX,
    K_INDEX,
    KR_INDEX,
    L_INDEX,
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
from frenetpath.problem_manager import Dynamics, ProblemManager
from frenetpath.reference_line import ReferenceLine
from frenetpath.variable import Node, Trajectory

logger = logging.getLogger(__name__)

WEIGHT_REF_L = 0.001
WEIGHT_KAPPA = 10.0
WEIGHT_KAPPA_RATE = 50.0
WEIGHT_END_L = 0.5
WEIGHT_END_HEADING_DIFF = 20.0

BARRIER_Q1 = 0.5
BARRIER_Q2 = 2.5
PURSUIT_DIST = 10.0


class FrenetPathDynamics(Dynamics):
    """Kinematics of (l, heading difference, kappa) driven by curvature rate."""

    def __init__(self, reference_line: ReferenceLine) -> None:
        self._reference_line = reference_line

    def _unpack(self, node: Node) -> tuple[float, float, float, float]:
        kappa_ref = self._reference_line.get_reference_point(node.sample).kappa
        state = node.state
        return kappa_ref, state[L_INDEX], state[HD_INDEX], state[K_INDEX]

    def move_forward(self, node: Node, move_dist: float) -> np.ndarray:
        kappa_ref, lat, hd, kappa = self._unpack(node)
        kappa_rate = node.control[KR_INDEX]
        scale = 1 - kappa_ref * lat
        dl = scale * math.tan(hd)
        dhd = scale * kappa / math.cos(hd) - kappa_ref
        dk = scale / math.cos(hd) * kappa_rate
        return np.array(
            [
                lat + dl * move_dist,
                constrain_angle(hd + dhd * move_dist),
                kappa + dk * move_dist,
            ]
        )

    def dx(self, node: Node, move_dist: float) -> np.ndarray:
        kappa_ref, lat, hd, kappa = self._unpack(node)
        kappa_rate = node.control[KR_INDEX]
        scale = 1 - kappa_ref * lat
        cos_hd = math.cos(hd)
        tan_hd = math.tan(hd)
        return np.array(
            [
                [
                    1 - move_dist * tan_hd * kappa_ref,
                    move_dist * scale / cos_hd / cos_hd,
                    0.0,
                ],
                [
                    -move_dist * kappa * kappa_ref / cos_hd,
                    1 + move_dist * scale * kappa * tan_hd / cos_hd,
                    move_dist * scale / cos_hd,
                ],
                [
                    -move_dist * kappa_rate * kappa_ref / cos_hd,
                    move_dist * scale * kappa_rate * tan_hd / cos_hd,
                    1.0,
                ],
            ]
        )

    def du(self, node: Node, move_dist: float) -> np.ndarray:
        kappa_ref, lat, hd, _ = self._unpack(node)
        return np.array([[0.0], [0.0], [move_dist * (1 - kappa_ref * lat) / math.cos(hd)]])


@dataclass
class PathConfig:
    """Discretisation settings of the path problem."""

    delta_s: float = 0.3


class PathProblemManager(ProblemManager):
    """Builds the path problem: knots, initial trajectory, dynamics and costs."""

    def __init__(
        self, config: PathConfig | None = None, vehicle: VehicleParams | None = None
    ) -> None:
        super().__init__(N_PATH_STATE, N_PATH_CONTROL)
        self.config = config or PathConfig()
        self.vehicle = vehicle or VehicleParams()

    def formulate_path_problem(
        self,
        free_space: FreeSpace,
        reference_line: ReferenceLine,
        init_state: PathPoint,
        end_state: PathPoint,
    ) -> None:
        """Set up the problem; leaves it unformulated if free_space is not initialised."""
        if not free_space.is_initialized:
            logger.info("[PathProblem] Quit for uninitialized free_space.")
            return
        self.dynamics = FrenetPathDynamics(reference_line)
        self._calculate_init_trajectory(reference_line, init_state, end_state)
        self._add_costs(free_space, end_state)
        self.problem_formulated = True

    def _step_by_kappa(self, reference_line: ReferenceLine, node: Node, move_dist: float) -> Node:
        kappa_ref = reference_line.get_reference_point(node.sample).kappa
        lat = node.state[L_INDEX]
        hd = node.state[HD_INDEX]
        kappa = node.state[K_INDEX]
        dl = (1 - kappa_ref * lat) * math.tan(hd)
        dhd = (1 - kappa_ref * lat) * kappa / math.cos(hd) - kappa_ref
        ret = Node(N_PATH_STATE, N_PATH_CONTROL)
        ret.state[L_INDEX] = lat + dl * move_dist
        ret.state[HD_INDEX] = constrain_angle(hd + dhd * move_dist)
        return ret

    def _pursuit_kappa(self, reference_line: ReferenceLine, node: Node) -> float:
        xy = reference_line.get_xy_by_sl(SLPosition(node.sample, node.state[L_INDEX]))
        heading = constrain_angle(
            reference_line.get_reference_point(node.sample).theta + node.state[HD_INDEX]
        )
        pursuit_point = reference_line.get_reference_point(node.sample + PURSUIT_DIST)
        dist = distance(xy, pursuit_point)
        if abs(dist) > 1.0:
            angle = math.atan2(pursuit_point.y - xy.y, pursuit_point.x - xy.x)
            kappa = 2 * math.sin(angle - heading) / dist
        else:
            kappa = 0.0
        max_kappa = self.vehicle.max_kappa
        return max(min(kappa, max_kappa), -max_kappa)

    def _calculate_init_trajectory(
        self, reference_line: ReferenceLine, init_state: PathPoint, end_state: PathPoint
    ) -> None:
        self.init_trajectory = []
        self.knots = []
        self.costs = []
        delta_s = self.config.delta_s

        node = Node(N_PATH_STATE, N_PATH_CONTROL)
        init_proj = reference_line.get_projection(init_state)
        node.sample = init_proj.s
        node.state[L_INDEX] = init_proj.l
        node.state[HD_INDEX] = constrain_angle(
            init_state.theta - reference_line.get_reference_point(init_proj.s).theta
        )
        node.state[K_INDEX] = init_state.kappa
        node.control[KR_INDEX] = init_state.dkappa
        self.init_trajectory.append(node)
        self.knots.append(init_proj.s)
        self.costs.append({})
        end_proj = reference_line.get_projection(end_state)

        first = True
        while node.sample + delta_s < end_proj.s:
            new_node = self._step_by_kappa(reference_line, node, delta_s)
            new_node.sample = node.sample + delta_s
            if first:
                new_node.state[K_INDEX] = init_state.dkappa * delta_s + init_state.kappa
                first = False
            else:
                new_node.state[K_INDEX] = self._pursuit_kappa(reference_line, new_node)
            node = new_node
            self.init_trajectory.append(node)
            self.knots.append(node.sample)
            self.costs.append({})

        for cur, nxt in zip(self.init_trajectory, self.init_trajectory[1:]):
            kappa_ref = reference_line.get_reference_point(cur.sample).kappa
            step = delta_s * (1 - kappa_ref) / math.cos(cur.state[HD_INDEX])
            cur.control[KR_INDEX] = (nxt.state[K_INDEX] - cur.state[K_INDEX]) / step

    @staticmethod
    def transform_to_path_points(
        reference_line: ReferenceLine, trajectory: Trajectory
    ) -> list[PathPoint]:
        """Convert a Frenet trajectory to Cartesian path points."""
        points = []
        for node in trajectory:
            sl = SLPosition(node.sample, node.state[L_INDEX])
            xy = reference_line.get_xy_by_sl(sl)
            points.append(
                PathPoint(
                    x=xy.x,
                    y=xy.y,
                    s=sl.s,
                    l=sl.l,
                    theta=constrain_angle(
                        reference_line.get_reference_point(sl.s).theta + node.state[HD_INDEX]
                    ),
                    kappa=node.state[K_INDEX],
                )
            )
        return points

    def _add_costs(self, free_space: FreeSpace, end_state: PathPoint) -> None:
        if len(self.costs) != self.num_steps:
            raise RuntimeError("cost slots do not match the number of steps")
        reference_line = free_space.reference_line
        if reference_line is None:
            raise RuntimeError("free space has no reference line")
        ref_l_cost = RefLCost(WEIGHT_REF_L)
        kappa_cost = KappaCost(WEIGHT_KAPPA)
        kappa_rate_cost = KappaRateCost(WEIGHT_KAPPA_RATE)
        rear_constraint = RearBoundaryConstraint(free_space, BARRIER_Q1, BARRIER_Q2)
        front_constraint = FrontBoundaryConstraint(
            free_space, BARRIER_Q1, BARRIER_Q2, vehicle=self.vehicle
        )
        kappa_constraint = KappaConstraint(
            BARRIER_Q1, BARRIER_Q2, max_kappa=self.vehicle.max_kappa
        )
        end_l = reference_line.get_projection(end_state).l
        end_heading_diff = constrain_angle(
            end_state.theta - reference_line.get_reference_point(self.knots[-1]).theta
        )
        end_state_cost = TargetStateCost(
            end_l, end_heading_diff, WEIGHT_END_L, WEIGHT_END_HEADING_DIFF, "end_state"
        )

        self.dynamic_costs = [rear_constraint, front_constraint]

        last = self.num_steps - 1
        for step, cost_map in enumerate(self.costs):
            cost_map[ref_l_cost.name] = ref_l_cost
            cost_map[kappa_cost.name] = kappa_cost
            if step < last:
                cost_map[kappa_rate_cost.name] = kappa_rate_cost
            if step > 0:
                cost_map[rear_constraint.name] = rear_constraint
                cost_map[front_constraint.name] = front_constraint
                cost_map[kappa_constraint.name] = kappa_constraint
        self.costs[-1][end_state_cost.name] = end_state_cost