"""Vehicle parameters and planning settings with their default values."""

from __future__ import annotations

import math
from dataclasses import dataclass

SMOOTHING_METHODS = ("TENSION", "TENSION2")
OPTIMIZATION_METHODS = ("K", "KP", "KCP")


@dataclass
class VehicleParams:
    """Vehicle geometry and curvature limits used by the path costs."""

    vehicle_width: float = 1.9
    vehicle_length: float = 4.8
    rear_axle_to_center: float = 1.4
    max_kappa: float = 0.2
    max_dkappa: float = 0.2

    @property
    def rear_axle_to_front(self) -> float:
        """Distance from the rear axle to the front edge of the vehicle."""
        return self.vehicle_length * 0.5 + self.rear_axle_to_center


@dataclass
class PlanningFlags:
    """Settings for reference smoothing, searching and path optimisation."""

    # Car parameters.
    car_width: float = 2.0
    car_length: float = 4.9
    safety_margin: float = 0.3
    wheel_base: float = 2.5
    rear_length: float = -1.0
    front_length: float = 3.9
    max_steering_angle: float = 35.0 * math.pi / 180.0

    # Smoothing and searching.
    smoothing_method: str = "TENSION2"
    tension_solver: str = "OSQP"
    enable_searching: bool = True
    search_lateral_range: float = 10.0
    search_longitudinal_spacing: float = 1.5
    search_lateral_spacing: float = 0.6
    frenet_angle_diff_weight: float = 1500.0
    frenet_angle_diff_diff_weight: float = 200.0
    frenet_deviation_weight: float = 15.0
    cartesian_curvature_weight: float = 1.0
    cartesian_curvature_rate_weight: float = 50.0
    cartesian_deviation_weight: float = 0.0
    tension_2_deviation_weight: float = 0.005
    tension_2_curvature_weight: float = 1.0
    tension_2_curvature_rate_weight: float = 10.0
    enable_simple_boundary_decision: bool = True
    search_obstacle_cost: float = 0.4
    search_deviation_cost: float = 0.4

    # Optimisation.
    optimization_method: str = "KP"
    k_curvature_weight: float = 50.0
    k_curvature_rate_weight: float = 200.0
    k_deviation_weight: float = 0.0
    kp_curvature_weight: float = 10.0
    kp_curvature_rate_weight: float = 200.0
    kp_deviation_weight: float = 0.0
    kp_slack_weight: float = 3.0
    expected_safety_margin: float = 0.6
    constraint_end_heading: bool = True
    enable_exact_position: bool = False

    # Others.
    output_spacing: float = 0.3
    epsilon: float = 1e-6
    enable_dynamic_segmentation: bool = True
    rough_constraints_far_away: bool = False
    precise_planning_length: float = 30.0

    def validate(self) -> None:
        """Raise ValueError if a method name is not one of the known choices."""
        if self.smoothing_method not in SMOOTHING_METHODS:
            raise ValueError(
                f"unknown smoothing method {self.smoothing_method!r}; "
                f"expected one of {', '.join(SMOOTHING_METHODS)}"
            )
        if self.optimization_method not in OPTIMIZATION_METHODS:
            raise ValueError(
                f"unknown optimization method {self.optimization_method!r}; "
                f"expected one of {', '.join(OPTIMIZATION_METHODS)}"
            )