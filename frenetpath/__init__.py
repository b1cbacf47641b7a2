"""Frenet-frame path planning: cubic splines, reference lines, free-space bounds, path costs and an iLQR solver."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "free_space",
    "geometry",
    "ilqr",
    "path_costs",
    "path_problem_manager",
    "problem_manager",
    "reference_line",
    "spline",
    "variable",
    "vehicle_state",
]