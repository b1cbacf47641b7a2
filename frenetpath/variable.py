"""Trajectory nodes and derivative containers for the optimiser."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


class Node:
    """One trajectory sample: state, control, step index and sample position."""

    def __init__(self, n_state: int, n_control: int) -> None:
        self.state = np.zeros(n_state)
        self.control = np.zeros(n_control)
        self.step = 0
        self.sample = 0.0

    def copy(self) -> Node:
        """Deep copy of this node."""
        node = Node(len(self.state), len(self.control))
        node.state = self.state.copy()
        node.control = self.control.copy()
        node.step = self.step
        node.sample = self.sample
        return node

    def __repr__(self) -> str:
        return (
            f"Node(state={self.state.tolist()}, control={self.control.tolist()}, "
            f"step={self.step}, sample={self.sample})"
        )


Trajectory = list[Node]


@dataclass
class DerivativesInfo:
    """First and second derivatives of cost (l*) and dynamics (f*) at one step."""

    lx: np.ndarray
    lu: np.ndarray
    lxx: np.ndarray
    luu: np.ndarray
    lux: np.ndarray
    fx: np.ndarray
    fu: np.ndarray

    @staticmethod
    def zeros(n_state: int, n_control: int) -> DerivativesInfo:
        """All-zero derivatives for the given dimensions."""
        return DerivativesInfo(
            lx=np.zeros(n_state),
            lu=np.zeros(n_control),
            lxx=np.zeros((n_state, n_state)),
            luu=np.zeros((n_control, n_control)),
            lux=np.zeros((n_control, n_state)),
            fx=np.zeros((n_state, n_state)),
            fu=np.zeros((n_state, n_control)),
        )