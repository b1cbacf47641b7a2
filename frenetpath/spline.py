"""Cubic spline interpolation backed by a small banded LU solver."""

from __future__ import annotations

from bisect import bisect_left
from enum import IntEnum
from typing import Sequence


class BoundaryType(IntEnum):
    """Kind of boundary condition imposed at one end of a spline."""

    FIRST_DERIV = 1
    SECOND_DERIV = 2


class BandMatrix:
    """Square band matrix with an LU decomposition and triangular solvers."""

    def __init__(self, dim: int, n_upper: int, n_lower: int) -> None:
        if dim <= 0:
            raise ValueError("matrix dimension must be positive")
        if n_upper < 0 or n_lower < 0:
            raise ValueError("band widths must not be negative")
        self._upper = [[0.0] * dim for _ in range(n_upper + 1)]
        # Row 0 of the lower band holds the saved inverse diagonal.
        self._lower = [[0.0] * dim for _ in range(n_lower + 1)]

    @property
    def dim(self) -> int:
        return len(self._upper[0]) if self._upper else 0

    @property
    def num_upper(self) -> int:
        return len(self._upper) - 1

    @property
    def num_lower(self) -> int:
        return len(self._lower) - 1

    def _locate(self, index: tuple[int, int]) -> tuple[list[float], int]:
        i, j = index
        if not (0 <= i < self.dim and 0 <= j < self.dim):
            raise IndexError(f"index ({i}, {j}) outside matrix of size {self.dim}")
        k = j - i
        if not (-self.num_lower <= k <= self.num_upper):
            raise IndexError(f"index ({i}, {j}) outside the band")
        if k >= 0:
            return self._upper[k], i
        return self._lower[-k], i

    def __getitem__(self, index: tuple[int, int]) -> float:
        row, i = self._locate(index)
        return row[i]

    def __setitem__(self, index: tuple[int, int], value: float) -> None:
        row, i = self._locate(index)
        row[i] = float(value)

    def _saved_diag(self, i: int) -> float:
        if not 0 <= i < self.dim:
            raise IndexError(f"diagonal index {i} out of range")
        return self._lower[0][i]

    def _set_saved_diag(self, i: int, value: float) -> None:
        if not 0 <= i < self.dim:
            raise IndexError(f"diagonal index {i} out of range")
        self._lower[0][i] = value

    def lu_decompose(self) -> None:
        """Decompose the matrix in place into L and R factors."""
        dim = self.dim
        for i in range(dim):
            if self[i, i] == 0.0:
                raise ZeroDivisionError(f"zero on the diagonal at row {i}")
            self._set_saved_diag(i, 1.0 / self[i, i])
            j_min = max(0, i - self.num_lower)
            j_max = min(dim - 1, i + self.num_upper)
            for j in range(j_min, j_max + 1):
                self[i, j] *= self._saved_diag(i)
            self[i, i] = 1.0

        for k in range(dim):
            i_max = min(dim - 1, k + self.num_lower)
            for i in range(k + 1, i_max + 1):
                if self[k, k] == 0.0:
                    raise ZeroDivisionError(f"zero pivot at row {k}")
                factor = -self[i, k] / self[k, k]
                self[i, k] = -factor
                j_max = min(dim - 1, k + self.num_upper)
                for j in range(k + 1, j_max + 1):
                    self[i, j] = self[i, j] + factor * self[k, j]

    def _check_rhs(self, b: Sequence[float]) -> None:
        if len(b) != self.dim:
            raise ValueError(f"right-hand side has length {len(b)}, expected {self.dim}")

    def l_solve(self, b: Sequence[float]) -> list[float]:
        """Solve L y = b using the decomposed matrix."""
        self._check_rhs(b)
        x = [0.0] * self.dim
        for i in range(self.dim):
            start = max(0, i - self.num_lower)
            total = sum(self[i, j] * x[j] for j in range(start, i))
            x[i] = b[i] * self._saved_diag(i) - total
        return x

    def r_solve(self, b: Sequence[float]) -> list[float]:
        """Solve R x = b using the decomposed matrix."""
        self._check_rhs(b)
        x = [0.0] * self.dim
        for i in reversed(range(self.dim)):
            stop = min(self.dim - 1, i + self.num_upper)
            total = sum(self[i, j] * x[j] for j in range(i + 1, stop + 1))
            x[i] = (b[i] - total) / self[i, i]
        return x

    def lu_solve(self, b: Sequence[float], is_lu_decomposed: bool = False) -> list[float]:
        """Solve A x = b, decomposing the matrix first unless already done."""
        self._check_rhs(b)
        if not is_lu_decomposed:
            self.lu_decompose()
        return self.r_solve(self.l_solve(b))


class Spline:
    """Piecewise cubic (or linear) interpolant with quadratic extrapolation."""

    def __init__(self) -> None:
        self._x: list[float] = []
        self._y: list[float] = []
        self._a: list[float] = []
        self._b: list[float] = []
        self._c: list[float] = []
        self._b0 = 0.0
        self._c0 = 0.0
        self._left = BoundaryType.SECOND_DERIV
        self._right = BoundaryType.SECOND_DERIV
        self._left_value = 0.0
        self._right_value = 0.0
        self._force_linear_extrapolation = False

    def set_boundary(
        self,
        left: BoundaryType,
        left_value: float,
        right: BoundaryType,
        right_value: float,
        force_linear_extrapolation: bool = False,
    ) -> None:
        """Set boundary conditions; must be called before set_points."""
        if self._x:
            raise RuntimeError("boundary must be set before the points")
        self._left = BoundaryType(left)
        self._right = BoundaryType(right)
        self._left_value = float(left_value)
        self._right_value = float(right_value)
        self._force_linear_extrapolation = force_linear_extrapolation

    def set_points(
        self, x: Sequence[float], y: Sequence[float], cubic_spline: bool = True
    ) -> None:
        """Fit the spline through the points (x[i], y[i])."""
        if len(x) != len(y):
            raise ValueError("x and y must have the same length")
        if len(x) <= 2:
            raise ValueError("at least three points are required")
        x = [float(v) for v in x]
        y = [float(v) for v in y]
        if any(a >= b for a, b in zip(x, x[1:])):
            raise ValueError("x must be strictly increasing")
        self._x, self._y = x, y
        n = len(x)

        if cubic_spline:
            matrix = BandMatrix(n, 1, 1)
            rhs = [0.0] * n
            for i in range(1, n - 1):
                matrix[i, i - 1] = 1.0 / 3.0 * (x[i] - x[i - 1])
                matrix[i, i] = 2.0 / 3.0 * (x[i + 1] - x[i - 1])
                matrix[i, i + 1] = 1.0 / 3.0 * (x[i + 1] - x[i])
                rhs[i] = (y[i + 1] - y[i]) / (x[i + 1] - x[i]) - (y[i] - y[i - 1]) / (
                    x[i] - x[i - 1]
                )
            if self._left is BoundaryType.SECOND_DERIV:
                matrix[0, 0] = 2.0
                matrix[0, 1] = 0.0
                rhs[0] = self._left_value
            else:
                matrix[0, 0] = 2.0 * (x[1] - x[0])
                matrix[0, 1] = 1.0 * (x[1] - x[0])
                rhs[0] = 3.0 * ((y[1] - y[0]) / (x[1] - x[0]) - self._left_value)
            if self._right is BoundaryType.SECOND_DERIV:
                matrix[n - 1, n - 1] = 2.0
                matrix[n - 1, n - 2] = 0.0
                rhs[n - 1] = self._right_value
            else:
                h_last = x[n - 1] - x[n - 2]
                matrix[n - 1, n - 1] = 2.0 * h_last
                matrix[n - 1, n - 2] = 1.0 * h_last
                rhs[n - 1] = 3.0 * (self._right_value - (y[n - 1] - y[n - 2]) / h_last)

            self._b = matrix.lu_solve(rhs)
            self._a = [0.0] * n
            self._c = [0.0] * n
            for i in range(n - 1):
                h = x[i + 1] - x[i]
                self._a[i] = 1.0 / 3.0 * (self._b[i + 1] - self._b[i]) / h
                self._c[i] = (y[i + 1] - y[i]) / h - 1.0 / 3.0 * (
                    2.0 * self._b[i] + self._b[i + 1]
                ) * h
        else:
            self._a = [0.0] * n
            self._b = [0.0] * n
            self._c = [0.0] * n
            for i in range(n - 1):
                self._c[i] = (y[i + 1] - y[i]) / (x[i + 1] - x[i])

        self._b0 = 0.0 if self._force_linear_extrapolation else self._b[0]
        self._c0 = self._c[0]

        h = x[n - 1] - x[n - 2]
        self._a[n - 1] = 0.0
        self._c[n - 1] = 3.0 * self._a[n - 2] * h * h + 2.0 * self._b[n - 2] * h + self._c[n - 2]
        if self._force_linear_extrapolation:
            self._b[n - 1] = 0.0

    def _segment(self, x: float) -> tuple[int, float]:
        if not self._x:
            raise RuntimeError("spline has no points")
        idx = max(bisect_left(self._x, x) - 1, 0)
        return idx, x - self._x[idx]

    def __call__(self, x: float) -> float:
        idx, h = self._segment(x)
        if x < self._x[0]:
            return (self._b0 * h + self._c0) * h + self._y[0]
        if x > self._x[-1]:
            return (self._b[-1] * h + self._c[-1]) * h + self._y[-1]
        return ((self._a[idx] * h + self._b[idx]) * h + self._c[idx]) * h + self._y[idx]

    def deriv(self, order: int, x: float) -> float:
        """Return the derivative of the given order (at least 1) at x."""
        if order <= 0:
            raise ValueError("derivative order must be positive")
        idx, h = self._segment(x)
        if x < self._x[0]:
            if order == 1:
                return 2.0 * self._b0 * h + self._c0
            if order == 2:
                return 2.0 * self._b0 * h
            return 0.0
        if x > self._x[-1]:
            if order == 1:
                return 2.0 * self._b[-1] * h + self._c[-1]
            if order == 2:
                return 2.0 * self._b[-1]
            return 0.0
        if order == 1:
            return (3.0 * self._a[idx] * h + 2.0 * self._b[idx]) * h + self._c[idx]
        if order == 2:
            return 6.0 * self._a[idx] * h + 2.0 * self._b[idx]
        if order == 3:
            return 6.0 * self._a[idx]
        return 0.0