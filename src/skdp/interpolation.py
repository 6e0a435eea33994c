"""
Piecewise-linear interpolation on one and two dimensional grids.

Both interpolators extrapolate flat: a query outside the grid returns the
value at the nearest boundary rather than raising or returning NaN.
Interpolated objects define a `distance` method so that the fixed-point
driver can compare successive policy functions directly.
"""

import numpy as np

from skdp.utils import sup_norm


def _check_knots(knots, name):
    knots = np.asarray(knots, dtype=float)
    if knots.ndim != 1 or knots.size < 2:
        raise ValueError(f"{name} must be a 1-D array with at least 2 points")
    if np.any(np.diff(knots) <= 0):
        raise ValueError(f"{name} must be strictly increasing")
    return knots


class LinearInterp:
    """
    Linear spline through the points (x_list, y_list).

    Parameters
    ----------
    x_list : np.array
        Strictly increasing knots.
    y_list : np.array
        Function values at the knots.
    """

    def __init__(self, x_list, y_list):
        self.x_list = _check_knots(x_list, "x_list")
        self.y_list = np.asarray(y_list, dtype=float)
        if self.y_list.shape != self.x_list.shape:
            raise ValueError(
                f"y_list has shape {self.y_list.shape}, expected {self.x_list.shape}"
            )

    def __call__(self, x):
        return np.interp(x, self.x_list, self.y_list)

    def distance(self, other):
        """
        Sup norm of the difference between two interpolants, evaluated on
        the union of their knots. Any other vectorized function is compared
        on this interpolant's knots.
        """
        if hasattr(other, "x_list"):
            x = np.union1d(self.x_list, other.x_list)
        else:
            x = self.x_list
        return sup_norm(self(x), other(x))


class BilinearInterp:
    """
    Bilinear full (or tensor) grid interpolation of a function f(x, y).

    Parameters
    ----------
    f_values : np.array
        An array of size (x_n, y_n) such that f_values[i, j] = f(x_list[i], y_list[j])
    x_list : np.array
        An array of x values, with length x_n.
    y_list : np.array
        An array of y values, with length y_n.
    """

    def __init__(self, f_values, x_list, y_list):
        self.x_list = _check_knots(x_list, "x_list")
        self.y_list = _check_knots(y_list, "y_list")
        self.f_values = np.asarray(f_values, dtype=float)
        self.x_n = self.x_list.size
        self.y_n = self.y_list.size
        if self.f_values.shape != (self.x_n, self.y_n):
            raise ValueError(
                f"f_values has shape {self.f_values.shape}, "
                f"expected {(self.x_n, self.y_n)}"
            )

    def __call__(self, x, y):
        x, y = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))

        # Flat extrapolation: evaluate at the nearest point of the box
        x = np.clip(x, self.x_list[0], self.x_list[-1])
        y = np.clip(y, self.y_list[0], self.y_list[-1])

        x_pos = np.clip(np.searchsorted(self.x_list, x), 1, self.x_n - 1)
        y_pos = np.clip(np.searchsorted(self.y_list, y), 1, self.y_n - 1)

        alpha = (x - self.x_list[x_pos - 1]) / (
            self.x_list[x_pos] - self.x_list[x_pos - 1]
        )
        beta = (y - self.y_list[y_pos - 1]) / (
            self.y_list[y_pos] - self.y_list[y_pos - 1]
        )
        f = (
            (1 - alpha) * (1 - beta) * self.f_values[x_pos - 1, y_pos - 1]
            + (1 - alpha) * beta * self.f_values[x_pos - 1, y_pos]
            + alpha * (1 - beta) * self.f_values[x_pos, y_pos - 1]
            + alpha * beta * self.f_values[x_pos, y_pos]
        )
        return f

    def distance(self, other):
        return sup_norm(self.f_values, other.f_values)
