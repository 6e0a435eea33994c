"""
Job search when the offer distribution is unknown.

An unemployed worker draws wage offers from one of two densities, f or g,
without knowing which. The worker holds a belief pi that the density is f
and updates it by Bayes' rule after every rejected offer. Accepting a wage w
yields w forever; rejecting yields unemployment compensation c and a new draw
next period.

Two solution methods are provided:

* value function iteration on the (w, pi) grid, via `bellman_operator` and
  `get_greedy`;
* iteration on the reservation wage functional equation,

      w_bar(pi) = (1 - beta) c + beta E[max(w', w_bar(q(w', pi)))],

  via `res_wage_operator`. This operator is a contraction of modulus beta on
  bounded functions of pi and is one dimensional, so it is much cheaper than
  value function iteration.

Expectations are taken with Gauss-Legendre quadrature over [0, w_max] under
the mixture density h_pi = pi f + (1 - pi) g. Quadrature weights are
normalised per belief so every expectation is an average.
"""

from functools import partial

import numpy as np

from skdp.distributions import Beta, gauss_legendre
from skdp.interpolation import BilinearInterp
from skdp.solver import compute_fixed_point
from skdp.utils import apply_fun_to_vals

calibration = {
    "beta": 0.95,
    "c": 0.6,
    "F_a": 1,
    "F_b": 1,
    "G_a": 3,
    "G_b": 1.2,
    "w_max": 2.0,
    "w_grid_size": 40,
    "pi_grid_size": 40,
    "quad_size": 30,
}


class SearchProblem:
    """
    A parameterization of the "offer distribution unknown" model.

    Parameters
    ----------
    beta : float
        Discount factor, in (0, 1).
    c : float
        Unemployment compensation.
    F_a, F_b : float
        Shape parameters of the beta distribution behind density f.
    G_a, G_b : float
        Shape parameters of the beta distribution behind density g.
    w_max : float
        Upper bound of the wage support; both distributions live on [0, w_max].
    w_grid_size, pi_grid_size : int
        Number of points in the wage and belief grids.
    quad_size : int
        Number of Gauss-Legendre nodes used for expectations.
    """

    def __init__(
        self,
        beta=0.95,
        c=0.6,
        F_a=1,
        F_b=1,
        G_a=3,
        G_b=1.2,
        w_max=2.0,
        w_grid_size=40,
        pi_grid_size=40,
        quad_size=30,
    ):
        if not 0 < beta < 1:
            raise ValueError(f"beta must be in (0, 1), got {beta}")
        if w_max <= 0:
            raise ValueError(f"w_max must be > 0, got {w_max}")
        if w_grid_size < 2 or pi_grid_size < 2:
            raise ValueError(
                f"grid sizes must be >= 2, got w_grid_size={w_grid_size}, "
                f"pi_grid_size={pi_grid_size}"
            )

        self.beta, self.c, self.w_max = beta, c, w_max
        self.F = Beta(F_a, F_b, scale=w_max)
        self.G = Beta(G_a, G_b, scale=w_max)
        self.f, self.g = self.F.pdf, self.G.pdf
        self.pi_min, self.pi_max = 1e-3, 1 - 1e-3  # Avoids instability

        self.w_grid = np.linspace(0, w_max, w_grid_size)
        self.pi_grid = np.linspace(self.pi_min, self.pi_max, pi_grid_size)

        self.nodes, self.node_weights = gauss_legendre(quad_size, 0, w_max)

        # Rows index the current belief on pi_grid, columns the wage node
        self.pi_next = self.q(self.nodes[None, :], self.pi_grid[:, None])
        self.probs = self.expectation_weights(self.pi_grid)

    @classmethod
    def from_calibration(cls, calibration):
        return apply_fun_to_vals(cls, calibration)

    def q(self, w, pi):
        """
        Updates pi using Bayes' rule and the current wage observation w.
        The result is clamped into [pi_min, pi_max]; if neither density
        puts mass on w the prior is returned unchanged.
        """
        num = pi * self.f(w)
        den = num + (1 - pi) * self.g(w)
        with np.errstate(divide="ignore", invalid="ignore"):
            new_pi = np.where(den > 0, num / den, pi)
        return np.clip(new_pi, self.pi_min, self.pi_max)

    def h(self, w, pi):
        """Density of the offer when the belief is pi."""
        return pi * self.f(w) + (1 - pi) * self.g(w)

    def expectation_weights(self, pi):
        """
        Probabilities on the quadrature nodes under h_pi, one row per belief.
        """
        pi = np.atleast_1d(pi)
        raw = self.node_weights[None, :] * self.h(self.nodes[None, :], pi[:, None])
        return raw / raw.sum(axis=1, keepdims=True)

    def __repr__(self):
        return (
            f"SearchProblem(beta={self.beta}, c={self.c}, w_max={self.w_max}, "
            f"F=Beta({self.F.a}, {self.F.b}), G=Beta({self.G.a}, {self.G.b}))"
        )


def _check_value(sp, v):
    v = np.asarray(v, dtype=float)
    expected_shape = (len(sp.w_grid), len(sp.pi_grid))
    if v.shape != expected_shape:
        raise ValueError(f"v has shape {v.shape}, expected {expected_shape}")
    return v


def _reject_value(sp, v):
    # c + beta E[v(w', q(w', pi))] for every pi on the grid
    vf = BilinearInterp(v, sp.w_grid, sp.pi_grid)
    continuation = vf(sp.nodes[None, :], sp.pi_next)
    return sp.c + sp.beta * np.sum(sp.probs * continuation, axis=1)


def _accept_reject_values(sp, v):
    v = _check_value(sp, v)
    accept = sp.w_grid[:, None] / (1 - sp.beta)
    reject = _reject_value(sp, v)[None, :]
    return np.broadcast_arrays(accept, reject)


def bellman_operator(sp, v):
    """
    The Bellman operator.

    Parameters
    ----------
    sp : SearchProblem
    v : np.array
        Value surface of shape (w_grid_size, pi_grid_size).

    Returns
    -------
    np.array
        Updated value surface, the pointwise max of accepting and rejecting.
    """
    accept, reject = _accept_reject_values(sp, v)
    return np.maximum(accept, reject)


def get_greedy(sp, v):
    """
    Optimal actions taking v as the value function. Returns a boolean array
    of the same shape as v, True where accepting the wage beats rejecting it.
    """
    accept, reject = _accept_reject_values(sp, v)
    return accept > reject


def reservation_wage_from_value(sp, v):
    """
    Reservation wage over pi_grid implied by a value surface: the wage whose
    accept value w / (1 - beta) equals the value of rejecting.
    """
    return (1 - sp.beta) * _reject_value(sp, _check_value(sp, v))


def res_wage_operator(sp, w_bar):
    """
    The reservation wage operator.

    Parameters
    ----------
    sp : SearchProblem
    w_bar : np.array
        Reservation wage at each point of pi_grid. Values between grid points
        are linearly interpolated; beliefs outside the grid take the
        boundary value.

    Returns
    -------
    np.array
        (1 - beta) c + beta E[max(w', w_bar(q(w', pi)))] on pi_grid.
    """
    w_bar = np.asarray(w_bar, dtype=float)
    if w_bar.shape != sp.pi_grid.shape:
        raise ValueError(f"w_bar has shape {w_bar.shape}, expected {sp.pi_grid.shape}")

    w_bar_next = np.interp(sp.pi_next, sp.pi_grid, w_bar)
    integrand = np.maximum(sp.nodes[None, :], w_bar_next)
    return (1 - sp.beta) * sp.c + sp.beta * np.sum(sp.probs * integrand, axis=1)


def initial_value(sp):
    """Accept value w / (1 - beta) on the (w, pi) grid."""
    shape = (len(sp.w_grid), len(sp.pi_grid))
    return np.broadcast_to(sp.w_grid[:, None] / (1 - sp.beta), shape).copy()


def solve_value(sp, v_init=None, **kwargs):
    """
    Value function iteration. Keyword arguments go to `compute_fixed_point`.
    """
    if v_init is None:
        v_init = initial_value(sp)
    return compute_fixed_point(partial(bellman_operator, sp), v_init, **kwargs)


def solve_wbar(sp, w_bar_init=None, **kwargs):
    """
    Iterate the reservation wage operator to its fixed point, starting from
    a constant guess of one unless told otherwise.
    """
    if w_bar_init is None:
        w_bar_init = np.ones(len(sp.pi_grid))
    return compute_fixed_point(partial(res_wage_operator, sp), w_bar_init, **kwargs)
