"""
Stochastic optimal growth.

Output y is split between consumption c and capital k = y - c. Next period
output is y' = f(k) xi with f(k) = k**alpha and lognormal productivity
xi = exp(mu + s z). The optimal consumption policy solves the Euler equation

    u'(c(y)) = beta E[u'(c(f(y - c(y)) xi)) f'(y - c(y)) xi].

Time iteration applies the Coleman operator to a guess of the policy. On an
exogenous grid of output levels this needs a scalar root-finding problem per
grid point (`coleman_operator`). The endogenous grid method fixes a grid on
next-period capital instead and inverts marginal utility analytically, so no
root finding is required (`egm_operator`). Both operators have the same fixed
point.

With log utility the optimal policy is c*(y) = (1 - alpha beta) y.
"""

from functools import partial

import numpy as np
from scipy.optimize import brentq, minimize_scalar

from skdp.distributions import DiscreteDistribution, Normal, expected
from skdp.interpolation import LinearInterp
from skdp.solver import compute_fixed_point
from skdp.utils import apply_fun_to_vals

calibration = {
    "alpha": 0.4,
    "beta": 0.96,
    "mu": 0.0,
    "s": 0.1,
    "grid_max": 4.0,
    "grid_size": 120,
    "shock_size": 15,
}


def _log_u_prime(c):
    return 1 / c


def _log_u_prime_inv(x):
    return 1 / x


class GrowthModel:
    """
    Primitives of the optimal growth model.

    Parameters
    ----------
    alpha : float
        Production elasticity, f(k) = k**alpha.
    beta : float
        Discount factor.
    mu, s : float
        Location and scale of log productivity.
    grid_max : float
        Largest grid point.
    grid_size : int
        Number of grid points. The same grid serves as output levels for
        time iteration and as next-period capital for EGM.
    shock_size : int
        Number of Gauss-Hermite nodes for the productivity shock.
    u, u_prime, u_prime_inv : callable, optional
        Utility, marginal utility and its inverse. Default to log utility.
        `u_prime` must be strictly decreasing on (0, inf) and `u_prime_inv`
        must be its exact inverse; this is not checked.
    """

    def __init__(
        self,
        alpha=0.4,
        beta=0.96,
        mu=0.0,
        s=0.1,
        grid_max=4.0,
        grid_size=120,
        shock_size=15,
        u=np.log,
        u_prime=None,
        u_prime_inv=None,
    ):
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        if not 0 < beta < 1:
            raise ValueError(f"beta must be in (0, 1), got {beta}")
        if grid_size < 2:
            raise ValueError(f"grid_size must be >= 2, got {grid_size}")
        if (u_prime is None) != (u_prime_inv is None):
            raise ValueError("u_prime and u_prime_inv must be supplied together")

        self.alpha, self.beta, self.mu, self.s = alpha, beta, mu, s
        self.u = u
        self.u_prime = u_prime if u_prime is not None else _log_u_prime
        self.u_prime_inv = u_prime_inv if u_prime_inv is not None else _log_u_prime_inv

        self.grid = np.linspace(1e-5, grid_max, grid_size)

        z = Normal(mu, s).discretize(n_points=shock_size)
        self.shock_dist = DiscreteDistribution(np.exp(z.points), z.weights)

    @classmethod
    def from_calibration(cls, calibration):
        return apply_fun_to_vals(cls, calibration)

    def f(self, k):
        return k**self.alpha

    def f_prime(self, k):
        return self.alpha * k ** (self.alpha - 1)


def egm_operator(g, gm):
    """
    The Coleman operator, updated using the endogenous grid method.

    Parameters
    ----------
    g : callable
        The current guess of the consumption policy, vectorized.
    gm : GrowthModel

    Returns
    -------
    LinearInterp
        The updated policy, through (k_i + c_i, c_i) for each k_i on gm.grid.
    """
    k = gm.grid

    def marginal(xi):
        # Rows index next period capital, columns the shock
        return gm.u_prime(g(gm.f(k)[:, None] * xi)) * gm.f_prime(k)[:, None] * xi

    c = gm.u_prime_inv(gm.beta * expected(marginal, gm.shock_dist))

    return LinearInterp(k + c, c)


def coleman_operator(g, gm):
    """
    The Coleman operator on the exogenous output grid: solves the Euler
    equation for consumption at each y in gm.grid with brentq.

    Parameters
    ----------
    g : callable
        The current guess of the consumption policy, vectorized.
    gm : GrowthModel

    Returns
    -------
    LinearInterp
        The updated policy on gm.grid.
    """
    c_new = np.empty_like(gm.grid)

    for i, y in enumerate(gm.grid):

        def euler_diff(c):
            k = y - c

            def marginal(xi):
                return gm.u_prime(g(gm.f(k) * xi)) * gm.f_prime(k) * xi

            return gm.u_prime(c) - gm.beta * expected(marginal, gm.shock_dist)

        c_new[i] = brentq(euler_diff, 1e-10, y - 1e-10)

    return LinearInterp(gm.grid, c_new)


def bellman_operator(v, gm):
    """
    The Bellman operator for the growth model, maximizing over consumption
    at each grid point.

    Parameters
    ----------
    v : callable
        The current guess of the value function, vectorized.
    gm : GrowthModel

    Returns
    -------
    LinearInterp
        The updated value function on gm.grid.
    """
    return LinearInterp(gm.grid, _maximize(v, gm)[0])


def get_greedy(v, gm):
    """Consumption policy that is greedy with respect to v."""
    return LinearInterp(gm.grid, _maximize(v, gm)[1])


def _maximize(v, gm):
    values = np.empty_like(gm.grid)
    policy = np.empty_like(gm.grid)

    for i, y in enumerate(gm.grid):

        def objective(c):
            continuation = expected(lambda xi: v(gm.f(y - c) * xi), gm.shock_dist)
            return -(gm.u(c) + gm.beta * continuation)

        res = minimize_scalar(objective, bounds=(1e-10, y - 1e-10), method="bounded")
        values[i] = -res.fun
        policy[i] = res.x

    return values, policy


def c_star(y, gm):
    """Optimal policy under log utility."""
    return (1 - gm.alpha * gm.beta) * y


def v_star(y, gm):
    """Value function under log utility."""
    alpha, beta, mu = gm.alpha, gm.beta, gm.mu
    c1 = np.log(1 - alpha * beta) / (1 - beta)
    c2 = (mu + alpha * np.log(alpha * beta)) / (1 - alpha)
    c3 = 1 / (1 - beta)
    c4 = 1 / (1 - alpha * beta)
    return c1 + c2 * (c3 - c4) + c4 * np.log(y)


def initial_policy(gm):
    """Consume everything: c(y) = y."""
    return LinearInterp(gm.grid, gm.grid)


def solve_egm(gm, g_init=None, **kwargs):
    """
    Time iteration with the endogenous grid method. Keyword arguments go to
    `compute_fixed_point`.
    """
    if g_init is None:
        g_init = initial_policy(gm)
    return compute_fixed_point(partial(_apply, egm_operator, gm), g_init, **kwargs)


def solve_time_iter(gm, g_init=None, **kwargs):
    """
    Time iteration on the exogenous grid. Keyword arguments go to
    `compute_fixed_point`.
    """
    if g_init is None:
        g_init = initial_policy(gm)
    return compute_fixed_point(partial(_apply, coleman_operator, gm), g_init, **kwargs)


def _apply(operator, gm, g):
    return operator(g, gm)
