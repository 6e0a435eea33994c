"""
The uncertainty traps economy.

A fundamental theta follows theta' = rho theta + sigma_theta w with w standard
normal. Each period, each of `num_firms` potential entrants draws a fixed cost
F ~ N(0, sigma_F**2) and enters if its expected payoff psi(F) is positive.
Active firms observe noisy signals x = theta + eps, eps ~ N(0, 1 / gamma_x),
and the public belief theta ~ N(mu, 1 / gamma) is updated from the mean
signal X of the M active firms:

    mu'    = rho (gamma mu + M gamma_x X) / (gamma + M gamma_x)
    gamma' = 1 / (rho**2 / (gamma + M gamma_x) + sigma_theta**2)

Fewer entrants mean less information and lower precision, which in turn
discourages entry.

The economy object holds parameters only. Beliefs and the fundamental are
carried in an explicit `EconomyState`, and every update returns a new state.
"""

from typing import NamedTuple

import numpy as np

from skdp.distributions import Normal
from skdp.utils import apply_fun_to_vals

calibration = {
    "a": 1.5,
    "c": -420.0,
    "rho": 0.99,
    "sigma_theta": 0.5,
    "num_firms": 100,
    "sigma_F": 1.5,
    "sigma_x": 0.5,
    "mu_init": 0.0,
    "gamma_init": 4.0,
    "theta_init": 0.0,
}


class EconomyState(NamedTuple):
    """Public belief (mu, gamma) and the true fundamental theta."""

    mu: float
    gamma: float
    theta: float


class UncertaintyTrapEcon:
    def __init__(
        self,
        a=1.5,
        c=-420.0,
        rho=0.99,
        sigma_theta=0.5,
        num_firms=100,
        sigma_F=1.5,
        sigma_x=0.5,
        mu_init=0.0,
        gamma_init=4.0,
        theta_init=0.0,
    ):
        if a <= 0:
            raise ValueError(f"a must be > 0, got {a}")
        if sigma_theta <= 0 or sigma_x <= 0 or sigma_F <= 0:
            raise ValueError(
                f"standard deviations must be > 0, got sigma_theta={sigma_theta}, "
                f"sigma_x={sigma_x}, sigma_F={sigma_F}"
            )
        if num_firms < 0:
            raise ValueError(f"num_firms must be >= 0, got {num_firms}")
        if gamma_init <= 0:
            raise ValueError(f"gamma_init must be > 0, got {gamma_init}")

        self.a, self.c, self.rho, self.sigma_theta = a, c, rho, sigma_theta
        self.num_firms, self.sigma_F, self.sigma_x = num_firms, sigma_F, sigma_x
        self.gamma_x = 1 / sigma_x**2
        self.initial_state = EconomyState(mu_init, gamma_init, theta_init)

    @classmethod
    def from_calibration(cls, calibration):
        return apply_fun_to_vals(cls, calibration)

    def psi(self, state, F):
        """Expected payoff of entry net of c, for fixed cost(s) F."""
        temp1 = -self.a * (state.mu - F)
        temp2 = self.a**2 * (1 / state.gamma + 1 / self.gamma_x) / 2
        return (1 / self.a) * (1 - np.exp(temp1 + temp2)) - self.c

    def update_mu(self, state, X, M):
        temp1 = self.rho * (state.gamma * state.mu + M * self.gamma_x * X)
        temp2 = state.gamma + M * self.gamma_x
        return temp1 / temp2

    def update_gamma(self, gamma, M):
        """
        Precision recursion. With M = 0 no signals arrive and precision
        decays towards (1 - rho**2) / sigma_theta**2.
        """
        return 1 / (self.rho**2 / (gamma + M * self.gamma_x) + self.sigma_theta**2)

    def update_beliefs(self, state, X, M):
        """Kalman update of the public belief given aggregates X and M."""
        return state._replace(
            mu=self.update_mu(state, X, M), gamma=self.update_gamma(state.gamma, M)
        )

    def update_theta(self, state, w):
        return state._replace(theta=self.rho * state.theta + self.sigma_theta * w)

    def gamma_fixed_point(self, M):
        """
        The unique positive fixed point of `update_gamma` for a constant
        number of active firms M, the positive root of

            sigma_theta**2 g**2 + (rho**2 + sigma_theta**2 k - 1) g - k = 0

        with k = M gamma_x.
        """
        s = self.sigma_theta**2
        k = M * self.gamma_x
        b = self.rho**2 + s * k - 1
        return (-b + np.sqrt(b**2 + 4 * s * k)) / (2 * s)

    def gen_aggregates(self, state, rng):
        """
        Draw fixed costs and signals for one period.

        Returns
        -------
        X : float
            Mean signal of active firms, zero when no firm is active.
        M : int
            Number of active firms.
        """
        F_vals = Normal(0.0, self.sigma_F, rng=rng).draw(self.num_firms)
        M = int(np.sum(self.psi(state, F_vals) > 0))
        if M > 0:
            x_vals = Normal(state.theta, self.sigma_x, rng=rng).draw(M)
            X = float(np.mean(x_vals))
        else:
            X = 0.0
        return X, M
