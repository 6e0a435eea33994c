"""
Distribution classes built on scipy.stats, plus the quadrature rules used to
take expectations on bounded supports.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import math
import numpy as np
from scipy import stats


class Distribution(ABC):
    """
    Base class for all distributions, providing a common interface
    over a frozen scipy.stats distribution.
    """

    def __init__(self, rng: np.random.Generator | None = None):
        """
        Parameters
        ----------
        rng : np.random.Generator, optional
            Random number generator instance. If None, creates own RNG with random seed.
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    def draw(self, n: int = 1) -> np.ndarray:
        """Draw n samples from the distribution"""
        return np.asarray(self._dist.rvs(size=n, random_state=self.rng))

    @abstractmethod
    def discretize(self, **kwargs) -> DiscreteDistribution:
        """Discretize the distribution"""

    @property
    @abstractmethod
    def mean(self) -> float:
        """Mean of the distribution"""

    @property
    @abstractmethod
    def std(self) -> float:
        """Standard deviation of the distribution"""


class Normal(Distribution):
    """Normal distribution"""

    def __init__(
        self,
        mu: float = 0.0,
        sigma: float = 1.0,
        rng: np.random.Generator | None = None,
    ):
        super().__init__(rng)
        if sigma <= 0:
            raise ValueError(f"sigma must be > 0, got {sigma}")
        self.mu = mu
        self.sigma = sigma

        self._dist = stats.norm(loc=mu, scale=sigma)

    def discretize(self, n_points: int = 7, **kwargs) -> DiscreteDistribution:
        """Discretize using Gauss-Hermite quadrature"""
        points, weights = np.polynomial.hermite.hermgauss(n_points)
        points = points * np.sqrt(2) * self.sigma + self.mu
        weights = weights / np.sqrt(np.pi)

        return DiscreteDistribution(points, weights)

    @property
    def mean(self) -> float:
        return self.mu

    @property
    def std(self) -> float:
        return self.sigma


class Beta(Distribution):
    """
    Beta(a, b) distribution stretched onto [0, scale].
    """

    def __init__(
        self,
        a: float = 1.0,
        b: float = 1.0,
        scale: float = 1.0,
        rng: np.random.Generator | None = None,
    ):
        super().__init__(rng)
        if a <= 0 or b <= 0:
            raise ValueError(f"Beta shape parameters must be > 0, got a={a}, b={b}")
        if scale <= 0:
            raise ValueError(f"scale must be > 0, got {scale}")
        self.a = a
        self.b = b
        self.scale = scale

        self._dist = stats.beta(a, b, scale=scale)

    def pdf(self, x):
        """Density at x; zero outside [0, scale]."""
        return self._dist.pdf(x)

    def discretize(self, n_points: int = 30, **kwargs) -> DiscreteDistribution:
        """Gauss-Legendre nodes on the support, weighted by the density"""
        points, weights = gauss_legendre(n_points, 0.0, self.scale)
        return DiscreteDistribution(points, weights * self.pdf(points))

    @property
    def mean(self) -> float:
        return self.scale * self.a / (self.a + self.b)

    @property
    def std(self) -> float:
        a, b = self.a, self.b
        return self.scale * math.sqrt(a * b / ((a + b) ** 2 * (a + b + 1)))


class Bernoulli(Distribution):
    """Bernoulli distribution"""

    def __init__(
        self,
        p: float = 0.5,
        rng: np.random.Generator | None = None,
    ):
        super().__init__(rng)
        if not 0 <= p <= 1:
            raise ValueError(f"p must be in [0, 1], got {p}")
        self.p = p

        self._dist = stats.bernoulli(p=p)

    def discretize(self, **kwargs) -> DiscreteDistribution:
        """Bernoulli is already discrete"""
        points = np.array([0, 1])
        weights = np.array([1 - self.p, self.p])
        return DiscreteDistribution(points, weights)

    @property
    def mean(self) -> float:
        return self.p

    @property
    def std(self) -> float:
        return np.sqrt(self.p * (1 - self.p))


class DiscreteDistribution:
    """
    A finite distribution over `points` with probabilities proportional to `weights`.
    """

    def __init__(self, points: np.ndarray, weights: np.ndarray):
        self.points = np.asarray(points)
        self.weights = np.asarray(weights, dtype=float)

        if self.points.shape[0] != self.weights.shape[0]:
            raise ValueError(
                f"Got {self.points.shape[0]} points but {self.weights.shape[0]} weights"
            )
        if np.any(self.weights < 0) or np.sum(self.weights) <= 0:
            raise ValueError("weights must be non-negative with a positive sum")

        self.weights = self.weights / np.sum(self.weights)

    @property
    def mean(self) -> float:
        return np.sum(self.points * self.weights)

    @property
    def std(self) -> float:
        mean_val = self.mean
        return np.sqrt(np.sum((self.points - mean_val) ** 2 * self.weights))


def gauss_legendre(n: int, low: float, high: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Legendre nodes and weights for integrating over [low, high].

    The weights sum to `high - low`, so `np.dot(weights, f(nodes))`
    approximates the integral of f.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if not high > low:
        raise ValueError(f"Need high > low, got low={low}, high={high}")
    nodes, weights = np.polynomial.legendre.leggauss(n)
    half_width = (high - low) / 2
    return half_width * nodes + (high + low) / 2, half_width * weights


def expected(func, dist: DiscreteDistribution):
    """
    Expected value of a vectorized function over a discrete distribution.

    `func` receives the array of support points and may return an array whose
    last axis runs over those points; the expectation is taken along that axis.
    """
    if not (hasattr(dist, "points") and hasattr(dist, "weights")):
        raise ValueError("Distribution must have points and weights attributes")
    return np.dot(np.asarray(func(dist.points)), dist.weights)
