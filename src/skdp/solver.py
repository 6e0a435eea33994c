"""
Generic fixed-point iteration.

An operator T is iterated from an initial condition until successive
iterates are within a tolerance of each other. If T is a contraction the
result approximates its unique fixed point.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from skdp.utils import sup_norm


@dataclass
class FixedPointResult:
    """
    Outcome of `compute_fixed_point`.

    Attributes
    ----------
    value : Any
        The last iterate, which is the best available estimate of the fixed
        point whether or not the tolerance was met.
    converged : bool
        True if the distance between the last two iterates was within tolerance.
    iterations : int
        Number of times the operator was applied.
    error : float
        Distance between the last two iterates.
    errors : list of float
        Distance recorded after every application of the operator.
    """

    value: Any
    converged: bool
    iterations: int
    error: float
    errors: list = field(default_factory=list)


def _distance(new, old, distance):
    if distance is not None:
        return distance(new, old)
    if hasattr(new, "distance"):
        return new.distance(old)
    return sup_norm(new, old)


def compute_fixed_point(
    T: Callable,
    v,
    tol: float = 1e-4,
    max_iter: int = 500,
    verbose: bool = False,
    print_skip: int = 25,
    distance: Optional[Callable] = None,
) -> FixedPointResult:
    """
    Computes T^k v, where T is an operator, v is an initial condition and
    k is the number of iterates needed to bring the distance between
    successive iterates within `tol`, up to `max_iter`.

    Parameters
    ----------
    T : Callable
        The operator, called as `new_v = T(v)`. Bind model parameters with
        `functools.partial` or a lambda.
    v : array or interpolant
        Initial condition.
    tol : float, optional
        Convergence tolerance. Default is 1e-4.
    max_iter : int, optional
        Maximum number of applications of T. Default is 500.
    verbose : bool, optional
        If True, log progress every `print_skip` iterations.
    print_skip : int, optional
        Logging frequency when verbose. Default is 25.
    distance : Callable, optional
        `distance(new, old) -> float`. Defaults to `new.distance(old)` when
        the iterate defines it and to the sup norm otherwise.

    Returns
    -------
    FixedPointResult
        Non-convergence within `max_iter` is reported through the
        `converged` flag, not raised.

    Raises
    ------
    ValueError
        If any input parameters are invalid.
    """
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")
    if tol <= 0:
        raise ValueError(f"tol must be > 0, got {tol}")
    if print_skip < 1:
        raise ValueError(f"print_skip must be >= 1, got {print_skip}")

    iteration = 0
    error = float("inf")
    errors = []

    while iteration < max_iter and error > tol:
        new_v = T(v)
        iteration += 1
        error = _distance(new_v, v, distance)
        errors.append(error)

        if verbose and iteration % print_skip == 0:
            logging.info(f"Computed iterate {iteration} with error {error:.2e}")

        v = new_v

    converged = error <= tol

    if converged:
        logging.info(f"Converged after {iteration} iterations. Error: {error:.2e}")
    else:
        logging.warning(
            f"Fixed point iteration completed without convergence after "
            f"{max_iter} iterations. Error: {error:.2e}"
        )

    return FixedPointResult(
        value=v, converged=converged, iterations=iteration, error=error, errors=errors
    )
