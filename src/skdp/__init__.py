"""
Copyright (c) 2025 scikit-dp Team. All rights reserved.

scikit-dp: fixed-point and dynamic programming tools for economic models.

This package provides a generic fixed-point driver, interpolation and
quadrature collaborators, and solution and simulation code for job search
with learning, stochastic optimal growth and the uncertainty traps economy.
"""

from __future__ import annotations

from ._version import version as __version__

# Fixed points
from .solver import FixedPointResult, compute_fixed_point

# Interpolation
from .interpolation import BilinearInterp, LinearInterp

# Simulation tools
from .simulation.monte_carlo import (
    JobSearchSimulator,
    Simulator,
    UncertaintyTrapSimulator,
)

# Models
from .models import growth, search, uncertainty_traps

# Utility functions
from . import utils

__all__ = [
    "__version__",
    # Fixed points
    "FixedPointResult",
    "compute_fixed_point",
    # Interpolation
    "BilinearInterp",
    "LinearInterp",
    # Simulation
    "JobSearchSimulator",
    "Simulator",
    "UncertaintyTrapSimulator",
    # Modules
    "growth",
    "search",
    "uncertainty_traps",
    "utils",
]
