import inspect

import numpy as np


def apply_fun_to_vals(fun, vals):
    """
    Applies a function to the arguments defined in `vals`.
    This is equivalent to `fun(**vals)`, except
    that `vals` may contain keys that are not named arguments
    of `fun`, and named arguments missing from `vals` fall
    back to their defaults.

    Parameters
    ----------
    fun: callable

    vals: dict
    """
    params = inspect.signature(fun).parameters
    return fun(**{var: vals[var] for var in params if var in vals})


def sup_norm(new, old):
    """Largest absolute elementwise difference between two arrays."""
    return float(np.max(np.abs(np.asarray(new) - np.asarray(old))))
