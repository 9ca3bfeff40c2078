"""
eosim.lagrange — Lagrange Polynomial Interpolation
===================================================

Interpolation of tabulated vector samples, used by ephemeris objects and
by ``LagrangeInterpolatedObject`` to stand in for an expensive propagator.
"""

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError


def lagrange_interpolate(times: NDArray, values: NDArray, t: float,
                         out: NDArray = None) -> NDArray:
    """Evaluate the Lagrange polynomial through ``(times[i], values[i])``.

    Parameters
    ----------
    times : (N,) — sample abscissae, distinct
    values : (N, k) — sample ordinates
    t : float — evaluation point

    Returns
    -------
    (k,) ndarray
    """
    times = np.asarray(times, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    n = times.shape[0]
    if n == 0 or values.shape[0] != n:
        raise InvalidInputError("times and values must be non-empty and the same length")

    if out is None:
        out = np.zeros(values.shape[1:])
    else:
        out[...] = 0.0
    for i in range(n):
        w = 1.0
        for j in range(n):
            if j != i:
                w *= (t - times[j]) / (times[i] - times[j])
        out += w * values[i]
    return out


def lagrange_derivative(times: NDArray, values: NDArray, t: float) -> NDArray:
    """First derivative of the Lagrange polynomial at ``t``."""
    times = np.asarray(times, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    n = times.shape[0]
    result = np.zeros(values.shape[1:])
    for i in range(n):
        denom = 1.0
        for j in range(n):
            if j != i:
                denom *= times[i] - times[j]
        # d/dt ∏_{j≠i} (t − t_j) = Σ_m ∏_{j≠i,m} (t − t_j)
        dsum = 0.0
        for m in range(n):
            if m == i:
                continue
            term = 1.0
            for j in range(n):
                if j != i and j != m:
                    term *= t - times[j]
            dsum += term
        result += (dsum / denom) * values[i]
    return result


def nearest_window(times: NDArray, t: float, size: int) -> slice:
    """Slice of ``size`` consecutive samples centred on ``t`` (clamped)."""
    n = len(times)
    size = min(size, n)
    idx = int(np.searchsorted(times, t))
    first = min(max(0, idx - size // 2), n - size)
    return slice(first, first + size)
