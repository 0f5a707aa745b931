# finengine/stats.py
"""
Statistics kernel shared by the forecasting and scoring modules.

Purpose
-------
Small, deterministic numerical primitives:

- ewma / ewma_path : exponentially weighted moving average (seeded with the
  first observation)
- mean / stddev    : population moments with empty/short-sample guards
- erf / normal_cdf : Abramowitz-Stegun 7.1.26 closed-form approximation
- logistic_score   : sigmoid map of a raw ratio onto a 0-100 quality score

Mathematical Framework
----------------------
EWMA recurrence:
    v_0 = x_0
    v_t = alpha * x_t + (1 - alpha) * v_{t-1}

Normal CDF:
    Phi(x; mu, sigma) = 0.5 * (1 + erf((x - mu) / (sigma * sqrt(2))))
    sigma = 0 degenerates to the step function 1[x >= mu].

Logistic score:
    growth: 100 / (1 + exp(-k (x - x0)))
    decay : 100 - growth

Example
-------
>>> from finengine.stats import ewma, normal_cdf, logistic_score
>>> round(ewma([1200, 800, 2500, 500, 4000], 0.3), 4)
2042.94
>>> round(normal_cdf(0.0, 0.0, 1.0), 6)
0.5
>>> logistic_score(0.40, 0.40, 15, "decay")
50.0
"""

from __future__ import annotations

from typing import Literal, Union

import numpy as np

from .constants import DEFAULT_ALPHA
from .utils import ArrayLike, ensure_1d

__all__ = [
    "ewma",
    "ewma_path",
    "mean",
    "stddev",
    "erf",
    "normal_cdf",
    "logistic_score",
]

Direction = Literal["growth", "decay"]

# A&S 7.1.26 coefficients
_P = 0.3275911
_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


# ---------------------------------------------------------------------------
# Smoothing
# ---------------------------------------------------------------------------

def ewma_path(series: ArrayLike, alpha: float = DEFAULT_ALPHA) -> np.ndarray:
    """
    Full EWMA path of *series*.

    Parameters
    ----------
    series : array-like
        Observations in chronological order.
    alpha : float, default 0.30
        Weight of the newest observation, must be in [0, 1].

    Returns
    -------
    np.ndarray
        Smoothed values, same length as *series* (empty for empty input).
    """
    if not (0.0 <= alpha <= 1.0):
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")
    x = ensure_1d(series, name="series")
    out = np.empty_like(x)
    if x.size == 0:
        return out
    # Sequential on purpose: the recurrence must be reproduced exactly.
    v = x[0]
    out[0] = v
    for t in range(1, x.size):
        v = alpha * x[t] + (1.0 - alpha) * v
        out[t] = v
    return out


def ewma(series: ArrayLike, alpha: float = DEFAULT_ALPHA) -> float:
    """Last value of the EWMA path; 0.0 for an empty series."""
    path = ewma_path(series, alpha)
    return float(path[-1]) if path.size else 0.0


# ---------------------------------------------------------------------------
# Moments
# ---------------------------------------------------------------------------

def mean(values: ArrayLike) -> float:
    """Arithmetic mean; 0.0 when empty."""
    x = ensure_1d(values, name="values")
    return float(x.mean()) if x.size else 0.0


def stddev(values: ArrayLike) -> float:
    """Population standard deviation; 0.0 for fewer than 2 samples."""
    x = ensure_1d(values, name="values")
    if x.size < 2:
        return 0.0
    return float(np.std(x, ddof=0))


# ---------------------------------------------------------------------------
# Normal distribution
# ---------------------------------------------------------------------------

def erf(x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Error function, Abramowitz-Stegun formula 7.1.26.

    Maximum absolute error is about 1.5e-7. Accepts scalars or arrays.
    """
    arr = np.asarray(x, dtype=float)
    sign = np.where(arr >= 0, 1.0, -1.0)
    ax = np.abs(arr)
    t = 1.0 / (1.0 + _P * ax)
    a1, a2, a3, a4, a5 = _A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    y = sign * (1.0 - poly * np.exp(-ax * ax))
    return float(y) if y.ndim == 0 else y


def normal_cdf(x: float, mean: float = 0.0, std: float = 1.0) -> float:
    """
    Normal cumulative distribution function via the erf approximation.

    Parameters
    ----------
    x : float
        Evaluation point.
    mean : float, default 0.0
    std : float, default 1.0
        Standard deviation. ``std == 0`` is a step function at *mean*.

    Returns
    -------
    float
        P(X <= x) for X ~ N(mean, std^2).
    """
    if std == 0:
        return 1.0 if x >= mean else 0.0
    return float(0.5 * (1.0 + erf((x - mean) / (std * np.sqrt(2.0)))))


# ---------------------------------------------------------------------------
# Logistic transform
# ---------------------------------------------------------------------------

def logistic_score(
    x: float,
    midpoint: float,
    steepness: float,
    direction: Direction = "growth",
) -> float:
    """
    Map a raw ratio onto a 0-100 score with a sigmoid.

    Parameters
    ----------
    x : float
        Raw ratio.
    midpoint : float
        Value scoring exactly 50.
    steepness : float
        Slope k of the sigmoid.
    direction : {"growth", "decay"}
        "growth": higher x scores higher. "decay": higher x scores lower.

    Returns
    -------
    float
        Score in [0, 100].
    """
    if direction not in ("growth", "decay"):
        raise ValueError(f"direction must be 'growth' or 'decay', got {direction!r}")
    # exp overflow for extreme ratios saturates the score at 0 or 100
    with np.errstate(over="ignore"):
        growth = 100.0 / (1.0 + np.exp(-steepness * (x - midpoint)))
    growth = float(growth)
    if direction == "growth":
        return growth
    return 100.0 - growth
