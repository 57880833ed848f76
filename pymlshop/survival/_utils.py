"""
Shared numerical helpers for survival curves.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def cumsum_risk(x: NDArray) -> NDArray:
    """Reverse cumulative sum: risk mass of cases at or beyond each time."""
    return np.cumsum(x[::-1], axis=0)[::-1]


def step_lookup(grid: NDArray, values: NDArray, times: NDArray) -> NDArray:
    """Evaluate right-continuous step functions at query times.

    ``values`` is (..., m) over the sorted ``grid``; the value at a query
    time is the last value at or before it, and 1 before the first grid
    point.
    """
    idx = np.searchsorted(grid, times, side="right")
    values = np.atleast_2d(values)
    padded = np.column_stack([np.ones(values.shape[0]), values])
    return padded[:, idx]


def surv_mean(times: NDArray, surv: NDArray, max_time: float | None = None) -> NDArray:
    """Mean survival time by integrating step survival curves.

    Right-Riemann sum over the curve with S = 1 before the first time and
    S = 0 from ``max_time`` on. Rows of ``surv`` are separate curves over
    the common ``times``; the result has one entry per row.
    """
    times = np.asarray(times, dtype=np.float64)
    if max_time is None:
        max_time = float(np.max(times))
    surv = np.atleast_2d(np.asarray(surv, dtype=np.float64))
    if surv.shape[1] != len(times):
        raise ValueError(
            f"surv has {surv.shape[1]} columns for {len(times)} times"
        )
    knots = np.append(times, max_time)
    rows = surv.shape[0]
    padded = np.column_stack([np.ones(rows), surv, np.zeros(rows)])
    return -(np.diff(padded, axis=1) @ knots)


def surv_metric_mean(values: NDArray, times) -> float:
    """Time-weighted average of metric values computed at several times.

    Each value is weighted by the length of the interval ending at its
    time, relative to the last time.
    """
    times = np.asarray(times, dtype=np.float64)
    weights = np.diff(np.concatenate([[0.0], times])) / times[-1]
    return float(np.sum(weights * np.asarray(values, dtype=np.float64)))


def surv_times(time: NDArray, event: NDArray) -> NDArray:
    """Sorted distinct event times."""
    return np.unique(time[event != 0])


def km_censoring(time: NDArray, event: NDArray):
    """Kaplan-Meier estimate of the censoring distribution G(t).

    Returns (grid, G) where G is evaluated just after each grid time.
    Censorings are the "events" here; ties with failures count the
    failures as leaving first.
    """
    grid = np.unique(time)
    censored = (event == 0).astype(np.float64)
    idx = np.searchsorted(grid, time)
    n_cens = np.bincount(idx, weights=censored, minlength=len(grid))
    n_total = np.bincount(idx, minlength=len(grid)).astype(np.float64)
    n_risk = cumsum_risk(n_total)
    with np.errstate(divide="ignore", invalid="ignore"):
        factor = np.where(n_risk > 0, 1.0 - n_cens / n_risk, 1.0)
    return grid, np.cumprod(factor)
