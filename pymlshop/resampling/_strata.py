"""
Stratum codes for stratified resampling.

    factor / labels   one stratum per level
    numeric           quantile buckets (``breaks`` of them)
    Surv              event status x time quantile buckets within status

Strata smaller than ``min_size`` are merged into an adjacent stratum until
every stratum is large enough or a single stratum remains.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymlshop.survival.design import Surv


def quantile_buckets(x: NDArray, breaks: int) -> NDArray:
    """Bucket codes 0..breaks-1 by sample quantiles of ``x``."""
    if len(x) == 0:
        return np.zeros(0, dtype=np.intp)
    edges = np.quantile(x, np.linspace(0.0, 1.0, breaks + 1)[1:-1])
    codes = np.searchsorted(np.unique(edges), x, side="left")
    return np.unique(codes, return_inverse=True)[1].astype(np.intp)


def merge_small(codes: NDArray, min_size: int) -> NDArray:
    """Merge strata smaller than ``min_size`` into their smaller neighbour."""
    codes = np.unique(codes, return_inverse=True)[1]
    counts = list(np.bincount(codes))
    mapping = list(range(len(counts)))     # original code -> merged position
    groups = [[c] for c in range(len(counts))]

    while len(counts) > 1 and min(counts) < min_size:
        i = int(np.argmin(counts))
        if i == 0:
            j = 1
        elif i == len(counts) - 1:
            j = i - 1
        else:
            j = i - 1 if counts[i - 1] <= counts[i + 1] else i + 1
        lo, hi = min(i, j), max(i, j)
        counts[lo] += counts[hi]
        groups[lo].extend(groups[hi])
        del counts[hi]
        del groups[hi]

    for position, members in enumerate(groups):
        for c in members:
            mapping[c] = position
    return np.asarray(mapping, dtype=np.intp)[codes]


def strata_groups(y, breaks: int = 4, min_size: int = 20) -> NDArray:
    """
    Integer stratum codes for a stratification variable.

    Args:
        y: Surv, numeric (floating) array, or labels
        breaks: Number of quantile buckets for numeric times/values
        min_size: Minimum stratum size before merging

    Returns:
        (n,) integer codes starting at 0
    """
    if isinstance(y, Surv):
        status = y.status.astype(np.intp)
        codes = np.zeros(len(y), dtype=np.intp)
        for s in (0, 1):
            mask = status == s
            codes[mask] = 2 * quantile_buckets(y.time[mask], breaks) + s
    else:
        arr = np.asarray(y)
        if np.issubdtype(arr.dtype, np.floating):
            codes = quantile_buckets(arr, breaks)
        else:
            codes = np.unique(arr, return_inverse=True)[1]
    return merge_small(codes.ravel(), min_size)
