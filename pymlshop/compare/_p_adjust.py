"""
Multiple comparison adjustment of p-values, matching R's p.adjust().

Methods: holm, hochberg, hommel, bonferroni, BH, BY, fdr (alias of BH),
none. Missing p-values stay missing and are not counted as comparisons.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.settings import P_ADJUST_METHODS


def _step_down(p: NDArray, n: int) -> NDArray:
    # Holm: sorted p times (n, n-1, ...), cumulative max
    order = np.argsort(p, kind="stable")
    scaled = p[order] * np.arange(n, n - len(p), -1, dtype=np.float64)
    out = np.empty(len(p))
    out[order] = np.maximum.accumulate(scaled)
    return out


def _step_up(p: NDArray, n: int, scale: NDArray) -> NDArray:
    # Largest p first, scaled per rank, cumulative min
    order = np.argsort(p, kind="stable")[::-1]
    out = np.empty(len(p))
    out[order] = np.minimum.accumulate(p[order] * scale)
    return out


def _hochberg(p: NDArray, n: int) -> NDArray:
    return _step_up(p, n, np.arange(n - len(p) + 1, n + 1, dtype=np.float64))


def _bh(p: NDArray, n: int) -> NDArray:
    return _step_up(p, n, n / np.arange(len(p), 0, -1, dtype=np.float64))


def _by(p: NDArray, n: int) -> NDArray:
    q = np.sum(1.0 / np.arange(1, n + 1))
    return _step_up(p, n, q * n / np.arange(len(p), 0, -1, dtype=np.float64))


def _hommel(p: NDArray, n: int) -> NDArray:
    lp = len(p)
    if lp <= 1:
        return p.copy()
    work = np.concatenate([p, np.ones(n - lp)])
    order = np.argsort(work, kind="stable")
    sp = work[order]
    ranks = np.arange(1, n + 1, dtype=np.float64)

    pa = np.full(n, np.min(n * sp / ranks))
    q = pa.copy()
    for j in range(n - 1, 1, -1):
        split = n - j + 1
        q1 = np.min(j * sp[split:] / np.arange(2, j + 1, dtype=np.float64))
        q[:split] = np.minimum(j * sp[:split], q1)
        q[split:] = q[split - 1]
        pa = np.maximum(pa, q)

    adjusted = np.empty(n)
    adjusted[order] = np.maximum(pa, sp)
    return adjusted[:lp]


def _bonferroni(p: NDArray, n: int) -> NDArray:
    return p * n


_METHODS = {
    "holm": _step_down,
    "hochberg": _hochberg,
    "hommel": _hommel,
    "bonferroni": _bonferroni,
    "BH": _bh,
    "fdr": _bh,
    "BY": _by,
}


def p_adjust(p: ArrayLike, method: str = "holm") -> NDArray[np.floating]:
    """
    Adjust p-values for multiple comparisons.

    Parameters
    ----------
    p : array-like
        P-values; NaN entries are passed through.
    method : str
        One of "holm", "hochberg", "hommel", "bonferroni", "BH", "BY",
        "fdr", "none".

    Returns
    -------
    ndarray
        Adjusted p-values in the input order, clipped to [0, 1].
    """
    if method not in P_ADJUST_METHODS:
        raise ConfigurationError(
            f"p-value adjustment must be one of {P_ADJUST_METHODS}, got {method!r}",
            field="adjust",
            value=method,
        )
    p = np.asarray(p, dtype=np.float64).ravel()
    out = p.copy()
    valid = ~np.isnan(p)
    if method == "none" or not np.any(valid):
        return out
    pv = p[valid]
    out[valid] = np.clip(_METHODS[method](pv, len(pv)), 0.0, 1.0)
    return out
