"""
Empirical survival curves from right-censored data with case risk weights.

Baseline survival estimators of the Cox partial-likelihood family. With
risk weights r_i (exp of a linear predictor, or 1), at each distinct time
t with d events, total risk W of cases still at risk, and risk W_d of the
cases failing at t:

    breslow:             h(t) = d / W
    fleming-harrington:  h(t) = sum_{k=0}^{d-1} 1 / (W - (k/d) W_d)
    efron:               h(t) = d / (prod_{k=0}^{d-1} (W - (k/d) W_d))^(1/d)

Survival is S(t) = exp(-sum_{s <= t} h(s)). Efron's form replaces the
harmonic mean of the tie-reduced risk sets (Fleming-Harrington) by their
geometric mean; all three coincide when no event times are tied.

References:
    Breslow, N. (1974). Covariance analysis of censored survival data.
        Biometrics, 30(1), 89-99.
    Efron, B. (1977). The efficiency of Cox's likelihood function for
        censored data. JASA, 72(359), 557-565.
    Fleming, T. R., & Harrington, D. P. (1984). Nonparametric estimation
        of the survival distribution in censored data. Comm. Stat., 13(20).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymlshop.survival._common import EmpiricalSurvParams
from pymlshop.survival._utils import cumsum_risk

METHODS = ("breslow", "efron", "fleming-harrington")


def empirical_surv_fit(
    time: NDArray,
    event: NDArray,
    risk: NDArray,
    method: str = "efron",
) -> EmpiricalSurvParams:
    """Estimate the survival curve at every distinct observed time.

    Parameters
    ----------
    time : NDArray
        (n,) observed times.
    event : NDArray
        (n,) event codes; any nonzero code counts as an event.
    risk : NDArray
        (n,) positive relative risks.
    method : str
        "breslow", "efron", or "fleming-harrington".

    Returns
    -------
    EmpiricalSurvParams
    """
    if method not in METHODS:
        raise ValueError(
            f"method must be one of {METHODS}, got {method!r}"
        )

    status = np.minimum(event, 1.0)
    grid, idx = np.unique(time, return_inverse=True)
    m = len(grid)

    n_total = np.bincount(idx, minlength=m).astype(np.float64)
    n_event = np.bincount(idx, weights=status, minlength=m)
    risk_all = cumsum_risk(np.bincount(idx, weights=risk, minlength=m))
    risk_events = np.bincount(idx, weights=risk * status, minlength=m)

    if method == "breslow":
        with np.errstate(divide="ignore", invalid="ignore"):
            hazard = np.where(n_event > 0, n_event / risk_all, 0.0)
    else:
        hazard = np.zeros(m, dtype=np.float64)
        for j in np.flatnonzero(n_event):
            d = int(n_event[j])
            if d == 1:
                hazard[j] = 1.0 / risk_all[j]
                continue
            reduced = risk_all[j] - np.arange(d) / d * risk_events[j]
            if method == "fleming-harrington":
                hazard[j] = np.sum(1.0 / reduced)
            else:
                # Divide by the geometric mean of the reduced risk sets, not their product
                hazard[j] = d / np.exp(np.mean(np.log(reduced)))

    return EmpiricalSurvParams(
        n=len(time),
        time=grid,
        n_risk=risk_all,
        n_event=n_event,
        n_censor=n_total - n_event,
        surv=np.exp(-np.cumsum(hazard)),
        method=method,
    )
