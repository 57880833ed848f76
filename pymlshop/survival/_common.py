"""
Parameter payloads for survival curve estimates.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class EmpiricalSurvParams:
    """Empirical (baseline) survival curve.

    Matches the components of R's survfit objects.
    """

    n: int                       # number of cases
    time: NDArray                # (m,) sorted unique observed times
    n_risk: NDArray              # (m,) risk mass of cases with time >= t
    n_event: NDArray             # (m,) events at each time
    n_censor: NDArray            # (m,) censorings at each time
    surv: NDArray                # (m,) S(t) = exp(-cumulative hazard)
    method: str                  # "breslow", "efron", "fleming-harrington"


@dataclass(frozen=True)
class WeibullParams:
    """Weibull curve(s) with S(t) = exp(-scale * t^shape).

    shape and scale are scalars for a single curve or (k,) arrays for a
    batch of k curves; a scalar shape with a (k,) scale is a batch that
    shares one shape. NaN marks a curve that could not be estimated.
    """

    shape: float | NDArray
    scale: float | NDArray
    fixed_shape: bool            # shape was given, not estimated
    converged: bool = True
    n_iter: int = 0
    loglik: float = np.nan
