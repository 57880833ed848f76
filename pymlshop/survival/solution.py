"""
Solution wrappers for survival curve estimates.

Each Solution wraps a Result[Params] and exposes the curve components
together with the two conversions used for prediction: mean() for expected
survival time and predict() for survival probabilities at query times.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.special import gamma

from pymlshop.core.result import Result
from pymlshop.survival._common import EmpiricalSurvParams, WeibullParams
from pymlshop.survival._utils import step_lookup, surv_mean


class EmpiricalSurv:
    """Empirical survival curve.

    Defined only up to the last observed time; mean() never extrapolates
    beyond it.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[EmpiricalSurvParams]) -> None:
        self._result = _result

    # -- Properties delegating to EmpiricalSurvParams --

    @property
    def n(self) -> int:
        return self._result.params.n

    @property
    def time(self) -> NDArray:
        """Sorted unique observed times."""
        return self._result.params.time

    @property
    def n_risk(self) -> NDArray:
        return self._result.params.n_risk

    @property
    def n_event(self) -> NDArray:
        return self._result.params.n_event

    @property
    def n_censor(self) -> NDArray:
        return self._result.params.n_censor

    @property
    def surv(self) -> NDArray:
        """S(t) at each time."""
        return self._result.params.surv

    @property
    def method(self) -> str:
        return self._result.params.method

    @property
    def max_time(self) -> float:
        return float(self.time[-1])

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Conversions --

    def predict(self, times, new_risk=None) -> NDArray:
        """Survival probabilities at ``times``.

        Returns a (1, len(times)) array, or one row per element of
        ``new_risk`` with S(t) ** new_risk.
        """
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        surv = step_lookup(self.time, self.surv, times)
        if new_risk is None:
            return surv
        new_risk = np.atleast_1d(np.asarray(new_risk, dtype=np.float64))
        return surv ** new_risk[:, np.newaxis]

    def mean(self, new_risk=None, max_time: float | None = None):
        """Mean survival time, integrated up to the last observed time.

        Returns a float, or an array with one mean per ``new_risk``.
        """
        if max_time is None:
            max_time = self.max_time
        event_times = self.time[self.n_event > 0]
        means = surv_mean(event_times, self.predict(event_times, new_risk), max_time)
        return float(means[0]) if new_risk is None else means

    def __repr__(self) -> str:
        return (
            f"EmpiricalSurv(n={self.n}, times={len(self.time)}, "
            f"method={self.method!r})"
        )


class Weibull:
    """Weibull survival curve(s), S(t) = exp(-scale * t^shape)."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[WeibullParams]) -> None:
        self._result = _result

    @classmethod
    def from_params(cls, shape, scale) -> Weibull:
        """Curve(s) from known parameters."""
        shape_arr = np.asarray(shape, dtype=np.float64)
        scale_arr = np.asarray(scale, dtype=np.float64)
        params = WeibullParams(
            shape=float(shape_arr) if shape_arr.ndim == 0 else shape_arr,
            scale=float(scale_arr) if scale_arr.ndim == 0 else scale_arr,
            fixed_shape=True,
        )
        return cls(Result(params=params, info={"method": "given"},
                          timing=None, backend_name="cpu_weibull"))

    @property
    def shape(self):
        return self._result.params.shape

    @property
    def scale(self):
        return self._result.params.scale

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def loglik(self) -> float:
        return self._result.params.loglik

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def is_na(self) -> bool:
        """True if any curve has undefined parameters."""
        return bool(np.any(np.isnan(self.shape)) or np.any(np.isnan(self.scale)))

    def mean(self, new_risk=None, max_time: float | None = None):
        """Mean survival time scale^(-1/shape) * Gamma(1 + 1/shape).

        ``max_time`` is accepted for interface parity with empirical
        curves and ignored, the parametric mean being closed form.
        """
        shape = np.asarray(self.shape, dtype=np.float64)
        scale = np.asarray(self.scale, dtype=np.float64)
        if new_risk is not None:
            scale = np.asarray(new_risk, dtype=np.float64) * scale
        with np.errstate(divide="ignore", invalid="ignore"):
            means = scale ** (-1.0 / shape) * gamma(1.0 + 1.0 / shape)
        return float(means) if np.ndim(means) == 0 else means

    def predict(self, times, new_risk=None) -> NDArray:
        """Survival probabilities, one row per curve (or per new risk)."""
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        rate = np.atleast_1d(np.asarray(self.scale, dtype=np.float64))
        if new_risk is not None:
            rate = np.asarray(new_risk, dtype=np.float64).ravel() * rate
        rate, shape = np.broadcast_arrays(
            rate, np.atleast_1d(np.asarray(self.shape, dtype=np.float64))
        )
        with np.errstate(invalid="ignore"):
            times_shape = times[np.newaxis, :] ** shape[:, np.newaxis]
        return np.exp(-rate[:, np.newaxis] * times_shape)

    def __repr__(self) -> str:
        return f"Weibull(shape={self.shape}, scale={self.scale})"
