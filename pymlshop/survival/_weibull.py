"""
Weibull proportional hazards fits.

Parameterisation (per case i, with linear predictor eta_i):

    S_i(t) = exp(-exp(eta_i) * t^k),    eta_i = b0 + x_i @ beta + offset_i

so the baseline curve has shape k and scale exp(b0). A risk multiplier r
enters as offset log(r), which scales the cumulative hazard, matching how
fitted curves are later evaluated for new risks. Exponential (k = 1) and
Rayleigh (k = 2) are the fixed-shape special cases.

Log-likelihood for right-censored data (delta_i = event indicator):

    l = sum_i delta_i (eta_i + log k + (k - 1) log t_i) - sum_i exp(eta_i) t_i^k

With fixed shape and no covariates the MLE is closed form:
exp(b0) = D / sum_i r_i t_i^k.

References:
    Kalbfleisch, J. D., & Prentice, R. L. (2002). The Statistical Analysis
        of Failure Time Data, 2nd ed., ch. 3.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from pymlshop.core.exceptions import InsufficientDataError

# Floor for log(t) so that zero times stay finite
_TINY_TIME = np.finfo(np.float64).tiny

# Gradient tolerance per event for declaring convergence
_GRAD_TOL = 1e-6


@dataclass(frozen=True)
class WeibullFit:
    """Raw output of weibull_mle()."""

    coefficients: NDArray        # (1 + p,) intercept b0 then beta
    shape: float
    loglik: float
    converged: bool
    n_iter: int
    covariance: NDArray          # (1 + p,) square block for the coefficients


def weibull_mle(
    time: NDArray,
    event: NDArray,
    X: NDArray | None = None,
    offset: NDArray | None = None,
    shape: float | None = None,
    max_iter: int = 200,
) -> WeibullFit:
    """Maximum likelihood Weibull fit in proportional hazards form.

    S_i(t) = exp(-exp(b0 + x_i @ beta + offset_i) * t^shape). Positive
    coefficients raise the hazard; this is not the accelerated failure
    time parameterisation, whose log-time coefficients have the opposite
    sign and are scaled by 1 / shape.

    Parameters
    ----------
    time, event : NDArray
        (n,) right-censored response; any nonzero event code is an event.
    X : NDArray or None
        (n, p) covariates, no intercept column.
    offset : NDArray or None
        (n,) fixed log-risk offsets.
    shape : float or None
        Fixed shape, or None to estimate it.

    Raises
    ------
    InsufficientDataError
        If there are fewer distinct event times than free curve
        parameters (1 with fixed shape, 2 otherwise).
    """
    status = np.minimum(event, 1.0)
    n = len(time)
    n_params = 1 if shape is not None else 2
    n_event_times = len(np.unique(time[status > 0]))
    if n_event_times < n_params:
        raise InsufficientDataError(
            f"Weibull fit needs at least {n_params} distinct event times, "
            f"got {n_event_times}",
            n_event_times=n_event_times,
            n_params=n_params,
        )

    if offset is None:
        offset = np.zeros(n, dtype=np.float64)
    X1 = np.ones((n, 1)) if X is None else np.column_stack([np.ones(n), X])
    logt = np.log(np.maximum(time, _TINY_TIME))
    n_events = float(np.sum(status))

    if shape is not None and X1.shape[1] == 1:
        total = np.sum(np.exp(offset + shape * logt))
        coef = np.array([np.log(n_events / total)])
        loglik = -_negloglik(coef, status, X1, offset, logt, shape)[0]
        return WeibullFit(coefficients=coef, shape=float(shape),
                          loglik=float(loglik), converged=True, n_iter=0,
                          covariance=np.array([[1.0 / n_events]]))

    # Start from the exponential fit
    theta0 = np.zeros(X1.shape[1] + (shape is None))
    theta0[0] = np.log(n_events / np.sum(np.exp(offset + logt)))

    args = (status, X1, offset, logt, shape)
    res = minimize(
        _negloglik,
        theta0,
        args=args,
        jac=True,
        method="BFGS",
        options={"maxiter": max_iter, "gtol": 1e-8},
    )
    # BFGS may stop on precision loss short of gtol; finish with Newton steps
    theta, value, grad = _newton_polish(res.x, args)
    converged = bool(np.max(np.abs(grad)) <= _GRAD_TOL * max(n_events, 1.0))

    if shape is None:
        coef, fitted_shape = theta[:-1], float(np.exp(theta[-1]))
    else:
        coef, fitted_shape = theta, float(shape)

    info = _information(theta, status, X1, offset, logt, shape)
    try:
        cov = np.linalg.inv(info)
    except np.linalg.LinAlgError:
        cov = np.full_like(info, np.inf)
    p1 = X1.shape[1]

    return WeibullFit(
        coefficients=coef,
        shape=fitted_shape,
        loglik=float(-value),
        converged=converged,
        n_iter=int(res.nit),
        covariance=cov[:p1, :p1],
    )


def _newton_polish(
    theta: NDArray,
    args: tuple,
    max_steps: int = 5,
) -> tuple[NDArray, float, NDArray]:
    """Newton steps on the negative log-likelihood while they improve the fit.

    Returns theta, the negative log-likelihood and its gradient.
    """
    value, grad = _negloglik(theta, *args)
    for _ in range(max_steps):
        try:
            step = np.linalg.solve(_information(theta, *args), -grad)
        except np.linalg.LinAlgError:
            break
        candidate = theta + step
        new_value, new_grad = _negloglik(candidate, *args)
        if not np.isfinite(new_value):
            break
        # Accept rounding-level increases that still shrink the gradient
        if new_value > value and np.max(np.abs(new_grad)) >= np.max(np.abs(grad)):
            break
        theta, value, grad = candidate, new_value, new_grad
    return theta, float(value), grad


def _unpack(theta: NDArray, shape: float | None) -> tuple[NDArray, float]:
    if shape is None:
        return theta[:-1], float(np.exp(theta[-1]))
    return theta, shape


def _negloglik(
    theta: NDArray,
    status: NDArray,
    X1: NDArray,
    offset: NDArray,
    logt: NDArray,
    shape: float | None,
) -> tuple[float, NDArray]:
    """Negative log-likelihood and gradient.

    theta is [b0, beta...] with fixed shape, or [b0, beta..., log k].
    """
    beta, k = _unpack(theta, shape)

    eta = X1 @ beta + offset
    cumhaz = np.exp(eta + k * logt)
    n_events = np.sum(status)

    loglik = (np.sum(status * (eta + (k - 1.0) * logt))
              + n_events * np.log(k) - np.sum(cumhaz))
    grad = X1.T @ (status - cumhaz)
    if shape is None:
        grad_logk = n_events + k * np.sum((status - cumhaz) * logt)
        grad = np.append(grad, grad_logk)

    return -loglik, -grad


def _information(
    theta: NDArray,
    status: NDArray,
    X1: NDArray,
    offset: NDArray,
    logt: NDArray,
    shape: float | None,
) -> NDArray:
    """Observed information (negative Hessian) in the theta parameterisation."""
    beta, k = _unpack(theta, shape)
    cumhaz = np.exp(X1 @ beta + offset + k * logt)

    info = (X1 * cumhaz[:, np.newaxis]).T @ X1
    if shape is None:
        cross = X1.T @ (cumhaz * k * logt)
        d2_logk = (k * np.sum((status - cumhaz) * logt)
                   - k ** 2 * np.sum(cumhaz * logt ** 2))
        info = np.block([
            [info, cross[:, np.newaxis]],
            [cross[np.newaxis, :], np.array([[-d2_logk]])],
        ])
    return info


def weibull_loglinear(
    log_time: NDArray,
    loglog_surv: NDArray,
    shape: float | None = None,
) -> tuple[float, float]:
    """Fit log(-log S) = log(scale) + shape * log(t) to one curve.

    Returns (shape, scale); NaN when the points cannot determine them
    (fewer than 2 points with free shape, none with fixed shape).
    """
    if shape is None:
        if len(log_time) < 2 or np.ptp(log_time) == 0:
            return np.nan, np.nan
        A = np.column_stack([np.ones(len(log_time)), log_time])
        (intercept, slope), *_ = np.linalg.lstsq(A, loglog_surv, rcond=None)
        return float(slope), float(np.exp(intercept))

    if len(log_time) == 0:
        return float(shape), np.nan
    intercept = np.mean(loglog_surv - shape * log_time)
    return float(shape), float(np.exp(intercept))
