"""
Weighted ridge regression with an unpenalized intercept.

Solves, after weighted centering of X and y,

    (Xc' W Xc + lambda I) beta = Xc' W yc,    b0 = ybar - xbar @ beta

for a vector response or each column of a matrix response. lambda = 0 is
ordinary weighted least squares.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class LinearFit:
    intercept: NDArray | float
    coefficients: NDArray          # (p,) or (p, q)
    x_scale: NDArray               # (p,) weighted predictor sd


def ridge_fit(X: NDArray, y: NDArray, weights: NDArray, lambda_: float = 0.0) -> LinearFit:
    w = weights / np.sum(weights)
    x_mean = w @ X
    y_mean = w @ y
    Xc = X - x_mean
    yc = y - y_mean

    A = (Xc * w[:, np.newaxis]).T @ Xc
    b = (Xc * w[:, np.newaxis]).T @ yc
    # lambda is on the scale of the summed, not averaged, loss
    A = A + (lambda_ / len(y)) * np.eye(X.shape[1])
    if X.shape[1] == 0:
        beta = np.zeros(b.shape)
    else:
        beta, *_ = np.linalg.lstsq(A, b, rcond=None)

    return LinearFit(
        intercept=y_mean - x_mean @ beta,
        coefficients=beta,
        x_scale=np.sqrt(w @ Xc ** 2),
    )


def ridge_predict(fit: LinearFit, X: NDArray) -> NDArray:
    return X @ fit.coefficients + fit.intercept
