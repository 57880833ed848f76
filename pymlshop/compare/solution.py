"""
Paired significance tests of model differences.

PerformanceDiffTest holds two labelled model x model x metric arrays:

    p_values    adjusted p-values, symmetric, NaN on the diagonal
    mean_diffs  mean of (row model - column model), antisymmetric

triangular() gives the compact single-matrix form with p-values below the
diagonal and mean differences above it.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.result import Result


@dataclass(frozen=True)
class DiffTestParams:
    p_values: NDArray
    mean_diffs: NDArray
    t_statistics: NDArray
    models: tuple[str, ...]
    metrics: tuple[str, ...]
    adjust: str

    def __post_init__(self) -> None:
        for name in ("p_values", "mean_diffs", "t_statistics"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)


class PerformanceDiffTest:
    """Paired t-tests of every model pair, per metric."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[DiffTestParams]) -> None:
        self._result = _result

    @property
    def p_values(self) -> NDArray:
        """Adjusted p-values: models x models x metrics."""
        return self._result.params.p_values

    @property
    def mean_diffs(self) -> NDArray:
        """Mean differences (row - column): models x models x metrics."""
        return self._result.params.mean_diffs

    @property
    def t_statistics(self) -> NDArray:
        return self._result.params.t_statistics

    @property
    def models(self) -> tuple[str, ...]:
        return self._result.params.models

    @property
    def metrics(self) -> tuple[str, ...]:
        return self._result.params.metrics

    @property
    def adjust(self) -> str:
        return self._result.params.adjust

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def p_value(self, a: str, b: str, metric: str | None = None) -> float:
        i, j, k = self._locate(a, b, metric)
        return float(self.p_values[i, j, k])

    def mean_diff(self, a: str, b: str, metric: str | None = None) -> float:
        """Mean of (a - b) over iterations."""
        i, j, k = self._locate(a, b, metric)
        return float(self.mean_diffs[i, j, k])

    def _locate(self, a: str, b: str, metric: str | None) -> tuple[int, int, int]:
        k = 0 if metric is None else self.metrics.index(metric)
        return self.models.index(a), self.models.index(b), k

    def triangular(self) -> NDArray:
        """p-values in the lower triangle, mean differences in the upper."""
        n = len(self.models)
        lower = np.tril(np.ones((n, n), dtype=bool), k=-1)[:, :, np.newaxis]
        upper = np.triu(np.ones((n, n), dtype=bool), k=1)[:, :, np.newaxis]
        out = np.full(self.p_values.shape, np.nan)
        out = np.where(lower, self.p_values, out)
        return np.where(upper, self.mean_diffs, out)

    def to_dataframe(self):
        """One row per metric and model pair (a before b in model order)."""
        import pandas as pd

        rows = []
        for k, metric in enumerate(self.metrics):
            for i, a in enumerate(self.models):
                for j in range(i + 1, len(self.models)):
                    rows.append({
                        "metric": metric,
                        "pair": f"{a} - {self.models[j]}",
                        "mean_diff": self.mean_diffs[i, j, k],
                        "t": self.t_statistics[i, j, k],
                        "p_value": self.p_values[i, j, k],
                    })
        return pd.DataFrame(rows)

    def __repr__(self) -> str:
        return (
            f"PerformanceDiffTest(models={list(self.models)}, "
            f"metrics={list(self.metrics)}, adjust={self.adjust!r})"
        )
