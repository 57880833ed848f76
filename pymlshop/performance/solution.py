"""
Performance arrays and their summaries.

Performance holds one value per (iteration, metric, model). Values are a
read-only ndarray; combining or differencing builds a new array, so
existing references never observe mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ValidationError
from pymlshop.core.result import Result


def _readonly(values: NDArray) -> NDArray:
    values = np.array(values, dtype=np.float64)
    values.setflags(write=False)
    return values


@dataclass(frozen=True)
class PerformanceParams:
    values: NDArray
    iterations: tuple[str, ...]
    metrics: tuple[Any, ...]
    models: tuple[str, ...]
    control: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _readonly(self.values))
        expected = (len(self.iterations), len(self.metrics), len(self.models))
        if self.values.shape != expected:
            raise ValidationError(
                f"performance values have shape {self.values.shape}, "
                f"labels give {expected}"
            )


class Performance:
    """
    Resampled performance: iterations x metrics x models.

    Attributes are read-only; use ``model(name)`` or ``metric(name)`` to
    slice and ``summary()`` to aggregate over iterations.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[PerformanceParams]) -> None:
        self._result = _result

    @classmethod
    def from_arrays(cls, values, iterations, metrics, models, control=None,
                    backend_name: str = "performance", warnings=()) -> Performance:
        params = PerformanceParams(
            values=values,
            iterations=tuple(iterations),
            metrics=tuple(metrics),
            models=tuple(models),
            control=control,
        )
        return cls(Result(params=params, info={}, timing=None,
                          backend_name=backend_name, warnings=tuple(warnings)))

    @property
    def values(self) -> NDArray:
        return self._result.params.values

    @property
    def iterations(self) -> tuple[str, ...]:
        return self._result.params.iterations

    @property
    def metric_info(self) -> tuple[Any, ...]:
        """Metric records, in column order."""
        return self._result.params.metrics

    @property
    def metrics(self) -> tuple[str, ...]:
        return tuple(m.name for m in self._result.params.metrics)

    @property
    def models(self) -> tuple[str, ...]:
        return self._result.params.models

    @property
    def control(self):
        return self._result.params.control

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.values.shape

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def _index(self, labels: tuple[str, ...], name: str, what: str) -> int:
        try:
            return labels.index(name)
        except ValueError:
            raise KeyError(f"no {what} named {name!r}; have {list(labels)}") from None

    def model(self, name: str) -> NDArray:
        """Values of one model: iterations x metrics."""
        return self.values[:, :, self._index(self.models, name, "model")]

    def metric(self, name: str) -> NDArray:
        """Values of one metric: iterations x models."""
        return self.values[:, self._index(self.metrics, name, "metric"), :]

    def select(self, models) -> Performance:
        """Performance restricted to the given models, in the given order."""
        idx = [self._index(self.models, m, "model") for m in models]
        params = PerformanceParams(
            values=self.values[:, :, idx],
            iterations=self.iterations,
            metrics=self.metric_info,
            models=tuple(self.models[i] for i in idx),
            control=self.control,
        )
        return type(self)(Result(params=params, info=dict(self._result.info),
                                 timing=None, backend_name=self._result.backend_name,
                                 warnings=self.warnings))

    def summary(self, stats=None, settings=None) -> PerformanceSummary:
        from pymlshop.performance.solvers import summary
        return summary(self, stats=stats, settings=settings)

    def to_dataframe(self):
        """Long-format pandas DataFrame (model, iteration, metric, value)."""
        import pandas as pd

        n_iter, n_metric, n_model = self.shape
        return pd.DataFrame({
            "model": np.repeat(self.models, n_iter * n_metric),
            "iteration": np.tile(np.repeat(self.iterations, n_metric), n_model),
            "metric": np.tile(self.metrics, n_iter * n_model),
            "value": self.values.transpose(2, 0, 1).ravel(),
        })

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(iterations={len(self.iterations)}, "
            f"metrics={list(self.metrics)}, models={list(self.models)})"
        )


class PerformanceDiff(Performance):
    """
    Pairwise model differences: iterations x metrics x pairs.

    Pairs are labelled "a - b" and hold the performance of ``a`` minus
    that of ``b``. ``source_models`` lists the models that were compared.
    """

    __slots__ = ()

    @property
    def source_models(self) -> tuple[str, ...]:
        return self._result.info.get('source_models', ())

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        return self._result.info.get('pairs', ())

    def select(self, models) -> PerformanceDiff:
        """Differences restricted to the given pairs, by their "a - b" labels."""
        sub = super().select(models)
        pair_of = dict(zip(self.models, self.pairs))
        info = {**sub._result.info, 'pairs': tuple(pair_of[m] for m in sub.models)}
        return PerformanceDiff(Result(params=sub._result.params, info=info, timing=None,
                                      backend_name=sub._result.backend_name,
                                      warnings=sub.warnings))


@dataclass(frozen=True)
class SummaryParams:
    values: NDArray
    metrics: tuple[str, ...]
    stats: tuple[str, ...]
    models: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _readonly(self.values))


class PerformanceSummary:
    """
    Summary statistics of resampled performance: metrics x stats x models.

    The last statistic column, "NA", counts the missing iterations that
    were excluded from the other statistics.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[SummaryParams]) -> None:
        self._result = _result

    @property
    def values(self) -> NDArray:
        return self._result.params.values

    @property
    def metrics(self) -> tuple[str, ...]:
        return self._result.params.metrics

    @property
    def stats(self) -> tuple[str, ...]:
        return self._result.params.stats

    @property
    def models(self) -> tuple[str, ...]:
        return self._result.params.models

    def value(self, metric: str, stat: str, model: str | None = None) -> float:
        """Single summary value; ``model`` may be omitted for one-model summaries."""
        if model is None:
            if len(self.models) != 1:
                raise ValidationError("model is required when summarizing several models")
            model = self.models[0]
        p = self._result.params
        return float(self.values[p.metrics.index(metric), p.stats.index(stat),
                                 p.models.index(model)])

    def to_dataframe(self):
        """pandas DataFrame indexed by (model, metric) with one column per stat."""
        import pandas as pd

        frames = [
            pd.DataFrame(self.values[:, :, k], index=list(self.metrics),
                         columns=list(self.stats))
            for k in range(len(self.models))
        ]
        return pd.concat(frames, keys=list(self.models), names=["model", "metric"])

    def __repr__(self) -> str:
        return (
            f"PerformanceSummary(metrics={list(self.metrics)}, "
            f"stats={list(self.stats)}, models={list(self.models)})"
        )
