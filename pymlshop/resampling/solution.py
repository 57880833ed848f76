"""
Resampling results.

A ResampleRecord holds one iteration of one model: which cases trained
the fit, which were predicted, the observed and predicted responses, and
(for optimism-corrected controls) the predictions of the training cases.
Resamples owns an ordered, immutable tuple of records together with the
control and stratification variable that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.result import Result
from pymlshop.prediction.response import ResponseType


@dataclass(frozen=True, eq=False)
class ResampleRecord:
    """
    One resampling iteration for one model.

    Attributes:
        model: Model name
        iteration: 0-based iteration index
        label: Iteration label (e.g. 'Fold03.Rep1', 'Boot07')
        train_index: Case indices used to fit
        test_index: Case indices predicted
        observed: Observed response of the test cases
        predicted: Predictions for the test cases, or None if the
            iteration failed under the lenient fit error policy
        weights: Case weights of the test cases
        train_observed, train_predicted, train_weights: Same for the
            training cases (optimism-corrected controls only)
        error: Failure message of a failed iteration
    """
    model: str
    iteration: int
    label: str
    train_index: NDArray
    test_index: NDArray
    observed: Any
    predicted: Any
    weights: NDArray
    train_observed: Any = None
    train_predicted: Any = None
    train_weights: NDArray | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.predicted is None

    def renamed(self, model: str) -> ResampleRecord:
        return ResampleRecord(
            model=model,
            iteration=self.iteration,
            label=self.label,
            train_index=self.train_index,
            test_index=self.test_index,
            observed=self.observed,
            predicted=self.predicted,
            weights=self.weights,
            train_observed=self.train_observed,
            train_predicted=self.train_predicted,
            train_weights=self.train_weights,
            error=self.error,
        )


@dataclass(frozen=True)
class ResampleParams:
    records: tuple[ResampleRecord, ...]
    apparent: tuple[ResampleRecord, ...]
    models: tuple[str, ...]
    control: Any
    strata: Any
    response_type: ResponseType
    levels: tuple[Any, ...] | None


class Resamples:
    """
    Resampled predictions of one or more models.

    Records are ordered by model, then iteration index. For optimism
    corrected controls, ``apparent`` holds one full-data record per model.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[ResampleParams]) -> None:
        self._result = _result

    @property
    def records(self) -> tuple[ResampleRecord, ...]:
        return self._result.params.records

    @property
    def apparent(self) -> tuple[ResampleRecord, ...]:
        return self._result.params.apparent

    @property
    def models(self) -> tuple[str, ...]:
        return self._result.params.models

    @property
    def control(self):
        return self._result.params.control

    @property
    def strata(self):
        """Stratification variable used, or None."""
        return self._result.params.strata

    @property
    def response_type(self) -> ResponseType:
        return self._result.params.response_type

    @property
    def levels(self) -> tuple[Any, ...] | None:
        return self._result.params.levels

    @property
    def iterations(self) -> tuple[str, ...]:
        """Iteration labels, in order."""
        first = self.models[0]
        return tuple(r.label for r in self.records if r.model == first)

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def n_failed(self) -> int:
        return sum(r.failed for r in self.records)

    def subset(self, model: str) -> Resamples:
        """Resamples of a single model."""
        if model not in self.models:
            raise KeyError(f"no model named {model!r}; have {list(self.models)}")
        p = self._result.params
        params = ResampleParams(
            records=tuple(r for r in p.records if r.model == model),
            apparent=tuple(r for r in p.apparent if r.model == model),
            models=(model,),
            control=p.control,
            strata=p.strata,
            response_type=p.response_type,
            levels=p.levels,
        )
        return Resamples(Result(params=params, info=dict(self._result.info),
                                timing=self._result.timing,
                                backend_name=self._result.backend_name,
                                warnings=self._result.warnings))

    def same_strata(self, other: Resamples) -> bool:
        a, b = self.strata, other.strata
        if a is None or b is None:
            return a is None and b is None
        if type(a) is not type(b):
            return False
        if isinstance(a, np.ndarray):
            return a.shape == b.shape and bool(np.all(a == b))
        return a == b

    def __len__(self) -> int:
        return len(self.records)

    def __repr__(self) -> str:
        return (
            f"Resamples(models={list(self.models)}, "
            f"iterations={len(self.iterations)}, control={type(self.control).__name__})"
        )
