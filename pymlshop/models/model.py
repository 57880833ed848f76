"""
Model specifications and fitted models.

An MLModel is a declarative record: a name, the response kinds it
supports, a fit closure, a predict closure, its parameters, and optionally
a default tuning grid and a variable importance function. The engine never
looks inside the fitted object; it only calls the two closures:

    fit(frame, *, rng, settings, **params) -> object
    predict(object, X, *, y, times, settings) -> prediction

Predictions are a vector for numeric responses, a matrix for matrix
responses, a (cases x levels) probability matrix for factors, and for
survival responses either a SurvProbs (when times are given) or a vector
of predicted mean survival times.

Parameters may be DynamicParam closures; they are resolved against the
TrainingContext of each fit, never at grid construction time.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import DimensionError, ValidationError
from pymlshop.core.result import Result
from pymlshop.core.validation import check_array
from pymlshop.prediction.response import (
    ResponseType,
    as_response_types,
    is_response,
)
from pymlshop.settings import Settings, resolve_settings
from pymlshop.survival.design import Surv


@dataclass(frozen=True)
class TrainingContext:
    """Realized training data summary passed to DynamicParam closures."""
    n_observations: int
    n_features: int
    n_events: int | None = None

    @classmethod
    def from_frame(cls, frame) -> TrainingContext:
        n_events = frame.y.n_events if isinstance(frame.y, Surv) else None
        return cls(
            n_observations=frame.n_observations,
            n_features=frame.n_features,
            n_events=n_events,
        )


class DynamicParam:
    """
    Parameter value computed from the training data at fit time.

    Usage:
        LMModel(lambda_=DynamicParam(lambda ctx: 0.1 * ctx.n_observations))

    Closures must be module-level functions for the process executor.
    """

    __slots__ = ('fn',)

    def __init__(self, fn: Callable[[TrainingContext], Any]) -> None:
        if not callable(fn):
            raise ValidationError("DynamicParam requires a callable")
        self.fn = fn

    def resolve(self, context: TrainingContext) -> Any:
        return self.fn(context)

    def __repr__(self) -> str:
        return f"DynamicParam({getattr(self.fn, '__name__', self.fn)!r})"


def resolve_params(params: Mapping[str, Any], context: TrainingContext) -> dict[str, Any]:
    """Evaluate any DynamicParam values against the training context."""
    return {
        name: value.resolve(context) if isinstance(value, DynamicParam) else value
        for name, value in params.items()
    }


@dataclass(frozen=True, eq=False)
class MLModel:
    """
    Declarative model specification.

    Attributes:
        name: Model name, used to label results
        label: Descriptive label
        response_types: Supported response kinds
        fit: fit(frame, *, rng, settings, **params) -> object
        predict: predict(object, X, *, y, times, settings) -> prediction
        params: Arguments passed to fit
        gridinfo: Tunable parameter -> fn(size, context) giving candidate values
        varimp: varimp(object, columns) -> (p,) importance values, or None
    """
    name: str
    label: str
    response_types: frozenset[ResponseType]
    fit: Callable[..., Any]
    predict: Callable[..., Any]
    params: Mapping[str, Any] = field(default_factory=dict)
    gridinfo: Mapping[str, Callable[[int, TrainingContext], Any]] = field(default_factory=dict)
    varimp: Callable[..., NDArray] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "response_types", as_response_types(self.response_types))
        object.__setattr__(self, "params", dict(self.params))
        object.__setattr__(self, "gridinfo", dict(self.gridinfo))

    @property
    def has_grid(self) -> bool:
        return bool(self.gridinfo)

    @property
    def has_varimp(self) -> bool:
        return self.varimp is not None

    def supports(self, y) -> bool:
        """True if the model accepts response ``y`` (or a ResponseType)."""
        return is_response(y, self.response_types)

    def update(self, **params) -> MLModel:
        """Copy with parameters changed or added."""
        return dataclasses.replace(self, params={**self.params, **params})

    def rename(self, name: str) -> MLModel:
        return dataclasses.replace(self, name=name)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.params.items()
                           if not isinstance(v, (list, tuple, dict)))
        return f"{self.name}({params})"


@dataclass(frozen=True)
class FitParams:
    """Payload of a fitted model."""
    object: Any
    y: Any
    params: dict[str, Any]
    response_type: ResponseType
    levels: tuple[Any, ...] | None
    columns: tuple[str, ...]


class MLModelFit:
    """
    Model fitted to a ModelFrame.

    Models produced by SelectedModel or TunedModel are the refit winning
    candidate, and carry the selection records in ``trainbits`` (outermost
    selection first).
    """

    __slots__ = ('_result', '_model', '_trainbits')

    def __init__(self, _result: Result[FitParams], model: MLModel,
                 trainbits: tuple = ()) -> None:
        self._result = _result
        self._model = model
        self._trainbits = tuple(trainbits)

    @property
    def model(self) -> MLModel:
        return self._model

    @property
    def object(self) -> Any:
        """Fitted object returned by the model's fit closure."""
        return self._result.params.object

    @property
    def params(self) -> dict[str, Any]:
        """Resolved fit parameters."""
        return self._result.params.params

    @property
    def response_type(self) -> ResponseType:
        return self._result.params.response_type

    @property
    def levels(self) -> tuple[Any, ...] | None:
        return self._result.params.levels

    @property
    def columns(self) -> tuple[str, ...]:
        return self._result.params.columns

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def trainbits(self) -> tuple:
        return self._trainbits

    @property
    def is_trained(self) -> bool:
        return bool(self._trainbits)

    def with_trainbits(self, trainbits) -> MLModelFit:
        """Copy with a selection record placed in front of existing ones."""
        return MLModelFit(self._result, self._model, (trainbits,) + self._trainbits)

    # -- Prediction --

    def predict_raw(self, X: NDArray, times=None, settings: Settings | None = None):
        """Model predictions in the engine's canonical form."""
        settings = resolve_settings(settings)
        if self.response_type is not ResponseType.SURV:
            times = None
        elif times is not None:
            times = np.atleast_1d(np.asarray(times, dtype=np.float64))
            if len(times) == 0:
                times = None
        pred = self._model.predict(self.object, X, y=self._result.params.y,
                                   times=times, settings=settings)
        if self.response_type in (ResponseType.FACTOR, ResponseType.ORDERED):
            pred = _as_probs(pred, len(self.levels))
        return pred

    def predict(
        self,
        newdata,
        times=None,
        type: str = "response",
        cutoff: float | None = None,
        settings: Settings | None = None,
    ):
        """
        Predict new cases.

        Args:
            newdata: ModelFrame or (n, p) predictor matrix
            times: Survival prediction times (survival responses only)
            type: "response" for values/class labels, "prob" for class
                probabilities (factor responses)
            cutoff: Binary classification cutoff; defaults to settings.cutoff

        Returns:
            Predictions in the form described in the module docstring;
            factor responses with type="response" give class labels.
        """
        if type not in ("response", "prob"):
            raise ValidationError(f"type must be 'response' or 'prob', got {type!r}")
        settings = resolve_settings(settings)
        X = predictor_matrix(newdata, len(self.columns))
        pred = self.predict_raw(X, times, settings)
        if type == "response" and self.response_type in (ResponseType.FACTOR,
                                                         ResponseType.ORDERED):
            return classify(pred, self.levels,
                            settings.cutoff if cutoff is None else cutoff)
        return pred

    def varimp(self, scale: bool = True):
        """
        Variable importance as a pandas Series, sorted decreasing.

        With scale=True the values are rescaled to a maximum of 100.
        """
        import pandas as pd

        if self._model.varimp is None:
            raise ValidationError(
                f"{self._model.name} does not provide variable importance"
            )
        values = np.asarray(self._model.varimp(self.object, columns=self.columns),
                            dtype=np.float64)
        if scale and values.size and np.nanmax(values) > 0:
            values = 100.0 * values / np.nanmax(values)
        series = pd.Series(values, index=list(self.columns), name="Overall")
        return series.sort_values(ascending=False)

    def __repr__(self) -> str:
        trained = f", trainbits={len(self._trainbits)}" if self._trainbits else ""
        return f"MLModelFit({self._model!r}{trained})"


def predictor_matrix(newdata, n_features: int) -> NDArray:
    """Predictor matrix of a ModelFrame or array, checked against the fit."""
    X = getattr(newdata, "X", newdata)
    X = check_array(X, "newdata")
    if X.ndim == 1:
        X = X.reshape(-1, 1) if n_features == 1 else X.reshape(1, -1)
    if X.shape[1] != n_features:
        raise DimensionError(
            f"newdata has {X.shape[1]} predictors, model was fit with {n_features}"
        )
    return X


def _as_probs(pred, n_levels: int) -> NDArray:
    pred = np.asarray(pred, dtype=np.float64)
    if pred.ndim == 1 and n_levels == 2:
        pred = np.column_stack([1.0 - pred, pred])
    if pred.ndim != 2 or pred.shape[1] != n_levels:
        raise DimensionError(
            f"factor predictions must be (n, {n_levels}) probabilities, "
            f"got shape {pred.shape}"
        )
    return pred


def classify(probs: NDArray, levels, cutoff: float = 0.5) -> NDArray:
    """Class labels from probabilities; binary responses use ``cutoff``."""
    labels = np.asarray(levels)
    if probs.shape[1] == 2:
        return labels[(probs[:, 1] > cutoff).astype(int)]
    return labels[np.argmax(probs, axis=1)]
