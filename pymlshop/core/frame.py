"""
ModelFrame: the "I have data" abstraction for fitting and resampling.

Holds a numeric predictor matrix, an observed response of one of the
supported kinds, optional case weights, and an optional stratification
variable. Resampling only ever calls take() on it, so every iteration sees
a read-only, independently indexed view of the same data.

Usage:
    from pymlshop import ModelFrame

    frame = ModelFrame.from_arrays(X=X, y=y)
    frame = ModelFrame.from_arrays(X=X, y=Surv(time, event), strata=group)
    frame = ModelFrame.from_dataframe(df, time="time", event="status")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ValidationError
from pymlshop.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_non_negative,
)
from pymlshop.prediction.response import ResponseType, response_type
from pymlshop.survival.design import Surv

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True, eq=False)
class ModelFrame:
    """
    Immutable model data container.

    Construct via factory classmethods, not directly.

    Attributes:
        X: (n, p) predictor matrix
        y: observed response (1D array, 2D array, or Surv)
        weights: (n,) case weights
        strata: (n,) stratification variable (array or Surv), or None
        columns: predictor names
        levels: factor levels (None unless the response is a factor)
        response_type: tagged response kind
    """
    X: NDArray
    y: Any
    weights: NDArray
    strata: NDArray | Surv | None
    columns: tuple[str, ...]
    levels: tuple[Any, ...] | None
    response_type: ResponseType

    # === Factory Methods ===

    @classmethod
    def from_arrays(
        cls,
        *,
        X=None,
        y,
        weights=None,
        strata=None,
        columns: list[str] | None = None,
        levels=None,
        ordered: bool = False,
    ) -> ModelFrame:
        """Construct from NumPy arrays (or a Surv response)."""
        kind = response_type(y, ordered=ordered)

        if kind is ResponseType.SURV:
            y_arr = y
        elif kind in (ResponseType.FACTOR, ResponseType.ORDERED):
            raw = np.asarray(y)
            if levels is None:
                cat_levels = getattr(getattr(y, "cat", None), "categories", None)
                levels = tuple(cat_levels) if cat_levels is not None else tuple(np.unique(raw).tolist())
            else:
                levels = tuple(levels)
            unknown = set(np.unique(raw).tolist()) - set(levels)
            if unknown:
                raise ValidationError(
                    f"y: values {sorted(map(str, unknown))} are not among levels {levels}"
                )
            y_arr = raw.copy()
            y_arr.setflags(write=False)
        else:
            y_arr = check_array(y, "y").copy()
            check_finite(y_arr, "y")
            y_arr.setflags(write=False)
            levels = None

        n = len(y_arr)

        if X is None:
            X_arr = np.empty((n, 0), dtype=np.float64)
        else:
            X_arr = check_array(X, "X").copy()
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(-1, 1)
            check_2d(X_arr, "X")
            check_finite(X_arr, "X")
        X_arr.setflags(write=False)

        if weights is None:
            w_arr = np.ones(n, dtype=np.float64)
        else:
            w_arr = check_array(weights, "weights").copy()
            check_1d(w_arr, "weights")
            check_finite(w_arr, "weights")
            check_non_negative(w_arr, "weights")
        w_arr.setflags(write=False)

        s_arr = None
        if isinstance(strata, Surv):
            s_arr = strata
        elif strata is not None:
            s_arr = np.asarray(strata).copy()
            if s_arr.ndim != 1:
                s_arr = s_arr.ravel()
            s_arr.setflags(write=False)
        if s_arr is not None:
            check_consistent_length(X_arr, y_arr, w_arr, s_arr,
                                    names=("X", "y", "weights", "strata"))
        else:
            check_consistent_length(X_arr, y_arr, w_arr, names=("X", "y", "weights"))

        if columns is None:
            columns = [f"x{j + 1}" for j in range(X_arr.shape[1])]
        if len(columns) != X_arr.shape[1]:
            raise ValidationError(
                f"columns: got {len(columns)} names for {X_arr.shape[1]} predictors"
            )

        return cls(
            X=X_arr,
            y=y_arr,
            weights=w_arr,
            strata=s_arr,
            columns=tuple(columns),
            levels=levels,
            response_type=kind,
        )

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        response: str | list[str] | None = None,
        time: str | None = None,
        event: str | None = None,
        weights: str | None = None,
        strata: str | None = None,
    ) -> ModelFrame:
        """
        Construct from a pandas DataFrame.

        The response is either a single column (numeric or categorical),
        several numeric columns (matrix response), or a survival response
        given by ``time`` and ``event`` columns. Remaining columns other
        than ``weights`` and ``strata`` are numeric predictors.
        """
        if (response is None) == (time is None):
            raise ValidationError(
                "from_dataframe: give either response or time/event columns"
            )
        if time is not None and event is None:
            raise ValidationError("from_dataframe: event column required with time")

        if time is not None:
            y = Surv(df[time].to_numpy(), df[event].to_numpy())
            used = {time, event}
        elif isinstance(response, str):
            y = df[response]
            if getattr(y.dtype, "name", "") != "category":
                y = y.to_numpy()
            used = {response}
        else:
            y = df[list(response)].to_numpy(dtype=np.float64)
            used = set(response)

        used |= {c for c in (weights, strata) if c is not None}
        predictors = [c for c in df.columns if c not in used]

        return cls.from_arrays(
            X=df[predictors].to_numpy(dtype=np.float64),
            y=y,
            weights=None if weights is None else df[weights].to_numpy(),
            strata=None if strata is None else df[strata].to_numpy(),
            columns=[str(c) for c in predictors],
        )

    # === Access ===

    @property
    def n_observations(self) -> int:
        """Number of cases."""
        return len(self.y)

    @property
    def n_features(self) -> int:
        """Number of predictors."""
        return self.X.shape[1]

    @property
    def metadata(self) -> dict[str, Any]:
        meta = {
            'n_observations': self.n_observations,
            'n_features': self.n_features,
            'response_type': self.response_type.value,
        }
        if isinstance(self.y, Surv):
            meta['n_events'] = self.y.n_events
        return meta

    def take(self, indices) -> ModelFrame:
        """Subset (or resample with repeats) cases by integer index."""
        indices = np.asarray(indices, dtype=np.intp)
        y = self.y.take(indices) if isinstance(self.y, Surv) else self.y[indices]
        if not isinstance(y, Surv):
            y = y.copy()
            y.setflags(write=False)
        X = self.X[indices]
        weights = self.weights[indices]
        if self.strata is None:
            strata = None
        elif isinstance(self.strata, Surv):
            strata = self.strata.take(indices)
        else:
            strata = self.strata[indices]
            strata.setflags(write=False)
        for arr in (X, weights):
            arr.setflags(write=False)
        return ModelFrame(
            X=X,
            y=y,
            weights=weights,
            strata=strata,
            columns=self.columns,
            levels=self.levels,
            response_type=self.response_type,
        )

    def __len__(self) -> int:
        return self.n_observations

    def __repr__(self) -> str:
        return (
            f"ModelFrame(n={self.n_observations}, p={self.n_features}, "
            f"response={self.response_type.value})"
        )
