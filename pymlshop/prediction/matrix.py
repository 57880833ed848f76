"""
Survival prediction matrices tagged with their prediction time grid.

Rows are cases, columns are prediction times. The time grid travels with
the values: column subsetting subsets the grid, and row-binding or
arithmetic between two matrices requires identical grids. A mismatch is
never reconciled silently.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import DimensionError, StructuralMismatchError
from pymlshop.core.validation import check_array


class SurvMatrix:
    """Immutable (cases x times) matrix with an attached time grid."""

    __slots__ = ('_values', '_times')

    def __init__(self, values, times) -> None:
        values = np.array(check_array(values, "values"), dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(1, -1)
        if values.ndim != 2:
            raise DimensionError(
                f"values: expected 2D array, got {values.ndim}D"
            )
        times = tuple(float(t) for t in np.atleast_1d(np.asarray(times, dtype=np.float64)))
        if values.shape[1] != len(times):
            raise DimensionError(
                f"values has {values.shape[1]} columns but {len(times)} times"
            )
        values.setflags(write=False)
        self._values = values
        self._times = times

    # -- Properties --

    @property
    def values(self) -> NDArray:
        """Read-only matrix of predictions."""
        return self._values

    @property
    def times(self) -> tuple[float, ...]:
        """Prediction times, one per column."""
        return self._times

    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape

    def __len__(self) -> int:
        return self._values.shape[0]

    def __array__(self, dtype=None, copy=None):
        arr = self._values if dtype is None else self._values.astype(dtype)
        return arr.copy() if copy else arr

    # -- Indexing --

    def __getitem__(self, key: Any) -> SurvMatrix:
        if not isinstance(key, tuple):
            key = (key, slice(None))
        rows, cols = key
        rows = _as_index(rows)
        cols = _as_index(cols)
        values = self._values[rows][:, cols]
        times = np.asarray(self._times)[cols]
        return type(self)(values, times)

    def take(self, indices) -> SurvMatrix:
        """Row subset by integer index."""
        return self[np.asarray(indices, dtype=np.intp)]

    def with_origin(self) -> SurvMatrix:
        """Derived view with time 0 prepended (value 1 for probabilities, 0 for events)."""
        origin = 1.0 if isinstance(self, SurvProbs) else 0.0
        values = np.column_stack([np.full(len(self), origin), self._values])
        return type(self)(values, (0.0,) + self._times)

    # -- Combination --

    def _check_compatible(self, other: SurvMatrix) -> None:
        if type(other) is not type(self):
            raise StructuralMismatchError(
                f"cannot combine {type(self).__name__} with {type(other).__name__}",
                what="class",
                expected=type(self).__name__,
                actual=type(other).__name__,
            )
        if other._times != self._times:
            raise StructuralMismatchError(
                f"{type(self).__name__} arguments have different times",
                what="times",
                expected=self._times,
                actual=other._times,
            )

    def concat(self, *others: SurvMatrix) -> SurvMatrix:
        """Row-bind matrices with identical class and time grid."""
        for other in others:
            self._check_compatible(other)
        values = np.vstack([self._values] + [o._values for o in others])
        return type(self)(values, self._times)

    def _binary(self, other: Any, op) -> SurvMatrix:
        if isinstance(other, SurvMatrix):
            self._check_compatible(other)
            other = other._values
        return type(self)(op(self._values, other), self._times)

    def __add__(self, other: Any) -> SurvMatrix:
        return self._binary(other, np.add)

    def __sub__(self, other: Any) -> SurvMatrix:
        return self._binary(other, np.subtract)

    def __mul__(self, other: Any) -> SurvMatrix:
        return self._binary(other, np.multiply)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SurvMatrix):
            return NotImplemented
        return (type(other) is type(self)
                and other._times == self._times
                and np.array_equal(other._values, self._values, equal_nan=True))

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n={len(self)}, "
            f"times={list(self._times)})"
        )


class SurvProbs(SurvMatrix):
    """Predicted survival probabilities S(t) per case and time."""

    __slots__ = ()


class SurvEvents(SurvMatrix):
    """Predicted event indicators (0/1) per case and time."""

    __slots__ = ()


def _as_index(key: Any) -> Any:
    if isinstance(key, (int, np.integer)):
        return [int(key)]
    return key
