"""
Surv: immutable container for right-censored time-to-event responses.

Wraps time and event indicator. Validates inputs at construction time,
all downstream code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import DimensionError, ValidationError


@dataclass(frozen=True, eq=False)
class Surv:
    """Immutable survival response.

    Parameters
    ----------
    time : NDArray
        Time to event or censoring. Non-negative.
    event : NDArray
        Event indicator: 0 = censored, 1 = event. Values > 1 are kept
        as given (multi-state codes) and count as events in estimators.
    """

    time: NDArray
    event: NDArray

    def __init__(self, time, event=None):
        time_arr = np.asarray(time, dtype=np.float64)
        if event is None:
            if time_arr.ndim != 2 or time_arr.shape[1] != 2:
                raise DimensionError(
                    "Surv: a single argument must be an (n, 2) array of "
                    f"time and event, got shape {time_arr.shape}"
                )
            time_arr, event_arr = time_arr[:, 0], time_arr[:, 1]
        else:
            event_arr = np.asarray(event, dtype=np.float64)

        time_arr = np.array(time_arr, dtype=np.float64).ravel()
        event_arr = np.array(event_arr, dtype=np.float64).ravel()

        if len(event_arr) != len(time_arr):
            raise DimensionError(
                f"time and event must have the same length: "
                f"got {len(time_arr)} and {len(event_arr)}"
            )
        if np.any(np.isnan(time_arr)) or np.any(np.isnan(event_arr)):
            raise ValidationError("Surv: time and event must not contain NaN")
        if np.any(time_arr < 0):
            raise ValidationError("time must be non-negative")
        if np.any(event_arr < 0) or np.any(event_arr != np.round(event_arr)):
            raise ValidationError(
                "event must contain non-negative integer codes "
                "(0 = censored, >= 1 = event)"
            )

        time_arr.setflags(write=False)
        event_arr.setflags(write=False)
        object.__setattr__(self, "time", time_arr)
        object.__setattr__(self, "event", event_arr)

    def __len__(self) -> int:
        return len(self.time)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Surv):
            return NotImplemented
        return (np.array_equal(self.time, other.time)
                and np.array_equal(self.event, other.event))

    __hash__ = None

    def __repr__(self) -> str:
        return f"Surv(n={len(self)}, events={self.n_events})"

    @property
    def status(self) -> NDArray:
        """Event indicator collapsed to 0/1."""
        return np.minimum(self.event, 1.0)

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return int(np.sum(self.event > 0))

    def take(self, indices) -> Surv:
        """Subset (or resample) cases by integer index."""
        indices = np.asarray(indices, dtype=np.intp)
        return Surv(self.time[indices], self.event[indices])

    def order(self) -> NDArray:
        """Stable ordering of cases by time."""
        return np.argsort(self.time, kind="stable")

    def event_times(self) -> NDArray:
        """Sorted distinct times at which events occurred."""
        return np.unique(self.time[self.event != 0])

    def to_array(self) -> NDArray:
        """(n, 2) array of time and event."""
        return np.column_stack([self.time, self.event])
