"""Selection records kept on models fit by SelectedModel and TunedModel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import NumericalError
from pymlshop.performance.solution import Performance


def select_index(values: NDArray, maximize: bool) -> int:
    """
    Index of the best candidate statistic.

    Ties go to the first candidate; missing values are never selected.
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0 or np.all(np.isnan(values)):
        raise NumericalError(
            "no candidate has a non-missing selection statistic"
        )
    return int(np.nanargmax(values) if maximize else np.nanargmin(values))


@dataclass(frozen=True, eq=False)
class TrainBits:
    """
    Outcome of one selection step.

    Attributes:
        grid: Candidate parameters, one dict per candidate (empty dicts
            for SelectedModel candidates without tuned parameters)
        performance: Resampled performance of every candidate
        selected: Index of the selected candidate
        values: Selection statistic of each candidate
        metric: Metric the statistic was computed on
        stat: Name of the statistic
    """
    grid: tuple[dict[str, Any], ...]
    performance: Performance
    selected: int
    values: NDArray
    metric: Any
    stat: str

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "grid", tuple(dict(g) for g in self.grid))

    @property
    def candidates(self) -> tuple[str, ...]:
        return self.performance.models

    @property
    def selected_name(self) -> str:
        return self.candidates[self.selected]

    @property
    def selected_params(self) -> dict[str, Any]:
        return dict(self.grid[self.selected])

    def to_dataframe(self):
        """Candidate grid with the selection statistic and a selected flag."""
        import pandas as pd

        df = pd.DataFrame(list(self.grid), index=list(self.candidates))
        df[self.stat] = self.values
        df["selected"] = np.arange(len(self.values)) == self.selected
        return df

    def __repr__(self) -> str:
        return (
            f"TrainBits(metric={self.metric.name!r}, stat={self.stat!r}, "
            f"selected={self.selected_name!r}, candidates={len(self.grid)})"
        )
