"""
Tuning grids.

A tuning grid is a tuple of parameter dicts, one per candidate. Grids are
given as

    Grid(size=3, random=None)   expand the model's default grid with
                                ``size`` values per tunable parameter,
                                optionally sampling ``random`` points
    expand_params(a=[...], b=[...])  Cartesian product of value lists
    dict of lists                    same as expand_params(**dict)
    list of dicts                    explicit candidates
    pandas DataFrame                 one candidate per row

Default grids are expanded against the training data at fit time, since
the model's grid functions may depend on it.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.models.model import MLModel, TrainingContext

ParamGrid = tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class Grid:
    """
    Default model grid specification.

    Attributes:
        size: Values per tunable parameter; an int for all parameters or a
            mapping of parameter name to size.
        random: Number of grid points to sample at random, or None for the
            full grid.
    """
    size: int | Mapping[str, int] = 3
    random: int | None = None

    def __post_init__(self) -> None:
        sizes = self.size.values() if isinstance(self.size, Mapping) else (self.size,)
        for s in sizes:
            if isinstance(s, bool) or not isinstance(s, (int, np.integer)) or s < 1:
                raise ConfigurationError(
                    f"grid size must be a positive integer, got {s!r}",
                    field="size",
                    value=s,
                )
        if self.random is not None and (not isinstance(self.random, (int, np.integer))
                                        or self.random < 1):
            raise ConfigurationError(
                f"random must be a positive integer or None, got {self.random!r}",
                field="random",
                value=self.random,
            )
        if isinstance(self.size, Mapping):
            object.__setattr__(self, "size", dict(self.size))

    def size_of(self, param: str) -> int:
        if isinstance(self.size, dict):
            if param not in self.size:
                raise ConfigurationError(
                    f"no grid size given for tuning parameter {param!r}",
                    field="size",
                    value=self.size,
                )
            return self.size[param]
        return self.size

    def expand(self, model: MLModel, context: TrainingContext,
               rng: np.random.Generator | None = None) -> ParamGrid:
        """Grid points of ``model``'s default grid for the training data."""
        if not model.has_grid:
            raise ConfigurationError(
                f"{model.name} has no default tuning grid; supply one",
                field="grid",
                value=model.name,
            )
        values = {
            param: list(fn(self.size_of(param), context))
            for param, fn in model.gridinfo.items()
        }
        grid = expand_params(**values)
        if self.random is not None and self.random < len(grid):
            rng = np.random.default_rng() if rng is None else rng
            keep = np.sort(rng.choice(len(grid), size=self.random, replace=False))
            grid = tuple(grid[i] for i in keep)
        return grid


def expand_params(**values) -> ParamGrid:
    """
    Cartesian product of parameter values.

    >>> expand_params(n=[25, 50], alpha=[0.1])
    ({'n': 25, 'alpha': 0.1}, {'n': 50, 'alpha': 0.1})
    """
    if not values:
        raise ConfigurationError("expand_params() requires at least one parameter",
                                 field="grid")
    lists = {}
    for name, v in values.items():
        v = list(v) if isinstance(v, (list, tuple, np.ndarray, range)) else [v]
        if not v:
            raise ConfigurationError(f"no values given for parameter {name!r}",
                                     field="grid", value=name)
        lists[name] = v
    names = list(lists)
    return tuple(dict(zip(names, combo))
                 for combo in itertools.product(*lists.values()))


def _is_dataframe(obj) -> bool:
    return hasattr(obj, "to_dict") and hasattr(obj, "columns")


def as_grid(grid, model: MLModel | None = None,
            context: TrainingContext | None = None,
            rng: np.random.Generator | None = None) -> ParamGrid:
    """Resolve any accepted grid form to a tuple of parameter dicts."""
    if isinstance(grid, (int, np.integer)) and not isinstance(grid, bool):
        grid = Grid(size=int(grid))
    if isinstance(grid, Grid):
        if model is None or context is None:
            raise ConfigurationError("a default grid needs the model and training data",
                                     field="grid")
        points = grid.expand(model, context, rng)
    elif _is_dataframe(grid):
        points = tuple(grid.to_dict("records"))
    elif isinstance(grid, Mapping):
        points = expand_params(**grid)
    elif isinstance(grid, (list, tuple)) and all(isinstance(g, Mapping) for g in grid):
        points = tuple(dict(g) for g in grid)
    else:
        raise ConfigurationError(
            f"unsupported grid specification of type {type(grid).__name__}",
            field="grid",
            value=grid,
        )
    if not points:
        raise ConfigurationError("tuning grid is empty", field="grid")
    return points
