"""
Train/test index generation for the resampling controls.

All functions are pure given the generator state. With stratum codes,
cases are permuted within strata and the strata laid end to end before
folds are dealt out round-robin, so every stratum's count in each fold
differs by at most one; bootstrap and split samples are drawn within
each stratum.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ConfigurationError


class Split(NamedTuple):
    label: str
    train: NDArray
    test: NDArray


def _width(count: int) -> int:
    return max(2, len(str(count)))


def _stratified_order(n: int, groups: NDArray | None, rng: np.random.Generator) -> NDArray:
    if groups is None:
        return rng.permutation(n)
    return np.concatenate([
        rng.permutation(np.flatnonzero(groups == g)) for g in np.unique(groups)
    ])


def _stratified_sample(n: int, groups: NDArray | None, rng: np.random.Generator) -> NDArray:
    """Sample with replacement within each stratum."""
    if groups is None:
        return rng.choice(n, size=n, replace=True)
    indices = np.empty(n, dtype=np.intp)
    for g in np.unique(groups):
        mask = groups == g
        indices[mask] = rng.choice(np.flatnonzero(mask), size=int(mask.sum()), replace=True)
    return indices


def cv_splits(
    n: int,
    folds: int,
    repeats: int,
    groups: NDArray | None,
    rng: np.random.Generator,
) -> list[Split]:
    width = _width(folds)
    splits = []
    for r in range(repeats):
        fold_of = np.empty(n, dtype=np.intp)
        fold_of[_stratified_order(n, groups, rng)] = np.arange(n) % folds
        for k in range(folds):
            test = np.flatnonzero(fold_of == k)
            train = np.flatnonzero(fold_of != k)
            splits.append(Split(f"Fold{k + 1:0{width}d}.Rep{r + 1}", train, test))
    return splits


def boot_splits(
    n: int,
    samples: int,
    groups: NDArray | None,
    rng: np.random.Generator,
    out_of_bag: bool = False,
) -> list[Split]:
    width = _width(samples)
    everyone = np.arange(n)
    splits = []
    for b in range(samples):
        train = _stratified_sample(n, groups, rng)
        test = np.setdiff1d(everyone, train) if out_of_bag else everyone
        splits.append(Split(f"Boot{b + 1:0{width}d}", train, test))
    return splits


def split_splits(
    n: int,
    prop: float,
    groups: NDArray | None,
    rng: np.random.Generator,
) -> list[Split]:
    if groups is None:
        groups = np.zeros(n, dtype=np.intp)
    train_parts = []
    for g in np.unique(groups):
        members = rng.permutation(np.flatnonzero(groups == g))
        train_parts.append(members[:int(round(prop * len(members)))])
    train = np.sort(np.concatenate(train_parts))
    test = np.setdiff1d(np.arange(n), train)
    if len(train) == 0 or len(test) == 0:
        raise ConfigurationError(
            f"prop={prop} leaves an empty training or test set for {n} cases",
            field="prop",
            value=prop,
        )
    return [Split("Split", train, test)]


def train_splits(n: int) -> list[Split]:
    everyone = np.arange(n)
    return [Split("Train", everyone, everyone)]
