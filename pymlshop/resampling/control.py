"""
Resampling control specifications.

Controls are frozen dataclasses compared structurally: two controls are
equal when every field, the seed included, is equal. Split generation is
a pure function of (control, number of cases, strata), so equal controls
applied to the same data give identical train/test assignments.

    CVControl(folds=10, repeats=1)
    BootControl(samples=25)
    OOBControl(samples=25)
    BootOptimismControl(samples=25)
    CVOptimismControl(folds=10, repeats=1)
    SplitControl(prop=2/3)
    TrainControl()

Common keyword-only fields:
    seed: Random seed; drawn at construction when omitted
    times: Survival prediction times, or None for mean survival times
    strata_breaks: Quantile buckets for numeric / survival stratification
    strata_size: Minimum stratum size; smaller strata are merged
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.core.validation import check_positive_int
from pymlshop.resampling._splits import (
    Split,
    boot_splits,
    cv_splits,
    split_splits,
    train_splits,
)


def _draw_seed() -> int:
    return int(np.random.default_rng().integers(2**31 - 1))


@dataclass(frozen=True)
class MLControl:
    """Base class of resampling controls."""

    seed: int = field(default_factory=_draw_seed, kw_only=True)
    times: tuple[float, ...] | None = field(default=None, kw_only=True)
    strata_breaks: int = field(default=4, kw_only=True)
    strata_size: int = field(default=20, kw_only=True)

    label: ClassVar[str] = "Resampling"
    optimism: ClassVar[bool] = False

    def __post_init__(self) -> None:
        if isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)):
            raise ConfigurationError(
                f"seed must be an integer, got {type(self.seed).__name__}",
                field="seed",
                value=self.seed,
            )
        object.__setattr__(self, "seed", int(self.seed))
        if self.times is not None:
            times = np.atleast_1d(np.asarray(self.times, dtype=np.float64))
            if times.ndim != 1 or np.any(~np.isfinite(times)) or np.any(times <= 0):
                raise ConfigurationError(
                    "times must be finite positive values",
                    field="times",
                    value=self.times,
                )
            object.__setattr__(
                self, "times", tuple(float(t) for t in times) if len(times) else None
            )
        check_positive_int(self.strata_breaks, "strata_breaks")
        check_positive_int(self.strata_size, "strata_size")

    @property
    def n_iterations(self) -> int:
        raise NotImplementedError

    def splits(self, n: int, groups: NDArray | None = None) -> list[Split]:
        """Train/test index pairs for ``n`` cases, in iteration order."""
        raise NotImplementedError

    def _rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


@dataclass(frozen=True)
class CVControl(MLControl):
    """Repeated K-fold cross-validation."""

    folds: int = 10
    repeats: int = 1

    label: ClassVar[str] = "K-Fold Cross-Validation"

    def __post_init__(self) -> None:
        super().__post_init__()
        check_positive_int(self.folds, "folds", minimum=2)
        check_positive_int(self.repeats, "repeats")

    @property
    def n_iterations(self) -> int:
        return self.folds * self.repeats

    def splits(self, n: int, groups: NDArray | None = None) -> list[Split]:
        if n < self.folds:
            raise ConfigurationError(
                f"folds ({self.folds}) exceeds the number of cases ({n})",
                field="folds",
                value=self.folds,
            )
        return cv_splits(n, self.folds, self.repeats, groups, self._rng())


@dataclass(frozen=True)
class CVOptimismControl(CVControl):
    """Optimism-corrected K-fold cross-validation."""

    label: ClassVar[str] = "Optimism-Corrected K-Fold Cross-Validation"
    optimism: ClassVar[bool] = True


@dataclass(frozen=True)
class BootControl(MLControl):
    """Bootstrap resampling; each fit predicts the full data."""

    samples: int = 25

    label: ClassVar[str] = "Bootstrap Resampling"
    out_of_bag: ClassVar[bool] = False

    def __post_init__(self) -> None:
        super().__post_init__()
        check_positive_int(self.samples, "samples")

    @property
    def n_iterations(self) -> int:
        return self.samples

    def splits(self, n: int, groups: NDArray | None = None) -> list[Split]:
        return boot_splits(n, self.samples, groups, self._rng(),
                           out_of_bag=self.out_of_bag)


@dataclass(frozen=True)
class OOBControl(BootControl):
    """Out-of-bag bootstrap; each fit predicts the cases not sampled."""

    label: ClassVar[str] = "Out-of-Bootstrap Resampling"
    out_of_bag: ClassVar[bool] = True


@dataclass(frozen=True)
class BootOptimismControl(BootControl):
    """Optimism-corrected bootstrap resampling."""

    label: ClassVar[str] = "Optimism-Corrected Bootstrap Resampling"
    optimism: ClassVar[bool] = True


@dataclass(frozen=True)
class SplitControl(MLControl):
    """Single train/test split with a training proportion of ``prop``."""

    prop: float = 2 / 3

    label: ClassVar[str] = "Split Training and Test Samples"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not 0.0 < self.prop < 1.0:
            raise ConfigurationError(
                f"prop must be in (0, 1), got {self.prop}",
                field="prop",
                value=self.prop,
            )

    @property
    def n_iterations(self) -> int:
        return 1

    def splits(self, n: int, groups: NDArray | None = None) -> list[Split]:
        return split_splits(n, self.prop, groups, self._rng())


@dataclass(frozen=True)
class TrainControl(MLControl):
    """Resubstitution: fit and predict the full data once."""

    label: ClassVar[str] = "Training Resubstitution"

    @property
    def n_iterations(self) -> int:
        return 1

    def splits(self, n: int, groups: NDArray | None = None) -> list[Split]:
        return train_splits(n)


def as_control(control) -> MLControl:
    """Default CVControl() for None; pass through controls; reject the rest."""
    if control is None:
        return CVControl()
    if isinstance(control, type) and issubclass(control, MLControl):
        return control()
    if not isinstance(control, MLControl):
        raise ConfigurationError(
            f"control must be an MLControl, got {type(control).__name__}",
            field="control",
            value=control,
        )
    return control
