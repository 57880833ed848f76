"""
Explicit, immutable configuration for PyMLShop.

There is no process-wide settings state. A Settings instance is passed to
every entry point that needs one (``settings=``); when omitted, the entry
point uses default_settings(). Derive variants with Settings.replace().

Usage:
    from pymlshop import default_settings

    settings = default_settings().replace(n_jobs=4, executor="thread")
    res = resample(frame, model, control, settings=settings)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Union

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.core.validation import check_choice, check_positive_int

EXECUTORS = ("sequential", "thread", "process")
FIT_ERROR_POLICIES = ("strict", "lenient")
SURV_DISTS = ("empirical", "exponential", "rayleigh", "weibull")
EMPIRICAL_METHODS = ("breslow", "efron", "fleming-harrington")
P_ADJUST_METHODS = (
    "holm", "hochberg", "hommel", "bonferroni", "BH", "BY", "fdr", "none"
)

StatSpec = Union[str, Callable]


@dataclass(frozen=True)
class Settings:
    """
    Immutable engine configuration.

    Attributes:
        n_jobs: Worker count for resampling iterations.
        executor: "sequential", "thread", or "process".
        fit_errors: "strict" fails the run on the first model fit/predict
            error; "lenient" records that iteration's metrics as missing.
        stat_train: Statistic used to summarize the selection metric.
        stats_resample: Statistics reported by summary().
        grid_size: Values per tunable parameter in automatic grids.
        cutoff: Probability cutoff for binary class metrics.
        dist_surv: Distribution for mean survival time predictions.
        dist_surv_probs: Distribution for survival probability predictions.
        method_empirical_surv: Tie method of the empirical estimator.
        p_adjust: Multiple comparison adjustment for t_test().
    """
    n_jobs: int = 1
    executor: str = "sequential"
    fit_errors: str = "strict"
    stat_train: StatSpec = "mean"
    stats_resample: tuple[StatSpec, ...] = ("mean", "median", "sd", "min", "max")
    grid_size: int = 3
    cutoff: float = 0.5
    dist_surv: str = "weibull"
    dist_surv_probs: str = "empirical"
    method_empirical_surv: str = "efron"
    p_adjust: str = "holm"

    def __post_init__(self) -> None:
        check_positive_int(self.n_jobs, "n_jobs")
        check_choice(self.executor, EXECUTORS, "executor")
        check_choice(self.fit_errors, FIT_ERROR_POLICIES, "fit_errors")
        check_positive_int(self.grid_size, "grid_size")
        check_choice(self.dist_surv, SURV_DISTS, "dist_surv")
        check_choice(self.dist_surv_probs, SURV_DISTS, "dist_surv_probs")
        check_choice(self.method_empirical_surv, EMPIRICAL_METHODS,
                     "method_empirical_surv")
        check_choice(self.p_adjust, P_ADJUST_METHODS, "p_adjust")
        if not 0.0 < self.cutoff < 1.0:
            raise ConfigurationError(
                f"cutoff must be in (0, 1), got {self.cutoff}",
                field="cutoff",
                value=self.cutoff,
            )
        if not isinstance(self.stats_resample, tuple) or not self.stats_resample:
            raise ConfigurationError(
                "stats_resample must be a non-empty tuple",
                field="stats_resample",
                value=self.stats_resample,
            )

    def replace(self, **changes) -> Settings:
        """Return a copy with the given fields changed (validated)."""
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConfigurationError(
                f"unknown settings: {sorted(unknown)}",
                field=sorted(unknown)[0],
            )
        return dataclasses.replace(self, **changes)


def default_settings() -> Settings:
    """Build the default configuration."""
    return Settings()


def resolve_settings(settings: Settings | None) -> Settings:
    """Return settings, or the defaults when None."""
    if settings is None:
        return default_settings()
    if not isinstance(settings, Settings):
        raise ConfigurationError(
            f"settings must be a Settings instance, got {type(settings).__name__}"
        )
    return settings
