"""
Performance metrics and resampled performance.

Public API:
    Metric, METRICS, get_metric, default_metrics
    performance(resamples, metrics, cutoff) -> Performance
    summary(obj, stats) -> PerformanceSummary
"""

from pymlshop.performance.metrics import (
    METRICS,
    Metric,
    accuracy,
    as_metrics,
    brier,
    cindex,
    cross_entropy,
    default_metrics,
    get_metric,
    mae,
    r2,
    rmse,
)
from pymlshop.performance.solution import (
    Performance,
    PerformanceDiff,
    PerformanceSummary,
)
from pymlshop.performance.solvers import STATS, performance, summary

__all__ = [
    "METRICS",
    "Metric",
    "accuracy",
    "as_metrics",
    "brier",
    "cindex",
    "cross_entropy",
    "default_metrics",
    "get_metric",
    "mae",
    "r2",
    "rmse",
    "Performance",
    "PerformanceDiff",
    "PerformanceSummary",
    "STATS",
    "performance",
    "summary",
]
