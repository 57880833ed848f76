"""
Resampling protocols and the resampling driver.

Public API:
    CVControl, BootControl, OOBControl, BootOptimismControl,
    CVOptimismControl, SplitControl, TrainControl
    resample(frame, model, control, settings) -> Resamples
    strata_groups(y, breaks, min_size)
"""

from pymlshop.resampling.control import (
    BootControl,
    BootOptimismControl,
    CVControl,
    CVOptimismControl,
    MLControl,
    OOBControl,
    SplitControl,
    TrainControl,
    as_control,
)
from pymlshop.resampling._strata import strata_groups
from pymlshop.resampling.solution import ResampleRecord, Resamples
from pymlshop.resampling.solvers import resample, resample_models

__all__ = [
    "BootControl",
    "BootOptimismControl",
    "CVControl",
    "CVOptimismControl",
    "MLControl",
    "OOBControl",
    "SplitControl",
    "TrainControl",
    "as_control",
    "strata_groups",
    "ResampleRecord",
    "Resamples",
    "resample",
    "resample_models",
]
