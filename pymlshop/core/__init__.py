"""
Core infrastructure for PyMLShop.

This module provides shared abstractions and utilities used by all
subpackages (survival, resampling, performance, compare, selection).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    frame: ModelFrame data container
    compute: Timing
"""

from pymlshop.core.result import Result
from pymlshop.core.exceptions import (
    PyMLShopError,
    ValidationError,
    DimensionError,
    ConfigurationError,
    StructuralMismatchError,
    NumericalError,
    InsufficientDataError,
    ConvergenceError,
    ModelFitError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyMLShopError",
    "ValidationError",
    "DimensionError",
    "ConfigurationError",
    "StructuralMismatchError",
    "NumericalError",
    "InsufficientDataError",
    "ConvergenceError",
    "ModelFitError",
]
