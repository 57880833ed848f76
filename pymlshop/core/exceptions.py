"""
Exception hierarchy for PyMLShop.

All exceptions inherit from PyMLShopError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PyMLShopError(Exception):
    """Base exception for all PyMLShop errors."""
    pass


class ValidationError(PyMLShopError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class ConfigurationError(ValidationError):
    """
    Control, grid, metric, or settings specification is invalid.

    Raised before any resampling work begins, so no partial results
    are ever produced from a bad configuration.

    Attributes:
        field: Name of the offending option, if known
        value: The rejected value
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.field = field
        self.value = value


class StructuralMismatchError(PyMLShopError):
    """
    Objects to be combined or differenced are structurally incompatible.

    Raised when control structures, stratification variables, metric or
    iteration labels, or survival time grids differ. Aborts only the
    offending combine/diff call; the inputs are never modified.

    Attributes:
        what: Which component differed (e.g. 'control', 'times')
        expected: Value on the first object
        actual: First differing value found
    """

    def __init__(
        self,
        message: str,
        what: str | None = None,
        expected: Any = None,
        actual: Any = None,
    ):
        super().__init__(message)
        self.what = what
        self.expected = expected
        self.actual = actual


class NumericalError(PyMLShopError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class InsufficientDataError(NumericalError):
    """
    Too few distinct event times to estimate a parametric curve.

    Batch fitters convert this into NA parameters and a warning rather
    than failing the whole batch.

    Attributes:
        n_event_times: Distinct event times available
        n_params: Free parameters to estimate
    """

    def __init__(
        self,
        message: str,
        n_event_times: int | None = None,
        n_params: int | None = None,
    ):
        super().__init__(message)
        self.n_event_times = n_event_times
        self.n_params = n_params


class ConvergenceError(NumericalError):
    """
    Iterative algorithm failed to converge.

    Attributes:
        iterations: Number of iterations completed
        reason: Why convergence failed (e.g., 'max_iterations', 'diverging')
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason


class ModelFitError(PyMLShopError):
    """
    An external model failed to fit or predict during resampling.

    The original exception is chained as __cause__.

    Attributes:
        model: Name of the model that failed
        iteration: Label of the resampling iteration
        stage: 'fit' or 'predict'
    """

    def __init__(
        self,
        message: str,
        model: str | None = None,
        iteration: str | None = None,
        stage: str | None = None,
    ):
        super().__init__(message)
        self.model = model
        self.iteration = iteration
        self.stage = stage

    def __reduce__(self):
        # Keep diagnostics when raised in a process pool worker
        return (type(self), (str(self), self.model, self.iteration, self.stage))
