"""
Tests for the PyMLShop exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyMLShopError)
    - Diagnostic attributes on ConfigurationError, StructuralMismatchError,
      InsufficientDataError, ConvergenceError, ModelFitError
    - ModelFitError survives pickling with its diagnostics
"""

import pickle

import pytest

from pymlshop.core.exceptions import (
    ConfigurationError,
    ConvergenceError,
    DimensionError,
    InsufficientDataError,
    ModelFitError,
    NumericalError,
    PyMLShopError,
    StructuralMismatchError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyMLShopError."""

    @pytest.mark.parametrize("exc_type", [
        ValidationError, DimensionError, ConfigurationError,
        StructuralMismatchError, NumericalError, InsufficientDataError,
        ModelFitError,
    ])
    def test_is_pymlshop_error(self, exc_type):
        with pytest.raises(PyMLShopError):
            raise exc_type("failed")

    def test_dimension_error_is_validation_error(self):
        assert issubclass(DimensionError, ValidationError)

    def test_configuration_error_is_validation_error(self):
        assert issubclass(ConfigurationError, ValidationError)

    def test_insufficient_data_is_numerical_error(self):
        assert issubclass(InsufficientDataError, NumericalError)

    def test_structural_mismatch_is_not_validation_error(self):
        assert not issubclass(StructuralMismatchError, ValidationError)

    def test_convergence_error_is_numerical_error(self):
        err = ConvergenceError("did not converge", iterations=100)
        assert isinstance(err, NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_configuration_error(self):
        err = ConfigurationError("folds too small", field="folds", value=1)
        assert err.field == "folds"
        assert err.value == 1
        assert str(err) == "folds too small"

    def test_configuration_error_defaults(self):
        err = ConfigurationError("bad")
        assert err.field is None
        assert err.value is None

    def test_structural_mismatch(self):
        err = StructuralMismatchError("differ", what="control",
                                      expected="a", actual="b")
        assert err.what == "control"
        assert err.expected == "a"
        assert err.actual == "b"

    def test_insufficient_data(self):
        err = InsufficientDataError("too few", n_event_times=1, n_params=2)
        assert err.n_event_times == 1
        assert err.n_params == 2

    def test_convergence_error(self):
        err = ConvergenceError("stuck", iterations=50, reason="max_iterations")
        assert err.iterations == 50
        assert err.reason == "max_iterations"

    def test_model_fit_error(self):
        err = ModelFitError("boom", model="LMModel", iteration="Fold01.Rep1",
                            stage="fit")
        assert err.model == "LMModel"
        assert err.iteration == "Fold01.Rep1"
        assert err.stage == "fit"


class TestPickling:

    def test_model_fit_error_round_trip(self):
        err = ModelFitError("boom", model="M", iteration="Boot03", stage="predict")
        restored = pickle.loads(pickle.dumps(err))
        assert isinstance(restored, ModelFitError)
        assert str(restored) == "boom"
        assert restored.model == "M"
        assert restored.iteration == "Boot03"
        assert restored.stage == "predict"
