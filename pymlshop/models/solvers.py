"""
Public API for fitting model specifications.

    fit(frame, model, settings, seed) -> MLModelFit
    as_model(model) -> MLModel
"""

from __future__ import annotations

import numpy as np

from pymlshop.core.compute.timing import Timer
from pymlshop.core.exceptions import ConfigurationError, ValidationError
from pymlshop.core.frame import ModelFrame
from pymlshop.core.result import Result
from pymlshop.models.library import MODELS
from pymlshop.models.model import (
    FitParams,
    MLModel,
    MLModelFit,
    TrainingContext,
    resolve_params,
)
from pymlshop.settings import Settings, resolve_settings


def as_model(model) -> MLModel:
    """Coerce a model, model constructor, or library model name to an MLModel."""
    if isinstance(model, MLModel):
        return model
    if isinstance(model, str):
        if model not in MODELS:
            raise ConfigurationError(
                f"unknown model {model!r}; available: {sorted(MODELS)}",
                field="model",
                value=model,
            )
        return MODELS[model]()
    if callable(model):
        obj = model()
        if isinstance(obj, MLModel):
            return obj
    raise ConfigurationError(
        f"model must be an MLModel, constructor, or name, got {type(model).__name__}",
        field="model",
        value=model,
    )


def check_model_response(model: MLModel, frame: ModelFrame) -> None:
    """Raise ConfigurationError if the model cannot fit the frame's response."""
    if not model.supports(frame.response_type):
        supported = sorted(t.value for t in model.response_types)
        raise ConfigurationError(
            f"{model.name} does not support {frame.response_type.value} "
            f"responses (supports {supported})",
            field="model",
            value=model.name,
        )


def fit(
    frame: ModelFrame,
    model,
    settings: Settings | None = None,
    seed: int | np.random.SeedSequence | None = None,
) -> MLModelFit:
    """
    Fit a model specification to data.

    Parameters
    ----------
    frame : ModelFrame
        Training data.
    model : MLModel, constructor, or name
        Model specification. SelectedModel and TunedModel specifications
        return the refit winning candidate with its selection records.
    settings : Settings or None
        Engine configuration.
    seed : int, SeedSequence, or None
        Seed for the random generator handed to the fit closure.

    Returns
    -------
    MLModelFit
    """
    if not isinstance(frame, ModelFrame):
        raise ValidationError(
            f"frame must be a ModelFrame, got {type(frame).__name__}"
        )
    settings = resolve_settings(settings)
    model = as_model(model)
    check_model_response(model, frame)

    context = TrainingContext.from_frame(frame)
    params = resolve_params(model.params, context)
    rng = np.random.default_rng(seed)

    timer = Timer()
    timer.start()
    with timer.section('fit'):
        obj = model.fit(frame, rng=rng, settings=settings, **params)
    timer.stop()

    if isinstance(obj, MLModelFit):
        return obj

    result = Result(
        params=FitParams(
            object=obj,
            y=frame.y,
            params=params,
            response_type=frame.response_type,
            levels=frame.levels,
            columns=frame.columns,
        ),
        info={'model': model.name, 'context': context},
        timing=timer.result(),
        backend_name=model.name,
    )
    return MLModelFit(result, model)
