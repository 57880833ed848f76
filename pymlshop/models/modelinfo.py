"""
Model information lookup.

    modelinfo()                       all library models
    modelinfo(CoxModel, "LMModel")    the given models
    modelinfo(Surv(time, event))      library models supporting the response
    modelinfo(LMModel, y)             given models, filtered by response
"""

from __future__ import annotations

import inspect
from typing import Any

from pymlshop.models.library import MODELS
from pymlshop.models.model import MLModel
from pymlshop.prediction.response import ResponseType, is_response


def _constructor(name: str):
    return MODELS.get(name)


def _info(model: MLModel) -> dict[str, Any]:
    constructor = _constructor(model.name)
    return {
        "label": model.label,
        "response_types": tuple(sorted(t.value for t in model.response_types)),
        "arguments": inspect.signature(constructor) if constructor else None,
        "grid": model.has_grid,
        "varimp": model.has_varimp,
    }


def _as_model_or_none(obj) -> MLModel | None:
    if isinstance(obj, MLModel):
        return obj
    if isinstance(obj, str):
        return MODELS[obj]() if obj in MODELS else None
    if callable(obj) and getattr(obj, "__name__", None) in MODELS:
        return obj()
    return None


def modelinfo(*args) -> dict[str, dict[str, Any]]:
    """
    Information about models.

    Arguments may be models, model constructors or names, and observed
    responses (or ResponseType values). Responses restrict the result to
    models supporting every one of them; with only responses given, the
    library models are searched.

    Returns:
        Dict keyed by model name with label, response_types, arguments
        (constructor signature), grid and varimp availability.
    """
    models = []
    responses = []
    for arg in args:
        model = _as_model_or_none(arg)
        if model is not None:
            models.append(model)
        elif not (isinstance(arg, str) and not isinstance(arg, ResponseType)):
            responses.append(arg)

    if not models:
        models = [constructor() for constructor in MODELS.values()]

    info = {}
    for model in models:
        if all(is_response(y, model.response_types) for y in responses):
            info.setdefault(model.name, _info(model))
    return info
