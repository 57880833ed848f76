"""
Public API for resampled model evaluation.

    resample(frame, model, control, settings) -> Resamples
    resample_models(frame, models, control, settings) -> Resamples

Each iteration fits the model to the training cases of one split and
predicts the test cases. Per-iteration random generators are spawned from
the control seed, so results do not depend on the execution backend or
on the order in which iterations complete.

Fit error policy (settings.fit_errors):
    strict   the first failing iteration (in iteration order) raises
             ModelFitError; pending iterations are cancelled
    lenient  a warning is issued and the iteration is recorded with no
             predictions, so its metrics are missing
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from pymlshop.core.compute.timing import Timer
from pymlshop.core.exceptions import ConfigurationError, ModelFitError, ValidationError
from pymlshop.core.frame import ModelFrame
from pymlshop.core.result import Result
from pymlshop.models.model import MLModel
from pymlshop.models.solvers import as_model, check_model_response, fit
from pymlshop.resampling._splits import Split
from pymlshop.resampling._strata import strata_groups
from pymlshop.resampling.backends.executor import run_tasks
from pymlshop.resampling.control import MLControl, as_control
from pymlshop.resampling.solution import ResampleParams, ResampleRecord, Resamples
from pymlshop.settings import Settings, resolve_settings

logger = logging.getLogger(__name__)

APPARENT = "Apparent"


@dataclass(frozen=True)
class IterationTask:
    frame: ModelFrame
    model: MLModel
    name: str
    iteration: int
    split: Split
    seed: np.random.SeedSequence
    times: tuple[float, ...] | None
    predict_train: bool
    settings: Settings


def _run_iteration(task: IterationTask) -> ResampleRecord:
    """Fit on the training cases and predict the test cases."""
    split = task.split
    logger.debug("%s: iteration %s started", task.name, split.label)
    train = task.frame.take(split.train)
    test = task.frame.take(split.test)

    record = dict(
        model=task.name,
        iteration=task.iteration,
        label=split.label,
        train_index=split.train,
        test_index=split.test,
        observed=test.y,
        predicted=None,
        weights=test.weights,
    )
    if task.predict_train:
        record.update(train_observed=train.y, train_weights=train.weights)

    if len(split.test) == 0:
        record["error"] = f"no test cases in iteration {split.label}"
        return ResampleRecord(**record)

    stage = "fit"
    try:
        fitted = fit(train, task.model, settings=task.settings, seed=task.seed)
        stage = "predict"
        record["predicted"] = fitted.predict_raw(test.X, task.times, task.settings)
        if task.predict_train:
            record["train_predicted"] = fitted.predict_raw(train.X, task.times,
                                                           task.settings)
    except Exception as exc:
        message = f"{task.name} {stage} failed in iteration {split.label}: {exc}"
        if task.settings.fit_errors == "strict":
            raise ModelFitError(message, model=task.name, iteration=split.label,
                                stage=stage) from exc
        record.update(predicted=None, train_predicted=None, error=message)

    logger.debug("%s: iteration %s finished", task.name, split.label)
    return ResampleRecord(**record)


def resample_models(
    frame: ModelFrame,
    models: Mapping[str, Any],
    control: MLControl | None = None,
    settings: Settings | None = None,
) -> Resamples:
    """
    Resample several models with the same splits.

    All (model, iteration) pairs run as one batch of tasks. Records are
    ordered by model, then iteration.
    """
    if not isinstance(frame, ModelFrame):
        raise ValidationError(
            f"frame must be a ModelFrame, got {type(frame).__name__}"
        )
    settings = resolve_settings(settings)
    control = as_control(control)
    models = {name: as_model(m) for name, m in models.items()}
    if not models:
        raise ConfigurationError("at least one model is required", field="models")
    for model in models.values():
        check_model_response(model, frame)

    if control.times is not None and frame.response_type.value != "surv":
        raise ConfigurationError(
            "control times apply to survival responses only",
            field="times",
            value=control.times,
        )

    timer = Timer()
    timer.start()

    groups = None
    if frame.strata is not None:
        groups = strata_groups(frame.strata, control.strata_breaks, control.strata_size)
    with timer.section('splits'):
        splits = control.splits(frame.n_observations, groups)

    n = frame.n_observations
    if control.optimism:
        splits = splits + [Split(APPARENT, np.arange(n), np.arange(n))]
    seeds = np.random.SeedSequence(control.seed).spawn(len(splits))

    # Iterations run in single-threaded mode inside the pool
    inner = settings.replace(n_jobs=1, executor="sequential")
    tasks = [
        IterationTask(
            frame=frame,
            model=model,
            name=name,
            iteration=i,
            split=split,
            seed=seeds[i],
            times=control.times,
            predict_train=control.optimism and split.label != APPARENT,
            settings=inner,
        )
        for name, model in models.items()
        for i, split in enumerate(splits)
    ]
    logger.debug("resampling %s with %s: %d tasks",
                 list(models), type(control).__name__, len(tasks))

    with timer.section('iterations'):
        results = run_tasks(_run_iteration, tasks, settings)
    timer.stop()

    warning_list = []
    for record in results:
        if record.error is not None:
            warnings.warn(record.error, stacklevel=2)
            warning_list.append(record.error)

    params = ResampleParams(
        records=tuple(r for r in results if r.label != APPARENT),
        apparent=tuple(r for r in results if r.label == APPARENT),
        models=tuple(models),
        control=control,
        strata=frame.strata,
        response_type=frame.response_type,
        levels=frame.levels,
    )
    result = Result(
        params=params,
        info={
            'control': control,
            'seed': control.seed,
            'executor': settings.executor,
            'n_jobs': settings.n_jobs,
        },
        timing=timer.result(),
        backend_name=f"{settings.executor}_resample",
        warnings=tuple(warning_list),
    )
    return Resamples(result)


def resample(
    frame: ModelFrame,
    model,
    control: MLControl | None = None,
    settings: Settings | None = None,
    name: str | None = None,
) -> Resamples:
    """
    Estimate model performance by resampling.

    Parameters
    ----------
    frame : ModelFrame
        Data to resample.
    model : MLModel, constructor, or name
        Model specification.
    control : MLControl or None
        Resampling protocol; CVControl() when None.
    settings : Settings or None
        Engine configuration (workers, fit error policy, ...).
    name : str or None
        Model name for the results; defaults to the model's name.

    Returns
    -------
    Resamples

    Raises
    ------
    ConfigurationError
        Invalid control or a model that cannot fit the response, before
        any iteration runs.
    ModelFitError
        A fit or predict failed under the strict fit error policy.
    """
    model = as_model(model)
    return resample_models(frame, {name or model.name: model}, control, settings)
