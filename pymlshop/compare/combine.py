"""
Combination of results from separate runs.

    combine(*objs, **named)

Combines Resamples, Performance, SurvMatrix or TrainBits objects of one
kind into a new object. Model names come from the keyword names or, for
positional arguments, from the objects themselves, and are made unique
("A", "A.1", ...). The inputs are never modified; structural mismatches
raise StructuralMismatchError.
"""

from __future__ import annotations

import numpy as np

from pymlshop.core.exceptions import StructuralMismatchError, ValidationError
from pymlshop.core.names import make_unique
from pymlshop.core.result import Result
from pymlshop.performance.solution import Performance
from pymlshop.prediction.matrix import SurvMatrix
from pymlshop.resampling.solution import ResampleParams, Resamples
from pymlshop.selection.trainbits import TrainBits, select_index


def _labelled(objs, named) -> list[tuple[str | None, object]]:
    return [(None, obj) for obj in objs] + list(named.items())


def _check_equal(what: str, expected, actual) -> None:
    if expected != actual:
        raise StructuralMismatchError(
            f"cannot combine objects with different {what}: "
            f"{expected!r} != {actual!r}",
            what=what,
            expected=expected,
            actual=actual,
        )


def _combine_resamples(items) -> Resamples:
    first = items[0][1]
    for _, res in items[1:]:
        _check_equal("control", first.control, res.control)
        if not first.same_strata(res):
            raise StructuralMismatchError(
                "cannot combine resamples with different stratification",
                what="strata",
            )
        _check_equal("response type", first.response_type, res.response_type)
        _check_equal("levels", first.levels, res.levels)

    sources = []
    for key, res in items:
        for model in res.models:
            label = model if key is None else (key if len(res.models) == 1
                                               else f"{key}.{model}")
            sources.append((res, model, label))
    names = make_unique([label for _, _, label in sources])

    records, apparent = [], []
    for (res, model, _), name in zip(sources, names):
        records.extend(r.renamed(name) for r in res.records if r.model == model)
        apparent.extend(r.renamed(name) for r in res.apparent if r.model == model)

    params = ResampleParams(
        records=tuple(records),
        apparent=tuple(apparent),
        models=tuple(names),
        control=first.control,
        strata=first.strata,
        response_type=first.response_type,
        levels=first.levels,
    )
    warnings = tuple(w for _, res in items for w in res.warnings)
    return Resamples(Result(params=params, info={'control': first.control},
                            timing=None, backend_name="combine",
                            warnings=warnings))


def _combine_performance(items) -> Performance:
    first = items[0][1]
    for _, perf in items[1:]:
        _check_equal("iterations", first.iterations, perf.iterations)
        _check_equal("metrics", first.metrics, perf.metrics)

    labels = []
    for key, perf in items:
        if key is None:
            labels.extend(perf.models)
        elif len(perf.models) == 1:
            labels.append(key)
        else:
            labels.extend(f"{key}.{m}" for m in perf.models)

    values = np.concatenate([perf.values for _, perf in items], axis=2)
    return Performance.from_arrays(
        values, first.iterations, first.metric_info, make_unique(labels),
        first.control, backend_name="combine",
        warnings=tuple(w for _, perf in items for w in perf.warnings),
    )


def _combine_trainbits(items) -> TrainBits:
    first = items[0][1]
    for _, tb in items[1:]:
        _check_equal("metric", first.metric.name, tb.metric.name)
        _check_equal("statistic", first.stat, tb.stat)

    renamed = []
    for k, (key, tb) in enumerate(items):
        prefix = key if key is not None else f"TrainBits{k + 1}"
        perf = Performance.from_arrays(
            tb.performance.values, tb.performance.iterations,
            tb.performance.metric_info,
            [f"{prefix}.{i + 1}" for i in range(len(tb.grid))],
            tb.performance.control,
        )
        renamed.append((None, perf))
    performance = _combine_performance(renamed)
    values = np.concatenate([tb.values for _, tb in items])
    return TrainBits(
        grid=tuple(g for _, tb in items for g in tb.grid),
        performance=performance,
        selected=select_index(values, first.metric.maximize),
        values=values,
        metric=first.metric,
        stat=first.stat,
    )


def combine(*objs, **named):
    """
    Combine results of separate runs into one multi-model object.

    Parameters
    ----------
    *objs, **named
        Objects of one kind: Resamples (identical control and
        stratification), Performance (identical iteration and metric
        labels), SurvMatrix (identical class and time grid; rows are
        stacked), or TrainBits (identical metric and statistic; candidates
        are relabelled ``name.i`` and the selection is recomputed).

    Returns
    -------
    Object of the same kind as the inputs.

    Raises
    ------
    StructuralMismatchError
        The inputs are structurally incompatible.
    """
    items = _labelled(objs, named)
    if not items:
        raise ValidationError("combine() requires at least one object")
    first = items[0][1]
    kinds = (Resamples, Performance, SurvMatrix, TrainBits)
    kind = next((k for k in kinds if isinstance(first, k)), None)
    if kind is None:
        raise ValidationError(f"cannot combine objects of type {type(first).__name__}")
    for _, obj in items[1:]:
        if not isinstance(obj, kind):
            raise StructuralMismatchError(
                f"cannot combine {kind.__name__} with {type(obj).__name__}",
                what="type",
                expected=kind.__name__,
                actual=type(obj).__name__,
            )

    if kind is Resamples:
        return _combine_resamples(items)
    if kind is SurvMatrix:
        return first.concat(*(obj for _, obj in items[1:]))
    if kind is TrainBits:
        return _combine_trainbits(items)
    return _combine_performance(items)
