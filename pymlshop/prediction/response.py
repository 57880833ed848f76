"""
Response kinds as a closed tagged variant.

Every observed response belongs to exactly one ResponseType. Models declare
the kinds they support and metrics are registered per kind, so adding a new
response kind means adding a member here rather than open-ended dispatch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import numpy as np

from pymlshop.core.exceptions import ValidationError
from pymlshop.survival.design import Surv


class ResponseType(str, Enum):
    NUMERIC = "numeric"
    FACTOR = "factor"
    ORDERED = "ordered"
    MATRIX = "matrix"
    SURV = "surv"


ALL_RESPONSE_TYPES = frozenset(ResponseType)


def as_response_types(types) -> frozenset[ResponseType]:
    """Normalize a string, ResponseType, or iterable of them to a frozenset."""
    if isinstance(types, (str, ResponseType)):
        types = (types,)
    try:
        return frozenset(ResponseType(t) for t in types)
    except ValueError as e:
        raise ValidationError(f"unknown response type: {e}") from e


def response_type(y: Any, ordered: bool = False) -> ResponseType:
    """
    Infer the response kind of an observed response.

    Surv -> SURV; 2-D numeric -> MATRIX; integer or floating 1-D -> NUMERIC;
    anything else 1-D (booleans, strings, categoricals) -> FACTOR,
    or ORDERED when ``ordered`` is set or the pandas categorical is ordered.
    """
    if isinstance(y, Surv):
        return ResponseType.SURV

    dtype = getattr(y, "dtype", None)
    if dtype is not None and getattr(dtype, "name", "") == "category":
        is_ordered = bool(getattr(dtype, "ordered", False))
        return ResponseType.ORDERED if (ordered or is_ordered) else ResponseType.FACTOR

    arr = np.asarray(y)
    if arr.ndim == 2:
        if not np.issubdtype(arr.dtype, np.number):
            raise ValidationError(
                f"matrix responses must be numeric, got dtype {arr.dtype}"
            )
        return ResponseType.MATRIX
    if arr.ndim != 1:
        raise ValidationError(
            f"response must be 1D, 2D or Surv, got {arr.ndim}D"
        )
    if np.issubdtype(arr.dtype, np.number) and not ordered:
        return ResponseType.NUMERIC
    return ResponseType.ORDERED if ordered else ResponseType.FACTOR


def is_response(y: Any, types) -> bool:
    """True if the response kind of ``y`` is among ``types``."""
    kind = y if isinstance(y, ResponseType) else response_type(y)
    allowed = as_response_types(types)
    if kind is ResponseType.ORDERED and ResponseType.FACTOR in allowed:
        return True
    return kind in allowed
