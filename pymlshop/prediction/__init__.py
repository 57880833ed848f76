"""
Prediction containers and response kinds.

Public API:
    SurvMatrix, SurvProbs, SurvEvents
    ResponseType, response_type(y), is_response(y, types)
"""

from pymlshop.prediction.matrix import SurvMatrix, SurvProbs, SurvEvents
from pymlshop.prediction.response import (
    ResponseType,
    ALL_RESPONSE_TYPES,
    as_response_types,
    is_response,
    response_type,
)

__all__ = [
    "SurvMatrix",
    "SurvProbs",
    "SurvEvents",
    "ResponseType",
    "ALL_RESPONSE_TYPES",
    "as_response_types",
    "is_response",
    "response_type",
]
