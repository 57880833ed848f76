"""
Combination, differencing and significance testing of model results.

Public API:
    combine(*objs, **named)
    diff(obj) -> PerformanceDiff
    t_test(diff, adjust) -> PerformanceDiffTest
    p_adjust(p, method)
"""

from pymlshop.compare._p_adjust import p_adjust
from pymlshop.compare.combine import combine
from pymlshop.compare.diff import diff, t_test
from pymlshop.compare.solution import PerformanceDiffTest

__all__ = [
    "p_adjust",
    "combine",
    "diff",
    "t_test",
    "PerformanceDiffTest",
]
