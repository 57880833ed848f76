"""
Generic result container for PyMLShop computations.

The Result class provides a standardized envelope that fitted curves,
resampling runs, and tests use. This enables shared tooling for timing,
warnings, and reproducibility while allowing each module to define its own
parameter structure.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (method, seed, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope.

    Type Parameters:
        P: The module-specific parameter payload type

    Attributes:
        params: Module-specific payload (curve estimates, resample records)
        info: Structured metadata (method, seed, control)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the code path that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=EmpiricalSurvParams(...),
        ...     info={'method': 'efron'},
        ...     timing=None,
        ...     backend_name='cpu_efron'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
