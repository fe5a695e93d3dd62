"""
Generic result container for all pycausalsurv computations.

The Result class provides a standardized envelope that every domain-specific
result uses. Domains define their own frozen parameter payloads; the envelope
carries metadata, timing and non-fatal warnings alongside.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) so a stage cannot alter an upstream result
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (coefficients, weights, curves)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the routine that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=CoxParams(...),
        ...     info={'method': 'Cox PH', 'converged': True, 'n_iter': 5},
        ...     timing={'total_seconds': 0.02, 'newton_raphson': 0.015},
        ...     backend_name='cpu_cox'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def converged(self) -> bool:
        """Convergence/validity flag. Direct computations count as valid."""
        return bool(self.info.get('converged', True))

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
