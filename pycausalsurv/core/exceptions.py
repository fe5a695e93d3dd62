"""
Exception hierarchy for pycausalsurv.

All exceptions inherit from PyCausalSurvError so a caller running several
sibling analyses can catch any library-specific failure of one analysis
without masking programming errors.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
    - No error is retried internally; retries are a caller decision
"""

from __future__ import annotations

from typing import Any


class PyCausalSurvError(Exception):
    """Base exception for all pycausalsurv errors."""
    pass


class ValidationError(PyCausalSurvError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    """
    pass


class MalformedCohort(ValidationError):
    """
    Structural violation in daily records or intervals.

    Attributes:
        subject: Identifier of the offending subject, if known
    """

    def __init__(self, message: str, subject: Any = None):
        super().__init__(message)
        self.subject = subject


class ConfigError(ValidationError):
    """
    Invalid configuration value.

    Attributes:
        option: Name of the offending option
        value: The rejected value
    """

    def __init__(self, message: str, option: str | None = None, value: Any = None):
        super().__init__(message)
        self.option = option
        self.value = value


class NumericalError(PyCausalSurvError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class InvalidWeight(NumericalError):
    """
    A weight is negative or non-finite.

    Attributes:
        n_invalid: Number of offending weights
        n_total: Total number of weights inspected
    """

    def __init__(
        self,
        message: str,
        n_invalid: int | None = None,
        n_total: int | None = None,
    ):
        super().__init__(message)
        self.n_invalid = n_invalid
        self.n_total = n_total


class ConvergenceError(PyCausalSurvError):
    """
    Iterative algorithm failed to converge.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final parameter or objective change
        reason: Why convergence failed (e.g., 'max_iterations', 'singular')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold


class NonConvergence(ConvergenceError):
    """
    Newton-Raphson exceeded its iteration budget or hit a singular
    information matrix.

    The last iterate is attached so the caller can inspect how far the
    optimizer got instead of receiving a possibly wrong estimate.

    Attributes:
        coefficients: Last iterate of the coefficient vector
        score_norm: Max-norm of the score vector at the last iterate
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        coefficients=None,
        score_norm: float | None = None,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None,
    ):
        super().__init__(
            message,
            iterations=iterations,
            final_change=final_change,
            reason=reason,
            threshold=threshold,
        )
        self.coefficients = coefficients
        self.score_norm = score_norm


class BalanceNotAchieved(ConvergenceError):
    """
    A weighting strategy could not meet its covariate balance criterion.

    Attributes:
        statistic: Best balance statistic reached
        strategy: Name of the weighting strategy
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        statistic: float | None = None,
        threshold: float | None = None,
        strategy: str | None = None,
    ):
        super().__init__(
            message,
            iterations=iterations,
            final_change=None,
            reason='imbalance',
            threshold=threshold,
        )
        self.statistic = statistic
        self.strategy = strategy


class InsufficientEvents(PyCausalSurvError):
    """
    Too few occurrences of the target event to fit a model.

    Attributes:
        n_events: Observed number of target events
        min_events: Required minimum
    """

    def __init__(self, message: str, n_events: int, min_events: int):
        super().__init__(message)
        self.n_events = n_events
        self.min_events = min_events
