"""
Analysis configuration.

AnalysisConfig collects the recognised options of an end-to-end run. Every
field is checked at construction; an invalid value raises ConfigError before
any estimator runs. Individual solvers still take plain keyword arguments,
the config only supplies them.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from pycausalsurv.core.exceptions import ConfigError
from pycausalsurv.core.validation import check_quantile_bounds

TIE_METHODS = ("efron", "breslow")
WEIGHTING_STRATEGIES = ("boosted", "balancing")


@dataclass(frozen=True)
class AnalysisConfig:
    """Options recognised by :func:`pycausalsurv.pipeline.run_pipeline`.

    Attributes:
        event_target: Event-type code of interest (1 = death).
        competing_event: Event-type code of the competing event (2 = discharge).
        tie_method: Tie handling for Cox fits, "efron" (default) or "breslow".
        truncation_quantiles: (qlo, qhi) for weight truncation.
        convergence_tolerance: Newton-Raphson tolerance.
        max_iterations: Newton-Raphson iteration budget.
        weighting_strategy: "boosted" or "balancing".
        balance_threshold: Largest acceptable weighted |correlation|.
        conf_level: Confidence level of Wald intervals.
        min_events_finegray: Minimum target events for a Fine-Gray fit.
    """

    event_target: int = 1
    competing_event: int = 2
    tie_method: str = "efron"
    truncation_quantiles: tuple[float, float] = (0.01, 0.99)
    convergence_tolerance: float = 1e-9
    max_iterations: int = 25
    weighting_strategy: str = "boosted"
    balance_threshold: float = 0.1
    conf_level: float = 0.95
    min_events_finegray: int = 5

    def __post_init__(self) -> None:
        if self.event_target not in (1, 2):
            raise ConfigError(
                f"event_target must be 1 or 2, got {self.event_target!r}",
                option="event_target", value=self.event_target,
            )
        if self.competing_event not in (1, 2) or self.competing_event == self.event_target:
            raise ConfigError(
                f"competing_event must be 1 or 2 and differ from event_target, "
                f"got {self.competing_event!r}",
                option="competing_event", value=self.competing_event,
            )
        if self.tie_method not in TIE_METHODS:
            raise ConfigError(
                f"tie_method must be one of {TIE_METHODS}, got {self.tie_method!r}",
                option="tie_method", value=self.tie_method,
            )
        if len(tuple(self.truncation_quantiles)) != 2:
            raise ConfigError(
                "truncation_quantiles must be a (qlo, qhi) pair",
                option="truncation_quantiles", value=self.truncation_quantiles,
            )
        check_quantile_bounds(*self.truncation_quantiles, name="truncation_quantiles")
        if not self.convergence_tolerance > 0:
            raise ConfigError(
                f"convergence_tolerance must be positive, got {self.convergence_tolerance!r}",
                option="convergence_tolerance", value=self.convergence_tolerance,
            )
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int) \
                or self.max_iterations < 1:
            raise ConfigError(
                f"max_iterations must be a positive integer, got {self.max_iterations!r}",
                option="max_iterations", value=self.max_iterations,
            )
        if self.weighting_strategy not in WEIGHTING_STRATEGIES:
            raise ConfigError(
                f"weighting_strategy must be one of {WEIGHTING_STRATEGIES}, "
                f"got {self.weighting_strategy!r}",
                option="weighting_strategy", value=self.weighting_strategy,
            )
        if not 0 < self.balance_threshold < 1:
            raise ConfigError(
                f"balance_threshold must be in (0, 1), got {self.balance_threshold!r}",
                option="balance_threshold", value=self.balance_threshold,
            )
        if not 0 < self.conf_level < 1:
            raise ConfigError(
                f"conf_level must be in (0, 1), got {self.conf_level!r}",
                option="conf_level", value=self.conf_level,
            )
        if self.min_events_finegray < 1:
            raise ConfigError(
                f"min_events_finegray must be >= 1, got {self.min_events_finegray!r}",
                option="min_events_finegray", value=self.min_events_finegray,
            )

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> AnalysisConfig:
        """Build from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(
                f"unknown configuration options: {unknown}",
                option=unknown[0], value=options[unknown[0]],
            )
        kwargs = dict(options)
        if "truncation_quantiles" in kwargs:
            kwargs["truncation_quantiles"] = tuple(kwargs["truncation_quantiles"])
        return cls(**kwargs)
