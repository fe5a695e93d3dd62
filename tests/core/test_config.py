"""
Tests for AnalysisConfig.

Validates:
    - Defaults match the documented option values
    - Every invalid option raises ConfigError naming the option
    - from_mapping rejects unknown keys and accepts list-valued quantiles
"""

import pytest

from pycausalsurv.core.config import AnalysisConfig
from pycausalsurv.core.exceptions import ConfigError


class TestDefaults:

    def test_default_values(self):
        cfg = AnalysisConfig()
        assert cfg.event_target == 1
        assert cfg.competing_event == 2
        assert cfg.tie_method == "efron"
        assert cfg.truncation_quantiles == (0.01, 0.99)
        assert cfg.convergence_tolerance == 1e-9
        assert cfg.max_iterations == 25
        assert cfg.weighting_strategy == "boosted"
        assert cfg.balance_threshold == 0.1
        assert cfg.min_events_finegray == 5

    def test_swapped_event_codes(self):
        cfg = AnalysisConfig(event_target=2, competing_event=1)
        assert cfg.event_target == 2


class TestInvalidOptions:

    @pytest.mark.parametrize("kwargs, option", [
        ({"event_target": 3}, "event_target"),
        ({"competing_event": 1}, "competing_event"),
        ({"tie_method": "exact"}, "tie_method"),
        ({"truncation_quantiles": (0.5, 0.5)}, "truncation_quantiles"),
        ({"truncation_quantiles": (0.99, 0.01)}, "truncation_quantiles"),
        ({"truncation_quantiles": (0.0, 0.99)}, "truncation_quantiles"),
        ({"truncation_quantiles": (0.1, 0.5, 0.9)}, "truncation_quantiles"),
        ({"convergence_tolerance": 0.0}, "convergence_tolerance"),
        ({"max_iterations": 0}, "max_iterations"),
        ({"max_iterations": 2.5}, "max_iterations"),
        ({"weighting_strategy": "logistic"}, "weighting_strategy"),
        ({"balance_threshold": 1.5}, "balance_threshold"),
        ({"conf_level": 1.0}, "conf_level"),
        ({"min_events_finegray": 0}, "min_events_finegray"),
    ])
    def test_rejected(self, kwargs, option):
        with pytest.raises(ConfigError) as info:
            AnalysisConfig(**kwargs)
        assert info.value.option == option


class TestFromMapping:

    def test_list_quantiles(self):
        cfg = AnalysisConfig.from_mapping({"truncation_quantiles": [0.05, 0.95]})
        assert cfg.truncation_quantiles == (0.05, 0.95)

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown"):
            AnalysisConfig.from_mapping({"tie_method": "efron", "bogus": 1})

    def test_invalid_value_propagates(self):
        with pytest.raises(ConfigError):
            AnalysisConfig.from_mapping({"tie_method": "exact"})
