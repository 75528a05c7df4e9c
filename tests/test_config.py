"""Tests for IntegrationConfig validation."""

from __future__ import annotations

import math

import pytest

from quadpool.exceptions import ConfigError
from quadpool.models.config import IntegrationConfig, OracleSettings, WorkerLimits


class TestIntegrationConfig:
    def test_defaults(self):
        config = IntegrationConfig.build(lower=0.0, upper=1.0, epsilon=0.1)
        assert config.workers == 1
        assert config.max_depth == 40
        assert config.min_width == 0.0
        assert config.subdivisions == 1000
        assert config.transport == "process"
        assert config.split_mode == "atomic"
        assert config.strict is False

    def test_limits_and_oracle_settings(self):
        config = IntegrationConfig.build(
            lower=0.0, upper=1.0, epsilon=0.1, max_depth=5, min_width=1e-3, subdivisions=50
        )
        assert config.limits == WorkerLimits(max_depth=5, min_width=1e-3)
        assert config.oracle_settings == OracleSettings(subdivisions=50)

    def test_zero_workers_rejected(self):
        with pytest.raises(ConfigError, match="workers"):
            IntegrationConfig.build(lower=0.0, upper=1.0, epsilon=0.1, workers=0)

    def test_reversed_bounds_rejected(self):
        with pytest.raises(ConfigError, match="exceeds upper"):
            IntegrationConfig.build(lower=1.0, upper=0.0, epsilon=0.1)

    @pytest.mark.parametrize("field", ["lower", "upper", "epsilon"])
    def test_non_finite_values_rejected(self, field):
        settings = {"lower": 0.0, "upper": 1.0, "epsilon": 0.1, field: math.nan}
        with pytest.raises(ConfigError, match="finite"):
            IntegrationConfig.build(**settings)

    def test_missing_field_rejected(self):
        with pytest.raises(ConfigError):
            IntegrationConfig.build(lower=0.0, upper=1.0)

    def test_unknown_transport_rejected(self):
        with pytest.raises(ConfigError, match="transport"):
            IntegrationConfig.build(lower=0.0, upper=1.0, epsilon=0.1, transport="mpi")

    def test_non_positive_epsilon_allowed(self):
        config = IntegrationConfig.build(lower=0.0, upper=1.0, epsilon=0.0)
        assert config.epsilon == 0.0

    def test_config_is_frozen(self):
        config = IntegrationConfig.build(lower=0.0, upper=1.0, epsilon=0.1)
        with pytest.raises(Exception):
            config.workers = 3
