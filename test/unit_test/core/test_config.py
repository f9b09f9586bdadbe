"""Unit tests for the settings model and its grouped configuration views."""

import os
from unittest.mock import patch

from switchboard_ai.core.config import SelectionConfig, Settings, TimeoutConfig


class TestSettingsDefaults:
    """Test default values when nothing is configured."""

    def test_defaults(self):
        """Test the documented defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = Settings(_env_file=None)

        assert cfg.log_level == "INFO"
        assert cfg.log_format == "detailed"
        assert cfg.enable_file_logging is False
        assert cfg.check_timeout == 2.0
        assert cfg.execution_timeout == 30.0
        assert cfg.arbiter_timeout == 30.0
        assert cfg.accept_threshold == 0.5
        assert cfg.arbiter_model is None
        assert cfg.logfire_enabled is False


class TestSettingsFromEnvironment:
    """Test values bound from environment variables."""

    def test_selection_values_from_environment(self):
        """Test timeouts and threshold are read from SWITCHBOARD_AI_* variables."""
        env = {
            "SWITCHBOARD_AI_CHECK_TIMEOUT": "0.25",
            "SWITCHBOARD_AI_EXECUTION_TIMEOUT": "5",
            "SWITCHBOARD_AI_ARBITER_TIMEOUT": "3",
            "SWITCHBOARD_AI_ACCEPT_THRESHOLD": "0.7",
            "SWITCHBOARD_AI_ARBITER_MODEL": "test",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Settings(_env_file=None)

        assert cfg.check_timeout == 0.25
        assert cfg.execution_timeout == 5.0
        assert cfg.arbiter_timeout == 3.0
        assert cfg.accept_threshold == 0.7
        assert cfg.arbiter_model == "test"

    def test_logfire_flag_from_environment(self):
        """Test LOGFIRE_ENABLED accepts common truthy strings."""
        for value in ("true", "1", "yes"):
            with patch.dict(os.environ, {"LOGFIRE_ENABLED": value}, clear=True):
                assert Settings(_env_file=None).logfire_enabled is True


class TestGroupedConfig:
    """Test the grouped configuration properties."""

    def test_timeouts_view(self):
        """Test the timeouts property mirrors the flat fields."""
        cfg = Settings(_env_file=None, check_timeout=0.1, execution_timeout=4.0, arbiter_timeout=6.0)

        timeouts = cfg.timeouts

        assert isinstance(timeouts, TimeoutConfig)
        assert timeouts.check_seconds == 0.1
        assert timeouts.execution_seconds == 4.0
        assert timeouts.arbiter_seconds == 6.0

    def test_selection_view(self):
        """Test the selection property mirrors the flat fields."""
        cfg = Settings(_env_file=None, accept_threshold=0.8, arbiter_model="test")

        selection = cfg.selection

        assert isinstance(selection, SelectionConfig)
        assert selection.accept_threshold == 0.8
        assert selection.arbiter_model == "test"
