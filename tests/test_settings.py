"""
Unit tests for client settings.
"""

import pytest

from gstelnet import (
    DEFAULT_SETTINGS,
    Settings,
    set_clear_response,
    set_dial_timeout,
    set_exit_command,
)
from gstelnet.settings import apply_options


class TestSettings:
    """Tests for Settings and its options."""

    def test_defaults(self):
        """Test the default values."""
        assert DEFAULT_SETTINGS.dial_timeout == 5.0
        assert DEFAULT_SETTINGS.exit_command == "exit"
        assert DEFAULT_SETTINGS.clear_response is False

    def test_options_applied_in_order(self):
        """Test that later options win."""
        settings = apply_options(
            [set_exit_command("quit"), set_dial_timeout(1.5), set_exit_command("bye")]
        )

        assert settings == Settings(dial_timeout=1.5, exit_command="bye")

    def test_options_do_not_touch_defaults(self):
        """Test that applying options leaves DEFAULT_SETTINGS alone."""
        settings = apply_options([set_clear_response(True)])

        assert settings.clear_response is True
        assert DEFAULT_SETTINGS.clear_response is False

    def test_immutable(self):
        """Test that fields cannot be assigned."""
        with pytest.raises(AttributeError):
            DEFAULT_SETTINGS.exit_command = "quit"  # type: ignore[misc]

    def test_explicit_base(self):
        """Test applying options on top of a custom base."""
        base = Settings(dial_timeout=2.0)
        settings = apply_options([set_clear_response(True)], base)

        assert settings == Settings(dial_timeout=2.0, clear_response=True)
