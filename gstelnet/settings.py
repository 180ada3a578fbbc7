"""Provides the Settings class and the options which modify it."""

from typing import Callable, Iterable, NamedTuple

from .constants import DEFAULT_DIAL_TIMEOUT, DEFAULT_EXIT_COMMAND


class Settings(NamedTuple):
    """
    Connection settings

    Instances are immutable. Build one directly or derive one from
    DEFAULT_SETTINGS with apply_options.

    dial_timeout
    Seconds to wait for the TCP connection to be established.
    exit_command
    The command sent to the server when the connection is closed.
    clear_response
    Strip the server's "Executing command" log line from responses.
    """

    dial_timeout: float = DEFAULT_DIAL_TIMEOUT
    exit_command: str = DEFAULT_EXIT_COMMAND
    clear_response: bool = False


DEFAULT_SETTINGS = Settings()

Option = Callable[[Settings], Settings]


def set_dial_timeout(timeout: float) -> Option:
    """Return an option which sets the dial timeout in seconds."""

    def option(settings: Settings) -> Settings:
        return settings._replace(dial_timeout=timeout)

    return option


def set_exit_command(command: str) -> Option:
    """Return an option which sets the exit command."""

    def option(settings: Settings) -> Settings:
        return settings._replace(exit_command=command)

    return option


def set_clear_response(clear: bool) -> Option:
    """Return an option which toggles response clearing."""

    def option(settings: Settings) -> Settings:
        return settings._replace(clear_response=clear)

    return option


def apply_options(
    options: Iterable[Option], settings: Settings = DEFAULT_SETTINGS
) -> Settings:
    """Apply options in order to settings and return the result."""
    for option in options:
        settings = option(settings)
    return settings
