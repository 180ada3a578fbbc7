"""
gstelnet
A client for the telnet console of game servers such as 7 Days to Die, and a
test server speaking the same protocol (gstelnet.telnettest).
"""

from .connection import Connection, dial, dial_interactive
from .constants import (
    CRLF,
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_EXIT_COMMAND,
    FORCED_EXIT_COMMAND,
    MAX_COMMAND_LEN,
)
from .errors import (
    AuthFailedError,
    AuthUnexpectedMessageError,
    CommandEmptyError,
    CommandTooLongError,
    ConnectionClosedError,
    MultiErrorOccurred,
    TelnetError,
)
from .settings import (
    DEFAULT_SETTINGS,
    Settings,
    set_clear_response,
    set_dial_timeout,
    set_exit_command,
)

__all__ = [
    "Connection",
    "dial",
    "dial_interactive",
    "Settings",
    "DEFAULT_SETTINGS",
    "set_dial_timeout",
    "set_exit_command",
    "set_clear_response",
    "TelnetError",
    "AuthFailedError",
    "AuthUnexpectedMessageError",
    "CommandEmptyError",
    "CommandTooLongError",
    "ConnectionClosedError",
    "MultiErrorOccurred",
    "CRLF",
    "DEFAULT_DIAL_TIMEOUT",
    "DEFAULT_EXIT_COMMAND",
    "FORCED_EXIT_COMMAND",
    "MAX_COMMAND_LEN",
]
