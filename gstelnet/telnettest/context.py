"""Provides the Context class."""

from typing import TYPE_CHECKING, Any, List

if TYPE_CHECKING:

    from .protocol import Protocol
    from .server import Server


class AuthResult:
    """
    The outcome of the latest authentication attempt.

    success
    The password was accepted.
    terminal
    Stop prompting for the password. Without success the connection is
    closed.
    """

    def __init__(self, success: bool = False, terminal: bool = False) -> None:
        self.success = success
        self.terminal = terminal

    def __repr__(self) -> str:
        return "AuthResult(success=%r, terminal=%r)" % (self.success, self.terminal)


class Context:
    """
    Context

    One instance exists for each client connection. It is passed to the auth
    handler for every password attempt and to the command handler for every
    line received after that.

    server
    The Server which accepted the connection.
    connection
    The protocol instance representing the connection.
    request
    The text of the current request: the password attempt during
    authentication, then the current command line.
    attempt
    The number of the current password attempt, starting at 1.
    auth
    An AuthResult which the auth handler updates.
    """

    def __init__(self, server: "Server", connection: "Protocol") -> None:

        self.server = server
        self.connection = connection
        self.request = ""
        self.attempt = 0
        self.auth = AuthResult()
        self._pending: List[bytes] = []

    @property
    def transport(self) -> Any:
        """The Twisted transport of the connection."""
        return self.connection.transport

    @property
    def remote_address(self) -> str:
        """The client address as "host:port"."""
        return "%s:%d" % (self.connection.host, self.connection.port)

    def write(self, text: str) -> None:
        """Buffer text until the next flush."""
        self._pending.append(text.encode(*self.connection.encode_args))

    def flush(self) -> None:
        """Send everything written since the last flush."""
        data, self._pending = b"".join(self._pending), []
        if data and self.connection.is_open:
            self.transport.write(data)
