"""Provides the Connection class and the dial functions.

Replies carry no framing or request ids. After a command is written the
connection waits tick_timeout seconds, then takes whatever the relay has
collected as the response. A reply slower than that shows up in the result of
the next command. Connections are not safe for concurrent execute calls.
"""

import logging
import sys
import time
from typing import IO, Any, Iterable, Optional, Tuple

from twisted.internet import reactor
from twisted.internet.defer import Deferred
from twisted.internet.endpoints import TCP4ClientEndpoint, connectProtocol

from .buffer import ResponseBuffer
from .constants import (
    CRLF,
    EXECUTE_TICK_TIMEOUT,
    FORCED_EXIT_COMMAND,
    MAX_COMMAND_LEN,
    NULL_STRING,
    RECEIVE_WAIT_PERIOD,
    RESPONSE_AUTH_INCORRECT_PASSWORD,
    RESPONSE_AUTH_SUCCESS,
    RESPONSE_ENTER_PASSWORD,
    RESPONSE_INF_LAYOUT,
    RESPONSE_WELCOME,
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
from .protocol import RelayProtocol
from .reactor import blocking_call
from .settings import DEFAULT_SETTINGS, Option, Settings, apply_options

logger = logging.getLogger(__name__)


def split_address(address: str) -> Tuple[str, int]:
    """Split "host:port" into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError("Address %r has no port." % address)
    return host.strip("[]"), int(port)


def format_address(address: Any) -> str:
    """Format a Twisted IPv4Address as "host:port"."""
    return "%s:%d" % (address.host, address.port)


def _connect(host: str, port: int, timeout: float, sink: Any) -> Deferred:
    endpoint = TCP4ClientEndpoint(reactor, host, port, timeout=timeout)
    return connectProtocol(endpoint, RelayProtocol(sink))


def open_relay(address: str, settings: Settings, sink: Any) -> RelayProtocol:
    """Connect to address and return the running relay protocol. Connection
    errors are raised as Twisted reports them."""
    host, port = split_address(address)
    logger.debug("Dialing %s:%d.", host, port)
    return blocking_call(_connect, host, port, settings.dial_timeout, sink)


class Connection:
    """
    An authorised connection to a remote console

    Use dial to create instances.

    settings
    The Settings this connection was created with.
    buffer
    The ResponseBuffer the relay protocol writes to, or None in interactive
    mode.
    encode_args
    Arguments passed to str.encode when sending.
    decode_args
    Arguments passed to bytes.decode when reading responses.
    """

    tick_timeout: float = EXECUTE_TICK_TIMEOUT
    receive_wait_period: float = RECEIVE_WAIT_PERIOD

    def __init__(
        self,
        protocol: RelayProtocol,
        settings: Settings = DEFAULT_SETTINGS,
        buffer: Optional[ResponseBuffer] = None,
        encode_args: Tuple[str, str] = (sys.getdefaultencoding(), "replace"),
        decode_args: Tuple[str, str] = (sys.getdefaultencoding(), "replace"),
    ) -> None:

        self.settings = settings
        self.buffer = buffer
        self.encode_args = encode_args
        self.decode_args = decode_args
        self.closed = False
        self._protocol = protocol
        self._status = ""
        self._local_addr = format_address(protocol.transport.getHost())
        self._remote_addr = format_address(protocol.transport.getPeer())

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if not self.closed:
            self.close()

    @property
    def status(self) -> str:
        """Server info captured during authentication."""
        return self._status

    @property
    def local_addr(self) -> str:
        return self._local_addr

    @property
    def remote_addr(self) -> str:
        return self._remote_addr

    def execute(self, command: str) -> str:
        """Send command to the server and return its response."""
        response = self._execute(command)
        if self.settings.clear_response:
            echo = RESPONSE_INF_LAYOUT % (command, self.local_addr) + CRLF
            parts = response.split(echo)
            if len(parts) > 1:
                return parts[1]
        return response

    def close(self) -> None:
        """Send the exit command and close the connection."""
        if self.closed:
            raise ConnectionClosedError()
        try:
            self._write(self.settings.exit_command + CRLF)
        except TelnetError as e:
            logger.debug("Cannot send exit command to %s: %s", self.remote_addr, e)
        time.sleep(self.receive_wait_period)
        self.closed = True
        blocking_call(self._protocol.disconnect)

    def auth(self, password: str) -> None:
        """Send password and check the server accepted it."""
        response = self._execute(password)
        if RESPONSE_AUTH_INCORRECT_PASSWORD in response:
            raise AuthFailedError()
        if RESPONSE_AUTH_SUCCESS not in response:
            logger.debug("Unexpected authentication response: %r", response)
            raise AuthUnexpectedMessageError()
        prefix = RESPONSE_ENTER_PASSWORD + CRLF + RESPONSE_AUTH_SUCCESS
        if response.startswith(prefix):
            response = response[len(prefix) :]
        suffix = CRLF + CRLF + RESPONSE_WELCOME
        if response.endswith(suffix):
            response = response[: -len(suffix)]
        self._status = response.strip()

    def interactive(self, lines: Iterable[str]) -> None:
        """Send lines to the server until the exit command is sent or lines
        run out, then close the connection."""
        exit_command = self.settings.exit_command
        for line in lines:
            command = line.rstrip("\r\n")
            if command == FORCED_EXIT_COMMAND:
                command = exit_command
            self._write(command + CRLF)
            if command == exit_command:
                break
        time.sleep(self.receive_wait_period)
        self.close()

    def _execute(self, command: str) -> str:
        if not command:
            raise CommandEmptyError()
        if len(command) > MAX_COMMAND_LEN:
            raise CommandTooLongError()
        if self.buffer is None:
            raise TelnetError("Connection is in interactive mode.")
        self._write(command + CRLF)
        time.sleep(self.tick_timeout)
        response = self.buffer.drain().decode(*self.decode_args)
        return response.replace(NULL_STRING, "").strip()

    def _write(self, text: str) -> None:
        blocking_call(self._protocol.send, text.encode(*self.encode_args))


def dial(address: str, password: str, *options: Option) -> Connection:
    """Connect to the console at address ("host:port") and authenticate with
    password. Options are applied to DEFAULT_SETTINGS in order."""
    settings = apply_options(options)
    buffer = ResponseBuffer()
    connection = Connection(open_relay(address, settings, buffer), settings, buffer)
    try:
        connection.auth(password)
    except Exception as e:
        try:
            connection.close()
        except Exception as close_error:
            raise MultiErrorOccurred(close_error, e) from e
        raise
    logger.info("Connected to %s.", connection.remote_addr)
    return connection


def dial_interactive(
    input: IO[str], output: IO[bytes], address: str, password: str, *options: Option
) -> None:
    """Relay lines from input to the console at address and everything the
    server sends to output until the exit command is typed. The forced exit
    command (":q") is replaced with the configured exit command. When password
    is empty it has to be typed like any other line."""
    settings = apply_options(options)
    connection = Connection(open_relay(address, settings, output), settings)
    try:
        if password:
            connection._write(password + CRLF)
        connection.interactive(input)
    finally:
        if not connection.closed:
            connection.close()
