"""Provides the Protocol class, the server side of a test connection.

The connection starts in raw mode for authentication. Each password attempt
consumes at most len(password) bytes of what has been received, the way the
7DTD console reads a fixed-size buffer instead of a line. The rest of the data
(usually the CRLF after the password) is fed to line mode once the password is
accepted.
"""

import logging
import sys
from collections import deque
from typing import TYPE_CHECKING, Any, Callable, Deque, List, Optional, Tuple

from twisted.internet import reactor
from twisted.internet.defer import CancelledError, Deferred
from twisted.internet.error import ConnectionDone
from twisted.internet.protocol import connectionDone
from twisted.internet.task import deferLater
from twisted.protocols.basic import LineReceiver
from twisted.python.failure import Failure

from ..constants import CRLF, RESPONSE_AUTH_TOO_MANY_FAILS, RESPONSE_ENTER_PASSWORD
from .context import Context
from .handlers import Handler

if TYPE_CHECKING:
    from .server import Server

Job = Tuple[float, Callable[..., None], Tuple[Any, ...]]


class Protocol(LineReceiver):
    """
    Test server protocol

    Instances of this class represent a client connection to the test server.

    server
    An instance of Server.
    host
    The IP address of the client.
    port
    The port number of the client.
    context
    The Context passed to handlers, created when the connection is made.
    """

    delimiter = b"\n"

    def __init__(
        self,
        server: "Server",
        host: str,
        port: int,
        encode_args: Tuple[str, str] = (sys.getdefaultencoding(), "replace"),
        decode_args: Tuple[str, str] = (sys.getdefaultencoding(), "ignore"),
    ) -> None:

        super().__init__()

        self.server = server
        self.host = host
        self.port = port
        self.encode_args = encode_args
        self.decode_args = decode_args
        self.context: Optional[Context] = None
        self.logger = logging.getLogger("%s:%d" % (host, port))
        self.lost = False
        self._auth_data = b""
        self._attempt_scheduled = False
        self._jobs: Deque[Job] = deque()
        self._running: Optional[Deferred] = None
        self._finished_waiters: List[Deferred] = []

    @property
    def is_open(self) -> bool:
        return (
            self.transport is not None
            and not self.lost
            and not self.transport.disconnecting
        )

    def connectionMade(self) -> None:
        """Register with the server and prompt for the password."""
        self.server.register(self)
        self.context = Context(self.server, self)
        self.setRawMode()
        self.context.write(RESPONSE_ENTER_PASSWORD + CRLF)
        self.context.flush()
        if not self.server.settings.password:
            self._schedule_attempt()

    def connectionLost(self, reason: Failure = connectionDone) -> None:
        """Drop pending work and unregister from the server."""
        self.lost = True
        self._jobs.clear()
        if self._running is not None and not self._running.called:
            self._running.cancel()
        self.server.unregister(self)
        if not reason.check(ConnectionDone) and self.server.is_running():
            self.server.report_error(reason.value)
        self.logger.info("Disconnected: %s", reason.getErrorMessage())
        waiters, self._finished_waiters = self._finished_waiters, []
        for d in waiters:
            if not d.called:
                d.callback(None)

    def when_finished(self) -> Deferred:
        """Return a Deferred which fires when the connection is lost."""
        d: Deferred = Deferred()
        if self.lost:
            d.callback(None)
        else:
            self._finished_waiters.append(d)
        return d

    def rawDataReceived(self, data: bytes) -> None:
        """Collect password bytes."""
        if self.context is None or self.context.auth.terminal:
            return
        self._auth_data += data
        if not self._attempt_scheduled:
            self._schedule_attempt()

    def lineReceived(self, line: bytes) -> None:
        """Queue a command line for the command handler."""
        request = line.rstrip(b"\r").decode(*self.decode_args)
        if not request:
            return
        self._enqueue(
            self.server.settings.command_response_delay, self._dispatch, request
        )

    def _schedule_attempt(self) -> None:
        self._attempt_scheduled = True
        self._enqueue(self.server.settings.auth_response_delay, self._attempt)

    def _attempt(self) -> None:
        self._attempt_scheduled = False
        context = self.context
        assert context is not None
        size = len(self.server.settings.password.encode(*self.encode_args))
        chunk, self._auth_data = self._auth_data[:size], self._auth_data[size:]
        context.attempt += 1
        context.request = chunk.decode(*self.decode_args)
        self._call(self.server.auth_handler, context)
        limit = self.server.settings.auth_attempts_limit
        if not context.auth.terminal and context.attempt >= limit:
            context.write(RESPONSE_AUTH_TOO_MANY_FAILS + CRLF)
            context.auth.terminal = True
        context.flush()
        if not context.auth.terminal:
            if self._auth_data or not size:
                self._schedule_attempt()
        elif context.auth.success:
            self.logger.debug("Authenticated after %d attempt(s).", context.attempt)
            extra, self._auth_data = self._auth_data, b""
            self.setLineMode(extra)
        else:
            self.logger.info("Authentication failed.")
            self.transport.loseConnection()

    def _dispatch(self, request: str) -> None:
        context = self.context
        assert context is not None
        if request == self.server.settings.exit_command:
            self.transport.loseConnection()
            return
        context.request = request
        self._call(self.server.command_handler, context)
        context.flush()

    def _call(self, handler: Handler, context: Context) -> None:
        try:
            handler.handle(context)
        except Exception as e:
            self.logger.warning("Error caught from handler %r:", handler)
            self.logger.exception(e)
            self.server.report_error(e)

    def _enqueue(self, delay: float, func: Callable[..., None], *args: Any) -> None:
        self._jobs.append((delay, func, args))
        if self._running is None:
            self._run_next()

    def _run_next(self, ignored: Any = None) -> None:
        if self.lost or not self._jobs:
            self._running = None
            return
        delay, func, args = self._jobs.popleft()
        self._running = deferLater(reactor, delay, func, *args)
        self._running.addCallbacks(self._run_next, self._job_failed)

    def _job_failed(self, failure: Failure) -> None:
        self._running = None
        if failure.check(CancelledError):
            return
        self.server.report_error(failure.value)
        self._run_next()
