"""Contains the Server class.

Server is a console server listening on a system-chosen port on the local
loopback interface, for use in end-to-end tests of the client. It runs in the
shared reactor thread, so it can be driven from ordinary blocking test code.
"""

import logging
import queue
import threading
from typing import Any, Callable, List, Optional, Set

from twisted.internet import reactor
from twisted.internet.defer import Deferred, DeferredList

from ..constants import DEFAULT_EXIT_COMMAND
from ..reactor import blocking_call
from .factory import Factory
from .handlers import AuthHandler, EmptyHandler, Handler, HandlerLike, as_handler
from .protocol import Protocol

logger = logging.getLogger(__name__)

MOCK_PASSWORD = "password"

ERRORS_QUEUE_SIZE = 10


class ServerError(Exception):
    """The server was used the wrong way."""

    pass


class ServerCloseError(ServerError):
    """
    One or more errors occurred while shutting the server down.

    errors
    The collected errors, in the order they occurred.
    """

    def __init__(self, errors: List[Exception]) -> None:
        super().__init__(
            "close connection error: %s" % ". Previous error: ".join(map(str, errors))
        )
        self.errors = errors


class ServerSettings:
    """
    Test server settings

    password
    The password clients have to send.
    auth_response_delay
    Seconds to wait before each password attempt is handled.
    command_response_delay
    Seconds to wait before each command is handled.
    auth_attempts_limit
    How many password attempts a client gets.
    exit_command
    The command which ends a session.
    close_grace_period
    Seconds Server.close waits for connections to end before aborting them.
    """

    def __init__(
        self,
        password: str = MOCK_PASSWORD,
        auth_response_delay: float = 0.0,
        command_response_delay: float = 0.0,
        auth_attempts_limit: int = 10,
        exit_command: str = DEFAULT_EXIT_COMMAND,
        close_grace_period: float = 1.0,
    ) -> None:

        self.password = password
        self.auth_response_delay = auth_response_delay
        self.command_response_delay = command_response_delay
        self.auth_attempts_limit = auth_attempts_limit
        self.exit_command = exit_command
        self.close_grace_period = close_grace_period


class Server:
    """
    A test console server.

    settings
    The ServerSettings in use. Can be changed at any time; new values apply
    to the next attempt or command.
    interface
    The interface the server listens on.
    port
    The port to listen on, 0 for any free port.
    factory
    The Twisted factory building a Protocol for each connection.
    listener
    The listening port once started.
    connections
    The set of live Protocol instances.
    errors
    A bounded queue.Queue of errors raised by handlers and connections.
    quit
    A threading.Event set when the server starts shutting down.
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        interface: str = "127.0.0.1",
        port: int = 0,
        errors_queue_size: int = ERRORS_QUEUE_SIZE,
    ) -> None:

        self.settings = settings or ServerSettings()
        self.interface = interface
        self.port = port
        self.factory = Factory(self)
        self.listener: Any = None
        self.connections: Set[Protocol] = set()
        self.errors: "queue.Queue[Exception]" = queue.Queue(errors_queue_size)
        self.quit = threading.Event()
        self.closed = False
        self.auth_handler: Handler = AuthHandler()
        self.command_handler: Handler = EmptyHandler()
        self._lock = threading.RLock()
        self._addr = ""

    def __enter__(self) -> "Server":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def addr(self) -> str:
        """The "host:port" address clients should dial, empty before
        start."""
        return self._addr

    def set_auth_handler(self, handler: HandlerLike) -> None:
        """Replace the handler which checks password attempts."""
        self.auth_handler = as_handler(handler)

    def set_command_handler(self, handler: HandlerLike) -> None:
        """Replace the handler which answers commands."""
        self.command_handler = as_handler(handler)

    def start(self) -> None:
        """Start listening for connections."""
        if self.listener is not None:
            raise ServerError("server already started")
        if self.closed:
            raise ServerError("server is closed")
        self.listener = blocking_call(
            reactor.listenTCP, self.port, self.factory, interface=self.interface
        )
        host = self.listener.getHost()
        self._addr = "%s:%d" % (host.host, host.port)
        logger.info("Now listening for connections on %s.", self._addr)

    def close(self) -> None:
        """Shut the server down. Connections which do not end within the
        grace period are aborted. Calling close again does nothing."""
        if self.closed:
            return
        self.closed = True
        self.quit.set()
        errors: List[Exception] = []
        if self.listener is not None:
            try:
                blocking_call(self.listener.stopListening)
            except Exception as e:
                errors.append(e)
        grace = self.settings.close_grace_period
        if not blocking_call(self._join, grace):
            errors.extend(blocking_call(self._abort_connections))
            blocking_call(self._join, grace)
        logger.info("Server %s closed.", self._addr or "(unstarted)")
        if errors:
            raise ServerCloseError(errors)

    def is_running(self) -> bool:
        """Return True until close is called."""
        return not self.quit.is_set()

    def register(self, connection: Protocol) -> None:
        with self._lock:
            self.connections.add(connection)

    def unregister(self, connection: Protocol) -> None:
        with self._lock:
            self.connections.discard(connection)

    def report_error(self, error: Exception) -> bool:
        """Put error on the errors queue without blocking. Returns False if
        the queue was full and the error was dropped."""
        try:
            self.errors.put_nowait(error)
        except queue.Full:
            logger.warning("Errors queue is full, dropping error: %s", error)
            return False
        return True

    def _join(self, timeout: float) -> Deferred:
        """Fire with True when every live connection is gone, or with False
        after timeout seconds."""
        with self._lock:
            waiters = [c.when_finished() for c in self.connections]
        result: Deferred = Deferred()

        def timed_out() -> None:
            if not result.called:
                result.callback(False)

        def finished(ignored: Any) -> None:
            if timer.active():
                timer.cancel()
            if not result.called:
                result.callback(True)

        timer = reactor.callLater(timeout, timed_out)
        DeferredList(waiters).addCallback(finished)
        return result

    def _abort_connections(self) -> List[Exception]:
        errors: List[Exception] = []
        with self._lock:
            for connection in list(self.connections):
                connection.logger.info("Force-closing connection.")
                try:
                    connection.transport.abortConnection()
                except Exception as e:
                    errors.append(e)
        return errors


ServerOption = Callable[[Server], None]


def set_settings(settings: ServerSettings) -> ServerOption:
    """Return an option which replaces the server settings."""

    def option(server: Server) -> None:
        server.settings = settings

    return option


def set_auth_handler(handler: HandlerLike) -> ServerOption:
    """Return an option which sets the auth handler."""

    def option(server: Server) -> None:
        server.set_auth_handler(handler)

    return option


def set_command_handler(handler: HandlerLike) -> ServerOption:
    """Return an option which sets the command handler."""

    def option(server: Server) -> None:
        server.set_command_handler(handler)

    return option


def new_unstarted_server(*options: ServerOption) -> Server:
    """Return a Server which is not listening yet. Change its configuration,
    then call start. Call close when finished."""
    server = Server()
    for option in options:
        option(server)
    return server


def new_server(*options: ServerOption) -> Server:
    """Return a running Server. Call close when finished."""
    server = new_unstarted_server(*options)
    server.start()
    return server
