"""Provides the RelayProtocol class, the client side of a connection."""

import logging
from typing import Any, List

from twisted.internet.defer import Deferred, succeed
from twisted.internet.protocol import Protocol, connectionDone
from twisted.python.failure import Failure

from .errors import ConnectionClosedError

logger = logging.getLogger(__name__)


class RelayProtocol(Protocol):
    """
    Client protocol

    Copies every byte received from the server into sink until the connection
    is lost. All methods run in the reactor thread.

    sink
    Any object with a write(bytes) method. Connection uses a ResponseBuffer,
    interactive mode uses the caller's output stream.
    """

    def __init__(self, sink: Any) -> None:
        self.sink = sink
        self.lost = False
        self._lost_waiters: List[Deferred] = []

    @property
    def is_open(self) -> bool:
        """True while data can still be written."""
        return (
            self.transport is not None
            and not self.lost
            and not self.transport.disconnecting
        )

    def dataReceived(self, data: bytes) -> None:
        try:
            self.sink.write(data)
            flush = getattr(self.sink, "flush", None)
            if flush is not None:
                flush()
        except Exception:
            logger.exception("Cannot relay %d bytes to %r.", len(data), self.sink)

    def connectionLost(self, reason: Failure = connectionDone) -> None:
        self.lost = True
        logger.debug("Relay stopped: %s", reason.getErrorMessage())
        waiters, self._lost_waiters = self._lost_waiters, []
        for d in waiters:
            d.callback(None)

    def send(self, data: bytes) -> None:
        """Write data to the server."""
        if not self.is_open:
            raise ConnectionClosedError()
        self.transport.write(data)

    def disconnect(self) -> Deferred:
        """Close the transport. The returned Deferred fires once the
        connection is actually lost."""
        if self.transport is None or self.lost:
            return succeed(None)
        d: Deferred = Deferred()
        self._lost_waiters.append(d)
        if not self.transport.disconnecting:
            self.transport.loseConnection()
        return d
