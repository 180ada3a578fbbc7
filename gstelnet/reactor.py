"""Runs the Twisted reactor in a background thread.

Blocking code (the client API, tests) talks to the network through
blocking_call, which schedules a function in the reactor thread and waits for
its result. The reactor is started on first use and lives until the process
exits.
"""

import logging
import threading
from typing import Any, Callable, Optional

from twisted.internet import reactor, threads

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_thread: Optional[threading.Thread] = None


def ensure_running() -> None:
    """Start the reactor thread unless it is already running."""
    global _thread
    with _lock:
        if _thread is not None:
            return
        _thread = threading.Thread(
            target=reactor.run,
            kwargs={"installSignalHandlers": False},
            name="gstelnet-reactor",
            daemon=True,
        )
        _thread.start()
        logger.debug("Reactor thread started.")


def in_reactor_thread() -> bool:
    """Return True when called from the reactor thread."""
    return _thread is not None and threading.current_thread() is _thread


def blocking_call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call func in the reactor thread and return its result. If func returns
    a Deferred, wait for it to fire. Exceptions are re-raised in the calling
    thread."""
    ensure_running()
    if in_reactor_thread():
        raise RuntimeError("blocking_call cannot be used from the reactor thread.")
    return threads.blockingCallFromThread(reactor, func, *args, **kwargs)

