"""Request handlers for the test server.

A handler is anything with a handle(context) method. Plain functions taking a
Context are accepted wherever a handler is expected and wrapped in
FuncHandler.
"""

import time
from typing import Callable, Union

from ..constants import (
    CRLF,
    RESPONSE_AUTH_INCORRECT_PASSWORD,
    RESPONSE_AUTH_SUCCESS,
    RESPONSE_INF_LAYOUT,
    RESPONSE_UNKNOWN_COMMAND,
    RESPONSE_WELCOME,
)
from .context import Context

# Server information printed after a successful logon. Connection.status
# equals this text when talking to AuthHandler.
SERVER_INFO = CRLF.join(
    [
        "*** Connected with 7DTD server.",
        "*** Server version: Alpha 18.4 (b4) Compatibility Version: Alpha 18.4",
        "*** Dedicated server only build",
        "",
        "Server IP:   127.0.0.1",
        "Server port: 26900",
        "Max players: 8",
        "Game mode:   GameModeSurvival",
        "World:       Navezgane",
        "Game name:   My Game",
        "Difficulty:  2",
    ]
)

AUTH_SUCCESS_WELCOME_MESSAGE = SERVER_INFO + CRLF + CRLF + RESPONSE_WELCOME

# Password which makes AuthHandler answer with UNEXPECTED_AUTH_RESPONSE.
UNEXPECTED_PASSWORD = "unexpect"
UNEXPECTED_AUTH_RESPONSE = "My spoon is too big"

MOCK_COMMAND_HELP = "help"
MOCK_COMMAND_HELP_RESPONSE = "lorem ipsum dolor sit amet"


def echo_line(context: Context) -> str:
    """Return the log line a 7DTD server prints for the current request."""
    return (
        time.strftime("%Y-%m-%dT%H:%M:%S 00000.000 ")
        + RESPONSE_INF_LAYOUT % (context.request, context.remote_address)
        + CRLF
    )


class Handler:
    """A strategy for handling requests."""

    def handle(self, context: Context) -> None:
        raise NotImplementedError


class FuncHandler(Handler):
    """
    Adapts a function to the Handler interface.

    func
    Called with the Context as its only argument.
    """

    def __init__(self, func: Callable[[Context], None]) -> None:
        self.func = func

    def handle(self, context: Context) -> None:
        self.func(context)

    def __repr__(self) -> str:
        return "FuncHandler(%s)" % getattr(self.func, "__name__", repr(self.func))


HandlerLike = Union[Handler, Callable[[Context], None]]


def as_handler(handler: HandlerLike) -> Handler:
    """Return handler, wrapping plain callables in FuncHandler."""
    if isinstance(handler, Handler):
        return handler
    if not callable(handler):
        raise TypeError("%r is neither a Handler nor callable." % handler)
    return FuncHandler(handler)


class AuthHandler(Handler):
    """Checks password attempts against the server password."""

    def handle(self, context: Context) -> None:
        settings = context.server.settings
        if context.request == settings.password:
            context.write(RESPONSE_AUTH_SUCCESS + CRLF * 4)
            context.write(AUTH_SUCCESS_WELCOME_MESSAGE + CRLF * 2)
            context.auth.success = True
            context.auth.terminal = True
        elif context.request == UNEXPECTED_PASSWORD:
            context.write(UNEXPECTED_AUTH_RESPONSE + CRLF * 2)
            context.auth.terminal = True
        elif context.attempt < settings.auth_attempts_limit:
            context.write(RESPONSE_AUTH_INCORRECT_PASSWORD + CRLF)


class CommandHandler(Handler):
    """Knows the help command and rejects everything else."""

    def handle(self, context: Context) -> None:
        if context.request == MOCK_COMMAND_HELP:
            context.write(echo_line(context))
            context.write(MOCK_COMMAND_HELP_RESPONSE + CRLF)
        else:
            context.write(RESPONSE_UNKNOWN_COMMAND % context.request + CRLF)


class EmptyHandler(Handler):
    """Answers every command with nothing."""

    def handle(self, context: Context) -> None:
        pass
