"""Exceptions raised by gstelnet."""

from typing import Optional


class TelnetError(Exception):
    """Base class for all gstelnet errors."""

    pass


class AuthFailedError(TelnetError):
    """The remote server rejected the password."""

    def __init__(self, message: str = "authentication failed") -> None:
        super().__init__(message)


class AuthUnexpectedMessageError(TelnetError):
    """The remote server answered the password with neither the success nor
    the incorrect password message."""

    def __init__(self, message: str = "unexpected authentication response") -> None:
        super().__init__(message)


class CommandEmptyError(TelnetError):
    """An empty command was passed to execute."""

    def __init__(self, message: str = "command too small") -> None:
        super().__init__(message)


class CommandTooLongError(TelnetError):
    """The command is longer than MAX_COMMAND_LEN characters."""

    def __init__(self, message: str = "command too long") -> None:
        super().__init__(message)


class ConnectionClosedError(TelnetError):
    """Data was written to, or close was called on, a closed connection."""

    def __init__(self, message: str = "use of closed network connection") -> None:
        super().__init__(message)


class MultiErrorOccurred(TelnetError):
    """
    Closing a connection failed while handling another error.

    error
    The error raised by the cleanup.
    previous
    The error that triggered the cleanup.
    """

    def __init__(self, error: Exception, previous: Optional[Exception]) -> None:
        super().__init__(
            "an error occurred while handling another error: %s. Previous error: %s"
            % (error, previous)
        )
        self.error = error
        self.previous = previous
