"""
A console server for end-to-end tests of gstelnet clients.

server = new_server(set_command_handler(my_handler))
connection = gstelnet.dial(server.addr, MOCK_PASSWORD)
...
connection.close()
server.close()
"""

from .context import AuthResult, Context
from .handlers import (
    AUTH_SUCCESS_WELCOME_MESSAGE,
    MOCK_COMMAND_HELP,
    MOCK_COMMAND_HELP_RESPONSE,
    SERVER_INFO,
    UNEXPECTED_AUTH_RESPONSE,
    UNEXPECTED_PASSWORD,
    AuthHandler,
    CommandHandler,
    EmptyHandler,
    FuncHandler,
    Handler,
    echo_line,
)
from .server import (
    MOCK_PASSWORD,
    Server,
    ServerCloseError,
    ServerError,
    ServerSettings,
    new_server,
    new_unstarted_server,
    set_auth_handler,
    set_command_handler,
    set_settings,
)

__all__ = [
    "Server",
    "ServerSettings",
    "ServerError",
    "ServerCloseError",
    "new_server",
    "new_unstarted_server",
    "set_settings",
    "set_auth_handler",
    "set_command_handler",
    "Context",
    "AuthResult",
    "Handler",
    "FuncHandler",
    "AuthHandler",
    "CommandHandler",
    "EmptyHandler",
    "echo_line",
    "MOCK_PASSWORD",
    "MOCK_COMMAND_HELP",
    "MOCK_COMMAND_HELP_RESPONSE",
    "SERVER_INFO",
    "AUTH_SUCCESS_WELCOME_MESSAGE",
    "UNEXPECTED_PASSWORD",
    "UNEXPECTED_AUTH_RESPONSE",
]
