"""Wire constants shared by the client and the test server."""

# An artificial restriction, but it helps in case of random large queries.
MAX_COMMAND_LEN = 1000

# Seconds.
DEFAULT_DIAL_TIMEOUT = 5.0

DEFAULT_EXIT_COMMAND = "exit"

# Typed locally in interactive mode, never sent as is.
FORCED_EXIT_COMMAND = ":q"

CRLF = "\r\n"

NULL_STRING = "\x00"

# Delay to let the last bytes arrive before a connection is closed.
RECEIVE_WAIT_PERIOD = 0.003

# Fixed wait after a command is written before the response is collected.
EXECUTE_TICK_TIMEOUT = 1.0

RESPONSE_ENTER_PASSWORD = "Please enter password"
RESPONSE_AUTH_SUCCESS = "Logon successful."
RESPONSE_AUTH_INCORRECT_PASSWORD = "Password incorrect, please enter password:"
RESPONSE_AUTH_TOO_MANY_FAILS = "Too many failed login attempts!"
RESPONSE_WELCOME = (
    "Press 'help' to get a list of all commands. Press 'exit' to end session."
)

# The log line a server writes about a command it received. Arguments are
# the command and the client address.
RESPONSE_INF_LAYOUT = "INF Executing command '%s' by Telnet from %s"

RESPONSE_UNKNOWN_COMMAND = "*** ERROR: unknown command '%s'"
