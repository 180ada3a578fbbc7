"""
End-to-end tests for the client connection against the test server.
"""

import io
import os
import socket

import pytest
from twisted.internet import error

from gstelnet import (
    FORCED_EXIT_COMMAND,
    AuthFailedError,
    AuthUnexpectedMessageError,
    CommandEmptyError,
    CommandTooLongError,
    Connection,
    ConnectionClosedError,
    MultiErrorOccurred,
    dial,
    dial_interactive,
    set_clear_response,
    set_dial_timeout,
    set_exit_command,
)
from gstelnet.constants import RESPONSE_INF_LAYOUT
from gstelnet.telnettest import (
    MOCK_COMMAND_HELP,
    MOCK_COMMAND_HELP_RESPONSE,
    MOCK_PASSWORD,
    SERVER_INFO,
    UNEXPECTED_PASSWORD,
    new_server,
    set_command_handler,
)


def unused_address() -> str:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return "127.0.0.1:%d" % s.getsockname()[1]


class TestDial:
    """Tests for dial and authentication."""

    def test_connection_refused(self):
        """Test that transport errors are raised untouched."""
        with pytest.raises(error.ConnectionRefusedError):
            dial(unused_address(), MOCK_PASSWORD)

    def test_authentication_failed(self, server):
        """Test that a wrong password raises AuthFailedError."""
        with pytest.raises(AuthFailedError, match="authentication failed"):
            dial(server.addr, "wrong")

    def test_unexpected_response(self, server):
        """Test that the sentinel password triggers an unexpected response."""
        with pytest.raises(AuthUnexpectedMessageError):
            dial(server.addr, UNEXPECTED_PASSWORD)

    def test_auth_success(self, server):
        """Test that the status is the server info banner."""
        conn = dial(server.addr, MOCK_PASSWORD, set_dial_timeout(5.0))
        try:
            assert conn.status == SERVER_INFO
        finally:
            conn.close()

    def test_addresses(self, server):
        """Test local and remote address formatting."""
        with dial(server.addr, MOCK_PASSWORD) as conn:
            assert conn.remote_addr == server.addr
            assert conn.local_addr.startswith("127.0.0.1:")

    def test_cleanup_failure_is_combined(self, server, monkeypatch):
        """Test that a failing close after a failed auth keeps both errors."""

        def broken_close(self):
            raise ConnectionClosedError("close failed")

        monkeypatch.setattr(Connection, "close", broken_close)

        with pytest.raises(MultiErrorOccurred) as info:
            dial(server.addr, "wrong")

        assert isinstance(info.value.error, ConnectionClosedError)
        assert isinstance(info.value.previous, AuthFailedError)
        assert isinstance(info.value.__cause__, AuthFailedError)
        assert "close failed" in str(info.value)
        assert "authentication failed" in str(info.value)


class TestExecute:
    """Tests for Connection.execute."""

    def test_invalid_commands_send_nothing(self):
        """Test that empty and too long commands never reach the server."""
        requests = []

        def record(context):
            requests.append(context.request)

        with new_server(set_command_handler(record)) as server:
            with dial(server.addr, MOCK_PASSWORD) as conn:
                with pytest.raises(CommandEmptyError):
                    conn.execute("")
                with pytest.raises(CommandTooLongError):
                    conn.execute("\x00" * 1001)

                assert requests == []

                conn.execute("ping")

            assert requests == ["ping"]

    def test_longest_command_allowed(self, server):
        """Test that a command of exactly the maximum length is sent."""
        with dial(server.addr, MOCK_PASSWORD) as conn:
            result = conn.execute("a" * 1000)

        assert result == "*** ERROR: unknown command '%s'" % ("a" * 1000)

    def test_closed_connection(self, server):
        """Test that executing on a closed connection fails."""
        conn = dial(server.addr, MOCK_PASSWORD)
        conn.close()

        with pytest.raises(ConnectionClosedError):
            conn.execute(MOCK_COMMAND_HELP)
        with pytest.raises(ConnectionClosedError):
            conn.close()

    def test_unknown_command(self, server):
        """Test the reply to an unknown command."""
        with dial(server.addr, MOCK_PASSWORD) as conn:
            result = conn.execute("random")

        assert result == "*** ERROR: unknown command 'random'"

    def test_raw_response_keeps_echo(self, server):
        """Test that without clearing the echo line is returned."""
        with dial(server.addr, MOCK_PASSWORD) as conn:
            result = conn.execute(MOCK_COMMAND_HELP)
            echo = RESPONSE_INF_LAYOUT % (MOCK_COMMAND_HELP, conn.local_addr)

        assert echo in result
        assert result.endswith(echo + "\r\n" + MOCK_COMMAND_HELP_RESPONSE)

    def test_clear_response(self, server):
        """Test that clearing strips the echo line."""
        with dial(server.addr, MOCK_PASSWORD, set_clear_response(True)) as conn:
            result = conn.execute(MOCK_COMMAND_HELP)

        assert result == MOCK_COMMAND_HELP_RESPONSE

    def test_clear_response_without_echo(self, server):
        """Test that replies without an echo line are left unchanged."""
        with dial(server.addr, MOCK_PASSWORD, set_clear_response(True)) as conn:
            result = conn.execute("random")

        assert result == "*** ERROR: unknown command 'random'"

    def test_null_bytes_removed(self):
        """Test that NUL padding is stripped from responses."""

        def padded(context):
            context.write("\x00\x00ok\x00\r\n")

        with new_server(set_command_handler(padded)) as server:
            with dial(server.addr, MOCK_PASSWORD) as conn:
                assert conn.execute("anything") == "ok"

    def test_sequential_commands_do_not_mix(self):
        """Test that replies within the window stay with their command."""

        def answer(context):
            context.write("reply to %s\r\n" % context.request)

        with new_server(set_command_handler(answer)) as server:
            with dial(server.addr, MOCK_PASSWORD) as conn:
                first = conn.execute("a")
                second = conn.execute("b")

            assert server.errors.empty()

        assert first == "reply to a"
        assert second == "reply to b"

    def test_slow_reply_moves_to_next_command(self, tick_timeout):
        """Test that a reply slower than the window is returned by the next
        call."""

        def answer(context):
            context.write("reply to %s\r\n" % context.request)

        with new_server(set_command_handler(answer)) as server:
            with dial(server.addr, MOCK_PASSWORD) as conn:
                server.settings.command_response_delay = tick_timeout * 1.5
                first = conn.execute("a")
                second = conn.execute("b")

        assert first == ""
        assert second == "reply to a"

    def test_silent_server(self):
        """Test that no reply gives an empty response."""
        with new_server() as server:
            with dial(server.addr, MOCK_PASSWORD) as conn:
                assert conn.execute("whatever") == ""


class TestInteractive:
    """Tests for dial_interactive."""

    def test_unknown_command(self, server):
        """Test that replies are relayed to the output stream."""
        output = io.BytesIO()
        lines = io.StringIO("random\n" + FORCED_EXIT_COMMAND + "\n")

        dial_interactive(lines, output, server.addr, MOCK_PASSWORD)

        text = output.getvalue().decode()
        assert text.startswith("Please enter password\r\nLogon successful.")
        assert text.endswith("*** ERROR: unknown command 'random'\r\n")

    def test_help_command(self, server):
        """Test relaying the help command with an explicit exit command."""
        output = io.BytesIO()
        lines = io.StringIO(MOCK_COMMAND_HELP + "\n" + FORCED_EXIT_COMMAND + "\n")

        dial_interactive(
            lines, output, server.addr, MOCK_PASSWORD, set_exit_command("exit")
        )

        assert output.getvalue().decode().endswith(MOCK_COMMAND_HELP_RESPONSE + "\r\n")

    def test_forced_exit_is_not_sent(self):
        """Test that the forced exit token is replaced before sending."""
        requests = []

        def record(context):
            requests.append(context.request)

        with new_server(set_command_handler(record)) as server:
            server.settings.exit_command = "quit"
            lines = io.StringIO("one\n" + FORCED_EXIT_COMMAND + "\ntwo\n")

            dial_interactive(
                lines, io.BytesIO(), server.addr, MOCK_PASSWORD, set_exit_command("quit")
            )

        assert requests == ["one"]


@pytest.mark.skipif(
    os.environ.get("TEST_7DTD_SERVER", "false") != "true",
    reason="set TEST_7DTD_SERVER=true to test against a real 7DTD server",
)
class TestLiveServer:
    """Tests against a real 7 Days to Die server."""

    def test_help(self, monkeypatch):
        monkeypatch.setattr(Connection, "tick_timeout", 1.0)
        addr = os.environ.get("TEST_7DTD_SERVER_ADDR", "172.22.0.2:8081")
        password = os.environ.get("TEST_7DTD_SERVER_PASSWORD", "banana")

        with dial(addr, password) as conn:
            result = conn.execute("help")

        assert "*** List of Commands ***" in result
        assert " help => Help on console and specific commands" in result
