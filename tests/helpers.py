"""Plain socket helpers for talking to the test server byte by byte."""

import socket
import time
from typing import Tuple

from gstelnet.connection import split_address


def raw_connect(address: str) -> socket.socket:
    """Open a plain socket to address."""
    sock = socket.create_connection(split_address(address), timeout=2.0)
    return sock


def read_until_closed(sock: socket.socket, timeout: float = 2.0) -> Tuple[bytes, bool]:
    """Read from sock until the peer closes it or timeout expires. Returns
    the data and whether the peer closed the connection."""
    data = b""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        sock.settimeout(max(deadline - time.monotonic(), 0.01))
        try:
            chunk = sock.recv(4096)
        except socket.timeout:
            break
        except ConnectionResetError:
            return data, True
        if not chunk:
            return data, True
        data += chunk
    return data, False


def read_for(sock: socket.socket, seconds: float) -> bytes:
    """Read whatever sock receives during seconds."""
    data, _ = read_until_closed(sock, seconds)
    return data
