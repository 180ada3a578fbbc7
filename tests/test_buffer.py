"""
Unit tests for the response buffer.
"""

import threading

from gstelnet.buffer import ResponseBuffer


class TestResponseBuffer:
    """Tests for ResponseBuffer."""

    def test_drain_returns_and_resets(self):
        """Test that drain empties the buffer."""
        buffer = ResponseBuffer()
        buffer.write(b"hello ")
        buffer.write(b"world")

        assert len(buffer) == 11
        assert buffer.drain() == b"hello world"
        assert len(buffer) == 0
        assert buffer.drain() == b""

    def test_concurrent_writes_and_drains(self):
        """Test that no byte is lost or duplicated across threads."""
        buffer = ResponseBuffer()
        drained = []
        done = threading.Event()

        def writer():
            for _ in range(10000):
                buffer.write(b"x")
            done.set()

        def reader():
            while not done.is_set():
                drained.append(buffer.drain())
            drained.append(buffer.drain())

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sum(len(chunk) for chunk in drained) == 10000
