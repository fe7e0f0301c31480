"""
TCP server that streams display snapshots to rendering clients as JSON lines.

A newly connected renderer receives the latest snapshot straight away, so it
can draw the dial before the next output tick.
"""

import json
import logging
import socket
import threading
from typing import List, Optional

logger = logging.getLogger(__name__)


def encode_snapshot(snapshot: dict) -> bytes:
    """One compact JSON object terminated by a newline."""
    return (json.dumps(snapshot, separators=(",", ":")) + "\n").encode("utf-8")


def _close_quietly(conn: socket.socket) -> None:
    try:
        conn.close()
    except OSError:
        pass


class DisplayTcpServer:
    """
    Broadcast display snapshots to every connected renderer.

    send_snapshot() may be called from any thread. A client whose write fails
    is closed and dropped.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 2950) -> None:
        self._host = host
        self._port = port
        self._listener: Optional[socket.socket] = None
        self._renderers: List[socket.socket] = []
        self._latest: Optional[bytes] = None
        self._lock = threading.Lock()

    def start(self) -> bool:
        """Bind and listen; return True on success."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self._host, self._port))
            listener.listen(4)
            listener.setblocking(False)
        except OSError as e:
            logger.error(
                "Display server bind failed %s:%s: %s", self._host, self._port, e
            )
            _close_quietly(listener)
            return False
        self._listener = listener
        logger.info("Display server listening on %s:%s", self._host, self._port)
        return True

    def stop(self) -> None:
        """Close the listener and every renderer connection."""
        with self._lock:
            for conn in self._renderers:
                _close_quietly(conn)
            self._renderers = []
        if self._listener is not None:
            _close_quietly(self._listener)
            self._listener = None

    def accept_new(self) -> None:
        """Accept one pending renderer and send it the latest snapshot."""
        if self._listener is None:
            return
        try:
            conn, addr = self._listener.accept()
        except BlockingIOError:
            return
        except OSError as e:
            logger.debug("Display accept error: %s", e)
            return
        with self._lock:
            if self._latest is not None and not self._send(conn, self._latest):
                _close_quietly(conn)
                return
            self._renderers.append(conn)
            total = len(self._renderers)
        logger.info("Renderer connected from %s (total %d)", addr, total)

    def send_snapshot(self, snapshot: dict) -> None:
        """Remember snapshot as the latest and send it to all renderers."""
        data = encode_snapshot(snapshot)
        with self._lock:
            self._latest = data
            alive = [conn for conn in self._renderers if self._send(conn, data)]
            for conn in self._renderers:
                if conn not in alive:
                    _close_quietly(conn)
                    logger.info("Renderer disconnected")
            self._renderers = alive

    @staticmethod
    def _send(conn: socket.socket, data: bytes) -> bool:
        try:
            conn.sendall(data)
            return True
        except OSError:
            return False

    def get_socket(self) -> Optional[socket.socket]:
        """Listening socket for select(); None when not started."""
        return self._listener

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._renderers)
