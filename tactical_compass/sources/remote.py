"""
Remote data source: TCP server accepting JSON from a browser or phone client.

Protocol: one JSON object per line (newline-delimited).
- Orientation: {"webkitCompassHeading":float,"webkitCompassAccuracy":float}
  or {"alpha":float,"absolute":bool}
- Screen rotation: {"screen_angle":0|90|180|270} (screen.orientation.angle),
  {"window_orientation":-90|0|90|180} (legacy window.orientation)
- Position: {"lat":float,"lon":float,"accuracy":float}
- Position error: {"position_error":int} (W3C code, 1 = permission denied)
Keys may be combined in one object. A client disconnect ends the orientation
stream and clears the screen rotation it reported.
"""

import json
import logging
import queue
import socket
import threading
from typing import Optional, Tuple

from tactical_compass.orientation import (
    decode_event,
    finite_or_none,
    resolve_screen_angle,
)
from tactical_compass.position import GeoPosition, PositionError
from tactical_compass.sources.base import OrientationSource, PositionSource

logger = logging.getLogger(__name__)

_ORIENTATION = "orientation"
_POSITION = "position"
_SCREEN = "screen"
_STREAM_END = "stream_end"


class RemoteSource(OrientationSource, PositionSource):
    """
    Single source that provides orientation and position from a remote TCP client.

    The listener thread only parses and queues; dispatch() delivers queued
    events to subscribers in arrival order on the calling thread.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 2949) -> None:
        OrientationSource.__init__(self)
        PositionSource.__init__(self)
        self._host = host
        self._port = port
        self._events: "queue.Queue[Tuple[str, object]]" = queue.Queue()
        self._screen_orientation_angle: Optional[float] = None
        self._window_orientation: Optional[float] = None
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._shutdown = False

    def start(self) -> bool:
        """Bind and start the listener thread. Return True on success."""
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._sock.bind((self._host, self._port))
            self._sock.listen(1)
            self._sock.settimeout(1.0)
            self._thread = threading.Thread(target=self._accept_loop, daemon=True)
            self._thread.start()
            logger.info(
                "Remote source listening on %s:%s (browser/phone clients)",
                self._host,
                self._port,
            )
            return True
        except OSError as e:
            logger.error("Remote source bind failed: %s", e)
            return False

    def stop(self) -> None:
        """Stop the listener and close the socket."""
        self._shutdown = True
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _accept_loop(self) -> None:
        while not self._shutdown and self._sock:
            try:
                client, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                if not self._shutdown:
                    logger.debug("Remote accept error")
                break
            logger.info("Remote client connected from %s", addr)
            try:
                client.settimeout(5.0)
                with client.makefile(mode="r", encoding="utf-8") as f:
                    for line in f:
                        if self._shutdown:
                            break
                        line = line.strip()
                        if line:
                            self._parse_line(line)
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Remote client error: %s", e)
            finally:
                try:
                    client.close()
                except OSError:
                    pass
                self._client_finished()

    def _client_finished(self) -> None:
        logger.info("Remote client disconnected")
        self._events.put((_STREAM_END, None))

    def _parse_line(self, line: str) -> None:
        try:
            data = json.loads(line)
        except (ValueError, RecursionError):
            logger.debug("Dropped non-JSON line")
            return
        if not isinstance(data, dict):
            return
        if "screen_angle" in data or "window_orientation" in data:
            screen = (
                finite_or_none(data.get("screen_angle")),
                finite_or_none(data.get("window_orientation")),
            )
            self._events.put((_SCREEN, screen))
        sample = decode_event(data)
        if sample is not None:
            self._events.put((_ORIENTATION, sample))
        if "position_error" in data:
            error = PositionError.from_code(data["position_error"])
            self._events.put((_POSITION, error))
        elif "lat" in data and "lon" in data:
            lat = finite_or_none(data["lat"])
            lon = finite_or_none(data["lon"])
            if lat is None or lon is None:
                return
            accuracy = finite_or_none(data.get("accuracy"))
            self._events.put(
                (_POSITION, GeoPosition(lat=lat, lon=lon, accuracy_m=accuracy))
            )

    def screen_angle(self) -> float:
        return resolve_screen_angle(
            (
                lambda: self._screen_orientation_angle,
                lambda: self._window_orientation,
            )
        )

    def dispatch(self) -> None:
        while True:
            try:
                kind, event = self._events.get_nowait()
            except queue.Empty:
                return
            if kind == _SCREEN:
                preferred, legacy = event  # type: ignore[misc]
                if preferred is not None:
                    self._screen_orientation_angle = preferred
                if legacy is not None:
                    self._window_orientation = legacy
            elif kind == _STREAM_END:
                self._screen_orientation_angle = None
                self._window_orientation = None
                self._end_orientation_stream()
            elif kind == _ORIENTATION:
                self._emit_orientation(event)  # type: ignore[arg-type]
            else:
                self._emit_position(event)  # type: ignore[arg-type]


def create_remote_source(host: str, port: int) -> Optional[RemoteSource]:
    """Create and start the remote source. Returns None on bind failure."""
    source = RemoteSource(host=host, port=port)
    if source.start():
        return source
    return None
