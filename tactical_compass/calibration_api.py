"""
Calibration control API: TCP server for get/set of heading calibration.

Protocol: one JSON object per line.
- get_calibration: returns invert, offset and the configured file.
- set_calibration: {"invert": bool, "offset": number}; applied at once and
  saved to the calibration file when one is configured.
- cycle_format: advance the displayed coordinate format.
The sample pipeline reads settings via manager.get_calibration().
"""

import json
import logging
import math
import socket
import threading
from pathlib import Path
from typing import Callable, Optional

from tactical_compass.calibration import (
    MAX_OFFSET,
    CalibrationSettings,
    save_calibration,
)

logger = logging.getLogger(__name__)


class CalibrationManager:
    """
    Thread-safe holder of the active calibration settings.

    set_calibration() swaps in a new settings object, so readers on the
    sample path always see a consistent (invert, offset) pair.
    """

    def __init__(
        self,
        settings: CalibrationSettings,
        save_path: Optional[Path] = None,
    ) -> None:
        self._settings = settings
        self._save_path = save_path
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()

    @property
    def save_path(self) -> Optional[Path]:
        return self._save_path

    def get_calibration(self) -> CalibrationSettings:
        return self._settings

    def set_calibration(
        self,
        invert: Optional[bool] = None,
        offset: Optional[float] = None,
    ) -> CalibrationSettings:
        """Update the given fields; return the new settings."""
        with self._lock:
            current = self._settings
            self._settings = CalibrationSettings(
                invert=current.invert if invert is None else invert,
                offset=current.offset if offset is None else offset,
            )
            return self._settings

    def save(self) -> bool:
        """Write current settings to the calibration file. True if saved or no file."""
        if not self._save_path:
            return True
        with self._save_lock:
            return save_calibration(self._save_path, self._settings)

    def get_status(self) -> dict:
        """Current calibration for API response."""
        settings = self._settings
        return {
            "invert": settings.invert,
            "offset": settings.offset,
            "calibration_file": str(self._save_path) if self._save_path else None,
        }


def _handle_request(
    manager: CalibrationManager,
    request: object,
    cycle_format: Optional[Callable[[], str]] = None,
) -> dict:
    """Process one API request; return response dict."""
    if not isinstance(request, dict):
        return {"error": "invalid request"}

    if request.get("get_calibration"):
        return manager.get_status()

    set_cal = request.get("set_calibration")
    if set_cal is not None:
        if not isinstance(set_cal, dict):
            return {"error": "set_calibration must be an object"}
        invert = set_cal.get("invert")
        offset = set_cal.get("offset")
        if invert is not None and not isinstance(invert, bool):
            return {"error": "invert must be true or false"}
        if offset is not None:
            if isinstance(offset, bool) or not isinstance(offset, (int, float)):
                return {"error": "offset must be a number"}
            try:
                offset = float(offset)
            except OverflowError:
                return {"error": "offset must be a number"}
            if not math.isfinite(offset) or abs(offset) > MAX_OFFSET:
                return {"error": f"offset must be within +-{MAX_OFFSET:g}"}
        manager.set_calibration(invert=invert, offset=offset)
        if not manager.save():
            return {"ok": False, "error": "calibration save failed"}
        return {"ok": True}

    if request.get("cycle_format"):
        if cycle_format is None:
            return {"error": "coordinate display not available"}
        return {"coordinate_format": cycle_format()}

    return {"error": "unknown request"}


def run_calibration_server(
    manager: CalibrationManager,
    host: str,
    port: int,
    shutdown: Callable[[], bool],
    cycle_format: Optional[Callable[[], str]] = None,
) -> None:
    """
    Run TCP server that handles the calibration API until shutdown() returns True.

    Call from a dedicated thread; file writes happen here, never on the
    sample path. Each client connection: one JSON line in, one JSON line out
    per request.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        logger.error("Calibration API bind failed %s:%s: %s", host, port, e)
        sock.close()
        return
    sock.listen(1)
    sock.settimeout(1.0)
    logger.info("Calibration API on %s:%s", host, port)

    while not shutdown():
        try:
            client, _ = sock.accept()
        except socket.timeout:
            continue
        except OSError:
            if shutdown():
                break
            continue
        try:
            client.settimeout(10.0)
            with client.makefile(mode="rw", encoding="utf-8") as f:
                for line in f:
                    if shutdown():
                        break
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        request = json.loads(line)
                    except (ValueError, RecursionError):
                        response = {"error": "invalid JSON"}
                    else:
                        response = _handle_request(manager, request, cycle_format)
                    f.write(json.dumps(response) + "\n")
                    f.flush()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Calibration API client error: %s", e)
        finally:
            try:
                client.close()
            except OSError:
                pass

    try:
        sock.close()
    except OSError:
        pass
