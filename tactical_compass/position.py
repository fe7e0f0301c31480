"""
Geographic position fixes and position errors; reading fixes from gpsd.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoPosition:
    """A position fix: latitude/longitude in degrees, horizontal accuracy in metres."""

    lat: float
    lon: float
    accuracy_m: Optional[float] = None

    @property
    def in_domain(self) -> bool:
        """True when lat/lon are finite and within [-90, 90] / [-180, 180]."""
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lon)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lon <= 180.0
        )


class PositionError(enum.Enum):
    """Why no position is available."""

    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"

    @classmethod
    def from_code(cls, code: object) -> "PositionError":
        """Map a W3C geolocation error code (1 = denied) to a PositionError."""
        if code == 1 and not isinstance(code, bool):
            return cls.PERMISSION_DENIED
        return cls.UNAVAILABLE


PositionUpdate = Union[GeoPosition, PositionError]


def connect_gpsd(host: str = "127.0.0.1", port: int = 2947) -> Optional[object]:
    """
    Connect to gpsd and return the gpsd module (gpsd-py3).

    Returns None on failure.
    """
    try:
        import gpsd  # type: ignore[import-untyped]

        gpsd.connect(host=host, port=port)
        return gpsd  # type: ignore[no-any-return]
    except Exception as e:
        logger.error("gpsd connect failed: %s", e)
        return None


def get_current_position(gpsd_module: Optional[object]) -> PositionUpdate:
    """
    Get current position from gpsd.

    No connection, no 2D fix or a read error all give PositionError.UNAVAILABLE.
    """
    if gpsd_module is None:
        return PositionError.UNAVAILABLE
    try:
        packet = gpsd_module.get_current()  # type: ignore[attr-defined]
        if packet is None or packet.mode < 2:
            return PositionError.UNAVAILABLE
        lat, lon = packet.position()
        accuracy = None
        error = getattr(packet, "error", None)
        if isinstance(error, dict):
            ex = error.get("x")
            ey = error.get("y")
            if ex is not None and ey is not None:
                accuracy = float(max(ex, ey))
        return GeoPosition(lat=float(lat), lon=float(lon), accuracy_m=accuracy)
    except Exception as e:
        logger.debug("get_current_position error: %s", e)
        return PositionError.UNAVAILABLE
