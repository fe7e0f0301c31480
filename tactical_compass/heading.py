"""
Heading arithmetic: normalization, calibration, unwrapping and cardinal names.

All headings are degrees clockwise from north in [0, 360).
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from tactical_compass.calibration import CalibrationSettings

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


@dataclass(frozen=True)
class NormalizedHeading:
    """Heading in [0, 360), whether it is north-referenced, accuracy in degrees."""

    degrees: float
    is_absolute: bool
    accuracy: float = 0.0


def normalize_degrees(value: float) -> float:
    """Reduce any finite angle into [0, 360)."""
    h = math.fmod(value, 360.0)
    if h < 0:
        h += 360.0
    # -1e-15 + 360 rounds to 360.0
    if h >= 360.0:
        h = 0.0
    return h


def mirror(heading: float) -> float:
    """Reflect a heading about the north-south axis."""
    return normalize_degrees(360.0 - heading)


def apply_offset(heading: float, offset: float) -> float:
    """Add a signed offset and wrap into [0, 360)."""
    return normalize_degrees(heading + offset)


def calibrate_heading(raw: float, settings: "CalibrationSettings") -> float:
    """Apply invert (mirror) then offset to a raw heading."""
    h = 360.0 - raw if settings.invert else raw
    return apply_offset(h, settings.offset)


def cardinal_index(heading: float) -> int:
    """Index into an 8-point compass table; 22.5 rounds up to NE."""
    return int(math.floor(heading / 45.0 + 0.5)) % 8


def cardinal_name(heading: float, names: Sequence[str] = COMPASS_POINTS) -> str:
    """Compass point name for heading."""
    return names[cardinal_index(heading)]


class ContinuousHeadingTracker:
    """
    Unwrap headings into a continuous angle for rotation animation.

    Each update moves the value along the shortest arc, so crossing north
    (350 -> 10) adds 20 instead of subtracting 340. value mod 360 always
    equals the last heading fed in.
    """

    def __init__(self) -> None:
        self._value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        """Continuous heading, or None before the first update."""
        return self._value

    def reset(self) -> None:
        """Forget the register; the next update reseeds it."""
        self._value = None

    def update(self, heading: float) -> float:
        """Feed a normalized heading; return the new continuous value."""
        if self._value is None:
            self._value = heading
            return heading
        diff = heading - normalize_degrees(self._value)
        if diff > 180.0:
            diff -= 360.0
        elif diff < -180.0:
            diff += 360.0
        self._value += diff
        return self._value
