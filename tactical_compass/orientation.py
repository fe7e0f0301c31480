"""
Orientation samples and their interpretation into headings.

Two sample shapes exist:

- CompassHeading: an already north-referenced heading (e.g. iOS
  webkitCompassHeading). Always absolute.
- RotationAngle: rotation about the z-axis, counter-clockwise (W3C
  deviceorientation alpha, or AHRS yaw). Absolute only when the source says so.

The interpreter turns either into a NormalizedHeading, compensating for the
current screen rotation, and arbitrates between absolute and relative streams.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Union

from tactical_compass.heading import NormalizedHeading, normalize_degrees

logger = logging.getLogger(__name__)

ScreenAngleProvider = Callable[[], Optional[float]]


@dataclass(frozen=True)
class CompassHeading:
    """Heading in degrees clockwise from north, with accuracy in degrees."""

    value: Optional[float]
    accuracy: float = 0.0


@dataclass(frozen=True)
class RotationAngle:
    """Device rotation alpha in degrees; absolute when referenced to north."""

    alpha: Optional[float]
    absolute: bool = False


RawOrientationSample = Union[CompassHeading, RotationAngle]


def finite_or_none(value: object) -> Optional[float]:
    """Return value as a finite float, or None for anything else (bools too)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        f = float(value)
    except OverflowError:
        return None
    if not math.isfinite(f):
        return None
    return f


def decode_event(data: object) -> Optional[RawOrientationSample]:
    """
    Decode a platform orientation payload into a sample.

    A numeric webkitCompassHeading wins over alpha. Returns None when the
    payload carries neither.
    """
    if not isinstance(data, Mapping):
        return None
    heading = finite_or_none(data.get("webkitCompassHeading"))
    if heading is not None:
        accuracy = finite_or_none(data.get("webkitCompassAccuracy"))
        return CompassHeading(value=heading, accuracy=accuracy or 0.0)
    alpha = finite_or_none(data.get("alpha"))
    if alpha is not None:
        return RotationAngle(alpha=alpha, absolute=data.get("absolute") is True)
    return None


def resolve_screen_angle(providers: Iterable[ScreenAngleProvider]) -> float:
    """Return the first numeric angle from the providers, in order; else 0."""
    for provider in providers:
        angle = finite_or_none(provider())
        if angle is not None:
            return angle
    return 0.0


class SensorReadingInterpreter:
    """
    Interpret raw orientation samples into normalized headings.

    The screen angle is queried on every sample since the display can rotate
    mid-session. Once an absolute sample has been accepted, relative
    RotationAngle samples are ignored until begin_session() is called.
    """

    def __init__(
        self, screen_angle: Optional[Callable[[], float]] = None
    ) -> None:
        self._screen_angle = screen_angle or (lambda: 0.0)
        self._absolute_seen = False

    @property
    def absolute_locked(self) -> bool:
        """True once an absolute sample was accepted in this session."""
        return self._absolute_seen

    def begin_session(self) -> None:
        """Start a new subscription session; clears the absolute-source lock."""
        self._absolute_seen = False

    def interpret(self, sample: object) -> Optional[NormalizedHeading]:
        """Return the heading for sample, or None if it is dropped."""
        if isinstance(sample, CompassHeading):
            value = finite_or_none(sample.value)
            if value is None:
                return None
            self._absolute_seen = True
            return NormalizedHeading(
                degrees=normalize_degrees(value + self._screen_angle()),
                is_absolute=True,
                accuracy=sample.accuracy,
            )
        if isinstance(sample, RotationAngle):
            alpha = finite_or_none(sample.alpha)
            if alpha is None:
                return None
            if sample.absolute:
                self._absolute_seen = True
            elif self._absolute_seen:
                logger.debug("Relative sample suppressed by absolute source")
                return None
            return NormalizedHeading(
                degrees=normalize_degrees(360.0 - alpha - self._screen_angle()),
                is_absolute=sample.absolute,
            )
        return None
