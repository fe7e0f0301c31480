"""
Display state: heading pipeline and coordinate formatting for rendering clients.

Orientation samples run Interpreter -> calibration -> continuous tracker;
position updates are kept separately so a position failure never touches
the heading.
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from tactical_compass.calibration import CalibrationSettings
from tactical_compass.geodesy import CoordinateFormat, format_coordinates, next_format
from tactical_compass.heading import (
    ContinuousHeadingTracker,
    NormalizedHeading,
    calibrate_heading,
    cardinal_name,
)
from tactical_compass.orientation import RawOrientationSample, SensorReadingInterpreter
from tactical_compass.position import GeoPosition, PositionError, PositionUpdate
from tactical_compass.sources.base import (
    OrientationSource,
    PositionSource,
    Subscription,
)

logger = logging.getLogger(__name__)


class CompassDisplay:
    """
    Current heading and position as shown on the display.

    on_orientation() and on_position() are subscriber callbacks; both run on
    the main loop thread. cycle_format() may be called from the calibration
    API thread.
    """

    def __init__(
        self,
        get_calibration: Callable[[], CalibrationSettings],
        screen_angle: Optional[Callable[[], float]] = None,
        coordinate_format: CoordinateFormat = CoordinateFormat.DECIMAL,
    ) -> None:
        self._get_calibration = get_calibration
        self.interpreter = SensorReadingInterpreter(screen_angle)
        self.tracker = ContinuousHeadingTracker()
        self._heading: Optional[NormalizedHeading] = None
        self._position: Optional[GeoPosition] = None
        self._position_error: Optional[PositionError] = None
        self._format = coordinate_format
        self._format_lock = threading.Lock()

    @property
    def heading(self) -> Optional[NormalizedHeading]:
        """Latest calibrated heading, or None before the first accepted sample."""
        return self._heading

    @property
    def position(self) -> Optional[GeoPosition]:
        return self._position

    @property
    def position_error(self) -> Optional[PositionError]:
        return self._position_error

    @property
    def coordinate_format(self) -> CoordinateFormat:
        return self._format

    def on_orientation(self, sample: RawOrientationSample) -> None:
        """Feed one raw sample; dropped samples leave all state unchanged."""
        reading = self.interpreter.interpret(sample)
        if reading is None:
            return
        degrees = calibrate_heading(reading.degrees, self._get_calibration())
        self._heading = NormalizedHeading(
            degrees=degrees,
            is_absolute=reading.is_absolute,
            accuracy=reading.accuracy,
        )
        self.tracker.update(degrees)

    def on_position(self, update: PositionUpdate) -> None:
        """Store a fix, or the error; the last good fix is kept on error."""
        if isinstance(update, PositionError):
            if update is not self._position_error:
                logger.info("Position %s", update.value)
            self._position_error = update
            return
        if not update.in_domain:
            logger.debug("Dropped out-of-range position %s", update)
            return
        self._position = update
        self._position_error = None

    def on_stream_end(self) -> None:
        """The orientation device went away; the next one may be relative."""
        if self.interpreter.absolute_locked:
            logger.info("Orientation stream ended; accepting relative samples again")
        self.interpreter.begin_session()

    def cycle_format(self) -> str:
        """Advance to the next coordinate format; return its name."""
        with self._format_lock:
            self._format = next_format(self._format)
            return self._format.value

    def coordinates(self) -> Optional[str]:
        """Current position in the selected format, or None without a fix."""
        position = self._position
        if position is None:
            return None
        return format_coordinates(position.lat, position.lon, self._format)

    def attach(
        self, orientation: OrientationSource, position: PositionSource
    ) -> Tuple[Subscription, Subscription]:
        """
        Subscribe to both sources; return the two subscriptions.

        A new orientation subscription starts a new interpreter session, and
        so does the end of the device stream feeding it.
        """
        self.interpreter.begin_session()
        self.tracker.reset()
        return (
            orientation.subscribe_orientation(
                self.on_orientation, on_stream_end=self.on_stream_end
            ),
            position.subscribe_position(self.on_position),
        )

    def snapshot(self) -> dict:
        """Display state as a JSON-suitable dict."""
        heading = self._heading
        data: dict = {
            "heading": None,
            "heading_deg": None,
            "cardinal": None,
            "continuous_heading": self.tracker.value,
            "absolute": False,
            "accuracy": None,
            "coordinates": self.coordinates(),
            "coordinate_format": self._format.value,
            "position_error": (
                self._position_error.value if self._position_error else None
            ),
        }
        if heading is not None:
            data.update(
                heading=f"{int(heading.degrees + 0.5) % 360:03d}",
                heading_deg=heading.degrees,
                cardinal=cardinal_name(heading.degrees),
                absolute=heading.is_absolute,
                accuracy=heading.accuracy,
            )
        return data
