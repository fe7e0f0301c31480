"""
Abstract interfaces for orientation and position sources.

Sources deliver to at most one subscriber per event kind. Delivery happens
on the caller's thread inside dispatch(), so callbacks never run concurrently.
"""

from typing import Callable, Optional

from tactical_compass.orientation import RawOrientationSample
from tactical_compass.position import PositionUpdate

OrientationCallback = Callable[[RawOrientationSample], None]
PositionCallback = Callable[[PositionUpdate], None]


class SensorUnavailableError(RuntimeError):
    """The platform has no usable orientation sensor (or access was denied)."""


class SubscriptionError(RuntimeError):
    """Subscribing while a subscription of the same kind is still active."""


class Subscription:
    """Handle for an active subscription; unsubscribe() revokes it."""

    def __init__(self, revoke: Callable[[], None]) -> None:
        self._revoke: Optional[Callable[[], None]] = revoke

    @property
    def active(self) -> bool:
        return self._revoke is not None

    def unsubscribe(self) -> None:
        """Revoke the subscription. Safe to call more than once."""
        revoke, self._revoke = self._revoke, None
        if revoke:
            revoke()


class _Slot:
    """Single-subscriber slot for one event kind."""

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self.callback: Optional[Callable] = None
        self.on_end: Optional[Callable[[], None]] = None
        self._subscription: Optional[Subscription] = None

    def subscribe(
        self, callback: Callable, on_end: Optional[Callable[[], None]] = None
    ) -> Subscription:
        if self._subscription is not None and self._subscription.active:
            raise SubscriptionError(f"{self._kind} subscription already active")
        self.callback = callback
        self.on_end = on_end
        self._subscription = Subscription(self._clear)
        return self._subscription

    def _clear(self) -> None:
        self.callback = None
        self.on_end = None
        self._subscription = None

    def emit(self, event: object) -> None:
        if self.callback is not None:
            self.callback(event)

    def end(self) -> None:
        if self.on_end is not None:
            self.on_end()


class OrientationSource:
    """Source of raw orientation samples and the current screen rotation."""

    def __init__(self) -> None:
        self._orientation = _Slot("orientation")

    def subscribe_orientation(
        self,
        callback: OrientationCallback,
        on_stream_end: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """
        Deliver orientation samples to callback until unsubscribed.

        on_stream_end is called when the device feeding the stream goes away
        (e.g. a remote client disconnects); a later device may differ.
        """
        return self._orientation.subscribe(callback, on_stream_end)

    def _emit_orientation(self, sample: RawOrientationSample) -> None:
        self._orientation.emit(sample)

    def _end_orientation_stream(self) -> None:
        self._orientation.end()

    def screen_angle(self) -> float:
        """Screen rotation in degrees (0/90/180/270); 0 if unknown."""
        return 0.0

    def dispatch(self) -> None:
        """Deliver pending events to subscribers. Call from the main loop."""
        raise NotImplementedError


class PositionSource:
    """Source of position fixes or position errors."""

    def __init__(self) -> None:
        self._position = _Slot("position")

    def subscribe_position(self, callback: PositionCallback) -> Subscription:
        """Deliver position updates to callback until unsubscribed."""
        return self._position.subscribe(callback)

    def _emit_position(self, update: PositionUpdate) -> None:
        self._position.emit(update)

    def dispatch(self) -> None:
        """Deliver pending events to subscribers. Call from the main loop."""
        raise NotImplementedError
