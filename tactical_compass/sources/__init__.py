"""
Pluggable sources for orientation samples and position fixes.

- linux: IIO sysfs + imufusion + gpsd (Linux only)
- remote: TCP server accepting JSON from a browser or phone client
"""

from tactical_compass.sources.base import (
    OrientationSource,
    PositionSource,
    SensorUnavailableError,
    Subscription,
    SubscriptionError,
)
from tactical_compass.sources.linux import LinuxSource, create_linux_source
from tactical_compass.sources.remote import RemoteSource, create_remote_source

__all__ = [
    "LinuxSource",
    "OrientationSource",
    "PositionSource",
    "RemoteSource",
    "SensorUnavailableError",
    "Subscription",
    "SubscriptionError",
    "create_linux_source",
    "create_remote_source",
]
