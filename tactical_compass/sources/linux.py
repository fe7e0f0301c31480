"""
Linux data source: IIO sysfs IMU fused by imufusion, and gpsd for position.
"""

import logging
import time
from typing import Callable, Optional

from tactical_compass.fusion_ahrs import FusionAhrs
from tactical_compass.iio_reader import ACCEL, GYRO, MAGN, IIOReader, find_device
from tactical_compass.position import connect_gpsd, get_current_position
from tactical_compass.sources.base import (
    OrientationSource,
    PositionSource,
    SensorUnavailableError,
)

logger = logging.getLogger(__name__)


class LinuxSource(OrientationSource, PositionSource):
    """
    Orientation from IIO + AHRS, position from gpsd.

    Each dispatch() reads one IMU sample, fuses it and delivers the yaw as a
    RotationAngle; gpsd is polled every position_interval_s seconds. The
    screen is assumed unrotated.
    """

    def __init__(
        self,
        reader: IIOReader,
        fusion: FusionAhrs,
        gpsd_module: Optional[object],
        sample_period_s: float,
        position_interval_s: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        OrientationSource.__init__(self)
        PositionSource.__init__(self)
        self._reader = reader
        self._fusion = fusion
        self._gpsd = gpsd_module
        self._dt = sample_period_s
        self._position_interval = position_interval_s
        self._clock = clock
        self._last_position_poll: Optional[float] = None

    def dispatch(self) -> None:
        accel = self._reader.read_accel()
        gyro = self._reader.read_gyro()
        if accel and gyro:
            self._fusion.update(
                accel, gyro, self._dt, magnetometer=self._reader.read_magnetometer()
            )
            sample = self._fusion.sample()
            if sample is not None:
                self._emit_orientation(sample)

        now = self._clock()
        if (
            self._last_position_poll is None
            or now - self._last_position_poll >= self._position_interval
        ):
            self._last_position_poll = now
            self._emit_position(get_current_position(self._gpsd))


def create_linux_source(
    gpsd_host: str,
    gpsd_port: int,
    sample_rate_hz: float,
    fusion_gain: float = 0.5,
    accel_path: Optional[str] = None,
    gyro_path: Optional[str] = None,
    magnetometer_path: Optional[str] = None,
) -> LinuxSource:
    """
    Create the Linux IIO + gpsd source.

    Raises SensorUnavailableError if no IIO accel/gyro is found or imufusion
    is missing. Magnetometer and gpsd are optional: without a magnetometer
    the heading is relative, without gpsd position is unavailable.
    """
    accel = find_device(ACCEL, accel_path)
    gyro = find_device(GYRO, gyro_path, prefer=accel)
    if not accel or not gyro:
        raise SensorUnavailableError("IIO accelerometer or gyroscope not found")
    devices = {ACCEL: accel, GYRO: gyro}
    magn = find_device(MAGN, magnetometer_path, prefer=accel)
    if magn:
        logger.info("Magnetometer found at %s", magn)
        devices[MAGN] = magn
    else:
        logger.warning("No magnetometer; heading will be relative")
    try:
        fusion = FusionAhrs(gain=fusion_gain, sample_rate_hz=sample_rate_hz)
    except RuntimeError as e:
        raise SensorUnavailableError(str(e)) from e
    gpsd = connect_gpsd(gpsd_host, gpsd_port)
    if gpsd is None:
        logger.warning("gpsd not available; position will be unavailable.")
    return LinuxSource(IIOReader(devices), fusion, gpsd, 1.0 / sample_rate_hz)
