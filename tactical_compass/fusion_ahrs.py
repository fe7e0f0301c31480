"""
AHRS fusion using imufusion: gyro + accelerometer (+ magnetometer) -> yaw.

The yaw is reported as a RotationAngle sample: counter-clockwise like the
W3C alpha, absolute only when a magnetometer references it to north.
"""

import logging
from typing import Any, Optional, Tuple

from tactical_compass.heading import normalize_degrees
from tactical_compass.orientation import RotationAngle

logger = logging.getLogger(__name__)

_imufusion: Any = None
_np: Any = None
try:
    import imufusion
    import numpy

    _imufusion = imufusion
    _np = numpy
except ImportError:
    pass

Vector = Tuple[float, float, float]

GYRO_RANGE_DPS = 2000
ACCEL_REJECTION_DEG = 10
MAGNETIC_REJECTION_DEG = 10
RECOVERY_PERIOD_S = 5


class FusionAhrs:
    """
    Wrapper around imufusion Ahrs (NWU convention).

    Feed accelerometer (m/s^2), gyroscope (deg/s) and optionally magnetometer
    (uT) at each time step; yaw is used as the device rotation.
    """

    def __init__(self, gain: float = 0.5, sample_rate_hz: float = 100.0) -> None:
        if _imufusion is None:
            raise RuntimeError("imufusion not installed; pip install imufusion")
        self._ahrs = _imufusion.Ahrs()
        self._ahrs.settings = _imufusion.Settings(
            _imufusion.CONVENTION_NWU,
            gain,
            GYRO_RANGE_DPS,
            ACCEL_REJECTION_DEG,
            MAGNETIC_REJECTION_DEG,
            int(RECOVERY_PERIOD_S * sample_rate_hz),
        )
        self._yaw: float = 0.0
        self._initialized = False
        self._magnetic = False

    def update(
        self,
        accel: Vector,
        gyro: Vector,
        sample_period_s: float,
        magnetometer: Optional[Vector] = None,
    ) -> None:
        """Update the AHRS with one IMU sample."""
        g = _np.array(gyro, dtype=float)
        a = _np.array(accel, dtype=float)
        if magnetometer is not None:
            m = _np.array(magnetometer, dtype=float)
            self._ahrs.update(g, a, m, sample_period_s)
        else:
            self._ahrs.update_no_magnetometer(g, a, sample_period_s)
        self._magnetic = magnetometer is not None
        euler = self._ahrs.quaternion.to_euler()
        self._yaw = float(euler[2])
        self._initialized = True

    @property
    def yaw_deg(self) -> float:
        """Yaw in degrees [0, 360), counter-clockwise (NWU)."""
        return normalize_degrees(self._yaw)

    @property
    def initialized(self) -> bool:
        """True after at least one update."""
        return self._initialized

    def sample(self) -> Optional[RotationAngle]:
        """Current yaw as a RotationAngle; None before the first update."""
        if not self._initialized:
            return None
        return RotationAngle(alpha=self.yaw_deg, absolute=self._magnetic)
