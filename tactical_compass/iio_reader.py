"""
Read accelerometer, gyroscope, and magnetometer from Linux IIO sysfs.

Devices live under /sys/bus/iio/devices/iio:deviceN and expose
<prefix>_{x,y,z}_raw, <prefix>_scale and optional <prefix>_{x,y,z}_offset.
Values are converted to m/s^2 (accel), deg/s (gyro) and microtesla (magn).
"""

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

IIO_BASE = Path("/sys/bus/iio/devices")

ACCEL = "in_accel"
GYRO = "in_anglvel"
MAGN = "in_magn"

Vector = Tuple[float, float, float]

_AXES = ("x", "y", "z")


def _read_one(path: Path, default: float = 0.0) -> float:
    """Read a single value from sysfs; return default on error."""
    try:
        return float(path.read_text().strip())
    except (OSError, ValueError):
        return default


def has_channels(device_path: Path, prefix: str) -> bool:
    """Return True if device has x,y,z raw and scale for the given prefix."""
    for axis in _AXES:
        if not (device_path / f"{prefix}_{axis}_raw").exists():
            return False
    return (device_path / f"{prefix}_scale").exists()


def discover_iio_devices(base: Optional[Path] = None) -> List[Path]:
    """Return IIO device sysfs paths (e.g. .../iio:device0), sorted by name."""
    base = base or IIO_BASE
    if not base.exists():
        return []
    devices = [
        p for p in base.iterdir() if p.is_dir() and p.name.startswith("iio:device")
    ]
    return sorted(devices, key=lambda p: p.name)


def find_device(
    prefix: str,
    explicit: Optional[str] = None,
    prefer: Optional[Path] = None,
    base: Optional[Path] = None,
) -> Optional[Path]:
    """
    Return the IIO device path providing prefix channels.

    An explicit path is used if valid; otherwise prefer (e.g. the accel device,
    for combined IMUs) and then the first discovered device with the channels.
    """
    if explicit:
        p = Path(explicit)
        if p.exists() and has_channels(p, prefix):
            return p
        logger.warning("IIO path %s has no %s channels", explicit, prefix)
    if prefer and has_channels(prefer, prefix):
        return prefer
    for dev in discover_iio_devices(base):
        if has_channels(dev, prefix):
            return dev
    return None


class IIOReader:
    """
    Read scaled vectors from IIO sysfs channels.

    Scale and offsets are read once at construction.
    """

    def __init__(self, devices: Dict[str, Path]) -> None:
        self._devices = dict(devices)
        self._scale: Dict[str, float] = {}
        self._offset: Dict[str, List[float]] = {}
        for prefix, path in self._devices.items():
            self._scale[prefix] = _read_one(path / f"{prefix}_scale", 1.0)
            self._offset[prefix] = [
                _read_one(path / f"{prefix}_{axis}_offset", 0.0) for axis in _AXES
            ]
            logger.debug(
                "%s at %s scale=%s offset=%s",
                prefix,
                path,
                self._scale[prefix],
                self._offset[prefix],
            )

    def has(self, prefix: str) -> bool:
        return prefix in self._devices

    def read(self, prefix: str) -> Optional[Vector]:
        """Read one channel group (x, y, z) in scaled units; None if absent."""
        path = self._devices.get(prefix)
        if path is None:
            return None
        scale = self._scale[prefix]
        offset = self._offset[prefix]
        x, y, z = (
            (_read_one(path / f"{prefix}_{axis}_raw") + offset[i]) * scale
            for i, axis in enumerate(_AXES)
        )
        return (x, y, z)

    def read_accel(self) -> Optional[Vector]:
        """Accelerometer in m/s^2."""
        return self.read(ACCEL)

    def read_gyro(self) -> Optional[Vector]:
        """
        Gyroscope in deg/s.

        IIO anglvel is in rad/s; a small scale factor marks a rad/s device.
        """
        v = self.read(GYRO)
        if v is None:
            return None
        if self._scale[GYRO] < 0.1:
            return (math.degrees(v[0]), math.degrees(v[1]), math.degrees(v[2]))
        return v

    def read_magnetometer(self) -> Optional[Vector]:
        """
        Magnetometer in microtesla.

        IIO magn is in gauss; 1 gauss = 100 uT.
        """
        v = self.read(MAGN)
        if v is None:
            return None
        return (v[0] * 100.0, v[1] * 100.0, v[2] * 100.0)
