"""
Configuration defaults and parsing for tactical-compass.
"""

import argparse
from dataclasses import dataclass
from typing import Optional

from tactical_compass.geodesy import CoordinateFormat


@dataclass
class Config:
    """Runtime configuration."""

    source: str = "remote"
    remote_host: str = "0.0.0.0"
    remote_port: int = 2949
    gpsd_host: str = "127.0.0.1"
    gpsd_port: int = 2947
    display_host: str = "127.0.0.1"
    display_port: int = 2950
    imu_rate_hz: float = 100.0
    output_rate_hz: float = 10.0
    fusion_gain: float = 0.5
    accel_path: Optional[str] = None
    gyro_path: Optional[str] = None
    magnetometer_path: Optional[str] = None
    calibration_file: Optional[str] = None
    calibration_port: int = 0
    coordinate_format: CoordinateFormat = CoordinateFormat.DECIMAL
    debug: bool = False


def _positive_float(text: str) -> float:
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {text}")
    return value


def parse_args(args: Optional[list] = None) -> Config:
    """Parse command-line arguments into Config."""
    parser = argparse.ArgumentParser(
        description="Heading and position display core: stream calibrated "
        "heading and formatted coordinates to rendering clients."
    )
    parser.add_argument(
        "--source",
        choices=("linux", "remote", "auto"),
        default="remote",
        help="Source: linux (IIO+gpsd), remote (TCP), auto (default: remote)",
    )
    parser.add_argument(
        "--remote-host",
        default="0.0.0.0",
        help="Bind address for remote source (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--remote-port",
        type=int,
        default=2949,
        help="Port for remote source (default: 2949)",
    )
    parser.add_argument(
        "--gpsd-host",
        default="127.0.0.1",
        help="gpsd host (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--gpsd-port",
        type=int,
        default=2947,
        help="gpsd port (default: 2947)",
    )
    parser.add_argument(
        "--display-host",
        default="127.0.0.1",
        help="Bind address for display stream server (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--display-port",
        type=int,
        default=2950,
        help="Port for display stream server (default: 2950)",
    )
    parser.add_argument(
        "--imu-rate",
        type=_positive_float,
        default=100.0,
        help="IMU sample rate in Hz for the linux source (default: 100)",
    )
    parser.add_argument(
        "--output-rate",
        type=_positive_float,
        default=10.0,
        help="Display update rate in Hz (default: 10)",
    )
    parser.add_argument(
        "--fusion-gain",
        type=float,
        default=0.5,
        help="AHRS fusion gain 0-1 (default: 0.5)",
    )
    parser.add_argument(
        "--accel-path",
        default=None,
        help="IIO sysfs path for accelerometer (e.g. /sys/bus/iio/devices/iio:device0)",
    )
    parser.add_argument(
        "--gyro-path",
        default=None,
        help="IIO sysfs path for gyroscope (default: auto-detect)",
    )
    parser.add_argument(
        "--magnetometer-path",
        default=None,
        help="IIO sysfs path for magnetometer (default: auto-detect)",
    )
    parser.add_argument(
        "--calibration-file",
        default=None,
        help="Load/save heading calibration from JSON file (optional)",
    )
    parser.add_argument(
        "--calibration-port",
        type=int,
        default=0,
        help="TCP port for calibration API (0=disabled, default 0)",
    )
    parser.add_argument(
        "--coordinate-format",
        choices=[f.value for f in CoordinateFormat],
        default=CoordinateFormat.DECIMAL.value,
        help="Initial coordinate format (default: decimal)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parsed = parser.parse_args(args)
    return Config(
        source=parsed.source,
        remote_host=parsed.remote_host,
        remote_port=parsed.remote_port,
        gpsd_host=parsed.gpsd_host,
        gpsd_port=parsed.gpsd_port,
        display_host=parsed.display_host,
        display_port=parsed.display_port,
        imu_rate_hz=parsed.imu_rate,
        output_rate_hz=parsed.output_rate,
        fusion_gain=parsed.fusion_gain,
        accel_path=parsed.accel_path,
        gyro_path=parsed.gyro_path,
        magnetometer_path=parsed.magnetometer_path,
        calibration_file=parsed.calibration_file,
        calibration_port=parsed.calibration_port,
        coordinate_format=CoordinateFormat(parsed.coordinate_format),
        debug=parsed.debug,
    )
