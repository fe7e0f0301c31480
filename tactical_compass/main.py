"""
Main loop: deliver orientation and position events to the display pipeline
and stream display snapshots to rendering clients.
"""

import logging
import select
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple, Union

from tactical_compass.calibration import load_calibration
from tactical_compass.calibration_api import CalibrationManager, run_calibration_server
from tactical_compass.config import Config, parse_args
from tactical_compass.display import CompassDisplay
from tactical_compass.output_server import DisplayTcpServer
from tactical_compass.sources import (
    LinuxSource,
    RemoteSource,
    SensorUnavailableError,
    Subscription,
    create_linux_source,
    create_remote_source,
)

logger = logging.getLogger(__name__)

_shutdown = False

Source = Union[LinuxSource, RemoteSource]


def _signal_handler(signum: int, frame: Optional[object]) -> None:
    global _shutdown
    _shutdown = True


def _linux(config: Config) -> LinuxSource:
    return create_linux_source(
        config.gpsd_host,
        config.gpsd_port,
        config.imu_rate_hz,
        fusion_gain=config.fusion_gain,
        accel_path=config.accel_path,
        gyro_path=config.gyro_path,
        magnetometer_path=config.magnetometer_path,
    )


def create_source(config: Config) -> Optional[Source]:
    """
    Create the configured source.

    Returns None (after logging the reason once) when no source is usable.
    """
    if config.source in ("linux", "auto"):
        try:
            source = _linux(config)
            logger.info("Using Linux source (IIO + gpsd)")
            return source
        except SensorUnavailableError as e:
            if config.source == "linux":
                logger.error("Orientation sensor unavailable: %s", e)
                return None
            logger.info("Auto: Linux source unavailable (%s), using remote", e)
    remote = create_remote_source(config.remote_host, config.remote_port)
    if remote is None:
        logger.error("Remote source bind failed")
    return remote


def run(config: Config) -> int:  # noqa: C901
    """
    Run the display core until SIGINT/SIGTERM.

    Returns exit code (0 = success).
    """
    global _shutdown
    _shutdown = False
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    log_level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    source = create_source(config)
    if source is None:
        return 1

    cal_path = Path(config.calibration_file) if config.calibration_file else None
    cal_manager = CalibrationManager(load_calibration(cal_path), save_path=cal_path)
    display = CompassDisplay(
        cal_manager.get_calibration,
        screen_angle=source.screen_angle,
        coordinate_format=config.coordinate_format,
    )

    if config.calibration_port > 0:
        threading.Thread(
            target=run_calibration_server,
            args=(
                cal_manager,
                "127.0.0.1",
                config.calibration_port,
                lambda: _shutdown,
                display.cycle_format,
            ),
            daemon=True,
        ).start()

    server = DisplayTcpServer(host=config.display_host, port=config.display_port)
    if not server.start():
        if isinstance(source, RemoteSource):
            source.stop()
        return 1

    subscriptions: Tuple[Subscription, ...] = display.attach(source, source)
    tick = 1.0 / config.imu_rate_hz if isinstance(source, LinuxSource) else 0.02
    output_interval = 1.0 / config.output_rate_hz
    last_output_time = 0.0
    last_tick = time.monotonic()

    try:
        while not _shutdown:
            now = time.monotonic()

            sock = server.get_socket()
            if sock:
                r, _, _ = select.select(
                    [sock], [], [], min(tick, output_interval, 0.1)
                )
                if r:
                    server.accept_new()

            while (time.monotonic() - last_tick) >= tick and not _shutdown:
                source.dispatch()
                last_tick += tick
            if last_tick < now:
                last_tick = now

            if (now - last_output_time) >= output_interval:
                last_output_time = now
                server.send_snapshot(display.snapshot())

    except KeyboardInterrupt:
        pass
    finally:
        for sub in subscriptions:
            sub.unsubscribe()
        server.stop()
        if isinstance(source, RemoteSource):
            source.stop()

    return 0


def main() -> None:
    """Entry point for the tactical-compass script."""
    config = parse_args()
    sys.exit(run(config))


if __name__ == "__main__":
    main()
