"""
Unit tests for CompassDisplay: heading pipeline, position handling, snapshot.
"""

import json

import pytest

from tactical_compass.calibration import CalibrationSettings
from tactical_compass.calibration_api import CalibrationManager
from tactical_compass.display import CompassDisplay
from tactical_compass.geodesy import CoordinateFormat
from tactical_compass.orientation import CompassHeading, RotationAngle
from tactical_compass.position import GeoPosition, PositionError
from tactical_compass.sources.remote import RemoteSource


def _display(settings: CalibrationSettings = None, **kwargs) -> CompassDisplay:
    settings = settings or CalibrationSettings()
    return CompassDisplay(lambda: settings, **kwargs)


class TestHeadingPipeline:
    """Samples run interpreter -> calibration -> tracker."""

    def test_no_heading_before_samples(self) -> None:
        display = _display()
        assert display.heading is None
        assert display.tracker.value is None

    def test_compass_heading_flows_through(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(42.0, 5.0))
        assert display.heading is not None
        assert display.heading.degrees == 42.0
        assert display.heading.is_absolute is True
        assert display.tracker.value == 42.0

    def test_calibration_applied(self) -> None:
        display = _display(CalibrationSettings(invert=True, offset=10.0))
        display.on_orientation(CompassHeading(30.0))
        assert display.heading is not None
        assert display.heading.degrees == pytest.approx(340.0)

    def test_calibration_change_takes_effect_immediately(self) -> None:
        manager = CalibrationManager(CalibrationSettings())
        display = CompassDisplay(manager.get_calibration)
        display.on_orientation(CompassHeading(100.0))
        manager.set_calibration(offset=-10.0)
        display.on_orientation(CompassHeading(100.0))
        assert display.heading is not None
        assert display.heading.degrees == pytest.approx(90.0)

    def test_tracker_unwraps_across_north(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(350.0))
        display.on_orientation(CompassHeading(10.0))
        assert display.tracker.value == pytest.approx(370.0)

    def test_dropped_sample_leaves_state(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(20.0))
        display.on_orientation(RotationAngle(None))
        assert display.heading is not None
        assert display.heading.degrees == 20.0
        assert display.tracker.value == 20.0

    def test_relative_sample_ignored_after_absolute(self) -> None:
        display = _display()
        display.on_orientation(RotationAngle(90.0, absolute=True))
        display.on_orientation(RotationAngle(45.0))
        assert display.heading is not None
        assert display.heading.degrees == 270.0

    def test_screen_angle_used(self) -> None:
        display = _display(screen_angle=lambda: 90.0)
        display.on_orientation(RotationAngle(0.0))
        assert display.heading is not None
        assert display.heading.degrees == 270.0


class TestPosition:
    """Position fixes and errors never disturb the heading."""

    def test_fix_formats_coordinates(self) -> None:
        display = _display()
        display.on_position(GeoPosition(60.1, 24.9, 5.0))
        assert display.coordinates() == "60.10000, 24.90000"

    def test_no_fix_gives_none(self) -> None:
        assert _display().coordinates() is None

    def test_error_keeps_last_fix_and_heading(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(77.0))
        display.on_position(GeoPosition(60.1, 24.9))
        display.on_position(PositionError.PERMISSION_DENIED)
        assert display.position_error is PositionError.PERMISSION_DENIED
        assert display.position == GeoPosition(60.1, 24.9)
        assert display.heading is not None
        assert display.heading.degrees == 77.0

    def test_fix_clears_error(self) -> None:
        display = _display()
        display.on_position(PositionError.UNAVAILABLE)
        display.on_position(GeoPosition(1.0, 2.0))
        assert display.position_error is None

    def test_out_of_range_fix_dropped(self) -> None:
        display = _display()
        display.on_position(GeoPosition(95.0, 10.0))
        assert display.position is None


class TestCoordinateFormat:
    """Format cycling follows the fixed order."""

    def test_initial_format(self) -> None:
        display = _display(coordinate_format=CoordinateFormat.MAIDENHEAD)
        display.on_position(GeoPosition(60.17, 24.94))
        assert display.coordinates() == "KP20le"

    def test_cycle(self) -> None:
        display = _display()
        names = [display.cycle_format() for _ in range(4)]
        assert names == ["national_grid", "military_grid", "maidenhead", "decimal"]

    def test_cycle_changes_output(self) -> None:
        display = _display()
        display.on_position(GeoPosition(0.0, 27.0))
        display.cycle_format()
        assert display.coordinates() == "N 0 E 500000"
        display.cycle_format()
        assert display.coordinates() == "UTM 35V 500000 0"


class TestSnapshot:
    """JSON snapshot for rendering clients."""

    def test_empty_snapshot(self) -> None:
        snap = _display().snapshot()
        assert snap["heading"] is None
        assert snap["cardinal"] is None
        assert snap["continuous_heading"] is None
        assert snap["coordinates"] is None
        assert snap["coordinate_format"] == "decimal"
        assert snap["position_error"] is None

    def test_full_snapshot(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(44.4, 3.0))
        display.on_position(GeoPosition(60.1, 24.9))
        display.on_position(PositionError.UNAVAILABLE)
        snap = display.snapshot()
        assert snap["heading"] == "044"
        assert snap["heading_deg"] == pytest.approx(44.4)
        assert snap["cardinal"] == "NE"
        assert snap["absolute"] is True
        assert snap["accuracy"] == 3.0
        assert snap["coordinates"] == "60.10000, 24.90000"
        assert snap["position_error"] == "unavailable"

    def test_readout_rounds_to_north(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(359.7))
        assert display.snapshot()["heading"] == "000"

    def test_snapshot_is_json_serialisable(self) -> None:
        display = _display()
        display.on_orientation(RotationAngle(10.0))
        display.on_position(GeoPosition(1.0, 2.0, None))
        assert json.loads(json.dumps(display.snapshot()))["heading"] == "350"


class TestAttach:
    """attach() subscribes and starts a new interpreter session."""

    def test_attach_resets_lock_and_tracker(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(10.0))
        source = RemoteSource(host="127.0.0.1", port=0)
        subs = display.attach(source, source)
        assert display.interpreter.absolute_locked is False
        assert display.tracker.value is None
        source._parse_line('{"alpha":90}')
        source.dispatch()
        assert display.heading is not None
        assert display.heading.degrees == 270.0
        for sub in subs:
            sub.unsubscribe()

    def test_relative_client_after_absolute_client_disconnects(self) -> None:
        display = _display()
        source = RemoteSource(host="127.0.0.1", port=0)
        subs = display.attach(source, source)
        source._parse_line('{"webkitCompassHeading":100}')
        source.dispatch()
        for alpha in (10, 50):
            source._parse_line(f'{{"alpha":{alpha}}}')
            source.dispatch()
        assert display.heading is not None
        assert display.heading.degrees == 100.0
        source._client_finished()
        source._parse_line('{"alpha":90}')
        source.dispatch()
        assert display.interpreter.absolute_locked is False
        assert display.heading.degrees == 270.0
        for sub in subs:
            sub.unsubscribe()

    def test_stream_end_keeps_continuous_heading(self) -> None:
        display = _display()
        display.on_orientation(CompassHeading(350.0))
        display.on_stream_end()
        display.on_orientation(RotationAngle(350.0))
        assert display.tracker.value == pytest.approx(370.0)
