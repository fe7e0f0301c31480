"""
Unit tests for coordinate formatting.
"""

import re
from typing import Tuple

import pytest

from tactical_compass.geodesy import (
    FORMAT_CYCLE,
    CoordinateFormat,
    format_coordinates,
    next_format,
    to_decimal,
    to_maidenhead,
    to_military_grid,
    to_national_grid,
    utm_zone,
)

MAIDENHEAD_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[a-z]{2}$")
NATIONAL_GRID_RE = re.compile(r"^N (-?\d+) E (-?\d+)$")
MILITARY_GRID_RE = re.compile(r"^(\d+)V (-?\d+) (-?\d+)$")


def _grid_numbers(text: str) -> Tuple[int, int]:
    m = NATIONAL_GRID_RE.match(text)
    assert m is not None, text
    return int(m.group(1)), int(m.group(2))


class TestDecimal:
    """Decimal degrees with 5 decimals."""

    def test_helsinki(self) -> None:
        assert format_coordinates(60.1, 24.9, CoordinateFormat.DECIMAL) == (
            "60.10000, 24.90000"
        )

    def test_negative(self) -> None:
        assert to_decimal(-33.865143, 151.2099) == "-33.86514, 151.20990"


class TestMaidenhead:
    """6-character Maidenhead locator."""

    def test_helsinki(self) -> None:
        assert to_maidenhead(60.17, 24.94) == "KP20le"

    def test_origin(self) -> None:
        assert to_maidenhead(0.0, 0.0) == "JJ00aa"

    def test_south_west_corner(self) -> None:
        assert to_maidenhead(-90.0, -180.0) == "AA00aa"

    @pytest.mark.parametrize(
        "lat,lon",
        [
            (90.0, 180.0),
            (-90.0, 180.0),
            (89.9999, -179.9999),
            (45.5, -122.6),
            (-33.9, 18.4),
            (60.17, 24.94),
        ],
    )
    def test_always_six_characters(self, lat: float, lon: float) -> None:
        loc = to_maidenhead(lat, lon)
        assert MAIDENHEAD_RE.match(loc), loc

    def test_upper_edge_stays_in_field_r(self) -> None:
        loc = to_maidenhead(90.0, 180.0)
        assert loc[0] == "R" and loc[1] == "R"

    def test_format_dispatch(self) -> None:
        assert format_coordinates(60.17, 24.94, CoordinateFormat.MAIDENHEAD) == "KP20le"


class TestNationalGrid:
    """ETRS-TM35FIN projection."""

    def test_central_meridian_on_equator(self) -> None:
        assert to_national_grid(0.0, 27.0) == "N 0 E 500000"

    def test_central_meridian_60n_is_scaled_meridian_arc(self) -> None:
        # GRS80 meridian arc to 60N is 6654072.8 m; times k0 0.9996
        northing, easting = _grid_numbers(to_national_grid(60.0, 27.0))
        assert northing == pytest.approx(6651411, abs=50)
        assert easting == 500000

    def test_helsinki_in_expected_block(self) -> None:
        northing, easting = _grid_numbers(to_national_grid(60.1699, 24.9384))
        assert 6660000 < northing < 6690000
        assert 380000 < easting < 395000

    def test_west_of_meridian_has_smaller_easting(self) -> None:
        _, west = _grid_numbers(to_national_grid(65.0, 24.0))
        _, east = _grid_numbers(to_national_grid(65.0, 30.0))
        assert west < 500000 < east

    def test_symmetric_about_meridian(self) -> None:
        n1, e1 = _grid_numbers(to_national_grid(62.0, 24.0))
        n2, e2 = _grid_numbers(to_national_grid(62.0, 30.0))
        assert abs(n1 - n2) <= 1
        assert abs((500000 - e1) - (e2 - 500000)) <= 1

    def test_extreme_longitude_does_not_raise(self) -> None:
        assert NATIONAL_GRID_RE.match(to_national_grid(0.0, 117.0))
        assert NATIONAL_GRID_RE.match(to_national_grid(0.0, -63.0))

    def test_poles_do_not_raise(self) -> None:
        assert NATIONAL_GRID_RE.match(to_national_grid(90.0, 27.0))
        assert NATIONAL_GRID_RE.match(to_national_grid(-90.0, 0.0))

    def test_format_dispatch(self) -> None:
        assert format_coordinates(0.0, 27.0, CoordinateFormat.NATIONAL_GRID) == (
            "N 0 E 500000"
        )


class TestMilitaryGrid:
    """Approximate UTM reference."""

    @pytest.mark.parametrize(
        "lon,zone",
        [(-180.0, 1), (-177.0, 1), (0.0, 31), (24.94, 35), (27.0, 35), (29.99, 35)],
    )
    def test_zone(self, lon: float, zone: int) -> None:
        assert utm_zone(lon) == zone

    def test_format(self) -> None:
        text = to_military_grid(60.1699, 24.9384)
        m = MILITARY_GRID_RE.match(text)
        assert m is not None, text
        assert m.group(1) == "35"

    def test_central_meridian_easting(self) -> None:
        m = MILITARY_GRID_RE.match(to_military_grid(62.0, 27.0))
        assert m is not None
        assert m.group(2) == "500000"

    def test_equator_northing_zero(self) -> None:
        assert to_military_grid(0.0, 27.0) == "35V 500000 0"

    def test_west_of_meridian(self) -> None:
        m = MILITARY_GRID_RE.match(to_military_grid(60.1699, 24.9384))
        assert m is not None
        assert int(m.group(2)) < 500000
        assert 6680000 < int(m.group(3)) < 6690000

    def test_format_dispatch_labels_utm(self) -> None:
        assert format_coordinates(0.0, 27.0, CoordinateFormat.MILITARY_GRID) == (
            "UTM 35V 500000 0"
        )


class TestFormatCycle:
    """Fixed display order of coordinate formats."""

    def test_order(self) -> None:
        assert FORMAT_CYCLE == (
            CoordinateFormat.DECIMAL,
            CoordinateFormat.NATIONAL_GRID,
            CoordinateFormat.MILITARY_GRID,
            CoordinateFormat.MAIDENHEAD,
        )

    def test_next_wraps(self) -> None:
        assert next_format(CoordinateFormat.MAIDENHEAD) is CoordinateFormat.DECIMAL

    def test_full_cycle_returns_to_start(self) -> None:
        fmt = CoordinateFormat.NATIONAL_GRID
        for _ in range(len(FORMAT_CYCLE)):
            fmt = next_format(fmt)
        assert fmt is CoordinateFormat.NATIONAL_GRID
