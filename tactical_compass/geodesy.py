"""
Coordinate formatting: decimal degrees, Maidenhead locator, ETRS-TM35FIN
national grid and an approximate UTM military grid reference.

All functions are pure and never raise for finite input. Results outside
lat [-90, 90] / lon [-180, 180] are not meaningful.
"""

import enum
import math
from typing import Tuple

# GRS80 ellipsoid (ETRS89)
GRS80_A = 6378137.0
GRS80_F = 1 / 298.257222101

# ETRS-TM35FIN projection
TM35_LON0_DEG = 27.0
TM35_K0 = 0.9996
TM35_FALSE_EASTING = 500000.0
TM35_FALSE_NORTHING = 0.0

# UTM, WGS84 radius used by the short easting series
UTM_K0 = 0.9996
UTM_FALSE_EASTING = 500000.0
UTM_RADIUS = 6378137.0
# Latitude band for 56N-64N; no lookup table for other bands.
UTM_BAND = "V"

_EDGE = 1e-9
_ATANH_LIMIT = 1.0 - 1e-15


class CoordinateFormat(enum.Enum):
    """Coordinate representations offered to the display."""

    DECIMAL = "decimal"
    NATIONAL_GRID = "national_grid"
    MILITARY_GRID = "military_grid"
    MAIDENHEAD = "maidenhead"


FORMAT_CYCLE = (
    CoordinateFormat.DECIMAL,
    CoordinateFormat.NATIONAL_GRID,
    CoordinateFormat.MILITARY_GRID,
    CoordinateFormat.MAIDENHEAD,
)


def next_format(current: CoordinateFormat) -> CoordinateFormat:
    """Return the format following current in the display cycle."""
    i = FORMAT_CYCLE.index(current)
    return FORMAT_CYCLE[(i + 1) % len(FORMAT_CYCLE)]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def to_decimal(lat: float, lon: float) -> str:
    """Decimal degrees with 5 decimals: "60.10000, 24.90000"."""
    return f"{lat:.5f}, {lon:.5f}"


def to_maidenhead(lat: float, lon: float) -> str:
    """
    6-character Maidenhead locator (field, square, subsquare), e.g. "KP20le".

    Field: 20 x 10 degrees, letters A-R. Square: 2 x 1 degrees, digits.
    Subsquare: 5 x 2.5 minutes, letters a-x.
    """
    # Keep lon=180 / lat=90 inside field R.
    x = _clamp(lon + 180.0, 0.0, 360.0 - _EDGE)
    y = _clamp(lat + 90.0, 0.0, 180.0 - _EDGE)

    field_lon = int(x // 20)
    field_lat = int(y // 10)
    square_lon = int((x % 20) // 2)
    square_lat = int(y % 10)
    sub_lon = int(((x % 20) % 2) * 12)
    sub_lat = int((y % 1) * 24)

    return (
        chr(ord("A") + field_lon)
        + chr(ord("A") + field_lat)
        + str(square_lon)
        + str(square_lat)
        + chr(ord("a") + sub_lon)
        + chr(ord("a") + sub_lat)
    )


def _tm_projection(lat: float, lon: float) -> Tuple[float, float]:
    """
    ETRS-TM35FIN northing and easting in metres (JHS 197 formulas).

    Isometric latitude -> conformal latitude -> Gauss-Krueger series to 4th order.
    """
    a = GRS80_A
    f = GRS80_F
    phi = math.radians(lat)
    lam = math.radians(lon)
    lam0 = math.radians(TM35_LON0_DEG)

    e2 = 2 * f - f * f
    e = math.sqrt(e2)
    n = f / (2 - f)

    a1 = a / (1 + n) * (1 + n ** 2 / 4 + n ** 4 / 64)
    h1 = n / 2 - 2 * n ** 2 / 3 + 37 * n ** 3 / 96
    h2 = n ** 2 / 48 + 15 * n ** 3 / 256
    h3 = 17 * n ** 3 / 480
    h4 = 4397 * n ** 4 / 161280

    q = math.asinh(math.tan(phi)) - e * math.atanh(e * math.sin(phi))
    beta = math.atan(math.sinh(q))
    eta0 = math.atanh(
        _clamp(math.cos(beta) * math.sin(lam - lam0), -_ATANH_LIMIT, _ATANH_LIMIT)
    )
    ksi0 = math.asin(_clamp(math.sin(beta) * math.cosh(eta0), -1.0, 1.0))

    ksi = ksi0
    eta = eta0
    for k, h in enumerate((h1, h2, h3, h4), start=1):
        ksi += h * math.sin(2 * k * ksi0) * math.cosh(2 * k * eta0)
        eta += h * math.cos(2 * k * ksi0) * math.sinh(2 * k * eta0)

    northing = a1 * ksi * TM35_K0 + TM35_FALSE_NORTHING
    easting = a1 * eta * TM35_K0 + TM35_FALSE_EASTING
    return northing, easting


def to_national_grid(lat: float, lon: float) -> str:
    """ETRS-TM35FIN grid reference rounded to metres: "N {northing} E {easting}"."""
    northing, easting = _tm_projection(lat, lon)
    return f"N {_round_half_up(northing)} E {_round_half_up(easting)}"


def utm_zone(lon: float) -> int:
    """UTM zone number for a longitude."""
    return int(math.floor((lon + 180.0) / 6.0)) + 1


def to_military_grid(lat: float, lon: float) -> str:
    """
    Approximate UTM reference "{zone}{band} {easting} {northing}".

    Uses a short meridional-distance series and a spherical easting, good to a
    few hundred metres near the central meridian and worse toward the zone
    edges. The band letter is fixed and there is no 100 km square lettering.
    """
    zone = utm_zone(lon)
    lam0 = math.radians((zone - 1) * 6 - 180 + 3)
    phi = math.radians(lat)
    lam = math.radians(lon)

    northing = lat * 111132.92 - 559.82 * math.sin(2 * phi) + 1.175 * math.sin(4 * phi)
    easting = UTM_FALSE_EASTING + (lam - lam0) * math.cos(phi) * UTM_RADIUS * UTM_K0

    return f"{zone}{UTM_BAND} {_round_half_up(easting)} {_round_half_up(northing)}"


def format_coordinates(lat: float, lon: float, fmt: CoordinateFormat) -> str:
    """Format a position in the requested representation."""
    if fmt is CoordinateFormat.MAIDENHEAD:
        return to_maidenhead(lat, lon)
    if fmt is CoordinateFormat.NATIONAL_GRID:
        return to_national_grid(lat, lon)
    if fmt is CoordinateFormat.MILITARY_GRID:
        return f"UTM {to_military_grid(lat, lon)}"
    return to_decimal(lat, lon)
