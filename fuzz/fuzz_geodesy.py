#!/usr/bin/env python3
"""
LibFuzzer harness for coordinate formatting (format_coordinates).

Consumes two floats from the input and formats them in every coordinate
format. Out-of-range and non-finite inputs are skipped, as the display
drops such fixes before formatting.
Run: python fuzz/fuzz_geodesy.py fuzz/corpus/geodesy/ [options]
"""

import math
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from tactical_compass.geodesy import CoordinateFormat, format_coordinates


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: format one lat/lon pair in all formats."""
    fdp = atheris.FuzzedDataProvider(data)
    lat = fdp.ConsumeFloat()
    lon = fdp.ConsumeFloat()
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return
    for fmt in CoordinateFormat:
        text = format_coordinates(lat, lon, fmt)
        if not text:
            raise AssertionError(f"empty output for {fmt} at {lat!r}, {lon!r}")


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
