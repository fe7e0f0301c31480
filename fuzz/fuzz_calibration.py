#!/usr/bin/env python3
"""
LibFuzzer harness for calibration JSON (CalibrationSettings.from_dict).

Feed raw bytes as JSON. Fuzzer exercises from_dict and offset clamping with
arbitrary JSON, then applies the result to a heading.
Run: python fuzz/fuzz_calibration.py fuzz/corpus/calibration/ [options]
"""

import json
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from tactical_compass.calibration import CalibrationSettings
    from tactical_compass.heading import calibrate_heading


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: parse JSON and build CalibrationSettings."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return
    settings = CalibrationSettings.from_dict(obj)
    heading = calibrate_heading(123.4, settings)
    if not 0.0 <= heading < 360.0:
        raise AssertionError(f"calibrated heading out of range: {heading!r}")
    settings.to_dict()


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
