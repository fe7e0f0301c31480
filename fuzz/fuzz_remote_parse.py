#!/usr/bin/env python3
"""
LibFuzzer harness for remote protocol JSON parsing (RemoteSource._parse_line).

Feed raw bytes (UTF-8). Fuzzer exercises JSON parsing, sample decoding and
the interpreter: every delivered heading must lie in [0, 360).
Run: python fuzz/fuzz_remote_parse.py fuzz/corpus/remote_parse/ [options]
"""

import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from tactical_compass.orientation import SensorReadingInterpreter
    from tactical_compass.sources.remote import RemoteSource


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: decode data as UTF-8 and parse as remote protocol line."""
    try:
        line = data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return
    source = RemoteSource(host="127.0.0.1", port=0)
    interpreter = SensorReadingInterpreter(source.screen_angle)

    def check(sample: object) -> None:
        reading = interpreter.interpret(sample)
        if reading is not None and not 0.0 <= reading.degrees < 360.0:
            raise AssertionError(f"heading out of range: {reading!r}")

    source.subscribe_orientation(check)
    source.subscribe_position(lambda update: None)
    source._parse_line(line)
    source.dispatch()


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
