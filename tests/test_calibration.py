"""
Unit tests for calibration settings: serialisation, clamping, load/save.
"""

import tempfile
from pathlib import Path

from tactical_compass.calibration import (
    CalibrationSettings,
    load_calibration,
    save_calibration,
)


class TestCalibrationSettings:
    """Construction, equality and clamping."""

    def test_defaults(self) -> None:
        settings = CalibrationSettings()
        assert settings.invert is False
        assert settings.offset == 0.0

    def test_offset_clamped(self) -> None:
        assert CalibrationSettings(offset=500).offset == 359.0
        assert CalibrationSettings(offset=-500).offset == -359.0

    def test_non_finite_offset_defaults(self) -> None:
        assert CalibrationSettings(offset=float("nan")).offset == 0.0

    def test_equality(self) -> None:
        assert CalibrationSettings(True, 5) == CalibrationSettings(True, 5.0)
        assert CalibrationSettings(True, 5) != CalibrationSettings(False, 5)

    def test_oversized_integer_offset_defaults(self) -> None:
        assert CalibrationSettings(offset=10 ** 400).offset == 0.0


class TestCalibrationFromDict:
    """from_dict and to_dict round-trip and handle invalid input."""

    def test_from_dict_valid(self) -> None:
        settings = CalibrationSettings.from_dict({"invert": True, "offset": -12.5})
        assert settings.invert is True
        assert settings.offset == -12.5

    def test_from_dict_partial(self) -> None:
        settings = CalibrationSettings.from_dict({"offset": 7})
        assert settings.invert is False
        assert settings.offset == 7.0

    def test_from_dict_invalid_returns_default(self) -> None:
        assert CalibrationSettings.from_dict("not a dict") == CalibrationSettings()
        assert CalibrationSettings.from_dict(None) == CalibrationSettings()

    def test_from_dict_wrong_types_ignored(self) -> None:
        settings = CalibrationSettings.from_dict({"invert": "yes", "offset": "10"})
        assert settings == CalibrationSettings()

    def test_from_dict_bool_offset_ignored(self) -> None:
        assert CalibrationSettings.from_dict({"offset": True}).offset == 0.0

    def test_to_dict_roundtrip(self) -> None:
        settings = CalibrationSettings(invert=True, offset=-45.0)
        assert CalibrationSettings.from_dict(settings.to_dict()) == settings


class TestLoadSaveCalibration:
    """load_calibration and save_calibration with files."""

    def test_load_missing_path_returns_default(self) -> None:
        settings = load_calibration(Path("/nonexistent/path/cal.json"))
        assert settings == CalibrationSettings()

    def test_load_none_returns_default(self) -> None:
        assert load_calibration(None) == CalibrationSettings()

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "cal.json"
            settings = CalibrationSettings(invert=True, offset=17.0)
            assert save_calibration(path, settings) is True
            assert load_calibration(path) == settings

    def test_save_overwrites(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "cal.json"
            save_calibration(path, CalibrationSettings(invert=True, offset=1.0))
            save_calibration(path, CalibrationSettings(offset=-2.0))
            save_calibration(path, CalibrationSettings(offset=-2.0))
            assert load_calibration(path) == CalibrationSettings(offset=-2.0)

    def test_save_creates_parent_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "a" / "b" / "cal.json"
            assert save_calibration(path, CalibrationSettings()) is True
            assert path.exists()

    def test_save_to_directory_fails(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            assert save_calibration(Path(d), CalibrationSettings()) is False

    def test_load_invalid_json_returns_default(self) -> None:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("not valid json")
            path = Path(f.name)
        try:
            assert load_calibration(path) == CalibrationSettings()
        finally:
            path.unlink()

    def test_load_binary_garbage_returns_default(self) -> None:
        with tempfile.NamedTemporaryFile(mode="wb", suffix=".json", delete=False) as f:
            f.write(b"\xff\xfe\x00garbage")
            path = Path(f.name)
        try:
            assert load_calibration(path) == CalibrationSettings()
        finally:
            path.unlink()

    def test_load_oversized_integer_offset_returns_default_offset(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "cal.json"
            path.write_text('{"invert": true, "offset": 1' + "0" * 400 + "}")
            assert load_calibration(path) == CalibrationSettings(invert=True)

    def test_load_deeply_nested_json_returns_default(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "cal.json"
            path.write_text("[" * 200000)
            assert load_calibration(path) == CalibrationSettings()
