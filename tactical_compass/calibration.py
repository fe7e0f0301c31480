"""
Heading calibration settings: mirror (invert) and a fixed offset.

Applied as: heading = (360 - raw if invert else raw) + offset, mod 360.
Offset is in degrees, clamped to [-359, 359].
"""

import json
import logging
import math
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MAX_OFFSET = 359.0


def _to_offset(value: object, default: float = 0.0) -> float:
    """Convert a number to a clamped offset; else return default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        offset = float(value)
    except OverflowError:
        return default
    if not math.isfinite(offset):
        return default
    return max(-MAX_OFFSET, min(MAX_OFFSET, offset))


class CalibrationSettings:
    """
    User calibration for the heading display.

    invert mirrors the heading (for sensors mounted upside down or apps
    reporting counter-clockwise); offset corrects a systematic deviation.
    """

    __slots__ = ("invert", "offset")

    def __init__(self, invert: bool = False, offset: float = 0.0) -> None:
        self.invert: bool = bool(invert)
        self.offset: float = _to_offset(offset)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CalibrationSettings):
            return NotImplemented
        return self.invert == other.invert and self.offset == other.offset

    def __repr__(self) -> str:
        return f"CalibrationSettings(invert={self.invert}, offset={self.offset})"

    def to_dict(self) -> dict:
        """Serialise to a JSON-suitable dict."""
        return {"invert": self.invert, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: object) -> "CalibrationSettings":
        """Build from dict (e.g. JSON load). Unknown keys ignored."""
        if not isinstance(data, dict):
            return cls()
        invert = data.get("invert")
        return cls(
            invert=invert if isinstance(invert, bool) else False,
            offset=_to_offset(data.get("offset")),
        )


def load_calibration(path: Optional[Path]) -> CalibrationSettings:
    """Load settings from a JSON file. Missing/invalid file returns default."""
    if not path or not path.exists():
        return CalibrationSettings()
    try:
        text = path.read_text()
        data = json.loads(text)
        return CalibrationSettings.from_dict(data)
    except (OSError, ValueError, RecursionError) as e:
        logger.warning("Calibration load failed %s: %s", path, e)
        return CalibrationSettings()


def save_calibration(path: Path, settings: CalibrationSettings) -> bool:
    """Write settings to JSON file, replacing its content. Returns True on success."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(settings.to_dict(), indent=2) + "\n")
        return True
    except OSError as e:
        logger.warning("Calibration save failed %s: %s", path, e)
        return False
