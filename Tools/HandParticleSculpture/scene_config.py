"""
Scene configuration loader for HandParticleSculpture.

Loads and validates JSON scene files. Properties use camelCase keys;
out-of-range values are clamped with a warning instead of failing.
"""

import json
import math
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from .logger import get_logger
from .config import (
    DEFAULT_COLOR,
    DEFAULT_SHAPE,
    DEFAULT_ROTATION_SENSITIVITY,
    DEFAULT_DISTANCE_SENSITIVITY,
    DEFAULT_MIN_DISTANCE,
    DEFAULT_MAX_DISTANCE,
    DEFAULT_BREATHING_SPEED,
    DEFAULT_BREATHING_INTENSITY,
    DEFAULT_GLYPH_TEXT,
    PARTICLE_COUNT_RANGE,
    PARTICLE_SIZE_RANGE,
    SENSITIVITY_RANGE,
    DISTANCE_SENSITIVITY_RANGE,
    CAMERA_DISTANCE_RANGE,
    BREATHING_SPEED_RANGE,
    BREATHING_INTENSITY_RANGE,
)
from .device_profile import DeviceClass
from .shape_library import SHAPE_NAMES

logger = get_logger("SceneConfig")

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


class SceneConfigError(Exception):
    """Raised when scene configuration loading fails."""
    pass


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """
    Convert '#rrggbb' to an OpenCV BGR tuple.

    Raises:
        ValueError: If the string is not a 6-digit hex color.
    """
    match = _HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid color: {value!r}")
    digits = match.group(1)
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def _is_number(value: Any) -> bool:
    return (
        not isinstance(value, bool)
        and isinstance(value, (int, float))
        and math.isfinite(value)
    )


def _clamp(name: str, value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    if value < low or value > high:
        clamped = max(low, min(high, value))
        logger.warning(f"{name}={value} out of range [{low}, {high}], clamped to {clamped}")
        return clamped
    return value


@dataclass
class SceneConfig:
    """
    User-facing scene options.

    Attributes:
        particle_count: Number of particles (None = device profile default).
        particle_size: Base point size (None = device profile default).
        color: Normal palette color as '#rrggbb'.
        shape: Configured target shape.
        rotation_sensitivity: Multiplier on palm yaw.
        distance_sensitivity: World units per unit of hand distance.
        min_distance: Closest camera distance.
        max_distance: Farthest camera distance.
        breathing_speed: Breathing oscillator frequency in Hz.
        breathing_intensity: Breathing amplitude as a scale fraction.
        device_class: Device class override (None = detect).
        glyph_text: Text rendered for the heart override shape.
    """

    particle_count: Optional[int] = None
    particle_size: Optional[float] = None
    color: str = DEFAULT_COLOR
    shape: str = DEFAULT_SHAPE
    rotation_sensitivity: float = DEFAULT_ROTATION_SENSITIVITY
    distance_sensitivity: float = DEFAULT_DISTANCE_SENSITIVITY
    min_distance: float = DEFAULT_MIN_DISTANCE
    max_distance: float = DEFAULT_MAX_DISTANCE
    breathing_speed: float = DEFAULT_BREATHING_SPEED
    breathing_intensity: float = DEFAULT_BREATHING_INTENSITY
    device_class: Optional[str] = None
    glyph_text: str = DEFAULT_GLYPH_TEXT

    _JSON_KEYS = {
        "particleCount": "particle_count",
        "particleSize": "particle_size",
        "color": "color",
        "shape": "shape",
        "rotationSensitivity": "rotation_sensitivity",
        "distanceSensitivity": "distance_sensitivity",
        "minDistance": "min_distance",
        "maxDistance": "max_distance",
        "breathingSpeed": "breathing_speed",
        "breathingIntensity": "breathing_intensity",
        "deviceClass": "device_class",
        "glyphText": "glyph_text",
    }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneConfig":
        """
        Create SceneConfig from a dictionary with camelCase keys.

        Unknown keys are ignored with a warning. Values are sanitized.
        """
        kwargs = {}
        for key, value in data.items():
            attr = cls._JSON_KEYS.get(key)
            if attr is None:
                logger.warning(f"Ignoring unknown scene option: {key}")
                continue
            kwargs[attr] = value
        return cls(**kwargs).sanitized()

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to camelCase keys."""
        values = asdict(self)
        return {key: values[attr] for key, attr in self._JSON_KEYS.items()}

    @property
    def color_bgr(self) -> tuple[int, int, int]:
        return parse_hex_color(self.color)

    def sanitized(self) -> "SceneConfig":
        """
        Return a copy with every value coerced into its valid range.

        Never raises; invalid values fall back to defaults with a warning.
        """
        defaults = SceneConfig()
        values = {f.name: getattr(self, f.name) for f in fields(self)}

        count = values["particle_count"]
        if count is not None:
            if not _is_number(count):
                logger.warning(f"Invalid particleCount {count!r}, using device default")
                count = None
            else:
                count = int(_clamp("particleCount", int(count), PARTICLE_COUNT_RANGE))
        values["particle_count"] = count

        size = values["particle_size"]
        if size is not None:
            if not _is_number(size):
                logger.warning(f"Invalid particleSize {size!r}, using device default")
                size = None
            else:
                size = _clamp("particleSize", float(size), PARTICLE_SIZE_RANGE)
        values["particle_size"] = size

        try:
            parse_hex_color(values["color"])
        except ValueError:
            logger.warning(f"Invalid color {values['color']!r}, using default: {defaults.color}")
            values["color"] = defaults.color

        if values["shape"] not in SHAPE_NAMES:
            logger.warning(f"Unknown shape {values['shape']!r}, using default: {defaults.shape}")
            values["shape"] = defaults.shape

        for name, bounds in (
            ("rotation_sensitivity", SENSITIVITY_RANGE),
            ("distance_sensitivity", DISTANCE_SENSITIVITY_RANGE),
            ("min_distance", CAMERA_DISTANCE_RANGE),
            ("max_distance", CAMERA_DISTANCE_RANGE),
            ("breathing_speed", BREATHING_SPEED_RANGE),
            ("breathing_intensity", BREATHING_INTENSITY_RANGE),
        ):
            value = values[name]
            if not _is_number(value):
                logger.warning(f"Invalid {name} {value!r}, using default: {getattr(defaults, name)}")
                value = getattr(defaults, name)
            values[name] = _clamp(name, float(value), bounds)

        if values["min_distance"] > values["max_distance"]:
            logger.warning(
                f"minDistance {values['min_distance']} > maxDistance {values['max_distance']}, swapping"
            )
            values["min_distance"], values["max_distance"] = values["max_distance"], values["min_distance"]

        device_class = values["device_class"]
        if device_class is not None:
            try:
                values["device_class"] = DeviceClass.parse(str(device_class)).value
            except ValueError as e:
                logger.warning(f"{e}, detecting automatically")
                values["device_class"] = None

        if not isinstance(values["glyph_text"], str):
            logger.warning(f"Invalid glyphText {values['glyph_text']!r}, using default")
            values["glyph_text"] = defaults.glyph_text

        return SceneConfig(**values)


def load_scene_config(config_path: str | Path) -> SceneConfig:
    """
    Load and validate a scene configuration from a JSON file.

    Args:
        config_path: Path to the JSON file.

    Returns:
        Sanitized SceneConfig.

    Raises:
        SceneConfigError: If the file cannot be read or is not a JSON object.
    """
    path = Path(config_path)
    logger.info(f"Loading scene config from: {path}")

    if not path.exists():
        raise SceneConfigError(f"Scene config file not found: {path}")

    if not path.is_file():
        raise SceneConfigError(f"Scene config path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SceneConfigError(f"Invalid JSON in scene config: {e}")
    except IOError as e:
        raise SceneConfigError(f"Cannot read scene config file: {e}")

    if not isinstance(data, dict):
        raise SceneConfigError("Scene config must be a JSON object")

    return SceneConfig.from_dict(data)
