"""
Device profile for HandParticleSculpture.

Classifies the host once at startup and bundles every quality and
throughput setting that depends on it: particle budget, point size,
render quality, smoothing factors, frame decimation and camera mode.
Components receive the profile instead of re-checking the platform.
"""

import math
import os
import platform
import sys
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

from .logger import get_logger
from .config import (
    CAMERA_WIDTH,
    CAMERA_HEIGHT,
    CAMERA_FPS,
    MEDIAPIPE_MAX_NUM_HANDS,
    MOBILE_PLATFORMS,
    CONSTRAINED_MAX_CPUS,
    TABLET_MODEL_PREFIXES,
    SMOOTHING_FACTOR_MIN,
    SMOOTHING_FACTOR_MAX,
    DESKTOP_STRENGTH_FACTOR,
    DESKTOP_ROTATION_FACTOR,
    DESKTOP_FACING_RESET_FACTOR,
    DESKTOP_DISTANCE_FACTOR,
    MOBILE_STRENGTH_FACTOR,
    MOBILE_ROTATION_FACTOR,
    MOBILE_FACING_RESET_FACTOR,
    MOBILE_DISTANCE_FACTOR,
    NO_HAND_DECAY_FACTOR,
    DESKTOP_DECIMATION,
    TABLET_DECIMATION,
    MOBILE_DECIMATION,
    CONSTRAINED_DECIMATION,
    DESKTOP_PARTICLE_COUNT,
    TABLET_PARTICLE_COUNT,
    MOBILE_PARTICLE_COUNT,
    CONSTRAINED_PARTICLE_COUNT,
    DESKTOP_PARTICLE_SIZE,
    TABLET_PARTICLE_SIZE,
    MOBILE_PARTICLE_SIZE,
    CONSTRAINED_PARTICLE_SIZE,
)

logger = get_logger("DeviceProfile")


class DeviceClass(Enum):
    """Coarse performance class of the host device."""
    CONSTRAINED = "constrained"
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"

    @classmethod
    def parse(cls, value: str) -> "DeviceClass":
        """
        Parse a device class name (case-insensitive).

        Raises:
            ValueError: If the name is not a known device class.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown device class '{value}' (expected one of: {valid})")


def _clamp_factor(name: str, value: float, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        logger.warning(f"Smoothing factor {name}={value!r} is not a finite number, using {default}")
        return default
    if value < SMOOTHING_FACTOR_MIN or value > SMOOTHING_FACTOR_MAX:
        clamped = max(SMOOTHING_FACTOR_MIN, min(SMOOTHING_FACTOR_MAX, value))
        logger.warning(f"Smoothing factor {name}={value} out of range, clamped to {clamped}")
        return clamped
    return value


@dataclass
class SmoothingFactors:
    """
    Exponential smoothing factors for the stable gesture signal.

    Every factor lives in (0, 1]. A factor of 1 tracks the raw value
    exactly, smaller factors respond more slowly.
    """

    strength: float = DESKTOP_STRENGTH_FACTOR
    rotation: float = DESKTOP_ROTATION_FACTOR
    facing_reset: float = DESKTOP_FACING_RESET_FACTOR  # Rotation factor while facing camera
    distance: float = DESKTOP_DISTANCE_FACTOR
    no_hand_decay: float = NO_HAND_DECAY_FACTOR

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _clamp_factor(f.name, getattr(self, f.name), f.default))


@dataclass(frozen=True)
class DeviceProfile:
    """
    Startup-time quality settings for one device class.

    Attributes:
        device_class: Classification this profile was built for.
        particle_count: Default number of particles.
        particle_size: Default point size in world units.
        antialias: Whether the renderer should smooth point splats.
        pixel_ratio: Render resolution multiplier.
        decimation: Process every Nth video frame.
        smoothing: Signal smoothing factors.
        camera_width: Requested capture width.
        camera_height: Requested capture height.
        camera_fps: Requested capture frame rate.
        max_hands: Maximum hands requested from the detector.
    """

    device_class: DeviceClass
    particle_count: int
    particle_size: float
    antialias: bool
    pixel_ratio: float
    decimation: int
    smoothing: SmoothingFactors = field(default_factory=SmoothingFactors)
    camera_width: int = CAMERA_WIDTH
    camera_height: int = CAMERA_HEIGHT
    camera_fps: int = CAMERA_FPS
    max_hands: int = MEDIAPIPE_MAX_NUM_HANDS

    @classmethod
    def for_class(cls, device_class: DeviceClass) -> "DeviceProfile":
        """Build the default profile for a device class."""
        mobile_smoothing = SmoothingFactors(
            strength=MOBILE_STRENGTH_FACTOR,
            rotation=MOBILE_ROTATION_FACTOR,
            facing_reset=MOBILE_FACING_RESET_FACTOR,
            distance=MOBILE_DISTANCE_FACTOR,
        )

        if device_class == DeviceClass.CONSTRAINED:
            return cls(
                device_class=device_class,
                particle_count=CONSTRAINED_PARTICLE_COUNT,
                particle_size=CONSTRAINED_PARTICLE_SIZE,
                antialias=False,
                pixel_ratio=1.0,
                decimation=CONSTRAINED_DECIMATION,
                smoothing=mobile_smoothing,
                camera_width=640,
                camera_height=480,
                camera_fps=20,
                max_hands=1,
            )
        if device_class == DeviceClass.MOBILE:
            return cls(
                device_class=device_class,
                particle_count=MOBILE_PARTICLE_COUNT,
                particle_size=MOBILE_PARTICLE_SIZE,
                antialias=False,
                pixel_ratio=1.5,
                decimation=MOBILE_DECIMATION,
                smoothing=mobile_smoothing,
                camera_width=960,
                camera_height=720,
            )
        if device_class == DeviceClass.TABLET:
            return cls(
                device_class=device_class,
                particle_count=TABLET_PARTICLE_COUNT,
                particle_size=TABLET_PARTICLE_SIZE,
                antialias=True,
                pixel_ratio=1.5,
                decimation=TABLET_DECIMATION,
                smoothing=mobile_smoothing,
                camera_width=960,
                camera_height=720,
            )
        return cls(
            device_class=DeviceClass.DESKTOP,
            particle_count=DESKTOP_PARTICLE_COUNT,
            particle_size=DESKTOP_PARTICLE_SIZE,
            antialias=True,
            pixel_ratio=2.0,
            decimation=DESKTOP_DECIMATION,
        )


def detect_device_class(
    platform_name: Optional[str] = None,
    cpu_count: Optional[int] = None,
    override: Optional[str | DeviceClass] = None,
    device_model: Optional[str] = None
) -> DeviceClass:
    """
    Classify the host device.

    Mobile platforms whose hardware model is an iPad count as tablets;
    other mobile hosts are constrained when they have few CPUs.

    Args:
        platform_name: Platform identifier (defaults to sys.platform).
        cpu_count: Logical CPU count (defaults to os.cpu_count()).
        override: Explicit device class that wins over detection.
        device_model: Hardware model identifier (defaults to platform.machine()).

    Returns:
        Detected or overridden DeviceClass.
    """
    if override is not None:
        device_class = override if isinstance(override, DeviceClass) else DeviceClass.parse(override)
        logger.info(f"Device class overridden: {device_class.value}")
        return device_class

    platform_name = (platform_name or sys.platform).lower()
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1

    if platform_name in MOBILE_PLATFORMS:
        device_model = (device_model or platform.machine()).lower()
        if device_model.startswith(TABLET_MODEL_PREFIXES):
            device_class = DeviceClass.TABLET
        elif cpu_count <= CONSTRAINED_MAX_CPUS:
            device_class = DeviceClass.CONSTRAINED
        else:
            device_class = DeviceClass.MOBILE
    else:
        device_class = DeviceClass.DESKTOP

    logger.info(f"Detected device class: {device_class.value} (platform={platform_name}, cpus={cpu_count})")
    return device_class


def build_profile(override: Optional[str | DeviceClass] = None) -> DeviceProfile:
    """Detect the device class and return its profile."""
    return DeviceProfile.for_class(detect_device_class(override=override))
