"""
Configuration constants for HandParticleSculpture.

This module contains all tunable parameters for camera capture,
hand detection, gesture analysis, temporal smoothing, shape generation
and particle animation.
"""

from dataclasses import dataclass
from typing import Final


# Camera configuration
CAMERA_WIDTH: Final[int] = 1280
CAMERA_HEIGHT: Final[int] = 720
CAMERA_FPS: Final[int] = 30
DEFAULT_CAMERA_INDEX: Final[int] = 0

# MediaPipe configuration
MEDIAPIPE_MODEL_COMPLEXITY: Final[int] = 1
MEDIAPIPE_MAX_NUM_HANDS: Final[int] = 2
MEDIAPIPE_MIN_DETECTION_CONFIDENCE: Final[float] = 0.5
MEDIAPIPE_MIN_TRACKING_CONFIDENCE: Final[float] = 0.5

# =============================================================================
# Landmark Geometry Analyzer
# =============================================================================
# Values are calibrated to MediaPipe Hands normalized image coordinates.
# Retune them through AnalyzerThresholds when using another landmark source.

# Openness: (value - offset) / range, clamped to [0, 1]
OPENNESS_SPREAD_OFFSET: Final[float] = 0.2
OPENNESS_SPREAD_RANGE: Final[float] = 0.2
OPENNESS_SPAN_OFFSET: Final[float] = 0.1
OPENNESS_SPAN_RANGE: Final[float] = 0.2
OPENNESS_DISPERSION_OFFSET: Final[float] = 0.05
OPENNESS_DISPERSION_RANGE: Final[float] = 0.1
OPENNESS_SPREAD_WEIGHT: Final[float] = 0.5
OPENNESS_SPAN_WEIGHT: Final[float] = 0.3
OPENNESS_DISPERSION_WEIGHT: Final[float] = 0.2
OPENNESS_GAMMA: Final[float] = 0.8  # < 1 boosts sensitivity at low input

# Palm orientation
FACING_CAMERA_THRESHOLD: Final[float] = 0.92  # palm normal z component

# Palm distance: palm width 0.25 maps to near (0), 0.08 to far (1)
PALM_WIDTH_NEAR: Final[float] = 0.25
PALM_WIDTH_FAR: Final[float] = 0.08

# Heart gesture
HEART_TIP_DISTANCE_THRESHOLD: Final[float] = 0.05
HEART_MIN_ANGLE_DEG: Final[float] = 30.0
HEART_MAX_ANGLE_DEG: Final[float] = 90.0
HEART_BENT_FINGER_DISTANCE: Final[float] = 0.15
HEART_MIN_BENT_FINGERS: Final[int] = 2

GEOMETRY_EPSILON: Final[float] = 1e-9

# =============================================================================
# Temporal Stabilizer
# =============================================================================
SMOOTHING_FACTOR_MIN: Final[float] = 0.001
SMOOTHING_FACTOR_MAX: Final[float] = 1.0

DESKTOP_STRENGTH_FACTOR: Final[float] = 0.25
DESKTOP_ROTATION_FACTOR: Final[float] = 0.25
DESKTOP_FACING_RESET_FACTOR: Final[float] = 0.35
DESKTOP_DISTANCE_FACTOR: Final[float] = 0.25

MOBILE_STRENGTH_FACTOR: Final[float] = 0.35  # Coarser sampling, faster response
MOBILE_ROTATION_FACTOR: Final[float] = 0.4
MOBILE_FACING_RESET_FACTOR: Final[float] = 0.5
MOBILE_DISTANCE_FACTOR: Final[float] = 0.35

NO_HAND_DECAY_FACTOR: Final[float] = 0.05

# Frame decimation: process every Nth video frame
DESKTOP_DECIMATION: Final[int] = 1
TABLET_DECIMATION: Final[int] = 2
MOBILE_DECIMATION: Final[int] = 2
CONSTRAINED_DECIMATION: Final[int] = 3

# =============================================================================
# Device classes
# =============================================================================
MOBILE_PLATFORMS: Final[tuple[str, ...]] = ("android", "ios")
CONSTRAINED_MAX_CPUS: Final[int] = 3
TABLET_MODEL_PREFIXES: Final[tuple[str, ...]] = ("ipad",)  # Hardware model, e.g. "iPad13,4"

DESKTOP_PARTICLE_COUNT: Final[int] = 15000
TABLET_PARTICLE_COUNT: Final[int] = 10000
MOBILE_PARTICLE_COUNT: Final[int] = 8000
CONSTRAINED_PARTICLE_COUNT: Final[int] = 5000

DESKTOP_PARTICLE_SIZE: Final[float] = 0.05
TABLET_PARTICLE_SIZE: Final[float] = 0.06
MOBILE_PARTICLE_SIZE: Final[float] = 0.07
CONSTRAINED_PARTICLE_SIZE: Final[float] = 0.08

# =============================================================================
# Shape Library
# =============================================================================
SPHERE_RADIUS: Final[float] = 3.0
FLOWER_BASE_RADIUS: Final[float] = 2.0
FLOWER_PETALS: Final[int] = 5
KNOT_P: Final[int] = 3
KNOT_Q: Final[int] = 7
KNOT_BASE_RADIUS: Final[float] = 2.0
KNOT_RADIUS_MODULATION: Final[float] = 0.5
FIREWORKS_EXTENT: Final[float] = 12.0

HEART_CURVE_RADIUS: Final[float] = 20.0  # Approximate extent of the raw curve
HEART_MAX_DEPTH: Final[float] = 10.0
HEART_CUSP_SMOOTH_RANGE: Final[float] = 25.0
HEART_SCALE: Final[float] = 0.22
HEART_DEPTH_SCALE: Final[float] = 0.2
HEART_Y_OFFSET: Final[float] = 0.8

GLYPH_CANVAS_WIDTH: Final[int] = 800
GLYPH_CANVAS_HEIGHT: Final[int] = 300
GLYPH_SAMPLE_STEP: Final[int] = 2
GLYPH_ALPHA_THRESHOLD: Final[int] = 128
GLYPH_PIXELS_PER_UNIT: Final[float] = 100.0
GLYPH_JITTER_XY: Final[float] = 0.1
GLYPH_JITTER_Z: Final[float] = 0.5
GLYPH_TEXT_MARGIN: Final[float] = 0.9  # Fraction of canvas the text may fill
GLYPH_TEXT_HEIGHT_PX: Final[int] = 80
DEFAULT_GLYPH_TEXT: Final[str] = "I LOVE YOU"

# Shape used when the glyph raster is empty. None collapses to the origin.
EMPTY_GLYPH_FALLBACK_SHAPE: Final[str | None] = "Heart"

# =============================================================================
# Particle Field Animator
# =============================================================================
MIN_SCALE: Final[float] = 1.0
SCALE_RANGE: Final[float] = 3.0
JITTER_GAIN: Final[float] = 0.15
BASE_LERP: Final[float] = 0.04
LERP_GAIN: Final[float] = 0.08
WAVE_AMPLITUDE: Final[float] = 0.1
WAVE_SPEED: Final[float] = 1.0  # rad/s

BASE_OPACITY: Final[float] = 0.6
OPACITY_GAIN: Final[float] = 0.3
POINT_SIZE_GAIN: Final[float] = 0.5

HEART_OVERRIDE_SCALE: Final[float] = 1.0
HEART_OVERRIDE_LERP: Final[float] = 0.15
HEART_OVERRIDE_OPACITY: Final[float] = 1.0
HEART_OVERRIDE_SIZE_FACTOR: Final[float] = 1.5
HEART_OVERRIDE_COLOR: Final[str] = "#ff3366"

ROTATION_RATE_FACING: Final[float] = 0.15
ROTATION_RATE_NORMAL: Final[float] = 0.05
ROTATION_RATE_IDLE_AXES: Final[float] = 0.02
CAMERA_APPROACH_RATE: Final[float] = 0.1
CAMERA_HEIGHT_OFFSET: Final[float] = 2.0

# Scene defaults
DEFAULT_COLOR: Final[str] = "#00ffff"
DEFAULT_SHAPE: Final[str] = "Heart"
DEFAULT_ROTATION_SENSITIVITY: Final[float] = 1.0
DEFAULT_DISTANCE_SENSITIVITY: Final[float] = 10.0
DEFAULT_MIN_DISTANCE: Final[float] = 5.0
DEFAULT_MAX_DISTANCE: Final[float] = 15.0
DEFAULT_BREATHING_SPEED: Final[float] = 0.2  # Hz
DEFAULT_BREATHING_INTENSITY: Final[float] = 0.05

# Sane ranges for scene configuration
PARTICLE_COUNT_RANGE: Final[tuple[int, int]] = (100, 50000)
PARTICLE_SIZE_RANGE: Final[tuple[float, float]] = (0.01, 0.5)
SENSITIVITY_RANGE: Final[tuple[float, float]] = (0.0, 5.0)
DISTANCE_SENSITIVITY_RANGE: Final[tuple[float, float]] = (0.0, 30.0)
CAMERA_DISTANCE_RANGE: Final[tuple[float, float]] = (1.0, 50.0)
BREATHING_SPEED_RANGE: Final[tuple[float, float]] = (0.0, 2.0)
BREATHING_INTENSITY_RANGE: Final[tuple[float, float]] = (0.0, 0.5)

# =============================================================================
# Animation loop and preview
# =============================================================================
TARGET_FPS: Final[float] = 60.0
STATUS_LOG_INTERVAL_SEC: Final[float] = 3.0
PREVIEW_WIDTH: Final[int] = 960
PREVIEW_HEIGHT: Final[int] = 720
PREVIEW_FOV_DEG: Final[float] = 75.0
PREVIEW_PIP_SCALE: Final[float] = 0.25
PREVIEW_WINDOW_NAME: Final[str] = "Hand Particle Sculpture"

# Logging
LOG_FILENAME: Final[str] = "hand_particle_sculpture.log"
LOG_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: Final[int] = 3

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_CONFIG_ERROR: Final[int] = 1
EXIT_CAMERA_ERROR: Final[int] = 2
EXIT_RUNTIME_ERROR: Final[int] = 3
EXIT_SHAPE_ERROR: Final[int] = 4


@dataclass
class AnalyzerThresholds:
    """Container for landmark geometry analysis thresholds."""

    facing_camera: float = FACING_CAMERA_THRESHOLD
    palm_width_near: float = PALM_WIDTH_NEAR
    palm_width_far: float = PALM_WIDTH_FAR
    heart_tip_distance: float = HEART_TIP_DISTANCE_THRESHOLD
    heart_min_angle: float = HEART_MIN_ANGLE_DEG
    heart_max_angle: float = HEART_MAX_ANGLE_DEG
    heart_bent_distance: float = HEART_BENT_FINGER_DISTANCE
    heart_min_bent: int = HEART_MIN_BENT_FINGERS


@dataclass
class AnimatorDynamics:
    """Container for per-tick particle animation gains."""

    min_scale: float = MIN_SCALE
    scale_range: float = SCALE_RANGE
    jitter_gain: float = JITTER_GAIN
    base_lerp: float = BASE_LERP
    lerp_gain: float = LERP_GAIN
    wave_amplitude: float = WAVE_AMPLITUDE
    wave_speed: float = WAVE_SPEED
    rotation_rate_facing: float = ROTATION_RATE_FACING
    rotation_rate_normal: float = ROTATION_RATE_NORMAL
    rotation_rate_idle_axes: float = ROTATION_RATE_IDLE_AXES
    camera_approach_rate: float = CAMERA_APPROACH_RATE
