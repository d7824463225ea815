"""
Landmark geometry analyzer for HandParticleSculpture.

Turns one frame's 21 hand landmarks into raw interaction metrics:
openness strength, palm rotation, palm distance, facing-camera state
and the heart gesture flag. Everything here is a pure function of the
landmark set; temporal smoothing happens in gesture_stabilizer.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import (
    AnalyzerThresholds,
    GEOMETRY_EPSILON,
    OPENNESS_SPREAD_OFFSET,
    OPENNESS_SPREAD_RANGE,
    OPENNESS_SPAN_OFFSET,
    OPENNESS_SPAN_RANGE,
    OPENNESS_DISPERSION_OFFSET,
    OPENNESS_DISPERSION_RANGE,
    OPENNESS_SPREAD_WEIGHT,
    OPENNESS_SPAN_WEIGHT,
    OPENNESS_DISPERSION_WEIGHT,
    OPENNESS_GAMMA,
)
from .landmarks import FINGERTIP_INDICES, NUM_LANDMARKS, HandLandmarks, LandmarkIndex

_BENT_FINGER_TIPS = (
    LandmarkIndex.MIDDLE_TIP,
    LandmarkIndex.RING_TIP,
    LandmarkIndex.PINKY_TIP,
)


@dataclass(frozen=True)
class PalmRotation:
    """Palm orientation as Euler angles in degrees."""
    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class HeartGestureResult:
    """Heart gesture decision plus the measurements behind it."""
    is_heart: bool
    tip_distance: float
    angle: float
    bent_fingers: int


@dataclass(frozen=True)
class RawGestureMetrics:
    """
    Unsmoothed metrics for a single frame.

    Attributes:
        openness_raw: Palm openness in [0, 1].
        rotation: Palm rotation, all zero while facing the camera.
        distance_raw: 0 when the hand is near, 1 when far.
        is_facing_camera: Palm normal is aligned with the camera axis.
        is_heart_gesture: Thumb and index form a heart.
        palm_normal: Unit palm normal (x, y, z).
        tip_distance: Thumb tip to index tip 2D distance.
        finger_angle: Thumb/index direction angle in degrees.
        bent_finger_count: Middle, ring and pinky tips curled to the wrist.
    """
    openness_raw: float
    rotation: PalmRotation
    distance_raw: float
    is_facing_camera: bool
    is_heart_gesture: bool
    palm_normal: tuple[float, float, float] = (0.0, 0.0, 1.0)
    tip_distance: float = 0.0
    finger_angle: float = 0.0
    bent_finger_count: int = 0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _as_points(hand: HandLandmarks | np.ndarray) -> np.ndarray:
    """Get an (21, 3) coordinate array, validating the landmark count."""
    points = hand.as_array() if isinstance(hand, HandLandmarks) else np.asarray(hand, dtype=np.float64)
    if points.ndim != 2 or points.shape[0] != NUM_LANDMARKS or points.shape[1] < 2:
        raise ValueError(f"Expected {NUM_LANDMARKS} landmarks, got array of shape {points.shape}")
    if points.shape[1] == 2:
        points = np.column_stack([points, np.zeros(NUM_LANDMARKS)])
    return points


def compute_openness(points: np.ndarray) -> float:
    """
    Estimate how open the hand is.

    Combines three fingertip measures: mean 3D distance to the wrist,
    largest pairwise 2D span and mean 2D dispersion around the fingertip
    centroid. Each is normalized over an empirical range, then blended
    and gamma-shaped so small openings still register.

    Args:
        points: (21, 3) landmark coordinates.

    Returns:
        Openness strength in [0, 1].
    """
    wrist = points[LandmarkIndex.WRIST]
    tips = points[list(FINGERTIP_INDICES)]

    avg_spread = float(np.mean(np.linalg.norm(tips - wrist, axis=1)))

    tips_2d = tips[:, :2]
    pairwise = tips_2d[:, None, :] - tips_2d[None, :, :]
    max_span = float(np.max(np.linalg.norm(pairwise, axis=2)))

    centroid = tips_2d.mean(axis=0)
    dispersion = float(np.mean(np.linalg.norm(tips_2d - centroid, axis=1)))

    spread_score = _clamp01((avg_spread - OPENNESS_SPREAD_OFFSET) / OPENNESS_SPREAD_RANGE)
    span_score = _clamp01((max_span - OPENNESS_SPAN_OFFSET) / OPENNESS_SPAN_RANGE)
    dispersion_score = _clamp01((dispersion - OPENNESS_DISPERSION_OFFSET) / OPENNESS_DISPERSION_RANGE)

    strength = _clamp01(
        spread_score * OPENNESS_SPREAD_WEIGHT
        + span_score * OPENNESS_SPAN_WEIGHT
        + dispersion_score * OPENNESS_DISPERSION_WEIGHT
    )
    return strength ** OPENNESS_GAMMA


def compute_palm_orientation(
    points: np.ndarray,
    facing_threshold: float = AnalyzerThresholds.facing_camera
) -> tuple[PalmRotation, bool, np.ndarray]:
    """
    Derive palm rotation from the wrist/index-base/pinky-base plane.

    Args:
        points: (21, 3) landmark coordinates.
        facing_threshold: Minimum normal z to count as facing the camera.

    Returns:
        (rotation, is_facing_camera, unit_normal). Rotation is zeroed
        when facing the camera.
    """
    wrist = points[LandmarkIndex.WRIST]
    v1 = points[LandmarkIndex.INDEX_MCP] - wrist
    v2 = points[LandmarkIndex.PINKY_MCP] - wrist

    normal = np.cross(v1, v2)
    length = float(np.linalg.norm(normal))
    if length > GEOMETRY_EPSILON:
        normal = normal / length

    nx, ny, nz = (float(c) for c in normal)
    is_facing = nz > facing_threshold

    if is_facing:
        return PalmRotation(), True, normal

    rotation = PalmRotation(
        pitch=math.degrees(math.atan2(ny, nz)),
        yaw=math.degrees(math.atan2(-nx, math.sqrt(ny * ny + nz * nz))),
        roll=math.degrees(math.atan2(float(v1[1]), float(v1[0]))),
    )
    return rotation, False, normal


def compute_palm_distance(
    points: np.ndarray,
    width_near: float = AnalyzerThresholds.palm_width_near,
    width_far: float = AnalyzerThresholds.palm_width_far
) -> float:
    """
    Map palm width to a normalized distance.

    A wide palm is close to the camera (0), a narrow one far away (1).
    """
    palm_width = float(np.linalg.norm(
        points[LandmarkIndex.INDEX_MCP, :2] - points[LandmarkIndex.PINKY_MCP, :2]
    ))
    span = width_near - width_far
    if abs(span) < GEOMETRY_EPSILON:
        return 0.0
    return _clamp01((width_near - palm_width) / span)


def _angle_between_2d(a: np.ndarray, b: np.ndarray) -> Optional[float]:
    """Angle in degrees between two 2D vectors, None if either is degenerate."""
    len_a = float(np.linalg.norm(a))
    len_b = float(np.linalg.norm(b))
    if len_a < GEOMETRY_EPSILON or len_b < GEOMETRY_EPSILON:
        return None
    cosine = float(np.dot(a, b)) / (len_a * len_b)
    return math.degrees(math.acos(max(-1.0, min(1.0, cosine))))


def detect_heart_gesture(
    points: np.ndarray,
    thresholds: Optional[AnalyzerThresholds] = None
) -> HeartGestureResult:
    """
    Detect the one-hand heart gesture.

    Thumb and index tips touch, the two fingers cross at an angle inside
    the configured window and at least two of the remaining fingers are
    curled toward the wrist.
    """
    thresholds = thresholds or AnalyzerThresholds()
    wrist = points[LandmarkIndex.WRIST, :2]

    tip_distance = float(np.linalg.norm(
        points[LandmarkIndex.THUMB_TIP, :2] - points[LandmarkIndex.INDEX_TIP, :2]
    ))

    thumb_vector = points[LandmarkIndex.THUMB_TIP, :2] - points[LandmarkIndex.THUMB_MCP, :2]
    index_vector = points[LandmarkIndex.INDEX_TIP, :2] - points[LandmarkIndex.INDEX_MCP, :2]
    angle = _angle_between_2d(thumb_vector, index_vector)

    bent = sum(
        1 for tip in _BENT_FINGER_TIPS
        if float(np.linalg.norm(points[tip, :2] - wrist)) < thresholds.heart_bent_distance
    )

    if angle is None:
        return HeartGestureResult(False, tip_distance, 0.0, bent)

    is_heart = (
        tip_distance < thresholds.heart_tip_distance
        and thresholds.heart_min_angle < angle < thresholds.heart_max_angle
        and bent >= thresholds.heart_min_bent
    )
    return HeartGestureResult(is_heart, tip_distance, angle, bent)


def analyze(
    hand: HandLandmarks | np.ndarray,
    thresholds: Optional[AnalyzerThresholds] = None
) -> RawGestureMetrics:
    """
    Compute raw gesture metrics for one hand.

    Args:
        hand: Hand landmarks, or a (21, 2|3) coordinate array.
        thresholds: Detection thresholds. Uses defaults if None.

    Returns:
        RawGestureMetrics for this frame.

    Raises:
        ValueError: If the hand does not have exactly 21 landmarks.
    """
    thresholds = thresholds or AnalyzerThresholds()
    points = _as_points(hand)

    openness = compute_openness(points)
    rotation, is_facing, normal = compute_palm_orientation(points, thresholds.facing_camera)
    distance = compute_palm_distance(points, thresholds.palm_width_near, thresholds.palm_width_far)
    heart = detect_heart_gesture(points, thresholds)

    return RawGestureMetrics(
        openness_raw=openness,
        rotation=rotation,
        distance_raw=distance,
        is_facing_camera=is_facing,
        is_heart_gesture=heart.is_heart,
        palm_normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        tip_distance=heart.tip_distance,
        finger_angle=heart.angle,
        bent_finger_count=heart.bent_fingers,
    )
