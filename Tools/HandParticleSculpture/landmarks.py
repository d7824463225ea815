"""
Hand landmark data types.

Mirrors the MediaPipe Hands 21-point topology so that the analysis
pipeline can run on detector output, recorded data or synthetic hands
without importing MediaPipe.
"""

from dataclasses import dataclass, field
from typing import Any, Final, Iterable, Optional, Sequence

import numpy as np

NUM_LANDMARKS: Final[int] = 21


# MediaPipe landmark indices
class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


FINGERTIP_INDICES: Final[tuple[int, ...]] = (
    LandmarkIndex.THUMB_TIP,
    LandmarkIndex.INDEX_TIP,
    LandmarkIndex.MIDDLE_TIP,
    LandmarkIndex.RING_TIP,
    LandmarkIndex.PINKY_TIP,
)

# Skeleton topology drawn over the camera preview; the palm is a closed loop
HAND_CONNECTIONS: Final[tuple[tuple[int, int], ...]] = (
    (0, 1), (0, 5), (0, 17), (5, 9), (9, 13), (13, 17),  # Palm
    (1, 2), (2, 3), (3, 4),  # Thumb
    (5, 6), (6, 7), (7, 8),  # Index
    (9, 10), (10, 11), (11, 12),  # Middle
    (13, 14), (14, 15), (15, 16),  # Ring
    (17, 18), (18, 19), (19, 20),  # Pinky
)

@dataclass(frozen=True)
class Landmark:
    """Single hand landmark with 3D coordinates and visibility."""
    x: float  # Normalized x [0, 1]
    y: float  # Normalized y [0, 1]
    z: float = 0.0  # Relative depth
    visibility: float = 1.0


@dataclass(frozen=True)
class HandLandmarks:
    """
    One detected hand for one frame.

    Attributes:
        landmarks: The 21 hand landmarks in MediaPipe order.
        handedness: 'Left' or 'Right'.
        score: Detection confidence score.
    """
    landmarks: tuple[Landmark, ...]
    handedness: str = "Right"
    score: float = 1.0
    _array: Optional[np.ndarray] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        if not isinstance(self.landmarks, tuple):
            object.__setattr__(self, "landmarks", tuple(self.landmarks))

    @classmethod
    def from_points(
        cls,
        points: Sequence[Sequence[float]],
        handedness: str = "Right",
        score: float = 1.0
    ) -> "HandLandmarks":
        """Create from (x, y) or (x, y, z) tuples."""
        return cls(
            landmarks=tuple(Landmark(*map(float, p)) for p in points),
            handedness=handedness,
            score=score
        )

    @classmethod
    def from_detection(
        cls,
        points: Iterable[Any],
        handedness: str = "Right",
        score: float = 1.0
    ) -> "HandLandmarks":
        """
        Create from detector landmark objects exposing x, y, z and an
        optional visibility. A missing visibility counts as fully visible.
        """
        landmarks = []
        for p in points:
            visibility = getattr(p, "visibility", None)
            landmarks.append(Landmark(
                x=float(p.x),
                y=float(p.y),
                z=float(p.z),
                visibility=1.0 if visibility is None else float(visibility)
            ))
        return cls(landmarks=tuple(landmarks), handedness=handedness, score=score)

    @property
    def is_complete(self) -> bool:
        """True when all 21 landmarks are present."""
        return len(self.landmarks) == NUM_LANDMARKS

    def as_array(self) -> np.ndarray:
        """
        Get landmark coordinates as a read-only (N, 3) float64 array.

        The array is computed once and cached.
        """
        if self._array is None:
            array = np.array([(lm.x, lm.y, lm.z) for lm in self.landmarks], dtype=np.float64)
            array = array.reshape(-1, 3)
            array.setflags(write=False)
            object.__setattr__(self, "_array", array)
        return self._array


def skeleton_segments(
    hand: HandLandmarks,
    width: int,
    height: int
) -> list[tuple[tuple[int, int], tuple[int, int]]]:
    """
    Map the hand skeleton to pixel-space line segments.

    Args:
        hand: Landmarks to draw.
        width: Target image width in pixels.
        height: Target image height in pixels.

    Returns:
        One ((x1, y1), (x2, y2)) pair per connection in HAND_CONNECTIONS.
        Empty if the hand is incomplete.
    """
    if not hand.is_complete:
        return []

    segments = []
    for start_idx, end_idx in HAND_CONNECTIONS:
        start = hand.landmarks[start_idx]
        end = hand.landmarks[end_idx]
        segments.append((
            (int(start.x * width), int(start.y * height)),
            (int(end.x * width), int(end.y * height)),
        ))
    return segments
