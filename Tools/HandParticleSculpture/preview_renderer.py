"""
OpenCV preview renderer for HandParticleSculpture.

Projects the animator's point buffer with a simple perspective camera
and splats it additively into a BGR image, then overlays a HUD and a
mirrored camera picture-in-picture with the hand skeleton.
"""

import math
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from .logger import get_logger
from .config import (
    PREVIEW_WIDTH,
    PREVIEW_HEIGHT,
    PREVIEW_FOV_DEG,
    PREVIEW_PIP_SCALE,
    CAMERA_HEIGHT_OFFSET,
)
from .device_profile import DeviceProfile
from .gesture_stabilizer import StableGestureSignal
from .landmarks import skeleton_segments
from .particle_animator import AnimatorMode, RenderFrame

logger = get_logger("PreviewRenderer")

_NEAR_PLANE = 0.1
_SKELETON_LINE_COLOR = (102, 0, 255)  # '#ff0066' in BGR
_SKELETON_POINT_COLOR = (255, 255, 0)  # '#00ffff' in BGR
_HUD_COLOR = (255, 255, 255)
_HUD_ACCENT = (0, 255, 255)


@dataclass
class HudInfo:
    """Status values shown in the HUD."""
    fps: float = 0.0
    device_label: str = ""
    shape: str = ""


def rotation_matrix(angles: tuple[float, float, float]) -> np.ndarray:
    """Rotation matrix for XYZ Euler angles in radians (applied X, then Y, then Z)."""
    ax, ay, az = angles
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)
    rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    return rz @ ry @ rx


def project_points(
    points: np.ndarray,
    camera_distance: float,
    width: int,
    height: int,
    fov_deg: float = PREVIEW_FOV_DEG,
    camera_height: float = CAMERA_HEIGHT_OFFSET
) -> tuple[np.ndarray, np.ndarray, np.ndarray, float]:
    """
    Project world points through a camera looking at the origin.

    The camera sits at (0, camera_height, camera_distance).

    Args:
        points: (N, 3) world coordinates.
        camera_distance: Camera z position.
        width: Image width in pixels.
        height: Image height in pixels.
        fov_deg: Vertical field of view.
        camera_height: Camera y position.

    Returns:
        (px, py, depth, focal): integer pixel coordinates and depth of the
        points in front of the camera and inside the image, plus the
        focal length in pixels.
    """
    eye = np.array([0.0, camera_height, camera_distance])
    forward = -eye / max(np.linalg.norm(eye), 1e-9)
    right = np.cross(forward, np.array([0.0, 1.0, 0.0]))
    right /= max(np.linalg.norm(right), 1e-9)
    up = np.cross(right, forward)

    rel = points - eye
    x = rel @ right
    y = rel @ up
    z = rel @ forward

    focal = (height / 2.0) / math.tan(math.radians(fov_deg) / 2.0)
    visible = z > _NEAR_PLANE
    x, y, z = x[visible], y[visible], z[visible]

    px = (width / 2.0 + x * focal / z).astype(np.int64)
    py = (height / 2.0 - y * focal / z).astype(np.int64)
    inside = (px >= 0) & (px < width) & (py >= 0) & (py < height)
    return px[inside], py[inside], z[inside], focal


class PreviewRenderer:
    """Draws RenderFrames into an OpenCV window-ready BGR image."""

    def __init__(
        self,
        profile: DeviceProfile,
        width: int = PREVIEW_WIDTH,
        height: int = PREVIEW_HEIGHT
    ):
        self.width = width
        self.height = height
        self.antialias = profile.antialias
        # Pixel ratio 2.0 renders at full preview size
        self.render_scale = max(0.25, min(1.0, profile.pixel_ratio / 2.0))
        self._render_w = max(1, int(width * self.render_scale))
        self._render_h = max(1, int(height * self.render_scale))
        logger.info(
            f"PreviewRenderer initialized ({width}x{height}, render scale {self.render_scale:.2f}, "
            f"antialias={self.antialias})"
        )

    def render_particles(self, frame: RenderFrame) -> np.ndarray:
        """Render the point cloud alone."""
        w, h = self._render_w, self._render_h
        points = frame.positions.reshape(-1, 3).astype(np.float64)
        points = points @ rotation_matrix(frame.rotation).T

        px, py, depth, focal = project_points(points, frame.camera_distance, w, h)

        density = np.bincount(py * w + px, minlength=w * h).astype(np.float32).reshape(h, w)

        if len(depth):
            radius_px = frame.point_size * focal / float(np.median(depth))
            kernel = max(1, int(round(radius_px)))
            if kernel > 1:
                density = cv2.dilate(density, np.ones((kernel, kernel), np.uint8))
            if self.antialias:
                density = cv2.GaussianBlur(density, (0, 0), max(0.6, radius_px / 2.0))

        intensity = np.clip(density * frame.opacity * 0.6, 0.0, 1.0)
        color = np.array(frame.color, dtype=np.float32)
        image = (intensity[:, :, None] * color[None, None, :]).astype(np.uint8)

        if (w, h) != (self.width, self.height):
            image = cv2.resize(image, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        return image

    def draw_camera_pip(
        self,
        image: np.ndarray,
        camera_bgr: np.ndarray,
        signal: Optional[StableGestureSignal] = None
    ) -> None:
        """Draw the mirrored camera feed and hand skeleton in the top-right corner."""
        pip_w = int(self.width * PREVIEW_PIP_SCALE)
        cam_h, cam_w = camera_bgr.shape[:2]
        pip_h = max(1, int(pip_w * cam_h / max(cam_w, 1)))
        pip = cv2.resize(camera_bgr, (pip_w, pip_h))

        if signal is not None and signal.landmarks is not None:
            for (x1, y1), (x2, y2) in skeleton_segments(signal.landmarks, pip_w, pip_h):
                cv2.line(pip, (x1, y1), (x2, y2), _SKELETON_LINE_COLOR, 2, cv2.LINE_AA)
            for lm in signal.landmarks.landmarks:
                cv2.circle(pip, (int(lm.x * pip_w), int(lm.y * pip_h)), 3, _SKELETON_POINT_COLOR, -1)

        # Mirror so the preview behaves like a mirror
        pip = cv2.flip(pip, 1)

        x0 = self.width - pip_w - 10
        y0 = 10
        if y0 + pip_h > self.height or x0 < 0:
            return
        image[y0:y0 + pip_h, x0:x0 + pip_w] = pip
        cv2.rectangle(image, (x0, y0), (x0 + pip_w, y0 + pip_h), _HUD_COLOR, 1)

    def draw_hud(self, image: np.ndarray, signal: StableGestureSignal, frame: RenderFrame, info: HudInfo) -> None:
        """Draw status text in the top-left corner."""
        lines = [
            (f"Strength: {signal.strength_percent}%", _HUD_ACCENT),
            (f"Facing: {'yes' if signal.is_facing_camera else 'no'}", _HUD_COLOR),
            (f"Heart: {'yes' if signal.is_heart_gesture else 'no'}", _HUD_COLOR),
            (f"FPS: {info.fps:.1f}", _HUD_COLOR),
            (f"Device: {info.device_label}", _HUD_COLOR),
            (f"Shape: {'LoveGlyph' if frame.mode == AnimatorMode.HEART_OVERRIDE else info.shape}", _HUD_COLOR),
        ]
        if not signal.hand_detected:
            lines.append(("Show your hand to the camera", (0, 165, 255)))

        for i, (text, color) in enumerate(lines):
            cv2.putText(
                image, text, (10, 28 + i * 24),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 1, cv2.LINE_AA
            )

    def render(
        self,
        frame: RenderFrame,
        signal: StableGestureSignal,
        info: HudInfo,
        camera_bgr: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        Compose the full preview image.

        Args:
            frame: Animator output for this tick.
            signal: Current stable gesture signal.
            info: HUD status values.
            camera_bgr: Latest camera frame for the picture-in-picture.

        Returns:
            BGR image of size (height, width).
        """
        image = self.render_particles(frame)
        if camera_bgr is not None:
            self.draw_camera_pip(image, camera_bgr, signal)
        self.draw_hud(image, signal, frame, info)
        return image
