"""
Particle field animator for HandParticleSculpture.

Owns the live point buffer and advances it one tick at a time toward
the active target shape. Visual parameters (scale, jitter, blend rate,
rotation, camera distance, opacity, point size, color) are derived from
the stable gesture signal. Rendering is left to the caller, which
receives a RenderFrame snapshot per tick.
"""

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum, auto
from typing import Any, Mapping, Optional

import numpy as np

from .logger import get_logger
from .config import (
    AnimatorDynamics,
    BASE_OPACITY,
    OPACITY_GAIN,
    POINT_SIZE_GAIN,
    HEART_OVERRIDE_SCALE,
    HEART_OVERRIDE_LERP,
    HEART_OVERRIDE_OPACITY,
    HEART_OVERRIDE_SIZE_FACTOR,
    HEART_OVERRIDE_COLOR,
)
from .device_profile import DeviceProfile
from .gesture_stabilizer import StableGestureSignal
from .scene_config import SceneConfig, parse_hex_color
from .shape_library import GLYPH_SHAPE, ShapeGenerationError, generate_shape_set

logger = get_logger("ParticleAnimator")


class AnimatorMode(Enum):
    """Which target the particles are blending toward."""
    NORMAL = auto()          # Configured shape, gesture-driven dynamics
    HEART_OVERRIDE = auto()  # Glyph shape, fixed legible dynamics


@dataclass
class AnimatorState:
    """Mutable per-animator state carried across ticks."""
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))  # x, y, z radians
    camera_distance: float = 0.0
    mode: AnimatorMode = AnimatorMode.NORMAL
    tick_count: int = 0


@dataclass(frozen=True)
class RenderFrame:
    """
    Everything a renderer needs to draw one tick.

    Attributes:
        positions: Read-only flat copy of the point buffer (3 * N floats).
        changed: Always True; the buffer is updated every tick.
        opacity: Point opacity in [0, 1].
        point_size: Point size in world units.
        color: BGR color tuple.
        camera_distance: Desired camera distance from the sculpture.
        rotation: Group rotation (x, y, z) in radians.
        mode: Active animator mode.
        elapsed: Animation time in seconds.
    """
    positions: np.ndarray
    changed: bool
    opacity: float
    point_size: float
    color: tuple[int, int, int]
    camera_distance: float
    rotation: tuple[float, float, float]
    mode: AnimatorMode
    elapsed: float

    @property
    def particle_count(self) -> int:
        return len(self.positions) // 3


class ParticleFieldAnimator:
    """
    Blends a particle cloud toward procedurally generated shapes.

    Shapes are generated once per particle count. The point buffer is
    initialized from the configured shape and only reallocated when the
    particle count or glyph text changes through configure().
    """

    def __init__(
        self,
        scene: SceneConfig,
        profile: DeviceProfile,
        rng: Optional[np.random.Generator] = None,
        dynamics: Optional[AnimatorDynamics] = None
    ):
        """
        Initialize animator and generate its shapes.

        Args:
            scene: Scene configuration.
            profile: Device profile supplying particle defaults.
            rng: Random source for shapes and jitter.
            dynamics: Animation gains. Uses defaults if None.

        Raises:
            ShapeGenerationError: If the shape set cannot be generated.
        """
        self.profile = profile
        self.dynamics = dynamics or AnimatorDynamics()
        self._rng = rng if rng is not None else np.random.default_rng()

        self.scene = scene.sanitized()
        self._heart_color = parse_hex_color(HEART_OVERRIDE_COLOR)
        self._shapes: Mapping[str, np.ndarray] = {}
        self._buffer = np.zeros(0, dtype=np.float32)
        self._phases = np.zeros(0)
        self.state = AnimatorState(camera_distance=self.scene.min_distance)

        self._allocate()

        logger.info(
            f"ParticleFieldAnimator initialized ({self.particle_count} particles, "
            f"shape={self.scene.shape}, size={self.particle_size})"
        )

    @property
    def particle_count(self) -> int:
        """Effective particle count (scene override or device default)."""
        return self.scene.particle_count or self.profile.particle_count

    @property
    def particle_size(self) -> float:
        """Effective base point size."""
        return self.scene.particle_size or self.profile.particle_size

    @property
    def mode(self) -> AnimatorMode:
        return self.state.mode

    @property
    def shapes(self) -> Mapping[str, np.ndarray]:
        """Read-only shape set for the current particle count."""
        return self._shapes

    @property
    def positions(self) -> np.ndarray:
        """Read-only view of the live point buffer."""
        view = self._buffer.view()
        view.setflags(write=False)
        return view

    def _allocate(self) -> None:
        """Generate shapes and reset the buffer to the configured shape."""
        count = self.particle_count
        shapes = generate_shape_set(count, self._rng, glyph_text=self.scene.glyph_text)

        self._shapes = shapes
        self._buffer = np.array(shapes[self.scene.shape], dtype=np.float32)
        self._phases = np.arange(count, dtype=np.float64) / count * 2.0 * np.pi

    def configure(self, **changes: Any) -> None:
        """
        Apply scene changes between ticks.

        Changing particle_count or glyph_text regenerates the shape set
        and reallocates the buffer; other changes keep the buffer.

        Args:
            **changes: SceneConfig field names and new values.

        Raises:
            ValueError: If a key is not a SceneConfig field.
            ShapeGenerationError: If regenerated shapes fail. The previous
                configuration stays active.
        """
        valid = {f.name for f in fields(SceneConfig)}
        unknown = set(changes) - valid
        if unknown:
            raise ValueError(f"Unknown scene option(s): {', '.join(sorted(unknown))}")

        previous = self.scene
        previous_count = self.particle_count
        self.scene = replace(self.scene, **changes).sanitized()

        if self.particle_count != previous_count or self.scene.glyph_text != previous.glyph_text:
            try:
                self._allocate()
            except ShapeGenerationError:
                self.scene = previous
                raise
            logger.info(f"Shapes regenerated for {self.particle_count} particles")

        if self.scene.shape != previous.shape:
            logger.info(f"Shape changed: {previous.shape} -> {self.scene.shape}")

        self.state.camera_distance = min(
            max(self.state.camera_distance, self.scene.min_distance),
            self.scene.max_distance
        )

    def _update_mode(self, heart: bool) -> AnimatorMode:
        mode = AnimatorMode.HEART_OVERRIDE if heart else AnimatorMode.NORMAL
        if mode != self.state.mode:
            logger.info(f"Animator mode: {self.state.mode.name} -> {mode.name}")
            self.state.mode = mode
        return mode

    def tick(self, signal: StableGestureSignal, elapsed: float) -> RenderFrame:
        """
        Advance the particle field by one frame.

        Args:
            signal: Current stable gesture signal.
            elapsed: Animation time in seconds.

        Returns:
            RenderFrame for this tick.
        """
        dyn = self.dynamics
        scene = self.scene
        mode = self._update_mode(signal.is_heart_gesture)
        count = self.particle_count

        breathing = 1.0 + math.sin(elapsed * scene.breathing_speed * 2.0 * math.pi) * scene.breathing_intensity

        if mode == AnimatorMode.HEART_OVERRIDE:
            target = self._shapes[GLYPH_SHAPE]
            strength = 0.0
            scale = HEART_OVERRIDE_SCALE
            jitter = 0.0
            lerp = HEART_OVERRIDE_LERP
        else:
            target = self._shapes[scene.shape]
            strength = min(1.0, max(0.0, signal.strength))
            scale = (dyn.min_scale + strength * dyn.scale_range) * breathing
            jitter = strength * dyn.jitter_gain
            lerp = dyn.base_lerp + strength * dyn.lerp_gain

        # Traveling wave keeps neighbouring points from moving in lockstep
        wave = np.sin(self._phases + elapsed * dyn.wave_speed) * dyn.wave_amplitude
        particle_scale = (scale + wave * strength).astype(np.float32)

        goal = target.reshape(count, 3) * particle_scale[:, None]
        if jitter > 0.0:
            goal += ((self._rng.random((count, 3)) - 0.5) * jitter).astype(np.float32)

        points = self._buffer.reshape(count, 3)
        points += (goal - points) * np.float32(lerp)

        self._update_rotation(signal, mode)
        self._update_camera(signal)

        if mode == AnimatorMode.HEART_OVERRIDE:
            opacity = HEART_OVERRIDE_OPACITY
            point_size = self.particle_size * HEART_OVERRIDE_SIZE_FACTOR
            color = self._heart_color
        else:
            opacity = min(1.0, max(0.0, (BASE_OPACITY + strength * OPACITY_GAIN) * breathing))
            point_size = self.particle_size * (1.0 + strength * POINT_SIZE_GAIN) * breathing
            color = scene.color_bgr

        self.state.tick_count += 1

        positions = self._buffer.copy()
        positions.setflags(write=False)
        return RenderFrame(
            positions=positions,
            changed=True,
            opacity=opacity,
            point_size=point_size,
            color=color,
            camera_distance=self.state.camera_distance,
            rotation=tuple(float(a) for a in self.state.rotation),
            mode=mode,
            elapsed=elapsed,
        )

    def _update_rotation(self, signal: StableGestureSignal, mode: AnimatorMode) -> None:
        dyn = self.dynamics
        rotation = self.state.rotation

        if mode == AnimatorMode.HEART_OVERRIDE:
            # Text stays readable: turn back to face the viewer
            target_yaw = 0.0
            rate = dyn.rotation_rate_facing
        else:
            target_yaw = math.radians(signal.rotation.yaw) * self.scene.rotation_sensitivity
            rate = dyn.rotation_rate_facing if signal.is_facing_camera else dyn.rotation_rate_normal

        rotation[1] += (target_yaw - rotation[1]) * rate
        rotation[0] += (0.0 - rotation[0]) * dyn.rotation_rate_idle_axes
        rotation[2] += (0.0 - rotation[2]) * dyn.rotation_rate_idle_axes

    def _update_camera(self, signal: StableGestureSignal) -> None:
        scene = self.scene
        desired = scene.min_distance + signal.distance * scene.distance_sensitivity
        desired = min(max(desired, scene.min_distance), scene.max_distance)
        self.state.camera_distance += (desired - self.state.camera_distance) * self.dynamics.camera_approach_rate
