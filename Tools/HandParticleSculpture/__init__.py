"""
HandParticleSculpture - Gesture-driven particle sculpture using MediaPipe Hands.

The gesture pipeline (analyzer, stabilizer) and the particle engine
(shape library, animator) import without MediaPipe or a camera; the
application shell lives in sculpture_app.
"""

__version__ = "1.0.0"
__author__ = "HandParticleSculpture Team"

from .device_profile import DeviceClass, DeviceProfile, SmoothingFactors, detect_device_class
from .landmarks import HandLandmarks, Landmark, LandmarkIndex, HAND_CONNECTIONS
from .gesture_analyzer import RawGestureMetrics, PalmRotation, analyze
from .gesture_stabilizer import GestureStabilizer, StableGestureSignal
from .shape_library import SHAPE_NAMES, ShapeGenerationError, generate, generate_shape_set
from .scene_config import SceneConfig, SceneConfigError, load_scene_config
from .particle_animator import AnimatorMode, ParticleFieldAnimator, RenderFrame
from .animation_loop import AnimationLoop

__all__ = [
    "DeviceClass",
    "DeviceProfile",
    "SmoothingFactors",
    "detect_device_class",
    "HandLandmarks",
    "Landmark",
    "LandmarkIndex",
    "HAND_CONNECTIONS",
    "RawGestureMetrics",
    "PalmRotation",
    "analyze",
    "GestureStabilizer",
    "StableGestureSignal",
    "SHAPE_NAMES",
    "ShapeGenerationError",
    "generate",
    "generate_shape_set",
    "SceneConfig",
    "SceneConfigError",
    "load_scene_config",
    "AnimatorMode",
    "ParticleFieldAnimator",
    "RenderFrame",
    "AnimationLoop",
]
