"""
Procedural shape library for HandParticleSculpture.

Each generator returns a flat, read-only float32 array of
3 * particle_count coordinates (x0, y0, z0, x1, ...). Randomness comes
from an injected numpy Generator so tests can reproduce a cloud; without
one every call draws a fresh, unseeded sample.
"""

from types import MappingProxyType
from typing import Callable, Final, Mapping, Optional

import cv2
import numpy as np

from .logger import get_logger
from .config import (
    SPHERE_RADIUS,
    FLOWER_BASE_RADIUS,
    FLOWER_PETALS,
    KNOT_P,
    KNOT_Q,
    KNOT_BASE_RADIUS,
    KNOT_RADIUS_MODULATION,
    FIREWORKS_EXTENT,
    HEART_CURVE_RADIUS,
    HEART_MAX_DEPTH,
    HEART_CUSP_SMOOTH_RANGE,
    HEART_SCALE,
    HEART_DEPTH_SCALE,
    HEART_Y_OFFSET,
    GLYPH_CANVAS_WIDTH,
    GLYPH_CANVAS_HEIGHT,
    GLYPH_SAMPLE_STEP,
    GLYPH_ALPHA_THRESHOLD,
    GLYPH_PIXELS_PER_UNIT,
    GLYPH_JITTER_XY,
    GLYPH_JITTER_Z,
    GLYPH_TEXT_MARGIN,
    GLYPH_TEXT_HEIGHT_PX,
    DEFAULT_GLYPH_TEXT,
    EMPTY_GLYPH_FALLBACK_SHAPE,
)

logger = get_logger("ShapeLibrary")

GLYPH_SHAPE: Final[str] = "LoveGlyph"
SHAPE_NAMES: Final[tuple[str, ...]] = ("Heart", "Sphere", "Flower", "Knot", "Fireworks", GLYPH_SHAPE)

_GLYPH_FONT = cv2.FONT_HERSHEY_DUPLEX


class ShapeGenerationError(Exception):
    """Raised when a shape cannot be generated."""
    pass


def _finalize(points: np.ndarray) -> np.ndarray:
    """Flatten (N, 3) points into a read-only float32 array."""
    flat = np.ascontiguousarray(points, dtype=np.float32).reshape(-1)
    flat.setflags(write=False)
    return flat


def _heart(count: int, rng: np.random.Generator) -> np.ndarray:
    """Solid heart: parametric outline filled radially and in depth."""
    t = rng.uniform(0.0, 2.0 * np.pi, count)
    base_x = 16.0 * np.sin(t) ** 3
    base_y = 13.0 * np.cos(t) - 5.0 * np.cos(2 * t) - 2.0 * np.cos(3 * t) - np.cos(4 * t)

    # Cube-root ratios give uniform volume density
    radial_ratio = rng.random(count) ** (1.0 / 3.0)

    normalized_r = np.sqrt(base_x ** 2 + base_y ** 2) / HEART_CURVE_RADIUS
    max_depth = HEART_MAX_DEPTH * np.sqrt(np.maximum(0.1, 1.0 - normalized_r ** 0.8))
    depth_ratio = rng.random(count) ** (1.0 / 3.0)
    z = (rng.random(count) - 0.5) * 2.0 * max_depth * depth_ratio

    x = base_x * radial_ratio
    y = base_y * radial_ratio

    # Round off the cusp
    smooth = np.maximum(0.0, 1.0 - np.abs(y) / HEART_CUSP_SMOOTH_RANGE)
    x = x * (1.0 + smooth * 0.2)
    y = y * (1.0 + smooth * 0.15)

    return np.column_stack([
        x * HEART_SCALE,
        y * HEART_SCALE + HEART_Y_OFFSET,
        z * HEART_DEPTH_SCALE,
    ])


def _sphere(count: int, rng: np.random.Generator) -> np.ndarray:
    """Fibonacci sphere. Deterministic for a given count."""
    i = np.arange(count, dtype=np.float64)
    phi = np.arccos(np.clip(-1.0 + (2.0 * i) / count, -1.0, 1.0))
    theta = np.sqrt(count * np.pi) * phi
    return np.column_stack([
        SPHERE_RADIUS * np.cos(theta) * np.sin(phi),
        SPHERE_RADIUS * np.sin(theta) * np.sin(phi),
        SPHERE_RADIUS * np.cos(phi),
    ])


def _flower(count: int, rng: np.random.Generator) -> np.ndarray:
    theta = rng.uniform(0.0, 2.0 * np.pi, count)
    phi = rng.uniform(0.0, np.pi, count)
    r = FLOWER_BASE_RADIUS + np.sin(FLOWER_PETALS * theta) * np.sin(FLOWER_PETALS * phi)
    return np.column_stack([
        r * np.sin(phi) * np.cos(theta),
        r * np.sin(phi) * np.sin(theta),
        r * np.cos(phi),
    ])


def _knot(count: int, rng: np.random.Generator) -> np.ndarray:
    """Torus-knot-like tube with (p, q) winding."""
    u = rng.uniform(0.0, 2.0 * np.pi, count)
    v = rng.uniform(0.0, 2.0 * np.pi, count)
    r = KNOT_BASE_RADIUS + np.cos(KNOT_Q * u / KNOT_P) * KNOT_RADIUS_MODULATION
    tube = 2.0 + np.cos(v)
    return np.column_stack([
        r * np.cos(u) * tube,
        r * np.sin(u) * tube,
        r * np.sin(v),
    ])


def _fireworks(count: int, rng: np.random.Generator) -> np.ndarray:
    return (rng.random((count, 3)) - 0.5) * FIREWORKS_EXTENT


def rasterize_text(text: str) -> np.ndarray:
    """
    Render text centered onto the glyph canvas.

    The font scale is chosen so the text is about GLYPH_TEXT_HEIGHT_PX
    tall without overflowing the canvas width. Hershey fonts only cover
    ASCII; other characters render as '?'.

    Args:
        text: Text to render.

    Returns:
        uint8 mask of shape (GLYPH_CANVAS_HEIGHT, GLYPH_CANVAS_WIDTH),
        255 where text was drawn.
    """
    canvas = np.zeros((GLYPH_CANVAS_HEIGHT, GLYPH_CANVAS_WIDTH), dtype=np.uint8)
    if not text or not text.strip():
        return canvas

    (unit_w, unit_h), _ = cv2.getTextSize(text, _GLYPH_FONT, 1.0, 1)
    if unit_w <= 0 or unit_h <= 0:
        return canvas

    scale = min(
        GLYPH_TEXT_HEIGHT_PX / unit_h,
        GLYPH_CANVAS_WIDTH * GLYPH_TEXT_MARGIN / unit_w,
    )
    thickness = max(1, int(round(scale * 2)))
    (text_w, text_h), baseline = cv2.getTextSize(text, _GLYPH_FONT, scale, thickness)

    origin = (
        (GLYPH_CANVAS_WIDTH - text_w) // 2,
        (GLYPH_CANVAS_HEIGHT + text_h) // 2,
    )
    cv2.putText(canvas, text, origin, _GLYPH_FONT, scale, 255, thickness, cv2.LINE_AA)
    return canvas


def glyph_pixels(mask: np.ndarray) -> np.ndarray:
    """
    Collect sampled text pixels as centered plane coordinates.

    Args:
        mask: uint8 raster from rasterize_text().

    Returns:
        (M, 3) array of points with z = 0. M may be zero.
    """
    height, width = mask.shape[:2]
    sampled = mask[::GLYPH_SAMPLE_STEP, ::GLYPH_SAMPLE_STEP]
    rows, cols = np.nonzero(sampled > GLYPH_ALPHA_THRESHOLD)
    ys = rows * GLYPH_SAMPLE_STEP
    xs = cols * GLYPH_SAMPLE_STEP

    return np.column_stack([
        (xs - width / 2) / GLYPH_PIXELS_PER_UNIT,
        -(ys - height / 2) / GLYPH_PIXELS_PER_UNIT,
        np.zeros(len(xs)),
    ]).astype(np.float64)


def _glyph(
    count: int,
    rng: np.random.Generator,
    text: str = DEFAULT_GLYPH_TEXT,
    fallback: Optional[str] = EMPTY_GLYPH_FALLBACK_SHAPE
) -> np.ndarray:
    """Particle cloud sampled with replacement from rasterized text."""
    pixels = glyph_pixels(rasterize_text(text))

    if len(pixels) == 0:
        if fallback is not None and fallback != GLYPH_SHAPE:
            logger.warning(f"Glyph text {text!r} produced no pixels, using {fallback} shape")
            return _GENERATORS[fallback](count, rng)
        logger.warning(f"Glyph text {text!r} produced no pixels, collapsing to origin")
        return np.zeros((count, 3))

    picks = pixels[rng.integers(0, len(pixels), count)]
    jitter = rng.random((count, 3)) - 0.5
    jitter[:, 0] *= GLYPH_JITTER_XY
    jitter[:, 1] *= GLYPH_JITTER_XY
    jitter[:, 2] *= GLYPH_JITTER_Z
    return picks + jitter


_GENERATORS: dict[str, Callable[[int, np.random.Generator], np.ndarray]] = {
    "Heart": _heart,
    "Sphere": _sphere,
    "Flower": _flower,
    "Knot": _knot,
    "Fireworks": _fireworks,
}


def generate(
    name: str,
    particle_count: int,
    rng: Optional[np.random.Generator] = None,
    glyph_text: str = DEFAULT_GLYPH_TEXT,
    glyph_fallback: Optional[str] = EMPTY_GLYPH_FALLBACK_SHAPE
) -> np.ndarray:
    """
    Generate one shape.

    Args:
        name: One of SHAPE_NAMES.
        particle_count: Number of points (must be >= 1).
        rng: Random source. Uses an unseeded generator if None.
        glyph_text: Text for the glyph shape.
        glyph_fallback: Shape used if the glyph text has no pixels.

    Returns:
        Read-only float32 array of length 3 * particle_count.

    Raises:
        ShapeGenerationError: If the name is unknown, the count is invalid
            or the result is not finite.
    """
    if name not in SHAPE_NAMES:
        raise ShapeGenerationError(
            f"Unknown shape '{name}' (expected one of: {', '.join(SHAPE_NAMES)})"
        )
    if isinstance(particle_count, bool) or not isinstance(particle_count, (int, np.integer)):
        raise ShapeGenerationError(f"Particle count must be an integer, got {particle_count!r}")
    if particle_count < 1:
        raise ShapeGenerationError(f"Particle count must be positive, got {particle_count}")
    if glyph_fallback is not None and glyph_fallback not in _GENERATORS:
        raise ShapeGenerationError(f"Invalid glyph fallback shape '{glyph_fallback}'")

    rng = rng if rng is not None else np.random.default_rng()
    count = int(particle_count)

    if name == GLYPH_SHAPE:
        points = _glyph(count, rng, glyph_text, glyph_fallback)
    else:
        points = _GENERATORS[name](count, rng)

    if not np.all(np.isfinite(points)):
        raise ShapeGenerationError(f"Shape '{name}' produced non-finite coordinates")

    return _finalize(points)


def generate_shape_set(
    particle_count: int,
    rng: Optional[np.random.Generator] = None,
    glyph_text: str = DEFAULT_GLYPH_TEXT,
    glyph_fallback: Optional[str] = EMPTY_GLYPH_FALLBACK_SHAPE
) -> Mapping[str, np.ndarray]:
    """
    Generate every shape for a particle count.

    Returns:
        Read-only mapping of shape name to flat coordinate array.

    Raises:
        ShapeGenerationError: If any shape fails to generate.
    """
    rng = rng if rng is not None else np.random.default_rng()
    shapes = {
        name: generate(name, particle_count, rng, glyph_text, glyph_fallback)
        for name in SHAPE_NAMES
    }
    logger.info(f"Generated {len(shapes)} shapes with {particle_count} particles each")
    return MappingProxyType(shapes)
