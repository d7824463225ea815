"""
Test cases for procedural particle shapes.
"""
import unittest

import numpy as np

from HandParticleSculpture.config import SPHERE_RADIUS
from HandParticleSculpture.shape_library import (
    GLYPH_SHAPE,
    SHAPE_NAMES,
    ShapeGenerationError,
    generate,
    generate_shape_set,
    glyph_pixels,
    rasterize_text,
)


class TestGenerate(unittest.TestCase):
    """Test single-shape generation."""

    def setUp(self):
        self.rng = np.random.default_rng(1234)

    def test_every_shape_has_expected_length(self):
        for name in SHAPE_NAMES:
            with self.subTest(shape=name):
                points = generate(name, 500, self.rng)
                self.assertEqual(points.shape, (1500,))
                self.assertEqual(points.dtype, np.float32)
                self.assertTrue(np.all(np.isfinite(points)))

    def test_result_is_read_only(self):
        points = generate("Flower", 100, self.rng)
        with self.assertRaises(ValueError):
            points[0] = 1.0

    def test_single_particle(self):
        for name in SHAPE_NAMES:
            with self.subTest(shape=name):
                self.assertEqual(len(generate(name, 1, self.rng)), 3)

    def test_sphere_lies_on_radius(self):
        points = generate("Sphere", 400).reshape(-1, 3)
        radii = np.linalg.norm(points, axis=1)
        np.testing.assert_allclose(radii, SPHERE_RADIUS, rtol=1e-5)

    def test_fireworks_within_cube(self):
        points = generate("Fireworks", 1000, self.rng)
        self.assertLessEqual(float(np.max(np.abs(points))), 6.0)

    def test_seeded_generation_is_reproducible(self):
        a = generate("Knot", 200, np.random.default_rng(7))
        b = generate("Knot", 200, np.random.default_rng(7))
        np.testing.assert_array_equal(a, b)

    def test_unknown_shape_raises(self):
        with self.assertRaises(ShapeGenerationError):
            generate("Cube", 100)

    def test_invalid_counts_raise(self):
        for count in (0, -5, 2.5, True, "100"):
            with self.subTest(count=count):
                with self.assertRaises(ShapeGenerationError):
                    generate("Heart", count)

    def test_invalid_fallback_raises(self):
        with self.assertRaises(ShapeGenerationError):
            generate(GLYPH_SHAPE, 10, glyph_fallback="Cube")


class TestGlyph(unittest.TestCase):
    """Test the rasterized text shape."""

    def test_rasterized_text_has_pixels(self):
        mask = rasterize_text("I LOVE YOU")
        self.assertEqual(mask.dtype, np.uint8)
        self.assertGreater(int(np.count_nonzero(mask)), 0)

    def test_glyph_is_flat_and_centered(self):
        points = generate(GLYPH_SHAPE, 2000, np.random.default_rng(3)).reshape(-1, 3)
        self.assertLessEqual(float(np.max(np.abs(points[:, 2]))), 0.25 + 1e-6)
        self.assertLess(abs(float(np.mean(points[:, 0]))), 0.5)
        self.assertLessEqual(float(np.max(np.abs(points[:, 0]))), 4.0 + 0.05 + 1e-6)

    def test_empty_text_uses_fallback_shape(self):
        """Blank text falls back to the heart cloud instead of failing."""
        points = generate(GLYPH_SHAPE, 300, np.random.default_rng(5), glyph_text="   ")
        self.assertEqual(len(points), 900)
        self.assertGreater(float(np.max(np.abs(points))), 0.0)

    def test_empty_text_without_fallback_collapses(self):
        points = generate(GLYPH_SHAPE, 50, glyph_text="", glyph_fallback=None)
        np.testing.assert_array_equal(points, np.zeros(150, dtype=np.float32))

    def test_glyph_pixels_of_blank_mask(self):
        self.assertEqual(glyph_pixels(np.zeros((30, 40), dtype=np.uint8)).shape, (0, 3))


class TestShapeSet(unittest.TestCase):
    """Test generating the full set."""

    def test_set_contains_every_shape(self):
        shapes = generate_shape_set(200, np.random.default_rng(0))
        self.assertEqual(set(shapes), set(SHAPE_NAMES))
        for points in shapes.values():
            self.assertEqual(len(points), 600)

    def test_set_is_read_only(self):
        shapes = generate_shape_set(100)
        with self.assertRaises(TypeError):
            shapes["Heart"] = None


if __name__ == "__main__":
    unittest.main()
