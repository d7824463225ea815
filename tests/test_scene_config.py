"""
Test cases for scene configuration loading and validation.
"""
import json
import os
import tempfile
import unittest

from HandParticleSculpture.scene_config import (
    SceneConfig,
    SceneConfigError,
    load_scene_config,
    parse_hex_color,
)


class TestParseHexColor(unittest.TestCase):
    """Test hex color parsing."""

    def test_returns_bgr(self):
        self.assertEqual(parse_hex_color("#ff3366"), (0x66, 0x33, 0xff))

    def test_hash_is_optional(self):
        self.assertEqual(parse_hex_color("00FFFF"), (255, 255, 0))

    def test_invalid_colors_raise(self):
        for value in ("#fff", "red", "", None, "#gggggg"):
            with self.assertRaises(ValueError):
                parse_hex_color(value)


class TestSceneConfig(unittest.TestCase):
    """Test dictionary parsing and sanitizing."""

    def test_defaults(self):
        scene = SceneConfig()
        self.assertIsNone(scene.particle_count)
        self.assertEqual(scene.shape, "Heart")
        self.assertEqual(scene.min_distance, 5.0)
        self.assertEqual(scene.max_distance, 15.0)
        self.assertEqual(scene.sanitized(), scene)

    def test_from_dict_camel_case(self):
        scene = SceneConfig.from_dict({
            "particleCount": 2000,
            "shape": "Knot",
            "color": "#112233",
            "breathingSpeed": 0.5,
            "glyphText": "HI",
        })
        self.assertEqual(scene.particle_count, 2000)
        self.assertEqual(scene.shape, "Knot")
        self.assertEqual(scene.color_bgr, (0x33, 0x22, 0x11))
        self.assertEqual(scene.breathing_speed, 0.5)
        self.assertEqual(scene.glyph_text, "HI")

    def test_unknown_keys_are_ignored(self):
        scene = SceneConfig.from_dict({"shape": "Sphere", "bogus": 1})
        self.assertEqual(scene.shape, "Sphere")

    def test_out_of_range_values_are_clamped(self):
        scene = SceneConfig.from_dict({
            "particleCount": 10,
            "particleSize": 3.0,
            "rotationSensitivity": -1.0,
            "distanceSensitivity": 100.0,
            "breathingIntensity": 0.9,
        })
        self.assertEqual(scene.particle_count, 100)
        self.assertEqual(scene.particle_size, 0.5)
        self.assertEqual(scene.rotation_sensitivity, 0.0)
        self.assertEqual(scene.distance_sensitivity, 30.0)
        self.assertEqual(scene.breathing_intensity, 0.5)

    def test_min_max_distance_are_swapped(self):
        scene = SceneConfig.from_dict({"minDistance": 20.0, "maxDistance": 8.0})
        self.assertEqual((scene.min_distance, scene.max_distance), (8.0, 20.0))

    def test_invalid_values_fall_back_to_defaults(self):
        scene = SceneConfig.from_dict({
            "shape": "Cube",
            "color": "blue",
            "particleCount": "many",
            "rotationSensitivity": True,
            "deviceClass": "toaster",
        })
        defaults = SceneConfig()
        self.assertEqual(scene.shape, defaults.shape)
        self.assertEqual(scene.color, defaults.color)
        self.assertIsNone(scene.particle_count)
        self.assertEqual(scene.rotation_sensitivity, defaults.rotation_sensitivity)
        self.assertIsNone(scene.device_class)

    def test_non_finite_numbers_fall_back_to_defaults(self):
        scene = SceneConfig.from_dict({
            "particleCount": float("nan"),
            "particleSize": float("inf"),
            "minDistance": float("nan"),
            "maxDistance": float("-inf"),
            "rotationSensitivity": float("nan"),
        })
        defaults = SceneConfig()
        self.assertIsNone(scene.particle_count)
        self.assertIsNone(scene.particle_size)
        self.assertEqual(scene.min_distance, defaults.min_distance)
        self.assertEqual(scene.max_distance, defaults.max_distance)
        self.assertEqual(scene.rotation_sensitivity, defaults.rotation_sensitivity)

    def test_device_class_is_normalized(self):
        self.assertEqual(SceneConfig.from_dict({"deviceClass": "Mobile"}).device_class, "mobile")

    def test_to_dict_uses_camel_case(self):
        data = SceneConfig(shape="Flower").to_dict()
        self.assertEqual(data["shape"], "Flower")
        self.assertIn("breathingIntensity", data)
        self.assertEqual(SceneConfig.from_dict(data), SceneConfig(shape="Flower"))


class TestLoadSceneConfig(unittest.TestCase):
    """Test loading scene files from disk."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_load_valid_file(self):
        path = self.write("scene.json", json.dumps({"shape": "Fireworks", "particleCount": 3000}))
        scene = load_scene_config(path)
        self.assertEqual(scene.shape, "Fireworks")
        self.assertEqual(scene.particle_count, 3000)

    def test_nan_and_infinity_literals_are_sanitized(self):
        path = self.write(
            "nan.json",
            '{"particleCount": Infinity, "minDistance": NaN, "breathingSpeed": -Infinity}'
        )
        scene = load_scene_config(path)
        defaults = SceneConfig()
        self.assertIsNone(scene.particle_count)
        self.assertEqual(scene.min_distance, defaults.min_distance)
        self.assertEqual(scene.breathing_speed, defaults.breathing_speed)

    def test_missing_file_raises(self):
        with self.assertRaises(SceneConfigError):
            load_scene_config(os.path.join(self.tmpdir.name, "missing.json"))

    def test_directory_raises(self):
        with self.assertRaises(SceneConfigError):
            load_scene_config(self.tmpdir.name)

    def test_invalid_json_raises(self):
        path = self.write("broken.json", "{shape: Heart")
        with self.assertRaises(SceneConfigError):
            load_scene_config(path)

    def test_non_object_raises(self):
        path = self.write("list.json", "[1, 2, 3]")
        with self.assertRaises(SceneConfigError):
            load_scene_config(path)


if __name__ == "__main__":
    unittest.main()
