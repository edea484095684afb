"""
Tests for configuration.

Tests the DecompositionConfig dataclass: defaults, per-metric threshold
resolution and validation.
"""

import unittest
from mesh_acd.config import DecompositionConfig
from mesh_acd.constants import (
    MAX_CLUSTERS,
    DEFAULT_ANGLE_THRESHOLD_DEG,
    DEFAULT_HULL_DEVIATION_THRESHOLD
)


class TestDecompositionConfigDefaults(unittest.TestCase):
    """Test default values."""

    def test_defaults(self):
        config = DecompositionConfig()
        self.assertEqual(config.max_clusters, MAX_CLUSTERS)
        self.assertEqual(config.metric, "normal_angle")
        self.assertEqual(config.adjacency, "edge")
        self.assertEqual(config.hull, "extremes")
        self.assertIsNone(config.task_timeout_s)
        self.assertFalse(config.validate_submeshes)

    def test_threshold_resolves_per_metric(self):
        self.assertEqual(DecompositionConfig().concavity_threshold, DEFAULT_ANGLE_THRESHOLD_DEG)
        self.assertEqual(
            DecompositionConfig(metric="hull_deviation").concavity_threshold,
            DEFAULT_HULL_DEVIATION_THRESHOLD
        )

    def test_explicit_threshold_kept(self):
        self.assertEqual(DecompositionConfig(concavity_threshold=0.0).concavity_threshold, 0.0)


class TestDecompositionConfigValidation(unittest.TestCase):
    """Test that invalid values raise ValueError."""

    def test_max_clusters_zero(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(max_clusters=0)

    def test_max_clusters_not_int(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(max_clusters=2.5)
        with self.assertRaises(ValueError):
            DecompositionConfig(max_clusters=True)

    def test_unknown_metric(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(metric="curvature")

    def test_unknown_adjacency(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(adjacency="face")

    def test_unknown_hull(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(hull="qhull")

    def test_negative_threshold(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(concavity_threshold=-1.0)

    def test_non_finite_threshold(self):
        for value in (float("nan"), float("inf")):
            with self.assertRaises(ValueError):
                DecompositionConfig(concavity_threshold=value)
        with self.assertRaises(ValueError):
            DecompositionConfig(metric="hull_deviation", concavity_threshold=float("nan"))

    def test_workers(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(max_workers=0)

    def test_timeout(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(task_timeout_s=0)
        with self.assertRaises(ValueError):
            DecompositionConfig(task_timeout_s=float("nan"))
        self.assertEqual(DecompositionConfig(task_timeout_s=2.5).task_timeout_s, 2.5)

    def test_color_mode(self):
        with self.assertRaises(ValueError):
            DecompositionConfig(color_mode="rainbow")


if __name__ == '__main__':
    unittest.main()
