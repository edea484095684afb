"""
Unit tests for the convexity module.

Tests face normals, normal angles and the two convexity metrics.
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_acd.adjacency import Triangle, construct_adjacency
from mesh_acd.convexity import (
    NormalAngleMetric,
    HullDeviationMetric,
    angle_between_normals,
    centroid_distance,
    face_normal,
    get_convexity_metric
)
from mesh_acd.mesh_data import IndexedMesh
from tests.helpers import (
    make_vertices,
    create_single_triangle,
    create_coplanar_quad,
    create_cube,
    create_folded_strip
)


class TestFaceNormal(unittest.TestCase):
    """Test face_normal()."""

    def test_unit_normal(self):
        mesh = create_single_triangle()
        triangles = construct_adjacency(mesh)
        np.testing.assert_allclose(face_normal(mesh, triangles[0]), [0, 0, 1])

    def test_winding_flips_normal(self):
        mesh = create_single_triangle()
        np.testing.assert_allclose(face_normal(mesh, Triangle(0, (0, 2, 1))), [0, 0, -1])

    def test_degenerate_triangle(self):
        """Zero-area triangles give a zero normal instead of NaN."""
        mesh = IndexedMesh(make_vertices([(0, 0, 0), (1, 0, 0), (2, 0, 0)]), [0, 1, 2])
        normal = face_normal(mesh, Triangle(0, (0, 1, 2)))
        np.testing.assert_array_equal(normal, [0, 0, 0])


class TestAngleBetweenNormals(unittest.TestCase):
    """Test angle_between_normals()."""

    def test_same_direction(self):
        self.assertAlmostEqual(angle_between_normals(np.array([0, 0, 1.0]), np.array([0, 0, 1.0])), 0.0)

    def test_right_angle(self):
        self.assertAlmostEqual(angle_between_normals(np.array([0, 0, 1.0]), np.array([1.0, 0, 0])), 90.0)

    def test_opposite(self):
        self.assertAlmostEqual(angle_between_normals(np.array([0, 0, 1.0]), np.array([0, 0, -1.0])), 180.0)

    def test_rounding_is_clamped(self):
        """A dot product a hair above 1 must not break acos."""
        n = np.array([0.0, 0.0, 1.0 + 1e-12])
        self.assertAlmostEqual(angle_between_normals(n, n), 0.0)

    def test_zero_normal(self):
        self.assertEqual(angle_between_normals(np.zeros(3), np.array([0, 0, 1.0])), 0.0)


class TestCentroidDistance(unittest.TestCase):
    """Test centroid_distance()."""

    def test_quad_centroids(self):
        mesh = create_coplanar_quad()
        triangles = construct_adjacency(mesh)
        # Centroids (1/3, 1/3, 0) and (2/3, 2/3, 0)
        expected = np.sqrt(2) / 3
        self.assertAlmostEqual(centroid_distance(mesh, triangles[0], triangles[1]), expected)

    def test_same_triangle(self):
        mesh = create_coplanar_quad()
        triangles = construct_adjacency(mesh)
        self.assertEqual(centroid_distance(mesh, triangles[0], triangles[0]), 0.0)


class TestNormalAngleMetric(unittest.TestCase):
    """Test NormalAngleMetric."""

    def setUp(self):
        self.mesh = create_folded_strip()
        self.triangles = construct_adjacency(self.mesh)
        self.metric = NormalAngleMetric()

    def test_coplanar_neighbor(self):
        self.assertAlmostEqual(self.metric.evaluate(1, {0}, self.triangles, self.mesh), 0.0)

    def test_folded_neighbor(self):
        self.assertAlmostEqual(self.metric.evaluate(2, {0, 1}, self.triangles, self.mesh), 90.0)

    def test_mean_over_cluster_neighbors(self):
        """Triangle 3 touches 2 (flat, 0 deg) and 5 (folded, 90 deg)."""
        score = self.metric.evaluate(3, {2, 5}, self.triangles, self.mesh)
        self.assertAlmostEqual(score, 45.0)

    def test_no_cluster_neighbors(self):
        self.assertEqual(self.metric.evaluate(4, {0, 1}, self.triangles, self.mesh), 0.0)

    def test_accepts_is_inclusive(self):
        self.assertTrue(self.metric.accepts(20.0, 20.0))
        self.assertTrue(self.metric.accepts(0.0, 0.0))
        self.assertFalse(self.metric.accepts(20.5, 20.0))


class TestHullDeviationMetric(unittest.TestCase):
    """Test HullDeviationMetric."""

    def setUp(self):
        self.mesh = create_cube()
        self.triangles = construct_adjacency(self.mesh)

    def test_coplanar_candidate(self):
        metric = HullDeviationMetric()
        self.assertAlmostEqual(metric.evaluate(1, {0}, self.triangles, self.mesh), 0.0)

    def test_candidate_off_the_plane(self):
        """Triangle 7 (on y=1) reaches (1, 1, 1), one unit above the z=0 face."""
        metric = HullDeviationMetric()
        self.assertAlmostEqual(metric.evaluate(7, {0}, self.triangles, self.mesh), 1.0)

    def test_empty_cluster_has_no_deviation(self):
        metric = HullDeviationMetric()
        self.assertEqual(metric.evaluate(7, set(), self.triangles, self.mesh), 0.0)

    def test_quickhull_strategy(self):
        metric = HullDeviationMetric("quickhull")
        self.assertAlmostEqual(metric.evaluate(7, {0, 1}, self.triangles, self.mesh), 1.0)


class TestGetConvexityMetric(unittest.TestCase):
    """Test metric resolution."""

    def test_names(self):
        self.assertIsInstance(get_convexity_metric("normal_angle"), NormalAngleMetric)
        metric = get_convexity_metric("hull_deviation", "quickhull")
        self.assertIsInstance(metric, HullDeviationMetric)
        self.assertEqual(metric.hull_strategy.name, "quickhull")

    def test_instance_passthrough(self):
        metric = NormalAngleMetric()
        self.assertIs(get_convexity_metric(metric), metric)

    def test_unknown(self):
        with self.assertRaises(ValueError):
            get_convexity_metric("curvature")

    def test_default_thresholds(self):
        self.assertEqual(NormalAngleMetric.default_threshold, 20.0)
        self.assertEqual(HullDeviationMetric.default_threshold, 0.5)


if __name__ == '__main__':
    unittest.main()
