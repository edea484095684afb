"""
Unit tests for the extractor module.

Tests that convex sub-meshes are compact and reproduce their source
triangles exactly.
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_acd.extractor import extract_convex_submesh
from mesh_acd.mesh_data import ConvexSubMesh, IndexedMesh
from mesh_acd.partitioner import Cluster
from tests.helpers import create_cube, create_grid


def random_mesh(seed: int = 0) -> IndexedMesh:
    """Grid topology with random float32 records, so any reordering shows up."""
    grid = create_grid(3)
    rng = np.random.default_rng(seed)
    records = rng.standard_normal((grid.vertex_count, 8)).astype(np.float32)
    return IndexedMesh(records, grid.indices)


class TestExtractConvexSubmesh(unittest.TestCase):
    """Test extract_convex_submesh()."""

    def test_index_count(self):
        mesh = create_cube()
        sub = extract_convex_submesh([0, 1], mesh)
        self.assertEqual(len(sub.indices), 6)
        self.assertEqual(sub.triangle_count, 2)

    def test_vertices_are_deduplicated(self):
        """Two triangles of one cube face use 4 distinct vertices, not 6."""
        sub = extract_convex_submesh([0, 1], create_cube())
        self.assertEqual(sub.vertex_count, 4)

    def test_compact_indices(self):
        sub = extract_convex_submesh([10, 11], create_cube())
        self.assertEqual(sorted(set(sub.indices.tolist())), list(range(sub.vertex_count)))

    def test_round_trip_is_bit_exact(self):
        """Every output triangle reproduces its source triangle's full records."""
        mesh = random_mesh()
        cluster = [5, 2, 11, 3]
        sub = extract_convex_submesh(cluster, mesh)
        for out_id, source_id in enumerate(cluster):
            expected = mesh.vertices[mesh.triangles[source_id]]
            actual = sub.vertices[sub.triangles[out_id]]
            np.testing.assert_array_equal(actual, expected)
            self.assertEqual(actual.dtype, np.float32)

    def test_metadata(self):
        sub = extract_convex_submesh(
            Cluster([3, 4]),
            create_cube(),
            color=(0.1, 0.2, 0.3),
            source_mesh_index=2,
            cluster_index=5,
            name="cube_convex_5"
        )
        self.assertIsInstance(sub, ConvexSubMesh)
        self.assertEqual(sub.source_triangles, (3, 4))
        self.assertEqual(sub.source_mesh_index, 2)
        self.assertEqual(sub.cluster_index, 5)
        self.assertEqual(sub.color, (0.1, 0.2, 0.3))
        self.assertEqual(sub.name, "cube_convex_5")

    def test_empty_cluster(self):
        sub = extract_convex_submesh([], create_cube())
        self.assertEqual(sub.vertex_count, 0)
        self.assertEqual(sub.triangle_count, 0)

    def test_source_is_unchanged(self):
        mesh = random_mesh(1)
        before = mesh.vertices.copy()
        extract_convex_submesh([0, 1, 2], mesh)
        np.testing.assert_array_equal(mesh.vertices, before)


if __name__ == '__main__':
    unittest.main()
