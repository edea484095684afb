"""
Tests for the file-to-file conversion pipeline.

These run the whole flow: write a mesh file with trimesh, decompose it,
and check every artifact that comes out.
"""

import json
import threading
import unittest
import tempfile
import shutil
import sys
from pathlib import Path

# Add parent directory to path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_acd.config import DecompositionConfig
from mesh_acd.converter import convert_mesh_file, format_filesize
from mesh_acd.decomposer import DecompositionCancelled
from mesh_acd.mesh_io import load_meshes
from tests.helpers import create_cube, create_tent_grid, write_trimesh_file, cleanup_test_file


class TestFormatFilesize(unittest.TestCase):

    def test_values(self):
        self.assertEqual(format_filesize(0), "0B")
        self.assertEqual(format_filesize(512), "512 B")
        self.assertEqual(format_filesize(1536), "1.5 KB")
        self.assertEqual(format_filesize(3 * 1024 * 1024), "3 MB")


class TestConvertMeshFile(unittest.TestCase):
    """Test convert_mesh_file() end to end."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.test_files = []

    def tearDown(self):
        for path in self.test_files:
            cleanup_test_file(path)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_cube_defaults(self):
        input_path = write_trimesh_file(create_cube(), suffix=".stl")
        self.test_files.append(input_path)
        output_path = str(Path(self.temp_dir) / "cube_convex.glb")

        stats = convert_mesh_file(input_path, output_path)

        self.assertEqual(stats['num_meshes'], 1)
        # Every cube face is 90 degrees from its neighbors: one piece per face
        self.assertEqual(stats['num_pieces'], 6)
        self.assertEqual(stats['input_triangles'], 12)
        self.assertEqual(stats['output_triangles'], 12)
        self.assertFalse(stats['partial_coverage'])
        self.assertEqual(stats['dropped_triangles'], 0)
        self.assertTrue(Path(output_path).exists())
        self.assertNotIn('summary_path', stats)
        self.assertNotIn('render_path', stats)
        self.assertNotIn('validation_results', stats)

        reloaded = load_meshes(output_path)
        self.assertEqual(sum(m.triangle_count for m in reloaded), 12)

    def test_all_extras(self):
        input_path = write_trimesh_file(create_tent_grid(), suffix=".ply")
        self.test_files.append(input_path)
        output_path = str(Path(self.temp_dir) / "tent_convex.glb")
        config = DecompositionConfig(validate_submeshes=True, write_summary=True, render_preview=True)

        stages = []
        with self.assertLogs('mesh_acd.mesh_validation', level='INFO') as logs:
            stats = convert_mesh_file(
                input_path, output_path, config,
                progress_callback=lambda stage, message: stages.append(stage)
            )

        # One validation line per piece
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(stages.count("validate"), 2)
        self.assertEqual(stats['num_pieces'], 2)
        self.assertEqual(len(stats['validation_results']), 2)
        self.assertTrue(Path(stats['summary_path']).exists())
        self.assertTrue(Path(stats['render_path']).exists())

        summary = json.loads(Path(stats['summary_path']).read_text(encoding='utf-8'))
        self.assertEqual(summary["totals"]["pieces"], 2)
        self.assertIn("validation", summary["pieces"][0])

        for stage in ("load", "validate", "export", "render"):
            self.assertIn(stage, stages)

    def test_partial_coverage(self):
        input_path = write_trimesh_file(create_cube(), suffix=".stl")
        self.test_files.append(input_path)
        output_path = str(Path(self.temp_dir) / "cube_convex.glb")

        stats = convert_mesh_file(input_path, output_path, DecompositionConfig(max_clusters=2))

        self.assertEqual(stats['num_pieces'], 2)
        self.assertTrue(stats['partial_coverage'])
        self.assertEqual(stats['dropped_triangles'], 8)

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            convert_mesh_file(
                str(Path(self.temp_dir) / "missing.stl"),
                str(Path(self.temp_dir) / "out.glb")
            )

    def test_cancelled_before_start(self):
        input_path = write_trimesh_file(create_cube(), suffix=".stl")
        self.test_files.append(input_path)
        cancel = threading.Event()
        cancel.set()

        with self.assertRaises(DecompositionCancelled):
            convert_mesh_file(input_path, str(Path(self.temp_dir) / "out.glb"), cancel_event=cancel)


if __name__ == '__main__':
    unittest.main()
