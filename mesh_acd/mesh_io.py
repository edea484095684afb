"""
Mesh import/export at the edges of the pipeline.

The decomposition core only ever sees IndexedMesh objects. This module
is the glue on either side of it:
- load_meshes(): read any format trimesh understands and pack each
  geometry into stride-8 vertex records (position, normal, uv)
- export_submeshes(): write the convex pieces to a scene file, one
  named, colored geometry per piece
- to_render_buffers(): the flat float32/uint32 buffers a GPU upload
  function expects

We use trimesh for file handling, keeping the backend in one place so
it could be swapped later without touching the core.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
import numpy as np
import trimesh

from .display_colors import color_to_rgb255
from .mesh_data import ConvexSubMesh, IndexedMesh

logger = logging.getLogger(__name__)


def trimesh_to_indexed(tmesh: trimesh.Trimesh, name: Optional[str] = None) -> IndexedMesh:
    """
    Pack a trimesh.Trimesh into an IndexedMesh.

    Normals come from trimesh's vertex normals. Texture coordinates are
    taken from the visual when it carries one uv per vertex; otherwise
    they are zero.

    Args:
        tmesh: Source trimesh
        name: Optional label for the mesh

    Returns:
        IndexedMesh with stride-8 records
    """
    positions = np.asarray(tmesh.vertices, dtype=np.float32)
    normals = np.asarray(tmesh.vertex_normals, dtype=np.float32)

    uv = getattr(tmesh.visual, "uv", None)
    if uv is not None and len(uv) == len(positions):
        uv = np.asarray(uv, dtype=np.float32)[:, :2]
    else:
        uv = np.zeros((len(positions), 2), dtype=np.float32)

    records = np.hstack([positions, normals, uv])
    return IndexedMesh(records, np.asarray(tmesh.faces).ravel(), name=name)


def indexed_to_trimesh(mesh: IndexedMesh) -> trimesh.Trimesh:
    """
    Convert an IndexedMesh back to trimesh (positions and faces only).

    Sub-meshes keep their display color as a face color.
    """
    tmesh = trimesh.Trimesh(
        vertices=np.asarray(mesh.positions, dtype=np.float64),
        faces=np.asarray(mesh.triangles),
        process=False  # Keep vertex order exactly as we built it
    )
    if isinstance(mesh, ConvexSubMesh) and len(tmesh.faces):
        r, g, b = color_to_rgb255(mesh.color)
        tmesh.visual.face_colors = np.tile([r, g, b, 255], (len(tmesh.faces), 1))
    return tmesh


def load_meshes(path: Union[str, Path]) -> List[IndexedMesh]:
    """
    Load every triangle geometry from a mesh/scene file.

    Scenes are split into their geometries (one IndexedMesh each, named
    after the geometry); a plain mesh file gives a single IndexedMesh
    named after the file.

    Args:
        path: Path to any file trimesh can load (OBJ, STL, PLY, GLB, OFF...)

    Returns:
        List of IndexedMesh objects

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file contains no triangle geometry
    """
    input_file = Path(path)
    if not input_file.exists():
        raise FileNotFoundError(f"Input mesh not found: {path}")

    loaded = trimesh.load(str(input_file))

    if isinstance(loaded, trimesh.Scene):
        geometries = [
            (name, geometry) for name, geometry in loaded.geometry.items()
            if isinstance(geometry, trimesh.Trimesh)
        ]
    elif isinstance(loaded, trimesh.Trimesh):
        geometries = [(input_file.stem, loaded)]
    else:
        geometries = []

    meshes = [
        trimesh_to_indexed(geometry, name=name)
        for name, geometry in geometries
        if len(geometry.faces) > 0
    ]
    if not meshes:
        raise ValueError(f"No triangle geometry found in {input_file.name}")

    logger.info("Loaded %d mesh(es) from %s", len(meshes), input_file.name)
    return meshes


def export_submeshes(submeshes: Sequence[ConvexSubMesh], output_path: Union[str, Path]) -> str:
    """
    Write convex pieces to a scene file, one named geometry per piece.

    The format follows the file extension (.glb, .gltf, .obj, .ply...).

    Args:
        submeshes: Pieces to export
        output_path: Where to write

    Returns:
        The output path as a string

    Raises:
        ValueError: If there is nothing to export
    """
    if not submeshes:
        raise ValueError("No convex pieces to export")

    scene = trimesh.Scene()
    for i, submesh in enumerate(submeshes):
        name = submesh.name or f"convex_{i}"
        scene.add_geometry(indexed_to_trimesh(submesh), node_name=name, geom_name=name)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    scene.export(str(output_file))
    logger.info("Exported %d convex piece(s) to %s", len(submeshes), output_file)
    return str(output_file)


def to_render_buffers(submesh: ConvexSubMesh) -> Dict[str, object]:
    """
    Buffers for a GPU upload: stride-8 float32 vertices, uint32 indices, color.

    Uploading (and owning whatever handle comes back) is up to the caller.
    """
    return {
        "vertices": np.ascontiguousarray(submesh.flat_vertices(), dtype=np.float32),
        "indices": np.ascontiguousarray(submesh.indices, dtype=np.uint32),
        "color": submesh.color,
    }
