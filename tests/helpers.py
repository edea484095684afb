"""
Test helper utilities for creating test fixtures and sample data.

This module provides small meshes with known decompositions, used
across multiple test files. All vertex records are stride 8 (position,
normal, uv); normals and uvs are filled with simple placeholder values
since the pipeline only reads positions.
"""

from typing import Callable, Optional, Sequence, Tuple
import os
import tempfile
import numpy as np
import trimesh

from mesh_acd.mesh_data import IndexedMesh


def make_vertices(
    positions: Sequence[Tuple[float, float, float]],
    normal: Tuple[float, float, float] = (0.0, 0.0, 1.0)
) -> np.ndarray:
    """
    Pack positions into (N, 8) float32 vertex records.

    Normals are all `normal`; uvs are the x and y of the position.
    """
    pos = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
    records = np.zeros((len(pos), 8), dtype=np.float32)
    records[:, 0:3] = pos
    records[:, 3:6] = normal
    records[:, 6:8] = pos[:, 0:2]
    return records


def create_single_triangle(name: Optional[str] = "triangle") -> IndexedMesh:
    """One triangle in the z=0 plane, facing +z."""
    return IndexedMesh(
        make_vertices([(0, 0, 0), (1, 0, 0), (0, 1, 0)]),
        [0, 1, 2],
        name=name
    )


def create_coplanar_quad(name: Optional[str] = "quad") -> IndexedMesh:
    """Unit square in the z=0 plane as 2 triangles sharing the 1-2 edge."""
    return IndexedMesh(
        make_vertices([(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)]),
        [0, 1, 2, 1, 3, 2],
        name=name
    )


# Vertex i of the unit cube sits at (i & 1, (i >> 1) & 1, (i >> 2) & 1)
CUBE_POSITIONS = [
    (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0),
    (0, 0, 1), (1, 0, 1), (0, 1, 1), (1, 1, 1),
]

# Outward-wound triangles, two per face, consecutive ids share the face diagonal
CUBE_INDICES = [
    0, 2, 3, 0, 3, 1,  # z = 0
    4, 5, 7, 4, 7, 6,  # z = 1
    0, 1, 5, 0, 5, 4,  # y = 0
    2, 6, 7, 2, 7, 3,  # y = 1
    0, 4, 6, 0, 6, 2,  # x = 0
    1, 3, 7, 1, 7, 5,  # x = 1
]


def create_cube(name: Optional[str] = "cube") -> IndexedMesh:
    """Closed unit cube, 8 vertices, 12 triangles. Decomposes into its 6 faces."""
    return IndexedMesh(make_vertices(CUBE_POSITIONS), CUBE_INDICES, name=name)


def create_folded_strip(name: Optional[str] = "strip") -> IndexedMesh:
    """
    Three unit quads folded at right angles like a staircase step.

    - triangles 0, 1: floor in z=0 (x in [0, 1])
    - triangles 2, 3: riser in x=1 (z in [0, 1])
    - triangles 4, 5: tread in z=1 (x in [1, 2])

    Each quad is flat and consecutive quads meet at 90 degrees, so the
    default decomposition is exactly [[0, 1], [2, 3], [4, 5]].
    """
    positions = [
        (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0),
        (1, 0, 1), (1, 1, 1), (2, 0, 1), (2, 1, 1),
    ]
    indices = [
        0, 1, 2, 1, 3, 2,
        1, 5, 3, 1, 4, 5,
        4, 6, 7, 4, 7, 5,
    ]
    return IndexedMesh(make_vertices(positions), indices, name=name)


def create_grid(
    size: int = 4,
    height: Optional[Callable[[float, float], float]] = None,
    name: Optional[str] = "grid"
) -> IndexedMesh:
    """
    size x size quads over [0, size]^2, two triangles per quad.

    Args:
        size: Quads per side
        height: Optional z = height(x, y); flat if None
        name: Mesh name
    """
    positions = []
    for y in range(size + 1):
        for x in range(size + 1):
            z = height(x, y) if height else 0.0
            positions.append((x, y, z))

    indices = []
    row = size + 1
    for y in range(size):
        for x in range(size):
            v0 = y * row + x
            v1 = v0 + 1
            v2 = v0 + row
            v3 = v2 + 1
            indices.extend([v0, v1, v2, v1, v3, v2])
    return IndexedMesh(make_vertices(positions), indices, name=name)


def create_tent_grid(size: int = 6, name: Optional[str] = "tent") -> IndexedMesh:
    """Grid folded into a ridge along x = size / 2, giving several flat slopes."""
    return create_grid(size, height=lambda x, y: abs(x - size / 2.0), name=name)


def create_dented_cube(depth: float = 0.5, name: Optional[str] = "dented") -> IndexedMesh:
    """
    Unit cube whose top face is a 4-triangle fan around a center vertex
    pushed `depth` down into the cube.
    """
    positions = list(CUBE_POSITIONS) + [(0.5, 0.5, 1.0 - depth)]
    center = 8
    indices = list(CUBE_INDICES[:6]) + [
        4, 5, center, 5, 7, center, 7, 6, center, 6, 4, center,
    ] + list(CUBE_INDICES[12:])
    return IndexedMesh(make_vertices(positions), indices, name=name)


def write_trimesh_file(mesh: IndexedMesh, suffix: str = ".stl") -> str:
    """
    Write a mesh to a temp file with trimesh and return its path.

    Caller is responsible for cleanup (see cleanup_test_file).
    """
    tmesh = trimesh.Trimesh(
        vertices=np.asarray(mesh.positions, dtype=np.float64),
        faces=np.asarray(mesh.triangles),
        process=False
    )
    fd, path = tempfile.mkstemp(suffix=suffix)
    os.close(fd)
    tmesh.export(path)
    return path


def cleanup_test_file(filepath: str) -> None:
    """Remove a test file if it exists."""
    if os.path.exists(filepath):
        os.remove(filepath)
