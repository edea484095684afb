"""
Convex sub-mesh extraction.

A cluster is just a list of triangle ids pointing into the source mesh.
To hand it to a renderer (or a physics engine) we need a standalone
mesh: only the vertices the cluster uses, and indices renumbered to
match. Vertex records are copied whole, so positions, normals and
texture coordinates come through bit-for-bit.
"""

from typing import Dict, Iterable, List, Optional, Tuple
import numpy as np

from .mesh_data import ConvexSubMesh, IndexedMesh


def extract_convex_submesh(
    cluster: Iterable[int],
    mesh: IndexedMesh,
    color: Tuple[float, float, float] = (0.8, 0.8, 0.8),
    source_mesh_index: int = 0,
    cluster_index: int = 0,
    name: Optional[str] = None
) -> ConvexSubMesh:
    """
    Build a compact, self-contained mesh from one cluster.

    The algorithm:
    1. Walk the cluster's triangles in the given order
    2. For each corner, look up the vertex in an old -> new index map;
       first time we see it, copy its full record and give it the next
       compact index
    3. Append the compact index to the new index buffer

    The result has index count 3 x cluster size and no more vertices than
    the cluster actually references.

    Args:
        cluster: Triangle ids (any fixed order; a Cluster works directly)
        mesh: Source mesh
        color: Display color for the renderer
        source_mesh_index: Which input mesh this came from
        cluster_index: Which cluster of that mesh this is
        name: Optional label

    Returns:
        ConvexSubMesh with deduplicated vertices and remapped indices
    """
    triangle_ids = [int(t) for t in cluster]
    vertex_map: Dict[int, int] = {}
    source_vertices: List[int] = []
    new_indices: List[int] = []

    for triangle_id in triangle_ids:
        for vertex in mesh.triangles[triangle_id]:
            vertex = int(vertex)
            if vertex not in vertex_map:
                vertex_map[vertex] = len(source_vertices)
                source_vertices.append(vertex)
            new_indices.append(vertex_map[vertex])

    # Fancy indexing copies the float32 records exactly
    vertices = mesh.vertices[np.asarray(source_vertices, dtype=np.int64)]

    return ConvexSubMesh(
        vertices,
        new_indices,
        color=color,
        source_triangles=triangle_ids,
        source_mesh_index=source_mesh_index,
        cluster_index=cluster_index,
        name=name
    )
