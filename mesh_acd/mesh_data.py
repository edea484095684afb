"""
Indexed mesh containers for the decomposition pipeline.

A mesh here is the same thing a renderer uploads: a flat vertex buffer
(8 floats per vertex - position, normal, texture coordinate) plus a flat
index buffer where every run of 3 indices is one triangle. The pipeline
reads positions out of the records but always carries the full record,
so nothing the renderer needs is lost on the way through.
"""

from typing import Optional, Sequence, Tuple, Union
import numpy as np

from .constants import VERTEX_STRIDE, POSITION_OFFSET


class InvalidMeshError(ValueError):
    """Raised when a mesh's buffers are malformed (never silently clamped)."""


def validate_indices(indices: np.ndarray, vertex_count: int) -> None:
    """
    Check that an index buffer describes whole triangles inside the vertex range.

    Args:
        indices: Flat integer index buffer
        vertex_count: Number of vertex records the indices refer to

    Raises:
        InvalidMeshError: If the count is not a multiple of 3 or any index
            is negative or >= vertex_count
    """
    if len(indices) % 3 != 0:
        raise InvalidMeshError(
            f"Index count must be a multiple of 3, got {len(indices)}"
        )
    if len(indices) == 0:
        return

    lowest = int(indices.min())
    highest = int(indices.max())
    if lowest < 0:
        raise InvalidMeshError(f"Negative vertex index {lowest}")
    if highest >= vertex_count:
        bad = int(np.argmax(indices >= vertex_count))
        raise InvalidMeshError(
            f"Index {highest} at position {bad} is out of range "
            f"for {vertex_count} vertices"
        )


class IndexedMesh:
    """
    A triangle mesh stored as stride-8 vertex records plus a triangle index buffer.

    Vertices are kept as a float32 array of shape (N, 8) and indices as an
    int64 array of shape (3*T,). Both arrays are read-only after construction.

    Example:
        vertices = [0,0,0, 0,0,1, 0,0,   1,0,0, 0,0,1, 1,0,   0,1,0, 0,0,1, 0,1]
        indices = [0, 1, 2]
        mesh = IndexedMesh(vertices, indices)   # 3 vertices, 1 triangle
    """

    def __init__(
        self,
        vertices: Union[Sequence[float], np.ndarray],
        indices: Union[Sequence[int], np.ndarray],
        name: Optional[str] = None
    ):
        """
        Initialize and validate a mesh.

        Args:
            vertices: Flat float sequence (length multiple of 8) or an (N, 8) array
            indices: Flat index sequence (length multiple of 3)
            name: Optional label used in logs and exports

        Raises:
            InvalidMeshError: If either buffer is malformed
        """
        vertex_array = np.asarray(vertices, dtype=np.float32)
        if vertex_array.ndim == 1:
            if vertex_array.size % VERTEX_STRIDE != 0:
                raise InvalidMeshError(
                    f"Vertex buffer length must be a multiple of {VERTEX_STRIDE}, "
                    f"got {vertex_array.size}"
                )
            vertex_array = vertex_array.reshape(-1, VERTEX_STRIDE)
        elif vertex_array.ndim != 2 or vertex_array.shape[1] != VERTEX_STRIDE:
            raise InvalidMeshError(
                f"Vertex array must have shape (N, {VERTEX_STRIDE}), got {vertex_array.shape}"
            )

        index_array = np.asarray(indices, dtype=np.int64).ravel()
        validate_indices(index_array, len(vertex_array))

        # Own our buffers so callers can't mutate them behind our back
        self.vertices = np.array(vertex_array, copy=True)
        self.indices = np.array(index_array, copy=True)
        self.vertices.setflags(write=False)
        self.indices.setflags(write=False)
        self.name = name

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def positions(self) -> np.ndarray:
        """(N, 3) view of vertex positions."""
        return self.vertices[:, POSITION_OFFSET:POSITION_OFFSET + 3]

    @property
    def triangles(self) -> np.ndarray:
        """(T, 3) view of the index buffer."""
        return self.indices.reshape(-1, 3)

    def position(self, index: int) -> np.ndarray:
        """Position of one vertex as float64 for geometry math."""
        return self.positions[index].astype(np.float64)

    def triangle_positions(self, triangle_id: int) -> np.ndarray:
        """(3, 3) float64 positions of one triangle's corners."""
        return self.positions[self.triangles[triangle_id]].astype(np.float64)

    def flat_vertices(self) -> np.ndarray:
        """Vertex buffer as a flat float32 array (stride 8)."""
        return self.vertices.ravel()

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"IndexedMesh({label}vertices={self.vertex_count}, triangles={self.triangle_count})"


class ConvexSubMesh(IndexedMesh):
    """
    One approximately-convex piece of a source mesh.

    Same layout as IndexedMesh, with compact (deduplicated) vertices and
    remapped indices, plus the display color the renderer should use and
    where the piece came from.
    """

    def __init__(
        self,
        vertices: Union[Sequence[float], np.ndarray],
        indices: Union[Sequence[int], np.ndarray],
        color: Tuple[float, float, float] = (0.8, 0.8, 0.8),
        source_triangles: Sequence[int] = (),
        source_mesh_index: int = 0,
        cluster_index: int = 0,
        name: Optional[str] = None
    ):
        """
        Initialize a convex sub-mesh.

        Args:
            vertices: Compact stride-8 vertex records
            indices: Remapped triangle indices into those records
            color: Display color as floats in [0, 1]
            source_triangles: Triangle ids in the source mesh, in output order
            source_mesh_index: Position of the source mesh in the decompose() input
            cluster_index: Position of this cluster within its source mesh
            name: Optional label
        """
        super().__init__(vertices, indices, name=name)
        self.color = tuple(float(c) for c in color)
        self.source_triangles = tuple(int(t) for t in source_triangles)
        self.source_mesh_index = source_mesh_index
        self.cluster_index = cluster_index

    def with_color(self, color: Tuple[float, float, float]) -> "ConvexSubMesh":
        """Copy of this sub-mesh with a different display color."""
        return ConvexSubMesh(
            self.vertices,
            self.indices,
            color=color,
            source_triangles=self.source_triangles,
            source_mesh_index=self.source_mesh_index,
            cluster_index=self.cluster_index,
            name=self.name
        )

    def __repr__(self) -> str:
        return (
            f"ConvexSubMesh(mesh={self.source_mesh_index}, cluster={self.cluster_index}, "
            f"vertices={self.vertex_count}, triangles={self.triangle_count})"
        )
