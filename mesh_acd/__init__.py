"""
mesh_acd - Approximate Convex Decomposition

Split triangle meshes into a small number of approximately convex pieces
by growing clusters over the triangle adjacency graph, then export each
piece as its own colored mesh.
"""

from .constants import __version__

# Make the CLI main function easily accessible
from .cli import main

# Core decomposition function and configuration
from .decomposer import (
    decompose,
    decompose_mesh,
    DecompositionResult,
    MeshReport,
    DecompositionTimeoutError,
)
from .partitioner import DecompositionCancelled
from .config import DecompositionConfig
from .mesh_data import IndexedMesh, ConvexSubMesh, InvalidMeshError

# File-to-file wrapper and boundary helpers
from .converter import convert_mesh_file
from .mesh_io import load_meshes, export_submeshes, to_render_buffers

__all__ = [
    "__version__",
    "main",
    "decompose",
    "decompose_mesh",
    "DecompositionResult",
    "MeshReport",
    "DecompositionTimeoutError",
    "DecompositionCancelled",
    "DecompositionConfig",
    "IndexedMesh",
    "ConvexSubMesh",
    "InvalidMeshError",
    "convert_mesh_file",
    "load_meshes",
    "export_submeshes",
    "to_render_buffers",
]
