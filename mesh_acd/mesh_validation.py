"""
Quality checks for convex pieces using trimesh.

The partitioner only promises pieces that are *approximately* convex.
This module measures how approximate: for every piece it builds the
true convex hull (via trimesh) and reports how deep the piece's
vertices sit inside it. A perfectly convex piece has every vertex on
its hull, so its concavity is 0.

The backend library is hidden behind ValidationResult so it could be
swapped later without changing callers.
"""

from typing import Any, Callable, Dict, List, Optional
import logging
import numpy as np
import trimesh

from .constants import EPSILON
from .mesh_data import IndexedMesh
from .mesh_io import indexed_to_trimesh

# Set up logging for this module
logger = logging.getLogger(__name__)


class ValidationResult:
    """
    Findings for one piece: errors, warnings and statistics.

    Errors make the piece invalid (it can't be used as a collision shape
    as-is); warnings are informational.
    """

    def __init__(self):
        """Initialize an empty validation result."""
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.stats: Dict[str, Any] = {}

    def add_error(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_stat(self, key: str, value: Any) -> None:
        self.stats[key] = value

    def __repr__(self) -> str:
        status = "VALID" if self.is_valid else "INVALID"
        return f"ValidationResult({status}, errors={len(self.errors)}, warnings={len(self.warnings)})"


def hull_concavity(points: np.ndarray, hull: trimesh.Trimesh) -> float:
    """
    Deepest distance of any point below the surface of a convex hull.

    For a point inside a convex polytope the distance to its boundary is
    the distance to the nearest face plane, so this is exact for points
    on or inside the hull.
    """
    if len(points) == 0 or len(hull.faces) == 0:
        return 0.0
    normals = hull.face_normals
    origins = hull.triangles[:, 0, :]
    # (P, F) signed distances, positive = outside that face
    signed = np.einsum("fk,pfk->pf", normals, points[:, None, :] - origins[None, :, :])
    depth = np.maximum(-signed.max(axis=1), 0.0)
    return float(depth.max())


def validate_submesh(mesh: IndexedMesh, mesh_name: str = "piece") -> ValidationResult:
    """
    Measure how convex a piece really is.

    Checks:
    - Degenerate (zero-area) triangles
    - Whether trimesh considers the surface convex
    - Concavity: deepest vertex below the true convex hull
    - Watertightness (informational - pieces of an open surface are open)

    Args:
        mesh: Piece to check (any IndexedMesh)
        mesh_name: Name used in messages

    Returns:
        ValidationResult with findings and stats
    """
    result = ValidationResult()

    if mesh.triangle_count == 0:
        result.add_error(f"{mesh_name} has no triangles")
        return result

    try:
        tmesh = indexed_to_trimesh(mesh)
    except Exception as e:
        result.add_error(f"{mesh_name}: Failed to create trimesh object: {e}")
        return result

    result.add_stat("vertices", len(tmesh.vertices))
    result.add_stat("triangles", len(tmesh.faces))

    degenerate = int(np.count_nonzero(tmesh.area_faces < EPSILON))
    result.add_stat("degenerate_triangles", degenerate)
    if degenerate:
        result.add_warning(f"{mesh_name} has {degenerate} degenerate triangle(s)")

    result.add_stat("watertight", bool(tmesh.is_watertight))
    if not tmesh.is_watertight:
        result.add_warning(f"{mesh_name} is an open surface")

    try:
        result.add_stat("is_convex", bool(tmesh.is_convex))
    except Exception as e:
        result.add_warning(f"Could not check convexity: {e}")

    try:
        hull = tmesh.convex_hull
        concavity = hull_concavity(np.asarray(tmesh.vertices), hull)
        result.add_stat("concavity", concavity)
        result.add_stat("hull_volume", float(hull.volume))
    except Exception as e:
        # Flat or collinear pieces have no solid hull
        result.add_warning(f"{mesh_name}: could not build convex hull: {e}")

    return result


def validate_submeshes(
    meshes: List[IndexedMesh],
    progress_callback: Optional[Callable[[str, str], None]] = None
) -> List[ValidationResult]:
    """
    Validate every piece, logging a one-line summary for each.

    progress_callback, if given, is called as callback("validate", message)
    before each piece.
    """
    results = []
    for i, mesh in enumerate(meshes):
        if progress_callback:
            progress_callback("validate", f"Piece {i + 1}/{len(meshes)}")
        name = mesh.name or f"piece_{i}"
        validation = validate_submesh(mesh, name)
        logger.info(
            "%s: %s (concavity=%s)",
            name, "valid" if validation.is_valid else "invalid",
            validation.stats.get("concavity", "n/a")
        )
        results.append(validation)
    return results
