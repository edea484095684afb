"""
Summary file writer module.

Writes a JSON summary of a decomposition next to the exported mesh:
the settings used, what happened to each source mesh (clusters,
coverage, dropped triangles) and one entry per convex piece (color,
size, bounds, which source triangles it holds).
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import numpy as np

from .constants import COORDINATE_PRECISION, __version__
from .display_colors import color_to_rgb255
from .json_utils import dumps_compact_arrays, to_builtin

# Import for type checking only (avoids circular imports)
if TYPE_CHECKING:
    from .config import DecompositionConfig
    from .decomposer import DecompositionResult
    from .mesh_validation import ValidationResult


def generate_summary_path(output_path: str) -> str:
    """
    Summary path for an output file: {filetitle}.summary.json

    Example:
        >>> generate_summary_path("out/model_convex.glb")
        'out/model_convex.summary.json'
    """
    return str(Path(output_path).with_suffix('.summary.json'))


def build_summary(
    result: 'DecompositionResult',
    config: 'DecompositionConfig',
    output_name: Optional[str] = None,
    validations: Optional[List['ValidationResult']] = None
) -> Dict[str, Any]:
    """
    Summary data for a decomposition as plain dicts and lists.

    Args:
        result: DecompositionResult from decompose()
        config: DecompositionConfig used for the run
        output_name: Name of the exported file, if any
        validations: Optional per-piece ValidationResults (same order as pieces)

    Returns:
        Dict ready for JSON serialization
    """
    settings = {
        "max_clusters": config.max_clusters,
        "metric": config.metric,
        "concavity_threshold": config.concavity_threshold,
        "adjacency": config.adjacency,
        "hull": config.hull,
        "color_mode": config.color_mode,
    }

    meshes = [
        {
            "index": report.mesh_index,
            "name": report.name,
            "triangles": report.triangle_count,
            "clusters": report.cluster_count,
            "covered": report.covered_count,
            "partial_coverage": report.partial_coverage,
            "dropped_triangles": list(report.dropped),
        }
        for report in result.reports
    ]

    pieces = []
    for i, submesh in enumerate(result.submeshes):
        if submesh.vertex_count:
            lo = submesh.positions.min(axis=0)
            hi = submesh.positions.max(axis=0)
        else:
            lo = hi = np.zeros(3)
        piece = {
            "name": submesh.name,
            "source_mesh": submesh.source_mesh_index,
            "cluster": submesh.cluster_index,
            "vertices": submesh.vertex_count,
            "triangles": submesh.triangle_count,
            "color": list(color_to_rgb255(submesh.color)),
            "bounds": {"min": lo, "max": hi},
            "source_triangles": list(submesh.source_triangles),
        }
        if validations is not None and i < len(validations):
            validation = validations[i]
            piece["validation"] = {
                "valid": validation.is_valid,
                "errors": validation.errors,
                "warnings": validation.warnings,
                "stats": validation.stats,
            }
        pieces.append(piece)

    return {
        "generator": f"mesh_acd {__version__}",
        "output": output_name,
        "settings": settings,
        "totals": {
            "meshes": len(result.reports),
            "pieces": len(result.submeshes),
            "input_triangles": result.input_triangle_count,
            "output_triangles": result.output_triangle_count,
            "partial_coverage": result.partial_coverage,
        },
        "meshes": meshes,
        "pieces": pieces,
    }


def write_summary_file(
    output_path: str,
    result: 'DecompositionResult',
    config: 'DecompositionConfig',
    validations: Optional[List['ValidationResult']] = None
) -> str:
    """
    Write the JSON summary alongside the exported mesh.

    Args:
        output_path: Path to the exported mesh file
        result: DecompositionResult from decompose()
        config: DecompositionConfig used for the run
        validations: Optional per-piece ValidationResults

    Returns:
        Path to the generated summary file
    """
    summary_path = Path(generate_summary_path(output_path))
    data = build_summary(result, config, Path(output_path).name, validations)

    text = dumps_compact_arrays(
        to_builtin(data, precision=COORDINATE_PRECISION),
        array_fields=["color", "min", "max", "source_triangles", "dropped_triangles"]
    )
    summary_path.write_text(text + "\n", encoding='utf-8')
    return str(summary_path)
