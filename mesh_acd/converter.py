"""
File-to-file decomposition.

decompose() works on in-memory meshes. This module wraps it with the
boundary collaborators so a mesh file goes in and a file of convex
pieces comes out, plus the optional extras (quality checks, JSON summary,
preview render). It's designed to be called programmatically - no CLI
stuff here!
"""

import math
import os
import threading
from typing import Any, Callable, Dict, Optional

from .config import DecompositionConfig
from .decomposer import decompose
from .mesh_io import export_submeshes, load_meshes


def format_filesize(size_bytes: int) -> str:
    """
    Convert a file size in bytes to a human-readable format.

    Examples:
        >>> format_filesize(0)
        '0B'
        >>> format_filesize(1536)
        '1.5 KB'
    """
    if size_bytes == 0:
        return "0B"
    size_units = ("B", "KB", "MB", "GB", "TB")
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_units) - 1)
    s = round(size_bytes / math.pow(1024, i), 2)
    return f"{s:g} {size_units[i]}"


def convert_mesh_file(
    input_path: str,
    output_path: str,
    config: Optional[DecompositionConfig] = None,
    progress_callback: Optional[Callable[[str, str], None]] = None,
    cancel_event: Optional[threading.Event] = None
) -> Dict[str, Any]:
    """
    Decompose every mesh in a file and export the convex pieces.

    The process:
    1. Load the file and pack each geometry into stride-8 records
    2. Decompose all meshes (concurrently, one task per mesh)
    3. Optionally validate each piece against its true convex hull
    4. Export the pieces as one scene, one colored geometry per piece
    5. Optionally write a JSON summary and render a PNG preview

    Args:
        input_path: Any mesh/scene file trimesh can load
        output_path: Where to write the pieces (format follows the extension)
        config: DecompositionConfig (uses defaults if None)
        progress_callback: Optional function called as callback(stage, message)
        cancel_event: Optional token to abort the decomposition

    Returns:
        Dictionary with statistics:
        {
            'num_meshes': int,
            'num_pieces': int,
            'input_triangles': int,
            'output_triangles': int,
            'partial_coverage': bool,
            'dropped_triangles': int,
            'output_path': str,
            'file_size': str,
            'result': DecompositionResult
        }
        plus 'validation_results', 'summary_path' and 'render_path' when
        those steps ran.

    Raises:
        FileNotFoundError: If the input file doesn't exist
        ValueError: If the file holds no triangles or parameters are invalid
        DecompositionTimeoutError: If a mesh takes longer than the timeout
    """

    def _progress(stage: str, message: str):
        if progress_callback:
            progress_callback(stage, message)

    if config is None:
        config = DecompositionConfig()

    # Step 1: Load
    _progress("load", f"Reading {os.path.basename(input_path)}")
    meshes = load_meshes(input_path)
    _progress("load", f"Found {len(meshes)} mesh(es)")

    # Step 2: Decompose
    result = decompose(
        meshes,
        config=config,
        progress_callback=progress_callback,
        cancel_event=cancel_event
    )

    # Step 3: Validate
    validation_results = None
    if config.validate_submeshes:
        from .mesh_validation import validate_submeshes

        validation_results = validate_submeshes(result.submeshes, progress_callback)

    # Step 4: Export
    _progress("export", "Writing convex pieces...")
    export_submeshes(result.submeshes, output_path)
    _progress("export", "Complete!")

    stats: Dict[str, Any] = {
        'num_meshes': len(meshes),
        'num_pieces': len(result.submeshes),
        'input_triangles': result.input_triangle_count,
        'output_triangles': result.output_triangle_count,
        'partial_coverage': result.partial_coverage,
        'dropped_triangles': result.input_triangle_count - result.output_triangle_count,
        'output_path': output_path,
        'file_size': format_filesize(os.path.getsize(output_path)),
        'result': result,
    }
    if validation_results is not None:
        stats['validation_results'] = validation_results

    # Step 5: Summary and preview
    if config.write_summary:
        from .summary_writer import write_summary_file

        stats['summary_path'] = write_summary_file(output_path, result, config, validation_results)

    if config.render_preview:
        _progress("render", "Rendering preview...")
        from .render_model import render_submeshes_to_file, generate_render_path

        render_path = generate_render_path(output_path)
        render_submeshes_to_file(result.submeshes, render_path)
        stats['render_path'] = render_path
        _progress("render", f"Render saved to: {render_path}")

    return stats
