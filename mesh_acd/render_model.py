"""
Preview rendering for convex decompositions.

Renders every convex piece to a PNG using matplotlib's 3D plotting, each
piece in its own display color with thin black edges so cluster
boundaries stand out.

WHY: A quick look at the picture tells you whether the threshold was
sensible (a handful of big pieces) or not (confetti), without opening a
viewer.
"""

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for headless operation

import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
import numpy as np
from typing import Sequence, Tuple
from pathlib import Path

from .mesh_data import ConvexSubMesh


def _scene_bounds(submeshes: Sequence[ConvexSubMesh]) -> Tuple[np.ndarray, np.ndarray]:
    points = np.vstack([s.positions for s in submeshes if s.vertex_count])
    return points.min(axis=0), points.max(axis=0)


def render_submeshes_to_file(
    submeshes: Sequence[ConvexSubMesh],
    output_path: str,
    title: str = 'Convex Decomposition Preview',
    elev: float = 30,
    azim: float = -60
) -> None:
    """
    Render convex pieces to a PNG file, each in its display color.

    Args:
        submeshes: Pieces to draw (their .color is used as the face color)
        output_path: Path where the PNG should be saved
        title: Figure title
        elev: Camera elevation in degrees
        azim: Camera azimuth in degrees

    Raises:
        ValueError: If there is nothing to render
        IOError: If the output file cannot be written
    """
    drawable = [s for s in submeshes if s.triangle_count]
    if not drawable:
        raise ValueError("No convex pieces to render")

    fig = plt.figure(figsize=(10, 10), dpi=150)
    try:
        ax = fig.add_subplot(111, projection='3d')
        _draw_pieces(ax, drawable)

        ax.view_init(elev=elev, azim=azim)
        ax.set_title(f'{title} ({len(drawable)} pieces)', fontsize=14, fontweight='bold')

        plt.savefig(output_path, bbox_inches='tight', dpi=150)
    finally:
        plt.close(fig)


def _draw_pieces(ax, drawable: Sequence[ConvexSubMesh]) -> None:
    for submesh in drawable:
        # (T, 3, 3) array of triangle corners
        faces = submesh.positions[submesh.triangles]
        poly = Poly3DCollection(
            faces,
            alpha=0.9,
            facecolor=submesh.color,
            edgecolor='black',
            linewidths=0.1
        )
        ax.add_collection3d(poly)

    # Cubic view box around everything, with a small margin
    lo, hi = _scene_bounds(drawable)
    center = (lo + hi) / 2.0
    half = max(float((hi - lo).max()) / 2.0, 1e-6) * 1.1
    ax.set_xlim([center[0] - half, center[0] + half])
    ax.set_ylim([center[1] - half, center[1] + half])
    ax.set_zlim([center[2] - half, center[2] + half])

    ax.set_xlabel('X', fontsize=10)
    ax.set_ylabel('Y', fontsize=10)
    ax.set_zlabel('Z', fontsize=10)


def generate_render_path(output_path: str) -> str:
    """
    Generate the render file path from the mesh output path.

    Follows the pattern: {output_name}_render.png

    Example:
        >>> generate_render_path("output/model_convex.glb")
        'output/model_convex_render.png'
    """
    output_file = Path(output_path)
    return str(output_file.parent / f"{output_file.stem}_render.png")
