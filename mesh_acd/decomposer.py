"""
Decomposition orchestration.

This module contains the pure pipeline for turning source meshes into
convex sub-meshes. It knows nothing about files, windows or renderers -
give it IndexedMesh objects and it gives you ConvexSubMesh objects back,
which makes it easy to use programmatically or test.

Per source mesh the pipeline is:
1. Build the triangle adjacency graph
2. Partition the triangles by region growing under the convexity metric
3. Extract one compact sub-mesh per cluster

Source meshes are independent, so they run concurrently on a bounded
thread pool. Results are gathered only after every task has finished.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple

from .adjacency import construct_adjacency
from .config import DecompositionConfig
from .convexity import get_convexity_metric
from .display_colors import assign_colors
from .extractor import extract_convex_submesh
from .mesh_data import ConvexSubMesh, IndexedMesh
from .partitioner import DecompositionCancelled, partition_triangles

logger = logging.getLogger(__name__)

__all__ = [
    "DecompositionCancelled",
    "DecompositionTimeoutError",
    "DecompositionResult",
    "MeshReport",
    "decompose",
    "decompose_mesh",
]


class DecompositionTimeoutError(TimeoutError):
    """Raised when a per-mesh task does not finish within task_timeout_s."""


@dataclass
class MeshReport:
    """What happened to one source mesh."""

    mesh_index: int
    name: Optional[str]
    triangle_count: int
    cluster_count: int
    covered_count: int
    dropped: Tuple[int, ...] = ()

    @property
    def partial_coverage(self) -> bool:
        return bool(self.dropped)


@dataclass
class DecompositionResult:
    """
    Aggregated output of decompose().

    `submeshes` is the flat list of convex pieces across all source meshes,
    ordered by source mesh and then by cluster. `reports` has one entry per
    source mesh, in input order.
    """

    submeshes: List[ConvexSubMesh] = field(default_factory=list)
    reports: List[MeshReport] = field(default_factory=list)

    @property
    def partial_coverage(self) -> bool:
        return any(report.partial_coverage for report in self.reports)

    @property
    def input_triangle_count(self) -> int:
        return sum(report.triangle_count for report in self.reports)

    @property
    def output_triangle_count(self) -> int:
        return sum(submesh.triangle_count for submesh in self.submeshes)

    def __len__(self) -> int:
        return len(self.submeshes)

    def __iter__(self):
        return iter(self.submeshes)


def decompose_mesh(
    mesh: IndexedMesh,
    config: DecompositionConfig,
    mesh_index: int = 0,
    cancel_event: Optional[threading.Event] = None
) -> Tuple[MeshReport, List[ConvexSubMesh]]:
    """
    Run the full pipeline on one source mesh.

    Sub-meshes come back with a placeholder color; decompose() assigns
    display colors once everything has been aggregated.

    Args:
        mesh: Source mesh
        config: DecompositionConfig (metric, threshold, cluster budget...)
        mesh_index: Position of the mesh in the decompose() input
        cancel_event: Optional cancellation token

    Returns:
        (MeshReport, list of ConvexSubMesh)

    Raises:
        InvalidMeshError: If the mesh's indices are malformed
        DecompositionCancelled: If cancel_event is set mid-run
    """
    triangles = construct_adjacency(mesh, config.adjacency)
    metric = get_convexity_metric(config.metric, config.hull)

    result = partition_triangles(
        triangles,
        mesh,
        metric,
        config.concavity_threshold,
        config.max_clusters,
        cancel_event=cancel_event
    )

    base_name = mesh.name or f"mesh_{mesh_index}"
    submeshes = [
        extract_convex_submesh(
            cluster,
            mesh,
            source_mesh_index=mesh_index,
            cluster_index=cluster_index,
            name=f"{base_name}_convex_{cluster_index}"
        )
        for cluster_index, cluster in enumerate(result.clusters)
    ]

    report = MeshReport(
        mesh_index=mesh_index,
        name=mesh.name,
        triangle_count=result.triangle_count,
        cluster_count=len(result.clusters),
        covered_count=result.covered_count,
        dropped=result.dropped
    )
    logger.info(
        "%s: %d clusters covering %d/%d triangles",
        base_name, report.cluster_count, report.covered_count, report.triangle_count
    )
    return report, submeshes


def decompose(
    meshes: Sequence[IndexedMesh],
    max_clusters: Optional[int] = None,
    config: Optional[DecompositionConfig] = None,
    progress_callback: Optional[Callable[[str, str], None]] = None,
    cancel_event: Optional[threading.Event] = None
) -> DecompositionResult:
    """
    Decompose source meshes into approximately convex sub-meshes.

    This is the main entry point. Each source mesh gets its own task on a
    thread pool of config.max_workers threads; the tasks share nothing.
    We wait for every task, then aggregate on the calling thread in input
    order, then give each piece a distinct display color.

    If any task fails or exceeds config.task_timeout_s, the cancellation
    token is set so the other tasks stop at their next check, and the
    error propagates.

    Args:
        meshes: Source meshes
        max_clusters: Cluster budget per source mesh; overrides config.max_clusters
        config: DecompositionConfig (uses defaults if None)
        progress_callback: Optional function called as callback(stage, message)
        cancel_event: Optional token the caller can set to abort the run

    Returns:
        DecompositionResult with the aggregated sub-meshes and per-mesh reports

    Raises:
        ValueError: If max_clusters < 1
        InvalidMeshError: If a mesh is malformed
        DecompositionTimeoutError: If a task exceeds the timeout
        DecompositionCancelled: If the run was cancelled
    """

    def _progress(stage: str, message: str):
        if progress_callback:
            progress_callback(stage, message)

    if config is None:
        config = DecompositionConfig()
    if max_clusters is not None:
        if max_clusters < 1:
            raise ValueError(f"max_clusters must be at least 1, got {max_clusters}")
        config = replace(config, max_clusters=max_clusters)

    meshes = list(meshes)
    result = DecompositionResult()
    if not meshes:
        _progress("decompose", "No meshes to decompose")
        return result

    token = cancel_event if cancel_event is not None else threading.Event()
    workers = min(config.max_workers, len(meshes))

    _progress("decompose", f"Decomposing {len(meshes)} mesh(es) on {workers} worker(s)...")

    outputs: List[Tuple[MeshReport, List[ConvexSubMesh]]] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mesh_acd") as executor:
        futures = [
            executor.submit(decompose_mesh, mesh, config, i, token)
            for i, mesh in enumerate(meshes)
        ]
        try:
            for i, future in enumerate(futures, start=1):
                outputs.append(future.result(timeout=config.task_timeout_s))
                report = outputs[-1][0]
                _progress(
                    "decompose",
                    f"Mesh {i}/{len(meshes)}: {report.cluster_count} clusters"
                )
        except FuturesTimeoutError:
            token.set()
            for future in futures:
                future.cancel()
            logger.error(
                "Mesh %d did not finish within %ss; cancelling", len(outputs), config.task_timeout_s
            )
            raise DecompositionTimeoutError(
                f"Mesh {len(outputs)} did not finish within {config.task_timeout_s}s"
            ) from None
        except BaseException as e:
            token.set()
            for future in futures:
                future.cancel()
            if not isinstance(e, DecompositionCancelled):
                logger.error("Decomposition of mesh %d failed: %s", len(outputs), e)
            raise

    # All tasks are done - aggregate on this thread only
    _progress("aggregate", "Collecting convex pieces...")
    for report, submeshes in outputs:
        result.reports.append(report)
        result.submeshes.extend(submeshes)

    colors = assign_colors(len(result.submeshes), config.color_mode, config.color_seed)
    result.submeshes = [
        submesh.with_color(color) for submesh, color in zip(result.submeshes, colors)
    ]

    if result.partial_coverage:
        dropped = result.input_triangle_count - result.output_triangle_count
        logger.warning(
            "Partial coverage: %d triangle(s) dropped after reaching max_clusters=%d",
            dropped, config.max_clusters
        )
        _progress("aggregate", f"Warning: {dropped} triangle(s) not covered")

    _progress("aggregate", f"Complete! {len(result.submeshes)} convex pieces")
    return result
