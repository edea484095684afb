"""
Region-growing partitioner - the approximate convex decomposition itself.

This is where the magic happens! Starting from a seed triangle we flood
outward across the adjacency graph, admitting each neighbor only if the
convexity metric says it keeps the cluster roughly convex. When nothing
more can be admitted the cluster is done and we seed the next one from
whatever is left.

Think of it like the paint bucket tool, except the "same color" test is
"doesn't bend the surface too much".
"""

import logging
import threading
from collections import deque
from typing import Iterable, List, Optional, Set, Tuple

from .adjacency import Triangle
from .constants import CHUNK_SIZE
from .convexity import ConvexityMetric
from .mesh_data import IndexedMesh

logger = logging.getLogger(__name__)


class DecompositionCancelled(RuntimeError):
    """Raised when a cancellation token is set while clusters are being grown."""


class Cluster:
    """
    A connected group of triangles that is approximately convex.

    Triangle ids are kept in admission order (seed first, then breadth-first),
    with a set alongside for fast membership tests.
    """

    def __init__(self, triangle_ids: Iterable[int] = ()):
        """
        Initialize a cluster.

        Args:
            triangle_ids: Triangle ids in the order they joined the cluster
        """
        self.triangle_ids: List[int] = []
        self._members: Set[int] = set()
        for triangle_id in triangle_ids:
            self.add(triangle_id)

    def add(self, triangle_id: int) -> None:
        if triangle_id not in self._members:
            self._members.add(triangle_id)
            self.triangle_ids.append(triangle_id)

    @property
    def members(self) -> Set[int]:
        return self._members

    def __contains__(self, triangle_id: int) -> bool:
        return triangle_id in self._members

    def __len__(self) -> int:
        return len(self.triangle_ids)

    def __iter__(self):
        return iter(self.triangle_ids)

    def __repr__(self) -> str:
        seed = self.triangle_ids[0] if self.triangle_ids else None
        return f"Cluster(seed={seed}, triangles={len(self.triangle_ids)})"


class PartitionResult:
    """
    Clusters produced for one mesh, plus anything left unclustered.

    `dropped` is non-empty only when `max_clusters` ran out before every
    triangle was claimed.
    """

    def __init__(self, clusters: List[Cluster], dropped: Tuple[int, ...], triangle_count: int):
        self.clusters = clusters
        self.dropped = dropped
        self.triangle_count = triangle_count

    @property
    def covered_count(self) -> int:
        return sum(len(c) for c in self.clusters)

    @property
    def partial_coverage(self) -> bool:
        return bool(self.dropped)

    def __repr__(self) -> str:
        return (
            f"PartitionResult(clusters={len(self.clusters)}, "
            f"covered={self.covered_count}/{self.triangle_count}, dropped={len(self.dropped)})"
        )


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DecompositionCancelled("Decomposition cancelled")


def grow_cluster(
    seed: int,
    triangles: List[Triangle],
    mesh: IndexedMesh,
    metric: ConvexityMetric,
    threshold: float,
    unprocessed: Set[int],
    cancel_event: Optional[threading.Event] = None
) -> Cluster:
    """
    Grow one cluster breadth-first from a seed triangle.

    The seed is always admitted. Every popped triangle offers its
    still-unprocessed neighbors (in sorted order); each one is scored
    against the cluster as it stands right now and admitted if the metric
    accepts it. Admitted triangles leave `unprocessed` and join the queue.

    We use a deque rather than recursion so large clusters can't hit
    Python's recursion limit.

    Args:
        seed: Triangle id to start from (must be in `unprocessed`)
        triangles: Adjacency graph from construct_adjacency()
        mesh: Mesh the triangles index into
        metric: Convexity metric to score candidates with
        threshold: Acceptance threshold for the metric
        unprocessed: Ids not yet in any cluster (we remove from this)
        cancel_event: Optional token; setting it aborts growth

    Returns:
        The finished Cluster

    Raises:
        DecompositionCancelled: If cancel_event is set during growth
    """
    cluster = Cluster([seed])
    unprocessed.discard(seed)

    queue: deque = deque([seed])

    while queue:
        _check_cancelled(cancel_event)
        current = queue.popleft()

        for neighbor in triangles[current].neighbors:
            if neighbor not in unprocessed:
                continue

            score = metric.evaluate(neighbor, cluster.members, triangles, mesh)
            if metric.accepts(score, threshold):
                cluster.add(neighbor)
                unprocessed.discard(neighbor)
                queue.append(neighbor)

    return cluster


def partition_triangles(
    triangles: List[Triangle],
    mesh: IndexedMesh,
    metric: ConvexityMetric,
    threshold: float,
    max_clusters: int,
    cancel_event: Optional[threading.Event] = None
) -> PartitionResult:
    """
    Partition a mesh's triangles into at most `max_clusters` convex-ish clusters.

    The algorithm:
    1. Every triangle starts unprocessed
    2. While triangles remain and we have cluster budget left:
       a. Seed a new cluster with the smallest unprocessed id
       b. Grow it breadth-first with grow_cluster()
       c. Append the finished cluster
    3. Whatever is still unprocessed is dropped and reported

    Each outer iteration removes at least the seed, so this always ends.
    Clusters are pairwise disjoint; with enough budget their union is
    every triangle.

    Args:
        triangles: Adjacency graph from construct_adjacency()
        mesh: Mesh the triangles index into
        metric: Convexity metric used for admission
        threshold: Acceptance threshold for the metric
        max_clusters: Cluster budget for this mesh (>= 1)
        cancel_event: Optional cancellation token

    Returns:
        PartitionResult with the clusters and any dropped triangle ids

    Raises:
        ValueError: If max_clusters < 1
        DecompositionCancelled: If cancel_event is set
    """
    if max_clusters < 1:
        raise ValueError(f"max_clusters must be at least 1, got {max_clusters}")

    unprocessed: Set[int] = set(range(len(triangles)))
    clusters: List[Cluster] = []
    next_seed = 0

    while unprocessed and len(clusters) < max_clusters:
        _check_cancelled(cancel_event)

        # Smallest unprocessed id - ids only ever leave the set, so scan forward
        while next_seed not in unprocessed:
            next_seed += 1

        cluster = grow_cluster(
            next_seed, triangles, mesh, metric, threshold, unprocessed, cancel_event
        )
        clusters.append(cluster)
        logger.debug("Cluster %d finalized with %d triangles", len(clusters), len(cluster))

    dropped = tuple(sorted(unprocessed))
    if dropped:
        logger.warning(
            "Cluster limit of %d reached with %d of %d triangles unclustered; "
            "those triangles are dropped",
            max_clusters, len(dropped), len(triangles)
        )

    return PartitionResult(clusters, dropped, len(triangles))


def expand_from_seed(
    seed: int,
    triangles: List[Triangle],
    mesh: IndexedMesh,
    metric: ConvexityMetric,
    threshold: float
) -> Cluster:
    """
    Grow a single exploratory cluster from any seed, ignoring other clusters.

    Unlike grow_cluster(), each popped triangle joins the cluster first and
    is then scored against it; only triangles that pass push their
    neighbors onto the queue. Triangles that fail stay in the cluster as
    its boundary. Useful for probing how far a region extends from a
    particular spot.

    Args:
        seed: Triangle id to start from
        triangles: Adjacency graph
        mesh: Mesh the triangles index into
        metric: Convexity metric
        threshold: Acceptance threshold

    Returns:
        The grown Cluster
    """
    cluster = Cluster()
    expansion: deque = deque([seed])

    while expansion:
        current = expansion.popleft()
        if current in cluster:
            continue

        cluster.add(current)
        score = metric.evaluate(current, cluster.members, triangles, mesh)

        if metric.accepts(score, threshold):
            for neighbor in triangles[current].neighbors:
                if neighbor not in cluster:
                    expansion.append(neighbor)

    return cluster


def chunk_triangles(triangle_count: int, chunk_size: int = CHUNK_SIZE) -> List[Cluster]:
    """
    Baseline partition: consecutive triangle ids in fixed-size chunks.

    Ignores geometry entirely. Handy as a point of comparison for the
    region-growing partition, and as a quick way to split a mesh into
    pieces of bounded size.

    Args:
        triangle_count: Number of triangles in the mesh
        chunk_size: Triangles per chunk (the last chunk may be smaller)

    Returns:
        List of Clusters covering every id exactly once
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    return [
        Cluster(range(start, min(start + chunk_size, triangle_count)))
        for start in range(0, triangle_count, chunk_size)
    ]
