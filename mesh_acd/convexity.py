"""
Convexity (concavity) metrics for region growing.

When the partitioner considers adding a triangle to a cluster it asks a
metric "how much would this hurt convexity?" and compares the answer to
a threshold. Lower is better; 0 means "perfectly fine".

Two metrics are provided:
- NormalAngleMetric (the default): mean angle, in degrees, between the
  candidate's face normal and the normals of its neighbors that are
  already in the cluster.
- HullDeviationMetric: how far the candidate's corners sit from the
  approximate hull of the cluster's vertices, in mesh units.

Both look only at the part of the cluster committed so far - never at
triangles that might be added later.
"""

import math
from typing import AbstractSet, List, Optional, Union
import numpy as np

from .adjacency import Triangle
from .constants import DEFAULT_ANGLE_THRESHOLD_DEG, DEFAULT_HULL_DEVIATION_THRESHOLD, EPSILON
from .convex_hull import HullStrategy, get_hull_strategy, signed_distance_to_hull
from .mesh_data import IndexedMesh


def face_normal(mesh: IndexedMesh, triangle: Triangle) -> np.ndarray:
    """
    Unit normal of a triangle, (v1 - v0) x (v2 - v0) normalized.

    Degenerate (zero-area) triangles return the zero vector instead of
    dividing by zero.
    """
    v0, v1, v2 = (mesh.position(i) for i in triangle.indices)
    normal = np.cross(v1 - v0, v2 - v0)
    length = float(np.linalg.norm(normal))
    if length < EPSILON:
        return np.zeros(3)
    return normal / length


def angle_between_normals(n1: np.ndarray, n2: np.ndarray) -> float:
    """
    Angle in degrees between two unit normals.

    The dot product is clamped to [-1, 1] so rounding can't push acos out
    of its domain. A zero normal (degenerate face) gives 0.0.
    """
    if np.linalg.norm(n1) < EPSILON or np.linalg.norm(n2) < EPSILON:
        return 0.0
    dot = float(np.clip(np.dot(n1, n2), -1.0, 1.0))
    return math.degrees(math.acos(dot))


def centroid_distance(mesh: IndexedMesh, triangle_a: Triangle, triangle_b: Triangle) -> float:
    """Euclidean distance between two triangles' centroids."""
    centroid_a = mesh.positions[list(triangle_a.indices)].astype(np.float64).mean(axis=0)
    centroid_b = mesh.positions[list(triangle_b.indices)].astype(np.float64).mean(axis=0)
    return float(np.linalg.norm(centroid_a - centroid_b))


class ConvexityMetric:
    """
    Scores a candidate triangle against the cluster it might join.

    Subclasses implement `evaluate`. A candidate is admitted when
    `accepts(score, threshold)` holds.
    """

    name = "base"
    default_threshold = 0.0

    def evaluate(
        self,
        candidate: int,
        cluster: AbstractSet[int],
        triangles: List[Triangle],
        mesh: IndexedMesh
    ) -> float:
        raise NotImplementedError

    def accepts(self, score: float, threshold: float) -> bool:
        # Inclusive, so a threshold of 0 still admits exactly-flat neighbors
        return score <= threshold

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NormalAngleMetric(ConvexityMetric):
    """Mean normal angle (degrees) between the candidate and its in-cluster neighbors."""

    name = "normal_angle"
    default_threshold = DEFAULT_ANGLE_THRESHOLD_DEG

    def evaluate(self, candidate, cluster, triangles, mesh):
        triangle = triangles[candidate]
        normal = face_normal(mesh, triangle)

        angles = [
            angle_between_normals(normal, face_normal(mesh, triangles[neighbor]))
            for neighbor in triangle.neighbors
            if neighbor in cluster
        ]
        if not angles:
            return 0.0
        return sum(angles) / len(angles)


class HullDeviationMetric(ConvexityMetric):
    """
    Largest signed deviation of the candidate's corners from the cluster hull.

    The hull is rebuilt from the cluster's current vertex set on every
    call. An empty hull (too few points) deviates by 0.0.
    """

    name = "hull_deviation"
    default_threshold = DEFAULT_HULL_DEVIATION_THRESHOLD

    def __init__(self, hull: Union[str, HullStrategy] = "extremes"):
        self.hull_strategy = get_hull_strategy(hull)

    def evaluate(self, candidate, cluster, triangles, mesh):
        vertex_ids = sorted({v for t in cluster for v in triangles[t].indices})
        hull = self.hull_strategy.compute(mesh.positions[vertex_ids])
        return max(
            signed_distance_to_hull(hull, mesh.position(v))
            for v in triangles[candidate].indices
        )

    def __repr__(self) -> str:
        return f"HullDeviationMetric(hull={self.hull_strategy.name!r})"


def get_convexity_metric(
    metric: Union[str, ConvexityMetric],
    hull: Optional[Union[str, HullStrategy]] = None
) -> ConvexityMetric:
    """
    Resolve a metric name or pass an instance through.

    Args:
        metric: "normal_angle", "hull_deviation" or a ConvexityMetric
        hull: Hull strategy for the hull_deviation metric (default "extremes")
    """
    if isinstance(metric, ConvexityMetric):
        return metric
    if metric == "normal_angle":
        return NormalAngleMetric()
    if metric == "hull_deviation":
        return HullDeviationMetric(hull if hull is not None else "extremes")
    raise ValueError(
        f"Unknown convexity metric {metric!r}, expected 'normal_angle' or 'hull_deviation'"
    )
