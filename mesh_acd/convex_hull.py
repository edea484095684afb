"""
Approximate convex hulls used as a convexity oracle.

These hulls are never rendered or exported. The hull-deviation metric
only asks one question of them: how far does a point sit from the
hull's face planes? That lets us get away with cheap constructions:

- ExtremesHull: take the (up to) 6 axis-extreme points and build the
  polytope they span. With exactly 4 distinct extremes this is a
  tetrahedron. Cheap, but points that aren't extremes can poke out.
- QuickHull2D: divide-and-conquer over the point set projected onto its
  best-fit plane. Produces a fan-triangulated perimeter, not a closed
  3D hull.

Fewer than 3 points (or fewer than 3 distinct extremes) is reported as
an empty hull with `insufficient_points` set, never as an exception.
"""

import logging
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple, Union
import numpy as np

from .constants import EPSILON, PLANE_TOLERANCE

logger = logging.getLogger(__name__)

Face = Tuple[int, int, int]


class ConvexHull:
    """
    Hull vertices (positions only) and triangular faces indexing into them.

    Faces are wound so their normal (B - A) x (C - A) points away from the
    hull. Flat hulls carry every face in both windings.
    """

    def __init__(
        self,
        vertices: Union[Sequence[Sequence[float]], np.ndarray],
        faces: Sequence[Face] = (),
        insufficient_points: bool = False
    ):
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.faces: List[Face] = [tuple(int(i) for i in face) for face in faces]
        self.insufficient_points = insufficient_points

    @property
    def is_empty(self) -> bool:
        return not self.faces

    def face_planes(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Unit normals and origin points of every non-degenerate face.

        Returns:
            (normals, origins), both of shape (F, 3)
        """
        normals = []
        origins = []
        for a, b, c in self.faces:
            A, B, C = self.vertices[a], self.vertices[b], self.vertices[c]
            normal = np.cross(B - A, C - A)
            length = float(np.linalg.norm(normal))
            if length < EPSILON:
                continue
            normals.append(normal / length)
            origins.append(A)
        if not normals:
            return np.zeros((0, 3)), np.zeros((0, 3))
        return np.array(normals), np.array(origins)

    def __repr__(self) -> str:
        flag = ", insufficient" if self.insufficient_points else ""
        return f"ConvexHull(vertices={len(self.vertices)}, faces={len(self.faces)}{flag})"


def plane_distances(hull: ConvexHull, point: Sequence[float]) -> np.ndarray:
    """Signed distance from `point` to every face plane (positive = outside)."""
    normals, origins = hull.face_planes()
    if len(normals) == 0:
        return np.zeros(0)
    p = np.asarray(point, dtype=np.float64)
    return np.einsum("ij,ij->i", p - origins, normals)


def signed_distance_to_hull(hull: ConvexHull, point: Sequence[float]) -> float:
    """
    Signed distance from a point to the nearest face plane of a hull.

    "Nearest" is by absolute distance; on a tie the outside (positive)
    reading wins, so a point hovering over a flat two-sided hull always
    reports how far off the plane it is.

    An empty hull reports 0.0 (nothing to deviate from).
    """
    distances = plane_distances(hull, point)
    if len(distances) == 0:
        return 0.0
    # Sort key: smallest |d| first, then largest d
    order = np.lexsort((-distances, np.round(np.abs(distances), 12)))
    return float(distances[order[0]])


def _principal_axes(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Centroid, singular values and right-singular vectors of a point cloud."""
    centroid = points.mean(axis=0)
    _, singular, vt = np.linalg.svd(points - centroid)
    # Pad so callers can always index 3 singular values
    if len(singular) < 3:
        singular = np.concatenate([singular, np.zeros(3 - len(singular))])
    return centroid, singular, vt


def _unique_rows(points: np.ndarray) -> np.ndarray:
    """Drop duplicate points while keeping first-seen order."""
    _, first = np.unique(points, axis=0, return_index=True)
    return points[np.sort(first)]


def _planar_fan(points: np.ndarray, centroid: np.ndarray, u: np.ndarray, v: np.ndarray) -> List[Face]:
    """Order flat points around their centroid and fan them, both windings."""
    offsets = points - centroid
    angles = np.arctan2(offsets @ v, offsets @ u)
    order = [int(i) for i in np.argsort(angles, kind="stable")]
    faces: List[Face] = []
    for i in range(1, len(order) - 1):
        a, b, c = order[0], order[i], order[i + 1]
        faces.append((a, b, c))
        faces.append((a, c, b))
    return faces


class HullStrategy:
    """Computes a ConvexHull for a point set. Subclasses implement `compute`."""

    name = "base"

    def compute(self, points: Union[Sequence[Sequence[float]], np.ndarray]) -> ConvexHull:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ExtremesHull(HullStrategy):
    """
    Polytope spanned by the axis-extreme points (min/max along x, y and z).

    Only the extremes become hull vertices, so this is an approximation:
    good enough as a convexity oracle, not for geometry-accurate queries.
    """

    name = "extremes"

    def compute(self, points):
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(pts) < 3:
            logger.debug("Hull requested on %d points - insufficient", len(pts))
            return ConvexHull(pts, insufficient_points=True)

        extreme_ids = []
        for axis in range(3):
            extreme_ids.append(int(np.argmin(pts[:, axis])))
            extreme_ids.append(int(np.argmax(pts[:, axis])))
        extremes = _unique_rows(pts[extreme_ids])

        if len(extremes) < 3:
            logger.debug("Only %d distinct extremes - insufficient", len(extremes))
            return ConvexHull(extremes, insufficient_points=True)

        centroid, singular, vt = _principal_axes(extremes)
        scale = max(float(singular[0]), EPSILON)

        # Collinear extremes: nothing to enclose
        if singular[1] < EPSILON * scale:
            return ConvexHull(extremes)

        # Flat extremes: two-sided polygon
        if singular[2] < PLANE_TOLERANCE * scale:
            return ConvexHull(extremes, _planar_fan(extremes, centroid, vt[0], vt[1]))

        return ConvexHull(extremes, self._solid_faces(extremes))

    @staticmethod
    def _solid_faces(points: np.ndarray) -> List[Face]:
        # At most 6 points, so testing every triple is cheap
        faces: List[Face] = []
        for i, j, k in combinations(range(len(points)), 3):
            A, B, C = points[i], points[j], points[k]
            normal = np.cross(B - A, C - A)
            length = float(np.linalg.norm(normal))
            if length < EPSILON:
                continue
            distances = (points - A) @ (normal / length)
            others = np.delete(distances, [i, j, k])
            if np.all(others <= PLANE_TOLERANCE):
                faces.append((i, j, k))
            elif np.all(others >= -PLANE_TOLERANCE):
                faces.append((i, k, j))
        return faces


class QuickHull2D(HullStrategy):
    """
    Divide-and-conquer perimeter hull on the point set's best-fit plane.

    The two points extreme along the widest axis form a baseline. Points
    are split by which side of the baseline they fall on, then each side
    repeatedly takes the point farthest from the current edge as a new
    hull vertex and recurses into the two edges it creates. The recursion
    runs on an explicit stack, so pathological inputs can't blow the
    interpreter's recursion limit.

    The perimeter is fan-triangulated (both windings). This is not a full
    3D hull: off-plane structure is flattened away.
    """

    name = "quickhull"

    def __init__(self, min_branch_points: int = 1):
        """
        Args:
            min_branch_points: A branch with fewer candidate points than this
                stops without adding a vertex. 1 explores every branch.
        """
        if min_branch_points < 1:
            raise ValueError(f"min_branch_points must be at least 1, got {min_branch_points}")
        self.min_branch_points = min_branch_points

    def compute(self, points):
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(pts) < 3:
            logger.debug("Hull requested on %d points - insufficient", len(pts))
            return ConvexHull(pts, insufficient_points=True)

        pts = _unique_rows(pts)
        if len(pts) < 3:
            return ConvexHull(pts, insufficient_points=True)

        centroid, singular, vt = _principal_axes(pts)
        scale = max(float(singular[0]), EPSILON)
        if singular[1] < EPSILON * scale:
            return ConvexHull(pts)
        normal = vt[2]

        extent = pts.max(axis=0) - pts.min(axis=0)
        axis = int(np.argmax(extent))
        start = int(np.argmin(pts[:, axis]))
        end = int(np.argmax(pts[:, axis]))

        perimeter = self._perimeter(pts, normal, start, end)
        hull_points = pts[perimeter]
        if len(hull_points) < 3:
            return ConvexHull(hull_points)

        faces: List[Face] = []
        for i in range(1, len(hull_points) - 1):
            faces.append((0, i, i + 1))
            faces.append((0, i + 1, i))
        return ConvexHull(hull_points, faces)

    def _perimeter(self, pts: np.ndarray, normal: np.ndarray, start: int, end: int) -> List[int]:
        def side(a: int, b: int, ids: np.ndarray) -> np.ndarray:
            # Signed in-plane distance of pts[ids] to the left of edge a -> b
            edge = pts[b] - pts[a]
            length = max(float(np.linalg.norm(edge)), EPSILON)
            return np.cross(edge, pts[ids] - pts[a]) @ normal / length

        all_ids = np.array([i for i in range(len(pts)) if i not in (start, end)], dtype=np.int64)
        next_of: Dict[int, int] = {start: end, end: start}
        stack: List[Tuple[np.ndarray, int, int]] = []

        if len(all_ids):
            baseline = side(start, end, all_ids)
            stack.append((all_ids[baseline > PLANE_TOLERANCE], start, end))
            stack.append((all_ids[baseline < -PLANE_TOLERANCE], end, start))

        while stack:
            subset, a, b = stack.pop()
            if len(subset) == 0 or len(subset) < self.min_branch_points:
                continue

            distances = side(a, b, subset)
            farthest = int(subset[int(np.argmax(distances))])
            next_of[a] = farthest
            next_of[farthest] = b

            rest = subset[subset != farthest]
            if len(rest) == 0:
                continue
            stack.append((rest[side(a, farthest, rest) > PLANE_TOLERANCE], a, farthest))
            stack.append((rest[side(farthest, b, rest) > PLANE_TOLERANCE], farthest, b))

        # Walk the linked perimeter once around
        order = [start]
        current = next_of[start]
        while current != start and len(order) <= len(pts):
            order.append(current)
            current = next_of[current]
        return order


_STRATEGIES = {
    "extremes": ExtremesHull,
    "quickhull": QuickHull2D,
}


def get_hull_strategy(strategy: Union[str, HullStrategy]) -> HullStrategy:
    """Resolve a hull strategy name ("extremes"/"quickhull") or pass an instance through."""
    if isinstance(strategy, HullStrategy):
        return strategy
    try:
        return _STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"Unknown hull strategy {strategy!r}, expected one of {sorted(_STRATEGIES)}"
        ) from None


def compute_convex_hull(
    points: Union[Sequence[Sequence[float]], np.ndarray],
    strategy: Optional[Union[str, HullStrategy]] = "extremes"
) -> ConvexHull:
    """Convenience wrapper: compute a hull with the named strategy."""
    return get_hull_strategy(strategy).compute(points)
