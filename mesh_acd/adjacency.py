"""
Triangle adjacency graph construction.

Before we can grow clusters over a mesh we need to know which triangles
touch which. Every consecutive index-triple becomes a Triangle, and each
Triangle gets the ids of its neighbors.

Two notions of "touching" are supported:
- edge: the triangles share an undirected edge (the default, and the one
  that matches how a surface is actually stitched together)
- vertex: the triangles share at least one vertex (looser - fans around a
  vertex all become neighbors)

Neighbor ids are stored sorted, so breadth-first growth over the graph
visits them in the same order on every run.
"""

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, List, Set, Tuple, Union

from .mesh_data import IndexedMesh, validate_indices

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]


class Triangle:
    """
    One triangle of a source mesh plus its neighbors in the adjacency graph.

    Triangles are 1:1 with the index-triples of their mesh: triangle `i`
    uses indices[3*i : 3*i + 3]. `neighbors` is filled in once by the
    adjacency builder and never changes afterwards.
    """

    __slots__ = ("id", "indices", "neighbors")

    def __init__(self, triangle_id: int, indices: Tuple[int, int, int]):
        """
        Initialize a triangle with no neighbors yet.

        Args:
            triangle_id: Position of this triangle in its mesh
            indices: The 3 vertex indices of the triangle
        """
        self.id = triangle_id
        self.indices = indices
        self.neighbors: Tuple[int, ...] = ()

    def edges(self) -> FrozenSet[Edge]:
        """The 3 undirected edges, each as (smaller index, larger index)."""
        a, b, c = self.indices
        return frozenset((min(u, v), max(u, v)) for u, v in ((a, b), (b, c), (c, a)))

    def __repr__(self) -> str:
        return f"Triangle(id={self.id}, indices={self.indices}, neighbors={len(self.neighbors)})"


def _vertex_to_triangles(triangles: List[Triangle]) -> Dict[int, Set[int]]:
    """Map every vertex index to the ids of the triangles that use it."""
    mapping: Dict[int, Set[int]] = defaultdict(set)
    for triangle in triangles:
        for vertex in triangle.indices:
            mapping[vertex].add(triangle.id)
    return mapping


class AdjacencyStrategy:
    """
    Decides which triangles count as neighbors.

    Subclasses implement `neighbors_of`, given a triangle and the
    vertex -> triangle-ids map. The builder handles everything else.
    """

    name = "base"

    def neighbors_of(
        self,
        triangle: Triangle,
        triangles: List[Triangle],
        vertex_map: Dict[int, Set[int]]
    ) -> Set[int]:
        raise NotImplementedError

    def _candidates(self, triangle: Triangle, vertex_map: Dict[int, Set[int]]) -> Set[int]:
        # Everything that shares at least one vertex, minus the triangle itself
        candidates: Set[int] = set()
        for vertex in triangle.indices:
            candidates |= vertex_map[vertex]
        candidates.discard(triangle.id)
        return candidates

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class VertexAdjacency(AdjacencyStrategy):
    """Triangles are neighbors if they share at least one vertex index."""

    name = "vertex"

    def neighbors_of(self, triangle, triangles, vertex_map):
        return self._candidates(triangle, vertex_map)


class EdgeAdjacency(AdjacencyStrategy):
    """Triangles are neighbors if they share at least one undirected edge."""

    name = "edge"

    def neighbors_of(self, triangle, triangles, vertex_map):
        own_edges = triangle.edges()
        return {
            other for other in self._candidates(triangle, vertex_map)
            if own_edges & triangles[other].edges()
        }


_STRATEGIES = {
    "edge": EdgeAdjacency,
    "vertex": VertexAdjacency,
}


def get_adjacency_strategy(strategy: Union[str, AdjacencyStrategy]) -> AdjacencyStrategy:
    """Resolve a strategy name ("edge"/"vertex") or pass an instance through."""
    if isinstance(strategy, AdjacencyStrategy):
        return strategy
    try:
        return _STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"Unknown adjacency strategy {strategy!r}, expected one of {sorted(_STRATEGIES)}"
        ) from None


def construct_adjacency(
    mesh: IndexedMesh,
    strategy: Union[str, AdjacencyStrategy] = "edge"
) -> List[Triangle]:
    """
    Build the triangle adjacency graph of a mesh.

    The algorithm:
    1. Create one Triangle per index-triple
    2. Map each vertex index to the set of triangles that reference it
    3. For every triangle, union the sets registered under its 3 vertices
       (excluding itself) and let the strategy filter that candidate set

    The result is symmetric: if A lists B, B lists A.

    Args:
        mesh: Source mesh
        strategy: "edge", "vertex" or an AdjacencyStrategy instance

    Returns:
        List of Triangle objects, index i == triangle id i

    Raises:
        InvalidMeshError: If the index buffer references missing vertices
        ValueError: If the strategy name is unknown
    """
    resolved = get_adjacency_strategy(strategy)
    validate_indices(mesh.indices, mesh.vertex_count)

    triangles = [
        Triangle(i, (int(a), int(b), int(c)))
        for i, (a, b, c) in enumerate(mesh.triangles)
    ]
    vertex_map = _vertex_to_triangles(triangles)

    for triangle in triangles:
        triangle.neighbors = tuple(sorted(resolved.neighbors_of(triangle, triangles, vertex_map)))

    logger.debug(
        "Built %s adjacency for %d triangles (%d neighbor links)",
        resolved.name, len(triangles), sum(len(t.neighbors) for t in triangles) // 2
    )
    return triangles
