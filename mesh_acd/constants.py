"""
Configuration constants for approximate convex decomposition.

All the magic numbers live here! Want different defaults for your meshes?
Edit these values and every decomposition picks them up.
"""

__version__ = "1.0.0"

# ============================================================================
# Vertex Layout
# ============================================================================

# Floats per vertex record: position (3) + normal (3) + texture coordinate (2)
# This is the layout the rendering side expects, so we keep records intact
VERTEX_STRIDE = 8

# Offset of the position inside one vertex record
POSITION_OFFSET = 0

# ============================================================================
# Clustering
# ============================================================================

# Maximum number of clusters produced per source mesh
# Triangles still unclustered once this is reached are dropped (and reported)
MAX_CLUSTERS = 10

# Canonical convexity metric - "normal_angle" or "hull_deviation"
DEFAULT_METRIC = "normal_angle"

# Mean angle (degrees) allowed between a candidate triangle and its
# already-clustered neighbors. The 0.5 degree literal from the first
# prototype only ever merged exactly coplanar faces, so this is a real
# tolerance instead.
DEFAULT_ANGLE_THRESHOLD_DEG = 20.0

# Maximum distance (mesh units) a candidate vertex may sit outside the
# approximate hull of its cluster
DEFAULT_HULL_DEVIATION_THRESHOLD = 0.5

# Triangle adjacency - "edge" (shared edge) or "vertex" (shared vertex)
DEFAULT_ADJACENCY = "edge"

# Hull construction used by the hull-deviation metric
# "extremes" (axis-extreme polytope) or "quickhull" (planar perimeter)
DEFAULT_HULL = "extremes"

# Chunk size for the fixed-size baseline partition
CHUNK_SIZE = 6

# ============================================================================
# Geometry Tolerances
# ============================================================================

# Anything shorter than this is treated as a zero-length vector
EPSILON = 1e-9

# Points closer than this to a hull plane count as lying on it
PLANE_TOLERANCE = 1e-6

# ============================================================================
# Concurrency
# ============================================================================

# Worker threads used when decomposing several meshes at once
MAX_WORKERS = 4

# Per-mesh timeout in seconds (None = wait forever)
TASK_TIMEOUT_S = None

# ============================================================================
# Display Colors
# ============================================================================

# "palette" gives evenly spread deterministic hues, "random" uses COLOR_SEED
COLOR_MODE = "palette"
COLOR_SEED = 0

# Saturation/value used when generating palette hues
PALETTE_SATURATION = 0.65
PALETTE_VALUE = 0.9

# ============================================================================
# Output Files
# ============================================================================

# Default output filename suffix: {input_name}_convex.glb
DEFAULT_OUTPUT_SUFFIX = "_convex"
DEFAULT_OUTPUT_EXTENSION = ".glb"

# Decimal places kept when writing coordinates into summaries
COORDINATE_PRECISION = 4
