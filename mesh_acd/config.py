"""
Configuration dataclass for approximate convex decomposition.

This module defines the DecompositionConfig dataclass that holds all the
parameters for a decomposition run. Keeping them in one object keeps
function signatures short and lets new knobs be added without breaking
callers.
"""

import math
from dataclasses import dataclass
from typing import Optional
from .constants import (
    MAX_CLUSTERS,
    DEFAULT_METRIC,
    DEFAULT_ANGLE_THRESHOLD_DEG,
    DEFAULT_HULL_DEVIATION_THRESHOLD,
    DEFAULT_ADJACENCY,
    DEFAULT_HULL,
    MAX_WORKERS,
    TASK_TIMEOUT_S,
    COLOR_MODE,
    COLOR_SEED,
)

VALID_METRICS = {"normal_angle", "hull_deviation"}
VALID_ADJACENCY = {"edge", "vertex"}
VALID_HULLS = {"extremes", "quickhull"}
VALID_COLOR_MODES = {"palette", "random"}


@dataclass
class DecompositionConfig:
    """
    Configuration for approximate convex decomposition.

    Attributes:
        max_clusters: Maximum clusters per source mesh (>= 1)
        metric: Convexity metric - "normal_angle" or "hull_deviation"
        concavity_threshold: Acceptance threshold for the metric. None picks
            the metric's default (degrees for normal_angle, mesh units for
            hull_deviation)
        adjacency: Triangle adjacency - "edge" or "vertex"
        hull: Hull strategy for the hull_deviation metric - "extremes" or "quickhull"
        max_workers: Size of the worker pool used across source meshes
        task_timeout_s: Per-mesh timeout in seconds, None to wait indefinitely
        color_mode: Display color assignment - "palette" or "random"
        color_seed: Seed used by the "random" color mode
        validate_submeshes: If True, run trimesh quality checks on each sub-mesh
        render_preview: If True, render a PNG preview after export
        write_summary: If True, write a JSON summary next to the output file
    """

    max_clusters: int = MAX_CLUSTERS
    metric: str = DEFAULT_METRIC
    concavity_threshold: Optional[float] = None  # Resolved in __post_init__
    adjacency: str = DEFAULT_ADJACENCY
    hull: str = DEFAULT_HULL

    # Concurrency
    max_workers: int = MAX_WORKERS
    task_timeout_s: Optional[float] = TASK_TIMEOUT_S

    # Display colors
    color_mode: str = COLOR_MODE
    color_seed: int = COLOR_SEED

    # Post-processing (CLI)
    validate_submeshes: bool = False
    render_preview: bool = False
    write_summary: bool = False

    def __post_init__(self):
        """Validate configuration parameters."""
        if isinstance(self.max_clusters, bool) or not isinstance(self.max_clusters, int):
            raise ValueError(f"max_clusters must be an integer, got {self.max_clusters!r}")
        if self.max_clusters < 1:
            raise ValueError(f"max_clusters must be at least 1, got {self.max_clusters}")

        if self.metric not in VALID_METRICS:
            raise ValueError(f"metric must be one of {VALID_METRICS}, got {self.metric}")
        if self.adjacency not in VALID_ADJACENCY:
            raise ValueError(f"adjacency must be one of {VALID_ADJACENCY}, got {self.adjacency}")
        if self.hull not in VALID_HULLS:
            raise ValueError(f"hull must be one of {VALID_HULLS}, got {self.hull}")

        # Fill in the metric's own default threshold
        if self.concavity_threshold is None:
            if self.metric == "normal_angle":
                self.concavity_threshold = DEFAULT_ANGLE_THRESHOLD_DEG
            else:
                self.concavity_threshold = DEFAULT_HULL_DEVIATION_THRESHOLD
        if not math.isfinite(self.concavity_threshold) or self.concavity_threshold < 0:
            raise ValueError(
                f"concavity_threshold must be a finite non-negative number, got {self.concavity_threshold}"
            )

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.task_timeout_s is not None and not (math.isfinite(self.task_timeout_s) and self.task_timeout_s > 0):
            raise ValueError(f"task_timeout_s must be a positive number, got {self.task_timeout_s}")

        if self.color_mode not in VALID_COLOR_MODES:
            raise ValueError(f"color_mode must be one of {VALID_COLOR_MODES}, got {self.color_mode}")
