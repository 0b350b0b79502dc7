"""voxclust: fixed-distance 3D clustering by region growing.

Public API:
- Point, euclidean_distance: data model and metric
- CandidatePool: unassigned points with radius extraction (kdtree / grid / scan)
- RegionGrowth, GrowthParams: breadth-first clustering engine
- ClusterPartition: result of a run
- cluster_points, cluster_array: one-call helpers
- read_points, write_partition, run_pipeline: CSV in / CSV out
"""

from .partition import UNASSIGNED, ClusterPartition
from .core3d import (
    SQRT2,
    CandidatePool,
    GrowthParams,
    GrowthState,
    Point,
    RegionGrowth,
    cluster_array,
    cluster_points,
    euclidean_distance,
)
from .io import IngestionError, derive_output_path, read_points, write_partition
from .pipeline import run_pipeline

__all__ = [
    "UNASSIGNED",
    "SQRT2",
    "Point",
    "euclidean_distance",
    "CandidatePool",
    "GrowthParams",
    "GrowthState",
    "RegionGrowth",
    "ClusterPartition",
    "cluster_points",
    "cluster_array",
    "IngestionError",
    "read_points",
    "write_partition",
    "derive_output_path",
    "run_pipeline",
]
