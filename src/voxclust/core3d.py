from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .partition import UNASSIGNED, ClusterPartition

logger = logging.getLogger(__name__)

SQRT2 = math.sqrt(2.0)
STRATEGIES = ("kdtree", "grid", "scan")

ProgressCallback = Callable[[int, int], None]


@dataclass(eq=False)
class Point:
    """A 3D integer coordinate with a mutable cluster assignment.

    Equality is identity: two points with the same coordinate are still
    distinct members of the input.
    """
    coordinate: Tuple[int, int, int]
    cluster: int = UNASSIGNED

    def __post_init__(self) -> None:
        coord = tuple(int(v) for v in self.coordinate)
        if len(coord) != 3:
            raise ValueError(f"Point needs exactly 3 coordinates, got {len(coord)}")
        object.__setattr__(self, "coordinate", coord)

    def __setattr__(self, name, value):
        if name == "coordinate" and "coordinate" in self.__dict__:
            raise AttributeError("Point.coordinate is immutable")
        object.__setattr__(self, name, value)


def euclidean_distance(a: Point, b: Point) -> float:
    """Euclidean distance between the coordinates of two points."""
    d2 = sum((int(u) - int(v)) ** 2 for u, v in zip(a.coordinate, b.coordinate))
    return math.sqrt(d2)


def _distances_to(xyz: np.ndarray, center: np.ndarray) -> np.ndarray:
    # exact integer squares, then one correctly rounded sqrt (matches euclidean_distance)
    diff = xyz - center
    return np.sqrt((diff * diff).sum(axis=1).astype(float))


@dataclass(frozen=True)
class GrowthParams:
    """Configuration of a region-growth run."""
    threshold: float = SQRT2
    strategy: str = "kdtree"
    cell_size: Optional[float] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        thr = float(self.threshold)
        if not math.isfinite(thr) or thr < 0:
            raise ValueError(f"threshold must be a finite number >= 0, got {self.threshold!r}")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {self.strategy!r}")
        if self.cell_size is not None and not (float(self.cell_size) > 0):
            raise ValueError(f"cell_size must be > 0, got {self.cell_size!r}")

    @property
    def effective_cell_size(self) -> float:
        if self.cell_size is not None:
            return float(self.cell_size)
        return float(self.threshold) if self.threshold > 0 else 1.0


# ---------------------------------------------------------------------
# Candidate pool
# ---------------------------------------------------------------------
class CandidatePool:
    """
    The points that have not been assigned to a cluster yet.

    Points are addressed by their position in the input sequence. Removal
    clears an alive flag (plus strategy-specific bookkeeping); nothing is
    ever re-inserted.

    Strategies
    ----------
    scan:
        Vectorised distance over a compacted array of live indices.
    grid:
        Spatial hash keyed by floor(coordinate / cell_size).
    kdtree:
        cKDTree over the live points, filtered by the alive mask. The tree is
        rebuilt whenever half of its points have been removed, so the dead
        entries a query walks past stay bounded by the live ones overall.

    All strategies return exactly the same points for a given query.
    """

    def __init__(
        self,
        points: Sequence[Point],
        *,
        strategy: str = "kdtree",
        cell_size: float = 1.0,
        seed: Optional[int] = None,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {strategy!r}")
        for i, p in enumerate(points):
            if p.cluster != UNASSIGNED:
                raise ValueError(f"Point {i} is already assigned to cluster {p.cluster}")

        self.points: List[Point] = list(points)
        self.strategy = strategy
        self.cell_size = float(cell_size)
        n = len(self.points)

        self._xyz = np.array([p.coordinate for p in self.points], dtype=np.int64).reshape(n, 3)
        self._alive = np.ones(n, dtype=bool)
        self._n_alive = n

        if seed is None:
            self._seed_order = np.arange(n)
        else:
            self._seed_order = np.random.default_rng(seed).permutation(n)
        self._cursor = 0

        self._live: Optional[np.ndarray] = None
        self._cells: Optional[Dict[Tuple[int, int, int], List[int]]] = None
        self._tree: Optional[cKDTree] = None
        self._tree_idx = np.empty(0, dtype=np.int64)
        if strategy == "scan":
            self._live = np.arange(n)
        elif strategy == "grid":
            self._build_grid()
        else:
            self._build_tree()

    def __len__(self) -> int:
        return self._n_alive

    @property
    def remaining(self) -> int:
        return self._n_alive

    @property
    def total(self) -> int:
        return len(self.points)

    def __contains__(self, point: Point) -> bool:
        return any(q is point and self._alive[i] for i, q in enumerate(self.points))

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------
    def extract_any(self) -> Optional[Point]:
        """Remove and return some remaining point, or None once the pool is empty."""
        order = self._seed_order
        while self._cursor < len(order):
            idx = int(order[self._cursor])
            self._cursor += 1
            if self._alive[idx]:
                self._remove(np.array([idx]))
                return self.points[idx]
        return None

    def extract_within(self, center: Point, radius: float) -> List[Point]:
        """
        Remove and return every remaining point within `radius` of `center`
        (inclusive), in input order. Cluster ids are left untouched.
        """
        if self._n_alive == 0:
            return []
        radius = float(radius)
        c = np.asarray(center.coordinate, dtype=np.int64)

        if self.strategy == "scan":
            hits = self._query_scan(c, radius)
        elif self.strategy == "grid":
            hits = self._query_grid(c, radius)
        else:
            hits = self._query_tree(c, radius)

        if hits.size == 0:
            return []
        hits = np.sort(hits)
        self._remove(hits)
        return [self.points[i] for i in hits]

    def _query_scan(self, c: np.ndarray, radius: float) -> np.ndarray:
        live = self._live
        d = _distances_to(self._xyz[live], c)
        return live[d <= radius]

    def _query_tree(self, c: np.ndarray, radius: float) -> np.ndarray:
        if self._tree is None:
            return np.empty(0, dtype=np.int64)
        # inflate slightly, then decide the boundary exactly
        found = self._tree.query_ball_point(c.astype(float), r=radius * (1.0 + 1e-9) + 1e-12)
        cand = self._tree_idx[np.asarray(found, dtype=np.int64)]
        if cand.size == 0:
            return cand
        cand = cand[self._alive[cand]]
        if cand.size == 0:
            return cand
        d = _distances_to(self._xyz[cand], c)
        return cand[d <= radius]

    # -----------------------------------------------------------------
    # Spatial hash
    # -----------------------------------------------------------------
    def _cell_of(self, xyz: np.ndarray) -> np.ndarray:
        return np.floor(xyz / self.cell_size).astype(np.int64)

    def _build_grid(self) -> None:
        cells: Dict[Tuple[int, int, int], List[int]] = {}
        keys = self._cell_of(self._xyz)
        for i, key in enumerate(map(tuple, keys.tolist())):
            cells.setdefault(key, []).append(i)
        self._cells = cells

    def _query_grid(self, c: np.ndarray, radius: float) -> np.ndarray:
        cells = self._cells
        reach = int(math.ceil(radius / self.cell_size))
        cx, cy, cz = (int(v) for v in self._cell_of(c.reshape(1, 3))[0])

        if (2 * reach + 1) ** 3 >= len(cells):
            keys: Iterable[Tuple[int, int, int]] = [
                k for k in cells
                if abs(k[0] - cx) <= reach and abs(k[1] - cy) <= reach and abs(k[2] - cz) <= reach
            ]
        else:
            span = range(-reach, reach + 1)
            keys = [(cx + dx, cy + dy, cz + dz) for dx in span for dy in span for dz in span]

        cand: List[int] = []
        for key in keys:
            members = cells.get(key)
            if members:
                cand.extend(members)
        if not cand:
            return np.empty(0, dtype=np.int64)
        idx = np.asarray(cand, dtype=np.int64)
        d = _distances_to(self._xyz[idx], c)
        return idx[d <= radius]

    # -----------------------------------------------------------------
    # Removal
    # -----------------------------------------------------------------
    def _remove(self, idx: np.ndarray) -> None:
        self._alive[idx] = False
        self._n_alive -= int(idx.size)

        if self.strategy == "scan":
            self._live = self._live[self._alive[self._live]]
        elif self.strategy == "grid":
            for key in {tuple(k) for k in self._cell_of(self._xyz[idx]).tolist()}:
                kept = [i for i in self._cells[key] if self._alive[i]]
                if kept:
                    self._cells[key] = kept
                else:
                    del self._cells[key]
        elif self._n_alive <= self._tree_idx.size // 2:
            self._build_tree()

    def _build_tree(self) -> None:
        live = np.flatnonzero(self._alive)
        self._tree_idx = live
        self._tree = cKDTree(self._xyz[live].astype(float)) if live.size else None


# ---------------------------------------------------------------------
# Region growth
# ---------------------------------------------------------------------
class GrowthState(Enum):
    IDLE = "idle"
    GROWING_CLUSTER = "growing_cluster"
    DONE = "done"


@dataclass
class RegionGrowth:
    """
    Breadth-first region-growing engine.

    Seeds are drawn from the candidate pool one at a time; each seed starts
    a new cluster that is grown through a FIFO frontier until no remaining
    point lies within `threshold` of any member. Cluster ids are sequential
    from 0 in order of discovery.
    """
    params: GrowthParams = field(default_factory=GrowthParams)
    progress: Optional[ProgressCallback] = None

    state: GrowthState = field(default=GrowthState.IDLE, init=False)
    max_cluster: int = field(default=UNASSIGNED, init=False)
    assigned: int = field(default=0, init=False)
    total: int = field(default=0, init=False)
    _pool: Optional[CandidatePool] = field(default=None, init=False, repr=False)

    @property
    def remaining(self) -> int:
        return self.total - self.assigned

    def run(self, points: Sequence[Point]) -> ClusterPartition:
        points = list(points)
        for p in points:
            p.cluster = UNASSIGNED

        prm = self.params
        self._pool = CandidatePool(
            points,
            strategy=prm.strategy,
            cell_size=prm.effective_cell_size,
            seed=prm.seed,
        )
        self.state = GrowthState.IDLE
        self.max_cluster = UNASSIGNED
        self.assigned = 0
        self.total = len(points)

        while True:
            seed = self._pool.extract_any()
            if seed is None:
                break
            self._grow(seed)

        self.state = GrowthState.DONE
        self._pool = None
        logger.info(
            "Clustered %d points into %d clusters (threshold=%.6g, strategy=%s)",
            self.total, self.max_cluster + 1, prm.threshold, prm.strategy,
        )
        return ClusterPartition(points, self.max_cluster)

    def _grow(self, seed: Point) -> None:
        self.state = GrowthState.GROWING_CLUSTER
        self.max_cluster += 1
        cid = self.max_cluster
        threshold = float(self.params.threshold)
        logger.debug("Starting cluster %d at %s", cid, seed.coordinate)

        seed.cluster = cid
        self._mark_assigned(1)
        frontier = deque([seed])
        size = 1
        while frontier:
            p = frontier.popleft()
            found = self._pool.extract_within(p, threshold)
            if not found:
                continue
            for q in found:
                q.cluster = cid
            frontier.extend(found)
            size += len(found)
            self._mark_assigned(len(found))

        logger.debug("Finished cluster %d with %d points, %d left", cid, size, self.remaining)
        self.state = GrowthState.IDLE

    def _mark_assigned(self, n: int) -> None:
        self.assigned += n
        if self.progress is not None:
            self.progress(self.assigned, self.total)


def cluster_points(
    points: Sequence[Point],
    threshold: float = SQRT2,
    *,
    strategy: str = "kdtree",
    cell_size: Optional[float] = None,
    seed: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> ClusterPartition:
    """Cluster `points` in place and return the resulting partition."""
    params = GrowthParams(threshold=threshold, strategy=strategy, cell_size=cell_size, seed=seed)
    return RegionGrowth(params, progress=progress).run(points)


def cluster_array(xyz, threshold: float = SQRT2, **kwargs) -> np.ndarray:
    """Label an (N, 3) integer coordinate array; returns an (N,) int array."""
    arr = np.asarray(xyz)
    if arr.size == 0:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (N, 3) array, got shape {arr.shape}")
    if not np.issubdtype(arr.dtype, np.integer):
        if not np.all(np.isfinite(arr)) or not np.all(arr == np.round(arr)):
            raise ValueError("Coordinates must be integers")
    pts = [Point(tuple(int(v) for v in row)) for row in arr]
    return cluster_points(pts, threshold, **kwargs).labels
