from __future__ import annotations

from typing import TYPE_CHECKING, FrozenSet, Iterator, List, Sequence, Tuple

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .core3d import Point

UNASSIGNED = -1
COLUMNS = ["cluster", "c0", "c1", "c2"]


class ClusterPartition:
    """
    Read-only result of a clustering run.

    Holds the processed points in input order together with the id of the
    last cluster allocated. Ids are contiguous, 0..max_cluster, numbered in
    order of discovery; an empty input gives max_cluster == -1.
    """

    def __init__(self, points: Sequence["Point"], max_cluster: int) -> None:
        self._points: Tuple["Point", ...] = tuple(points)
        self.max_cluster = int(max_cluster)

        labels = np.fromiter((p.cluster for p in self._points), dtype=np.int64, count=len(self._points))
        if labels.size and labels.min() < 0:
            i = int(np.argmin(labels))
            raise ValueError(f"Point {i} at {self._points[i].coordinate} was never assigned a cluster")
        present = np.unique(labels)
        if not np.array_equal(present, np.arange(self.max_cluster + 1)):
            raise ValueError(
                f"Cluster ids must be contiguous 0..{self.max_cluster}, got {present.tolist()}"
            )
        labels.setflags(write=False)
        self._labels = labels

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"ClusterPartition(n_points={len(self)}, n_clusters={self.n_clusters})"

    @property
    def points(self) -> Tuple["Point", ...]:
        return self._points

    @property
    def labels(self) -> np.ndarray:
        return self._labels

    @property
    def n_clusters(self) -> int:
        return self.max_cluster + 1

    def sizes(self) -> List[int]:
        return np.bincount(self._labels, minlength=self.n_clusters).astype(int).tolist()

    def groups(self) -> Iterator[Tuple[int, List["Point"]]]:
        """Yield (cluster_id, members) in ascending id order; members keep input order."""
        order = np.argsort(self._labels, kind="stable")
        bounds = np.searchsorted(self._labels[order], np.arange(self.n_clusters + 1))
        for cid in range(self.n_clusters):
            idx = order[bounds[cid]:bounds[cid + 1]]
            yield cid, [self._points[i] for i in idx]

    def records(self) -> Iterator[Tuple[int, int, int, int]]:
        """Yield (cluster_id, c0, c1, c2) grouped by ascending cluster id."""
        for cid, members in self.groups():
            for p in members:
                yield (cid, *p.coordinate)

    def to_frame(self) -> pd.DataFrame:
        rows = list(self.records())
        if not rows:
            return pd.DataFrame({c: pd.Series(dtype="int64") for c in COLUMNS})
        return pd.DataFrame(rows, columns=COLUMNS).astype("int64")

    def grouping(self) -> FrozenSet[FrozenSet[int]]:
        """The induced grouping of input positions, independent of id values."""
        order = np.argsort(self._labels, kind="stable")
        bounds = np.searchsorted(self._labels[order], np.arange(self.n_clusters + 1))
        return frozenset(
            frozenset(int(i) for i in order[bounds[c]:bounds[c + 1]])
            for c in range(self.n_clusters)
        )

    def same_grouping(self, other: "ClusterPartition") -> bool:
        return len(self) == len(other) and self.grouping() == other.grouping()
