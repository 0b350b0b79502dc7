"""CSV ingestion and serialization for point clouds and cluster partitions."""
from __future__ import annotations

import logging
import os
from typing import List

import numpy as np
import pandas as pd

from .core3d import Point
from .partition import ClusterPartition

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "clusters_"


class IngestionError(ValueError):
    """The input could not be read or held no usable records."""


def read_points(path, *, header: bool = True) -> List[Point]:
    """
    Read integer 3D points from a comma-separated file.

    The first record is skipped when `header` is true. Records with fewer
    than three fields or with non-integer values are dropped; fields after
    the third are ignored. Columns keep the file's order: the first column
    becomes coordinate[0].
    """
    path = os.fspath(path)
    try:
        # width of the widest record, so longer rows are not rejected as bad lines
        with open(path, encoding="utf-8") as fh:
            width = max((line.count(",") + 1 for line in fh), default=0)
        raw = pd.read_csv(
            path,
            header=None,
            names=list(range(max(width, 3))),
            skiprows=1 if header else 0,
            dtype=object,
            skip_blank_lines=True,
            engine="python",
        )
    except pd.errors.EmptyDataError as e:
        raise IngestionError(f"{path}: no records") from e
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise IngestionError(f"{path}: {e}") from e

    n_raw = len(raw)
    vals = raw.iloc[:, :3].apply(lambda s: pd.to_numeric(s.str.strip(), errors="coerce"))
    arr = vals.to_numpy(dtype=float, na_value=np.nan)
    with np.errstate(invalid="ignore"):
        ok = np.all(np.isfinite(arr), axis=1) & np.all(arr == np.round(arr), axis=1)
    arr = arr[ok]

    dropped = n_raw - len(arr)
    if dropped:
        logger.warning("%s: dropped %d malformed record(s)", path, dropped)
    if len(arr) == 0:
        raise IngestionError(f"{path}: no valid records")

    logger.info("Read %d points from %s", len(arr), path)
    return [Point((int(a), int(b), int(c))) for a, b, c in arr.astype(np.int64)]


def derive_output_path(input_path, prefix: str = DEFAULT_PREFIX) -> str:
    """Output path next to the input, with `prefix` prepended to the base name."""
    input_path = os.fspath(input_path)
    head, tail = os.path.split(input_path)
    return os.path.join(head, prefix + tail)


def write_partition(partition: ClusterPartition, path) -> str:
    """Write one `cluster_id,c0,c1,c2` line per point, grouped by ascending id."""
    path = os.fspath(path)
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    df = partition.to_frame()
    df.to_csv(path, header=False, index=False)

    for cid, size in enumerate(partition.sizes()):
        logger.debug("Cluster %d contains %d elements", cid, size)
    logger.info("Wrote %d points in %d clusters to %s", len(df), partition.n_clusters, path)
    return path
