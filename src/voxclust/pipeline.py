from __future__ import annotations

import logging
import os
import time
from typing import Dict, Optional

from .core3d import SQRT2, GrowthParams, ProgressCallback, RegionGrowth
from .io import DEFAULT_PREFIX, derive_output_path, read_points, write_partition

logger = logging.getLogger(__name__)


def run_pipeline(
    input_path,
    output_path=None,
    *,
    threshold: float = SQRT2,
    strategy: str = "kdtree",
    cell_size: Optional[float] = None,
    seed: Optional[int] = None,
    header: bool = True,
    prefix: str = DEFAULT_PREFIX,
    plot_path=None,
    progress: Optional[ProgressCallback] = None,
) -> Dict:
    """
    Read points, cluster them and write the partition.

    Returns a JSON-serialisable summary of the run.
    """
    params = GrowthParams(threshold=threshold, strategy=strategy, cell_size=cell_size, seed=seed)
    input_path = os.fspath(input_path)
    if output_path is None:
        output_path = derive_output_path(input_path, prefix)
    output_path = os.fspath(output_path)

    points = read_points(input_path, header=header)

    t0 = time.perf_counter()
    partition = RegionGrowth(params, progress=progress).run(points)
    elapsed = time.perf_counter() - t0

    logger.info("Writing clusters to %s", output_path)
    write_partition(partition, output_path)

    plot = None
    if plot_path is not None:
        from .plotting import plot_partition
        plot = plot_partition(partition, plot_path)

    sizes = partition.sizes()
    return {
        "input": input_path,
        "output": output_path,
        "threshold": float(params.threshold),
        "strategy": params.strategy,
        "seed": seed,
        "n_points": len(partition),
        "n_clusters": partition.n_clusters,
        "max_cluster": partition.max_cluster,
        "largest_cluster": max(sizes) if sizes else 0,
        "cluster_sizes": sizes,
        "elapsed_s": float(elapsed),
        "plot": plot,
    }
