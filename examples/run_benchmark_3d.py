#!/usr/bin/env python3
"""
Example: 3D benchmark driver for voxclust.

Times each candidate-pool strategy on synthetic integer blobs:
- Generate Gaussian blobs snapped to the integer grid (optionally from a CSV)
- Run scan / grid / kdtree at a few thresholds
- Check that every strategy yields the same grouping

Usage:
  python examples/run_benchmark_3d.py [path/to/points.csv]
"""

from __future__ import annotations

import sys
import time

import numpy as np
import pandas as pd

from voxclust import Point, cluster_points, read_points


def _blobs(n_blobs=20, per_blob=400, spread=2.5, box=200, seed=0):
    rng = np.random.default_rng(seed)
    centers = rng.uniform(0, box, size=(n_blobs, 3))
    xyz = np.vstack([rng.normal(c, spread, size=(per_blob, 3)) for c in centers])
    return np.round(xyz).astype(int)


def main(csv_path: str = None) -> None:
    if csv_path:
        xyz = np.array([p.coordinate for p in read_points(csv_path)], dtype=int)
    else:
        xyz = _blobs()

    thresholds = [1.0, np.sqrt(2.0), 2.0]
    strategies = ["scan", "grid", "kdtree"]

    rows = []
    for thr in thresholds:
        reference = None
        for strategy in strategies:
            pts = [Point(tuple(row)) for row in xyz.tolist()]
            t0 = time.time()
            part = cluster_points(pts, float(thr), strategy=strategy)
            elapsed = time.time() - t0

            if reference is None:
                reference = part
            rows.append({
                "threshold": float(thr),
                "strategy": strategy,
                "n_points": len(part),
                "n_clusters": part.n_clusters,
                "largest_cluster": max(part.sizes(), default=0),
                "time_s": elapsed,
                "same_grouping": part.same_grouping(reference),
            })

    out = pd.DataFrame(rows)
    out.to_csv("benchmark_summary.csv", index=False)
    print(out.to_string(index=False))
    print("Wrote benchmark_summary.csv")


if __name__ == "__main__":
    if len(sys.argv) > 2:
        print(__doc__)
        raise SystemExit(2)
    main(sys.argv[1] if len(sys.argv) == 2 else None)
