from __future__ import annotations

import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from .partition import ClusterPartition

sns.set_style("whitegrid")


def plot_partition(partition: ClusterPartition, pdf_path, title: str = None) -> str:
    """Scatter the points in 3D, one colour per cluster, and save to `pdf_path`."""
    pdf_path = os.fspath(pdf_path)
    out_dir = os.path.dirname(pdf_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    fig = plt.figure(figsize=(10, 10))
    ax = fig.add_subplot(projection="3d")

    n = partition.n_clusters
    colors = sns.color_palette("hls", n) if n > 0 else []
    for cid, members in partition.groups():
        xyz = np.array([p.coordinate for p in members], dtype=float)
        ax.scatter(xyz[:, 0], xyz[:, 1], xyz[:, 2], s=20, alpha=0.8,
                   color=colors[cid], edgecolor="k", linewidths=0.2)

    if title is None:
        title = f"Region-growing clusters, #clusters={n}"
    ax.set_title(title, pad=12)
    ax.set_xlabel("c0")
    ax.set_ylabel("c1")
    ax.set_zlabel("c2")
    plt.tight_layout()
    plt.savefig(pdf_path, dpi=300, pad_inches=0.05)
    plt.close(fig)
    return pdf_path
