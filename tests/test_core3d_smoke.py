import numpy as np

from voxclust import Point, cluster_points


def _toy_cloud(n=200, seed=0):
    rng = np.random.default_rng(seed)
    # two dense integer blobs plus sparse background noise
    blob_a = rng.integers(0, 4, size=(n // 2, 3))
    blob_b = rng.integers(20, 23, size=(n // 4, 3))
    noise = rng.integers(40, 400, size=(n - n // 2 - n // 4, 3))
    xyz = np.vstack([blob_a, blob_b, noise])
    return [Point(tuple(int(v) for v in row)) for row in xyz]


def test_core3d_smoke():
    pts = _toy_cloud()
    part = cluster_points(pts, threshold=1.5)
    assert len(part) == len(pts)
    assert part.n_clusters >= 2

    labels = part.labels
    assert labels.shape[0] == len(pts)
    assert labels.min() == 0
    assert labels.max() == part.max_cluster

    # both blobs are dense enough to be a single cluster each
    assert len(set(labels[:100].tolist())) == 1
    assert len(set(labels[100:150].tolist())) == 1
    assert labels[0] != labels[100]
