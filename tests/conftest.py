"""Shared fixtures for the k-NN tests."""

import numpy as np
import pytest

from knn_quality.data.dataset import LabeledVector


def make_clusters(n_per_label: int, labels=("A", "B"), spread: float = 0.5,
                  distance: float = 10.0, dim: int = 3, seed: int = 0):
    """Well separated gaussian clusters, one per label, labels interleaved."""
    rng = np.random.default_rng(seed)
    vectors = []
    for i in range(n_per_label):
        for j, label in enumerate(labels):
            center = np.full(dim, j * distance)
            vectors.append(LabeledVector(center + rng.normal(0.0, spread, dim), label))
    return vectors


@pytest.fixture
def clusters():
    """100 vectors, two labels, 50 each."""
    return make_clusters(50)


@pytest.fixture
def random_vectors():
    """50 random 4-dimensional vectors with three labels."""
    rng = np.random.default_rng(42)
    points = rng.uniform(-5.0, 5.0, size=(50, 4))
    return [LabeledVector(point, label="xyz"[i % 3]) for i, point in enumerate(points)]
