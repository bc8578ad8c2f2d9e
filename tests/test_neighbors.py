"""Tests for top-k neighbor selection."""

import math

import numpy as np
import pytest
from sklearn.neighbors import NearestNeighbors

from knn_quality.data.dataset import LabeledVector
from knn_quality.exceptions import EmptyInputError, InsufficientTrainingDataError
from knn_quality.models.distance import EuclideanKernel, ManhattanKernel
from knn_quality.models.neighbors import top_k_neighbors


def ids(neighbors):
    return {id(neighbor.vector) for neighbor in neighbors}


@pytest.mark.parametrize("k", [1, 3, 7, 11])
def test_matches_full_sort(random_vectors, k):
    candidate, train = random_vectors[0], random_vectors[1:]
    kernel = ManhattanKernel()
    kernel.bind_candidate(candidate)

    result = top_k_neighbors(train, kernel, k)

    ranked = sorted(train, key=kernel.compute)
    assert len(result) == k
    assert ids(result) == {id(vector) for vector in ranked[:k]}


@pytest.mark.parametrize("k", [1, 5, 10])
def test_matches_sklearn(random_vectors, k):
    train = random_vectors[10:]
    matrix = np.stack([vector.values for vector in train]).astype(np.float64)
    oracle = NearestNeighbors(n_neighbors=k, metric='euclidean').fit(matrix)
    kernel = EuclideanKernel()

    for candidate in random_vectors[:10]:
        kernel.bind_candidate(candidate)
        expected = oracle.kneighbors(candidate.values.reshape(1, -1).astype(np.float64),
                                     return_distance=False)[0]
        assert ids(top_k_neighbors(train, kernel, k)) == {id(train[i]) for i in expected}


def test_reported_distances(random_vectors):
    kernel = EuclideanKernel()
    kernel.bind_candidate(random_vectors[0])
    for neighbor in top_k_neighbors(random_vectors[1:], kernel, 5):
        assert neighbor.distance == kernel.compute(neighbor.vector)


def test_k_equals_training_size_returns_all(random_vectors):
    kernel = EuclideanKernel()
    kernel.bind_candidate(random_vectors[0])
    result = top_k_neighbors(random_vectors, kernel, len(random_vectors))
    assert ids(result) == {id(vector) for vector in random_vectors}


def test_equal_distances_keep_first_seen():
    first = LabeledVector([1.0], "first")
    second = LabeledVector([-1.0], "second")
    kernel = EuclideanKernel()
    kernel.bind_candidate(LabeledVector([0.0]))
    result = top_k_neighbors([LabeledVector([5.0], "far"), first, second], kernel, 1)
    assert result[0].vector is first


def test_nan_distance_is_never_preferred():
    broken = LabeledVector([math.nan, 0.0], "nan")
    near = LabeledVector([1.0, 1.0], "near")
    far = LabeledVector([100.0, 100.0], "far")
    kernel = EuclideanKernel()
    kernel.bind_candidate(LabeledVector([0.0, 0.0]))

    result = top_k_neighbors([broken, far, near], kernel, 2)

    assert ids(result) == {id(near), id(far)}


def test_infinite_distances_fill_buffer():
    vectors = [LabeledVector([math.inf], str(i)) for i in range(4)]
    kernel = ManhattanKernel()
    kernel.bind_candidate(LabeledVector([0.0]))
    result = top_k_neighbors(vectors, kernel, 2)
    assert [neighbor.vector.label for neighbor in result] == ["0", "1"]


def test_insufficient_training_data(random_vectors):
    kernel = EuclideanKernel()
    kernel.bind_candidate(random_vectors[0])
    with pytest.raises(InsufficientTrainingDataError):
        top_k_neighbors(random_vectors[:3], kernel, 4)


def test_empty_training_data():
    kernel = EuclideanKernel()
    kernel.bind_candidate(LabeledVector([0.0]))
    with pytest.raises(EmptyInputError):
        top_k_neighbors([], kernel, 1)


def test_k_must_be_positive(random_vectors):
    kernel = EuclideanKernel()
    kernel.bind_candidate(random_vectors[0])
    with pytest.raises(ValueError):
        top_k_neighbors(random_vectors, kernel, 0)
