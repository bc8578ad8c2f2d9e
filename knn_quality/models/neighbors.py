"""
Top-k neighbor selection.

A single linear pass over the training vectors with a fixed-size result
buffer. The slot holding the largest distance is cached, so a new vector is
either rejected with one comparison or replaces that slot, after which the
buffer is rescanned once. For the small k used in practice this beats a heap.
"""

import math
from typing import List, NamedTuple, Sequence

from knn_quality.data.dataset import LabeledVector
from knn_quality.exceptions import EmptyInputError, InsufficientTrainingDataError
from knn_quality.models.distance import DistanceKernel


class Neighbor(NamedTuple):
    vector: LabeledVector
    distance: float


def top_k_neighbors(train: Sequence[LabeledVector], kernel: DistanceKernel, k: int) -> List[Neighbor]:
    """
    Find the k training vectors closest to the kernel's bound candidate.

    Args:
        train: Indexable training vectors.
        kernel: Distance kernel already bound to the candidate.
        k: Number of neighbors, 1 <= k <= len(train).

    Returns:
        k neighbors in buffer order (not sorted by distance). Among equal
        distances the vector seen first is kept. A NaN distance ranks
        together with +inf, behind every finite distance.

    Raises:
        EmptyInputError: If ``train`` is empty.
        InsufficientTrainingDataError: If ``k > len(train)``.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    n = len(train)
    if n == 0:
        raise EmptyInputError("Training data is empty.")
    if k > n:
        raise InsufficientTrainingDataError(
            f"Requested {k} neighbors but only {n} training vectors given"
        )

    vectors = [None] * k
    distances = [0.0] * k
    keys = [0.0] * k

    filled = 0
    worst_index = 0
    worst_key = -math.inf
    for current in train:
        distance = kernel.compute(current)
        key = float(distance)
        if key != key:
            key = math.inf

        # Fill the buffer with the first k entries
        if filled < k:
            vectors[filled] = current
            distances[filled] = distance
            keys[filled] = key
            if key > worst_key:
                worst_key = key
                worst_index = filled
            filled += 1
            continue

        if key >= worst_key:
            continue

        vectors[worst_index] = current
        distances[worst_index] = distance
        keys[worst_index] = key

        worst_index = 0
        worst_key = keys[0]
        for j in range(1, k):
            if keys[j] > worst_key:
                worst_key = keys[j]
                worst_index = j

    return [Neighbor(vector, distance) for vector, distance in zip(vectors, distances)]
