import logging
import time
from collections import Counter
from typing import Any, Hashable, List, Optional, Sequence

import numpy as np

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.data.dataset import LabeledVector
from knn_quality.exceptions import EmptyInputError
from knn_quality.models.distance import DistanceFamily, DistanceKernel, make_kernel
from knn_quality.models.neighbors import Neighbor, top_k_neighbors

logger = logging.getLogger(__name__)

DEFAULT_K = 10


def plurality_vote(neighbors: Sequence[Neighbor]) -> Hashable:
    """
    Most common label among the neighbors.

    Ties go to the label seen first in ``neighbors``, i.e. first in the
    neighbor buffer. After slot replacements during the top-k scan that is
    not necessarily the order in which training vectors were encountered.
    """
    # most_common keeps insertion order among equal counts
    return Counter(neighbor.vector.label for neighbor in neighbors).most_common(1)[0][0]


def predict(train: Sequence[LabeledVector],
            test: Sequence[LabeledVector],
            kernel: DistanceKernel,
            k: int = DEFAULT_K,
            weights: Optional[Sequence[float]] = None,
            family: Any = DistanceFamily.EUCLIDEAN) -> ConfusionMatrix:
    """
    Predict a label for every test vector and tally the outcome.

    Args:
        train: Labeled training vectors.
        test: Labeled test vectors; their labels are the ground truth.
        kernel: Distance kernel, rebound to each test vector in turn. Its
            family and weights are overridden for this call only.
        k: Number of neighbors that vote.
        weights: Optional per-dimension weights; ``None`` means unweighted.
        family: Distance family, Euclidean unless given.

    Returns:
        Confusion matrix with the elapsed time in milliseconds.
    """
    if len(train) == 0:
        raise EmptyInputError("Training data is empty.")
    if len(test) == 0:
        raise EmptyInputError("Test data is empty.")

    start = time.perf_counter()
    result = ConfusionMatrix()
    with kernel.configured(family, weights):
        for candidate in test:
            kernel.bind_candidate(candidate)
            neighbors = top_k_neighbors(train, kernel, k)
            result.record_prediction(candidate.label, plurality_vote(neighbors))
    result.prediction_time_ms = (time.perf_counter() - start) * 1000.0

    logger.info(
        f"KNN: predicted {len(test)} samples against {len(train)} "
        f"(k={k}, {DistanceFamily.parse(family).value}): {result.correct} correct, {result.wrong} wrong"
    )
    return result


class KNNClassifier:
    """
    K-Nearest Neighbors classifier (from scratch).

    Uses a weighted Euclidean or Manhattan distance and plurality voting.
    """

    def __init__(self, cfg: Optional[Any] = None, k: int = DEFAULT_K,
                 distance: Any = "euclidean",
                 weights: Optional[Sequence[float]] = None,
                 dtype: Any = np.float32):
        """
        Initialize KNN classifier.

        Args:
            cfg: Optional config object (e.g., cfg.model)
            k: Number of neighbors (default: 10)
            distance: Distance family name or enum member
            weights: Optional per-dimension weights
            dtype: Scalar family used for distance computation
        """
        if cfg is not None:
            k = getattr(cfg, 'k', k)
            distance = getattr(cfg, 'distance', distance)
            weights = getattr(cfg, 'weights', weights)
            dtype = getattr(cfg, 'dtype', dtype)

        self.k = int(k)
        self.weights = list(weights) if weights is not None else None
        self.kernel = make_kernel(distance, dtype=dtype, weights=self.weights)
        self.train: Optional[List[LabeledVector]] = None

    def fit(self, train: Sequence[LabeledVector]) -> "KNNClassifier":
        """
        Lazy learning: just store the training data.
        """
        if len(train) == 0:
            raise EmptyInputError("Training data is empty.")
        self.train = list(train)
        logger.info(f"KNN: stored {len(self.train)} training samples (k={self.k})")
        return self

    def _check_fitted(self) -> None:
        if self.train is None:
            raise RuntimeError("Classifier not fitted. Call fit() first.")

    def predict(self, test: Sequence[LabeledVector]) -> ConfusionMatrix:
        """Predict labeled test vectors and return the confusion matrix."""
        self._check_fitted()
        return predict(self.train, list(test), self.kernel, self.k,
                       weights=self.weights, family=self.kernel.family)

    def predict_labels(self, vectors: Sequence[Any]) -> List[Hashable]:
        """
        Predict a label for each vector.

        Accepts LabeledVectors or plain attribute sequences.
        """
        self._check_fitted()
        predictions = []
        for vector in vectors:
            if not isinstance(vector, LabeledVector):
                vector = LabeledVector(vector, dtype=self.kernel.dtype)
            self.kernel.bind_candidate(vector)
            predictions.append(plurality_vote(top_k_neighbors(self.train, self.kernel, self.k)))
        return predictions

    def cross_validate(self, data: Sequence[LabeledVector], n_folds: Optional[int] = None,
                       seed: Optional[int] = None,
                       distribute_remainder: bool = False) -> ConfusionMatrix:
        """Stratified k-fold evaluation with this classifier's settings."""
        from knn_quality.training.cross_validation import cross_validate

        return cross_validate(
            list(data), self.kernel, k=self.k, weights=self.weights,
            family=self.kernel.family, n_folds=n_folds, seed=seed,
            distribute_remainder=distribute_remainder,
        )

    def __repr__(self) -> str:
        return f"KNNClassifier(k={self.k}, kernel={self.kernel!r})"
