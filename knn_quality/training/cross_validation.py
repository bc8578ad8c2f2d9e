"""
Stratified k-fold cross-validation for the k-NN classifier.
"""

import logging
import random
import time
from typing import Any, List, Optional, Sequence

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.data.dataset import LabeledVector, group_by_label
from knn_quality.exceptions import EmptyInputError
from knn_quality.models.distance import DistanceFamily, DistanceKernel
from knn_quality.models.knn import DEFAULT_K, predict

logger = logging.getLogger(__name__)


def stratified_blocks(
    data: Sequence[LabeledVector],
    n_folds: int,
    rng: Optional[random.Random] = None,
    distribute_remainder: bool = False
) -> List[List[LabeledVector]]:
    """
    Partition labeled vectors into ``n_folds`` stratified blocks.

    Each label pool hands ``max(1, len(pool) // n_folds)`` randomly drawn
    vectors to every block, drawing without replacement. A pool that runs
    dry leaves the remaining blocks without that label.

    Args:
        data: Labeled vectors to partition.
        n_folds: Number of blocks (at least 2).
        rng: Random source; a fresh unseeded one is used if omitted.
        distribute_remainder: Deal the ``len(pool) % n_folds`` leftovers
            round-robin to the blocks instead of dropping them.

    Returns:
        List of ``n_folds`` blocks. Without ``distribute_remainder`` the
        leftovers of each pool appear in no block.
    """
    if n_folds < 2:
        raise ValueError(f"At least 2 folds are required, got {n_folds}")
    if len(data) == 0:
        raise EmptyInputError("Input data is empty.")
    if rng is None:
        rng = random.Random()

    blocks: List[List[LabeledVector]] = [[] for _ in range(n_folds)]
    dropped = 0
    next_block = 0
    for pool in group_by_label(data).values():
        per_block = max(len(pool) // n_folds, 1)

        # Every block takes per_block entries from this pool
        for block in blocks:
            for _ in range(per_block):
                if not pool:
                    break
                block.append(pool.pop(rng.randint(0, len(pool) - 1)))

        if distribute_remainder:
            while pool:
                blocks[next_block].append(pool.pop(rng.randint(0, len(pool) - 1)))
                next_block = (next_block + 1) % n_folds
        else:
            dropped += len(pool)

    if dropped:
        logger.info(f"Cross-validation: {dropped} of {len(data)} samples left out of all folds")
    return blocks


def cross_validate(
    data: Sequence[LabeledVector],
    kernel: DistanceKernel,
    k: int = DEFAULT_K,
    weights: Optional[Sequence[float]] = None,
    family: Any = DistanceFamily.EUCLIDEAN,
    n_folds: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    distribute_remainder: bool = False
) -> ConfusionMatrix:
    """
    Evaluate the classifier with stratified k-fold cross-validation.

    Every block serves as the test set exactly once while the remaining
    blocks form the training set. The per-fold confusion matrices are merged.

    Args:
        data: Labeled vectors.
        kernel: Distance kernel used for every fold.
        k: Number of voting neighbors.
        weights: Optional per-dimension weights; ``None`` means unweighted.
        family: Distance family, Euclidean unless given. Neither setting
            outlives the call on ``kernel``.
        n_folds: Number of folds; defaults to ``k``.
        seed: Seed for the block assignment (ignored if ``rng`` is given).
        rng: Explicit random source.
        distribute_remainder: See :func:`stratified_blocks`.

    Returns:
        Aggregated confusion matrix over all folds.
    """
    if n_folds is None:
        n_folds = k
    if rng is None:
        rng = random.Random(seed)

    result = ConfusionMatrix()
    start = time.perf_counter()
    blocks = stratified_blocks(data, n_folds, rng=rng, distribute_remainder=distribute_remainder)
    result.prediction_time_ms = (time.perf_counter() - start) * 1000.0

    for i, test in enumerate(blocks):
        if not test:
            logger.warning(f"Cross-validation: fold {i + 1}/{n_folds} is empty, skipping")
            continue

        train = [vector for j, block in enumerate(blocks) if j != i for vector in block]
        fold = predict(train, test, kernel, k, weights=weights, family=family)
        result.merge(fold)

        logger.debug(
            f"Progress: {(i + 1) / n_folds * 100.0:.1f}% | total {result.prediction_time_ms:.0f} ms | "
            f"fold {fold.prediction_time_ms:.0f} ms | correct {fold.correct} | wrong {fold.wrong}"
        )

    logger.info(
        f"Cross-validation: {n_folds} folds, {result.correct} correct, {result.wrong} wrong"
    )
    return result
