"""
Distance kernels for k-NN neighbor search.

A kernel is bound to one candidate (test) vector and then queried with every
training vector. Two members of the weighted Minkowski family are supported:

    Euclidean: Σ ((x[i]·w[i]) - (c[i]·w[i]))²     (squared, no root)
    Manhattan: Σ |(x[i]·w[i]) - (c[i]·w[i])|

The Euclidean kernel returns the squared distance. The root is monotonic and
the only consumer is an order-based top-k search.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Optional, Sequence, Union

import numpy as np

from knn_quality.data.dataset import LabeledVector
from knn_quality.exceptions import DimensionMismatchError, UnsupportedDistanceError

VectorLike = Union[LabeledVector, np.ndarray, Sequence[float]]


class DistanceFamily(Enum):
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"

    @classmethod
    def parse(cls, value: Any) -> "DistanceFamily":
        """
        Resolve an enum member or a (case-insensitive) family name.

        Raises:
            UnsupportedDistanceError: If the value names no known family.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            name = _LEGACY_NAMES.get(name, name)
            for family in cls:
                if family.value == name:
                    return family
        raise UnsupportedDistanceError(f"Given distance family not supported: {value!r}")


_LEGACY_NAMES = {"euklid": "euclidean", "manhatten": "manhattan"}


def _values(vector: VectorLike) -> np.ndarray:
    if isinstance(vector, LabeledVector):
        return vector.values
    return np.asarray(vector)


class DistanceKernel:
    """
    Weighted distance between a bound candidate and queried vectors.

    The kernel keeps a reference to the candidate, never a copy, so the
    candidate must stay alive (and unmodified) while it is bound. Scratch
    buffers are allocated on bind and reused by every ``compute`` call.
    """

    def __init__(self, family: Any = DistanceFamily.EUCLIDEAN, dtype: Any = np.float32,
                 weights: Optional[Sequence[float]] = None):
        """
        Args:
            family: Distance family (enum member or name).
            dtype: Scalar family, ``np.float32`` or ``np.float64``.
            weights: Optional per-dimension multipliers.
        """
        scalar = np.dtype(dtype).type
        if scalar not in (np.float32, np.float64):
            raise UnsupportedDistanceError(f"Unsupported scalar type {dtype!r}")
        self.dtype = scalar

        self.candidate: Optional[VectorLike] = None
        self.dim = 0
        self.weights: Optional[np.ndarray] = None
        self._candidate_values: Optional[np.ndarray] = None
        self._weighted_candidate: Optional[np.ndarray] = None
        self._scaled: Optional[np.ndarray] = None
        self._delta: Optional[np.ndarray] = None

        self.set_family(family)
        self.set_weights(weights)

    def set_family(self, family: Any) -> None:
        """Switch the active distance family."""
        self.family = DistanceFamily.parse(family)
        if self.family is DistanceFamily.EUCLIDEAN:
            self._reduce = self._squared_sum
        else:
            self._reduce = self._absolute_sum

    def set_weights(self, weights: Optional[Sequence[float]]) -> None:
        """Install per-dimension weights; ``None`` means unweighted."""
        if weights is None:
            self.weights = None
        else:
            self.weights = np.asarray(weights, dtype=self.dtype).reshape(-1)
        if self._candidate_values is not None:
            self._prepare_candidate()

    @contextmanager
    def configured(self, family: Any, weights: Optional[Sequence[float]]):
        """
        Temporarily switch family and weights.

        The previous family and weights are restored on exit and the
        candidate is unbound, so the kernel leaves the block as it entered.
        """
        previous_family, previous_weights = self.family, self.weights
        self.unbind()
        try:
            self.set_family(family)
            self.set_weights(weights)
            yield self
        finally:
            self.unbind()
            self.set_family(previous_family)
            self.weights = previous_weights

    def unbind(self) -> None:
        """Drop the reference to the bound candidate."""
        self.candidate = None
        self._candidate_values = None
        self._weighted_candidate = None

    def bind_candidate(self, candidate: VectorLike) -> None:
        """Bind the vector all following distances are measured against."""
        self.candidate = candidate
        self._candidate_values = _values(candidate)
        self.dim = self._candidate_values.shape[0]
        self._prepare_candidate()

    def _prepare_candidate(self) -> None:
        if self.weights is not None and self.weights.shape[0] != self.dim:
            raise DimensionMismatchError(
                f"Weights have {self.weights.shape[0]} dimensions, candidate has {self.dim}"
            )
        if self.weights is None:
            self._weighted_candidate = self._candidate_values.astype(self.dtype, copy=False)
        else:
            self._weighted_candidate = self._candidate_values * self.weights
        if self._delta is None or self._delta.shape[0] != self.dim:
            self._scaled = np.empty(self.dim, dtype=self.dtype)
            self._delta = np.empty(self.dim, dtype=self.dtype)

    def compute(self, x: VectorLike) -> np.float32:
        """
        Distance between the bound candidate and ``x``.

        Neither the candidate nor ``x`` is modified.

        Returns:
            Non-negative distance as single-precision scalar.

        Raises:
            RuntimeError: If no candidate is bound.
            DimensionMismatchError: If ``x`` has another dimension.
        """
        if self._weighted_candidate is None:
            raise RuntimeError("No candidate bound. Call bind_candidate() first.")
        values = _values(x)
        if values.shape[0] != self.dim:
            raise DimensionMismatchError(
                f"Vector has {values.shape[0]} dimensions, candidate has {self.dim}"
            )

        if self.weights is None:
            np.subtract(values, self._weighted_candidate, out=self._delta)
        else:
            np.multiply(values, self.weights, out=self._scaled)
            np.subtract(self._scaled, self._weighted_candidate, out=self._delta)
        return np.float32(self._reduce(self._delta))

    @staticmethod
    def _squared_sum(delta: np.ndarray):
        return np.dot(delta, delta)

    @staticmethod
    def _absolute_sum(delta: np.ndarray):
        np.abs(delta, out=delta)
        return delta.sum()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(family={self.family.value}, "
            f"dtype={np.dtype(self.dtype).name}, weighted={self.weights is not None})"
        )


class EuclideanKernel(DistanceKernel):
    """Squared Euclidean distance kernel."""

    def __init__(self, dtype: Any = np.float32, weights: Optional[Sequence[float]] = None):
        super().__init__(DistanceFamily.EUCLIDEAN, dtype=dtype, weights=weights)


class ManhattanKernel(DistanceKernel):
    """Manhattan (sum of absolute differences) distance kernel."""

    def __init__(self, dtype: Any = np.float32, weights: Optional[Sequence[float]] = None):
        super().__init__(DistanceFamily.MANHATTAN, dtype=dtype, weights=weights)


def make_kernel(family: Any = DistanceFamily.EUCLIDEAN, dtype: Any = np.float32,
                weights: Optional[Sequence[float]] = None) -> DistanceKernel:
    """Build the preset kernel for a family name or enum member."""
    family = DistanceFamily.parse(family)
    if family is DistanceFamily.MANHATTAN:
        return ManhattanKernel(dtype=dtype, weights=weights)
    return EuclideanKernel(dtype=dtype, weights=weights)
