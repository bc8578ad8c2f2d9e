"""
Error kinds raised by the k-NN library.

Every error also derives from the matching builtin so callers can catch
either the specific kind or the generic ``ValueError`` / ``RuntimeError``.
"""


class KnnError(Exception):
    """Base class for all k-NN errors."""


class DimensionMismatchError(KnnError, ValueError):
    """A vector's dimension differs from the bound candidate or the weights."""


class UnsupportedDistanceError(KnnError, ValueError):
    """Unknown distance family or scalar type."""


class InsufficientTrainingDataError(KnnError, ValueError):
    """Fewer training vectors than requested neighbors."""


class NoPredictionsRecordedError(KnnError, RuntimeError):
    """A derived metric was requested from an empty confusion matrix."""


class EmptyInputError(KnnError, ValueError):
    """The training, test or input data set is empty."""
