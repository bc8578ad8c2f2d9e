"""
k-Nearest-Neighbor quality classifier.
"""

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.data.dataset import LabeledVector, QualityDataset
from knn_quality.exceptions import (
    DimensionMismatchError,
    EmptyInputError,
    InsufficientTrainingDataError,
    KnnError,
    NoPredictionsRecordedError,
    UnsupportedDistanceError,
)
from knn_quality.models.distance import DistanceFamily, DistanceKernel, EuclideanKernel, ManhattanKernel
from knn_quality.models.knn import KNNClassifier, predict
from knn_quality.models.neighbors import Neighbor, top_k_neighbors
from knn_quality.training.cross_validation import cross_validate, stratified_blocks

__version__ = "0.1.0"

__all__ = [
    'ConfusionMatrix',
    'LabeledVector',
    'QualityDataset',
    'DistanceFamily',
    'DistanceKernel',
    'EuclideanKernel',
    'ManhattanKernel',
    'Neighbor',
    'top_k_neighbors',
    'KNNClassifier',
    'predict',
    'cross_validate',
    'stratified_blocks',
    'KnnError',
    'DimensionMismatchError',
    'UnsupportedDistanceError',
    'InsufficientTrainingDataError',
    'NoPredictionsRecordedError',
    'EmptyInputError',
]
