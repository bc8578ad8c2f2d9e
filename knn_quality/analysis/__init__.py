"""
Evaluation of prediction outcomes
"""

from knn_quality.analysis.confusion_matrix import ConfusionMatrix

__all__ = ['ConfusionMatrix']
