"""
Plotting utilities for prediction results.

This module provides a small helper to draw a confusion matrix
as a heatmap using matplotlib.
"""

import os
from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.utils.helpers import ensure_dir


def plot_confusion_matrix(confusion: ConfusionMatrix,
                          ax: Optional[plt.Axes] = None,
                          normalize: bool = False,
                          show: bool = False,
                          out_path: Optional[str] = None) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot a confusion matrix as an annotated heatmap.

    Args:
        confusion: Matrix to plot.
        ax: Optional matplotlib Axes to plot into. If None, a new figure is created.
        normalize: Show each row as fractions of the actual label's total.
        show: Whether to call `plt.show()` after plotting.
        out_path: If provided, save the figure to this path.

    Returns:
        (fig, ax) tuple where fig is the matplotlib Figure and ax is the Axes.
    """
    labels, counts = confusion.to_array()
    values = counts.astype(float)
    if normalize:
        row_sums = values.sum(axis=1, keepdims=True)
        values = np.divide(values, row_sums, out=np.zeros_like(values), where=row_sums > 0)

    created_fig = False
    if ax is None:
        size = max(4, 0.6 * len(labels) + 2)
        fig, ax = plt.subplots(figsize=(size, size))
        created_fig = True
    else:
        fig = ax.figure

    im = ax.imshow(values, cmap='Blues')
    fig.colorbar(im, ax=ax)

    ticks = np.arange(len(labels))
    ax.set_xticks(ticks)
    ax.set_yticks(ticks)
    ax.set_xticklabels([str(label) for label in labels])
    ax.set_yticklabels([str(label) for label in labels])
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Actual")
    title = "Confusion Matrix"
    if confusion.total:
        title += f" (accuracy {confusion.accuracy() * 100:.1f}%)"
    ax.set_title(title)

    threshold = values.max() / 2 if values.size else 0
    for i in range(len(labels)):
        for j in range(len(labels)):
            text = f"{values[i, j]:.2f}" if normalize else str(counts[i, j])
            ax.text(j, i, text, ha='center', va='center',
                    color='white' if values[i, j] > threshold else 'black')

    plt.tight_layout()

    if out_path is not None:
        ensure_dir(os.path.dirname(out_path))
        fig.savefig(out_path, dpi=150, bbox_inches='tight')

    if show and created_fig:
        plt.show()

    return fig, ax
