"""
Multiclass confusion matrix.

Counts are kept sparse as actual label -> predicted label -> count, next to
running totals of correct and wrong predictions and the elapsed prediction
time in milliseconds.
"""

from typing import Any, Dict, Hashable, List, Tuple

import numpy as np

from knn_quality.exceptions import NoPredictionsRecordedError


class ConfusionMatrix:
    """Accumulates (actual, predicted) outcomes and derives metrics."""

    def __init__(self):
        self.matrix: Dict[Hashable, Dict[Hashable, int]] = {}
        self.correct = 0
        self.wrong = 0
        self.prediction_time_ms = 0.0

    def record(self, actual: Hashable, predicted: Hashable, delta: int = 1) -> None:
        """Add ``delta`` to the cell (actual, predicted)."""
        row = self.matrix.setdefault(actual, {})
        row[predicted] = row.get(predicted, 0) + delta

    def record_correct(self, delta: int = 1) -> None:
        self.correct += delta

    def record_wrong(self, delta: int = 1) -> None:
        self.wrong += delta

    def record_prediction(self, actual: Hashable, predicted: Hashable) -> bool:
        """
        Record one prediction in both the cell and the totals.

        Returns:
            Whether the prediction was correct.
        """
        hit = actual == predicted
        if hit:
            self.record_correct()
        else:
            self.record_wrong()
        self.record(actual, predicted)
        return hit

    def merge(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        """
        Add another matrix into this one, cell by cell.

        Totals and prediction time are summed as well.

        Returns:
            self, so merges can be chained.
        """
        if other is None:
            raise TypeError("The other confusion matrix is None")

        for actual, row in other.matrix.items():
            for predicted, count in row.items():
                self.record(actual, predicted, count)
        self.correct += other.correct
        self.wrong += other.wrong
        self.prediction_time_ms += other.prediction_time_ms
        return self

    @property
    def total(self) -> int:
        return self.correct + self.wrong

    def count(self, actual: Hashable, predicted: Hashable) -> int:
        return self.matrix.get(actual, {}).get(predicted, 0)

    def labels(self) -> List[Hashable]:
        """All actual and predicted labels, in first-seen order."""
        seen: Dict[Hashable, None] = {}
        for actual, row in self.matrix.items():
            seen.setdefault(actual, None)
            for predicted in row:
                seen.setdefault(predicted, None)
        return list(seen)

    def render(self) -> List[List[Any]]:
        """
        Dense table view of the matrix.

        Row 0 lists the predicted labels, column 0 the actual labels and
        cell (i, j) holds the count. The corner cell is an empty string.
        """
        labels = self.labels()
        table: List[List[Any]] = [[""] + labels]
        for actual in labels:
            table.append([actual] + [self.count(actual, predicted) for predicted in labels])
        return table

    def to_array(self) -> Tuple[List[Hashable], np.ndarray]:
        """Return ``(labels, counts)`` with counts[i, j] = count(labels[i], labels[j])."""
        labels = self.labels()
        index = {label: i for i, label in enumerate(labels)}
        counts = np.zeros((len(labels), len(labels)), dtype=int)
        for actual, row in self.matrix.items():
            for predicted, count in row.items():
                counts[index[actual], index[predicted]] = count
        return labels, counts

    def as_dict(self) -> Dict[Hashable, Dict[Hashable, int]]:
        return {actual: dict(row) for actual, row in self.matrix.items()}

    def accuracy(self) -> float:
        """
        Fraction of correct predictions.

        Raises:
            NoPredictionsRecordedError: If nothing was predicted yet.
        """
        if self.total == 0:
            raise NoPredictionsRecordedError("No predictions recorded yet")
        return self.correct / self.total

    def precision(self, label: Hashable) -> float:
        """Share of predictions of ``label`` that were right (0.0 if never predicted)."""
        predicted = sum(row.get(label, 0) for row in self.matrix.values())
        return self.count(label, label) / predicted if predicted > 0 else 0.0

    def recall(self, label: Hashable) -> float:
        """Share of actual ``label`` items that were found (0.0 if none occurred)."""
        actual = sum(self.matrix.get(label, {}).values())
        return self.count(label, label) / actual if actual > 0 else 0.0

    def summary(self) -> Dict[str, Any]:
        return {
            "correct": self.correct,
            "wrong": self.wrong,
            "accuracy": self.accuracy() if self.total else None,
            "prediction_time_ms": self.prediction_time_ms,
            "labels": self.labels(),
        }

    def print_summary(self, title: str = "Prediction Results", show_table: bool = True) -> None:
        """Print totals, accuracy, elapsed time and the rendered table."""
        print(f"\n   {title}")
        print(f"   {'=' * 50}")
        print(f"   Correct Predictions: {self.correct}")
        print(f"   Wrong Predictions: {self.wrong}")
        if self.total:
            print(f"   Accuracy: {self.accuracy():.4f}")
        else:
            print("   Accuracy: n/a")
        print(f"   Prediction Time: {self.prediction_time_ms:.0f} ms")

        if not show_table or not self.matrix:
            return

        table = self.render()
        width = max(6, max(len(str(cell)) for row in table for cell in row) + 1)
        print(f"\n   Confusion Matrix (rows: actual, columns: predicted):")
        for row in table:
            print("   " + "".join(f"{str(cell):>{width}}" for cell in row))

        print(f"\n   {'label':>8} | {'precision':>9} | {'recall':>6}")
        print(f"   {'-' * 30}")
        for label in self.labels():
            print(f"   {str(label):>8} | {self.precision(label) * 100:8.1f}% | {self.recall(label) * 100:5.1f}%")

    def __repr__(self) -> str:
        return (
            f"ConfusionMatrix(correct={self.correct}, wrong={self.wrong}, "
            f"labels={len(self.labels())})"
        )
