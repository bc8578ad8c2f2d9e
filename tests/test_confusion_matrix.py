"""Tests for the confusion matrix."""

import numpy as np
import pytest
from sklearn.metrics import confusion_matrix, precision_score, recall_score

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.exceptions import NoPredictionsRecordedError


def build(*cells):
    matrix = ConfusionMatrix()
    for actual, predicted, delta in cells:
        matrix.record(actual, predicted, delta)
        if actual == predicted:
            matrix.record_correct(delta)
        else:
            matrix.record_wrong(delta)
    return matrix


def cell_sum(matrix):
    return sum(sum(row.values()) for row in matrix.matrix.values())


def test_merge_adds_cells_and_totals():
    a = build(("X", "X", 2), ("X", "Y", 1))
    b = build(("Y", "Y", 3), ("X", "Y", 4))
    a.prediction_time_ms = 5.0
    b.prediction_time_ms = 7.5

    a.merge(b)

    assert a.as_dict() == {"X": {"X": 2, "Y": 5}, "Y": {"Y": 3}}
    assert a.correct == 5
    assert a.wrong == 5
    assert a.prediction_time_ms == 12.5


def test_merge_order_does_not_matter():
    cells_a = [("X", "X", 2), ("X", "Y", 1)]
    cells_b = [("Y", "Y", 3), ("X", "Y", 4)]
    cells_c = [("Z", "X", 1), ("Y", "Y", 2)]

    left = build(*cells_a).merge(build(*cells_b)).merge(build(*cells_c))
    right = build(*cells_a).merge(build(*cells_c)).merge(build(*cells_b))

    assert left.as_dict() == right.as_dict()
    assert (left.correct, left.wrong) == (right.correct, right.wrong)


def test_merge_none():
    with pytest.raises(TypeError):
        ConfusionMatrix().merge(None)


def test_merge_does_not_alias_other():
    a = ConfusionMatrix()
    b = build(("X", "X", 1))
    a.merge(b)
    a.record("X", "X")
    assert b.count("X", "X") == 1


def test_cell_sum_matches_totals():
    rng = np.random.default_rng(3)
    matrix = ConfusionMatrix()
    for actual, predicted in rng.integers(0, 4, size=(200, 2)):
        matrix.record_prediction(int(actual), int(predicted))
    assert cell_sum(matrix) == matrix.correct + matrix.wrong == 200
    assert 0.0 <= matrix.accuracy() <= 1.0


def test_record_prediction_reports_hit():
    matrix = ConfusionMatrix()
    assert matrix.record_prediction("a", "a") is True
    assert matrix.record_prediction("a", "b") is False
    assert matrix.accuracy() == 0.5


def test_accuracy_without_predictions():
    with pytest.raises(NoPredictionsRecordedError):
        ConfusionMatrix().accuracy()


def test_render_includes_predicted_only_labels():
    matrix = build(("X", "X", 2), ("X", "Y", 1))
    table = matrix.render()
    assert table[0][1:] == ["X", "Y"]
    assert [row[0] for row in table[1:]] == ["X", "Y"]
    assert table[1][1:] == [2, 1]
    assert table[2][1:] == [0, 0]


def test_matches_sklearn():
    actual = ["a", "b", "c", "a", "b", "c", "a", "a", "c"]
    predicted = ["a", "c", "c", "a", "b", "a", "b", "a", "c"]
    matrix = ConfusionMatrix()
    for t, p in zip(actual, predicted):
        matrix.record_prediction(t, p)

    labels, counts = matrix.to_array()
    np.testing.assert_array_equal(counts, confusion_matrix(actual, predicted, labels=labels))
    for label in labels:
        assert matrix.precision(label) == pytest.approx(
            precision_score(actual, predicted, labels=[label], average='micro'))
        assert matrix.recall(label) == pytest.approx(
            recall_score(actual, predicted, labels=[label], average='micro'))


def test_precision_recall_undefined():
    matrix = build(("X", "Y", 1))
    assert matrix.precision("X") == 0.0
    assert matrix.recall("Y") == 0.0


def test_print_summary(capsys):
    matrix = build(("X", "X", 3), ("X", "Y", 1))
    matrix.print_summary()
    out = capsys.readouterr().out
    assert "Correct Predictions: 3" in out
    assert "Wrong Predictions: 1" in out
    assert "Accuracy: 0.7500" in out


def test_summary_of_empty_matrix():
    assert ConfusionMatrix().summary()["accuracy"] is None
