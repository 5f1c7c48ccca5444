"""
Evaluation metrics for classifiers.

Provides the summary statistics and confusion matrix reported for a
trained model.
"""

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
from sklearn.metrics import confusion_matrix, precision_recall_fscore_support

from featmodel.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ClassificationMetrics:
    """
    Classification performance on a set of instances.

    Attributes:
        instances_total: Number of evaluated instances.
        instances_correct: Correctly classified instances.
        instances_incorrect: Misclassified instances.
        accuracy: Fraction classified correctly.
        wprecision: Support-weighted precision.
        wrecall: Support-weighted recall.
        wfmeasure: Support-weighted F1.
        labels: Class labels, in confusion matrix order.
        confusion_matrix: Rows are actual labels, columns predicted labels.
    """

    instances_total: int
    instances_correct: int
    instances_incorrect: int
    accuracy: float
    wprecision: float
    wrecall: float
    wfmeasure: float
    labels: tuple[str, ...]
    confusion_matrix: tuple[tuple[int, ...], ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def summary(self) -> dict[str, float | int]:
        """Scalar metrics only."""
        return {
            "instances_total": self.instances_total,
            "instances_correct": self.instances_correct,
            "instances_incorrect": self.instances_incorrect,
            "accuracy": self.accuracy,
            "wprecision": self.wprecision,
            "wrecall": self.wrecall,
            "wfmeasure": self.wfmeasure,
        }


def confusion_matrix_rows(
    y_true: Sequence[Any],
    y_pred: Sequence[Any],
    labels: Sequence[str],
) -> list[list[int]]:
    """
    Count predictions per actual label.

    Args:
        y_true: Gold labels.
        y_pred: Predicted labels.
        labels: Label order for rows (actual) and columns (predicted).

    Returns:
        One row of integer counts per actual label.
    """
    matrix = confusion_matrix(
        np.asarray(y_true, dtype=object),
        np.asarray(y_pred, dtype=object),
        labels=list(labels),
    )
    return [[int(count) for count in row] for row in matrix]


def compute_classification_metrics(
    y_true: Sequence[Any],
    y_pred: Sequence[Any],
    labels: Sequence[str],
) -> ClassificationMetrics:
    """
    Compute classification metrics.

    Args:
        y_true: Gold labels.
        y_pred: Predicted labels.
        labels: All class labels.

    Returns:
        ClassificationMetrics.
    """
    y_true_arr = np.asarray(y_true, dtype=object)
    y_pred_arr = np.asarray(y_pred, dtype=object)
    total = len(y_true_arr)
    correct = int(np.sum(y_true_arr == y_pred_arr)) if total else 0

    if total:
        precision, recall, fmeasure, _ = precision_recall_fscore_support(
            y_true_arr,
            y_pred_arr,
            labels=list(labels),
            average="weighted",
            zero_division=0,
        )
    else:
        precision = recall = fmeasure = 0.0

    matrix = confusion_matrix_rows(y_true_arr, y_pred_arr, labels) if total else [
        [0] * len(labels) for _ in labels
    ]

    metrics = ClassificationMetrics(
        instances_total=total,
        instances_correct=correct,
        instances_incorrect=total - correct,
        accuracy=correct / total if total else 0.0,
        wprecision=float(precision),
        wrecall=float(recall),
        wfmeasure=float(fmeasure),
        labels=tuple(labels),
        confusion_matrix=tuple(tuple(row) for row in matrix),
    )
    log.debug("Computed classification metrics", **metrics.summary())
    return metrics
