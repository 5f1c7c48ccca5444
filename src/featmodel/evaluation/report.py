"""
Model reports.

Writes the human readable model dump, prediction tables and confusion
matrices to the analysis directory, and displays predictions in the
terminal.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import pandas as pd
from rich.console import Console
from rich.table import Table

from featmodel.config.scope import current_config
from featmodel.config.settings import RuntimeSettings
from featmodel.modeling.artifact import ModelArtifact, PrimedModel
from featmodel.modeling.persistence import (
    confusion_matrix_file,
    model_info_file,
    predictions_file,
)
from featmodel.utils.logging import get_logger

if TYPE_CHECKING:
    from featmodel.evaluation.metrics import ClassificationMetrics
    from featmodel.modeling.execution import PredictionTable

log = get_logger(__name__)

METRIC_KEYS = (
    "name",
    "create_time",
    "instances_total",
    "instances_correct",
    "instances_incorrect",
    "accuracy",
    "wprecision",
    "wrecall",
    "wfmeasure",
)


def _artifact(model: ModelArtifact | PrimedModel) -> ModelArtifact:
    return model.artifact if isinstance(model, PrimedModel) else model


def format_confusion_matrix(metrics: "ClassificationMetrics") -> str:
    """Render a confusion matrix as text, one row per actual label."""
    frame = pd.DataFrame(
        [list(row) for row in metrics.confusion_matrix],
        index=[f"{label} (actual)" for label in metrics.labels],
        columns=list(metrics.labels),
    )
    return frame.to_string()


def print_model_info(
    model: ModelArtifact | PrimedModel,
    *,
    metrics: bool = True,
    attributes: bool = True,
    results: bool = True,
    features: bool = False,
    classifier: bool = False,
    context: bool = False,
    file: TextIO | None = None,
) -> None:
    """
    Print information about a (usually persisted) model.

    Args:
        model: Model artifact or primed model.
        metrics: Name, creation time and performance summary.
        attributes: Class attribute and feature attributes.
        results: Confusion matrix of the evaluation.
        features: Feature types.
        classifier: The classifier itself.
        context: The training context.
        file: Output stream (default: stdout).
    """
    artifact = _artifact(model)
    out = file if file is not None else sys.stdout

    def emit(line: Any = "") -> None:
        print(line, file=out)

    if metrics:
        info = artifact.metrics()
        for key in METRIC_KEYS:
            emit(f"{key}: {info.get(key)}")
    if attributes:
        emit(f"class: {artifact.classify_attrib}")
        emit(f"attributes: {', '.join(artifact.attributes)}")
    if results and artifact.evaluation is not None:
        emit("confusion matrix:")
        emit(format_confusion_matrix(artifact.evaluation))
    if features:
        emit("features:")
        for key, ftype in artifact.feature_metadata.feature_metas.items():
            emit(f"  {key}: {ftype}")
        emit(f"  class labels: {', '.join(artifact.feature_metadata.class_type)}")
    if classifier:
        emit("classifier:")
        emit(artifact.classifier)
    if context:
        emit("context:")
        emit(artifact.context)


def dump_model_info(
    model: ModelArtifact | PrimedModel,
    output_file: Path | None = None,
    **sections: bool,
) -> Path:
    """
    Write ``print_model_info`` output to a file.

    Args:
        model: Model artifact or primed model.
        output_file: Output path (default: ``<analysis_dir>/<name>-model.txt``).
        **sections: Section toggles passed to ``print_model_info``.

    Returns:
        Path written.
    """
    if output_file is None:
        output_file = model_info_file(_artifact(model).name, _settings(model))
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with output_file.open("w", encoding="utf-8") as writer:
        print_model_info(model, file=writer, **sections)
    log.info("Wrote model dump", path=str(output_file))
    return output_file


def _settings(model: ModelArtifact | PrimedModel) -> RuntimeSettings:
    if isinstance(model, PrimedModel):
        return model.config.settings
    return current_config().settings


def display_predictions(
    predictions: "PredictionTable",
    console: Console | None = None,
) -> None:
    """Display predictions as a table."""
    console = console or Console()
    table = Table(title=f"Predictions: {predictions.model.name}")
    for column in predictions.columns:
        style = "cyan" if column == "pred-label" else None
        table.add_column(column, style=style)
    for row in predictions.data:
        cells = []
        for column in predictions.columns:
            value = row.get(column)
            if column == "correct?":
                cells.append("[green]yes[/green]" if value else "[red]no[/red]")
            elif isinstance(value, float):
                cells.append(f"{value:.3f}")
            else:
                cells.append("" if value is None else str(value))
        table.add_row(*cells)
    console.print(table)
    console.print(f"[dim]Accuracy: {predictions.accuracy:.3f}[/dim]")


def write_predictions(
    predictions: "PredictionTable",
    output_file: Path | None = None,
) -> Path:
    """
    Write predictions to a CSV file.

    The header row holds the prediction columns; each following row is one
    prediction.

    Returns:
        Path written (default: ``<analysis_dir>/<name>-predictions.csv``).
    """
    model = predictions.model
    if output_file is None:
        output_file = predictions_file(model.name, model.config.settings)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    predictions.to_frame().to_csv(output_file, index=False, encoding="utf-8")
    log.info("Wrote predictions", path=str(output_file), n_rows=len(predictions.data))
    return output_file


def confusion_matrix_frame(metrics: "ClassificationMetrics") -> pd.DataFrame:
    """
    Confusion matrix laid out for export.

    Columns are the predicted labels followed by ``predicts``, which holds
    the actual label of each row.
    """
    frame = pd.DataFrame(
        [list(row) for row in metrics.confusion_matrix],
        columns=list(metrics.labels),
    )
    frame["predicts"] = list(metrics.labels)
    return frame


def write_confusion_matrix(
    model: ModelArtifact | PrimedModel,
    output_file: Path | None = None,
) -> Path:
    """
    Write the confusion matrix of a model's evaluation to a CSV file.

    Returns:
        Path written (default: ``<analysis_dir>/<name>-confusion-matrix.csv``).

    Raises:
        ValueError: If the model has not been evaluated.
    """
    artifact = _artifact(model)
    if artifact.evaluation is None:
        msg = f"Model '{artifact.name}' has no evaluation results"
        raise ValueError(msg)
    if output_file is None:
        output_file = confusion_matrix_file(artifact.name, _settings(model))
    output_file.parent.mkdir(parents=True, exist_ok=True)
    confusion_matrix_frame(artifact.evaluation).to_csv(
        output_file, index=False, encoding="utf-8"
    )
    log.info("Wrote confusion matrix", path=str(output_file))
    return output_file
