"""
Model persistence (save/load) and file naming.

Full artifacts are stored with joblib in the model directory. The analysis
directory receives the classifier on its own and the report files, all
named after the model.
"""

from pathlib import Path
from typing import Any

import joblib

from featmodel.config.model import ModelConfig
from featmodel.config.scope import resolve_config
from featmodel.config.settings import RuntimeSettings
from featmodel.errors import ModelNotFoundError
from featmodel.modeling.artifact import ModelArtifact
from featmodel.utils.logging import get_logger

log = get_logger(__name__)


def model_file(name: str, settings: RuntimeSettings) -> Path:
    """Path of the persisted artifact of model ``name``."""
    return settings.paths.model_dir / f"{name}.model.joblib"


def analysis_file(name: str, suffix: str, settings: RuntimeSettings) -> Path:
    """Path of an analysis output file, e.g. ``<name>-predictions.csv``."""
    return settings.paths.analysis_dir / f"{name}-{suffix}"


def classifier_file(name: str, settings: RuntimeSettings) -> Path:
    return analysis_file(name, "classifier.dat", settings)


def model_info_file(name: str, settings: RuntimeSettings) -> Path:
    return analysis_file(name, "model.txt", settings)


def predictions_file(name: str, settings: RuntimeSettings) -> Path:
    return analysis_file(name, "predictions.csv", settings)


def confusion_matrix_file(name: str, settings: RuntimeSettings) -> Path:
    return analysis_file(name, "confusion-matrix.csv", settings)


def model_exists(config: ModelConfig | None = None) -> bool:
    """Whether the model of the configuration has been persisted."""
    config = resolve_config(config)
    return model_file(config.name, config.settings).exists()


def write_model(
    artifact: ModelArtifact,
    file: Path | None = None,
    *,
    config: ModelConfig | None = None,
) -> Path:
    """
    Save a model artifact to disk.

    Args:
        artifact: Trained model.
        file: Output path (default: from the model directory setting).
        config: Model configuration (defaults to the active one); only
            consulted when ``file`` is not given.

    Returns:
        Path written.
    """
    if file is None:
        file = model_file(artifact.name, resolve_config(config).settings)
    file = Path(file)
    file.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(artifact, file)
    log.info("Saved model", name=artifact.name, path=str(file))
    return file


def load_model_file(
    path: Path, name: str, *, fail_if_not_exists: bool = True
) -> ModelArtifact:
    """
    Load a model artifact from disk.

    Args:
        path: Artifact file.
        name: Model name, used for the placeholder artifact.
        fail_if_not_exists: Raise when the file is missing instead of
            returning a placeholder artifact.

    Raises:
        ModelNotFoundError: If the file is missing and ``fail_if_not_exists``.
    """
    path = Path(path)
    if not path.exists():
        if fail_if_not_exists:
            raise ModelNotFoundError(path)
        log.warning("Model file not found, using placeholder", path=str(path))
        return ModelArtifact.placeholder(name)

    artifact = joblib.load(path)
    if not isinstance(artifact, ModelArtifact):
        msg = f"{path} does not contain a model artifact: {type(artifact).__name__}"
        raise TypeError(msg)
    log.info("Loaded model", name=artifact.name, path=str(path))
    return artifact


def write_classifier(
    artifact: ModelArtifact,
    file: Path | None = None,
    *,
    config: ModelConfig | None = None,
) -> Path:
    """
    Save just the classifier of a model.

    Returns:
        Path written (default ``<analysis_dir>/<name>-classifier.dat``).
    """
    if file is None:
        file = classifier_file(artifact.name, resolve_config(config).settings)
    file = Path(file)
    file.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(artifact.classifier, file)
    log.info("Saved classifier", name=artifact.name, path=str(file))
    return file


def read_classifier(file: Path) -> Any:
    """Load a classifier written by ``write_classifier``."""
    classifier = joblib.load(Path(file))
    log.info("Loaded classifier", path=str(file))
    return classifier
