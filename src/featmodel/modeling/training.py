"""
Model training.

Trains a classifier from the cached instance sets of a model configuration
and packages it with its schema, context and evaluation as a ModelArtifact.
"""

import time
from collections.abc import Sequence
from typing import Any

from featmodel.config.model import ModelConfig, SetType
from featmodel.config.scope import resolve_config
from featmodel.evaluation.metrics import ClassificationMetrics
from featmodel.modeling.artifact import ModelArtifact
from featmodel.modeling.cache import cross_fold_instances, train_test_instances
from featmodel.modeling.engine import ClassifierEngine, SklearnEngine
from featmodel.modeling.features import FeatureMetadata
from featmodel.modeling.instances import InstanceSet
from featmodel.utils.logging import get_logger

log = get_logger(__name__)


def _engine_for(
    config: ModelConfig,
    engine: ClassifierEngine | None,
    classifier: str | None,
) -> ClassifierEngine:
    if engine is not None:
        return engine
    return SklearnEngine.from_config(config.settings.engine, classifier)


def _select(instances: InstanceSet, features: Sequence[str] | None) -> InstanceSet:
    if features is None:
        return instances
    return instances.select(features)


def create_context(config: ModelConfig | None = None) -> Any:
    """Compute the training context, or None if the model has no context."""
    config = resolve_config(config)
    if config.context_fn is None:
        return None
    log.info("Creating training context")
    return config.context_fn()


def train_model(
    config: ModelConfig | None = None,
    *,
    features: Sequence[str] | None = None,
    classifier: str | None = None,
    train_on: SetType = SetType.TRAIN,
    engine: ClassifierEngine | None = None,
) -> ModelArtifact:
    """
    Train a model from the configuration's train/test instances.

    Args:
        config: Model configuration (defaults to the active one).
        features: Subset of feature attributes to train on (default: all).
        classifier: Registered classifier name (default: from settings).
        train_on: ``train`` fits on the training set and evaluates on the
            test set; ``train-test`` fits on both and evaluates with cross
            validation.
        engine: Engine to use instead of the scikit-learn default.

    Returns:
        The trained ModelArtifact.
    """
    config = resolve_config(config)
    train_on = SetType(train_on)
    engine = _engine_for(config, engine, classifier)
    instances = train_test_instances(config)
    context = create_context(config)

    start = time.perf_counter()
    if train_on == SetType.TRAIN:
        train = _select(instances.train, features)
        trained = engine.train(train)
        test = _select(instances.test, features)
        evaluation = engine.evaluate(trained, test) if len(test) else None
    elif train_on == SetType.TRAIN_TEST:
        train = _select(instances.train_test, features)
        trained = engine.train(train)
        evaluation = engine.cross_validate(train, config.settings.engine.cv_folds)
    else:
        msg = f"Can't train on the {train_on.value} set"
        raise ValueError(msg)

    artifact = ModelArtifact(
        name=config.name,
        classifier=trained,
        classifier_name=engine.classifier,
        attributes=[a.name for a in train.feature_attributes],
        classify_attrib=str(train.class_attribute),
        feature_metadata=FeatureMetadata(
            feature_metas={a.name: a.type for a in train.feature_attributes},
            class_type=train.class_labels,
        ),
        context=context,
        evaluation=evaluation,
    )
    log.info(
        "Training complete",
        classifier=engine.classifier,
        n_attributes=len(artifact.attributes),
        training_time_s=f"{time.perf_counter() - start:.2f}",
    )
    return artifact


def cross_validate_model(
    config: ModelConfig | None = None,
    *,
    features: Sequence[str] | None = None,
    classifier: str | None = None,
    folds: int | None = None,
    engine: ClassifierEngine | None = None,
) -> ClassificationMetrics:
    """
    Evaluate a classifier with k-fold cross validation.

    Uses the configuration's cross fold instances.

    Args:
        config: Model configuration (defaults to the active one).
        features: Subset of feature attributes (default: all).
        classifier: Registered classifier name (default: from settings).
        folds: Number of folds (default: from settings).
        engine: Engine to use instead of the scikit-learn default.
    """
    config = resolve_config(config)
    engine = _engine_for(config, engine, classifier)
    instances = _select(cross_fold_instances(config), features)
    return engine.cross_validate(instances, folds or config.settings.engine.cv_folds)
