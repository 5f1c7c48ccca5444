"""
Executing trained models.

Reads persisted models (thawing their training context), primes them into
a servable form, and classifies new inputs with the same instance schema
the classifier was trained on.

Typical use::

    with with_config(sentiment_config):
        model = prime_model(read_model())
    result = classify(model, "what a great day")
"""

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from featmodel.config.model import ModelConfig, ReturnKey, SetType
from featmodel.config.scope import resolve_config, with_config
from featmodel.errors import (
    ModelError,
    ModelNotPrimedError,
    NoFeatureGeneratorError,
    SchemaMismatchError,
)
from featmodel.modeling.artifact import ModelArtifact, PrimedModel
from featmodel.modeling.engine import ClassifierEngine, SklearnEngine
from featmodel.modeling.features import is_unset, nominal_text
from featmodel.modeling.instances import (
    clone_instances,
    create_model_instances,
    model_class_meta,
    model_feature_types,
)
from featmodel.modeling.persistence import load_model_file, model_file
from featmodel.utils.logging import get_logger

log = get_logger(__name__)

PRED_KEYS = ("pred-label", "correct-label", "correct?", "confidence")
NO_CLASS_LABEL = "<no class label>"


@dataclass
class PredictionTable:
    """
    Predictions over a set of feature maps.

    Attributes:
        columns: Prediction keys followed by the displayed feature keys.
        model: Model that made the predictions.
        data: One row per prediction, keyed by ``columns``.
    """

    columns: list[str]
    model: PrimedModel
    data: list[dict[str, Any]]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.data, columns=self.columns)

    @property
    def accuracy(self) -> float:
        if not self.data:
            return 0.0
        return sum(bool(row["correct?"]) for row in self.data) / len(self.data)


def _require_primed(model: Any) -> PrimedModel:
    if not isinstance(model, PrimedModel):
        msg = (
            f"Expected a primed model, got {type(model).__name__}; "
            "call prime_model() first"
        )
        raise ModelNotPrimedError(msg)
    return model


def _feature_args(inputs: Sequence[Any], context: Any) -> tuple[Any, ...]:
    """Arguments for ``create_features_fn``: the inputs and the context, if any."""
    return (*inputs, context) if context is not None else tuple(inputs)


def read_model(
    file: Path | str | None = None,
    *,
    fail_if_not_exists: bool = True,
    config: ModelConfig | None = None,
) -> ModelArtifact:
    """
    Read a persisted model.

    When the configuration has a ``set_context_fn`` and the model carries a
    context, the context is replaced with the thawed one.

    Args:
        file: Model file (default: derived from the configuration's name).
        fail_if_not_exists: Raise when the file is missing instead of
            returning a placeholder artifact.
        config: Model configuration (defaults to the active one).

    Raises:
        ModelNotFoundError: If the file is missing and ``fail_if_not_exists``.
    """
    config = resolve_config(config)
    path = Path(file) if file is not None else model_file(config.name, config.settings)
    artifact = load_model_file(path, config.name, fail_if_not_exists=fail_if_not_exists)
    if config.set_context_fn is not None and artifact.context is not None:
        log.debug("Thawing model context", name=artifact.name)
        artifact = artifact.with_context(config.set_context_fn(artifact.context))
    return artifact


def prime_model(
    artifact: ModelArtifact,
    *,
    config: ModelConfig | None = None,
    engine: ClassifierEngine | None = None,
) -> PrimedModel:
    """
    Prepare a trained or read model for classification.

    Builds a single row of unset values over the model's attributes with its
    context, keeping only the attributes the classifier was trained on.

    Args:
        artifact: Model from training or ``read_model``.
        config: Model configuration (defaults to the active one).
        engine: Engine for the model's classifier (default: scikit-learn
            engine for the model's classifier name).

    Raises:
        ModelError: If the artifact is a placeholder.
        SchemaMismatchError: If the configuration's feature schema no longer
            matches the one the model was trained with.
    """
    config = resolve_config(config)
    if artifact.is_placeholder:
        msg = f"Model '{artifact.name}' has no trained classifier"
        raise ModelError(msg)

    log.info("Priming model", name=artifact.name, n_attributes=len(artifact.attributes))
    unset_row = dict.fromkeys(artifact.attributes)
    unfiltered = create_model_instances(
        [unset_row], artifact.context, config=config, missing_values_ok=True
    )
    instances = unfiltered.select(
        artifact.attributes, class_attribute=artifact.classify_attrib
    )

    persisted = artifact.feature_metadata.feature_metas
    for attribute in instances.feature_attributes:
        if persisted and persisted.get(attribute.name) != attribute.type:
            msg = (
                f"Attribute '{attribute.name}' is {attribute.type} but the model "
                f"was trained with {persisted.get(attribute.name)}"
            )
            raise SchemaMismatchError(msg)

    if engine is None:
        engine = SklearnEngine.from_config(
            config.settings.engine, artifact.classifier_name or None
        )
    return PrimedModel(
        artifact=artifact, instances=instances, config=config, engine=engine
    )


def classify_features(
    model: PrimedModel,
    features: Mapping[str, Any],
    *,
    return_keys: Collection[ReturnKey] | None = None,
    transform: bool = True,
) -> Any:
    """
    Classify one feature map.

    Args:
        model: Primed model.
        features: Feature map; missing features are left unset.
        return_keys: Keys to return (default: the configuration's).
        transform: Apply the configuration's ``classifications_map_fn``.

    Returns:
        Result map with the requested keys (after the optional transform).

    Raises:
        ModelNotPrimedError: If ``model`` is not primed.
        FeatureCoercionError: If a feature value doesn't fit its attribute.
    """
    model = _require_primed(model)
    log.debug("Classifying features", features=features)
    with with_config(model.config) as config:
        keys = (
            frozenset(ReturnKey(k) for k in return_keys)
            if return_keys is not None
            else config.model_return_keys
        )
        # the template is shared by concurrent callers
        instances = clone_instances(model.instances)
        instances.set_values(0, features)
        result = model.engine.classify(model.classifier, instances, keys)[0]
        if ReturnKey.FEATURES in keys:
            result[ReturnKey.FEATURES.value] = dict(features)
        if transform and config.classifications_map_fn is not None:
            return config.classifications_map_fn(result)
        return result


def classify(model: PrimedModel, *inputs: Any) -> Any:
    """
    Classify a single input.

    ``inputs`` are passed to the configuration's ``create_features_fn``,
    followed by the model's context when it has one.

    Raises:
        ModelNotPrimedError: If ``model`` is not primed.
        NoFeatureGeneratorError: If there is no ``create_features_fn``.
    """
    model = _require_primed(model)
    log.debug("Classifying", n_inputs=len(inputs))
    with with_config(model.config) as config:
        if config.create_features_fn is None:
            raise NoFeatureGeneratorError(config.name)
        args = _feature_args(inputs, model.context)
        log.debug("Creating features", n_args=len(args))
        features = config.create_features_fn(*args)
        return classify_features(model, features)


def predict(
    model: PrimedModel,
    *,
    set_type: SetType = SetType.TEST,
    feature_sets: Sequence[Any] | None = None,
) -> PredictionTable:
    """
    Predict labels for a data set and compare them with the gold labels.

    Args:
        model: Primed model.
        set_type: Data set to draw feature maps from.
        feature_sets: Raw inputs to create feature maps from with
            ``create_features_fn`` instead of using ``set_type``.

    Returns:
        PredictionTable with ``pred-label``, ``correct-label``, ``correct?``
        and ``confidence`` followed by the displayed features.
    """
    model = _require_primed(model)
    set_type = SetType(set_type)
    with with_config(model.config) as config:
        display_types = model_feature_types(model.context, config=config, display=True)
        class_key, _ = model_class_meta(config)
        columns = [*PRED_KEYS, *(k for k in display_types if k not in PRED_KEYS)]

        if feature_sets is not None:
            if config.create_features_fn is None:
                raise NoFeatureGeneratorError(config.name)
            rows = [
                config.create_features_fn(*_feature_args([raw], model.context))
                for raw in feature_sets
            ]
        else:
            rows = list(config.create_feature_sets_fn(set_type=set_type))

        log.info("Predicting", n_rows=len(rows), set_type=set_type.value)
        data = []
        for features in rows:
            result = classify_features(
                model,
                features,
                return_keys=(ReturnKey.LABEL, ReturnKey.DISTRIBUTIONS),
                transform=False,
            )
            label = result[ReturnKey.LABEL.value]
            gold = features.get(class_key)
            correct_label = NO_CLASS_LABEL if is_unset(gold) else nominal_text(gold)
            row = {
                **features,
                "pred-label": label,
                "correct-label": correct_label,
                "correct?": correct_label == label,
                "confidence": result[ReturnKey.DISTRIBUTIONS.value].get(label),
            }
            data.append({key: row.get(key) for key in columns})

    table = PredictionTable(columns=columns, model=model, data=data)
    log.info("Predictions complete", n_rows=len(data), accuracy=f"{table.accuracy:.4f}")
    return table
