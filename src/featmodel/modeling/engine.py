"""
Classifier engine.

The model pipeline only relies on the ClassifierEngine protocol: train a
classifier on an instance set, classify the rows of an instance set, and
evaluate. SklearnEngine implements it with a scikit-learn pipeline.
"""

from collections.abc import Collection
from typing import Any, Protocol

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.model_selection import StratifiedKFold, cross_val_predict
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from featmodel.config.model import ReturnKey
from featmodel.config.settings import EngineConfig
from featmodel.evaluation.metrics import (
    ClassificationMetrics,
    compute_classification_metrics,
)
from featmodel.modeling.classifiers import get_classifier
from featmodel.modeling.instances import InstanceSet
from featmodel.modeling.schema import validate_instances
from featmodel.utils.logging import get_logger

log = get_logger(__name__)

UNSET_NOMINAL = "<unset>"


class ClassifierEngine(Protocol):
    """Training, classification and evaluation of classifiers."""

    classifier: str

    def train(self, instances: InstanceSet) -> Any: ...

    def classify(
        self,
        classifier: Any,
        instances: InstanceSet,
        return_keys: Collection[ReturnKey],
    ) -> list[dict[str, Any]]: ...

    def evaluate(
        self, classifier: Any, instances: InstanceSet
    ) -> ClassificationMetrics: ...

    def cross_validate(
        self, instances: InstanceSet, folds: int
    ) -> ClassificationMetrics: ...


def build_preprocessor(instances: InstanceSet) -> ColumnTransformer:
    """
    Build a ColumnTransformer for the feature attributes of ``instances``.

    Numeric attributes are mean imputed and standardized; nominal, boolean
    and string attributes are one-hot encoded with unset values as their
    own category.
    """
    numeric = [a.name for a in instances.feature_attributes if a.type.is_numeric]
    nominal = [a.name for a in instances.feature_attributes if not a.type.is_numeric]

    transformers: list[tuple[str, Any, list[str]]] = []
    if numeric:
        transformers.append((
            "numeric",
            Pipeline(steps=[
                ("impute", SimpleImputer(strategy="mean", keep_empty_features=True)),
                ("scale", StandardScaler()),
            ]),
            numeric,
        ))
    if nominal:
        transformers.append((
            "nominal",
            Pipeline(steps=[
                ("impute", SimpleImputer(strategy="constant", fill_value=UNSET_NOMINAL)),
                ("encode", OneHotEncoder(handle_unknown="ignore", sparse_output=False)),
            ]),
            nominal,
        ))

    log.debug(
        "Built preprocessor",
        numeric_features=numeric,
        nominal_features=nominal,
    )
    return ColumnTransformer(transformers=transformers, remainder="drop")


class SklearnEngine:
    """
    Classifier engine backed by scikit-learn.

    The trained classifier is a fitted ``Pipeline`` of preprocessor and
    classifier, which is what gets persisted with a model.
    """

    def __init__(
        self,
        classifier: str = "logistic",
        random_state: int | None = 1337,
        **params: Any,
    ) -> None:
        """
        Initialize engine.

        Args:
            classifier: Registered classifier name.
            random_state: Seed for classifiers and cross validation.
            **params: Classifier parameter overrides.
        """
        self.classifier = classifier
        self.random_state = random_state
        self.params = params

    @classmethod
    def from_config(
        cls, config: EngineConfig, classifier: str | None = None
    ) -> "SklearnEngine":
        return cls(
            classifier=classifier or config.classifier,
            random_state=config.random_state,
        )

    def build_pipeline(self, instances: InstanceSet) -> Pipeline:
        """Build an unfitted pipeline for the schema of ``instances``."""
        return Pipeline(steps=[
            ("preprocessor", build_preprocessor(instances)),
            (
                "model",
                get_classifier(self.classifier, self.random_state, **self.params),
            ),
        ])

    def train(self, instances: InstanceSet) -> BaseEstimator:
        """
        Fit a classifier on ``instances``.

        Raises:
            SchemaMismatchError: If the instance frame doesn't match its
                attributes.
        """
        X = validate_instances(instances).features_frame()
        y = instances.class_values().astype(str)
        log.info(
            "Training classifier",
            classifier=self.classifier,
            n_samples=len(X),
            n_features=X.shape[1],
        )
        pipeline = self.build_pipeline(instances)
        pipeline.fit(X, y)
        return pipeline

    def classify(
        self,
        classifier: Any,
        instances: InstanceSet,
        return_keys: Collection[ReturnKey],
    ) -> list[dict[str, Any]]:
        """
        Classify every row of ``instances``.

        Returns:
            One result per row with the requested keys: ``label``,
            ``distributions`` (label to probability over all class labels)
            and ``features`` (the row's attribute values).
        """
        X = instances.features_frame()
        probabilities = classifier.predict_proba(X)
        classes = [str(c) for c in classifier.classes_]
        labels = instances.class_labels or tuple(classes)

        results = []
        for row, probs in enumerate(probabilities):
            result: dict[str, Any] = {}
            if ReturnKey.LABEL in return_keys:
                result[ReturnKey.LABEL.value] = classes[int(np.argmax(probs))]
            if ReturnKey.DISTRIBUTIONS in return_keys:
                distributions = dict.fromkeys(labels, 0.0)
                distributions.update(
                    {label: float(p) for label, p in zip(classes, probs, strict=True)}
                )
                result[ReturnKey.DISTRIBUTIONS.value] = distributions
            if ReturnKey.FEATURES in return_keys:
                result[ReturnKey.FEATURES.value] = X.iloc[row].to_dict()
            results.append(result)
        return results

    def evaluate(
        self, classifier: Any, instances: InstanceSet
    ) -> ClassificationMetrics:
        """Evaluate a trained classifier on held-out ``instances``."""
        predicted = classifier.predict(instances.features_frame())
        y_pred = [str(label) for label in predicted]
        y_true = instances.class_values().astype(str).tolist()
        metrics = compute_classification_metrics(y_true, y_pred, instances.class_labels)
        log.info(
            "Evaluated classifier",
            classifier=self.classifier,
            accuracy=f"{metrics.accuracy:.4f}",
            wfmeasure=f"{metrics.wfmeasure:.4f}",
        )
        return metrics

    def cross_validate(
        self, instances: InstanceSet, folds: int
    ) -> ClassificationMetrics:
        """
        Evaluate with stratified k-fold cross validation.

        The number of folds is capped at the size of the smallest class so
        every training fold holds every class; it is never below 2.
        """
        X = instances.features_frame()
        y = instances.class_values().astype(str)
        if len(X) < 2:
            msg = f"Cross validation needs at least 2 instances, got {len(X)}"
            raise ValueError(msg)
        smallest = int(y.value_counts().min())
        n_splits = max(2, min(folds, smallest))
        cv = StratifiedKFold(
            n_splits=n_splits, shuffle=True, random_state=self.random_state
        )
        y_pred = cross_val_predict(self.build_pipeline(instances), X, y, cv=cv)
        metrics = compute_classification_metrics(
            y.tolist(), [str(p) for p in y_pred], instances.class_labels
        )
        log.info(
            "Cross validated classifier",
            classifier=self.classifier,
            folds=n_splits,
            accuracy=f"{metrics.accuracy:.4f}",
        )
        return metrics
