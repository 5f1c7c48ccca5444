"""
Trained model containers.

A ModelArtifact is what training produces and what gets persisted. A
PrimedModel is an artifact made ready for classification: it carries the
single-row instance template and the configuration it was primed with.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from featmodel.config.model import ModelConfig
from featmodel.evaluation.metrics import ClassificationMetrics
from featmodel.modeling.engine import ClassifierEngine
from featmodel.modeling.features import FeatureMetadata
from featmodel.modeling.instances import InstanceSet


@dataclass
class ModelArtifact:
    """
    A trained model with the schema and context needed to serve it.

    Attributes:
        name: Model name.
        classifier: Trained classifier (opaque to the pipeline).
        classifier_name: Registered name of the classifier.
        attributes: Feature attribute names the classifier was trained on,
            in instance order.
        classify_attrib: Class attribute name.
        feature_metadata: Feature types and class labels.
        context: Training context, if the model has one.
        evaluation: Performance on held-out or cross validated instances.
        create_time: When the model was trained.
    """

    name: str
    classifier: Any
    classifier_name: str
    attributes: list[str]
    classify_attrib: str
    feature_metadata: FeatureMetadata
    context: Any = None
    evaluation: ClassificationMetrics | None = None
    create_time: datetime = field(default_factory=datetime.now)

    @classmethod
    def placeholder(cls, name: str) -> "ModelArtifact":
        """An artifact without classifier, schema or context."""
        return cls(
            name=name,
            classifier=None,
            classifier_name="",
            attributes=[],
            classify_attrib="",
            feature_metadata=FeatureMetadata(feature_metas={}, class_type=()),
        )

    @property
    def is_placeholder(self) -> bool:
        return self.classifier is None

    def with_context(self, context: Any) -> "ModelArtifact":
        """Copy of this artifact carrying ``context``."""
        return dataclasses.replace(self, context=context)

    def metrics(self) -> dict[str, Any]:
        """Name, creation time and evaluation summary."""
        metrics: dict[str, Any] = {
            "name": self.name,
            "classifier": self.classifier_name,
            "create_time": self.create_time.isoformat(timespec="seconds"),
        }
        if self.evaluation is not None:
            metrics.update(self.evaluation.summary())
        return metrics


@dataclass(frozen=True)
class PrimedModel:
    """
    An artifact ready for classification.

    Attributes:
        artifact: The underlying artifact.
        instances: Single-row instance template; cloned for each
            classification and never modified itself.
        config: Configuration the model was primed with.
        engine: Engine that classifies with the artifact's classifier.
    """

    artifact: ModelArtifact
    instances: InstanceSet
    config: ModelConfig
    engine: ClassifierEngine

    @property
    def name(self) -> str:
        return self.artifact.name

    @property
    def classifier(self) -> Any:
        return self.artifact.classifier

    @property
    def attributes(self) -> list[str]:
        return self.artifact.attributes

    @property
    def context(self) -> Any:
        return self.artifact.context
