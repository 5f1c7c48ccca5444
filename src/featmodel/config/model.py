"""
Model configuration.

A ModelConfig bundles the application callbacks and metadata needed to
build, train and serve one named model. It is immutable; caching happens in
the InstanceCell objects it references.
"""

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from featmodel.config.settings import RuntimeSettings
from featmodel.modeling.features import nominal_text
from featmodel.utils.cells import InstanceCell


class SetType(str, Enum):
    """Data set split passed to ``create_feature_sets_fn``."""

    TRAIN = "train"
    TEST = "test"
    TRAIN_TEST = "train-test"


class ReturnKey(str, Enum):
    """Keys the classifier is asked to return for each classification."""

    LABEL = "label"
    DISTRIBUTIONS = "distributions"
    FEATURES = "features"


DEFAULT_RETURN_KEYS = frozenset({ReturnKey.LABEL, ReturnKey.DISTRIBUTIONS})


class ModelConfig(BaseModel):
    """
    Configuration of a single model.

    Attributes:
        name: Short name used in file names and reports.
        create_feature_sets_fn: Called as ``fn(set_type=SetType)`` and returns
            a sequence of feature maps, each including the class label.
        create_features_fn: Creates one feature map from the arguments given
            to ``classify``; the training context is appended as the last
            argument when the model has one.
        feature_metas_fn: Returns a mapping of feature key to type (``string``,
            ``boolean``, ``numeric`` or a sequence of enum values). Called with
            the context when there is one.
        display_feature_metas_fn: Like ``feature_metas_fn`` but used for the
            columns shown in predictions; called without arguments.
        class_feature_meta_fn: Returns ``(class_key, labels)``.
        context_fn: Creates the training context (e.g. corpus statistics).
        set_context_fn: Thaws a context read back from a persisted model.
        model_return_keys: What each classification returns.
        classifications_map_fn: Transforms each classification result.
        cross_fold_instances_cache: Cell caching cross validation instances.
        train_test_instances_cache: Cell caching train/test instances.
        feature_sets_set: Named groups of feature subsets.
        id_key: Optional identifier feature added as a string attribute.
        settings: Paths and engine options.
    """

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, protected_namespaces=()
    )

    name: str = Field(min_length=1)
    create_feature_sets_fn: Callable[..., Sequence[Mapping[str, Any]]]
    feature_metas_fn: Callable[..., Mapping[str, Any]]
    class_feature_meta_fn: Callable[[], tuple[str, Sequence[str]]]
    create_features_fn: Callable[..., Mapping[str, Any]] | None = None
    display_feature_metas_fn: Callable[..., Mapping[str, Any]] | None = None
    context_fn: Callable[[], Any] | None = None
    set_context_fn: Callable[[Any], Any] | None = None
    model_return_keys: frozenset[ReturnKey] = DEFAULT_RETURN_KEYS
    classifications_map_fn: Callable[[dict[str, Any]], Any] | None = None
    cross_fold_instances_cache: InstanceCell | None = None
    train_test_instances_cache: InstanceCell | None = None
    feature_sets_set: Mapping[str, Sequence[Sequence[str]]] = Field(
        default_factory=dict
    )
    id_key: str | None = None
    settings: RuntimeSettings = Field(default_factory=RuntimeSettings)

    @field_validator("model_return_keys")
    @classmethod
    def validate_return_keys(cls, v: frozenset[ReturnKey]) -> frozenset[ReturnKey]:
        """Require at least one return key."""
        if not v:
            msg = "model_return_keys must not be empty"
            raise ValueError(msg)
        return v

    def feature_sets(self, set_name: str) -> list[list[str]]:
        """
        Return a named group of feature subsets.

        Raises:
            KeyError: If no group has that name.
        """
        if set_name not in self.feature_sets_set:
            available = ", ".join(self.feature_sets_set.keys())
            msg = f"Unknown feature set '{set_name}'. Available: {available}"
            raise KeyError(msg)
        return [list(features) for features in self.feature_sets_set[set_name]]

    def class_feature_meta(self) -> tuple[str, list[str]]:
        """
        Return the class key and its labels.

        Labels are rendered the way class values are stored: booleans as
        ``true``/``false`` and enum members by their value.
        """
        key, labels = self.class_feature_meta_fn()
        return key, [nominal_text(label) for label in labels]
