"""
Error types raised by the model configuration and execution pipeline.

All errors derive from ModelError so command line and report layers can
catch them in one place.
"""

from typing import Any


class ModelError(Exception):
    """Base class for model pipeline errors."""


class ConfigurationNotBoundError(ModelError):
    """An operation needed a model configuration but none is in scope."""


class CacheNotConfiguredError(ModelError):
    """The model configuration has no cache cell for the requested slot."""

    def __init__(self, model_name: str, slot: str) -> None:
        self.model_name = model_name
        self.slot = slot
        super().__init__(
            f"No {slot} cache cell set on model configuration '{model_name}'"
        )


class ModelNotFoundError(ModelError, FileNotFoundError):
    """A persisted model file does not exist."""

    def __init__(self, path: Any) -> None:
        self.path = path
        super().__init__(f"Model file not found: {path}")


class ModelNotPrimedError(ModelError):
    """A model artifact was used for classification before being primed."""


class NoFeatureGeneratorError(ModelError):
    """The model configuration lacks a required feature callback."""

    def __init__(self, model_name: str, callback: str = "create_features_fn") -> None:
        self.model_name = model_name
        self.callback = callback
        super().__init__(f"No {callback} defined in model '{model_name}'")


class FeatureCoercionError(ModelError):
    """
    A feature value could not be coerced to its attribute's type.

    The original exception is kept as ``__cause__``.
    """

    def __init__(self, attribute: str, value: Any, cause: BaseException) -> None:
        self.attribute = attribute
        self.value = value
        self.cause = cause
        super().__init__(
            f"Can't set value <{value!r}> for attribute <{attribute}>: {cause}"
        )


class MissingValueError(ModelError):
    """A required value (such as the class label) is missing from a row."""

    def __init__(self, attribute: str, row: int) -> None:
        self.attribute = attribute
        self.row = row
        super().__init__(f"Missing value for attribute <{attribute}> in row {row}")


class SchemaMismatchError(ModelError):
    """Two instance sets with different attribute schemas were combined."""
