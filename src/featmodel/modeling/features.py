"""
Feature type metadata.

Feature metadata functions describe each feature as ``string``, ``boolean``,
``numeric`` or a sequence of allowed values (an enumeration). These are
parsed into FeatureType objects, which also know how to coerce a raw
feature value into the representation stored in an instance set.
"""

import math
import numbers
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

BOOLEAN_VALUES = ("true", "false")


class FeatureKind(str, Enum):
    """Kind of attribute a feature becomes."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    NOMINAL = "nominal"


def nominal_text(value: Any) -> str:
    """Render a value the way nominal attributes store it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def is_unset(value: Any) -> bool:
    """Whether a feature value means "no value"."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


@dataclass(frozen=True)
class FeatureType:
    """
    Type of a single feature.

    Attributes:
        kind: Attribute kind.
        values: Allowed values for nominal features (and ``true``/``false``
            for booleans); empty otherwise.
    """

    kind: FeatureKind
    values: tuple[str, ...] = field(default=())

    @classmethod
    def string(cls) -> "FeatureType":
        return cls(FeatureKind.STRING)

    @classmethod
    def boolean(cls) -> "FeatureType":
        return cls(FeatureKind.BOOLEAN, BOOLEAN_VALUES)

    @classmethod
    def numeric(cls) -> "FeatureType":
        return cls(FeatureKind.NUMERIC)

    @classmethod
    def enum(cls, values: Iterable[Any]) -> "FeatureType":
        labels = tuple(nominal_text(v) for v in values)
        if not labels:
            msg = "An enumerated feature needs at least one value"
            raise ValueError(msg)
        if len(set(labels)) != len(labels):
            msg = f"Duplicate enumeration values: {labels}"
            raise ValueError(msg)
        return cls(FeatureKind.NOMINAL, labels)

    @property
    def is_numeric(self) -> bool:
        return self.kind == FeatureKind.NUMERIC

    def coerce(self, value: Any) -> Any:
        """
        Coerce a raw (set) feature value to this type's representation.

        Numbers become floats, everything else becomes text. Numeric strings
        are accepted for numeric features.

        Raises:
            TypeError: If the value's type can't represent this feature.
            ValueError: If the value isn't valid for this feature.
        """
        if self.kind == FeatureKind.NUMERIC:
            if isinstance(value, bool):
                msg = f"boolean {value!r} given for a numeric feature"
                raise TypeError(msg)
            if isinstance(value, numbers.Real):
                return float(value)
            if isinstance(value, str):
                return float(value.strip())
            msg = f"{type(value).__name__} is not numeric"
            raise TypeError(msg)

        if self.kind == FeatureKind.STRING:
            return nominal_text(value)

        if self.kind == FeatureKind.BOOLEAN:
            if isinstance(value, str) and value.lower() in BOOLEAN_VALUES:
                return value.lower()
            if not isinstance(value, (bool, np.bool_)):
                msg = f"{type(value).__name__} is not boolean"
                raise TypeError(msg)
            return nominal_text(bool(value))

        text = nominal_text(value)
        if text not in self.values:
            msg = f"{text!r} is not one of {list(self.values)}"
            raise ValueError(msg)
        return text

    def __str__(self) -> str:
        if self.kind == FeatureKind.NOMINAL:
            return "{" + ",".join(self.values) + "}"
        return self.kind.value


def parse_feature_type(meta: Any) -> FeatureType:
    """
    Parse a feature type as returned by a feature metadata function.

    Args:
        meta: ``"string"``, ``"boolean"``, ``"numeric"``, a sequence of
            enumeration values, or a FeatureType.

    Returns:
        The parsed FeatureType.

    Raises:
        ValueError: If the type is not recognized.
    """
    if isinstance(meta, FeatureType):
        return meta
    if isinstance(meta, FeatureKind):
        meta = meta.value
    if isinstance(meta, str):
        name = meta.lower()
        if name == "string":
            return FeatureType.string()
        if name == "boolean":
            return FeatureType.boolean()
        if name == "numeric":
            return FeatureType.numeric()
        msg = f"Unknown feature type: {meta!r}"
        raise ValueError(msg)
    if isinstance(meta, Iterable):
        return FeatureType.enum(meta)
    msg = f"Unknown feature type: {meta!r}"
    raise ValueError(msg)


def parse_feature_types(
    metas: Mapping[str, Any] | Iterable[tuple[str, Any]],
) -> dict[str, FeatureType]:
    """Parse feature metadata preserving its iteration order."""
    items = metas.items() if isinstance(metas, Mapping) else metas
    return {str(key): parse_feature_type(meta) for key, meta in items}


@dataclass(frozen=True)
class FeatureMetadata:
    """
    Feature schema persisted with a trained model.

    Attributes:
        feature_metas: Feature types of the attributes the model was trained on.
        class_type: Class labels.
    """

    feature_metas: dict[str, FeatureType]
    class_type: tuple[str, ...]
