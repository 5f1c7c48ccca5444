"""
Instance sets: the tabular structure handed to the classifier engine.

An instance set is an ordered list of typed attributes (the class attribute
last) and a DataFrame with one column per attribute. Unset values are NaN.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from featmodel.config.model import ModelConfig
from featmodel.config.scope import resolve_config
from featmodel.errors import (
    FeatureCoercionError,
    MissingValueError,
    SchemaMismatchError,
)
from featmodel.modeling.features import FeatureType, is_unset, parse_feature_types
from featmodel.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Attribute:
    """A named, typed column of an instance set."""

    name: str
    type: FeatureType

    def coerce(self, value: Any) -> Any:
        """
        Coerce a raw value for this attribute; unset values become NaN.

        Raises:
            FeatureCoercionError: If the value is incompatible with the type.
        """
        if is_unset(value):
            return np.nan
        try:
            return self.type.coerce(value)
        except (TypeError, ValueError) as e:
            log.error(
                "Can't coerce feature value",
                attribute=self.name,
                type=str(self.type),
                value=repr(value),
                error=str(e),
            )
            raise FeatureCoercionError(self.name, value, e) from e


@dataclass
class InstanceSet:
    """
    Ordered attributes and their rows.

    Attributes:
        name: Relation name (e.g. ``sentiment-classify``).
        attributes: Attributes in column order.
        class_attribute: Name of the class attribute, if any.
        data: One column per attribute, in attribute order.
    """

    name: str
    attributes: list[Attribute]
    class_attribute: str | None
    data: pd.DataFrame

    def __len__(self) -> int:
        return len(self.data)

    @property
    def attribute_names(self) -> list[str]:
        return [a.name for a in self.attributes]

    @property
    def feature_attributes(self) -> list[Attribute]:
        """Attributes other than the class attribute."""
        return [a for a in self.attributes if a.name != self.class_attribute]

    @property
    def schema(self) -> tuple[tuple[tuple[str, FeatureType], ...], str | None]:
        """Attribute names and types in order, and the class attribute name."""
        return tuple((a.name, a.type) for a in self.attributes), self.class_attribute

    @property
    def class_labels(self) -> tuple[str, ...]:
        if self.class_attribute is None:
            return ()
        return self.attribute(self.class_attribute).type.values

    def attribute(self, name: str) -> Attribute:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        msg = f"No attribute '{name}' in instances '{self.name}'"
        raise KeyError(msg)

    def features_frame(self) -> pd.DataFrame:
        """Feature columns (everything but the class attribute)."""
        return self.data[[a.name for a in self.feature_attributes]]

    def class_values(self) -> pd.Series:
        if self.class_attribute is None:
            msg = f"Instances '{self.name}' have no class attribute"
            raise ValueError(msg)
        return self.data[self.class_attribute]

    def set_values(self, row: int, features: Mapping[str, Any]) -> None:
        """
        Set the attribute values of one row from a feature map.

        Attributes missing from ``features`` (or mapped to None) keep their
        current value. The class attribute is never set.

        Raises:
            FeatureCoercionError: If a value is incompatible with its attribute.
        """
        for attribute in self.feature_attributes:
            value = features.get(attribute.name)
            if value is None:
                continue
            coerced = attribute.coerce(value)
            log.debug(
                "Setting feature",
                attribute=attribute.name,
                value=repr(value),
                coerced=coerced,
            )
            self.data.at[self.data.index[row], attribute.name] = coerced

    def select(
        self,
        attribute_names: Iterable[str],
        class_attribute: str | None = None,
    ) -> "InstanceSet":
        """
        Keep only the named attributes (and the class attribute).

        Column order follows this instance set, not ``attribute_names``.

        Raises:
            SchemaMismatchError: If a named attribute does not exist here.
        """
        class_attribute = class_attribute or self.class_attribute
        wanted = set(attribute_names)
        missing = wanted - set(self.attribute_names)
        if class_attribute is not None and class_attribute not in self.attribute_names:
            missing.add(class_attribute)
        if missing:
            msg = (
                f"Attributes {sorted(missing)} not in instances '{self.name}'; "
                "the feature schema differs from the one the model was built with"
            )
            raise SchemaMismatchError(msg)
        kept = [
            a for a in self.attributes if a.name in wanted or a.name == class_attribute
        ]
        names = [a.name for a in kept]
        return InstanceSet(
            name=self.name,
            attributes=kept,
            class_attribute=class_attribute if class_attribute in names else None,
            data=self.data[names].copy(),
        )


def _empty_frame(attributes: Sequence[Attribute], n_rows: int) -> pd.DataFrame:
    columns = {
        a.name: pd.Series(
            np.full(n_rows, np.nan),
            dtype=float if a.type.is_numeric else object,
        )
        for a in attributes
    }
    return pd.DataFrame(columns, columns=[a.name for a in attributes])


def create_instances(
    name: str,
    feature_maps: Sequence[Mapping[str, Any]],
    feature_types: Mapping[str, Any],
    class_feature_meta: tuple[str, Sequence[str]],
    *,
    missing_values_ok: bool = False,
) -> InstanceSet:
    """
    Build an instance set from feature maps.

    Attribute order follows ``feature_types`` with the class attribute last.

    Args:
        name: Relation name.
        feature_maps: One feature map per instance.
        feature_types: Feature key to type (see ``parse_feature_type``).
        class_feature_meta: Class key and its labels.
        missing_values_ok: Allow rows without a class label.

    Returns:
        The instance set.

    Raises:
        MissingValueError: If a row has no class label and missing values
            are not allowed.
        FeatureCoercionError: If a value doesn't fit its attribute type.
    """
    class_key, labels = class_feature_meta
    types = parse_feature_types(feature_types)
    types.pop(class_key, None)
    attributes = [Attribute(key, ftype) for key, ftype in types.items()]
    attributes.append(Attribute(class_key, FeatureType.enum(labels)))

    data = _empty_frame(attributes, len(feature_maps))
    n_unset = 0
    for row, features in enumerate(feature_maps):
        for col, attribute in enumerate(attributes):
            value = features.get(attribute.name)
            if is_unset(value):
                if attribute.name == class_key and not missing_values_ok:
                    raise MissingValueError(attribute.name, row)
                n_unset += 1
                continue
            data.iat[row, col] = attribute.coerce(value)

    log.debug(
        "Created instances",
        name=name,
        n_instances=len(data),
        n_attributes=len(attributes),
        n_unset=n_unset,
    )
    return InstanceSet(
        name=name, attributes=attributes, class_attribute=class_key, data=data
    )


def append_instances(a: InstanceSet, b: InstanceSet) -> InstanceSet:
    """
    Concatenate two instance sets with identical schemas.

    Raises:
        SchemaMismatchError: If the attribute schemas differ.
    """
    if a.schema != b.schema:
        msg = f"Can't append instances '{b.name}' to '{a.name}': schemas differ"
        raise SchemaMismatchError(msg)
    data = pd.concat([a.data, b.data], ignore_index=True)
    return InstanceSet(
        name=a.name,
        attributes=list(a.attributes),
        class_attribute=a.class_attribute,
        data=data,
    )


def clone_instances(instances: InstanceSet) -> InstanceSet:
    """Deep copy an instance set so its rows can be changed independently."""
    return InstanceSet(
        name=instances.name,
        attributes=list(instances.attributes),
        class_attribute=instances.class_attribute,
        data=instances.data.copy(deep=True),
    )


def model_class_meta(config: ModelConfig | None = None) -> tuple[str, list[str]]:
    """Return the class key and labels of the model configuration."""
    return resolve_config(config).class_feature_meta()


def model_feature_types(
    context: Any = None,
    *,
    config: ModelConfig | None = None,
    display: bool = False,
) -> dict[str, FeatureType]:
    """
    Return the feature types of the model configuration.

    Args:
        context: Training context passed to the metadata function, if any.
        config: Model configuration (defaults to the active one).
        display: Use ``display_feature_metas_fn`` when configured; it is
            called without arguments.

    Returns:
        Feature key to type, with ``id_key`` first when configured.
    """
    config = resolve_config(config)
    if display and config.display_feature_metas_fn is not None:
        metas = config.display_feature_metas_fn()
    elif context is not None:
        metas = config.feature_metas_fn(context)
    else:
        metas = config.feature_metas_fn()
    types = parse_feature_types(metas)
    if config.id_key:
        types = {config.id_key: FeatureType.string(), **types}
    return types


def create_model_instances(
    feature_maps: Sequence[Mapping[str, Any]],
    context: Any = None,
    *,
    config: ModelConfig | None = None,
    missing_values_ok: bool = False,
) -> InstanceSet:
    """Build an instance set using the model configuration's metadata."""
    config = resolve_config(config)
    log.info("Generating instances from feature sets", n_feature_sets=len(feature_maps))
    return create_instances(
        f"{config.name}-classify",
        feature_maps,
        model_feature_types(context, config=config),
        model_class_meta(config),
        missing_values_ok=missing_values_ok,
    )
