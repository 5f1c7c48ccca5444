"""
Frame schemas for instance sets.

Instance set attributes are only known at run time, so the pandera schema
of an instance frame is derived from its attributes rather than declared
as a DataFrameModel.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

import pandera.errors
import pandera.pandas as pa

from featmodel.errors import SchemaMismatchError
from featmodel.modeling.features import FeatureKind

if TYPE_CHECKING:
    from featmodel.modeling.instances import Attribute, InstanceSet


def attribute_column(attribute: "Attribute") -> pa.Column:
    """Column schema of one attribute; unset (NaN) values are always allowed."""
    ftype = attribute.type
    if ftype.kind == FeatureKind.NUMERIC:
        return pa.Column(float, nullable=True, coerce=False)
    if ftype.kind == FeatureKind.STRING:
        return pa.Column(object, nullable=True)
    return pa.Column(
        object,
        checks=pa.Check.isin(list(ftype.values)),
        nullable=True,
    )


def instance_frame_schema(attributes: Sequence["Attribute"]) -> pa.DataFrameSchema:
    """Schema of a frame holding exactly ``attributes`` in order."""
    return pa.DataFrameSchema(
        {a.name: attribute_column(a) for a in attributes},
        strict=True,
        ordered=True,
    )


def validate_instances(instances: "InstanceSet") -> "InstanceSet":
    """
    Check an instance set's frame against its attributes.

    Returns:
        The instance set, unchanged.

    Raises:
        SchemaMismatchError: If columns, dtypes or nominal values don't
            match the attributes.
    """
    schema = instance_frame_schema(instances.attributes)
    try:
        schema.validate(instances.data)
    except pandera.errors.SchemaError as e:
        msg = f"Instances '{instances.name}' don't match their attributes: {e}"
        raise SchemaMismatchError(msg) from e
    return instances
