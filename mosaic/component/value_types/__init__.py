"""Value types describe which values an attribute accepts."""

from .base import ResolveOptions, ValueType
from .scalars import (
    AnyValueType,
    BooleanValueType,
    NumberValueType,
    StringValueType,
    ObjectValueType,
    DateValueType,
    RegExpValueType,
)
from .array import ArrayValueType
from .component import ComponentValueType
from .factory import create_value_type

__all__ = [
    "ValueType",
    "ResolveOptions",
    "AnyValueType",
    "BooleanValueType",
    "NumberValueType",
    "StringValueType",
    "ObjectValueType",
    "DateValueType",
    "RegExpValueType",
    "ArrayValueType",
    "ComponentValueType",
    "create_value_type",
]
