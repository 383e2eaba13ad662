"""Scalar value types."""

import re
from datetime import datetime
from typing import Any, Optional

from ..utilities import is_component_class_or_instance, is_number
from .base import ValueType


class AnyValueType(ValueType):
    """Accepts every value, including None."""

    def __str__(self) -> str:
        return "any"

    def is_optional(self) -> bool:
        return True

    def _check_value(self, value: Any, attribute: Any) -> Optional[bool]:
        return True


class BooleanValueType(ValueType):
    def __str__(self) -> str:
        return "boolean" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else isinstance(value, bool)


class NumberValueType(ValueType):
    def __str__(self) -> str:
        return "number" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else is_number(value)


class StringValueType(ValueType):
    def __str__(self) -> str:
        return "string" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else isinstance(value, str)


class ObjectValueType(ValueType):
    """Plain dicts. Components are not plain objects."""

    def __str__(self) -> str:
        return "object" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        if result is not None:
            return result
        return isinstance(value, dict) and not is_component_class_or_instance(value)


class DateValueType(ValueType):
    def __str__(self) -> str:
        return "Date" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else isinstance(value, datetime)


class RegExpValueType(ValueType):
    def __str__(self) -> str:
        return "RegExp" + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else isinstance(value, re.Pattern)
