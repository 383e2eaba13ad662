"""Build value types from their textual specifiers."""

from typing import Any, Dict, List, Optional

from ..exceptions import InvalidTypeSpecifierError
from ..utilities import is_component_type
from .array import ArrayValueType
from .base import ValueType, describe_attribute
from .component import ComponentValueType
from .scalars import (
    AnyValueType,
    BooleanValueType,
    DateValueType,
    NumberValueType,
    ObjectValueType,
    RegExpValueType,
    StringValueType,
)

SCALAR_VALUE_TYPES = {
    "any": AnyValueType,
    "boolean": BooleanValueType,
    "number": NumberValueType,
    "string": StringValueType,
    "object": ObjectValueType,
    "Date": DateValueType,
    "RegExp": RegExpValueType,
}


def create_value_type(
    specifier: Optional[str],
    attribute: Any = None,
    sanitizers: Optional[List] = None,
    validators: Optional[List] = None,
    items: Optional[Dict[str, Any]] = None,
) -> ValueType:
    """Create a value type from a specifier such as "string?", "number[]" or "Movie".

    Args:
        specifier: The type specifier. None or "" mean "any"
        attribute: The attribute the value type belongs to
        sanitizers: Sanitizers applied to the whole value
        validators: Validators run against the whole value
        items: For arrays, options ({"sanitizers", "validators", "items"}) of the item type

    Returns:
        The value type

    Raises:
        InvalidTypeSpecifierError: If the specifier is not recognized, or items
            is given for a type that is not an array

    Example:
        create_value_type("string[]?", attribute, items={"validators": [validators.not_empty()]})
    """
    if specifier is None:
        specifier = "any"

    if not isinstance(specifier, str):
        raise InvalidTypeSpecifierError(
            f"The specified type is invalid ({describe_attribute(attribute)}, type: {specifier!r})"
        )

    original_specifier = specifier
    is_optional = False

    if specifier.endswith("?"):
        is_optional = True
        specifier = specifier[:-1] or "any"

    if specifier == "":
        specifier = "any"

    options = {"is_optional": is_optional, "sanitizers": sanitizers, "validators": validators}

    if specifier.endswith("[]"):
        item_type = create_value_type(specifier[:-2], attribute, **(items or {}))
        return ArrayValueType(item_type, attribute, **options)

    if items is not None:
        raise InvalidTypeSpecifierError(
            f"The 'items' option cannot be specified for a type that is not an array "
            f"({describe_attribute(attribute)}, type: '{original_specifier}')"
        )

    value_type_class = SCALAR_VALUE_TYPES.get(specifier)
    if value_type_class is not None:
        return value_type_class(attribute, **options)

    if not is_component_type(specifier):
        raise InvalidTypeSpecifierError(
            f"The specified type is invalid ({describe_attribute(attribute)}, type: '{original_specifier}')"
        )

    return ComponentValueType(specifier, attribute, **options)
