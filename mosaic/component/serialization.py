"""Serialization of values into JSON-compatible structures.

Values that JSON cannot carry are wrapped in marker dicts:

    datetime        -> {"__datetime__": "2010-07-16T00:00:00"}
    re.Pattern      -> {"__regexp__": "^abc$", "flags": 34}
    Movie instance  -> {"__component": "Movie", "__new": True, "title": ...}
    Movie class     -> {"__component": "typeof Movie"}

Example:
    data = serialize(movie, attribute_selector={"title": True})
    copy = deserialize(data, component_getter=Movie.get_component_of_type)
"""

import re
from datetime import datetime
from typing import Any, Callable, Optional

from .exceptions import SerializationError
from .utilities import get_type_of, is_component_class_or_instance, parse_component_type


def serialize(value: Any, **options) -> Any:
    """Convert a value to a JSON-compatible structure.

    Args:
        value: The value to serialize
        **options: Forwarded to Component.serialize() for component values
            (attribute_selector, include_component_types, include_is_new_marks,
            include_referenced_components)

    Returns:
        JSON-compatible value

    Raises:
        SerializationError: If the value has no serialized form
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value

    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}

    if isinstance(value, re.Pattern):
        return {"__regexp__": value.pattern, "flags": int(value.flags)}

    if is_component_class_or_instance(value):
        return value.serialize(**options)

    if isinstance(value, (list, tuple)):
        return [serialize(item, **options) for item in value]

    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(
                    f"Cannot serialize an object with a key of type '{get_type_of(key)}'"
                )
            result[key] = serialize(item, **options)
        return result

    raise SerializationError(f"Cannot serialize a value of type '{get_type_of(value)}'")


def deserialize(
    value: Any,
    component_getter: Optional[Callable[[str], type]] = None,
    source: str = "local",
) -> Any:
    """Convert a serialized structure back to native values.

    Args:
        value: The serialized value
        component_getter: Resolves a component type ("Movie", "typeof Movie")
            to a component class. Without it, component dicts stay plain dicts.
        source: Value source recorded on deserialized component attributes

    Returns:
        The native value
    """
    if isinstance(value, list):
        return [deserialize(item, component_getter, source) for item in value]

    if not isinstance(value, dict):
        return value

    if "__datetime__" in value:
        try:
            return datetime.fromisoformat(value["__datetime__"])
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot deserialize a date: {value['__datetime__']!r}") from e

    if "__regexp__" in value:
        return re.compile(value["__regexp__"], value.get("flags", 0))

    if "__component" in value and component_getter is not None:
        component_type = value["__component"]
        component = component_getter(component_type)
        _, is_class_reference = parse_component_type(component_type)
        if is_class_reference:
            return component.deserialize(value, source=source)
        return component.deserialize_instance(value, source=source)

    return {key: deserialize(item, component_getter, source) for key, item in value.items()}
