"""Helpers shared by the component modules."""

import re
import types
from datetime import datetime
from typing import Any, Iterable

COMPONENT_NAME_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9_]*$")
COMPONENT_TYPE_PATTERN = re.compile(r"^(typeof )?([A-Z][A-Za-z0-9_]*)$")


class hybridmethod:
    """Method that binds to the class or to the instance, whichever it is accessed on.

    Example:
        class Movie(Component):
            @hybridmethod
            def describe(target):
                return "class" if isinstance(target, type) else "instance"

        Movie.describe()    # "class"
        Movie().describe()  # "instance"
    """

    def __init__(self, func):
        self.__func__ = func
        self.__doc__ = func.__doc__
        self.__name__ = func.__name__

    def __get__(self, instance, owner):
        return types.MethodType(self.__func__, owner if instance is None else instance)


def is_component_class(value: Any) -> bool:
    return isinstance(value, type) and getattr(value, "__mosaic_component__", False)


def is_component_instance(value: Any) -> bool:
    return not isinstance(value, type) and getattr(value, "__mosaic_component__", False)


def is_component_class_or_instance(value: Any) -> bool:
    return getattr(value, "__mosaic_component__", False) is True


def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_component_name(name: Any) -> bool:
    return isinstance(name, str) and COMPONENT_NAME_PATTERN.match(name) is not None


def is_component_type(specifier: Any) -> bool:
    return isinstance(specifier, str) and COMPONENT_TYPE_PATTERN.match(specifier) is not None


def parse_component_type(component_type: str):
    """Split a component type into its name and whether it refers to the class.

    Args:
        component_type: A component type such as "Movie" or "typeof Movie"

    Returns:
        Tuple of (component_name, is_class_reference)

    Raises:
        ValueError: If the component type is malformed
    """
    match = COMPONENT_TYPE_PATTERN.match(component_type) if isinstance(component_type, str) else None
    if match is None:
        raise ValueError(f"The specified component type is invalid (component type: {component_type!r})")
    return match.group(2), match.group(1) is not None


def get_type_of(value: Any) -> str:
    """Return the name used to describe the runtime type of a value in messages."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_component_class(value):
        return f"typeof {value.get_component_name()}"
    if is_component_instance(value):
        return value.get_component_name()
    if is_array(value):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, datetime):
        return "Date"
    if isinstance(value, re.Pattern):
        return "RegExp"
    if callable(value):
        return "function"
    return type(value).__name__


def join_attribute_path(parts: Iterable[str]) -> str:
    """Join attribute path segments, keeping array indexes attached.

    Example:
        join_attribute_path(["actors", "[0]", "name"])  # "actors[0].name"
        join_attribute_path(["[0]", "[1]"])             # "[0][1]"
    """
    path = ""
    for part in parts:
        if not part:
            continue
        if path and not part.startswith("["):
            path += "."
        path += part
    return path
