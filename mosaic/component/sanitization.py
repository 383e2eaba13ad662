"""Sanitizers: functions that normalize a value before it is stored."""

import types
from typing import Any, Callable, Iterable, Optional, Sequence

from .utilities import get_type_of


class Sanitizer:
    """A named value transformation."""

    def __init__(self, function: Callable[..., Any], name: Optional[str] = None, arguments: Sequence[Any] = ()):
        if not callable(function):
            raise TypeError(
                f"Expected a function, but received a value of type '{get_type_of(function)}'"
            )
        self._function = function
        self._name = name or getattr(function, "__name__", "sanitizer")
        self._arguments = tuple(arguments)

    def get_name(self) -> str:
        return self._name

    def get_arguments(self) -> tuple:
        return self._arguments

    def run(self, value: Any) -> Any:
        return self._function(value, *self._arguments)

    def __repr__(self) -> str:
        return f"<Sanitizer {self._name}>"


def _trim(value):
    if isinstance(value, str):
        return value.strip()
    return value


def _compact(value):
    if isinstance(value, list):
        return [item for item in value if item not in (None, "", False)]
    if isinstance(value, tuple):
        return tuple(item for item in value if item not in (None, "", False))
    return value


sanitizers = types.SimpleNamespace(
    trim=lambda: Sanitizer(_trim, name="trim"),
    compact=lambda: Sanitizer(_compact, name="compact"),
)
"""Namespace holding the built-in sanitizer builders (``sanitizers.trim()``)."""


def normalize_sanitizer(sanitizer: Any) -> Sanitizer:
    if isinstance(sanitizer, Sanitizer):
        return sanitizer
    if callable(sanitizer):
        return Sanitizer(sanitizer)
    raise TypeError(
        f"Expected a sanitizer, but received a value of type '{get_type_of(sanitizer)}'"
    )


def run_sanitizers(sanitizers: Iterable[Sanitizer], value: Any) -> Any:
    for sanitizer in sanitizers:
        value = sanitizer.run(value)
    return value
