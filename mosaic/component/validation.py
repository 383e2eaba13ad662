"""Validators and the built-in validator builders.

Example:
    from mosaic.component import attribute, validators

    class Movie(Component):
        title = attribute("string", validators=[validators.not_empty()])
        rating = attribute("number?", validators=[validators.range([0, 10], "Out of range")])
"""

import inspect
import re
import types
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .utilities import get_type_of, is_number


class Validator:
    """A named predicate with arguments and an optional custom message."""

    def __init__(
        self,
        function: Callable[..., bool],
        name: Optional[str] = None,
        arguments: Sequence[Any] = (),
        message: Optional[str] = None,
    ):
        if not callable(function):
            raise TypeError(
                f"Expected a function, but received a value of type '{get_type_of(function)}'"
            )
        self._function = function
        self._name = name or getattr(function, "__name__", "validator")
        self._arguments = tuple(arguments)
        self._message = message

    def get_function(self) -> Callable[..., bool]:
        return self._function

    def get_name(self) -> str:
        return self._name

    def get_arguments(self) -> tuple:
        return self._arguments

    def get_signature(self) -> str:
        """Return a readable call signature such as ``min_length(3)``."""
        arguments = ", ".join(repr(argument) for argument in self._arguments)
        return f"{self._name}({arguments})"

    def get_message(self) -> str:
        if self._message is not None:
            return self._message
        return f"The validator `{self.get_signature()}` failed"

    def run(self, value: Any) -> bool:
        return bool(self._function(value, *self._arguments))

    def __repr__(self) -> str:
        return f"<Validator {self.get_signature()}>"


@dataclass(frozen=True)
class FailedValidator:
    """A validator that failed, and the attribute path where it failed."""

    validator: Validator
    path: str = ""

    def get_message(self) -> str:
        message = self.validator.get_message()
        if self.path:
            message += f" (path: '{self.path}')"
        return message


def _requires_value(function: Callable[..., bool]) -> Callable[..., bool]:
    def guarded(value, *arguments):
        if value is None:
            return False
        return function(value, *arguments)

    guarded.__name__ = function.__name__
    return guarded


def _length(value) -> int:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    raise TypeError(f"Cannot measure the length of a value of type '{get_type_of(value)}'")


def _not_empty(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def _match(value, pattern) -> bool:
    if not isinstance(value, str):
        return False
    return re.search(pattern, value) is not None


_BUILTIN_VALIDATORS = {
    "integer": _requires_value(lambda value: is_number(value) and float(value).is_integer()),
    "positive": _requires_value(lambda value: value >= 0),
    "negative": _requires_value(lambda value: value < 0),
    "less_than": _requires_value(lambda value, maximum: value < maximum),
    "less_than_or_equal": _requires_value(lambda value, maximum: value <= maximum),
    "greater_than": _requires_value(lambda value, minimum: value > minimum),
    "greater_than_or_equal": _requires_value(lambda value, minimum: value >= minimum),
    "range": _requires_value(lambda value, bounds: bounds[0] <= value <= bounds[1]),
    "not_empty": _not_empty,
    "min_length": _requires_value(lambda value, minimum: _length(value) >= minimum),
    "max_length": _requires_value(lambda value, maximum: _length(value) <= maximum),
    "range_length": _requires_value(lambda value, bounds: bounds[0] <= _length(value) <= bounds[1]),
    "match": _requires_value(_match),
    "any_of": lambda value, candidates: value in candidates,
    "none_of": lambda value, candidates: value not in candidates,
    "required": lambda value: value is not None,
}


def _create_builder(name: str, function: Callable[..., bool]) -> Callable[..., Validator]:
    # Arguments after the value
    arity = len(inspect.signature(function).parameters) - 1

    def builder(*arguments, message: Optional[str] = None) -> Validator:
        arguments = list(arguments)
        if len(arguments) == arity + 1 and isinstance(arguments[-1], str) and message is None:
            message = arguments.pop()
        if len(arguments) != arity:
            raise ValueError(
                f"The validator '{name}' expects {arity} argument(s), "
                f"but received {len(arguments)}"
            )
        return Validator(function, name=name, arguments=arguments, message=message)

    builder.__name__ = name
    builder.__doc__ = f"Build a '{name}' validator."
    builder.__mosaic_validator_builder__ = True
    return builder


validators = types.SimpleNamespace(
    **{name: _create_builder(name, function) for name, function in _BUILTIN_VALIDATORS.items()}
)
"""Namespace holding the built-in validator builders (``validators.min_length(3)``)."""

# Failure reported for required values that are missing
REQUIRED_VALIDATOR = validators.required()


def normalize_validator(validator: Any, attribute: Any = None) -> Validator:
    """Turn a validator or a plain predicate into a Validator.

    Raises:
        TypeError: If a builder was passed without being called, or the value isn't callable
    """
    if isinstance(validator, Validator):
        return validator
    if getattr(validator, "__mosaic_validator_builder__", False):
        context = f" ({attribute.describe()})" if attribute is not None else ""
        raise TypeError(
            f"The specified validator is a validator builder that has not been called "
            f"(validator: '{validator.__name__}'){context}"
        )
    if callable(validator):
        return Validator(validator)
    raise TypeError(
        f"Expected a validator, but received a value of type '{get_type_of(validator)}'"
    )


def run_validators(validators: Iterable[Validator], value: Any) -> List[Validator]:
    """Run validators against a value and return the ones that failed."""
    return [validator for validator in validators if not validator.run(value)]


def describe_failed_validators(failed_validators: Iterable[FailedValidator]) -> str:
    return ", ".join(failed.get_message() for failed in failed_validators)


__all__ = [
    "Validator",
    "FailedValidator",
    "validators",
    "REQUIRED_VALIDATOR",
    "normalize_validator",
    "run_validators",
    "describe_failed_validators",
]
