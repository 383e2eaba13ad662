"""Base value type and the options shared by selector resolution."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import TypeMismatchError
from ..serialization import serialize
from ..sanitization import normalize_sanitizer, run_sanitizers
from ..utilities import get_type_of
from ..validation import REQUIRED_VALIDATOR, FailedValidator, normalize_validator, run_validators


@dataclass(frozen=True)
class ResolveOptions:
    """Options threaded through attribute selector resolution and traversal."""

    set_attributes_only: bool = False
    aggregation_mode: str = "union"
    include_referenced_components: bool = False
    filter: Optional[Callable[[Any], bool]] = None
    is_deep: bool = False
    attribute_stack: tuple = ()


def describe_attribute(attribute: Any) -> str:
    if attribute is None:
        return "attribute: 'unknown'"
    return attribute.describe()


class ValueType:
    """Describes the values an attribute accepts.

    Subclasses refine _check_value() and the recursive operations. The string
    form of a value type is its canonical specifier (e.g. "string?", "Movie[]").
    """

    def __init__(
        self,
        attribute: Any = None,
        is_optional: bool = False,
        sanitizers: Optional[List] = None,
        validators: Optional[List] = None,
    ):
        self._is_optional = is_optional
        self._sanitizers = [normalize_sanitizer(sanitizer) for sanitizer in sanitizers or []]
        self._validators = [normalize_validator(validator, attribute) for validator in validators or []]

    def is_optional(self) -> bool:
        return self._is_optional

    def get_sanitizers(self) -> List:
        return list(self._sanitizers)

    def get_validators(self) -> List:
        return list(self._validators)

    def get_scalar_type(self) -> "ValueType":
        return self

    def __str__(self) -> str:
        return "?" if self._is_optional else ""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self}'>"

    def check_value(self, value: Any, attribute: Any = None) -> None:
        """Raise TypeMismatchError if the value is not accepted.

        Args:
            value: The value to check
            attribute: The attribute the value is assigned to (used in messages)
        """
        if self._check_value(value, attribute) is False:
            raise TypeMismatchError(describe_attribute(attribute), str(self), get_type_of(value))

    def _check_value(self, value: Any, attribute: Any) -> Optional[bool]:
        # None means undecided, subclasses continue the check
        if value is None:
            return self._is_optional
        return None

    def sanitize_value(self, value: Any) -> Any:
        return run_sanitizers(self._sanitizers, value)

    def run_validators(self, value: Any, attribute_selector: Any = None) -> List[FailedValidator]:
        """Run the validators against a value. Missing values only fail when required."""
        if value is None:
            return [] if self.is_optional() else [FailedValidator(REQUIRED_VALIDATOR, "")]
        return [FailedValidator(validator, "") for validator in run_validators(self._validators, value)]

    def is_valid_value(self, value: Any) -> bool:
        return not self.run_validators(value)

    def _resolve_attribute_selector(
        self, attribute_selector: Any, attribute: Any, value: Any, options: ResolveOptions
    ) -> Any:
        return attribute_selector is not False

    def _traverse_attributes(
        self, iteratee: Callable, attribute: Any, value: Any, attribute_selector: Any, options: ResolveOptions
    ) -> None:
        pass

    def serialize_value(self, value: Any, attribute: Any = None, **options) -> Any:
        return serialize(value, **options)

    def introspect(self) -> Dict[str, Any]:
        introspected = {"value_type": str(self)}
        validators = [validator.get_signature() for validator in self._validators]
        if validators:
            introspected["validators"] = validators
        return introspected
