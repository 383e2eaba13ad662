"""Attribute descriptors for components.

Attributes are declared on the component class and hold their values on
each instance:

    class Movie(Component):
        id = primary_identifier()
        title = attribute("string", validators=[validators.not_empty()])
        year = attribute("number?")

    movie = Movie(title="Inception")
    movie.title         # "Inception"
    Movie.title         # the Attribute definition
"""

import uuid
from typing import Any, Dict, List, Optional

from .exceptions import IdentifierError, UnsetAttributeError, ValidationError
from .forking import fork
from .utilities import is_component_instance, join_attribute_path
from .validation import REQUIRED_VALIDATOR, FailedValidator, describe_failed_validators
from .value_types import create_value_type

VALUE_SOURCES = ("local", "store", "server", "client")

_UNSET = object()


class Attribute:
    """An attribute definition, bound to its class with __set_name__.

    Args:
        value_type: Type specifier (e.g. "string", "number?", "Person[]")
        default: Default value for new components, or a zero-argument callable
        sanitizers: Sanitizers applied on assignment
        validators: Validators run by Component.validate()
        items: Item options for array types ({"sanitizers", "validators", "items"})
        index: Index declaration used by storables (True or {"direction", "is_unique"})
    """

    def __init__(
        self,
        value_type: Optional[str] = None,
        default: Any = None,
        sanitizers: Optional[List] = None,
        validators: Optional[List] = None,
        items: Optional[Dict[str, Any]] = None,
        index: Any = None,
    ):
        self._value_type_specifier = value_type
        self._default = default
        self._sanitizers = sanitizers
        self._validators = validators
        self._items = items
        self._index = index
        self._name: Optional[str] = None
        self._parent = None
        self._value_type = None

    def __set_name__(self, owner, name):
        self._name = name
        self._parent = owner
        self._value_type = create_value_type(
            self._value_type_specifier,
            self,
            sanitizers=self._sanitizers,
            validators=self._validators,
            items=self._items,
        )

    # Descriptor protocol

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return self.get_value(instance)

    def __set__(self, instance, value):
        self.set_value(instance, value)

    def __delete__(self, instance):
        self.unset_value(instance)

    # Definition

    def get_name(self) -> str:
        return self._name

    def get_parent(self):
        """Return the component class declaring the attribute."""
        return self._parent

    def get_value_type(self):
        return self._value_type

    def get_index(self) -> Any:
        return self._index

    def is_identifier(self) -> bool:
        return False

    def is_primary_identifier(self) -> bool:
        return False

    def is_secondary_identifier(self) -> bool:
        return False

    def describe(self) -> str:
        parent = self._parent.get_component_name() if self._parent is not None else "unknown"
        return f"attribute: '{parent}.{self._name}'"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()} type='{self._value_type}'>"

    def get_default(self) -> Any:
        return self._default

    def evaluate_default(self) -> Any:
        if callable(self._default):
            return self._default()
        return self._default

    # Values

    def is_set(self, component) -> bool:
        values = component._attribute_values
        if self._name in values:
            return values[self._name] is not _UNSET
        origin = component._fork_origin
        return origin is not None and self.is_set(origin)

    def get_value(self, component, throw_if_unset: bool = True) -> Any:
        """Return the value held by a component.

        On a fork, values not overridden locally are read from the origin.
        Components and containers are forked on first read so that later
        mutations stay within the fork.

        Raises:
            UnsetAttributeError: If the attribute is unset and throw_if_unset is True
        """
        values = component._attribute_values
        if self._name in values:
            value = values[self._name]
            if value is not _UNSET:
                return value
        else:
            origin = component._fork_origin
            if origin is not None and self.is_set(origin):
                value = self.get_value(origin)
                if is_component_instance(value) or isinstance(value, (list, tuple, dict)):
                    value = fork(value)
                    values[self._name] = value
                    component._value_sources[self._name] = self.get_value_source(origin)
                return value

        if throw_if_unset:
            raise UnsetAttributeError(self.describe())
        return None

    def set_value(self, component, value: Any, source: str = "local") -> Any:
        """Check, sanitize and assign a value.

        Raises:
            TypeMismatchError: If the value doesn't match the value type
        """
        self._value_type.check_value(value, self)
        value = self._value_type.sanitize_value(value)
        component._attribute_values[self._name] = value
        self.set_value_source(component, source)
        return value

    def unset_value(self, component) -> None:
        if component._fork_origin is not None:
            component._attribute_values[self._name] = _UNSET
        else:
            component._attribute_values.pop(self._name, None)
        component._value_sources.pop(self._name, None)

    def get_value_source(self, component) -> str:
        source = component._value_sources.get(self._name)
        if source is not None:
            return source
        origin = component._fork_origin
        if origin is not None and self._name not in component._attribute_values:
            return self.get_value_source(origin)
        return "local"

    def set_value_source(self, component, source: str) -> None:
        if source not in VALUE_SOURCES:
            raise ValueError(
                f"The specified value source is invalid ({self.describe()}, value source: {source!r})"
            )
        component._value_sources[self._name] = source

    def check_value(self, value: Any) -> None:
        self._value_type.check_value(value, self)

    # Validation

    def run_validators(self, component, attribute_selector: Any = True) -> List[FailedValidator]:
        """Run the validators of the value held by a component.

        Paths of the returned failures are relative to the attribute.
        """
        if not self.is_set(component):
            if component.is_new() and not self._value_type.is_optional():
                return [FailedValidator(REQUIRED_VALIDATOR, "")]
            return []
        return self._value_type.run_validators(self.get_value(component), attribute_selector)

    def validate(self, component, attribute_selector: Any = True) -> None:
        failed_validators = [
            FailedValidator(failed.validator, join_attribute_path([self._name, failed.path]))
            for failed in self.run_validators(component, attribute_selector)
        ]
        if failed_validators:
            raise ValidationError(
                f"The following error(s) occurred while validating the attribute "
                f"'{self._name}': {describe_failed_validators(failed_validators)}",
                failed_validators,
            )

    def is_valid(self, component, attribute_selector: Any = True) -> bool:
        return not self.run_validators(component, attribute_selector)


class IdentifierAttribute(Attribute):
    """Base class of primary and secondary identifiers. Values are strings or numbers."""

    def __set_name__(self, owner, name):
        super().__set_name__(owner, name)
        if str(self._value_type) not in ("string", "number"):
            raise IdentifierError(
                f"The type of an identifier attribute must be 'string' or 'number' "
                f"({self.describe()}, type: '{self._value_type}')"
            )

    def is_identifier(self) -> bool:
        return True


class PrimaryIdentifierAttribute(IdentifierAttribute):
    """The identifier a component is stored under. Immutable once set."""

    def is_primary_identifier(self) -> bool:
        return True

    def set_value(self, component, value: Any, source: str = "local") -> Any:
        if self.is_set(component) and self.get_value(component) != value:
            raise IdentifierError(
                f"The value of a primary identifier attribute cannot be modified ({self.describe()})"
            )
        return super().set_value(component, value, source)


class SecondaryIdentifierAttribute(IdentifierAttribute):
    """An alternative unique identifier."""

    def is_secondary_identifier(self) -> bool:
        return True


def _generate_identifier() -> str:
    return uuid.uuid4().hex


def attribute(value_type: Optional[str] = None, **options) -> Attribute:
    """Declare an attribute.

    Example:
        title = attribute("string", default="Untitled")
        tags = attribute("string[]", default=list, items={"sanitizers": [sanitizers.trim()]})
    """
    return Attribute(value_type, **options)


def primary_identifier(value_type: str = "string", **options) -> PrimaryIdentifierAttribute:
    """Declare the primary identifier. String identifiers default to a random hex id."""
    if value_type == "string":
        options.setdefault("default", _generate_identifier)
    return PrimaryIdentifierAttribute(value_type, **options)


def secondary_identifier(value_type: str = "string", **options) -> SecondaryIdentifierAttribute:
    """Declare a secondary identifier."""
    return SecondaryIdentifierAttribute(value_type, **options)
