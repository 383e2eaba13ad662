"""Components with typed attributes, identifiers, validation and serialization.

Quick Start:
    from mosaic.component import Component, attribute, primary_identifier, validators

    class Movie(Component):
        id = primary_identifier()
        title = attribute("string", validators=[validators.not_empty()])
        year = attribute("number?")

    movie = Movie(title="Inception", year=2010)
    movie.validate()
    data = movie.serialize()
    # {"__component": "Movie", "__new": True, "id": "...", "title": "Inception", "year": 2010}

    copy = Movie.deserialize_instance(data)

Value types:
    - any, boolean, number, string, object, Date, RegExp
    - "X?" for optional values, "X[]" for arrays
    - "Movie" for component instances, "typeof Movie" for component classes

Key Classes:
    - Component: Base class of all components
    - EmbeddedComponent: Component stored inside its owner
    - Attribute: Attribute descriptor (see attribute(), primary_identifier())
"""

from .component import Component, EmbeddedComponent, provide
from .attribute import (
    Attribute,
    IdentifierAttribute,
    PrimaryIdentifierAttribute,
    SecondaryIdentifierAttribute,
    attribute,
    primary_identifier,
    secondary_identifier,
)
from .attribute_selector import (
    AttributeSelector,
    normalize_attribute_selector,
    create_attribute_selector_from_names,
    create_attribute_selector_from_attributes,
    get_from_attribute_selector,
    set_within_attribute_selector,
    clone_attribute_selector,
    attribute_selector_includes,
    attribute_selectors_are_equal,
    merge_attribute_selectors,
    intersect_attribute_selectors,
    remove_from_attribute_selector,
    iterate_over_attribute_selector,
    pick_from_attribute_selector,
    traverse_attribute_selector,
)
from .validation import Validator, FailedValidator, validators, run_validators
from .sanitization import Sanitizer, sanitizers, run_sanitizers
from .serialization import serialize, deserialize
from .forking import fork, merge
from .value_types import (
    ValueType,
    AnyValueType,
    BooleanValueType,
    NumberValueType,
    StringValueType,
    ObjectValueType,
    DateValueType,
    RegExpValueType,
    ArrayValueType,
    ComponentValueType,
    create_value_type,
)
from .utilities import get_type_of, join_attribute_path
from .exceptions import (
    ComponentError,
    TypeMismatchError,
    InvalidTypeSpecifierError,
    UnsetAttributeError,
    UnknownComponentError,
    IdentifierError,
    SerializationError,
    ValidationError,
)

__all__ = [
    # Components
    "Component",
    "EmbeddedComponent",
    "provide",
    # Attributes
    "Attribute",
    "IdentifierAttribute",
    "PrimaryIdentifierAttribute",
    "SecondaryIdentifierAttribute",
    "attribute",
    "primary_identifier",
    "secondary_identifier",
    # Attribute selectors
    "AttributeSelector",
    "normalize_attribute_selector",
    "create_attribute_selector_from_names",
    "create_attribute_selector_from_attributes",
    "get_from_attribute_selector",
    "set_within_attribute_selector",
    "clone_attribute_selector",
    "attribute_selector_includes",
    "attribute_selectors_are_equal",
    "merge_attribute_selectors",
    "intersect_attribute_selectors",
    "remove_from_attribute_selector",
    "iterate_over_attribute_selector",
    "pick_from_attribute_selector",
    "traverse_attribute_selector",
    # Validation and sanitization
    "Validator",
    "FailedValidator",
    "validators",
    "run_validators",
    "Sanitizer",
    "sanitizers",
    "run_sanitizers",
    # Serialization and forking
    "serialize",
    "deserialize",
    "fork",
    "merge",
    # Value types
    "ValueType",
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
    # Helpers
    "get_type_of",
    "join_attribute_path",
    # Exceptions
    "ComponentError",
    "TypeMismatchError",
    "InvalidTypeSpecifierError",
    "UnsetAttributeError",
    "UnknownComponentError",
    "IdentifierError",
    "SerializationError",
    "ValidationError",
]
