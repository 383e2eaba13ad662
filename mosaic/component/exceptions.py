"""Exceptions for the mosaic.component module."""

from typing import List


class ComponentError(Exception):
    """Base exception for all component errors."""

    pass


class TypeMismatchError(ComponentError, TypeError):
    """A value doesn't match the value type of the attribute it is assigned to."""

    def __init__(self, attribute: str, expected_type: str, received_type: str):
        self.attribute = attribute
        self.expected_type = expected_type
        self.received_type = received_type
        super().__init__(
            f"Cannot assign a value of an unexpected type ({attribute}, "
            f"expected type: '{expected_type}', received type: '{received_type}')"
        )


class InvalidTypeSpecifierError(ComponentError, ValueError):
    """A value type specifier cannot be turned into a value type."""

    pass


class UnsetAttributeError(ComponentError, AttributeError):
    """The value of an unset attribute was read."""

    def __init__(self, attribute: str):
        self.attribute = attribute
        super().__init__(f"Cannot get the value of an unset attribute ({attribute})")


class UnknownComponentError(ComponentError, LookupError):
    """A component name cannot be resolved from a component class."""

    pass


class IdentifierError(ComponentError, ValueError):
    """An identifier is missing, malformed or cannot be changed."""

    pass


class SerializationError(ComponentError):
    """Failed to serialize or deserialize a value."""

    pass


class ValidationError(ComponentError, ValueError):
    """One or more validators failed while validating a component."""

    def __init__(self, message: str, failed_validators: List = None):
        self.failed_validators = failed_validators or []
        super().__init__(message)
