"""Exceptions for the mosaic.store module."""

from typing import Optional


class StoreError(Exception):
    """Base exception for all store errors."""

    code: Optional[str] = None


class RegistrationError(StoreError):
    """A storable component cannot be registered in a store."""

    pass


class ComponentMissingError(StoreError, LookupError):
    """A component is missing from the store."""

    code = "COMPONENT_IS_MISSING_FROM_STORE"


class ComponentExistsError(StoreError):
    """A new component has an identifier that is already stored."""

    code = "COMPONENT_ALREADY_EXISTS_IN_STORE"


class UniqueAttributeExistsError(StoreError):
    """A saved value violates a unique index."""

    code = "UNIQUE_ATTRIBUTE_ALREADY_EXISTS_IN_STORE"

    def __init__(self, message: str, index_name: str):
        self.index_name = index_name
        super().__init__(message)


class DuplicateKeyError(StoreError):
    """Raised by backends when a write violates a unique index."""

    def __init__(self, collection_name: str, index_name: str):
        self.collection_name = collection_name
        self.index_name = index_name
        super().__init__(
            f"A document violates a unique index (collection: '{collection_name}', index: '{index_name}')"
        )


class QueryError(StoreError, ValueError):
    """A query is malformed or uses an unsupported operator."""

    pass


class TracingError(StoreError):
    """The trace was requested while the store is not tracing."""

    pass
