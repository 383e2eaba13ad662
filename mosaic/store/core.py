"""Core Store class for persisting storable components as documents."""

import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..component.attribute_selector import (
    create_attribute_selector_from_names,
    merge_attribute_selectors,
    pick_from_attribute_selector,
)
from ..component.serialization import deserialize, serialize
from ..component.utilities import get_type_of, is_component_class
from .document import (
    Document,
    DocumentPatch,
    Projection,
    build_document_patch,
    build_projection,
    delete_undefined_properties,
)
from .exceptions import (
    ComponentExistsError,
    ComponentMissingError,
    DuplicateKeyError,
    RegistrationError,
    TracingError,
    UniqueAttributeExistsError,
)
from .index import CollectionSchema, MigrateCollectionResult, MigrateStorablesResult, build_collection_schema
from .query import Expression, to_document_expressions
from .storable import is_storable_class

logger = logging.getLogger(__name__)


@dataclass
class TraceEntry:
    """One traced store operation."""

    operation: str
    params: Dict[str, Any]
    result: Any = None
    error: Optional[BaseException] = None


def traced(operation: str):
    """Record calls of a store method in the trace log while tracing is active."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            params = {"args": args, **kwargs}
            logger.debug("%s %r", operation, params)
            try:
                result = method(self, *args, **kwargs)
            except Exception as e:
                if self._trace is not None:
                    self._trace.append(TraceEntry(operation, params, error=e))
                raise
            if self._trace is not None:
                self._trace.append(TraceEntry(operation, params, result=result))
            return result

        return wrapper

    return decorator


class Store(ABC):
    """Persists storable components as documents in collections.

    The Store handles registration, serialization, queries and index schemas.
    Subclasses implement the document primitives (create_document,
    read_document, ...) for a concrete storage mechanism.

    Example:
        from mosaic.store import connect

        store = connect("sqlite:///movies.db")
        store.register_root_component(Application)
        store.migrate_storables()

        movie = Movie(title="Inception", year=2010)
        store.save(movie)

        loaded = store.load(Movie.instantiate({"id": movie.id}), attribute_selector={"title": True})
        recent = store.find(Movie, {"year": {"$greaterThan": 2000}}, sort={"year": "desc"})
    """

    def __init__(self):
        self._root_components: List[type] = []
        self._storables: Dict[str, type] = {}
        self._trace: Optional[List[TraceEntry]] = None

    def close(self) -> None:
        """Release the resources held by the store."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # Registration

    def register_root_component(self, root_component: type) -> None:
        """Register every storable reachable from a root component.

        The root itself and all the components it provides (deeply) are
        registered when they are storable.

        Raises:
            RegistrationError: If no storable component is found
        """
        if not is_component_class(root_component):
            raise RegistrationError(
                f"Expected a component class, but received a value of type '{get_type_of(root_component)}'"
            )

        found = False
        for component in [root_component] + root_component.get_provided_components(deep=True):
            if is_storable_class(component):
                self.register_storable(component)
                found = True

        if not found:
            raise RegistrationError(
                f"No storable components were found from the specified root component "
                f"({root_component.describe_component()})"
            )

        self._root_components.append(root_component)

    def get_root_components(self) -> List[type]:
        return list(self._root_components)

    def register_storable(self, storable: type) -> None:
        """Register a storable class under its component name.

        Registering the same class twice is a no-op.

        Raises:
            RegistrationError: If the class isn't storable, belongs to another
                store, or its name is taken
        """
        if not is_storable_class(storable):
            raise RegistrationError(
                f"Expected a storable component class, but received a value of type '{get_type_of(storable)}'"
            )

        store = storable.__dict__.get("_store_")
        if store is self:
            return
        if store is not None:
            raise RegistrationError(
                f"Cannot register a storable component that is already registered in another store "
                f"({storable.describe_component()})"
            )

        name = storable.get_component_name()
        if name in self._storables:
            raise RegistrationError(
                f"A storable component with the same name is already registered ({storable.describe_component()})"
            )

        storable._store_ = self
        self._storables[name] = storable

    def get_storable(self, name: str) -> type:
        storable = self._storables.get(name)
        if storable is None:
            raise RegistrationError(f"The storable component '{name}' is not registered in the store")
        return storable

    def has_storable(self, name: str) -> bool:
        return name in self._storables

    def get_storables(self) -> List[type]:
        return list(self._storables.values())

    def _get_registered_storable(self, storable: Any) -> type:
        cls = storable if isinstance(storable, type) else type(storable)
        registered = self.get_storable(cls.get_component_name())
        if cls is not registered and not issubclass(cls, registered):
            raise RegistrationError(
                f"The storable component '{cls.get_component_name()}' is not registered in the store"
            )
        return cls

    def _get_collection_name(self, storable: type) -> str:
        return storable.get_component_name()

    # Operations

    @traced("load")
    def load(self, storable, attribute_selector: Any = True, throw_if_missing: bool = True):
        """Load the selected attributes of a storable from the store.

        Args:
            storable: A storable instance with an identifier set
            attribute_selector: The attributes to load (identifiers are always included)
            throw_if_missing: Raise if no document matches the identifier

        Returns:
            The storable, or None if it's missing and throw_if_missing is False

        Raises:
            ComponentMissingError: If no document matches and throw_if_missing is True
        """
        cls = self._get_registered_storable(storable)
        identifier_descriptor = storable.get_identifier_descriptor()

        resolved_selector = storable.resolve_attribute_selector(attribute_selector)
        storable.before_load(resolved_selector)

        attribute_selector = merge_attribute_selectors(
            resolved_selector, create_attribute_selector_from_names(identifier_descriptor)
        )

        document = self.read_document(
            collection_name=self._get_collection_name(cls),
            identifier_descriptor=self.to_document(cls, identifier_descriptor),
            projection=build_projection(attribute_selector),
        )

        if document is None:
            if throw_if_missing:
                raise ComponentMissingError(
                    f"Cannot load a component that is missing from the store "
                    f"({cls.describe_component()}, {cls.describe_identifier_descriptor(identifier_descriptor)})"
                )
            return None

        document = pick_from_attribute_selector(document, attribute_selector, include_attribute_names=["__component"])
        serialized = self.from_document(cls, document)
        storable.deserialize(serialized, source="store")

        # None values are not stored, so selected optional attributes come back as None
        for name in attribute_selector:
            attribute = cls.get_attribute(name)
            if name not in serialized and attribute.get_value_type().is_optional():
                attribute.set_value(storable, None, source="store")

        storable.after_load(resolved_selector)
        return storable

    @traced("save")
    def save(
        self,
        storable,
        attribute_selector: Any = True,
        throw_if_missing: Optional[bool] = None,
        throw_if_exists: Optional[bool] = None,
    ):
        """Save the selected attributes of a storable.

        New storables are created, others are patched. The before_save() and
        after_save() hooks of the storable are called around the write.

        Args:
            storable: The storable instance
            attribute_selector: The attributes to save
            throw_if_missing: Raise if a non-new storable is missing (default: not new)
            throw_if_exists: Raise if a new storable already exists (default: new)

        Returns:
            The storable, or None if nothing was saved and no error was requested

        Raises:
            ValueError: If throw_if_missing and throw_if_exists are both True
            ValidationError: If the storable is invalid
            ComponentMissingError, ComponentExistsError, UniqueAttributeExistsError
        """
        is_new = storable.is_new()
        if throw_if_missing is None:
            throw_if_missing = not is_new
        if throw_if_exists is None:
            throw_if_exists = is_new
        if throw_if_missing and throw_if_exists:
            raise ValueError("The 'throw_if_missing' and 'throw_if_exists' options cannot be both set to true")

        cls = self._get_registered_storable(storable)

        storable.before_save(storable.resolve_attribute_selector(attribute_selector))

        # The hook may have modified the storable
        identifier_descriptor = storable.get_identifier_descriptor()
        resolved_selector = storable.resolve_attribute_selector(attribute_selector)
        storable.validate(resolved_selector)

        attribute_selector = storable.resolve_attribute_selector(
            attribute_selector, set_attributes_only=True, aggregation_mode="intersection"
        )
        attribute_selector = merge_attribute_selectors(
            attribute_selector, create_attribute_selector_from_names(identifier_descriptor)
        )

        serialized = storable.serialize(attribute_selector=attribute_selector, include_is_new_marks=False)
        document = self.to_document(cls, serialized)
        collection_name = self._get_collection_name(cls)
        document_identifier = self.to_document(cls, identifier_descriptor)

        try:
            if is_new:
                saved = self.create_document(
                    collection_name=collection_name,
                    identifier_descriptor=document_identifier,
                    document=delete_undefined_properties(document),
                )
            else:
                saved = self.update_document(
                    collection_name=collection_name,
                    identifier_descriptor=document_identifier,
                    document_patch=build_document_patch(document),
                )
        except DuplicateKeyError as e:
            raise UniqueAttributeExistsError(
                f"Cannot save a component with an attribute value that should be unique but already "
                f"exists in the store ({cls.describe_component()}, "
                f"{cls.describe_identifier_descriptor(identifier_descriptor)}, index: '{e.index_name}')",
                e.index_name,
            ) from e

        if not saved:
            description = f"{cls.describe_component()}, {cls.describe_identifier_descriptor(identifier_descriptor)}"
            if throw_if_missing:
                raise ComponentMissingError(
                    f"Cannot save a non-new component that is missing from the store ({description})"
                )
            if throw_if_exists:
                raise ComponentExistsError(
                    f"Cannot save a new component that already exists in the store ({description})"
                )
            return None

        storable.mark_as_not_new()
        storable.traverse_attributes(
            lambda attribute, component: attribute.set_value_source(component, "store"),
            attribute_selector=attribute_selector,
            set_attributes_only=True,
        )
        storable.after_save(resolved_selector)
        return storable

    @traced("delete")
    def delete(self, storable, throw_if_missing: bool = True):
        """Delete a storable from the store. The storable is marked as new afterwards.

        The before_delete() and after_delete() hooks of the storable are called
        around the deletion.

        Raises:
            ComponentMissingError: If it's missing and throw_if_missing is True
        """
        cls = self._get_registered_storable(storable)
        resolved_selector = storable.resolve_attribute_selector(True)
        storable.before_delete(resolved_selector)

        identifier_descriptor = storable.get_identifier_descriptor()
        deleted = self.delete_document(
            collection_name=self._get_collection_name(cls),
            identifier_descriptor=self.to_document(cls, identifier_descriptor),
        )

        if not deleted:
            if throw_if_missing:
                raise ComponentMissingError(
                    f"Cannot delete a component that is missing from the store "
                    f"({cls.describe_component()}, {cls.describe_identifier_descriptor(identifier_descriptor)})"
                )
            return None

        storable.mark_as_new()
        storable.after_delete(resolved_selector)
        return storable

    @traced("find")
    def find(
        self,
        storable: type,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, str]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Find the storables matching a query.

        Only the primary identifier of each result is fetched. Use load() to
        fetch more attributes.

        Args:
            storable: The storable class
            query: Query on attribute values (see mosaic.store.query)
            sort: Attribute names mapped to "asc" or "desc"
            skip: Number of matching documents to skip
            limit: Maximum number of documents to return

        Returns:
            List of storable instances (not new)
        """
        cls = self._get_registered_storable(storable)
        expressions = self.to_document_expressions(cls, self._serialize_query(query))

        attribute_selector = {cls.get_primary_identifier_attribute().get_name(): True}
        documents = self.find_documents(
            collection_name=self._get_collection_name(cls),
            expressions=expressions,
            projection=build_projection(attribute_selector),
            sort=sort,
            skip=skip,
            limit=limit,
        )

        storables = []
        for document in documents:
            document = pick_from_attribute_selector(document, attribute_selector, include_attribute_names=["__component"])
            storables.append(cls.recreate(self.from_document(cls, document), source="store"))
        return storables

    @traced("count")
    def count(self, storable: type, query: Optional[Dict[str, Any]] = None) -> int:
        cls = self._get_registered_storable(storable)
        expressions = self.to_document_expressions(cls, self._serialize_query(query))
        return self.count_documents(collection_name=self._get_collection_name(cls), expressions=expressions)

    def _serialize_query(self, query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        # Components in queries are matched by reference
        return serialize(query or {}, include_is_new_marks=False, _is_deep=True)

    # Tracing

    def start_trace(self) -> None:
        self._trace = []

    def stop_trace(self) -> None:
        self._trace = None

    def get_trace(self) -> List[TraceEntry]:
        if self._trace is None:
            raise TracingError("The store is not currently tracing")
        return list(self._trace)

    # Schemas and migrations

    def get_collection_schema(self, storable: type) -> CollectionSchema:
        return build_collection_schema(self._get_registered_storable(storable))

    def migrate_storables(self, silent: bool = False) -> MigrateStorablesResult:
        """Create and drop indexes so that every collection matches its schema."""
        results = []
        for storable in self.get_storables():
            result = self.migrate_collection(
                collection_name=self._get_collection_name(storable),
                collection_schema=self.get_collection_schema(storable),
                silent=silent,
            )
            if not silent:
                for name in result.created_indexes:
                    logger.info("Created index '%s' in collection '%s'", name, result.name)
                for name in result.dropped_indexes:
                    logger.info("Dropped index '%s' from collection '%s'", name, result.name)
            results.append(result)
        return MigrateStorablesResult(collections=results)

    # Document conversion

    def to_document(self, storable: type, value: Any) -> Any:
        """Convert serialized values to their document form."""
        return deserialize(value)

    def from_document(self, storable: type, document: Any) -> Any:
        """Convert a document back to serialized values."""
        return serialize(document)

    def to_document_expressions(self, storable: type, query: Dict[str, Any]) -> List[Expression]:
        return to_document_expressions(self.to_document(storable, query))

    # Document primitives

    @abstractmethod
    def create_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document: Document) -> bool:
        """Insert a document.

        Returns:
            False if a document with the same identifier already exists

        Raises:
            DuplicateKeyError: If a unique index would be violated
        """
        pass

    @abstractmethod
    def read_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], projection: Optional[Projection]
    ) -> Optional[Document]:
        """Return the document matching the identifier, or None."""
        pass

    @abstractmethod
    def update_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document_patch: DocumentPatch
    ) -> bool:
        """Apply a {"$set", "$unset"} patch.

        Returns:
            False if no document matches the identifier

        Raises:
            DuplicateKeyError: If a unique index would be violated
        """
        pass

    @abstractmethod
    def delete_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any]) -> bool:
        """Delete a document. Returns False if it didn't exist."""
        pass

    @abstractmethod
    def find_documents(
        self,
        *,
        collection_name: str,
        expressions: List[Expression],
        projection: Optional[Projection],
        sort: Optional[Dict[str, str]],
        skip: Optional[int],
        limit: Optional[int],
    ) -> List[Document]:
        pass

    @abstractmethod
    def count_documents(self, *, collection_name: str, expressions: List[Expression]) -> int:
        pass

    @abstractmethod
    def migrate_collection(
        self, *, collection_name: str, collection_schema: CollectionSchema, silent: bool = False
    ) -> MigrateCollectionResult:
        pass


def connect(url: str) -> Store:
    """Create a Store from a URL.

    Args:
        url: Connection URL. Supported formats:
            - "memory://" - In-memory storage
            - "sqlite:///path/to/db.sqlite" - SQLite file
            - "sqlite:///:memory:" - SQLite in-memory

    Returns:
        Configured Store instance

    Raises:
        ValueError: If the URL scheme is not supported

    Example:
        store = connect("sqlite:///movies.db")
        store.register_root_component(Application)
    """
    from .backends.memory import MemoryStore
    from .backends.sqlite import SQLiteStore

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()

    if scheme == "memory":
        return MemoryStore()

    if scheme == "sqlite":
        # sqlite:///path -> path is /path, strip the leading slash
        path = parsed.path
        if path.startswith("/"):
            path = path[1:]
        return SQLiteStore(path or ":memory:")

    raise ValueError(f"Unknown storage scheme: {scheme}. Supported: memory, sqlite")
