"""Document storage for storable components.

This module persists Storable components as documents in named
collections, one collection per registered storable.

Quick Start:
    from mosaic.component import attribute, primary_identifier
    from mosaic.store import Storable, connect

    class Movie(Storable):
        id = primary_identifier()
        title = attribute("string")
        year = attribute("number?", index={"direction": "desc"})

    # Connect to storage
    store = connect("sqlite:///movies.db")
    store.register_storable(Movie)
    store.migrate_storables()

    # Save and load
    movie = Movie(title="Inception", year=2010).save()
    loaded = Movie.get(movie.id, attribute_selector={"title": True})

    # Query
    for movie in Movie.find({"year": {"$greaterThan": 2000}}, sort={"year": "desc"}):
        print(movie.title)

Supported backends:
    - memory://           In-memory storage (testing)
    - sqlite:///path.db   SQLite file storage
    - sqlite:///:memory:  SQLite in-memory

Key Classes:
    - Storable: Component that can be saved to a store
    - Store: Registration, operations, tracing and migrations
    - connect(): Create a Store from a URL

Backend Classes:
    - MemoryStore: In-memory storage for testing
    - SQLiteStore: SQLite file storage
"""

from .core import Store, TraceEntry, connect
from .storable import Storable, is_storable_class
from .backends import MemoryStore, SQLiteStore
from .index import (
    Index,
    IndexSchema,
    CollectionSchema,
    MigrateCollectionResult,
    MigrateStorablesResult,
    index,
)
from .query import Expression, to_document_expressions
from .document import build_projection, build_document_patch, delete_undefined_properties
from .exceptions import (
    StoreError,
    RegistrationError,
    ComponentMissingError,
    ComponentExistsError,
    UniqueAttributeExistsError,
    DuplicateKeyError,
    QueryError,
    TracingError,
)

__all__ = [
    # Main API
    "Store",
    "Storable",
    "TraceEntry",
    "connect",
    "is_storable_class",
    # Backends
    "MemoryStore",
    "SQLiteStore",
    # Indexes
    "Index",
    "IndexSchema",
    "CollectionSchema",
    "MigrateCollectionResult",
    "MigrateStorablesResult",
    "index",
    # Queries and documents
    "Expression",
    "to_document_expressions",
    "build_projection",
    "build_document_patch",
    "delete_undefined_properties",
    # Exceptions
    "StoreError",
    "RegistrationError",
    "ComponentMissingError",
    "ComponentExistsError",
    "UniqueAttributeExistsError",
    "DuplicateKeyError",
    "QueryError",
    "TracingError",
]
