"""
Mosaic - Typed components with serialization, forking and document storage.

Submodules:
    mosaic.component - Components, attributes, value types, validation and serialization
    mosaic.store - Storable components persisted in memory or SQLite
"""

from .component import (
    Component,
    EmbeddedComponent,
    provide,
    attribute,
    primary_identifier,
    secondary_identifier,
    validators,
    sanitizers,
    serialize,
    deserialize,
    fork,
    merge,
)
from . import component
from . import store

__all__ = [
    # Submodules
    "component",
    "store",
    # Components
    "Component",
    "EmbeddedComponent",
    "provide",
    # Attributes
    "attribute",
    "primary_identifier",
    "secondary_identifier",
    # Validation and sanitization
    "validators",
    "sanitizers",
    # Serialization and forking
    "serialize",
    "deserialize",
    "fork",
    "merge",
]

__version__ = "0.1.0"
