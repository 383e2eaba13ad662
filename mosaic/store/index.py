"""Index declarations and collection schemas for storables.

Indexes are declared per attribute, or per class with the index() decorator:

    @index({"year": "desc", "title": "asc"})
    class Movie(Storable):
        id = primary_identifier()
        slug = secondary_identifier()
        title = attribute("string", index={"is_unique": True})
        year = attribute("number", index={"direction": "desc"})
        director = attribute("Person")

The collection schema adds the identifier indexes and one index per
attribute referencing another storable ("director.id").
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..component.value_types import ComponentValueType

DIRECTIONS = ("asc", "desc")


@dataclass
class Index:
    """A declared index: attribute names mapped to "asc" or "desc"."""

    attributes: Dict[str, str]
    is_unique: bool = False


@dataclass
class IndexSchema:
    """An index of a collection, with attribute names resolved to document paths."""

    attributes: Dict[str, str]
    is_primary: bool = False
    is_unique: bool = False

    @property
    def name(self) -> str:
        """Readable index name, e.g. "year (desc) + title" or "slug [unique]"."""
        parts = [
            path + (" (desc)" if direction == "desc" else "") for path, direction in self.attributes.items()
        ]
        return " + ".join(parts) + (" [unique]" if self.is_unique else "")


@dataclass
class CollectionSchema:
    indexes: List[IndexSchema] = field(default_factory=list)


@dataclass
class MigrateCollectionResult:
    name: str
    created_indexes: List[str] = field(default_factory=list)
    dropped_indexes: List[str] = field(default_factory=list)


@dataclass
class MigrateStorablesResult:
    collections: List[MigrateCollectionResult] = field(default_factory=list)


def index(attributes: Dict[str, str], is_unique: bool = False):
    """Class decorator declaring an index on a storable.

    Stacked decorators keep their top-to-bottom order.
    """
    declared = Index(dict(attributes), is_unique=is_unique)

    def decorator(cls):
        cls._declared_indexes_ = [declared] + list(getattr(cls, "_declared_indexes_", []))
        return cls

    return decorator


def normalize_attribute_index(attribute) -> Optional[Index]:
    """Turn the index option of an attribute (True or a dict) into an Index."""
    options = attribute.get_index()
    if options is None or options is False:
        return None
    if options is True:
        options = {}
    if not isinstance(options, dict):
        raise ValueError(
            f"The 'index' option should be True or a dict ({attribute.describe()}, index: {options!r})"
        )
    return Index(
        {attribute.get_name(): options.get("direction", "asc")},
        is_unique=bool(options.get("is_unique", False)),
    )


def validate_index(storable, declared: Index) -> None:
    """Raise ValueError if an index doesn't fit the storable it is declared on."""
    if not declared.attributes:
        raise ValueError(f"An index should specify at least one attribute ({storable.describe_component()})")

    for name, direction in declared.attributes.items():
        if not storable.has_attribute(name):
            raise ValueError(
                f"Cannot create an index for an attribute that doesn't exist "
                f"({storable.describe_component()}, attribute: '{name}')"
            )
        if direction not in DIRECTIONS:
            raise ValueError(
                f"The direction of an index should be 'asc' or 'desc' "
                f"({storable.describe_component()}, attribute: '{name}', direction: {direction!r})"
            )

    if len(declared.attributes) == 1:
        (name,) = declared.attributes
        if storable.get_attribute(name).is_identifier():
            raise ValueError(
                f"Cannot explicitly create an index for an identifier attribute "
                f"({storable.describe_component()}, attribute: '{name}')"
            )


def get_reference_path(attribute) -> Optional[str]:
    """Return "<attribute>.<primary identifier>" for attributes referencing a storable, else None."""
    scalar_type = attribute.get_value_type().get_scalar_type()
    if not isinstance(scalar_type, ComponentValueType) or scalar_type.is_class_reference():
        return None
    component = scalar_type.get_component(attribute)
    if not component.is_referenceable() or not component.has_primary_identifier_attribute():
        return None
    return f"{attribute.get_name()}.{component.get_primary_identifier_attribute().get_name()}"


def build_collection_schema(storable) -> CollectionSchema:
    """Derive the indexes of the collection holding a storable.

    Order: primary identifier, secondary identifiers, reference indexes,
    declared single-attribute indexes, declared compound indexes.
    """

    def resolve_path(name: str) -> str:
        return get_reference_path(storable.get_attribute(name)) or name

    indexes = [
        IndexSchema({storable.get_primary_identifier_attribute().get_name(): "asc"}, is_primary=True, is_unique=True)
    ]

    for attribute in storable.get_secondary_identifier_attributes():
        indexes.append(IndexSchema({attribute.get_name(): "asc"}, is_unique=True))

    for attribute in storable.get_attributes():
        if attribute.is_identifier():
            continue
        path = get_reference_path(attribute)
        if path is not None:
            indexes.append(IndexSchema({path: "asc"}))

    declared = storable.get_indexes()
    singles = [declared_index for declared_index in declared if len(declared_index.attributes) == 1]
    compounds = [declared_index for declared_index in declared if len(declared_index.attributes) > 1]

    for declared_index in singles + compounds:
        attributes = {resolve_path(name): direction for name, direction in declared_index.attributes.items()}
        schema_index = IndexSchema(attributes, is_unique=declared_index.is_unique)
        if schema_index not in indexes:
            indexes.append(schema_index)

    return CollectionSchema(indexes=indexes)
