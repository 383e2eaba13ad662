"""Storable components: components persisted in a store.

Example:
    class Movie(Storable):
        id = primary_identifier()
        title = attribute("string")

    store = connect("memory://")
    store.register_storable(Movie)

    movie = Movie(title="Inception").save()
    same = Movie.get(movie.id, attribute_selector={"title": True})
"""

from typing import Any, Dict, List, Optional

from ..component import Component
from .exceptions import StoreError
from .index import Index, normalize_attribute_index, validate_index


def is_storable_class(value: Any) -> bool:
    return isinstance(value, type) and getattr(value, "__mosaic_storable__", False)


class Storable(Component):
    """A component that can be loaded from and saved to a store.

    The store is attached when the class is registered with
    Store.register_storable() or Store.register_root_component().
    """

    __mosaic_storable__ = True
    _store_ = None
    _declared_indexes_: List[Index] = []

    @classmethod
    def get_store(cls):
        """Return the store the class is registered in.

        Raises:
            StoreError: If the class isn't registered in a store
        """
        if cls._store_ is None:
            raise StoreError(
                f"Cannot get the store of a storable component that is not registered "
                f"({cls.describe_component()})"
            )
        return cls._store_

    @classmethod
    def has_store(cls) -> bool:
        return cls._store_ is not None

    @classmethod
    def get_indexes(cls) -> List[Index]:
        """Return the declared indexes: attribute options first, then the index() decorators."""
        indexes = []
        for attribute in cls.get_attributes():
            attribute_index = normalize_attribute_index(attribute)
            if attribute_index is not None:
                indexes.append(attribute_index)
        indexes.extend(cls._declared_indexes_)
        for declared in indexes:
            validate_index(cls, declared)
        return indexes

    # Store shortcuts

    @classmethod
    def get(
        cls, identifier: Any, attribute_selector: Any = True, throw_if_missing: bool = True
    ) -> Optional["Storable"]:
        """Load a component by primary identifier value or identifier descriptor."""
        storable = cls.instantiate(cls.normalize_identifier_descriptor(identifier))
        return cls.get_store().load(storable, attribute_selector=attribute_selector, throw_if_missing=throw_if_missing)

    @classmethod
    def find(
        cls,
        query: Optional[Dict[str, Any]] = None,
        attribute_selector: Any = True,
        sort: Optional[Dict[str, str]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List["Storable"]:
        """Find components, then load the selected attributes of each."""
        store = cls.get_store()
        storables = store.find(cls, query, sort=sort, skip=skip, limit=limit)
        for storable in storables:
            store.load(storable, attribute_selector=attribute_selector)
        return storables

    @classmethod
    def count(cls, query: Optional[Dict[str, Any]] = None) -> int:
        return cls.get_store().count(cls, query)

    def load(self, attribute_selector: Any = True, throw_if_missing: bool = True) -> Optional["Storable"]:
        return self.get_store().load(self, attribute_selector=attribute_selector, throw_if_missing=throw_if_missing)

    def save(
        self,
        attribute_selector: Any = True,
        throw_if_missing: Optional[bool] = None,
        throw_if_exists: Optional[bool] = None,
    ) -> Optional["Storable"]:
        return self.get_store().save(
            self,
            attribute_selector=attribute_selector,
            throw_if_missing=throw_if_missing,
            throw_if_exists=throw_if_exists,
        )

    def delete(self, throw_if_missing: bool = True) -> Optional["Storable"]:
        return self.get_store().delete(self, throw_if_missing=throw_if_missing)

    # Hooks
    #
    # Called by the store with the resolved attribute selector. Raising in a
    # before_* hook aborts the operation.

    def before_load(self, attribute_selector: Dict[str, Any]) -> None:
        pass

    def after_load(self, attribute_selector: Dict[str, Any]) -> None:
        pass

    def before_save(self, attribute_selector: Dict[str, Any]) -> None:
        pass

    def after_save(self, attribute_selector: Dict[str, Any]) -> None:
        pass

    def before_delete(self, attribute_selector: Dict[str, Any]) -> None:
        pass

    def after_delete(self, attribute_selector: Dict[str, Any]) -> None:
        pass
