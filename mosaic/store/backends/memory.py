"""In-memory store for testing."""

import copy
from typing import Any, Dict, List, Optional

from ..core import Store
from ..document import Document, DocumentPatch, Projection
from ..exceptions import DuplicateKeyError
from ..index import CollectionSchema, IndexSchema, MigrateCollectionResult
from ..query import Expression
from .evaluation import (
    apply_document_patch,
    find_unique_violation,
    matches_identifier,
    project_document,
    select_documents,
)


class MemoryStore(Store):
    """Store keeping documents in Python lists.

    Useful for testing and temporary storage. Data is lost when the store is
    closed or the process ends. Unique indexes are enforced once the
    collection has been migrated.

    Example:
        store = MemoryStore()
        store.register_storable(Movie)
        store.migrate_storables()

        Movie(title="Inception").save()
    """

    def __init__(self, initial_collections: Optional[Dict[str, List[Document]]] = None):
        super().__init__()
        self._collections: Dict[str, List[Document]] = copy.deepcopy(initial_collections or {})
        self._indexes: Dict[str, List[IndexSchema]] = {}

    def close(self) -> None:
        """Clear the in-memory collections."""
        self._collections.clear()
        self._indexes.clear()

    def _get_collection(self, collection_name: str) -> List[Document]:
        return self._collections.setdefault(collection_name, [])

    def _find_position(self, collection_name: str, identifier_descriptor: Dict[str, Any]) -> Optional[int]:
        for position, document in enumerate(self._get_collection(collection_name)):
            if matches_identifier(document, identifier_descriptor):
                return position
        return None

    def _check_unique_indexes(self, collection_name: str, document: Document, exclude: Optional[int] = None) -> None:
        others = [
            other for position, other in enumerate(self._get_collection(collection_name)) if position != exclude
        ]
        index_name = find_unique_violation(document, others, self._indexes.get(collection_name, []))
        if index_name is not None:
            raise DuplicateKeyError(collection_name, index_name)

    def create_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document: Document) -> bool:
        if self._find_position(collection_name, identifier_descriptor) is not None:
            return False
        self._check_unique_indexes(collection_name, document)
        self._get_collection(collection_name).append(copy.deepcopy(document))
        return True

    def read_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], projection: Optional[Projection] = None
    ) -> Optional[Document]:
        position = self._find_position(collection_name, identifier_descriptor)
        if position is None:
            return None
        return project_document(self._get_collection(collection_name)[position], projection)

    def update_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document_patch: DocumentPatch
    ) -> bool:
        position = self._find_position(collection_name, identifier_descriptor)
        if position is None:
            return False
        collection = self._get_collection(collection_name)
        updated = apply_document_patch(collection[position], document_patch)
        self._check_unique_indexes(collection_name, updated, exclude=position)
        collection[position] = updated
        return True

    def delete_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any]) -> bool:
        position = self._find_position(collection_name, identifier_descriptor)
        if position is None:
            return False
        del self._get_collection(collection_name)[position]
        return True

    def find_documents(
        self,
        *,
        collection_name: str,
        expressions: List[Expression],
        projection: Optional[Projection] = None,
        sort: Optional[Dict[str, str]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        return select_documents(
            self._get_collection(collection_name), expressions, projection=projection, sort=sort, skip=skip, limit=limit
        )

    def count_documents(self, *, collection_name: str, expressions: List[Expression]) -> int:
        return len(select_documents(self._get_collection(collection_name), expressions))

    def migrate_collection(
        self, *, collection_name: str, collection_schema: CollectionSchema, silent: bool = False
    ) -> MigrateCollectionResult:
        existing = {index.name: index for index in self._indexes.get(collection_name, [])}
        wanted = {index.name: index for index in collection_schema.indexes if not index.is_primary}

        self._get_collection(collection_name)
        self._indexes[collection_name] = list(wanted.values())

        return MigrateCollectionResult(
            name=collection_name,
            created_indexes=[name for name in wanted if name not in existing],
            dropped_indexes=[name for name in existing if name not in wanted],
        )
