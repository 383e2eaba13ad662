"""SQLite store."""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from ...component.serialization import deserialize, serialize
from ..core import Store
from ..document import Document, DocumentPatch, Projection
from ..exceptions import DuplicateKeyError
from ..index import CollectionSchema, IndexSchema, MigrateCollectionResult
from ..query import Expression
from .evaluation import apply_document_patch, find_unique_violation, project_document, select_documents

logger = logging.getLogger(__name__)


class SQLiteStore(Store):
    """Store keeping documents as JSON in a SQLite database.

    Zero configuration required. Good for development and single-user
    production scenarios. Migrated index schemas are recorded in the
    database, and unique indexes are enforced on every write.

    Example:
        store = SQLiteStore("movies.db")

        # Or in-memory
        store = SQLiteStore(":memory:")
    """

    def __init__(self, path: str = ":memory:"):
        super().__init__()
        self._path = path
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_tables()
        logger.debug("Connected to SQLite database %s", path)

    def _create_tables(self) -> None:
        """Create the documents and indexes tables if they don't exist."""
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                collection TEXT NOT NULL,
                document TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS indexes (
                collection TEXT NOT NULL,
                name TEXT NOT NULL,
                attributes TEXT NOT NULL,
                is_unique INTEGER NOT NULL,
                PRIMARY KEY (collection, name)
            )
            """
        )
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.debug("Closed SQLite database %s", self._path)

    # Encoding

    def _encode(self, document: Document) -> str:
        return json.dumps(serialize(document))

    def _decode(self, text: str) -> Document:
        return deserialize(json.loads(text))

    # Rows

    def _find_row(self, collection_name: str, identifier_descriptor: Dict[str, Any]) -> Optional[sqlite3.Row]:
        clauses = ["collection = ?"]
        params: List[Any] = [collection_name]
        for name, value in identifier_descriptor.items():
            clauses.append("json_extract(document, ?) = ?")
            params.extend([f"$.{name}", value])
        cursor = self._conn.execute(
            f"SELECT id, document FROM documents WHERE {' AND '.join(clauses)} LIMIT 1", params
        )
        return cursor.fetchone()

    def _load_documents(self, collection_name: str) -> List[Tuple[int, Document]]:
        cursor = self._conn.execute(
            "SELECT id, document FROM documents WHERE collection = ? ORDER BY id", (collection_name,)
        )
        return [(row["id"], self._decode(row["document"])) for row in cursor]

    def _get_indexes(self, collection_name: str) -> List[IndexSchema]:
        cursor = self._conn.execute(
            "SELECT attributes, is_unique FROM indexes WHERE collection = ? ORDER BY rowid", (collection_name,)
        )
        return [IndexSchema(json.loads(row["attributes"]), is_unique=bool(row["is_unique"])) for row in cursor]

    def _check_unique_indexes(self, collection_name: str, document: Document, exclude: Optional[int] = None) -> None:
        others = [other for row_id, other in self._load_documents(collection_name) if row_id != exclude]
        index_name = find_unique_violation(document, others, self._get_indexes(collection_name))
        if index_name is not None:
            raise DuplicateKeyError(collection_name, index_name)

    # Document primitives

    def create_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document: Document) -> bool:
        if self._find_row(collection_name, identifier_descriptor) is not None:
            return False
        self._check_unique_indexes(collection_name, document)
        self._conn.execute(
            "INSERT INTO documents (collection, document) VALUES (?, ?)",
            (collection_name, self._encode(document)),
        )
        self._conn.commit()
        return True

    def read_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], projection: Optional[Projection] = None
    ) -> Optional[Document]:
        row = self._find_row(collection_name, identifier_descriptor)
        if row is None:
            return None
        return project_document(self._decode(row["document"]), projection)

    def update_document(
        self, *, collection_name: str, identifier_descriptor: Dict[str, Any], document_patch: DocumentPatch
    ) -> bool:
        row = self._find_row(collection_name, identifier_descriptor)
        if row is None:
            return False
        updated = apply_document_patch(self._decode(row["document"]), document_patch)
        self._check_unique_indexes(collection_name, updated, exclude=row["id"])
        self._conn.execute("UPDATE documents SET document = ? WHERE id = ?", (self._encode(updated), row["id"]))
        self._conn.commit()
        return True

    def delete_document(self, *, collection_name: str, identifier_descriptor: Dict[str, Any]) -> bool:
        row = self._find_row(collection_name, identifier_descriptor)
        if row is None:
            return False
        self._conn.execute("DELETE FROM documents WHERE id = ?", (row["id"],))
        self._conn.commit()
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
        documents = [document for _, document in self._load_documents(collection_name)]
        return select_documents(documents, expressions, projection=projection, sort=sort, skip=skip, limit=limit)

    def count_documents(self, *, collection_name: str, expressions: List[Expression]) -> int:
        documents = [document for _, document in self._load_documents(collection_name)]
        return len(select_documents(documents, expressions))

    def migrate_collection(
        self, *, collection_name: str, collection_schema: CollectionSchema, silent: bool = False
    ) -> MigrateCollectionResult:
        existing = [index.name for index in self._get_indexes(collection_name)]
        wanted = {index.name: index for index in collection_schema.indexes if not index.is_primary}

        created = [name for name in wanted if name not in existing]
        dropped = [name for name in existing if name not in wanted]

        for name in dropped:
            self._conn.execute("DELETE FROM indexes WHERE collection = ? AND name = ?", (collection_name, name))
        for name in created:
            index = wanted[name]
            self._conn.execute(
                "INSERT INTO indexes (collection, name, attributes, is_unique) VALUES (?, ?, ?, ?)",
                (collection_name, name, json.dumps(index.attributes), int(index.is_unique)),
            )
        self._conn.commit()

        return MigrateCollectionResult(name=collection_name, created_indexes=created, dropped_indexes=dropped)
