"""Tests for the in-memory store and the shared document evaluator."""

import re
from datetime import datetime

import pytest

from mosaic.store import CollectionSchema, DuplicateKeyError, IndexSchema, MemoryStore
from mosaic.store.backends.evaluation import (
    apply_document_patch,
    evaluate_expression,
    find_unique_violation,
    project_document,
    select_documents,
    sort_documents,
)


@pytest.fixture
def documents():
    return [
        {"__component": "Movie", "id": "1", "title": "Inception", "year": 2010, "genres": ["sci-fi", "thriller"]},
        {"__component": "Movie", "id": "2", "title": "The Matrix", "year": 1999, "genres": ["sci-fi"]},
        {"__component": "Movie", "id": "3", "title": "Amélie", "genres": []},
    ]


class TestEvaluation:
    """Tests for expression evaluation."""

    def test_basic_operators(self, documents):
        """Comparison operators ignore missing and mismatched values."""
        inception, matrix, amelie = documents

        assert evaluate_expression(inception, ("year", "$equal", 2010))
        assert evaluate_expression(matrix, ("year", "$notEqual", 2010))
        assert evaluate_expression(inception, ("year", "$greaterThan", 2000))
        assert not evaluate_expression(amelie, ("year", "$lessThan", 2000))
        assert not evaluate_expression(inception, ("title", "$greaterThan", 2000))
        assert evaluate_expression(matrix, ("year", "$any", [1999, 2003]))
        assert evaluate_expression(amelie, ("year", "$equal", None))

    def test_string_operators(self, documents):
        """String operators only match strings."""
        inception = documents[0]

        assert evaluate_expression(inception, ("title", "$includes", "cep"))
        assert evaluate_expression(inception, ("title", "$startsWith", "Inc"))
        assert evaluate_expression(inception, ("title", "$endsWith", "tion"))
        assert evaluate_expression(inception, ("title", "$matches", re.compile("^inc", re.IGNORECASE)))
        assert not evaluate_expression(inception, ("year", "$includes", "20"))

    def test_array_operators(self, documents):
        """Array operators apply subexpressions to items."""
        inception, matrix, amelie = documents

        assert evaluate_expression(inception, ("genres", "$some", [("", "$equal", "thriller")]))
        assert evaluate_expression(matrix, ("genres", "$every", [("", "$equal", "sci-fi")]))
        assert evaluate_expression(amelie, ("genres", "$every", [("", "$equal", "sci-fi")]))
        assert evaluate_expression(inception, ("genres", "$length", 2))
        assert not evaluate_expression(inception, ("title", "$some", [("", "$equal", "I")]))

    def test_logical_operators(self, documents):
        """Logical operators combine expression lists."""
        inception = documents[0]

        assert evaluate_expression(inception, ("year", "$not", [("", "$equal", 1999)]))
        assert evaluate_expression(inception, ("", "$or", [[("year", "$equal", 1999)], [("id", "$equal", "1")]]))
        assert not evaluate_expression(inception, ("", "$and", [[("year", "$equal", 2010)], [("id", "$equal", "2")]]))
        assert evaluate_expression(inception, ("", "$nor", [[("year", "$equal", 1999)]]))

    def test_unknown_operator(self, documents):
        """Unknown operators cannot be evaluated."""
        with pytest.raises(ValueError, match="Cannot evaluate the operator"):
            evaluate_expression(documents[0], ("year", "$near", 2010))

    def test_sort_documents(self, documents):
        """Missing values come first in ascending order."""
        assert [d["id"] for d in sort_documents(documents, {"year": "asc"})] == ["3", "2", "1"]
        assert [d["id"] for d in sort_documents(documents, {"year": "desc"})] == ["1", "2", "3"]

    def test_sort_on_several_paths(self):
        """Later sort paths break ties."""
        documents = [
            {"id": "1", "year": 2010, "title": "B"},
            {"id": "2", "year": 2010, "title": "A"},
            {"id": "3", "year": 1999, "title": "C"},
        ]

        assert [d["id"] for d in sort_documents(documents, {"year": "desc", "title": "asc"})] == ["2", "1", "3"]

    def test_sort_mixed_types(self):
        """Values of different types are ordered by type, then by value."""
        documents = [
            {"id": "1", "year": "2011"},
            {"id": "2", "year": 2010},
            {"id": "3"},
            {"id": "4", "year": True},
            {"id": "5", "year": {"from": 2000}},
            {"id": "6", "year": [2001, 2002]},
            {"id": "7", "year": 1999},
        ]

        assert [d["id"] for d in sort_documents(documents, {"year": "asc"})] == ["3", "7", "2", "1", "5", "6", "4"]
        assert [d["id"] for d in sort_documents(documents, {"year": "desc"})] == ["4", "6", "5", "1", "2", "7", "3"]

    def test_project_document(self):
        """Projections go through lists and keep the requested paths only."""
        document = {
            "__component": "Movie",
            "title": "Inception",
            "year": 2010,
            "actors": [{"__component": "Actor", "id": "a1", "name": "Leo"}],
        }

        projected = project_document(document, {"__component": 1, "title": 1, "actors.id": 1})

        assert projected == {"__component": "Movie", "title": "Inception", "actors": [{"id": "a1"}]}
        assert project_document(document, None) == document
        assert project_document(document, None) is not document

    def test_select_documents(self, documents):
        """Filtering, sorting, paging and projection are combined."""
        selected = select_documents(
            documents,
            [("genres", "$some", [("", "$equal", "sci-fi")])],
            projection={"id": 1},
            sort={"year": "asc"},
            limit=1,
        )

        assert selected == [{"id": "2"}]

    def test_apply_document_patch(self):
        """Patches return a new document."""
        document = {"id": "1", "title": "Inception", "details": {"country": "US", "budget": 160}}

        patched = apply_document_patch(
            document, {"$set": {"title": "Inception (2010)"}, "$unset": {"details.budget": 1}}
        )

        assert patched == {"id": "1", "title": "Inception (2010)", "details": {"country": "US"}}
        assert document["details"]["budget"] == 160

    def test_find_unique_violation(self):
        """Compound unique indexes compare every path."""
        indexes = [IndexSchema({"year": "asc", "title": "asc"}, is_unique=True)]
        others = [{"year": 2010, "title": "Inception"}]

        assert find_unique_violation({"year": 2010, "title": "Inception"}, others, indexes) == "year + title [unique]"
        assert find_unique_violation({"year": 2011, "title": "Inception"}, others, indexes) is None
        assert find_unique_violation({"title": "Inception"}, others, indexes) is None


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_initial_collections(self):
        """Stores can start from existing documents, which are copied."""
        collections = {"Movie": [{"__component": "Movie", "id": "1", "title": "Inception"}]}
        store = MemoryStore(initial_collections=collections)

        document = store.read_document(collection_name="Movie", identifier_descriptor={"id": "1"})
        document["title"] = "Changed"

        assert collections["Movie"][0]["title"] == "Inception"
        assert store.read_document(collection_name="Movie", identifier_descriptor={"id": "1"})["title"] == "Inception"

    def test_documents_are_copied_on_write(self):
        """Mutating a created document doesn't change the store."""
        store = MemoryStore()
        document = {"id": "1", "tags": ["a"]}
        store.create_document(collection_name="Movie", identifier_descriptor={"id": "1"}, document=document)
        document["tags"].append("b")

        assert store.read_document(collection_name="Movie", identifier_descriptor={"id": "1"}) == {
            "id": "1",
            "tags": ["a"],
        }

    def test_dates_are_compared(self):
        """Date values can be filtered and sorted."""
        store = MemoryStore(
            initial_collections={
                "Movie": [
                    {"id": "1", "released_on": datetime(2010, 7, 16)},
                    {"id": "2", "released_on": datetime(1999, 3, 31)},
                ]
            }
        )

        found = store.find_documents(
            collection_name="Movie",
            expressions=[("released_on", "$greaterThan", datetime(2000, 1, 1))],
            projection={"id": 1},
        )

        assert found == [{"id": "1"}]

    def test_migrate_collection(self):
        """Migrations report created and dropped indexes, never the primary one."""
        store = MemoryStore()
        primary = IndexSchema({"id": "asc"}, is_primary=True, is_unique=True)

        result = store.migrate_collection(
            collection_name="Movie",
            collection_schema=CollectionSchema(indexes=[primary, IndexSchema({"year": "desc"})]),
        )
        assert result.created_indexes == ["year (desc)"]
        assert result.dropped_indexes == []

        result = store.migrate_collection(
            collection_name="Movie",
            collection_schema=CollectionSchema(indexes=[primary, IndexSchema({"title": "asc"}, is_unique=True)]),
        )
        assert result.created_indexes == ["title [unique]"]
        assert result.dropped_indexes == ["year (desc)"]

    def test_unique_index_on_update(self):
        """Updates are checked against the other documents."""
        store = MemoryStore()
        store.migrate_collection(
            collection_name="Movie",
            collection_schema=CollectionSchema(indexes=[IndexSchema({"slug": "asc"}, is_unique=True)]),
        )
        store.create_document(collection_name="Movie", identifier_descriptor={"id": "1"}, document={"id": "1", "slug": "a"})
        store.create_document(collection_name="Movie", identifier_descriptor={"id": "2"}, document={"id": "2", "slug": "b"})

        # Rewriting its own value is fine
        store.update_document(
            collection_name="Movie", identifier_descriptor={"id": "1"}, document_patch={"$set": {"slug": "a"}}
        )
        with pytest.raises(DuplicateKeyError):
            store.update_document(
                collection_name="Movie", identifier_descriptor={"id": "2"}, document_patch={"$set": {"slug": "a"}}
            )

    def test_close_clears_collections(self):
        """Closing the store drops its data."""
        store = MemoryStore(initial_collections={"Movie": [{"id": "1"}]})
        store.close()

        assert store.count_documents(collection_name="Movie", expressions=[]) == 0
