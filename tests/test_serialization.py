"""Tests for serialize(), deserialize() and component (de)serialization."""

import re
from datetime import datetime

import pytest

from mosaic.component import (
    Component,
    EmbeddedComponent,
    attribute,
    deserialize,
    primary_identifier,
    provide,
    serialize,
)
from mosaic.component.exceptions import SerializationError


class Author(Component):
    id = primary_identifier()
    name = attribute("string")
    born_on = attribute("Date?")


class Chapter(EmbeddedComponent):
    title = attribute("string")
    pages = attribute("number?")


class Book(Component):
    Author = provide(Author)
    Chapter = provide(Chapter)

    id = primary_identifier()
    title = attribute("string")
    year = attribute("number?")
    chapters = attribute("Chapter[]", default=list)
    author = attribute("Author?")
    kind = attribute("typeof Author?")


class TestSerializeValues:
    """Tests for serialize() on plain values."""

    def test_primitives(self):
        assert serialize(None) is None
        assert serialize(True) is True
        assert serialize(1.5) == 1.5
        assert serialize("abc") == "abc"
        assert serialize([1, {"a": (2, 3)}]) == [1, {"a": [2, 3]}]

    def test_datetime(self):
        assert serialize(datetime(2010, 7, 16)) == {"__datetime__": "2010-07-16T00:00:00"}

    def test_regexp(self):
        pattern = re.compile("^jaws", re.IGNORECASE)

        assert serialize(pattern) == {"__regexp__": "^jaws", "flags": int(pattern.flags)}

    def test_unsupported_values(self):
        with pytest.raises(SerializationError, match="Cannot serialize a value of type 'set'"):
            serialize({1, 2})
        with pytest.raises(SerializationError, match="key of type 'number'"):
            serialize({1: "one"})


class TestDeserializeValues:
    """Tests for deserialize() on plain values."""

    def test_markers(self):
        assert deserialize({"__datetime__": "2010-07-16T00:00:00"}) == datetime(2010, 7, 16)

        pattern = deserialize({"__regexp__": "^jaws", "flags": int(re.IGNORECASE)})
        assert pattern.pattern == "^jaws"
        assert pattern.flags & re.IGNORECASE

    def test_nested(self):
        data = {"dates": [{"__datetime__": "2010-07-16T00:00:00"}], "count": 2}

        assert deserialize(data) == {"dates": [datetime(2010, 7, 16)], "count": 2}

    def test_invalid_date(self):
        with pytest.raises(SerializationError, match="Cannot deserialize a date"):
            deserialize({"__datetime__": "yesterday"})

    def test_components_without_getter(self):
        """Without a component getter, component dicts stay plain dicts."""
        data = {"__component": "Book", "title": "Dune"}

        assert deserialize(data) == data


class TestSerializeComponents:
    """Tests for Component.serialize()."""

    def test_instance(self):
        book = Book(id="b1", title="Dune", year=1965)

        assert book.serialize() == {
            "__component": "Book",
            "__new": True,
            "id": "b1",
            "title": "Dune",
            "year": 1965,
            "chapters": [],
            "author": None,
            "kind": None,
        }

    def test_options(self):
        book = Book(id="b1", title="Dune")

        assert book.serialize(include_component_types=False, include_is_new_marks=False, attribute_selector={"title": True}) == {
            "title": "Dune"
        }

    def test_unset_attributes_are_omitted(self):
        book = Book.instantiate("b1")
        book.title = "Dune"

        assert book.serialize() == {"__component": "Book", "id": "b1", "title": "Dune"}

    def test_embedded_components(self):
        book = Book.instantiate("b1")
        book.chapters = [Chapter(title="Prologue", pages=3)]

        assert book.serialize()["chapters"] == [
            {"__component": "Chapter", "__new": True, "title": "Prologue", "pages": 3}
        ]

    def test_referenced_components(self):
        """Referenced components serialize to their identifiers."""
        book = Book.instantiate("b1")
        book.author = Author(id="a1", name="Frank Herbert", born_on=datetime(1920, 10, 8))

        assert book.serialize()["author"] == {"__component": "Author", "id": "a1"}
        assert book.serialize(include_referenced_components=True)["author"] == {
            "__component": "Author",
            "__new": True,
            "id": "a1",
            "name": "Frank Herbert",
            "born_on": {"__datetime__": "1920-10-08T00:00:00"},
        }

    def test_classes(self):
        book = Book.instantiate("b1")
        book.kind = Author

        assert Book.serialize() == {"__component": "typeof Book"}
        assert serialize(Book) == {"__component": "typeof Book"}
        assert book.serialize()["kind"] == {"__component": "typeof Author"}

    def test_serialize_function(self):
        books = [Book(id="b1", title="Dune"), Book(id="b2", title="Emma")]

        assert serialize(books, attribute_selector={"title": True}) == [
            {"__component": "Book", "__new": True, "title": "Dune"},
            {"__component": "Book", "__new": True, "title": "Emma"},
        ]


class TestDeserializeComponents:
    """Tests for Component.deserialize_instance() and deserialize()."""

    def test_existing_component(self):
        data = {
            "__component": "Book",
            "id": "b1",
            "title": "Dune",
            "chapters": [{"__component": "Chapter", "title": "Prologue"}],
            "author": {"__component": "Author", "id": "a1"},
        }

        book = Book.deserialize_instance(data)

        assert isinstance(book, Book)
        assert not book.is_new()
        assert book.id == "b1"
        assert book.title == "Dune"
        assert not Book.year.is_set(book)
        assert book.chapters[0].title == "Prologue"
        assert not Chapter.pages.is_set(book.chapters[0])
        assert isinstance(book.author, Author)
        assert book.author.id == "a1"
        assert not Author.name.is_set(book.author)

    def test_new_component_gets_defaults(self):
        book = Book.deserialize_instance({"__component": "Book", "__new": True, "title": "Dune"})

        assert book.is_new()
        assert book.title == "Dune"
        assert book.chapters == []
        assert book.year is None
        assert isinstance(book.id, str)

    def test_round_trip(self):
        book = Book(id="b1", title="Dune", chapters=[Chapter(title="Prologue")])
        book.author = Author(id="a1", name="Frank Herbert")

        copy = deserialize(book.serialize(), component_getter=Book.get_component_of_type)

        assert copy is not book
        assert copy.is_new()
        assert copy.serialize() == book.serialize()

    def test_value_source(self):
        book = Book.deserialize_instance({"__component": "Book", "id": "b1", "title": "Dune"}, source="server")

        assert Book.title.get_value_source(book) == "server"
        assert Book.id.get_value_source(book) == "server"

    def test_deserialize_in_place(self):
        book = Book.instantiate("b1")

        assert book.deserialize({"title": "Dune", "year": 1965}) is book
        assert book.title == "Dune"
        assert book.year == 1965
        assert not book.is_new()

    def test_class_reference(self):
        assert deserialize({"__component": "typeof Author"}, component_getter=Book.get_component_of_type) is Author
        assert Book.deserialize({"__component": "typeof Book"}) is Book

    def test_unexpected_component_type(self):
        with pytest.raises(SerializationError, match="encountered type: 'Author', expected type: 'Book'"):
            Book.deserialize_instance({"__component": "Author", "id": "a1"})
        with pytest.raises(SerializationError, match="Expected a serialized component"):
            Book.deserialize_instance(["b1"])

    def test_unknown_attribute(self):
        """Unknown attributes are skipped with a warning."""
        with pytest.warns(UserWarning, match="unknown attribute"):
            book = Book.deserialize_instance({"__component": "Book", "id": "b1", "rating": 5})

        assert book.id == "b1"
        assert not Book.has_attribute("rating")
