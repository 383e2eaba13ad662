"""Shared fixtures for the store tests."""

from types import SimpleNamespace

import pytest

from mosaic.component import Component, EmbeddedComponent, attribute, primary_identifier, secondary_identifier, validators
from mosaic.store import MemoryStore, SQLiteStore, Storable, index


def define_models():
    """Define fresh storable classes. A storable can only be registered in one store."""

    class Person(Storable):
        id = primary_identifier()
        name = attribute("string")

    class Review(EmbeddedComponent):
        rating = attribute("number", validators=[validators.range([0, 10])])
        comment = attribute("string?")

    @index({"year": "desc", "title": "asc"})
    class Movie(Storable):
        id = primary_identifier()
        slug = secondary_identifier()
        title = attribute("string", validators=[validators.not_empty()])
        year = attribute("number?", index=True)
        genres = attribute("string[]", default=list)
        director = attribute("Person?")
        reviews = attribute("Review[]", default=list)
        released_on = attribute("Date?")

    Movie.provide_component(Person)
    Movie.provide_component(Review)

    class Application(Component):
        pass

    Application.provide_component(Movie)

    return SimpleNamespace(Application=Application, Movie=Movie, Person=Person, Review=Review)


@pytest.fixture
def models():
    return define_models()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, models):
    """A migrated store holding the models, for each backend."""
    store = MemoryStore() if request.param == "memory" else SQLiteStore(":memory:")
    store.register_root_component(models.Application)
    store.migrate_storables(silent=True)
    yield store
    store.close()


@pytest.fixture
def model_factory():
    """Returns define_models, for tests that need several generations of classes."""
    return define_models
