#!/usr/bin/env python3
"""
Quick Start - Define storable components, save them and query them.

Usage:
    python examples/quick_start.py [sqlite:///movies.db]
"""

import logging
import sys

from mosaic import Component, EmbeddedComponent, attribute, primary_identifier, provide, validators
from mosaic.store import Storable, connect, index


class Person(Storable):
    id = primary_identifier()
    name = attribute("string", validators=[validators.not_empty()])


class Review(EmbeddedComponent):
    rating = attribute("number", validators=[validators.range([0, 10])])
    comment = attribute("string?")


@index({"year": "desc", "title": "asc"})
class Movie(Storable):
    Person = provide(Person)
    Review = provide(Review)

    id = primary_identifier()
    title = attribute("string", validators=[validators.not_empty()])
    year = attribute("number?", index=True)
    director = attribute("Person?")
    reviews = attribute("Review[]", default=list)


class Application(Component):
    Movie = provide(Movie)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    url = sys.argv[1] if len(sys.argv) > 1 else "memory://"

    with connect(url) as store:
        store.register_root_component(Application)
        store.migrate_storables()

        nolan = Person(name="Christopher Nolan").save()
        Movie(title="Inception", year=2010, director=nolan, reviews=[Review(rating=9)]).save()
        Movie(title="Interstellar", year=2014, director=nolan).save()
        Movie(title="Memento", year=2000, director=nolan).save()

        print(f"Movies by {nolan.name}: {Movie.count({'director': nolan})}")

        # Only the selected attributes are loaded
        for movie in Movie.find({"year": {"$greaterThan": 2005}}, attribute_selector={"title": True, "year": True}):
            print(f"  {movie.title} ({movie.year})")

        inception = Movie.find({"title": "Inception"}, attribute_selector={"title": True, "reviews": True})[0]
        print(f"Inception reviews: {[review.rating for review in inception.reviews]}")

        draft = inception.fork()
        draft.title = "Inception (director's cut)"
        inception.merge(draft).save()
        print(f"Renamed to: {Movie.get(inception.id, attribute_selector={'title': True}).title}")


if __name__ == "__main__":
    main()
