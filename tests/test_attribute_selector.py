"""Tests for attribute selectors."""

import pytest

from mosaic.component import (
    Component,
    attribute,
    attribute_selector_includes,
    attribute_selectors_are_equal,
    clone_attribute_selector,
    create_attribute_selector_from_names,
    get_from_attribute_selector,
    intersect_attribute_selectors,
    iterate_over_attribute_selector,
    merge_attribute_selectors,
    normalize_attribute_selector,
    pick_from_attribute_selector,
    remove_from_attribute_selector,
    set_within_attribute_selector,
    traverse_attribute_selector,
)


class Track(Component):
    title = attribute("string")
    duration = attribute("number?")


SELECTORS = [
    True,
    False,
    {},
    {"title": True},
    {"title": True, "year": True},
    {"director": {"name": True}},
    {"director": True, "title": False},
]


class TestBasics:
    """Tests for normalization and lookups."""

    def test_normalize(self):
        """None means nothing, other non-selectors are rejected."""
        assert normalize_attribute_selector(None) is False
        assert normalize_attribute_selector(True) is True
        assert normalize_attribute_selector({"title": True}) == {"title": True}

        with pytest.raises(TypeError, match="Expected a valid attribute selector, but received a value of type 'number'"):
            normalize_attribute_selector(1)

    def test_get_from(self):
        """Sub-selectors are looked up by name."""
        assert get_from_attribute_selector(True, "title") is True
        assert get_from_attribute_selector(False, "title") is False
        assert get_from_attribute_selector({"title": True}, "title") is True
        assert get_from_attribute_selector({"title": True}, "year") is False
        assert attribute_selector_includes({"director": {}}, "director")
        assert not attribute_selector_includes({"director": False}, "director")

    def test_set_within(self):
        """set_within returns a modified copy."""
        selector = {"title": True}

        assert set_within_attribute_selector(selector, "director", {"name": True}) == {
            "title": True,
            "director": {"name": True},
        }
        assert set_within_attribute_selector(selector, "title", False) == {}
        assert set_within_attribute_selector(True, "title", False) is True
        assert selector == {"title": True}

    def test_clone_and_iterate(self):
        """False entries are dropped."""
        selector = {"title": True, "year": False, "director": {"name": True, "age": None}}

        assert clone_attribute_selector(selector) == {"title": True, "director": {"name": True}}
        assert list(iterate_over_attribute_selector(selector)) == [
            ("title", True),
            ("director", {"name": True, "age": None}),
        ]
        assert list(iterate_over_attribute_selector(True)) == []

    def test_create_from_names(self):
        assert create_attribute_selector_from_names(["id", "title"]) == {"id": True, "title": True}

    def test_are_equal(self):
        """Equality ignores False entries."""
        assert attribute_selectors_are_equal({"title": True, "year": False}, {"title": True})
        assert attribute_selectors_are_equal(True, True)
        assert not attribute_selectors_are_equal({"title": True}, {"title": {}})
        assert not attribute_selectors_are_equal(True, {})


class TestAlgebra:
    """Tests for merge, intersect and remove."""

    def test_merge(self):
        """Merging is a union."""
        assert merge_attribute_selectors({"title": True}, {"year": True}) == {"title": True, "year": True}
        assert merge_attribute_selectors({"director": {"name": True}}, {"director": {"id": True}}) == {
            "director": {"name": True, "id": True}
        }
        assert merge_attribute_selectors({"title": True}, True) is True
        assert merge_attribute_selectors(False, {"title": True}) == {"title": True}

    def test_intersect(self):
        """Intersecting keeps the common part."""
        assert intersect_attribute_selectors({"title": True, "year": True}, {"year": True, "genre": True}) == {
            "year": True
        }
        assert intersect_attribute_selectors(True, {"title": True}) == {"title": True}
        assert intersect_attribute_selectors({"director": {"name": True, "id": True}}, {"director": {"id": True}}) == {
            "director": {"id": True}
        }
        assert intersect_attribute_selectors({"title": True}, False) is False

    def test_remove(self):
        """Removing subtracts selected attributes."""
        assert remove_from_attribute_selector({"title": True, "year": True}, {"title": True}) == {"year": True}
        assert remove_from_attribute_selector({"director": {"name": True, "id": True}}, {"director": {"id": True}}) == {
            "director": {"name": True}
        }
        assert remove_from_attribute_selector({"title": True}, True) is False
        assert remove_from_attribute_selector({"title": True}, False) == {"title": True}

        with pytest.raises(ValueError, match="Cannot remove an 'object' attribute selector"):
            remove_from_attribute_selector(True, {"title": True})

    def test_inputs_are_not_mutated(self):
        """The algebra never mutates its inputs."""
        a = {"director": {"name": True}}
        b = {"director": {"id": True}, "title": True}

        merge_attribute_selectors(a, b)
        intersect_attribute_selectors(a, b)
        remove_from_attribute_selector(b, a)

        assert a == {"director": {"name": True}}
        assert b == {"director": {"id": True}, "title": True}

    def test_laws(self):
        """Merge and intersect are commutative, associative and idempotent."""
        for a in SELECTORS:
            assert attribute_selectors_are_equal(merge_attribute_selectors(a, a), a)
            assert attribute_selectors_are_equal(intersect_attribute_selectors(a, a), a)
            assert merge_attribute_selectors(True, a) is True
            assert intersect_attribute_selectors(False, a) is False
            for b in SELECTORS:
                assert attribute_selectors_are_equal(merge_attribute_selectors(a, b), merge_attribute_selectors(b, a))
                assert attribute_selectors_are_equal(
                    intersect_attribute_selectors(a, b), intersect_attribute_selectors(b, a)
                )
                for c in SELECTORS:
                    assert attribute_selectors_are_equal(
                        merge_attribute_selectors(a, merge_attribute_selectors(b, c)),
                        merge_attribute_selectors(merge_attribute_selectors(a, b), c),
                    )


class TestPickAndTraverse:
    """Tests for pick_from_attribute_selector() and traverse_attribute_selector()."""

    def test_pick_from_dict(self):
        """Picking keeps the selected keys and the included names."""
        value = {"__component": "Movie", "title": "Inception", "year": 2010, "director": {"name": "N", "age": 50}}

        assert pick_from_attribute_selector(
            value, {"title": True, "director": {"name": True}}, include_attribute_names=["__component"]
        ) == {"__component": "Movie", "title": "Inception", "director": {"name": "N"}}

    def test_pick_from_list(self):
        """Lists are picked item by item."""
        assert pick_from_attribute_selector([{"a": 1, "b": 2}, None], {"a": True}) == [{"a": 1}, None]

    def test_pick_from_component(self):
        """Components are picked into new instances."""
        track = Track(title="Intro", duration=90)

        picked = pick_from_attribute_selector(track, {"title": True})

        assert isinstance(picked, Track)
        assert picked is not track
        assert picked.title == "Intro"
        assert not Track.get_attribute("duration").is_set(picked)
        assert picked.is_new()

    def test_pick_errors(self):
        """False selects nothing, and scalars have no attributes."""
        with pytest.raises(ValueError, match="is 'false'"):
            pick_from_attribute_selector({"a": 1}, False)
        with pytest.raises(TypeError, match="Cannot pick attributes from a value"):
            pick_from_attribute_selector("Inception", {"title": True})

        assert pick_from_attribute_selector("Inception", True) == "Inception"

    def test_traverse_leafs(self):
        """Leafs are reported with their name and parent."""
        value = {"title": "Inception", "actors": [{"name": "Leo"}, {"name": "Tom"}]}
        visited = []

        traverse_attribute_selector(
            value,
            {"title": True, "actors": {"name": True}},
            lambda leaf, name, parent, is_array: visited.append((leaf, name, is_array)),
        )

        assert visited == [("Inception", "title", False), ("Leo", "name", False), ("Tom", "name", False)]

    def test_traverse_subtrees(self):
        """Subtrees are reported when requested, with array items flagged."""
        value = {"title": "Inception", "actors": [{"name": "Leo"}]}
        visited = []

        traverse_attribute_selector(
            value,
            {"title": True, "actors": {"name": True}},
            lambda subtree, name, parent, is_array: visited.append((name, is_array)),
            include_subtrees=True,
            include_leafs=False,
        )

        assert visited == [(None, False), ("actors", True)]
