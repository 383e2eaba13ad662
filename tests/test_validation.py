"""Tests for validators, sanitizers and component validation."""

import pytest

from mosaic.component import (
    Component,
    EmbeddedComponent,
    FailedValidator,
    Validator,
    attribute,
    primary_identifier,
    provide,
    run_validators,
    sanitizers,
    validators,
)
from mosaic.component.exceptions import ValidationError
from mosaic.component.validation import REQUIRED_VALIDATOR, normalize_validator


class Member(Component):
    id = primary_identifier()
    name = attribute("string", validators=[validators.not_empty()])


class Song(EmbeddedComponent):
    title = attribute("string", sanitizers=[sanitizers.trim()], validators=[validators.not_empty()])


class Band(Component):
    Member = provide(Member)
    Song = provide(Song)

    name = attribute("string", validators=[validators.min_length(2)])
    rating = attribute("number?", validators=[validators.range([0, 10])])
    tags = attribute("string[]", default=list, sanitizers=[sanitizers.compact()])
    leader = attribute("Member?")
    songs = attribute("Song[]", default=list)


class TestValidator:
    """Tests for Validator and the built-in builders."""

    def test_signature_and_message(self):
        """Signatures show the arguments, messages default to the signature."""
        validator = validators.min_length(3)

        assert validator.get_name() == "min_length"
        assert validator.get_arguments() == (3,)
        assert validator.get_signature() == "min_length(3)"
        assert validator.get_message() == "The validator `min_length(3)` failed"
        assert validators.range([0, 10]).get_signature() == "range([0, 10])"
        assert validators.match("^a").get_signature() == "match('^a')"

    def test_custom_message(self):
        """A trailing string is the custom message."""
        assert validators.min_length(3, "Too short").get_message() == "Too short"
        assert validators.not_empty("Required").get_message() == "Required"
        assert validators.max_length(3, message="Too long").get_message() == "Too long"

    def test_argument_count(self):
        """Builders check the number of arguments."""
        with pytest.raises(ValueError, match="expects 1 argument"):
            validators.min_length()
        with pytest.raises(ValueError, match="expects 0 argument"):
            validators.not_empty(1)

    @pytest.mark.parametrize(
        "validator,valid,invalid",
        [
            (validators.integer(), [3, 3.0, -1], [3.5, "3", None]),
            (validators.positive(), [0, 1], [-1, None]),
            (validators.negative(), [-1], [0, None]),
            (validators.less_than(5), [4], [5, None]),
            (validators.less_than_or_equal(5), [5], [6]),
            (validators.greater_than(5), [6], [5]),
            (validators.greater_than_or_equal(5), [5], [4]),
            (validators.range([1, 3]), [1, 3], [0, 4]),
            (validators.not_empty(), ["a", [1], {"a": 1}], ["", "  ", [], {}, None]),
            (validators.min_length(2), ["ab", [1, 2]], ["a", [1], None]),
            (validators.max_length(2), ["ab"], ["abc"]),
            (validators.range_length([1, 2]), ["a", "ab"], ["", "abc"]),
            (validators.match(r"^\d+$"), ["123"], ["12a", None]),
            (validators.any_of(["a", "b"]), ["a"], ["c"]),
            (validators.none_of(["a", "b"]), ["c"], ["a"]),
            (validators.required(), [0, ""], [None]),
        ],
    )
    def test_builtin_validators(self, validator, valid, invalid):
        """Built-in validators accept and reject the expected values."""
        for value in valid:
            assert validator.run(value), value
        for value in invalid:
            assert not validator.run(value), value

    def test_plain_functions(self):
        """Plain functions are wrapped into validators."""
        validator = normalize_validator(lambda value: value % 2 == 0)

        assert isinstance(validator, Validator)
        assert validator.run(2)
        assert not validator.run(3)

    def test_uncalled_builder(self):
        """Builders must be called."""
        with pytest.raises(TypeError, match="has not been called"):
            normalize_validator(validators.min_length)
        with pytest.raises(TypeError, match="Expected a validator"):
            normalize_validator(3)

    def test_run_validators(self):
        """run_validators() returns the failing validators."""
        short = validators.min_length(5)
        empty = validators.not_empty()

        assert run_validators([short, empty], "abc") == [short]

    def test_failed_validator_message(self):
        """Failure messages include the path."""
        failed = FailedValidator(validators.not_empty(), "songs[0].title")

        assert failed.get_message() == "The validator `not_empty()` failed (path: 'songs[0].title')"


class TestSanitizers:
    """Tests for sanitizers applied on assignment."""

    def test_trim(self):
        song = Song(title="  Intro  ")
        assert song.title == "Intro"

    def test_compact(self):
        band = Band(name="Muse", tags=["rock", "", "alternative"])
        assert band.tags == ["rock", "alternative"]

    def test_custom_function(self):
        """Plain functions can be used as sanitizers."""

        class Label(Component):
            code = attribute("string", sanitizers=[str.upper])

        assert Label(code="abc").code == "ABC"


class TestComponentValidation:
    """Tests for Component.validate() and friends."""

    def test_valid_component(self):
        band = Band(name="Muse", rating=9, songs=[Song(title="Uprising")])

        assert band.is_valid()
        assert band.validate() is band

    def test_failed_validators_paths(self):
        """Failures are reported with attribute paths."""
        band = Band(name="M", songs=[Song(title="Uprising"), Song(title="")])

        failed = band.run_validators()

        assert [(f.validator.get_name(), f.path) for f in failed] == [
            ("min_length", "name"),
            ("not_empty", "songs[1].title"),
        ]

    def test_validate_raises(self):
        """validate() raises a ValidationError listing the failures."""
        band = Band(name="M")

        with pytest.raises(ValidationError, match="while validating the component 'Band'") as exc_info:
            band.validate()

        assert "The validator `min_length(2)` failed (path: 'name')" in str(exc_info.value)
        assert exc_info.value.failed_validators[0].path == "name"

    def test_optional_values(self):
        """Validators don't run on missing optional values."""
        assert Band(name="Muse", rating=None).is_valid()
        assert not Band(name="Muse", rating=11).is_valid()

    def test_required_attributes(self):
        """Unset required attributes fail on new components only."""
        band = Band()

        assert band.run_validators() == [FailedValidator(REQUIRED_VALIDATOR, "name")]
        assert Band.instantiate(is_new=False).is_valid()

    def test_attribute_selector(self):
        """Only the selected attributes are validated."""
        band = Band(name="M", rating=11)

        assert [f.path for f in band.run_validators({"rating": True})] == ["rating"]
        assert band.is_valid({"tags": True})

    def test_referenced_components_are_validated(self):
        """Referenced components run their own validators within the selector."""
        band = Band(name="Muse", leader=Member(name=""))

        assert [f.path for f in band.run_validators()] == ["leader.name"]
        assert band.is_valid({"name": True, "leader": {"id": True}})

    def test_reference_cycles(self):
        """A component reached again through a cycle of references is validated once."""

        class Friend(Component):
            id = primary_identifier()
            name = attribute("string", validators=[validators.not_empty()])
            friend = attribute("Friend?")

        alice = Friend(name="")
        alice.friend = Friend(name="Bob", friend=alice)

        assert [f.path for f in alice.run_validators()] == ["name"]
        assert [f.path for f in alice.friend.run_validators()] == ["friend.name"]

    def test_attribute_validate(self):
        """Attributes can be validated one by one."""
        band = Band(name="M")

        with pytest.raises(ValidationError, match="validating the attribute 'name'"):
            Band.get_attribute("name").validate(band)
        assert Band.get_attribute("rating").is_valid(band)
