"""Components: classes with typed attributes, identifiers, validation and serialization.

Example:
    from mosaic.component import Component, attribute, primary_identifier, provide

    class Person(Component):
        id = primary_identifier()
        name = attribute("string")

    class Movie(Component):
        Person = provide(Person)

        id = primary_identifier()
        title = attribute("string")
        director = attribute("Person?")

    movie = Movie(title="Inception", director=Person(name="Christopher Nolan"))
    movie.serialize(attribute_selector={"title": True})
    # {"__component": "Movie", "__new": True, "title": "Inception"}
"""

import warnings
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from .attribute import _UNSET, Attribute
from .attribute_selector import (
    create_attribute_selector_from_attributes,
    get_from_attribute_selector,
    intersect_attribute_selectors,
    normalize_attribute_selector,
)
from .exceptions import IdentifierError, SerializationError, UnknownComponentError, ValidationError
from .forking import merge as merge_value
from .serialization import deserialize as deserialize_value
from .utilities import (
    get_type_of,
    hybridmethod,
    is_component_class,
    is_component_name,
    join_attribute_path,
    parse_component_type,
)
from .validation import FailedValidator, describe_failed_validators
from .value_types import ResolveOptions


class _ProvidedComponent:
    """Marker left in a class body by provide(), resolved by __init_subclass__."""

    def __init__(self, component):
        self.component = component


def provide(component):
    """Provide a component from the class being defined.

    Example:
        class Movie(Component):
            Person = provide(Person)
    """
    if not is_component_class(component):
        raise TypeError(
            f"Expected a component class, but received a value of type '{get_type_of(component)}'"
        )
    return _ProvidedComponent(component)


class Component:
    """Base class of all components.

    Instantiating a component creates a *new* component: attributes that are
    not provided take their default value. Use instantiate() to create a
    component that refers to existing data (e.g. to load it from a store).
    """

    __mosaic_component__ = True
    _attributes_: Dict[str, Attribute] = {}
    _component_provider_ = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        if "_component_name_" not in cls.__dict__ and not is_component_name(cls.__name__):
            raise ValueError(
                f"A component name should start with an uppercase letter and contain only "
                f"alphanumeric characters (component name: '{cls.__name__}')"
            )

        attributes = {}
        for base in reversed(cls.__mro__):
            for name, value in base.__dict__.items():
                if isinstance(value, Attribute):
                    attributes[name] = value
        cls._attributes_ = attributes

        cls._provided_components_ = {}
        cls._related_components_ = {}
        for name, value in list(cls.__dict__.items()):
            if isinstance(value, _ProvidedComponent):
                setattr(cls, name, value.component)
                cls.provide_component(value.component)

        primary_identifiers = [a for a in attributes.values() if a.is_primary_identifier()]
        if len(primary_identifiers) > 1:
            raise IdentifierError(
                f"A component cannot have more than one primary identifier attribute "
                f"({cls.describe_component()})"
            )
        if cls.is_embedded() and cls.get_identifier_attributes():
            raise IdentifierError(
                f"An embedded component cannot have identifier attributes ({cls.describe_component()})"
            )

    def __init__(self, **values):
        self._initialize_state(is_new=True)

        for name in values:
            if not self.has_attribute(name):
                raise TypeError(f"{type(self).__name__}() got an unexpected attribute '{name}'")

        for attribute in self.get_attributes():
            name = attribute.get_name()
            if name in values:
                attribute.set_value(self, values[name])
            else:
                self._set_default_value(attribute)

    def _initialize_state(self, is_new: Optional[bool]) -> None:
        self._attribute_values: Dict[str, Any] = {}
        self._value_sources: Dict[str, str] = {}
        self._is_new = is_new
        self._fork_origin: Optional["Component"] = None
        self._is_running_validators = False

    def _set_default_value(self, attribute: Attribute) -> None:
        default = attribute.evaluate_default()
        if default is None and not attribute.get_value_type().is_optional():
            return
        attribute.set_value(self, default)

    @classmethod
    def instantiate(
        cls,
        identifiers: Any = None,
        is_new: bool = False,
        attribute_selector: Any = None,
        source: str = "local",
    ) -> "Component":
        """Create a component without going through __init__.

        Args:
            identifiers: A primary identifier value, or a dict of identifier attributes
            is_new: Whether the component is new (not yet stored)
            attribute_selector: For new components, the attributes that get
                their default value (all attributes by default)
            source: Value source of the identifier values

        Returns:
            The component
        """
        component = cls.__new__(cls)
        component._initialize_state(is_new=is_new)

        if identifiers is not None:
            if not isinstance(identifiers, dict):
                identifiers = cls.normalize_identifier_descriptor(identifiers)
            for name, value in identifiers.items():
                attribute = cls.get_attribute(name)
                if not attribute.is_identifier():
                    raise IdentifierError(
                        f"A property of the specified identifiers is not an identifier attribute "
                        f"({cls.describe_component()}, attribute: '{name}')"
                    )
                attribute.set_value(component, value, source=source)

        if is_new:
            attribute_selector = normalize_attribute_selector(
                True if attribute_selector is None else attribute_selector
            )
            for attribute in cls.get_attributes():
                if attribute.is_set(component):
                    continue
                if get_from_attribute_selector(attribute_selector, attribute.get_name()) is False:
                    continue
                component._set_default_value(attribute)

        return component

    def __repr__(self) -> str:
        if self.has_identifier_descriptor():
            return f"<{self.get_component_name()} {self.describe_identifier_descriptor(self.get_identifier_descriptor())}>"
        return f"<{self.get_component_name()}>"

    # Naming

    @classmethod
    def get_component_name(cls) -> str:
        return cls.__dict__.get("_component_name_") or cls.__name__

    @classmethod
    def set_component_name(cls, name: str) -> None:
        if not is_component_name(name):
            raise ValueError(
                f"A component name should start with an uppercase letter and contain only "
                f"alphanumeric characters (component name: {name!r})"
            )
        cls._component_name_ = name

    @hybridmethod
    def get_component_type(target) -> str:
        """Return "Movie" for instances and "typeof Movie" for classes."""
        if isinstance(target, type):
            return f"typeof {target.get_component_name()}"
        return target.get_component_name()

    @classmethod
    def describe_component(cls) -> str:
        return f"component: '{cls.get_component_name()}'"

    @classmethod
    def is_embedded(cls) -> bool:
        return False

    @classmethod
    def is_identifiable(cls) -> bool:
        return len(cls.get_identifier_attributes()) > 0

    @classmethod
    def is_referenceable(cls) -> bool:
        """Whether the component is stored on its own and referenced from others."""
        return cls.is_identifiable() and not cls.is_embedded()

    # Component lookup

    @classmethod
    def get_component(cls, name: str, throw_if_missing: bool = True):
        """Resolve a component name from this class.

        Searches the class itself, its provided components (deeply), its
        related components, then the provider chain.

        Raises:
            UnknownComponentError: If the name cannot be resolved and throw_if_missing is True
        """
        component = cls._find_component(name, set())
        if component is None and throw_if_missing:
            raise UnknownComponentError(
                f"Cannot get the component '{name}' from the component '{cls.get_component_name()}'"
            )
        return component

    @classmethod
    def _find_component(cls, name: str, visited: set):
        if cls in visited:
            return None
        visited.add(cls)

        if cls.get_component_name() == name:
            return cls
        for component in cls.get_provided_components(deep=True):
            if component.get_component_name() == name:
                return component
        for component in cls.get_related_components():
            if component.get_component_name() == name:
                return component

        provider = cls.get_component_provider()
        if provider is not None:
            return provider._find_component(name, visited)
        return None

    @classmethod
    def has_component(cls, name: str) -> bool:
        return cls.get_component(name, throw_if_missing=False) is not None

    @classmethod
    def get_component_of_type(cls, component_type: str):
        """Resolve a component type ("Movie" or "typeof Movie") to a component class."""
        name, _ = parse_component_type(component_type)
        return cls.get_component(name)

    @classmethod
    def provide_component(cls, component) -> None:
        if not is_component_class(component):
            raise TypeError(
                f"Expected a component class, but received a value of type '{get_type_of(component)}'"
            )
        name = component.get_component_name()
        existing = cls._provided_components_.get(name)
        if existing is not None and existing is not component:
            raise ValueError(
                f"A component with the same name is already provided "
                f"({cls.describe_component()}, provided component: '{name}')"
            )
        cls._provided_components_[name] = component
        component._component_provider_ = cls

    @classmethod
    def get_provided_components(cls, deep: bool = False) -> List[type]:
        components = []
        for base in cls.__mro__:
            for component in base.__dict__.get("_provided_components_", {}).values():
                if component in components:
                    continue
                components.append(component)
                if deep:
                    for nested in component.get_provided_components(deep=True):
                        if nested not in components:
                            components.append(nested)
        return components

    @classmethod
    def get_component_provider(cls):
        return cls._component_provider_

    @classmethod
    def register_related_component(cls, component) -> None:
        if not is_component_class(component):
            raise TypeError(
                f"Expected a component class, but received a value of type '{get_type_of(component)}'"
            )
        cls._related_components_[component.get_component_name()] = component

    @classmethod
    def get_related_components(cls) -> List[type]:
        components = []
        for base in cls.__mro__:
            for component in base.__dict__.get("_related_components_", {}).values():
                if component not in components:
                    components.append(component)
        return components

    # Attributes

    @classmethod
    def get_attribute(cls, name: str) -> Attribute:
        attribute = cls._attributes_.get(name)
        if attribute is None:
            raise AttributeError(f"The attribute '{name}' is missing ({cls.describe_component()})")
        return attribute

    @classmethod
    def has_attribute(cls, name: str) -> bool:
        return name in cls._attributes_

    @classmethod
    def get_attributes(cls, filter: Optional[Callable[[Attribute], bool]] = None) -> List[Attribute]:
        attributes = list(cls._attributes_.values())
        if filter is not None:
            attributes = [attribute for attribute in attributes if filter(attribute)]
        return attributes

    def is_new(self) -> bool:
        if self._is_new is None and self._fork_origin is not None:
            return self._fork_origin.is_new()
        return bool(self._is_new)

    def mark_as_new(self) -> "Component":
        self._is_new = True
        return self

    def mark_as_not_new(self) -> "Component":
        self._is_new = False
        return self

    # Identifiers

    @classmethod
    def get_identifier_attributes(cls) -> List[Attribute]:
        return cls.get_attributes(lambda attribute: attribute.is_identifier())

    @classmethod
    def has_primary_identifier_attribute(cls) -> bool:
        return any(attribute.is_primary_identifier() for attribute in cls.get_attributes())

    @classmethod
    def get_primary_identifier_attribute(cls) -> Attribute:
        for attribute in cls.get_attributes():
            if attribute.is_primary_identifier():
                return attribute
        raise IdentifierError(
            f"The component '{cls.get_component_name()}' doesn't have a primary identifier attribute"
        )

    @classmethod
    def get_secondary_identifier_attributes(cls) -> List[Attribute]:
        return cls.get_attributes(lambda attribute: attribute.is_secondary_identifier())

    def get_identifier_descriptor(self) -> Dict[str, Any]:
        """Return {name: value} for the primary identifier, or else the first set secondary one.

        Raises:
            IdentifierError: If no identifier attribute is set
        """
        primary_first = sorted(
            self.get_identifier_attributes(), key=lambda attribute: not attribute.is_primary_identifier()
        )
        for attribute in primary_first:
            if attribute.is_set(self) and attribute.get_value(self) is not None:
                return {attribute.get_name(): attribute.get_value(self)}
        raise IdentifierError(
            f"Cannot get an identifier descriptor from a component that has no set identifier "
            f"({self.describe_component()})"
        )

    def has_identifier_descriptor(self) -> bool:
        return any(
            attribute.is_set(self) and attribute.get_value(self) is not None
            for attribute in self.get_identifier_attributes()
        )

    @classmethod
    def normalize_identifier_descriptor(cls, identifier_descriptor: Any) -> Dict[str, Any]:
        """Normalize an identifier given as a value or as a one-entry dict.

        Example:
            Movie.normalize_identifier_descriptor("abc123")          # {"id": "abc123"}
            Movie.normalize_identifier_descriptor({"slug": "inception"})
        """
        if isinstance(identifier_descriptor, (str, int)) and not isinstance(identifier_descriptor, bool):
            attribute = cls.get_primary_identifier_attribute()
            attribute.check_value(identifier_descriptor)
            return {attribute.get_name(): identifier_descriptor}

        if not isinstance(identifier_descriptor, dict):
            raise TypeError(
                f"An identifier descriptor should be a string, a number, or a dict, but received "
                f"a value of type '{get_type_of(identifier_descriptor)}' ({cls.describe_component()})"
            )

        if len(identifier_descriptor) != 1:
            raise IdentifierError(
                f"An identifier descriptor should be a dict composed of exactly one attribute "
                f"({cls.describe_component()}, received: {identifier_descriptor!r})"
            )

        ((name, value),) = identifier_descriptor.items()
        if not cls.has_attribute(name) or not cls.get_attribute(name).is_identifier():
            raise IdentifierError(
                f"A property of the specified identifier descriptor is not an identifier attribute "
                f"({cls.describe_component()}, attribute: '{name}')"
            )
        cls.get_attribute(name).check_value(value)
        return {name: value}

    @classmethod
    def describe_identifier_descriptor(cls, identifier_descriptor: Any) -> str:
        ((name, value),) = cls.normalize_identifier_descriptor(identifier_descriptor).items()
        return f"{name}: {value!r}"

    # Attribute selectors

    @hybridmethod
    def get_attribute_selector(target, set_attributes_only: bool = False):
        return target.resolve_attribute_selector(True, set_attributes_only=set_attributes_only)

    @hybridmethod
    def resolve_attribute_selector(
        target,
        attribute_selector: Any,
        set_attributes_only: bool = False,
        aggregation_mode: str = "union",
        include_referenced_components: bool = False,
        filter: Optional[Callable[[Attribute], bool]] = None,
    ):
        """Expand a selector against the attributes of a component class or instance.

        True becomes the dict of every reachable attribute. Nested components
        are expanded recursively. Referenced components (stored on their own)
        only contribute their identifier attributes unless
        include_referenced_components is True.

        Args:
            attribute_selector: The selector to resolve
            set_attributes_only: Only include attributes holding a value (instances only)
            aggregation_mode: How array items combine, "union" or "intersection"
            include_referenced_components: Expand referenced components fully
            filter: Predicate restricting the attributes considered

        Returns:
            The resolved selector
        """
        if aggregation_mode not in ("union", "intersection"):
            raise ValueError(f"The specified aggregation mode is invalid (aggregation mode: {aggregation_mode!r})")
        options = ResolveOptions(
            set_attributes_only=set_attributes_only,
            aggregation_mode=aggregation_mode,
            include_referenced_components=include_referenced_components,
            filter=filter,
        )
        return target._resolve_attribute_selector_with_options(attribute_selector, options)

    @hybridmethod
    def _resolve_attribute_selector_with_options(target, attribute_selector, options: ResolveOptions):
        attribute_selector = normalize_attribute_selector(attribute_selector)
        if attribute_selector is False:
            return False

        is_class = isinstance(target, type)
        cls = target if is_class else type(target)

        if options.is_deep and cls.is_referenceable() and not options.include_referenced_components:
            attribute_selector = intersect_attribute_selectors(
                attribute_selector, create_attribute_selector_from_attributes(cls.get_identifier_attributes())
            )

        resolved = {}
        for attribute in cls.get_attributes():
            name = attribute.get_name()
            sub_selector = get_from_attribute_selector(attribute_selector, name)
            if sub_selector is False:
                continue
            if options.filter is not None and not options.filter(attribute):
                continue
            if attribute in options.attribute_stack:
                continue

            value = None
            if options.set_attributes_only:
                if is_class or not attribute.is_set(target):
                    continue
                value = attribute.get_value(target)

            sub_options = replace(
                options, is_deep=True, attribute_stack=options.attribute_stack + (attribute,)
            )
            resolved_sub_selector = attribute.get_value_type()._resolve_attribute_selector(
                sub_selector, attribute, value, sub_options
            )
            if resolved_sub_selector is not False:
                resolved[name] = resolved_sub_selector

        return resolved

    def traverse_attributes(
        self,
        iteratee: Callable[[Attribute, "Component"], None],
        attribute_selector: Any = True,
        set_attributes_only: bool = False,
    ) -> None:
        """Call iteratee(attribute, component) for every selected attribute, recursively."""
        options = ResolveOptions(set_attributes_only=set_attributes_only)
        self._traverse_attributes_with_options(iteratee, attribute_selector, options)

    def _traverse_attributes_with_options(self, iteratee, attribute_selector, options: ResolveOptions):
        resolved_selector = self._resolve_attribute_selector_with_options(attribute_selector, options)
        for attribute in self.get_attributes():
            sub_selector = get_from_attribute_selector(resolved_selector, attribute.get_name())
            if sub_selector is False:
                continue
            iteratee(attribute, self)
            if attribute.is_set(self):
                attribute.get_value_type()._traverse_attributes(
                    iteratee,
                    attribute,
                    attribute.get_value(self),
                    sub_selector,
                    replace(options, is_deep=True),
                )

    # Validation

    def run_validators(self, attribute_selector: Any = True) -> List[FailedValidator]:
        """Run the validators of the selected attributes and return the failures.

        Unset required attributes of new components fail with required().
        A component reached again through a cycle of references is skipped.
        """
        if self._is_running_validators:
            return []
        attribute_selector = normalize_attribute_selector(attribute_selector)
        failed_validators = []
        self._is_running_validators = True
        try:
            for attribute in self.get_attributes():
                name = attribute.get_name()
                sub_selector = get_from_attribute_selector(attribute_selector, name)
                if sub_selector is False:
                    continue
                for failed in attribute.run_validators(self, sub_selector):
                    failed_validators.append(
                        FailedValidator(failed.validator, join_attribute_path([name, failed.path]))
                    )
        finally:
            self._is_running_validators = False
        return failed_validators

    def validate(self, attribute_selector: Any = True) -> "Component":
        """Raise ValidationError if any validator of the selected attributes fails."""
        failed_validators = self.run_validators(attribute_selector)
        if failed_validators:
            raise ValidationError(
                f"The following error(s) occurred while validating the component "
                f"'{self.get_component_name()}': {describe_failed_validators(failed_validators)}",
                failed_validators,
            )
        return self

    def is_valid(self, attribute_selector: Any = True) -> bool:
        return not self.run_validators(attribute_selector)

    # Serialization

    @hybridmethod
    def serialize(
        target,
        attribute_selector: Any = True,
        include_component_types: bool = True,
        include_is_new_marks: bool = True,
        include_referenced_components: bool = False,
        _is_deep: bool = False,
    ) -> Dict[str, Any]:
        """Serialize a component class or instance.

        Args:
            attribute_selector: The attributes to include
            include_component_types: Add the "__component" discriminator
            include_is_new_marks: Add "__new": True to new components
            include_referenced_components: Serialize referenced components in full
                instead of as {"__component", <identifier>} references

        Returns:
            A JSON-compatible dict
        """
        if isinstance(target, type):
            return {"__component": target.get_component_type()} if include_component_types else {}

        result = {}
        if include_component_types:
            result["__component"] = target.get_component_type()

        if _is_deep and target.is_referenceable() and not include_referenced_components:
            result.update(target.get_identifier_descriptor())
            return result

        if include_is_new_marks and target.is_new():
            result["__new"] = True

        attribute_selector = normalize_attribute_selector(attribute_selector)
        for attribute in target.get_attributes():
            name = attribute.get_name()
            sub_selector = get_from_attribute_selector(attribute_selector, name)
            if sub_selector is False or not attribute.is_set(target):
                continue
            result[name] = attribute.get_value_type().serialize_value(
                attribute.get_value(target),
                attribute,
                attribute_selector=sub_selector,
                include_component_types=include_component_types,
                include_is_new_marks=include_is_new_marks,
                include_referenced_components=include_referenced_components,
            )
        return result

    @classmethod
    def _check_serialized_type(cls, data: Any, expected_type: str) -> None:
        if not isinstance(data, dict):
            raise SerializationError(
                f"Expected a serialized component, but received a value of type '{get_type_of(data)}'"
            )
        component_type = data.get("__component")
        if component_type is not None and component_type != expected_type:
            raise SerializationError(
                f"An unexpected component type was encountered while deserializing an object "
                f"(encountered type: '{component_type}', expected type: '{expected_type}')"
            )

    @hybridmethod
    def deserialize(target, data: Dict[str, Any], source: str = "local"):
        """Apply serialized data to a component instance in place.

        On a class, only checks the type discriminator and returns the class.
        Unknown attributes emit a UserWarning and are skipped.

        Raises:
            SerializationError: If the data describes another component type
        """
        target._check_serialized_type(data, target.get_component_type())
        if isinstance(target, type):
            return target

        data = dict(data)
        data.pop("__component", None)
        if data.pop("__new", False):
            target.mark_as_new()
        else:
            target.mark_as_not_new()

        for name, value in data.items():
            if not target.has_attribute(name):
                warnings.warn(
                    f"Cannot deserialize an unknown attribute ({target.describe_component()}, "
                    f"attribute: '{name}')",
                    UserWarning,
                    stacklevel=2,
                )
                continue
            value = deserialize_value(value, component_getter=target.get_component_of_type, source=source)
            target.get_attribute(name).set_value(target, value, source=source)

        return target

    @classmethod
    def deserialize_instance(cls, data: Dict[str, Any], source: str = "local") -> "Component":
        """Create a component instance from serialized data."""
        cls._check_serialized_type(data, cls.get_component_name())

        is_new = bool(data.get("__new", False))
        identifiers = {
            attribute.get_name(): data[attribute.get_name()]
            for attribute in cls.get_identifier_attributes()
            if data.get(attribute.get_name()) is not None
        }
        default_selector = {
            attribute.get_name(): True for attribute in cls.get_attributes() if attribute.get_name() not in data
        }

        component = cls.instantiate(identifiers, is_new=is_new, attribute_selector=default_selector, source=source)
        remaining = {name: value for name, value in data.items() if name not in identifiers}
        return component.deserialize(remaining, source=source)

    recreate = deserialize_instance

    # Forking

    @hybridmethod
    def fork(target):
        """Fork a component class (a subclass keeping the name) or instance."""
        if isinstance(target, type):
            return type(
                target.__name__,
                (target,),
                {"_component_name_": target.get_component_name(), "__module__": target.__module__},
            )
        forked = type(target).__new__(type(target))
        forked._initialize_state(is_new=None)
        forked._fork_origin = target
        return forked

    @hybridmethod
    def is_fork_of(target, other) -> bool:
        if isinstance(target, type):
            return is_component_class(other) and target is not other and issubclass(target, other)
        origin = target._fork_origin
        while origin is not None:
            if origin is other:
                return True
            origin = origin._fork_origin
        return False

    def get_fork_origin(self) -> Optional["Component"]:
        return self._fork_origin

    def merge(self, forked: "Component") -> "Component":
        """Copy the values overridden in a fork back into this component."""
        if not is_component_class(type(forked)) or not forked.is_fork_of(self):
            raise ValueError(
                f"Cannot merge a component that is not a fork of the target component "
                f"({self.describe_component()})"
            )
        for name, value in forked._attribute_values.items():
            attribute = self.get_attribute(name)
            if value is _UNSET:
                attribute.unset_value(self)
                continue
            attribute.set_value(self, merge_value(value), source=attribute.get_value_source(forked))
        if forked._is_new is not None:
            self._is_new = forked._is_new
        return self


class EmbeddedComponent(Component):
    """A component that lives inside its owner. Cannot have identifiers."""

    @classmethod
    def is_embedded(cls) -> bool:
        return True
