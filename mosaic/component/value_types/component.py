"""Component value type."""

from typing import Any, Callable, List

from ..exceptions import ComponentError, InvalidTypeSpecifierError
from ..utilities import (
    is_component_class,
    is_component_class_or_instance,
    is_component_instance,
    is_component_type,
    parse_component_type,
)
from ..validation import FailedValidator
from .base import ResolveOptions, ValueType, describe_attribute


class ComponentValueType(ValueType):
    """References a component class ("typeof Movie") or its instances ("Movie").

    The referenced name is resolved lazily from the class declaring the
    attribute, so components may reference each other before both exist.
    """

    def __init__(self, component_type: str, attribute: Any = None, **options):
        if not is_component_type(component_type):
            raise InvalidTypeSpecifierError(
                f"The specified type is invalid ({describe_attribute(attribute)}, type: '{component_type}')"
            )
        super().__init__(attribute, **options)
        self._component_type = component_type
        self._component_name, self._is_class_reference = parse_component_type(component_type)

    def get_component_type(self) -> str:
        return self._component_type

    def get_component_name(self) -> str:
        return self._component_name

    def is_class_reference(self) -> bool:
        return self._is_class_reference

    def get_component(self, attribute: Any):
        """Resolve the referenced component class from the attribute's declaring class.

        Raises:
            ComponentError: If the value type doesn't belong to an attribute
        """
        if attribute is None or attribute.get_parent() is None:
            raise ComponentError(
                f"Cannot resolve the component type '{self._component_type}' without an owning attribute "
                f"(value types referencing components must be created by an attribute)"
            )
        return attribute.get_parent().get_component(self._component_name)

    def __str__(self) -> str:
        return self._component_type + super().__str__()

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        if result is not None:
            return result
        component = self.get_component(attribute)
        if self._is_class_reference:
            return is_component_class(value) and issubclass(value, component)
        return is_component_instance(value) and isinstance(value, component)

    def run_validators(self, value: Any, attribute_selector: Any = None) -> List[FailedValidator]:
        failed_validators = super().run_validators(value, attribute_selector)
        if is_component_instance(value):
            selector = True if attribute_selector is None else attribute_selector
            failed_validators.extend(value.run_validators(selector))
        return failed_validators

    def _resolve_attribute_selector(self, attribute_selector, attribute, value, options: ResolveOptions):
        if attribute_selector is False:
            return False
        if self._is_class_reference:
            return {}
        if not options.set_attributes_only:
            return self.get_component(attribute)._resolve_attribute_selector_with_options(
                attribute_selector, options
            )
        if not is_component_instance(value):
            return {}
        return value._resolve_attribute_selector_with_options(attribute_selector, options)

    def _traverse_attributes(self, iteratee: Callable, attribute, value, attribute_selector, options):
        if is_component_instance(value):
            value._traverse_attributes_with_options(iteratee, attribute_selector, options)

    def serialize_value(self, value: Any, attribute: Any = None, **options) -> Any:
        if not is_component_class_or_instance(value):
            return super().serialize_value(value, attribute, **options)
        options["_is_deep"] = True
        return value.serialize(**options)
