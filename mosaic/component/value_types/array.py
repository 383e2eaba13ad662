"""Array value type."""

from typing import Any, Callable, List

from ..attribute_selector import intersect_attribute_selectors, merge_attribute_selectors
from ..utilities import is_array, join_attribute_path
from ..validation import FailedValidator
from .base import ResolveOptions, ValueType


class ArrayValueType(ValueType):
    """Lists (or tuples) whose items all satisfy an item value type."""

    def __init__(self, item_type: ValueType, attribute: Any = None, **options):
        super().__init__(attribute, **options)
        self._item_type = item_type

    def get_item_type(self) -> ValueType:
        return self._item_type

    def get_scalar_type(self) -> ValueType:
        return self._item_type.get_scalar_type()

    def __str__(self) -> str:
        return f"{self._item_type}[]" + super().__str__()

    def check_value(self, value: Any, attribute: Any = None) -> None:
        super().check_value(value, attribute)
        if value is None:
            return
        for item in value:
            self._item_type.check_value(item, attribute)

    def _check_value(self, value, attribute):
        result = super()._check_value(value, attribute)
        return result if result is not None else is_array(value)

    def sanitize_value(self, value: Any) -> Any:
        if is_array(value):
            value = type(value)(self._item_type.sanitize_value(item) for item in value)
        return super().sanitize_value(value)

    def run_validators(self, value: Any, attribute_selector: Any = None) -> List[FailedValidator]:
        failed_validators = super().run_validators(value, attribute_selector)
        if is_array(value):
            for index, item in enumerate(value):
                for failed in self._item_type.run_validators(item, attribute_selector):
                    path = join_attribute_path([f"[{index}]", failed.path])
                    failed_validators.append(FailedValidator(failed.validator, path))
        return failed_validators

    def _resolve_attribute_selector(self, attribute_selector, attribute, value, options: ResolveOptions):
        if attribute_selector is False:
            return False

        if not options.set_attributes_only or not is_array(value) or len(value) == 0:
            return self._item_type._resolve_attribute_selector(attribute_selector, attribute, None, options)

        aggregate = (
            intersect_attribute_selectors
            if options.aggregation_mode == "intersection"
            else merge_attribute_selectors
        )
        resolved = None
        for item in value:
            item_selector = self._item_type._resolve_attribute_selector(attribute_selector, attribute, item, options)
            resolved = item_selector if resolved is None else aggregate(resolved, item_selector)
        return resolved

    def _traverse_attributes(self, iteratee: Callable, attribute, value, attribute_selector, options):
        if not is_array(value):
            return
        for item in value:
            self._item_type._traverse_attributes(iteratee, attribute, item, attribute_selector, options)

    def serialize_value(self, value: Any, attribute: Any = None, **options) -> Any:
        if value is None:
            return None
        return [self._item_type.serialize_value(item, attribute, **options) for item in value]

    def introspect(self):
        introspected = super().introspect()
        introspected["items"] = self._item_type.introspect()
        return introspected
