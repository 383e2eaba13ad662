"""Attribute selectors: recursive descriptions of which attributes to touch.

An attribute selector is either a boolean or a dict mapping attribute names
to nested selectors. ``True`` selects everything, ``False`` selects nothing,
and ``{"title": True, "director": {"name": True}}`` selects a subtree.

The functions in this module never mutate their inputs.

Example:
    selector = merge_attribute_selectors({"title": True}, {"year": True})
    # {"title": True, "year": True}

    intersect_attribute_selectors(selector, {"year": True, "genre": True})
    # {"year": True}
"""

from typing import Any, Callable, Dict, Iterable, Iterator, Tuple, Union

from .utilities import get_type_of, is_array, is_component_instance, is_plain_object

AttributeSelector = Union[bool, Dict[str, Any]]


def normalize_attribute_selector(attribute_selector: Any) -> AttributeSelector:
    """Normalize a selector, turning None into False.

    Raises:
        TypeError: If the value is neither None, a boolean nor a dict
    """
    if attribute_selector is None:
        return False
    if isinstance(attribute_selector, bool):
        return attribute_selector
    if isinstance(attribute_selector, dict):
        return attribute_selector
    raise TypeError(
        f"Expected a valid attribute selector, but received a value of type "
        f"'{get_type_of(attribute_selector)}'"
    )


def create_attribute_selector_from_names(names: Iterable[str]) -> AttributeSelector:
    return {name: True for name in names}


def create_attribute_selector_from_attributes(attributes: Iterable) -> AttributeSelector:
    return {attribute.get_name(): True for attribute in attributes}


def get_from_attribute_selector(attribute_selector: Any, name: str) -> AttributeSelector:
    """Return the sub-selector for an attribute name."""
    attribute_selector = normalize_attribute_selector(attribute_selector)
    if isinstance(attribute_selector, bool):
        return attribute_selector
    return normalize_attribute_selector(attribute_selector.get(name))


def set_within_attribute_selector(
    attribute_selector: Any, name: str, sub_selector: Any
) -> AttributeSelector:
    """Return a copy of the selector with the sub-selector for name replaced.

    Boolean selectors are returned unchanged. Setting a sub-selector to False
    removes the entry.
    """
    attribute_selector = normalize_attribute_selector(attribute_selector)
    sub_selector = normalize_attribute_selector(sub_selector)
    if isinstance(attribute_selector, bool):
        return attribute_selector
    result = dict(attribute_selector)
    if sub_selector is False:
        result.pop(name, None)
    else:
        result[name] = sub_selector
    return result


def clone_attribute_selector(attribute_selector: Any) -> AttributeSelector:
    attribute_selector = normalize_attribute_selector(attribute_selector)
    if isinstance(attribute_selector, bool):
        return attribute_selector
    return {
        name: clone_attribute_selector(sub_selector)
        for name, sub_selector in attribute_selector.items()
        if normalize_attribute_selector(sub_selector) is not False
    }


def attribute_selector_includes(attribute_selector: Any, name: str) -> bool:
    return get_from_attribute_selector(attribute_selector, name) is not False


def iterate_over_attribute_selector(
    attribute_selector: Any,
) -> Iterator[Tuple[str, AttributeSelector]]:
    """Yield (name, sub_selector) pairs, skipping entries that select nothing."""
    attribute_selector = normalize_attribute_selector(attribute_selector)
    if isinstance(attribute_selector, bool):
        return
    for name, sub_selector in attribute_selector.items():
        sub_selector = normalize_attribute_selector(sub_selector)
        if sub_selector is not False:
            yield name, sub_selector


def attribute_selectors_are_equal(a: Any, b: Any) -> bool:
    a = normalize_attribute_selector(a)
    b = normalize_attribute_selector(b)
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    a_entries = dict(iterate_over_attribute_selector(a))
    b_entries = dict(iterate_over_attribute_selector(b))
    if a_entries.keys() != b_entries.keys():
        return False
    return all(attribute_selectors_are_equal(a_entries[name], b_entries[name]) for name in a_entries)


def merge_attribute_selectors(a: Any, b: Any) -> AttributeSelector:
    """Union of two selectors. True absorbs, False is the identity."""
    a = normalize_attribute_selector(a)
    b = normalize_attribute_selector(b)
    if a is False:
        return clone_attribute_selector(b)
    if b is False:
        return clone_attribute_selector(a)
    if a is True or b is True:
        return True
    result = clone_attribute_selector(a)
    for name, sub_selector in iterate_over_attribute_selector(b):
        result[name] = merge_attribute_selectors(result.get(name, False), sub_selector)
    return result


def intersect_attribute_selectors(a: Any, b: Any) -> AttributeSelector:
    """Intersection of two selectors. False absorbs, True is the identity."""
    a = normalize_attribute_selector(a)
    b = normalize_attribute_selector(b)
    if a is False or b is False:
        return False
    if a is True:
        return clone_attribute_selector(b)
    if b is True:
        return clone_attribute_selector(a)
    result = {}
    for name, sub_selector in iterate_over_attribute_selector(a):
        intersection = intersect_attribute_selectors(sub_selector, b.get(name))
        if intersection is not False:
            result[name] = intersection
    return result


def remove_from_attribute_selector(a: Any, b: Any) -> AttributeSelector:
    """Remove the attributes selected by b from a.

    Raises:
        ValueError: If a dict selector is removed from a True selector
    """
    a = normalize_attribute_selector(a)
    b = normalize_attribute_selector(b)
    if b is True:
        return False
    if b is False:
        return clone_attribute_selector(a)
    if a is False:
        return False
    if a is True:
        raise ValueError(
            "Cannot remove an 'object' attribute selector from a 'true' attribute selector"
        )
    result = clone_attribute_selector(a)
    for name, sub_selector in iterate_over_attribute_selector(b):
        if name not in result:
            continue
        remaining = remove_from_attribute_selector(result[name], sub_selector)
        if remaining is False:
            del result[name]
        else:
            result[name] = remaining
    return result


def _get_attribute_value(value: Any, name: str) -> Any:
    if is_component_instance(value):
        attribute = value.get_attribute(name) if value.has_attribute(name) else None
        if attribute is None or not attribute.is_set(value):
            return None
        return attribute.get_value(value)
    return value.get(name)


def pick_from_attribute_selector(
    value: Any, attribute_selector: Any, include_attribute_names: Iterable[str] = ()
) -> Any:
    """Extract the part of a value described by a selector.

    Args:
        value: A dict, a list, a component, or None
        attribute_selector: Which attributes to keep
        include_attribute_names: Names always copied from dicts (e.g. "__component")

    Returns:
        A new value of the same shape holding only the selected attributes

    Raises:
        ValueError: If the selector is False
        TypeError: If a dict selector is applied to a value that has no attributes
    """
    attribute_selector = normalize_attribute_selector(attribute_selector)
    include_attribute_names = tuple(include_attribute_names)

    if attribute_selector is False:
        raise ValueError(
            "Cannot pick attributes from a value when the specified attribute selector is 'false'"
        )

    return _pick(value, attribute_selector, include_attribute_names)


def _pick(value, attribute_selector, include_attribute_names):
    if attribute_selector is True or value is None:
        return value

    if is_array(value):
        return [_pick(item, attribute_selector, include_attribute_names) for item in value]

    if is_component_instance(value):
        picked = type(value).instantiate(is_new=value.is_new(), attribute_selector={})
        for name, sub_selector in iterate_over_attribute_selector(attribute_selector):
            if not value.has_attribute(name):
                continue
            attribute = value.get_attribute(name)
            if attribute.is_set(value):
                sub_value = _pick(attribute.get_value(value), sub_selector, include_attribute_names)
                attribute.set_value(picked, sub_value, source=attribute.get_value_source(value))
        return picked

    if not is_plain_object(value):
        raise TypeError(
            f"Cannot pick attributes from a value that is not a component, a plain object, "
            f"or an array (value type: '{get_type_of(value)}')"
        )

    picked = {}
    for name in include_attribute_names:
        if name in value:
            picked[name] = value[name]
    for name, sub_selector in iterate_over_attribute_selector(attribute_selector):
        if name in value:
            picked[name] = _pick(value[name], sub_selector, include_attribute_names)
    return picked


def traverse_attribute_selector(
    value: Any,
    attribute_selector: Any,
    iteratee: Callable[..., None],
    include_subtrees: bool = False,
    include_leafs: bool = True,
) -> None:
    """Walk a value along a selector, calling iteratee(value, name, parent, is_array).

    Leaves are the values reached by a True sub-selector or values that cannot
    be descended into. With include_subtrees, dicts and components reached by a
    dict sub-selector are reported too. Array items are visited one by one.
    """
    attribute_selector = normalize_attribute_selector(attribute_selector)
    if attribute_selector is False:
        return

    def _traverse(value, attribute_selector, name, parent, in_array):
        if is_array(value):
            for item in value:
                _traverse(item, attribute_selector, name, parent, True)
            return

        descendable = is_plain_object(value) or is_component_instance(value)
        if attribute_selector is True or not descendable:
            if include_leafs:
                iteratee(value, name, parent, in_array)
            return

        if include_subtrees:
            iteratee(value, name, parent, in_array)

        for sub_name, sub_selector in iterate_over_attribute_selector(attribute_selector):
            _traverse(_get_attribute_value(value, sub_name), sub_selector, sub_name, value, False)

    _traverse(value, attribute_selector, None, None, False)
