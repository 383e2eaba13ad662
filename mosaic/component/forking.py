"""Forking and merging of values that may contain components.

A fork is an independent derivative of a component. Reads fall through to
the origin until the fork overrides a value; writes never reach the origin.
Merging copies the overrides of a fork back into its origin.

Example:
    draft = movie.fork()
    draft.title = "Inception (director's cut)"
    movie.title         # unchanged
    movie.merge(draft)
    movie.title         # "Inception (director's cut)"
"""

from typing import Any

from .utilities import is_component_class_or_instance, is_component_instance


def fork(value: Any) -> Any:
    """Fork a value. Containers are copied, scalars are returned as is."""
    if is_component_class_or_instance(value):
        return value.fork()
    if isinstance(value, list):
        return [fork(item) for item in value]
    if isinstance(value, tuple):
        return tuple(fork(item) for item in value)
    if isinstance(value, dict):
        return {key: fork(item) for key, item in value.items()}
    return value


def merge(forked_value: Any) -> Any:
    """Return the origin-side counterpart of a forked value, with the fork's changes applied."""
    if is_component_instance(forked_value):
        origin = forked_value.get_fork_origin()
        if origin is None:
            return forked_value
        origin.merge(forked_value)
        return origin
    if isinstance(forked_value, list):
        return [merge(item) for item in forked_value]
    if isinstance(forked_value, tuple):
        return tuple(merge(item) for item in forked_value)
    if isinstance(forked_value, dict):
        return {key: merge(item) for key, item in forked_value.items()}
    return forked_value
