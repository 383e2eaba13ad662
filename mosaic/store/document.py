"""Projections and patches over stored documents.

A document is the stored form of a storable component: a dict tagged with
"__component", possibly nesting other component-tagged dicts.
"""

from typing import Any, Dict, Optional

from ..component.attribute_selector import (
    iterate_over_attribute_selector,
    normalize_attribute_selector,
)

Document = Dict[str, Any]
Projection = Dict[str, int]
DocumentPatch = Dict[str, Dict[str, Any]]


def build_projection(attribute_selector: Any) -> Optional[Projection]:
    """Turn an attribute selector into a dotted-path projection.

    Returns None for True (everything), and always keeps "__component".

    Example:
        build_projection({"title": True, "director": {"name": True}})
        # {"__component": 1, "title": 1, "director.__component": 1, "director.name": 1}
    """
    attribute_selector = normalize_attribute_selector(attribute_selector)
    if attribute_selector is True:
        return None
    if attribute_selector is False:
        return {"__component": 1}

    projection = {}

    def _build(attribute_selector, path):
        projection[f"{path}__component"] = 1
        for name, sub_selector in iterate_over_attribute_selector(attribute_selector):
            if sub_selector is True:
                projection[f"{path}{name}"] = 1
            else:
                _build(sub_selector, f"{path}{name}.")

    _build(attribute_selector, "")
    return projection


def delete_undefined_properties(value: Any) -> Any:
    """Drop None-valued keys of a dict in place. Other values are left as is."""
    if isinstance(value, dict):
        for name in [name for name, item in value.items() if item is None]:
            del value[name]
    return value


def build_document_patch(document: Document) -> DocumentPatch:
    """Turn a partial document into {"$set": ..., "$unset": ...} keyed by dotted paths.

    Component-tagged dicts are patched field by field. Other dicts and lists
    are replaced as a whole, and None values unset their path.

    Example:
        build_document_patch({"__component": "Movie", "title": "Inception", "year": None})
        # {"$set": {"__component": "Movie", "title": "Inception"}, "$unset": {"year": 1}}
    """
    patch: DocumentPatch = {}

    def _build(value, path):
        if value is None:
            patch.setdefault("$unset", {})[path] = 1
            return

        if isinstance(value, dict) and "__component" in value:
            for name, sub_value in value.items():
                _build(sub_value, f"{path}.{name}" if path else name)
            return

        # Lists keep their None items, only dict keys are dropped
        if isinstance(value, dict):
            delete_undefined_properties(value)

        patch.setdefault("$set", {})[path] = value

    _build(document, "")
    return patch
