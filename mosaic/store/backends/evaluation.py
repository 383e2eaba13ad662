"""Evaluate compiled query expressions against documents held in Python.

Shared by the backends that keep or load whole documents: filtering,
sorting, paging, projections, patches and unique index checks.
"""

import copy
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..document import Document, DocumentPatch, Projection
from ..index import IndexSchema
from ..query import Expression


def get_path(document: Any, path: str) -> Any:
    """Return the value at a dotted path, or None if any segment is missing."""
    if path == "":
        return document
    value = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def set_path(document: Document, path: str, value: Any) -> None:
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value


def unset_path(document: Document, path: str) -> None:
    parts = path.split(".")
    target = get_path(document, ".".join(parts[:-1]))
    if isinstance(target, dict):
        target.pop(parts[-1], None)


def apply_document_patch(document: Document, document_patch: DocumentPatch) -> Document:
    """Return a patched copy of a document."""
    document = copy.deepcopy(document)
    for path, value in document_patch.get("$set", {}).items():
        if path == "":
            document = copy.deepcopy(value)
        else:
            set_path(document, path, copy.deepcopy(value))
    for path in document_patch.get("$unset", {}):
        unset_path(document, path)
    return document


def matches_identifier(document: Document, identifier_descriptor: Dict[str, Any]) -> bool:
    return all(document.get(name) == value for name, value in identifier_descriptor.items())


def _comparable(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    numbers = (int, float)
    if isinstance(a, numbers) and isinstance(b, numbers):
        return True
    return any(isinstance(a, kind) and isinstance(b, kind) for kind in (str, datetime))


def evaluate_expressions(value: Any, expressions: Iterable[Expression]) -> bool:
    return all(evaluate_expression(value, expression) for expression in expressions)


def evaluate_expression(document: Any, expression: Expression) -> bool:
    path, operator, operand = expression
    value = get_path(document, path)

    if operator == "$equal":
        return value == operand
    if operator == "$notEqual":
        return value != operand
    if operator == "$greaterThan":
        return _comparable(value, operand) and value > operand
    if operator == "$greaterThanOrEqual":
        return _comparable(value, operand) and value >= operand
    if operator == "$lessThan":
        return _comparable(value, operand) and value < operand
    if operator == "$lessThanOrEqual":
        return _comparable(value, operand) and value <= operand
    if operator == "$any":
        return value in operand

    if operator == "$includes":
        return isinstance(value, str) and operand in value
    if operator == "$startsWith":
        return isinstance(value, str) and value.startswith(operand)
    if operator == "$endsWith":
        return isinstance(value, str) and value.endswith(operand)
    if operator == "$matches":
        return isinstance(value, str) and operand.search(value) is not None

    if operator == "$some":
        return isinstance(value, list) and any(evaluate_expressions(item, operand) for item in value)
    if operator == "$every":
        return isinstance(value, list) and all(evaluate_expressions(item, operand) for item in value)
    if operator == "$length":
        return isinstance(value, list) and len(value) == operand

    if operator == "$not":
        return not evaluate_expressions(value, operand)
    if operator == "$and":
        return all(evaluate_expressions(value, sub_expressions) for sub_expressions in operand)
    if operator == "$or":
        return any(evaluate_expressions(value, sub_expressions) for sub_expressions in operand)
    if operator == "$nor":
        return not any(evaluate_expressions(value, sub_expressions) for sub_expressions in operand)

    raise ValueError(f"Cannot evaluate the operator '{operator}'")


def _sort_key(value: Any):
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (5, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, dict):
        return (3, repr(value))
    if isinstance(value, list):
        return (4, repr(value))
    if isinstance(value, datetime):
        return (6, value.isoformat())
    return (7, repr(value))


def sort_documents(documents: List[Document], sort: Optional[Dict[str, str]]) -> List[Document]:
    """Sort documents by several paths.

    Values of different types never compare with each other: they are ordered
    by type (missing, numbers, strings, objects, arrays, booleans, dates) and
    then by value. Missing values come first in ascending order.
    """
    documents = list(documents)
    if not sort:
        return documents

    def key(path):
        def _key(document):
            return _sort_key(get_path(document, path))

        return _key

    # Stable sorts applied from the least significant key
    for path, direction in reversed(list(sort.items())):
        documents.sort(key=key(path), reverse=direction == "desc")
    return documents


def project_document(document: Document, projection: Optional[Projection]) -> Document:
    """Return a copy of a document restricted to the dotted paths of a projection.

    Paths go through lists: "actors.id" keeps the id of every actor.
    """
    if projection is None:
        return copy.deepcopy(document)

    tree: Dict[str, Any] = {}
    for path in projection:
        node = tree
        parts = path.split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if child is True:
                break
            node = node.setdefault(part, {})
        else:
            node[parts[-1]] = True

    def _project(value, tree):
        if tree is True or not isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        if isinstance(value, list):
            return [_project(item, tree) for item in value]
        return {name: _project(value[name], sub_tree) for name, sub_tree in tree.items() if name in value}

    return _project(document, tree)


def select_documents(
    documents: Iterable[Document],
    expressions: List[Expression],
    projection: Optional[Projection] = None,
    sort: Optional[Dict[str, str]] = None,
    skip: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Document]:
    """Filter, sort, page and project documents."""
    selected = [document for document in documents if evaluate_expressions(document, expressions)]
    selected = sort_documents(selected, sort)
    if skip:
        selected = selected[skip:]
    if limit is not None:
        selected = selected[:limit]
    return [project_document(document, projection) for document in selected]


def find_unique_violation(
    document: Document, others: Iterable[Document], indexes: Iterable[IndexSchema]
) -> Optional[str]:
    """Return the name of the first unique index the document would violate.

    Documents with a missing value in an index don't take part in it.
    """
    others = list(others)
    for index in indexes:
        if not index.is_unique or index.is_primary:
            continue
        key = tuple(get_path(document, path) for path in index.attributes)
        if any(part is None for part in key):
            continue
        for other in others:
            if tuple(get_path(other, path) for path in index.attributes) == key:
                return index.name
    return None
