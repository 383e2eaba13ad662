"""Compile document-form queries into flat expression lists.

A query maps attribute paths to values, nested subqueries, or operators:

    {"year": {"$greaterThan": 2010}, "director": {"name": "Christopher Nolan"}}

compiles to

    [("year", "$greaterThan", 2010), ("director.name", "$equal", "Christopher Nolan")]

The operands of $some, $every and $not are themselves expression lists
(with paths relative to the operand), and $and, $or and $nor take a list
of expression lists.
"""

from typing import Any, Dict, List, Tuple

from .exceptions import QueryError
from .operators import (
    COMPOUND_OPERATORS,
    SUBQUERY_OPERATORS,
    describe_query,
    looks_like_operator,
    normalize_operator_for_value,
)

Expression = Tuple[str, str, Any]


def to_document_expressions(query: Dict[str, Any]) -> List[Expression]:
    """Compile a query into a list of expressions.

    Args:
        query: A query in document form

    Returns:
        List of (path, operator, operand) expressions

    Raises:
        QueryError: If the query is malformed
    """
    if not isinstance(query, dict):
        raise QueryError(f"A query should be a dict (query: {describe_query(query)})")

    expressions = []
    for name, value in query.items():
        if looks_like_operator(name):
            if name not in COMPOUND_OPERATORS:
                raise QueryError(
                    f"A query cannot contain the operator '{name}' at its root "
                    f"(query: {describe_query(query)})"
                )
            expressions.append(_handle_operator(name, value, "", query))
        else:
            expressions.extend(_handle_value(value, name, query))
    return expressions


def _handle_value(value: Any, path: str, query: Any) -> List[Expression]:
    if not isinstance(value, dict):
        return [(path, "$equal", value)]

    names = list(value)
    operators = [name for name in names if looks_like_operator(name)]

    if operators and len(operators) != len(names):
        raise QueryError(
            f"A subquery cannot contain both an attribute and an operator "
            f"(subquery: {describe_query(value)})"
        )

    if not operators:
        expressions = []
        for name, sub_value in value.items():
            sub_path = f"{path}.{name}" if path else name
            expressions.extend(_handle_value(sub_value, sub_path, query))
        return expressions

    return [_handle_operator(operator, operand, path, query) for operator, operand in value.items()]


def _handle_operator(operator: str, operand: Any, path: str, query: Any) -> Expression:
    operator = normalize_operator_for_value(operator, operand, query)

    if operator in SUBQUERY_OPERATORS:
        return (path, operator, _handle_value(operand, "", query))

    if operator in COMPOUND_OPERATORS:
        return (path, operator, [_handle_value(sub_query, "", query) for sub_query in operand])

    if isinstance(operand, dict):
        raise QueryError(f"Unexpected object encountered in a query (query: {describe_query(query)})")

    return (path, operator, operand)
