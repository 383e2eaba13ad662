"""Query operators, their aliases and operand checks."""

import json
import re
from datetime import datetime
from typing import Any

from .exceptions import QueryError

BASIC_OPERATORS = (
    "$equal",
    "$notEqual",
    "$greaterThan",
    "$greaterThanOrEqual",
    "$lessThan",
    "$lessThanOrEqual",
    "$any",
)
STRING_OPERATORS = ("$includes", "$startsWith", "$endsWith", "$matches")
ARRAY_OPERATORS = ("$some", "$every", "$length")
LOGICAL_OPERATORS = ("$not", "$and", "$or", "$nor")

SUPPORTED_OPERATORS = BASIC_OPERATORS + STRING_OPERATORS + ARRAY_OPERATORS + LOGICAL_OPERATORS

OPERATOR_ALIASES = {
    "$equals": "$equal",
    "$notEquals": "$notEqual",
    "$greaterThanOrEquals": "$greaterThanOrEqual",
    "$lessThanOrEquals": "$lessThanOrEqual",
    "$in": "$any",
    "$include": "$includes",
    "$startWith": "$startsWith",
    "$endWith": "$endsWith",
    "$match": "$matches",
    "$size": "$length",
}

# Operators whose operand is a subquery rather than a value
SUBQUERY_OPERATORS = ("$some", "$every", "$not")
COMPOUND_OPERATORS = ("$and", "$or", "$nor")


def looks_like_operator(name: str) -> bool:
    return isinstance(name, str) and name.startswith("$")


def describe_query(query: Any) -> str:
    return json.dumps(query, default=str)


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, (dict, list, tuple)) or isinstance(value, datetime)


def normalize_operator_for_value(operator: str, value: Any, query: Any) -> str:
    """Resolve operator aliases and check the shape of the operand.

    Args:
        operator: The operator as written in the query (e.g. "$in")
        value: Its operand
        query: The enclosing query (used in error messages)

    Returns:
        The canonical operator name (e.g. "$any")

    Raises:
        QueryError: If the operator is unsupported or the operand has the wrong shape
    """
    operator = OPERATOR_ALIASES.get(operator, operator)

    if operator not in SUPPORTED_OPERATORS:
        raise QueryError(
            f"A query contains an operator that is not supported "
            f"(operator: '{operator}', query: {describe_query(query)})"
        )

    def expect(condition: bool, description: str) -> None:
        if not condition:
            raise QueryError(
                f"Expected {description} as value of the operator '{operator}' "
                f"(query: {describe_query(query)})"
            )

    if operator == "$any":
        expect(isinstance(value, (list, tuple)), "an array")
    elif operator in BASIC_OPERATORS:
        expect(_is_scalar(value), "a scalar value")
    elif operator == "$matches":
        expect(isinstance(value, re.Pattern), "a regular expression")
    elif operator in STRING_OPERATORS:
        expect(isinstance(value, str), "a string")
    elif operator == "$length":
        expect(isinstance(value, int) and not isinstance(value, bool), "an integer")
    elif operator in COMPOUND_OPERATORS:
        expect(isinstance(value, (list, tuple)), "an array")

    return operator
