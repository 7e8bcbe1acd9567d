"""
Mango-style selector evaluation.

Reference implementation of the rich-query dialect the world state offers:
field equality, comparison operators, nested element matching and logical
combinators over JSON documents. Used by the bundled stores; production
stores evaluate selectors natively.
"""

from typing import Any

_MISSING = object()

COMPARISON_OPERATORS = {"$eq", "$ne", "$lt", "$lte", "$gt", "$gte"}
SUPPORTED_OPERATORS = COMPARISON_OPERATORS | {"$in", "$nin", "$exists", "$elemMatch"}
COMBINATORS = {"$and", "$or", "$nor"}


class SelectorError(ValueError):
    """Raised when a selector is not well formed."""


def resolve_path(document: Any, path: str) -> Any:
    """
    Resolve a dotted field path inside a document.

    Returns the module sentinel when any segment is missing.
    """
    current = document
    for segment in path.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            return _MISSING
    return current


def _is_operator_block(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(
        key.startswith("$") for key in condition
    )


def _compare(operator: str, actual: Any, expected: Any) -> bool:
    try:
        match operator:
            case "$eq":
                return actual == expected
            case "$ne":
                return actual != expected
            case "$lt":
                return actual < expected
            case "$lte":
                return actual <= expected
            case "$gt":
                return actual > expected
            case "$gte":
                return actual >= expected
    except TypeError:
        # Mixed types never satisfy an ordering comparison
        return False
    raise SelectorError(f"Unsupported comparison operator: {operator}")


def _match_operators(actual: Any, block: dict[str, Any]) -> bool:
    for operator, expected in block.items():
        if operator not in SUPPORTED_OPERATORS:
            raise SelectorError(f"Unsupported selector operator: {operator}")

        if operator == "$exists":
            if (actual is not _MISSING) != bool(expected):
                return False
            continue

        if actual is _MISSING:
            return False

        if operator in COMPARISON_OPERATORS:
            if not _compare(operator, actual, expected):
                return False
        elif operator == "$in":
            if not isinstance(expected, list):
                raise SelectorError("$in requires a list")
            if actual not in expected:
                return False
        elif operator == "$nin":
            if not isinstance(expected, list):
                raise SelectorError("$nin requires a list")
            if actual in expected:
                return False
        elif operator == "$elemMatch":
            if not isinstance(expected, dict):
                raise SelectorError("$elemMatch requires a selector object")
            if not isinstance(actual, list):
                return False
            if not any(_match_element(element, expected) for element in actual):
                return False
    return True


def _match_element(element: Any, condition: dict[str, Any]) -> bool:
    """Match one array element; operator blocks apply to the element itself."""
    if _is_operator_block(condition) and not (set(condition) & COMBINATORS):
        return _match_operators(element, condition)
    return matches(element, condition)


def _match_condition(actual: Any, condition: Any) -> bool:
    if _is_operator_block(condition):
        return _match_operators(actual, condition)
    if isinstance(condition, dict):
        # Nested selector against a sub-document
        if actual is _MISSING or not isinstance(actual, dict):
            return False
        return matches(actual, condition)
    if actual is _MISSING:
        return False
    return actual == condition


def matches(document: Any, selector: dict[str, Any]) -> bool:
    """
    Evaluate a selector against a decoded JSON document.

    Top-level fields are combined with logical AND.

    Raises:
        SelectorError: If the selector uses unsupported syntax
    """
    if not isinstance(selector, dict):
        raise SelectorError("Selector must be an object")

    for field_name, condition in selector.items():
        if field_name in COMBINATORS:
            if not isinstance(condition, list):
                raise SelectorError(f"{field_name} requires a list of selectors")
            results = [matches(document, sub) for sub in condition]
            if field_name == "$and" and not all(results):
                return False
            if field_name == "$or" and not any(results):
                return False
            if field_name == "$nor" and any(results):
                return False
            continue

        if field_name.startswith("$"):
            raise SelectorError(f"Unsupported selector combinator: {field_name}")

        if not _match_condition(resolve_path(document, field_name), condition):
            return False
    return True


def unwrap_query(query: dict[str, Any]) -> dict[str, Any]:
    """Accept either a bare selector or a {"selector": ...} query document."""
    if "selector" in query and isinstance(query["selector"], dict):
        return query["selector"]
    return query
