"""
Field visibility conditions.

A condition is a JsonLogic-style tree evaluated against the slot map:

    {"and": [{">": [{"var": "age"}, 10]}, {"==": [{"var": "has_car"}, true]}]}

Only a closed set of operators is understood (variable lookup, comparisons,
boolean connectives, membership); an unknown operator raises
InvalidConditionError. An object with zero or several keys is not an
operation but a literal value, and objects and arrays count as true.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from formflow.application.exceptions import InvalidConditionError

NO_CONDITION = object()


def is_visible(condition: Any, data: Mapping[str, Any]) -> bool:
    """Evaluate a visibility condition. `NO_CONDITION` means always visible; `None` hides."""
    if condition is NO_CONDITION:
        return True
    return _truthy(evaluate(condition, data))


def evaluate(node: Any, data: Mapping[str, Any]) -> Any:
    if isinstance(node, list):
        return [evaluate(item, data) for item in node]
    # Only a single-key object is an operation; any other object is a literal.
    if not isinstance(node, dict) or len(node) != 1:
        return node

    op, raw_args = next(iter(node.items()))
    args = raw_args if isinstance(raw_args, list) else [raw_args]

    if op == "var":
        return _var(args, data)
    if op == "and":
        return _and(args, data)
    if op == "or":
        return _or(args, data)

    handler = _OPERATORS.get(op)
    if handler is None:
        raise InvalidConditionError(f"Unsupported condition operator: {op!r}")
    values = [evaluate(arg, data) for arg in args]
    try:
        return handler(*values)
    except (TypeError, IndexError) as e:
        raise InvalidConditionError(f"Bad arguments for operator {op!r}: {raw_args!r}") from e


def _var(args: list[Any], data: Mapping[str, Any]) -> Any:
    path = evaluate(args[0], data) if args else ""
    default = evaluate(args[1], data) if len(args) > 1 else None
    if path in (None, ""):
        return data

    current: Any = data
    for key in str(path).split("."):
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return default
    return current


def _and(args: list[Any], data: Mapping[str, Any]) -> Any:
    value: Any = None
    for arg in args:
        value = evaluate(arg, data)
        if not value:
            return value
    return value


def _or(args: list[Any], data: Mapping[str, Any]) -> Any:
    value: Any = None
    for arg in args:
        value = evaluate(arg, data)
        if value:
            return value
    return value


def _truthy(value: Any) -> bool:
    # Visibility follows JavaScript truthiness: every object and array counts as true.
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _to_number(value: Any) -> float | None:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return None
    return None


def _loose_equals(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if type(a) is type(b):
        return a == b
    if isinstance(a, (int, float, bool)) or isinstance(b, (int, float, bool)):
        left, right = _to_number(a), _to_number(b)
        return left is not None and right is not None and left == right
    return a == b


def _strict_equals(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def _compare(a: Any, b: Any, op: str) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        left: Any = a
        right: Any = b
    else:
        left, right = _to_number(a), _to_number(b)
        if left is None or right is None:
            return False
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def _less(*args: Any) -> bool:
    # {"<": [a, b, c]} is the "between, exclusive" form.
    if len(args) == 3:
        return _compare(args[0], args[1], "<") and _compare(args[1], args[2], "<")
    return _compare(args[0], args[1], "<")


def _less_equal(*args: Any) -> bool:
    if len(args) == 3:
        return _compare(args[0], args[1], "<=") and _compare(args[1], args[2], "<=")
    return _compare(args[0], args[1], "<=")


def _in(needle: Any, haystack: Any) -> bool:
    if isinstance(haystack, str):
        return isinstance(needle, str) and needle in haystack
    if isinstance(haystack, list):
        return needle in haystack
    return False


_OPERATORS = {
    "==": lambda a, b=None: _loose_equals(a, b),
    "!=": lambda a, b=None: not _loose_equals(a, b),
    "===": lambda a, b=None: _strict_equals(a, b),
    "!==": lambda a, b=None: not _strict_equals(a, b),
    ">": lambda a, b=None: _compare(a, b, ">"),
    ">=": lambda a, b=None: _compare(a, b, ">="),
    "<": _less,
    "<=": _less_equal,
    "!": lambda a=None: not a,
    "!!": lambda a=None: bool(a),
    "in": _in,
}
