"""Compile declarative guard configs into predicates over a context."""

from __future__ import annotations

import logging
import operator as op
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Final

from .schema import ConditionConfig
from .types import Predicate

logger = logging.getLogger(__name__)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def _segment(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current[part] if part in current else MISSING
    if isinstance(current, Sequence) and not isinstance(current, bytes):
        if part == "length":
            return len(current)
        if part.isdecimal():
            index = int(part)
            return current[index] if index < len(current) else MISSING
    return getattr(current, part, MISSING)


def resolve_field(context: Any, path: str) -> Any:
    """Resolve a dotted path (`"user.role"`, `"reviewers.0"`) against a context.

    Mappings are traversed by key, lists and strings by decimal index (or
    `length`), other objects by attribute. Returns :data:`MISSING` as soon as
    any segment is absent.
    """

    current = context
    for part in path.split("."):
        if current is None or current is MISSING:
            return MISSING
        current = _segment(current, part)
    return current


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _loose_eq(actual: Any, expected: Any) -> bool:
    if actual is MISSING or actual is None:
        return expected is None or expected is MISSING
    if actual == expected:
        return True
    # "5" == 5 style comparisons across str and number.
    if isinstance(actual, str) != isinstance(expected, str):
        a, b = _as_number(actual), _as_number(expected)
        return a is not None and b is not None and a == b
    return False


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is MISSING or actual is None or expected is None:
            return False
        try:
            return bool(compare(actual, expected))
        except TypeError:
            a, b = _as_number(actual), _as_number(expected)
            if a is None or b is None:
                return False
            return bool(compare(a, b))

    return check


def _text(value: Any) -> str:
    # Stringify the way schema authors expect from JSON: true/false/null, 3 not 3.0.
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _contains(actual: Any, expected: Any) -> bool:
    if actual is MISSING or actual is None:
        return False
    if isinstance(actual, Sequence) and not isinstance(actual, str | bytes):
        return expected in actual
    if isinstance(actual, set | frozenset):
        return expected in actual
    return _text(expected) in _text(actual)


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": _loose_eq,
    "neq": lambda a, b: not _loose_eq(a, b),
    "gt": _ordered(op.gt),
    "gte": _ordered(op.ge),
    "lt": _ordered(op.lt),
    "lte": _ordered(op.le),
    "contains": _contains,
}


def compile_condition(config: ConditionConfig) -> Predicate:
    check = OPERATORS.get(config.operator)
    if check is None:
        # Fail closed: an unrecognised operator blocks the transition.
        def unknown(_context: Any) -> bool:
            logger.warning(
                "Unknown condition operator",
                extra={"operator": config.operator, "field": config.field},
            )
            return False

        return unknown

    def predicate(context: Any) -> bool:
        return check(resolve_field(context, config.field), config.value)

    return predicate


def compile_conditions(configs: Sequence[ConditionConfig] | None) -> list[Predicate]:
    return [compile_condition(c) for c in configs or ()]
