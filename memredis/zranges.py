"""Range parsing and range filtering shared by the sorted set commands."""

from __future__ import annotations

from collections.abc import Sequence
from itertools import dropwhile, takewhile
from typing import TypeVar

from memredis.keyspace import CommandError, FloatValueError, _parse_float

MSG_SYNTAX_ERROR = "ERR syntax error"
MSG_INVALID_MIN_MAX = "ERR min or max is not a float"
MSG_INVALID_RANGE_ITEM = "ERR min or max not valid string range item"
MSG_INVALID_CURSOR = "ERR invalid cursor"

T = TypeVar("T")


def parse_float_range(text: str) -> tuple[float, bool]:
    """Parse a score bound: inclusive unless it starts with '('.

    An empty bound is 0, exclusive.
    """
    if not text:
        return 0.0, False
    inclusive = True
    if text.startswith("("):
        text = text[1:]
        inclusive = False
    try:
        value = _parse_float(text)
    except FloatValueError:
        raise CommandError(MSG_INVALID_MIN_MAX) from None
    return value, inclusive


def parse_lex_range(text: str) -> tuple[str, bool]:
    """Parse a lexicographic bound: '[x', '(x', '+' or '-'.

    '+' and '-' are returned as they are, marked exclusive.
    """
    if not text:
        raise CommandError(MSG_INVALID_RANGE_ITEM)
    if text in ("+", "-"):
        return text, False
    if text[0] == "(":
        return text[1:], False
    if text[0] == "[":
        return text[1:], True
    raise CommandError(MSG_INVALID_RANGE_ITEM)


def with_ss_range(
    elements: Sequence[tuple[str, float]],
    minimum: float,
    min_inclusive: bool,
    maximum: float,
    max_inclusive: bool,
) -> list[tuple[str, float]]:
    """Keep the (member, score) pairs, sorted by score, that lie in the range."""
    if min_inclusive:
        def below_min(score: float) -> bool:
            return score < minimum
    else:
        def below_min(score: float) -> bool:
            return score <= minimum
    if max_inclusive:
        def within_max(score: float) -> bool:
            return score <= maximum
    else:
        def within_max(score: float) -> bool:
            return score < maximum

    rest = dropwhile(lambda element: below_min(element[1]), elements)
    return list(takewhile(lambda element: within_max(element[1]), rest))


def with_lex_range(
    members: Sequence[str],
    minimum: str,
    min_inclusive: bool,
    maximum: str,
    max_inclusive: bool,
) -> list[str]:
    """Keep the sorted members that lie in the lexicographic range."""
    if maximum == "-" or minimum == "+":
        return []
    selected: list[str] = list(members)
    if minimum != "-":
        if min_inclusive:
            selected = list(dropwhile(lambda m: m < minimum, selected))
        else:
            selected = list(dropwhile(lambda m: m <= minimum, selected))
    if maximum != "+":
        if max_inclusive:
            selected = list(takewhile(lambda m: m <= maximum, selected))
        else:
            selected = list(takewhile(lambda m: m < maximum, selected))
    return selected


def slice_range(length: int, start: int, end: int) -> tuple[int, int]:
    """Turn inclusive, possibly negative, start/end indexes into slice bounds."""
    if start < 0:
        start = max(length + start, 0)
    start = min(start, length)
    if end < 0:
        end = length + end
        if end < 0:
            end = -1
    if end >= length:
        end = length - 1
    end += 1
    end = min(end, length)
    if end < start:
        return 0, 0
    return start, end


def apply_limit(items: Sequence[T], start: int, count: int) -> list[T]:
    """Apply LIMIT offset/count: a negative offset gives nothing, a negative count no cap."""
    if start < 0:
        return []
    selected = list(items[start:])
    if count >= 0:
        selected = selected[:count]
    return selected