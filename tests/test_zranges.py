import math

import pytest

from memredis.keyspace import CommandError
from memredis.zranges import (
    MSG_INVALID_MIN_MAX,
    MSG_INVALID_RANGE_ITEM,
    apply_limit,
    parse_float_range,
    parse_lex_range,
    slice_range,
    with_lex_range,
    with_ss_range,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2", (2.0, True)),
        ("(2", (2.0, False)),
        ("3.3", (3.3, True)),
        ("", (0.0, False)),
        ("-inf", (-math.inf, True)),
        ("+inf", (math.inf, True)),
        ("(inf", (math.inf, False)),
    ],
)
def test_parse_float_range(text, expected):
    assert parse_float_range(text) == expected


@pytest.mark.parametrize("text", ["nofloat", "[1", "(", "1x"])
def test_parse_float_range_errors(text):
    with pytest.raises(CommandError) as info:
        parse_float_range(text)
    assert str(info.value) == MSG_INVALID_MIN_MAX


@pytest.mark.parametrize(
    "text, expected",
    [
        ("+", ("+", False)),
        ("-", ("-", False)),
        ("[abc", ("abc", True)),
        ("(abc", ("abc", False)),
        ("[", ("", True)),
    ],
)
def test_parse_lex_range(text, expected):
    assert parse_lex_range(text) == expected


@pytest.mark.parametrize("text", ["", "1", "!a", "a"])
def test_parse_lex_range_errors(text):
    with pytest.raises(CommandError) as info:
        parse_lex_range(text)
    assert str(info.value) == MSG_INVALID_RANGE_ITEM


SS_ELEMENTS = [("key1", 1.0), ("key5", 5.0)]


@pytest.mark.parametrize(
    "minimum, min_inc, maximum, max_inc, want",
    [
        (2.0, True, 3.0, True, []),
        (-2.0, True, -3.0, True, []),
        (12.0, True, 13.0, True, []),
        (1.0, False, 3.0, True, []),
        (2.0, True, 5.0, False, []),
        (0.0, False, 2.0, False, ["key1"]),
        (2.0, False, 7.0, False, ["key5"]),
        (0.0, False, 7.0, False, ["key1", "key5"]),
        (1.0, False, 5.0, False, []),
        (1.0, True, 5.0, True, ["key1", "key5"]),
    ],
)
def test_with_ss_range(minimum, min_inc, maximum, max_inc, want):
    have = with_ss_range(SS_ELEMENTS, minimum, min_inc, maximum, max_inc)
    assert [member for member, _ in have] == want


LEX_MEMBERS = sorted(
    ["zero kelvin", "minusfour", "one", "oneone", "two", "zwei", "three", "drei", "inf"]
)


@pytest.mark.parametrize(
    "minimum, min_inc, maximum, max_inc, want",
    [
        ("-", False, "+", False, LEX_MEMBERS),
        ("zz", True, "+", False, []),
        ("o", True, "three", True, ["one", "oneone", "three"]),
        ("o", False, "z", False, ["one", "oneone", "three", "two"]),
        ("+", False, "z", False, []),
        ("a", False, "-", False, []),
        ("z", False, "a", False, []),
        ("z", False, "z", False, []),
    ],
)
def test_with_lex_range(minimum, min_inc, maximum, max_inc, want):
    assert with_lex_range(LEX_MEMBERS, minimum, min_inc, maximum, max_inc) == want


@pytest.mark.parametrize(
    "length, start, end, expected",
    [
        (6, 0, -1, (0, 6)),
        (6, 0, 1, (0, 2)),
        (6, -1, -1, (5, 6)),
        (6, -2, -1, (4, 6)),
        (6, -100, -100, (0, 0)),
        (6, 0, -101, (0, 0)),
        (6, 4, 100, (4, 6)),
    ],
)
def test_slice_range(length, start, end, expected):
    assert slice_range(length, start, end) == expected


def test_slice_range_out_of_bounds_is_empty():
    lo, hi = slice_range(6, 100, 400)
    assert hi - lo == 0


@pytest.mark.parametrize(
    "start, count, expected",
    [
        (1, 2, ["b", "c"]),
        (-1, 2, []),
        (1, -2, ["b", "c", "d"]),
        (10, 2, []),
        (0, 0, []),
        (1, 2000, ["b", "c", "d"]),
    ],
)
def test_apply_limit(start, count, expected):
    assert apply_limit(["a", "b", "c", "d"], start, count) == expected