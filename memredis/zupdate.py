"""Sorted set commands that change data.

Each function checks its arguments right away, raising CommandError, and
returns a callable that runs the command against a database and gives the reply.
"""

from __future__ import annotations

import operator
from collections import Counter
from collections.abc import Callable, Sequence

from memredis.keyspace import (
    MSG_INVALID_FLOAT,
    CommandError,
    FloatValueError,
    RedisDB,
    WrongTypeError,
    _parse_float,
    format_float,
)
from memredis.zquery import Command, _int, _wrong_number, _zset_exists
from memredis.zranges import (
    MSG_SYNTAX_ERROR,
    parse_float_range,
    parse_lex_range,
    slice_range,
    with_lex_range,
    with_ss_range,
)

MSG_XX_AND_NX = "ERR XX and NX options at the same time are not compatible"
MSG_SINGLE_ELEMENT_PAIR = "ERR INCR option supports a single increment-element pair"
MSG_NO_INPUT_KEYS = "ERR at least 1 input key is needed for ZUNIONSTORE/ZINTERSTORE"
MSG_WEIGHT_NOT_FLOAT = "ERR weight value is not a float"

_ZADD_FLAGS = ("NX", "XX", "CH", "INCR")

_AGGREGATES: dict[str, Callable[[float, float], float]] = {
    "sum": operator.add,
    "min": min,
    "max": max,
}


def _float(text: str, message: str = MSG_INVALID_FLOAT) -> float:
    try:
        return _parse_float(text)
    except FloatValueError:
        raise CommandError(message) from None


def _check_zset(db: RedisDB, key: str) -> None:
    if db.exists(key) and db.type_of(key) != "zset":
        raise WrongTypeError()


def zadd(args: Sequence[str]) -> Command:
    """ZADD key [NX|XX] [CH] [INCR] score member [score member ...]."""
    if len(args) < 3:
        raise CommandError(_wrong_number("zadd"))
    key = args[0]
    rest = list(args[1:])
    flags: set[str] = set()
    while rest and rest[0].upper() in _ZADD_FLAGS:
        flags.add(rest.pop(0).upper())
    if not rest or len(rest) % 2:
        raise CommandError(MSG_SYNTAX_ERROR)
    elements: dict[str, float] = {}
    for score_text, member in zip(rest[::2], rest[1::2]):
        elements[member] = _float(score_text)
    nx, xx, ch, incr = (flag in flags for flag in _ZADD_FLAGS)
    if nx and xx:
        raise CommandError(MSG_XX_AND_NX)
    if incr and len(elements) > 1:
        raise CommandError(MSG_SINGLE_ELEMENT_PAIR)

    def run(db: RedisDB) -> int | str | None:
        _check_zset(db, key)
        if incr:
            member, delta = next(iter(elements.items()))
            present = db.sset_exists(key, member)
            if (nx and present) or (xx and not present):
                return None
            return format_float(db.sset_incrby(key, member, delta))

        changed = 0
        for member, score in elements.items():
            present = db.sset_exists(key, member)
            if (nx and present) or (xx and not present):
                continue
            old = db.sset_score(key, member)
            if db.sset_add(key, score, member):
                changed += 1
            elif ch and old != score:
                changed += 1
        return changed

    return run


def zincrby(args: Sequence[str]) -> Command:
    """ZINCRBY key delta member: the new, formatted score."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zincrby"))
    key, delta_text, member = args
    delta = _float(delta_text)

    def run(db: RedisDB) -> str:
        _check_zset(db, key)
        return format_float(db.sset_incrby(key, member, delta))

    return run


def zrem(args: Sequence[str]) -> Command:
    """ZREM key member [member ...]: number of members removed."""
    if len(args) < 2:
        raise CommandError(_wrong_number("zrem"))
    key, members = args[0], list(args[1:])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        return sum(1 for member in members if db.sset_rem(key, member))

    return run


def zremrangebylex(args: Sequence[str]) -> Command:
    """ZREMRANGEBYLEX key min max: number of members removed."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zremrangebylex"))
    key = args[0]
    minimum, min_incl = parse_lex_range(args[1])
    maximum, max_incl = parse_lex_range(args[2])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        members = sorted(db.sset_members(key))
        doomed = with_lex_range(members, minimum, min_incl, maximum, max_incl)
        for member in doomed:
            db.sset_rem(key, member)
        return len(doomed)

    return run


def zremrangebyrank(args: Sequence[str]) -> Command:
    """ZREMRANGEBYRANK key start stop: number of members removed."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zremrangebyrank"))
    key = args[0]
    start = _int(args[1])
    end = _int(args[2])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        members = db.sset_members(key)
        lo, hi = slice_range(len(members), start, end)
        for member in members[lo:hi]:
            db.sset_rem(key, member)
        return hi - lo

    return run


def zremrangebyscore(args: Sequence[str]) -> Command:
    """ZREMRANGEBYSCORE key min max: number of members removed."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zremrangebyscore"))
    key = args[0]
    minimum, min_incl = parse_float_range(args[1])
    maximum, max_incl = parse_float_range(args[2])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        elements = db.sset_elements(key)
        doomed = with_ss_range(elements, minimum, min_incl, maximum, max_incl)
        for member, _ in doomed:
            db.sset_rem(key, member)
        return len(doomed)

    return run


def _parse_store_args(
    name: str, args: Sequence[str]
) -> tuple[str, list[str], list[float] | None, str]:
    if len(args) < 3:
        raise CommandError(_wrong_number(name))
    destination = args[0]
    num_keys = _int(args[1])
    rest = list(args[2:])
    if len(rest) < num_keys:
        raise CommandError(MSG_SYNTAX_ERROR)
    if num_keys <= 0:
        raise CommandError(MSG_NO_INPUT_KEYS)
    keys, rest = rest[:num_keys], rest[num_keys:]

    weights: list[float] | None = None
    aggregate = "sum"
    while rest:
        option = rest[0].lower()
        if option == "weights":
            if len(rest) < num_keys + 1:
                raise CommandError(MSG_SYNTAX_ERROR)
            weights = [_float(text, MSG_WEIGHT_NOT_FLOAT) for text in rest[1 : num_keys + 1]]
            rest = rest[num_keys + 1 :]
        elif option == "aggregate":
            if len(rest) < 2:
                raise CommandError(MSG_SYNTAX_ERROR)
            aggregate = rest[1].lower()
            if aggregate not in _AGGREGATES:
                raise CommandError(MSG_SYNTAX_ERROR)
            rest = rest[2:]
        else:
            raise CommandError(MSG_SYNTAX_ERROR)
    return destination, keys, weights, aggregate


def _combine(
    db: RedisDB, keys: list[str], weights: list[float] | None, aggregate: str
) -> tuple[dict[str, float], Counter[str]]:
    combine = _AGGREGATES[aggregate]
    result: dict[str, float] = {}
    counts: Counter[str] = Counter()
    for index, key in enumerate(keys):
        if not _zset_exists(db, key):
            continue
        for member, score in db.sset_elements(key):
            if weights is not None:
                score *= weights[index]
            counts[member] += 1
            if member in result:
                result[member] = combine(result[member], score)
            else:
                result[member] = score
    return result, counts


def zunionstore(args: Sequence[str]) -> Command:
    """ZUNIONSTORE dest numkeys key [key ...] [WEIGHTS w ...] [AGGREGATE SUM|MIN|MAX]."""
    destination, keys, weights, aggregate = _parse_store_args("zunionstore", args)

    def run(db: RedisDB) -> int:
        if destination not in keys:
            db.delete(destination, True)
        combined, _ = _combine(db, keys, weights, aggregate)
        db.sset_set(destination, combined)
        return len(combined)

    return run


def zinterstore(args: Sequence[str]) -> Command:
    """ZINTERSTORE dest numkeys key [key ...] [WEIGHTS w ...] [AGGREGATE SUM|MIN|MAX]."""
    destination, keys, weights, aggregate = _parse_store_args("zinterstore", args)

    def run(db: RedisDB) -> int:
        db.delete(destination, True)
        combined, counts = _combine(db, keys, weights, aggregate)
        result = {
            member: score
            for member, score in combined.items()
            if counts[member] == len(keys)
        }
        db.sset_set(destination, result)
        return len(result)

    return run


def zpop(args: Sequence[str], reverse: bool) -> Command:
    """ZPOPMAX (reverse) / ZPOPMIN key [count]: popped members with their scores."""
    name = "zpopmax" if reverse else "zpopmin"
    if len(args) < 1:
        raise CommandError(_wrong_number(name))
    key = args[0]
    count = _int(args[1]) if len(args) > 1 else 1
    if len(args) > 2:
        raise CommandError(MSG_SYNTAX_ERROR)

    def run(db: RedisDB) -> list[str]:
        if not _zset_exists(db, key):
            return []
        elements = db.sset_elements(key)
        if reverse:
            elements.reverse()
        lo, hi = slice_range(len(elements), 0, count - 1)
        reply: list[str] = []
        for member, score in elements[lo:hi]:
            reply.extend((member, format_float(score)))
            db.sset_rem(key, member)
        return reply

    return run