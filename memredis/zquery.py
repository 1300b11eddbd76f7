"""Read-only sorted set commands.

Each function checks its arguments right away, raising CommandError, and
returns a callable that runs the command against a database and gives the reply.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from fnmatch import fnmatchcase
from typing import Any

from memredis.keyspace import (
    MSG_INVALID_INT,
    CommandError,
    IntValueError,
    Order,
    RedisDB,
    WrongTypeError,
    _parse_int,
    format_float,
)
from memredis.zranges import (
    MSG_INVALID_CURSOR,
    MSG_SYNTAX_ERROR,
    apply_limit,
    parse_float_range,
    parse_lex_range,
    slice_range,
    with_lex_range,
    with_ss_range,
)

Command = Callable[[RedisDB], Any]


def _wrong_number(name: str) -> str:
    return f"ERR wrong number of arguments for '{name}' command"


def _int(text: str, message: str = MSG_INVALID_INT) -> int:
    try:
        return _parse_int(text)
    except IntValueError:
        raise CommandError(message) from None


def _zset_exists(db: RedisDB, key: str) -> bool:
    if not db.exists(key):
        return False
    if db.type_of(key) != "zset":
        raise WrongTypeError()
    return True


def _flatten(elements: Sequence[tuple[str, float]], with_scores: bool) -> list[str]:
    if not with_scores:
        return [member for member, _ in elements]
    reply: list[str] = []
    for member, score in elements:
        reply.extend((member, format_float(score)))
    return reply


def _parse_limit(options: list[str]) -> tuple[int, int]:
    if len(options) < 3:
        raise CommandError(MSG_SYNTAX_ERROR)
    return _int(options[1]), _int(options[2])


def zcard(args: Sequence[str]) -> Command:
    """ZCARD key: number of members."""
    if len(args) != 1:
        raise CommandError(_wrong_number("zcard"))
    key = args[0]

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        return db.sset_card(key)

    return run


def zcount(args: Sequence[str]) -> Command:
    """ZCOUNT key min max: number of members within a score range."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zcount"))
    key = args[0]
    minimum, min_incl = parse_float_range(args[1])
    maximum, max_incl = parse_float_range(args[2])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        elements = db.sset_elements(key)
        return len(with_ss_range(elements, minimum, min_incl, maximum, max_incl))

    return run


def zlexcount(args: Sequence[str]) -> Command:
    """ZLEXCOUNT key min max: number of members within a lexicographic range."""
    if len(args) != 3:
        raise CommandError(_wrong_number("zlexcount"))
    key = args[0]
    minimum, min_incl = parse_lex_range(args[1])
    maximum, max_incl = parse_lex_range(args[2])

    def run(db: RedisDB) -> int:
        if not _zset_exists(db, key):
            return 0
        members = sorted(db.sset_members(key))
        return len(with_lex_range(members, minimum, min_incl, maximum, max_incl))

    return run


def zrange(args: Sequence[str], reverse: bool) -> Command:
    """ZRANGE / ZREVRANGE key start stop [WITHSCORES]."""
    name = "zrevrange" if reverse else "zrange"
    if len(args) < 3:
        raise CommandError(_wrong_number(name))
    key = args[0]
    start = _int(args[1])
    end = _int(args[2])
    if len(args) > 4:
        raise CommandError(MSG_SYNTAX_ERROR)
    with_scores = False
    if len(args) == 4:
        if args[3].lower() != "withscores":
            raise CommandError(MSG_SYNTAX_ERROR)
        with_scores = True

    def run(db: RedisDB) -> list[str]:
        if not _zset_exists(db, key):
            return []
        elements = db.sset_elements(key)
        if reverse:
            elements.reverse()
        lo, hi = slice_range(len(elements), start, end)
        return _flatten(elements[lo:hi], with_scores)

    return run


def zrangebylex(args: Sequence[str], reverse: bool) -> Command:
    """ZRANGEBYLEX / ZREVRANGEBYLEX key min max [LIMIT offset count]."""
    name = "zrevrangebylex" if reverse else "zrangebylex"
    if len(args) < 3:
        raise CommandError(_wrong_number(name))
    key = args[0]
    minimum, min_incl = parse_lex_range(args[1])
    maximum, max_incl = parse_lex_range(args[2])
    options = list(args[3:])
    limit: tuple[int, int] | None = None
    while options:
        if options[0].lower() == "limit":
            limit = _parse_limit(options)
            options = options[3:]
            continue
        raise CommandError(MSG_SYNTAX_ERROR)

    def run(db: RedisDB) -> list[str]:
        if not _zset_exists(db, key):
            return []
        members = sorted(db.sset_members(key))
        if reverse:
            members = with_lex_range(members, maximum, max_incl, minimum, min_incl)
            members.reverse()
        else:
            members = with_lex_range(members, minimum, min_incl, maximum, max_incl)
        if limit is not None:
            members = apply_limit(members, *limit)
        return members

    return run


def zrangebyscore(args: Sequence[str], reverse: bool) -> Command:
    """ZRANGEBYSCORE / ZREVRANGEBYSCORE key min max [WITHSCORES] [LIMIT offset count]."""
    name = "zrevrangebyscore" if reverse else "zrangebyscore"
    if len(args) < 3:
        raise CommandError(_wrong_number(name))
    key = args[0]
    minimum, min_incl = parse_float_range(args[1])
    maximum, max_incl = parse_float_range(args[2])
    options = list(args[3:])
    with_scores = False
    limit: tuple[int, int] | None = None
    while options:
        option = options[0].lower()
        if option == "limit":
            limit = _parse_limit(options)
            options = options[3:]
        elif option == "withscores":
            with_scores = True
            options = options[1:]
        else:
            raise CommandError(MSG_SYNTAX_ERROR)

    def run(db: RedisDB) -> list[str]:
        if not _zset_exists(db, key):
            return []
        elements = db.sset_elements(key)
        if reverse:
            elements = with_ss_range(elements, maximum, max_incl, minimum, min_incl)
            elements.reverse()
        else:
            elements = with_ss_range(elements, minimum, min_incl, maximum, max_incl)
        if limit is not None:
            elements = apply_limit(elements, *limit)
        return _flatten(elements, with_scores)

    return run


def zrank(args: Sequence[str], reverse: bool) -> Command:
    """ZRANK / ZREVRANK key member: position of a member, or None."""
    name = "zrevrank" if reverse else "zrank"
    if len(args) != 2:
        raise CommandError(_wrong_number(name))
    key, member = args
    order = Order.DESC if reverse else Order.ASC

    def run(db: RedisDB) -> int | None:
        if not _zset_exists(db, key):
            return None
        return db.sset_rank(key, member, order)

    return run


def zscore(args: Sequence[str]) -> Command:
    """ZSCORE key member: the formatted score, or None."""
    if len(args) != 2:
        raise CommandError(_wrong_number("zscore"))
    key, member = args

    def run(db: RedisDB) -> str | None:
        if not _zset_exists(db, key):
            return None
        if not db.sset_exists(key, member):
            return None
        return format_float(db.sset_score(key, member))

    return run


def zscan(args: Sequence[str]) -> Command:
    """ZSCAN key cursor [MATCH pattern] [COUNT n]: everything at cursor 0."""
    if len(args) < 2:
        raise CommandError(_wrong_number("zscan"))
    key = args[0]
    cursor = _int(args[1], MSG_INVALID_CURSOR)
    options = list(args[2:])
    pattern: str | None = None
    while options:
        option = options[0].lower()
        if option not in ("count", "match"):
            raise CommandError(MSG_SYNTAX_ERROR)
        if len(options) < 2:
            raise CommandError(MSG_SYNTAX_ERROR)
        if option == "count":
            _int(options[1])
        else:
            pattern = options[1]
        options = options[2:]

    def run(db: RedisDB) -> list[Any]:
        if cursor != 0:
            return ["0", []]
        if db.exists(key) and db.type_of(key) != "zset":
            raise WrongTypeError()
        elements = db.sset_elements(key)
        if pattern is not None:
            elements = [e for e in elements if fnmatchcase(e[0], pattern)]
        return ["0", _flatten(elements, True)]

    return run