import math

import pytest

from memredis.keyspace import CommandError, RedisDB, WrongTypeError
from memredis.zupdate import (
    zadd,
    zincrby,
    zinterstore,
    zpop,
    zrem,
    zremrangebylex,
    zremrangebyrank,
    zremrangebyscore,
    zunionstore,
)


def _fill(db, key, pairs):
    for score, member in pairs:
        db.sset_add(key, score, member)


@pytest.fixture
def db():
    return RedisDB()


@pytest.fixture
def numbers(db):
    _fill(
        db,
        "z",
        [(1, "one"), (2, "two"), (2, "zwei"), (3, "three"), (3, "drei"), (math.inf, "inf")],
    )
    return db


@pytest.fixture
def by_score(db):
    _fill(
        db,
        "z",
        [
            (-273.15, "zero kelvin"),
            (-4, "minusfour"),
            (1, "one"),
            (2, "two"),
            (2, "zwei"),
            (3, "three"),
            (3, "drei"),
            (math.inf, "inf"),
        ],
    )
    return db


@pytest.fixture
def lex(db):
    for member in [
        "zero kelvin", "minusfour", "one", "oneone", "two", "zwei", "three", "drei", "inf",
    ]:
        db.sset_add("z", 12, member)
    return db


def test_zadd_new_and_replace(db):
    assert zadd(["z", "1", "one", "2", "two", "3", "three"])(db) == 3
    assert db.sset_card("z") == 3
    assert db.type_of("z") == "zset"
    assert zadd(["z", "2.1", "two"])(db) == 0
    assert db.sset_card("z") == 3
    assert db.sset_score("z", "two") == 2.1


def test_zadd_infinity(db):
    assert zadd(["zinf", "inf", "plus inf", "-inf", "minus inf", "10", "ten"])(db) == 3
    assert db.sorted_set("zinf") == {
        "plus inf": math.inf,
        "minus inf": -math.inf,
        "ten": 10.0,
    }


def test_zadd_invalid_score():
    with pytest.raises(CommandError, match="not a valid float"):
        zadd(["z", "noint", "two"])


def test_zadd_flags(db):
    assert zadd(["z", "1", "one", "2", "two", "3", "three"])(db) == 3
    assert zadd(["z", "1", "one", "2.1", "two", "3", "three"])(db) == 0
    assert zadd(["z", "CH", "1", "one", "2.2", "two", "3", "three"])(db) == 1
    assert zadd(["z", "NX", "1", "one", "2.2", "two", "3", "three"])(db) == 0
    assert zadd(["z", "NX", "1", "one", "4", "four"])(db) == 1
    assert zadd(["z", "XX", "1.1", "one", "4", "four"])(db) == 0
    assert zadd(["z", "XX", "CH", "1.2", "one", "4", "four"])(db) == 1
    assert zadd(["z", "INCR", "1.2", "one"])(db) == "2.4"
    assert zadd(["z", "INCR", "NX", "1.2", "one"])(db) is None
    assert zadd(["z", "INCR", "XX", "1.2", "one"])(db) == "3.6"
    assert zadd(["q", "INCR", "XX", "1.2", "one"])(db) is None
    assert not db.exists("q")
    assert zadd(["q", "INCR", "NX", "1.2", "one"])(db) == "1.2"
    assert zadd(["q", "INCR", "NX", "1.2", "one"])(db) is None
    assert zadd(["z", "INCR", "CH", "1.2", "one"])(db) == "4.8"


def test_zadd_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zadd(["str", "1.0", "hi"])(db)


@pytest.mark.parametrize(
    "args, message",
    [
        ([], "wrong number"),
        (["set"], "wrong number"),
        (["set", "1.0"], "wrong number"),
        (["set", "1.0", "foo", "1.0"], "syntax error"),
        (["set", "MX", "1.0"], "not a valid float"),
        (["set", "1.0", "key", "MX"], "syntax error"),
        (["set", "MX", "XX", "1.0", "foo"], "not a valid float"),
        (["set", "INCR", "1.0", "foo", "2.3", "bar"], "single increment-element pair"),
        (["set", "XX", "NX", "1.0", "foo"], "not compatible"),
    ],
)
def test_zadd_errors(args, message):
    with pytest.raises(CommandError, match=message):
        zadd(args)


def test_zincrby(db):
    assert zincrby(["z", "1", "member"])(db) == "1"
    assert zincrby(["z", "2.5", "member"])(db) == "3.5"
    assert zincrby(["z", "1", "othermember"])(db) == "1"
    assert db.sorted_set("z") == {"member": 3.5, "othermember": 1.0}


@pytest.mark.parametrize(
    "args",
    [[], ["set"], ["set", "nofloat", "a"], ["set", "1.0", "too", "many"]],
)
def test_zincrby_errors(args):
    with pytest.raises(CommandError):
        zincrby(args)


def test_zincrby_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zincrby(["str", "1.0", "member"])(db)


def test_zrem(db):
    _fill(db, "z", [(1, "one"), (2, "two"), (2, "zwei")])
    assert zrem(["z", "two", "zwei", "nosuch"])(db) == 2
    assert db.exists("z")
    assert zrem(["z", "one"])(db) == 1
    assert not db.exists("z")
    assert zrem(["nosuch", "member"])(db) == 0


def test_zrem_errors(db):
    with pytest.raises(CommandError):
        zrem([])
    with pytest.raises(CommandError):
        zrem(["set"])
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zrem(["str", "aap"])(db)


def test_zremrangebylex(lex):
    assert zremrangebylex(["z", "[o", "[three"])(lex) == 3
    assert lex.sset_members("z") == [
        "drei", "inf", "minusfour", "two", "zero kelvin", "zwei",
    ]
    assert zremrangebylex(["z", "+", "(z"])(lex) == 0
    assert zremrangebylex(["nosuch", "-", "+"])(lex) == 0


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["set"],
        ["set", "1", "[a"],
        ["set", "[a", "1"],
        ["set", "[a", "!a"],
        ["set", "-", "+", "toomany"],
    ],
)
def test_zremrangebylex_errors(args):
    with pytest.raises(CommandError):
        zremrangebylex(args)


def test_zremrangebylex_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zremrangebylex(["str", "-", "+"])(db)


def test_zremrangebyrank(numbers):
    assert zremrangebyrank(["z", "-2", "-1"])(numbers) == 2
    assert numbers.sset_members("z") == ["one", "two", "zwei", "drei"]
    assert zremrangebyrank(["z", "-100", "-100"])(numbers) == 0
    assert zremrangebyrank(["z", "100", "400"])(numbers) == 0
    assert zremrangebyrank(["nosuch", "1", "4"])(numbers) == 0
    assert zremrangebyrank(["z", "0", "-1"])(numbers) == 4
    assert not numbers.exists("z")


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["set"],
        ["set", "1"],
        ["set", "noint", "1"],
        ["set", "1", "noint"],
        ["set", "1", "2", "toomany"],
    ],
)
def test_zremrangebyrank_errors(args):
    with pytest.raises(CommandError):
        zremrangebyrank(args)


def test_zremrangebyrank_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zremrangebyrank(["str", "1", "2"])(db)


def test_zremrangebyscore(by_score):
    assert zremrangebyscore(["z", "-inf", "1"])(by_score) == 3
    assert by_score.sset_members("z") == ["two", "zwei", "drei", "three", "inf"]
    assert zremrangebyscore(["z", "(2", "(4"])(by_score) == 2
    assert by_score.sset_members("z") == ["two", "zwei", "inf"]
    assert zremrangebyscore(["z", "+inf", "-inf"])(by_score) == 0
    assert zremrangebyscore(["nosuch", "-inf", "inf"])(by_score) == 0


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["set"],
        ["set", "1"],
        ["set", "nofloat", "1"],
        ["set", "1", "nofloat"],
        ["set", "1", "2", "toomany"],
    ],
)
def test_zremrangebyscore_errors(args):
    with pytest.raises(CommandError):
        zremrangebyscore(args)


def test_zremrangebyscore_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zremrangebyscore(["str", "1", "2"])(db)


@pytest.fixture
def union_sets(db):
    _fill(db, "h1", [(1.0, "field1"), (2.0, "field2")])
    _fill(db, "h2", [(1.0, "field1"), (2.0, "field2")])
    return db


def test_zunionstore_simple(union_sets):
    assert zunionstore(["new", "2", "h1", "h2"])(union_sets) == 2
    assert union_sets.sorted_set("new") == {"field1": 2, "field2": 4}


def test_zunionstore_with_destination_as_source(union_sets):
    _fill(union_sets, "h3", [(1.0, "field1"), (3.0, "field3")])
    assert zunionstore(["h3", "2", "h1", "h3"])(union_sets) == 3
    assert union_sets.sorted_set("h3") == {"field1": 2, "field2": 2, "field3": 3}


def test_zunionstore_weights(union_sets):
    assert zunionstore(["weighted", "2", "h1", "h2", "WeIgHtS", "4.5", "12"])(union_sets) == 2
    assert union_sets.sorted_set("weighted") == {"field1": 16.5, "field2": 33}


def test_zunionstore_aggregate(union_sets):
    assert zunionstore(["aggr", "2", "h1", "h2", "AgGrEgAtE", "min"])(union_sets) == 2
    assert union_sets.sorted_set("aggr") == {"field1": 1.0, "field2": 2.0}


_STORE_ERRORS = [
    ([], "wrong number"),
    (["set"], "wrong number"),
    (["set", "noint"], "wrong number"),
    (["set", "noint", "key"], "not an integer"),
    (["set", "0", "key"], "at least 1 input key"),
    (["set", "-1", "key"], "at least 1 input key"),
    (["set", "1", "too", "many"], "syntax error"),
    (["set", "2", "key"], "syntax error"),
    (["set", "2", "k1", "k2", "WEIGHTS"], "syntax error"),
    (["set", "2", "k1", "k2", "WEIGHTS", "1", "2", "3"], "syntax error"),
    (["set", "2", "k1", "k2", "WEIGHTS", "1", "nof"], "weight value is not a float"),
    (["set", "2", "k1", "k2", "AGGREGATE"], "syntax error"),
    (["set", "2", "k1", "k2", "AGGREGATE", "foo"], "syntax error"),
    (["set", "2", "k1", "k2", "AGGREGATE", "sum", "foo"], "syntax error"),
]


@pytest.mark.parametrize("args, message", _STORE_ERRORS)
def test_zunionstore_errors(args, message):
    with pytest.raises(CommandError, match=message):
        zunionstore(args)


def test_zunionstore_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zunionstore(["set", "1", "str"])(db)


@pytest.fixture
def inter_sets(db):
    _fill(db, "h1", [(1.0, "field1"), (2.0, "field2"), (3.0, "field3")])
    _fill(db, "h2", [(1.0, "field1"), (2.0, "field2"), (4.0, "field4")])
    return db


def test_zinterstore_simple(inter_sets):
    assert zinterstore(["new", "2", "h1", "h2"])(inter_sets) == 2
    assert inter_sets.sorted_set("new") == {"field1": 2, "field2": 4}


def test_zinterstore_weights(inter_sets):
    assert zinterstore(["weighted", "2", "h1", "h2", "WeIgHtS", "4.5", "12"])(inter_sets) == 2
    assert inter_sets.sorted_set("weighted") == {"field1": 16.5, "field2": 33}


def test_zinterstore_aggregate(inter_sets):
    assert zinterstore(["aggr", "2", "h1", "h2", "AgGrEgAtE", "min"])(inter_sets) == 2
    assert inter_sets.sorted_set("aggr") == {"field1": 1.0, "field2": 2.0}


def test_zinterstore_aggregate_max(inter_sets):
    _fill(inter_sets, "h4", [(7.0, "field1")])
    assert zinterstore(["aggr", "2", "h1", "h4", "AGGREGATE", "max"])(inter_sets) == 1
    assert inter_sets.sorted_set("aggr") == {"field1": 7.0}


@pytest.mark.parametrize("args, message", _STORE_ERRORS)
def test_zinterstore_errors(args, message):
    with pytest.raises(CommandError, match=message):
        zinterstore(args)


def test_zinterstore_wrong_type(db):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zinterstore(["set", "1", "str"])(db)
    with pytest.raises(WrongTypeError):
        zinterstore(["set", "2", "set", "str"])(db)


def test_zpopmin(numbers):
    assert zpop(["z", "2"], False)(numbers) == ["one", "1", "two", "2"]
    assert zpop(["z"], False)(numbers) == ["zwei", "2"]
    assert zpop(["z", "-100"], False)(numbers) == []
    assert zpop(["nosuch", "1"], False)(numbers) == []
    assert zpop(["z", "100"], False)(numbers) == ["drei", "3", "three", "3", "inf", "inf"]
    assert not numbers.exists("z")


def test_zpopmax(numbers):
    assert zpop(["z", "2"], True)(numbers) == ["inf", "inf", "three", "3"]
    assert zpop(["z"], True)(numbers) == ["drei", "3"]
    assert zpop(["z", "-100"], True)(numbers) == []
    assert zpop(["nosuch", "1"], True)(numbers) == []
    assert zpop(["z", "100"], True)(numbers) == ["zwei", "2", "two", "2", "one", "1"]
    assert not numbers.exists("z")


@pytest.mark.parametrize("reverse", [False, True])
@pytest.mark.parametrize(
    "args, message",
    [
        ([], "wrong number"),
        (["set", "noint"], "not an integer"),
        (["set", "1", "toomany"], "syntax error"),
    ],
)
def test_zpop_errors(args, message, reverse):
    with pytest.raises(CommandError, match=message):
        zpop(args, reverse)


@pytest.mark.parametrize("reverse", [False, True])
def test_zpop_wrong_type(db, reverse):
    db.string_set("str", "value")
    with pytest.raises(WrongTypeError):
        zpop(["str", "1"], reverse)(db)