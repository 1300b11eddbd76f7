# memredis

An in-memory key space with Redis semantics: string, list, set, hash and
sorted set values in numbered databases, the sorted set command family,
MULTI/EXEC/DISCARD transactions with WATCH, and geohash helpers.

It is meant for tests and tools that want Redis behaviour without a server.

## Installing

    pip install .

To run the tests:

    pip install .[test]
    pytest

## Direct access

`memredis.direct.Miniredis` holds the databases (created on first use) and
works on the one chosen with `select` (database 0 by default). Every call
takes a lock, so it can be shared between threads.

```python
from memredis.direct import Miniredis

m = Miniredis()
m.set("greeting", "hello")
m.zadd("scores", 1.0, "one")
m.zadd("scores", 2.0, "two")
print(m.zmembers("scores"))        # ['one', 'two']
print(m.zscore("scores", "two"))   # 2.0
print(m.sorted_set("scores"))      # {'one': 1.0, 'two': 2.0}
```

Available calls: `get`, `set`, `incr`, `incr_float`, `list`, `lpush`,
`lpop`, `push`, `pop`, `set_add`, `members`, `is_member`, `srem`, `hkeys`,
`hget`, `hset`, `hdel`, `hincr`, `hincr_float`, `zadd`, `zmembers`,
`sorted_set`, `zrem`, `zscore`, `delete`, `unlink`, `exists`, `type`,
`keys`, `ttl`, `set_ttl`, `flush_db`, `flush_all`, `select` and `db`.

Looking up a missing key raises `KeyNotFoundError`; using a key as the wrong
type raises `WrongTypeError`. Both come from `memredis.keyspace` and derive
from `RedisError`.

The per-database store is `memredis.keyspace.RedisDB`. Sorted set members
are ordered by score, then by member. TTLs are plain `timedelta` values;
nothing runs them down by itself: `RedisDB.fast_forward(duration)` shortens
them and removes keys whose time is up.

## Commands and transactions

`memredis.transactions.Session` is one client of a `Miniredis`. It runs the
sorted set commands by name, with string arguments, and returns the reply:

```python
from memredis.direct import Miniredis
from memredis.transactions import Session

m = Miniredis()
s = Session(m)
s.execute("ZADD", "z", "1", "one", "2", "two")            # 2
s.execute("ZRANGE", "z", "0", "-1", "WITHSCORES")         # ['one', '1', 'two', '2']

s.execute("MULTI")                                        # 'OK'
s.execute("ZINCRBY", "z", "5", "one")                     # 'QUEUED'
s.execute("EXEC")                                         # ['6']
```

Supported commands: `ZADD`, `ZCARD`, `ZCOUNT`, `ZINCRBY`, `ZINTERSTORE`,
`ZLEXCOUNT`, `ZRANGE`, `ZRANGEBYLEX`, `ZRANGEBYSCORE`, `ZRANK`, `ZREM`,
`ZREMRANGEBYLEX`, `ZREMRANGEBYRANK`, `ZREMRANGEBYSCORE`, `ZREVRANGE`,
`ZREVRANGEBYLEX`, `ZREVRANGEBYSCORE`, `ZREVRANK`, `ZSCORE`, `ZUNIONSTORE`,
`ZSCAN`, `ZPOPMAX`, `ZPOPMIN`, and `MULTI`, `EXEC`, `DISCARD`, `WATCH`,
`UNWATCH`.

Bad arguments raise `CommandError` at once; inside a transaction they also
mark it so that `EXEC` aborts with an `EXECABORT` error. `EXEC` returns the
replies in order, with errors of single commands as exception objects, or
`None` when a key given to `WATCH` changed since. `ZSCAN` returns
everything at cursor 0 and ignores `COUNT`.

The commands themselves live in `memredis.zquery` (read-only) and
`memredis.zupdate` (changing); each checks its arguments and returns a
callable that runs against a `RedisDB`. Range parsing and filtering
helpers are in `memredis.zranges`.

## Geohash

```python
from memredis import geohash
from memredis.geo import distance, format_geo, from_geohash, to_geohash

geohash.encode(38.115556, 13.361389)       # 12 character geohash
score = to_geohash(13.361389, 38.115556)   # 52-bit integer
longitude, latitude = from_geohash(score)
format_geo(longitude)                      # '13.36139'
```

`memredis.geohash` also offers bounding boxes (`Box`), decoding and
neighbour lookup by `Direction`. `distance` gives the great-circle distance
in metres between two points.

## What it does not do

- There is no network server and no wire protocol; use it in-process.
- `Session` knows only the sorted set and transaction commands. Strings,
  lists, sets and hashes are reached through `Miniredis` and `RedisDB`
  only, and there are no geo commands, only the helpers above.
- Nothing is persisted; all data lives in memory.