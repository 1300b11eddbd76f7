"""Direct, lock-protected access to the databases, bypassing the command layer."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from memredis.keyspace import KeyNotFoundError, RedisDB, WrongTypeError


class Miniredis:
    """A set of numbered in-memory databases with one selected for direct calls."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.signal = threading.Condition(self._lock)
        self.dbs: dict[int, RedisDB] = {}
        self.selected_db = 0

    @contextmanager
    def _reading(self) -> Iterator[RedisDB]:
        with self._lock:
            yield self._db(self.selected_db)

    @contextmanager
    def _writing(self) -> Iterator[RedisDB]:
        with self._lock:
            try:
                yield self._db(self.selected_db)
            finally:
                self.signal.notify_all()

    def _db(self, index: int) -> RedisDB:
        db = self.dbs.get(index)
        if db is None:
            db = self.dbs[index] = RedisDB()
        return db

    @staticmethod
    def _require(db: RedisDB, key: str, kind: str) -> None:
        if not db.exists(key):
            raise KeyNotFoundError()
        if db.type_of(key) != kind:
            raise WrongTypeError()

    @staticmethod
    def _forbid_other(db: RedisDB, key: str, kind: str) -> None:
        if db.exists(key) and db.type_of(key) != kind:
            raise WrongTypeError()

    def select(self, index: int) -> None:
        """Choose the database used by all direct calls."""
        with self._lock:
            self.selected_db = index

    def db(self, index: int) -> RedisDB:
        """The database with the given number, created on first use."""
        with self._lock:
            return self._db(index)

    def keys(self) -> list[str]:
        """All keys of the selected database, sorted."""
        with self._reading() as db:
            return db.all_keys()

    def flush_all(self) -> None:
        """Remove every key from every database."""
        with self._lock:
            for db in self.dbs.values():
                db.flush()
            self.signal.notify_all()

    def flush_db(self) -> None:
        """Remove every key from the selected database."""
        with self._writing() as db:
            db.flush()

    def get(self, key: str) -> str:
        """The value of a string key."""
        with self._reading() as db:
            self._require(db, key, "string")
            return db.string_get(key)

    def set(self, key: str, value: str) -> None:
        """Set a string key and drop its TTL; other types are not replaced."""
        with self._writing() as db:
            self._forbid_other(db, key, "string")
            db.delete(key, True)
            db.string_set(key, value)

    def incr(self, key: str, delta: int) -> int:
        """Add delta to an integer string value."""
        with self._writing() as db:
            self._forbid_other(db, key, "string")
            return db.string_incr(key, delta)

    def incr_float(self, key: str, delta: float) -> float:
        """Add delta to a float string value."""
        with self._writing() as db:
            self._forbid_other(db, key, "string")
            return db.string_incr_float(key, delta)

    def list(self, key: str) -> list[str]:
        """All elements of a list."""
        with self._reading() as db:
            self._require(db, key, "list")
            return list(db.list_keys[key])

    def lpush(self, key: str, value: str) -> int:
        """Prepend a value to a list; return the new length."""
        with self._writing() as db:
            self._forbid_other(db, key, "list")
            return db.list_lpush(key, value)

    def lpop(self, key: str) -> str:
        """Remove and return the first element of a list."""
        with self._writing() as db:
            self._require(db, key, "list")
            return db.list_lpop(key)

    def push(self, key: str, *args: str) -> int:
        """Append values to a list; return the new length."""
        with self._writing() as db:
            self._forbid_other(db, key, "list")
            return db.list_push(key, *args)

    def pop(self, key: str) -> str:
        """Remove and return the last element of a list."""
        with self._writing() as db:
            self._require(db, key, "list")
            return db.list_pop(key)

    def set_add(self, key: str, *args: str) -> int:
        """Add members to a set; return how many were new."""
        with self._writing() as db:
            self._forbid_other(db, key, "set")
            return db.set_add(key, *args)

    def members(self, key: str) -> list[str]:
        """All members of a set, sorted."""
        with self._reading() as db:
            self._require(db, key, "set")
            return db.set_members(key)

    def is_member(self, key: str, value: str) -> bool:
        """Whether value is in the set."""
        with self._reading() as db:
            self._require(db, key, "set")
            return db.set_is_member(key, value)

    def hkeys(self, key: str) -> list[str]:
        """All fields of a hash, sorted."""
        with self._reading() as db:
            self._require(db, key, "hash")
            return db.hash_fields(key)

    def delete(self, key: str) -> bool:
        """Delete a key and its TTL; return whether it existed."""
        with self._writing() as db:
            if not db.exists(key):
                return False
            db.delete(key, True)
            return True

    def unlink(self, key: str) -> bool:
        """Same as delete."""
        return self.delete(key)

    def ttl(self, key: str) -> timedelta:
        """Remaining time to live; zero if none is set."""
        with self._reading() as db:
            return db.ttl.get(key, timedelta(0))

    def set_ttl(self, key: str, ttl: timedelta) -> None:
        """Set the time to live of a key."""
        with self._writing() as db:
            db.ttl[key] = ttl
            db.key_version[key] += 1

    def type(self, key: str) -> str:
        """Type name of a key, or an empty string."""
        with self._reading() as db:
            return db.type_of(key)

    def exists(self, key: str) -> bool:
        """Whether the key exists."""
        with self._reading() as db:
            return db.exists(key)

    def hget(self, key: str, field: str) -> str:
        """A hash field's value; empty string if absent."""
        with self._reading() as db:
            return db.hash_keys.get(key, {}).get(field, "")

    def hset(self, key: str, field: str, value: str) -> None:
        """Set a hash field, replacing a key of another type."""
        with self._writing() as db:
            db.hash_set(key, field, value)

    def hdel(self, key: str, field: str) -> None:
        """Remove a hash field."""
        with self._writing() as db:
            db.hash_del(key, field)

    def hincr(self, key: str, field: str, delta: int) -> int:
        """Add delta to an integer hash field."""
        with self._writing() as db:
            return db.hash_incr(key, field, delta)

    def hincr_float(self, key: str, field: str, delta: float) -> float:
        """Add delta to a float hash field."""
        with self._writing() as db:
            return db.hash_incr_float(key, field, delta)

    def srem(self, key: str, *args: str) -> int:
        """Remove members from a set; return how many were removed."""
        with self._writing() as db:
            self._require(db, key, "set")
            return db.set_rem(key, *args)

    def zadd(self, key: str, score: float, member: str) -> bool:
        """Add a member to a sorted set; return whether it is new."""
        with self._writing() as db:
            self._forbid_other(db, key, "zset")
            return db.sset_add(key, score, member)

    def zmembers(self, key: str) -> list[str]:
        """All members of a sorted set, ordered by score."""
        with self._reading() as db:
            self._require(db, key, "zset")
            return db.sset_members(key)

    def sorted_set(self, key: str) -> dict[str, float]:
        """A sorted set as a member to score dict."""
        with self._reading() as db:
            self._require(db, key, "zset")
            return db.sorted_set(key)

    def zrem(self, key: str, member: str) -> bool:
        """Remove a member; return whether it was there."""
        with self._writing() as db:
            self._require(db, key, "zset")
            return db.sset_rem(key, member)

    def zscore(self, key: str, member: str) -> float:
        """Score of a member of a sorted set."""
        with self._reading() as db:
            self._require(db, key, "zset")
            return db.sset_score(key, member)