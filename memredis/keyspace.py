"""In-memory key space: typed values, TTLs and key versions for one database."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import timedelta
from enum import Enum

MSG_KEY_NOT_FOUND = "ERR no such key"
MSG_WRONG_TYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"
MSG_INVALID_INT = "ERR value is not an integer or out of range"
MSG_INVALID_FLOAT = "ERR value is not a valid float"

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class RedisError(Exception):
    """Base of all errors reported by the key space and its commands."""

    message = "ERR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class CommandError(RedisError):
    """A command was called wrongly; the text is the reply error."""


class KeyNotFoundError(RedisError):
    """The key does not exist."""

    message = MSG_KEY_NOT_FOUND


class WrongTypeError(RedisError):
    """The key holds a value of another type."""

    message = MSG_WRONG_TYPE


class IntValueError(RedisError):
    """A value is not an integer."""

    message = MSG_INVALID_INT


class FloatValueError(RedisError):
    """A value is not a float."""

    message = MSG_INVALID_FLOAT


class Order(Enum):
    """Sort direction for sorted set elements."""

    ASC = "asc"
    DESC = "desc"


def format_float(value: float) -> str:
    """Format a float the way replies show it: no trailing zeros, 'inf' for infinity."""
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = f"{value:.10f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise IntValueError()
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise IntValueError()
    return value


def _parse_float(text: str) -> float:
    if _SPECIAL_FLOAT_RE.fullmatch(text):
        return float(text)
    if not _FLOAT_RE.fullmatch(text):
        raise FloatValueError()
    value = float(text)
    if math.isinf(value):
        raise FloatValueError()
    return value


class SortedSet(dict):
    """Member to score mapping of a sorted set."""

    def by_score(self, order: Order) -> list[tuple[str, float]]:
        """(member, score) pairs ordered by score, then member."""
        elements = sorted(self.items(), key=lambda item: (item[1], item[0]))
        if order is Order.DESC:
            elements.reverse()
        return elements

    def rank_by_score(self, member: str, order: Order) -> int | None:
        """Position of member in score order, or None if it is absent."""
        if member not in self:
            return None
        for rank, (name, _) in enumerate(self.by_score(order)):
            if name == member:
                return rank
        return None


class RedisDB:
    """One numbered database: keys with their types, values, TTLs and versions."""

    def __init__(self) -> None:
        self.key_version: Counter[str] = Counter()
        self.flush()

    def _bump(self, key: str) -> None:
        self.key_version[key] += 1

    def exists(self, key: str) -> bool:
        """Whether the key exists."""
        return key in self.keys

    def type_of(self, key: str) -> str:
        """Type name of the key, or an empty string."""
        return self.keys.get(key, "")

    def all_keys(self) -> list[str]:
        """All keys, sorted."""
        return sorted(self.keys)

    def flush(self) -> None:
        """Remove all keys and values."""
        self.keys: dict[str, str] = {}
        self.string_keys: dict[str, str] = {}
        self.hash_keys: dict[str, dict[str, str]] = {}
        self.list_keys: dict[str, list[str]] = {}
        self.set_keys: dict[str, set[str]] = {}
        self.sortedset_keys: dict[str, SortedSet] = {}
        self.ttl: dict[str, timedelta] = {}

    def _store_for(self, kind: str) -> dict:
        stores = {
            "string": self.string_keys,
            "hash": self.hash_keys,
            "list": self.list_keys,
            "set": self.set_keys,
            "zset": self.sortedset_keys,
        }
        try:
            return stores[kind]
        except KeyError:
            raise RedisError(f"unknown key type: {kind}") from None

    def move(self, key: str, target: RedisDB) -> bool:
        """Move a key to another database; False if absent here or present there."""
        if key in target.keys or key not in self.keys:
            return False
        kind = self.keys[key]
        target.keys[key] = kind
        target._store_for(kind)[key] = self._store_for(kind)[key]
        target._bump(key)
        if key in self.ttl:
            target.ttl[key] = self.ttl[key]
        self.delete(key, True)
        return True

    def rename(self, source: str, destination: str) -> None:
        """Rename a key, replacing whatever the destination held."""
        self.delete(destination, True)
        kind = self.type_of(source)
        if not kind:
            raise KeyNotFoundError()
        self._store_for(kind)[destination] = self._store_for(kind)[source]
        self.keys[destination] = kind
        self._bump(destination)
        if source in self.ttl:
            self.ttl[destination] = self.ttl[source]
        self.delete(source, True)

    def delete(self, key: str, del_ttl: bool) -> None:
        """Remove a key, and its TTL when del_ttl is set."""
        if key not in self.keys:
            return
        kind = self.keys.pop(key)
        self._bump(key)
        if del_ttl:
            self.ttl.pop(key, None)
        self._store_for(kind).pop(key, None)

    def string_get(self, key: str) -> str:
        """The string value, or an empty string if absent or of another type."""
        if self.keys.get(key) != "string":
            return ""
        return self.string_keys[key]

    def string_set(self, key: str, value: str) -> None:
        """Force a string value; the TTL is left as it is."""
        self.delete(key, False)
        self.keys[key] = "string"
        self.string_keys[key] = value
        self._bump(key)

    def string_incr(self, key: str, delta: int) -> int:
        """Add delta to an integer string value and return the result."""
        current = 0
        if key in self.string_keys:
            current = _parse_int(self.string_keys[key])
        current += delta
        self.string_set(key, str(current))
        return current

    def string_incr_float(self, key: str, delta: float) -> float:
        """Add delta to a float string value and return the result."""
        current = 0.0
        if key in self.string_keys:
            current = _parse_float(self.string_keys[key])
        current += delta
        self.string_set(key, format_float(current))
        return current

    def list_lpush(self, key: str, value: str) -> int:
        """Prepend a value; return the new length."""
        if key not in self.list_keys:
            self.keys[key] = "list"
        items = self.list_keys.setdefault(key, [])
        items.insert(0, value)
        self._bump(key)
        return len(items)

    def list_lpop(self, key: str) -> str:
        """Remove and return the first element."""
        items = self.list_keys[key]
        element = items.pop(0)
        if not items:
            self.delete(key, True)
        self._bump(key)
        return element

    def list_push(self, key: str, *args: str) -> int:
        """Append values; return the new length."""
        if key not in self.list_keys:
            self.keys[key] = "list"
        items = self.list_keys.setdefault(key, [])
        items.extend(args)
        self._bump(key)
        return len(items)

    def list_pop(self, key: str) -> str:
        """Remove and return the last element."""
        items = self.list_keys[key]
        element = items.pop()
        if not items:
            self.delete(key, True)
        else:
            self._bump(key)
        return element

    def set_set(self, key: str, members: Iterable[str]) -> None:
        """Replace a whole set."""
        self.keys[key] = "set"
        self.set_keys[key] = set(members)
        self._bump(key)

    def set_add(self, key: str, *args: str) -> int:
        """Add members to a set; return how many were new."""
        if key not in self.set_keys:
            self.keys[key] = "set"
        members = self.set_keys.setdefault(key, set())
        before = len(members)
        members.update(args)
        self._bump(key)
        return len(members) - before

    def set_rem(self, key: str, *args: str) -> int:
        """Remove members from a set; return how many were removed."""
        members = self.set_keys.get(key)
        if members is None:
            return 0
        removed = 0
        for field in args:
            if field in members:
                members.discard(field)
                removed += 1
        if not members:
            self.delete(key, True)
        self._bump(key)
        return removed

    def set_members(self, key: str) -> list[str]:
        """All set members, sorted."""
        return sorted(self.set_keys.get(key, ()))

    def set_is_member(self, key: str, value: str) -> bool:
        """Whether the value is in the set."""
        return value in self.set_keys.get(key, ())

    def hash_fields(self, key: str) -> list[str]:
        """All fields of a hash, sorted."""
        return sorted(self.hash_keys.get(key, {}))

    def hash_get(self, key: str, field: str) -> str:
        """A hash field's value, or an empty string."""
        return self.hash_keys.get(key, {}).get(field, "")

    def hash_set(self, key: str, field: str, value: str) -> bool:
        """Set a hash field, replacing a key of another type; return whether the field existed."""
        kind = self.keys.get(key)
        if kind is not None and kind != "hash":
            self.delete(key, True)
        self.keys[key] = "hash"
        fields = self.hash_keys.setdefault(key, {})
        existed = field in fields
        fields[field] = value
        self._bump(key)
        return existed

    def hash_del(self, key: str, field: str) -> None:
        """Remove a hash field."""
        fields = self.hash_keys.get(key)
        if fields is None:
            return
        fields.pop(field, None)
        self._bump(key)

    def hash_incr(self, key: str, field: str, delta: int) -> int:
        """Add delta to an integer hash field and return the result."""
        current = 0
        fields = self.hash_keys.get(key, {})
        if field in fields:
            current = _parse_int(fields[field])
        current += delta
        self.hash_set(key, field, str(current))
        return current

    def hash_incr_float(self, key: str, field: str, delta: float) -> float:
        """Add delta to a float hash field and return the result."""
        current = 0.0
        fields = self.hash_keys.get(key, {})
        if field in fields:
            current = _parse_float(fields[field])
        current += delta
        self.hash_set(key, field, format_float(current))
        return current

    def sorted_set(self, key: str) -> dict[str, float]:
        """The sorted set as a plain member to score dict."""
        return dict(self.sortedset_keys.get(key, {}))

    def sset_set(self, key: str, sset: Mapping[str, float]) -> None:
        """Replace a whole sorted set."""
        self.keys[key] = "zset"
        self._bump(key)
        self.sortedset_keys[key] = SortedSet(sset)

    def sset_add(self, key: str, score: float, member: str) -> bool:
        """Set a member's score; return whether the member is new."""
        if key not in self.sortedset_keys:
            self.keys[key] = "zset"
        sset = self.sortedset_keys.setdefault(key, SortedSet())
        is_new = member not in sset
        sset[member] = score
        self._bump(key)
        return is_new

    def sset_members(self, key: str) -> list[str]:
        """All members, ordered by score."""
        return [member for member, _ in self.sset_elements(key)]

    def sset_elements(self, key: str) -> list[tuple[str, float]]:
        """All (member, score) pairs, ordered by score."""
        sset = self.sortedset_keys.get(key)
        if sset is None:
            return []
        return sset.by_score(Order.ASC)

    def sset_card(self, key: str) -> int:
        """Number of members."""
        return len(self.sortedset_keys.get(key, ()))

    def sset_rank(self, key: str, member: str, order: Order) -> int | None:
        """Rank of a member, or None if it is absent."""
        return self.sortedset_keys.get(key, SortedSet()).rank_by_score(member, order)

    def sset_score(self, key: str, member: str) -> float:
        """Score of a member; 0.0 if absent."""
        return self.sortedset_keys.get(key, {}).get(member, 0.0)

    def sset_rem(self, key: str, member: str) -> bool:
        """Remove a member, dropping the key with its last member; return whether it was there."""
        sset = self.sortedset_keys.get(key, SortedSet())
        existed = member in sset
        sset.pop(member, None)
        if not sset:
            self.delete(key, True)
        return existed

    def sset_exists(self, key: str, member: str) -> bool:
        """Whether the member is in the sorted set."""
        return member in self.sortedset_keys.get(key, ())

    def sset_incrby(self, key: str, member: str, delta: float) -> float:
        """Add delta to a member's score and return the new score."""
        if key not in self.sortedset_keys:
            self.keys[key] = "zset"
            self.sortedset_keys[key] = SortedSet()
        sset = self.sortedset_keys[key]
        score = sset.get(member, 0.0) + delta
        sset[member] = score
        self._bump(key)
        return score

    def _check_set(self, key: str) -> None:
        if self.exists(key) and self.type_of(key) != "set":
            raise WrongTypeError()

    def set_diff(self, keys: list[str]) -> set[str]:
        """Members of the first set not in any of the others."""
        first, *rest = keys
        self._check_set(first)
        result = set(self.set_keys.get(first, ()))
        for key in rest:
            if not self.exists(key):
                continue
            self._check_set(key)
            result -= self.set_keys[key]
        return result

    def set_inter(self, keys: list[str]) -> set[str]:
        """Members present in every set; a missing key gives an empty set."""
        first, *rest = keys
        if not self.exists(first):
            return set()
        self._check_set(first)
        result = set(self.set_keys[first])
        for key in rest:
            if not self.exists(key):
                return set()
            self._check_set(key)
            result &= self.set_keys[key]
        return result

    def set_union(self, keys: list[str]) -> set[str]:
        """Members present in any of the sets."""
        first, *rest = keys
        self._check_set(first)
        result = set(self.set_keys.get(first, ()))
        for key in rest:
            if not self.exists(key):
                continue
            self._check_set(key)
            result |= self.set_keys[key]
        return result

    def fast_forward(self, duration: timedelta) -> None:
        """Advance time: shorten every TTL and drop keys that expire."""
        for key in self.all_keys():
            if key in self.ttl:
                self.ttl[key] -= duration
                self.check_ttl(key)

    def check_ttl(self, key: str) -> None:
        """Delete the key if its TTL has run out."""
        remaining = self.ttl.get(key)
        if remaining is not None and remaining <= timedelta(0):
            self.delete(key, True)