"""Client sessions with MULTI/EXEC/DISCARD/WATCH transactions.

A session runs sorted set commands against one database of a server. Inside
a transaction commands are checked at once, queued, and run together by EXEC.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from memredis.direct import Miniredis
from memredis.keyspace import CommandError, RedisError, RedisDB
from memredis.zquery import (
    Command,
    _wrong_number,
    zcard,
    zcount,
    zlexcount,
    zrange,
    zrangebylex,
    zrangebyscore,
    zrank,
    zscan,
    zscore,
)
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

MSG_NESTED_MULTI = "ERR MULTI calls can not be nested"
MSG_EXEC_WITHOUT_MULTI = "ERR EXEC without MULTI"
MSG_DISCARD_WITHOUT_MULTI = "ERR DISCARD without MULTI"
MSG_WATCH_IN_MULTI = "ERR WATCH in MULTI"
MSG_EXEC_ABORT = "EXECABORT Transaction discarded because of previous errors."

_COMMANDS: dict[str, Callable[[Sequence[str]], Command]] = {
    "ZADD": zadd,
    "ZCARD": zcard,
    "ZCOUNT": zcount,
    "ZINCRBY": zincrby,
    "ZINTERSTORE": zinterstore,
    "ZLEXCOUNT": zlexcount,
    "ZRANGE": partial(zrange, reverse=False),
    "ZRANGEBYLEX": partial(zrangebylex, reverse=False),
    "ZRANGEBYSCORE": partial(zrangebyscore, reverse=False),
    "ZRANK": partial(zrank, reverse=False),
    "ZREM": zrem,
    "ZREMRANGEBYLEX": zremrangebylex,
    "ZREMRANGEBYRANK": zremrangebyrank,
    "ZREMRANGEBYSCORE": zremrangebyscore,
    "ZREVRANGE": partial(zrange, reverse=True),
    "ZREVRANGEBYLEX": partial(zrangebylex, reverse=True),
    "ZREVRANGEBYSCORE": partial(zrangebyscore, reverse=True),
    "ZREVRANK": partial(zrank, reverse=True),
    "ZSCORE": zscore,
    "ZUNIONSTORE": zunionstore,
    "ZSCAN": zscan,
    "ZPOPMAX": partial(zpop, reverse=True),
    "ZPOPMIN": partial(zpop, reverse=False),
}


class Session:
    """One client connection: a selected database, watched keys and a transaction queue."""

    def __init__(self, server: Miniredis, db: int = 0) -> None:
        self.server = server
        self.selected_db = db
        self._queue: list[Command] | None = None
        self._dirty = False
        self._watched: dict[tuple[int, str], int] = {}

    @property
    def in_transaction(self) -> bool:
        """Whether MULTI was given and not yet finished."""
        return self._queue is not None

    def _mark_dirty(self) -> None:
        if self.in_transaction:
            self._dirty = True

    def _stop(self) -> None:
        self._queue = None
        self._dirty = False
        self._watched.clear()

    def _run(self, command: Command) -> Any:
        if self._queue is not None:
            self._queue.append(command)
            return "QUEUED"
        with self.server.signal:
            result = command(self.server.db(self.selected_db))
            self.server.signal.notify_all()
        return result

    def execute(self, name: str, *args: str) -> Any:
        """Run a command by name; inside a transaction it is queued instead."""
        upper = name.upper()
        if upper == "MULTI":
            if args:
                raise CommandError(_wrong_number("multi"))
            return self.multi()
        if upper in ("EXEC", "DISCARD", "UNWATCH"):
            if args:
                self._mark_dirty()
                raise CommandError(_wrong_number(upper.lower()))
            return {"EXEC": self.exec, "DISCARD": self.discard, "UNWATCH": self.unwatch}[upper]()
        if upper == "WATCH":
            return self.watch(*args)

        builder = _COMMANDS.get(upper)
        if builder is None:
            self._mark_dirty()
            raise CommandError(f"ERR unknown command '{name}'")
        try:
            command = builder(list(args))
        except CommandError:
            self._mark_dirty()
            raise
        return self._run(command)

    def multi(self) -> str:
        """Start a transaction."""
        if self.in_transaction:
            raise CommandError(MSG_NESTED_MULTI)
        self._queue = []
        self._dirty = False
        return "OK"

    def exec(self) -> list[Any] | None:
        """Run the queued commands.

        Returns their replies in order, with errors as exception objects, or
        None when a watched key changed since WATCH.
        """
        if self._queue is None:
            raise CommandError(MSG_EXEC_WITHOUT_MULTI)
        if self._dirty:
            self._stop()
            raise CommandError(MSG_EXEC_ABORT)

        queue = self._queue
        with self.server.signal:
            for (index, key), version in self._watched.items():
                if self.server.db(index).key_version[key] > version:
                    self._stop()
                    return None
            replies: list[Any] = []
            for command in queue:
                db: RedisDB = self.server.db(self.selected_db)
                try:
                    replies.append(command(db))
                except RedisError as error:
                    replies.append(error)
            self.server.signal.notify_all()
        self._stop()
        return replies

    def discard(self) -> str:
        """Drop the queued commands and end the transaction."""
        if not self.in_transaction:
            raise CommandError(MSG_DISCARD_WITHOUT_MULTI)
        self._stop()
        return "OK"

    def watch(self, *args: str) -> str:
        """Remember the current version of keys, for EXEC to check."""
        if not args:
            self._mark_dirty()
            raise CommandError(_wrong_number("watch"))
        if self.in_transaction:
            raise CommandError(MSG_WATCH_IN_MULTI)
        with self.server.signal:
            db = self.server.db(self.selected_db)
            for key in args:
                self._watched[(self.selected_db, key)] = db.key_version[key]
        return "OK"

    def unwatch(self) -> str:
        """Forget all watched keys, whether in a transaction or not."""
        self._watched.clear()
        return self._run(lambda db: "OK")