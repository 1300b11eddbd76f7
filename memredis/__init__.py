"""In-memory Redis-like key space with sorted set commands, transactions and geohash helpers."""

__version__ = "0.1.0"

__all__ = [
    "direct",
    "geo",
    "geohash",
    "keyspace",
    "transactions",
    "zquery",
    "zranges",
    "zupdate",
]