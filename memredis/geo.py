"""Geo helpers: coordinate hashing, formatting and distances."""

from __future__ import annotations

import math

from memredis.geohash import decode_int_with_precision, encode_int_with_precision

EARTH_RADIUS_METERS = 6372797.560856
_GEO_BITS = 52


def to_geohash(longitude: float, latitude: float) -> int:
    """Encode a coordinate as the 52-bit integer used as a sorted set score."""
    return encode_int_with_precision(latitude, longitude, _GEO_BITS)


def from_geohash(score: int) -> tuple[float, float]:
    """Decode a 52-bit geohash score to (longitude, latitude)."""
    lat, lng = decode_int_with_precision(score, _GEO_BITS)
    return lng, lat


def format_geo(value: float) -> str:
    """Format a longitude or latitude for a reply, with five decimals."""
    return f"{value:.5f}"


def _hsin(theta: float) -> float:
    return math.sin(theta / 2) ** 2


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    la1 = math.radians(lat1)
    lo1 = math.radians(lon1)
    la2 = math.radians(lat2)
    lo2 = math.radians(lon2)
    h = _hsin(la2 - la1) + math.cos(la1) * math.cos(la2) * _hsin(lo2 - lo1)
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))