"""Encoding and decoding of string and integer geohashes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum

ENC_LAT = 85.05112878
ENC_LONG = 180.0

_MASK64 = (1 << 64) - 1
_MASK32 = (1 << 32) - 1
_EXP232 = float(1 << 32)

_ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE_TABLE = {ord(ch): index for index, ch in enumerate(_ALPHABET)}


class Direction(IntEnum):
    """Cardinal and intercardinal directions in latitude/longitude space."""

    NORTH = 0
    NORTH_EAST = 1
    EAST = 2
    SOUTH_EAST = 3
    SOUTH = 4
    SOUTH_WEST = 5
    WEST = 6
    NORTH_WEST = 7


def base32_encode(value: int) -> str:
    """Encode the low 60 bits of a 64-bit word as 12 geohash characters."""
    chars = []
    for _ in range(12):
        chars.append(_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def base32_decode(text: str) -> int:
    """Decode geohash characters (at most 12) into the bits of a 64-bit word."""
    result = 0
    for byte in text.encode("utf-8"):
        result = ((result << 5) | _DECODE_TABLE.get(byte, 0xFF)) & _MASK64
    return result


def _max_decimal_power(width: float) -> float:
    return 10.0 ** math.floor(math.log10(width))


@dataclass(frozen=True)
class Box:
    """A rectangle in latitude/longitude space."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def center(self) -> tuple[float, float]:
        """Return the (lat, lng) center of the box."""
        return (self.min_lat + self.max_lat) / 2.0, (self.min_lng + self.max_lng) / 2.0

    def contains(self, lat: float, lng: float) -> bool:
        """Whether the point lies in the box, edges and corners included."""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    def round(self) -> tuple[float, float]:
        """Return a point inside the box, rounded to minimal precision."""
        step = _max_decimal_power(self.max_lat - self.min_lat)
        lat = math.ceil(self.min_lat / step) * step
        step = _max_decimal_power(self.max_lng - self.min_lng)
        lng = math.ceil(self.min_lng / step) * step
        return lat, lng


def _encode_range(value: float, radius: float) -> int:
    position = (value + radius) / (2 * radius)
    return int(position * _EXP232) & _MASK32


def _decode_range(encoded: int, radius: float) -> float:
    position = encoded / _EXP232
    return 2 * radius * position - radius


def _spread(value: int) -> int:
    x = value & _MASK32
    x = (x | (x << 16)) & 0x0000FFFF0000FFFF
    x = (x | (x << 8)) & 0x00FF00FF00FF00FF
    x = (x | (x << 4)) & 0x0F0F0F0F0F0F0F0F
    x = (x | (x << 2)) & 0x3333333333333333
    x = (x | (x << 1)) & 0x5555555555555555
    return x


def _interleave(x: int, y: int) -> int:
    return (_spread(x) | (_spread(y) << 1)) & _MASK64


def _squash(value: int) -> int:
    x = value & 0x5555555555555555
    x = (x | (x >> 1)) & 0x3333333333333333
    x = (x | (x >> 2)) & 0x0F0F0F0F0F0F0F0F
    x = (x | (x >> 4)) & 0x00FF00FF00FF00FF
    x = (x | (x >> 8)) & 0x0000FFFF0000FFFF
    x = (x | (x >> 16)) & 0x00000000FFFFFFFF
    return x


def _deinterleave(value: int) -> tuple[int, int]:
    return _squash(value), _squash(value >> 1)


def _error_with_precision(bits: int) -> tuple[float, float]:
    lat_bits = bits // 2
    lng_bits = bits - lat_bits
    return math.ldexp(180.0, -lat_bits), math.ldexp(360.0, -lng_bits)


def encode(lat: float, lng: float) -> str:
    """Encode a point as a 12 character geohash."""
    return encode_with_precision(lat, lng, 12)


def encode_with_precision(lat: float, lng: float, chars: int) -> str:
    """Encode a point as a geohash of the given number of characters (max 12)."""
    inthash = encode_int_with_precision(lat, lng, 5 * chars)
    return base32_encode(inthash)[12 - chars:]


def encode_int(lat: float, lng: float) -> int:
    """Encode a point as a 64-bit integer geohash."""
    return _interleave(_encode_range(lat, ENC_LAT), _encode_range(lng, ENC_LONG))


def encode_int_with_precision(lat: float, lng: float, bits: int) -> int:
    """Encode a point as an integer geohash of the given number of bits."""
    return encode_int(lat, lng) >> (64 - bits)


def bounding_box(hash_: str) -> Box:
    """Return the region encoded by a string geohash."""
    return bounding_box_int_with_precision(base32_decode(hash_), 5 * len(hash_))


def bounding_box_int_with_precision(hash_: int, bits: int) -> Box:
    """Return the region encoded by an integer geohash of the given precision."""
    full_hash = (hash_ << (64 - bits)) & _MASK64
    lat_int, lng_int = _deinterleave(full_hash)
    lat = _decode_range(lat_int, ENC_LAT)
    lng = _decode_range(lng_int, ENC_LONG)
    lat_err, lng_err = _error_with_precision(bits)
    return Box(min_lat=lat, max_lat=lat + lat_err, min_lng=lng, max_lng=lng + lng_err)


def bounding_box_int(hash_: int) -> Box:
    """Return the region encoded by a 64-bit integer geohash."""
    return bounding_box_int_with_precision(hash_, 64)


def decode(hash_: str) -> tuple[float, float]:
    """Decode a string geohash to a rounded (lat, lng) point."""
    return bounding_box(hash_).round()


def decode_center(hash_: str) -> tuple[float, float]:
    """Decode a string geohash to the center of its bounding box."""
    return bounding_box(hash_).center()


def decode_int_with_precision(hash_: int, bits: int) -> tuple[float, float]:
    """Decode an integer geohash of the given precision to a (lat, lng) point."""
    return bounding_box_int_with_precision(hash_, bits).round()


def decode_int(hash_: int) -> tuple[float, float]:
    """Decode a 64-bit integer geohash to a (lat, lng) point."""
    return decode_int_with_precision(hash_, 64)


def _neighbor_points(box: Box) -> list[tuple[float, float]]:
    lat, lng = box.center()
    dlat = box.max_lat - box.min_lat
    dlng = box.max_lng - box.min_lng
    return [
        (lat + dlat, lng),
        (lat + dlat, lng + dlng),
        (lat, lng + dlng),
        (lat - dlat, lng + dlng),
        (lat - dlat, lng),
        (lat - dlat, lng - dlng),
        (lat, lng - dlng),
        (lat + dlat, lng - dlng),
    ]


def neighbors(hash_: str) -> list[str]:
    """Return the eight neighbouring geohashes, ordered as Direction."""
    precision = len(hash_)
    return [
        encode_with_precision(lat, lng, precision)
        for lat, lng in _neighbor_points(bounding_box(hash_))
    ]


def neighbors_int(hash_: int) -> list[int]:
    """Return the eight neighbours of a 64-bit integer geohash."""
    return neighbors_int_with_precision(hash_, 64)


def neighbors_int_with_precision(hash_: int, bits: int) -> list[int]:
    """Return the eight neighbours of an integer geohash of the given precision."""
    return [
        encode_int_with_precision(lat, lng, bits)
        for lat, lng in _neighbor_points(bounding_box_int_with_precision(hash_, bits))
    ]


def neighbor(hash_: str, direction: Direction) -> str:
    """Return the neighbouring geohash in the given direction."""
    return neighbors(hash_)[Direction(direction)]


def neighbor_int(hash_: int, direction: Direction) -> int:
    """Return the neighbour of a 64-bit integer geohash in the given direction."""
    return neighbors_int_with_precision(hash_, 64)[Direction(direction)]


def neighbor_int_with_precision(hash_: int, bits: int, direction: Direction) -> int:
    """Return the neighbour of an integer geohash in the given direction."""
    return neighbors_int_with_precision(hash_, bits)[Direction(direction)]