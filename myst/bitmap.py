"""Set of 32-bit unsigned integers with the portable roaring wire format."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator
from itertools import groupby

__all__ = ["Bitmap"]

_MAX_VALUE = 0xFFFFFFFF
_COOKIE_NO_RUN = 12346
_COOKIE_RUN = 12347
_ARRAY_LIMIT = 4096
_BITSET_BYTES = 8192
_NO_OFFSET_THRESHOLD = 4


def _check(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"bitmap values must be integers, not {type(value).__name__}")
    if not 0 <= value <= _MAX_VALUE:
        raise ValueError(f"bitmap value out of 32-bit range: {value}")
    return value


class _Reader:
    """Bounds-checked little-endian reader over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def unpack(self, fmt: str) -> tuple[int, ...]:
        size = struct.calcsize(fmt)
        if self._pos + size > len(self._data):
            raise ValueError("truncated bitmap data")
        values = struct.unpack_from(fmt, self._data, self._pos)
        self._pos += size
        return values

    def take(self, size: int) -> bytes:
        if self._pos + size > len(self._data):
            raise ValueError("truncated bitmap data")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk


class Bitmap:
    """A compressed-bitmap-style set of unsigned 32-bit integers."""

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[int] = ()) -> None:
        self._values: set[int] = set()
        self.add_many(values)

    def add(self, value: int) -> None:
        self._values.add(_check(value))

    def add_many(self, values: Iterable[int]) -> None:
        self._values.update(_check(value) for value in values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Bitmap({self.to_list()!r})"

    def to_list(self) -> list[int]:
        """Return the values in ascending order."""
        return sorted(self._values)

    def copy(self) -> "Bitmap":
        duplicate = Bitmap()
        duplicate._values = set(self._values)
        return duplicate

    def or_inplace(self, other: "Bitmap") -> None:
        self._values |= other._values

    def and_inplace(self, other: "Bitmap") -> None:
        self._values &= other._values

    def andnot_inplace(self, other: "Bitmap") -> None:
        self._values -= other._values

    def and_cardinality(self, other: "Bitmap") -> int:
        """Number of values present in both bitmaps."""
        small, large = sorted((self._values, other._values), key=len)
        return sum(1 for value in small if value in large)

    def serialize(self) -> bytes:
        """Encode in the portable roaring format (array and bitset containers)."""
        containers = [
            (key, [value & 0xFFFF for value in group])
            for key, group in groupby(sorted(self._values), key=lambda v: v >> 16)
        ]
        header = bytearray(struct.pack("<II", _COOKIE_NO_RUN, len(containers)))
        for key, lows in containers:
            header += struct.pack("<HH", key, len(lows) - 1)

        bodies = []
        for _, lows in containers:
            if len(lows) > _ARRAY_LIMIT:
                bits = bytearray(_BITSET_BYTES)
                for low in lows:
                    bits[low >> 3] |= 1 << (low & 7)
                bodies.append(bytes(bits))
            else:
                bodies.append(struct.pack(f"<{len(lows)}H", *lows))

        offset = len(header) + 4 * len(containers)
        for body in bodies:
            header += struct.pack("<I", offset)
            offset += len(body)
        return bytes(header) + b"".join(bodies)

    @classmethod
    def deserialize(cls, data: bytes) -> "Bitmap":
        """Decode a bitmap in the portable roaring format."""
        reader = _Reader(bytes(data))
        (cookie,) = reader.unpack("<I")
        if cookie == _COOKIE_NO_RUN:
            (size,) = reader.unpack("<I")
            run_flags = b""
        elif cookie & 0xFFFF == _COOKIE_RUN:
            size = (cookie >> 16) + 1
            run_flags = reader.take((size + 7) // 8)
        else:
            raise ValueError(f"unknown bitmap cookie: {cookie}")
        if size > 1 << 16:
            raise ValueError(f"too many bitmap containers: {size}")

        descriptors = [reader.unpack("<HH") for _ in range(size)]
        if not run_flags or size >= _NO_OFFSET_THRESHOLD:
            reader.take(4 * size)

        bitmap = cls()
        values = bitmap._values
        for index, (key, card_minus_one) in enumerate(descriptors):
            high = key << 16
            is_run = bool(run_flags) and bool(run_flags[index >> 3] & (1 << (index & 7)))
            if is_run:
                (n_runs,) = reader.unpack("<H")
                for _ in range(n_runs):
                    start, length = reader.unpack("<HH")
                    if start + length > 0xFFFF:
                        raise ValueError("run container exceeds 16-bit range")
                    values.update(range(high + start, high + start + length + 1))
            elif card_minus_one + 1 > _ARRAY_LIMIT:
                bits = reader.take(_BITSET_BYTES)
                for byte_index, byte in enumerate(bits):
                    if byte:
                        base = high + (byte_index << 3)
                        values.update(base + bit for bit in range(8) if byte & (1 << bit))
            else:
                count = card_minus_one + 1
                lows = reader.unpack(f"<{count}H")
                values.update(high + low for low in lows)
        return bitmap