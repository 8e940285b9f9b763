"""Timeseries records in the length-prefixed binary format read from input objects."""

from __future__ import annotations

import gzip
import io
import logging
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO, Union

__all__ = [
    "RecordError",
    "Record",
    "read_int",
    "read_long",
    "get_len",
    "get_next_string",
    "iter_records",
    "read_gzip_records",
    "shard_index",
]

_log = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]

_HEADER_SIZE = 4
_HASH_SIZE = 8
_TAGS_MARKER_SIZE = 2
_METRIC_MARKER_SIZE = 2
_END_OF_TAGS = 1


class RecordError(ValueError):
    """Raised when a record cannot be decoded."""


def read_int(buf: Buffer) -> int:
    """Read a big-endian unsigned 32-bit integer from the start of ``buf``."""
    if len(buf) < 4:
        raise RecordError("Not enough bytes for an int")
    return struct.unpack_from(">I", bytes(buf[:4]))[0]


def read_long(buf: Buffer, pos: int) -> int:
    """Read a big-endian signed 64-bit integer at ``pos``."""
    if pos < 0 or pos + 8 > len(buf):
        raise RecordError("Index out of bounds")
    return struct.unpack_from(">q", bytes(buf[pos : pos + 8]))[0]


def get_len(buf: Buffer, pos: int) -> int:
    """Length of the zero-terminated run starting at ``pos`` (or up to the end)."""
    if pos >= len(buf):
        raise RecordError("Index out of bounds")
    index = pos
    while index < len(buf) and buf[index] != 0:
        index += 1
    return index - pos


def get_next_string(buf: Buffer, pos: int) -> str:
    """Decode the zero-terminated UTF-8 string starting at ``pos``."""
    length = get_len(buf, pos)
    try:
        return bytes(buf[pos : pos + length]).decode("utf-8")
    except UnicodeDecodeError:
        raise RecordError("Utf8 error") from None


@dataclass
class Record:
    """A metric name, its tags and the timeseries hash."""

    tags: dict[str, str] = field(default_factory=dict)
    metric: str = ""
    xx_hash: int = 0

    @classmethod
    def parse(cls, buf: Buffer) -> "Record":
        """Decode one record body (without its length prefix)."""
        record = cls()
        record._fill(buf)
        return record

    def _fill(self, buf: Buffer) -> None:
        """Decode into this record, leaving what was read so far on error."""
        pos = _HEADER_SIZE
        self.xx_hash = read_long(buf, pos)
        pos += _HASH_SIZE + _TAGS_MARKER_SIZE
        self.tags = {}
        while True:
            key = get_next_string(buf, pos)
            pos += len(key.encode("utf-8")) + 1
            value = get_next_string(buf, pos)
            pos += len(value.encode("utf-8")) + 1
            self.tags[key] = value
            if pos >= len(buf):
                raise RecordError(
                    "Index is out of bounds, potentially because no metric was written."
                )
            if buf[pos] == _END_OF_TAGS:
                break
        pos += _METRIC_MARKER_SIZE
        self.metric = get_next_string(buf, pos)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def iter_records(stream: BinaryIO) -> Iterator[Record]:
    """Yield records from a stream of 4-byte length-prefixed bodies.

    Reading stops quietly when no complete length prefix is left. A body
    that cannot be decoded is logged and yielded as far as it was read;
    a truncated body raises RecordError.
    """
    count = 0
    parse_errors = 0
    total_bytes = 0
    while True:
        try:
            prefix = _read_exact(stream, 4)
        except (OSError, EOFError) as exc:
            _log.info("Stopped reading %r", exc)
            break
        if len(prefix) < 4:
            _log.info("Stopped reading at end of stream")
            break
        length = read_int(prefix)
        total_bytes += length
        try:
            body = _read_exact(stream, length)
        except (OSError, EOFError) as exc:
            raise RecordError(f"Error reading record body: {exc}") from exc
        if len(body) < length:
            raise RecordError("Truncated record body")
        record = Record()
        try:
            record._fill(body)
        except RecordError as exc:
            _log.info("Error but continuing %r", exc)
            parse_errors += 1
        count += 1
        yield record
    _log.info(
        "Read %d records %d bytes with %d errors.", count, total_bytes, parse_errors
    )


def read_gzip_records(data: Buffer) -> Iterator[Record]:
    """Yield the records of a gzip-compressed record stream."""
    with gzip.GzipFile(fileobj=io.BytesIO(bytes(data))) as stream:
        yield from iter_records(stream)


def shard_index(record: Record, num_shards: int) -> int:
    """Shard that receives ``record``: magnitude of the hash remainder."""
    if num_shards <= 0:
        raise ValueError(f"number of shards must be positive: {num_shards}")
    return abs(record.xx_hash) % num_shards