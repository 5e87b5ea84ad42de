"""Encoder and decoder for the compact "opack" binary serialisation format.

Python values map onto the format as follows: ``dict`` (string keys),
``list``/``tuple``, ``bool``, ``int`` (unsigned 64-bit, negatives wrap),
``float``, ``datetime.datetime`` (naive values are UTC), ``str`` and
bytes-like objects.
"""

from __future__ import annotations

import itertools
import struct
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from .cbuf import CharBuf

__all__ = ["OpackError", "encode", "decode"]

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MAC_EPOCH = datetime(2001, 1, 1)

_TRUE = 0x01
_FALSE = 0x02
_TERMINATOR_TAG = 0x03
_DATE = 0x06
_INT_SMALL_BASE = 0x08
_INT8 = 0x30
_INT32 = 0x32
_INT64 = 0x33
_FLOAT32 = 0x35
_FLOAT64 = 0x36
_STRING_SMALL = 0x40
_STRING_EXT = 0x61
_DATA_SMALL = 0x70
_DATA_EXT = 0x91
_ARRAY = 0xD0
_ARRAY_OPEN = 0xDF
_DICT = 0xE0
_DICT_OPEN = 0xEF
_MAX_COUNTED = 14


class OpackError(ValueError):
    """Raised for values that cannot be encoded and for malformed input."""


class _Terminator:
    """Marker returned when a container terminator byte is read."""


_TERMINATOR = _Terminator()


def encode(obj) -> bytes:
    """Serialise ``obj`` to opack bytes."""
    buf = CharBuf()
    _encode_node(obj, buf)
    return buf.data


def _length_header(length: int, small_base: int, ext_base: int) -> bytes:
    if length <= 0x20:
        return bytes([small_base + length])
    if length <= 0xFF:
        return bytes([ext_base, length])
    if length <= 0xFFFF:
        return bytes([ext_base + 1]) + struct.pack("<H", length)
    if length <= 0xFFFFFFFF:
        return bytes([ext_base + 2]) + struct.pack("<I", length)
    return bytes([ext_base + 3]) + struct.pack("<Q", length)


def _encode_int(value: int, buf: CharBuf) -> None:
    if not -(1 << 63) <= value <= _MASK64:
        raise OpackError(f"integer {value} does not fit in 64 bits")
    value &= _MASK64
    if value <= 0xFF:
        if value > 0x27:
            buf.append(bytes([_INT8, value]))
        else:
            buf.append(bytes([value + _INT_SMALL_BASE]))
    elif value <= 0xFFFFFFFF:
        buf.append(bytes([_INT32]) + struct.pack("<I", value))
    else:
        buf.append(bytes([_INT64]) + struct.pack("<Q", value))


def _encode_float(value: float, buf: CharBuf) -> None:
    try:
        single = struct.pack("<f", value)
        exact = struct.unpack("<f", single)[0] == value
    except OverflowError:
        exact = False
    if exact:
        buf.append(bytes([_FLOAT32]) + single)
    else:
        buf.append(bytes([_FLOAT64]) + struct.pack("<d", value))


def _encode_date(value: datetime, buf: CharBuf) -> None:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    seconds = (value - _MAC_EPOCH).total_seconds()
    buf.append(bytes([_DATE]) + struct.pack("<d", seconds))


def _encode_node(obj, buf: CharBuf) -> None:
    if isinstance(obj, Mapping):
        count = len(obj)
        buf.append(bytes([_DICT + count if count <= _MAX_COUNTED else _DICT_OPEN]))
        for key, value in obj.items():
            if not isinstance(key, str):
                raise OpackError(f"dictionary keys must be strings, not {type(key).__name__}")
            _encode_node(key, buf)
            _encode_node(value, buf)
        if count > _MAX_COUNTED:
            buf.append(bytes([_TERMINATOR_TAG]))
    elif isinstance(obj, (list, tuple)):
        count = len(obj)
        buf.append(bytes([_ARRAY + count if count <= _MAX_COUNTED else _ARRAY_OPEN]))
        for item in obj:
            _encode_node(item, buf)
        if count > _MAX_COUNTED:
            buf.append(bytes([_TERMINATOR_TAG]))
    elif isinstance(obj, bool):
        buf.append(bytes([_TRUE if obj else _FALSE]))
    elif isinstance(obj, int):
        _encode_int(obj, buf)
    elif isinstance(obj, float):
        _encode_float(obj, buf)
    elif isinstance(obj, datetime):
        _encode_date(obj, buf)
    elif isinstance(obj, str):
        raw = obj.encode("utf-8")
        buf.append(_length_header(len(raw), _STRING_SMALL, _STRING_EXT))
        buf.append(raw)
    elif isinstance(obj, (bytes, bytearray, memoryview)):
        raw = memoryview(obj).tobytes()
        buf.append(_length_header(len(raw), _DATA_SMALL, _DATA_EXT))
        buf.append(raw)
    else:
        raise OpackError(f"unsupported type {type(obj).__name__}")


class _Reader:
    """Cursor over the input bytes with bounds-checked reads."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def take(self, count: int) -> bytes:
        end = self.pos + count
        if end > len(self.data):
            raise OpackError("unexpected end of data")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def unpack(self, fmt: str):
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


_EXT_LENGTH_FORMATS = ("<B", "<H", "<I", "<Q")


def _read_length(reader: _Reader, tag: int, small_base: int, ext_base: int) -> int:
    if tag < ext_base:
        return tag - small_base
    return reader.unpack(_EXT_LENGTH_FORMATS[tag - ext_base])


def _decode_number(reader: _Reader, tag: int):
    if tag == _FLOAT64:
        return reader.unpack("<d")
    if tag == _FLOAT32:
        return reader.unpack("<f")
    if tag < _INT8:
        return tag - _INT_SMALL_BASE
    if tag == _INT8:
        return reader.unpack("<b")
    if tag == _INT32:
        return reader.unpack("<i")
    if tag == _INT64:
        return reader.unpack("<Q")
    raise OpackError(f"invalid encoded byte {tag:02x}")


def _decode_date(reader: _Reader) -> datetime:
    value = reader.unpack("<d")
    try:
        seconds = int(value)
        micros = int((value - seconds) * 1000000)
        return _MAC_EPOCH + timedelta(seconds=seconds, microseconds=micros)
    except (OverflowError, ValueError) as exc:
        raise OpackError(f"date value {value!r} out of range") from exc


def _decode_string(reader: _Reader, tag: int) -> str:
    length = _read_length(reader, tag, _STRING_SMALL, _STRING_EXT)
    if reader.pos + length > len(reader.data):
        raise OpackError("size points past end of data")
    raw = reader.take(length).split(b"\x00", 1)[0]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise OpackError("string is not valid UTF-8") from exc


def _decode_data(reader: _Reader, tag: int) -> bytes:
    length = _read_length(reader, tag, _DATA_SMALL, _DATA_EXT)
    if reader.pos + length > len(reader.data):
        raise OpackError("size points past end of data")
    return reader.take(length)


def _decode_dict(reader: _Reader, tag: int, level: int) -> dict:
    result: dict = {}
    slots = itertools.repeat(None) if tag == _DICT_OPEN else range(tag - _DICT)
    for _ in slots:
        key = _decode_obj(reader, level + 1)
        if key is _TERMINATOR:
            break
        if not isinstance(key, str):
            raise OpackError("invalid node type for dictionary key")
        value = _decode_obj(reader, level + 1)
        if value is _TERMINATOR:
            raise OpackError(f"missing value for dictionary key {key!r}")
        result[key] = value
    return result


def _decode_array(reader: _Reader, tag: int, level: int) -> list:
    result: list = []
    counted = tag != _ARRAY_OPEN
    slots = range(tag - _ARRAY) if counted else itertools.repeat(None)
    for _ in slots:
        child = _decode_obj(reader, level + 1)
        if child is _TERMINATOR:
            if counted:
                raise OpackError("expected child node, found terminator")
            break
        result.append(child)
    return result


def _decode_obj(reader: _Reader, level: int):
    tag = reader.byte()
    if tag == _FALSE:
        return False
    if tag == _TRUE:
        return True
    if tag == _TERMINATOR_TAG:
        return _TERMINATOR
    if tag == _DATE:
        return _decode_date(reader)
    if 0x08 <= tag <= 0x36:
        return _decode_number(reader, tag)
    if 0x40 <= tag <= 0x64:
        return _decode_string(reader, tag)
    if 0x70 <= tag <= 0x94:
        return _decode_data(reader, tag)
    if 0xE0 <= tag <= 0xEF:
        return _decode_dict(reader, tag, level)
    if 0xD0 <= tag <= 0xDF:
        return _decode_array(reader, tag, level)
    raise OpackError(f"unexpected byte {tag:02x}")


def decode(data):
    """Deserialise opack bytes.

    A top-level dictionary or array ends decoding; among top-level scalars
    the last one wins.  Returns None when the input holds only terminators.
    """
    raw = memoryview(data).tobytes()
    if not raw:
        raise OpackError("no data to decode")
    reader = _Reader(raw)
    result = None
    while not reader.at_end():
        value = _decode_obj(reader, 0)
        if value is _TERMINATOR:
            continue
        if isinstance(value, (dict, list)):
            if result is None:
                result = value
            break
        result = value
    return result