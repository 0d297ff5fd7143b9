"""Wire type resolution and scalar codecs.

Every field type maps to exactly one wire type:

- bool, int32, int64, uint32, uint64, sint32, sint64, enums -> VARINT
- fixed32, sfixed32, float -> FIXED32
- fixed64, sfixed64, double -> FIXED64
- string, bytes, messages -> LENGTH_DELIMITED

Scalar codecs validate the Python value on the way out and raise TypeError or
ValueError; the encoder turns those into EncodeError naming the field.
``size_of`` includes the length prefix of length-delimited values but never
the field key.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Callable

from ..descriptors import EnumRef, FieldType, MessageRef, ScalarType
from ..exceptions import MalformedWireError
from .wire import (
    UINT32_MASK,
    UINT64_MASK,
    ProtoReader,
    ProtoWriter,
    WireType,
    to_signed,
    varint_size,
    zigzag_decode,
    zigzag_encode,
)

INT32_MIN, INT32_MAX = -(1 << 31), (1 << 31) - 1
INT64_MIN, INT64_MAX = -(1 << 63), (1 << 63) - 1


@dataclass(frozen=True)
class ScalarCodec:
    """Size/write/read functions for one scalar type.

    Attributes:
        scalar_type: The scalar type this codec handles
        wire_type: Wire type used on the wire
        python_type: Python type of decoded values
        size_of: Encoded payload size of a value (length prefix included)
        write: Write a value's payload to a ProtoWriter
        read: Read a payload from a ProtoReader
    """

    scalar_type: ScalarType
    wire_type: WireType
    python_type: type
    size_of: Callable[[Any], int]
    write: Callable[[ProtoWriter, Any], None]
    read: Callable[[ProtoReader], Any]


def _check_int(scalar_type: ScalarType, value: Any, min_value: int, max_value: int) -> int:
    if not isinstance(value, int):
        raise TypeError(f"expected int for {scalar_type.value}, got {type(value).__name__}")
    if value < min_value or value > max_value:
        raise ValueError(
            f"value {value} out of bounds for {scalar_type.value} [{min_value}, {max_value}]"
        )
    return value


def _varint_codec(
    scalar_type: ScalarType,
    min_value: int,
    max_value: int,
    to_wire: Callable[[int], int],
    from_wire: Callable[[int], int],
) -> ScalarCodec:
    def size_of(value: Any) -> int:
        return varint_size(to_wire(_check_int(scalar_type, value, min_value, max_value)))

    def write(writer: ProtoWriter, value: Any) -> None:
        writer.write_varint(to_wire(_check_int(scalar_type, value, min_value, max_value)))

    def read(reader: ProtoReader) -> int:
        return from_wire(reader.read_varint())

    return ScalarCodec(scalar_type, WireType.VARINT, int, size_of, write, read)


def _fixed_codec(
    scalar_type: ScalarType, num_bytes: int, min_value: int, max_value: int, signed: bool
) -> ScalarCodec:
    wire_type = WireType.FIXED32 if num_bytes == 4 else WireType.FIXED64
    bits = num_bytes * 8

    def size_of(value: Any) -> int:
        _check_int(scalar_type, value, min_value, max_value)
        return num_bytes

    def write(writer: ProtoWriter, value: Any) -> None:
        value = _check_int(scalar_type, value, min_value, max_value)
        if num_bytes == 4:
            writer.write_fixed32(value)
        else:
            writer.write_fixed64(value)

    def read(reader: ProtoReader) -> int:
        raw = reader.read_fixed32() if num_bytes == 4 else reader.read_fixed64()
        return to_signed(raw, bits) if signed else raw

    return ScalarCodec(scalar_type, wire_type, int, size_of, write, read)


def _float_codec(scalar_type: ScalarType, fmt: str) -> ScalarCodec:
    num_bytes = struct.calcsize(fmt)
    wire_type = WireType.FIXED32 if num_bytes == 4 else WireType.FIXED64

    def check(value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected float for {scalar_type.value}, got {type(value).__name__}")
        return float(value)

    def pack(value: Any) -> bytes:
        try:
            return struct.pack(fmt, check(value))
        except OverflowError as err:
            raise ValueError(f"value {value} out of range for {scalar_type.value}") from err

    def size_of(value: Any) -> int:
        return len(pack(value))

    def write(writer: ProtoWriter, value: Any) -> None:
        writer.write_bytes(pack(value))

    def read(reader: ProtoReader) -> float:
        return float(struct.unpack(fmt, reader.read_bytes(num_bytes))[0])

    return ScalarCodec(scalar_type, wire_type, float, size_of, write, read)


def _bool_codec() -> ScalarCodec:
    def check(value: Any) -> bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected bool, got {type(value).__name__}")
        return value

    def size_of(value: Any) -> int:
        check(value)
        return 1

    def write(writer: ProtoWriter, value: Any) -> None:
        writer.write_varint(1 if check(value) else 0)

    def read(reader: ProtoReader) -> bool:
        return reader.read_varint() != 0

    return ScalarCodec(ScalarType.BOOL, WireType.VARINT, bool, size_of, write, read)


def _bytes_codec() -> ScalarCodec:
    def check(value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"expected bytes, got {type(value).__name__}")
        return bytes(value)

    def size_of(value: Any) -> int:
        length = len(check(value))
        return varint_size(length) + length

    def write(writer: ProtoWriter, value: Any) -> None:
        writer.write_length_delimited(check(value))

    def read(reader: ProtoReader) -> bytes:
        return reader.read_length_delimited()

    return ScalarCodec(ScalarType.BYTES, WireType.LENGTH_DELIMITED, bytes, size_of, write, read)


def _string_codec() -> ScalarCodec:
    def to_utf8(value: Any) -> bytes:
        if not isinstance(value, str):
            raise TypeError(f"expected str, got {type(value).__name__}")
        return value.encode("utf-8")

    def size_of(value: Any) -> int:
        length = len(to_utf8(value))
        return varint_size(length) + length

    def write(writer: ProtoWriter, value: Any) -> None:
        writer.write_length_delimited(to_utf8(value))

    def read(reader: ProtoReader) -> str:
        raw = reader.read_length_delimited()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise MalformedWireError(f"Invalid UTF-8 in string field: {err}") from err

    return ScalarCodec(ScalarType.STRING, WireType.LENGTH_DELIMITED, str, size_of, write, read)


SCALAR_CODECS: dict[ScalarType, ScalarCodec] = {
    ScalarType.BOOL: _bool_codec(),
    # Negative int32/int64 values are sign-extended to 64 bits (10-byte varints)
    ScalarType.INT32: _varint_codec(
        ScalarType.INT32,
        INT32_MIN,
        INT32_MAX,
        lambda v: v & UINT64_MASK,
        lambda v: to_signed(v, 32),
    ),
    ScalarType.INT64: _varint_codec(
        ScalarType.INT64,
        INT64_MIN,
        INT64_MAX,
        lambda v: v & UINT64_MASK,
        lambda v: to_signed(v, 64),
    ),
    ScalarType.UINT32: _varint_codec(
        ScalarType.UINT32, 0, UINT32_MASK, lambda v: v, lambda v: v & UINT32_MASK
    ),
    ScalarType.UINT64: _varint_codec(ScalarType.UINT64, 0, UINT64_MASK, lambda v: v, lambda v: v),
    ScalarType.SINT32: _varint_codec(
        ScalarType.SINT32,
        INT32_MIN,
        INT32_MAX,
        zigzag_encode,
        lambda v: zigzag_decode(v & UINT32_MASK),
    ),
    ScalarType.SINT64: _varint_codec(
        ScalarType.SINT64, INT64_MIN, INT64_MAX, zigzag_encode, zigzag_decode
    ),
    ScalarType.FIXED32: _fixed_codec(ScalarType.FIXED32, 4, 0, UINT32_MASK, signed=False),
    ScalarType.SFIXED32: _fixed_codec(ScalarType.SFIXED32, 4, INT32_MIN, INT32_MAX, signed=True),
    ScalarType.FIXED64: _fixed_codec(ScalarType.FIXED64, 8, 0, UINT64_MASK, signed=False),
    ScalarType.SFIXED64: _fixed_codec(ScalarType.SFIXED64, 8, INT64_MIN, INT64_MAX, signed=True),
    ScalarType.FLOAT: _float_codec(ScalarType.FLOAT, "<f"),
    ScalarType.DOUBLE: _float_codec(ScalarType.DOUBLE, "<d"),
    ScalarType.STRING: _string_codec(),
    ScalarType.BYTES: _bytes_codec(),
}


def scalar_codec(scalar_type: ScalarType) -> ScalarCodec:
    """Return the codec for a scalar type."""
    return SCALAR_CODECS[ScalarType(scalar_type)]


def resolve_wire_type(field_type: FieldType) -> WireType:
    """Return the wire type used for a field of the given type.

    Args:
        field_type: ScalarType, EnumRef or MessageRef

    Returns:
        The wire type the field's payloads are written with

    Raises:
        TypeError: If field_type is not a recognised field type
    """
    if isinstance(field_type, EnumRef):
        return WireType.VARINT
    if isinstance(field_type, MessageRef):
        return WireType.LENGTH_DELIMITED
    if isinstance(field_type, ScalarType):
        return SCALAR_CODECS[field_type].wire_type
    raise TypeError(f"Unsupported field type {field_type!r}")


def is_packable(wire_type: int) -> bool:
    """Return True if repeated values of this wire type may arrive packed."""
    return wire_type in (WireType.VARINT, WireType.FIXED32, WireType.FIXED64)
