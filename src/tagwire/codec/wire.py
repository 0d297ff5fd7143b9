"""Wire-level reading and writing utilities.

This module provides the low-level primitives of the protocol-buffer wire
format: base-128 varints, zig-zag encoding, little-endian fixed-width
integers, length-delimited payloads and field keys.

Varints are little-endian base-128 with continuation bit 0x80 and are at most
10 bytes long (enough for any 64-bit value).
"""

from __future__ import annotations

import enum

from ..exceptions import MalformedWireError

MAX_VARINT_BYTES = 10
MAX_TAG = (1 << 29) - 1
UINT32_MASK = (1 << 32) - 1
UINT64_MASK = (1 << 64) - 1


class WireType(enum.IntEnum):
    """Wire type stored in the low three bits of a field key."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


# Wire types this codec can read or skip
SUPPORTED_WIRE_TYPES = frozenset(
    [WireType.VARINT, WireType.FIXED64, WireType.LENGTH_DELIMITED, WireType.FIXED32]
)


def make_key(tag: int, wire_type: int) -> int:
    """Combine a tag and wire type into a field key."""
    return (tag << 3) | wire_type


def varint_size(value: int) -> int:
    """Return the number of bytes needed to encode ``value`` as a varint.

    Args:
        value: Non-negative integer

    Raises:
        ValueError: If value is negative
    """
    if value < 0:
        raise ValueError(f"varint requires non-negative value, got {value}")
    size = 1
    while value >= 0x80:
        value >>= 7
        size += 1
    return size


def tag_size(tag: int) -> int:
    """Return the encoded size of a field key for ``tag``."""
    # The wire type occupies the low three bits and never changes the length
    return varint_size(tag << 3)


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a varint."""
    writer = ProtoWriter()
    writer.write_varint(value)
    return writer.to_bytes()


def zigzag_encode(value: int) -> int:
    """Map a signed integer to an unsigned one (0, -1, 1, -2 -> 0, 1, 2, 3)."""
    if value >= 0:
        return value << 1
    return ((-value) << 1) - 1


def zigzag_decode(value: int) -> int:
    """Inverse of zigzag_encode."""
    return (value >> 1) ^ -(value & 1)


def to_signed(value: int, bits: int) -> int:
    """Interpret the low ``bits`` bits of ``value`` as a two's complement integer."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


class ProtoWriter:
    """Appends wire-format primitives to a byte buffer.

    Example:
        >>> writer = ProtoWriter()
        >>> writer.write_key(1, WireType.VARINT)
        >>> writer.write_varint(150)
        >>> writer.to_bytes()
        b'\\x08\\x96\\x01'
    """

    def __init__(self) -> None:
        """Initialize an empty writer."""
        self._buffer = bytearray()

    def write_varint(self, value: int) -> None:
        """Write an unsigned integer as a varint.

        Raises:
            ValueError: If value is negative or wider than 64 bits
        """
        if value < 0:
            raise ValueError(f"varint requires non-negative value, got {value}")
        if value > UINT64_MASK:
            raise ValueError(f"varint value {value} does not fit in 64 bits")
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buffer.append(byte | 0x80)
            else:
                self._buffer.append(byte)
                return

    def write_key(self, tag: int, wire_type: int) -> None:
        """Write the key that precedes every field payload."""
        self.write_varint(make_key(tag, wire_type))

    def write_fixed32(self, value: int) -> None:
        """Write a 32-bit unsigned integer, little-endian."""
        self._buffer.extend((value & UINT32_MASK).to_bytes(4, "little"))

    def write_fixed64(self, value: int) -> None:
        """Write a 64-bit unsigned integer, little-endian."""
        self._buffer.extend((value & UINT64_MASK).to_bytes(8, "little"))

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes with no prefix."""
        self._buffer.extend(data)

    def write_length_delimited(self, payload: bytes) -> None:
        """Write a varint length followed by ``payload``."""
        self.write_varint(len(payload))
        self._buffer.extend(payload)

    def __len__(self) -> int:
        return len(self._buffer)

    def to_bytes(self) -> bytes:
        """Return the bytes written so far."""
        return bytes(self._buffer)


class ProtoReader:
    """Reads wire-format primitives from a byte buffer.

    The reader works on a window ``[start, end)`` of the underlying data so that
    nested messages are read without copying. Every read that would run past
    the end of the window raises MalformedWireError.

    Example:
        >>> reader = ProtoReader(b"\\x08\\x96\\x01")
        >>> reader.read_key()
        (1, 0)
        >>> reader.read_varint()
        150
    """

    def __init__(self, data: bytes, start: int = 0, end: int | None = None) -> None:
        """Initialize a reader over ``data[start:end]``.

        Args:
            data: Byte buffer to read
            start: Offset of the first byte to read
            end: Offset one past the last byte to read (defaults to len(data))
        """
        self._data = data
        self._position = start
        self._end = len(data) if end is None else end

    def at_end(self) -> bool:
        """Return True when the window has been fully consumed."""
        return self._position >= self._end

    def position(self) -> int:
        """Return the current read offset into the underlying data."""
        return self._position

    def remaining(self) -> int:
        """Return the number of unread bytes in the window."""
        return self._end - self._position

    def read_varint(self) -> int:
        """Read an unsigned varint, truncated to 64 bits.

        Raises:
            MalformedWireError: If the varint is truncated or longer than 10 bytes
        """
        result = 0
        shift = 0
        for _ in range(MAX_VARINT_BYTES):
            if self._position >= self._end:
                raise MalformedWireError("Truncated varint")
            byte = self._data[self._position]
            self._position += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result & UINT64_MASK
            shift += 7
        raise MalformedWireError(f"Varint longer than {MAX_VARINT_BYTES} bytes")

    def read_key(self) -> tuple[int, int]:
        """Read a field key and return ``(tag, wire_type)``.

        Raises:
            MalformedWireError: If the key is truncated or encodes tag 0
        """
        key = self.read_varint()
        tag = key >> 3
        if tag == 0:
            raise MalformedWireError("Invalid field tag 0")
        if tag > MAX_TAG:
            raise MalformedWireError(f"Field tag {tag} exceeds maximum {MAX_TAG}")
        return tag, key & 0x07

    def read_fixed32(self) -> int:
        """Read a 32-bit little-endian unsigned integer."""
        return int.from_bytes(self.read_bytes(4), "little")

    def read_fixed64(self) -> int:
        """Read a 64-bit little-endian unsigned integer."""
        return int.from_bytes(self.read_bytes(8), "little")

    def read_bytes(self, num_bytes: int) -> bytes:
        """Read exactly ``num_bytes`` raw bytes.

        Raises:
            MalformedWireError: If fewer bytes remain
        """
        if num_bytes > self.remaining():
            raise MalformedWireError(
                f"Truncated data: need {num_bytes} bytes, have {self.remaining()}"
            )
        start = self._position
        self._position += num_bytes
        return bytes(self._data[start : self._position])

    def read_length_delimited(self) -> bytes:
        """Read a varint length and the payload that follows it."""
        return self.read_bytes(self._read_length())

    def read_sub_reader(self) -> ProtoReader:
        """Read a length prefix and return a reader over the payload it covers.

        The payload is not copied; this reader is advanced past it.
        """
        length = self._read_length()
        start = self._position
        self._position += length
        return ProtoReader(self._data, start, self._position)

    def skip(self, wire_type: int) -> None:
        """Skip over one payload of the given wire type.

        Raises:
            MalformedWireError: If the payload is truncated or the wire type
                is not supported (groups and reserved wire types)
        """
        if wire_type == WireType.VARINT:
            self.read_varint()
        elif wire_type == WireType.FIXED64:
            self.read_bytes(8)
        elif wire_type == WireType.LENGTH_DELIMITED:
            self.read_bytes(self._read_length())
        elif wire_type == WireType.FIXED32:
            self.read_bytes(4)
        else:
            raise MalformedWireError(f"Unsupported wire type {wire_type}")

    def slice(self, start: int, end: int) -> bytes:
        """Return a copy of ``data[start:end]`` from the underlying buffer."""
        return bytes(self._data[start:end])

    def _read_length(self) -> int:
        length = self.read_varint()
        if length > self.remaining():
            raise MalformedWireError(
                f"Length prefix {length} runs past end of data ({self.remaining()} bytes left)"
            )
        return length
