"""Unknown field accumulation.

Fields whose tag a message does not declare are kept as raw bytes, exactly as
they appeared on the wire (key and payload), in the order they were
encountered. Encoding writes them back verbatim after the known fields, so a
message decoded with an older schema and encoded again does not lose data it
did not understand.
"""

from __future__ import annotations

from .wire import ProtoWriter, WireType


class UnknownFieldAccumulator:
    """Append-only buffer of raw unknown fields for a single decode call.

    Example:
        >>> unknown = UnknownFieldAccumulator()
        >>> unknown.append(b"\\x28\\x01")  # tag 5, varint 1
        >>> unknown.to_bytes()
        b'(\\x01'
    """

    def __init__(self) -> None:
        """Initialize an empty accumulator."""
        self._buffer = bytearray()
        self._count = 0

    def append(self, raw_field: bytes) -> None:
        """Append the raw bytes of one field (key and payload)."""
        self._buffer.extend(raw_field)
        self._count += 1

    def append_varint(self, tag: int, value: int) -> None:
        """Append a varint field rebuilt from its tag and value.

        Used for values unpacked from a packed payload, which have no raw
        bytes of their own.
        """
        writer = ProtoWriter()
        writer.write_key(tag, WireType.VARINT)
        writer.write_varint(value)
        self.append(writer.to_bytes())

    @property
    def count(self) -> int:
        """Number of fields appended."""
        return self._count

    def __len__(self) -> int:
        return len(self._buffer)

    def to_bytes(self) -> bytes:
        """Return the accumulated bytes."""
        return bytes(self._buffer)
