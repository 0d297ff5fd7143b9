"""Schema-free wire dump CLI command.

Lists the tag, wire type and value of every field in an encoded payload
without knowing its message type. Length-delimited payloads that themselves
parse as a message are listed as nested fields, up to a maximum depth.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Optional

from ..codec.wire import ProtoReader, WireType, to_signed, zigzag_decode
from ..exceptions import MalformedWireError


@dataclass
class WireField:
    """One field as it appears on the wire."""

    tag: int
    wire_type: int
    start: int
    end: int
    value: Any
    children: Optional[list[WireField]] = field(default=None)


def parse_fields(data: bytes, max_depth: int = 2, _depth: int = 0) -> list[WireField]:
    """Parse ``data`` as a sequence of fields.

    Args:
        data: Encoded message bytes
        max_depth: How many levels of length-delimited payloads to descend into

    Returns:
        Fields in wire order

    Raises:
        MalformedWireError: If data is not a valid sequence of fields
    """
    reader = ProtoReader(data)
    fields: list[WireField] = []
    while not reader.at_end():
        start = reader.position()
        tag, wire_type = reader.read_key()
        children = None
        if wire_type == WireType.VARINT:
            value: Any = reader.read_varint()
        elif wire_type == WireType.FIXED64:
            value = reader.read_fixed64()
        elif wire_type == WireType.FIXED32:
            value = reader.read_fixed32()
        elif wire_type == WireType.LENGTH_DELIMITED:
            value = reader.read_length_delimited()
            if _depth < max_depth and value and not _is_text(value):
                children = _try_parse(value, max_depth, _depth + 1)
        else:
            raise MalformedWireError(f"Unsupported wire type {wire_type} at offset {start}")
        fields.append(WireField(tag, wire_type, start, reader.position(), value, children))
    return fields


def _is_text(payload: bytes) -> bool:
    try:
        return payload.decode("utf-8").isprintable()
    except UnicodeDecodeError:
        return False


def _try_parse(payload: bytes, max_depth: int, depth: int) -> Optional[list[WireField]]:
    try:
        return parse_fields(payload, max_depth, depth)
    except MalformedWireError:
        return None


def describe(wire_field: WireField) -> str:
    """Return a short human-readable rendering of a field's value."""
    value = wire_field.value
    if wire_field.wire_type == WireType.VARINT:
        signed = to_signed(value, 64)
        text = str(value)
        if signed != value:
            text += f" (int64 {signed})"
        if value:
            text += f" (sint {zigzag_decode(value)})"
        return text
    if wire_field.wire_type == WireType.FIXED32:
        as_float = struct.unpack("<f", value.to_bytes(4, "little"))[0]
        return f"0x{value:08x} (float {as_float:g})"
    if wire_field.wire_type == WireType.FIXED64:
        as_double = struct.unpack("<d", value.to_bytes(8, "little"))[0]
        return f"0x{value:016x} (double {as_double:g})"

    if not value:
        return "<empty>"
    if wire_field.children is None:
        try:
            return repr(value.decode("utf-8"))
        except UnicodeDecodeError:
            return f"<{len(value)} bytes> {value[:32].hex()}"
    return f"<message, {len(value)} bytes>"


def dump_bytes(data: bytes, max_depth: int = 2) -> list[str]:
    """Render every field of ``data`` as indented text lines.

    Raises:
        MalformedWireError: If data is not a valid sequence of fields
    """
    lines: list[str] = []

    def walk(fields: list[WireField], indent: str) -> None:
        for wire_field in fields:
            lines.append(
                f"{indent}{wire_field.tag}:{wire_field.wire_type} "
                f"[{wire_field.start}:{wire_field.end}] {describe(wire_field)}"
            )
            if wire_field.children:
                walk(wire_field.children, indent + "  ")

    walk(parse_fields(data, max_depth), "")
    return lines


def read_payload(raw: bytes, is_hex: bool) -> bytes:
    """Return the payload bytes of a file's contents.

    Args:
        raw: File contents
        is_hex: Treat the contents as hex text (whitespace ignored)
    """
    if not is_hex:
        return raw
    return bytes.fromhex("".join(raw.decode("ascii").split()))
