"""Binary decoder for tagwire messages.

This module provides the decode() function that converts protocol-buffer wire
format data back to a message instance.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..exceptions import (
    DecodeError,
    DecodeLimitError,
    MalformedWireError,
    MissingRequiredFieldError,
)
from ..models.base import BaseMessage
from .limits import DEFAULT_LIMITS, DecodeLimits
from .plan import Cardinality, EnumAccess, FieldPlan, MessageAccess, MessagePlan
from .schema import Schema, schema_for_model
from .unknown import UnknownFieldAccumulator
from .wire import ProtoReader, WireType, to_signed

logger = logging.getLogger(__name__)


def decode(
    message_type: Union[str, type[BaseMessage]],
    data: bytes,
    schema: Optional[Schema] = None,
    *,
    limits: Optional[DecodeLimits] = None,
) -> BaseMessage:
    """Decode protocol-buffer wire format data to a message.

    Fields may appear in any order. Tags the message does not declare are kept
    verbatim in ``unknown_fields``. A singular field that appears more than
    once keeps its last value; repeated fields collect every occurrence in
    order, and packed repeated scalars are accepted as well.

    Args:
        message_type: Message class, or message name within ``schema``
        data: Encoded bytes (no outer length prefix)
        schema: Schema to decode with. Required when ``message_type`` is a
            name; defaults to the schema of the class otherwise.
        limits: Size and nesting limits (defaults to DecodeLimits())

    Returns:
        Decoded message instance

    Raises:
        MalformedWireError: If the data does not follow the wire format or a
            field arrives with a wire type its declared type does not allow
        MissingRequiredFieldError: If a required field never appeared
        DecodeLimitError: If the data exceeds the configured limits
        DecodeError: If the decoded values are rejected by the message class

    Examples:
        ```python
        from tagwire import decode

        person = decode(Person, b"\\x0a\\x01X\\x10\\x01")
        assert person.name == "X" and person.id == 1 and person.email is None

        # Decoding by name needs the schema the name belongs to
        person = decode("Person", data, schema)
        ```
    """
    if schema is None:
        if isinstance(message_type, str):
            raise TypeError(f"Decoding message {message_type!r} by name requires a schema")
        schema = schema_for_model(message_type)

    try:
        if isinstance(message_type, str):
            plan = schema.plan(message_type)
        else:
            plan = schema.plan_for(message_type)
    except KeyError as err:
        raise DecodeError(str(err)) from err

    limits = limits or DEFAULT_LIMITS
    limits.ensure_message_bytes(len(data))

    try:
        return _decode_message(schema, plan, ProtoReader(data), 0, limits)
    except RecursionError as err:
        raise DecodeLimitError(
            f"{plan.name}: nesting too deep to decode within max_depth={limits.max_depth}"
        ) from err


def _decode_message(
    schema: Schema, plan: MessagePlan, reader: ProtoReader, depth: int, limits: DecodeLimits
) -> BaseMessage:
    """Decode one message from the remainder of ``reader``."""
    limits.ensure_depth(depth)

    values: dict[str, Any] = {
        field_plan.name: []
        for field_plan in plan.fields
        if field_plan.cardinality is Cardinality.REPEATED
    }
    seen: set[str] = set()
    unknown = UnknownFieldAccumulator()

    while not reader.at_end():
        start = reader.position()
        tag, wire_type = reader.read_key()
        field_plan = plan.by_tag.get(tag)

        if field_plan is None:
            reader.skip(wire_type)
            unknown.append(reader.slice(start, reader.position()))
            logger.debug("%s: keeping unknown field %d (wire type %d)", plan.name, tag, wire_type)
            continue

        if wire_type != field_plan.wire_type:
            if field_plan.packable and wire_type == WireType.LENGTH_DELIMITED:
                _read_packed(field_plan, reader.read_sub_reader(), values[field_plan.name], unknown)
                seen.add(field_plan.name)
                continue
            raise MalformedWireError(
                f"{plan.name}.{field_plan.name}: expected wire type "
                f"{int(field_plan.wire_type)}, got {wire_type}"
            )

        access = field_plan.access
        if isinstance(access, MessageAccess):
            value = _decode_message(
                schema,
                schema.plan(access.message_name),
                reader.read_sub_reader(),
                depth + 1,
                limits,
            )
        elif isinstance(access, EnumAccess):
            number = access.codec.read_int(reader)
            value = access.codec.from_int(number)
            if value is None:
                # Unrecognized constant: the field stays unset and the raw
                # field is kept so that re-encoding preserves it
                unknown.append(reader.slice(start, reader.position()))
                logger.debug(
                    "%s.%s: unrecognized enum value %d kept as unknown field",
                    plan.name,
                    field_plan.name,
                    number,
                )
                continue
        else:
            value = access.codec.read(reader)

        if field_plan.cardinality is Cardinality.REPEATED:
            values[field_plan.name].append(value)
        else:
            values[field_plan.name] = value
        seen.add(field_plan.name)

    for field_plan in plan.required:
        if field_plan.name not in seen:
            raise MissingRequiredFieldError(plan.name, field_plan.name)

    for field_plan in plan.fields:
        if field_plan.cardinality is Cardinality.OPTIONAL and field_plan.name not in seen:
            values[field_plan.name] = field_plan.default

    values["unknown_fields"] = unknown.to_bytes()

    message_class = schema.message_class(plan.name)
    try:
        return message_class(**values)
    except ValidationError as err:
        raise DecodeError(
            f"{plan.name}: decoded values rejected by {message_class.__name__}: {err}"
        ) from err


def _read_packed(
    field_plan: FieldPlan,
    reader: ProtoReader,
    out: list[Any],
    unknown: UnknownFieldAccumulator,
) -> None:
    """Read the values of a packed repeated field into ``out``."""
    access = field_plan.access
    while not reader.at_end():
        if isinstance(access, EnumAccess):
            raw = reader.read_varint()
            constant = access.codec.from_int(to_signed(raw, 32))
            if constant is None:
                unknown.append_varint(field_plan.tag, raw)
            else:
                out.append(constant)
        else:
            out.append(access.codec.read(reader))  # type: ignore[union-attr]
