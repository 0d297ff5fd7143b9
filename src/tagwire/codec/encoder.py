"""Binary encoder for tagwire messages.

This module provides the encode() function that converts a message instance
to the protocol-buffer wire format.
"""

from __future__ import annotations

from typing import Any, Optional

from ..exceptions import EncodeError
from ..models.base import BaseMessage
from .plan import Cardinality, FieldPlan, MessageAccess, MessagePlan
from .schema import Schema, schema_for_model
from .wire import ProtoWriter


def encode(message: BaseMessage, schema: Optional[Schema] = None) -> bytes:
    """Encode a message to the protocol-buffer wire format.

    Fields are written in declaration order, each as a key followed by its
    payload; repeated fields write one key and payload per element. The raw
    unknown fields of the message are appended verbatim at the end. The output
    depends only on the field values.

    Args:
        message: Message instance to encode
        schema: Schema the message's class belongs to. Defaults to the schema
            that generated the class, or one introspected from the class.

    Returns:
        Encoded bytes (no outer length prefix)

    Raises:
        SchemaError: If message schema is invalid
        EncodeError: If a required field is None or a value is invalid for its type

    Examples:
        ```python
        from typing import Optional
        from tagwire import BaseMessage, OptionalField, ProtoField, encode

        class Person(BaseMessage):
            name: str = ProtoField(1)
            id: int = ProtoField(2, type="int32")
            email: Optional[str] = OptionalField(3)

        data = encode(Person(name="X", id=1))
        assert data == b"\\x0a\\x01X\\x10\\x01"
        ```
    """
    if schema is None:
        schema = schema_for_model(type(message))

    try:
        plan = schema.plan_for(message)
    except KeyError as err:
        raise EncodeError(str(err)) from err

    writer = ProtoWriter()
    _encode_message(schema, plan, message, writer)
    encoded = writer.to_bytes()

    # Check max_bytes constraint if present
    max_bytes = getattr(type(message), "tagwire_max_bytes", None)
    if max_bytes is not None and len(encoded) > max_bytes:
        raise EncodeError(
            f"Encoded message size ({len(encoded)} bytes) exceeds tagwire_max_bytes={max_bytes}"
        )

    return encoded


def _encode_message(
    schema: Schema, plan: MessagePlan, message: BaseMessage, writer: ProtoWriter
) -> None:
    """Write every present field of ``message``, then its unknown fields."""
    for field_plan in plan.fields:
        value = getattr(message, field_plan.name)

        if field_plan.cardinality is Cardinality.REPEATED:
            for element in value or ():
                if element is None:
                    raise EncodeError(
                        f"Field {plan.name}.{field_plan.name}: None in repeated field"
                    )
                _encode_field(schema, plan, field_plan, element, writer)
            continue

        if value is None:
            if field_plan.cardinality is Cardinality.REQUIRED:
                raise EncodeError(f"Field {plan.name}.{field_plan.name} is required but got None")
            continue

        _encode_field(schema, plan, field_plan, value, writer)

    writer.write_bytes(message.unknown_fields)


def _encode_field(
    schema: Schema, plan: MessagePlan, field_plan: FieldPlan, value: Any, writer: ProtoWriter
) -> None:
    """Encode a single field value, key included.

    Raises:
        EncodeError: If value is invalid
    """
    access = field_plan.access
    writer.write_bytes(field_plan.key)

    # Nested message: length prefix, then the message's own encoding
    if isinstance(access, MessageAccess):
        nested_plan = schema.plan(access.message_name)
        expected = schema.message_class(access.message_name)
        if not isinstance(value, expected):
            raise EncodeError(
                f"Field {plan.name}.{field_plan.name}: expected {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        nested = ProtoWriter()
        _encode_message(schema, nested_plan, value, nested)
        writer.write_length_delimited(nested.to_bytes())
        return

    # Scalar and enum codecs share the write(writer, value) signature
    try:
        access.codec.write(writer, value)
    except (TypeError, ValueError) as err:
        raise EncodeError(f"Field {plan.name}.{field_plan.name}: {err}") from err
