"""Message size calculation utilities.

This module provides functions to calculate the encoded size of messages
without actually encoding them.
"""

from __future__ import annotations

from typing import Any, Optional

from ..codec.plan import Cardinality, FieldPlan, MessageAccess, MessagePlan
from ..codec.schema import Schema, schema_for_model
from ..codec.wire import tag_size, varint_size
from ..exceptions import EncodeError
from ..models.base import BaseMessage


def encoded_size(message: BaseMessage, schema: Optional[Schema] = None) -> int:
    """Calculate the encoded size of a message in bytes.

    The result always equals ``len(encode(message))``; unknown fields are
    counted as well.

    Args:
        message: Message instance to calculate size for
        schema: Schema the message's class belongs to (defaults as for encode)

    Returns:
        Size in bytes

    Raises:
        EncodeError: If the message could not be encoded

    Example:
        >>> encoded_size(Person(name="X", id=1))
        5
    """
    schema, plan = _resolve(message, schema)
    return _message_size(schema, plan, message)


def field_sizes(message: BaseMessage, schema: Optional[Schema] = None) -> dict[str, int]:
    """Get the encoded size in bytes of each field in a message.

    Sizes include field keys and length prefixes. Absent optional fields and
    empty repeated fields have size 0.

    Args:
        message: Message instance to analyze
        schema: Schema the message's class belongs to (defaults as for encode)

    Returns:
        Dictionary mapping field names to their size in bytes, in declaration order

    Raises:
        EncodeError: If the message could not be encoded

    Example:
        >>> field_sizes(Person(name="X", id=1))
        {'name': 3, 'id': 2, 'email': 0, 'phone': 0}
    """
    schema, plan = _resolve(message, schema)
    return {
        field_plan.name: _field_size(schema, plan, field_plan, getattr(message, field_plan.name))
        for field_plan in plan.fields
    }


def _resolve(message: BaseMessage, schema: Optional[Schema]) -> tuple[Schema, MessagePlan]:
    if schema is None:
        schema = schema_for_model(type(message))
    try:
        return schema, schema.plan_for(message)
    except KeyError as err:
        raise EncodeError(str(err)) from err


def _message_size(schema: Schema, plan: MessagePlan, message: BaseMessage) -> int:
    total = sum(
        _field_size(schema, plan, field_plan, getattr(message, field_plan.name))
        for field_plan in plan.fields
    )
    return total + len(message.unknown_fields)


def _field_size(schema: Schema, plan: MessagePlan, field_plan: FieldPlan, value: Any) -> int:
    if field_plan.cardinality is Cardinality.REPEATED:
        return sum(_value_size(schema, plan, field_plan, element) for element in value or ())
    if value is None:
        if field_plan.cardinality is Cardinality.REQUIRED:
            raise EncodeError(f"Field {plan.name}.{field_plan.name} is required but got None")
        return 0
    return _value_size(schema, plan, field_plan, value)


def _value_size(schema: Schema, plan: MessagePlan, field_plan: FieldPlan, value: Any) -> int:
    """Size of one occurrence of a field: key plus payload."""
    access = field_plan.access
    if isinstance(access, MessageAccess):
        expected = schema.message_class(access.message_name)
        if not isinstance(value, expected):
            raise EncodeError(
                f"Field {plan.name}.{field_plan.name}: expected {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        length = _message_size(schema, schema.plan(access.message_name), value)
        return tag_size(field_plan.tag) + varint_size(length) + length

    try:
        return tag_size(field_plan.tag) + access.codec.size_of(value)
    except (TypeError, ValueError) as err:
        raise EncodeError(f"Field {plan.name}.{field_plan.name}: {err}") from err
