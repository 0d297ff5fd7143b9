"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from tagwire import (
    EnumConstant,
    EnumDescriptor,
    EnumRef,
    FieldDescriptor,
    Label,
    MessageDescriptor,
    MessageRef,
    ScalarType,
    Schema,
)


@pytest.fixture
def person_descriptor() -> MessageDescriptor:
    """Person message with a nested PhoneNumber message and PhoneType enum."""
    phone_type = EnumDescriptor(
        "PhoneType",
        (EnumConstant("MOBILE", 0), EnumConstant("HOME", 1), EnumConstant("WORK", 2)),
    )
    phone_number = MessageDescriptor(
        "PhoneNumber",
        (
            FieldDescriptor("number", 1, Label.REQUIRED, ScalarType.STRING),
            FieldDescriptor("type", 2, Label.OPTIONAL, EnumRef("PhoneType"), default="HOME"),
        ),
    )
    return MessageDescriptor(
        "Person",
        (
            FieldDescriptor("name", 1, Label.REQUIRED, ScalarType.STRING),
            FieldDescriptor("id", 2, Label.REQUIRED, ScalarType.INT32),
            FieldDescriptor("email", 3, Label.OPTIONAL, ScalarType.STRING),
            FieldDescriptor("phone", 4, Label.REPEATED, MessageRef("PhoneNumber")),
        ),
        nested_types=(phone_number, phone_type),
    )


@pytest.fixture
def person_schema(person_descriptor: MessageDescriptor) -> Schema:
    """Schema containing only the Person message and its nested types."""
    return Schema([person_descriptor])


@pytest.fixture
def person_bytes() -> bytes:
    """Encoding of Person(name="X", id=1)."""
    return b"\x0a\x01X\x10\x01"
