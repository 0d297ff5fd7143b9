"""Descriptor model: static descriptions of message, enum and field shapes.

Descriptors are plain frozen dataclasses. They are supplied by whatever loads
the schema (hand-written, or introspected from pydantic models with
``Schema.from_models``) and are validated once when a Schema is built.

Example:
    >>> person = MessageDescriptor(
    ...     "Person",
    ...     fields=(
    ...         FieldDescriptor("name", 1, Label.REQUIRED, ScalarType.STRING),
    ...         FieldDescriptor("id", 2, Label.REQUIRED, ScalarType.INT32),
    ...         FieldDescriptor("email", 3, Label.OPTIONAL, ScalarType.STRING),
    ...         FieldDescriptor("phone", 4, Label.REPEATED, MessageRef("PhoneNumber")),
    ...     ),
    ...     nested_types=(phone_number,),
    ... )
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


class Label(str, enum.Enum):
    """Field cardinality as declared in the schema."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


class ScalarType(str, enum.Enum):
    """Built-in scalar field types."""

    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"


@dataclass(frozen=True)
class EnumRef:
    """Reference to an enum type by (possibly dotted) name."""

    name: str


@dataclass(frozen=True)
class MessageRef:
    """Reference to a message type by (possibly dotted) name."""

    name: str


FieldType = Union[ScalarType, EnumRef, MessageRef]


@dataclass(frozen=True)
class FieldDescriptor:
    """A single field of a message.

    Attributes:
        name: Field name, also the attribute name on message instances
        tag: Field number, unique within the message
        label: required, optional or repeated
        type: ScalarType, EnumRef or MessageRef
        default: Declared default for optional fields (None if not declared).
            Enum defaults are given as the constant name.
    """

    name: str
    tag: int
    label: Label
    type: FieldType
    default: Any = None

    @property
    def is_repeated(self) -> bool:
        return self.label is Label.REPEATED

    @property
    def is_required(self) -> bool:
        return self.label is Label.REQUIRED


@dataclass(frozen=True)
class EnumConstant:
    """A named enum constant and its wire value."""

    name: str
    value: int


@dataclass(frozen=True)
class EnumDescriptor:
    """An enum type.

    The first constant is the designated default.
    """

    name: str
    constants: Tuple[EnumConstant, ...]

    @property
    def default(self) -> Optional[EnumConstant]:
        return self.constants[0] if self.constants else None


@dataclass(frozen=True)
class MessageDescriptor:
    """A message type.

    Attributes:
        name: Simple name of the message (nested names are qualified by the Schema)
        fields: Fields in declaration order; this order drives encode output
        nested_types: Messages and enums declared inside this message
    """

    name: str
    fields: Tuple[FieldDescriptor, ...]
    nested_types: Tuple[Union["MessageDescriptor", EnumDescriptor], ...] = ()

    def field(self, name: str) -> FieldDescriptor:
        """Return the field called ``name``.

        Raises:
            KeyError: If the message has no such field
        """
        for field_descriptor in self.fields:
            if field_descriptor.name == name:
                return field_descriptor
        raise KeyError(f"{self.name} has no field {name!r}")


TypeDescriptor = Union[MessageDescriptor, EnumDescriptor]
