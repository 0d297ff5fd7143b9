"""tagwire: Schema-Driven Protocol-Buffer Wire Codec

A Python library for encoding and decoding messages in the protocol-buffer
binary wire format, driven by a structural schema of typed, tagged fields
rather than by generated code.

Key Features:
- Bit-exact protocol-buffer wire format (varint, fixed32/64, length-delimited)
- Pydantic-based message modeling, hand-written or generated from descriptors
- Unknown fields preserved and written back verbatim (forward compatibility)
- Required field enforcement, packed repeated decoding, decode limits
- Pure Python implementation (no protoc or C++ dependencies)

Quick Start:
    >>> from typing import Optional
    >>> from tagwire import BaseMessage, OptionalField, ProtoField, decode, encode
    >>>
    >>> class Person(BaseMessage):
    ...     name: str = ProtoField(1)
    ...     id: int = ProtoField(2, type="int32")
    ...     email: Optional[str] = OptionalField(3)
    >>>
    >>> data = encode(Person(name="X", id=1))
    >>> data
    b'\\n\\x01X\\x10\\x01'
    >>> decode(Person, data)
    Person(name='X', id=1, email=None)
"""

from __future__ import annotations

from .codec import DecodeLimits, EnumCodec, Schema, decode, encode
from .descriptors import (
    EnumConstant,
    EnumDescriptor,
    EnumRef,
    FieldDescriptor,
    Label,
    MessageDescriptor,
    MessageRef,
    ScalarType,
)
from .exceptions import (
    DecodeError,
    DecodeLimitError,
    EncodeError,
    MalformedWireError,
    MissingRequiredFieldError,
    SchemaBuildError,
    SchemaError,
    TagwireError,
)
from .models import BaseMessage, OptionalField, ProtoField, RepeatedField
from .utils import encoded_size, field_sizes

__version__ = "0.1.0"

__all__ = [
    # Core API
    "BaseMessage",
    "Schema",
    "encode",
    "decode",
    "DecodeLimits",
    "EnumCodec",
    # Field helpers
    "ProtoField",
    "OptionalField",
    "RepeatedField",
    # Descriptors
    "Label",
    "ScalarType",
    "EnumRef",
    "MessageRef",
    "FieldDescriptor",
    "EnumConstant",
    "EnumDescriptor",
    "MessageDescriptor",
    # Exceptions
    "TagwireError",
    "SchemaError",
    "SchemaBuildError",
    "EncodeError",
    "DecodeError",
    "MalformedWireError",
    "MissingRequiredFieldError",
    "DecodeLimitError",
    # Sizing
    "encoded_size",
    "field_sizes",
    # Version
    "__version__",
]
