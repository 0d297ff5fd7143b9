"""Protocol-buffer wire codec for tagwire.

This module provides encoding and decoding of messages against a Schema, plus
the wire-level primitives they are built on.
"""

from __future__ import annotations

from .decoder import decode
from .encoder import encode
from .enums import EnumCodec
from .limits import DecodeLimits
from .plan import Cardinality, FieldPlan, MessagePlan
from .scalars import ScalarCodec, resolve_wire_type, scalar_codec
from .schema import Schema, schema_for_model
from .unknown import UnknownFieldAccumulator
from .wire import ProtoReader, ProtoWriter, WireType, zigzag_decode, zigzag_encode

__all__ = [
    "encode",
    "decode",
    "Schema",
    "schema_for_model",
    "DecodeLimits",
    "EnumCodec",
    "ScalarCodec",
    "scalar_codec",
    "resolve_wire_type",
    "Cardinality",
    "FieldPlan",
    "MessagePlan",
    "UnknownFieldAccumulator",
    "ProtoReader",
    "ProtoWriter",
    "WireType",
    "zigzag_encode",
    "zigzag_decode",
]
