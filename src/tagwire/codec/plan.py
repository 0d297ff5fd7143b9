"""Field plans: per-field encode/decode behavior computed once per schema.

A FieldPlan captures everything the codec needs to know about a field so that
encode, decode and size never inspect descriptor types at call time:

- the tag and its pre-encoded key (used for decode dispatch and encode output)
- an access plan: ScalarAccess, EnumAccess or MessageAccess
- a cardinality: required, optional or repeated
"""

from __future__ import annotations

import enum
import keyword
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from ..descriptors import EnumRef, FieldDescriptor, Label, MessageDescriptor, MessageRef, ScalarType
from ..exceptions import SchemaError
from .enums import EnumCodec
from .scalars import ScalarCodec, is_packable, resolve_wire_type, scalar_codec
from .wire import MAX_TAG, WireType, encode_varint, make_key

# Tags reserved for the protocol-buffer implementation itself
RESERVED_TAGS = range(19000, 20000)

# Attribute names used by message instances themselves
RESERVED_FIELD_NAMES = frozenset(["unknown_fields"])


class Cardinality(enum.Enum):
    """How many times a field may occur in a message."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


@dataclass(frozen=True)
class ScalarAccess:
    """Field values are read and written directly by a scalar codec."""

    codec: ScalarCodec


@dataclass(frozen=True)
class EnumAccess:
    """Field values are enum constants mapped through an EnumCodec."""

    codec: EnumCodec


@dataclass(frozen=True)
class MessageAccess:
    """Field values are nested messages handled by their own plan.

    The nested plan is looked up by name at call time so that messages may
    refer to themselves.
    """

    message_name: str


Access = Union[ScalarAccess, EnumAccess, MessageAccess]

# Resolves an EnumRef/MessageRef to an EnumCodec or a fully qualified message name
TypeResolver = Callable[[Union[EnumRef, MessageRef]], Union[EnumCodec, str]]


@dataclass(frozen=True)
class FieldPlan:
    """Precomputed behavior for one field.

    Attributes:
        descriptor: The field's descriptor
        name: Field name
        tag: Field tag
        wire_type: Wire type of each value's payload
        key: Encoded key bytes written before each value
        access: How values are read and written
        cardinality: Required, optional or repeated
        default: Value used when an optional field is absent (None unless declared)
    """

    descriptor: FieldDescriptor
    name: str
    tag: int
    wire_type: WireType
    key: bytes
    access: Access
    cardinality: Cardinality
    default: Any = None

    @property
    def packable(self) -> bool:
        """True if values may arrive packed in one length-delimited payload."""
        return self.cardinality is Cardinality.REPEATED and is_packable(self.wire_type)


@dataclass(frozen=True)
class MessagePlan:
    """Field plans of one message type.

    Attributes:
        name: Fully qualified message name
        descriptor: The message's descriptor
        fields: Field plans in declaration order
        by_tag: Field plans keyed by tag, for decode dispatch
        required: Plans of required fields
    """

    name: str
    descriptor: MessageDescriptor
    fields: Tuple[FieldPlan, ...]
    by_tag: Mapping[int, FieldPlan]
    required: Tuple[FieldPlan, ...]


def build_message_plan(
    name: str, descriptor: MessageDescriptor, resolve: TypeResolver
) -> MessagePlan:
    """Build the plan of one message.

    Args:
        name: Fully qualified message name
        descriptor: Message descriptor
        resolve: Resolves enum and message references in the message's scope

    Returns:
        MessagePlan for the message

    Raises:
        SchemaError: On duplicate tags or names, invalid tags, reserved names,
            unresolvable types, or invalid defaults
    """
    plans: list[FieldPlan] = []
    by_tag: dict[int, FieldPlan] = {}
    names: set[str] = set()

    for field_descriptor in descriptor.fields:
        plan = build_field_plan(name, field_descriptor, resolve)

        if plan.tag in by_tag:
            raise SchemaError(
                f"{name}: tag {plan.tag} used by both {by_tag[plan.tag].name!r} "
                f"and {plan.name!r}"
            )
        if plan.name in names:
            raise SchemaError(f"{name}: duplicate field name {plan.name!r}")

        by_tag[plan.tag] = plan
        names.add(plan.name)
        plans.append(plan)

    return MessagePlan(
        name=name,
        descriptor=descriptor,
        fields=tuple(plans),
        by_tag=MappingProxyType(by_tag),
        required=tuple(p for p in plans if p.cardinality is Cardinality.REQUIRED),
    )


def build_field_plan(
    message_name: str, field_descriptor: FieldDescriptor, resolve: TypeResolver
) -> FieldPlan:
    """Build the plan of a single field.

    Raises:
        SchemaError: If the field is invalid
    """
    where = f"{message_name}.{field_descriptor.name}"
    _check_name(where, field_descriptor.name)
    _check_tag(where, field_descriptor.tag)

    try:
        label = Label(field_descriptor.label)
    except ValueError as err:
        raise SchemaError(f"{where}: invalid label {field_descriptor.label!r}") from err

    access = _build_access(where, field_descriptor, resolve)
    if isinstance(access, ScalarAccess):
        wire_type = resolve_wire_type(access.codec.scalar_type)
    else:
        wire_type = resolve_wire_type(field_descriptor.type)

    cardinality = Cardinality(label.value)
    default = _resolve_default(where, field_descriptor, cardinality, access)

    return FieldPlan(
        descriptor=field_descriptor,
        name=field_descriptor.name,
        tag=field_descriptor.tag,
        wire_type=wire_type,
        key=encode_varint(make_key(field_descriptor.tag, wire_type)),
        access=access,
        cardinality=cardinality,
        default=default,
    )


def _check_name(where: str, name: str) -> None:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise SchemaError(f"{where}: field name must be a Python identifier")
    if name.startswith("_"):
        raise SchemaError(f"{where}: field names may not start with an underscore")
    if name in RESERVED_FIELD_NAMES:
        raise SchemaError(f"{where}: field name {name!r} is reserved")


def _check_tag(where: str, tag: int) -> None:
    if isinstance(tag, bool) or not isinstance(tag, int):
        raise SchemaError(f"{where}: tag must be an integer, got {tag!r}")
    if tag < 1 or tag > MAX_TAG:
        raise SchemaError(f"{where}: tag {tag} out of range [1, {MAX_TAG}]")
    if tag in RESERVED_TAGS:
        raise SchemaError(
            f"{where}: tag {tag} is in the reserved range "
            f"[{RESERVED_TAGS.start}, {RESERVED_TAGS.stop - 1}]"
        )


def _build_access(where: str, field_descriptor: FieldDescriptor, resolve: TypeResolver) -> Access:
    field_type = field_descriptor.type

    if isinstance(field_type, (EnumRef, MessageRef)):
        resolved = resolve(field_type)
        if isinstance(resolved, EnumCodec):
            return EnumAccess(resolved)
        return MessageAccess(resolved)

    try:
        return ScalarAccess(scalar_codec(ScalarType(field_type)))
    except (TypeError, ValueError) as err:
        raise SchemaError(f"{where}: unknown field type {field_type!r}") from err


def _resolve_default(
    where: str, field_descriptor: FieldDescriptor, cardinality: Cardinality, access: Access
) -> Optional[Any]:
    default = field_descriptor.default
    if default is None:
        return None

    if cardinality is not Cardinality.OPTIONAL:
        raise SchemaError(f"{where}: only optional fields may declare a default")

    if isinstance(access, MessageAccess):
        raise SchemaError(f"{where}: message fields cannot declare a default")

    if isinstance(access, EnumAccess):
        return _resolve_enum_default(where, access.codec, default)

    try:
        access.codec.size_of(default)
    except (TypeError, ValueError) as err:
        raise SchemaError(f"{where}: invalid default {default!r}: {err}") from err
    return default


def _resolve_enum_default(where: str, codec: EnumCodec, default: Any) -> Any:
    if isinstance(default, codec.enum_class):
        return default
    if isinstance(default, enum.Enum):
        default = default.name
    if isinstance(default, str):
        try:
            return codec.by_name(default)
        except KeyError as err:
            raise SchemaError(
                f"{where}: default {default!r} is not a constant of {codec.descriptor.name}"
            ) from err
    if isinstance(default, int):
        constant = codec.from_int(default)
        if constant is not None:
            return constant
    raise SchemaError(f"{where}: invalid enum default {default!r}")
