"""Schema: the validated, immutable table of message and enum types.

A Schema is built once from descriptors (or introspected from message models)
and never changes afterwards. Building it performs all schema validation and
precomputes everything the codec needs:

- fully qualified names for nested types (``Person.PhoneNumber``)
- an EnumCodec per enum
- a MessagePlan per message
- a message class per message (supplied, or generated with Pydantic)

The Schema is passed explicitly to codec calls; there is no global registry,
so independent schemas can coexist (e.g. an old and a new version of the same
message).

Example:
    >>> schema = Schema([person_descriptor])
    >>> Person = schema.message_class("Person")
    >>> data = schema.encode(Person(name="X", id=1))
    >>> schema.decode("Person", data)
    Person(name='X', id=1, email=None, phone=[])
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from ..descriptors import EnumDescriptor, EnumRef, MessageDescriptor, MessageRef
from ..exceptions import SchemaError
from ..models.base import BaseMessage
from ..models.factory import (
    finish_message_classes,
    forward_ref_name,
    make_enum_class,
    make_message_class,
)
from ..models.introspect import collect_model_types
from .enums import EnumCodec
from .plan import EnumAccess, MessageAccess, MessagePlan, TypeResolver, build_message_plan
from .scalars import INT32_MAX, INT32_MIN

if TYPE_CHECKING:
    from .limits import DecodeLimits

logger = logging.getLogger(__name__)

TypeDescriptor = Union[MessageDescriptor, EnumDescriptor]


class Schema:
    """Validated table of message and enum types.

    Args:
        types: Top-level message and enum descriptors. Nested types are
            registered under dotted names.
        message_classes: Optional message name -> BaseMessage subclass to use
            for instances. Messages without a class get a generated one.
        enum_classes: Optional enum name -> Enum class to use for constants.
            Enums without a class get a generated IntEnum.

    Raises:
        SchemaError: If any descriptor is invalid. Building either succeeds
            completely or fails; there is no partially built Schema.
    """

    def __init__(
        self,
        types: Iterable[TypeDescriptor],
        *,
        message_classes: Optional[Mapping[str, type[BaseMessage]]] = None,
        enum_classes: Optional[Mapping[str, type[enum.Enum]]] = None,
    ) -> None:
        self._messages: dict[str, MessageDescriptor] = {}
        self._enums: dict[str, EnumDescriptor] = {}
        for type_descriptor in types:
            self._collect(type_descriptor, scope="")

        message_classes = dict(message_classes or {})
        enum_classes = dict(enum_classes or {})
        for name in message_classes:
            if name not in self._messages:
                raise SchemaError(f"Class given for unknown message type {name!r}")
        for name in enum_classes:
            if name not in self._enums:
                raise SchemaError(f"Class given for unknown enum type {name!r}")

        self._enum_codecs: dict[str, EnumCodec] = {}
        for name, enum_descriptor in self._enums.items():
            _check_enum(name, enum_descriptor)
            enum_class = enum_classes.get(name)
            if enum_class is None:
                enum_class = make_enum_class(name, enum_descriptor)
            else:
                _check_enum_class(name, enum_descriptor, enum_class)
            codec = EnumCodec(enum_descriptor, enum_class)  # type: ignore[arg-type]
            self._enum_codecs[name] = codec

        self._plans: dict[str, MessagePlan] = {
            name: build_message_plan(name, descriptor, self._resolver(name))
            for name, descriptor in self._messages.items()
        }

        self._classes: dict[str, type[BaseMessage]] = {}
        generated: dict[str, type[BaseMessage]] = {}
        for name, plan in self._plans.items():
            message_class = message_classes.get(name)
            if message_class is None:
                generated[name] = self._generate_class(name, plan, message_classes)
            else:
                _check_message_class(plan, message_class)
                self._classes[name] = message_class
        finish_message_classes(generated)
        for message_class in generated.values():
            message_class.tagwire_schema = self
        self._classes.update(generated)

        self._names_by_class = {cls: name for name, cls in self._classes.items()}

        logger.debug(
            "Built schema with %d message(s) and %d enum(s); generated %d class(es)",
            len(self._messages),
            len(self._enums),
            len(generated),
        )

    @classmethod
    def from_models(cls, *model_classes: type[BaseMessage]) -> Schema:
        """Build a Schema by introspecting message models.

        Every message and enum class reachable from the given models through
        their fields is included. Classes that all carry the same ``tagwire_schema``
        return that Schema.

        Args:
            *model_classes: BaseMessage subclasses declared with ProtoField()

        Returns:
            Schema using the given classes for instances

        Raises:
            SchemaError: If a model cannot be described or is invalid
        """
        bound = {model_class.__dict__.get("tagwire_schema") for model_class in model_classes}
        if len(bound) == 1 and None not in bound:
            # Classes that already belong to one Schema, generated nested
            # classes included, are not introspected again
            return bound.pop()  # type: ignore[no-any-return]

        collected = collect_model_types(*model_classes)
        return cls(
            collected.types,
            message_classes=collected.message_classes,
            enum_classes=collected.enum_classes,
        )

    # Lookups

    @property
    def message_names(self) -> tuple[str, ...]:
        """Fully qualified names of all message types."""
        return tuple(self._messages)

    @property
    def enum_names(self) -> tuple[str, ...]:
        """Fully qualified names of all enum types."""
        return tuple(self._enums)

    def message_descriptor(self, name: str) -> MessageDescriptor:
        return self._messages[self._message_name(name)]

    def enum_descriptor(self, name: str) -> EnumDescriptor:
        return self._enum_codec(name).descriptor

    def plan(self, name: str) -> MessagePlan:
        """Return the plan of the message called ``name``.

        Raises:
            KeyError: If the schema has no such message
        """
        return self._plans[self._message_name(name)]

    def plan_for(self, message: Union[BaseMessage, type[BaseMessage]]) -> MessagePlan:
        """Return the plan for a message instance or class."""
        return self._plans[self.name_of(message)]

    def name_of(self, message: Union[BaseMessage, type[BaseMessage]]) -> str:
        """Return the message type name bound to a message instance or class.

        Raises:
            KeyError: If the class does not belong to this schema
        """
        message_class = message if isinstance(message, type) else type(message)
        try:
            return self._names_by_class[message_class]
        except KeyError:
            raise KeyError(
                f"{message_class.__name__} is not a message class of this schema"
            ) from None

    def message_class(self, name: str) -> type[BaseMessage]:
        """Return the class used for instances of message ``name``."""
        return self._classes[self._message_name(name)]

    def enum_class(self, name: str) -> type[enum.Enum]:
        """Return the class used for constants of enum ``name``."""
        return self._enum_codec(name).enum_class

    def enum_codec(self, name: str) -> EnumCodec:
        """Return the EnumCodec of enum ``name``."""
        return self._enum_codec(name)

    # Codec operations

    def encode(self, message: BaseMessage) -> bytes:
        """Encode a message of this schema (see ``tagwire.encode``)."""
        from .encoder import encode

        return encode(message, self)

    def decode(
        self,
        message_type: Union[str, type[BaseMessage]],
        data: bytes,
        *,
        limits: Optional[DecodeLimits] = None,
    ) -> BaseMessage:
        """Decode a message of this schema (see ``tagwire.decode``)."""
        from .decoder import decode

        return decode(message_type, data, self, limits=limits)

    def encoded_size(self, message: BaseMessage) -> int:
        """Return the encoded size of a message in bytes."""
        from ..utils.sizing import encoded_size

        return encoded_size(message, self)

    def field_sizes(self, message: BaseMessage) -> dict[str, int]:
        """Return the encoded size in bytes of each field of a message."""
        from ..utils.sizing import field_sizes

        return field_sizes(message, self)

    def __repr__(self) -> str:
        return f"Schema(messages={list(self._messages)}, enums={list(self._enums)})"

    # Building

    def _collect(self, type_descriptor: TypeDescriptor, scope: str) -> None:
        name = getattr(type_descriptor, "name", None)
        if not isinstance(name, str) or not name or "." in name:
            raise SchemaError(f"Invalid type name {name!r} in scope {scope or '<root>'}")

        full_name = f"{scope}.{name}" if scope else name
        if full_name in self._messages or full_name in self._enums:
            raise SchemaError(f"Duplicate type name {full_name!r}")

        if isinstance(type_descriptor, MessageDescriptor):
            self._messages[full_name] = type_descriptor
            for nested in type_descriptor.nested_types:
                self._collect(nested, scope=full_name)
        elif isinstance(type_descriptor, EnumDescriptor):
            self._enums[full_name] = type_descriptor
        else:
            raise SchemaError(f"Unsupported type descriptor {type_descriptor!r}")

    def _resolver(self, scope: str) -> TypeResolver:
        def resolve(ref: Union[EnumRef, MessageRef]) -> Union[EnumCodec, str]:
            if isinstance(ref, EnumRef):
                enum_name = _lookup(ref.name, scope, self._enums)
                if enum_name is None:
                    raise SchemaError(f"{scope}: unknown enum type {ref.name!r}")
                return self._enum_codecs[enum_name]
            message_name = _lookup(ref.name, scope, self._messages)
            if message_name is None:
                raise SchemaError(f"{scope}: unknown message type {ref.name!r}")
            return message_name

        return resolve

    def _generate_class(
        self,
        name: str,
        plan: MessagePlan,
        supplied: Mapping[str, type[BaseMessage]],
    ) -> type[BaseMessage]:
        fields: list[tuple[Any, Any]] = []
        defaults: dict[str, Any] = {}
        for field_plan in plan.fields:
            access = field_plan.access
            if isinstance(access, MessageAccess):
                element: Any = supplied.get(access.message_name) or forward_ref_name(
                    access.message_name
                )
            elif isinstance(access, EnumAccess):
                element = access.codec.enum_class
            else:
                element = access.codec.python_type
            fields.append((field_plan.descriptor, element))
            if field_plan.default is not None:
                defaults[field_plan.name] = field_plan.default
        return make_message_class(name, plan.descriptor.name, fields, defaults)

    def _message_name(self, name: str) -> str:
        if name not in self._messages:
            raise KeyError(f"Unknown message type {name!r}")
        return name

    def _enum_codec(self, name: str) -> EnumCodec:
        try:
            return self._enum_codecs[name]
        except KeyError:
            raise KeyError(f"Unknown enum type {name!r}") from None


def _lookup(name: str, scope: str, table: Mapping[str, Any]) -> Optional[str]:
    """Resolve a type name from ``scope`` outwards, protobuf style.

    ``.Foo.Bar`` is absolute. ``Bar`` referenced from ``Foo.Baz`` is tried as
    ``Foo.Baz.Bar``, ``Foo.Bar`` and ``Bar``, in that order.
    """
    if name.startswith("."):
        return name[1:] if name[1:] in table else None

    parts = scope.split(".") if scope else []
    for i in range(len(parts), -1, -1):
        prefix = ".".join(parts[:i])
        candidate = f"{prefix}.{name}" if prefix else name
        if candidate in table:
            return candidate
    return None


def _check_enum(name: str, descriptor: EnumDescriptor) -> None:
    if not descriptor.constants:
        raise SchemaError(f"Enum {name} has no constants")

    names: set[str] = set()
    values: dict[int, str] = {}
    for constant in descriptor.constants:
        if not constant.name.isidentifier():
            raise SchemaError(f"Enum {name}: invalid constant name {constant.name!r}")
        if constant.name in names:
            raise SchemaError(f"Enum {name}: duplicate constant name {constant.name!r}")
        if isinstance(constant.value, bool) or not isinstance(constant.value, int):
            raise SchemaError(f"Enum {name}: {constant.name} has non-integer value")
        if constant.value < INT32_MIN or constant.value > INT32_MAX:
            raise SchemaError(f"Enum {name}: {constant.name}={constant.value} out of int32 range")
        if constant.value in values:
            raise SchemaError(
                f"Enum {name}: value {constant.value} used by both "
                f"{values[constant.value]} and {constant.name}"
            )
        names.add(constant.name)
        values[constant.value] = constant.name


def _check_enum_class(name: str, descriptor: EnumDescriptor, enum_class: type[enum.Enum]) -> None:
    members = {member.name: member.value for member in enum_class}
    constants = {constant.name: constant.value for constant in descriptor.constants}
    if members != constants:
        raise SchemaError(f"Enum class {enum_class.__name__} does not match enum {name}")


def _check_message_class(plan: MessagePlan, message_class: type[BaseMessage]) -> None:
    if not (isinstance(message_class, type) and issubclass(message_class, BaseMessage)):
        raise SchemaError(f"Class for {plan.name} must be a BaseMessage subclass")

    declared = set(message_class.model_fields) - {"unknown_fields"}
    expected = {field_plan.name for field_plan in plan.fields}
    if declared != expected:
        raise SchemaError(
            f"Class {message_class.__name__} fields {sorted(declared)} do not match "
            f"message {plan.name} fields {sorted(expected)}"
        )


def schema_for_model(model_class: type[BaseMessage]) -> Schema:
    """Return the Schema a message class belongs to.

    Generated classes carry the Schema that created them. Hand-written models
    are introspected once; the result is kept on the class as ``tagwire_schema``.

    Raises:
        SchemaError: If the model cannot be described
    """
    bound = model_class.__dict__.get("tagwire_schema")
    if bound is not None:
        return bound  # type: ignore[no-any-return]
    schema = Schema.from_models(model_class)
    model_class.tagwire_schema = schema
    return schema
