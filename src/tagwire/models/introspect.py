"""Schema introspection for Pydantic message models.

This module analyzes BaseMessage subclasses and extracts the descriptors a
Schema is built from: one MessageDescriptor per message class and one
EnumDescriptor per enum class reachable from the given models.
"""

from __future__ import annotations

import enum
import types
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union, get_args, get_origin

from pydantic.fields import FieldInfo

from ..descriptors import (
    EnumConstant,
    EnumDescriptor,
    EnumRef,
    FieldDescriptor,
    FieldType,
    Label,
    MessageDescriptor,
    MessageRef,
    ScalarType,
)
from ..exceptions import SchemaError
from .base import BaseMessage
from .fields import TAG_KEY, TYPE_KEY

# Scalar type used when a field's annotation alone decides it
DEFAULT_SCALAR_TYPES: dict[type, ScalarType] = {
    bool: ScalarType.BOOL,
    int: ScalarType.INT64,
    float: ScalarType.DOUBLE,
    str: ScalarType.STRING,
    bytes: ScalarType.BYTES,
}

# Scalar types accepted for each Python annotation
COMPATIBLE_SCALAR_TYPES: dict[type, frozenset[ScalarType]] = {
    bool: frozenset([ScalarType.BOOL]),
    int: frozenset(
        [
            ScalarType.INT32,
            ScalarType.INT64,
            ScalarType.UINT32,
            ScalarType.UINT64,
            ScalarType.SINT32,
            ScalarType.SINT64,
            ScalarType.FIXED32,
            ScalarType.FIXED64,
            ScalarType.SFIXED32,
            ScalarType.SFIXED64,
        ]
    ),
    float: frozenset([ScalarType.FLOAT, ScalarType.DOUBLE]),
    str: frozenset([ScalarType.STRING]),
    bytes: frozenset([ScalarType.BYTES]),
}


@dataclass
class ModelTypes:
    """Descriptors and classes collected from a set of message models.

    Attributes:
        types: Top-level descriptors, in discovery order
        message_classes: Message name -> model class
        enum_classes: Enum name -> enum class
    """

    types: List[Union[MessageDescriptor, EnumDescriptor]] = field(default_factory=list)
    message_classes: dict[str, type[BaseMessage]] = field(default_factory=dict)
    enum_classes: dict[str, type[enum.Enum]] = field(default_factory=dict)


def collect_model_types(*model_classes: type[BaseMessage]) -> ModelTypes:
    """Introspect message models and every message/enum they reference.

    Args:
        *model_classes: BaseMessage subclasses

    Returns:
        ModelTypes with one descriptor per message and enum class

    Raises:
        SchemaError: If a model is not a BaseMessage, two classes share a type
            name, or a field cannot be described
    """
    collected = ModelTypes()
    pending = list(model_classes)

    while pending:
        model_class = pending.pop(0)
        if not (isinstance(model_class, type) and issubclass(model_class, BaseMessage)):
            raise SchemaError(f"{model_class!r} is not a BaseMessage subclass")

        name = model_class.type_name()
        existing = collected.message_classes.get(name)
        if existing is model_class:
            continue
        if existing is not None or name in collected.enum_classes:
            raise SchemaError(f"Type name {name!r} used by more than one class")

        collected.message_classes[name] = model_class
        fields: list[FieldDescriptor] = []

        for field_name, field_info in model_class.model_fields.items():
            if field_name == "unknown_fields":
                continue
            descriptor, referenced = _extract_field(model_class, field_name, field_info)
            fields.append(descriptor)

            if isinstance(referenced, type) and issubclass(referenced, BaseMessage):
                pending.append(referenced)
            elif isinstance(referenced, type) and issubclass(referenced, enum.Enum):
                _collect_enum(collected, referenced)

        collected.types.append(MessageDescriptor(name, tuple(fields)))

    return collected


def enum_descriptor_from_class(enum_class: type[enum.Enum]) -> EnumDescriptor:
    """Build an EnumDescriptor from a Python enum with integer values.

    Raises:
        SchemaError: If a member value is not an integer
    """
    constants = []
    for member in enum_class:
        if isinstance(member.value, bool) or not isinstance(member.value, int):
            raise SchemaError(
                f"Enum {enum_class.__name__}: member {member.name} has non-integer "
                f"value {member.value!r}"
            )
        constants.append(EnumConstant(member.name, member.value))
    return EnumDescriptor(enum_class.__name__, tuple(constants))


def _collect_enum(collected: ModelTypes, enum_class: type[enum.Enum]) -> None:
    name = enum_class.__name__
    existing = collected.enum_classes.get(name)
    if existing is enum_class:
        return
    if existing is not None or name in collected.message_classes:
        raise SchemaError(f"Type name {name!r} used by more than one class")
    collected.enum_classes[name] = enum_class
    collected.types.append(enum_descriptor_from_class(enum_class))


def _extract_field(
    model_class: type[BaseMessage], name: str, field_info: FieldInfo
) -> tuple[FieldDescriptor, Any]:
    """Extract a FieldDescriptor from a Pydantic FieldInfo.

    Returns:
        The descriptor and the (unwrapped) element type of the annotation
    """
    where = f"{model_class.__name__}.{name}"

    extra = field_info.json_schema_extra
    if not isinstance(extra, dict) or TAG_KEY not in extra:
        raise SchemaError(f"Field {where} has no tag; declare it with ProtoField()")
    tag = extra[TAG_KEY]
    declared_type = extra.get(TYPE_KEY)

    annotation = field_info.annotation
    if annotation is None:
        raise SchemaError(f"Field {where} has no type annotation")

    # Check if Optional (Union[T, None])
    is_optional = False
    if get_origin(annotation) in (Union, types.UnionType):
        non_none_args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(non_none_args) != 1:
            raise SchemaError(f"Field {where}: complex Union types not supported")
        annotation = non_none_args[0]
        is_optional = True

    # Check for list
    is_list = False
    if get_origin(annotation) in (list, List):
        if is_optional:
            raise SchemaError(f"Field {where}: Optional[List[...]] is not supported")
        list_args = get_args(annotation)
        if not list_args:
            raise SchemaError(f"Field {where}: list fields need an element type")
        annotation = list_args[0]
        is_list = True

    if is_list:
        label = Label.REPEATED
    elif field_info.is_required() and not is_optional:
        label = Label.REQUIRED
    else:
        label = Label.OPTIONAL

    field_type = _field_type(where, annotation, declared_type)

    default = None
    if label is Label.OPTIONAL and not field_info.is_required():
        default = field_info.default
        if isinstance(default, enum.Enum):
            default = default.name

    return FieldDescriptor(name, tag, label, field_type, default), annotation


def _field_type(where: str, annotation: Any, declared_type: Optional[str]) -> FieldType:
    if isinstance(annotation, type) and issubclass(annotation, BaseMessage):
        if declared_type is not None:
            raise SchemaError(f"Field {where}: message fields cannot set a scalar type")
        return MessageRef(annotation.type_name())

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        if declared_type is not None:
            raise SchemaError(f"Field {where}: enum fields cannot set a scalar type")
        return EnumRef(annotation.__name__)

    if annotation not in DEFAULT_SCALAR_TYPES:
        raise SchemaError(
            f"Field {where}: unsupported type {annotation!r}. "
            f"Supported: bool, int, float, str, bytes, enums, BaseMessage subclasses."
        )

    if declared_type is None:
        return DEFAULT_SCALAR_TYPES[annotation]

    scalar_type = ScalarType(declared_type)
    if scalar_type not in COMPATIBLE_SCALAR_TYPES[annotation]:
        raise SchemaError(
            f"Field {where}: wire type {scalar_type.value} does not match "
            f"annotation {annotation.__name__}"
        )
    return scalar_type
