"""Message and enum classes generated from descriptors.

When a Schema is built from plain descriptors it needs concrete Python types
for message instances and enum constants. Messages become BaseMessage
subclasses created with ``pydantic.create_model``; enums become ``IntEnum``
classes. Message fields referring to other messages (including the message
itself) are declared as forward references and resolved once every class of
the schema exists.
"""

from __future__ import annotations

import enum
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import create_model
from pydantic.fields import FieldInfo

from ..descriptors import EnumDescriptor, FieldDescriptor, Label
from ..exceptions import SchemaError
from .base import BaseMessage
from .fields import OptionalField, ProtoField, RepeatedField


def make_enum_class(full_name: str, descriptor: EnumDescriptor) -> type[enum.IntEnum]:
    """Create an IntEnum whose members mirror the descriptor's constants.

    Args:
        full_name: Fully qualified enum name, used as the class __qualname__
        descriptor: Enum descriptor

    Returns:
        New IntEnum class
    """
    return enum.IntEnum(  # type: ignore[return-value]
        descriptor.name,
        [(constant.name, constant.value) for constant in descriptor.constants],
        qualname=full_name,
    )


def forward_ref_name(full_name: str) -> str:
    """Return the identifier used to refer to a generated message class."""
    return full_name.replace(".", "__")


def make_message_class(
    full_name: str,
    simple_name: str,
    fields: Sequence[tuple[FieldDescriptor, Any]],
    defaults: Mapping[str, Any],
) -> type[BaseMessage]:
    """Create a BaseMessage subclass for a message descriptor.

    Args:
        full_name: Fully qualified message name
        simple_name: Class name
        fields: (field descriptor, element annotation) pairs. The annotation is a
            Python type, or a forward reference string for message-typed fields
        defaults: Field name -> resolved default for optional fields

    Returns:
        New message class; it is not usable until ``finish_message_classes`` ran

    Raises:
        SchemaError: If Pydantic rejects a field (e.g. it shadows a BaseModel attribute)
    """
    definitions: dict[str, Any] = {}
    for field_descriptor, element in fields:
        definitions[field_descriptor.name] = _field_definition(
            field_descriptor, element, defaults.get(field_descriptor.name)
        )

    try:
        model_class = create_model(  # type: ignore[call-overload]
            simple_name,
            __base__=BaseMessage,
            __module__=__name__,
            **definitions,
        )
    except (TypeError, ValueError, NameError) as err:
        raise SchemaError(f"Cannot create message class for {full_name}: {err}") from err

    model_class.__qualname__ = full_name
    model_class.tagwire_name = full_name
    return model_class


def finish_message_classes(classes: Mapping[str, type[BaseMessage]]) -> None:
    """Resolve the forward references between generated message classes.

    Args:
        classes: Fully qualified message name -> generated class
    """
    namespace = {forward_ref_name(name): cls for name, cls in classes.items()}
    namespace.update({"List": List, "Optional": Optional})
    for cls in classes.values():
        cls.model_rebuild(force=True, _types_namespace=namespace)


def _field_definition(
    field_descriptor: FieldDescriptor, element: Any, default: Any
) -> tuple[Any, FieldInfo]:
    tag = field_descriptor.tag
    label = Label(field_descriptor.label)

    if isinstance(element, str):
        # Forward reference to another generated message class
        if label is Label.REPEATED:
            return f"List[{element}]", RepeatedField(tag)
        if label is Label.OPTIONAL:
            return f"Optional[{element}]", OptionalField(tag)
        return element, ProtoField(tag)

    if label is Label.REPEATED:
        return List[element], RepeatedField(tag)  # type: ignore[valid-type]
    if label is Label.OPTIONAL:
        return Optional[element], OptionalField(tag, default=default)
    return element, ProtoField(tag)

