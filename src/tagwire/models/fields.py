"""Field helpers for declaring tagged message fields.

Each helper wraps Pydantic's Field() and stores the field tag (and, where the
Python annotation is ambiguous, the wire type) as extra metadata that
``Schema.from_models`` reads back.

The field label is derived from the annotation:

- ``List[T]`` -> repeated
- ``Optional[T]`` or a field with a default -> optional
- anything else -> required
"""

from __future__ import annotations

from typing import Any, Optional, cast

from pydantic import Field
from pydantic.fields import FieldInfo

from ..descriptors import ScalarType

TAG_KEY = "tag"
TYPE_KEY = "proto_type"


def _metadata(tag: int, type: Optional[str | ScalarType]) -> dict[str, Any]:
    extra: dict[str, Any] = {TAG_KEY: tag}
    if type is not None:
        extra[TYPE_KEY] = ScalarType(type).value
    return extra


def ProtoField(tag: int, *, type: Optional[str | ScalarType] = None, **kwargs: Any) -> FieldInfo:
    """Create a tagged field.

    Without a ``default`` the field is required.

    Args:
        tag: Field tag (1 to 2**29 - 1, unique within the message)
        type: Scalar wire type (e.g. "int32", "sint64", "fixed32"). Inferred from
            the annotation when omitted: bool -> bool, int -> int64,
            float -> double, str -> string, bytes -> bytes
        **kwargs: Additional Field() arguments (description, default, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default.

    Example:
        >>> class Person(BaseMessage):
        ...     name: str = ProtoField(1)
        ...     id: int = ProtoField(2, type="int32")
    """
    return cast(FieldInfo, Field(json_schema_extra=_metadata(tag, type), **kwargs))


def OptionalField(
    tag: int, *, type: Optional[str | ScalarType] = None, default: Any = None, **kwargs: Any
) -> FieldInfo:
    """Create an optional tagged field.

    Args:
        tag: Field tag
        type: Scalar wire type, as for ProtoField
        default: Declared default, used when the field is absent from decoded data
        **kwargs: Additional Field() arguments

    Example:
        >>> class PhoneNumber(BaseMessage):
        ...     number: str = ProtoField(1)
        ...     type: Optional[PhoneType] = OptionalField(2, default=PhoneType.HOME)
    """
    return cast(
        FieldInfo, Field(default=default, json_schema_extra=_metadata(tag, type), **kwargs)
    )


def RepeatedField(tag: int, *, type: Optional[str | ScalarType] = None, **kwargs: Any) -> FieldInfo:
    """Create a repeated tagged field (defaults to an empty list).

    Example:
        >>> class Person(BaseMessage):
        ...     phone: List[PhoneNumber] = RepeatedField(4)
        ...     lucky_numbers: List[int] = RepeatedField(5, type="sint32")
    """
    return cast(
        FieldInfo, Field(default_factory=list, json_schema_extra=_metadata(tag, type), **kwargs)
    )
