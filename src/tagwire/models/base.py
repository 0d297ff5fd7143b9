"""Base message class and tagwire-specific Pydantic configuration.

This module provides the BaseMessage class that all tagwire messages inherit from,
both hand-written message classes and the ones a Schema generates from descriptors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..codec.schema import Schema


class BaseMessage(BaseModel):
    """Base class for all tagwire messages.

    Messages declare their fields with ``ProtoField``/``OptionalField``/``RepeatedField``,
    which attach the field tag and wire type as Pydantic field metadata.

    Every message carries ``unknown_fields``: the raw bytes of fields that were
    present in decoded data but not declared by the message. They are written
    back verbatim after the known fields when the message is encoded again.

    tagwire-specific options can be configured as ClassVar attributes:

    Example:
        >>> from typing import ClassVar, List, Optional
        >>> class Person(BaseMessage):
        ...     name: str = ProtoField(1)
        ...     id: int = ProtoField(2, type="int32")
        ...     email: Optional[str] = OptionalField(3)
        ...     phone: List[PhoneNumber] = RepeatedField(4)
        ...
        ...     tagwire_max_bytes: ClassVar[Optional[int]] = 256

    Attributes:
        tagwire_name: Message type name in the schema (defaults to the class name)
        tagwire_max_bytes: Maximum encoded size in bytes (optional, checked on encode)
        tagwire_schema: Schema this class belongs to (set on generated classes, and on
            hand-written ones the first time they are encoded or decoded without a Schema)
    """

    model_config = ConfigDict(
        # Lax mode: compatible input types are coerced (e.g. int for float)
        strict=False,
        # Validate on assignment
        validate_assignment=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
    )

    # tagwire-specific class variables (optional)
    tagwire_name: ClassVar[str | None] = None
    tagwire_max_bytes: ClassVar[int | None] = None
    tagwire_schema: ClassVar[Schema | None] = None

    unknown_fields: bytes = Field(default=b"", repr=False)

    @classmethod
    def type_name(cls) -> str:
        """Return the message type name used in the schema."""
        return cls.__dict__.get("tagwire_name") or cls.__name__

