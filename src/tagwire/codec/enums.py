"""Enum codec: mapping between enum constants and their wire integers."""

from __future__ import annotations

import enum
from typing import Any, Optional

from ..descriptors import EnumDescriptor
from .wire import UINT64_MASK, ProtoReader, ProtoWriter, to_signed, varint_size


class EnumCodec:
    """Bidirectional int <-> constant mapping for one enum type.

    ``to_int`` is total over the enum's constants. ``from_int`` returns None
    for integers the descriptor does not know; callers decide what to do with
    such values (the decoder keeps them in the message's unknown fields).

    Enum values are written like int32: negative values are sign-extended to
    a 10-byte varint.

    Example:
        >>> codec = EnumCodec(descriptor, PhoneType)
        >>> codec.to_int(PhoneType.WORK)
        2
        >>> codec.from_int(2)
        <PhoneType.WORK: 2>
        >>> codec.from_int(7) is None
        True
    """

    def __init__(self, descriptor: EnumDescriptor, enum_class: type[enum.IntEnum]) -> None:
        """Initialize the codec.

        Args:
            descriptor: Enum descriptor
            enum_class: IntEnum whose members correspond one-to-one to the
                descriptor's constants
        """
        self.descriptor = descriptor
        self.enum_class = enum_class
        self._by_value: dict[int, enum.IntEnum] = {member.value: member for member in enum_class}

    def to_int(self, constant: Any) -> int:
        """Return the wire integer of an enum constant.

        Raises:
            TypeError: If constant is not a member of this enum
        """
        if not isinstance(constant, self.enum_class):
            raise TypeError(
                f"expected {self.enum_class.__name__}, got {type(constant).__name__}"
            )
        return int(constant.value)

    def from_int(self, value: int) -> Optional[enum.IntEnum]:
        """Return the constant for ``value``, or None if there is no match."""
        return self._by_value.get(value)

    def by_name(self, name: str) -> enum.IntEnum:
        """Return the constant called ``name``.

        Raises:
            KeyError: If the enum has no such constant
        """
        return self.enum_class[name]

    @property
    def default(self) -> Optional[enum.IntEnum]:
        """The designated default constant (the first declared), if any."""
        constant = self.descriptor.default
        return None if constant is None else self._by_value[constant.value]

    def size_of(self, constant: Any) -> int:
        return varint_size(self.to_int(constant) & UINT64_MASK)

    def write(self, writer: ProtoWriter, constant: Any) -> None:
        writer.write_varint(self.to_int(constant) & UINT64_MASK)

    def read_int(self, reader: ProtoReader) -> int:
        return to_signed(reader.read_varint(), 32)
