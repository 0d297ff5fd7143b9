#!/usr/bin/env python3
"""Basic usage example for tagwire.

This example demonstrates:
1. Defining messages with Pydantic
2. Encoding to the protocol-buffer wire format
3. Decoding back to a Pydantic model
4. Calculating message sizes
"""

from __future__ import annotations

import enum
from typing import List, Optional

from tagwire import (
    BaseMessage,
    OptionalField,
    ProtoField,
    RepeatedField,
    decode,
    encode,
    encoded_size,
    field_sizes,
)


class PhoneType(enum.IntEnum):
    """Kind of phone number."""

    MOBILE = 0
    HOME = 1
    WORK = 2


class PhoneNumber(BaseMessage):
    """A phone number and its kind."""

    number: str = ProtoField(1)
    type: Optional[PhoneType] = OptionalField(2, default=PhoneType.HOME)


# Define a message class
class Person(BaseMessage):
    """Address book entry.

    Equivalent .proto definition:

        message Person {
          required string name = 1;
          required int32 id = 2;
          optional string email = 3;
          repeated PhoneNumber phone = 4;
        }
    """

    name: str = ProtoField(1)
    id: int = ProtoField(2, type="int32")
    email: Optional[str] = OptionalField(3)
    phone: List[PhoneNumber] = RepeatedField(4)


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("tagwire Basic Usage Example")
    print("=" * 60)
    print()

    # Create a message instance
    print("1. Creating a person...")
    person = Person(
        name="Ada",
        id=1815,
        email="ada@example.com",
        phone=[PhoneNumber(number="555-0100", type=PhoneType.WORK)],
    )
    print(f"   {person}")
    print()

    # Analyze field sizes
    print("2. Analyzing field sizes...")
    for field_name, size in field_sizes(person).items():
        print(f"   {field_name}: {size} bytes")
    print(f"   Total: {encoded_size(person)} bytes")
    print()

    # Encode the message
    print("3. Encoding to wire format...")
    data = encode(person)
    print(f"   Encoded: {data.hex()}")
    print()

    # Decode the message
    print("4. Decoding back...")
    decoded = decode(Person, data)
    print(f"   {decoded}")
    print(f"   Match: {decoded == person}")
    print()


if __name__ == "__main__":
    main()
