#!/usr/bin/env python3
"""Schema evolution example for tagwire.

This example demonstrates:
1. Building schemas from descriptors (no hand-written classes)
2. Reading data written by a newer schema with an older one
3. Relaying that data without losing the fields the old schema does not know
"""

from __future__ import annotations

from tagwire import (
    EnumConstant,
    EnumDescriptor,
    EnumRef,
    FieldDescriptor,
    Label,
    MessageDescriptor,
    ScalarType,
    Schema,
    decode,
    encode,
)

OLD = Schema(
    [
        MessageDescriptor(
            "Reading",
            (
                FieldDescriptor("sensor", 1, Label.REQUIRED, ScalarType.STRING),
                FieldDescriptor("value", 2, Label.OPTIONAL, ScalarType.DOUBLE),
            ),
        )
    ]
)

NEW = Schema(
    [
        MessageDescriptor(
            "Reading",
            (
                FieldDescriptor("sensor", 1, Label.REQUIRED, ScalarType.STRING),
                FieldDescriptor("value", 2, Label.OPTIONAL, ScalarType.DOUBLE),
                FieldDescriptor("unit", 3, Label.OPTIONAL, EnumRef("Unit"), default="RAW"),
            ),
            nested_types=(
                EnumDescriptor("Unit", (EnumConstant("RAW", 0), EnumConstant("KELVIN", 1))),
            ),
        )
    ]
)


def main() -> None:
    """Run the schema evolution example."""
    Reading = NEW.message_class("Reading")
    Unit = NEW.enum_class("Reading.Unit")

    written = encode(Reading(sensor="t0", value=293.15, unit=Unit.KELVIN))
    print(f"Written by new schema:  {written.hex()}")

    old = decode("Reading", written, OLD)
    print(f"Read by old schema:     {old}")
    print(f"  unknown fields:       {old.unknown_fields.hex()}")

    relayed = encode(old, OLD)
    print(f"Relayed by old schema:  {relayed.hex()}")
    print(f"Byte-identical:         {relayed == written}")

    print(f"Read back by new schema: {decode('Reading', relayed, NEW)}")


if __name__ == "__main__":
    main()
