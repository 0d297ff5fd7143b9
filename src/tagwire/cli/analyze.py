"""Message analysis CLI command."""

from __future__ import annotations

import importlib.util
import inspect
import sys
from pathlib import Path

from ..codec.plan import EnumAccess, MessageAccess, MessagePlan
from ..codec.schema import Schema
from ..models.base import BaseMessage


def analyze_file(file_path: Path) -> None:
    """Analyze all BaseMessage classes in a Python file.

    Args:
        file_path: Path to Python file containing message definitions

    Raises:
        SchemaError: If the messages do not form a valid schema
    """
    # Load the Python module
    spec = importlib.util.spec_from_file_location("user_module", file_path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Could not load module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["user_module"] = module
    spec.loader.exec_module(module)

    # Find all BaseMessage subclasses defined in this file (not imported)
    message_classes = [
        obj
        for _name, obj in inspect.getmembers(module, inspect.isclass)
        if obj is not BaseMessage
        and issubclass(obj, BaseMessage)
        and obj.__module__ == "user_module"
    ]

    if not message_classes:
        print(f"No BaseMessage classes found in {file_path}")
        return

    schema = Schema.from_models(*message_classes)

    print("|" * 7, "tagwire: protocol-buffer wire codec", "|" * 7)
    print(f"{len(message_classes)} message{'s' if len(message_classes) != 1 else ''} loaded.")
    print()

    for msg_class in message_classes:
        analyze_message_class(schema, msg_class)


def analyze_message_class(schema: Schema, msg_class: type[BaseMessage]) -> None:
    """Print the field layout of a single message class.

    Args:
        schema: Schema containing the class
        msg_class: Message class to analyze
    """
    plan = schema.plan_for(msg_class)
    max_bytes = getattr(msg_class, "tagwire_max_bytes", None)

    print(f"{'=' * 19} {plan.name} {'=' * 19}")
    print(f"Fields: {len(plan.fields)} ({len(plan.required)} required)")
    if max_bytes is not None:
        print(f"Allowed maximum size of message: {max_bytes} bytes")
    print()

    print(f"{'tag':>6}  {'label':<9} {'type':<24} {'wire':<5} {'key':<12} name")
    for field_plan in plan.fields:
        print(
            f"{field_plan.tag:>6}  {field_plan.cardinality.value:<9} "
            f"{_type_name(field_plan.access):<24} {int(field_plan.wire_type):<5} "
            f"{field_plan.key.hex():<12} {field_plan.name}"
        )
    print()

    _print_defaults(plan)


def _type_name(access: object) -> str:
    if isinstance(access, MessageAccess):
        return access.message_name
    if isinstance(access, EnumAccess):
        return f"enum {access.codec.descriptor.name}"
    return access.codec.scalar_type.value  # type: ignore[attr-defined]


def _print_defaults(plan: MessagePlan) -> None:
    defaults = [(p.name, p.default) for p in plan.fields if p.default is not None]
    if not defaults:
        return
    print("Declared defaults:")
    for name, default in defaults:
        print(f"        {name} = {default!r}")
    print()
