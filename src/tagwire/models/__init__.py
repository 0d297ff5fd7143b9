"""Pydantic message modeling for tagwire.

This module provides the BaseMessage class and field helpers for defining
tagged binary messages using Pydantic.
"""

from __future__ import annotations

from .base import BaseMessage
from .fields import OptionalField, ProtoField, RepeatedField

__all__ = [
    "BaseMessage",
    "ProtoField",
    "OptionalField",
    "RepeatedField",
]
