"""Utility functions for tagwire.

This module provides size calculation without encoding.
"""

from __future__ import annotations

from .sizing import encoded_size, field_sizes

__all__ = [
    "encoded_size",
    "field_sizes",
]
