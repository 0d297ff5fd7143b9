"""Resource limits applied while decoding untrusted data."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import DecodeLimitError


@dataclass(frozen=True)
class DecodeLimits:
    """Limits checked by decode.

    Attributes:
        max_message_bytes: Largest top-level input accepted, in bytes (default 64 MiB)
        max_depth: Deepest nesting of messages inside messages (default 100,
            matching the recursion limit of the reference protobuf parsers)

    Example:
        >>> decode(Person, data, limits=DecodeLimits(max_message_bytes=4096, max_depth=8))
    """

    max_message_bytes: int = 64 * 1024 * 1024
    max_depth: int = 100

    def __post_init__(self) -> None:
        """Validate limit values."""
        if self.max_message_bytes <= 0:
            raise ValueError(f"max_message_bytes must be > 0, got {self.max_message_bytes}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    def ensure_message_bytes(self, size: int) -> None:
        if size > self.max_message_bytes:
            raise DecodeLimitError(
                f"Message of {size} bytes exceeds max_message_bytes={self.max_message_bytes}"
            )

    def ensure_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise DecodeLimitError(
                f"Message nesting depth {depth} exceeds max_depth={self.max_depth}"
            )


DEFAULT_LIMITS = DecodeLimits()
