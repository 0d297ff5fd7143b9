"""Exception hierarchy for tagwire.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from TagwireError for easy catching of any tagwire-specific error.
"""

from __future__ import annotations


class TagwireError(Exception):
    """Base exception for all tagwire errors."""

    pass


class SchemaError(TagwireError):
    """Raised when a message schema is invalid.

    Schema errors are raised while a Schema is being built and abort its
    construction. They never surface from encode or decode.

    Examples:
        - Two fields of one message share a tag
        - Tag 0, a negative tag, or a tag in the reserved range
        - A field type references an unknown message or enum
        - Duplicate enum values
    """

    pass


# Name used for build-time failures in the wire format documentation
SchemaBuildError = SchemaError


class EncodeError(TagwireError):
    """Raised when encoding a message fails.

    Examples:
        - Required field is None
        - Value out of range for its scalar type (e.g. uint32 < 0)
        - Field type mismatch
        - Message exceeds tagwire_max_bytes constraint
    """

    pass


class DecodeError(TagwireError):
    """Raised when decoding binary data fails.

    Decode never returns a partial message: any DecodeError aborts the whole
    decode, including the decode of every enclosing message.
    """

    pass


class MalformedWireError(DecodeError):
    """Raised when the byte stream does not follow the wire format.

    Examples:
        - A varint or length prefix runs past the end of the data
        - A varint longer than 10 bytes
        - Field encoded with a wire type its declared type does not allow
        - Tag 0 or an unsupported wire type (groups)
        - Invalid UTF-8 in a string field
    """

    pass


class MissingRequiredFieldError(DecodeError):
    """Raised when a required field was never observed while decoding."""

    def __init__(self, message_name: str, field_name: str) -> None:
        self.message_name = message_name
        self.field_name = field_name
        super().__init__(f"{message_name}: missing required field {field_name!r}")


class DecodeLimitError(DecodeError):
    """Raised when input exceeds the configured DecodeLimits."""

    pass
