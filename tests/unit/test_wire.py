"""Unit tests for wire-level primitives."""

from __future__ import annotations

import pytest

from tagwire.codec.wire import (
    MAX_TAG,
    ProtoReader,
    ProtoWriter,
    WireType,
    encode_varint,
    tag_size,
    to_signed,
    varint_size,
    zigzag_decode,
    zigzag_encode,
)
from tagwire.exceptions import MalformedWireError


class TestVarint:
    """Test base-128 varint encoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, b"\x00"),
            (1, b"\x01"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (150, b"\x96\x01"),
            (300, b"\xac\x02"),
            (2**64 - 1, b"\xff" * 9 + b"\x01"),
        ],
    )
    def test_encode_known_values(self, value: int, expected: bytes) -> None:
        """Test varint encodings against known protobuf output."""
        assert encode_varint(value) == expected
        assert varint_size(value) == len(expected)
        assert ProtoReader(expected).read_varint() == value

    def test_negative_rejected(self) -> None:
        """Test negative values cannot be written as varints."""
        with pytest.raises(ValueError):
            ProtoWriter().write_varint(-1)
        with pytest.raises(ValueError):
            varint_size(-1)

    def test_wider_than_64_bits_rejected(self) -> None:
        """Test values above 2**64 - 1 are rejected."""
        with pytest.raises(ValueError, match="64 bits"):
            ProtoWriter().write_varint(2**64)

    def test_truncated(self) -> None:
        """Test a varint with a dangling continuation bit."""
        with pytest.raises(MalformedWireError, match="Truncated"):
            ProtoReader(b"\x96").read_varint()

    def test_empty(self) -> None:
        """Test reading a varint from no data."""
        with pytest.raises(MalformedWireError):
            ProtoReader(b"").read_varint()

    def test_longer_than_ten_bytes(self) -> None:
        """Test a varint whose tenth byte still has the continuation bit."""
        with pytest.raises(MalformedWireError, match="longer than 10"):
            ProtoReader(b"\xff" * 10 + b"\x01").read_varint()

    def test_ten_byte_varint_truncated_to_64_bits(self) -> None:
        """Test bits beyond 64 in the last byte are dropped."""
        assert ProtoReader(b"\xff" * 9 + b"\x7f").read_varint() == 2**64 - 1


class TestZigzag:
    """Test zig-zag mapping of signed integers."""

    @pytest.mark.parametrize(
        "signed,unsigned",
        [
            (0, 0),
            (-1, 1),
            (1, 2),
            (-2, 3),
            (2147483647, 4294967294),
            (-2147483648, 4294967295),
            (-(2**63), 2**64 - 1),
        ],
    )
    def test_mapping(self, signed: int, unsigned: int) -> None:
        """Test zig-zag values from the protobuf encoding guide."""
        assert zigzag_encode(signed) == unsigned
        assert zigzag_decode(unsigned) == signed


class TestToSigned:
    """Test two's complement reinterpretation."""

    def test_32_bit(self) -> None:
        assert to_signed(0xFFFFFFFF, 32) == -1
        assert to_signed(0x7FFFFFFF, 32) == 2**31 - 1
        assert to_signed(0x80000000, 32) == -(2**31)

    def test_truncates_high_bits(self) -> None:
        """Test a sign-extended 64-bit value reads back as int32."""
        assert to_signed(2**64 - 1, 32) == -1
        assert to_signed(2**64 - 1, 64) == -1


class TestKeys:
    """Test field key reading and sizing."""

    def test_read_key(self) -> None:
        assert ProtoReader(b"\x08").read_key() == (1, WireType.VARINT)
        assert ProtoReader(b"\x22").read_key() == (4, WireType.LENGTH_DELIMITED)

    def test_tag_zero_rejected(self) -> None:
        """Test tag 0 is never a valid field."""
        with pytest.raises(MalformedWireError, match="tag 0"):
            ProtoReader(b"\x00").read_key()

    def test_tag_above_maximum_rejected(self) -> None:
        """Test keys whose tag exceeds 2**29 - 1."""
        key = encode_varint((MAX_TAG + 1) << 3)
        with pytest.raises(MalformedWireError, match="exceeds maximum"):
            ProtoReader(key).read_key()

    def test_tag_size(self) -> None:
        """Test key sizes across the one/two byte boundary."""
        assert tag_size(1) == 1
        assert tag_size(15) == 1
        assert tag_size(16) == 2
        assert tag_size(MAX_TAG) == 5


class TestFixedWidth:
    """Test little-endian fixed-width integers."""

    def test_write_fixed32(self) -> None:
        writer = ProtoWriter()
        writer.write_fixed32(1)
        assert writer.to_bytes() == b"\x01\x00\x00\x00"

    def test_write_fixed64(self) -> None:
        writer = ProtoWriter()
        writer.write_fixed64(0x0102030405060708)
        assert writer.to_bytes() == b"\x08\x07\x06\x05\x04\x03\x02\x01"

    def test_read_fixed(self) -> None:
        reader = ProtoReader(b"\x01\x00\x00\x00" + b"\xff" * 8)
        assert reader.read_fixed32() == 1
        assert reader.read_fixed64() == 2**64 - 1
        assert reader.at_end()

    def test_truncated_fixed32(self) -> None:
        with pytest.raises(MalformedWireError, match="need 4 bytes"):
            ProtoReader(b"\x01\x02\x03").read_fixed32()


class TestLengthDelimited:
    """Test length-prefixed payloads."""

    def test_write(self) -> None:
        writer = ProtoWriter()
        writer.write_length_delimited(b"abc")
        assert writer.to_bytes() == b"\x03abc"
        assert len(writer) == 4

    def test_read(self) -> None:
        reader = ProtoReader(b"\x03abc\x01")
        assert reader.read_length_delimited() == b"abc"
        assert reader.remaining() == 1

    def test_length_past_end(self) -> None:
        """Test a length prefix claiming more bytes than remain."""
        with pytest.raises(MalformedWireError, match="runs past end"):
            ProtoReader(b"\x05ab").read_length_delimited()

    def test_sub_reader_is_bounded(self) -> None:
        """Test a sub-reader stops at the end of its payload."""
        reader = ProtoReader(b"\x02\x08\x01\x10\x02")
        sub = reader.read_sub_reader()

        assert reader.position() == 3
        assert sub.read_key() == (1, WireType.VARINT)
        assert sub.read_varint() == 1
        assert sub.at_end()
        with pytest.raises(MalformedWireError):
            sub.read_varint()


class TestSkip:
    """Test skipping payloads of each wire type."""

    @pytest.mark.parametrize(
        "wire_type,payload",
        [
            (WireType.VARINT, b"\x96\x01"),
            (WireType.FIXED64, b"\x00" * 8),
            (WireType.LENGTH_DELIMITED, b"\x02ab"),
            (WireType.FIXED32, b"\x00" * 4),
        ],
    )
    def test_skip_supported(self, wire_type: WireType, payload: bytes) -> None:
        reader = ProtoReader(payload + b"\x7f")
        reader.skip(wire_type)
        assert reader.remaining() == 1

    @pytest.mark.parametrize("wire_type", [3, 4, 6, 7])
    def test_skip_unsupported(self, wire_type: int) -> None:
        """Test groups and reserved wire types cannot be skipped."""
        with pytest.raises(MalformedWireError, match="Unsupported wire type"):
            ProtoReader(b"\x00").skip(wire_type)
