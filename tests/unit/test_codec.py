"""Unit tests for encoding/decoding."""

from __future__ import annotations

from typing import Any

import pytest

from tagwire import (
    DecodeError,
    DecodeLimitError,
    DecodeLimits,
    EncodeError,
    FieldDescriptor,
    Label,
    MalformedWireError,
    MessageDescriptor,
    MessageRef,
    MissingRequiredFieldError,
    ScalarType,
    Schema,
    decode,
    encode,
    encoded_size,
    field_sizes,
)
from tagwire.codec.wire import encode_varint


@pytest.fixture
def Person(person_schema: Schema) -> Any:
    return person_schema.message_class("Person")


@pytest.fixture
def PhoneNumber(person_schema: Schema) -> Any:
    return person_schema.message_class("Person.PhoneNumber")


@pytest.fixture
def PhoneType(person_schema: Schema) -> Any:
    return person_schema.enum_class("Person.PhoneType")


def _schema(*fields: FieldDescriptor, nested: tuple[Any, ...] = ()) -> Schema:
    return Schema([MessageDescriptor("M", tuple(fields), nested_types=nested)])


class TestEncode:
    """Test encoding to the wire format."""

    def test_person(self, Person: Any, person_bytes: bytes) -> None:
        """Test the minimal Person encoding."""
        assert encode(Person(name="X", id=1)) == person_bytes

    def test_optional_present(self, Person: Any) -> None:
        data = encode(Person(name="X", id=1, email="a@b"))
        assert data == b"\x0a\x01X\x10\x01\x1a\x03a@b"

    def test_nested_message(self, Person: Any, PhoneNumber: Any, PhoneType: Any) -> None:
        person = Person(name="X", id=1, phone=[PhoneNumber(number="555", type=PhoneType.WORK)])
        assert encode(person) == b"\x0a\x01X\x10\x01\x22\x07\x0a\x03555\x10\x02"

    def test_repeated_writes_one_key_per_element(self) -> None:
        schema = _schema(FieldDescriptor("ints", 1, Label.REPEATED, ScalarType.INT32))
        M = schema.message_class("M")
        assert encode(M(ints=[1, 2, 3])) == b"\x08\x01\x08\x02\x08\x03"

    def test_negative_int32(self, Person: Any) -> None:
        """Test a negative int32 is written as a 10-byte varint."""
        data = encode(Person(name="X", id=-1))
        assert data == b"\x0a\x01X\x10" + b"\xff" * 9 + b"\x01"

    def test_declaration_order(self, Person: Any) -> None:
        """Test output order follows declaration order, not keyword order."""
        reordered = Person(email="e", id=1, name="X")
        assert encode(reordered) == encode(Person(name="X", id=1, email="e"))

    def test_required_none(self, Person: Any) -> None:
        person = Person.model_construct(name=None, id=1)
        with pytest.raises(EncodeError, match="Person.name is required"):
            encode(person)

    def test_value_out_of_range(self, Person: Any) -> None:
        with pytest.raises(EncodeError, match="Person.id: value 2147483648 out of bounds"):
            encode(Person(name="X", id=2**31))

    def test_wrong_schema(self, Person: Any, person_descriptor: MessageDescriptor) -> None:
        """Test a message of one schema cannot be encoded with another."""
        other = Schema([person_descriptor])
        with pytest.raises(EncodeError, match="not a message class of this schema"):
            encode(Person(name="X", id=1), other)

    def test_schema_method(self, person_schema: Schema, Person: Any, person_bytes: bytes) -> None:
        assert person_schema.encode(Person(name="X", id=1)) == person_bytes


class TestDecode:
    """Test decoding from the wire format."""

    def test_person(self, Person: Any, person_bytes: bytes) -> None:
        person = decode(Person, person_bytes)

        assert person == Person(name="X", id=1)
        assert person.email is None
        assert person.phone == []

    def test_by_name(self, person_schema: Schema, person_bytes: bytes) -> None:
        person = decode("Person", person_bytes, person_schema)
        assert person.name == "X"
        assert person_schema.decode("Person", person_bytes) == person

    def test_by_name_requires_schema(self, person_bytes: bytes) -> None:
        with pytest.raises(TypeError, match="requires a schema"):
            decode("Person", person_bytes)

    def test_unknown_message_name(self, person_schema: Schema) -> None:
        with pytest.raises(DecodeError, match="Unknown message type"):
            decode("Nobody", b"", person_schema)

    def test_any_field_order(self, Person: Any, person_bytes: bytes) -> None:
        person = decode(Person, b"\x10\x01\x0a\x01X")
        assert encode(person) == person_bytes

    def test_nested(self, Person: Any, PhoneType: Any) -> None:
        person = decode(Person, b"\x0a\x01X\x10\x01\x22\x07\x0a\x03555\x10\x02")
        assert person.phone[0].number == "555"
        assert person.phone[0].type is PhoneType.WORK

    def test_negative_int32(self, Person: Any) -> None:
        person = decode(Person, b"\x0a\x01X\x10" + b"\xff" * 9 + b"\x01")
        assert person.id == -1

    def test_last_write_wins(self, Person: Any) -> None:
        """Test a singular field seen twice keeps the last value."""
        assert decode(Person, b"\x0a\x01X\x10\x01\x10\x02").id == 2

    def test_singular_message_replaced(self) -> None:
        """Test a repeated occurrence of a singular message replaces it."""
        inner = MessageDescriptor(
            "Inner",
            (
                FieldDescriptor("a", 1, Label.OPTIONAL, ScalarType.INT32),
                FieldDescriptor("b", 2, Label.OPTIONAL, ScalarType.INT32),
            ),
        )
        schema = _schema(
            FieldDescriptor("inner", 1, Label.OPTIONAL, MessageRef("Inner")), nested=(inner,)
        )
        message = decode("M", b"\x0a\x02\x08\x01\x0a\x02\x10\x02", schema)

        assert message.inner.a is None
        assert message.inner.b == 2

    def test_empty_input(self) -> None:
        schema = _schema(FieldDescriptor("a", 1, Label.OPTIONAL, ScalarType.STRING))
        message = decode("M", b"", schema)
        assert message.a is None
        assert message.unknown_fields == b""

    def test_required_zero_values_present(self, Person: Any) -> None:
        """Test required fields are satisfied by an empty string and a zero."""
        person = decode(Person, b"\x0a\x00\x10\x00")

        assert person.name == ""
        assert person.id == 0
        assert encode(person) == b"\x0a\x00\x10\x00"


class TestDecodeErrors:
    """Test malformed and incomplete input."""

    def test_missing_required(self, Person: Any) -> None:
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            decode(Person, b"\x0a\x01X")
        assert exc_info.value.message_name == "Person"
        assert exc_info.value.field_name == "id"

    def test_missing_required_in_nested(self, Person: Any) -> None:
        """Test a nested failure aborts the whole decode."""
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            decode(Person, b"\x0a\x01X\x10\x01\x22\x00")
        assert exc_info.value.message_name == "Person.PhoneNumber"
        assert exc_info.value.field_name == "number"

    def test_wire_type_mismatch(self, Person: Any) -> None:
        """Test a string field arriving as a varint."""
        with pytest.raises(MalformedWireError, match="Person.name: expected wire type 2, got 0"):
            decode(Person, b"\x08\x01\x10\x01")

    def test_truncated_string(self, Person: Any) -> None:
        with pytest.raises(MalformedWireError):
            decode(Person, b"\x0a\x05X")

    def test_truncated_key(self, Person: Any) -> None:
        with pytest.raises(MalformedWireError):
            decode(Person, b"\x0a\x01X\x10\x01\x80")

    def test_tag_zero(self, Person: Any) -> None:
        with pytest.raises(MalformedWireError, match="tag 0"):
            decode(Person, b"\x00\x01")

    def test_unknown_group(self, Person: Any) -> None:
        """Test group wire types are rejected even on unknown tags."""
        with pytest.raises(MalformedWireError, match="Unsupported wire type 3"):
            decode(Person, b"\x0a\x01X\x10\x01\x2b\x2c")

    def test_nested_truncation(self, Person: Any) -> None:
        """Test a nested payload cannot read past its own length."""
        with pytest.raises(MalformedWireError):
            decode(Person, b"\x0a\x01X\x10\x01\x22\x02\x0a\x03555")

    def test_invalid_utf8(self, Person: Any) -> None:
        with pytest.raises(MalformedWireError, match="UTF-8"):
            decode(Person, b"\x0a\x01\xff\x10\x01")

    def test_malformed_is_decode_error(self) -> None:
        assert issubclass(MalformedWireError, DecodeError)
        assert issubclass(MissingRequiredFieldError, DecodeError)


class TestPacked:
    """Test packed repeated scalars are accepted on decode."""

    @pytest.fixture
    def schema(self) -> Schema:
        return _schema(
            FieldDescriptor("ints", 1, Label.REPEATED, ScalarType.INT32),
            FieldDescriptor("fixed", 2, Label.REPEATED, ScalarType.FIXED32),
            FieldDescriptor("single", 3, Label.OPTIONAL, ScalarType.INT32),
        )

    def test_packed_varints(self, schema: Schema) -> None:
        assert decode("M", b"\x0a\x03\x01\x02\x03", schema).ints == [1, 2, 3]

    def test_packed_and_unpacked_mixed(self, schema: Schema) -> None:
        assert decode("M", b"\x08\x01\x0a\x02\x02\x03\x08\x04", schema).ints == [1, 2, 3, 4]

    def test_packed_fixed32(self, schema: Schema) -> None:
        data = b"\x12\x08\x01\x00\x00\x00\x02\x00\x00\x00"
        assert decode("M", data, schema).fixed == [1, 2]

    def test_encode_never_packs(self, schema: Schema) -> None:
        message = decode("M", b"\x0a\x02\x01\x02", schema)
        assert encode(message, schema) == b"\x08\x01\x08\x02"

    def test_truncated_packed_element(self, schema: Schema) -> None:
        with pytest.raises(MalformedWireError):
            decode("M", b"\x0a\x01\x96", schema)

    def test_singular_not_packable(self, schema: Schema) -> None:
        with pytest.raises(MalformedWireError, match="M.single"):
            decode("M", b"\x1a\x01\x01", schema)


class TestDefaults:
    """Test declared defaults of absent optional fields."""

    def test_absent_enum_uses_default(self, PhoneNumber: Any, PhoneType: Any) -> None:
        phone = decode(PhoneNumber, b"\x0a\x015")
        assert phone.type is PhoneType.HOME

    def test_default_is_materialized_on_encode(self, PhoneNumber: Any) -> None:
        phone = decode(PhoneNumber, b"\x0a\x015")
        assert encode(phone) == b"\x0a\x015\x10\x01"

    def test_absent_scalar_default(self) -> None:
        schema = _schema(FieldDescriptor("n", 1, Label.OPTIONAL, ScalarType.UINT32, default=7))
        assert decode("M", b"", schema).n == 7

    def test_explicit_none_not_written(self, PhoneNumber: Any) -> None:
        assert encode(PhoneNumber(number="5", type=None)) == b"\x0a\x015"


class TestLimits:
    """Test DecodeLimits."""

    def test_message_too_large(self, Person: Any, person_bytes: bytes) -> None:
        with pytest.raises(DecodeLimitError, match="max_message_bytes=4"):
            decode(Person, person_bytes, limits=DecodeLimits(max_message_bytes=4))

    def test_nesting_too_deep(self, Person: Any) -> None:
        data = b"\x0a\x01X\x10\x01\x22\x03\x0a\x015"
        decode(Person, data, limits=DecodeLimits(max_depth=1))
        with pytest.raises(DecodeLimitError, match="max_depth=0"):
            decode(Person, data, limits=DecodeLimits(max_depth=0))

    def test_recursive_message_depth(self) -> None:
        schema = _schema(FieldDescriptor("child", 1, Label.OPTIONAL, MessageRef("M")))
        data = b""
        for _ in range(5):
            data = b"\x0a" + bytes([len(data)]) + data
        decode("M", data, schema, limits=DecodeLimits(max_depth=5))
        with pytest.raises(DecodeLimitError):
            decode("M", data, schema, limits=DecodeLimits(max_depth=4))

    def test_nesting_beyond_recursion_limit(self) -> None:
        """Test nesting deeper than the interpreter can recurse is a limit error."""
        schema = _schema(FieldDescriptor("child", 1, Label.OPTIONAL, MessageRef("M")))
        data = b""
        for _ in range(5000):
            data = b"\x0a" + encode_varint(len(data)) + data

        with pytest.raises(DecodeLimitError, match="nesting too deep"):
            decode("M", data, schema, limits=DecodeLimits(max_depth=10000))

    @pytest.mark.parametrize("kwargs", [{"max_message_bytes": 0}, {"max_depth": -1}])
    def test_invalid_limits(self, kwargs: dict[str, int]) -> None:
        with pytest.raises(ValueError):
            DecodeLimits(**kwargs)


class TestSizing:
    """Test size calculation without encoding."""

    def test_encoded_size_matches_encode(
        self, Person: Any, PhoneNumber: Any, PhoneType: Any
    ) -> None:
        person = Person(
            name="Ada",
            id=-7,
            email="ada@example.com",
            phone=[PhoneNumber(number="555"), PhoneNumber(number="1", type=PhoneType.MOBILE)],
        )
        assert encoded_size(person) == len(encode(person))

    def test_field_sizes(self, Person: Any) -> None:
        sizes = field_sizes(Person(name="X", id=1))
        assert sizes == {"name": 3, "id": 2, "email": 0, "phone": 0}

    def test_unknown_fields_counted(self, Person: Any) -> None:
        person = decode(Person, b"\x0a\x01X\x10\x01\x28\x05")
        assert encoded_size(person) == 7

    def test_size_of_invalid_message(self, Person: Any) -> None:
        with pytest.raises(EncodeError):
            encoded_size(Person(name="X", id=2**40))

    def test_size_of_float_overflow(self) -> None:
        """Test sizing rejects a float the encoder would reject."""
        schema = _schema(FieldDescriptor("f", 1, Label.OPTIONAL, ScalarType.FLOAT))
        message = schema.message_class("M")(f=1e300)

        with pytest.raises(EncodeError):
            encode(message, schema)
        with pytest.raises(EncodeError):
            encoded_size(message, schema)
        with pytest.raises(EncodeError):
            field_sizes(message, schema)

    def test_schema_methods(self, person_schema: Schema, Person: Any) -> None:
        person = Person(name="X", id=1)
        assert person_schema.encoded_size(person) == 5
        assert person_schema.field_sizes(person)["id"] == 2
