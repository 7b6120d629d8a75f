import struct
import unittest

from .errors import CorruptPage, InvalidSerialType, InvalidUtf8, RecordHeaderLengthMismatch
from .record import ColumnValue, SerialType, StorageClass, parse_record
from .testing import build_record
from .utils import encode_varint


class TestSerialType(unittest.TestCase):
    def test_sizes(self):
        expected_sizes = {
            0: 0,
            1: 1,
            2: 2,
            3: 3,
            4: 4,
            5: 6,
            6: 8,
            7: 8,
            8: 0,
            9: 0,
            12: 0,
            13: 0,
            14: 1,
            15: 1,
        }
        for code, size in expected_sizes.items():
            with self.subTest(code=code):
                self.assertEqual(size, SerialType.decode(code).size)

    def test_variable_length_classes(self):
        self.assertEqual(SerialType(StorageClass.BLOB, 10), SerialType.decode(32))
        self.assertEqual(SerialType(StorageClass.STRING, 10), SerialType.decode(33))

    def test_reserved_codes_are_invalid(self):
        for code in (10, 11, -1):
            with self.subTest(code=code):
                with self.assertRaises(InvalidSerialType):
                    _ = SerialType.decode(code)


class TestColumnValue(unittest.TestCase):
    def test_fixed_width_integers(self):
        data = bytes([0xFF, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08])

        self.assertEqual(0x010203, ColumnValue.decode(data, SerialType.decode(3), 1).value)
        self.assertEqual(
            0x010203040506, ColumnValue.decode(data, SerialType.decode(5), 1).value
        )
        self.assertEqual(
            0xFF01020304050607, ColumnValue.decode(data, SerialType.decode(6), 0).value
        )

    def test_signed_view(self):
        value = ColumnValue.decode(bytes([0xFF, 0xFE]), SerialType.decode(2), 0)
        self.assertEqual(0xFFFE, value.value)
        self.assertEqual(-2, value.signed)

        value = ColumnValue.decode(bytes([0x7F]), SerialType.decode(1), 0)
        self.assertEqual(127, value.signed)

    def test_float(self):
        data = struct.pack(">d", 3.25)
        self.assertEqual(3.25, ColumnValue.decode(data, SerialType.decode(7), 0).value)

    def test_constants_do_not_touch_the_buffer(self):
        self.assertIsNone(ColumnValue.decode(b"", SerialType.decode(0), 10).value)
        self.assertEqual(0, ColumnValue.decode(b"", SerialType.decode(8), 10).value)
        self.assertEqual(1, ColumnValue.decode(b"", SerialType.decode(9), 10).value)

    def test_text_and_blob(self):
        data = "héllo".encode("utf-8")
        text = ColumnValue.decode(data, SerialType.decode(13 + 2 * len(data)), 0)
        self.assertEqual("héllo", text.value)

        blob = ColumnValue.decode(b"\x00\x01", SerialType.decode(16), 0)
        self.assertEqual(b"\x00\x01", blob.value)

    def test_invalid_utf8(self):
        with self.assertRaises(InvalidUtf8):
            _ = ColumnValue.decode(b"\xff\xfe", SerialType.decode(17), 0)

    def test_column_past_end(self):
        with self.assertRaises(CorruptPage):
            _ = ColumnValue.decode(b"\x01", SerialType.decode(4), 0)


class TestParseRecord(unittest.TestCase):
    def test_schema_like_record(self):
        values = ["table", "apples", "apples", 2, "CREATE TABLE apples (id integer)"]
        payload = build_record(values)

        record = parse_record(payload)
        self.assertEqual([value.value for value in record.values], values)
        self.assertEqual(len(record.serial_types), len(record.values))
        self.assertEqual(len(payload), record.length)
        self.assertEqual(len(payload) - record.header_length, record.body_length)

    def test_header_length_counts_itself(self):
        record = parse_record(bytes([3, 1, 9, 42]))
        self.assertEqual(3, record.header_length)
        self.assertEqual([42, 1], [value.value for value in record.values])
        self.assertEqual(1, record.body_length)

    def test_record_at_offset(self):
        payload = build_record([None, 0, 1, 2.5, b"\xaa"])
        record = parse_record(b"\x00\x00" + payload, offset=2)
        self.assertEqual(
            [None, 0, 1, 2.5, b"\xaa"], [value.value for value in record.values]
        )

    def test_multi_byte_serial_types(self):
        text = "x" * 100
        record = parse_record(build_record([text, 7]))
        self.assertEqual(4, record.header_length)
        self.assertEqual(text, record[0].value)
        self.assertEqual(7, record[1].value)

    def test_serial_types_overrun_header_length(self):
        # Header claims 2 bytes, but its only serial type takes two
        payload = bytes([2]) + encode_varint(200) + bytes(100)
        with self.assertRaises(RecordHeaderLengthMismatch):
            _ = parse_record(payload)

    def test_header_length_shorter_than_itself(self):
        with self.assertRaises(RecordHeaderLengthMismatch):
            _ = parse_record(bytes([0]))

    def test_invalid_serial_type_propagates(self):
        with self.assertRaises(InvalidSerialType):
            _ = parse_record(bytes([2, 10]))

    def test_decoding_twice_is_identical(self):
        payload = build_record(["a", 1000, None])
        self.assertEqual(parse_record(payload), parse_record(payload))


if __name__ == "__main__":
    _ = unittest.main()
