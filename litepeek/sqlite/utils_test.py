import unittest

from .errors import CorruptPage, TruncatedVarint
from .utils import decode_varint, encode_varint, read_uint


class TestVarint(unittest.TestCase):
    def test_one_byte_varint(self):
        expectedValue = 0b_0101_0110

        result = decode_varint(bytes([expectedValue]))
        self.assertEqual(1, result.length)
        self.assertEqual(expectedValue, result.value)

    def test_multi_byte_varint(self):
        byte1 = 0b_1_101_0110
        byte2 = 0b_1_100_0100
        byte3 = 0b_0_010_0100
        _mask = 0b_0_111_1111

        expectedValue = (byte1 & _mask) << 7
        expectedValue = (expectedValue | (byte2 & _mask)) << 7
        expectedValue = expectedValue | (byte3 & _mask)

        result = decode_varint(bytes([byte1, byte2, byte3]))
        self.assertEqual(3, result.length)
        self.assertEqual(expectedValue, result.value)

    def test_varint_stops_at_last_byte(self):
        result = decode_varint(bytes([0x81, 0x00, 0xFF, 0xFF]))
        self.assertEqual((128, 2), result)

    def test_varint_at_offset(self):
        result = decode_varint(bytes([0xFF, 0xFF, 0x87, 0x68]), offset=2)
        self.assertEqual((1000, 2), result)

    def test_nine_byte_varint_uses_all_bits_of_last_byte(self):
        result = decode_varint(bytes([0xFF] * 9))
        self.assertEqual(9, result.length)
        self.assertEqual(2**64 - 1, result.value)

        result = decode_varint(bytes([0x80] * 8 + [0xFF]))
        self.assertEqual(9, result.length)
        self.assertEqual(0xFF, result.value)

    def test_truncated_varint(self):
        with self.assertRaises(TruncatedVarint):
            _ = decode_varint(b"")
        with self.assertRaises(TruncatedVarint):
            _ = decode_varint(bytes([0x81, 0x82]))
        with self.assertRaises(TruncatedVarint):
            _ = decode_varint(bytes([0xFF] * 8))

    def test_round_trip(self):
        for value, length in [
            (0, 1),
            (127, 1),
            (128, 2),
            (16383, 2),
            (16384, 3),
            (2**49 - 1, 7),
            (2**56 - 1, 8),
            (2**56, 9),
            (2**63 + 12345, 9),
            (2**64 - 1, 9),
        ]:
            with self.subTest(value=value):
                encoded = encode_varint(value)
                self.assertEqual(length, len(encoded))
                self.assertEqual((value, length), decode_varint(encoded))

    def test_encode_rejects_out_of_range(self):
        with self.assertRaises(ValueError):
            _ = encode_varint(-1)
        with self.assertRaises(ValueError):
            _ = encode_varint(2**64)


class TestReadUint(unittest.TestCase):
    def test_big_endian(self):
        self.assertEqual(0x0102, read_uint(bytes([0, 1, 2, 3]), offset=1, size=2))

    def test_overrun(self):
        with self.assertRaises(CorruptPage):
            _ = read_uint(bytes([0, 1]), offset=1, size=2)


if __name__ == "__main__":
    _ = unittest.main()
