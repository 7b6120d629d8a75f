from typing import NamedTuple, final

from .errors import CorruptPage, TruncatedVarint

LOGGER_NAME = "litepeek"


@final
class OffsetMetadata(NamedTuple):
    OFFSET: int
    SIZE: int


class Varint(NamedTuple):
    value: int
    length: int


_LOW_SEVEN_BITS = 0b_0111_1111
_CONTINUATION_BIT = 0b_1000_0000


def decode_varint(data: bytes, offset: int = 0) -> Varint:
    # INFO: https://www.sqlite.org/fileformat.html#varint
    value = 0
    for index in range(8):
        if offset + index >= len(data):
            raise TruncatedVarint(f"Varint at offset {offset} runs past the buffer")

        byte = data[offset + index]
        value = (value << 7) | (byte & _LOW_SEVEN_BITS)
        if not byte & _CONTINUATION_BIT:
            return Varint(value, index + 1)

    # The ninth byte contributes all of its 8 bits
    if offset + 8 >= len(data):
        raise TruncatedVarint(f"Varint at offset {offset} runs past the buffer")

    value = (value << 8) | data[offset + 8]
    return Varint(value, 9)


def encode_varint(value: int) -> bytes:
    if value < 0 or value >= 1 << 64:
        raise ValueError(f"Varint value {value} is outside the unsigned 64-bit range")

    if value >= 1 << 56:
        groups = [value & 0xFF]
        value >>= 8
        for _ in range(8):
            groups.append((value & _LOW_SEVEN_BITS) | _CONTINUATION_BIT)
            value >>= 7
        return bytes(reversed(groups))

    groups = [value & _LOW_SEVEN_BITS]
    value >>= 7
    while value:
        groups.append((value & _LOW_SEVEN_BITS) | _CONTINUATION_BIT)
        value >>= 7
    return bytes(reversed(groups))


def read_uint(data: bytes, offset: int, size: int) -> int:
    if offset < 0 or offset + size > len(data):
        raise CorruptPage(
            f"Reading {size} bytes at offset {offset} overruns a {len(data)} byte buffer"
        )

    return int.from_bytes(data[offset : offset + size], byteorder="big", signed=False)
