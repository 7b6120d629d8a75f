import struct
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .errors import CorruptPage, InvalidSerialType, InvalidUtf8, RecordHeaderLengthMismatch
from .utils import decode_varint


class StorageClass(Enum):
    NULL = 0
    INT8 = 1
    INT16 = 2
    INT24 = 3
    INT32 = 4
    INT48 = 5
    INT64 = 6
    FLOAT64 = 7
    INT_ZERO = 8
    INT_ONE = 9
    BLOB = 12
    STRING = 13

    @property
    def is_int(self) -> bool:
        return self in _INTEGER_CLASSES


_INTEGER_CLASSES: Final = frozenset(
    {
        StorageClass.INT8,
        StorageClass.INT16,
        StorageClass.INT24,
        StorageClass.INT32,
        StorageClass.INT48,
        StorageClass.INT64,
        StorageClass.INT_ZERO,
        StorageClass.INT_ONE,
    }
)

# INFO: https://www.sqlite.org/fileformat.html#record_format
_FIXED_SIZES: Final = {
    StorageClass.NULL: 0,
    StorageClass.INT8: 1,
    StorageClass.INT16: 2,
    StorageClass.INT24: 3,
    StorageClass.INT32: 4,
    StorageClass.INT48: 6,
    StorageClass.INT64: 8,
    StorageClass.FLOAT64: 8,
    StorageClass.INT_ZERO: 0,
    StorageClass.INT_ONE: 0,
}


@dataclass(frozen=True)
class SerialType:
    storage_class: StorageClass
    size: int

    @property
    def is_int(self) -> bool:
        return self.storage_class.is_int

    @staticmethod
    def decode(code: int) -> "SerialType":
        match code:
            case _ if 0 <= code <= 9:
                storage_class = StorageClass(code)
                return SerialType(storage_class, _FIXED_SIZES[storage_class])
            case _ if code >= 12 and code % 2 == 0:
                return SerialType(StorageClass.BLOB, (code - 12) // 2)
            case _ if code >= 13 and code % 2 == 1:
                return SerialType(StorageClass.STRING, (code - 13) // 2)
            case _:
                raise InvalidSerialType(code)


@dataclass(frozen=True)
class ColumnValue:
    serial_type: SerialType
    value: int | float | str | bytes | None

    @property
    def signed(self) -> int | float | str | bytes | None:
        """Two's-complement reading of the fixed-width integer classes."""
        if not isinstance(self.value, int) or self.serial_type.size == 0:
            return self.value

        bits = self.serial_type.size * 8
        if self.value >= 1 << (bits - 1):
            return self.value - (1 << bits)
        return self.value

    @staticmethod
    def decode(
        data: bytes,
        serial_type: SerialType,
        offset: int,
        encoding: str = "utf-8",
    ) -> "ColumnValue":
        size = serial_type.size
        if size > 0 and offset + size > len(data):
            raise CorruptPage(
                f"Column of {size} bytes at offset {offset} runs past the page end"
            )

        raw_bytes = data[offset : offset + size]

        value: int | float | str | bytes | None
        match serial_type.storage_class:
            case StorageClass.NULL:
                value = None
            case StorageClass.INT_ZERO:
                value = 0
            case StorageClass.INT_ONE:
                value = 1
            case (
                StorageClass.INT8
                | StorageClass.INT16
                | StorageClass.INT24
                | StorageClass.INT32
                | StorageClass.INT48
                | StorageClass.INT64
            ):
                value = int.from_bytes(raw_bytes, byteorder="big", signed=False)
            case StorageClass.FLOAT64:
                (value,) = struct.unpack(">d", raw_bytes)
            case StorageClass.BLOB:
                value = bytes(raw_bytes)
            case StorageClass.STRING:
                try:
                    value = bytes(raw_bytes).decode(encoding)
                except UnicodeDecodeError as error:
                    raise InvalidUtf8(
                        f"TEXT column at offset {offset} is not valid {encoding}"
                    ) from error

        return ColumnValue(serial_type=serial_type, value=value)


@dataclass(frozen=True)
class Record:
    header_length: int
    serial_types: list[SerialType]
    values: list[ColumnValue]
    body_length: int

    @property
    def length(self) -> int:
        return self.header_length + self.body_length

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> ColumnValue:
        return self.values[index]


def parse_record(data: bytes, offset: int = 0, encoding: str = "utf-8") -> Record:
    header_length = decode_varint(data, offset)

    # The header length counts its own varint
    bytes_read = header_length.length
    header_offset = offset + header_length.length

    serial_types: list[SerialType] = []
    while bytes_read < header_length.value:
        serial_type_varint = decode_varint(data, header_offset)

        bytes_read += serial_type_varint.length
        header_offset += serial_type_varint.length
        if bytes_read > header_length.value:
            raise RecordHeaderLengthMismatch(
                f"Serial types overrun the declared header length {header_length.value}"
            )

        serial_types.append(SerialType.decode(serial_type_varint.value))

    if bytes_read != header_length.value:
        raise RecordHeaderLengthMismatch(
            f"Declared header length {header_length.value} is shorter than its own varint"
        )

    body_offset = offset + header_length.value
    values: list[ColumnValue] = []
    for serial_type in serial_types:
        values.append(ColumnValue.decode(data, serial_type, body_offset, encoding))
        body_offset += serial_type.size

    return Record(
        header_length=header_length.value,
        serial_types=serial_types,
        values=values,
        body_length=sum(serial_type.size for serial_type in serial_types),
    )
