from dataclasses import dataclass

from .errors import PayloadLengthMismatch, PayloadOverflow
from .record import Record, parse_record
from .utils import decode_varint, read_uint

LEFT_CHILD_POINTER_SIZE = 4


def max_local_payload(usable_size: int, is_table_leaf: bool) -> int:
    # INFO: https://www.sqlite.org/fileformat.html#cell_payload_overflow_pages
    if is_table_leaf:
        return usable_size - 35
    return ((usable_size - 12) * 64 // 255) - 23


def _parse_local_payload(
    page_data: bytes,
    payload_start: int,
    payload_size: int,
    max_local: int,
    encoding: str,
) -> Record:
    if payload_size > max_local:
        raise PayloadOverflow(
            f"Payload of {payload_size} bytes at offset {payload_start} spills onto "
            f"overflow pages (at most {max_local} bytes are stored locally)"
        )

    record = parse_record(page_data, offset=payload_start, encoding=encoding)
    if record.length != payload_size:
        raise PayloadLengthMismatch(
            f"Payload at offset {payload_start} declares {payload_size} bytes, "
            f"but its record spans {record.length}"
        )

    return record


@dataclass(frozen=True)
class TableBTreeLeafCell:
    payload_size: int
    row_id: int
    record: Record

    @staticmethod
    def decode(
        page_data: bytes,
        offset: int,
        usable_size: int,
        encoding: str = "utf-8",
    ) -> "TableBTreeLeafCell":
        total_size_varint = decode_varint(page_data, offset)
        rowid_varint = decode_varint(page_data, offset + total_size_varint.length)

        record = _parse_local_payload(
            page_data,
            payload_start=offset + total_size_varint.length + rowid_varint.length,
            payload_size=total_size_varint.value,
            max_local=max_local_payload(usable_size, is_table_leaf=True),
            encoding=encoding,
        )

        return TableBTreeLeafCell(
            payload_size=total_size_varint.value,
            row_id=rowid_varint.value,
            record=record,
        )


@dataclass(frozen=True)
class IndexBTreeLeafCell:
    payload_size: int
    record: Record

    @staticmethod
    def decode(
        page_data: bytes,
        offset: int,
        usable_size: int,
        encoding: str = "utf-8",
    ) -> "IndexBTreeLeafCell":
        total_size_varint = decode_varint(page_data, offset)

        record = _parse_local_payload(
            page_data,
            payload_start=offset + total_size_varint.length,
            payload_size=total_size_varint.value,
            max_local=max_local_payload(usable_size, is_table_leaf=False),
            encoding=encoding,
        )

        return IndexBTreeLeafCell(
            payload_size=total_size_varint.value,
            record=record,
        )


@dataclass(frozen=True)
class TableBTreeInteriorCell:
    left_pointer: int
    integer_key: int

    @staticmethod
    def decode(page_data: bytes, offset: int) -> "TableBTreeInteriorCell":
        left_pointer = read_uint(page_data, offset, LEFT_CHILD_POINTER_SIZE)
        key_varint = decode_varint(page_data, offset + LEFT_CHILD_POINTER_SIZE)

        return TableBTreeInteriorCell(
            left_pointer=left_pointer,
            integer_key=key_varint.value,
        )


@dataclass(frozen=True)
class IndexBTreeInteriorCell:
    left_pointer: int
    payload_size: int
    record: Record

    @staticmethod
    def decode(
        page_data: bytes,
        offset: int,
        usable_size: int,
        encoding: str = "utf-8",
    ) -> "IndexBTreeInteriorCell":
        left_pointer = read_uint(page_data, offset, LEFT_CHILD_POINTER_SIZE)
        total_size_varint = decode_varint(page_data, offset + LEFT_CHILD_POINTER_SIZE)

        record = _parse_local_payload(
            page_data,
            payload_start=offset + LEFT_CHILD_POINTER_SIZE + total_size_varint.length,
            payload_size=total_size_varint.value,
            max_local=max_local_payload(usable_size, is_table_leaf=False),
            encoding=encoding,
        )

        return IndexBTreeInteriorCell(
            left_pointer=left_pointer,
            payload_size=total_size_varint.value,
            record=record,
        )


AnyBTreeCell = (
    TableBTreeLeafCell
    | IndexBTreeLeafCell
    | TableBTreeInteriorCell
    | IndexBTreeInteriorCell
)
