"""Byte-level builders for synthetic database files.

Only what the readers in this package understand is produced: UTF-8 text,
no freeblocks, no overflow pages.
"""

import struct
from collections.abc import Sequence

from .database import HeaderOffset
from .page import CELL_POINTER_SIZE, DATABASE_HEADER_SIZE, PageType
from .utils import encode_varint

ColumnData = int | float | str | bytes | None

_SIGNED_INT_WIDTHS = ((1, 1), (2, 2), (3, 3), (4, 4), (5, 6), (6, 8))


def _serial_type(value: ColumnData) -> tuple[int, bytes]:
    match value:
        case None:
            return 0, b""
        case bool() | int() if value == 0:
            return 8, b""
        case bool() | int() if value == 1:
            return 9, b""
        case int():
            for code, width in _SIGNED_INT_WIDTHS:
                if -(1 << (width * 8 - 1)) <= value < 1 << (width * 8 - 1):
                    return code, value.to_bytes(width, byteorder="big", signed=True)
            raise ValueError(f"Integer {value} does not fit in 8 bytes")
        case float():
            return 7, struct.pack(">d", value)
        case str():
            encoded = value.encode("utf-8")
            return 13 + 2 * len(encoded), encoded
        case bytes():
            return 12 + 2 * len(value), value
        case _:
            raise TypeError(f"Unsupported column value {value!r}")


def build_record(values: Sequence[ColumnData]) -> bytes:
    serial_types, bodies = zip(*map(_serial_type, values)) if values else ((), ())
    header_body = b"".join(encode_varint(code) for code in serial_types)

    # The header length includes its own varint
    header_length = len(header_body) + 1
    while len(encode_varint(header_length)) + len(header_body) != header_length:
        header_length = len(encode_varint(header_length)) + len(header_body)

    return encode_varint(header_length) + header_body + b"".join(bodies)


def table_leaf_cell(row_id: int, values: Sequence[ColumnData]) -> bytes:
    payload = build_record(values)
    return encode_varint(len(payload)) + encode_varint(row_id) + payload


def table_interior_cell(left_pointer: int, integer_key: int) -> bytes:
    return left_pointer.to_bytes(4, byteorder="big") + encode_varint(integer_key)


def index_leaf_cell(values: Sequence[ColumnData]) -> bytes:
    payload = build_record(values)
    return encode_varint(len(payload)) + payload


def index_interior_cell(left_pointer: int, values: Sequence[ColumnData]) -> bytes:
    return left_pointer.to_bytes(4, byteorder="big") + index_leaf_cell(values)


def build_page(
    page_type: PageType,
    cells: Sequence[bytes],
    page_size: int = 512,
    page_number: int = 2,
    right_most_pointer: int | None = None,
    reserved_bytes: int = 0,
) -> bytes:
    page = bytearray(page_size)
    header_offset = DATABASE_HEADER_SIZE if page_number == 1 else 0
    header_size = 12 if page_type.is_interior else 8

    content_start = page_size - reserved_bytes
    pointers_offset = header_offset + header_size
    for cell in cells:
        content_start -= len(cell)
        page[content_start : content_start + len(cell)] = cell
        page[pointers_offset : pointers_offset + CELL_POINTER_SIZE] = (
            content_start.to_bytes(CELL_POINTER_SIZE, byteorder="big")
        )
        pointers_offset += CELL_POINTER_SIZE

    if content_start < pointers_offset:
        raise ValueError(f"{len(cells)} cells do not fit in a {page_size} byte page")

    page[header_offset] = page_type.value
    page[header_offset + 3 : header_offset + 5] = len(cells).to_bytes(2, byteorder="big")
    page[header_offset + 5 : header_offset + 7] = (content_start % 65536).to_bytes(
        2, byteorder="big"
    )
    if page_type.is_interior:
        if right_most_pointer is None:
            raise ValueError("Interior pages need a right-most pointer")
        page[header_offset + 8 : header_offset + 12] = right_most_pointer.to_bytes(
            4, byteorder="big"
        )

    return bytes(page)


def build_database_header(
    page_size: int,
    pages_count: int,
    reserved_bytes: int = 0,
    encoding: int = 1,
) -> bytes:
    header = bytearray(DATABASE_HEADER_SIZE)

    def put(offset, value: int) -> None:
        header[offset.OFFSET : offset.OFFSET + offset.SIZE] = value.to_bytes(
            offset.SIZE, byteorder="big"
        )

    header[: HeaderOffset.HEADER_STRING.SIZE] = HeaderOffset.SQLITE_MAGIC_STRING
    put(HeaderOffset.PAGE_SIZE, 1 if page_size == 65536 else page_size)
    put(HeaderOffset.FILE_WRITE_FORMAT, 1)
    put(HeaderOffset.FILE_READ_FORMAT, 1)
    put(HeaderOffset.PAGE_RESERVED_BYTES, reserved_bytes)
    # Max embedded, min embedded and leaf payload fractions are fixed by the format
    header[21:24] = bytes([64, 32, 32])
    put(HeaderOffset.FILE_SIZE_IN_PAGES, pages_count)
    put(HeaderOffset.SCHEMA_FORMAT_NUMBER, 4)
    put(HeaderOffset.DATABASE_TEXT_ENCODING, encoding)
    return bytes(header)


def build_database(pages: Sequence[bytes], **header_options) -> bytes:
    """Joins pages into a file, writing the database header over page 1."""
    page_size = len(pages[0])
    first_page = bytearray(pages[0])
    first_page[:DATABASE_HEADER_SIZE] = build_database_header(
        page_size, len(pages), **header_options
    )

    return bytes(first_page) + b"".join(pages[1:])


def schema_row(
    object_type: str,
    name: str,
    root_page: int,
    sql: str | None,
    tbl_name: str | None = None,
) -> list[ColumnData]:
    return [object_type, name, tbl_name or name, root_page, sql]
