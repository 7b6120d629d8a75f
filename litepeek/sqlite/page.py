from dataclasses import dataclass
from enum import Enum
from typing import Final, final

from .cell import (
    AnyBTreeCell,
    IndexBTreeInteriorCell,
    IndexBTreeLeafCell,
    TableBTreeInteriorCell,
    TableBTreeLeafCell,
)
from .errors import CorruptPage, InvalidPageType
from .utils import OffsetMetadata, read_uint

DATABASE_HEADER_SIZE: Final = 100
CELL_POINTER_SIZE: Final = 2


@final
class HeaderOffset:
    # INFO: https://www.sqlite.org/fileformat.html#b_tree_pages
    PAGE_TYPE = OffsetMetadata(OFFSET=0, SIZE=1)
    FIRST_FREEBLOCK = OffsetMetadata(OFFSET=1, SIZE=2)
    CELLS_COUNT = OffsetMetadata(OFFSET=3, SIZE=2)
    CELL_CONTENT_START = OffsetMetadata(OFFSET=5, SIZE=2)
    FRAGMENTED_BYTES = OffsetMetadata(OFFSET=7, SIZE=1)
    RIGHT_MOST_POINTER = OffsetMetadata(OFFSET=8, SIZE=4)


class PageType(Enum):
    INTERIOR_INDEX = 0x02
    INTERIOR_TABLE = 0x05
    LEAF_INDEX = 0x0A
    LEAF_TABLE = 0x0D

    @staticmethod
    def from_byte(byte: int) -> "PageType":
        try:
            return PageType(byte)
        except ValueError:
            raise InvalidPageType(byte) from None

    @property
    def is_interior(self) -> bool:
        return self in (PageType.INTERIOR_INDEX, PageType.INTERIOR_TABLE)


@dataclass(frozen=True)
class PageHeader:
    page_type: PageType
    first_freeblock_start: int
    cells_count: int
    cell_content_start: int
    fragmented_free_bytes: int
    right_most_pointer: int | None

    @property
    def size(self) -> int:
        return 12 if self.page_type.is_interior else 8

    @staticmethod
    def decode(page_data: bytes, offset: int = 0) -> "PageHeader":
        def field(metadata: OffsetMetadata) -> int:
            return read_uint(page_data, offset + metadata.OFFSET, metadata.SIZE)

        page_type = PageType.from_byte(field(HeaderOffset.PAGE_TYPE))

        cell_content_start = field(HeaderOffset.CELL_CONTENT_START)
        # INFO: Zero is interpreted as 65536
        if cell_content_start == 0:
            cell_content_start = 65536

        right_most_pointer = (
            field(HeaderOffset.RIGHT_MOST_POINTER) if page_type.is_interior else None
        )

        return PageHeader(
            page_type=page_type,
            first_freeblock_start=field(HeaderOffset.FIRST_FREEBLOCK),
            cells_count=field(HeaderOffset.CELLS_COUNT),
            cell_content_start=cell_content_start,
            fragmented_free_bytes=field(HeaderOffset.FRAGMENTED_BYTES),
            right_most_pointer=right_most_pointer,
        )


@dataclass(frozen=True)
class BTreePage:
    page_number: int
    header: PageHeader
    cell_pointers: list[int]
    cells: list[AnyBTreeCell]

    @property
    def page_type(self) -> PageType:
        return self.header.page_type

    def child_page_numbers(self) -> list[int]:
        """Children in key order, the right-most pointer last. Empty for leaves."""
        if self.header.right_most_pointer is None:
            return []

        children = [
            cell.left_pointer
            for cell in self.cells
            if isinstance(cell, (TableBTreeInteriorCell, IndexBTreeInteriorCell))
        ]
        children.append(self.header.right_most_pointer)
        return children

    @staticmethod
    def decode(
        page_data: bytes,
        page_number: int,
        usable_size: int | None = None,
        encoding: str = "utf-8",
        decode_leaf_cells: bool = True,
    ) -> "BTreePage":
        """Pointers are always bounds-checked. With ``decode_leaf_cells`` off,
        leaf pages come back with no cells and their payloads are never read.
        """
        header_offset = DATABASE_HEADER_SIZE if page_number == 1 else 0
        header = PageHeader.decode(page_data, header_offset)

        if usable_size is None:
            usable_size = len(page_data)

        pointers_start = header_offset + header.size
        pointers_end = pointers_start + header.cells_count * CELL_POINTER_SIZE
        if pointers_end > len(page_data):
            raise CorruptPage(
                f"Page {page_number} declares {header.cells_count} cells, "
                "more than its pointer array can hold"
            )

        cell_pointers = [
            read_uint(page_data, pointer_offset, CELL_POINTER_SIZE)
            for pointer_offset in range(pointers_start, pointers_end, CELL_POINTER_SIZE)
        ]

        skip_cells = not decode_leaf_cells and not header.page_type.is_interior

        cells: list[AnyBTreeCell] = []
        for cell_pointer in cell_pointers:
            if cell_pointer < pointers_end or cell_pointer >= usable_size:
                raise CorruptPage(
                    f"Cell pointer {cell_pointer} on page {page_number} is outside "
                    f"the cell content area [{pointers_end}, {usable_size})"
                )

            if skip_cells:
                continue

            cells.append(
                _decode_cell(
                    header.page_type, page_data, cell_pointer, usable_size, encoding
                )
            )

        return BTreePage(
            page_number=page_number,
            header=header,
            cell_pointers=cell_pointers,
            cells=cells,
        )


def _decode_cell(
    page_type: PageType,
    page_data: bytes,
    offset: int,
    usable_size: int,
    encoding: str,
) -> AnyBTreeCell:
    match page_type:
        case PageType.LEAF_TABLE:
            return TableBTreeLeafCell.decode(page_data, offset, usable_size, encoding)
        case PageType.LEAF_INDEX:
            return IndexBTreeLeafCell.decode(page_data, offset, usable_size, encoding)
        case PageType.INTERIOR_TABLE:
            return TableBTreeInteriorCell.decode(page_data, offset)
        case PageType.INTERIOR_INDEX:
            return IndexBTreeInteriorCell.decode(page_data, offset, usable_size, encoding)
