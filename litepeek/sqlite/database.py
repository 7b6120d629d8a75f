from collections.abc import Iterator
from logging import getLogger
from os import PathLike, fstat
from types import TracebackType
from typing import BinaryIO, Final, cast, final

from .cell import TableBTreeLeafCell
from .errors import CorruptPage, InvalidDatabaseHeader
from .page import DATABASE_HEADER_SIZE, BTreePage, PageType
from .schema import SchemaCatalog
from .utils import LOGGER_NAME, OffsetMetadata, read_uint

SCHEMA_ROOT_PAGE: Final = 1


@final
class HeaderOffset:
    SQLITE_MAGIC_STRING = b"SQLite format 3\x00"

    # INFO: https://www.sqlite.org/fileformat.html#the_database_header
    HEADER_STRING = OffsetMetadata(OFFSET=0, SIZE=16)
    PAGE_SIZE = OffsetMetadata(OFFSET=16, SIZE=2)
    FILE_WRITE_FORMAT = OffsetMetadata(OFFSET=18, SIZE=1)
    FILE_READ_FORMAT = OffsetMetadata(OFFSET=19, SIZE=1)
    PAGE_RESERVED_BYTES = OffsetMetadata(OFFSET=20, SIZE=1)
    FILE_CHANGE_COUNTER = OffsetMetadata(OFFSET=24, SIZE=4)
    FILE_SIZE_IN_PAGES = OffsetMetadata(OFFSET=28, SIZE=4)
    SCHEMA_COOKIE = OffsetMetadata(OFFSET=40, SIZE=4)
    SCHEMA_FORMAT_NUMBER = OffsetMetadata(OFFSET=44, SIZE=4)
    DATABASE_TEXT_ENCODING = OffsetMetadata(OFFSET=56, SIZE=4)


class SQLiteHeader:
    def __init__(self, header_bytes: bytes) -> None:
        if len(header_bytes) < DATABASE_HEADER_SIZE:
            raise InvalidDatabaseHeader(
                f"Database header needs {DATABASE_HEADER_SIZE} bytes, "
                f"but only {len(header_bytes)} were read"
            )

        self._header_bytes: Final[bytes] = bytes(header_bytes[:DATABASE_HEADER_SIZE])

    def _field(self, metadata: OffsetMetadata) -> int:
        return read_uint(self._header_bytes, metadata.OFFSET, metadata.SIZE)

    @property
    def magic_string(self) -> bytes:
        offset = HeaderOffset.HEADER_STRING
        return self._header_bytes[offset.OFFSET : offset.OFFSET + offset.SIZE]

    @property
    def page_size(self) -> int:
        page_size = self._field(HeaderOffset.PAGE_SIZE)
        # INFO: Value 1 represents a page size of 65536
        if page_size == 1:
            page_size = 65536

        self._validate_page_size(page_size)
        return page_size

    def _validate_page_size(self, page_size: int):
        if page_size < 512 or page_size > 65536:
            raise InvalidDatabaseHeader(
                f"Page size is {page_size}, but it needs in range [512, 65536]"
            )

        if page_size & (page_size - 1) != 0:
            raise InvalidDatabaseHeader(
                f"Page size is {page_size}, but it needs to be a power of 2"
            )

    @property
    def reserved_bytes(self) -> int:
        return self._field(HeaderOffset.PAGE_RESERVED_BYTES)

    @property
    def usable_size(self) -> int:
        return self.page_size - self.reserved_bytes

    @property
    def schema_format_number(self) -> int:
        return self._field(HeaderOffset.SCHEMA_FORMAT_NUMBER)

    @property
    def encoding(self) -> str:
        match self._field(HeaderOffset.DATABASE_TEXT_ENCODING):
            case 1:
                return "utf-8"
            case 2:
                return "utf-16le"
            case 3:
                return "utf-16be"
            case encoding_value:
                raise InvalidDatabaseHeader(
                    f"File corrupted, incorrect encoding value {encoding_value}"
                )


class SQLiteDatabase:
    """Read-only access to a database file, one positioned read per page."""

    def __init__(self, file_path: str | PathLike[str]) -> None:
        self._logger = getLogger(LOGGER_NAME)
        self._file: BinaryIO = cast(BinaryIO, open(file_path, "rb"))

        try:
            self._header: Final[SQLiteHeader] = SQLiteHeader(
                self._file.read(DATABASE_HEADER_SIZE)
            )
            if self._header.magic_string != HeaderOffset.SQLITE_MAGIC_STRING:
                raise InvalidDatabaseHeader(
                    "File is probably not a SQLite database - incorrect header"
                )

            self._page_size: Final[int] = self._header.page_size
        except BaseException:
            self._file.close()
            raise

        self._schema: SchemaCatalog | None = None
        self._logger.debug(
            "Opened %s with page size %d and %d pages",
            file_path,
            self._page_size,
            self.pages_count,
        )

    def __enter__(self):
        return self

    def __exit__(
        self,
        exception_type: type[BaseException] | None,
        exception_value: BaseException | None,
        exception_traceback: TracebackType | None,
    ):
        self.close()

    def close(self) -> None:
        self._file.close()

    def header(self) -> SQLiteHeader:
        return self._header

    @property
    def pages_count(self) -> int:
        file_size = fstat(self._file.fileno()).st_size
        return file_size // self._page_size

    def _read_page_data(self, page_number: int) -> bytes:
        if page_number < 1:
            raise CorruptPage(f"Pages are numbered from 1, but {page_number} requested")
        if page_number > (count := self.pages_count):
            raise CorruptPage(f"Max page number is {count}, but {page_number} requested")

        absolute_page_start = self._page_size * (page_number - 1)
        self._logger.debug("Reading page %d at offset %d", page_number, absolute_page_start)

        _ = self._file.seek(absolute_page_start)
        page_bytes = self._file.read(self._page_size)
        if len(page_bytes) != self._page_size:
            raise CorruptPage(f"Page {page_number} is truncated")

        return page_bytes

    def btree_page(self, page_number: int, decode_leaf_cells: bool = True) -> BTreePage:
        return BTreePage.decode(
            self._read_page_data(page_number),
            page_number=page_number,
            usable_size=self._header.usable_size,
            encoding=self._header.encoding,
            decode_leaf_cells=decode_leaf_cells,
        )

    def _table_page(
        self,
        page_number: int,
        visited: set[int],
        decode_leaf_cells: bool = True,
    ) -> BTreePage:
        if page_number in visited:
            raise CorruptPage(f"Page {page_number} is referenced twice in one b-tree")
        visited.add(page_number)

        page = self.btree_page(page_number, decode_leaf_cells=decode_leaf_cells)
        if page.page_type not in (PageType.LEAF_TABLE, PageType.INTERIOR_TABLE):
            raise CorruptPage(
                f"Page {page_number} is a {page.page_type.name} page inside a table b-tree"
            )

        return page

    def _table_cells_tree(
        self,
        starting_page_number: int,
        visited: set[int] | None = None,
    ) -> Iterator[TableBTreeLeafCell]:
        if visited is None:
            visited = set()

        page = self._table_page(starting_page_number, visited)
        match page.page_type:
            case PageType.INTERIOR_TABLE:
                for child_page_number in page.child_page_numbers():
                    yield from self._table_cells_tree(child_page_number, visited)
            case PageType.LEAF_TABLE:
                yield from cast(list[TableBTreeLeafCell], page.cells)

    def schema(self) -> SchemaCatalog:
        if self._schema is None:
            self._schema = SchemaCatalog.from_cells(
                self._table_cells_tree(starting_page_number=SCHEMA_ROOT_PAGE)
            )
            self._logger.debug("Loaded %d schema objects", len(self._schema.objects))

        return self._schema

    def count_table_rows(self, root_page: int) -> int:
        return self._count_rows_tree(root_page, visited=set())

    def _count_rows_tree(self, page_number: int, visited: set[int]) -> int:
        # Leaf payloads are not needed to count their cells
        page = self._table_page(page_number, visited, decode_leaf_cells=False)
        match page.page_type:
            case PageType.INTERIOR_TABLE:
                child_page_numbers = page.child_page_numbers()
                self._logger.debug(
                    "Descending from interior page %d into %d children",
                    page_number,
                    len(child_page_numbers),
                )
                return sum(
                    self._count_rows_tree(child_page_number, visited)
                    for child_page_number in child_page_numbers
                )
            case _:
                return page.header.cells_count

    def count_rows(self, table_name: str) -> int:
        return self.count_table_rows(self.schema().root_page(table_name))
