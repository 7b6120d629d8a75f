from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Final, cast

from .cell import TableBTreeLeafCell
from .errors import CorruptPage, NoSuchTable
from .record import ColumnValue, Record, StorageClass

RESERVED_NAME_PREFIX: Final = "sqlite_"


class SchemaObjectType(Enum):
    TABLE = "table"
    INDEX = "index"
    VIEW = "view"
    TRIGGER = "trigger"


def _text(column: ColumnValue) -> str:
    if column.serial_type.storage_class != StorageClass.STRING:
        raise CorruptPage(f"Schema is corrupted, expected TEXT but got {column}")
    return cast(str, column.value)


def _optional_text(column: ColumnValue) -> str | None:
    if column.serial_type.storage_class == StorageClass.NULL:
        return None
    return _text(column)


@dataclass(frozen=True)
class SchemaObject:
    type: SchemaObjectType
    name: str
    tbl_name: str
    root_page: int | None
    sql: str | None

    @property
    def is_table(self) -> bool:
        return self.type == SchemaObjectType.TABLE

    @property
    def is_index(self) -> bool:
        return self.type == SchemaObjectType.INDEX

    @property
    def is_reserved(self) -> bool:
        return self.name.startswith(RESERVED_NAME_PREFIX)

    @staticmethod
    def from_record(record: Record) -> "SchemaObject":
        if len(record) != 5:
            raise CorruptPage(
                f"Schema is corrupted, expected 5 columns but got {len(record)}"
            )

        object_type, object_name, table_name, root_page, sql = record.values
        if not (root_page.serial_type.is_int or root_page.value is None):
            raise CorruptPage(f"Schema is corrupted, invalid root page {root_page}")

        type_name = _text(object_type)
        try:
            schema_object_type = SchemaObjectType(type_name)
        except ValueError:
            raise CorruptPage(
                f"Schema is corrupted, unknown object type {type_name!r}"
            ) from None

        return SchemaObject(
            type=schema_object_type,
            name=_text(object_name),
            tbl_name=_text(table_name),
            # INFO: Views, triggers and virtual tables store 0 here
            root_page=root_page.value or None,
            sql=_optional_text(sql),
        )


class SchemaCatalog:
    """Objects described by the schema table, with a case-sensitive
    table name to root page lookup.

    Reserved ``sqlite_*`` tables stay in the lookup and are only hidden from
    :meth:`table_names`.
    """

    def __init__(self, objects: Iterable[SchemaObject]) -> None:
        self.objects: Final[tuple[SchemaObject, ...]] = tuple(objects)
        self._table_root_pages: Final[dict[str, int]] = {
            schema_object.name: schema_object.root_page
            for schema_object in self.objects
            if schema_object.is_table and schema_object.root_page is not None
        }

    @staticmethod
    def from_cells(cells: Iterable[TableBTreeLeafCell]) -> "SchemaCatalog":
        return SchemaCatalog(SchemaObject.from_record(cell.record) for cell in cells)

    @property
    def tables(self) -> list[SchemaObject]:
        return [schema_object for schema_object in self.objects if schema_object.is_table]

    @property
    def indexes(self) -> list[SchemaObject]:
        return [schema_object for schema_object in self.objects if schema_object.is_index]

    def table_names(self) -> list[str]:
        return sorted(table.name for table in self.tables if not table.is_reserved)

    def root_page(self, table_name: str) -> int:
        try:
            return self._table_root_pages[table_name]
        except KeyError:
            raise NoSuchTable(table_name) from None

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._table_root_pages
