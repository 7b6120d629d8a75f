from .database import SQLiteDatabase, SQLiteHeader
from .errors import (
    CorruptPage,
    DatabaseError,
    InvalidDatabaseHeader,
    InvalidPageType,
    InvalidSerialType,
    InvalidUtf8,
    NoSuchTable,
    PayloadLengthMismatch,
    PayloadOverflow,
    RecordHeaderLengthMismatch,
    TruncatedVarint,
    UnsupportedCommand,
)
from .page import BTreePage, PageHeader, PageType
from .record import ColumnValue, Record, SerialType, StorageClass, parse_record
from .schema import SchemaCatalog, SchemaObject, SchemaObjectType
from .utils import LOGGER_NAME, decode_varint, encode_varint

__all__ = [
    "BTreePage",
    "ColumnValue",
    "CorruptPage",
    "DatabaseError",
    "InvalidDatabaseHeader",
    "InvalidPageType",
    "InvalidSerialType",
    "InvalidUtf8",
    "LOGGER_NAME",
    "NoSuchTable",
    "PageHeader",
    "PageType",
    "PayloadLengthMismatch",
    "PayloadOverflow",
    "Record",
    "RecordHeaderLengthMismatch",
    "SQLiteDatabase",
    "SQLiteHeader",
    "SchemaCatalog",
    "SchemaObject",
    "SchemaObjectType",
    "SerialType",
    "StorageClass",
    "TruncatedVarint",
    "UnsupportedCommand",
    "decode_varint",
    "encode_varint",
    "parse_record",
]
