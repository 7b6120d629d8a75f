class DatabaseError(ValueError):
    pass


class InvalidDatabaseHeader(DatabaseError):
    pass


class InvalidPageType(DatabaseError):
    def __init__(self, byte: int) -> None:
        super().__init__(f"Invalid page type byte: {byte:#04x}")
        self.byte = byte


class InvalidSerialType(DatabaseError):
    def __init__(self, code: int) -> None:
        super().__init__(f"Invalid column serial type: {code}")
        self.code = code


class TruncatedVarint(DatabaseError):
    pass


class RecordHeaderLengthMismatch(DatabaseError):
    pass


class InvalidUtf8(DatabaseError):
    pass


class CorruptPage(DatabaseError):
    pass


class PayloadOverflow(DatabaseError):
    pass


class PayloadLengthMismatch(DatabaseError):
    pass


class NoSuchTable(DatabaseError):
    def __init__(self, table_name: str) -> None:
        super().__init__(f"no such table: {table_name}")
        self.table_name = table_name


class UnsupportedCommand(DatabaseError):
    pass
