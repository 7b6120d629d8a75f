import argparse
import logging
import os
import sys
from collections.abc import Sequence
from logging import getLogger

from .command import CountRowsCommand, InfoCommand, ListTablesCommand, resolve_command
from .sqlite import LOGGER_NAME, DatabaseError, SQLiteDatabase

LOG_LEVEL_ENVIRONMENT_VARIABLE = "LITEPEEK_LOG_LEVEL"

logger = getLogger(LOGGER_NAME)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litepeek",
        description="Inspect a SQLite database file without a SQL engine",
    )
    parser.add_argument("database_file_path", help="Path to the database file")
    parser.add_argument(
        "command",
        help='One of .dbinfo, .tables or "SELECT COUNT(*) FROM <table>"',
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENVIRONMENT_VARIABLE, "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help=f"Logging level (default: ${LOG_LEVEL_ENVIRONMENT_VARIABLE} or WARNING)",
    )
    return parser


def run(database_file_path: str, command_text: str) -> None:
    command = resolve_command(command_text)

    with SQLiteDatabase(database_file_path) as database:
        match command:
            case InfoCommand():
                schema = database.schema()

                print(f"database page size: {database.header().page_size}")
                print(f"number of tables: {len(schema.tables)}")
                print(f"number of indexes: {len(schema.indexes)}")

            case ListTablesCommand():
                print(" ".join(database.schema().table_names()))

            case CountRowsCommand(table_name=table_name):
                print(database.count_rows(table_name))


def main(argv: Sequence[str] | None = None) -> int:
    arguments = build_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=arguments.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(arguments.database_file_path, arguments.command)
    except (DatabaseError, OSError) as error:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {error}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
