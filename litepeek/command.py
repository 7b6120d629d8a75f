from dataclasses import dataclass
from typing import cast

import sqlparse
from sqlparse.exceptions import SQLParseError
from sqlparse.sql import Function, Identifier, Token
from sqlparse.tokens import DML, Keyword, Name, Punctuation, String
from sqlparse.utils import remove_quotes

from .sqlite import UnsupportedCommand


@dataclass(frozen=True)
class InfoCommand:
    pass


@dataclass(frozen=True)
class ListTablesCommand:
    pass


@dataclass(frozen=True)
class CountRowsCommand:
    table_name: str


Command = InfoCommand | ListTablesCommand | CountRowsCommand

DOT_COMMANDS: dict[str, Command] = {
    ".dbinfo": InfoCommand(),
    ".tables": ListTablesCommand(),
}


def resolve_command(text: str) -> Command:
    command = text.strip()
    if command.startswith("."):
        try:
            return DOT_COMMANDS[command]
        except KeyError:
            raise UnsupportedCommand(f"Invalid command: {command}") from None

    return CountRowsCommand(table_name=_count_query_table(command))


def _significant_tokens(tokens: list[Token]) -> list[Token]:
    return [
        token for token in tokens if not token.is_whitespace and not token.is_newline
    ]


def _count_query_table(sql: str) -> str:
    """Table name of a ``SELECT COUNT(*) FROM <table>`` query."""
    try:
        statements = sqlparse.parse(sql)
    except SQLParseError as error:
        raise UnsupportedCommand(f"Unable to parse {sql!r}: {error}") from error

    if len(statements) != 1:
        raise UnsupportedCommand(f"Expected exactly one statement: {sql}")

    sql_tokens = _significant_tokens(cast(list[Token], statements[0].tokens))
    if sql_tokens and sql_tokens[-1].match(Punctuation, ";"):
        sql_tokens.pop()

    if len(sql_tokens) != 4:
        raise UnsupportedCommand(f"Only SELECT COUNT(*) FROM <table> is supported: {sql}")

    select_token, count_token, from_token, table_token = sql_tokens

    if not select_token.match(DML, "SELECT"):
        raise UnsupportedCommand("Only SELECT statements allowed")

    if not (
        isinstance(count_token, Function)
        and "".join(count_token.value.split()).upper() == "COUNT(*)"
    ):
        raise UnsupportedCommand(f"Only COUNT(*) can be selected, got {count_token}")

    if not from_token.match(Keyword, "FROM"):
        raise UnsupportedCommand("Missing FROM statement")

    return _table_name(table_token)


def _table_name(token: Token) -> str:
    if isinstance(token, Identifier):
        if len(_significant_tokens(cast(list[Token], token.tokens))) == 1:
            return cast(str, token.get_real_name())
    # Unquoted names such as data or user come through as plain keywords
    elif token.ttype is Keyword or token.ttype is Name or token.ttype is String.Symbol:
        return cast(str, remove_quotes(token.value))

    raise UnsupportedCommand(f"Table name is required, got {token}")
