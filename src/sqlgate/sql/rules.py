"""Keyword tables and default whitelist patterns for the SQL guard.

Keywords are compared against upper-cased word tokens. The default
whitelist is written against normalised text (single spaces, no comments,
no trailing semicolon), so separators are literal spaces, every repetition
starts with a fixed delimiter and a failed match unwinds in linear time.
"""

from __future__ import annotations

import re

# Data modification, DDL, permissions and server administration
STATEMENT_KEYWORDS: frozenset[str] = frozenset(
    {
        "INSERT",
        "UPDATE",
        "DELETE",
        "DROP",
        "TRUNCATE",
        "ALTER",
        "CREATE",
        "RENAME",
        "MERGE",
        "GRANT",
        "REVOKE",
        "FLUSH",
        "KILL",
        "RESET",
        "PURGE",
        "EXECUTE",
        "EXEC",
        "PREPARE",
        "DEALLOCATE",
        "CALL",
        "SET",
        "INTO",
        "OUTFILE",
        "DUMPFILE",
        "LOAD",
        "LOAD_FILE",
        "ATTACH",
        "DETACH",
        "PRAGMA",
        "HANDLER",
        "LOCK",
        "UNLOCK",
    }
)

# UNION also covers UNION ALL
SET_OPERATORS: frozenset[str] = frozenset({"UNION", "INTERSECT", "EXCEPT"})

TIMING_FUNCTIONS: frozenset[str] = frozenset({"SLEEP", "BENCHMARK", "PG_SLEEP", "WAITFOR"})

# Blocked only when called: CHAR(65, 66) builds strings byte by byte
ENCODING_FUNCTIONS: frozenset[str] = frozenset({"CHAR", "CHR"})

# Blocked as statements, allowed as string functions: REPLACE(col, 'a', 'b')
FUNCTION_ONLY_KEYWORDS: frozenset[str] = frozenset({"REPLACE"})

SYSTEM_CATALOGS: frozenset[str] = frozenset(
    {
        "INFORMATION_SCHEMA",
        "PERFORMANCE_SCHEMA",
        "PG_CATALOG",
        "SQLITE_MASTER",
        "SQLITE_SCHEMA",
        "SQLITE_TEMP_MASTER",
    }
)

# Blocked when used as a schema qualifier: mysql.user, sys.x
SYSTEM_SCHEMAS: frozenset[str] = frozenset({"MYSQL", "SYS"})

ALWAYS_BLOCKED: frozenset[str] = STATEMENT_KEYWORDS | SET_OPERATORS | TIMING_FUNCTIONS | SYSTEM_CATALOGS

# Prefixes of encoded numeric literals: 0x41, 0b0101
ENCODED_NUMBER_PREFIXES = ("0X", "0B")

# Prefixes of encoded string literals: X'41', B'0101'
ENCODED_STRING_PREFIXES: frozenset[str] = frozenset({"X", "B"})


# --- Default whitelist building blocks ---

# Identifiers never start with a digit, so value alternatives stay disjoint
_IDENT = r"`?[^\W\d]\w*`?"
_COLUMN = rf"{_IDENT}(?:\.{_IDENT})?"
_STRING = r"'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.|\"\")*\""
_VALUE = rf"(?:-?\d+(?:\.\d+)?|{_STRING}|{_COLUMN})"
_OPERATOR = r"(?:=|!=|<>|<=|>=|<|>)"

_CONDITION = (
    "(?:"
    rf"{_COLUMN} ?{_OPERATOR} ?{_VALUE}"
    rf"|{_COLUMN} (?:NOT )?LIKE {_VALUE}"
    rf"|{_COLUMN} IS (?:NOT )?NULL"
    rf"|{_COLUMN} (?:NOT )?IN ?\( ?{_VALUE}(?: ?, ?{_VALUE})* ?\)"
    rf"|{_COLUMN} (?:NOT )?BETWEEN {_VALUE} AND {_VALUE}"
    ")"
)

_WHERE = rf"(?: WHERE {_CONDITION}(?: (?:AND|OR) {_CONDITION})*)?"
_DIRECTION = r"(?: (?:ASC|DESC))?"
_ORDER_BY = rf"(?: ORDER BY {_COLUMN}{_DIRECTION}(?: ?, ?{_COLUMN}{_DIRECTION})*)?"
_LIMIT = r"(?: LIMIT \d+(?:(?: ?, ?| OFFSET )\d+)?)?"
_SELECT_ITEM = rf"{_COLUMN}(?: AS {_IDENT})?"
_COLUMNS = rf"(?:\*|{_SELECT_ITEM}(?: ?, ?{_SELECT_ITEM})*)"

DEFAULT_WHITELIST: tuple[str, ...] = (
    # SELECT * / column list from a single table
    rf"SELECT (?:DISTINCT )?{_COLUMNS} FROM {_IDENT}{_WHERE}{_ORDER_BY}{_LIMIT}",
    # COUNT(*) / COUNT(col) from a single table
    rf"SELECT COUNT ?\( ?(?:\*|{_COLUMN}) ?\)(?: AS {_IDENT})? FROM {_IDENT}{_WHERE}",
)


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a whitelist pattern; strings are matched case-insensitively.

    Any object with a ``fullmatch`` method is accepted as already compiled.

    Raises:
        TypeError: If ``pattern`` is neither a string nor a compiled pattern.
        re.error: If a string pattern is not a valid regular expression.
    """
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    if callable(getattr(pattern, "fullmatch", None)):
        return pattern
    raise TypeError(
        f"Whitelist pattern must be a string or compiled pattern, got {type(pattern).__name__}"
    )


DEFAULT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(compile_pattern(p) for p in DEFAULT_WHITELIST)
