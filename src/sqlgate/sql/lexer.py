"""Linear, quote-aware splitting of SQL text into segments.

The guard never builds a parse tree. It only needs to know which parts of
the text are comments, which are quoted literals and which are plain code,
so comment markers inside strings are never treated as comments and text
that looks like a comment but executes on MySQL/MariaDB is kept apart.

Every loop advances the cursor; runtime is linear in the input length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_QUOTES = frozenset("'\"`")

# /*!50000 ... */ (MySQL) and /*M!100100 ... */ (MariaDB)
_EXECUTABLE_OPENERS = ("/*!", "/*M!")

_VERSION_PREFIX_RE = re.compile(r"\d*")


class SegmentKind(str, Enum):
    CODE = "code"
    QUOTED = "quoted"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    EXECUTABLE_COMMENT = "executable_comment"


@dataclass(frozen=True)
class Segment:
    """A contiguous slice of the query.

    For executable comments ``body`` is the text the database would run
    (delimiters and version number removed); for other kinds it is unused.
    """

    kind: SegmentKind
    text: str
    body: str = ""
    terminated: bool = True

    @property
    def is_comment(self) -> bool:
        return self.kind in (
            SegmentKind.LINE_COMMENT,
            SegmentKind.BLOCK_COMMENT,
            SegmentKind.EXECUTABLE_COMMENT,
        )


def _quoted_end(sql: str, start: int, quote: str) -> tuple[int, bool]:
    """Return ``(end, terminated)`` for the literal opened at ``start``.

    Doubled quotes are escapes in every dialect; backslash escapes are
    honoured for string literals (MySQL) but not for backtick identifiers.
    An unterminated literal runs to the end of the input.
    """
    n = len(sql)
    i = start + 1
    while i < n:
        ch = sql[i]
        if ch == "\\" and quote != "`":
            i += 2
            continue
        if ch == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1, True
        i += 1
    return n, False


def _is_line_comment(sql: str, i: int) -> bool:
    # "--" and "#" both run to end of line; the guard also scans the raw text
    return sql[i] == "#" or sql.startswith("--", i)


def _executable_opener(sql: str, i: int) -> str | None:
    for opener in _EXECUTABLE_OPENERS:
        if sql.startswith(opener, i):
            return opener
    return None


def split_segments(sql: str) -> list[Segment]:
    """Split ``sql`` into code, quoted and comment segments.

    Concatenating ``segment.text`` for all segments yields ``sql`` exactly.
    """
    segments: list[Segment] = []
    n = len(sql)
    code_start = 0
    i = 0

    def flush_code(end: int) -> None:
        if end > code_start:
            segments.append(Segment(SegmentKind.CODE, sql[code_start:end]))

    while i < n:
        ch = sql[i]

        if ch in _QUOTES:
            flush_code(i)
            end, terminated = _quoted_end(sql, i, ch)
            segments.append(Segment(SegmentKind.QUOTED, sql[i:end], terminated=terminated))
            i = code_start = end
            continue

        if ch in "-#" and _is_line_comment(sql, i):
            flush_code(i)
            end = sql.find("\n", i)
            end = n if end == -1 else end
            segments.append(Segment(SegmentKind.LINE_COMMENT, sql[i:end]))
            i = code_start = end
            continue

        if ch == "/" and sql.startswith("/*", i):
            flush_code(i)
            close = sql.find("*/", i + 2)
            terminated = close != -1
            end = close + 2 if terminated else n
            opener = _executable_opener(sql, i)
            if opener is not None:
                inner = sql[i + len(opener) : close if terminated else n]
                body = inner[_VERSION_PREFIX_RE.match(inner).end() :]
                segments.append(
                    Segment(
                        SegmentKind.EXECUTABLE_COMMENT,
                        sql[i:end],
                        body=body,
                        terminated=terminated,
                    )
                )
            else:
                segments.append(
                    Segment(SegmentKind.BLOCK_COMMENT, sql[i:end], terminated=terminated)
                )
            i = code_start = end
            continue

        i += 1

    flush_code(n)
    return segments


def strip_comments(segments: list[Segment], *, inline_executable: bool = False) -> str:
    """Rebuild the query text with each comment replaced by one space.

    With ``inline_executable`` the bodies of executable comments are kept,
    producing the text a MySQL-family server would actually run.
    """
    parts: list[str] = []
    for segment in segments:
        if segment.kind is SegmentKind.EXECUTABLE_COMMENT and inline_executable:
            parts.append(f" {segment.body} ")
        elif segment.is_comment:
            parts.append(" ")
        else:
            parts.append(segment.text)
    return "".join(parts)
