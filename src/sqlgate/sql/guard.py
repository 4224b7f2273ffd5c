"""SQL safety gate for agent-submitted queries.

Validates that queries are:
- Single SELECT statements only (no stacked statements, no subqueries)
- Free of DDL, DML, permission and administration keywords
- Free of UNION, time-based functions, encoded literals and catalog access
- Shaped like one of the whitelisted SELECT forms (when enabled)

Rejections raise :class:`ForbiddenQueryError`; approval returns silently.
The gate only reads the text. It never rewrites or executes a query.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlgate.models import CheckResult
from sqlgate.sql import rules
from sqlgate.sql.errors import ForbiddenQueryError
from sqlgate.sql.lexer import Segment, SegmentKind, split_segments, strip_comments

if TYPE_CHECKING:
    from sqlgate.config import Settings

_WORD_RE = re.compile(r"\w+")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_SELECT_RE = re.compile(r"SELECT(?!\w)", re.IGNORECASE)

# A semicolon with anything but whitespace after it, comments included
_SEPARATOR_RE = re.compile(r";\s*\S")

# Characters skipped when looking at what follows a word: quoting of the
# word itself and the single space left by normalisation.
_SKIPPABLE = frozenset(" `\"")


def _next_char(text: str, pos: int) -> str:
    """Return the first character at or after ``pos`` that is not skippable."""
    n = len(text)
    while pos < n and text[pos] in _SKIPPABLE:
        pos += 1
    return text[pos] if pos < n else ""


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_trailing_semicolon(text: str) -> str:
    """Remove exactly one trailing semicolon (text is already trimmed)."""
    if text.endswith(";"):
        return text[:-1].rstrip()
    return text


class QueryValidator:
    """Read-only SQL gate with a blacklist scan and a deny-by-default whitelist.

    Pipeline (first failure wins):
    1. Comment stripping (executable ``/*! */`` bodies are scanned first)
    2. Whitespace normalisation, one trailing semicolon tolerated
    3. Must begin with SELECT
    4. No stacked statements
    5. Blocked keyword scan
    6. No nested SELECT
    7. Whitelist match (if enabled)

    Steps 4-6 also run over the raw text. Comment syntax differs between
    dialects, so nothing a comment contains may carry a separator, a
    blocked keyword or a second SELECT.

    Instances are safe to share between threads. ``add_whitelist_pattern``
    swaps in a new immutable tuple under a lock, so a concurrent
    ``validate`` sees either the old or the new pattern set.
    """

    def __init__(
        self,
        patterns: Iterable[str | re.Pattern[str]] | None = None,
        whitelist_enabled: bool = True,
        *,
        blocked_tables: Iterable[str] = (),
        max_length: int | None = None,
    ):
        if patterns is None:
            self._patterns: tuple[re.Pattern[str], ...] = rules.DEFAULT_PATTERNS
        else:
            self._patterns = tuple(rules.compile_pattern(p) for p in patterns)
        self._whitelist_enabled = whitelist_enabled
        self._blocked_tables = frozenset(t.upper() for t in blocked_tables)
        self._max_length = max_length
        self._patterns_lock = threading.Lock()

    # --- Construction helpers ---

    @classmethod
    def builder(cls) -> QueryValidatorBuilder:
        return QueryValidatorBuilder()

    @classmethod
    def from_settings(cls, settings: Settings) -> QueryValidator:
        """Build from settings: default patterns plus any configured extras."""
        builder = (
            cls.builder()
            .whitelist(settings.whitelist_enabled)
            .block_tables(settings.blocked_tables)
            .max_length(settings.max_query_length)
        )
        for pattern in settings.whitelist_patterns:
            builder.add_pattern(pattern)
        return builder.build()

    @property
    def patterns(self) -> tuple[re.Pattern[str], ...]:
        return self._patterns

    @property
    def whitelist_enabled(self) -> bool:
        return self._whitelist_enabled

    def add_whitelist_pattern(self, pattern: str | re.Pattern[str]) -> QueryValidator:
        """Append one pattern to this validator's whitelist."""
        compiled = rules.compile_pattern(pattern)
        with self._patterns_lock:
            self._patterns = self._patterns + (compiled,)
        return self

    # --- Public API ---

    def validate(self, query: str | bytes) -> None:
        """Validate a query for safe read-only execution.

        Args:
            query: The SQL text submitted by the agent, as ``str`` or
                UTF-8 ``bytes``. Anything else is rejected, not raised.

        Raises:
            ForbiddenQueryError: If the query fails any check.
        """
        text = self._coerce(query)
        original = text

        # 1. Comments, executable comments first
        segments = split_segments(text)
        self._check_comments(original, segments)

        # 2. Normalise
        normalized = _normalize(strip_comments(segments))

        # 3. Structure
        if not _LEADING_SELECT_RE.match(normalized):
            raise ForbiddenQueryError.invalid_structure(original, "Query must begin with SELECT")

        # 4. Stacked statements
        body = _strip_trailing_semicolon(normalized)
        if ";" in body or _SEPARATOR_RE.search(original):
            raise ForbiddenQueryError.invalid_structure(
                original, "Multiple statements detected; only a single trailing semicolon is allowed"
            )

        # 5. Blacklist, stripped text first, then the raw text
        keyword = self._find_blocked_token(body) or self._find_blocked_token(original)
        if keyword is not None:
            raise ForbiddenQueryError.disallowed_keyword(original, keyword)

        # 6. Subqueries (removing comments never joins words, so the raw
        # count covers the stripped one)
        if self._count_select_tokens(original) > 1:
            raise ForbiddenQueryError.invalid_structure(
                original, "Nested SELECT statements (subqueries) are not allowed"
            )

        # 7. Whitelist
        if self._whitelist_enabled:
            executed = _strip_trailing_semicolon(
                _normalize(strip_comments(segments, inline_executable=True))
            )
            if not self._matches_whitelist(executed):
                raise ForbiddenQueryError.not_whitelisted(original)

    def is_valid(self, query: str | bytes) -> bool:
        """Return True if the query passes validation. Never raises."""
        try:
            self.validate(query)
        except ForbiddenQueryError:
            return False
        return True

    def check(self, query: str | bytes) -> CheckResult:
        """Validate without raising, returning the rejection detail if any."""
        try:
            self.validate(query)
        except ForbiddenQueryError as e:
            return CheckResult(approved=False, rejection=e.to_rejection())
        return CheckResult(approved=True)

    # --- Pipeline steps ---

    def _coerce(self, query: object) -> str:
        """Turn the raw input into text or reject it as malformed."""
        if isinstance(query, bytes):
            try:
                query = query.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ForbiddenQueryError.invalid_structure(
                    query.decode("utf-8", errors="replace"), "Query is not valid UTF-8"
                ) from e
        if not isinstance(query, str):
            raise ForbiddenQueryError.invalid_structure(
                "" if query is None else repr(query), "Query must be a string"
            )
        if self._max_length is not None and len(query) > self._max_length:
            raise ForbiddenQueryError.invalid_structure(
                query, f"Query exceeds maximum length of {self._max_length} characters"
            )
        return query

    def _check_comments(self, original: str, segments: list[Segment]) -> None:
        """Reject unterminated comments and dangerous executable comment bodies.

        MySQL-family servers run the body of ``/*! ... */`` as SQL, so each
        body is held to the same rules as the query itself before the
        comment is allowed to disappear.
        """
        for segment in segments:
            if segment.kind is SegmentKind.EXECUTABLE_COMMENT:
                body = segment.body
                keyword = self._find_blocked_token(body)
                if keyword is not None:
                    raise ForbiddenQueryError.disallowed_keyword(original, keyword)
                if self._count_select_tokens(body):
                    raise ForbiddenQueryError.disallowed_keyword(original, "SELECT")
                if ";" in body:
                    raise ForbiddenQueryError.invalid_structure(
                        original, "Statement separator inside executable comment"
                    )
            if segment.is_comment and not segment.terminated:
                raise ForbiddenQueryError.invalid_structure(original, "Unterminated block comment")

    def _find_blocked_token(self, text: str) -> str | None:
        """Return the first blocked token in ``text``, upper-cased, or None.

        Quoted text is scanned too: a server with different escaping rules
        may treat part of a "string" as code.
        """
        segments = split_segments(text)
        offset = 0
        for index, segment in enumerate(segments):
            for match in _WORD_RE.finditer(segment.text):
                word = match.group(0).upper()
                end = offset + match.end()
                blocked = self._blocked_word(word, text, end)
                if blocked is not None:
                    return blocked
                # X'41' / B'0101': prefix word glued to the opening quote
                if (
                    segment.kind is SegmentKind.CODE
                    and word in rules.ENCODED_STRING_PREFIXES
                    and match.end() == len(segment.text)
                    and self._opens_string(segments, index)
                ):
                    return f"{word}'...'"
            offset += len(segment.text)
        return None

    def _blocked_word(self, word: str, text: str, end: int) -> str | None:
        if word in rules.ALWAYS_BLOCKED or word in self._blocked_tables:
            return word
        if word.startswith(rules.ENCODED_NUMBER_PREFIXES):
            return word
        follower = _next_char(text, end)
        if word in rules.ENCODING_FUNCTIONS and follower == "(":
            return f"{word}()"
        if word in rules.FUNCTION_ONLY_KEYWORDS and follower != "(":
            return word
        if word in rules.SYSTEM_SCHEMAS and follower == ".":
            return word
        return None

    @staticmethod
    def _opens_string(segments: list[Segment], index: int) -> bool:
        following = segments[index + 1] if index + 1 < len(segments) else None
        return (
            following is not None
            and following.kind is SegmentKind.QUOTED
            and following.text.startswith("'")
        )

    @staticmethod
    def _count_select_tokens(text: str) -> int:
        return sum(1 for m in _WORD_RE.finditer(text) if m.group(0).upper() == "SELECT")

    def _matches_whitelist(self, text: str) -> bool:
        patterns = self._patterns
        return any(pattern.fullmatch(text) for pattern in patterns)


class QueryValidatorBuilder:
    """Fluent assembly of a :class:`QueryValidator` at setup time."""

    def __init__(self) -> None:
        self._patterns: list[str | re.Pattern[str]] | None = None
        self._extra: list[str | re.Pattern[str]] = []
        self._whitelist_enabled = True
        self._blocked_tables: list[str] = []
        self._max_length: int | None = None

    def with_patterns(self, patterns: Iterable[str | re.Pattern[str]]) -> QueryValidatorBuilder:
        """Replace the default patterns (an empty iterable allows nothing)."""
        self._patterns = list(patterns)
        return self

    def add_pattern(self, pattern: str | re.Pattern[str]) -> QueryValidatorBuilder:
        self._extra.append(pattern)
        return self

    def whitelist(self, enabled: bool) -> QueryValidatorBuilder:
        self._whitelist_enabled = enabled
        return self

    def block_tables(self, tables: Iterable[str]) -> QueryValidatorBuilder:
        self._blocked_tables.extend(tables)
        return self

    def max_length(self, limit: int | None) -> QueryValidatorBuilder:
        self._max_length = limit
        return self

    def build(self) -> QueryValidator:
        base = rules.DEFAULT_WHITELIST if self._patterns is None else self._patterns
        return QueryValidator(
            [*base, *self._extra],
            self._whitelist_enabled,
            blocked_tables=self._blocked_tables,
            max_length=self._max_length,
        )
