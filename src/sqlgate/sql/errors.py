"""The single rejection error raised by the SQL guard."""

from __future__ import annotations

from sqlgate.models import Rejection, RejectionKind


class ForbiddenQueryError(Exception):
    """Raised when a query fails safety validation.

    Attributes:
        query: The original query text exactly as submitted.
        reason: Human-readable explanation, safe to show to the agent.
        kind: The rejecting pipeline stage.
    """

    def __init__(self, query: str, reason: str, kind: RejectionKind):
        super().__init__(reason)
        self.query = query
        self.reason = reason
        self.kind = kind

    @classmethod
    def disallowed_keyword(cls, query: str, keyword: str) -> ForbiddenQueryError:
        """A blocked keyword or construct was found in the query."""
        return cls(
            query,
            f"Disallowed SQL keyword '{keyword}' detected: "
            "only read-only SELECT queries are allowed",
            RejectionKind.DISALLOWED_KEYWORD,
        )

    @classmethod
    def not_whitelisted(cls, query: str) -> ForbiddenQueryError:
        """No configured whitelist pattern matched."""
        return cls(
            query,
            "Query does not match any allowed pattern",
            RejectionKind.NOT_WHITELISTED,
        )

    @classmethod
    def invalid_structure(cls, query: str, detail: str) -> ForbiddenQueryError:
        return cls(
            query,
            f"Invalid query structure: {detail}",
            RejectionKind.INVALID_STRUCTURE,
        )

    def to_rejection(self) -> Rejection:
        """Return the rejection as a serialisable model."""
        return Rejection(query=self.query, reason=self.reason, kind=self.kind)

    def __repr__(self) -> str:
        return f"ForbiddenQueryError(kind={self.kind.value!r}, reason={self.reason!r})"
