"""Pydantic models for rejection results returned to callers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RejectionKind(str, Enum):
    """Pipeline stage that rejected a query."""

    INVALID_STRUCTURE = "invalid_structure"
    DISALLOWED_KEYWORD = "disallowed_keyword"
    NOT_WHITELISTED = "not_whitelisted"


class Rejection(BaseModel):
    """Structured rejection carried back to the tool-calling layer."""

    query: str = Field(description="The original, unmodified query text")
    reason: str = Field(description="Human-readable explanation")
    kind: RejectionKind


class CheckResult(BaseModel):
    """Outcome of a non-raising validation."""

    approved: bool
    rejection: Rejection | None = None

    @property
    def reason(self) -> str | None:
        return self.rejection.reason if self.rejection else None
