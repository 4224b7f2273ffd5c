"""SQL check tool exposed to tool-calling agents.

The agent submits a query; the tool answers with a JSON-able payload the
transport can return as-is. Approved queries are handed back unchanged
for the caller's own read-only executor.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlgate.config import Settings
from sqlgate.sql.errors import ForbiddenQueryError
from sqlgate.sql.guard import QueryValidator

logger = logging.getLogger(__name__)

# Module-level validator, built from Settings on first use unless set explicitly
_validator: QueryValidator | None = None


def set_validator(validator: QueryValidator | None) -> None:
    """Wire the shared QueryValidator instance (None resets to settings)."""
    global _validator
    _validator = validator


def _get_validator() -> QueryValidator:
    global _validator
    if _validator is None:
        _validator = QueryValidator.from_settings(Settings())
        logger.debug(
            "QueryValidator built from settings (whitelist=%s, %d patterns)",
            _validator.whitelist_enabled,
            len(_validator.patterns),
        )
    return _validator


def check_sql_query(sql: str) -> dict[str, Any]:
    """Check whether a read-only SQL query may be executed.

    Only single SELECT statements over one table are accepted:
    - No INSERT, UPDATE, DELETE, DROP, CREATE, ALTER, GRANT, ...
    - No UNION, subqueries or multiple statements
    - No SLEEP/BENCHMARK, hex literals, CHAR() or system catalogs
    - Supported shape: SELECT columns FROM table [WHERE ...] [ORDER BY ...] [LIMIT n]

    Args:
        sql: The SQL SELECT query to check.

    Returns:
        Dict with keys: approved, query, error, kind.
        If approved is False, error explains what to change.
    """
    if not sql or not str(sql).strip():
        return {"approved": False, "query": sql or "", "error": "Query is required", "kind": None}

    validator = _get_validator()
    try:
        validator.validate(sql)
    except ForbiddenQueryError as e:
        logger.info("Rejected query (%s): %s", e.kind.value, e.reason)
        return {
            "approved": False,
            "query": e.query,
            "error": e.reason,
            "kind": e.kind.value,
        }

    logger.debug("Approved query: %.200s", sql)
    return {"approved": True, "query": sql, "error": None, "kind": None}
