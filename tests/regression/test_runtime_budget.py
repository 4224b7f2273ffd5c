"""Regression test: validation stays within a time budget on hostile input.

A slow gate is itself a denial-of-service vector, so crafted inputs that
trip backtracking regexes or quadratic scans must still finish quickly.
"""

import time

import pytest

from sqlgate.sql.guard import QueryValidator


pytestmark = [pytest.mark.regression]

_BUDGET_S = 1.0


def _timed(validator: QueryValidator, query: str) -> tuple[bool, float]:
    start = time.perf_counter()
    ok = validator.is_valid(query)
    return ok, time.perf_counter() - start


class TestRuntimeBudget:
    def test_many_conditions_with_failing_tail(self, validator):
        conditions = " AND ".join(f"c{i} = {i}" for i in range(2000))
        ok, elapsed = _timed(validator, f"SELECT * FROM posts WHERE {conditions} GROUP BY x")
        assert ok is False
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    def test_many_conditions_accepted(self, validator):
        conditions = " OR ".join(f"c{i} = 'v{i}'" for i in range(2000))
        ok, elapsed = _timed(validator, f"SELECT * FROM posts WHERE {conditions}")
        assert ok is True
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    def test_long_in_list_with_failing_tail(self, validator):
        values = ", ".join(str(i) for i in range(5000))
        ok, elapsed = _timed(validator, f"SELECT * FROM posts WHERE id IN ({values}) GROUP BY x")
        assert ok is False
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    def test_escaped_quotes_with_failing_tail(self, validator):
        literal = "'" + "''" * 5000 + "'"
        ok, elapsed = _timed(validator, f"SELECT * FROM posts WHERE title = {literal} GROUP BY x")
        assert ok is False
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    def test_nested_parentheses(self, validator):
        ok, elapsed = _timed(
            validator, "SELECT * FROM posts WHERE " + "(" * 10000 + "1" + ")" * 10000
        )
        assert ok is False
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    @pytest.mark.parametrize(
        "noise",
        ["/* " * 20000, "/**/" * 20000, "-- x\n" * 20000, "5--" * 20000, "'" * 20001, "`" * 20001],
    )
    def test_comment_and_quote_noise(self, permissive, noise):
        ok, elapsed = _timed(permissive, "SELECT * FROM posts " + noise)
        assert isinstance(ok, bool)
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"

    def test_large_column_list_without_whitelist(self, permissive):
        ok, elapsed = _timed(permissive, "SELECT " + "a, " * 30000 + "b FROM posts")
        assert ok is True
        assert elapsed < _BUDGET_S, f"Validation took {elapsed:.2f}s"
