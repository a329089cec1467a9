# =============================================================================
# Table Operations — filter → group → sort → limit over row records
# =============================================================================
#
# Executes a TablePlan against rows loaded from a spreadsheet. Pure and
# deterministic: the same (rows, plan) always yields the same output,
# in the same order.
#
# PIPELINE:
#   1. filter  — clauses applied in order; a row must pass every clause
#   2. group   — rows partitioned by a column into
#                {<column>: key, "count": n, "items": [...]} records
#   3. sort    — stable sort by a column, optional descending
#   4. limit   — keep the first N records
#
# COMPARISON RULES:
#   ==, !=    numeric when either side is a real number, else string equality
#   >, <      both sides parsed as leading numbers ("12%" → 12.0);
#             a side that is not a number makes the comparison false
#   contains  case-insensitive substring on string-coerced values
#   other     unknown operators keep the row
#   sort      numeric when both sides are numeric-like, else lexicographic;
#             None on either side compares equal
#   groupBy   rows grouped by the text of the cell (200 and "200" share a
#             group, None groups with ""); the record keeps the first
#             row's original value
#
# A column missing from a row reads as None, so a bad column name yields
# no matches instead of an error.
# =============================================================================

from __future__ import annotations

import math
import re
from functools import cmp_to_key
from typing import Any

from site_analyst.models.plans import FilterClause, TablePlan

Row = dict[str, Any]

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def execute_operations(rows: list[Row], plan: TablePlan) -> dict[str, Any]:
    """
    Run the plan over `rows` and return `{plan, resultCount, results}`.

    The plan is echoed back (JSON-shaped) so callers can see what ran.
    """
    result: list[Row] = list(rows)

    for clause in plan.filters:
        result = [row for row in result if _matches(row, clause)]

    if plan.group_by:
        result = _group(result, plan.group_by)

    if plan.sort_by:
        column = plan.sort_by.column
        sign = -1 if plan.sort_by.desc else 1
        result = sorted(
            result,
            key=cmp_to_key(lambda a, b: sign * _compare(a.get(column), b.get(column))),
        )

    if plan.limit:
        result = result[: plan.limit]

    return {
        "plan": plan.model_dump(by_alias=True),
        "resultCount": len(result),
        "results": result,
    }


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _matches(row: Row, clause: FilterClause) -> bool:
    value = row.get(clause.column)
    operator = clause.operator

    if operator == "==":
        return _loosely_equal(value, clause.value)
    if operator == "!=":
        return not _loosely_equal(value, clause.value)
    if operator in (">", "<"):
        left, right = _parse_number(value), _parse_number(clause.value)
        if math.isnan(left) or math.isnan(right):
            return False
        return left > right if operator == ">" else left < right
    if operator == "contains":
        return _as_text(clause.value).lower() in _as_text(value).lower()

    return True


def _group(rows: list[Row], column: str) -> list[Row]:
    groups: dict[str, list[Row]] = {}
    for row in rows:
        groups.setdefault(_as_text(row.get(column)), []).append(row)
    return [
        {column: items[0].get(column), "count": len(items), "items": items}
        for items in groups.values()
    ]


def _compare(a: Any, b: Any) -> int:
    if a is None or b is None:
        return 0
    if _is_numeric(a) and _is_numeric(b):
        x, y = _strict_number(a), _strict_number(b)
    else:
        x, y = _as_text(a), _as_text(b)
    return (x > y) - (x < y)


def _loosely_equal(value: Any, target: Any) -> bool:
    if value is None or target is None:
        return value is None and target is None
    if _is_real_number(value) or _is_real_number(target):
        x, y = _strict_number(value), _strict_number(target)
        return not math.isnan(x) and x == y
    return _as_text(value) == _as_text(target)


def _is_real_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_numeric(value: Any) -> bool:
    return not math.isnan(_strict_number(value))


def _strict_number(value: Any) -> float:
    """Whole-value numeric coercion; NaN when the value is not a number."""
    if _is_real_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def _parse_number(value: Any) -> float:
    """Leading-number parse: "12.5px" → 12.5, "n/a" → NaN."""
    if _is_real_number(value):
        return float(value)
    if value is None or isinstance(value, bool):
        return math.nan
    match = _LEADING_NUMBER.match(str(value))
    return float(match.group()) if match else math.nan


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
