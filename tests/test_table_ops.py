# =============================================================================
# Unit Tests — Table Operations (filter → group → sort → limit)
# =============================================================================

from __future__ import annotations

import copy

from site_analyst.models.plans import TablePlan
from site_analyst.services.table_ops import execute_operations

CRAWL = [
    {"Address": "https://example.com/", "Protocol": "https", "Status Code": 200,
     "Indexability": "Indexable", "Word Count": 850, "Title 1": "Home"},
    {"Address": "http://example.com/old", "Protocol": "http", "Status Code": 301,
     "Indexability": "Non-Indexable", "Word Count": 0, "Title 1": ""},
    {"Address": "https://example.com/blog", "Protocol": "https", "Status Code": 200,
     "Indexability": "Indexable", "Word Count": 1200, "Title 1": "Blog"},
    {"Address": "http://example.com/legacy", "Protocol": "http", "Status Code": 404,
     "Indexability": "Non-Indexable", "Word Count": "n/a", "Title 1": "Legacy Page"},
    {"Address": "https://example.com/about", "Protocol": "https", "Status Code": 200,
     "Indexability": "Indexable", "Word Count": 300, "Title 1": "About Us"},
]


def _plan(**kwargs) -> TablePlan:
    return TablePlan.model_validate(kwargs)


def _addresses(output: dict) -> list[str]:
    return [row["Address"] for row in output["results"]]


# ---------------------------------------------------------------------------
# Test: Filters
# ---------------------------------------------------------------------------


class TestFilters:
    """Tests for each filter operator."""

    def test_not_equal_excludes_https(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Protocol", "operator": "!=", "value": "https"}]),
        )
        assert _addresses(output) == [
            "http://example.com/old", "http://example.com/legacy",
        ]
        assert all(row["Protocol"] != "https" for row in output["results"])

    def test_equal_compares_numbers_with_numeric_strings(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Status Code", "operator": "==", "value": "200"}]),
        )
        assert output["resultCount"] == 3

    def test_greater_than_is_numeric(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Word Count", "operator": ">", "value": 500}]),
        )
        assert _addresses(output) == ["https://example.com/", "https://example.com/blog"]

    def test_non_numeric_comparison_is_never_true(self):
        gt = execute_operations(
            CRAWL, _plan(filters=[{"column": "Word Count", "operator": ">", "value": -1}]),
        )
        lt = execute_operations(
            CRAWL, _plan(filters=[{"column": "Word Count", "operator": "<", "value": 10**9}]),
        )
        assert "http://example.com/legacy" not in _addresses(gt)
        assert "http://example.com/legacy" not in _addresses(lt)

    def test_leading_number_parse(self):
        rows = [{"Page": "a", "Ratio": "12%"}, {"Page": "b", "Ratio": "3%"}]
        output = execute_operations(
            rows, _plan(filters=[{"column": "Ratio", "operator": ">", "value": "10"}]),
        )
        assert [r["Page"] for r in output["results"]] == ["a"]

    def test_contains_is_case_insensitive(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Title 1", "operator": "contains", "value": "PAGE"}]),
        )
        assert _addresses(output) == ["http://example.com/legacy"]

    def test_unknown_operator_keeps_rows(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Protocol", "operator": "startswith", "value": "x"}]),
        )
        assert output["resultCount"] == len(CRAWL)

    def test_missing_column_matches_nothing(self):
        output = execute_operations(
            CRAWL, _plan(filters=[{"column": "Canonical", "operator": "==", "value": "yes"}]),
        )
        assert output["resultCount"] == 0

    def test_clauses_are_anded_in_order(self):
        output = execute_operations(
            CRAWL,
            _plan(filters=[
                {"column": "Protocol", "operator": "==", "value": "http"},
                {"column": "Status Code", "operator": ">", "value": 400},
            ]),
        )
        assert _addresses(output) == ["http://example.com/legacy"]

    def test_filtering_twice_is_idempotent(self):
        plan = _plan(filters=[
            {"column": "Indexability", "operator": "==", "value": "Indexable"},
            {"column": "Word Count", "operator": ">", "value": 250},
        ])
        once = execute_operations(CRAWL, plan)["results"]
        twice = execute_operations(once, plan)["results"]
        assert twice == once


# ---------------------------------------------------------------------------
# Test: Grouping
# ---------------------------------------------------------------------------


class TestGrouping:
    """Tests for groupBy output records."""

    def test_group_replaces_rows_with_group_records(self):
        output = execute_operations(CRAWL, _plan(groupBy="Indexability"))

        assert output["resultCount"] == 2
        first, second = output["results"]
        assert first["Indexability"] == "Indexable"
        assert first["count"] == 3
        assert len(first["items"]) == 3
        assert second["Indexability"] == "Non-Indexable"
        assert second["count"] == 2

    def test_group_then_sort_by_count(self):
        output = execute_operations(
            CRAWL, _plan(groupBy="Status Code", sortBy={"column": "count", "desc": True}),
        )
        assert [g["Status Code"] for g in output["results"]] == [200, 301, 404]
        assert [g["count"] for g in output["results"]] == [3, 1, 1]

    def test_group_key_is_cell_text(self):
        rows = [
            {"Status": 200, "Page": "a"},
            {"Status": "200", "Page": "b"},
            {"Status": 1, "Page": "c"},
            {"Status": True, "Page": "d"},
        ]
        output = execute_operations(rows, _plan(groupBy="Status"))

        assert [(g["Status"], g["count"]) for g in output["results"]] == [
            (200, 2), (1, 1), (True, 1),
        ]
        assert [r["Page"] for r in output["results"][0]["items"]] == ["a", "b"]


# ---------------------------------------------------------------------------
# Test: Sorting & Limit
# ---------------------------------------------------------------------------


class TestSortAndLimit:
    """Tests for ordering, ties, and truncation."""

    def test_numeric_sort_descending(self):
        rows = [r for r in CRAWL if isinstance(r["Word Count"], int)]
        output = execute_operations(
            rows, _plan(sortBy={"column": "Word Count", "desc": True}),
        )
        assert [r["Word Count"] for r in output["results"]] == [1200, 850, 300, 0]

    def test_numeric_strings_sort_numerically(self):
        rows = [{"n": "10"}, {"n": "9"}, {"n": "100"}]
        output = execute_operations(rows, _plan(sortBy={"column": "n"}))
        assert [r["n"] for r in output["results"]] == ["9", "10", "100"]

    def test_text_sorts_lexicographically(self):
        output = execute_operations(CRAWL, _plan(sortBy={"column": "Title 1"}))
        assert [r["Title 1"] for r in output["results"]] == [
            "", "About Us", "Blog", "Home", "Legacy Page",
        ]

    def test_ties_keep_input_order_in_both_directions(self):
        asc = execute_operations(CRAWL, _plan(sortBy={"column": "Protocol"}))
        desc = execute_operations(CRAWL, _plan(sortBy={"column": "Protocol", "desc": True}))

        assert _addresses(asc) == [
            "http://example.com/old", "http://example.com/legacy",
            "https://example.com/", "https://example.com/blog",
            "https://example.com/about",
        ]
        assert _addresses(desc) == [
            "https://example.com/", "https://example.com/blog",
            "https://example.com/about",
            "http://example.com/old", "http://example.com/legacy",
        ]

    def test_limit_applies_after_sort(self):
        output = execute_operations(
            CRAWL, _plan(sortBy={"column": "Status Code", "desc": True}, limit=2),
        )
        assert [r["Status Code"] for r in output["results"]] == [404, 301]
        assert output["resultCount"] == 2

    def test_zero_limit_means_no_limit(self):
        output = execute_operations(CRAWL, _plan(limit=0))
        assert output["resultCount"] == len(CRAWL)


# ---------------------------------------------------------------------------
# Test: Output Contract
# ---------------------------------------------------------------------------


class TestOutput:
    """Tests for determinism and the echoed plan."""

    def test_same_inputs_same_output(self):
        plan = _plan(
            filters=[{"column": "Status Code", "operator": "<", "value": 400}],
            sortBy={"column": "Protocol", "desc": True},
            limit=3,
        )
        assert execute_operations(CRAWL, plan) == execute_operations(CRAWL, plan)

    def test_input_rows_not_mutated(self):
        before = copy.deepcopy(CRAWL)
        execute_operations(
            CRAWL, _plan(groupBy="Protocol", sortBy={"column": "count"}, limit=1),
        )
        assert CRAWL == before

    def test_plan_is_echoed_with_json_keys(self):
        output = execute_operations(
            CRAWL, _plan(groupBy="Protocol", sortBy={"column": "count", "desc": True}),
        )
        assert output["plan"]["groupBy"] == "Protocol"
        assert output["plan"]["sortBy"] == {"column": "count", "desc": True}
        assert output["plan"]["filters"] == []
