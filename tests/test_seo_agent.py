# =============================================================================
# Unit Tests — SEO Agent (Google Sheets crawl export)
# =============================================================================

from __future__ import annotations

import json

from fakes import SEO_EXPLAIN, TABLE_PLAN, ScriptedGateway, StubTableLoader, run
from site_analyst.agents.seo import SEOAgent
from site_analyst.errors import ExternalFetchError

CRAWL = [
    {"Address": "https://example.com/", "Protocol": "https", "Status Code": 200},
    {"Address": "http://example.com/old", "Protocol": "http", "Status Code": 301},
    {"Address": "https://example.com/blog", "Protocol": "https", "Status Code": 200},
    {"Address": "http://example.com/legacy", "Protocol": "http", "Status Code": 404},
]

NON_HTTPS_PLAN = {
    "operation": "filter",
    "filters": [{"column": "Protocol", "operator": "!=", "value": "https"}],
    "groupBy": None,
    "sortBy": None,
    "limit": None,
    "outputFormat": "natural",
}


def _agent(plan_reply: str = json.dumps(NON_HTTPS_PLAN), loader=None, default_id=None):
    gateway = ScriptedGateway({
        TABLE_PLAN: plan_reply,
        SEO_EXPLAIN: "2 of 4 URLs are still served over HTTP.",
    })
    loader = loader or StubTableLoader(CRAWL)
    agent = SEOAgent(gateway, loader, default_spreadsheet_id=default_id)
    return agent, gateway, loader


# ---------------------------------------------------------------------------
# Test: Happy Path
# ---------------------------------------------------------------------------


class TestProcessQuery:
    """End-to-end agent runs over an in-memory crawl."""

    def test_non_https_urls(self):
        agent, _, loader = _agent()

        result = run(agent.process_query("Which URLs do not use HTTPS?", "sheet-123"))

        assert result.success is True
        assert loader.loaded == ["sheet-123"]
        assert result.data["resultCount"] == 2
        assert [r["Address"] for r in result.data["results"]] == [
            "http://example.com/old", "http://example.com/legacy",
        ]
        assert result.explanation == "2 of 4 URLs are still served over HTTP."

    def test_planner_sees_columns_and_three_sample_rows(self):
        agent, gateway, _ = _agent()

        run(agent.process_query("Which URLs do not use HTTPS?", "sheet-123"))

        prompt = gateway.prompts_for(TABLE_PLAN)[0]
        assert "Available columns: Address, Protocol, Status Code" in prompt
        assert "http://example.com/old" in prompt
        assert "https://example.com/blog" in prompt
        # fourth row is beyond the sample
        assert "http://example.com/legacy" not in prompt

    def test_explanation_gets_total_row_count(self):
        agent, gateway, _ = _agent()

        run(agent.process_query("Which URLs do not use HTTPS?", "sheet-123"))

        prompt = gateway.prompts_for(SEO_EXPLAIN)[0]
        assert "Rows analysed: 4" in prompt
        assert "Never invent" in prompt

    def test_default_spreadsheet_id_used_when_absent(self):
        agent, _, loader = _agent(default_id="configured-sheet")

        result = run(agent.process_query("Which URLs do not use HTTPS?"))

        assert result.success is True
        assert loader.loaded == ["configured-sheet"]

    def test_request_id_overrides_default(self):
        agent, _, loader = _agent(default_id="configured-sheet")

        run(agent.process_query("Which URLs do not use HTTPS?", "from-request"))

        assert loader.loaded == ["from-request"]

    def test_empty_table_still_answers(self):
        agent, gateway, _ = _agent(loader=StubTableLoader([]))

        result = run(agent.process_query("Which URLs do not use HTTPS?", "empty"))

        assert result.success is True
        assert result.data["resultCount"] == 0
        assert "Available columns: \n" in gateway.prompts_for(TABLE_PLAN)[0]


# ---------------------------------------------------------------------------
# Test: Failures
# ---------------------------------------------------------------------------


class TestFailures:
    """Failures become AgentResult(success=False)."""

    def test_missing_spreadsheet_id_skips_load(self):
        agent, gateway, loader = _agent()

        result = run(agent.process_query("Which URLs do not use HTTPS?"))

        assert result.success is False
        assert "No spreadsheet ID provided" in result.error
        assert result.explanation.startswith("Failed to process SEO query:")
        assert loader.loaded == []
        assert gateway.calls == []

    def test_loader_error(self):
        loader = StubTableLoader(error=ExternalFetchError("Sheets load failed: 404"))
        agent, gateway, _ = _agent(loader=loader)

        result = run(agent.process_query("Which URLs do not use HTTPS?", "missing"))

        assert result.success is False
        assert result.error == "Sheets load failed: 404"
        assert gateway.calls == []

    def test_unparseable_plan(self):
        agent, gateway, _ = _agent(plan_reply="Filter by protocol, I suppose.")

        result = run(agent.process_query("Which URLs do not use HTTPS?", "sheet-123"))

        assert result.success is False
        assert "Failed to parse reporting plan" in result.error
        assert gateway.prompts_for(SEO_EXPLAIN) == []

    def test_plan_with_unknown_key(self):
        plan = {**NON_HTTPS_PLAN, "having": "count > 1"}
        agent, _, _ = _agent(plan_reply=json.dumps(plan))

        result = run(agent.process_query("Which URLs do not use HTTPS?", "sheet-123"))

        assert result.success is False
        assert "unexpected shape" in result.error
