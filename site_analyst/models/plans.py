# =============================================================================
# Reporting Plan Models — Pydantic V2 Schemas
# =============================================================================
#
# A reporting plan is what the LLM infers from a free-text question:
# which fields to fetch and how to shape them. It is untrusted input, so
# decoding fails closed:
#   - unknown keys are rejected (extra="forbid")
#   - wrong types are rejected
#   - field NAMES are not trusted here; the analytics agent checks them
#     against its allowlist, the table executor against loaded columns
#
# Field names follow the JSON the model is asked to produce (camelCase),
# with snake_case attributes in Python.
# =============================================================================

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_PLAN_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    frozen=True,
)


# ---------------------------------------------------------------------------
# GA4 Reporting Plan
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    """
    GA4 date range. Accepts YYYY-MM-DD or relative dates like 7daysAgo.

    `name` labels the range in the report (e.g. "current" vs "previous").
    """

    model_config = _PLAN_CONFIG

    start_date: str
    end_date: str
    name: str | None = None


class MetricOrder(BaseModel):
    model_config = _PLAN_CONFIG

    metric_name: str


class DimensionOrder(BaseModel):
    model_config = _PLAN_CONFIG

    dimension_name: str


class OrderBy(BaseModel):
    """Sort clause: exactly one of `metric` or `dimension`."""

    model_config = _PLAN_CONFIG

    metric: MetricOrder | None = None
    dimension: DimensionOrder | None = None
    desc: bool = False

    @model_validator(mode="after")
    def _one_target(self) -> OrderBy:
        if (self.metric is None) == (self.dimension is None):
            raise ValueError("orderBy needs exactly one of 'metric' or 'dimension'")
        return self


class AnalyticsPlan(BaseModel):
    """
    GA4 reporting plan inferred from a question.

    Example:
        {
            "metrics": ["screenPageViews"],
            "dimensions": ["pagePath"],
            "dateRanges": [{"startDate": "7daysAgo", "endDate": "today"}],
            "orderBy": [{"metric": {"metricName": "screenPageViews"}, "desc": true}],
            "limit": 5
        }
    """

    model_config = _PLAN_CONFIG

    metrics: list[str] = Field(default_factory=list)
    dimensions: list[str] = Field(default_factory=list)
    date_ranges: list[DateRange] = Field(
        default_factory=lambda: [DateRange(start_date="28daysAgo", end_date="today")],
    )
    order_by: list[OrderBy] = Field(default_factory=list)
    limit: int = Field(default=10, ge=1)

    # Models often write `null` where they mean "none of these"
    @field_validator("metrics", "dimensions", "order_by", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("date_ranges", mode="before")
    @classmethod
    def _null_as_default_range(cls, value: Any) -> Any:
        return [{"startDate": "28daysAgo", "endDate": "today"}] if not value else value

    @field_validator("limit", mode="before")
    @classmethod
    def _null_as_default_limit(cls, value: Any) -> Any:
        # 0 and null both mean "no preference"
        return 10 if value is None or value == 0 else value


# ---------------------------------------------------------------------------
# Table (Spreadsheet) Plan
# ---------------------------------------------------------------------------


class FilterClause(BaseModel):
    """One filter: `{column} {operator} {value}`. Unknown operators pass rows."""

    model_config = _PLAN_CONFIG

    column: str
    operator: str
    value: Any = None


class SortSpec(BaseModel):
    model_config = _PLAN_CONFIG

    column: str
    desc: bool = False


class TablePlan(BaseModel):
    """
    Data-processing plan over a loaded spreadsheet.

    Example:
        {
            "operation": "filter",
            "filters": [{"column": "Protocol", "operator": "!=", "value": "https"}],
            "groupBy": null,
            "sortBy": {"column": "Address", "desc": false},
            "limit": 10,
            "outputFormat": "natural"
        }
    """

    model_config = _PLAN_CONFIG

    operation: str | None = None
    filters: list[FilterClause] = Field(default_factory=list)
    group_by: str | None = None
    sort_by: SortSpec | None = None
    limit: int | None = Field(default=None, ge=0)
    output_format: str | None = None

    @field_validator("filters", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value
