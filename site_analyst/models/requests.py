# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API. The wire
# format is camelCase (`propertyId`), attributes are snake_case.
# Invalid bodies are turned into HTTP 400 by the handler in main.py.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QueryRequest(BaseModel):
    """
    Request body for POST /query — ask a question about site data.

    Example:
        {
            "query": "Top 5 pages by page views in the last 7 days",
            "propertyId": "516821164"
        }
    """

    query: str = Field(
        ...,
        min_length=1,
        description="The natural-language question",
        examples=["Which URLs do not use HTTPS?"],
    )

    # GA4 property; required for analytics answers
    property_id: str | None = Field(
        default=None,
        description="GA4 property ID. Required for analytics questions.",
        examples=["516821164"],
    )

    # Screaming Frog export; falls back to SEO_SPREADSHEET_ID
    spreadsheet_id: str | None = Field(
        default=None,
        description="Google Sheets ID of the crawl export. Defaults to the configured sheet.",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "query": "Top 5 pages by page views in the last 7 days",
                    "propertyId": "516821164",
                },
                {"query": "Which URLs do not use HTTPS?"},
                {
                    "query": "Top pages by views with their title tags",
                    "propertyId": "516821164",
                    "spreadsheetId": "1AbC...",
                },
            ]
        },
    )
