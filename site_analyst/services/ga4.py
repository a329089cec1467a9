# =============================================================================
# GA4 Report Client — Google Analytics Data API (v1beta)
# =============================================================================
#
# Thin async wrapper over BetaAnalyticsDataClient.run_report().
#
# The analytics agent builds requests in the Data API's JSON shape
# (camelCase: `dateRanges`, `orderBys`, ...) and gets the response back
# in the same JSON shape. This keeps the agent free of protobuf types and
# lets tests stub the client with plain dicts.
#
# DESIGN DECISION: Sync SDK client in a worker thread (asyncio.to_thread)
# rather than the async gRPC client. One client is shared by all requests;
# the sync client is thread-safe and avoids binding gRPC channels to a
# particular event loop.
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from site_analyst.errors import ExternalFetchError

logger = logging.getLogger(__name__)

ANALYTICS_READONLY_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"


class ReportClient(Protocol):
    """Anything that can run a GA4 report from a JSON-shaped request."""

    async def run_report(self, request: dict[str, Any]) -> dict[str, Any]:
        ...


class GA4ReportClient:
    """
    GA4 Data API client authenticated with a service-account key file.

    Construction fails fast (at startup) when the key file is missing or
    unreadable.
    """

    def __init__(self, credentials_file: str) -> None:
        from google.analytics.data_v1beta import BetaAnalyticsDataClient
        from google.oauth2 import service_account

        try:
            credentials = service_account.Credentials.from_service_account_file(
                credentials_file, scopes=[ANALYTICS_READONLY_SCOPE],
            )
        except (OSError, ValueError) as e:
            raise RuntimeError(
                f"Analytics client initialization failed. Ensure "
                f"{credentials_file} exists and holds a service-account key."
            ) from e

        self._client = BetaAnalyticsDataClient(credentials=credentials)
        logger.info("GA4 report client initialized with %s", credentials_file)

    async def run_report(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Run a report and return the response as a JSON-shaped dict.

        Raises:
            ExternalFetchError: The API rejected the request or could not
                be reached.
        """
        return await asyncio.to_thread(self._run_report, request)

    def _run_report(self, request: dict[str, Any]) -> dict[str, Any]:
        from google.analytics.data_v1beta.types import (
            RunReportRequest,
            RunReportResponse,
        )
        from google.api_core.exceptions import GoogleAPIError
        from google.auth.exceptions import GoogleAuthError

        try:
            proto_request = RunReportRequest.from_json(json.dumps(request))
            response = self._client.run_report(request=proto_request)
        except (GoogleAPIError, GoogleAuthError, OSError) as e:
            raise ExternalFetchError(f"GA4 runReport failed: {e}") from e

        return json.loads(RunReportResponse.to_json(response))
