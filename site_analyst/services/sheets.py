# =============================================================================
# Sheets Table Loader — Screaming Frog exports in Google Sheets
# =============================================================================
#
# Loads the first worksheet of a spreadsheet as a list of row records.
# The header row defines the keys; every data row is materialised.
# gspread's get_all_records() turns numeric cells into int/float and
# blank cells into "".
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from site_analyst.errors import ExternalFetchError

logger = logging.getLogger(__name__)

SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"

Row = dict[str, Any]


class TableLoader(Protocol):
    """Anything that can load a table by id as a list of row records."""

    async def load_table(self, table_id: str) -> list[Row]:
        ...


class SheetsTableLoader:
    """gspread-backed loader authenticated with a service-account key file."""

    def __init__(self, credentials_file: str) -> None:
        import gspread

        try:
            self._client = gspread.service_account(
                filename=credentials_file, scopes=[SHEETS_READONLY_SCOPE],
            )
        except (OSError, ValueError) as e:
            raise RuntimeError(
                f"Sheets client initialization failed. Ensure "
                f"{credentials_file} exists and holds a service-account key."
            ) from e

        logger.info("Sheets table loader initialized with %s", credentials_file)

    async def load_table(self, table_id: str) -> list[Row]:
        """
        Load every row of the first worksheet.

        Raises:
            ExternalFetchError: The spreadsheet could not be opened or read
                (not shared with the service account, bad id, network).
        """
        return await asyncio.to_thread(self._load_table, table_id)

    def _load_table(self, table_id: str) -> list[Row]:
        from google.auth.exceptions import GoogleAuthError
        from gspread.exceptions import GSpreadException

        try:
            spreadsheet = self._client.open_by_key(table_id)
            worksheet = spreadsheet.get_worksheet(0)
            rows = worksheet.get_all_records()
        except (GSpreadException, GoogleAuthError, OSError) as e:
            raise ExternalFetchError(
                f"Failed to load spreadsheet {table_id}: {e}"
            ) from e

        logger.info(
            "Loaded %d rows from spreadsheet '%s'", len(rows), spreadsheet.title,
        )
        return rows
