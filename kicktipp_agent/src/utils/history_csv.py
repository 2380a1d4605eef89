"""Data_Collected_At handling for match history CSV documents.

History tables are re-scraped on every collection run. Rows that were already
stored keep the date they were first collected at, rows seen for the first time
get the date of the current run.
"""

import logging
from typing import Dict, List, Optional, Tuple

from kicktipp_agent.src.utils.csv_document import CsvDocument

logger = logging.getLogger(__name__)

DATA_COLLECTED_AT_COLUMN = "Data_Collected_At"
COMPETITION_COLUMN = "Competition"
MATCH_KEY_COLUMNS = ("Competition", "Home_Team", "Away_Team", "Score", "Annotation")
HISTORY_DOCUMENT_PREFIXES = ("recent-history-", "home-history-", "away-history-")

MatchKey = Tuple[str, ...]


def is_history_document(document_name: str) -> bool:
    return document_name.lower().startswith(HISTORY_DOCUMENT_PREFIXES)


def match_key(document: CsvDocument, row: List[str]) -> MatchKey:
    return tuple(document.value(row, column) for column in MATCH_KEY_COLUMNS)


def _previous_collection_dates(previous_csv_content: Optional[str]) -> Dict[MatchKey, str]:
    if previous_csv_content is None or not previous_csv_content.strip():
        return {}

    previous = CsvDocument.parse(previous_csv_content)
    if not previous.has_column(DATA_COLLECTED_AT_COLUMN):
        return {}

    return {
        match_key(previous, row): previous.value(row, DATA_COLLECTED_AT_COLUMN)
        for row in previous.rows
    }


def add_data_collected_at_column(
    csv_content: str, previous_csv_content: Optional[str], collected_date: str
) -> str:
    """
    Add the Data_Collected_At column to a freshly scraped history CSV.

    Args:
        csv_content: The scraped CSV content
        previous_csv_content: Latest stored version of the same document, if any
        collected_date: Date of this collection run (e.g. "2025-08-30")

    Returns:
        CSV content with Data_Collected_At right after Competition. Empty input and
        content that already has the column are returned unchanged.

    Raises:
        MalformedRow: If either document has rows that don't match its header
    """
    if not csv_content.strip():
        return csv_content

    document = CsvDocument.parse(csv_content)
    if document.has_column(DATA_COLLECTED_AT_COLUMN):
        return csv_content

    previous_dates = _previous_collection_dates(previous_csv_content)

    dates = []
    carried = 0
    for row in document.rows:
        previous_date = previous_dates.get(match_key(document, row))
        if previous_date is None:
            dates.append(collected_date)
        else:
            dates.append(previous_date)
            carried += 1

    logger.debug(
        f"Data_Collected_At: {carried} rows carried over, {len(dates) - carried} new rows stamped {collected_date}"
    )
    return document.insert_column(
        COMPETITION_COLUMN, DATA_COLLECTED_AT_COLUMN, dates
    ).serialize()
