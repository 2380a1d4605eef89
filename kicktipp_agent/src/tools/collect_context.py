import logging
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Union

from kicktipp_agent.src.models.context_document import SaveSummary
from kicktipp_agent.src.utils.context_repository import ContextRepository
from kicktipp_agent.src.utils.history_csv import (
    add_data_collected_at_column,
    is_history_document,
)

logger = logging.getLogger(__name__)


def load_documents_from_directory(directory: Union[str, Path]) -> Dict[str, str]:
    """Read every `*.csv` file of a directory, keyed by file name without suffix."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Not a directory: {directory}")

    return {
        path.stem: path.read_text(encoding="utf-8")
        for path in sorted(directory.glob("*.csv"))
    }


async def save_context_documents(
    repository: ContextRepository,
    documents: Dict[str, str],
    community_context: str,
    collected_date: Optional[str] = None,
    dry_run: bool = False,
) -> SaveSummary:
    """
    Store collected context documents, stamping history documents first.

    History documents get their Data_Collected_At column reconciled against the
    latest stored version before saving. A failing document is logged and counted,
    the remaining documents are still processed.

    Args:
        repository: Where the documents are stored
        documents: Mapping of document name to content
        community_context: Kicktipp community the documents belong to
        collected_date: Collection date, defaults to today (YYYY-MM-DD)
        dry_run: Only report what would be saved

    Returns:
        SaveSummary with the names of saved, skipped and failed documents
    """
    collected_date = collected_date or date.today().isoformat()
    summary = SaveSummary(dry_run=dry_run)

    for document_name, content in documents.items():
        if dry_run:
            logger.info(f"Dry run - would save: {document_name}")
            summary.skipped.append(document_name)
            continue

        try:
            final_content = content
            if is_history_document(document_name):
                previous_document = await repository.get_latest_context_document(
                    document_name, community_context
                )
                previous_content = previous_document.content if previous_document else None
                final_content = add_data_collected_at_column(
                    content, previous_content, collected_date
                )

            saved_version = await repository.save_context_document(
                document_name, final_content, community_context
            )
        except Exception as e:
            logger.error(f"Failed to save context document {document_name}: {e}")
            summary.failed.append(document_name)
            continue

        if saved_version is None:
            summary.skipped.append(document_name)
        else:
            summary.saved.append(document_name)

    return summary
