"""Versioned storage for context documents.

A new version is only written when the content differs from the latest stored
version. Versions start at 0 and are kept per community.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from kicktipp_agent.src.models.context_document import ContextDocument

logger = logging.getLogger(__name__)


class ContextRepository(Protocol):
    async def get_latest_context_document(
        self, document_name: str, community_context: str
    ) -> Optional[ContextDocument]: ...

    async def get_context_document(
        self, document_name: str, version: int, community_context: str
    ) -> Optional[ContextDocument]: ...

    async def get_context_document_names(self, community_context: str) -> List[str]: ...

    async def save_context_document(
        self, document_name: str, content: str, community_context: str
    ) -> Optional[int]: ...


class InMemoryContextRepository:
    def __init__(self):
        self._documents: Dict[str, Dict[str, List[ContextDocument]]] = {}

    def _community(self, community_context: str) -> Dict[str, List[ContextDocument]]:
        return self._documents.setdefault(community_context, {})

    def _persist(self, community_context: str) -> None:
        pass

    async def get_latest_context_document(
        self, document_name: str, community_context: str
    ) -> Optional[ContextDocument]:
        versions = self._community(community_context).get(document_name)
        if not versions:
            return None
        return versions[-1]

    async def get_context_document(
        self, document_name: str, version: int, community_context: str
    ) -> Optional[ContextDocument]:
        for document in self._community(community_context).get(document_name, []):
            if document.version == version:
                return document
        return None

    async def get_context_document_names(self, community_context: str) -> List[str]:
        return sorted(self._community(community_context))

    async def save_context_document(
        self, document_name: str, content: str, community_context: str
    ) -> Optional[int]:
        """
        Save a new version of a document unless its content is unchanged.

        Returns:
            The new version number, or None if nothing was saved
        """
        versions = self._community(community_context).setdefault(document_name, [])
        latest = versions[-1] if versions else None

        if latest is not None and latest.content == content:
            logger.info(f"Context document {document_name} content unchanged, skipping save")
            return None

        next_version = latest.version + 1 if latest is not None else 0
        versions.append(
            ContextDocument(
                document_name=document_name,
                content=content,
                version=next_version,
                created_at=datetime.now(timezone.utc),
            )
        )
        self._persist(community_context)

        logger.info(
            f"Saved context document {document_name} version {next_version} for community {community_context}"
        )
        return next_version


class JsonFileContextRepository(InMemoryContextRepository):
    """Keeps all versions of a community's documents in `<root_dir>/<community>.json`."""

    def __init__(self, root_dir: Union[str, Path]):
        super().__init__()
        self.root_dir = Path(root_dir)

    def _path(self, community_context: str) -> Path:
        return self.root_dir / f"{community_context}.json"

    def _community(self, community_context: str) -> Dict[str, List[ContextDocument]]:
        if community_context not in self._documents:
            self._documents[community_context] = self._load(community_context)
        return self._documents[community_context]

    def _load(self, community_context: str) -> Dict[str, List[ContextDocument]]:
        path = self._path(community_context)
        if not path.exists():
            return {}
        data = json.loads(path.read_text(encoding="utf-8"))
        return {
            name: [ContextDocument.model_validate(version) for version in versions]
            for name, versions in data.items()
        }

    def _persist(self, community_context: str) -> None:
        self.root_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            name: [version.model_dump(mode="json") for version in versions]
            for name, versions in self._documents[community_context].items()
        }
        path = self._path(community_context)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(path)
