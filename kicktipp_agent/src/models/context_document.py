from datetime import datetime
from typing import List
from pydantic import BaseModel, Field


class ContextDocument(BaseModel):
    """Versioned context document as stored by a context repository."""

    document_name: str
    content: str
    version: int
    created_at: datetime


class SaveSummary(BaseModel):
    saved: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.saved) + len(self.skipped) + len(self.failed)
