"""Change log models"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class ChangelogEntry(BaseModel):
    """A change log entry as stored and displayed"""
    id: str
    doc_id: str
    version: str
    description: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ChangelogListResponse(BaseModel):
    changelogs: List[ChangelogEntry]
    total: int
