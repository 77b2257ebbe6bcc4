"""Document models"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum


DEFAULT_TITLE = "Untitled Document"


class DocumentCategory(str, Enum):
    """Fixed set of document categories"""
    FORM_ELEMENT = "Form Element"
    PERMISSION = "Permission"
    VALIDATOR = "Validator"
    PLUGIN = "Plugin"
    APP = "App"
    HELPER = "Helper"
    TUTORIAL = "Tutorial"
    OTHER = "Other"


DEFAULT_CATEGORY = DocumentCategory.FORM_ELEMENT


class TocItem(BaseModel):
    """Table of contents entry derived from a heading block"""
    id: str = Field(..., description="Anchor id, unique within one document")
    text: str = Field(..., description="Display text")
    level: int = Field(..., ge=1, le=3, description="Heading level")


class DocumentUpdate(BaseModel):
    """Partial document update, one field per autosave flush"""
    title: Optional[str] = None
    content: Optional[List[Any]] = None
    category: Optional[DocumentCategory] = None
    is_public: Optional[bool] = None
    expected_updated_at: Optional[str] = Field(
        default=None,
        description="If set, the update only applies when the stored updated_at matches",
    )


class DocumentSummary(BaseModel):
    """Document card in listings"""
    id: str
    slug: str
    title: str
    category: Optional[str] = None
    is_public: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None


class DocumentResponse(DocumentSummary):
    """Full document with parsed body and derived TOC"""
    content: Optional[List[Any]] = None
    user_id: Optional[str] = None
    toc: List[TocItem] = Field(default_factory=list)

    class Config:
        from_attributes = True


class DocumentListResponse(BaseModel):
    """Paginated document listing"""
    documents: List[DocumentSummary]
    total: int
    page: int
    page_size: int


class AuthorInfo(BaseModel):
    """Read-only author projection for bylines"""
    id: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.full_name or self.email


class PublicDocumentLink(BaseModel):
    id: str
    slug: str
    title: str


class PublicSection(BaseModel):
    """Sidebar group of public documents sharing a category"""
    category: str
    documents: List[PublicDocumentLink]
