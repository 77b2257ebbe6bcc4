"""Upload response models"""

from pydantic import BaseModel
from typing import Optional


class AttachmentUploadResponse(BaseModel):
    """Successful changelog attachment upload"""
    url: Optional[str] = None
    name: str
    stored_name: str
    path: str
    bucket: str
    req_id: str


class ImageUploadResponse(BaseModel):
    """Inline image upload result"""
    success: bool
    url: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None
    req_id: Optional[str] = None
