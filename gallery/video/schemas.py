"""Pydantic models exchanged between the catalog and its callers."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VideoRecord(BaseModel):
    """Video as returned by the catalog.

    Fields backed by optional columns default to None (or True for
    ``visible``) when the live table does not have them.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    video_url: str
    blob_url: str
    thumbnail_url: Optional[str] = None
    file_name: str
    file_size: Optional[int] = None
    duration: Optional[float] = None
    display_date: Optional[datetime] = None
    visible: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("visible", mode="before")
    @classmethod
    def null_is_visible(cls, v):
        return True if v is None else v


class VideoCreate(BaseModel):
    """Fields accepted when registering a video."""

    title: Optional[str] = None
    blob_url: Optional[str] = None
    video_url: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    thumbnail_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    duration: Optional[float] = Field(None, ge=0)
    display_date: Optional[datetime] = None
    visible: Optional[bool] = None


class VideoUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_date: Optional[datetime] = None
    visible: Optional[bool] = None


class SyncResult(BaseModel):
    """Summary of one blob synchronization run."""

    imported: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0
    message: str = ""
