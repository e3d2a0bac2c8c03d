"""SQLAlchemy ORM models for the video gallery."""

from gallery.models.base import Base
from gallery.models.video import Video, REQUIRED_COLUMNS

__all__ = [
    "Base",
    "Video",
    "REQUIRED_COLUMNS",
]
