"""Video model."""

from sqlalchemy import Column, Integer, String, BigInteger, Float, Text, Boolean, DateTime, Index, func, true
from gallery.models.base import Base


class Video(Base):
    """Catalog entry for one video stored in blob storage."""

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    video_url = Column(String(1024), nullable=False)
    blob_url = Column(String(1024), nullable=False)
    thumbnail_url = Column(String(1024), nullable=True)
    file_name = Column(String(512), nullable=False)
    file_size = Column(BigInteger, nullable=True)
    duration = Column(Float, nullable=True)
    display_date = Column(DateTime(timezone=True), nullable=True)
    visible = Column(Boolean, nullable=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_videos_created_at", "created_at"),
        Index("idx_videos_visible", "visible"),
    )

    def __repr__(self):
        return f"<Video(id={self.id}, title={self.title!r}, visible={self.visible})>"


# Columns every catalog operation depends on; all others may be absent from the live table.
REQUIRED_COLUMNS = frozenset({"id", "title", "video_url", "blob_url", "file_name"})
