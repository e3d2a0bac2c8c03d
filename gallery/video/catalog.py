"""Catalog access layer: all reads and writes of the videos table."""

from typing import Callable, Literal, Optional

from sqlalchemy import delete, false, func, insert, or_, select, true, update
from sqlalchemy.engine import Result
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from gallery.errors import SchemaDriftError, ValidationError
from gallery.logging_config import logger
from gallery.models.video import Video
from gallery.video.schema import CatalogSchema, missing_column_from_error
from gallery.video.schemas import VideoCreate, VideoRecord, VideoUpdate

videos = Video.__table__

DEFAULT_FILE_NAME = "uploaded-video"

OrderBy = Literal["created_at", "display_date"]


def _selectable(columns: frozenset[str]) -> list:
    return [column for column in videos.columns if column.name in columns]


def _record(row) -> VideoRecord:
    return VideoRecord.model_validate(dict(row))


async def _execute(db: AsyncSession, build: Callable[[frozenset[str]], Executable]) -> Result:
    """Run a statement built from the available columns.

    If the store rejects an optional column the cache did not know was
    missing, the column is dropped and the statement is rebuilt and retried
    once. Failure of the retry surfaces as SchemaDriftError.
    """
    columns = await CatalogSchema.columns(db)
    try:
        return await db.execute(build(columns))
    except DBAPIError as exc:
        missing = missing_column_from_error(exc, columns)
        if missing is None:
            raise
        logger.warning(
            "Catalog column rejected by store, retrying without it",
            column=missing,
            error=str(exc.orig),
        )

    await db.rollback()
    CatalogSchema.mark_missing(missing)
    reduced = await CatalogSchema.columns(db)
    try:
        return await db.execute(build(reduced))
    except DBAPIError as exc:
        raise SchemaDriftError(
            f"Catalog operation failed without column '{missing}'",
            column=missing,
            details=str(exc.orig),
        ) from exc


def _newest_first(columns: frozenset[str], order_by: OrderBy = "created_at") -> list:
    ordering = []
    if order_by == "display_date" and "display_date" in columns:
        ordering.append(videos.c.display_date.desc().nulls_last())
    if "created_at" in columns:
        ordering.append(videos.c.created_at.desc())
    ordering.append(videos.c.id.desc())
    return ordering


async def list_videos(
    db: AsyncSession,
    *,
    category: Optional[str] = None,
    exclude_marker: Optional[str] = None,
    include_hidden: bool = False,
    order_by: OrderBy = "created_at",
) -> list[VideoRecord]:
    """List videos newest first.

    Args:
        db: Database session
        category: Only videos with this category
        exclude_marker: Skip rows whose file name contains this substring (the intro video)
        include_hidden: Include videos with visible = false
        order_by: "created_at" or "display_date" (falls back to created_at if unavailable)

    Returns:
        Matching videos; rows with a null visible flag count as visible
    """

    def build(columns: frozenset[str]) -> Executable:
        stmt = select(*_selectable(columns))
        if category:
            if "category" in columns:
                stmt = stmt.where(videos.c.category == category)
            else:
                stmt = stmt.where(false())
        if exclude_marker:
            stmt = stmt.where(~videos.c.file_name.contains(exclude_marker, autoescape=True))
        if not include_hidden and "visible" in columns:
            stmt = stmt.where(or_(videos.c.visible.is_(None), videos.c.visible == true()))
        return stmt.order_by(*_newest_first(columns, order_by))

    result = await _execute(db, build)
    return [_record(row) for row in result.mappings().all()]


async def get_video(db: AsyncSession, video_id: int) -> Optional[VideoRecord]:
    def build(columns: frozenset[str]) -> Executable:
        return select(*_selectable(columns)).where(videos.c.id == video_id)

    row = (await _execute(db, build)).mappings().first()
    return _record(row) if row else None


async def get_intro_video(db: AsyncSession, marker: str) -> Optional[VideoRecord]:
    """Newest video whose file name contains the intro marker."""

    def build(columns: frozenset[str]) -> Executable:
        return (
            select(*_selectable(columns))
            .where(videos.c.file_name.contains(marker, autoescape=True))
            .order_by(*_newest_first(columns))
            .limit(1)
        )

    row = (await _execute(db, build)).mappings().first()
    return _record(row) if row else None


async def find_existing(db: AsyncSession, *, url: str, file_name: str) -> Optional[int]:
    """ID of a video already pointing at this URL or file name."""

    def build(columns: frozenset[str]) -> Executable:
        return (
            select(videos.c.id)
            .where(
                or_(
                    videos.c.blob_url == url,
                    videos.c.video_url == url,
                    videos.c.file_name == file_name,
                )
            )
            .limit(1)
        )

    return (await _execute(db, build)).scalar_one_or_none()


async def create_video(db: AsyncSession, fields: VideoCreate) -> VideoRecord:
    """Insert a video.

    Raises:
        ValidationError: If title or blob URL is missing
    """
    title = (fields.title or "").strip()
    if not title:
        raise ValidationError("Title is required")

    blob_url = fields.blob_url or fields.video_url
    if not blob_url:
        raise ValidationError("Blob URL is required")

    values = {
        "title": title,
        "description": fields.description or None,
        "category": fields.category or None,
        "video_url": fields.video_url or blob_url,
        "blob_url": blob_url,
        "thumbnail_url": fields.thumbnail_url or None,
        "file_name": fields.file_name or DEFAULT_FILE_NAME,
        "file_size": fields.file_size,
        "duration": fields.duration,
        "display_date": fields.display_date,
    }
    # Only written when explicitly requested; otherwise the column default applies
    if fields.visible is not None:
        values["visible"] = fields.visible

    def build(columns: frozenset[str]) -> Executable:
        return (
            insert(videos)
            .values({key: value for key, value in values.items() if key in columns})
            .returning(*_selectable(columns))
        )

    row = (await _execute(db, build)).mappings().one()
    video = _record(row)
    logger.info("Video created", video_id=video.id, file_name=video.file_name)
    return video


async def update_video(db: AsyncSession, video_id: int, fields: VideoUpdate) -> Optional[VideoRecord]:
    """Apply the fields the caller set; returns None if the video does not exist."""
    changes = fields.model_dump(exclude_unset=True)

    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        changes["title"] = title
    if "visible" in changes and changes["visible"] is None:
        del changes["visible"]

    if not changes:
        return await get_video(db, video_id)

    def build(columns: frozenset[str]) -> Executable:
        if "visible" in changes and "visible" not in columns:
            raise SchemaDriftError("Column 'visible' is missing; visibility cannot be stored", column="visible")

        values = {key: value for key, value in changes.items() if key in columns}
        if not values:
            return select(*_selectable(columns)).where(videos.c.id == video_id)
        if "updated_at" in columns:
            values["updated_at"] = func.now()
        return (
            update(videos)
            .where(videos.c.id == video_id)
            .values(values)
            .returning(*_selectable(columns))
        )

    row = (await _execute(db, build)).mappings().first()
    if not row:
        return None

    logger.info("Video updated", video_id=video_id, fields=sorted(changes))
    return _record(row)


async def set_visibility(db: AsyncSession, video_id: int, visible: bool) -> Optional[VideoRecord]:
    """Set the visible flag to the given value; returns None if the video does not exist."""

    def build(columns: frozenset[str]) -> Executable:
        if "visible" not in columns:
            raise SchemaDriftError("Column 'visible' is missing; visibility cannot be stored", column="visible")

        values = {"visible": visible}
        if "updated_at" in columns:
            values["updated_at"] = func.now()
        return (
            update(videos)
            .where(videos.c.id == video_id)
            .values(values)
            .returning(*_selectable(columns))
        )

    row = (await _execute(db, build)).mappings().first()
    if not row:
        return None

    logger.info("Video visibility set", video_id=video_id, visible=visible)
    return _record(row)


async def delete_video(db: AsyncSession, video_id: int) -> bool:
    """Delete a catalog row. Returns False if it did not exist."""

    def build(columns: frozenset[str]) -> Executable:
        return delete(videos).where(videos.c.id == video_id)

    result = await _execute(db, build)
    deleted = result.rowcount > 0
    logger.info("Video deleted from catalog", video_id=video_id, deleted=deleted)
    return deleted
