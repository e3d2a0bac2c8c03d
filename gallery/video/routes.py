"""Video catalog routes."""

import os
import re
from datetime import datetime, timedelta
from typing import Any, List, Literal, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gallery.auth.session import require_admin
from gallery.config import IntroConfig, settings
from gallery.db import get_db, get_session_factory
from gallery.errors import CollaboratorError, NotFoundError, ValidationError
from gallery.intro.routes import get_intro_config
from gallery.logging_config import logger
from gallery.storage import StorageClient, get_storage
from gallery.video import catalog
from gallery.video.schemas import SyncResult, VideoCreate, VideoRecord, VideoUpdate
from gallery.video.sync import VIDEO_EXTENSIONS, sync_blob_storage

router = APIRouter()


# Request/Response Models
class VideoCreateRequest(BaseModel):
    """Register a video that was already uploaded to blob storage."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    blob_url: Optional[str] = Field(None, alias="blobUrl")
    pathname: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    display_date: Optional[datetime] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)


class VideoUpdateRequest(BaseModel):
    """Partial metadata update."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_date: Optional[datetime] = None
    visible: Optional[bool] = Field(None, alias="is_visible")


class VisibilityRequest(BaseModel):
    # Checked in the handler so a non-boolean gets the 400 error body
    visible: Any = None


class UploadUrlRequest(BaseModel):
    filename: str = Field(..., min_length=1)
    content_type: Optional[str] = Field(None, alias="contentType")


class UploadUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    upload_url: str = Field(..., alias="uploadUrl")
    blob_url: str = Field(..., alias="blobUrl")
    pathname: str
    expires_in: int = Field(..., alias="expiresIn")


class VideoResponse(BaseModel):
    video: VideoRecord


class VideoListResponse(BaseModel):
    videos: List[VideoRecord]


class VisibilityResponse(BaseModel):
    success: bool = True
    video: VideoRecord


class DeleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    blob_deleted: bool = Field(..., alias="blobDeleted")
    message: Optional[str] = None


def video_id_param(video_id: str) -> int:
    """Parse the {video_id} path segment."""
    try:
        return int(video_id)
    except ValueError:
        raise ValidationError("Invalid video id", details=video_id)


def _safe_object_name(filename: str) -> str:
    name = os.path.basename(filename.replace("\\", "/"))
    return re.sub(r"[^A-Za-z0-9._ -]", "_", name).strip() or "video.mp4"


@router.get("", response_model=VideoListResponse)
async def list_videos(
    category: Optional[str] = None,
    include_hidden: bool = Query(False, alias="includeHidden"),
    include_intro: bool = Query(False, alias="includeIntro"),
    order_by: Literal["created_at", "display_date"] = Query("created_at", alias="orderBy"),
    db: AsyncSession = Depends(get_db),
    intro: IntroConfig = Depends(get_intro_config),
) -> VideoListResponse:
    """
    List videos, newest first.

    The intro video is left out unless includeIntro is set. Hidden videos
    are left out unless includeHidden or includeIntro is set (the admin
    listing uses includeIntro).
    """
    videos = await catalog.list_videos(
        db,
        category=category or None,
        exclude_marker=None if include_intro else intro.marker,
        include_hidden=include_hidden or include_intro,
        order_by=order_by,
    )
    logger.debug("Listed videos", count=len(videos), category=category, include_intro=include_intro)
    return VideoListResponse(videos=videos)


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_video(
    request: VideoCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> VideoResponse:
    """Save metadata for a video the client already uploaded to blob storage."""
    file_name = request.file_name
    if not file_name and request.pathname:
        file_name = request.pathname.split("/")[-1]

    video = await catalog.create_video(
        db,
        VideoCreate(
            title=request.title,
            blob_url=request.blob_url,
            video_url=request.blob_url,
            description=request.description,
            category=request.category,
            thumbnail_url=request.thumbnail_url,
            file_name=file_name,
            file_size=request.file_size,
            duration=request.duration,
            display_date=request.display_date,
        ),
    )
    await db.commit()
    return VideoResponse(video=video)


@router.post(
    "/upload-url",
    response_model=UploadUrlResponse,
    response_model_by_alias=True,
    dependencies=[Depends(require_admin)],
)
async def create_upload_url(
    request: UploadUrlRequest,
    storage: type[StorageClient] = Depends(get_storage),
) -> UploadUrlResponse:
    """
    Get a presigned URL for uploading a video directly to blob storage.

    The object key gets a random prefix so re-uploads never overwrite an
    existing video. After the PUT succeeds the client registers the video
    with POST /videos using the returned blobUrl.
    """
    object_name = _safe_object_name(request.filename)
    if os.path.splitext(object_name.lower())[1] not in VIDEO_EXTENSIONS:
        raise ValidationError(
            "Unsupported video type",
            details=f"Allowed extensions: {', '.join(VIDEO_EXTENSIONS)}",
        )

    object_key = f"videos/{uuid4().hex}-{object_name}"
    upload_url = storage.generate_presigned_upload_url(
        object_key=object_key,
        expires=timedelta(seconds=settings.upload_url_expire_seconds),
    )
    logger.info("Issued upload URL", object_key=object_key, content_type=request.content_type)

    return UploadUrlResponse(
        upload_url=upload_url,
        blob_url=storage.public_url(object_key),
        pathname=object_key,
        expires_in=settings.upload_url_expire_seconds,
    )


@router.post(
    "/sync-blob",
    response_model=SyncResult,
    dependencies=[Depends(require_admin)],
)
async def sync_blob(
    storage: type[StorageClient] = Depends(get_storage),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SyncResult:
    """Import videos found in blob storage that have no catalog entry yet."""
    try:
        return await sync_blob_storage(storage, session_factory, page_size=settings.sync_page_size)
    except CollaboratorError as e:
        raise CollaboratorError("Failed to sync videos from blob storage", details=e.details or e.message) from e


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: int = Depends(video_id_param),
    db: AsyncSession = Depends(get_db),
) -> VideoResponse:
    """Get details for a specific video."""
    video = await catalog.get_video(db, video_id)
    if not video:
        raise NotFoundError("Video not found")
    return VideoResponse(video=video)


@router.patch(
    "/{video_id}",
    response_model=VideoResponse,
    dependencies=[Depends(require_admin)],
)
async def update_video(
    request: VideoUpdateRequest,
    video_id: int = Depends(video_id_param),
    db: AsyncSession = Depends(get_db),
) -> VideoResponse:
    """Update title, description, category, display date or visibility."""
    changes = request.model_dump(exclude_unset=True)
    logger.info("Updating video", video_id=video_id, fields=sorted(changes))

    video = await catalog.update_video(db, video_id, VideoUpdate(**changes))
    if not video:
        raise NotFoundError("Video not found")
    await db.commit()
    return VideoResponse(video=video)


@router.post(
    "/{video_id}/visibility",
    response_model=VisibilityResponse,
    dependencies=[Depends(require_admin)],
)
async def set_visibility(
    request: VisibilityRequest,
    video_id: int = Depends(video_id_param),
    db: AsyncSession = Depends(get_db),
) -> VisibilityResponse:
    """Show or hide a video in public listings.

    The caller sends the desired state rather than asking for a flip, so two
    admins acting at once cannot undo each other by accident.
    """
    if not isinstance(request.visible, bool):
        raise ValidationError("visible must be a boolean")

    video = await catalog.set_visibility(db, video_id, request.visible)
    if not video:
        raise NotFoundError("Video not found")
    await db.commit()
    return VisibilityResponse(video=video)


@router.delete(
    "/{video_id}",
    response_model=DeleteResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def delete_video(
    video_id: int = Depends(video_id_param),
    db: AsyncSession = Depends(get_db),
    storage: type[StorageClient] = Depends(get_storage),
) -> DeleteResponse:
    """
    Delete a video.

    Blob removal is best-effort: storage and catalog fail independently, so
    the catalog row is deleted even when the blob cannot be removed.
    """
    video = await catalog.get_video(db, video_id)
    if not video:
        raise NotFoundError("Video not found")

    logger.info("Deleting video", video_id=video_id, title=video.title, blob_url=video.blob_url)

    blob_deleted = False
    try:
        blob_deleted = storage.delete_blob(video.blob_url)
    except Exception as e:
        logger.warning(
            "Could not delete blob, continuing with catalog deletion",
            video_id=video_id,
            blob_url=video.blob_url,
            error=str(e),
        )

    deleted = await catalog.delete_video(db, video_id)
    await db.commit()

    if not deleted:
        return DeleteResponse(
            blob_deleted=blob_deleted,
            message="Video not found in database (may have been already deleted)",
        )
    return DeleteResponse(blob_deleted=blob_deleted)
