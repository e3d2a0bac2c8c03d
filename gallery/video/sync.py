"""Blob storage to catalog synchronization.

Imports every video object in the bucket that has no catalog row yet.
Existing rows are never touched, so visibility chosen by an admin survives
any number of runs.

Two concurrent runs can both decide a blob is new and insert it twice;
runs are admin-triggered and infrequent, so this is not guarded.
"""

import os
from urllib.parse import unquote

from sqlalchemy.ext.asyncio import async_sessionmaker

from gallery.logging_config import logger
from gallery.storage import BlobInfo, StorageClient
from gallery.video import catalog
from gallery.video.schemas import SyncResult, VideoCreate

VIDEO_EXTENSIONS = (".mp4", ".mov", ".webm", ".avi", ".mkv", ".m4v")


def is_video_key(key: str) -> bool:
    return os.path.splitext(key.lower())[1] in VIDEO_EXTENSIONS


def file_name_from_key(key: str) -> str:
    return key.rstrip("/").split("/")[-1] or key


def title_from_file_name(file_name: str) -> str:
    """Human-readable title: no extension, separators turned into spaces."""
    stem = os.path.splitext(file_name)[0]
    title = unquote(stem).replace("-", " ").replace("_", " ").strip()
    return title or file_name


async def _import_blob(blob: BlobInfo, session_factory: async_sessionmaker) -> bool:
    """Insert a catalog row for the blob unless one exists. Returns True if imported."""
    file_name = file_name_from_key(blob.key)

    async with session_factory() as db:
        existing = await catalog.find_existing(db, url=blob.url, file_name=file_name)
        if existing is not None:
            return False

        await catalog.create_video(
            db,
            VideoCreate(
                title=title_from_file_name(file_name),
                blob_url=blob.url,
                video_url=blob.url,
                file_name=file_name,
                file_size=blob.size,
            ),
        )
        await db.commit()
        return True


async def sync_blob_storage(
    storage: type[StorageClient],
    session_factory: async_sessionmaker,
    page_size: int = 1000,
) -> SyncResult:
    """Import blobs that have no catalog entry.

    Args:
        storage: Blob storage client
        session_factory: Factory for per-blob database sessions
        page_size: Maximum number of objects to list

    Returns:
        Counts of imported, skipped and failed blobs

    Raises:
        CollaboratorError: If blob storage cannot be listed
    """
    blobs = storage.list_blobs(limit=page_size)
    logger.info("Syncing videos from blob storage", files=len(blobs))

    if not blobs:
        return SyncResult(message="No files found in Blob Storage")

    video_blobs = [blob for blob in blobs if is_video_key(blob.key)]
    result = SyncResult(total=len(video_blobs))

    for blob in video_blobs:
        try:
            if await _import_blob(blob, session_factory):
                result.imported += 1
            else:
                result.skipped += 1
        except Exception as e:
            logger.error("Failed to import blob", key=blob.key, error=str(e), exc_info=True)
            result.errors += 1

    result.message = (
        f"Imported {result.imported} new video(s), skipped {result.skipped} existing video(s)"
    )
    logger.info(
        "Blob sync complete",
        imported=result.imported,
        skipped=result.skipped,
        errors=result.errors,
        total=result.total,
    )
    return result

