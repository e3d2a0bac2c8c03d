"""Tests for blob storage to catalog synchronization."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from gallery.errors import CollaboratorError
from gallery.video import catalog, sync
from gallery.video.sync import file_name_from_key, is_video_key, sync_blob_storage, title_from_file_name
from gallery.video.schemas import VideoCreate

from tests.conftest import FakeStorage


@pytest.mark.parametrize(
    "file_name, title",
    [
        ("my-holiday_clip.mp4", "my holiday clip"),
        ("WEBSITE%20VID%20heaven.MOV", "WEBSITE VID heaven"),
        ("  spaced .webm", "spaced"),
        ("no_extension", "no extension"),
        ("---.mp4", "---.mp4"),
    ],
)
def test_title_from_file_name(file_name: str, title: str) -> None:
    assert title_from_file_name(file_name) == title


def test_video_key_recognition() -> None:
    assert is_video_key("videos/a.MP4")
    assert is_video_key("b.m4v")
    assert not is_video_key("thumbs/a.jpg")
    assert not is_video_key("README")
    assert file_name_from_key("videos/2024/a.mp4") == "a.mp4"


async def test_imports_new_and_skips_existing(
    storage: FakeStorage, session_factory: async_sessionmaker
) -> None:
    existing = storage.add("videos/already-here.mp4")
    storage.add("videos/brand-new.mp4", size=2048)

    async with session_factory() as db:
        await catalog.create_video(
            db,
            VideoCreate(title="Already here", blob_url=existing.url, file_name="already-here.mp4"),
        )
        await db.commit()

    result = await sync_blob_storage(storage, session_factory)

    assert (result.imported, result.skipped, result.errors) == (1, 1, 0)
    assert result.total == 2
    assert result.message == "Imported 1 new video(s), skipped 1 existing video(s)"

    async with session_factory() as db:
        videos = await catalog.list_videos(db)
    imported = next(v for v in videos if v.file_name == "brand-new.mp4")
    assert imported.title == "brand new"
    assert imported.file_size == 2048
    assert imported.blob_url == imported.video_url
    assert imported.visible is True


async def test_second_run_imports_nothing(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    storage.add("a.mp4")
    storage.add("b.mov")

    first = await sync_blob_storage(storage, session_factory)
    second = await sync_blob_storage(storage, session_factory)

    assert first.imported == 2
    assert second.imported == 0
    assert second.skipped == 2


async def test_existing_match_by_file_name_only(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    storage.add("videos/moved.mp4")
    async with session_factory() as db:
        await catalog.create_video(
            db,
            VideoCreate(title="Moved", blob_url="https://old-host/moved.mp4", file_name="moved.mp4"),
        )
        await db.commit()

    result = await sync_blob_storage(storage, session_factory)
    assert (result.imported, result.skipped) == (0, 1)


async def test_sync_never_changes_visibility(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    storage.add("secret.mp4")
    await sync_blob_storage(storage, session_factory)

    async with session_factory() as db:
        (video,) = await catalog.list_videos(db)
        await catalog.set_visibility(db, video.id, False)
        await db.commit()

    await sync_blob_storage(storage, session_factory)

    async with session_factory() as db:
        assert await catalog.list_videos(db) == []
        (still_hidden,) = await catalog.list_videos(db, include_hidden=True)
    assert still_hidden.visible is False


async def test_non_video_files_are_ignored(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    storage.add("poster.jpg")
    storage.add("notes.txt")
    storage.add("clip.webm")

    result = await sync_blob_storage(storage, session_factory)
    assert result.total == 1
    assert result.imported == 1


async def test_empty_storage(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    result = await sync_blob_storage(storage, session_factory)
    assert (result.imported, result.skipped, result.errors) == (0, 0, 0)
    assert result.message == "No files found in Blob Storage"


async def test_one_bad_blob_does_not_abort_the_batch(
    storage: FakeStorage, session_factory: async_sessionmaker, monkeypatch: pytest.MonkeyPatch
) -> None:
    storage.add("good-one.mp4")
    storage.add("bad-one.mp4")
    storage.add("good-two.mp4")

    real_create = catalog.create_video

    async def flaky_create(db, fields):
        if fields.file_name == "bad-one.mp4":
            raise RuntimeError("disk full")
        return await real_create(db, fields)

    monkeypatch.setattr(sync.catalog, "create_video", flaky_create)

    result = await sync_blob_storage(storage, session_factory)

    assert (result.imported, result.skipped, result.errors) == (2, 0, 1)
    async with session_factory() as db:
        names = {v.file_name for v in await catalog.list_videos(db)}
    assert names == {"good-one.mp4", "good-two.mp4"}


async def test_page_size_bounds_listing(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    for i in range(5):
        storage.add(f"clip-{i}.mp4")

    result = await sync_blob_storage(storage, session_factory, page_size=3)
    assert result.total == 3


async def test_unavailable_storage_is_fatal(storage: FakeStorage, session_factory: async_sessionmaker) -> None:
    storage.unavailable = True
    with pytest.raises(CollaboratorError):
        await sync_blob_storage(storage, session_factory)
