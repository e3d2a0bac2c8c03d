"""Tests for the MinIO-backed storage client, with the MinIO client mocked."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from minio.error import S3Error

from gallery.config import settings
from gallery.errors import CollaboratorError
from gallery.storage import StorageClient


class _S3Failure(S3Error):
    """S3Error with a fixed code, without going through the response-based constructor."""

    def __init__(self, code: str) -> None:
        Exception.__init__(self, code)
        self._failure_code = code

    @property
    def code(self) -> str:
        return self._failure_code

    def __str__(self) -> str:
        return self._failure_code


@pytest.fixture
def minio_client(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    client = MagicMock()
    monkeypatch.setattr(StorageClient, "_instance", client)
    monkeypatch.setattr(settings, "storage_public_base_url", "https://cdn.test/videos")
    return client


def test_public_url_round_trip(minio_client: MagicMock) -> None:
    url = StorageClient.public_url("uploads/my clip.mp4")
    assert url == "https://cdn.test/videos/uploads/my%20clip.mp4"
    assert StorageClient.key_from_url(url) == "uploads/my clip.mp4"


def test_key_from_foreign_url_strips_bucket(minio_client: MagicMock) -> None:
    assert StorageClient.key_from_url("http://minio:9000/videos/a/b.mp4") == "a/b.mp4"
    assert StorageClient.key_from_url("https://elsewhere.test/clip.mp4") == "clip.mp4"


def test_list_blobs_skips_directories(minio_client: MagicMock) -> None:
    minio_client.list_objects.return_value = iter([
        SimpleNamespace(object_name="dir/", size=None, is_dir=True),
        SimpleNamespace(object_name="dir/a.mp4", size=10, is_dir=False),
        SimpleNamespace(object_name="b.mov", size=20, is_dir=False),
    ])

    blobs = StorageClient.list_blobs(limit=1)

    assert [(b.key, b.url, b.size) for b in blobs] == [("dir/a.mp4", "https://cdn.test/videos/dir/a.mp4", 10)]


def test_list_blobs_wraps_storage_errors(minio_client: MagicMock) -> None:
    minio_client.list_objects.side_effect = _S3Failure("AccessDenied")
    with pytest.raises(CollaboratorError):
        StorageClient.list_blobs()


def test_delete_blob(minio_client: MagicMock) -> None:
    assert StorageClient.delete_blob("https://cdn.test/videos/a.mp4") is True
    minio_client.remove_object.assert_called_once_with(bucket_name=settings.storage_bucket_videos, object_name="a.mp4")


def test_delete_absent_blob(minio_client: MagicMock) -> None:
    minio_client.stat_object.side_effect = _S3Failure("NoSuchKey")

    assert StorageClient.delete_blob("https://cdn.test/videos/gone.mp4") is False
    minio_client.remove_object.assert_not_called()


def test_missing_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(StorageClient, "_instance", None)
    monkeypatch.setattr(settings, "minio_access_key", None)

    with pytest.raises(CollaboratorError, match="not configured"):
        StorageClient.get_client()
