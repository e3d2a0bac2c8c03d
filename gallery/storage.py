"""Object storage client for MinIO / S3-compatible blob storage."""

from dataclasses import dataclass
from datetime import timedelta
from itertools import islice
from typing import Optional
from urllib.parse import quote, unquote, urlparse

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from gallery.config import settings
from gallery.errors import CollaboratorError
from gallery.logging_config import logger

MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}


@dataclass(frozen=True)
class BlobInfo:
    """One object listed from blob storage."""

    key: str
    url: str
    size: Optional[int] = None


def _strip_scheme(endpoint: str) -> str:
    return endpoint.replace("http://", "").replace("https://", "")


class StorageClient:
    """Singleton storage client for the video bucket."""

    _instance: Optional[Minio] = None

    @classmethod
    def get_client(cls) -> Minio:
        """Get or create MinIO client instance.

        Raises:
            CollaboratorError: If storage credentials are not configured
        """
        if cls._instance is None:
            if not settings.minio_access_key or not settings.minio_secret_key:
                raise CollaboratorError(
                    "Blob storage not configured",
                    details="MINIO_ACCESS_KEY and MINIO_SECRET_KEY must be set",
                )

            endpoint = _strip_scheme(settings.minio_endpoint)
            cls._instance = Minio(
                endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                secure=settings.minio_secure,
            )

            cls._ensure_bucket()

            logger.info("MinIO client initialized", endpoint=endpoint)

        return cls._instance

    @classmethod
    def _ensure_bucket(cls):
        """Ensure the video bucket exists."""
        client = cls._instance
        if not client:
            return

        bucket_name = settings.storage_bucket_videos
        try:
            if not client.bucket_exists(bucket_name=bucket_name):
                client.make_bucket(bucket_name=bucket_name)
                logger.info("Created storage bucket", bucket=bucket_name)
        except (S3Error, HTTPError) as e:
            logger.error(
                "Failed to create bucket",
                bucket=bucket_name,
                error=str(e)
            )

    @classmethod
    def public_base_url(cls) -> str:
        if settings.storage_public_base_url:
            return settings.storage_public_base_url.rstrip("/")
        scheme = "https" if settings.minio_secure else "http"
        return f"{scheme}://{_strip_scheme(settings.minio_endpoint)}/{settings.storage_bucket_videos}"

    @classmethod
    def public_url(cls, object_key: str) -> str:
        """Public URL under which an object is served."""
        return f"{cls.public_base_url()}/{quote(object_key)}"

    @classmethod
    def key_from_url(cls, url: str) -> str:
        """Recover the object key from a stored blob URL.

        URLs under the configured public base map directly; anything else
        falls back to the URL path, minus a leading bucket segment.
        """
        base = cls.public_base_url() + "/"
        if url.startswith(base):
            return unquote(url[len(base):])

        path = unquote(urlparse(url).path).lstrip("/")
        bucket_prefix = settings.storage_bucket_videos + "/"
        if path.startswith(bucket_prefix):
            path = path[len(bucket_prefix):]
        return path

    @classmethod
    def generate_presigned_upload_url(
        cls,
        object_key: str,
        expires: timedelta = timedelta(minutes=15),
    ) -> str:
        """
        Generate presigned URL for uploading a video.

        Args:
            object_key: Object key (path)
            expires: URL expiration time (default: 15 minutes)

        Returns:
            Presigned URL for PUT operation
        """
        client = cls.get_client()

        try:
            url = client.presigned_put_object(
                bucket_name=settings.storage_bucket_videos,
                object_name=object_key,
                expires=expires,
            )
            logger.debug(
                "Generated presigned upload URL",
                object_key=object_key,
                expires_in=str(expires)
            )
            return url
        except (S3Error, HTTPError) as e:
            logger.error(
                "Failed to generate presigned upload URL",
                object_key=object_key,
                error=str(e)
            )
            raise CollaboratorError("Failed to generate upload URL", details=str(e)) from e

    @classmethod
    def list_blobs(cls, limit: int = 1000) -> list[BlobInfo]:
        """
        List objects in the video bucket.

        Args:
            limit: Maximum number of objects to return

        Returns:
            Listed objects with their public URLs

        Raises:
            CollaboratorError: If storage is unreachable or misconfigured
        """
        client = cls.get_client()

        try:
            objects = client.list_objects(
                bucket_name=settings.storage_bucket_videos,
                recursive=True,
            )
            blobs = [
                BlobInfo(key=obj.object_name, url=cls.public_url(obj.object_name), size=obj.size)
                for obj in islice((o for o in objects if not o.is_dir), limit)
            ]
        except (S3Error, HTTPError) as e:
            logger.error("Failed to list blobs", bucket=settings.storage_bucket_videos, error=str(e))
            raise CollaboratorError("Failed to list blob storage", details=str(e)) from e

        logger.info("Listed blob storage", count=len(blobs), limit=limit)
        return blobs

    @classmethod
    def delete_blob(cls, url: str) -> bool:
        """
        Delete the object behind a stored blob URL.

        Args:
            url: Blob URL as stored in the catalog

        Returns:
            True if an object was removed, False if it was already absent

        Raises:
            CollaboratorError: If storage is unreachable or misconfigured
        """
        client = cls.get_client()
        object_key = cls.key_from_url(url)
        bucket = settings.storage_bucket_videos

        try:
            client.stat_object(bucket_name=bucket, object_name=object_key)
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                logger.info("Blob already absent", object_key=object_key)
                return False
            raise CollaboratorError("Failed to look up blob", details=str(e)) from e
        except HTTPError as e:
            raise CollaboratorError("Failed to look up blob", details=str(e)) from e

        try:
            client.remove_object(bucket_name=bucket, object_name=object_key)
        except (S3Error, HTTPError) as e:
            logger.error(
                "Failed to delete object",
                bucket=bucket,
                object_key=object_key,
                error=str(e)
            )
            raise CollaboratorError("Failed to delete blob", details=str(e)) from e

        logger.info(
            "Deleted object from storage",
            bucket=bucket,
            object_key=object_key
        )
        return True


def get_storage() -> type[StorageClient]:
    """Get storage client (for dependency injection)."""
    return StorageClient
