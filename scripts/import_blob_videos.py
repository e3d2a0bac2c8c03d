#!/usr/bin/env python3
"""
Import videos from blob storage into the catalog.

Creates a catalog row for every video object that does not have one yet.
Existing rows (and their visibility) are left alone.

Usage: python scripts/import_blob_videos.py
"""

import asyncio
import sys

from gallery.config import settings
from gallery.db import AsyncSessionLocal, close_db
from gallery.errors import GalleryError
from gallery.storage import StorageClient
from gallery.video.sync import sync_blob_storage


async def import_blob_videos() -> int:
    print("Fetching videos from blob storage...")
    try:
        result = await sync_blob_storage(StorageClient, AsyncSessionLocal, page_size=settings.sync_page_size)
    except GalleryError as e:
        print(f"ERROR: {e.message}")
        if e.details:
            print(f"  {e.details}")
        return 1
    finally:
        await close_db()

    print(result.message)
    print(f"  Imported: {result.imported}")
    print(f"  Skipped:  {result.skipped}")
    print(f"  Errors:   {result.errors}")
    print(f"  Total:    {result.total}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(import_blob_videos()))
