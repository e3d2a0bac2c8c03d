#!/usr/bin/env python3
"""
Make every video visible.

Sets visible = true on rows where it is false or null.

Usage: python scripts/set_all_visible.py
"""

import asyncio
import sys

from sqlalchemy import func, or_, select, update

from gallery.db import AsyncSessionLocal, close_db
from gallery.errors import SchemaDriftError
from gallery.models import Video
from gallery.video.schema import CatalogSchema


async def set_all_visible() -> int:
    try:
        async with AsyncSessionLocal() as db:
            try:
                columns = await CatalogSchema.columns(db)
            except SchemaDriftError as e:
                print(f"ERROR: {e.message}")
                return 1

            if "visible" not in columns:
                print("The videos table has no visible column; every video is already shown.")
                print("Run 'alembic upgrade head' to add it.")
                return 0

            result = await db.execute(
                update(Video.__table__)
                .where(or_(Video.visible.is_(None), Video.visible.is_(False)))
                .values(visible=True, updated_at=func.now())
            )
            await db.commit()
            print(f"Updated {result.rowcount} video(s) to be visible")

            total = (await db.execute(select(func.count()).select_from(Video.__table__))).scalar_one()
            print(f"Total videos: {total}")
    finally:
        await close_db()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(set_all_visible()))
