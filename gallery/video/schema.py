"""Column capability detection for the videos table.

The live table may lag behind the model (a migration not yet applied, or a
column dropped by hand). Columns are detected once per process and cached;
catalog statements are built from the cached set so optional columns that
do not exist are simply left out.
"""

import re
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError, NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.errors import SchemaDriftError
from gallery.logging_config import logger
from gallery.models.video import Video, REQUIRED_COLUMNS

MODEL_COLUMNS = tuple(column.name for column in Video.__table__.columns)
OPTIONAL_COLUMNS = frozenset(MODEL_COLUMNS) - REQUIRED_COLUMNS

# Driver messages for "column missing" failures (PostgreSQL, SQLite, MySQL)
MISSING_COLUMN_MARKERS = (
    "does not exist",
    "no such column",
    "has no column named",
    "unknown column",
)


def _live_columns(sync_conn) -> set[str]:
    return {column["name"] for column in inspect(sync_conn).get_columns(Video.__tablename__)}


class CatalogSchema:
    """Per-process cache of the columns present in the videos table."""

    _columns: Optional[frozenset[str]] = None

    @classmethod
    async def columns(cls, db: AsyncSession) -> frozenset[str]:
        """Return the available model columns, detecting them on first use."""
        if cls._columns is None:
            cls._columns = await cls.detect(db)
        return cls._columns

    @classmethod
    async def detect(cls, db: AsyncSession) -> frozenset[str]:
        """Inspect the live table and return the model columns it has."""
        conn = await db.connection()
        try:
            live = await conn.run_sync(_live_columns)
        except NoSuchTableError as e:
            raise SchemaDriftError(
                f"Table '{Video.__tablename__}' does not exist",
                details=str(e),
            ) from e

        missing_required = sorted(REQUIRED_COLUMNS - live)
        if missing_required:
            raise SchemaDriftError(
                "Catalog table is missing required columns",
                column=missing_required[0],
                details={"missing": missing_required},
            )

        available = frozenset(name for name in MODEL_COLUMNS if name in live)
        absent = sorted(OPTIONAL_COLUMNS - available)
        if absent:
            logger.warning("Catalog table is missing optional columns", missing=absent)
        logger.info("Detected catalog columns", columns=sorted(available))
        return available

    @classmethod
    def cached(cls) -> Optional[frozenset[str]]:
        return cls._columns

    @classmethod
    def mark_missing(cls, name: str) -> None:
        """Drop an optional column from the cache after the store rejected it."""
        if name in REQUIRED_COLUMNS:
            raise SchemaDriftError(f"Required column '{name}' is missing", column=name)
        if cls._columns is not None:
            cls._columns = cls._columns - {name}
        logger.warning("Marked catalog column as missing", column=name)

    @classmethod
    def reset(cls) -> None:
        cls._columns = None


def missing_column_from_error(exc: DBAPIError, candidates: frozenset[str]) -> Optional[str]:
    """Name of the optional column a database error complains about, if any."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    if not any(marker in message for marker in MISSING_COLUMN_MARKERS):
        return None

    # Longest names first so "display_date" wins over any shorter substring
    for name in sorted(candidates & OPTIONAL_COLUMNS, key=len, reverse=True):
        if re.search(rf"\b{re.escape(name)}\b", message):
            return name
    return None
