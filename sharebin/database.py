"""
SQLite async share store.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import aiosqlite

from sharebin.exceptions import StorageError, ValidationError
from sharebin.share import FilePayload, Payload, Share, ShareStats, TextPayload
from sharebin.utils.code_generator import generate_share_id

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 10

SCHEMA = """
CREATE TABLE IF NOT EXISTS shares (
    id TEXT PRIMARY KEY,
    content TEXT,
    filename TEXT,
    mimetype TEXT,
    file_data BLOB,
    is_file INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL,
    expires_at TIMESTAMP,
    views INTEGER NOT NULL DEFAULT 0,
    max_views INTEGER,
    CHECK (
        (is_file = 0 AND content IS NOT NULL AND file_data IS NULL)
        OR (is_file = 1 AND content IS NULL AND file_data IS NOT NULL)
    )
);
CREATE INDEX IF NOT EXISTS idx_shares_expires ON shares(expires_at);
"""


def utcnow() -> datetime:
    """Naive UTC now, the form every timestamp is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_db(value: Optional[datetime]) -> Optional[str]:
    # Fixed-width ISO strings compare lexicographically in time order.
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


def _from_db(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_share(row: aiosqlite.Row) -> Share:
    if row["is_file"]:
        payload = FilePayload(
            filename=row["filename"],
            mimetype=row["mimetype"],
            data=bytes(row["file_data"]),
        )
    else:
        payload = TextPayload(content=row["content"])
    return Share(
        id=row["id"],
        payload=payload,
        created_at=_from_db(row["created_at"]),
        expires_at=_from_db(row["expires_at"]),
        views=row["views"],
        max_views=row["max_views"],
    )


class ShareStore:
    """
    Persistent share storage backed by one shared SQLite connection.

    The connection runs in autocommit mode, so every statement below is its
    own transaction. Each state change is a single statement, which is what
    keeps concurrent retrievals and cleanup sweeps consistent.
    """

    def __init__(self, database_path: Union[str, Path]):
        self.database_path = database_path
        self._db: Optional[aiosqlite.Connection] = None

    async def open(self):
        """Connect and create the schema if needed."""
        if self._db is not None:
            return
        if str(self.database_path) != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            db = await aiosqlite.connect(self.database_path, isolation_level=None)
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA journal_mode=WAL")
            await db.executescript(SCHEMA)
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to open share database: {e}") from e
        self._db = db
        logger.info(f"Share database ready at {self.database_path}")

    async def close(self):
        if self._db is None:
            return
        db, self._db = self._db, None
        await db.close()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError("Share database is not open")
        return self._db

    async def create(
        self,
        payload: Payload,
        expires_at: Optional[datetime] = None,
        max_views: Optional[int] = None,
    ) -> str:
        """
        Insert a new share and return its id.

        Ids are random, so a duplicate is possible; the primary key rejects
        it and a fresh id is tried, up to MAX_ID_ATTEMPTS times.

        Raises:
            ValidationError: missing/empty payload or a non-positive max_views
            StorageError: the insert failed or no free id was found
        """
        if isinstance(payload, TextPayload):
            if not payload.content:
                raise ValidationError("No content provided")
            content, filename, mimetype, file_data = payload.content, None, None, None
        elif isinstance(payload, FilePayload):
            content, filename, mimetype, file_data = None, payload.filename, payload.mimetype, payload.data
        else:
            raise ValidationError("No content provided")
        if max_views is not None and max_views < 1:
            raise ValidationError("max_views must be a positive integer")

        created_at = _to_db(utcnow())
        for _ in range(MAX_ID_ATTEMPTS):
            share_id = generate_share_id()
            try:
                await self.db.execute(
                    """
                    INSERT INTO shares
                        (id, content, filename, mimetype, file_data, is_file,
                         created_at, expires_at, views, max_views)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
                    """,
                    (
                        share_id, content, filename, mimetype, file_data,
                        isinstance(payload, FilePayload), created_at,
                        _to_db(expires_at), max_views,
                    ),
                )
                return share_id
            except aiosqlite.IntegrityError as e:
                if "shares.id" not in str(e):
                    raise StorageError(f"Failed to create share: {e}") from e
                logger.warning(f"Share id collision on {share_id}, retrying")
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to create share: {e}") from e
        raise StorageError(f"Failed to generate unique share id after {MAX_ID_ATTEMPTS} attempts")

    async def retrieve_and_increment(self, share_id: str, now: Optional[datetime] = None) -> Optional[Share]:
        """
        Count one view and return the updated share.

        The expiry check and the increment are one conditional UPDATE, so an
        expired share is never counted and concurrent views are never lost.
        Returns None when the share is missing or expired.
        """
        try:
            rows = await self.db.execute_fetchall(
                """
                UPDATE shares
                SET views = views + 1
                WHERE id = ? AND (expires_at IS NULL OR expires_at > ?)
                RETURNING *
                """,
                (share_id, _to_db(now or utcnow())),
            )
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to retrieve share: {e}") from e
        rows = list(rows)
        if not rows:
            return None
        return _row_to_share(rows[0])

    async def delete_by_id(self, share_id: str):
        """Delete a share. Missing ids are ignored."""
        try:
            await self.db.execute("DELETE FROM shares WHERE id = ?", (share_id,))
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to delete share: {e}") from e

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every share whose expires_at has passed. Returns the count."""
        try:
            cursor = await self.db.execute(
                "DELETE FROM shares WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (_to_db(now or utcnow()),),
            )
            deleted = cursor.rowcount
            await cursor.close()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to delete expired shares: {e}") from e
        return deleted

    async def stats(self) -> ShareStats:
        try:
            cursor = await self.db.execute(
                """
                SELECT
                    COUNT(*) AS total_shares,
                    COUNT(CASE WHEN is_file = 1 THEN 1 END) AS total_files,
                    COUNT(CASE WHEN is_file = 0 THEN 1 END) AS total_texts,
                    COALESCE(SUM(views), 0) AS total_views
                FROM shares
                """
            )
            row = await cursor.fetchone()
            await cursor.close()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to get stats: {e}") from e
        return ShareStats(
            total_shares=row["total_shares"],
            total_files=row["total_files"],
            total_texts=row["total_texts"],
            total_views=row["total_views"],
        )
