from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from typing import Iterable

from catalog.identifier import video_identifier
from catalog.models import LabelCount
from catalog.models import RecordOutcome
from catalog.models import VideoRecord
from catalog.store import add_labels_sync
from catalog.store import count_videos_sync
from catalog.store import ensure_catalog_schema
from catalog.store import fetch_labels_for_video_sync
from catalog.store import fetch_random_video_sync
from catalog.store import fetch_video_by_identifier_sync
from catalog.store import fetch_videos_by_label_sync
from catalog.store import insert_video_sync
from catalog.store import list_labels_sync
from catalog.store import record_video_sync
from catalog.store import set_video_url_sync
from catalog.store import video_exists_sync


def utc_iso(dt: datetime | None = None) -> str:
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def open_catalog_connection(db_path: str) -> sqlite3.Connection:
    # check_same_thread=False because discord.py event loop + to_thread usage
    conn = sqlite3.connect(db_path, check_same_thread=False)
    cur = conn.cursor()
    if db_path != ":memory:":
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA synchronous=NORMAL;")
    ensure_catalog_schema(conn)
    return conn


class VideoCatalog:
    """
    The one store handle shared by every event handler and command.

    Each call runs the matching *_sync store function on a worker thread while
    holding an asyncio.Lock, so statements never interleave on the connection.
    """

    def __init__(self, conn: sqlite3.Connection, *, strict_identifiers: bool = False) -> None:
        self.conn = conn
        self.strict_identifiers = bool(strict_identifiers)
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _run(self, func, *args, **kwargs):
        if self.closed:
            raise RuntimeError("video catalog is closed")
        async with self._lock:
            return await asyncio.to_thread(func, self.conn, *args, **kwargs)

    def identifier_for(self, video_url: str) -> str:
        return video_identifier(video_url, strict=self.strict_identifiers)

    async def insert_video(
        self,
        video_url: str,
        upload_date: str,
        message_url: str,
        labels: Iterable[str] | None = None,
    ) -> int:
        return await self._run(
            insert_video_sync,
            video_url=video_url,
            upload_date=upload_date,
            message_url=message_url,
            labels=list(labels or []),
        )

    async def video_exists(self, identifier: str) -> bool:
        return await self._run(video_exists_sync, identifier)

    async def add_labels(self, video_url: str, labels: Iterable[str]) -> list[str]:
        return await self._run(add_labels_sync, video_url, list(labels))

    async def get_random_video(self) -> VideoRecord | None:
        return await self._run(fetch_random_video_sync)

    async def get_videos_by_label(self, label: str) -> list[VideoRecord]:
        return await self._run(fetch_videos_by_label_sync, label)

    async def get_labels_for_video(self, video_url: str) -> list[str]:
        return await self._run(fetch_labels_for_video_sync, video_url)

    async def get_video_by_identifier(self, identifier: str) -> VideoRecord | None:
        return await self._run(fetch_video_by_identifier_sync, identifier)

    async def set_video_url(self, identifier: str, new_url: str) -> VideoRecord:
        return await self._run(set_video_url_sync, identifier, new_url)

    async def count_videos(self) -> int:
        return await self._run(count_videos_sync)

    async def list_labels(self, limit: int = 50) -> list[LabelCount]:
        return await self._run(list_labels_sync, limit)

    async def record_video(
        self,
        video_url: str,
        message_url: str,
        uploaded_at: datetime | None = None,
    ) -> RecordOutcome:
        # Lookup and write happen under a single lock hold.
        return await self._run(
            record_video_sync,
            identifier=self.identifier_for(video_url),
            video_url=video_url,
            upload_date=utc_iso(uploaded_at),
            message_url=message_url,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.conn.commit()
        finally:
            self.conn.close()


def open_catalog(db_path: str, *, strict_identifiers: bool = False) -> VideoCatalog:
    return VideoCatalog(open_catalog_connection(db_path), strict_identifiers=strict_identifiers)
