from __future__ import annotations

import random
import sqlite3
from typing import Iterable

from catalog.identifier import sql_video_identifier
from catalog.identifier import video_identifier
from catalog.models import LabelCount
from catalog.models import RecordOutcome
from catalog.models import VideoNotFoundError
from catalog.models import VideoRecord


_VIDEO_COLUMNS = "v.id, v.videoUrl, v.uploadDate, v.messageUrl"


def ensure_catalog_schema(conn: sqlite3.Connection) -> None:
    register_catalog_functions(conn)
    cur = conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON;")

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS videos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            videoUrl TEXT NOT NULL,
            uploadDate TEXT NOT NULL,
            messageUrl TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS labels (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            label TEXT NOT NULL UNIQUE
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS video_labels (
            videoId INTEGER NOT NULL,
            labelId INTEGER NOT NULL,
            PRIMARY KEY (videoId, labelId),
            FOREIGN KEY (videoId) REFERENCES videos(id) ON DELETE CASCADE,
            FOREIGN KEY (labelId) REFERENCES labels(id) ON DELETE CASCADE
        )
        """
    )

    # Serves exact-URL lookups only. Identifier lookups scan videos and call
    # video_identifier() per row, which is fine for one channel's worth of clips.
    cur.execute("CREATE INDEX IF NOT EXISTS idx_videos_url ON videos(videoUrl)")
    conn.commit()


def register_catalog_functions(conn: sqlite3.Connection) -> None:
    conn.create_function("video_identifier", 1, sql_video_identifier, deterministic=True)


def _row_to_video(row) -> VideoRecord | None:
    if row is None:
        return None
    return VideoRecord(
        id=int(row[0]),
        video_url=str(row[1]),
        upload_date=str(row[2]),
        message_url=str(row[3]),
    )


def _clean_labels(labels: Iterable[str] | None) -> list[str]:
    # Labels are case-sensitive; only surrounding whitespace is dropped.
    out: list[str] = []
    seen: set[str] = set()
    for raw in labels or []:
        label = str(raw or "").strip()
        if not label or label in seen:
            continue
        seen.add(label)
        out.append(label)
    return out


def _upsert_label(cur: sqlite3.Cursor, label: str) -> int:
    cur.execute("INSERT OR IGNORE INTO labels (label) VALUES (?)", (label,))
    cur.execute("SELECT id FROM labels WHERE label = ? LIMIT 1", (label,))
    row = cur.fetchone()
    if not row:
        raise sqlite3.IntegrityError(f"label upsert failed for {label!r}")
    return int(row[0])


def _attach_labels(cur: sqlite3.Cursor, video_id: int, labels: list[str]) -> None:
    for label in labels:
        label_id = _upsert_label(cur, label)
        cur.execute(
            "INSERT OR IGNORE INTO video_labels (videoId, labelId) VALUES (?, ?)",
            (int(video_id), label_id),
        )


def insert_video_sync(
    conn: sqlite3.Connection,
    *,
    video_url: str,
    upload_date: str,
    message_url: str,
    labels: Iterable[str] | None = None,
) -> int:
    url = str(video_url or "").strip()
    if not url:
        raise ValueError("video_url must be non-empty")
    clean = _clean_labels(labels)

    cur = conn.cursor()
    try:
        cur.execute(
            "INSERT INTO videos (videoUrl, uploadDate, messageUrl) VALUES (?, ?, ?)",
            (url, str(upload_date or ""), str(message_url or "")),
        )
        video_id = int(cur.lastrowid)
        _attach_labels(cur, video_id, clean)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return video_id


def video_exists_sync(conn: sqlite3.Connection, identifier: str) -> bool:
    cur = conn.cursor()
    cur.execute(
        "SELECT 1 FROM videos WHERE video_identifier(videoUrl) = ? LIMIT 1",
        (str(identifier or ""),),
    )
    return cur.fetchone() is not None


def add_labels_sync(conn: sqlite3.Connection, video_url: str, labels: Iterable[str]) -> list[str]:
    clean = _clean_labels(labels)
    if not clean:
        raise ValueError("at least one label is required")

    cur = conn.cursor()
    cur.execute("SELECT id FROM videos WHERE videoUrl = ? LIMIT 1", (str(video_url or "").strip(),))
    row = cur.fetchone()
    if not row:
        raise VideoNotFoundError(str(video_url or ""))
    video_id = int(row[0])

    try:
        _attach_labels(cur, video_id, clean)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return _labels_for_video_id(cur, video_id)


def fetch_random_video_sync(conn: sqlite3.Connection, rng: random.Random | None = None) -> VideoRecord | None:
    # ORDER BY RANDOM() would scan and sort the whole table; pick an offset instead.
    total = count_videos_sync(conn)
    if total <= 0:
        return None
    offset = (rng or random).randrange(total)
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_VIDEO_COLUMNS} FROM videos v ORDER BY v.id LIMIT 1 OFFSET ?",
        (offset,),
    )
    return _row_to_video(cur.fetchone())


def fetch_videos_by_label_sync(conn: sqlite3.Connection, label: str) -> list[VideoRecord]:
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_VIDEO_COLUMNS}
        FROM videos v
        JOIN video_labels vl ON v.id = vl.videoId
        JOIN labels l ON vl.labelId = l.id
        WHERE l.label = ?
        ORDER BY v.id ASC
        """,
        (str(label or "").strip(),),
    )
    return [video for video in (_row_to_video(row) for row in cur.fetchall()) if video is not None]


def _labels_for_video_id(cur: sqlite3.Cursor, video_id: int) -> list[str]:
    cur.execute(
        """
        SELECT l.label
        FROM labels l
        JOIN video_labels vl ON l.id = vl.labelId
        WHERE vl.videoId = ?
        ORDER BY l.label ASC
        """,
        (int(video_id),),
    )
    return [str(row[0]) for row in cur.fetchall()]


def fetch_labels_for_video_sync(conn: sqlite3.Connection, video_url: str) -> list[str]:
    url = str(video_url or "").strip()
    if not url:
        return []
    cur = conn.cursor()
    cur.execute("SELECT id FROM videos WHERE videoUrl = ? LIMIT 1", (url,))
    row = cur.fetchone()
    if not row:
        # Links pasted from an older share carry a stale signature.
        cur.execute(
            "SELECT id FROM videos WHERE video_identifier(videoUrl) = ? ORDER BY id ASC LIMIT 1",
            (video_identifier(url),),
        )
        row = cur.fetchone()
    if not row:
        return []
    return _labels_for_video_id(cur, int(row[0]))


def fetch_video_by_identifier_sync(conn: sqlite3.Connection, identifier: str) -> VideoRecord | None:
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_VIDEO_COLUMNS}
        FROM videos v
        WHERE video_identifier(v.videoUrl) = ?
        ORDER BY v.id ASC
        LIMIT 1
        """,
        (str(identifier or ""),),
    )
    return _row_to_video(cur.fetchone())


def set_video_url_sync(conn: sqlite3.Connection, identifier: str, new_url: str) -> VideoRecord:
    url = str(new_url or "").strip()
    if not url:
        raise ValueError("new_url must be non-empty")
    current = fetch_video_by_identifier_sync(conn, identifier)
    if current is None:
        raise VideoNotFoundError(str(identifier or ""))

    cur = conn.cursor()
    try:
        cur.execute("UPDATE videos SET videoUrl = ? WHERE id = ?", (url, current.id))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return VideoRecord(
        id=current.id,
        video_url=url,
        upload_date=current.upload_date,
        message_url=current.message_url,
    )


def count_videos_sync(conn: sqlite3.Connection) -> int:
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM videos")
    row = cur.fetchone()
    return int(row[0]) if row else 0


def list_labels_sync(conn: sqlite3.Connection, limit: int = 50) -> list[LabelCount]:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT l.label, COUNT(vl.videoId) AS n
        FROM labels l
        LEFT JOIN video_labels vl ON l.id = vl.labelId
        GROUP BY l.id
        ORDER BY n DESC, l.label ASC
        LIMIT ?
        """,
        (max(1, min(int(limit), 500)),),
    )
    return [LabelCount(label=str(row[0]), video_count=int(row[1])) for row in cur.fetchall()]


def record_video_sync(
    conn: sqlite3.Connection,
    *,
    identifier: str,
    video_url: str,
    upload_date: str,
    message_url: str,
) -> RecordOutcome:
    url = str(video_url or "").strip()
    existing = fetch_video_by_identifier_sync(conn, identifier)
    if existing is None:
        insert_video_sync(conn, video_url=url, upload_date=upload_date, message_url=message_url)
        return RecordOutcome.ADDED
    if existing.video_url != url:
        set_video_url_sync(conn, identifier, url)
        return RecordOutcome.HEALED
    return RecordOutcome.UNCHANGED
