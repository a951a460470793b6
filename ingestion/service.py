from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from catalog.identifier import has_signature
from catalog.models import MalformedIdentifierError
from catalog.models import RecordOutcome
from config.defaults import DEFAULT_BACKFILL_PAGE_SIZE
from config.defaults import DEFAULT_VIDEO_CONTENT_TYPES
from config.defaults import MAX_BACKFILL_PAGE_SIZE


@dataclass(slots=True)
class BackfillResult:
    scanned: int = 0
    added: int = 0
    healed: int = 0
    skipped: int = 0
    pages: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_video_attachment(attachment: Any, content_types: list[str] | None = None) -> bool:
    content_type = str(getattr(attachment, "content_type", None) or "").strip().lower()
    if not content_type or not getattr(attachment, "url", None):
        return False
    prefixes = content_types or DEFAULT_VIDEO_CONTENT_TYPES
    return any(content_type.startswith(prefix) for prefix in prefixes)


def video_attachments(message: Any, content_types: list[str] | None = None) -> list[Any]:
    return [a for a in (getattr(message, "attachments", None) or []) if is_video_attachment(a, content_types)]


async def _record_message_videos(
    message: Any,
    *,
    catalog,
    content_types: list[str] | None,
    result: BackfillResult | None = None,
) -> list[RecordOutcome]:
    outcomes: list[RecordOutcome] = []
    for attachment in video_attachments(message, content_types):
        try:
            outcome = await catalog.record_video(
                attachment.url,
                message_url=str(getattr(message, "jump_url", "") or ""),
                uploaded_at=getattr(message, "created_at", None),
            )
        except MalformedIdentifierError as e:
            kind = "malformed" if has_signature(attachment.url) else "unsigned"
            print(f"[Capture] Skipping {kind} attachment on message {getattr(message, 'id', '?')}: {e}")
            if result is not None:
                result.skipped += 1
            continue
        outcomes.append(outcome)
        if result is not None:
            if outcome is RecordOutcome.ADDED:
                result.added += 1
            elif outcome is RecordOutcome.HEALED:
                result.healed += 1
    return outcomes


async def capture_message_videos(
    message: Any,
    *,
    catalog,
    content_types: list[str] | None = None,
) -> list[RecordOutcome]:
    outcomes = await _record_message_videos(message, catalog=catalog, content_types=content_types)
    for outcome in outcomes:
        if outcome is not RecordOutcome.UNCHANGED:
            print(f"[Capture] Video {outcome.value} from message {getattr(message, 'id', '?')}")
    return outcomes


async def backfill_channel(
    channel: Any,
    *,
    catalog,
    content_types: list[str] | None = None,
    page_size: int = DEFAULT_BACKFILL_PAGE_SIZE,
    pause_every: int = 0,
    pause_seconds: float = 0.0,
) -> BackfillResult:
    """
    Walk the channel history newest to oldest, one page at a time, cataloging
    every video attachment. Pages are fetched with `before=` the last message of
    the previous page until an empty page comes back.

    Any error stops the scan; the returned result keeps the counts reached so
    far and the error text.
    """
    result = BackfillResult()
    limit = max(1, min(int(page_size or DEFAULT_BACKFILL_PAGE_SIZE), MAX_BACKFILL_PAGE_SIZE))
    channel_id = getattr(channel, "id", "?")
    print(f"[Backfill] Starting channel {channel_id} ({getattr(channel, 'name', 'unknown')}) page_size={limit}")

    cursor = None
    try:
        while True:
            page = [msg async for msg in channel.history(limit=limit, before=cursor)]
            if not page:
                break
            result.pages += 1

            for msg in page:
                result.scanned += 1
                await _record_message_videos(msg, catalog=catalog, content_types=content_types, result=result)
                if pause_every and result.scanned % max(1, int(pause_every)) == 0:
                    await asyncio.sleep(float(pause_seconds))

            cursor = page[-1]
    except Exception as e:
        result.error = str(e) or e.__class__.__name__
        print(
            f"[Backfill] Error in channel {channel_id}: {e} "
            f"(scanned={result.scanned} added={result.added} healed={result.healed})"
        )
        return result

    print(
        f"[Backfill] Done channel {channel_id}. Scanned {result.scanned} messages in {result.pages} pages. "
        f"Added={result.added} Healed={result.healed} Skipped={result.skipped}"
    )
    return result
