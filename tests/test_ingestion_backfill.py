from __future__ import annotations

import unittest
from datetime import datetime, timezone
from types import SimpleNamespace

from catalog.models import RecordOutcome
from catalog.service import open_catalog
from ingestion.service import backfill_channel
from ingestion.service import capture_message_videos
from ingestion.service import is_video_attachment
from ingestion.service import video_attachments


def _attachment(url: str, content_type: str | None = "video/mp4"):
    return SimpleNamespace(url=url, content_type=content_type)


def _message(message_id: int, attachments=None):
    return SimpleNamespace(
        id=message_id,
        jump_url=f"https://discord.com/channels/1/2/{message_id}",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        attachments=list(attachments or []),
    )


class _FakeHistoryChannel:
    """Newest-first history that honours limit/before like discord.py."""

    def __init__(self, messages, *, fail_after_pages: int | None = None):
        self.id = 555
        self.name = "incidents"
        self._messages = sorted(messages, key=lambda m: m.id, reverse=True)
        self.calls: list[tuple[int, int | None]] = []
        self._fail_after_pages = fail_after_pages

    def history(self, *, limit, before=None):
        before_id = getattr(before, "id", None)
        self.calls.append((limit, before_id))
        if self._fail_after_pages is not None and len(self.calls) > self._fail_after_pages:
            raise RuntimeError("gateway timeout")
        page = [m for m in self._messages if before_id is None or m.id < before_id][:limit]

        async def _gen():
            for m in page:
                yield m

        return _gen()


class AttachmentFilterTests(unittest.TestCase):
    def test_only_video_content_types_match(self):
        self.assertTrue(is_video_attachment(_attachment("u", "video/mp4")))
        self.assertTrue(is_video_attachment(_attachment("u", "Video/QuickTime")))
        self.assertFalse(is_video_attachment(_attachment("u", "image/png")))
        self.assertFalse(is_video_attachment(_attachment("u", None)))
        self.assertFalse(is_video_attachment(_attachment("", "video/mp4")))

    def test_custom_prefixes(self):
        self.assertTrue(is_video_attachment(_attachment("u", "image/gif"), ["video/", "image/gif"]))

    def test_video_attachments_keeps_all_videos(self):
        msg = _message(1, [_attachment("a&hm=1"), _attachment("b", "image/png"), _attachment("c&hm=2")])
        self.assertEqual([a.url for a in video_attachments(msg)], ["a&hm=1", "c&hm=2"])


class CaptureTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.catalog = open_catalog(":memory:")

    async def asyncTearDown(self):
        self.catalog.close()

    async def test_live_capture_records_every_video(self):
        msg = _message(10, [_attachment("https://cdn/a.mp4?s&hm=1"), _attachment("https://cdn/b.mp4?s&hm=1")])
        outcomes = await capture_message_videos(msg, catalog=self.catalog)
        self.assertEqual(outcomes, [RecordOutcome.ADDED, RecordOutcome.ADDED])
        self.assertEqual(await self.catalog.count_videos(), 2)

        outcomes = await capture_message_videos(msg, catalog=self.catalog)
        self.assertEqual(outcomes, [RecordOutcome.UNCHANGED, RecordOutcome.UNCHANGED])

    async def test_strict_policy_skips_unsigned_attachment(self):
        strict = open_catalog(":memory:", strict_identifiers=True)
        try:
            msg = _message(11, [_attachment("https://example.com/raw.mp4"), _attachment("https://cdn/a.mp4?s&hm=1")])
            outcomes = await capture_message_videos(msg, catalog=strict)
            self.assertEqual(outcomes, [RecordOutcome.ADDED])
        finally:
            strict.close()


class BackfillTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.catalog = open_catalog(":memory:")

    async def asyncTearDown(self):
        self.catalog.close()

    async def test_pages_backwards_until_empty(self):
        messages = [_message(i, [_attachment(f"https://cdn/{i}.mp4?s&hm=a")] if i % 2 == 0 else []) for i in range(1, 8)]
        channel = _FakeHistoryChannel(messages)

        result = await backfill_channel(channel, catalog=self.catalog, page_size=3)

        self.assertTrue(result.ok)
        self.assertEqual(result.scanned, 7)
        self.assertEqual(result.added, 3)
        self.assertEqual(result.pages, 3)
        self.assertEqual(channel.calls, [(3, None), (3, 5), (3, 2), (3, 1)])
        self.assertEqual(await self.catalog.count_videos(), 3)

    async def test_rescan_heals_rotated_links(self):
        await self.catalog.record_video("https://cdn/2.mp4?s&hm=old", message_url="m")
        channel = _FakeHistoryChannel([_message(2, [_attachment("https://cdn/2.mp4?s&hm=new")])])

        result = await backfill_channel(channel, catalog=self.catalog)

        self.assertEqual((result.added, result.healed), (0, 1))
        self.assertEqual(await self.catalog.count_videos(), 1)
        video = await self.catalog.get_random_video()
        self.assertEqual(video.video_url, "https://cdn/2.mp4?s&hm=new")

    async def test_error_aborts_and_keeps_counts(self):
        messages = [_message(i, [_attachment(f"https://cdn/{i}.mp4?s&hm=a")]) for i in range(1, 6)]
        channel = _FakeHistoryChannel(messages, fail_after_pages=1)

        result = await backfill_channel(channel, catalog=self.catalog, page_size=2)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, "gateway timeout")
        self.assertEqual(result.scanned, 2)
        self.assertEqual(result.added, 2)

    async def test_page_size_is_capped(self):
        channel = _FakeHistoryChannel([])
        result = await backfill_channel(channel, catalog=self.catalog, page_size=500)
        self.assertEqual(channel.calls, [(100, None)])
        self.assertEqual(result.scanned, 0)


if __name__ == "__main__":
    unittest.main()
