from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    import discord
    from discord.ext import commands
except ModuleNotFoundError:
    discord = None
    commands = None

if commands is not None:
    from ingestion.service import BackfillResult
    from misc.events_runtime import register_runtime_events
    from misc.runtime_deps import RuntimeBootDeps
    from misc.runtime_deps import RuntimeDeps


def _message(*, channel_id: int, author_bot: bool = False, author_id: int = 1, content: str = "", attachments=None):
    return SimpleNamespace(
        id=42,
        guild=SimpleNamespace(id=7),
        channel=SimpleNamespace(id=channel_id),
        author=SimpleNamespace(id=author_id, bot=author_bot),
        content=content,
        attachments=list(attachments or []),
    )


@unittest.skipIf(commands is None, "discord.py not installed")
class EventsRuntimeTests(unittest.IsolatedAsyncioTestCase):
    def _build(self):
        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        captured: list = []
        processed: list = []

        async def capture(message):
            captured.append(message)

        async def process_commands(message):
            processed.append(message)

        async def _noop(*args, **kwargs):
            return None

        bot.process_commands = process_commands
        register_runtime_events(
            bot,
            deps=RuntimeDeps(
                video_channel_id=123,
                guild_id=7,
                command_prefix="!",
                capture_message_func=capture,
            ),
            boot=RuntimeBootDeps(
                sync_app_commands=False,
                backfill_on_start=False,
                resolve_video_channel=_noop,
                backfill_channel_func=_noop,
            ),
        )
        return bot, captured, processed

    async def test_video_channel_attachments_are_captured(self):
        bot, captured, processed = self._build()
        msg = _message(channel_id=123, attachments=[SimpleNamespace(url="u", content_type="video/mp4")])
        await bot.on_message(msg)
        self.assertEqual(captured, [msg])
        self.assertEqual(processed, [])

    async def test_other_channels_are_ignored(self):
        bot, captured, _processed = self._build()
        await bot.on_message(_message(channel_id=999, attachments=[SimpleNamespace(url="u", content_type="video/mp4")]))
        self.assertEqual(captured, [])

    async def test_prefixed_messages_reach_commands(self):
        bot, captured, processed = self._build()
        msg = _message(channel_id=999, content="!incidents random")
        await bot.on_message(msg)
        self.assertEqual(processed, [msg])
        self.assertEqual(captured, [])

    async def test_bot_authors_cannot_run_commands(self):
        bot, _captured, processed = self._build()
        await bot.on_message(_message(channel_id=999, author_bot=True, author_id=5, content="!incidents update"))
        self.assertEqual(processed, [])

    async def test_capture_errors_do_not_escape(self):
        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())

        async def broken(message):
            raise RuntimeError("disk full")

        async def _noop(*args, **kwargs):
            return None

        register_runtime_events(
            bot,
            deps=RuntimeDeps(video_channel_id=123, guild_id=7, command_prefix="!", capture_message_func=broken),
            boot=RuntimeBootDeps(
                sync_app_commands=False,
                backfill_on_start=False,
                resolve_video_channel=_noop,
                backfill_channel_func=_noop,
            ),
        )
        await bot.on_message(_message(channel_id=123, attachments=[SimpleNamespace(url="u", content_type="video/mp4")]))

    async def test_startup_backfill_runs_once_on_ready(self):
        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        channel = SimpleNamespace(id=123)
        scanned: list = []

        async def resolve():
            return channel

        async def backfill(target):
            scanned.append(target)
            return BackfillResult(scanned=2, added=1)

        async def capture(message):
            return None

        register_runtime_events(
            bot,
            deps=RuntimeDeps(video_channel_id=123, guild_id=7, command_prefix="!", capture_message_func=capture),
            boot=RuntimeBootDeps(
                sync_app_commands=False,
                backfill_on_start=True,
                resolve_video_channel=resolve,
                backfill_channel_func=backfill,
            ),
        )
        await bot.on_ready()
        await bot._startup_backfill_task
        await bot.on_ready()
        self.assertEqual(scanned, [channel])


if __name__ == "__main__":
    unittest.main()
