from __future__ import annotations

import asyncio

import discord
from discord.ext import commands
from misc.discord_gates import message_in_video_channel
from misc.replies import format_backfill_result
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


async def _sync_guild_commands(bot: commands.Bot, guild_id: int) -> None:
    if not guild_id:
        synced = await bot.tree.sync()
        print(f"[Incidents] Synced {len(synced)} global app commands")
        return
    guild = discord.Object(id=int(guild_id))
    bot.tree.copy_global_to(guild=guild)
    synced = await bot.tree.sync(guild=guild)
    print(f"[Incidents] Synced {len(synced)} app commands to guild {guild_id}")


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"Logged in as {bot.user}!")

        if boot.sync_app_commands and not getattr(bot, "_app_commands_synced", False):
            try:
                await _sync_guild_commands(bot, deps.guild_id)
                bot._app_commands_synced = True
            except Exception as e:
                print(f"[Incidents] App command sync failed: {e}")

        if boot.backfill_on_start and not getattr(bot, "_startup_backfill_task", None):
            async def _startup_backfill():
                channel = await boot.resolve_video_channel()
                if channel is None:
                    print(f"[Backfill] Could not fetch channel {deps.video_channel_id}")
                    return
                result = await boot.backfill_channel_func(channel)
                print("[Backfill] " + format_backfill_result(result).replace("\n", " "))

            bot._startup_backfill_task = asyncio.create_task(_startup_backfill())

    @bot.event
    async def on_message(message: discord.Message):
        if bot.user and message.author.id == bot.user.id:
            return

        if message_in_video_channel(message, deps.video_channel_id) and getattr(message, "attachments", None):
            try:
                await deps.capture_message_func(message)
            except Exception as e:
                print(f"[Capture] Error on message {message.id}: {e}")

        if message.author.bot:
            return
        if (message.content or "").lstrip().startswith(deps.command_prefix):
            await bot.process_commands(message)
