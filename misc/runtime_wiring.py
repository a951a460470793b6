from __future__ import annotations

from config.settings import CatalogSettings
from ingestion.service import backfill_channel as backfill_channel_service
from ingestion.service import capture_message_videos as capture_message_videos_service
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_incidents import register as register_incidents
from misc.discord_gates import context_in_guild
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def wire_bot_runtime(
    bot,
    *,
    catalog,
    settings: CatalogSettings,
    send_chunked,
    video_channel_id: int,
    guild_id: int,
    command_prefix: str,
    sync_app_commands: bool,
    backfill_on_start: bool,
) -> None:
    def in_allowed_guild(ctx) -> bool:
        try:
            return context_in_guild(ctx, guild_id)
        except Exception:
            return False

    async def resolve_video_channel():
        channel = bot.get_channel(video_channel_id)
        if channel is None:
            try:
                channel = await bot.fetch_channel(video_channel_id)
            except Exception as e:
                print(f"[Backfill] Could not fetch channel {video_channel_id}: {e}")
                return None
        return channel

    async def backfill_channel(channel):
        return await backfill_channel_service(
            channel,
            catalog=catalog,
            content_types=settings.video_content_types,
            page_size=settings.backfill_page_size,
            pause_every=settings.backfill_pause_every,
            pause_seconds=settings.backfill_pause_seconds,
        )

    async def capture_message(message):
        return await capture_message_videos_service(
            message,
            catalog=catalog,
            content_types=settings.video_content_types,
        )

    register_incidents(
        bot,
        deps=CommandDeps(
            catalog=catalog,
            send_chunked=send_chunked,
            settings=settings,
            video_channel_id=video_channel_id,
            resolve_video_channel=resolve_video_channel,
            backfill_channel_func=backfill_channel,
        ),
        gates=CommandGates(
            in_allowed_guild=in_allowed_guild,
        ),
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            video_channel_id=video_channel_id,
            guild_id=guild_id,
            command_prefix=command_prefix,
            capture_message_func=capture_message,
        ),
        boot=RuntimeBootDeps(
            sync_app_commands=sync_app_commands,
            backfill_on_start=backfill_on_start,
            resolve_video_channel=resolve_video_channel,
            backfill_channel_func=backfill_channel,
        ),
    )
