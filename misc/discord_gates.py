from __future__ import annotations

import discord


def message_in_video_channel(message: discord.Message, video_channel_id: int) -> bool:
    if getattr(message, "guild", None) is None:
        return False

    channel_id = int(getattr(message.channel, "id", 0) or 0)
    if channel_id == int(video_channel_id):
        return True
    # thread: allow if parent is the video channel
    if isinstance(message.channel, discord.Thread) and message.channel.parent:
        return int(message.channel.parent.id) == int(video_channel_id)
    return False


def context_in_guild(ctx, guild_id: int) -> bool:
    guild = getattr(ctx, "guild", None)
    if guild is None:
        return False
    if not guild_id:
        return True
    return int(getattr(guild, "id", 0) or 0) == int(guild_id)
