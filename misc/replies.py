from __future__ import annotations

import discord

from catalog.models import LabelCount
from catalog.models import VideoRecord
from config.defaults import DEFAULT_EMBED_COLOUR
from config.defaults import DEFAULT_MAX_SEARCH_RESULTS
from config.defaults import DISCORD_MAX_MESSAGE_LEN

EMBED_DESCRIPTION_LIMIT = 4000


def chunk_text(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN) -> list[str]:
    text = text or ""
    if len(text) <= limit:
        return [text]

    chunks = []
    remaining = text

    while len(remaining) > limit:
        # Prefer splitting on paragraph, then newline, then space
        split_at = remaining.rfind("\n\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind("\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind(" ", 0, limit)
        if split_at == -1:
            split_at = limit

        chunk = remaining[:split_at].strip()
        if chunk:
            chunks.append(chunk)

        remaining = remaining[split_at:].strip()

    if remaining:
        chunks.append(remaining)

    return chunks


async def send_chunked(channel: discord.abc.Messageable, text: str) -> None:
    for part in chunk_text(text, DISCORD_MAX_MESSAGE_LEN):
        await channel.send(part)


def format_random_video(video: VideoRecord | None) -> str:
    if video is None:
        return "No videos found."
    return f"Random video: {video.video_url}\nMessage: {video.message_url}"


def _short_date(upload_date: str) -> str:
    return (upload_date or "")[:10] or "unknown date"


def build_search_embed(
    label: str,
    videos: list[VideoRecord],
    *,
    max_results: int = DEFAULT_MAX_SEARCH_RESULTS,
    colour: int = DEFAULT_EMBED_COLOUR,
) -> discord.Embed:
    shown = videos[: max(1, int(max_results))]
    lines: list[str] = []
    used = 0
    for idx, video in enumerate(shown, start=1):
        line = f"**{idx}.** [{_short_date(video.upload_date)}]({video.message_url})"
        if used + len(line) + 1 > EMBED_DESCRIPTION_LIMIT:
            break
        lines.append(line)
        used += len(line) + 1

    embed = discord.Embed(
        title=f'Videos with label "{label}"',
        description="\n".join(lines),
        colour=discord.Colour(int(colour)),
    )
    hidden = len(videos) - len(lines)
    if hidden > 0:
        embed.set_footer(text=f"+{hidden} more not shown ({len(videos)} total)")
    else:
        embed.set_footer(text=f"{len(videos)} video(s)")
    return embed


def format_video_labels(video_url: str, labels: list[str]) -> str:
    if not labels:
        return f"No labels on video: {video_url}"
    joined = ", ".join(f"`{label}`" for label in labels)
    return f"Labels on video {video_url}:\n{joined}"


def format_label_counts(rows: list[LabelCount]) -> str:
    if not rows:
        return "No labels yet."
    lines = [f"- {row.label} ({row.video_count})" for row in rows]
    return "Labels:\n" + "\n".join(lines)


def format_backfill_result(result) -> str:
    text = f"Scanned {result.scanned} messages.\nAdded {result.added} new videos to database."
    if result.healed:
        text += f"\nRefreshed {result.healed} expired video links."
    if result.skipped:
        text += f"\nSkipped {result.skipped} attachments without a signed URL."
    if not result.ok:
        return f"Update failed: {result.error}\n{text}"
    return text
