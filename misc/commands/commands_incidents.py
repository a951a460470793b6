from __future__ import annotations

from discord import app_commands
from discord.ext import commands

from catalog.models import VideoNotFoundError
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.replies import build_search_embed
from misc.replies import chunk_text
from misc.replies import format_backfill_result
from misc.replies import format_label_counts
from misc.replies import format_random_video
from misc.replies import format_video_labels

USAGE = (
    "Usage: `incidents random` | `incidents search <label>` | "
    "`incidents label <link> <label>` | `incidents labels [link]` | `incidents update`"
)


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.catalog is None:
        return

    catalog = deps.catalog
    settings = deps.settings

    async def _ensure_guild(ctx: commands.Context) -> bool:
        if gates.in_allowed_guild(ctx):
            return True
        await ctx.send("Incident commands are only available in the configured server.")
        return False

    async def _send_long(ctx: commands.Context, text: str) -> None:
        # Slash invocations must answer the interaction itself.
        if ctx.interaction is None:
            await deps.send_chunked(ctx.channel, text)
            return
        for part in chunk_text(text):
            await ctx.send(part)

    async def _report_failure(ctx: commands.Context, action: str, exc: Exception) -> None:
        print(f"[Incidents] {action} failed: {exc!r}")
        await ctx.send(f"Error: {exc}")

    @bot.hybrid_group(name="incidents", invoke_without_command=True)
    async def incidents(ctx: commands.Context):
        """Manage video incidents"""
        await ctx.send(USAGE)

    @incidents.command(name="random")
    async def incidents_random(ctx: commands.Context):
        """Get a random video incident"""
        if not await _ensure_guild(ctx):
            return
        try:
            video = await catalog.get_random_video()
        except Exception as e:
            await _report_failure(ctx, "random", e)
            return
        await ctx.send(format_random_video(video))

    @incidents.command(name="search")
    @app_commands.describe(label="The label to search for")
    async def incidents_search(ctx: commands.Context, *, label: str):
        """Get video incidents by label"""
        if not await _ensure_guild(ctx):
            return
        label = (label or "").strip()
        if not label:
            await ctx.send("Give me a label to search for.")
            return
        try:
            videos = await catalog.get_videos_by_label(label)
        except Exception as e:
            await _report_failure(ctx, "search", e)
            return
        if not videos:
            await ctx.send(f'No videos found with label "{label}".')
            return
        embed = build_search_embed(
            label,
            videos,
            max_results=settings.max_search_results,
            colour=settings.embed_colour,
        )
        await ctx.send(embed=embed)

    @incidents.command(name="label")
    @app_commands.describe(link="The video link to label", label="The label to assign")
    async def incidents_label(ctx: commands.Context, link: str, *, label: str):
        """Label a video incident"""
        if not await _ensure_guild(ctx):
            return
        link = (link or "").strip()
        label = (label or "").strip()
        if not link or not label:
            await ctx.send("Usage: `incidents label <link> <label>`")
            return
        try:
            await catalog.add_labels(link, [label])
        except VideoNotFoundError as e:
            await ctx.send(f"Error: {e}")
            return
        except Exception as e:
            await _report_failure(ctx, "label", e)
            return
        await ctx.send(f'Label "{label}" added to video: {link}')

    @incidents.command(name="labels")
    @app_commands.describe(link="Video link to inspect; leave empty to list every label")
    async def incidents_labels(ctx: commands.Context, link: str = ""):
        """Show labels on a video, or every label in use"""
        if not await _ensure_guild(ctx):
            return
        link = (link or "").strip()
        try:
            if link:
                text = format_video_labels(link, await catalog.get_labels_for_video(link))
            else:
                text = format_label_counts(await catalog.list_labels())
        except Exception as e:
            await _report_failure(ctx, "labels", e)
            return
        await _send_long(ctx, text)

    @incidents.command(name="update")
    async def incidents_update(ctx: commands.Context):
        """Rescan the incident channel and catalog missed videos"""
        if not await _ensure_guild(ctx):
            return
        await ctx.defer(ephemeral=True)

        channel = None
        if deps.resolve_video_channel is not None:
            channel = await deps.resolve_video_channel()
        if channel is None or deps.backfill_channel_func is None:
            print(f"[Backfill] Channel {deps.video_channel_id} not found")
            await ctx.send("Channel not found!", ephemeral=True)
            return

        result = await deps.backfill_channel_func(channel)
        await ctx.send(format_backfill_result(result), ephemeral=True)
