from __future__ import annotations

import asyncio
import importlib


async def _noop_async(*args, **kwargs):
    return None


def _try_import_or_skip(module_name: str, pip_name: str | None = None) -> bool:
    try:
        importlib.import_module(module_name)
        return True
    except ModuleNotFoundError:
        install_name = pip_name or module_name
        print(
            f"Smoke wiring check skipped: missing dependency '{module_name}'. "
            f"Install requirements and retry (e.g. `pip install {install_name}` "
            f"or `pip install -e .`)."
        )
        return False


async def _exercise_catalog(catalog) -> None:
    outcome = await catalog.record_video(
        "https://cdn.example/attachments/1/2/clip.mp4?ex=1&is=2&hm=aaa",
        message_url="https://discord.com/channels/1/2/3",
    )
    if outcome.value != "added":
        raise RuntimeError(f"Unexpected first record outcome: {outcome}")
    outcome = await catalog.record_video(
        "https://cdn.example/attachments/1/2/clip.mp4?ex=1&is=2&hm=bbb",
        message_url="https://discord.com/channels/1/2/3",
    )
    if outcome.value != "healed":
        raise RuntimeError(f"Unexpected rotated record outcome: {outcome}")
    if await catalog.count_videos() != 1:
        raise RuntimeError("Rotated URL created a duplicate row")


def _main() -> int:
    if not _try_import_or_skip("discord", "discord.py"):
        return 0
    if not _try_import_or_skip("yaml", "PyYAML"):
        return 0

    import discord
    from discord.ext import commands
    from catalog.service import open_catalog
    from config.settings import CatalogSettings
    from misc.runtime_wiring import wire_bot_runtime

    intents = discord.Intents.none()
    bot = commands.Bot(command_prefix="!", intents=intents)
    catalog = open_catalog(":memory:")

    try:
        wire_bot_runtime(
            bot,
            catalog=catalog,
            settings=CatalogSettings(),
            send_chunked=_noop_async,
            video_channel_id=123456789012345678,
            guild_id=223456789012345678,
            command_prefix="!",
            sync_app_commands=False,
            backfill_on_start=False,
        )

        expected_commands = {
            "incidents",
            "incidents random",
            "incidents search",
            "incidents label",
            "incidents labels",
            "incidents update",
        }
        missing = sorted(name for name in expected_commands if bot.get_command(name) is None)
        if missing:
            raise RuntimeError(f"Missing expected commands: {missing}")

        app_group = bot.tree.get_command("incidents")
        if app_group is None:
            raise RuntimeError("incidents slash group was not added to the command tree")

        if not hasattr(bot, "on_ready") or not hasattr(bot, "on_message"):
            raise RuntimeError("Runtime events were not registered")

        asyncio.run(_exercise_catalog(catalog))
    finally:
        catalog.close()

    print("Smoke wiring check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
