import os

import discord
from discord.ext import commands
from catalog.service import open_catalog
from config.defaults import DEFAULT_COMMAND_PREFIX
from config.defaults import DEFAULT_DB_PATH
from config.settings import default_settings_path
from config.settings import load_catalog_settings
from misc.replies import send_chunked
from misc.runtime_wiring import wire_bot_runtime

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
_RAW_CHANNEL_ID = os.getenv("INCIDENTS_CHANNEL_ID", "").strip()
_RAW_GUILD_ID = os.getenv("INCIDENTS_GUILD_ID", "").strip()

if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN env var")
if not _RAW_CHANNEL_ID.isdigit():
    raise RuntimeError("Missing or invalid INCIDENTS_CHANNEL_ID env var")
if not _RAW_GUILD_ID.isdigit():
    raise RuntimeError("Missing or invalid INCIDENTS_GUILD_ID env var")

VIDEO_CHANNEL_ID = int(_RAW_CHANNEL_ID)
GUILD_ID = int(_RAW_GUILD_ID)

COMMAND_PREFIX = os.getenv("INCIDENTS_COMMAND_PREFIX", DEFAULT_COMMAND_PREFIX).strip() or DEFAULT_COMMAND_PREFIX
BACKFILL_ON_START = os.getenv("INCIDENTS_BACKFILL_ON_START", "0").strip() == "1"
SYNC_APP_COMMANDS = os.getenv("INCIDENTS_SYNC_APP_COMMANDS", "1").strip() == "1"

# Railway persistent path (set this to your mounted volume path)
DB_PATH = os.getenv("INCIDENTS_DB_PATH", DEFAULT_DB_PATH)

SETTINGS_PATH = os.getenv("INCIDENTS_SETTINGS_PATH", default_settings_path())
SETTINGS, SETTINGS_WARNING = load_catalog_settings(SETTINGS_PATH)
if SETTINGS_WARNING:
    print(f"[CFG] {SETTINGS_WARNING}")

print(
    f"[CFG] channel={VIDEO_CHANNEL_ID} guild={GUILD_ID} prefix={COMMAND_PREFIX!r} "
    f"identifier_policy={SETTINGS.identifier_policy} page_size={SETTINGS.backfill_page_size} "
    f"backfill_on_start={BACKFILL_ON_START} sync_app_commands={SYNC_APP_COMMANDS}"
)

# =========================
# SQLITE
# =========================
catalog = open_catalog(DB_PATH, strict_identifiers=SETTINGS.strict_identifiers)
print(f"[DB] Using DB_PATH={DB_PATH}")
print(f"[DB] DB file exists? {os.path.exists(DB_PATH)}")

# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True

bot = commands.Bot(command_prefix=COMMAND_PREFIX, intents=intents)

wire_bot_runtime(
    bot,
    catalog=catalog,
    settings=SETTINGS,
    send_chunked=send_chunked,
    video_channel_id=VIDEO_CHANNEL_ID,
    guild_id=GUILD_ID,
    command_prefix=COMMAND_PREFIX,
    sync_app_commands=SYNC_APP_COMMANDS,
    backfill_on_start=BACKFILL_ON_START,
)

try:
    bot.run(DISCORD_TOKEN)
finally:
    catalog.close()
    print("[DB] Catalog closed")
