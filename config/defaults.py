DEFAULT_DB_PATH = "database.db"
DEFAULT_COMMAND_PREFIX = "!"
DEFAULT_SETTINGS_FILENAME = "incidents.yml"

IDENTIFIER_POLICIES = {"fallback", "strict"}
DEFAULT_IDENTIFIER_POLICY = "fallback"
DEFAULT_VIDEO_CONTENT_TYPES = ["video/"]

# Discord caps a history page at 100 messages.
DEFAULT_BACKFILL_PAGE_SIZE = 100
MAX_BACKFILL_PAGE_SIZE = 100
DEFAULT_BACKFILL_PAUSE_EVERY = 500
DEFAULT_BACKFILL_PAUSE_SECONDS = 1.0

DEFAULT_MAX_SEARCH_RESULTS = 20
DEFAULT_EMBED_COLOUR = 0xE67E22
DISCORD_MAX_MESSAGE_LEN = 1900  # keep under 2000 hard limit
