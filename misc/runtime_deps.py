from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RuntimeDeps:
    # core
    video_channel_id: int
    guild_id: int
    command_prefix: str

    # ingestion
    capture_message_func: Callable


@dataclass(frozen=True)
class RuntimeBootDeps:
    sync_app_commands: bool
    backfill_on_start: bool
    resolve_video_channel: Callable
    backfill_channel_func: Callable
