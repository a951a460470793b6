from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable

from config.settings import CatalogSettings


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    catalog: Any = None
    send_chunked: Callable | None = None
    settings: CatalogSettings = field(default_factory=CatalogSettings)

    # Backfill
    video_channel_id: int = 0
    resolve_video_channel: Callable | None = None
    backfill_channel_func: Callable | None = None


@dataclass(frozen=True)
class CommandGates:
    in_allowed_guild: Callable[[Any], bool] = _default_false
