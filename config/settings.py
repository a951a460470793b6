from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from config.defaults import DEFAULT_BACKFILL_PAGE_SIZE
from config.defaults import DEFAULT_BACKFILL_PAUSE_EVERY
from config.defaults import DEFAULT_BACKFILL_PAUSE_SECONDS
from config.defaults import DEFAULT_EMBED_COLOUR
from config.defaults import DEFAULT_IDENTIFIER_POLICY
from config.defaults import DEFAULT_MAX_SEARCH_RESULTS
from config.defaults import DEFAULT_SETTINGS_FILENAME
from config.defaults import DEFAULT_VIDEO_CONTENT_TYPES
from config.defaults import IDENTIFIER_POLICIES
from config.defaults import MAX_BACKFILL_PAGE_SIZE


@dataclass(slots=True)
class CatalogSettings:
    identifier_policy: str = DEFAULT_IDENTIFIER_POLICY
    video_content_types: list[str] = field(default_factory=lambda: list(DEFAULT_VIDEO_CONTENT_TYPES))
    backfill_page_size: int = DEFAULT_BACKFILL_PAGE_SIZE
    backfill_pause_every: int = DEFAULT_BACKFILL_PAUSE_EVERY
    backfill_pause_seconds: float = DEFAULT_BACKFILL_PAUSE_SECONDS
    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS
    embed_colour: int = DEFAULT_EMBED_COLOUR

    @property
    def strict_identifiers(self) -> bool:
        return self.identifier_policy == "strict"


def default_settings_path() -> str:
    return str(Path(__file__).resolve().parent / DEFAULT_SETTINGS_FILENAME)


def _as_int(value: Any, default: int, *, lo: int, hi: int | None = None) -> int:
    try:
        out = int(value)
    except (TypeError, ValueError):
        return default
    if out < lo:
        return default
    if hi is not None:
        out = min(out, hi)
    return out


def _as_float(value: Any, default: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    return out if out >= 0 else default


def _as_prefixes(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        text = str(item or "").strip().lower()
        if text and text not in out:
            out.append(text)
    return out


def load_catalog_settings(path: str | Path | None) -> tuple[CatalogSettings, str | None]:
    """
    Returns (settings, warning_message). warning_message is None on clean load.
    """
    defaults = CatalogSettings()
    if not path:
        return (defaults, "Settings path missing; using built-in defaults.")

    p = Path(path)
    if not p.exists():
        return (defaults, f"Settings file not found at {p}; using built-in defaults.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read settings from {p}: {exc}; using built-in defaults.")

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return (defaults, f"Invalid settings format in {p}; using built-in defaults.")

    warning: str | None = None
    policy = str(payload.get("identifier_policy") or defaults.identifier_policy).strip().lower()
    if policy not in IDENTIFIER_POLICIES:
        warning = f"Unknown identifier_policy={policy!r} in {p}; using {defaults.identifier_policy!r}."
        policy = defaults.identifier_policy

    settings = CatalogSettings(
        identifier_policy=policy,
        video_content_types=_as_prefixes(payload.get("video_content_types")) or list(defaults.video_content_types),
        backfill_page_size=_as_int(
            payload.get("backfill_page_size"),
            defaults.backfill_page_size,
            lo=1,
            hi=MAX_BACKFILL_PAGE_SIZE,
        ),
        backfill_pause_every=_as_int(payload.get("backfill_pause_every"), defaults.backfill_pause_every, lo=1),
        backfill_pause_seconds=_as_float(payload.get("backfill_pause_seconds"), defaults.backfill_pause_seconds),
        max_search_results=_as_int(payload.get("max_search_results"), defaults.max_search_results, lo=1, hi=25),
        embed_colour=_as_int(payload.get("embed_colour"), defaults.embed_colour, lo=0, hi=0xFFFFFF),
    )
    return (settings, warning)
