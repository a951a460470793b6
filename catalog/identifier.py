from __future__ import annotations

import re

from catalog.models import MalformedIdentifierError


# Greedy on purpose: only the last signature marker is volatile.
SIGNATURE_RE = re.compile(r"^(?P<id>.*)&hm=.*$", re.S)
SIGNATURE_MARKER = "&hm="


def has_signature(video_url: str) -> bool:
    return SIGNATURE_MARKER in str(video_url or "")


def video_identifier(video_url: str, *, strict: bool = False) -> str:
    """
    Stable dedup key for an attachment URL: everything before the `&hm=`
    signature suffix. Discord rotates that suffix when it re-signs CDN links,
    so two shares of the same upload collapse to one identifier.

    Without the marker the whole URL is its own identifier, unless
    strict=True, in which case MalformedIdentifierError is raised.
    """
    text = str(video_url or "").strip()
    if not text:
        raise MalformedIdentifierError("missing video URL")
    m = SIGNATURE_RE.match(text)
    if m:
        return m.group("id")
    if strict:
        raise MalformedIdentifierError(f"URL has no {SIGNATURE_MARKER} signature: {text}")
    return text


def sql_video_identifier(video_url: str | None) -> str | None:
    # Registered as a SQLite function; must never raise inside a query.
    if video_url is None:
        return None
    try:
        return video_identifier(video_url)
    except MalformedIdentifierError:
        return ""
