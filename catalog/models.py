from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CatalogError(Exception):
    pass


class VideoNotFoundError(CatalogError, LookupError):
    def __init__(self, reference: str):
        super().__init__("Video not found")
        self.reference = reference


class MalformedIdentifierError(CatalogError, ValueError):
    pass


class RecordOutcome(str, Enum):
    ADDED = "added"
    HEALED = "healed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class VideoRecord:
    id: int
    video_url: str
    upload_date: str
    message_url: str

    @property
    def identifier(self) -> str:
        from catalog.identifier import video_identifier

        return video_identifier(self.video_url)


@dataclass(frozen=True, slots=True)
class LabelCount:
    label: str
    video_count: int
