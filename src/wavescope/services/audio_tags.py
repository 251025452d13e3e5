"""Display-name resolution for loaded assets using mutagen tags."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import PurePath

from mutagen import File as MutagenFile
from mutagen import MutagenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioTags:
    title: str | None = None
    artist: str | None = None


def read_tags(data: bytes) -> AudioTags:
    """Read title/artist from in-memory bytes; missing or unreadable tags are empty."""
    try:
        handle = MutagenFile(io.BytesIO(data), easy=True)
    except (MutagenError, ValueError, OSError) as exc:
        logger.debug("Tag read failed: %s", exc)
        return AudioTags()
    if handle is None or handle.tags is None:
        return AudioTags()
    return AudioTags(
        title=_first_text(handle.tags.get("title")),
        artist=_first_text(handle.tags.get("artist")),
    )


def display_name(data: bytes, source_name: str) -> str:
    """Return "Artist - Title" from tags, falling back to the file name."""
    tags = read_tags(data)
    fallback = PurePath(source_name).name or source_name or "untitled"
    if tags.title and tags.artist:
        return f"{tags.artist} - {tags.title}"
    return tags.title or fallback


def _first_text(value: object) -> str | None:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None
