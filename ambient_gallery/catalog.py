"""Discovery of background media and the curated list of ambient sounds."""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from logging import Logger
from pathlib import Path
from typing import Dict, Iterable, List

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mov", ".avi", ".mkv", ".flv"})

# Fixed naming conventions for the video/thumbnail pairs in thumbnail mode.
_VIDEO_SUFFIX = ".mov"
_THUMBNAIL_SUFFIX = ".webp"


class CatalogDirectoryError(RuntimeError):
    """Raised when the backgrounds directory cannot be listed."""


class MediaKind(str, Enum):
    """Kind of media a background entry points at."""

    IMAGE = "image"
    VIDEO = "video"


class CatalogMode(str, Enum):
    """How files in the backgrounds directory are turned into entries.

    ``THUMBNAILS`` treats the directory as a set of video/thumbnail pairs and
    derives both paths from the base name. ``MIXED`` keeps the original
    filename and classifies each file by its extension.
    """

    THUMBNAILS = "thumbnails"
    MIXED = "mixed"

    @classmethod
    def from_value(cls, raw: str | None) -> "CatalogMode":
        """Parse a configuration string into a mode.

        Examples
        --------
        >>> CatalogMode.from_value(" Mixed ")
        <CatalogMode.MIXED: 'mixed'>
        >>> CatalogMode.from_value(None)
        <CatalogMode.THUMBNAILS: 'thumbnails'>
        """

        if raw is None or not raw.strip():
            return cls.THUMBNAILS
        cleaned = raw.strip().lower()
        try:
            return cls(cleaned)
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown catalog mode {raw!r}; expected one of: {choices}") from None


@dataclass(frozen=True)
class BackgroundEntry:
    """A selectable background shown in the gallery."""

    display_name: str
    base_name: str
    media_path: str
    kind: MediaKind
    thumbnail_path: str | None = None


@dataclass(frozen=True)
class SoundEntry:
    """A selectable ambient sound track."""

    display_name: str
    file_path: str
    icon_id: str


_SOUNDS = (
    SoundEntry("Fire", "fire.mp3", "flame"),
    SoundEntry("Rain", "rain.mp3", "water"),
    SoundEntry("Wind", "wind.mp3", "cloud"),
    SoundEntry("Forest", "forest.mp3", "leaf"),
    SoundEntry("Ocean", "ocean.mp3", "water-outline"),
    SoundEntry("Thunder", "thunder.mp3", "flash"),
)


def classify_extension(extension: str) -> MediaKind | None:
    """Return the media kind for *extension* or ``None`` when unsupported.

    Examples
    --------
    >>> classify_extension(".JPG")
    <MediaKind.IMAGE: 'image'>
    >>> classify_extension(".txt") is None
    True
    """

    lowered = extension.lower()
    if lowered in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if lowered in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


def display_name_for(base_name: str) -> str:
    """Return the gallery label for *base_name*.

    Examples
    --------
    >>> display_name_for("Autumn_Rain")
    'Autumn Rain'
    >>> display_name_for("__x")
    '  x'
    """

    return base_name.replace("_", " ")


def scan_backgrounds(
    directory: Path,
    *,
    mode: CatalogMode = CatalogMode.THUMBNAILS,
) -> List[BackgroundEntry]:
    """Build the background catalog from the files in *directory*.

    Parameters
    ----------
    directory:
        Folder holding the background media. Subdirectories are ignored.
    mode:
        How entries are derived from the files, see :class:`CatalogMode`.

    Returns
    -------
    list[BackgroundEntry]
        One entry per distinct base name, in filename order. When several
        files share a base name the first one wins.

    Raises
    ------
    CatalogDirectoryError
        If the directory does not exist or cannot be read.
    """

    try:
        names = sorted(os.listdir(directory))
    except OSError as exc:
        raise CatalogDirectoryError(f"Cannot read backgrounds directory {directory}: {exc}") from exc

    entries: Dict[str, BackgroundEntry] = {}
    for name in _iter_files(Path(directory), names):
        entry = _build_entry(name, mode)
        if entry is not None:
            entries.setdefault(entry.base_name, entry)
    return list(entries.values())


def list_backgrounds(
    directory: Path,
    *,
    mode: CatalogMode = CatalogMode.THUMBNAILS,
    logger: Logger | None = None,
) -> List[BackgroundEntry]:
    """Return the background catalog, or an empty list when it is unavailable."""

    try:
        return scan_backgrounds(directory, mode=mode)
    except CatalogDirectoryError as exc:
        if logger is not None:
            logger.warning("No backgrounds available: %s", exc)
        return []


def list_sounds() -> List[SoundEntry]:
    """Return the ambient sounds in presentation order."""

    return list(_SOUNDS)


def _iter_files(directory: Path, names: Iterable[str]) -> Iterable[str]:
    for name in names:
        # A file removed between listing and stat simply drops out.
        if (directory / name).is_file():
            yield name


def _build_entry(filename: str, mode: CatalogMode) -> BackgroundEntry | None:
    """Turn *filename* into a catalog entry, or ``None`` for unsupported files."""

    # ".mov" splits to (".mov", ""), so extension-only names are skipped.
    base_name, extension = os.path.splitext(filename)
    kind = classify_extension(extension)
    if kind is None:
        return None

    if mode is CatalogMode.THUMBNAILS:
        return BackgroundEntry(
            display_name=display_name_for(base_name),
            base_name=base_name,
            media_path=f"{base_name}{_VIDEO_SUFFIX}",
            kind=MediaKind.VIDEO,
            thumbnail_path=f"{base_name}{_THUMBNAIL_SUFFIX}",
        )

    return BackgroundEntry(
        display_name=display_name_for(base_name),
        base_name=base_name,
        media_path=filename,
        kind=kind,
    )
