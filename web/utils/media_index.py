"""
Catalog of the video files under the media root.

Nothing is cached: every call walks or stats the filesystem again, so
the directory on disk is the only source of truth.

Symlinks are skipped. A scan never yields a symlinked file and never
descends into a symlinked directory, and a lookup refuses any path
whose resolved location differs from where it lexically points under
the root.
"""
import logging
import mimetypes
import os
import stat
from dataclasses import dataclass
from typing import Iterable, List

from web.server.exceptions import FileNotFound, InvalidToken
from web.utils import media_token

logger = logging.getLogger(__name__)

VIDEO_EXTS = frozenset({".mp4", ".mkv", ".avi", ".mov", ".m4v", ".webm"})
DEFAULT_MIME = "application/octet-stream"

# Not every platform's mime.types knows these.
mimetypes.add_type("video/x-matroska", ".mkv")
mimetypes.add_type("video/webm", ".webm")
mimetypes.add_type("video/x-m4v", ".m4v")


@dataclass(frozen=True)
class MediaEntry:
    id: str
    relative_path: str
    size_bytes: int
    mime_type: str

    @property
    def name(self) -> str:
        return self.relative_path.rsplit("/", 1)[-1]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.relative_path,
            "size": self.size_bytes,
            "mime": self.mime_type,
        }


def guess_mime(name: str) -> str:
    return mimetypes.guess_type(name)[0] or DEFAULT_MIME


def has_video_ext(name: str, extensions: Iterable[str] = VIDEO_EXTS) -> bool:
    return os.path.splitext(name)[1].lower() in extensions


def _make_entry(relative_path: str, size: int) -> MediaEntry:
    return MediaEntry(
        id=media_token.encode(relative_path),
        relative_path=relative_path,
        size_bytes=size,
        mime_type=guess_mime(relative_path),
    )


def list_media(
    root: str,
    extensions: Iterable[str] = VIDEO_EXTS,
    skip_unreadable: bool = True,
) -> List[MediaEntry]:
    """
    Recursively collect every allow-listed regular file under ``root``.

    With ``skip_unreadable`` (the default) a directory or file that
    cannot be read contributes nothing and the scan carries on, so
    errors cost completeness but never fail the listing. Pass False to
    have the first OSError propagate instead.

    Order of the returned entries is unspecified.
    """
    extensions = frozenset(ext.lower() for ext in extensions)
    items: List[MediaEntry] = []
    _scan(os.path.realpath(root), "", extensions, skip_unreadable, items)
    return items


def _scan(directory, prefix, extensions, skip_unreadable, items):
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        if not skip_unreadable:
            raise
        logger.warning(f"Skipping unreadable directory {directory}: {e}")
        return

    for entry in entries:
        relative_path = prefix + entry.name
        try:
            if entry.is_symlink():
                continue
            if entry.is_dir(follow_symlinks=False):
                _scan(entry.path, relative_path + "/", extensions, skip_unreadable, items)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if not has_video_ext(entry.name, extensions):
                continue
            size = entry.stat(follow_symlinks=False).st_size
        except OSError as e:
            if not skip_unreadable:
                raise
            logger.warning(f"Skipping unreadable entry {entry.path}: {e}")
            continue

        items.append(_make_entry(relative_path, size))


def safe_join(root: str, relative_path: str) -> str:
    """
    Join ``relative_path`` onto ``root``, refusing anything that could
    leave it.

    The lexical check (absolute paths, empty, ``.`` or ``..`` segments)
    runs before any filesystem access. The resolved path must then equal
    the joined one, which rules out symlinks anywhere along the way.
    Raises FileNotFound on any violation.
    """
    root = os.path.realpath(root)
    parts = relative_path.split("/")
    if relative_path.startswith("/") or any(p in ("", ".", "..") for p in parts):
        logger.warning(f"Rejected path outside media root: {relative_path!r}")
        raise FileNotFound

    full_path = os.path.join(root, *parts)
    if os.path.realpath(full_path) != full_path:
        logger.warning(f"Rejected symlinked path: {relative_path!r}")
        raise FileNotFound
    return full_path


def get_entry(
    root: str, relative_path: str, extensions: Iterable[str] = VIDEO_EXTS
) -> MediaEntry:
    if not has_video_ext(relative_path, frozenset(ext.lower() for ext in extensions)):
        raise FileNotFound

    full_path = safe_join(root, relative_path)
    try:
        st = os.stat(full_path)
    except OSError as e:
        raise FileNotFound from e

    if not stat.S_ISREG(st.st_mode):
        raise FileNotFound
    return _make_entry(relative_path, st.st_size)


def lookup(root: str, token: str, extensions: Iterable[str] = VIDEO_EXTS) -> MediaEntry:
    """Re-derive one entry from disk by id; any failure is FileNotFound."""
    try:
        relative_path = media_token.decode(token)
    except InvalidToken as e:
        raise FileNotFound from e
    return get_entry(root, relative_path, extensions)
