"""
URL-safe opaque ids for media files.

An id is the unpadded base64url encoding of the file's UTF-8 relative
path, so ``decode(encode(p)) == p`` and the id can sit in a URL path
segment as-is. Nothing here touches the filesystem or checks that a
decoded path stays inside the media root; callers do that.
"""
import base64
import binascii
import re

from web.server.exceptions import InvalidToken

_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]+")


def encode(relative_path: str) -> str:
    raw = relative_path.encode("utf-8", "surrogateescape")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode(token: str) -> str:
    """
    Reverse :func:`encode`.

    Raises InvalidToken for anything ``encode`` could not have produced:
    empty ids, characters outside the base64url alphabet, impossible
    lengths, non-canonical padding bits, or payloads containing NUL.
    Bytes that are not valid UTF-8 come back surrogate-escaped, the way
    ``os.fsdecode`` hands them out.
    """
    if not token or not _TOKEN_RE.fullmatch(token) or len(token) % 4 == 1:
        raise InvalidToken

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except binascii.Error as e:
        raise InvalidToken from e

    relative_path = raw.decode("utf-8", "surrogateescape")
    if "\x00" in relative_path or encode(relative_path) != token:
        raise InvalidToken

    return relative_path
