import asyncio
import logging
import os
from typing import AsyncIterator, Iterable

from web.server.exceptions import StreamAborted
from web.utils import media_token
from web.utils.media_index import VIDEO_EXTS, MediaEntry, get_entry

logger = logging.getLogger(__name__)

# ================= CONFIG ================= #

DEFAULT_CHUNK = 1024 * 1024

# ========================================= #


class ByteStreamer:
    def __init__(
        self,
        root: str,
        chunk_size: int = DEFAULT_CHUNK,
        extensions: Iterable[str] = VIDEO_EXTS,
    ):
        self.root = os.path.realpath(root)
        self.chunk_size = chunk_size
        self.extensions = frozenset(ext.lower() for ext in extensions)

    # ---------------- FILE LOOKUP ---------------- #

    async def get_file_properties(self, token: str) -> MediaEntry:
        """
        Map an id to its entry. A malformed id raises InvalidToken; a
        well-formed one that does not name a servable video under the
        root raises FileNotFound.
        """
        relative_path = media_token.decode(token)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, get_entry, self.root, relative_path, self.extensions
        )

    def file_path(self, entry: MediaEntry) -> str:
        return os.path.join(self.root, *entry.relative_path.split("/"))

    # ---------------- STREAMING ---------------- #

    async def yield_file(self, entry: MediaEntry, start: int, end: int) -> AsyncIterator[bytes]:
        """
        Yield bytes ``[start, end]`` inclusive in pieces of at most
        ``chunk_size``. Reads run in the default executor. The file is
        closed however the generator ends, including when the client
        disconnects and the generator is closed early.
        """
        loop = asyncio.get_running_loop()
        path = self.file_path(entry)
        remaining = end - start + 1

        f = await loop.run_in_executor(None, open, path, "rb")
        try:
            await loop.run_in_executor(None, f.seek, start)
            while remaining > 0:
                try:
                    data = await loop.run_in_executor(
                        None, f.read, min(self.chunk_size, remaining)
                    )
                except OSError as e:
                    logger.error(f"Read failed on {entry.relative_path}: {e}")
                    raise

                if not data:
                    logger.error(
                        f"{entry.relative_path} ended early, "
                        f"{remaining} of {end - start + 1} bytes unsent"
                    )
                    raise StreamAborted

                remaining -= len(data)
                yield data
        finally:
            f.close()
