import os
from pathlib import Path

import pytest

from web import web_server

A_BYTES = bytes(range(256)) * 4
B_BYTES = b"matroska" * 100


@pytest.fixture
def media_root(tmp_path):
    root = Path(os.path.realpath(tmp_path)) / "media"
    (root / "sub").mkdir(parents=True)
    (root / "a.mp4").write_bytes(A_BYTES)
    (root / "sub" / "b.mkv").write_bytes(B_BYTES)
    (root / "notes.txt").write_text("not a video")
    return root


@pytest.fixture
async def client(aiohttp_client, media_root):
    app = await web_server(str(media_root))
    return await aiohttp_client(app)
