import aiohttp
import pytest

from tests.conftest import A_BYTES, B_BYTES
from web import web_server
from web.stream_routes import streamer_key
from web.utils.media_token import encode

A_ID = encode("a.mp4")


async def test_root_status(client):
    resp = await client.get("/")
    assert resp.status == 200
    data = await resp.json()
    assert data["server_status"] == "running"
    assert "uptime" in data and "version" in data


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status == 200
    assert await resp.json() == {"ok": True}


async def test_media_list(client):
    resp = await client.get("/media")
    assert resp.status == 200
    items = sorted(await resp.json(), key=lambda item: item["path"])
    assert items == [
        {"id": A_ID, "name": "a.mp4", "path": "a.mp4", "size": len(A_BYTES), "mime": "video/mp4"},
        {
            "id": encode("sub/b.mkv"),
            "name": "b.mkv",
            "path": "sub/b.mkv",
            "size": len(B_BYTES),
            "mime": "video/x-matroska",
        },
    ]


async def test_media_list_is_idempotent(client):
    first = await (await client.get("/media")).json()
    second = await (await client.get("/media")).json()
    key = lambda item: item["id"]
    assert sorted(first, key=key) == sorted(second, key=key)


async def test_media_list_reflects_disk(client, media_root):
    (media_root / "new.webm").write_bytes(b"w")
    items = await (await client.get("/media")).json()
    assert "new.webm" in {item["path"] for item in items}


async def test_media_info(client):
    resp = await client.get(f"/media/{A_ID}")
    assert resp.status == 200
    data = await resp.json()
    assert data["path"] == "a.mp4"
    assert data["size"] == len(A_BYTES)


@pytest.mark.parametrize(
    "token", [encode("notes.txt"), encode("missing.mp4"), encode("../a.mp4"), "YR"]
)
async def test_media_info_not_found(client, token):
    resp = await client.get(f"/media/{token}")
    assert resp.status == 404
    assert "error" in await resp.json()


async def test_stream_full_file(client):
    resp = await client.get(f"/stream/{A_ID}")
    assert resp.status == 200
    assert resp.headers["Content-Type"] == "video/mp4"
    assert resp.headers["Content-Length"] == str(len(A_BYTES))
    assert resp.headers["Accept-Ranges"] == "bytes"
    assert "Content-Range" not in resp.headers
    assert await resp.read() == A_BYTES


@pytest.mark.parametrize(
    "header, start, end",
    [
        ("bytes=0-0", 0, 0),
        ("bytes=10-99", 10, 99),
        ("bytes=500-", 500, 1023),
        ("bytes=-24", 1000, 1023),
    ],
)
async def test_stream_partial(client, header, start, end):
    resp = await client.get(f"/stream/{A_ID}", headers={"Range": header})
    assert resp.status == 206
    assert resp.headers["Content-Range"] == f"bytes {start}-{end}/{len(A_BYTES)}"
    assert resp.headers["Content-Length"] == str(end - start + 1)
    assert resp.headers["Accept-Ranges"] == "bytes"
    assert resp.headers["Content-Type"] == "video/mp4"
    assert await resp.read() == A_BYTES[start:end + 1]


@pytest.mark.parametrize(
    "header", ["bytes=-0", "bytes=2000-3000", "bytes=500-100", "bytes=abc", "bytes=0-1,5-6"]
)
async def test_stream_unsatisfiable(client, header):
    resp = await client.get(f"/stream/{A_ID}", headers={"Range": header})
    assert resp.status == 416
    assert resp.headers["Content-Range"] == f"bytes */{len(A_BYTES)}"
    assert await resp.read() == b""


async def test_stream_small_chunks(aiohttp_client, media_root):
    client = await aiohttp_client(await web_server(str(media_root), chunk_size=7))
    resp = await client.get(f"/stream/{A_ID}", headers={"Range": "bytes=3-300"})
    assert resp.status == 206
    assert await resp.read() == A_BYTES[3:301]


async def test_stream_empty_file(client, media_root):
    (media_root / "empty.mp4").write_bytes(b"")
    token = encode("empty.mp4")

    resp = await client.get(f"/stream/{token}")
    assert resp.status == 200
    assert resp.headers["Content-Length"] == "0"
    assert await resp.read() == b""

    resp = await client.get(f"/stream/{token}", headers={"Range": "bytes=0-"})
    assert resp.status == 416
    assert resp.headers["Content-Range"] == "bytes */0"


async def test_stream_invalid_id(client):
    resp = await client.get("/stream/YR")
    assert resp.status == 400
    assert "error" in await resp.json()


@pytest.mark.parametrize("relative_path", ["notes.txt", "missing.mp4", "../secret.mp4"])
async def test_stream_not_found(client, media_root, relative_path):
    (media_root.parent / "secret.mp4").write_bytes(b"secret")
    resp = await client.get(f"/stream/{encode(relative_path)}")
    assert resp.status == 404
    assert "error" in await resp.json()


async def test_stream_head(client):
    resp = await client.head(f"/stream/{A_ID}", headers={"Range": "bytes=0-9"})
    assert resp.status == 206
    assert resp.headers["Content-Length"] == "10"
    assert resp.headers["Content-Range"] == f"bytes 0-9/{len(A_BYTES)}"


@pytest.fixture
async def keyed_client(aiohttp_client, media_root):
    return await aiohttp_client(await web_server(str(media_root), api_key="s3cret"))


async def test_api_key_required(keyed_client):
    resp = await keyed_client.get("/media")
    assert resp.status == 401
    assert await resp.json() == {"error": "Invalid API key"}

    resp = await keyed_client.get(f"/stream/{A_ID}", headers={"X-API-Key": "wrong"})
    assert resp.status == 401


async def test_api_key_accepted(keyed_client):
    resp = await keyed_client.get("/media", headers={"X-API-Key": "s3cret"})
    assert resp.status == 200

    resp = await keyed_client.get(
        f"/stream/{A_ID}", headers={"X-API-Key": "s3cret", "Range": "bytes=0-3"}
    )
    assert resp.status == 206
    assert await resp.read() == A_BYTES[:4]


async def test_health_skips_api_key(keyed_client):
    resp = await keyed_client.get("/health")
    assert resp.status == 200


async def test_stream_truncated_mid_response(aiohttp_client, media_root, monkeypatch):
    app = await web_server(str(media_root), chunk_size=64)
    streamer = app[streamer_key]
    yield_file = streamer.yield_file

    def truncate_then_yield(entry, start, end):
        (media_root / "a.mp4").write_bytes(A_BYTES[:100])
        return yield_file(entry, start, end)

    monkeypatch.setattr(streamer, "yield_file", truncate_then_yield)
    client = await aiohttp_client(app)

    resp = await client.get(f"/stream/{A_ID}")
    assert resp.status == 200
    assert resp.headers["Content-Length"] == str(len(A_BYTES))
    with pytest.raises(aiohttp.ClientError):
        await resp.read()

    resp = await client.get("/health")
    assert resp.status == 200
