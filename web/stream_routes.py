import asyncio
import logging
import time

from aiohttp import hdrs, web

from utils import get_readable_time
from web.server.exceptions import FileNotFound, InvalidToken, RangeNotSatisfiable
from web.utils import StartTime, __version__
from web.utils.byte_range import resolve_range
from web.utils.custom_dl import ByteStreamer
from web.utils.media_index import MediaEntry, list_media, lookup

routes = web.RouteTableDef()

streamer_key = web.AppKey("streamer", ByteStreamer)

# ----------------------------
# Logger
# ----------------------------
logger = logging.getLogger("stream_routes")


def json_error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


# ----------------------------------------------------------
# Root status route
# ----------------------------------------------------------
@routes.get("/", allow_head=True)
async def root_route_handler(request: web.Request):
    return web.json_response(
        {
            "server_status": "running",
            "uptime": get_readable_time(time.time() - StartTime),
            "media_root": request.app[streamer_key].root,
            "version": __version__,
        }
    )


@routes.get("/health")
async def health_handler(_):
    return web.json_response({"ok": True})


# ----------------------------------------------------------
# Catalog
# ----------------------------------------------------------
@routes.get("/media", allow_head=True)
async def media_list_handler(request: web.Request):
    streamer = request.app[streamer_key]
    loop = asyncio.get_running_loop()
    # skip_unreadable=True: an unreadable subtree only drops its own
    # entries from the catalog, the request still succeeds.
    items = await loop.run_in_executor(
        None, list_media, streamer.root, streamer.extensions, True
    )
    return web.json_response([entry.to_dict() for entry in items])


@routes.get("/media/{id}", allow_head=True)
async def media_info_handler(request: web.Request):
    streamer = request.app[streamer_key]
    loop = asyncio.get_running_loop()
    try:
        entry = await loop.run_in_executor(
            None, lookup, streamer.root, request.match_info["id"], streamer.extensions
        )
    except FileNotFound as e:
        return json_error(404, e.message)
    return web.json_response(entry.to_dict())


# ----------------------------------------------------------
# Media streamer route (serves bytes with Range support)
# ----------------------------------------------------------
@routes.get("/stream/{id}", allow_head=True)
async def stream_handler(request: web.Request):
    token = request.match_info["id"]
    streamer = request.app[streamer_key]
    try:
        entry = await streamer.get_file_properties(token)
        return await media_streamer(request, streamer, entry)

    except InvalidToken as e:
        logger.warning(f"Rejected media id {token!r}")
        return json_error(400, e.message)

    except FileNotFound as e:
        return json_error(404, e.message)

    except Exception as e:
        logger.exception(f"Error in stream_handler: {e}")
        return json_error(500, "Internal Server Error")


# ----------------------------------------------------------
# Core streaming logic
# ----------------------------------------------------------
async def media_streamer(request: web.Request, streamer: ByteStreamer, entry: MediaEntry):
    """
    Answer with the whole file (200), the requested window (206), or
    416 when the Range header cannot be satisfied.
    """
    range_header = request.headers.get(hdrs.RANGE)
    total_size = entry.size_bytes

    try:
        byte_range = resolve_range(range_header, total_size)
    except RangeNotSatisfiable as e:
        logger.info(f"416 for {entry.relative_path}: Range {range_header!r}")
        return web.Response(
            status=416,
            headers={hdrs.CONTENT_RANGE: f"bytes */{e.file_size}"},
        )

    headers = {
        hdrs.CONTENT_TYPE: entry.mime_type,
        hdrs.ACCEPT_RANGES: "bytes",
    }
    if byte_range is None:
        status, start, end = 200, 0, total_size - 1
        headers[hdrs.CONTENT_LENGTH] = str(total_size)
    else:
        status, start, end = 206, byte_range.start, byte_range.end
        headers[hdrs.CONTENT_RANGE] = byte_range.content_range
        headers[hdrs.CONTENT_LENGTH] = str(byte_range.length)

    if request.method == hdrs.METH_HEAD:
        return web.Response(status=status, headers=headers)

    return web.Response(
        status=status,
        body=streamer.yield_file(entry, start, end),
        headers=headers,
    )
