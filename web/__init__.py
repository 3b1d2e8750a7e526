import logging
from typing import Iterable, Optional

from aiohttp import web

from web.stream_routes import json_error, routes, streamer_key
from web.utils.custom_dl import DEFAULT_CHUNK, ByteStreamer
from web.utils.media_index import VIDEO_EXTS

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
OPEN_PATHS = frozenset({"/health"})


def api_key_middleware(api_key: str):
    @web.middleware
    async def check_api_key(request: web.Request, handler):
        if request.path in OPEN_PATHS:
            return await handler(request)
        if request.headers.get(API_KEY_HEADER) != api_key:
            logger.warning(f"Invalid API key from {request.remote} for {request.path}")
            return json_error(401, "Invalid API key")
        return await handler(request)

    return check_api_key


async def web_server(
    media_root: str,
    api_key: Optional[str] = None,
    chunk_size: int = DEFAULT_CHUNK,
    extensions: Iterable[str] = VIDEO_EXTS,
) -> web.Application:
    middlewares = [api_key_middleware(api_key)] if api_key else []
    web_app = web.Application(middlewares=middlewares)
    web_app[streamer_key] = ByteStreamer(media_root, chunk_size, extensions)
    web_app.add_routes(routes)
    return web_app
