import asyncio
import logging

from aiohttp import web

from info import API_KEY, BIND_ADDRESS, CHUNK_SIZE, LOG_LEVEL, MEDIA_DIR, PORT
from web import web_server

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def main():
    app = await web_server(MEDIA_DIR, api_key=API_KEY, chunk_size=CHUNK_SIZE)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, BIND_ADDRESS, PORT)
    await site.start()

    logger.info(f"Server ready on http://{BIND_ADDRESS}:{PORT}")
    logger.info(f"Media directory: {MEDIA_DIR}")
    if API_KEY:
        logger.info("API key required on all routes except /health")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped manually")
