# services/keep_alive.py
import logging

from aiohttp import web

logger = logging.getLogger(__name__)

DEFAULT_BODY = "Bot is running"


def create_keep_alive_app(body: str = DEFAULT_BODY) -> web.Application:
    """
    Liveness responder for uptime pingers / PaaS health checks.
    Any method, any path -> 200 with a static body.
    """

    async def alive(request):
        return web.Response(text=body)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", alive)
    return app


async def start_keep_alive(host: str, port: int, body: str = DEFAULT_BODY) -> web.AppRunner:
    runner = web.AppRunner(create_keep_alive_app(body), access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"🌐 Keep-alive server listening on {host}:{port}")
    return runner
