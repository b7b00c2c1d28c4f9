from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from aiohttp import web
from discord.ext import commands

from .debate_shared import STATUS_HOST, STATUS_PORT, logger

STATUS_PAGE = """<html>
    <head>
        <title>Debate Bot Status</title>
        <style>
            body {{ font-family: Arial, sans-serif; background: #2c2f33; color: #ffffff; text-align: center; padding: 50px; }}
            .status {{ background: #7289da; padding: 20px; border-radius: 10px; display: inline-block; margin: 20px; }}
            .stats {{ background: #23272a; padding: 15px; border-radius: 5px; margin: 10px; }}
        </style>
    </head>
    <body>
        <h1>🎯 Debate Bot is Online!</h1>
        <div class="status">
            <h2>{status_line}</h2>
            <p>Last ping: {stamp}</p>
        </div>
        <div class="stats">
            <h3>📊 Current Stats</h3>
            <p>Active Debates: {activeDebates}</p>
            <p>Pending Challenges: {pendingChallenges}</p>
            <p>Registered Users: {registeredUsers}</p>
        </div>
    </body>
</html>
"""

EMPTY_STATS: Dict[str, Any] = {
    "activeDebates": 0,
    "expiredDebates": 0,
    "pendingChallenges": 0,
    "registeredUsers": 0,
    "scheduledActions": 0,
}


class StatusServer:
    def __init__(
        self,
        stats_provider: Callable[[], Dict[str, Any]],
        ready_provider: Callable[[], bool],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stats_provider = stats_provider
        self.ready_provider = ready_provider
        self.clock = clock
        self.started_at = clock()
        self._runner: Optional[web.AppRunner] = None

    def uptime(self) -> float:
        return round(self.clock() - self.started_at, 3)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.index)
        app.router.add_get("/ping", self.ping)
        app.router.add_get("/stats", self.stats)
        return app

    async def index(self, request: web.Request) -> web.Response:
        stats = self.stats_provider()
        status_line = "✅ Bot Status: Active" if self.ready_provider() else "⏳ Bot Status: Connecting"
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        body = STATUS_PAGE.format(status_line=status_line, stamp=stamp, **stats)
        return web.Response(text=body, content_type="text/html")

    async def ping(self, request: web.Request) -> web.Response:
        return web.json_response(
            {
                "status": "online",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": self.uptime(),
                "botReady": bool(self.ready_provider()),
            }
        )

    async def stats(self, request: web.Request) -> web.Response:
        payload = dict(self.stats_provider())
        payload["uptime"] = self.uptime()
        return web.json_response(payload)

    async def start(self, host: str = STATUS_HOST, port: int = STATUS_PORT) -> None:
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        self._runner = runner
        logger.info("Status server listening on %s:%s", host, port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None


class StatusCog(commands.Cog):
    def __init__(self, client: commands.Bot):
        self.client = client
        self.server = StatusServer(self.current_stats, self.client.is_ready)

    def current_stats(self) -> Dict[str, Any]:
        cog = self.client.get_cog("DebateCog")
        if cog is None:
            return dict(EMPTY_STATS)
        return cog.controller.stats()

    async def cog_load(self):
        try:
            await self.server.start()
        except OSError:
            logger.exception("Failed to start status server on %s:%s", STATUS_HOST, STATUS_PORT)

    async def cog_unload(self):
        await self.server.stop()


async def setup(client: commands.Bot):
    await client.add_cog(StatusCog(client))
