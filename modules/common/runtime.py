"""Process wiring for the onboarding bot: health server, background jobs, bot lifecycle."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from aiohttp import web
from discord.ext import commands

from shared import health as healthmod
from shared.config import (
    get_bot_name,
    get_env_name,
    get_port,
    get_session_sweep_sec,
    get_session_ttl_sec,
)
from shared.logging import get_trace_id, set_trace_id, setup_logging
from shared.sheets import async_adapter

log = logging.getLogger("learnerbot.runtime")

Job = Callable[[], Awaitable[None]]


async def create_app(*, runtime: "Runtime | None" = None) -> web.Application:
    """Build the aiohttp app that serves liveness and readiness probes."""

    access_logger = setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        static_fields={"env": get_env_name(), "bot": get_bot_name()},
        access_logger_name="aiohttp.access",
    )
    healthmod.set_component("runtime", True)

    @web.middleware
    async def tracing_middleware(
        request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
    ) -> web.StreamResponse:
        trace = set_trace_id()
        started = time.perf_counter()
        status = 500
        try:
            response = await handler(request)
            status = response.status
            response.headers["X-Trace-Id"] = trace
            return response
        finally:
            access_logger.info(
                "http_request",
                extra={
                    "trace": trace,
                    "method": request.method,
                    "path": request.path,
                    "status": status,
                    "ms": int((time.perf_counter() - started) * 1000),
                },
            )

    def describe() -> dict[str, Any]:
        payload: dict[str, Any] = {
            "bot": get_bot_name(),
            "env": get_env_name(),
            "version": os.getenv("BOT_VERSION", "dev"),
        }
        if runtime is not None:
            payload.update(runtime.stats())
        return payload

    async def root(_: web.Request) -> web.Response:
        return web.json_response({"ok": True, **describe(), "trace": get_trace_id()})

    async def ready(_: web.Request) -> web.Response:
        ok = healthmod.overall_ready()
        body = {"ok": ok, "components": healthmod.components_snapshot()}
        return web.json_response(body, status=200 if ok else 503)

    async def healthz(_: web.Request) -> web.Response:
        components = healthmod.components_snapshot()
        ok = all(entry.get("ok", False) for entry in components.values())
        body = {"ok": ok, **describe(), "components": components}
        return web.json_response(body, status=200 if ok else 503)

    app = web.Application(middlewares=[tracing_middleware])
    app.router.add_get("/", root)
    app.router.add_get("/ready", ready)
    app.router.add_get("/healthz", healthz)
    return app


class _RecurringJob:
    """Sleep ``interval`` seconds, run the job, repeat until cancelled."""

    def __init__(self, scheduler: "Scheduler", *, interval: float, tag: str | None, name: str | None) -> None:
        self._scheduler = scheduler
        self.interval = interval
        self.tag = tag
        self.name = name
        self.runs = 0
        self.failures = 0

    async def _loop(self, job: Job) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failures += 1
                log.exception("recurring job error", extra={"job_name": self.name, "tag": self.tag})
            else:
                self.runs += 1

    def do(self, job: Job) -> asyncio.Task:
        self.name = self.name or getattr(job, "__name__", "recurring_job")
        return self._scheduler.spawn(self._loop(job), name=self.name)


class Scheduler:
    """Owns the background tasks started by the runtime."""

    def __init__(self) -> None:
        self._tasks: list[asyncio.Task] = []

    def spawn(self, coro: Awaitable[Any], *, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.append(task)
        return task

    def every(
        self,
        *,
        minutes: float = 0.0,
        seconds: float = 0.0,
        tag: str | None = None,
        name: str | None = None,
    ) -> _RecurringJob:
        interval = float(minutes) * 60.0 + float(seconds)
        return _RecurringJob(self, interval=interval if interval > 0 else 60.0, tag=tag, name=name)

    async def shutdown(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                log.error("background task failed during shutdown: %s", result, extra={"task": task.get_name()})


class Runtime:
    """Holds the bot together with its health server and scheduler."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self.scheduler = Scheduler()
        self._web_runner: Optional[web.AppRunner] = None
        self._web_site: Optional[web.TCPSite] = None
        self._started_mono = time.monotonic()

    def _router(self) -> Any:
        return getattr(self.bot.get_cog("OnboardingCog"), "router", None)

    def stats(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"uptime_s": round(time.monotonic() - self._started_mono, 3)}
        router = self._router()
        if router is not None:
            payload["sessions"] = len(router.sessions)
            payload["cached_guilds"] = len(router.invites)
        return payload

    async def start_webserver(self, *, port: Optional[int] = None) -> None:
        if self._web_site is not None:
            return
        port = port or get_port()
        self._web_runner = web.AppRunner(await create_app(runtime=self))
        await self._web_runner.setup()
        self._web_site = web.TCPSite(self._web_runner, host="0.0.0.0", port=port)
        await self._web_site.start()
        log.info("health server listening", extra={"port": port})

    async def shutdown_webserver(self) -> None:
        site, runner = self._web_site, self._web_runner
        self._web_site = self._web_runner = None
        if site is not None:
            await site.stop()
        if runner is not None:
            await runner.cleanup()

    async def load_extensions(self) -> None:
        from cogs import onboarding as onboarding_cog

        await onboarding_cog.setup(self.bot)

    def schedule_session_expiry(self) -> bool:
        """Start the abandoned-session sweep when a TTL is configured."""

        ttl = get_session_ttl_sec()
        if ttl <= 0:
            log.info("session expiry disabled (ONBOARDING_SESSION_TTL_SEC=0)")
            return False
        router = self._router()
        if router is None:
            log.warning("session expiry not scheduled: onboarding cog missing")
            return False

        max_age = timedelta(seconds=ttl)

        async def expire_sessions() -> None:
            expired = router.sessions.expire(max_age)
            if expired:
                log.info("expired abandoned onboarding sessions", extra={"count": len(expired)})

        interval = get_session_sweep_sec()
        self.scheduler.every(seconds=interval, tag="sessions", name="session_expiry").do(expire_sessions)
        log.info("session expiry scheduled", extra={"ttl_s": ttl, "interval_s": interval})
        return True

    async def start(self, token: str) -> None:
        await self.start_webserver()
        await self.load_extensions()
        self.schedule_session_expiry()
        await self.bot.start(token)

    async def close(self) -> None:
        await self.shutdown_webserver()
        await self.scheduler.shutdown()
        async_adapter.shutdown_executor(wait=False)
        if not self.bot.is_closed():
            await self.bot.close()
