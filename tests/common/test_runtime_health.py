import asyncio
from types import SimpleNamespace

from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from modules.common import runtime as rt
from modules.onboarding.sessions import SessionStore
from modules.invites.tracker import InviteCache
from shared import health as healthmod


class DummyBot:
    """Minimal bot stub for runtime wiring."""

    def __init__(self, cog=None) -> None:
        self._cog = cog
        self.closed = False

    def get_cog(self, name):
        return self._cog if name == "OnboardingCog" else None

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class _DummyRunner:
    def __init__(self, app: web.Application) -> None:
        self.app = app

    async def setup(self) -> None:
        return None

    async def cleanup(self) -> None:
        return None


class _DummySite:
    def __init__(self, runner: _DummyRunner, host: str, port: int) -> None:
        self.runner = runner
        self.host = host
        self.port = port
        self.started = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False


def _cog_with_sessions(count):
    sessions = SessionStore()
    for user_id in range(count):
        sessions.create(user_id=user_id, username=f"user{user_id}", guild_id=7)
    return SimpleNamespace(router=SimpleNamespace(sessions=sessions, invites=InviteCache()))


def test_health_endpoints_report_components(monkeypatch):
    monkeypatch.setattr(healthmod, "_components", {})

    async def runner() -> None:
        monkeypatch.setattr(rt.web, "AppRunner", _DummyRunner)
        monkeypatch.setattr(rt.web, "TCPSite", _DummySite)

        runtime = rt.Runtime(bot=DummyBot(_cog_with_sessions(2)))
        await runtime.start_webserver(port=0)
        try:
            app = runtime._web_runner.app

            async with TestServer(app) as server:
                async with TestClient(server) as client:
                    resp = await client.get("/")
                    assert resp.status == 200
                    data = await resp.json()
                    assert data["ok"] is True
                    assert data["sessions"] == 2
                    assert "bot" in data and "env" in data and "version" in data

                    resp = await client.get("/ready")
                    assert resp.status == 503
                    assert (await resp.json())["components"]["discord"]["ok"] is False

                    healthmod.set_component("discord", True)
                    for path in ("/ready", "/healthz"):
                        resp = await client.get(path)
                        assert resp.status == 200
                        assert (await resp.json())["ok"] is True
                        assert resp.headers.get("X-Trace-Id")
        finally:
            await runtime.shutdown_webserver()

    asyncio.run(runner())


def test_session_expiry_disabled_without_ttl(monkeypatch):
    monkeypatch.setattr(rt, "get_session_ttl_sec", lambda: 0)
    runtime = rt.Runtime(bot=DummyBot(_cog_with_sessions(1)))

    assert runtime.schedule_session_expiry() is False


def test_session_expiry_sweeps_stale_sessions(monkeypatch):
    cog = _cog_with_sessions(2)
    stale = cog.router.sessions.get(0)
    stale.created_at = stale.created_at - rt.timedelta(hours=2)

    monkeypatch.setattr(rt, "get_session_ttl_sec", lambda: 3600)
    monkeypatch.setattr(rt, "get_session_sweep_sec", lambda: 0.005)

    async def runner() -> None:
        runtime = rt.Runtime(bot=DummyBot(cog))
        assert runtime.schedule_session_expiry() is True
        await asyncio.sleep(0.1)
        await runtime.scheduler.shutdown()

    asyncio.run(runner())

    assert 0 not in cog.router.sessions
    assert 1 in cog.router.sessions


def test_close_stops_bot(monkeypatch):
    bot = DummyBot()

    asyncio.run(rt.Runtime(bot=bot).close())

    assert bot.closed
