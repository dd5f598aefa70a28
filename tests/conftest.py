import sys
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

sys.path.insert(0, str(Path(__file__).parent.parent))

from qbitgram.qbittorrent import QBittorrentClient, QBittorrentConfig, QBittorrentSession


class FakeDaemon:
    """In-process stand-in for the qBittorrent WebUI API."""

    USERNAME = "admin"
    PASSWORD = "secret"

    def __init__(self):
        self.torrents = []
        self.calls = []  # (endpoint, form/query dict)
        self.logins = 0
        self.always_forbid = False
        self.broken_info = False
        self.reject_add = False
        self._sid = "sid-1"

    def expire_session(self):
        self._sid = f"sid-{self.logins + 2}"

    def calls_to(self, endpoint):
        return [data for name, data in self.calls if name == endpoint]

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/v2/auth/login", self._login)
        app.router.add_get("/api/v2/torrents/info", self._info)
        app.router.add_post("/api/v2/torrents/add", self._add)
        app.router.add_post("/api/v2/torrents/stop", self._simple("torrents/stop"))
        app.router.add_post("/api/v2/torrents/start", self._simple("torrents/start"))
        app.router.add_post("/api/v2/torrents/delete", self._simple("torrents/delete"))
        app.router.add_get("/api/v2/app/version", self._version)
        return app

    def _authorized(self, request) -> bool:
        return not self.always_forbid and request.cookies.get("SID") == self._sid

    async def _login(self, request):
        form = await request.post()
        self.logins += 1
        self.calls.append(("auth/login", dict(form)))
        if form.get("username") != self.USERNAME or form.get("password") != self.PASSWORD:
            return web.Response(text="Fails.")
        response = web.Response(text="Ok.")
        response.set_cookie("SID", self._sid)
        return response

    async def _info(self, request):
        self.calls.append(("torrents/info", dict(request.query)))
        if not self._authorized(request):
            return web.Response(status=403, text="Forbidden")
        if self.broken_info:
            return web.Response(text="<html>not json</html>")
        hashes = request.query.get("hashes")
        torrents = self.torrents
        if hashes:
            wanted = set(hashes.split("|"))
            torrents = [t for t in torrents if t["hash"] in wanted]
        return web.json_response(torrents)

    async def _add(self, request):
        form = await request.post()
        data = {}
        for key, value in form.items():
            if isinstance(value, web.FileField):
                data[key] = (value.filename, value.file.read())
            else:
                data[key] = value
        self.calls.append(("torrents/add", data))
        if not self._authorized(request):
            return web.Response(status=403, text="Forbidden")
        if self.reject_add:
            return web.Response(text="Fails.")
        return web.Response(text="Ok.")

    def _simple(self, endpoint):
        async def handler(request):
            form = await request.post()
            self.calls.append((endpoint, dict(form)))
            if not self._authorized(request):
                return web.Response(status=403, text="Forbidden")
            return web.Response(text="")
        return handler

    async def _version(self, request):
        self.calls.append(("app/version", {}))
        if not self._authorized(request):
            return web.Response(status=403, text="Forbidden")
        return web.Response(text="v5.0.2")


@pytest.fixture
def daemon():
    return FakeDaemon()


@pytest_asyncio.fixture
async def qbt(daemon):
    """A QBittorrentClient connected to a running FakeDaemon."""
    server = TestServer(daemon.make_app())
    await server.start_server()
    config = QBittorrentConfig(
        host=str(server.make_url("/")),
        username=FakeDaemon.USERNAME,
        password=FakeDaemon.PASSWORD,
        timeout=5,
    )
    client = QBittorrentClient(QBittorrentSession(config))
    try:
        yield client
    finally:
        await client.close()
        await server.close()
