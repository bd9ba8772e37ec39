"""Shared fixtures: local stand-ins for the carrier HTTP APIs."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


class FakeCarrierAPI:
    """
    Minimal HTTP server playing a carrier's role.

    Tests set `responses[path] = (status, json_body)` and inspect
    `calls[path]` and `requests[path]` afterwards.
    """

    def __init__(self):
        self.responses: dict[str, tuple[int, object]] = {}
        self.calls: dict[str, int] = {}
        self.requests: dict[str, list[dict]] = {}
        self.delay = 0.0
        self.app = web.Application()
        self.app.router.add_route("*", "/{tail:.*}", self._handle)
        self._server = None

    async def _handle(self, request: web.Request) -> web.Response:
        path = request.path
        self.calls[path] = self.calls.get(path, 0) + 1
        body = await request.read()
        self.requests.setdefault(path, []).append({
            "method": request.method,
            "headers": dict(request.headers),
            "body": body.decode() if body else "",
        })

        if self.delay:
            await asyncio.sleep(self.delay)

        if path not in self.responses:
            return web.json_response({"error": "no fake response"}, status=599)

        status, payload = self.responses[path]
        if isinstance(payload, str):
            return web.Response(status=status, text=payload)
        return web.json_response(payload, status=status)

    async def start(self):
        self._server = TestServer(self.app)
        await self._server.start_server()

    async def close(self):
        if self._server:
            await self._server.close()

    @property
    def base_url(self) -> str:
        return str(self._server.make_url("/")).rstrip("/")


@pytest_asyncio.fixture
async def fake_api():
    """Running fake carrier API."""
    api = FakeCarrierAPI()
    await api.start()
    yield api
    await api.close()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


CONFIG_ENV_VARS = [
    "FEDEX_CLIENT_ID",
    "FEDEX_CLIENT_SECRET",
    "UPS_CLIENT_ID",
    "UPS_CLIENT_SECRET",
    "UPS_TRANSACTION_SRC",
    "NOVA_POSHTA_API_KEY",
    "HOST",
    "PORT",
    "REQUEST_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate a test from the developer's environment and .env files."""
    for name in CONFIG_ENV_VARS:
        # setenv first so the undo also removes values load_dotenv adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path
