"""Test configuration and shared fixtures.

Provide isolated settings, fake upstream hosts, a controllable clock, and a
local uvicorn upstream, so the poller and the exporter can be exercised
without outside network access.
"""
import asyncio
import socket
import threading
import time
from typing import Callable, Generator, Optional, Union

import httpx
import pytest
import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse, StreamingResponse

from app.config import Settings
from app.pingz.core.state import HealthState
from app.pingz.core.types import PollConfig, Target

Outcome = Union[int, Exception]

# ==============================================================================
# CONFIGURATION FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def mock_settings() -> Settings:
    """Provide test settings that ignore any local `.env` file."""
    return Settings(
        ENVIRONMENT="development",
        LOG_LEVEL="debug",
        REQUEST_TIMEOUT=1.0,
        _env_file=None,
    )


@pytest.fixture
def state() -> HealthState:
    """Provide a fresh, empty health state with its own registry."""
    return HealthState()


@pytest.fixture
def two_targets() -> PollConfig:
    """The a/b scenario: ``ok.test`` answers 200, ``down.test`` refuses."""
    return PollConfig(
        interval=1.0,
        targets=(
            Target(name="a", url="http://ok.test"),
            Target(name="b", url="http://down.test"),
        ),
    )

# ==============================================================================
# FAKE UPSTREAMS
# ==============================================================================

class FakeHosts:
    """MockTransport handler answering per hostname.

    Each host maps to an HTTP status code to return or an exception to raise.
    ``on_request`` runs before answering, e.g. to advance a fake clock.
    """

    def __init__(self, **outcomes: Outcome) -> None:
        self.outcomes: dict[str, Outcome] = {}
        for name, outcome in outcomes.items():
            self.set(name, outcome)
        self.requests: list[str] = []
        self.on_request: Callable[[httpx.Request], None] = lambda request: None

    def set(self, host: str, outcome: Outcome) -> None:
        # Keyword names cannot contain dots.
        self.outcomes[host.replace("_", ".")] = outcome

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.host)
        self.on_request(request)
        outcome = self.outcomes[request.url.host]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, request=request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def fake_hosts() -> FakeHosts:
    """``ok.test`` returns 200 and ``down.test`` refuses connections."""
    return FakeHosts(
        ok_test=200,
        down_test=httpx.ConnectError("[Errno 111] Connection refused"),
    )


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class StopPolling(Exception):
    """Raised by `RecordingSleep` to break out of the endless poll loop."""


class RecordingSleep:
    """Async sleep replacement that records delays and stops after ``limit`` calls."""

    def __init__(self, limit: int, clock: Optional[FakeClock] = None) -> None:
        self.limit = limit
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay)
        if len(self.delays) >= self.limit:
            raise StopPolling()


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Block until ``predicate`` holds, for tests driving a background loop."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        time.sleep(0.01)

# ==============================================================================
# LIVE UPSTREAM
# ==============================================================================

upstream = FastAPI()


@upstream.get("/ok")
async def upstream_ok() -> dict[str, str]:
    return {"status": "ok"}


@upstream.get("/unavailable", status_code=503)
async def upstream_unavailable() -> dict[str, str]:
    return {"status": "unavailable"}


@upstream.get("/moved")
async def upstream_moved() -> RedirectResponse:
    return RedirectResponse("/ok", status_code=302)


@upstream.get("/hang")
async def upstream_hang() -> dict[str, str]:
    await asyncio.sleep(5)
    return {"status": "late"}


@upstream.get("/drip")
async def upstream_drip() -> StreamingResponse:
    """200 right away, then a body that never ends."""
    async def chunks():
        while True:
            yield b"."
            await asyncio.sleep(0.2)

    return StreamingResponse(chunks(), media_type="text/plain")


@pytest.fixture(scope="session")
def upstream_url() -> Generator[str, None, None]:
    """Serve `upstream` on a free local port for the whole session."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]

    server = uvicorn.Server(
        uvicorn.Config(
            upstream,
            lifespan="off",
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=1,
        )
    )
    thread = threading.Thread(target=server.run, kwargs={"sockets": [sock]}, daemon=True)
    thread.start()
    wait_for(lambda: server.started)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)
    sock.close()
