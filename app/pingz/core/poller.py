"""Cadence-paced reachability poller.

On every cycle the poller GETs each configured target in order, one at a
time, and writes the outcome into the injected `HealthState`. A target is
up iff the final response status, after redirects, is exactly 200; the body
is never downloaded. Every transport error, every other status, and any
check still pending after ``timeout`` seconds is down. A failing target only
affects its own series and is logged, never retried within the cycle.

Cycles are paced so consecutive cycles start ``interval`` seconds apart. A
cycle that takes longer than the interval is followed by the next cycle
immediately: no cycle is skipped and no backlog of pending cycles builds up.
"""

import asyncio
import time
from typing import Awaitable, Callable, NoReturn, Optional

import httpx

from .duration import format_duration
from .logging_config import get_logger
from .state import DOWN, HealthState
from .types import CheckResult, PollConfig, Target

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


def next_delay(interval: float, elapsed: float) -> float:
    """Return how long to wait before the next cycle.

    Clamped at zero: an overrunning cycle starts the next one right away.

    Example:
        >>> next_delay(1.0, 0.25)
        0.75
        >>> next_delay(0.1, 0.15)
        0.0
    """
    return max(0.0, interval - elapsed)


class Poller:
    """Checks every target once per cycle and records the results.

    Args:
        config: Targets and interval, fixed for the poller's lifetime.
        state: Shared health state; the poller is its only writer.
        client: HTTP client to use. When omitted, `run` opens one that
            follows redirects and closes it on exit.
        timeout: Upper bound in seconds on each check, whichever client is
            used; a check still pending at that point counts as down.
        clock: Monotonic clock used to measure cycle duration.
        sleep: Coroutine function used to wait between cycles.
    """

    def __init__(
        self,
        config: PollConfig,
        state: HealthState,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.state = state
        self.timeout = timeout
        self._client = client
        self._clock = clock
        self._sleep = sleep
        self.cycles = 0

    async def check(self, target: Target) -> CheckResult:
        """GET ``target.url`` and classify the outcome.

        Only the status line and headers are awaited; the body is never read.
        The whole check, redirects included, is bounded by ``timeout``.
        Failures of the check itself are returned as a down result, never
        raised.
        """
        if self._client is None:
            raise RuntimeError("Poller has no HTTP client; use run() or pass client=")

        start = self._clock()
        try:
            status_code = await asyncio.wait_for(
                self._fetch_status(target.url), self.timeout
            )
        except asyncio.TimeoutError:
            return CheckResult(
                target=target,
                up=False,
                detail=f"no response within {format_duration(self.timeout)}",
                elapsed=max(0.0, self._clock() - start),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return CheckResult(
                target=target,
                up=False,
                detail=str(e) or type(e).__name__,
                elapsed=max(0.0, self._clock() - start),
            )
        except Exception as e:
            logger.error(
                "Unexpected error during check",
                host=target.name,
                url=target.url,
                error=repr(e),
                exc_info=True,
            )
            return CheckResult(
                target=target,
                up=False,
                detail=repr(e),
                elapsed=max(0.0, self._clock() - start),
            )

        elapsed = max(0.0, self._clock() - start)
        if status_code != 200:
            return CheckResult(
                target=target,
                up=False,
                detail=f"response code was {status_code}, not 200",
                status_code=status_code,
                elapsed=elapsed,
            )
        return CheckResult(
            target=target,
            up=True,
            status_code=status_code,
            elapsed=elapsed,
        )

    async def _fetch_status(self, url: str) -> int:
        # Leaving the stream context closes the response without reading it.
        async with self._client.stream("GET", url) as response:
            return response.status_code

    def record(self, result: CheckResult) -> None:
        """Write one outcome into the state and log failures and recoveries."""
        target = result.target
        previous = self.state.get(target.name)
        self.state.set(target.name, result.value)

        if not result.up:
            logger.warning(
                "ping failed",
                host=target.name,
                url=target.url,
                isUp=False,
                error=result.detail,
            )
        elif previous == DOWN:
            logger.info("host recovered", host=target.name, url=target.url)

    async def run_cycle(self) -> float:
        """Check all targets sequentially, in config order.

        Returns:
            float: Seconds the cycle took.
        """
        start = self._clock()
        for target in self.config.targets:
            self.record(await self.check(target))
        self.cycles += 1
        return max(0.0, self._clock() - start)

    async def run(self) -> NoReturn:
        """Poll forever. Only cancellation or a failing ``sleep`` ends it."""
        if self._client is not None:
            await self._loop()

        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True
        ) as client:
            self._client = client
            try:
                await self._loop()
            finally:
                self._client = None

    async def _loop(self) -> NoReturn:
        interval = self.config.interval
        logger.info(
            "polling started",
            every=format_duration(interval),
            targets=len(self.config.targets),
            timeout=self.timeout,
        )

        while True:
            elapsed = await self.run_cycle()
            delay = next_delay(interval, elapsed)
            if delay == 0.0:
                logger.debug(
                    "cycle overran interval",
                    elapsed=round(elapsed, 3),
                    interval=interval,
                )
            # A zero delay still yields to the event loop.
            await self._sleep(delay)
