import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from app.settings import settings
from client.api_client import ApiError, TrackerApiClient

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class PollOutcome:
    # completed | failed | unavailable | cancelled
    status: str
    analysis_id: str
    record: Optional[Dict[str, Any]] = None

    @property
    def score(self) -> Optional[float]:
        return (self.record or {}).get("score")

    @property
    def error(self) -> Optional[str]:
        return (self.record or {}).get("error")


class AtsScorePoller:
    """Polls one analysis until it is terminal, the deadline passes, or it is cancelled."""

    def __init__(self, fetch: Fetch, analysis_id: str, *,
                 interval_ms: int = settings.ATS_POLL_INTERVAL_MS,
                 timeout_ms: int = settings.ATS_POLL_TIMEOUT_MS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.fetch = fetch
        self.analysis_id = analysis_id
        self.interval_ms = interval_ms
        self.timeout_ms = timeout_ms
        self._clock = clock
        self._sleep = sleep
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    async def run(self) -> PollOutcome:
        started = self._clock()
        record: Optional[Dict[str, Any]] = None

        def remaining() -> float:
            return self.timeout_ms / 1000 - (self._clock() - started)

        while not self.cancelled:
            if remaining() <= 0:
                return self._give_up(record)
            fetched = None
            try:
                fetched = await asyncio.wait_for(self.fetch(self.analysis_id), remaining())
            except asyncio.TimeoutError:
                return self._give_up(record)
            except ApiError as exc:
                if exc.status_code < 500:
                    raise
                logger.warning("Polling %s: server error %s, will retry", self.analysis_id, exc.status_code)
            except httpx.TransportError as exc:
                logger.warning("Polling %s: %s, will retry", self.analysis_id, exc.__class__.__name__)
            if self.cancelled:
                break
            # a record that arrives after the deadline does not count
            if remaining() <= 0:
                return self._give_up(record)
            if fetched is not None:
                record = fetched
                if record.get("score") is not None:
                    return PollOutcome("completed", self.analysis_id, record)
                if record.get("error") is not None:
                    return PollOutcome("failed", self.analysis_id, record)
            await self._wait(min(self.interval_ms / 1000, remaining()))
        return PollOutcome("cancelled", self.analysis_id, record)

    def _give_up(self, record: Optional[Dict[str, Any]]) -> PollOutcome:
        logger.info("Polling %s gave up after %d ms", self.analysis_id, self.timeout_ms)
        return PollOutcome("unavailable", self.analysis_id, record)

    async def _wait(self, seconds: float) -> None:
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        stopper = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            stopper.cancel()


class ScanSession:
    """Scan/rescan flow for one view; at most one live poller at a time."""

    def __init__(self, client: TrackerApiClient, job_application_id: Optional[str] = None, **poller_options):
        self.client = client
        self.job_application_id = job_application_id
        self.analysis_id: Optional[str] = None
        self.poller: Optional[AtsScorePoller] = None
        self._poller_options = poller_options

    def cancel(self) -> None:
        if self.poller:
            self.poller.cancel()

    async def scan(self) -> PollOutcome:
        return await self._start(None)

    async def rescan(self) -> PollOutcome:
        return await self._start(self.analysis_id)

    async def _start(self, analysis_id: Optional[str]) -> PollOutcome:
        self.cancel()
        self.analysis_id = await self.client.start_scan(self.job_application_id, analysis_id)
        self.poller = AtsScorePoller(self.client.get_score, self.analysis_id, **self._poller_options)
        return await self.poller.run()
