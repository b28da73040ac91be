"""Backend host discovery by health-probing an ordered candidate list."""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)


class HostProber:
    """Pick the first reachable backend base URL and remember it for the process lifetime.

    Candidates are probed in order with ``GET {candidate}/health``. The first one
    answering with a 2xx status wins and the rest are never contacted. When every
    probe fails the first candidate is used as a degraded default. Either way the
    choice is cached and the probe is never run again.

    Concurrent callers of :meth:`resolve` share one in-flight probe.
    """

    def __init__(self, candidates: list[str], timeout_s: float = 2.0) -> None:
        if not candidates:
            raise ValueError("HostProber needs at least one candidate base URL")
        self.candidates = list(candidates)
        self.timeout_s = timeout_s
        self._resolved: str | None = None
        self._pending: asyncio.Task[str] | None = None

    @property
    def resolved(self) -> str | None:
        """The cached base URL, or None before the first resolution."""
        return self._resolved

    async def resolve(self) -> str:
        """Return the backend base URL, probing candidates on the first call only."""
        if self._resolved is not None:
            return self._resolved
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._probe_all())
        try:
            # A cancelled waiter must not cancel the probe other callers share
            return await asyncio.shield(self._pending)
        finally:
            if self._pending is not None and self._pending.done():
                self._pending = None

    async def _probe_all(self) -> str:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s)) as client:
            for host in self.candidates:
                if await self._probe(client, host):
                    logger.info(f"Backend found at: {host}")
                    self._resolved = host
                    return host

        self._resolved = self.candidates[0]
        logger.warning(f"No backend candidate answered, using fallback backend URL: {self._resolved}")
        return self._resolved

    async def _probe(self, client: httpx.AsyncClient, host: str) -> bool:
        try:
            response = await client.get(f"{host}/health")
        except httpx.HTTPError as e:
            logger.info(f"Failed to connect to: {host} ({e.__class__.__name__})")
            return False
        if not response.is_success:
            logger.info(f"Health probe to {host} answered {response.status_code}")
            return False
        return True
