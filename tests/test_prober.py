"""Tests for backend host discovery."""

import asyncio
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.prober import HostProber

CANDIDATES = ["http://127.0.0.1:8000", "http://localhost:8000", "http://0.0.0.0:8000"]


def _health(outcomes: dict):
    """Build a side effect answering each /health URL with a status code or raising an exception."""

    def side_effect(url, *args, **kwargs):
        outcome = outcomes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"status": "ok"})

    return side_effect


def _probed_urls(mock_get) -> list[str]:
    return [c.args[0] for c in mock_get.call_args_list]


@pytest.mark.asyncio
async def test_first_candidate_answers():
    """A healthy first candidate wins without touching the others."""
    prober = HostProber(CANDIDATES)
    outcomes = {f"{h}/health": 200 for h in CANDIDATES}

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        assert await prober.resolve() == "http://127.0.0.1:8000"

    assert _probed_urls(mock_get) == ["http://127.0.0.1:8000/health"]


@pytest.mark.asyncio
async def test_kth_candidate_answers_after_k_probes():
    """Candidates are tried in order and probing stops at the first success."""
    prober = HostProber(CANDIDATES)
    outcomes = {
        "http://127.0.0.1:8000/health": httpx.ConnectError("Connection refused"),
        "http://localhost:8000/health": 200,
        "http://0.0.0.0:8000/health": 200,
    }

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        assert await prober.resolve() == "http://localhost:8000"

    assert _probed_urls(mock_get) == ["http://127.0.0.1:8000/health", "http://localhost:8000/health"]


@pytest.mark.asyncio
async def test_all_candidates_fail_falls_back_to_first():
    """Timeouts, refusals and non-2xx answers all count as failures; the first candidate is the fallback."""
    prober = HostProber(CANDIDATES)
    outcomes = {
        "http://127.0.0.1:8000/health": httpx.ConnectTimeout("timed out"),
        "http://localhost:8000/health": 503,
        "http://0.0.0.0:8000/health": httpx.ConnectError("Connection refused"),
    }

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        assert await prober.resolve() == "http://127.0.0.1:8000"

    assert mock_get.await_count == 3
    assert prober.resolved == "http://127.0.0.1:8000"


@pytest.mark.asyncio
async def test_second_resolve_uses_cache():
    """Once resolved, no further probes are made."""
    prober = HostProber(CANDIDATES)
    outcomes = {f"{h}/health": 200 for h in CANDIDATES}

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        first = await prober.resolve()
        second = await prober.resolve()

    assert first == second == "http://127.0.0.1:8000"
    assert mock_get.await_count == 1


@pytest.mark.asyncio
async def test_fallback_is_cached_too():
    """A fallback choice is just as final as a successful probe."""
    prober = HostProber(CANDIDATES[:2])
    outcomes = {f"{h}/health": 500 for h in CANDIDATES[:2]}

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        await prober.resolve()
        await prober.resolve()

    assert mock_get.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_probe():
    """Callers arriving while the probe runs await the same result."""
    prober = HostProber(CANDIDATES)
    outcomes = {
        "http://127.0.0.1:8000/health": 500,
        "http://localhost:8000/health": 200,
        "http://0.0.0.0:8000/health": 200,
    }

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)) as mock_get:
        results = await asyncio.gather(prober.resolve(), prober.resolve(), prober.resolve())

    assert results == ["http://localhost:8000"] * 3
    assert mock_get.await_count == 2


def test_prober_requires_candidates():
    with pytest.raises(ValueError, match="at least one candidate"):
        HostProber([])


@pytest.mark.asyncio
async def test_cancelled_caller_leaves_shared_probe_running():
    """Cancelling one waiter must not cancel the probe the other callers are waiting on."""
    prober = HostProber(CANDIDATES)
    release = asyncio.Event()

    async def slow_health(url, *args, **kwargs):
        await release.wait()
        return httpx.Response(200, json={"status": "ok"})

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=slow_health) as mock_get:
        first = asyncio.ensure_future(prober.resolve())
        second = asyncio.ensure_future(prober.resolve())
        for _ in range(3):
            await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await second == "http://127.0.0.1:8000"

    assert mock_get.await_count == 1
    assert prober.resolved == "http://127.0.0.1:8000"


@pytest.mark.asyncio
async def test_probe_outcomes_are_logged(caplog):
    prober = HostProber(CANDIDATES[:2])
    outcomes = {
        "http://127.0.0.1:8000/health": httpx.ConnectError("Connection refused"),
        "http://localhost:8000/health": 200,
    }

    with caplog.at_level(logging.INFO, logger="app.prober"):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=_health(outcomes)):
            await prober.resolve()

    assert "Failed to connect to: http://127.0.0.1:8000 (ConnectError)" in caplog.text
    assert "Backend found at: http://localhost:8000" in caplog.text
