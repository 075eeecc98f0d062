"""Tests for the shared board cache."""

import asyncio

import pytest
from builders import crs, make_board

from onward_journeys.adapters.cache import BoardCache
from onward_journeys.domain.errors import ProviderUnavailable
from onward_journeys.domain.models import Board, BoardQuery, Crs


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class RecordingProvider:
    """Provider that counts fetches and can be held open or made to fail."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[Crs] = []
        self.arrival_calls: list[Crs] = []
        self.release = asyncio.Event()
        self.release.set()

    async def fetch_board(self, station: Crs, query: BoardQuery) -> Board:  # noqa: ARG002
        self.calls.append(station)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return make_board(str(station))

    async def fetch_arrivals(self, station: Crs, query: BoardQuery) -> Board:  # noqa: ARG002
        self.arrival_calls.append(station)
        return make_board(str(station))


class TestBoardCache:
    """Tests for BoardCache."""

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self) -> None:
        provider = RecordingProvider()
        cache = BoardCache(provider)

        first = await cache.get_or_fetch(crs("PAD"), BoardQuery())
        second = await cache.get_or_fetch(crs("PAD"), BoardQuery())

        assert first is second
        assert cache.fetch_count == 1
        assert provider.calls == [crs("PAD")]

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_fetch(self) -> None:
        """Given two concurrent requests for one key, when the fetch completes, then both get it."""
        provider = RecordingProvider()
        provider.release.clear()
        cache = BoardCache(provider)

        tasks = [
            asyncio.create_task(cache.get_or_fetch(crs("RDG"), BoardQuery())) for _ in range(2)
        ]
        await asyncio.sleep(0)
        provider.release.set()
        first, second = await asyncio.gather(*tasks)

        assert first is second
        assert cache.fetch_count == 1
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_equivalent_queries_share_a_key(self) -> None:
        """Given two queries that clamp to the same values, when fetched, then one fetch happens."""
        provider = RecordingProvider()
        cache = BoardCache(provider)

        await cache.get_or_fetch(crs("PAD"), BoardQuery(time_window=120))
        await cache.get_or_fetch(crs("PAD"), BoardQuery(time_window=500))
        await cache.get_or_fetch(crs("PAD"), BoardQuery(time_window=30))

        assert cache.fetch_count == 2

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self) -> None:
        clock = FakeClock()
        provider = RecordingProvider()
        cache = BoardCache(provider, ttl_seconds=60, clock=clock)

        await cache.get_or_fetch(crs("PAD"), BoardQuery())
        clock.now += 59
        await cache.get_or_fetch(crs("PAD"), BoardQuery())
        assert cache.fetch_count == 1

        clock.now += 1
        await cache.get_or_fetch(crs("PAD"), BoardQuery())
        assert cache.fetch_count == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_not_cached(self) -> None:
        """Given a failing fetch with two waiters, when it fails, then both see it and the next call retries."""
        provider = RecordingProvider(error=ProviderUnavailable(crs("DID"), "boom"))
        provider.release.clear()
        cache = BoardCache(provider)

        tasks = [
            asyncio.create_task(cache.get_or_fetch(crs("DID"), BoardQuery())) for _ in range(2)
        ]
        await asyncio.sleep(0)
        provider.release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(result, ProviderUnavailable) for result in results)
        assert cache.fetch_count == 1
        assert cache.entry_count == 0

        provider.error = None
        board = await cache.get_or_fetch(crs("DID"), BoardQuery())
        assert board.station == crs("DID")
        assert cache.fetch_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_provider_unavailable(self) -> None:
        provider = RecordingProvider(error=RuntimeError("socket closed"))
        cache = BoardCache(provider)

        with pytest.raises(ProviderUnavailable) as exc_info:
            await cache.get_or_fetch(crs("OXF"), BoardQuery())

        assert exc_info.value.station == crs("OXF")
        assert "socket closed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_fetch(self) -> None:
        """Given two waiters, when one is cancelled, then the other still receives the board."""
        provider = RecordingProvider()
        provider.release.clear()
        cache = BoardCache(provider)

        impatient = asyncio.create_task(cache.get_or_fetch(crs("PAD"), BoardQuery()))
        patient = asyncio.create_task(cache.get_or_fetch(crs("PAD"), BoardQuery()))
        await asyncio.sleep(0)
        impatient.cancel()
        await asyncio.sleep(0)
        provider.release.set()

        board = await patient
        assert board.station == crs("PAD")
        assert impatient.cancelled()
        assert cache.fetch_count == 1
        assert cache.entry_count == 1

    @pytest.mark.asyncio
    async def test_oldest_entry_is_evicted(self) -> None:
        clock = FakeClock()
        cache = BoardCache(RecordingProvider(), max_entries=2, clock=clock)

        for code in ("PAD", "RDG", "OXF"):
            await cache.get_or_fetch(crs(code), BoardQuery())
            clock.now += 1

        assert cache.entry_count == 2
        await cache.get_or_fetch(crs("PAD"), BoardQuery())
        assert cache.fetch_count == 4

    @pytest.mark.asyncio
    async def test_invalidate_all(self) -> None:
        cache = BoardCache(RecordingProvider())
        await cache.get_or_fetch(crs("PAD"), BoardQuery())

        cache.invalidate_all()
        await cache.get_or_fetch(crs("PAD"), BoardQuery())

        assert cache.fetch_count == 2

    @pytest.mark.asyncio
    async def test_arrivals_and_departures_are_cached_apart(self) -> None:
        """Given both boards of one station, when each is requested twice, then each is fetched once."""
        provider = RecordingProvider()
        cache = BoardCache(provider)

        departures = await cache.get_or_fetch(crs("BTN"), BoardQuery())
        arrivals = await cache.get_or_fetch_arrivals(crs("BTN"), BoardQuery())
        await cache.get_or_fetch_arrivals(crs("BTN"), BoardQuery())

        assert departures is not arrivals
        assert provider.calls == [crs("BTN")]
        assert provider.arrival_calls == [crs("BTN")]
        assert cache.fetch_count == 2
        assert cache.entry_count == 2
