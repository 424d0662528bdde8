"""Tests for PeriodicRefresher."""

import asyncio

import pytest

from breakdowntracker.infrastructure.scheduling.refresher import PeriodicRefresher


class TestPeriodicRefresher:
    """Tests for PeriodicRefresher."""

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            PeriodicRefresher(lambda: None, 0)

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self) -> None:
        calls = []

        async def callback() -> None:
            calls.append(1)

        refresher = PeriodicRefresher(callback, 0.01)
        refresher.start()
        await asyncio.sleep(0.08)
        await refresher.stop()

        count = len(calls)
        assert count >= 2
        assert not refresher.is_running
        await asyncio.sleep(0.03)
        assert len(calls) == count

    @pytest.mark.asyncio
    async def test_run_immediately(self) -> None:
        calls = []

        async def callback() -> None:
            calls.append(1)

        refresher = PeriodicRefresher(callback, 60, run_immediately=True)
        refresher.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        await refresher.stop()

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_loop(self) -> None:
        async def callback() -> None:
            raise RuntimeError("store unavailable")

        async with PeriodicRefresher(callback, 0.01) as refresher:
            await asyncio.sleep(0.05)
            assert refresher.is_running

        assert refresher.error_count >= 2
        assert refresher.tick_count == 0
        assert not refresher.is_running

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self) -> None:
        async def callback() -> None:
            pass

        refresher = PeriodicRefresher(callback, 0.01)
        refresher.start()
        task = refresher._task
        refresher.start()
        assert refresher._task is task
        await refresher.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self) -> None:
        async def callback() -> None:
            pass

        await PeriodicRefresher(callback, 1).stop()

    @pytest.mark.asyncio
    async def test_start_and_stop_hooks(self) -> None:
        active = set()

        async def callback() -> None:
            pass

        refresher = PeriodicRefresher(
            callback, 60, on_start=active.add, on_stop=active.discard
        )
        refresher.start()
        assert active == {refresher}

        await refresher.stop()
        assert active == set()
