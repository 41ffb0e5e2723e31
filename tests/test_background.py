import asyncio
import logging

import pytest

from curateurs import background
from curateurs.settings.config import settings


@pytest.mark.asyncio
class TestSpawn:
    async def test_runs_and_drains(self) -> None:
        done = []

        async def job():
            await asyncio.sleep(0)
            done.append(True)

        background.spawn(job(), name="job")
        await background.drain(timeout=1)

        assert done == [True]
        assert background.pending_count() == 0

    async def test_failure_is_logged_and_reported(self, caplog) -> None:
        errors = []

        async def failing():
            raise RuntimeError("smtp down")

        with caplog.at_level(logging.ERROR, logger="curateurs.background"):
            background.spawn(failing(), name="failing", on_error=errors.append)
            await background.drain(timeout=1)
            await asyncio.sleep(0)

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert "Background task failing failed" in caplog.text

    async def test_concurrency_is_bounded(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "BACKGROUND_MAX_TASKS", 2)
        background._slots.clear()
        running = 0
        peak = 0

        async def job():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        for i in range(6):
            background.spawn(job(), name=f"job-{i}")
        await background.drain(timeout=2)
        background._slots.clear()

        assert peak == 2

    async def test_run_sync(self) -> None:
        assert await background.run_sync(sum, [1, 2, 3]) == 6
