"""retry_async behaviour."""

from __future__ import annotations

import pytest

from moviebot.utils import retry as retry_module
from moviebot.utils.retry import retry_async


class Flaky(Exception):
    def __init__(self, retry_after: float | None = None) -> None:
        super().__init__("flaky")
        if retry_after is not None:
            self.retry_after = retry_after


@pytest.fixture
def sleeps(monkeypatch):
    recorded: list[float] = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return recorded


@pytest.mark.asyncio
async def test_retries_listed_errors_with_linear_backoff(sleeps):
    attempts = []

    async def operation():
        attempts.append(1)
        if len(attempts) < 3:
            raise Flaky()
        return "ok"

    result = await retry_async(operation, max_attempts=3, base_delay=0.5, retry_on=(Flaky,))

    assert result == "ok"
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_retry_after_overrides_backoff(sleeps):
    attempts = []

    async def operation():
        attempts.append(1)
        if len(attempts) == 1:
            raise Flaky(retry_after=4)
        return "ok"

    assert await retry_async(operation, retry_on=(Flaky,)) == "ok"
    assert sleeps == [4]


@pytest.mark.asyncio
async def test_unlisted_errors_propagate_immediately(sleeps):
    async def operation():
        raise ValueError("no")

    with pytest.raises(ValueError):
        await retry_async(operation, retry_on=(Flaky,))
    assert sleeps == []


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(sleeps):
    async def operation():
        raise Flaky()

    with pytest.raises(Flaky):
        await retry_async(operation, max_attempts=2, retry_on=(Flaky,))
    assert len(sleeps) == 1
