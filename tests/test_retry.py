"""Tests for RetryExecutor and the retrying platform wrapper."""

import pytest
from fakes import USER, FakePlatform, collectible, keys, no_sleep
from gemtrader import PlatformError, RetryExecutor, RetryingPlatform


class Flaky:
    """Async callable that fails a set number of times before succeeding."""

    def __init__(self, failures: int, result: object = "ok") -> None:
        self.failures = failures
        self.calls = 0
        self.result = result

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            raise PlatformError(f"failure {self.calls}")
        return self.result


@pytest.fixture
def delays() -> list[float]:
    return []


@pytest.fixture
def executor(delays) -> RetryExecutor:
    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    return RetryExecutor(sleep=sleep, jitter=lambda a, b: 0.0)


class TestRetryExecutor:
    async def test_success_first_try(self, executor, delays):
        op = Flaky(0)
        assert await executor.execute(op) == "ok"
        assert op.calls == 1
        assert delays == []

    async def test_recovers_after_failures(self, executor, delays):
        op = Flaky(2)
        assert await executor.execute(op, max_attempts=5) == "ok"
        assert op.calls == 3
        assert delays == [0.2, 0.4]

    async def test_reraises_last_error(self, executor, delays):
        op = Flaky(10)
        with pytest.raises(PlatformError, match="failure 5"):
            await executor.execute(op, max_attempts=5)
        assert op.calls == 5
        assert delays == [0.2, 0.4, 0.8, 1.6]

    async def test_single_attempt_does_not_sleep(self, executor, delays):
        op = Flaky(1)
        with pytest.raises(PlatformError):
            await executor.execute(op, max_attempts=1)
        assert delays == []

    async def test_invalid_attempts(self, executor):
        with pytest.raises(ValueError):
            await executor.execute(Flaky(0), max_attempts=0)

    def test_delay_includes_jitter(self):
        executor = RetryExecutor(jitter=lambda a, b: b)
        assert executor.delay_for(1) == pytest.approx(0.7)
        assert executor.delay_for(3) == pytest.approx(1.3)

    def test_jitter_bounds_passed_through(self):
        seen: list[tuple[float, float]] = []

        def jitter(low: float, high: float) -> float:
            seen.append((low, high))
            return 0.0

        RetryExecutor(jitter=jitter).delay_for(1)
        assert seen == [(0.0, 0.5)]


class TestRetryingPlatform:
    @pytest.fixture
    def fake(self) -> FakePlatform:
        return FakePlatform()

    @pytest.fixture
    def platform(self, fake) -> RetryingPlatform:
        return RetryingPlatform(fake, RetryExecutor(sleep=no_sleep, jitter=lambda a, b: 0.0))

    async def test_inventory_read_retried(self, fake, platform):
        fake.give(USER, *keys(2))
        fake.inventory_failures[(USER, 440)] = 4
        items = await platform.fetch_inventory(USER, 440, 2)
        assert len(items) == 2
        assert len(fake.fetches) == 5

    async def test_inventory_read_gives_up(self, fake, platform):
        fake.inventory_failures[(USER, 440)] = 5
        with pytest.raises(PlatformError):
            await platform.fetch_inventory(USER, 440, 2)
        assert len(fake.fetches) == 5

    async def test_comment_not_retried(self, fake, platform):
        calls = 0

        async def failing_comment(party, text):
            nonlocal calls
            calls += 1
            raise PlatformError("comment failed")

        fake.post_profile_comment = failing_comment
        with pytest.raises(PlatformError):
            await platform.post_profile_comment(USER, "+rep")
        assert calls == 1

    async def test_writes_use_smaller_budget(self, fake, platform):
        calls = 0

        async def failing_grind(item):
            nonlocal calls
            calls += 1
            raise PlatformError("grind failed")

        fake.grind_into_gems = failing_grind
        with pytest.raises(PlatformError):
            await platform.grind_into_gems(collectible())
        assert calls == 3

    async def test_chat_passes_through(self, fake, platform):
        await platform.send_message(USER, "hi")
        assert fake.messages == [(USER, "hi")]
        assert platform.inner is fake
